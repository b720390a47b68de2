"""
Dialect Classification
======================

Decides which supported e-invoice schema family an XML document belongs to,
and therefore which structural stylesheet normalizes it.

Classification is a pure function of the root element's local name. Rules
are substring checks evaluated in a fixed order because the names overlap:
every ``CrossIndustryInvoice`` root also contains ``Invoice``.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union
import logging

from lxml import etree

from einvoice_core.errors import ClassificationError
from einvoice_core.xml.utils import local_name, parse_xml

logger = logging.getLogger(__name__)


class Dialect(str, Enum):
    """Supported source schema families."""
    CII = "cii"
    CIO = "cio"
    UBL_INVOICE = "ubl-invoice"
    UBL_CREDIT_NOTE = "ubl-creditnote"
    UNRECOGNIZED = "unrecognized"


@dataclass(frozen=True)
class DialectRule:
    """One row of the dispatch table."""
    marker: str              # Substring looked for in the root element name
    dialect: Dialect
    stylesheet: str          # Structural stylesheet identifier

    def matches(self, root_name: str) -> bool:
        return self.marker in root_name


# Evaluated top to bottom, first match wins
DIALECT_RULES: Tuple[DialectRule, ...] = (
    DialectRule("CrossIndustryInvoice", Dialect.CII, "cii-xr.xsl"),
    DialectRule("SCRDMCCBDACIOMessageStructure", Dialect.CIO, "cio-xr.xsl"),
    DialectRule("Invoice", Dialect.UBL_INVOICE, "ubl-xr.xsl"),
    DialectRule("CreditNote", Dialect.UBL_CREDIT_NOTE, "ubl-creditnote-xr.xsl"),
)


@dataclass(frozen=True)
class DialectMatch:
    """Result of classifying a root element name."""
    dialect: Dialect
    stylesheet: Optional[str] = None

    @property
    def recognized(self) -> bool:
        return self.dialect is not Dialect.UNRECOGNIZED


UNRECOGNIZED = DialectMatch(Dialect.UNRECOGNIZED)


@dataclass(frozen=True)
class SourceDocument:
    """An uploaded XML document and its root element name."""
    content: bytes
    root_name: str


def classify(root_name: str) -> DialectMatch:
    """
    Classify a root element name.

    Args:
        root_name: Local name of the document element

    Returns:
        DialectMatch with the structural stylesheet to use, or UNRECOGNIZED
    """
    for rule in DIALECT_RULES:
        if rule.matches(root_name):
            return DialectMatch(rule.dialect, rule.stylesheet)
    return UNRECOGNIZED


def require_dialect(source: SourceDocument) -> DialectMatch:
    """
    Classify a source document, failing on unsupported dialects.

    Raises:
        ClassificationError: If no rule matches the root element
    """
    match = classify(source.root_name)
    if not match.recognized:
        logger.warning(f"Unrecognized root element: {source.root_name!r}")
        raise ClassificationError(source.root_name)
    logger.info(f"Classified <{source.root_name}> as {match.dialect.value} ({match.stylesheet})")
    return match


def read_source(content: Union[str, bytes]) -> SourceDocument:
    """
    Parse uploaded content far enough to know its root element.

    Malformed XML cannot belong to any dialect, so it is reported as a
    classification error together with the parser message.
    """
    if isinstance(content, str):
        content = content.encode("utf-8")
    try:
        root = parse_xml(content)
    except etree.XMLSyntaxError as e:
        logger.warning(f"Upload is not well-formed XML: {e}")
        raise ClassificationError(reason=str(e)) from e
    return SourceDocument(content=content, root_name=local_name(root))
