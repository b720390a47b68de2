"""
Document Subtype Resolution
===========================

Orders and invoices share the canonical schema; the exchange header's type
code tells them apart. UNTDID 1001 codes 220 (order) and 231 (purchase order
response) select the order labels and the order layout.
"""

from typing import Any, FrozenSet, Optional, Union
import logging

from lxml import etree

from einvoice_core.errors import TransformFailure
from einvoice_core.xml.utils import HEADER_NAMESPACES, parse_xml, xpath_text

logger = logging.getLogger(__name__)

TYPE_CODE_PATH = "//rsm:ExchangedDocument/ram:TypeCode"

ORDER_TYPE_CODES: FrozenSet[int] = frozenset({220, 231})


def read_type_code(document: Any) -> Optional[str]:
    """Return the exchange header type code of a parsed document, if present."""
    return xpath_text(document, TYPE_CODE_PATH, HEADER_NAMESPACES)


def is_order_type_code(type_code: Optional[str]) -> bool:
    """True for the order type codes (220, 231), compared as numbers."""
    if type_code is None:
        return False
    try:
        return float(type_code) in ORDER_TYPE_CODES
    except ValueError:
        return False


def resolve_subtype(canonical: Union[str, bytes, Any]) -> bool:
    """
    Decide whether a canonical document is an order.

    Args:
        canonical: Canonical XML text/bytes, or an already parsed element

    Returns:
        True when the type code is 220 or 231. A missing type code is
        rendered as a standard document.

    Raises:
        TransformFailure: If canonical text is not well-formed XML
    """
    if isinstance(canonical, (str, bytes)):
        try:
            document = parse_xml(canonical)
        except etree.XMLSyntaxError as e:
            raise TransformFailure(f"Normalized document is not well-formed: {e}") from e
    else:
        document = canonical

    type_code = read_type_code(document)
    if type_code is None:
        # TODO: reject documents without a type code once clients send schema-valid input
        logger.warning("Canonical document has no ExchangedDocument/TypeCode; treating as invoice")
        return False

    is_order = is_order_type_code(type_code)
    logger.info(f"Document type code {type_code} -> {'order' if is_order else 'invoice'}")
    return is_order
