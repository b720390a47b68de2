"""
XML Utility Functions
=====================

Parsing and lookup helpers shared by the classifier, the subtype resolver
and the transform engine. Everything works on lxml elements and keeps
namespace handling in one place.
"""

from typing import Any, Dict, Optional, Union
import logging

from lxml import etree

logger = logging.getLogger(__name__)


# Namespace pair of the exchange header carried by every canonical document
RSM_NS = "urn:un:unece:uncefact:data:standard:CrossIndustryInvoice:100"
RAM_NS = "urn:un:unece:uncefact:data:standard:ReusableAggregateBusinessInformationEntity:100"

# Canonical intermediate schema
XR_NS = "urn:ce.eu:en16931:2017:xoev-de:kosit:standard:xrechnung-1"

HEADER_NAMESPACES: Dict[str, str] = {
    "rsm": RSM_NS,
    "ram": RAM_NS,
}

CANONICAL_NAMESPACES: Dict[str, str] = {
    "xr": XR_NS,
    **HEADER_NAMESPACES,
}


def make_parser() -> etree.XMLParser:
    """
    Create a parser for untrusted uploads.

    Entity expansion and network access are disabled; documents are small
    business messages, so huge_tree stays off as well.
    """
    return etree.XMLParser(
        resolve_entities=False,
        no_network=True,
        remove_blank_text=False,
        huge_tree=False,
    )


def parse_xml(content: Union[str, bytes]) -> Any:
    """
    Parse XML content into an lxml root element.

    Args:
        content: XML as bytes (preferred, keeps the declared encoding) or text

    Returns:
        Root element

    Raises:
        etree.XMLSyntaxError: If the content is not well-formed
    """
    if isinstance(content, str):
        # lxml refuses str input that carries an encoding declaration
        content = content.encode("utf-8")
    return etree.fromstring(content, parser=make_parser())


def local_name(element: Any) -> str:
    """
    Extract local name from element tag, stripping any namespace prefix.

    Example:
        >>> elem = etree.Element("{urn:oasis:names:specification:ubl:schema:xsd:Invoice-2}Invoice")
        >>> local_name(elem)
        'Invoice'
    """
    tag = element.tag
    if not isinstance(tag, str):
        return ""
    if tag.startswith("{"):
        return tag.split("}", 1)[1]
    return tag


def xpath_text(root: Any, path: str,
               namespaces: Optional[Dict[str, str]] = None) -> Optional[str]:
    """
    Evaluate a namespace-aware XPath and return the stripped string value.

    Args:
        root: Element to evaluate against
        path: XPath expression selecting an element or text
        namespaces: Prefix map used by the expression

    Returns:
        Text of the first match, or None when nothing (or only whitespace)
        matches
    """
    result = root.xpath(f"string({path})", namespaces=namespaces or {})
    value = str(result).strip()
    return value or None
