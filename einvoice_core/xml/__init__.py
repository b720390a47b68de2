"""
XML Processing Utilities
========================

Parsing and namespace-aware lookup helpers used across the pipeline.
"""

from einvoice_core.xml.utils import (
    CANONICAL_NAMESPACES,
    HEADER_NAMESPACES,
    RAM_NS,
    RSM_NS,
    XR_NS,
    local_name,
    make_parser,
    parse_xml,
    xpath_text,
)

__all__ = [
    "CANONICAL_NAMESPACES",
    "HEADER_NAMESPACES",
    "RAM_NS",
    "RSM_NS",
    "XR_NS",
    "local_name",
    "make_parser",
    "parse_xml",
    "xpath_text",
]
