"""
Classification
==============

Dialect detection for uploaded documents and order/invoice subtype
resolution for normalized documents.
"""

from einvoice_core.classification.dialects import (
    DIALECT_RULES,
    UNRECOGNIZED,
    Dialect,
    DialectMatch,
    DialectRule,
    SourceDocument,
    classify,
    read_source,
    require_dialect,
)

from einvoice_core.classification.subtype import (
    ORDER_TYPE_CODES,
    TYPE_CODE_PATH,
    is_order_type_code,
    read_type_code,
    resolve_subtype,
)

__all__ = [
    "DIALECT_RULES",
    "UNRECOGNIZED",
    "Dialect",
    "DialectMatch",
    "DialectRule",
    "SourceDocument",
    "classify",
    "read_source",
    "require_dialect",
    "ORDER_TYPE_CODES",
    "TYPE_CODE_PATH",
    "is_order_type_code",
    "read_type_code",
    "resolve_subtype",
]
