"""
Localization
============

Static label tables and per-request label sets for the HTML rendering.
"""

from einvoice_core.i18n.labels import (
    DEFAULT_TRANSLATIONS_PATH,
    ORDER_OVERRIDE_KEYS,
    ORDER_SUFFIX,
    LabelCatalog,
    get_catalog,
)

__all__ = [
    "DEFAULT_TRANSLATIONS_PATH",
    "ORDER_OVERRIDE_KEYS",
    "ORDER_SUFFIX",
    "LabelCatalog",
    "get_catalog",
]
