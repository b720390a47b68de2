"""
Label Catalog
=============

Localized labels for the presentation stylesheet.

The static tables are loaded once and exposed read-only. Each call to
``label_set`` hands out a private dict; for orders, a fixed group of keys is
replaced by their ``_order`` counterparts on that copy only.

Example:
    catalog = get_catalog()
    labels = catalog.label_set("de", is_order=True)
    labels["bt1"]   # 'Bestellnummer'
"""

from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple, Union
import json
import logging

from einvoice_core.errors import UnknownLanguageError

logger = logging.getLogger(__name__)

DEFAULT_TRANSLATIONS_PATH = Path(__file__).with_name("translations.json")

ORDER_SUFFIX = "_order"

# Keys whose wording differs between invoices and orders
ORDER_OVERRIDE_KEYS: Tuple[str, ...] = ("bt1", "bt2", "bt3", "bg22", "bt25", "bt26", "details")


class LabelCatalog:
    """
    Read-only store of label tables keyed by language code.

    Args:
        tables: Mapping of language code -> {label key: text}

    Raises:
        ValueError: If a table lacks an override key or its order variant
    """

    def __init__(self, tables: Mapping[str, Mapping[str, str]]):
        frozen = {}
        for language, table in tables.items():
            missing = [
                key
                for base in ORDER_OVERRIDE_KEYS
                for key in (base, base + ORDER_SUFFIX)
                if key not in table
            ]
            if missing:
                raise ValueError(
                    f"Translation table '{language}' is missing keys: {', '.join(missing)}"
                )
            frozen[language] = MappingProxyType(dict(table))
        self._tables: Mapping[str, Mapping[str, str]] = MappingProxyType(frozen)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "LabelCatalog":
        """Load tables from a JSON file of the form {"de": {...}, "en": {...}}."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Translation file not found: {path}")

        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)

        catalog = cls(data)
        logger.info(f"Loaded translations for {', '.join(catalog.languages)} from {path}")
        return catalog

    @property
    def languages(self) -> List[str]:
        """Supported language codes, sorted."""
        return sorted(self._tables)

    def base_table(self, language: str) -> Mapping[str, str]:
        """
        Return the read-only base table for a language.

        Raises:
            UnknownLanguageError: If no table exists for the language
        """
        try:
            return self._tables[language]
        except KeyError:
            raise UnknownLanguageError(language, self.languages) from None

    def label_set(self, language: str, is_order: bool = False) -> Dict[str, str]:
        """
        Build the effective labels for one transformation.

        Args:
            language: Language code, e.g. "de"
            is_order: Apply the order-variant overrides

        Returns:
            A new dict owned by the caller
        """
        labels = dict(self.base_table(language))
        if is_order:
            for key in ORDER_OVERRIDE_KEYS:
                labels[key] = labels[key + ORDER_SUFFIX]
        return labels


@lru_cache(maxsize=None)
def _load_catalog(path: Path) -> LabelCatalog:
    return LabelCatalog.from_file(path)


def get_catalog(path: Optional[Union[str, Path]] = None) -> LabelCatalog:
    """Return the process-wide catalog for a translations file (default: bundled)."""
    return _load_catalog(Path(path) if path else DEFAULT_TRANSLATIONS_PATH)
