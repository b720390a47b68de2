"""
Order/Invoice Subtype Tests

Run with: pytest tests/test_subtype.py -v
"""

import logging

import pytest
from lxml import etree

from conftest import canonical_xml
from einvoice_core.classification import is_order_type_code, read_type_code, resolve_subtype
from einvoice_core.errors import TransformFailure


class TestResolveSubtype:
    """Tests for resolve_subtype()."""

    @pytest.mark.parametrize("type_code", ["220", "231"])
    def test_order_codes(self, type_code):
        assert resolve_subtype(canonical_xml(type_code)) is True

    @pytest.mark.parametrize("type_code", ["380", "381", "384", "389", "221", "2200"])
    def test_other_codes(self, type_code):
        assert resolve_subtype(canonical_xml(type_code)) is False

    def test_whitespace_around_code(self):
        assert resolve_subtype(canonical_xml(" 220 ")) is True

    @pytest.mark.parametrize("type_code", ["0220", "220.0", " 231 ", "231.00"])
    def test_numeric_spellings_of_order_codes(self, type_code):
        assert resolve_subtype(canonical_xml(type_code)) is True

    def test_bytes_and_element_input(self):
        text = canonical_xml("231")
        assert resolve_subtype(text.encode("utf-8")) is True
        assert resolve_subtype(etree.fromstring(text)) is True

    def test_missing_type_code_defaults_to_invoice(self, caplog):
        with caplog.at_level(logging.WARNING):
            assert resolve_subtype(canonical_xml(None)) is False
        assert "TypeCode" in caplog.text

    def test_empty_type_code_defaults_to_invoice(self):
        assert resolve_subtype(canonical_xml("")) is False

    def test_malformed_canonical_document(self):
        with pytest.raises(TransformFailure):
            resolve_subtype("<xr:invoice>")


class TestTypeCodeHelpers:
    """Tests for the lower level helpers."""

    def test_read_type_code(self):
        assert read_type_code(etree.fromstring(canonical_xml("380"))) == "380"

    def test_read_type_code_ignores_other_namespaces(self):
        doc = etree.fromstring("<ExchangedDocument><TypeCode>220</TypeCode></ExchangedDocument>")
        assert read_type_code(doc) is None

    def test_is_order_type_code(self):
        assert is_order_type_code("220")
        assert not is_order_type_code(None)
        assert not is_order_type_code("380")
        assert is_order_type_code("0231")
        assert not is_order_type_code("ORDER")
        assert not is_order_type_code("")
