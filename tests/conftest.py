"""
Shared fixtures and test doubles for the rendering pipeline tests.
"""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from einvoice_core.errors import TransformFailure
from einvoice_core.export.base import BaseExporter, ExportResult
from einvoice_core.transform.stages import PRESENTATION_STYLESHEET
from einvoice_core.transform.xslt import TransformEngine

DATA_DIR = Path(__file__).parent / "data"


def canonical_xml(type_code="380"):
    """Minimal canonical document carrying the given exchange type code."""
    type_code_element = f"<ram:TypeCode>{type_code}</ram:TypeCode>" if type_code is not None else ""
    return (
        '<xr:invoice xmlns:xr="urn:ce.eu:en16931:2017:xoev-de:kosit:standard:xrechnung-1" '
        'xmlns:rsm="urn:un:unece:uncefact:data:standard:CrossIndustryInvoice:100" '
        'xmlns:ram="urn:un:unece:uncefact:data:standard:ReusableAggregateBusinessInformationEntity:100">'
        f"<rsm:ExchangedDocument><ram:ID>T-1</ram:ID>{type_code_element}</rsm:ExchangedDocument>"
        "<xr:Invoice_number>T-1</xr:Invoice_number>"
        "</xr:invoice>"
    )


class CannedEngine(TransformEngine):
    """Transform engine returning fixed output and recording every call."""

    def __init__(self, type_code="380", html="<html><body>rendered</body></html>",
                 fail_on=None, declared=frozenset()):
        self.canonical = canonical_xml(type_code)
        self.html = html
        self.fail_on = fail_on
        self.declared = frozenset(declared)
        self.calls = []

    def apply(self, stylesheet, source, params=None):
        self.calls.append((stylesheet, dict(params or {})))
        if stylesheet == self.fail_on:
            raise TransformFailure(f"terminated by {stylesheet}", stylesheet)
        if stylesheet == PRESENTATION_STYLESHEET:
            return self.html
        return self.canonical

    def declared_params(self, stylesheet):
        return self.declared

    @property
    def stylesheets(self):
        return [name for name, _ in self.calls]


class RecordingExporter(BaseExporter):
    """Exporter writing a placeholder PDF."""

    def __init__(self, fail=None):
        self.fail = fail
        self.calls = []

    def export(self, html, output_path):
        self.calls.append(html)
        if self.fail is not None:
            raise self.fail
        output_path.write_bytes(b"%PDF-1.7\n% placeholder\n")
        return ExportResult(output_path=output_path, page_count=1, size_bytes=output_path.stat().st_size)


@pytest.fixture
def data_dir():
    return DATA_DIR


@pytest.fixture
def sample():
    """Read a sample document from tests/data by file name."""
    def _read(name):
        return (DATA_DIR / name).read_bytes()
    return _read
