"""
Export Tests

Run with: pytest tests/test_export.py -v
"""

import fitz
import pytest

from einvoice_core.errors import ExportFailure
from einvoice_core.export import PyMuPDFExporter, RequestWorkspace, safe_base_name

SIMPLE_HTML = """<html><body>
<h1>Rechnungsdetails</h1>
<table><tr><th>Rechnungsnummer</th><td>RE-2024-0815</td></tr></table>
</body></html>"""


class TestPyMuPDFExporter:
    """Tests for HTML -> PDF."""

    def test_writes_pdf(self, tmp_path):
        result = PyMuPDFExporter().export(SIMPLE_HTML, tmp_path / "invoice.pdf")

        assert result.output_path.read_bytes().startswith(b"%PDF")
        assert result.download_name == "invoice.pdf"
        assert result.media_type == "application/pdf"
        assert result.page_count == 1
        assert result.size_bytes == result.output_path.stat().st_size
        assert "invoice.pdf" in result.summary()

    def test_a4_page_contains_text(self, tmp_path):
        result = PyMuPDFExporter().export(SIMPLE_HTML, tmp_path / "invoice.pdf")

        with fitz.open(str(result.output_path)) as doc:
            page = doc[0]
            assert round(page.rect.width) == 595
            assert round(page.rect.height) == 842
            assert "RE-2024-0815" in page.get_text()

    def test_long_document_paginates(self, tmp_path):
        rows = "".join(f"<tr><td>{i}</td><td>Position {i}</td></tr>" for i in range(300))
        result = PyMuPDFExporter().export(f"<html><body><table>{rows}</table></body></html>", tmp_path / "long.pdf")
        assert result.page_count > 1

    def test_page_limit(self, tmp_path):
        rows = "".join(f"<p>Zeile {i}</p>" for i in range(400))
        with pytest.raises(ExportFailure, match="pages"):
            PyMuPDFExporter(max_pages=2).export(f"<html><body>{rows}</body></html>", tmp_path / "long.pdf")

    def test_backend_error_becomes_export_failure(self, tmp_path):
        # MuPDF cannot open an output file in a missing directory
        with pytest.raises(ExportFailure, match="PDF rendering failed") as excinfo:
            PyMuPDFExporter().export(SIMPLE_HTML, tmp_path / "gone" / "invoice.pdf")

        assert isinstance(excinfo.value.__cause__, fitz.mupdf.FzErrorBase)
        assert excinfo.value.kind == "export_failure"

    def test_does_not_recreate_removed_directory(self, tmp_path):
        workspace = RequestWorkspace(root=tmp_path).open()
        target = workspace.artifact_path("invoice.pdf")
        workspace.close()

        with pytest.raises(ExportFailure):
            PyMuPDFExporter().export(SIMPLE_HTML, target)
        assert list(tmp_path.iterdir()) == []

    def test_output_name(self):
        assert PyMuPDFExporter().output_name("RE-2024-0815") == "RE-2024-0815.pdf"


class TestSafeBaseName:
    """Tests for artifact naming."""

    @pytest.mark.parametrize("filename,expected", [
        ("invoice.xml", "invoice"),
        ("Rechnung 2024.xml", "Rechnung_2024"),
        ("../../etc/passwd", "passwd"),
        ("archive.tar.xml", "archive.tar"),
        ("", "document"),
        (None, "document"),
        ("...xml", "document"),
    ])
    def test_names(self, filename, expected):
        assert safe_base_name(filename) == expected


class TestRequestWorkspace:
    """Tests for the per-request temporary directory."""

    def test_removed_on_exit(self, tmp_path):
        with RequestWorkspace(root=tmp_path) as workspace:
            source = workspace.save_upload("invoice.xml", b"<Invoice/>")
            artifact = workspace.artifact_path("invoice.pdf")
            artifact.write_bytes(b"%PDF")
            assert source.read_bytes() == b"<Invoice/>"
            path = workspace.path

        assert workspace.closed
        assert not path.exists()
        assert not source.exists()
        assert not artifact.exists()

    def test_removed_on_error(self, tmp_path):
        with pytest.raises(RuntimeError):
            with RequestWorkspace(root=tmp_path) as workspace:
                workspace.save_upload("invoice.xml", b"<Invoice/>")
                raise RuntimeError("render failed")

        assert list(tmp_path.iterdir()) == []

    def test_close_is_idempotent(self, tmp_path):
        workspace = RequestWorkspace(root=tmp_path).open()
        workspace.close()
        workspace.close()
        assert list(tmp_path.iterdir()) == []

    def test_path_unavailable_after_close(self, tmp_path):
        workspace = RequestWorkspace(root=tmp_path).open()
        workspace.close()
        with pytest.raises(RuntimeError):
            workspace.path

    def test_artifact_path_stays_inside(self, tmp_path):
        with RequestWorkspace(root=tmp_path) as workspace:
            assert workspace.artifact_path("../../escape.pdf").parent == workspace.path

    def test_upload_name_sanitized(self, tmp_path):
        with RequestWorkspace(root=tmp_path) as workspace:
            saved = workspace.save_upload("../Rechnung 1.xml", b"<Invoice/>")
            assert saved.name == "Rechnung_1.xml"
            assert saved.parent == workspace.path
