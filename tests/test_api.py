"""
API Endpoint Tests for the E-Invoice Rendering Service

Run with: pytest tests/test_api.py -v
"""

import asyncio
from contextlib import ExitStack

import fitz
import pytest
from fastapi.testclient import TestClient
from starlette.requests import ClientDisconnect

# Import the app
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from api import WorkspaceFileResponse, create_app
from config import ServiceConfig
from conftest import CannedEngine, RecordingExporter
from einvoice_core.classification import DIALECT_RULES
from einvoice_core.errors import ClassificationError
from einvoice_core.export import RequestWorkspace
from einvoice_core.i18n import get_catalog
from einvoice_core.pipeline import InvoiceRenderPipeline


@pytest.fixture
def workspace_root(tmp_path):
    return tmp_path / "work"


@pytest.fixture
def config(workspace_root):
    config = ServiceConfig()
    config.export.temp_dir = workspace_root
    return config


@pytest.fixture
def client(config):
    """Create test client backed by the real pipeline."""
    return TestClient(create_app(config))


@pytest.fixture
def engine():
    return CannedEngine(type_code="220")


@pytest.fixture
def exporter():
    return RecordingExporter()


@pytest.fixture
def fake_client(config, engine, exporter):
    """Create test client whose pipeline uses canned transforms."""
    pipeline = InvoiceRenderPipeline(engine=engine, exporter=exporter, catalog=get_catalog())
    return TestClient(create_app(config, pipeline=pipeline))


def upload(client, sample, name, path="/upload", **form):
    return client.post(
        path,
        files={"file": (name, sample(name), "application/xml")},
        data=form,
    )


class TestHealthEndpoint:
    """Tests for /api/v1/health endpoint."""

    def test_health_returns_200(self, client):
        """Health endpoint should return 200."""
        response = client.get("/api/v1/health")
        assert response.status_code == 200

    def test_health_returns_status(self, client):
        """Health endpoint should include status field."""
        data = client.get("/api/v1/health").json()
        assert data["status"] == "healthy"
        assert data["languages"] == ["de", "en"]


class TestInfoEndpoint:
    """Tests for /api/v1/info endpoint."""

    def test_info_contains_name_and_version(self, client):
        data = client.get("/api/v1/info").json()
        assert data["name"]
        assert data["version"]

    def test_info_lists_dialects_in_priority_order(self, client):
        data = client.get("/api/v1/info").json()
        assert [d["dialect"] for d in data["dialects"]] == [rule.dialect.value for rule in DIALECT_RULES]
        assert data["dialects"][0]["stylesheet"] == "cii-xr.xsl"

    def test_info_languages(self, client):
        data = client.get("/api/v1/info").json()
        assert data["languages"] == ["de", "en"]
        assert data["default_language"] == "de"


class TestUploadEndpoint:
    """Tests for POST /upload with the real pipeline."""

    def test_cii_order_returns_pdf(self, client, sample, workspace_root):
        response = upload(client, sample, "cii_order.xml")

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert 'filename="cii_order.pdf"' in response.headers["content-disposition"]
        assert response.content.startswith(b"%PDF")
        # Uploaded source and PDF are gone after the response
        assert list(workspace_root.iterdir()) == []

    @pytest.mark.parametrize("name", ["cio_order.xml", "ubl_invoice.xml", "ubl_creditnote.xml"])
    def test_other_dialects(self, client, sample, name):
        response = upload(client, sample, name, lang="en", show_ids="true")
        assert response.status_code == 200
        assert response.content.startswith(b"%PDF")

    def test_unknown_root_returns_400(self, client, sample, workspace_root):
        response = upload(client, sample, "unknown.xml")

        assert response.status_code == 400
        assert response.json() == {
            "error": "File format not recognized",
            "kind": "unrecognized_format",
            "message": ClassificationError.HINT,
        }
        assert list(workspace_root.iterdir()) == []

    def test_malformed_xml_returns_400(self, client):
        response = client.post("/upload", files={"file": ("broken.xml", b"<Invoice>", "application/xml")})
        assert response.status_code == 400
        assert response.json()["kind"] == "unrecognized_format"

    def test_unknown_language_returns_400(self, client, sample):
        response = upload(client, sample, "ubl_invoice.xml", lang="fr")
        assert response.status_code == 400
        assert response.json()["kind"] == "unknown_language"

    def test_without_file_returns_422(self, client):
        response = client.post("/upload")
        assert response.status_code == 422

    def test_pdf_backend_error_returns_export_failure(self, client, sample, workspace_root, tmp_path, monkeypatch):
        """A MuPDF error while writing the PDF is reported as export_failure."""
        real_writer = fitz.DocumentWriter
        monkeypatch.setattr(
            fitz, "DocumentWriter", lambda path, *args: real_writer(str(tmp_path / "gone" / "out.pdf"))
        )

        response = upload(client, sample, "cii_invoice.xml")

        assert response.status_code == 500
        assert response.json()["kind"] == "export_failure"
        assert list(workspace_root.iterdir()) == []
        assert not (tmp_path / "gone").exists()


class TestUploadWithCannedPipeline:
    """Tests for POST /upload with transform and export doubles."""

    def test_order_labels_and_cleanup(self, fake_client, engine, exporter, sample, workspace_root):
        response = upload(fake_client, sample, "cii_order.xml", lang="de")

        assert response.status_code == 200
        assert engine.stylesheets == ["cii-xr.xsl", "xrechnung-html.xsl"]
        assert engine.calls[1][1]["i18n.bt1"] == "Bestellnummer"
        assert len(exporter.calls) == 1
        assert list(workspace_root.iterdir()) == []

    def test_unknown_root_never_transforms(self, fake_client, engine, exporter, sample):
        response = upload(fake_client, sample, "unknown.xml")

        assert response.status_code == 400
        assert engine.calls == []
        assert exporter.calls == []

    def test_structural_failure_returns_500(self, config, exporter, sample, workspace_root):
        engine = CannedEngine(fail_on="cii-xr.xsl")
        pipeline = InvoiceRenderPipeline(engine=engine, exporter=exporter, catalog=get_catalog())
        client = TestClient(create_app(config, pipeline=pipeline))

        response = upload(client, sample, "cii_invoice.xml")

        assert response.status_code == 500
        assert response.json() == {
            "error": "Exception",
            "kind": "transform_failure",
            "message": "terminated by cii-xr.xsl",
        }
        assert engine.stylesheets == ["cii-xr.xsl"]
        assert exporter.calls == []
        assert list(workspace_root.iterdir()) == []


class TestWorkspaceFileResponse:
    """Tests for cleanup around PDF streaming."""

    def test_send_failure_removes_workspace(self, workspace_root):
        stack = ExitStack()
        closed = []
        stack.callback(closed.append, True)
        workspace = stack.enter_context(RequestWorkspace(root=workspace_root))
        artifact = workspace.artifact_path("invoice.pdf")
        artifact.write_bytes(b"%PDF-1.7\n%%EOF\n")

        response = WorkspaceFileResponse(
            artifact, cleanup=stack, media_type="application/pdf", filename="invoice.pdf"
        )
        scope = {
            "type": "http",
            "method": "POST",
            "path": "/upload",
            "headers": [],
            "asgi": {"version": "3.0", "spec_version": "2.4"},
        }

        async def receive():
            await asyncio.Event().wait()

        async def send(message):
            if message["type"] == "http.response.body":
                raise OSError("connection reset by peer")

        with pytest.raises((OSError, ClientDisconnect)):
            asyncio.run(response(scope, receive, send))

        assert closed == [True]
        assert list(workspace_root.iterdir()) == []


class TestHTMLEndpoint:
    """Tests for POST /api/v1/html."""

    def test_returns_html(self, client, sample):
        response = upload(client, sample, "ubl_invoice.xml", path="/api/v1/html", lang="en")

        assert response.status_code == 200
        html = response.json()["HTML"]
        assert "Invoice number" in html
        assert "UBL-2024-1001" in html

    def test_order_labels(self, client, sample):
        response = upload(client, sample, "cio_order.xml", path="/api/v1/html", lang="en", show_ids="true")

        html = response.json()["HTML"]
        assert "Order number" in html
        assert "(BT-1)" in html

    def test_unknown_root(self, client, sample):
        response = upload(client, sample, "unknown.xml", path="/api/v1/html")
        assert response.status_code == 400


class TestOpenAPISpec:
    """Tests for OpenAPI specification."""

    def test_openapi_json_returns_200(self, client):
        response = client.get("/openapi.json")
        assert response.status_code == 200

    def test_openapi_contains_paths(self, client):
        paths = client.get("/openapi.json").json()["paths"]
        assert "/upload" in paths
        assert "/api/v1/html" in paths
        assert "/api/v1/health" in paths
