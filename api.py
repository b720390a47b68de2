#!/usr/bin/env python3
"""
E-Invoice Rendering REST API

FastAPI front door for the rendering pipeline. It supports:

- Uploading UN/CEFACT CII, Cross Industry Order, UBL Invoice or UBL
  CreditNote XML and downloading the rendered PDF
- Rendering the same documents to HTML only
- Health and service information for monitoring

API Flow:
1. POST /upload - Upload XML (form fields: file, lang, show_ids)
   - Response is the PDF download, named after the uploaded file
   - Uploaded source and PDF are deleted once the response is sent
2. POST /api/v1/html - Same form, returns {"HTML": "..."}

Usage:
    # Start the API server
    uvicorn api:app --host 0.0.0.0 --port 8025

    # Or programmatically
    from api import create_app
    app = create_app()
"""

from __future__ import annotations

import logging
from contextlib import ExitStack
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, File, Form, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from pydantic import BaseModel, Field

from config import ServiceConfig, get_config, validate_config
from einvoice_core import __version__
from einvoice_core.classification import DIALECT_RULES
from einvoice_core.errors import ConversionError
from einvoice_core.export import RequestWorkspace, safe_base_name
from einvoice_core.pipeline import ConversionTrace, InvoiceRenderPipeline, create_pipeline

logger = logging.getLogger(__name__)


# ============================================================================
# RESPONSE MODELS
# ============================================================================

class HTMLRendering(BaseModel):
    """HTML rendering of an uploaded document."""
    HTML: str = Field(..., description="The transformed HTML content")


class ErrorBody(BaseModel):
    """Structured error returned for every failed conversion."""
    error: str
    kind: str
    message: str


class DialectInfo(BaseModel):
    dialect: str
    root_marker: str
    stylesheet: str


class ServiceInfo(BaseModel):
    name: str
    version: str
    dialects: List[DialectInfo]
    languages: List[str]
    default_language: str


# ============================================================================
# ARTIFACT DELIVERY
# ============================================================================

class WorkspaceFileResponse(FileResponse):
    """
    FileResponse that closes the request's resources once streaming ends.

    The ExitStack is closed whether the body was sent completely, the
    client disconnected, or sending raised.
    """

    def __init__(self, path, cleanup: ExitStack, **kwargs):
        super().__init__(path, **kwargs)
        self._cleanup = cleanup

    async def __call__(self, scope, receive, send) -> None:
        try:
            await super().__call__(scope, receive, send)
        finally:
            self._cleanup.close()


def conversion_error_response(exc: ConversionError) -> JSONResponse:
    """Translate a pipeline error into its HTTP response."""
    status_code = 400 if exc.client_error else 500
    if exc.client_error:
        logger.info(f"Rejected upload: {exc.kind}: {exc}")
    else:
        logger.error(f"Conversion failed: {exc.kind}: {exc}")
    return JSONResponse(status_code=status_code, content=exc.to_dict())


# ============================================================================
# API ENDPOINTS
# ============================================================================

def create_app(config: Optional[ServiceConfig] = None,
               pipeline: Optional[InvoiceRenderPipeline] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        config: Service configuration (default: global configuration)
        pipeline: Pre-built pipeline, mainly for tests
    """
    config = config or get_config()
    if pipeline is None:
        pipeline = create_pipeline(
            stylesheet_dir=config.transform.stylesheet_dir,
            translations_path=config.localization.translations_path,
            paper_size=config.export.paper_size,
            margin=config.export.margin_pt,
            user_css=config.export.user_css,
            max_workers=config.api.max_workers,
            presentation_stylesheet=config.transform.presentation_stylesheet,
            preload=config.transform.preload_stylesheets,
        )

    app = FastAPI(
        title="E-Invoice Rendering API",
        description="""
REST API for rendering electronic invoices and orders as PDF.

## Supported input

UN/CEFACT Cross Industry Invoice, Cross Industry Order, UBL 2.1 Invoice
and UBL 2.1 CreditNote.

## Workflow

1. **Upload & Render**: `POST /upload` - Upload XML, receive the PDF
2. **HTML only**: `POST /api/v1/html` - Upload XML, receive `{"HTML": ...}`

Orders (type code 220 or 231) are labelled as orders, everything else as
invoices. Labels are available in German (default) and English.
        """,
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.config = config
    app.state.pipeline = pipeline

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.api.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.on_event("startup")
    async def startup_event():
        for problem in validate_config(config):
            logger.warning(f"Configuration problem: {problem}")
        logger.info(
            f"Rendering service ready (languages: {', '.join(pipeline.catalog.languages)}, "
            f"default: {config.default_language})"
        )

    @app.on_event("shutdown")
    async def shutdown_event():
        pipeline.shutdown()

    # ========================================================================
    # ERROR HANDLING
    # ========================================================================

    @app.exception_handler(ConversionError)
    async def conversion_error_handler(request: Request, exc: ConversionError):
        return conversion_error_response(exc)

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unexpected error on {request.url.path}")
        return JSONResponse(
            status_code=500,
            content={"error": "Exception", "kind": "exception", "message": str(exc)},
        )

    # ========================================================================
    # CONVERSION ENDPOINTS
    # ========================================================================

    @app.post(
        "/upload",
        tags=["Conversion"],
        response_class=FileResponse,
        responses={400: {"model": ErrorBody}, 500: {"model": ErrorBody}},
    )
    async def upload(
        file: UploadFile = File(..., description="E-invoice or order XML"),
        lang: str = Form(default=config.default_language),
        show_ids: bool = Form(default=False),
    ):
        """
        Upload an XML document and download it rendered as PDF.

        The PDF is named after the uploaded file. Temporary files are
        removed after the download, or immediately if rendering fails.
        """
        content = await file.read()
        base_name = safe_base_name(file.filename)
        trace = ConversionTrace(base_name)

        with ExitStack() as stack:
            stack.callback(trace.cleaned)
            workspace = stack.enter_context(RequestWorkspace(root=config.temp_dir))
            workspace.save_upload(file.filename, content)

            result = await pipeline.convert(
                content, workspace, base_name, language=lang, show_ids=show_ids, trace=trace
            )
            logger.info(result.export.summary())

            # From here on the response owns the workspace
            return WorkspaceFileResponse(
                result.artifact_path,
                cleanup=stack.pop_all(),
                media_type=result.export.media_type,
                filename=result.export.download_name,
            )

    @app.post(
        "/api/v1/html",
        response_model=HTMLRendering,
        tags=["Conversion"],
        responses={400: {"model": ErrorBody}, 500: {"model": ErrorBody}},
    )
    async def render_html(
        file: UploadFile = File(..., description="E-invoice or order XML"),
        lang: str = Form(default=config.default_language),
        show_ids: bool = Form(default=False),
    ):
        """Upload an XML document and return its HTML rendering."""
        content = await file.read()
        render = await pipeline.render_html(
            content, language=lang, show_ids=show_ids,
            trace=ConversionTrace(safe_base_name(file.filename)),
        )
        return HTMLRendering(HTML=render.html)

    # ========================================================================
    # SYSTEM ENDPOINTS
    # ========================================================================

    @app.get("/api/v1/health", tags=["System"])
    async def health_check() -> Dict[str, Any]:
        """Health check endpoint."""
        return {
            "status": "healthy",
            "timestamp": datetime.now().isoformat(),
            "languages": pipeline.catalog.languages,
        }

    @app.get("/api/v1/info", response_model=ServiceInfo, tags=["System"])
    async def service_info():
        """Service name, version, supported dialects and languages."""
        return ServiceInfo(
            name="E-Invoice Rendering API",
            version=__version__,
            dialects=[
                DialectInfo(
                    dialect=rule.dialect.value,
                    root_marker=rule.marker,
                    stylesheet=rule.stylesheet,
                )
                for rule in DIALECT_RULES
            ],
            languages=pipeline.catalog.languages,
            default_language=config.default_language,
        )

    return app


# Create default app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    config = get_config()
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(app, host=config.api.host, port=config.api.port)
