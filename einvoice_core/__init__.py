"""
einvoice_core
=============

Library behind the e-invoice rendering service. It turns UN/CEFACT CII,
Cross Industry Order, UBL Invoice and UBL CreditNote documents into PDF:

    einvoice_core/
    ├── classification/  - dialect detection, order/invoice subtype
    ├── transform/       - XSLT engine, structural + presentation stages
    ├── i18n/            - label tables and per-request label sets
    ├── export/          - HTML -> PDF backends, request workspaces
    ├── pipeline/        - request-scoped orchestration
    ├── xml/             - parsing and namespace helpers
    └── errors.py        - ConversionError hierarchy

Usage
-----

    from einvoice_core import create_pipeline, RequestWorkspace

    pipeline = create_pipeline()
    with RequestWorkspace() as workspace:
        result = await pipeline.convert(xml_bytes, workspace, "invoice")
"""

__version__ = "1.0.0"

from einvoice_core.classification import (
    Dialect,
    DialectMatch,
    classify,
    resolve_subtype,
)

from einvoice_core.errors import (
    ClassificationError,
    ConversionError,
    ExportFailure,
    TransformFailure,
    UnknownLanguageError,
)

from einvoice_core.export import (
    BaseExporter,
    ExportResult,
    PyMuPDFExporter,
    RequestWorkspace,
)

from einvoice_core.i18n import (
    LabelCatalog,
    get_catalog,
)

from einvoice_core.pipeline import (
    ConversionResult,
    ConversionTrace,
    InvoiceRenderPipeline,
    PipelineStage,
    RenderResult,
    create_pipeline,
)

from einvoice_core.transform import (
    LxmlTransformEngine,
    TransformEngine,
)

__all__ = [
    "__version__",
    # Classification
    "Dialect",
    "DialectMatch",
    "classify",
    "resolve_subtype",
    # Errors
    "ClassificationError",
    "ConversionError",
    "ExportFailure",
    "TransformFailure",
    "UnknownLanguageError",
    # Export
    "BaseExporter",
    "ExportResult",
    "PyMuPDFExporter",
    "RequestWorkspace",
    # Localization
    "LabelCatalog",
    "get_catalog",
    # Pipeline
    "ConversionResult",
    "ConversionTrace",
    "InvoiceRenderPipeline",
    "PipelineStage",
    "RenderResult",
    "create_pipeline",
    # Transform
    "LxmlTransformEngine",
    "TransformEngine",
]
