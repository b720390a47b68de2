"""
Pipeline
========

Request-scoped orchestration of classification, both XSLT stages,
localization and export.
"""

from einvoice_core.pipeline.converter import (
    ConversionResult,
    ConversionTrace,
    InvoiceRenderPipeline,
    PipelineStage,
    RenderResult,
    create_pipeline,
)

__all__ = [
    "ConversionResult",
    "ConversionTrace",
    "InvoiceRenderPipeline",
    "PipelineStage",
    "RenderResult",
    "create_pipeline",
]
