"""
Export Framework
================

HTML to fixed-layout rendering backends and the scoped per-request
workspace that holds uploaded sources and generated artifacts.

Components:
- BaseExporter: Abstract base class for export backends
- ExportResult: Container for export results
- PyMuPDFExporter: HTML -> PDF via PyMuPDF's Story API
- RequestWorkspace: Temporary directory removed on every exit path
"""

from einvoice_core.export.base import (
    BaseExporter,
    ExportResult,
)

from einvoice_core.export.pdf import (
    PyMuPDFExporter,
)

from einvoice_core.export.workspace import (
    RequestWorkspace,
    safe_base_name,
)

__all__ = [
    "BaseExporter",
    "ExportResult",
    "PyMuPDFExporter",
    "RequestWorkspace",
    "safe_base_name",
]
