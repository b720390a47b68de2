"""
Base Export Classes
===================

Abstract base class for the HTML to fixed-layout export backends, plus the
result container shared by all of them.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict
import logging

logger = logging.getLogger(__name__)


@dataclass
class ExportResult:
    """
    Container for export results.

    Attributes:
        output_path: Path to the created artifact
        media_type: MIME type of the artifact
        page_count: Number of pages written
        size_bytes: Artifact size in bytes
        metadata: Additional backend metadata
    """
    output_path: Path
    media_type: str = "application/pdf"
    page_count: int = 0
    size_bytes: int = 0
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def download_name(self) -> str:
        return self.output_path.name

    def summary(self) -> str:
        """Generate a one-line summary."""
        size_kb = self.size_bytes / 1024
        return f"{self.download_name}: {self.page_count} page(s), {size_kb:.1f} KB"


class BaseExporter(ABC):
    """
    Abstract base class for export backends.

    Example:
        class MyExporter(BaseExporter):
            def export(self, html: str, output_path: Path) -> ExportResult:
                output_path.write_bytes(render(html))
                return ExportResult(output_path)
    """

    extension = ".pdf"

    @abstractmethod
    def export(self, html: str, output_path: Path) -> ExportResult:
        """
        Render HTML into a fixed-layout document.

        Args:
            html: Rendered HTML document
            output_path: Where to write the artifact

        Returns:
            ExportResult describing the artifact

        Raises:
            ExportFailure: If the backend fails
        """
        pass

    def output_name(self, base_name: str) -> str:
        """File name of the artifact for a given base name."""
        return f"{base_name}{self.extension}"
