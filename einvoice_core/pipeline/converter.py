"""
Rendering Pipeline
==================

XML upload -> dialect -> canonical XML -> subtype -> labels -> HTML -> PDF

Stages run in order for one request; blocking work (XSLT, PDF layout) is
pushed to a bounded thread pool and awaited, so a single event loop can
serve many conversions at once. The transform engine and the export
backend are injected, which lets tests swap in doubles.

Usage:
    pipeline = create_pipeline()
    with RequestWorkspace() as workspace:
        result = await pipeline.convert(content, workspace, "invoice", language="de")
        result.export.output_path  # .../invoice.pdf
"""

from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, List, Optional, Union
import asyncio
import functools
import logging

from einvoice_core.classification.dialects import (
    DIALECT_RULES,
    Dialect,
    read_source,
    require_dialect,
)
from einvoice_core.classification.subtype import resolve_subtype
from einvoice_core.errors import ConversionError, ExportFailure
from einvoice_core.export.base import BaseExporter, ExportResult
from einvoice_core.export.pdf import PyMuPDFExporter
from einvoice_core.export.workspace import RequestWorkspace
from einvoice_core.i18n.labels import LabelCatalog, get_catalog
from einvoice_core.transform.stages import (
    PRESENTATION_STYLESHEET,
    PresentationRenderer,
    StructuralNormalizer,
)
from einvoice_core.transform.xslt import LxmlTransformEngine, TransformEngine

logger = logging.getLogger(__name__)


class PipelineStage(str, Enum):
    """Per-request conversion state."""
    RECEIVED = "received"
    CLASSIFIED = "classified"
    NORMALIZED = "normalized"
    SUBTYPE_RESOLVED = "subtype_resolved"
    LOCALIZED = "localized"
    RENDERED = "rendered"
    EXPORTED = "exported"
    CLEANED = "cleaned"
    FAILED = "failed"


class ConversionTrace:
    """Ordered record of the stages one request went through."""

    def __init__(self, name: str = ""):
        self.name = name
        self.stages: List[PipelineStage] = [PipelineStage.RECEIVED]
        self.error: Optional[ConversionError] = None

    @property
    def current(self) -> PipelineStage:
        return self.stages[-1]

    @property
    def failed(self) -> bool:
        return PipelineStage.FAILED in self.stages

    def advance(self, stage: PipelineStage) -> None:
        self.stages.append(stage)
        logger.debug(f"[{self.name}] -> {stage.value}")

    def fail(self, error: ConversionError) -> None:
        self.error = error
        self.stages.append(PipelineStage.FAILED)
        logger.warning(f"[{self.name}] failed after {self.stages[-2].value}: {error.kind}: {error.message}")

    def cleaned(self) -> None:
        """Record that the request's temporary files are gone."""
        if self.current is not PipelineStage.CLEANED:
            self.advance(PipelineStage.CLEANED)


@dataclass
class RenderResult:
    """Outcome of classification, both transforms and localization."""
    dialect: Dialect
    is_order: bool
    language: str
    canonical: str
    html: str
    trace: ConversionTrace = field(repr=False, default_factory=ConversionTrace)


@dataclass
class ConversionResult:
    """Outcome of a full conversion to PDF."""
    render: RenderResult
    export: ExportResult

    @property
    def trace(self) -> ConversionTrace:
        return self.render.trace

    @property
    def artifact_path(self) -> Path:
        return self.export.output_path


class InvoiceRenderPipeline:
    """
    Two-stage XSLT pipeline with a pluggable export backend.

    Args:
        engine: Transform engine used by both XSLT stages
        exporter: HTML -> fixed layout backend
        catalog: Label tables
        executor: Pool for blocking work; a private one is created if omitted
        max_workers: Size of the private pool
        presentation_stylesheet: Identifier of the HTML stylesheet
    """

    def __init__(self,
                 engine: TransformEngine,
                 exporter: BaseExporter,
                 catalog: LabelCatalog,
                 executor: Optional[Executor] = None,
                 max_workers: int = 4,
                 presentation_stylesheet: str = PRESENTATION_STYLESHEET):
        self.engine = engine
        self.exporter = exporter
        self.catalog = catalog
        self.normalizer = StructuralNormalizer(engine)
        self.renderer = PresentationRenderer(engine, presentation_stylesheet)
        self._owns_executor = executor is None
        self.executor = executor or ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="einvoice-render"
        )

    async def _run_blocking(self, func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self.executor, functools.partial(func, *args, **kwargs))

    async def render_html(self,
                          content: Union[str, bytes],
                          language: str = "de",
                          show_ids: bool = False,
                          trace: Optional[ConversionTrace] = None) -> RenderResult:
        """
        Classify, normalize and render a document to HTML.

        Raises:
            ClassificationError: Unsupported or malformed XML
            UnknownLanguageError: No label table for ``language``
            TransformFailure: Either XSLT stage failed
        """
        trace = trace or ConversionTrace()
        try:
            # Reject unknown languages before spending time on transforms
            self.catalog.base_table(language)

            source = await self._run_blocking(read_source, content)
            match = require_dialect(source)
            trace.advance(PipelineStage.CLASSIFIED)

            canonical = await self._run_blocking(self.normalizer.normalize, source, match)
            trace.advance(PipelineStage.NORMALIZED)

            is_order = resolve_subtype(canonical)
            trace.advance(PipelineStage.SUBTYPE_RESOLVED)

            labels = self.catalog.label_set(language, is_order)
            trace.advance(PipelineStage.LOCALIZED)

            html = await self._run_blocking(self.renderer.render, canonical, is_order, labels, show_ids)
            trace.advance(PipelineStage.RENDERED)
        except ConversionError as e:
            trace.fail(e)
            raise

        return RenderResult(
            dialect=match.dialect,
            is_order=is_order,
            language=language,
            canonical=canonical,
            html=html,
            trace=trace,
        )

    async def convert(self,
                      content: Union[str, bytes],
                      workspace: RequestWorkspace,
                      base_name: str,
                      language: str = "de",
                      show_ids: bool = False,
                      trace: Optional[ConversionTrace] = None) -> ConversionResult:
        """
        Full conversion; the artifact is written into ``workspace``.

        The caller owns the workspace and must close it once the artifact
        has been delivered (or the request failed).

        Raises:
            ExportFailure: The export backend failed
            (plus everything ``render_html`` raises)
        """
        trace = trace or ConversionTrace(base_name)
        render = await self.render_html(content, language=language, show_ids=show_ids, trace=trace)

        output_path = workspace.artifact_path(self.exporter.output_name(base_name))
        try:
            export = await self._run_blocking(self.exporter.export, render.html, output_path)
        except ConversionError as e:
            trace.fail(e)
            raise
        except OSError as e:
            error = ExportFailure(f"Cannot write {output_path.name}: {e}")
            trace.fail(error)
            raise error from e
        trace.advance(PipelineStage.EXPORTED)

        logger.info(
            f"Converted {render.dialect.value} document to {export.download_name} "
            f"({'order' if render.is_order else 'invoice'}, {language})"
        )
        return ConversionResult(render=render, export=export)

    def shutdown(self) -> None:
        """Release the private thread pool."""
        if self._owns_executor:
            self.executor.shutdown(wait=True)


def create_pipeline(stylesheet_dir: Optional[Path] = None,
                    translations_path: Optional[Path] = None,
                    paper_size: str = "a4",
                    margin: float = 36.0,
                    user_css: Optional[str] = None,
                    max_workers: int = 4,
                    presentation_stylesheet: str = PRESENTATION_STYLESHEET,
                    preload: bool = True) -> InvoiceRenderPipeline:
    """
    Build the production pipeline: lxml transforms, PyMuPDF export and the
    bundled (or given) translations.

    With ``preload`` every stylesheet is compiled immediately so a broken
    installation fails at startup rather than on the first request.
    """
    engine = LxmlTransformEngine(stylesheet_dir)
    if preload:
        engine.preload([rule.stylesheet for rule in DIALECT_RULES] + [presentation_stylesheet])

    return InvoiceRenderPipeline(
        engine=engine,
        exporter=PyMuPDFExporter(paper_size=paper_size, margin=margin, user_css=user_css),
        catalog=get_catalog(translations_path),
        max_workers=max_workers,
        presentation_stylesheet=presentation_stylesheet,
    )
