#!/usr/bin/env python3
"""E-invoice XML -> canonical XML -> localized HTML -> PDF, from the command line

This orchestrator runs the same pipeline as the REST API on a local file:
  1) Classifies the document (CII, Cross Industry Order, UBL Invoice, UBL CreditNote).
  2) Normalizes it into the canonical invoice schema.
  3) Picks order or invoice labels from the document type code.
  4) Renders localized HTML and exports it as an A4 PDF.

Usage:
  python einvoice_orchestrator.py invoice.xml --out ./output
  python einvoice_orchestrator.py order.xml --lang en --show-ids --html

Outputs:
  - <name>.pdf  : Rendered document
  - <name>.html : Intermediate HTML (with --html)

Exit codes:
  0 success, 1 conversion failure, 2 unrecognized input
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import shutil
import sys
from pathlib import Path
from typing import List, Optional

from config import ServiceConfig, get_config, load_config
from einvoice_core.errors import ClassificationError, ConversionError
from einvoice_core.export import RequestWorkspace, safe_base_name
from einvoice_core.pipeline import ConversionTrace, create_pipeline

EXIT_OK = 0
EXIT_CONVERSION_FAILED = 1
EXIT_UNRECOGNIZED = 2


async def render_file(input_path: Path,
                      out_dir: Path,
                      config: ServiceConfig,
                      language: str,
                      show_ids: bool = False,
                      write_html: bool = False) -> Path:
    """
    Convert one XML file and copy the results into ``out_dir``.

    Returns:
        Path of the written PDF

    Raises:
        ConversionError: If any pipeline stage fails
    """
    pipeline = create_pipeline(
        stylesheet_dir=config.transform.stylesheet_dir,
        translations_path=config.localization.translations_path,
        paper_size=config.export.paper_size,
        margin=config.export.margin_pt,
        user_css=config.export.user_css,
        max_workers=1,
        presentation_stylesheet=config.transform.presentation_stylesheet,
        preload=False,
    )
    base_name = safe_base_name(input_path.name)
    trace = ConversionTrace(base_name)
    content = input_path.read_bytes()

    try:
        with RequestWorkspace(root=config.temp_dir) as workspace:
            result = await pipeline.convert(
                content, workspace, base_name, language=language, show_ids=show_ids, trace=trace
            )
            out_dir.mkdir(parents=True, exist_ok=True)
            out_pdf = out_dir / result.export.download_name
            shutil.copy2(result.artifact_path, out_pdf)
        trace.cleaned()
    finally:
        pipeline.shutdown()

    if write_html:
        out_html = out_dir / f"{base_name}.html"
        out_html.write_text(result.render.html, encoding="utf-8")
        print(f"  HTML: {out_html}")

    print(f"  PDF:  {out_pdf} ({result.export.summary()})")
    print(f"  Stages: {' -> '.join(stage.value for stage in trace.stages)}")
    return out_pdf


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(
        description="Render UN/CEFACT CII/CIO or UBL 2.1 XML as a localized PDF",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Basic usage (German labels, A4):
    python einvoice_orchestrator.py invoice.xml

  English labels with BT identifiers next to each field:
    python einvoice_orchestrator.py invoice.xml --lang en --show-ids

  Keep the intermediate HTML:
    python einvoice_orchestrator.py order.xml --out ./converted --html

Environment Variables:
  XR2PDF_LANGUAGE, XR2PDF_PAPER_SIZE, XR2PDF_STYLESHEET_DIR, ... (see config.py)
        """
    )
    ap.add_argument("xml", help="Path to input XML")
    ap.add_argument("--out", default="output", help="Output directory (default: ./output)")
    ap.add_argument("--lang", default=None, help="Label language (default: configured, usually de)")
    ap.add_argument("--show-ids", action="store_true", help="Print BT/BG identifiers next to labels")
    ap.add_argument("--html", action="store_true", help="Also write the rendered HTML")
    ap.add_argument("--config", default=None, help="JSON configuration file")
    ap.add_argument("--log-level", default=None, help="Logging level (default: from configuration)")
    args = ap.parse_args(argv)

    config = load_config(args.config) if args.config else get_config()
    log_level = (args.log_level or config.log_level).upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    input_path = Path(args.xml).resolve()
    if not input_path.exists():
        print(f"Input file not found: {input_path}", file=sys.stderr)
        return EXIT_CONVERSION_FAILED

    language = args.lang or config.default_language
    print(f"\nRendering {input_path.name} ({language})")

    try:
        asyncio.run(render_file(
            input_path,
            Path(args.out).resolve(),
            config,
            language=language,
            show_ids=args.show_ids,
            write_html=args.html,
        ))
    except ClassificationError as e:
        print(f"File format not recognized: {e.message}", file=sys.stderr)
        return EXIT_UNRECOGNIZED
    except ConversionError as e:
        print(f"Conversion failed ({e.kind}): {e}", file=sys.stderr)
        return EXIT_CONVERSION_FAILED

    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
