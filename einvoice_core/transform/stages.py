"""
Transformation Stages
=====================

The two XSLT passes of the pipeline:

1. StructuralNormalizer  - source dialect -> canonical (xr) XML
2. PresentationRenderer  - canonical XML -> localized HTML

Both delegate to a TransformEngine; they own the choice of stylesheet and
the parameter contract.
"""

from typing import Mapping
import logging

from einvoice_core.classification.dialects import DialectMatch, SourceDocument
from einvoice_core.errors import ClassificationError, TransformFailure
from einvoice_core.transform.xslt import TransformEngine

logger = logging.getLogger(__name__)

PRESENTATION_STYLESHEET = "xrechnung-html.xsl"

# Stylesheet parameter prefix for label keys: i18n.bt1, i18n.bg22, ...
LABEL_PARAM_PREFIX = "i18n."


class StructuralNormalizer:
    """Maps a classified source document into the canonical schema."""

    def __init__(self, engine: TransformEngine):
        self.engine = engine

    def normalize(self, source: SourceDocument, match: DialectMatch) -> str:
        """
        Run the dialect's structural stylesheet.

        Raises:
            ClassificationError: If called with an unrecognized match
            TransformFailure: If the transformation fails
        """
        if not match.recognized:
            raise ClassificationError(source.root_name)

        logger.info(f"Normalizing {match.dialect.value} document with {match.stylesheet}")
        return self.engine.apply(match.stylesheet, source.content)


class PresentationRenderer:
    """
    Renders canonical documents to HTML with the unified presentation
    stylesheet.

    Parameters passed to the stylesheet:
        isOrder   - order layout switch
        showIds   - show business term ids (BT-1, ...) next to labels
        i18n.<k>  - one string parameter per label key
    """

    def __init__(self, engine: TransformEngine, stylesheet: str = PRESENTATION_STYLESHEET):
        self.engine = engine
        self.stylesheet = stylesheet

    def required_labels(self) -> set:
        """Label keys the stylesheet declares as parameters."""
        return {
            name[len(LABEL_PARAM_PREFIX):]
            for name in self.engine.declared_params(self.stylesheet)
            if name.startswith(LABEL_PARAM_PREFIX)
        }

    def render(self,
               canonical: str,
               is_order: bool,
               labels: Mapping[str, str],
               show_ids: bool = False) -> str:
        """
        Render canonical XML to HTML.

        Raises:
            TransformFailure: If labels required by the stylesheet are
                missing, or the transformation fails
        """
        missing = sorted(self.required_labels() - set(labels))
        if missing:
            raise TransformFailure(
                f"Label set is missing keys required by {self.stylesheet}: {', '.join(missing)}",
                self.stylesheet,
            )

        params = {"isOrder": bool(is_order), "showIds": bool(show_ids)}
        params.update({LABEL_PARAM_PREFIX + key: value for key, value in labels.items()})

        logger.info(f"Rendering HTML (isOrder={is_order}, showIds={show_ids}, {len(labels)} labels)")
        return self.engine.apply(self.stylesheet, canonical, params)
