"""
Transformation Framework
========================

XSLT execution and the two transformation stages of the pipeline.

Components:
- TransformEngine: port for stylesheet execution
- LxmlTransformEngine: lxml/libxslt implementation with a compiled cache
- StructuralNormalizer: dialect -> canonical XML
- PresentationRenderer: canonical XML -> HTML
"""

from einvoice_core.transform.xslt import (
    STYLESHEET_DIR,
    LxmlTransformEngine,
    TransformEngine,
    load_xslt_transform,
    read_declared_params,
    xslt_param,
)

from einvoice_core.transform.stages import (
    LABEL_PARAM_PREFIX,
    PRESENTATION_STYLESHEET,
    PresentationRenderer,
    StructuralNormalizer,
)

__all__ = [
    "STYLESHEET_DIR",
    "LxmlTransformEngine",
    "TransformEngine",
    "load_xslt_transform",
    "read_declared_params",
    "xslt_param",
    "LABEL_PARAM_PREFIX",
    "PRESENTATION_STYLESHEET",
    "PresentationRenderer",
    "StructuralNormalizer",
]
