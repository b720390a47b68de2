"""
XSLT Transformer
================

XSLT execution for the rendering pipeline.

``TransformEngine`` is the port the pipeline talks to: apply a named
stylesheet to a source document with a set of parameters and get serialized
text back. ``LxmlTransformEngine`` implements it with lxml/libxslt and keeps
every compiled stylesheet for reuse across requests.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional, Union
import logging
import threading

from lxml import etree

from einvoice_core.errors import TransformFailure
from einvoice_core.xml.utils import parse_xml

logger = logging.getLogger(__name__)

STYLESHEET_DIR = Path(__file__).with_name("stylesheets")

XSL_NS = "http://www.w3.org/1999/XSL/Transform"

# Stylesheets may pull in xsl:include files but never touch the network or write
ACCESS_CONTROL = etree.XSLTAccessControl(
    read_file=True,
    write_file=False,
    create_dir=False,
    read_network=False,
    write_network=False,
)


class TransformEngine(ABC):
    """
    Abstract transform-execution capability.

    Example:
        class CannedEngine(TransformEngine):
            def apply(self, stylesheet, source, params=None):
                return "<xr:invoice .../>"
    """

    @abstractmethod
    def apply(self,
              stylesheet: str,
              source: Union[str, bytes],
              params: Optional[Mapping[str, Any]] = None) -> str:
        """
        Apply a stylesheet to a source document.

        Args:
            stylesheet: Stylesheet identifier (file name in the stylesheet dir)
            source: Source XML
            params: Stylesheet parameters; bools become XPath booleans,
                everything else is passed as a string

        Returns:
            Serialized transformation result

        Raises:
            TransformFailure: If the stylesheet or the transformation fails
        """
        pass

    def declared_params(self, stylesheet: str) -> FrozenSet[str]:
        """Top-level xsl:param names of a stylesheet (empty if unknown)."""
        return frozenset()


def load_xslt_transform(xslt_path: Path) -> etree.XSLT:
    """
    Load an XSLT stylesheet from file.

    Args:
        xslt_path: Path to the XSLT stylesheet file

    Returns:
        Compiled XSLT transform

    Raises:
        FileNotFoundError: If XSLT file doesn't exist
        etree.XSLTParseError: If XSLT is malformed
    """
    if not xslt_path.exists():
        raise FileNotFoundError(f"XSLT stylesheet not found: {xslt_path}")

    logger.info(f"Loading XSLT stylesheet: {xslt_path}")
    xslt_doc = etree.parse(str(xslt_path))
    transform = etree.XSLT(xslt_doc, access_control=ACCESS_CONTROL)
    logger.info("XSLT stylesheet loaded successfully")
    return transform


def read_declared_params(xslt_path: Path) -> FrozenSet[str]:
    """Collect the names of the top-level xsl:param elements of a stylesheet."""
    doc = etree.parse(str(xslt_path))
    return frozenset(
        param.get("name")
        for param in doc.getroot().iterchildren(f"{{{XSL_NS}}}param")
    )


def xslt_param(value: Any) -> Any:
    """Convert a Python value into an lxml XSLT parameter."""
    if isinstance(value, bool):
        return "true()" if value else "false()"
    return etree.XSLT.strparam(str(value))


class LxmlTransformEngine(TransformEngine):
    """
    lxml-backed transform engine.

    Stylesheets are compiled on first use (or eagerly via ``preload``) and
    cached; compiled transforms are only read afterwards, so one engine
    serves all concurrent requests.

    Example:
        engine = LxmlTransformEngine()
        engine.preload(["cii-xr.xsl", "xrechnung-html.xsl"])
        xr_xml = engine.apply("cii-xr.xsl", source_bytes)
    """

    def __init__(self, stylesheet_dir: Optional[Path] = None):
        self.stylesheet_dir = Path(stylesheet_dir) if stylesheet_dir else STYLESHEET_DIR
        self._transforms: Dict[str, etree.XSLT] = {}
        self._params: Dict[str, FrozenSet[str]] = {}
        self._lock = threading.Lock()

    def preload(self, stylesheets: Iterable[str]) -> "LxmlTransformEngine":
        """Compile stylesheets up front so broken ones fail at startup."""
        for name in stylesheets:
            self._get_transform(name)
        return self

    def _resolve(self, stylesheet: str) -> Path:
        path = (self.stylesheet_dir / stylesheet).resolve()
        if self.stylesheet_dir.resolve() not in path.parents:
            raise TransformFailure(f"Stylesheet outside stylesheet directory: {stylesheet}", stylesheet)
        return path

    def _get_transform(self, stylesheet: str) -> etree.XSLT:
        transform = self._transforms.get(stylesheet)
        if transform is not None:
            return transform

        with self._lock:
            if stylesheet not in self._transforms:
                path = self._resolve(stylesheet)
                try:
                    transform = load_xslt_transform(path)
                    # declared_params reads _params without the lock
                    self._params[stylesheet] = read_declared_params(path)
                    self._transforms[stylesheet] = transform
                except (OSError, etree.XMLSyntaxError, etree.XSLTParseError) as e:
                    logger.error(f"Failed to load stylesheet {stylesheet}: {e}")
                    raise TransformFailure(f"Cannot load stylesheet {stylesheet}: {e}", stylesheet) from e
            return self._transforms[stylesheet]

    def declared_params(self, stylesheet: str) -> FrozenSet[str]:
        self._get_transform(stylesheet)
        return self._params[stylesheet]

    def apply(self,
              stylesheet: str,
              source: Union[str, bytes],
              params: Optional[Mapping[str, Any]] = None) -> str:
        transform = self._get_transform(stylesheet)

        try:
            xml_doc = etree.ElementTree(parse_xml(source))
        except etree.XMLSyntaxError as e:
            raise TransformFailure(f"Input to {stylesheet} is not well-formed XML: {e}", stylesheet) from e

        xslt_params = {k: xslt_param(v) for k, v in (params or {}).items()}

        logger.info(f"Applying XSLT transformation {stylesheet}...")
        try:
            result = transform(xml_doc, **xslt_params)
        except etree.XSLTApplyError as e:
            logger.error(f"XSLT transformation failed: {e}")
            logger.error(f"Error log: {transform.error_log}")
            raise TransformFailure(str(e), stylesheet) from e

        # xsl:message output and recoverable errors end up here
        if transform.error_log:
            logger.warning(f"XSLT transformation {stylesheet} completed with warnings:")
            for entry in transform.error_log:
                logger.warning(f"  {entry}")

        if result.getroot() is None:
            raise TransformFailure(f"Stylesheet {stylesheet} produced an empty result", stylesheet)

        logger.info("XSLT transformation completed successfully")
        return str(result)
