#!/usr/bin/env python3
"""
Configuration Management for the E-Invoice Rendering Service

Centralized configuration for the API server and the command line
converter. It supports:

- Environment variable configuration
- Configuration file loading (JSON)
- Default values with override capability
- Validation of configuration values

Example Usage:
    from config import get_config, ServiceConfig

    # Get current configuration
    config = get_config()
    print(config.default_language)  # de

    # Override specific values
    config = ServiceConfig(export=ExportConfig(paper_size="letter"))
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from einvoice_core.i18n.labels import DEFAULT_TRANSLATIONS_PATH
from einvoice_core.transform.stages import PRESENTATION_STYLESHEET
from einvoice_core.transform.xslt import STYLESHEET_DIR


# ============================================================================
# CONFIGURATION DATACLASSES
# ============================================================================

@dataclass
class TransformConfig:
    """Configuration for the XSLT stages."""
    stylesheet_dir: Path = field(default_factory=lambda: STYLESHEET_DIR)
    presentation_stylesheet: str = PRESENTATION_STYLESHEET
    preload_stylesheets: bool = True

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["stylesheet_dir"] = str(self.stylesheet_dir)
        return d


@dataclass
class LocalizationConfig:
    """Configuration for label tables."""
    translations_path: Path = field(default_factory=lambda: DEFAULT_TRANSLATIONS_PATH)
    default_language: str = "de"

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["translations_path"] = str(self.translations_path)
        return d


@dataclass
class ExportConfig:
    """Configuration for PDF export."""
    paper_size: str = "a4"
    margin_pt: float = 36.0  # Half an inch
    user_css: Optional[str] = None
    temp_dir: Optional[Path] = None  # None means use system temp

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["temp_dir"] = str(self.temp_dir) if self.temp_dir else None
        return d


@dataclass
class APIConfig:
    """Configuration for REST API."""
    host: str = "0.0.0.0"
    port: int = 8025
    max_workers: int = 4
    cors_origins: List[str] = field(default_factory=lambda: ["*"])

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ServiceConfig:
    """
    Complete configuration for the rendering service.

    This is the main configuration class that aggregates all sub-configurations.
    """
    # Sub-configurations
    transform: TransformConfig = field(default_factory=TransformConfig)
    localization: LocalizationConfig = field(default_factory=LocalizationConfig)
    export: ExportConfig = field(default_factory=ExportConfig)
    api: APIConfig = field(default_factory=APIConfig)

    log_level: str = "INFO"

    # Convenience properties for common settings
    @property
    def default_language(self) -> str:
        return self.localization.default_language

    @property
    def temp_dir(self) -> Optional[Path]:
        return self.export.temp_dir

    def to_dict(self) -> Dict[str, Any]:
        """Convert entire configuration to dictionary."""
        return {
            "transform": self.transform.to_dict(),
            "localization": self.localization.to_dict(),
            "export": self.export.to_dict(),
            "api": self.api.to_dict(),
            "log_level": self.log_level,
        }

    def to_json(self, indent: int = 2) -> str:
        """Convert configuration to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ServiceConfig":
        """Create configuration from dictionary."""
        config = cls()

        if "transform" in data:
            tr_data = data["transform"].copy()
            if "stylesheet_dir" in tr_data:
                tr_data["stylesheet_dir"] = Path(tr_data["stylesheet_dir"])
            config.transform = TransformConfig(**tr_data)
        if "localization" in data:
            loc_data = data["localization"].copy()
            if "translations_path" in loc_data:
                loc_data["translations_path"] = Path(loc_data["translations_path"])
            config.localization = LocalizationConfig(**loc_data)
        if "export" in data:
            exp_data = data["export"].copy()
            if exp_data.get("temp_dir"):
                exp_data["temp_dir"] = Path(exp_data["temp_dir"])
            config.export = ExportConfig(**exp_data)
        if "api" in data:
            config.api = APIConfig(**data["api"])
        if "log_level" in data:
            config.log_level = data["log_level"]

        return config

    @classmethod
    def from_json(cls, json_str: str) -> "ServiceConfig":
        """Create configuration from JSON string."""
        return cls.from_dict(json.loads(json_str))

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "ServiceConfig":
        """Load configuration from a JSON file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(path, "r", encoding="utf-8") as f:
            return cls.from_json(f.read())

    def save(self, path: Union[str, Path]):
        """Save configuration to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write(self.to_json())

    @classmethod
    def from_env(cls) -> "ServiceConfig":
        """
        Create configuration from environment variables.

        Environment variable naming:
        - XR2PDF_STYLESHEET_DIR
        - XR2PDF_TRANSLATIONS
        - XR2PDF_LANGUAGE
        - XR2PDF_PAPER_SIZE
        - XR2PDF_TEMP_DIR
        - XR2PDF_API_PORT
        - etc.
        """
        config = cls()

        # Transform settings
        if env_xslt := os.environ.get("XR2PDF_STYLESHEET_DIR"):
            config.transform.stylesheet_dir = Path(env_xslt)
        if env_preload := os.environ.get("XR2PDF_PRELOAD_STYLESHEETS"):
            config.transform.preload_stylesheets = env_preload.lower() in ("true", "1", "yes")

        # Localization settings
        if env_translations := os.environ.get("XR2PDF_TRANSLATIONS"):
            config.localization.translations_path = Path(env_translations)
        if env_lang := os.environ.get("XR2PDF_LANGUAGE"):
            config.localization.default_language = env_lang

        # Export settings
        if env_paper := os.environ.get("XR2PDF_PAPER_SIZE"):
            config.export.paper_size = env_paper
        if env_margin := os.environ.get("XR2PDF_MARGIN"):
            config.export.margin_pt = float(env_margin)
        if env_temp := os.environ.get("XR2PDF_TEMP_DIR"):
            config.export.temp_dir = Path(env_temp)

        # API settings
        if env_api_host := os.environ.get("XR2PDF_API_HOST"):
            config.api.host = env_api_host
        if env_api_port := os.environ.get("XR2PDF_API_PORT"):
            config.api.port = int(env_api_port)
        if env_workers := os.environ.get("XR2PDF_MAX_WORKERS"):
            config.api.max_workers = int(env_workers)
        if env_origins := os.environ.get("XR2PDF_CORS_ORIGINS"):
            config.api.cors_origins = [o.strip() for o in env_origins.split(",") if o.strip()]

        if env_log := os.environ.get("XR2PDF_LOG_LEVEL"):
            config.log_level = env_log.upper()

        return config


# ============================================================================
# GLOBAL CONFIGURATION
# ============================================================================

_global_config: Optional[ServiceConfig] = None


def get_config() -> ServiceConfig:
    """
    Get the global configuration instance.

    Returns the cached configuration or creates a new one from environment.
    """
    global _global_config
    if _global_config is None:
        _global_config = ServiceConfig.from_env()
    return _global_config


def set_config(config: ServiceConfig):
    """Set the global configuration instance."""
    global _global_config
    _global_config = config


def reset_config():
    """Reset the global configuration to default."""
    global _global_config
    _global_config = None


def load_config(path: Union[str, Path]) -> ServiceConfig:
    """
    Load configuration from a file and set as global.

    Args:
        path: Path to configuration JSON file

    Returns:
        The loaded configuration
    """
    config = ServiceConfig.from_file(path)
    set_config(config)
    return config


# ============================================================================
# CONFIGURATION VALIDATION
# ============================================================================

def validate_config(config: ServiceConfig) -> List[str]:
    """
    Validate configuration and return list of errors.

    Returns:
        List of error messages (empty if valid)
    """
    errors = []

    # Transform settings
    if not config.transform.stylesheet_dir.is_dir():
        errors.append(f"Stylesheet directory not found: {config.transform.stylesheet_dir}")
    elif not (config.transform.stylesheet_dir / config.transform.presentation_stylesheet).exists():
        errors.append(f"Presentation stylesheet not found: {config.transform.presentation_stylesheet}")

    # Localization settings
    if not config.localization.translations_path.exists():
        errors.append(f"Translation file not found: {config.localization.translations_path}")
    if not config.localization.default_language:
        errors.append("Default language must not be empty")

    # Export settings
    if config.export.margin_pt < 0 or config.export.margin_pt > 144:
        errors.append("Page margin must be between 0 and 144 points")

    # API settings
    if config.api.port < 1 or config.api.port > 65535:
        errors.append("API port must be between 1 and 65535")
    if config.api.max_workers < 1:
        errors.append("Max workers must be at least 1")

    return errors


# ============================================================================
# EXAMPLE CONFIGURATION FILE
# ============================================================================

EXAMPLE_CONFIG = """{
    "transform": {
        "presentation_stylesheet": "xrechnung-html.xsl",
        "preload_stylesheets": true
    },
    "localization": {
        "default_language": "de"
    },
    "export": {
        "paper_size": "a4",
        "margin_pt": 36.0,
        "user_css": null,
        "temp_dir": null
    },
    "api": {
        "host": "0.0.0.0",
        "port": 8025,
        "max_workers": 4,
        "cors_origins": ["*"]
    },
    "log_level": "INFO"
}"""


if __name__ == "__main__":
    # Print example configuration
    print("Example configuration file:")
    print(EXAMPLE_CONFIG)

    # Test loading from environment
    print("\nConfiguration from environment:")
    config = get_config()
    print(config.to_json())
