"""
stock_config -- public entrypoint for stock-control configuration.

Responsibility:
    Provides the typed ``StockControlConfig`` and the two ways to obtain
    one at runtime: ``get_default_config()`` (the packaged
    ``defaults.yaml``) and ``load_config(path)`` (a site-specific file).

Architecture position:
    Configuration -- sits above ``stock_kernel`` / ``stock_engines`` and
    below ``stock_services``.  Engines MUST NEVER import from
    ``stock_config``; services pass configured values into engine calls.

Failure modes:
    - ``FileNotFoundError`` -- the requested file does not exist.
    - ``yaml.YAMLError`` -- the file is not valid YAML.
    - ``ConfigurationError`` -- unknown keys or invalid values.

Audit relevance:
    Every successful load emits a ``STOCK_CONFIG_TRACE`` log entry with
    the source path and the configuration checksum.
"""

from __future__ import annotations

import logging
from pathlib import Path

from stock_config.loader import compute_checksum, read_settings_document, parse_config
from stock_config.schema import StockControlConfig

_logger = logging.getLogger("stock_kernel.config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"


def load_config(path: Path | str) -> StockControlConfig:
    """Load and validate the configuration file at ``path``."""
    path = Path(path)
    config = parse_config(read_settings_document(path))
    _logger.info(
        "STOCK_CONFIG_TRACE",
        extra={
            "trace_type": "STOCK_CONFIG_TRACE",
            "source": str(path),
            "checksum": compute_checksum(config.to_dict()),
        },
    )
    return config


def get_default_config() -> StockControlConfig:
    """The packaged default configuration."""
    return load_config(DEFAULT_CONFIG_PATH)


__all__ = [
    "DEFAULT_CONFIG_PATH",
    "StockControlConfig",
    "compute_checksum",
    "get_default_config",
    "load_config",
]
