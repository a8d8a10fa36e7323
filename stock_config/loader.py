"""
Configuration Loader (``stock_config.loader``).

Reads a YAML file into a ``StockControlConfig``.  Callers normally go
through ``stock_config.get_default_config()`` or ``stock_config.load_config()``.

A file may hold the settings at top level or nested under one
``stock_control`` key.  ``compute_checksum`` fingerprints the parsed
settings so two dashboards can tell whether they ran with the same tuning.

Errors: a missing file raises ``FileNotFoundError`` and broken YAML raises
``yaml.YAMLError``, both untouched.  A document that is not a mapping, an
unknown key or a bad value raises ``ConfigurationError``.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from stock_kernel.exceptions import ConfigurationError
from stock_config.schema import StockControlConfig

SECTION_KEY = "stock_control"


def read_settings_document(path: Path) -> dict[str, Any]:
    """Parse ``path`` as YAML; an empty file reads as ``{}``."""
    with open(path) as fh:
        document = yaml.safe_load(fh) or {}
    if not isinstance(document, dict):
        raise ConfigurationError(str(path), "configuration document must be a mapping")
    return document


def parse_config(data: dict[str, Any]) -> StockControlConfig:
    """Build a ``StockControlConfig`` from a parsed YAML document."""
    if SECTION_KEY in data:
        section = data[SECTION_KEY]
        if not isinstance(section, dict):
            raise ConfigurationError(SECTION_KEY, "section must be a mapping")
        extra = sorted(set(data) - {SECTION_KEY})
        if extra:
            raise ConfigurationError(extra[0], "unknown top-level key")
        data = section
    return StockControlConfig.from_dict(data)


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 hex digest of ``data`` as sorted-key JSON (Decimals via ``str``)."""
    payload = json.dumps(data, sort_keys=True, default=str).encode("utf-8")
    return hashlib.sha256(payload).hexdigest()
