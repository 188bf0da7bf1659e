"""Checker configuration.

Settings are a pydantic model so that config files are validated on load and
defaults live in one place.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml  # type: ignore[import-untyped]
from pydantic import BaseModel, ConfigDict, Field

# Covers floating point and layout grid rounding noise (mm)
DEFAULT_TOLERANCE = 0.001


class CheckerConfig(BaseModel):
    """Connectivity checker settings."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    tolerance: float = Field(
        DEFAULT_TOLERANCE,
        gt=0.0,
        description="Distance below which a route point and a port are the same location",
    )
    merge_colocated_ports: bool = Field(
        True,
        description="Merge every port within tolerance of a route point, not only the first match",
    )
    infer_references: bool = Field(
        True,
        description="Infer missing segment port references from geometry",
    )


def load_config(path: Path) -> CheckerConfig:
    """Load a CheckerConfig from a YAML or JSON file."""
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() in {".yaml", ".yml"}:
        payload: Any = yaml.safe_load(text)
    else:
        payload = json.loads(text)
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValueError("Checker config file must contain a mapping")
    return CheckerConfig.model_validate(payload)


__all__ = ["CheckerConfig", "DEFAULT_TOLERANCE", "load_config"]
