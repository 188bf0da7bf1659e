"""Soup file loading and writing."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml  # type: ignore[import-untyped]


class SoupLoadError(ValueError):
    """Raised when a soup file cannot be read as a list of records."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot load soup from {path}: {reason}")


def canonical_json_dumps(data: Any) -> str:
    """Serialize JSON with sorted keys and compact separators."""
    return json.dumps(
        data,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )


def load_soup(path: Path) -> list[Any]:
    """Load a soup from a JSON or YAML file.

    The file must hold either a list of records or a mapping with a
    ``soup`` list.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SoupLoadError(path, str(exc)) from exc

    try:
        if path.suffix.lower() in {".yaml", ".yml"}:
            payload = yaml.safe_load(text)
        else:
            payload = json.loads(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise SoupLoadError(path, f"parse error: {exc}") from exc

    if isinstance(payload, dict) and "soup" in payload:
        payload = payload["soup"]
    if payload is None:
        return []
    if not isinstance(payload, list):
        raise SoupLoadError(path, "expected a list of soup elements")
    return payload


def write_soup(path: Path, soup: list[Any]) -> None:
    """Write a soup as indented JSON (YAML when the suffix asks for it)."""
    if path.suffix.lower() in {".yaml", ".yml"}:
        text = yaml.safe_dump(soup, sort_keys=False)
    else:
        text = json.dumps(soup, indent=2) + "\n"
    path.write_text(text, encoding="utf-8")


__all__ = ["SoupLoadError", "canonical_json_dumps", "load_soup", "write_soup"]
