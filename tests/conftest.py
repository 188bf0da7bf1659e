# SPDX-License-Identifier: MIT
"""Pytest configuration and shared fixtures for test suite.

This module provides:
- Builders for soup records (ports, traces, requirement groups)
- Small reference soups used across test modules
- Deterministic test environment setup
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import pytest


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

TESTS_DIR = Path(__file__).resolve().parent
ROOT_DIR = TESTS_DIR.parent


# ---------------------------------------------------------------------------
# Environment Setup
# ---------------------------------------------------------------------------


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest environment for determinism."""
    deterministic_env = {
        "LC_ALL": "C",
        "LANG": "C",
        "TZ": "UTC",
        "PYTHONHASHSEED": "0",
    }
    for key, value in deterministic_env.items():
        os.environ.setdefault(key, value)


# ---------------------------------------------------------------------------
# Soup builders
# ---------------------------------------------------------------------------


def make_port(
    port_id: str,
    source_id: str | None,
    x: float,
    y: float,
    component_id: str | None = None,
) -> dict[str, Any]:
    port: dict[str, Any] = {
        "type": "pcb_port",
        "pcb_port_id": port_id,
        "x": x,
        "y": y,
        "pcb_component_id": component_id or f"comp_{port_id}",
        "layers": ["top"],
    }
    if source_id is not None:
        port["source_port_id"] = source_id
    return port


def make_segment(x: float, y: float, start: str | None = None, end: str | None = None) -> dict[str, Any]:
    segment: dict[str, Any] = {"route_type": "wire", "x": x, "y": y, "width": 0.1, "layer": "top"}
    if start is not None:
        segment["start_pcb_port_id"] = start
    if end is not None:
        segment["end_pcb_port_id"] = end
    return segment


def make_trace(trace_id: str, *segments: dict[str, Any]) -> dict[str, Any]:
    return {"type": "pcb_trace", "pcb_trace_id": trace_id, "route": list(segments)}


def make_requirement(
    trace_id: str,
    source_port_ids: list[str],
    net_ids: list[str] | None = None,
) -> dict[str, Any]:
    requirement: dict[str, Any] = {
        "type": "source_trace",
        "source_trace_id": trace_id,
        "connected_source_port_ids": source_port_ids,
    }
    if net_ids is not None:
        requirement["connected_source_net_ids"] = net_ids
    return requirement


# ---------------------------------------------------------------------------
# Fixtures: Reference soups
# ---------------------------------------------------------------------------


@pytest.fixture
def routed_pair_soup() -> list[dict[str, Any]]:
    """Two ports joined by an L-shaped trace and required to connect."""
    return [
        make_port("port1", "source1", 0, 0),
        make_port("port2", "source2", 4, 4),
        make_trace(
            "trace1",
            make_segment(0, 0, start="port1"),
            make_segment(4, 0),
            make_segment(4, 4, end="port2"),
        ),
        make_requirement("st1", ["source1", "source2"]),
    ]


@pytest.fixture
def geometry_only_soup() -> list[dict[str, Any]]:
    """Two ports joined by a trace with no explicit port references."""
    return [
        make_port("port1", "source1", 0, 0),
        make_port("port2", "source2", 4, 4),
        make_trace(
            "trace1",
            make_segment(0, 0),
            make_segment(4, 0),
            make_segment(4, 4),
        ),
        make_requirement("st1", ["source1", "source2"]),
    ]


@pytest.fixture
def unrouted_pair_soup() -> list[dict[str, Any]]:
    """Two ports required to connect with no copper between them."""
    return [
        make_port("port1", "source1", 0, 0),
        make_port("port2", "source2", 0, 0),
        make_requirement("st1", ["source1", "source2"], ["net1", "net2"]),
    ]
