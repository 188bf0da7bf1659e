"""portcheck: verify that schematic connectivity is realized in PCB copper.

A soup (flat list of tagged ``pcb_port``, ``pcb_trace`` and ``source_trace``
records) is indexed, its traces are resolved into a union-find graph of
electrically joined ports, and every ``source_trace`` requirement is checked
against that graph.

Public API
----------
- :func:`check_each_pcb_port_connected` - Error list; annotates the soup in place
- :func:`verify_connectivity` - Pure check returning a full report
- :func:`apply_annotations` - Write a report's inferred references into a soup

Example
-------
>>> from portcheck import check_each_pcb_port_connected
>>> errors = check_each_pcb_port_connected(soup)
>>> [error.pcb_port_id for error in errors]
"""

from __future__ import annotations

__version__ = "0.1.0"

from portcheck.config import CheckerConfig, load_config
from portcheck.io import SoupLoadError, load_soup, write_soup
from portcheck.requirements import RequiredConnection, extract_requirements
from portcheck.soup import IndexedSoup, PcbPort, PcbTrace, RouteSegment, SourceTrace, index_soup
from portcheck.trace_graph import DanglingReference, SegmentAnnotation, TraceGraph, build_trace_graph
from portcheck.union_find import UnionFind
from portcheck.verify import (
    ConnectivityError,
    ConnectivityReport,
    apply_annotations,
    check_each_pcb_port_connected,
    verify_connectivity,
    verify_requirements,
)

__all__ = [
    # Entry points
    "check_each_pcb_port_connected",
    "verify_connectivity",
    "apply_annotations",
    # Components
    "index_soup",
    "build_trace_graph",
    "extract_requirements",
    "verify_requirements",
    "UnionFind",
    # Types
    "CheckerConfig",
    "ConnectivityError",
    "ConnectivityReport",
    "DanglingReference",
    "IndexedSoup",
    "PcbPort",
    "PcbTrace",
    "RequiredConnection",
    "RouteSegment",
    "SegmentAnnotation",
    "SourceTrace",
    "TraceGraph",
    # I/O
    "SoupLoadError",
    "load_config",
    "load_soup",
    "write_soup",
]
