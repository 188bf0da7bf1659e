"""Connectivity verification: requirements against routed copper.

``verify_connectivity`` is the pure entry point and returns a full report.
``check_each_pcb_port_connected`` is the compatibility entry point: it returns
only the error list and writes inferred port references back into the caller's
route segments.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import MutableMapping
from dataclasses import asdict, dataclass, field
from typing import TYPE_CHECKING, Any

from .config import CheckerConfig
from .requirements import RequiredConnection, extract_requirements
from .soup import IndexedSoup, index_soup
from .trace_graph import DanglingReference, SegmentAnnotation, TraceGraph, build_trace_graph

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .soup import PcbPort, PcbTrace

logger = logging.getLogger(__name__)

PORT_NOT_CONNECTED = "pcb_port_not_connected_error"


@dataclass(frozen=True, slots=True)
class ConnectivityError:
    """A port whose required connectivity is not realized in copper.

    Attributes:
        message: Human-readable message; always contains ``pcb_port_id``
        pcb_port_id: Physical id of the offending port
        pcb_component_id: Component owning the port, when known
        source_trace_ids: Requirement groups that demanded the connection
        error_type: Error kind, always ``pcb_port_not_connected_error``
    """

    message: str
    pcb_port_id: str
    pcb_component_id: str | None = None
    source_trace_ids: tuple[str, ...] = ()
    error_type: str = PORT_NOT_CONNECTED

    def to_soup_element(self) -> dict[str, Any]:
        """Render as a soup record so it can be appended to the soup."""
        return {
            "type": self.error_type,
            "error_type": self.error_type,
            "message": self.message,
            "pcb_port_ids": [self.pcb_port_id],
            "pcb_component_ids": [self.pcb_component_id] if self.pcb_component_id else [],
        }


@dataclass
class ConnectivityReport:
    """Everything one verification pass produced."""

    errors: list[ConnectivityError] = field(default_factory=list)
    required_connections: list[RequiredConnection] = field(default_factory=list)
    annotated_traces: list[PcbTrace] = field(default_factory=list)
    annotations: list[SegmentAnnotation] = field(default_factory=list)
    dangling_references: list[DanglingReference] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict[str, Any]:
        """Convert report to a dictionary for serialization."""
        return {
            "passed": self.passed,
            "errors": [asdict(error) for error in self.errors],
            "required_connections": [asdict(req) for req in self.required_connections],
            "annotations": [asdict(annotation) for annotation in self.annotations],
            "dangling_references": [asdict(ref) for ref in self.dangling_references],
        }


def _error_message(port_id: str, missing: int, source_trace_ids: Sequence[str]) -> str:
    return (
        f"{PORT_NOT_CONNECTED}: Pcb Port {port_id} is not connected to "
        f"{missing} other required port(s) (source_trace {', '.join(source_trace_ids)})"
    )


def verify_requirements(
    requirements: Sequence[RequiredConnection],
    graph: TraceGraph,
    ports_by_id: dict[str, PcbPort] | None = None,
) -> list[ConnectivityError]:
    """Compare required port sets against the graph's connectivity classes.

    The expected class of a set is the class of its first port that is joined
    to at least one other member. Ports outside that class are reported. When
    no two members are joined, every member is reported. Sets with fewer than
    two resolved ports are trivially satisfied.
    """
    ports_by_id = ports_by_id or {}
    errors: list[ConnectivityError] = []

    for requirement in requirements:
        port_ids = requirement.port_ids
        if len(port_ids) < 2:
            continue

        roots = [graph.root(port_id) for port_id in port_ids]
        class_sizes = Counter(roots)
        expected_root = next((root for root in roots if class_sizes[root] > 1), None)

        for port_id, root in zip(port_ids, roots):
            if root == expected_root:
                continue
            port = ports_by_id.get(port_id)
            errors.append(
                ConnectivityError(
                    message=_error_message(
                        port_id, len(port_ids) - class_sizes[root], requirement.source_trace_ids
                    ),
                    pcb_port_id=port_id,
                    pcb_component_id=port.pcb_component_id if port is not None else None,
                    source_trace_ids=requirement.source_trace_ids,
                )
            )
    return errors


def _verify_indexed(indexed: IndexedSoup, config: CheckerConfig) -> ConnectivityReport:
    graph = build_trace_graph(indexed, config)
    requirements = extract_requirements(indexed)
    errors = verify_requirements(requirements, graph, indexed.port_by_id())

    logger.info(
        "Checked %d ports, %d traces, %d requirement groups: %d errors",
        len(indexed.ports),
        len(indexed.traces),
        len(indexed.requirement_groups),
        len(errors),
    )
    return ConnectivityReport(
        errors=errors,
        required_connections=requirements,
        annotated_traces=graph.annotated_traces,
        annotations=graph.annotations,
        dangling_references=graph.dangling_references,
    )


def verify_connectivity(soup: Sequence[Any], config: CheckerConfig | None = None) -> ConnectivityReport:
    """Check every required connection in a soup without modifying it.

    Args:
        soup: Sequence of tagged soup records (mappings or pydantic models)
        config: Checker settings; defaults to CheckerConfig()

    Returns:
        ConnectivityReport; ``report.errors`` is empty when every requirement
        is realized in copper.
    """
    return _verify_indexed(index_soup(soup), config or CheckerConfig())


def _write_back(handles: list[list[Any]], annotations: Sequence[SegmentAnnotation]) -> int:
    written = 0
    for annotation in annotations:
        handle = handles[annotation.trace_index][annotation.segment_index]
        if isinstance(handle, MutableMapping):
            if handle.get(annotation.field):
                continue
            handle[annotation.field] = annotation.pcb_port_id
        else:
            if getattr(handle, annotation.field, None):
                continue
            setattr(handle, annotation.field, annotation.pcb_port_id)
        written += 1
    return written


def apply_annotations(soup: Sequence[Any], report: ConnectivityReport) -> int:
    """Write a report's inferred references into the soup's route segments.

    Only endpoint fields that are still empty are filled. Returns the number
    of fields written.
    """
    return _write_back(index_soup(soup).segment_handles, report.annotations)


def check_each_pcb_port_connected(
    soup: Sequence[Any], config: CheckerConfig | None = None
) -> list[ConnectivityError]:
    """Return an error for each port whose required connectivity is missing.

    Inferred ``start_pcb_port_id``/``end_pcb_port_id`` references are written
    back into the soup's route segments, so the soup must not be shared with
    a concurrent caller.
    """
    indexed = index_soup(soup)
    report = _verify_indexed(indexed, config or CheckerConfig())
    written = _write_back(indexed.segment_handles, report.annotations)
    if written:
        logger.debug("Annotated %d segment endpoints in place", written)
    return report.errors


__all__ = [
    "ConnectivityError",
    "ConnectivityReport",
    "PORT_NOT_CONNECTED",
    "apply_annotations",
    "check_each_pcb_port_connected",
    "verify_connectivity",
    "verify_requirements",
]
