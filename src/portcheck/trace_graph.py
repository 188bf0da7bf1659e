"""Copper connectivity graph built from routed traces.

Every route point is resolved to the ports it touches, either through an
explicit ``start_pcb_port_id``/``end_pcb_port_id`` reference or by matching the
point against port positions within a tolerance. Ports touched by the same
trace are merged into one connectivity class with union-find.

Segment ``i`` of a route runs from point ``i`` to point ``i + 1``; the last
segment starts and ends on the route terminal. Inferred references are written
into deep copies of the traces, never into the indexed input.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

import numpy as np

from .config import CheckerConfig
from .union_find import UnionFind

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from .soup import IndexedSoup, PcbPort, PcbTrace, RouteSegment

logger = logging.getLogger(__name__)

EndpointField = Literal["start_pcb_port_id", "end_pcb_port_id"]

_ENDPOINT_FIELDS: tuple[EndpointField, EndpointField] = ("start_pcb_port_id", "end_pcb_port_id")


@dataclass(frozen=True, slots=True)
class SegmentAnnotation:
    """A port reference inferred from geometry for one segment endpoint."""

    trace_index: int
    segment_index: int
    field: EndpointField
    pcb_port_id: str


@dataclass(frozen=True, slots=True)
class DanglingReference:
    """An explicit segment reference naming a port that is not in the soup."""

    pcb_trace_id: str
    segment_index: int
    field: EndpointField
    pcb_port_id: str


class PortLocator:
    """Finds ports whose position lies within tolerance of a point.

    Positions are held in a ``(P, 2)`` array so each lookup is one vectorised
    distance computation. Matches come back in port construction order, which
    is the tie-break order for inferred references.
    """

    def __init__(self, ports: list[PcbPort], tolerance: float) -> None:
        located = [(port.pcb_port_id, port.position) for port in ports if port.position is not None]
        self._ids = [port_id for port_id, _ in located]
        self._xy: NDArray[np.float64] = np.asarray(
            [position for _, position in located], dtype=np.float64
        ).reshape(-1, 2)
        self._tolerance = tolerance
        self._cache: dict[tuple[float, float], list[str]] = {}

    def ports_at(self, point: tuple[float, float] | None) -> list[str]:
        if point is None or not self._ids:
            return []
        cached = self._cache.get(point)
        if cached is not None:
            return cached
        distances = np.hypot(self._xy[:, 0] - point[0], self._xy[:, 1] - point[1])
        matches = [self._ids[i] for i in np.flatnonzero(distances < self._tolerance)]
        self._cache[point] = matches
        return matches


@dataclass
class TraceGraph:
    """Connectivity classes over ports plus the annotated trace copies."""

    uf: UnionFind[str]
    port_ids: list[str]
    annotated_traces: list[PcbTrace] = field(default_factory=list)
    annotations: list[SegmentAnnotation] = field(default_factory=list)
    dangling_references: list[DanglingReference] = field(default_factory=list)

    def root(self, port_id: str) -> str:
        return self.uf.find(port_id)

    def connected(self, port_a: str, port_b: str) -> bool:
        return self.uf.connected(port_a, port_b)

    def groups(self) -> list[list[str]]:
        """Connectivity classes, ordered by their first port in soup order."""
        return self.uf.groups()


def _endpoint_points(
    route: list[RouteSegment], index: int
) -> tuple[tuple[float, float] | None, tuple[float, float] | None]:
    start = route[index].position
    end = route[index + 1].position if index + 1 < len(route) else start
    return start, end


def build_trace_graph(indexed: IndexedSoup, config: CheckerConfig | None = None) -> TraceGraph:
    """Resolve every route endpoint to ports and merge ports joined by copper.

    Args:
        indexed: Indexed soup; its traces are not modified.
        config: Checker settings (tolerance, inference switches).

    Returns:
        TraceGraph with one class per electrically joined set of ports.
    """
    config = config or CheckerConfig()
    port_ids = [port.pcb_port_id for port in indexed.ports]
    known_ports = set(port_ids)

    uf: UnionFind[str] = UnionFind()
    for port_id in port_ids:
        uf.add(port_id)

    graph = TraceGraph(uf=uf, port_ids=port_ids)
    locator = PortLocator(indexed.ports, config.tolerance)

    for trace_index, trace in enumerate(indexed.traces):
        annotated = trace.model_copy(deep=True)
        graph.annotated_traces.append(annotated)

        # Copper is contiguous along the route, so every port the chain
        # touches joins the class of the first one.
        chain_anchor: str | None = None
        for segment_index, segment in enumerate(annotated.route):
            points = _endpoint_points(annotated.route, segment_index)
            for field_name, point in zip(_ENDPOINT_FIELDS, points):
                touched = _resolve_endpoint(
                    graph,
                    locator,
                    known_ports,
                    config,
                    annotated,
                    trace_index,
                    segment_index,
                    field_name,
                    point,
                )
                for port_id in touched:
                    if chain_anchor is None:
                        chain_anchor = port_id
                    else:
                        uf.union(chain_anchor, port_id)

    logger.debug(
        "Trace graph: %d ports, %d traces, %d inferred references, %d dangling references",
        len(port_ids),
        len(indexed.traces),
        len(graph.annotations),
        len(graph.dangling_references),
    )
    return graph


def _resolve_endpoint(
    graph: TraceGraph,
    locator: PortLocator,
    known_ports: set[str],
    config: CheckerConfig,
    trace: PcbTrace,
    trace_index: int,
    segment_index: int,
    field_name: EndpointField,
    point: tuple[float, float] | None,
) -> list[str]:
    """Return the ports one segment endpoint touches, annotating if inferred."""
    segment = trace.route[segment_index]
    explicit = getattr(segment, field_name)
    if explicit:
        if explicit in known_ports:
            # Co-located ports join whether the reference was inferred or given,
            # so annotating a soup never changes what the next pass merges
            if config.infer_references and config.merge_colocated_ports:
                return [explicit] + [port_id for port_id in locator.ports_at(point) if port_id != explicit]
            return [explicit]
        # Inert: it only surfaces later if it leaves a requirement unsatisfied
        graph.dangling_references.append(
            DanglingReference(
                pcb_trace_id=trace.pcb_trace_id,
                segment_index=segment_index,
                field=field_name,
                pcb_port_id=explicit,
            )
        )
        logger.debug(
            "Trace %s segment %d %s references unknown port %r",
            trace.pcb_trace_id,
            segment_index,
            field_name,
            explicit,
        )
        return []

    if not config.infer_references:
        return []

    matches = locator.ports_at(point)
    if not matches:
        return []

    setattr(segment, field_name, matches[0])
    graph.annotations.append(
        SegmentAnnotation(
            trace_index=trace_index,
            segment_index=segment_index,
            field=field_name,
            pcb_port_id=matches[0],
        )
    )
    logger.debug(
        "Inferred %s=%s for trace %s segment %d", field_name, matches[0], trace.pcb_trace_id, segment_index
    )
    return matches if config.merge_colocated_ports else matches[:1]


__all__ = [
    "DanglingReference",
    "EndpointField",
    "PortLocator",
    "SegmentAnnotation",
    "TraceGraph",
    "build_trace_graph",
]
