"""Soup element models and the element indexer.

A soup is a flat list of tagged records (``{"type": "pcb_port", ...}``). The
indexer partitions it into ports, traces and requirement groups, keeping the
original order within each kind. Schema validation belongs to whoever produced
the soup, so parsing here is lenient: a field that does not validate is treated
as absent, and a record missing its id is skipped.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)

PCB_PORT = "pcb_port"
PCB_TRACE = "pcb_trace"
SOURCE_TRACE = "source_trace"


class _SoupElement(BaseModel):
    model_config = ConfigDict(extra="allow")


class PcbPort(_SoupElement):
    type: str = PCB_PORT
    pcb_port_id: str = Field(..., min_length=1)
    source_port_id: str | None = None
    x: float | None = None
    y: float | None = None
    pcb_component_id: str | None = None
    layers: list[str] = Field(default_factory=list)

    @property
    def position(self) -> tuple[float, float] | None:
        if self.x is None or self.y is None:
            return None
        return (self.x, self.y)


class RouteSegment(_SoupElement):
    """One point of a trace route.

    The copper of segment ``i`` runs from this point to the point of segment
    ``i + 1``; the last segment is the route terminal.
    """

    route_type: str = "wire"
    x: float | None = None
    y: float | None = None
    width: float | None = None
    layer: str | None = None
    start_pcb_port_id: str | None = None
    end_pcb_port_id: str | None = None

    @property
    def position(self) -> tuple[float, float] | None:
        if self.x is None or self.y is None:
            return None
        return (self.x, self.y)


class PcbTrace(_SoupElement):
    type: str = PCB_TRACE
    pcb_trace_id: str = Field(..., min_length=1)
    source_trace_id: str | None = None
    route: list[RouteSegment] = Field(default_factory=list)


class SourceTrace(_SoupElement):
    """A requirement group: logical ports (and nets) that must be joined."""

    type: str = SOURCE_TRACE
    source_trace_id: str = Field(..., min_length=1)
    connected_source_port_ids: list[str] = Field(default_factory=list)
    connected_source_net_ids: list[str] = Field(default_factory=list)


M = TypeVar("M", bound=BaseModel)


@dataclass
class IndexedSoup:
    """Soup partitioned by element type, in soup order.

    ``segment_handles[i][j]`` is the caller's original object for segment ``j``
    of ``traces[i]``; it is what annotations are written back into.
    """

    ports: list[PcbPort] = field(default_factory=list)
    traces: list[PcbTrace] = field(default_factory=list)
    requirement_groups: list[SourceTrace] = field(default_factory=list)
    segment_handles: list[list[Any]] = field(default_factory=list)

    def port_by_id(self) -> dict[str, PcbPort]:
        # First occurrence wins if an upstream producer duplicated an id
        ports: dict[str, PcbPort] = {}
        for port in self.ports:
            ports.setdefault(port.pcb_port_id, port)
        return ports


def parse_lenient(model: type[M], payload: Mapping[str, Any]) -> M | None:
    """Validate ``payload`` as ``model``, dropping fields that do not validate.

    Returns None when the record cannot be salvaged, i.e. a required field is
    missing or invalid.
    """
    data = dict(payload)
    required = {name for name, info in model.model_fields.items() if info.is_required()}
    # Each pass removes at least one top-level key, so this terminates
    while True:
        try:
            return model.model_validate(data)
        except ValidationError as exc:
            bad = {err["loc"][0] for err in exc.errors() if err["loc"]}
            if not bad or bad.intersection(required) or not bad.intersection(data):
                return None
            for key in bad:
                if key in data:
                    logger.debug("Dropping invalid field %r from %s record", key, model.__name__)
                    data.pop(key)


def _as_mapping(element: Any) -> Mapping[str, Any] | None:
    if isinstance(element, Mapping):
        return element
    if isinstance(element, BaseModel):
        return element.model_dump()
    return None


def _parse_trace(element: Any, payload: Mapping[str, Any]) -> tuple[PcbTrace, list[Any]] | None:
    # Handles must be the caller's own segment objects, not dumped copies
    raw_route = getattr(element, "route", None) if isinstance(element, BaseModel) else payload.get("route")
    if not isinstance(raw_route, (list, tuple)):
        raw_route = []

    handles: list[Any] = []
    segments: list[RouteSegment] = []
    for raw_segment in raw_route:
        segment_payload = _as_mapping(raw_segment)
        if segment_payload is None:
            continue
        segment = parse_lenient(RouteSegment, segment_payload)
        if segment is None:
            continue
        segments.append(segment)
        handles.append(raw_segment)

    header = {key: value for key, value in payload.items() if key != "route"}
    trace = parse_lenient(PcbTrace, header)
    if trace is None:
        return None
    trace.route = segments
    return trace, handles


def index_soup(soup: Any) -> IndexedSoup:
    """Partition a soup into ports, traces and requirement groups.

    Unknown element types are ignored and malformed records never raise.
    """
    indexed = IndexedSoup()
    if not soup:
        return indexed

    for position, element in enumerate(soup):
        payload = _as_mapping(element)
        if payload is None:
            continue
        element_type = payload.get("type")

        if element_type == PCB_PORT:
            port = parse_lenient(PcbPort, payload)
            if port is None:
                logger.warning("Skipping pcb_port at soup index %d: missing or invalid pcb_port_id", position)
                continue
            indexed.ports.append(port)
        elif element_type == PCB_TRACE:
            parsed = _parse_trace(element, payload)
            if parsed is None:
                logger.warning("Skipping pcb_trace at soup index %d: missing or invalid pcb_trace_id", position)
                continue
            trace, handles = parsed
            indexed.traces.append(trace)
            indexed.segment_handles.append(handles)
        elif element_type == SOURCE_TRACE:
            group = parse_lenient(SourceTrace, payload)
            if group is None:
                logger.warning(
                    "Skipping source_trace at soup index %d: missing or invalid source_trace_id", position
                )
                continue
            indexed.requirement_groups.append(group)

    logger.debug(
        "Indexed soup: %d ports, %d traces, %d requirement groups",
        len(indexed.ports),
        len(indexed.traces),
        len(indexed.requirement_groups),
    )
    return indexed


__all__ = [
    "IndexedSoup",
    "PCB_PORT",
    "PCB_TRACE",
    "PcbPort",
    "PcbTrace",
    "RouteSegment",
    "SOURCE_TRACE",
    "SourceTrace",
    "index_soup",
    "parse_lenient",
]
