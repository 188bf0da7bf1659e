"""Turn source_trace requirement groups into required port sets."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .union_find import UnionFind

if TYPE_CHECKING:
    from .soup import IndexedSoup

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RequiredConnection:
    """Physical ports that must all land in one connectivity class.

    Attributes:
        source_trace_ids: Requirement groups merged into this set, soup order
        port_ids: Resolved pcb_port ids, de-duplicated in first-seen order
    """

    source_trace_ids: tuple[str, ...]
    port_ids: tuple[str, ...]


def extract_requirements(indexed: IndexedSoup) -> list[RequiredConnection]:
    """Resolve requirement groups to physical ports and merge shared nets.

    Logical ids with no matching port are outside the board's physical scope
    and are dropped. Groups that mention a common net id are merged
    transitively into one requirement.
    """
    ports_by_logical_id: dict[str, list[str]] = {}
    for port in indexed.ports:
        if port.source_port_id:
            ports_by_logical_id.setdefault(port.source_port_id, []).append(port.pcb_port_id)

    groups = indexed.requirement_groups
    clusters: UnionFind[int] = UnionFind()
    groups_by_net: dict[str, list[int]] = {}
    for index, group in enumerate(groups):
        clusters.add(index)
        for net_id in group.connected_source_net_ids:
            groups_by_net.setdefault(net_id, []).append(index)
    for members in groups_by_net.values():
        clusters.union_all(members)

    requirements: list[RequiredConnection] = []
    for members in clusters.groups():
        port_ids: dict[str, None] = {}
        for index in members:
            for logical_id in groups[index].connected_source_port_ids:
                resolved = ports_by_logical_id.get(logical_id)
                if not resolved:
                    logger.debug(
                        "source_trace %s: no pcb_port implements %r",
                        groups[index].source_trace_id,
                        logical_id,
                    )
                    continue
                port_ids.update(dict.fromkeys(resolved))
        requirements.append(
            RequiredConnection(
                source_trace_ids=tuple(groups[index].source_trace_id for index in members),
                port_ids=tuple(port_ids),
            )
        )
    return requirements


__all__ = ["RequiredConnection", "extract_requirements"]
