"""Tests for resolving requirement groups into required port sets."""

from __future__ import annotations

from conftest import make_port, make_requirement

from portcheck.requirements import RequiredConnection, extract_requirements
from portcheck.soup import index_soup


def _requirements(soup) -> list[RequiredConnection]:
    return extract_requirements(index_soup(soup))


class TestExtractRequirements:
    """Tests for logical-to-physical resolution and net merging."""

    def test_resolves_logical_ids(self) -> None:
        soup = [
            make_port("p1", "s1", 0, 0),
            make_port("p2", "s2", 1, 0),
            make_requirement("st1", ["s2", "s1"]),
        ]
        assert _requirements(soup) == [RequiredConnection(source_trace_ids=("st1",), port_ids=("p2", "p1"))]

    def test_unresolved_ids_dropped(self) -> None:
        soup = [
            make_port("p1", "s1", 0, 0),
            make_requirement("st1", ["s1", "off_board"]),
        ]
        assert _requirements(soup)[0].port_ids == ("p1",)

    def test_empty_group(self) -> None:
        soup = [make_port("p1", "s1", 0, 0), make_requirement("st1", [])]
        assert _requirements(soup)[0].port_ids == ()

    def test_groups_without_nets_stay_separate(self) -> None:
        soup = [
            make_port("p1", "s1", 0, 0),
            make_port("p2", "s2", 1, 0),
            make_port("p3", "s3", 2, 0),
            make_requirement("st1", ["s1", "s2"]),
            make_requirement("st2", ["s2", "s3"]),
        ]
        requirements = _requirements(soup)
        assert [r.port_ids for r in requirements] == [("p1", "p2"), ("p2", "p3")]

    def test_shared_net_merges_groups(self) -> None:
        soup = [
            make_port("p1", "s1", 0, 0),
            make_port("p2", "s2", 1, 0),
            make_port("p3", "s3", 2, 0),
            make_port("p4", "s4", 3, 0),
            make_requirement("A", ["s1", "s2"], ["n1"]),
            make_requirement("B", ["s3", "s4"], ["n1"]),
        ]
        assert _requirements(soup) == [
            RequiredConnection(source_trace_ids=("A", "B"), port_ids=("p1", "p2", "p3", "p4"))
        ]

    def test_net_merging_is_transitive(self) -> None:
        soup = [
            make_port("p1", "s1", 0, 0),
            make_port("p2", "s2", 1, 0),
            make_port("p3", "s3", 2, 0),
            make_port("p4", "s4", 3, 0),
            make_requirement("A", ["s1"], ["n1"]),
            make_requirement("X", ["s4"]),
            make_requirement("B", ["s2"], ["n1", "n2"]),
            make_requirement("C", ["s3"], ["n2"]),
        ]
        requirements = _requirements(soup)
        assert [r.source_trace_ids for r in requirements] == [("A", "B", "C"), ("X",)]
        assert requirements[0].port_ids == ("p1", "p2", "p3")

    def test_duplicate_ports_deduplicated(self) -> None:
        soup = [
            make_port("p1", "s1", 0, 0),
            make_port("p2", "s2", 1, 0),
            make_requirement("A", ["s1", "s2"], ["n1"]),
            make_requirement("B", ["s2", "s1"], ["n1"]),
        ]
        assert _requirements(soup)[0].port_ids == ("p1", "p2")

    def test_logical_id_with_several_ports(self) -> None:
        soup = [
            make_port("p1a", "s1", 0, 0),
            make_port("p1b", "s1", 0, 5),
            make_port("p2", "s2", 1, 0),
            make_requirement("st1", ["s1", "s2"]),
        ]
        assert _requirements(soup)[0].port_ids == ("p1a", "p1b", "p2")

    def test_ports_without_logical_id_never_required(self) -> None:
        soup = [make_port("p1", None, 0, 0), make_requirement("st1", ["s1"])]
        assert _requirements(soup)[0].port_ids == ()
