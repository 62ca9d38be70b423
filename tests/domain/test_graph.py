from __future__ import annotations

import pytest

from monosync.domain.errors import CyclicDependencyError
from monosync.domain.graph import (
    DiamondDependency,
    DiamondKind,
    build_dependency_graph,
    find_cycle,
    find_diamonds,
    most_dependencies,
    most_depended_upon,
    topological_order,
    transitive_dependencies,
)
from monosync.domain.model import ImportEdge

SCENARIO_NODES = ("utils", "ui", "api-client", "web", "mobile")
SCENARIO_EDGES = (
    ImportEdge("ui", "utils"),
    ImportEdge("api-client", "utils"),
    ImportEdge("web", "ui"),
    ImportEdge("web", "api-client"),
    ImportEdge("mobile", "ui"),
    ImportEdge("mobile", "utils"),
)


def test_topological_order_puts_dependencies_first_with_lexical_ties() -> None:
    graph = build_dependency_graph(SCENARIO_NODES, SCENARIO_EDGES)

    assert graph.topological_order() == ("utils", "api-client", "ui", "mobile", "web")


def test_order_is_independent_of_input_order() -> None:
    forward = build_dependency_graph(SCENARIO_NODES, SCENARIO_EDGES)
    backward = build_dependency_graph(reversed(SCENARIO_NODES), reversed(SCENARIO_EDGES))

    assert forward.topological_order() == backward.topological_order()
    assert forward.nodes == backward.nodes


def test_duplicate_and_self_edges_are_dropped() -> None:
    graph = build_dependency_graph(
        ["a", "b"],
        [ImportEdge("a", "b"), ImportEdge("a", "b"), ImportEdge("a", "a")],
    )

    assert graph.edges == frozenset({ImportEdge("a", "b")})
    assert graph.dependencies_of("a") == ("b",)
    assert graph.dependents_of("b") == ("a",)


def test_edge_to_unknown_package_is_rejected() -> None:
    with pytest.raises(ValueError, match="unknown package ghost"):
        build_dependency_graph(["a"], [ImportEdge("a", "ghost")])


def test_cycle_is_reported_with_full_path() -> None:
    edges = [ImportEdge("a", "b"), ImportEdge("b", "c"), ImportEdge("c", "a")]

    with pytest.raises(CyclicDependencyError) as excinfo:
        build_dependency_graph(["a", "b", "c"], edges)

    assert excinfo.value.cycle == ("a", "b", "c", "a")
    assert "a -> b -> c -> a" in str(excinfo.value)


def test_two_node_cycle() -> None:
    assert find_cycle({"x": ("y",), "y": ("x",)}) == ("x", "y", "x")


def test_acyclic_graph_has_no_cycle() -> None:
    assert find_cycle({"a": ("b",), "b": (), "c": ("b",)}) is None


def test_topological_order_refuses_cyclic_input() -> None:
    with pytest.raises(ValueError, match="cyclic"):
        topological_order(["a", "b"], {"a": ("b",), "b": ("a",)})


def test_participants_exclude_isolated_packages() -> None:
    graph = build_dependency_graph(["a", "b", "lonely"], [ImportEdge("a", "b")])

    assert graph.participants == frozenset({"a", "b"})
    assert graph.topological_order() == ("b", "a", "lonely")


def test_analysis_rankings() -> None:
    graph = build_dependency_graph(SCENARIO_NODES, SCENARIO_EDGES)

    assert most_depended_upon(graph) == [("utils", 3), ("ui", 2), ("api-client", 1)]
    assert most_dependencies(graph, limit=2) == [("mobile", 2), ("web", 2)]


def test_transitive_dependencies() -> None:
    closure = transitive_dependencies(build_dependency_graph(SCENARIO_NODES, SCENARIO_EDGES))

    assert closure["web"] == frozenset({"ui", "api-client", "utils"})
    assert closure["utils"] == frozenset()


def test_diamonds_are_direct_dependencies_also_reached_indirectly() -> None:
    graph = build_dependency_graph(SCENARIO_NODES, SCENARIO_EDGES)

    assert find_diamonds(graph) == [
        DiamondDependency(
            package="mobile",
            dependency="utils",
            through=("ui",),
            kind=DiamondKind.INCOMPLETE_ABSTRACTION,
        )
    ]


def test_universal_utility_diamonds_are_expected() -> None:
    graph = build_dependency_graph(SCENARIO_NODES, SCENARIO_EDGES)

    [diamond] = find_diamonds(graph, universal_utilities=["utils"])

    assert diamond.kind is DiamondKind.UNIVERSAL_UTILITY
    assert diamond.expected
