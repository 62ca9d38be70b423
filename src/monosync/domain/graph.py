"""Dependency graph over workspace package identities.

A ``DependencyGraph`` only exists once it has been validated: the builder
refuses cyclic input, so every graph handed to the reconciler is acyclic.
"""

from __future__ import annotations

import heapq
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

from .errors import CyclicDependencyError
from .model import ImportEdge

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence


@dataclass(frozen=True, slots=True)
class DependencyGraph:
    """Validated, immutable adjacency of ``package -> dependencies``."""

    nodes: tuple[str, ...]
    edges: frozenset[ImportEdge]
    _dependencies: Mapping[str, tuple[str, ...]] = field(repr=False)
    _dependents: Mapping[str, tuple[str, ...]] = field(repr=False)

    def dependencies_of(self, name: str) -> tuple[str, ...]:
        return self._dependencies.get(name, ())

    def dependents_of(self, name: str) -> tuple[str, ...]:
        return self._dependents.get(name, ())

    @property
    def participants(self) -> frozenset[str]:
        """Packages that take part in at least one edge."""

        return frozenset(
            node for node in self.nodes if self._dependencies[node] or self._dependents[node]
        )

    def topological_order(self) -> tuple[str, ...]:
        return topological_order(self.nodes, self._dependencies)


def _adjacency(
    nodes: Sequence[str], edges: Iterable[ImportEdge]
) -> tuple[dict[str, tuple[str, ...]], dict[str, tuple[str, ...]]]:
    dependencies: dict[str, set[str]] = {node: set() for node in nodes}
    dependents: dict[str, set[str]] = {node: set() for node in nodes}
    for edge in edges:
        dependencies[edge.source].add(edge.target)
        dependents[edge.target].add(edge.source)
    return (
        {node: tuple(sorted(targets)) for node, targets in dependencies.items()},
        {node: tuple(sorted(sources)) for node, sources in dependents.items()},
    )


def find_cycle(dependencies: Mapping[str, Sequence[str]]) -> tuple[str, ...] | None:
    """Return the first cycle found by a depth-first walk, or ``None``.

    Nodes and neighbours are visited in identity order, so the reported cycle
    is stable across runs. The first node is repeated at the end.
    """

    visited: set[str] = set()
    stack: list[str] = []
    on_stack: set[str] = set()

    def visit(node: str) -> tuple[str, ...] | None:
        visited.add(node)
        stack.append(node)
        on_stack.add(node)
        for dependency in dependencies.get(node, ()):
            if dependency in on_stack:
                start = stack.index(dependency)
                return (*stack[start:], dependency)
            if dependency not in visited:
                cycle = visit(dependency)
                if cycle is not None:
                    return cycle
        stack.pop()
        on_stack.discard(node)
        return None

    for node in sorted(dependencies):
        if node not in visited:
            cycle = visit(node)
            if cycle is not None:
                return cycle
    return None


def topological_order(
    nodes: Sequence[str], dependencies: Mapping[str, Sequence[str]]
) -> tuple[str, ...]:
    """Kahn's algorithm, dependencies first, ties broken by identity."""

    remaining = {node: len(dependencies.get(node, ())) for node in nodes}
    dependents: dict[str, list[str]] = {node: [] for node in nodes}
    for node in nodes:
        for dependency in dependencies.get(node, ()):
            dependents[dependency].append(node)

    ready = [node for node, count in remaining.items() if count == 0]
    heapq.heapify(ready)
    order: list[str] = []
    while ready:
        node = heapq.heappop(ready)
        order.append(node)
        for dependent in dependents[node]:
            remaining[dependent] -= 1
            if remaining[dependent] == 0:
                heapq.heappush(ready, dependent)

    if len(order) != len(remaining):
        raise ValueError("Topological order requested for a cyclic graph")
    return tuple(order)


def build_dependency_graph(nodes: Iterable[str], edges: Iterable[ImportEdge]) -> DependencyGraph:
    """Deduplicate ``edges``, validate them and return an acyclic graph.

    Self-edges are dropped. Edges naming an unknown package raise
    ``ValueError``; a cycle raises ``CyclicDependencyError``.
    """

    ordered_nodes = tuple(sorted(set(nodes)))
    known = set(ordered_nodes)
    kept: set[ImportEdge] = set()
    for edge in edges:
        if edge.is_self_edge:
            continue
        for endpoint in (edge.source, edge.target):
            if endpoint not in known:
                raise ValueError(
                    f"Edge {edge.source} -> {edge.target} names unknown package {endpoint}"
                )
        kept.add(edge)

    dependencies, dependents = _adjacency(ordered_nodes, kept)
    cycle = find_cycle(dependencies)
    if cycle is not None:
        raise CyclicDependencyError(cycle)

    return DependencyGraph(
        nodes=ordered_nodes,
        edges=frozenset(kept),
        _dependencies=dependencies,
        _dependents=dependents,
    )


def most_depended_upon(graph: DependencyGraph, *, limit: int = 5) -> list[tuple[str, int]]:
    counts = [(node, len(graph.dependents_of(node))) for node in graph.nodes]
    ranked = sorted((item for item in counts if item[1]), key=lambda item: (-item[1], item[0]))
    return ranked[:limit]


def most_dependencies(graph: DependencyGraph, *, limit: int = 5) -> list[tuple[str, int]]:
    counts = [(node, len(graph.dependencies_of(node))) for node in graph.nodes]
    ranked = sorted((item for item in counts if item[1]), key=lambda item: (-item[1], item[0]))
    return ranked[:limit]


class DiamondKind(StrEnum):
    UNIVERSAL_UTILITY = "universal-utility"
    INCOMPLETE_ABSTRACTION = "incomplete-abstraction"


@dataclass(frozen=True, slots=True, kw_only=True)
class DiamondDependency:
    """``package`` imports ``dependency`` directly and also through ``through``.

    ``through`` lists the other direct dependencies of ``package`` that reach
    ``dependency`` themselves.
    """

    package: str
    dependency: str
    through: tuple[str, ...]
    kind: DiamondKind

    @property
    def expected(self) -> bool:
        return self.kind is DiamondKind.UNIVERSAL_UTILITY


def transitive_dependencies(graph: DependencyGraph) -> dict[str, frozenset[str]]:
    """Every package reachable from each node, the node itself excluded."""

    closure: dict[str, frozenset[str]] = {}
    for node in graph.topological_order():
        reached: set[str] = set()
        for dependency in graph.dependencies_of(node):
            reached.add(dependency)
            reached |= closure[dependency]
        closure[node] = frozenset(reached)
    return closure


def find_diamonds(
    graph: DependencyGraph, *, universal_utilities: Iterable[str] = ()
) -> list[DiamondDependency]:
    """Direct dependencies that are also reached through another dependency.

    Packages named in ``universal_utilities`` are meant to be imported
    everywhere, so their diamonds are classified as expected.
    """

    universal = frozenset(universal_utilities)
    closure = transitive_dependencies(graph)
    diamonds: list[DiamondDependency] = []
    for package in graph.nodes:
        direct = graph.dependencies_of(package)
        for dependency in direct:
            through = tuple(
                other for other in direct if other != dependency and dependency in closure[other]
            )
            if not through:
                continue
            kind = (
                DiamondKind.UNIVERSAL_UTILITY
                if dependency in universal
                else DiamondKind.INCOMPLETE_ABSTRACTION
            )
            diamonds.append(
                DiamondDependency(
                    package=package, dependency=dependency, through=through, kind=kind
                )
            )
    return diamonds


__all__ = [
    "DependencyGraph",
    "DiamondDependency",
    "DiamondKind",
    "build_dependency_graph",
    "find_cycle",
    "find_diamonds",
    "most_dependencies",
    "most_depended_upon",
    "topological_order",
    "transitive_dependencies",
]
