"""
Hierarchy — build the issuance graph of a certificate pool and repair it.

Domain layer — PURE graph logic. The only collaborators are the injected
issuer predicate and structlog diagnostics.

Phases (run once each, in this order):

  Pruning      → drop byte-identical duplicates (first occurrence wins)
  Linking      → pairwise is_issuer() over every unordered pair
  CycleRepair  → for every record: find a cycle reachable from it, cut one
                 edge, repeat until none is left
  Done

Pruning must finish before Linking starts: the arena refuses to remove
records once it holds edges.

Cycle cutting heuristic (first applicable rule wins):

  1. the cycle node with the most parents (> 1) loses its cycle-predecessor
       C → B  and  A → B → C → A     ⇒  cut A → B
  2. the cycle node with the most children (> 1) loses its cycle-successor
       A → B → C → A  and  B → D     ⇒  cut B → C
  3. otherwise (a bare ring) the closing edge last → first is cut
       A → B → C → D → A            ⇒  cut D → A
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from enum import Enum, unique

import structlog

from cert_hierarchy.domain.graph import CertificateGraph, Edge
from cert_hierarchy.domain.ports import IssuerCheck

log = structlog.get_logger()


@unique
class HierarchyPhase(Enum):
    PRUNING = "pruning"
    LINKING = "linking"
    CYCLE_REPAIR = "cycle_repair"
    DONE = "done"


# ─────────────────────── Duplicate Pruner ───────────────────────


def prune_duplicates(graph: CertificateGraph) -> int:
    """
    Remove every record whose DER encoding equals an earlier record's.

    The first occurrence (input order) is kept. Returns the number of
    records removed.
    """
    removed = 0
    first = 0
    while first < len(graph):
        kept = graph[first]
        second = first + 1
        while second < len(graph):
            if graph[second].der == kept.der:
                duplicate = graph.remove_record(second)
                log.warning(
                    "hierarchy.duplicate_ignored",
                    duplicate=duplicate.location,
                    same_as=kept.location,
                )
                removed += 1
            else:
                second += 1
        first += 1
    return removed


# ─────────────────────── Relationship Builder ───────────────────────


def link_relationships(graph: CertificateGraph, is_issuer: IssuerCheck) -> int:
    """
    Create a parent → child edge for every pair where is_issuer() holds.

    Both directions of every unordered pair are evaluated, so a mutual
    cross-issuance yields two edges. Returns the number of edges created;
    existing edges are left untouched and not counted.
    """
    created = 0
    records = graph.records
    for first in range(len(records)):
        for second in range(first + 1, len(records)):
            if is_issuer(records[first], records[second]):
                created += graph.add_edge(first, second)
            if is_issuer(records[second], records[first]):
                created += graph.add_edge(second, first)
        log.debug(
            "hierarchy.linked",
            certificate=records[first].location,
            parents=graph.parent_count(first),
        )
    return created


# ─────────────────────── Cycle Finder ───────────────────────


def find_cycle(graph: CertificateGraph, start: int) -> list[int] | None:
    """
    Depth-first search for a cycle reachable from `start` through children.

    Returns [n0, ..., nk] where n(i+1) is a child of n(i) and n0 is a child
    of nk, or None when no cycle is reachable. The search follows the current
    path, not a global visited set: a node may be reached through several
    non-cyclic paths. Children are visited in edge insertion order.

    Uses an explicit stack of (node, children iterator) frames, so long
    certificate chains cannot hit the interpreter recursion limit.
    """
    path: list[int] = [start]
    on_path: dict[int, int] = {start: 0}
    frames: list[Iterator[int]] = [graph.iter_children(start)]
    # Fully explored without a cycle: such a node cannot reach the current path.
    exhausted: set[int] = set()

    while frames:
        child = next(frames[-1], None)
        if child is None:
            frames.pop()
            node = path.pop()
            del on_path[node]
            exhausted.add(node)
            continue
        if child in on_path:
            cycle = path[on_path[child]:]
            log.info("hierarchy.cycle_found", cycle=graph.describe([*cycle, cycle[0]]))
            return cycle
        if child in exhausted:
            continue
        on_path[child] = len(path)
        path.append(child)
        frames.append(graph.iter_children(child))

    return None


# ─────────────────────── Cycle Resolver ───────────────────────


def _first_max(cycle: Sequence[int], count: dict[int, int]) -> int:
    """Position in `cycle` of the node with the greatest count; ties go to the earliest."""
    target = 0
    for position, node in enumerate(cycle):
        if count[node] > count[cycle[target]]:
            target = position
    return target


def break_cycle(graph: CertificateGraph, cycle: Sequence[int]) -> Edge:
    """
    Remove exactly one edge of `cycle` and return it as (parent, child).

    `cycle` must come from find_cycle(): at least two nodes, each a child of
    the previous one, the first a child of the last. Parent and child counts
    are global (the whole graph), not restricted to the cycle.
    """
    assert len(cycle) >= 2, f"A cycle needs at least 2 certificates, got {len(cycle)}"

    parents = {node: graph.parent_count(node) for node in cycle}
    target = _first_max(cycle, parents)
    if parents[cycle[target]] > 1:
        edge = (cycle[target - 1], cycle[target])
        return _cut(graph, edge, rule="most_parents")

    children = {node: graph.child_count(node) for node in cycle}
    target = _first_max(cycle, children)
    if children[cycle[target]] > 1:
        edge = (cycle[target], cycle[(target + 1) % len(cycle)])
        return _cut(graph, edge, rule="most_children")

    return _cut(graph, (cycle[-1], cycle[0]), rule="closing_edge")


def _cut(graph: CertificateGraph, edge: Edge, rule: str) -> Edge:
    parent, child = edge
    graph.remove_edge(parent, child)
    log.warning(
        "hierarchy.circular_issuance_ignored",
        child=graph[child].location,
        parent=graph[parent].location,
        rule=rule,
    )
    return edge


def repair_cycles(graph: CertificateGraph) -> list[Edge]:
    """
    Use every record as a DFS origin and cut edges until no cycle is reachable.

    Returns the removed edges in removal order.
    """
    removed: list[Edge] = []
    for start in range(len(graph)):
        while (cycle := find_cycle(graph, start)) is not None:
            removed.append(break_cycle(graph, cycle))
    return removed


# ─────────────────────── Orchestrator ───────────────────────


def compute_hierarchy(graph: CertificateGraph, is_issuer: IssuerCheck) -> None:
    """
    Turn a pool of certificates into an acyclic issuance graph, in place.

      1. Remove duplicates
      2. Draw parent/child relationships
      3. Break circular issuance

    Certificates with several surviving, non-cyclic parents (e.g. the same
    authority re-issued with different validity dates) are kept as they are;
    selecting the longest lineage among them is not done here.
    """
    if graph.sealed:
        raise RuntimeError("compute_hierarchy() expects a graph without issuance links")

    log.info("hierarchy.computing", certificates=len(graph))

    log.debug("hierarchy.phase", phase=HierarchyPhase.PRUNING.value)
    duplicates = prune_duplicates(graph)

    log.debug("hierarchy.phase", phase=HierarchyPhase.LINKING.value, certificates=len(graph))
    linked = link_relationships(graph, is_issuer)

    log.debug("hierarchy.phase", phase=HierarchyPhase.CYCLE_REPAIR.value, edges=linked)
    broken = repair_cycles(graph)

    log.debug("hierarchy.phase", phase=HierarchyPhase.DONE.value)
    log.info(
        "hierarchy.complete",
        certificates=len(graph),
        duplicates_removed=duplicates,
        edges=graph.edge_count,
        cycle_edges_removed=len(broken),
        roots=len(graph.roots()),
    )
