"""
Actor-interaction graph
=======================

Turns the event table into a directed, weighted graph:

1) filter: keep events whose type is in the allow-list and whose two
   actors are both non-empty (after trimming)
2) edges: group by the ordered pair (actor1, actor2);
   weight = number of events, total_fatalities = their sum
3) nodes: every actor that appears on either end of an edge, once

The allow-list is a parameter because it comes out of the event-type
summary; changing that finding must not require touching this code.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import AbstractSet, Dict, Iterable, List, Set, Tuple
import logging

from .models import ActorEdge, ActorNode, Event

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActorGraph:
    edges: Tuple[ActorEdge, ...]
    nodes: Tuple[ActorNode, ...]

    def dangling(self) -> Set[str]:
        """Edge endpoints that are missing from the node table."""
        ids = {n.id for n in self.nodes}
        return {a for e in self.edges for a in (e.source, e.target)} - ids


def eligible_pairs(events: Iterable[Event], allow_list: AbstractSet[str]):
    """Yield (actor1, actor2, fatalities) for events that pass the filter."""
    for e in events:
        if e.event_type not in allow_list:
            continue
        a1, a2 = e.actor1.strip(), e.actor2.strip()
        if a1 and a2:
            yield a1, a2, e.fatalities


def build_edges(events: Iterable[Event], allow_list: AbstractSet[str]) -> List[ActorEdge]:
    """Aggregate eligible events into one edge per ordered actor pair.

    Edges come out heaviest first, then by source and target name.
    """
    acc: Dict[Tuple[str, str], List[int]] = {}
    for a1, a2, fatalities in eligible_pairs(events, allow_list):
        slot = acc.setdefault((a1, a2), [0, 0])
        slot[0] += 1
        slot[1] += fatalities

    edges = [
        ActorEdge(source=s, target=t, weight=v[0], total_fatalities=v[1])
        for (s, t), v in acc.items()
    ]
    edges.sort(key=lambda e: (-e.weight, e.source, e.target))
    return edges


def derive_nodes(edges: Iterable[ActorEdge]) -> List[ActorNode]:
    """One node per distinct edge endpoint, sorted by id."""
    ids: Set[str] = set()
    for e in edges:
        ids.add(e.source)
        ids.add(e.target)
    return [ActorNode(id=a, label=a) for a in sorted(ids)]


def extract_graph(events: Iterable[Event], allow_list: AbstractSet[str]) -> ActorGraph:
    edges = build_edges(events, frozenset(allow_list))
    nodes = derive_nodes(edges)
    logger.info("Graph: %d edges, %d nodes (allow-list: %s)",
                len(edges), len(nodes), ", ".join(sorted(allow_list)))
    return ActorGraph(edges=tuple(edges), nodes=tuple(nodes))


def to_networkx(graph: ActorGraph):
    """Build a networkx DiGraph with weight and total_fatalities on each edge."""
    import networkx as nx

    g = nx.DiGraph()
    for n in graph.nodes:
        g.add_node(n.id, label=n.label)
    for e in graph.edges:
        g.add_edge(e.source, e.target, weight=e.weight, total_fatalities=e.total_fatalities)
    return g
