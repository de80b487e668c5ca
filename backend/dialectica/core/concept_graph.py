"""Concept Graph — incremental node/link store for discovered concepts.

Invariants:
    - Node ids are unique
    - Links are unique by (source, target); the label is not part of the key,
      so re-adding a pair keeps the original label
    - apply_delta order: removals, then node additions, then edge additions —
      a node removed and re-added in one delta ends up present
    - Links whose endpoints are missing are retained (rendering filters them)
"""

from dataclasses import dataclass, field

from dialectica.schemas.analysis import GraphData


@dataclass
class ConceptNode:
    id: str
    name: str | None = None


@dataclass
class ConceptLink:
    source: str
    target: str
    label: str | None = None


@dataclass
class GraphDelta:
    """Incremental change set for the concept graph."""
    new_nodes: list[ConceptNode] = field(default_factory=list)
    new_edges: list[ConceptLink] = field(default_factory=list)
    removed_nodes: list[str] = field(default_factory=list)

    @classmethod
    def from_graph_data(cls, graph_data: GraphData) -> "GraphDelta":
        """Additive delta that introduces every node and link of a snapshot."""
        return cls(
            new_nodes=[ConceptNode(n.id, n.name) for n in graph_data.nodes],
            new_edges=[
                ConceptLink(l.source, l.target, l.label) for l in graph_data.links
            ],
        )

    @property
    def is_empty(self) -> bool:
        return not (self.new_nodes or self.new_edges or self.removed_nodes)


@dataclass
class ConceptGraph:
    nodes: list[ConceptNode] = field(default_factory=list)
    links: list[ConceptLink] = field(default_factory=list)

    @property
    def node_ids(self) -> set[str]:
        return {n.id for n in self.nodes}

    def apply_delta(self, delta: GraphDelta) -> None:
        """Apply removals, node additions and edge additions, in that order."""
        if delta.is_empty:
            return
        removed = set(delta.removed_nodes)
        if removed:
            self.nodes = [n for n in self.nodes if n.id not in removed]

        known = self.node_ids
        for node in delta.new_nodes:
            if node.id not in known:
                self.nodes.append(ConceptNode(node.id, node.name or node.id))
                known.add(node.id)

        pairs = {(l.source, l.target) for l in self.links}
        for edge in delta.new_edges:
            key = (edge.source, edge.target)
            if key not in pairs:
                self.links.append(ConceptLink(edge.source, edge.target, edge.label))
                pairs.add(key)

    def to_dict(self) -> dict:
        return {
            "nodes": [{"id": n.id, "name": n.name} for n in self.nodes],
            "links": [
                {"source": l.source, "target": l.target, "label": l.label}
                for l in self.links
            ],
        }

    @classmethod
    def from_graph_data(cls, graph_data: GraphData) -> "ConceptGraph":
        graph = cls()
        graph.apply_delta(GraphDelta.from_graph_data(graph_data))
        return graph


def reconcile_delta(graph: ConceptGraph, refined: GraphData) -> GraphDelta:
    """Delta that brings graph's node set in line with a refined snapshot.

    Nodes absent from the snapshot are removed; the snapshot's nodes and
    links are added (deduplicated by apply_delta).
    """
    delta = GraphDelta.from_graph_data(refined)
    keep = {n.id for n in refined.nodes}
    delta.removed_nodes = [n.id for n in graph.nodes if n.id not in keep]
    return delta
