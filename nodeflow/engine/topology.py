"""
Graph Topology for Workflow Definitions.

Answers structural questions about a workflow's node/edge lists: which
nodes start a run, which nodes sit downstream of a node, which edges
feed a node, and whether the graph is well formed.
"""

from typing import Dict, List, Optional, Set

from nodeflow.engine.types import WorkflowDefinition, WorkflowEdge, WorkflowNode


class GraphTopology:
    """
    Read-only index over a workflow definition.

    Lookups are precomputed once, so start-node and downstream queries
    are O(1) per node after construction.

    Usage:
        topology = GraphTopology(definition)
        for node in topology.start_nodes():
            ...
    """

    def __init__(self, definition: WorkflowDefinition):
        self.definition = definition
        self._nodes: Dict[str, WorkflowNode] = {}
        for node in definition.nodes:
            self._nodes.setdefault(node.id, node)

        self._outgoing: Dict[str, List[WorkflowEdge]] = {}
        self._incoming: Dict[str, List[WorkflowEdge]] = {}
        for edge in definition.edges:
            self._outgoing.setdefault(edge.source, []).append(edge)
            self._incoming.setdefault(edge.target, []).append(edge)

    @property
    def nodes(self) -> List[WorkflowNode]:
        return self.definition.nodes

    def get_node(self, node_id: str) -> Optional[WorkflowNode]:
        """Get a node by ID."""
        return self._nodes.get(node_id)

    def start_nodes(self) -> List[WorkflowNode]:
        """Nodes that never appear as an edge target, in declaration order."""
        return [node for node in self.definition.nodes if node.id not in self._incoming]

    def incoming_edges(self, node_id: str) -> List[WorkflowEdge]:
        """Edges whose target is ``node_id``, in declaration order."""
        return self._incoming.get(node_id, [])

    def outgoing_edges(self, node_id: str) -> List[WorkflowEdge]:
        """Edges whose source is ``node_id``, in declaration order."""
        return self._outgoing.get(node_id, [])

    def downstream_nodes(self, node_id: str) -> List[WorkflowNode]:
        """
        Nodes targeted by an edge from ``node_id``.

        Returned in node declaration order. Edges to unknown ids
        contribute nothing.
        """
        return self.nodes_for_edges(self.outgoing_edges(node_id))

    def nodes_for_edges(self, edges: List[WorkflowEdge]) -> List[WorkflowNode]:
        """Target nodes of ``edges``, deduplicated, in node declaration order."""
        targets = {edge.target for edge in edges}
        return [node for node in self.definition.nodes if node.id in targets]

    def validate(self) -> List[str]:
        """
        Validate the graph structure.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        seen: Set[str] = set()
        for node in self.definition.nodes:
            if node.id in seen:
                errors.append(f"Duplicate node id '{node.id}'")
            seen.add(node.id)

        for edge in self.definition.edges:
            if edge.source not in self._nodes:
                errors.append(f"Edge '{edge.id}' source '{edge.source}' is not a valid node")
            if edge.target not in self._nodes:
                errors.append(f"Edge '{edge.id}' target '{edge.target}' is not a valid node")

        if self.definition.nodes and not self.start_nodes():
            errors.append("Workflow has no start nodes (every node has an incoming edge)")

        cycle = self._find_cycle()
        if cycle:
            errors.append(f"Workflow contains a cycle: {' -> '.join(cycle)}")

        return errors

    def _find_cycle(self) -> Optional[List[str]]:
        """Return one cycle as a list of node ids, or None for a DAG."""
        visiting: Set[str] = set()
        done: Set[str] = set()
        path: List[str] = []

        def visit(node_id: str) -> Optional[List[str]]:
            visiting.add(node_id)
            path.append(node_id)
            for edge in self.outgoing_edges(node_id):
                target = edge.target
                if target not in self._nodes or target in done:
                    continue
                if target in visiting:
                    return path[path.index(target):] + [target]
                found = visit(target)
                if found:
                    return found
            visiting.discard(node_id)
            done.add(node_id)
            path.pop()
            return None

        for node_id in self._nodes:
            if node_id not in done:
                found = visit(node_id)
                if found:
                    return found
        return None

    def to_mermaid(self) -> str:
        """Generate a Mermaid diagram of the workflow."""
        lines = ["graph TD"]

        for node in self.definition.nodes:
            label = node.label.replace('"', "'")
            lines.append(f'    {node.id}["{label} ({node.type.value})"]')

        for edge in self.definition.edges:
            route = edge.source_handle or (edge.data.label if edge.data else None)
            if route:
                lines.append(f"    {edge.source} -->|{route}| {edge.target}")
            else:
                lines.append(f"    {edge.source} --> {edge.target}")

        return "\n".join(lines)
