"""
Tests for the workflow model and graph topology.
"""

from nodeflow.engine.topology import GraphTopology
from nodeflow.engine.types import ConditionOperator, EdgeType, WorkflowDefinition


def ids(nodes):
    return [node.id for node in nodes]


class TestWorkflowModel:
    """Tests for parsing workflow definitions."""

    def test_parses_editor_json(self, make_workflow):
        """camelCase keys from the editor are accepted."""
        workflow = make_workflow(
            [{"id": "a", "type": "user_input"}, {"id": "b", "type": "response"}],
            [{
                "source": "a",
                "target": "b",
                "sourceHandle": "true",
                "type": "conditional",
                "data": {"condition": {"field": "x", "operator": "equals", "value": 1}},
            }],
            workflowId="wf-1",
            isPublished=True,
            variables=[{"name": "tone", "type": "string", "defaultValue": "calm"}],
        )

        edge = workflow.edges[0]
        assert edge.source_handle == "true"
        assert edge.type == EdgeType.CONDITIONAL
        assert edge.data.condition.operator == ConditionOperator.EQUALS
        assert workflow.workflow_id == "wf-1"
        assert workflow.is_published is True
        assert workflow.variable_defaults() == {"tone": "calm"}
        assert workflow.get_node("b").type.value == "response"
        assert workflow.get_node("zzz") is None

    def test_round_trip_uses_camel_case(self, make_workflow):
        workflow = make_workflow(
            [{"id": "a", "type": "user_input"}],
            [],
            workflowId="wf-1",
        )
        data = workflow.to_dict()
        assert data["workflowId"] == "wf-1"
        assert "workflow_id" not in data
        assert WorkflowDefinition.model_validate(data) == workflow


class TestGraphTopology:
    """Tests for start nodes, traversal helpers and validation."""

    def test_start_nodes(self, make_workflow):
        """A node is a start node iff no edge targets it."""
        workflow = make_workflow(
            [
                {"id": "a", "type": "user_input"},
                {"id": "b", "type": "user_input"},
                {"id": "c", "type": "response"},
            ],
            [{"source": "a", "target": "c"}, {"source": "b", "target": "c"}],
        )
        topology = GraphTopology(workflow)

        assert ids(topology.start_nodes()) == ["a", "b"]
        assert ids(topology.downstream_nodes("a")) == ["c"]
        assert [e.source for e in topology.incoming_edges("c")] == ["a", "b"]
        assert topology.validate() == []

    def test_downstream_in_declaration_order(self, make_workflow):
        """Downstream nodes follow node order and are not repeated."""
        workflow = make_workflow(
            [
                {"id": "a", "type": "user_input"},
                {"id": "b", "type": "response"},
                {"id": "c", "type": "response"},
            ],
            [
                {"source": "a", "target": "c"},
                {"source": "a", "target": "b"},
                {"source": "a", "target": "c", "sourceHandle": "x"},
            ],
        )
        assert ids(GraphTopology(workflow).downstream_nodes("a")) == ["b", "c"]

    def test_every_node_has_incoming_edge(self, make_workflow):
        """A graph with no start nodes is reported (it must be cyclic)."""
        workflow = make_workflow(
            [{"id": "a", "type": "user_input"}, {"id": "b", "type": "response"}],
            [{"source": "a", "target": "b"}, {"source": "b", "target": "a"}],
        )
        topology = GraphTopology(workflow)

        assert topology.start_nodes() == []
        errors = topology.validate()
        assert any("no start nodes" in e for e in errors)
        assert any("cycle" in e for e in errors)

    def test_empty_workflow_is_valid(self, make_workflow):
        topology = GraphTopology(make_workflow([], []))
        assert topology.start_nodes() == []
        assert topology.validate() == []

    def test_dangling_edges_and_duplicates(self, make_workflow):
        workflow = make_workflow(
            [{"id": "a", "type": "user_input"}, {"id": "a", "type": "response"}],
            [{"source": "a", "target": "ghost"}, {"source": "phantom", "target": "a"}],
        )
        errors = GraphTopology(workflow).validate()

        assert "Duplicate node id 'a'" in errors
        assert "Edge 'e0' target 'ghost' is not a valid node" in errors
        assert "Edge 'e1' source 'phantom' is not a valid node" in errors

    def test_cycle_path(self, make_workflow):
        workflow = make_workflow(
            [
                {"id": "start", "type": "user_input"},
                {"id": "x", "type": "text_processor"},
                {"id": "y", "type": "text_processor"},
            ],
            [
                {"source": "start", "target": "x"},
                {"source": "x", "target": "y"},
                {"source": "y", "target": "x"},
            ],
        )
        errors = GraphTopology(workflow).validate()
        assert errors == ["Workflow contains a cycle: x -> y -> x"]

    def test_mermaid(self, make_workflow):
        workflow = make_workflow(
            [
                {"id": "in", "type": "user_input", "data": {"label": "Ask"}},
                {"id": "out", "type": "response", "data": {"label": "Answer"}},
            ],
            [{"source": "in", "target": "out", "sourceHandle": "true"}],
        )
        diagram = GraphTopology(workflow).to_mermaid()

        assert diagram.splitlines() == [
            "graph TD",
            '    in["Ask (user_input)"]',
            '    out["Answer (response)"]',
            "    in -->|true| out",
        ]
