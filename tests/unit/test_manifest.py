# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_opal

import pytest
from pydantic import ValidationError

from coreason_opal.core.manifest import WorkflowDAG, WorkflowNode, WorkflowPlanError


def test_nodes_accept_list_and_keep_declaration_order() -> None:
    dag = WorkflowDAG(
        id="d",
        name="D",
        nodes=[
            {"node_id": "z", "node_type": "Input"},
            {"node_id": "a", "node_type": "AI"},
            {"node_id": "m", "node_type": "Output"},
        ],
    )
    assert list(dag.nodes) == ["z", "a", "m"]
    assert [n.node_id for n in dag.node_list] == ["z", "a", "m"]
    assert dag.get_node("a") is not None
    assert dag.get_node("missing") is None


def test_node_defaults() -> None:
    node = WorkflowNode(node_id="x", node_type="Process")
    assert node.status == "idle"
    assert node.input_refs == []
    assert node.config == {}
    assert node.prompt_template is None
    assert node.display_name == "x"


def test_duplicate_node_ids_rejected() -> None:
    with pytest.raises(ValidationError, match="Duplicate node_id"):
        WorkflowDAG(
            id="d",
            name="D",
            nodes=[{"node_id": "a", "node_type": "Input"}, {"node_id": "a", "node_type": "Output"}],
        )


def test_mismatched_node_key_rejected() -> None:
    with pytest.raises(ValidationError):
        WorkflowDAG(id="d", name="D", nodes={"a": {"node_id": "b", "node_type": "Input"}})


def test_unknown_node_type_rejected() -> None:
    with pytest.raises(ValidationError):
        WorkflowNode(node_id="x", node_type="Transformer")


def test_nodes_of_type() -> None:
    dag = WorkflowDAG(
        id="d",
        name="D",
        nodes=[{"node_id": "i", "node_type": "Input"}, {"node_id": "o", "node_type": "Output"}],
    )
    assert [n.node_id for n in dag.nodes_of_type("Output")] == ["o"]
    assert dag.nodes_of_type("AI") == []


# --- from_plan ---


def test_from_plan_fills_defaults() -> None:
    dag = WorkflowDAG.from_plan(
        {
            "nodes": [
                {"node_id": "s1", "node_type": "Input"},
                {"node_id": "s2", "node_type": "AI", "prompt_template": "Do @Step1"},
                {"node_id": "s3", "node_type": "Output"},
            ],
            "edges": [
                {"id": "a", "source": "s1", "target": "s2"},
                {"id": "b", "source": "s2", "target": "s3"},
            ],
        }
    )

    assert dag.id.startswith("workflow_")
    assert dag.name == "Generated Workflow"
    assert dag.created_at
    for index, node in enumerate(dag.node_list):
        assert node.status == "idle"
        assert node.config == {}
        assert node.input_refs == []
        assert node.label == node.node_id
        assert node.position.x == 100 + index * 250
        assert node.position.y == 200
    assert all(edge.type == "data" for edge in dag.edges)


def test_from_plan_synthesizes_linear_chain_when_edges_missing() -> None:
    dag = WorkflowDAG.from_plan(
        {
            "id": "wf",
            "name": "No edges",
            "nodes": [
                {"node_id": "a", "node_type": "Input"},
                {"node_id": "b", "node_type": "AI"},
                {"node_id": "c", "node_type": "Process"},
                {"node_id": "d", "node_type": "Output"},
            ],
        }
    )

    assert [(e.source, e.target) for e in dag.edges] == [("a", "b"), ("b", "c"), ("c", "d")]
    assert [e.id for e in dag.edges] == ["e1-2", "e2-3", "e3-4"]
    connected = {e.source for e in dag.edges} | {e.target for e in dag.edges}
    assert connected == set(dag.nodes)


def test_from_plan_single_node_gets_no_edges() -> None:
    dag = WorkflowDAG.from_plan({"nodes": [{"node_id": "only", "node_type": "Input"}], "edges": []})
    assert dag.edges == []


def test_from_plan_keeps_given_values() -> None:
    dag = WorkflowDAG.from_plan(
        {
            "id": "keep",
            "name": "Kept",
            "nodes": [
                {
                    "node_id": "a",
                    "node_type": "Input",
                    "label": "Topic",
                    "status": "success",
                    "position": {"x": 5, "y": 6},
                    "config": {"inputType": "text"},
                }
            ],
        }
    )
    node = dag.nodes["a"]
    assert dag.id == "keep"
    assert node.label == "Topic"
    assert node.status == "success"
    assert (node.position.x, node.position.y) == (5, 6)
    assert node.config == {"inputType": "text"}


def test_from_plan_maps_legacy_node_types() -> None:
    dag = WorkflowDAG.from_plan(
        {
            "nodes": [
                {"node_id": "step_1", "node_type": "UserInput"},
                {"node_id": "step_2", "node_type": "AIGenerate", "prompt_template": "Quiz on @Step1"},
                {"node_id": "step_3", "node_type": "Output", "input_refs": ["@Step2"]},
            ]
        }
    )
    assert [n.node_type for n in dag.node_list] == ["Input", "AI", "Output"]


def test_from_plan_drops_canvas_edge_keys() -> None:
    dag = WorkflowDAG.from_plan(
        {
            "nodes": [{"node_id": "a", "node_type": "Input"}, {"node_id": "b", "node_type": "Output"}],
            "edges": [{"source": "a", "target": "b", "animated": True, "sourceHandle": "h"}],
        }
    )
    assert dag.edges[0].id == "e1"
    assert dag.edges[0].source == "a"


@pytest.mark.parametrize("plan", [{}, {"nodes": "nope"}, {"nodes": [1, 2]}, []])  # type: ignore
def test_from_plan_rejects_missing_nodes(plan: object) -> None:
    with pytest.raises(WorkflowPlanError):
        WorkflowDAG.from_plan(plan)  # type: ignore[arg-type]


def test_from_plan_wraps_validation_errors() -> None:
    with pytest.raises(WorkflowPlanError, match="Invalid workflow plan"):
        WorkflowDAG.from_plan({"nodes": [{"node_id": "a", "node_type": "Bogus"}]})


@pytest.mark.parametrize("items", [["oops"], [7], [{"node_type": "Input"}], [{"node_id": ["a"], "node_type": "Input"}]])  # type: ignore
def test_malformed_node_list_rejected(items: list) -> None:  # type: ignore[type-arg]
    with pytest.raises(ValidationError):
        WorkflowDAG(id="d", name="D", nodes=items)


@pytest.mark.parametrize("edges", [["a->b"], [7], [None]])  # type: ignore
def test_from_plan_rejects_non_object_edges(edges: list) -> None:  # type: ignore[type-arg]
    plan = {"nodes": [{"node_id": "a", "node_type": "Input"}, {"node_id": "b", "node_type": "Output"}], "edges": edges}
    with pytest.raises(WorkflowPlanError, match="Edge at index 0"):
        WorkflowDAG.from_plan(plan)


@pytest.mark.parametrize("node_type", [["Input"], {"kind": "Input"}, None, 3])  # type: ignore
def test_from_plan_rejects_non_string_node_type(node_type: object) -> None:
    with pytest.raises(WorkflowPlanError, match="Invalid workflow plan"):
        WorkflowDAG.from_plan({"nodes": [{"node_id": "a", "node_type": node_type}]})


def test_from_plan_rejects_node_without_id() -> None:
    with pytest.raises(WorkflowPlanError, match="Invalid workflow plan"):
        WorkflowDAG.from_plan({"nodes": [{"node_type": "Input"}]})
