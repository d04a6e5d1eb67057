# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_opal

import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

NodeType = Literal["Input", "Process", "AI", "Output"]
NodeStatus = Literal["idle", "running", "success", "error"]
EdgeType = Literal["data", "trigger", "control"]

# Default left-to-right layout for nodes without a position
LAYOUT_BASE_X = 100.0
LAYOUT_SPACING_X = 250.0
LAYOUT_Y = 200.0

# Node type names emitted by older planner prompts
LEGACY_NODE_TYPES: Dict[str, str] = {
    "UserInput": "Input",
    "AIGenerate": "AI",
}


class WorkflowPlanError(ValueError):
    """Raised when an external plan cannot be turned into a WorkflowDAG."""

    pass


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class Position(BaseModel):
    model_config = ConfigDict(extra="forbid")

    x: float = 0.0
    y: float = 0.0


class WorkflowNode(BaseModel):
    """
    A single unit of work in the workflow graph.
    """

    model_config = ConfigDict(extra="forbid")

    node_id: str = Field(..., min_length=1)
    node_type: NodeType
    label: str = ""
    input_refs: List[str] = Field(default_factory=list)
    prompt_template: Optional[str] = None
    user_instruction: Optional[str] = None
    status: NodeStatus = "idle"
    position: Position = Field(default_factory=Position)
    config: Dict[str, Any] = Field(default_factory=dict)

    @property
    def display_name(self) -> str:
        return self.label or self.node_id


class WorkflowEdge(BaseModel):
    """
    A directed data dependency between two nodes.
    """

    model_config = ConfigDict(extra="forbid")

    id: str
    source: str
    target: str
    type: EdgeType = "data"


class WorkflowDAG(BaseModel):
    """
    The workflow definition: typed nodes keyed by id (declaration order preserved) and the edges between them.
    """

    model_config = ConfigDict(extra="forbid")

    id: str
    name: str
    description: Optional[str] = None
    nodes: Dict[str, WorkflowNode] = Field(default_factory=dict)
    edges: List[WorkflowEdge] = Field(default_factory=list)
    created_at: str = Field(default_factory=utc_now_iso)

    @field_validator("nodes", mode="before")
    @classmethod
    def _nodes_from_list(cls, value: Any) -> Any:
        # Planners and the HTTP surface send nodes as a list
        if isinstance(value, list):
            keyed: Dict[str, Any] = {}
            for index, item in enumerate(value):
                if isinstance(item, WorkflowNode):
                    node_id = item.node_id
                elif isinstance(item, dict):
                    node_id = item.get("node_id")
                else:
                    raise ValueError(f"Node at index {index} is not an object")
                if not isinstance(node_id, str):
                    raise ValueError(f"Node at index {index} has no node_id")
                if node_id in keyed:
                    raise ValueError(f"Duplicate node_id '{node_id}'")
                keyed[node_id] = item
            return keyed
        return value

    @model_validator(mode="after")
    def _check_node_keys(self) -> "WorkflowDAG":
        for key, node in self.nodes.items():
            if key != node.node_id:
                raise ValueError(f"Node key '{key}' does not match node_id '{node.node_id}'")
        return self

    @property
    def node_list(self) -> List[WorkflowNode]:
        """Nodes in declaration order (the order positional references index into)."""
        return list(self.nodes.values())

    def get_node(self, node_id: str) -> Optional[WorkflowNode]:
        return self.nodes.get(node_id)

    def nodes_of_type(self, node_type: NodeType) -> List[WorkflowNode]:
        return [n for n in self.nodes.values() if n.node_type == node_type]

    @classmethod
    def from_plan(cls, data: Dict[str, Any]) -> "WorkflowDAG":
        """Builds a DAG from a loosely shaped external plan, filling every missing default.

        If the plan has no edges but more than one node, the nodes are chained in declaration order
        so the result is always executable.

        Args:
            data: The decoded plan (e.g. JSON produced by the architect agent).

        Returns:
            WorkflowDAG: The normalised DAG.

        Raises:
            WorkflowPlanError: If the plan has no usable node list or fails validation.
        """
        if not isinstance(data, dict):
            raise WorkflowPlanError("Workflow plan must be a JSON object")

        raw_nodes = data.get("nodes")
        if not isinstance(raw_nodes, list):
            raise WorkflowPlanError("Invalid nodes array")

        nodes: List[Dict[str, Any]] = []
        for index, raw in enumerate(raw_nodes):
            if not isinstance(raw, dict):
                raise WorkflowPlanError(f"Node at index {index} is not an object")
            node = dict(raw)
            node_type = node.get("node_type")
            if isinstance(node_type, str):
                node["node_type"] = LEGACY_NODE_TYPES.get(node_type, node_type)
            if node.get("status") is None:
                node["status"] = "idle"
            if node.get("position") is None:
                node["position"] = {"x": LAYOUT_BASE_X + index * LAYOUT_SPACING_X, "y": LAYOUT_Y}
            if node.get("config") is None:
                node["config"] = {}
            if node.get("input_refs") is None:
                node["input_refs"] = []
            if not node.get("label"):
                node["label"] = node.get("node_id", "")
            nodes.append(node)

        raw_edges = data.get("edges")
        if not isinstance(raw_edges, list):
            raw_edges = []

        edges: List[Dict[str, Any]] = []
        if not raw_edges and len(nodes) > 1:
            for i in range(len(nodes) - 1):
                edges.append(
                    {
                        "id": f"e{i + 1}-{i + 2}",
                        "source": nodes[i].get("node_id"),
                        "target": nodes[i + 1].get("node_id"),
                        "type": "data",
                    }
                )
        else:
            for i, raw in enumerate(raw_edges):
                if not isinstance(raw, dict):
                    raise WorkflowPlanError(f"Edge at index {i} is not an object")
                edge = dict(raw)
                if not edge.get("id"):
                    edge["id"] = f"e{i + 1}"
                if edge.get("type") is None:
                    edge["type"] = "data"
                # Drop renderer-only keys the canvas attaches to edges
                for key in ("sourceHandle", "targetHandle", "animated"):
                    edge.pop(key, None)
                edges.append(edge)

        try:
            return cls(
                id=data.get("id") or f"workflow_{int(time.time() * 1000)}",
                name=data.get("name") or "Generated Workflow",
                description=data.get("description"),
                nodes=nodes,
                edges=edges,
                created_at=data.get("created_at") or utc_now_iso(),
            )
        except ValidationError as e:
            raise WorkflowPlanError(f"Invalid workflow plan: {e}") from e
