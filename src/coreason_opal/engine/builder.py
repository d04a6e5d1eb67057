# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_opal

from typing import Any, Dict, List, Optional

import networkx as nx
from pydantic import BaseModel, ConfigDict

from coreason_opal.core.manifest import (
    LAYOUT_BASE_X,
    LAYOUT_SPACING_X,
    LAYOUT_Y,
    EdgeType,
    NodeStatus,
    Position,
    WorkflowDAG,
    WorkflowEdge,
    WorkflowNode,
)
from coreason_opal.engine.resolver import ReferenceResolver
from coreason_opal.engine.topology import GraphIntegrityError, TopologyEngine
from coreason_opal.events.protocol import ExecutionResult
from coreason_opal.utils.logger import logger

_UNSET: Any = object()


class EdgeVerdict(BaseModel):
    """Outcome of an edge insertion attempt."""

    model_config = ConfigDict(extra="forbid")

    accepted: bool
    reason: Optional[str] = None
    edge: Optional[WorkflowEdge] = None


class GraphBuilder:
    """
    Incremental editing of a workflow DAG, as driven by a canvas editor.
    """

    def __init__(self, dag: WorkflowDAG | None = None) -> None:
        self.dag = dag
        self.selected_node_id: Optional[str] = None
        self.resolver = ReferenceResolver()
        self.topology = TopologyEngine()

    def select(self, node_id: Optional[str]) -> None:
        self.selected_node_id = node_id

    def add_node(self, node: WorkflowNode, dag_name: str = "Untitled Workflow") -> WorkflowDAG:
        """
        Appends a node, creating the DAG first if there is none yet.

        Raises:
            ValueError: If a node with the same id already exists.
            GraphIntegrityError: If the node would be a second Input or Output node.
        """
        if self.dag is None:
            self.dag = WorkflowDAG(id=f"workflow_{node.node_id}", name=dag_name)

        if node.node_id in self.dag.nodes:
            raise ValueError(f"Node '{node.node_id}' already exists")
        if node.node_type in ("Input", "Output") and self.dag.nodes_of_type(node.node_type):
            raise GraphIntegrityError(f"A workflow can only have one {node.node_type} node")

        if "position" not in node.model_fields_set:
            index = len(self.dag.nodes)
            node = node.model_copy(update={"position": Position(x=LAYOUT_BASE_X + index * LAYOUT_SPACING_X, y=LAYOUT_Y)})

        self.dag.nodes[node.node_id] = node
        logger.debug(f"Added node '{node.node_id}' ({node.node_type})")
        return self.dag

    def delete_node(self, node_id: str) -> WorkflowDAG | None:
        """Removes a node and every edge touching it."""
        if self.dag is None or node_id not in self.dag.nodes:
            return self.dag

        del self.dag.nodes[node_id]
        self.dag.edges = [e for e in self.dag.edges if e.source != node_id and e.target != node_id]
        if self.selected_node_id == node_id:
            self.selected_node_id = None
        logger.debug(f"Deleted node '{node_id}'")
        return self.dag

    def is_valid_connection(self, source: str, target: str) -> EdgeVerdict:
        """Checks the edge legality rules without modifying the DAG."""
        if self.dag is None:
            return EdgeVerdict(accepted=False, reason="No workflow loaded")

        source_node = self.dag.get_node(source)
        target_node = self.dag.get_node(target)
        if source_node is None or target_node is None:
            return EdgeVerdict(accepted=False, reason="Both endpoints must be existing nodes")
        if source == target:
            return EdgeVerdict(accepted=False, reason="A node cannot connect to itself")
        if any(e.source == source and e.target == target for e in self.dag.edges):
            return EdgeVerdict(accepted=False, reason="These nodes are already connected")
        if source_node.node_type == "Output":
            return EdgeVerdict(accepted=False, reason="Output nodes cannot have outgoing edges")
        if target_node.node_type == "Input":
            return EdgeVerdict(accepted=False, reason="Input nodes cannot have incoming edges")
        return EdgeVerdict(accepted=True)

    def add_edge(self, source: str, target: str, edge_id: str | None = None, edge_type: EdgeType = "data") -> EdgeVerdict:
        """Inserts an edge if it passes the legality rules. Rejection is reported, never raised."""
        verdict = self.is_valid_connection(source, target)
        if not verdict.accepted or self.dag is None:
            logger.debug(f"Rejected edge {source} -> {target}: {verdict.reason}")
            return verdict

        edge = WorkflowEdge(id=edge_id or f"e_{source}_{target}", source=source, target=target, type=edge_type)
        self.dag.edges.append(edge)
        return EdgeVerdict(accepted=True, edge=edge)

    def delete_edge(self, edge_id: str) -> WorkflowDAG | None:
        if self.dag is not None:
            self.dag.edges = [e for e in self.dag.edges if e.id != edge_id]
        return self.dag

    def update_node(
        self,
        node_id: str,
        *,
        instruction: Optional[str] = _UNSET,
        prompt_template: Optional[str] = _UNSET,
        label: str = _UNSET,
        config: Dict[str, Any] = _UNSET,
        position: Position = _UNSET,
        status: NodeStatus = _UNSET,
    ) -> WorkflowNode:
        """
        Updates the given fields of one node. ``config`` is merged into the existing config.

        Raises:
            KeyError: If the node does not exist.
        """
        if self.dag is None or node_id not in self.dag.nodes:
            raise KeyError(f"Unknown node '{node_id}'")

        node = self.dag.nodes[node_id]
        update: Dict[str, Any] = {}
        if instruction is not _UNSET:
            update["user_instruction"] = instruction
        if prompt_template is not _UNSET:
            update["prompt_template"] = prompt_template
        if label is not _UNSET:
            update["label"] = label
        if config is not _UNSET:
            update["config"] = {**node.config, **config}
        if position is not _UNSET:
            update["position"] = position
        if status is not _UNSET:
            update["status"] = status

        # Round-trip through validation so bad values (e.g. an unknown status) are rejected
        updated = WorkflowNode.model_validate({**node.model_dump(), **_dump(update)})
        self.dag.nodes[node_id] = updated
        return updated

    def apply_run(self, result: ExecutionResult) -> None:
        """Copies the per-node statuses of a finished run onto the DAG for display."""
        if self.dag is None:
            return
        for node_id, status in result.node_status.items():
            if node_id in self.dag.nodes:
                self.dag.nodes[node_id] = self.dag.nodes[node_id].model_copy(update={"status": status})

    def reset_statuses(self) -> None:
        if self.dag is None:
            return
        for node_id, node in self.dag.nodes.items():
            self.dag.nodes[node_id] = node.model_copy(update={"status": "idle"})

    def get_upstream_output(self, node_id: str, node_outputs: Dict[str, str]) -> Optional[str]:
        """
        Returns the output feeding a node: its last input reference if it has one,
        otherwise the output of its most recently declared direct predecessor.
        """
        if self.dag is None or node_id not in self.dag.nodes:
            return None

        node = self.dag.nodes[node_id]
        if node.input_refs:
            return self.resolver.resolve_ref(node.input_refs[-1], node_outputs, self.dag.node_list)

        predecessors = {e.source for e in self.dag.edges if e.target == node_id}
        for candidate in reversed(self.dag.node_list):
            if candidate.node_id in predecessors and candidate.node_id in node_outputs:
                return node_outputs[candidate.node_id]
        return None

    def get_downstream_nodes(self, node_id: str) -> List[str]:
        """Breadth-first closure of everything reachable from a node, excluding the node itself."""
        if self.dag is None:
            return []

        graph = self.topology.build_graph(self.dag)
        if node_id not in graph:
            return []
        return list(nx.bfs_tree(graph, node_id))[1:]


def _dump(update: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v.model_dump() if isinstance(v, BaseModel) else v for k, v in update.items()}
