# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_opal

from typing import Dict, List, Set

import networkx as nx

from coreason_opal.core.manifest import WorkflowDAG, WorkflowNode
from coreason_opal.utils.logger import logger


class WorkflowValidationError(Exception):
    """Base class for structural problems that prevent a run from starting."""

    pass


class CyclicGraphError(WorkflowValidationError):
    """Raised when the graph contains a cycle."""

    def __init__(self, excluded_nodes: List[str]) -> None:
        self.excluded_nodes = excluded_nodes
        super().__init__(
            f"The workflow graph contains a cycle; these nodes can never run: {', '.join(excluded_nodes)}"
        )


class GraphIntegrityError(WorkflowValidationError):
    """Raised when the graph has integrity issues (e.g., a missing or second Input/Output node)."""

    pass


class TopologyEngine:
    """Responsible for validating the graph topology and determining execution order."""

    def build_graph(self, dag: WorkflowDAG) -> nx.DiGraph:
        """Builds a NetworkX DiGraph from the WorkflowDAG.

        Edges whose endpoints are not nodes of the DAG are ignored.

        Args:
            dag: The WorkflowDAG object.

        Returns:
            nx.DiGraph: The graph, with each node's declaration index stored as ``index``.
        """
        graph = nx.DiGraph(name=dag.name)

        for index, node in enumerate(dag.node_list):
            graph.add_node(node.node_id, type=node.node_type, index=index)

        for edge in dag.edges:
            if edge.source not in dag.nodes or edge.target not in dag.nodes:
                logger.warning(f"Ignoring edge '{edge.id}': {edge.source} -> {edge.target} references an unknown node")
                continue
            graph.add_edge(edge.source, edge.target, id=edge.id, type=edge.type)

        return graph

    def validate_graph(self, graph: nx.DiGraph) -> None:
        """Validates that the graph is acyclic.

        Args:
            graph: The NetworkX DiGraph to validate.

        Raises:
            CyclicGraphError: If the graph contains a cycle.
        """
        if not nx.is_directed_acyclic_graph(graph):
            excluded = self.find_blocked_nodes(graph)
            raise CyclicGraphError(excluded)

    def validate_terminals(self, dag: WorkflowDAG) -> None:
        """Checks that the DAG has exactly one Input node and exactly one Output node.

        Raises:
            GraphIntegrityError: If either count is not exactly one.
        """
        for node_type in ("Input", "Output"):
            count = len(dag.nodes_of_type(node_type))
            if count != 1:
                raise GraphIntegrityError(
                    f"A workflow needs exactly one {node_type} node, found {count}."
                )

    def find_blocked_nodes(self, graph: nx.DiGraph) -> List[str]:
        """Returns the nodes that never reach zero in-degree: cycle members and everything downstream of them.

        The result is ordered by declaration index.
        """
        blocked: Set[str] = set(nx.nodes_with_selfloops(graph))
        for component in nx.strongly_connected_components(graph):
            if len(component) > 1:
                blocked |= component

        for node_id in list(blocked):
            blocked |= nx.descendants(graph, node_id)

        return sorted(blocked, key=lambda n: graph.nodes[n].get("index", 0))

    def get_execution_order(self, dag: WorkflowDAG, enforce_terminals: bool = True) -> List[WorkflowNode]:
        """Returns the nodes in a valid topological order.

        Among nodes that are ready at the same time, the one declared first runs first.

        Args:
            dag: The WorkflowDAG.
            enforce_terminals: Whether to require exactly one Input and one Output node.

        Returns:
            List[WorkflowNode]: Every node of the DAG, each after all of its predecessors.

        Raises:
            CyclicGraphError: If the graph contains a cycle.
            GraphIntegrityError: If enforce_terminals is set and the Input/Output counts are wrong.
        """
        if enforce_terminals:
            self.validate_terminals(dag)

        graph = self.build_graph(dag)
        self.validate_graph(graph)

        index: Dict[str, int] = {node_id: data["index"] for node_id, data in graph.nodes(data=True)}
        try:
            ordered_ids = list(nx.lexicographical_topological_sort(graph, key=lambda n: index[n]))
        except nx.NetworkXUnfeasible as e:
            raise CyclicGraphError(self.find_blocked_nodes(graph)) from e

        return [dag.nodes[node_id] for node_id in ordered_ids]
