# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_opal

from typing import Dict, Optional, Protocol, Sequence

from coreason_opal.core.interfaces import GenerationFailure, GenerationPort
from coreason_opal.core.manifest import NodeType, WorkflowNode
from coreason_opal.engine.resolver import ReferenceResolver
from coreason_opal.utils.logger import logger

NO_OUTPUT_AVAILABLE = "No output available"
NO_OUTPUT = "No output"


class NodeHandler(Protocol):
    """
    Interface for handling execution of a specific node type.
    """

    async def execute(
        self,
        node: WorkflowNode,
        node_outputs: Dict[str, str],
        nodes: Sequence[WorkflowNode],
        user_input: str,
    ) -> str:
        """
        Executes the node logic.

        Args:
            node: The node to execute.
            node_outputs: Outputs produced so far in this run, keyed by node id.
            nodes: All nodes of the DAG in declaration order.
            user_input: The text the run was started with.

        Returns:
            The output of the node execution.
        """
        ...


class InputNodeHandler:
    async def execute(
        self,
        node: WorkflowNode,
        node_outputs: Dict[str, str],
        nodes: Sequence[WorkflowNode],
        user_input: str,
    ) -> str:
        return user_input


class ProcessNodeHandler:
    """Pass-through of the node's most recent input. Register a replacement handler for real transforms."""

    def __init__(self, resolver: ReferenceResolver | None = None) -> None:
        self.resolver = resolver or ReferenceResolver()

    async def execute(
        self,
        node: WorkflowNode,
        node_outputs: Dict[str, str],
        nodes: Sequence[WorkflowNode],
        user_input: str,
    ) -> str:
        if node.input_refs:
            value = self.resolver.resolve_ref(node.input_refs[-1], node_outputs, nodes)
            return value if value is not None else NO_OUTPUT_AVAILABLE

        if node_outputs:
            # Dicts keep insertion order, which is execution order here
            return list(node_outputs.values())[-1]
        return user_input


class AINodeHandler:
    def __init__(self, generator: GenerationPort | None, resolver: ReferenceResolver | None = None) -> None:
        self.generator = generator
        self.resolver = resolver or ReferenceResolver()

    async def execute(
        self,
        node: WorkflowNode,
        node_outputs: Dict[str, str],
        nodes: Sequence[WorkflowNode],
        user_input: str,
    ) -> str:
        if self.generator is None:
            raise GenerationFailure("No generation capability configured")

        if node.prompt_template:
            prompt = self.resolver.resolve(node.prompt_template, node_outputs, nodes)
        else:
            prompt = user_input

        logger.debug(f"AI node '{node.node_id}' prompt: {prompt[:200]}")
        text = await self.generator.generate(prompt, dict(node.config))

        if not isinstance(text, str) or not text.strip():
            raise GenerationFailure("Generation returned no usable content")
        return text


class OutputNodeHandler:
    def __init__(self, resolver: ReferenceResolver | None = None) -> None:
        self.resolver = resolver or ReferenceResolver()

    async def execute(
        self,
        node: WorkflowNode,
        node_outputs: Dict[str, str],
        nodes: Sequence[WorkflowNode],
        user_input: str,
    ) -> str:
        if node.input_refs:
            value = self.resolver.resolve_ref(node.input_refs[-1], node_outputs, nodes)
            return value if value is not None else NO_OUTPUT_AVAILABLE

        upstream = [n for n in nodes if n.node_type != "Output"]
        if not upstream:
            return NO_OUTPUT
        return node_outputs.get(upstream[-1].node_id, NO_OUTPUT_AVAILABLE)


class NodeExecutor:
    """
    Produces one node's output by delegating to the handler registered for its type.
    """

    def __init__(self, generator: GenerationPort | None = None, resolver: ReferenceResolver | None = None) -> None:
        self.resolver = resolver or ReferenceResolver()
        self.handlers: Dict[str, NodeHandler] = {
            "Input": InputNodeHandler(),
            "Process": ProcessNodeHandler(self.resolver),
            "AI": AINodeHandler(generator, self.resolver),
            "Output": OutputNodeHandler(self.resolver),
        }

    def register(self, node_type: NodeType, handler: NodeHandler) -> None:
        self.handlers[node_type] = handler

    def get_handler(self, node_type: str) -> Optional[NodeHandler]:
        return self.handlers.get(node_type)

    async def execute(
        self,
        node: WorkflowNode,
        node_outputs: Dict[str, str],
        nodes: Sequence[WorkflowNode],
        user_input: str,
    ) -> str:
        handler = self.get_handler(node.node_type)
        if handler is None:
            raise ValueError(f"No handler registered for node type '{node.node_type}'")
        return await handler.execute(node=node, node_outputs=node_outputs, nodes=nodes, user_input=user_input)
