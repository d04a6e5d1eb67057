# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_opal

from typing import Any, Callable, Dict, List, Optional

import pytest

from coreason_opal.core.interfaces import GenerationFailure
from coreason_opal.core.manifest import WorkflowDAG


class StubGenerationPort:
    """Generation Port test double: fixed reply, optional failure, records every prompt."""

    def __init__(
        self,
        reply: str | Callable[[str], str] = "GENERATED",
        fail_on: Optional[str] = None,
    ) -> None:
        self.reply = reply
        self.fail_on = fail_on
        self.prompts: List[str] = []
        self.configs: List[Dict[str, Any]] = []

    async def generate(self, prompt: str, config: Optional[Dict[str, Any]] = None) -> str:
        self.prompts.append(prompt)
        self.configs.append(config or {})
        if self.fail_on is not None and self.fail_on in prompt:
            raise GenerationFailure("Upstream model error", status=500, detail="boom")
        if callable(self.reply):
            return self.reply(prompt)
        return self.reply


def make_chain(node_types: List[str], **overrides: Dict[str, Any]) -> WorkflowDAG:
    """Builds a linear DAG n1 -> n2 -> ... with the given node types; overrides are keyed by node id."""
    nodes = []
    for i, node_type in enumerate(node_types, start=1):
        node: Dict[str, Any] = {"node_id": f"n{i}", "node_type": node_type, "label": f"Node {i}"}
        if node_type == "AI":
            node["prompt_template"] = f"Step {i} on: @n{i - 1}"
        node.update(overrides.get(f"n{i}", {}))
        nodes.append(node)
    edges = [{"id": f"e{i}", "source": f"n{i}", "target": f"n{i + 1}"} for i in range(1, len(node_types))]
    return WorkflowDAG(id="chain", name="Chain", nodes=nodes, edges=edges)


@pytest.fixture
def stub_generator() -> StubGenerationPort:
    return StubGenerationPort(reply="HELLO WORLD SUMMARY")


@pytest.fixture
def summary_dag() -> WorkflowDAG:
    return WorkflowDAG(
        id="wf_summary",
        name="Summarizer",
        nodes=[
            {"node_id": "in1", "node_type": "Input", "label": "Text"},
            {
                "node_id": "ai1",
                "node_type": "AI",
                "label": "Summarize",
                "input_refs": ["@in1"],
                "prompt_template": "Summarize: @in1",
            },
            {"node_id": "out1", "node_type": "Output", "label": "Result", "input_refs": ["@ai1"]},
        ],
        edges=[
            {"id": "e1", "source": "in1", "target": "ai1"},
            {"id": "e2", "source": "ai1", "target": "out1"},
        ],
    )


@pytest.fixture
def chain_factory() -> Callable[..., WorkflowDAG]:
    return make_chain


@pytest.fixture
def generator_factory() -> Callable[..., StubGenerationPort]:
    return StubGenerationPort
