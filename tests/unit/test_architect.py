# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_opal

import json
from typing import Any, Callable

import pytest

from coreason_opal.core.interfaces import GenerationFailure
from coreason_opal.core.manifest import WorkflowPlanError
from coreason_opal.strategies.architect import ARCHITECT_CONFIG, WorkflowArchitect, strip_code_fences

PLAN = {
    "id": "workflow_1",
    "name": "Quiz Generator",
    "nodes": [
        {"node_id": "step_1", "node_type": "UserInput", "label": "Enter Topic"},
        {"node_id": "step_2", "node_type": "AIGenerate", "prompt_template": "Quiz on @Step1"},
        {"node_id": "step_3", "node_type": "Output", "input_refs": ["@Step2"]},
    ],
}


@pytest.mark.parametrize(  # type: ignore
    "raw, expected",
    [
        ('```json\n{"a": 1}\n```', '{"a": 1}'),
        ('```\n{"a": 1}\n```', '{"a": 1}'),
        ('  {"a": 1}  ', '{"a": 1}'),
    ],
)
def test_strip_code_fences(raw: str, expected: str) -> None:
    assert strip_code_fences(raw) == expected


@pytest.mark.asyncio  # type: ignore
async def test_generate_builds_dag_from_fenced_plan(generator_factory: Callable[..., Any]) -> None:
    generator = generator_factory(reply=f"```json\n{json.dumps(PLAN)}\n```")
    architect = WorkflowArchitect(generator, max_steps=5)

    dag = await architect.generate("  a quiz app  ")

    assert dag.name == "Quiz Generator"
    assert [n.node_type for n in dag.node_list] == ["Input", "AI", "Output"]
    assert [(e.source, e.target) for e in dag.edges] == [("step_1", "step_2"), ("step_2", "step_3")]
    assert dag.nodes["step_2"].label == "step_2"

    prompt = generator.prompts[0]
    assert 'User\'s app idea: "a quiz app"' in prompt
    assert "3-5 nodes" in prompt
    assert generator.configs[0] == ARCHITECT_CONFIG


@pytest.mark.asyncio  # type: ignore
@pytest.mark.parametrize("idea", ["", "   "])  # type: ignore
async def test_generate_rejects_blank_idea(idea: str, generator_factory: Callable[..., Any]) -> None:
    generator = generator_factory()
    with pytest.raises(ValueError):
        await WorkflowArchitect(generator).generate(idea)
    assert generator.prompts == []


@pytest.mark.asyncio  # type: ignore
async def test_generate_propagates_generation_failure(generator_factory: Callable[..., Any]) -> None:
    generator = generator_factory(fail_on="app idea")
    with pytest.raises(GenerationFailure):
        await WorkflowArchitect(generator).generate("anything")


@pytest.mark.parametrize(  # type: ignore
    "raw",
    [
        "I could not think of a workflow",
        "[1, 2, 3]",
        '{"name": "no nodes"}',
        '{"nodes": [{"node_id": "a", "node_type": "Teleport"}]}',
    ],
)
def test_parse_rejects_unusable_plans(raw: str, stub_generator: Any) -> None:
    with pytest.raises(WorkflowPlanError):
        WorkflowArchitect(stub_generator).parse(raw)
