# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_opal

from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict

from coreason_opal.core.manifest import WorkflowDAG


class WorkflowTemplate(BaseModel):
    """A ready-made workflow offered as a quick start."""

    model_config = ConfigDict(extra="forbid")

    id: str
    name: str
    description: str
    icon: str
    dag: WorkflowDAG


def _node(node_id: str, node_type: str, label: str, x: float, y: float = 200.0, **extra: Any) -> Dict[str, Any]:
    return {
        "node_id": node_id,
        "node_type": node_type,
        "label": label,
        "input_refs": extra.pop("input_refs", []),
        "status": "idle",
        "position": {"x": x, "y": y},
        **extra,
    }


def _chain(*node_ids: str) -> List[Dict[str, Any]]:
    return [
        {"id": f"e{i + 1}", "source": src, "target": dst, "type": "data"}
        for i, (src, dst) in enumerate(zip(node_ids, node_ids[1:], strict=False))
    ]


_TEMPLATE_DATA: List[Dict[str, Any]] = [
    {
        "id": "quiz-generator",
        "name": "Quiz Generator",
        "description": "Generate quizzes on any topic",
        "icon": "📝",
        "dag": {
            "id": "template_quiz",
            "name": "Quiz Generator",
            "nodes": [
                _node("input_1", "Input", "Topic Input", 100, config={"inputType": "text"}),
                _node(
                    "ai_1",
                    "AI",
                    "Generate Questions",
                    400,
                    input_refs=["@input_1"],
                    prompt_template=(
                        "Generate 5 multiple-choice quiz questions about: @input_1. "
                        "Return purely valid JSON with this structure: "
                        '{ "questions": [{ "question": "...", "options": ["Option A", "Option B", "Option C", '
                        '"Option D"], "answer": "Correct Option string" }] }'
                    ),
                    config={"model": "default"},
                ),
                _node("output_1", "Output", "Quiz Output", 700, input_refs=["@ai_1"], config={"outputFormat": "quiz_json"}),
            ],
            "edges": _chain("input_1", "ai_1", "output_1"),
        },
    },
    {
        "id": "research-assistant",
        "name": "Research Assistant",
        "description": "Research and summarize topics",
        "icon": "🔍",
        "dag": {
            "id": "template_research",
            "name": "Research Assistant",
            "nodes": [
                _node("input_1", "Input", "Research Topic", 100, config={"inputType": "text"}),
                _node(
                    "ai_1",
                    "AI",
                    "Research",
                    350,
                    100,
                    input_refs=["@input_1"],
                    prompt_template="Research the following topic in depth: @input_1",
                    config={"model": "default"},
                ),
                _node(
                    "ai_2",
                    "AI",
                    "Summarize",
                    600,
                    input_refs=["@ai_1"],
                    prompt_template="Summarize the following research: @ai_1",
                    config={"model": "default"},
                ),
                _node("output_1", "Output", "Summary", 850, input_refs=["@ai_2"], config={"outputFormat": "markdown"}),
            ],
            "edges": _chain("input_1", "ai_1", "ai_2", "output_1"),
        },
    },
    {
        "id": "content-creator",
        "name": "Content Creator",
        "description": "Generate and format content",
        "icon": "✍️",
        "dag": {
            "id": "template_content",
            "name": "Content Creator",
            "nodes": [
                _node("input_1", "Input", "Content Brief", 100, config={"inputType": "text"}),
                _node(
                    "ai_1",
                    "AI",
                    "Draft Content",
                    350,
                    input_refs=["@input_1"],
                    prompt_template="Create content based on: @input_1",
                    config={"model": "default"},
                ),
                _node(
                    "process_1", "Process", "Format", 600, input_refs=["@ai_1"], config={"processType": "transform"}
                ),
                _node("output_1", "Output", "Final Content", 850, input_refs=["@process_1"], config={"outputFormat": "text"}),
            ],
            "edges": _chain("input_1", "ai_1", "process_1", "output_1"),
        },
    },
]

DEFAULT_TEMPLATES: List[WorkflowTemplate] = [WorkflowTemplate.model_validate(data) for data in _TEMPLATE_DATA]


def get_template(template_id: str) -> WorkflowDAG:
    """
    Returns a fresh copy of a template's DAG so callers can edit it freely.

    Raises:
        KeyError: If no template has the given id.
    """
    for template in DEFAULT_TEMPLATES:
        if template.id == template_id:
            return template.dag.model_copy(deep=True)
    raise KeyError(f"Unknown workflow template '{template_id}'")
