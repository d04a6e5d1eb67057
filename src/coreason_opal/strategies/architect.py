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
from typing import Any, Dict

from coreason_opal.core.interfaces import GenerationPort
from coreason_opal.core.manifest import WorkflowDAG, WorkflowPlanError
from coreason_opal.utils.logger import logger

ARCHITECT_PROMPT = """You are the Opal-Lite Architect Agent. Your job is to translate natural language app ideas \
into a JSON Directed Acyclic Graph (DAG) workflow.

Available node types:
- Input: Captures initial user input (always the first node)
- Process: Passes data along unchanged (formatting placeholder)
- AI: Processes data using AI generation with a prompt template
- Output: Displays the final result (always the last node)

Rules:
1. Every workflow MUST start with exactly one Input node and end with exactly one Output node
2. Use @Step1, @Step2 etc. or @<node_id> in prompt_template to reference previous node outputs
3. Break complex tasks into logical steps (3-{max_steps} nodes is ideal)
4. Each AI node should do ONE specific task

Example output format:
{{
  "id": "workflow_123",
  "name": "Quiz Generator",
  "nodes": [
    {{"node_id": "step_1", "node_type": "Input", "input_refs": [], "label": "Enter Topic"}},
    {{"node_id": "step_2", "node_type": "AI", "input_refs": ["@Step1"], "label": "Generate Questions",
      "prompt_template": "Create 5 quiz questions about: @Step1"}},
    {{"node_id": "step_3", "node_type": "Output", "input_refs": ["@Step2"], "label": "Display Quiz"}}
  ],
  "edges": [
    {{"id": "e1-2", "source": "step_1", "target": "step_2"}},
    {{"id": "e2-3", "source": "step_2", "target": "step_3"}}
  ]
}}

User's app idea: "{idea}"

Output ONLY valid JSON, no markdown code blocks, no explanation:"""

# Low temperature keeps the JSON shape stable
ARCHITECT_CONFIG: Dict[str, Any] = {"role": "architect", "temperature": 0.3, "maxTokens": 2048}


def strip_code_fences(text: str) -> str:
    """Removes a surrounding markdown code block, if any."""
    clean = text.strip()
    if clean.startswith("```json"):
        clean = clean[7:]
    elif clean.startswith("```"):
        clean = clean[3:]
    if clean.endswith("```"):
        clean = clean[:-3]
    return clean.strip()


class WorkflowArchitect:
    """Turns a natural-language app idea into a WorkflowDAG using the Generation Port."""

    def __init__(self, generator: GenerationPort, max_steps: int = 6) -> None:
        """Initializes the WorkflowArchitect.

        Args:
            generator: The generation capability used to draft the plan.
            max_steps: Upper bound on the suggested number of nodes.
        """
        self.generator = generator
        self.max_steps = max_steps

    async def generate(self, idea: str) -> WorkflowDAG:
        """Drafts a workflow for the idea.

        Args:
            idea: The user's description of the app.

        Returns:
            WorkflowDAG: The parsed, default-filled DAG.

        Raises:
            ValueError: If the idea is blank.
            GenerationFailure: If the generation call fails.
            WorkflowPlanError: If the response is not a usable workflow plan.
        """
        if not idea or not idea.strip():
            raise ValueError("An app idea is required")

        prompt = ARCHITECT_PROMPT.format(idea=idea.strip(), max_steps=self.max_steps)
        raw = await self.generator.generate(prompt, dict(ARCHITECT_CONFIG))
        return self.parse(raw)

    def parse(self, raw: str) -> WorkflowDAG:
        json_text = strip_code_fences(raw)
        try:
            data = json.loads(json_text)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse DAG JSON: {json_text[:500]}")
            raise WorkflowPlanError("Failed to parse workflow DAG from generation response") from e

        dag = WorkflowDAG.from_plan(data)
        logger.info(f"Architect produced workflow '{dag.name}' with {len(dag.nodes)} nodes")
        return dag
