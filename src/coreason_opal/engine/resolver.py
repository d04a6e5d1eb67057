# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_opal

import re
from typing import Dict, List, Optional, Sequence

from coreason_opal.core.manifest import WorkflowNode

# @Step1, @step2, ... (1-based index into declaration order)
STEP_PATTERN = re.compile(r"@step(\d+)", re.IGNORECASE)
# Anything that looks like a reference, used for previews
REFERENCE_PATTERN = re.compile(r"@([\w\-]+)")


class ReferenceResolver:
    """
    Handles resolution of @Step<N> and @<node_id> references in templates.
    """

    def resolve(self, template: str, node_outputs: Dict[str, str], nodes: Sequence[WorkflowNode]) -> str:
        """
        Replaces every resolvable reference with the referenced node's output.

        Positional references take precedence over named ones. Unresolvable references are left as-is.
        The template is scanned once, so substituted outputs are never re-scanned.
        """
        pattern = self._build_pattern(node_outputs)

        def replace_match(match: re.Match[str]) -> str:
            step = match.group("step")
            if step is not None:
                value = self._resolve_step(int(step), node_outputs, nodes)
                if value is not None:
                    return value
                # Out of range or not produced yet; a node may still literally be named Step<N>
                return node_outputs.get(match.group(0)[1:], match.group(0))
            return node_outputs.get(match.group("name"), match.group(0))

        return pattern.sub(replace_match, template)

    def resolve_ref(self, ref: str, node_outputs: Dict[str, str], nodes: Sequence[WorkflowNode]) -> Optional[str]:
        """
        Resolves a single reference such as "@Step2", "step2", "@ai_1" or "ai_1".

        Returns:
            The referenced output, or None if it cannot be resolved.
        """
        clean_ref = ref.strip()
        if clean_ref.startswith("@"):
            clean_ref = clean_ref[1:]

        step_match = re.fullmatch(r"step(\d+)", clean_ref, re.IGNORECASE)
        if step_match:
            value = self._resolve_step(int(step_match.group(1)), node_outputs, nodes)
            if value is not None:
                return value

        return node_outputs.get(clean_ref)

    def find_references(self, template: str) -> List[str]:
        """Lists the references mentioned in a template, in order of first appearance."""
        seen: List[str] = []
        for match in REFERENCE_PATTERN.finditer(template):
            ref = match.group(0)
            if ref not in seen:
                seen.append(ref)
        return seen

    def _resolve_step(self, step: int, node_outputs: Dict[str, str], nodes: Sequence[WorkflowNode]) -> Optional[str]:
        index = step - 1
        if 0 <= index < len(nodes):
            return node_outputs.get(nodes[index].node_id)
        return None

    def _build_pattern(self, node_outputs: Dict[str, str]) -> re.Pattern[str]:
        # Longest ids first so @ai_10 is not consumed as @ai_1 + "0"
        names = sorted(node_outputs, key=len, reverse=True)
        if not names:
            return re.compile(r"@(?i:step)(?P<step>\d+)")
        alternation = "|".join(re.escape(name) for name in names)
        return re.compile(rf"@(?:(?i:step)(?P<step>\d+)|(?P<name>{alternation})(?![\w\-]))")


_default_resolver = ReferenceResolver()


def resolve_references(template: str, node_outputs: Dict[str, str], nodes: Sequence[WorkflowNode]) -> str:
    """Resolves all references in a template against the outputs produced so far."""
    return _default_resolver.resolve(template, node_outputs, nodes)
