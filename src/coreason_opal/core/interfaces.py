# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_opal

from typing import Any, Dict, Optional, Protocol


class GenerationFailure(Exception):
    """Raised by a Generation Port when the external call errors or yields no usable content."""

    def __init__(self, message: str, status: Optional[int] = None, detail: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.detail = detail

    def __str__(self) -> str:
        text = self.message
        if self.status is not None:
            text = f"{text} (status {self.status})"
        if self.detail:
            text = f"{text} - {self.detail}"
        return text


class GenerationPort(Protocol):
    """
    Interface for the text generation capability backing AI nodes.
    """

    async def generate(self, prompt: str, config: Optional[Dict[str, Any]] = None) -> str:
        """
        Generates text for the prompt.

        Args:
            prompt: The fully resolved prompt.
            config: Optional model settings from the node (model, temperature, maxTokens).

        Returns:
            The generated text.

        Raises:
            GenerationFailure: If the call fails or returns nothing usable.
        """
        ...
