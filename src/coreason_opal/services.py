# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_opal

import os
from typing import Any, Dict, Optional

import httpx

from coreason_opal.core.interfaces import GenerationFailure
from coreason_opal.utils.logger import logger


class RemoteGenerationPort:
    """
    Generation Port that calls a text generation service over HTTP.

    The service receives ``{"prompt": ..., "config": ...}`` at ``/generate`` and answers with
    ``{"content": ...}``. Adapting a specific model vendor is the service's job.
    """

    def __init__(self, base_url: str | None = None, timeout: float | None = None) -> None:
        self.base_url = (base_url or os.getenv("GENERATION_URL") or "").rstrip("/")
        self.timeout = timeout if timeout is not None else float(os.getenv("GENERATION_TIMEOUT", "60"))
        if not self.base_url:
            logger.warning("GENERATION_URL not set for RemoteGenerationPort")

    async def generate(self, prompt: str, config: Optional[Dict[str, Any]] = None) -> str:
        """Generates text via HTTP."""
        if not self.base_url:
            raise GenerationFailure("GENERATION_URL is not configured")

        async with httpx.AsyncClient() as client:
            try:
                resp = await client.post(
                    f"{self.base_url}/generate",
                    json={"prompt": prompt, "config": config or {}},
                    timeout=self.timeout,
                )
                resp.raise_for_status()
                data = resp.json()
            except httpx.HTTPStatusError as e:
                logger.error(f"Generation service returned {e.response.status_code}: {e.response.text}")
                raise GenerationFailure(
                    "Generation service error", status=e.response.status_code, detail=e.response.text
                ) from e
            except httpx.HTTPError as e:
                logger.error(f"Could not reach generation service: {e}")
                raise GenerationFailure("Could not reach generation service", detail=str(e)) from e
            except ValueError as e:
                raise GenerationFailure("Generation service returned invalid JSON", detail=str(e)) from e

        content = data.get("content") if isinstance(data, dict) else None
        if not isinstance(content, str) or not content.strip():
            raise GenerationFailure("No response from generation service", status=resp.status_code)
        return content
