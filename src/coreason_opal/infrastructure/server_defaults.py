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

from coreason_opal.core.interfaces import GenerationPort
from coreason_opal.services import RemoteGenerationPort
from coreason_opal.utils.logger import logger


class EchoGenerationPort:
    """Local stand-in used when no generation service is configured."""

    async def generate(self, prompt: str, config: Optional[Dict[str, Any]] = None) -> str:
        logger.info(f"Echo generation for prompt: {prompt[:50]}...")
        return f"Processed: {prompt}"


def default_generation_port() -> GenerationPort:
    """Returns the remote port when GENERATION_URL is set, otherwise the echo port."""
    if os.getenv("GENERATION_URL"):
        return RemoteGenerationPort()
    logger.warning("GENERATION_URL not set, AI nodes will echo their prompts")
    return EchoGenerationPort()
