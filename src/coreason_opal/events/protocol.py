# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_opal

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from coreason_opal.core.manifest import NodeStatus

LogLevel = Literal["info", "success", "error", "step"]


class LogEntry(BaseModel):
    """
    The atomic unit of communication between the Engine
    and whatever observes a run (UI console, CLI, Redis subscribers).
    """

    model_config = ConfigDict(extra="forbid")

    id: str
    timestamp: str
    level: LogLevel
    message: str
    node_id: Optional[str] = None
    data: Optional[Any] = None
    run_id: Optional[str] = None


class ExecutionResult(BaseModel):
    """
    Outcome of one run. Always returned, whether the run succeeded or not.
    """

    model_config = ConfigDict(extra="forbid")

    success: bool
    run_id: str
    final_output: Optional[str] = None
    node_outputs: Dict[str, str] = Field(default_factory=dict)
    node_status: Dict[str, NodeStatus] = Field(default_factory=dict)
    execution_order: List[str] = Field(default_factory=list)
    logs: List[LogEntry] = Field(default_factory=list)
    error: Optional[str] = None
