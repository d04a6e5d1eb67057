# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_opal

import uuid
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from coreason_opal.core.manifest import NodeStatus, WorkflowDAG
from coreason_opal.events.protocol import ExecutionResult, LogEntry


class RunState(BaseModel):
    """
    Transient state of a single run, kept apart from the DAG so nothing leaks between runs.
    """

    model_config = ConfigDict(extra="forbid")

    run_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    node_outputs: Dict[str, str] = Field(default_factory=dict)
    node_status: Dict[str, NodeStatus] = Field(default_factory=dict)
    execution_order: List[str] = Field(default_factory=list)
    logs: List[LogEntry] = Field(default_factory=list)
    final_output: Optional[str] = None
    error: Optional[str] = None
    finished: bool = False

    @classmethod
    def start(cls, dag: WorkflowDAG, run_id: str | None = None) -> "RunState":
        """Creates a fresh state with every node idle."""
        state = cls(node_status={node_id: "idle" for node_id in dag.nodes})
        if run_id:
            state.run_id = run_id
        return state

    def mark(self, node_id: str, status: NodeStatus) -> None:
        self.node_status[node_id] = status

    def record(self, node_id: str, output: str) -> None:
        self.node_outputs[node_id] = output
        self.node_status[node_id] = "success"

    def fail(self, error: str, node_id: str | None = None) -> None:
        if node_id is not None:
            self.node_status[node_id] = "error"
        self.error = error
        self.finished = True

    def complete(self, final_output: Optional[str]) -> None:
        self.final_output = final_output
        self.finished = True

    @property
    def success(self) -> bool:
        return self.finished and self.error is None

    def to_result(self) -> ExecutionResult:
        return ExecutionResult(
            success=self.success,
            run_id=self.run_id,
            final_output=self.final_output if self.success else None,
            node_outputs=dict(self.node_outputs),
            node_status=dict(self.node_status),
            execution_order=list(self.execution_order),
            logs=list(self.logs),
            error=self.error,
        )
