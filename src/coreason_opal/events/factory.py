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
from typing import Any, Optional

from coreason_opal.core.manifest import utc_now_iso
from coreason_opal.events.protocol import LogEntry, LogLevel

PREVIEW_LENGTH = 100


def preview(output: Any, limit: int = PREVIEW_LENGTH) -> str:
    """Truncates an output for display in a log entry."""
    text = str(output)
    if len(text) > limit:
        return text[:limit] + "..."
    return text


class LogFactory:
    """
    Factory for creating standardized LogEntries.
    Reduces boilerplate in the runner.
    """

    @staticmethod
    def create(
        run_id: str,
        level: LogLevel,
        message: str,
        node_id: Optional[str] = None,
        data: Optional[Any] = None,
    ) -> LogEntry:
        return LogEntry(
            id=f"log_{uuid.uuid4().hex[:12]}",
            timestamp=utc_now_iso(),
            level=level,
            message=message,
            node_id=node_id,
            data=data,
            run_id=run_id,
        )

    @staticmethod
    def create_run_start(run_id: str, dag_name: str) -> LogEntry:
        return LogFactory.create(run_id, "info", f'Starting execution of "{dag_name}"')

    @staticmethod
    def create_execution_order(run_id: str, names: list[str]) -> LogEntry:
        return LogFactory.create(run_id, "info", f"Execution order: {' → '.join(names)}")

    @staticmethod
    def create_node_start(run_id: str, step: int, node_id: str, node_type: str, name: str) -> LogEntry:
        return LogFactory.create(run_id, "step", f'Step {step}: Executing {node_type} "{name}"', node_id=node_id)

    @staticmethod
    def create_node_done(run_id: str, step: int, node_id: str, output: str) -> LogEntry:
        return LogFactory.create(run_id, "success", f"Step {step} completed", node_id=node_id, data=preview(output))

    @staticmethod
    def create_run_done(run_id: str) -> LogEntry:
        return LogFactory.create(run_id, "success", "Workflow execution completed!")

    @staticmethod
    def create_error(run_id: str, error: str, node_id: Optional[str] = None) -> LogEntry:
        return LogFactory.create(run_id, "error", f"Execution failed: {error}", node_id=node_id)
