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

from coreason_opal.events.factory import PREVIEW_LENGTH, LogFactory, preview


def test_preview_truncates_long_output() -> None:
    text = "x" * (PREVIEW_LENGTH + 1)
    assert preview(text) == "x" * PREVIEW_LENGTH + "..."
    assert preview("x" * PREVIEW_LENGTH) == "x" * PREVIEW_LENGTH
    assert preview(42) == "42"


def test_log_entry_shape() -> None:
    entry = LogFactory.create("run-1", "info", "hello")
    assert re.fullmatch(r"log_[0-9a-f]{12}", entry.id)
    assert entry.run_id == "run-1"
    assert entry.node_id is None
    assert entry.timestamp.endswith("+00:00")


def test_log_ids_are_unique() -> None:
    assert len({LogFactory.create("r", "info", "m").id for _ in range(50)}) == 50


def test_standard_messages() -> None:
    assert LogFactory.create_run_start("r", "Quiz").message == 'Starting execution of "Quiz"'
    assert LogFactory.create_execution_order("r", ["A", "B"]).message == "Execution order: A → B"

    start = LogFactory.create_node_start("r", 2, "ai", "AI", "Draft")
    assert (start.level, start.message, start.node_id) == ("step", 'Step 2: Executing AI "Draft"', "ai")

    done = LogFactory.create_node_done("r", 2, "ai", "y" * 150)
    assert (done.level, done.message) == ("success", "Step 2 completed")
    assert done.data == "y" * 100 + "..."

    assert LogFactory.create_run_done("r").message == "Workflow execution completed!"

    error = LogFactory.create_error("r", "boom", node_id="ai")
    assert (error.level, error.message, error.node_id) == ("error", "Execution failed: boom", "ai")
