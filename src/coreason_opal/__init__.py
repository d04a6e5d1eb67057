# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_opal

"""
Opal-Lite workflow engine: typed node graphs, reference resolution and sequential execution.
"""

from coreason_opal.core.interfaces import GenerationFailure, GenerationPort
from coreason_opal.core.manifest import WorkflowDAG, WorkflowEdge, WorkflowNode, WorkflowPlanError
from coreason_opal.engine.builder import EdgeVerdict, GraphBuilder
from coreason_opal.engine.handlers import NodeExecutor
from coreason_opal.engine.resolver import ReferenceResolver, resolve_references
from coreason_opal.engine.runner import WorkflowRunner, execute
from coreason_opal.engine.topology import CyclicGraphError, GraphIntegrityError, TopologyEngine
from coreason_opal.events.protocol import ExecutionResult, LogEntry

__version__ = "0.1.0"

__all__ = [
    "CyclicGraphError",
    "EdgeVerdict",
    "ExecutionResult",
    "GenerationFailure",
    "GenerationPort",
    "GraphBuilder",
    "GraphIntegrityError",
    "LogEntry",
    "NodeExecutor",
    "ReferenceResolver",
    "TopologyEngine",
    "WorkflowDAG",
    "WorkflowEdge",
    "WorkflowNode",
    "WorkflowPlanError",
    "WorkflowRunner",
    "execute",
    "resolve_references",
]
