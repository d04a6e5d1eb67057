# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_opal

import asyncio
import os
import uuid
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

import redis.asyncio as redis
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from coreason_opal.core.interfaces import GenerationFailure, GenerationPort
from coreason_opal.core.manifest import WorkflowDAG, WorkflowNode, WorkflowPlanError
from coreason_opal.core.templates import DEFAULT_TEMPLATES, WorkflowTemplate
from coreason_opal.engine.resolver import resolve_references
from coreason_opal.engine.runner import WorkflowRunner
from coreason_opal.events.protocol import ExecutionResult
from coreason_opal.events.sink import AsyncEventSink, LoggingEventSink, RedisEventSink
from coreason_opal.infrastructure.server_defaults import default_generation_port
from coreason_opal.strategies.architect import WorkflowArchitect
from coreason_opal.utils.logger import logger


# --- Data Models ---
class GenerateWorkflowRequest(BaseModel):
    prompt: str
    max_steps: int = Field(default=6, ge=3)


class GenerateWorkflowResponse(BaseModel):
    success: bool
    dag: Optional[WorkflowDAG] = None
    error: Optional[str] = None


class ExecuteWorkflowRequest(BaseModel):
    dag: WorkflowDAG
    user_input: str


class PreviewRequest(BaseModel):
    template: str
    node_outputs: Dict[str, str] = Field(default_factory=dict)
    nodes: List[WorkflowNode] = Field(default_factory=list)


class StartExecutionResponse(BaseModel):
    execution_id: str
    status: str


# --- Global State ---
job_registry: Dict[str, Dict[str, Any]] = {}
redis_client: Optional[redis.Redis] = None
generation_port: Optional[GenerationPort] = None


@asynccontextmanager
async def lifespan(app: FastAPI) -> Any:
    # Startup
    global redis_client, generation_port
    redis_url = os.getenv("REDIS_URL", "redis://localhost:6379")
    try:
        redis_client = redis.from_url(redis_url, decode_responses=True)
    except Exception as e:
        logger.error(f"Failed to connect to Redis: {e}")
    generation_port = default_generation_port()

    yield

    # Shutdown
    if redis_client:
        await redis_client.aclose()


app = FastAPI(title="CoReason Opal", lifespan=lifespan)


def get_generation_port() -> GenerationPort:
    global generation_port
    if generation_port is None:
        generation_port = default_generation_port()
    return generation_port


def get_event_sink() -> AsyncEventSink:
    if redis_client:
        return RedisEventSink(redis_client)
    logger.warning("Redis client not available, using Logging sink")
    return LoggingEventSink()


@app.get("/health")  # type: ignore
async def health_check() -> Dict[str, str]:
    return {"status": "ok"}


@app.get("/workflow/templates", response_model=List[WorkflowTemplate])  # type: ignore
async def list_templates() -> List[WorkflowTemplate]:
    return DEFAULT_TEMPLATES


@app.post("/workflow/generate", response_model=GenerateWorkflowResponse)  # type: ignore
async def generate_workflow(req: GenerateWorkflowRequest) -> GenerateWorkflowResponse:
    if not req.prompt.strip():
        raise HTTPException(status_code=400, detail='Missing or invalid "prompt" field')

    architect = WorkflowArchitect(get_generation_port(), max_steps=req.max_steps)
    try:
        dag = await architect.generate(req.prompt)
    except (GenerationFailure, WorkflowPlanError) as e:
        logger.error(f"Workflow generation failed: {e}")
        raise HTTPException(status_code=502, detail=str(e)) from e

    return GenerateWorkflowResponse(success=True, dag=dag)


@app.post("/workflow/execute", response_model=ExecutionResult)  # type: ignore
async def execute_workflow(req: ExecuteWorkflowRequest) -> ExecutionResult:
    runner = WorkflowRunner(generator=get_generation_port(), sink=get_event_sink())
    return await runner.execute(req.dag, req.user_input)


@app.post("/workflow/preview")  # type: ignore
async def preview_prompt(req: PreviewRequest) -> Dict[str, str]:
    return {"prompt": resolve_references(req.template, req.node_outputs, req.nodes)}


async def run_workflow_background(execution_id: str, runner: WorkflowRunner, dag: WorkflowDAG, user_input: str) -> None:
    try:
        result = await runner.execute(dag, user_input, run_id=execution_id)
        logger.info(f"Workflow {execution_id} finished, success={result.success}")
    except Exception as e:
        logger.exception(f"Workflow {execution_id} failed: {e}")
    finally:
        # Cleanup
        if execution_id in job_registry:
            del job_registry[execution_id]


@app.post("/execution/start", response_model=StartExecutionResponse)  # type: ignore
async def start_execution(req: ExecuteWorkflowRequest) -> StartExecutionResponse:
    execution_id = str(uuid.uuid4())
    runner = WorkflowRunner(generator=get_generation_port(), sink=get_event_sink())

    # Store in Registry before the task can finish and clean up
    job_registry[execution_id] = {"status": "running", "task": None}
    task = asyncio.create_task(run_workflow_background(execution_id, runner, req.dag, req.user_input))
    job_registry[execution_id]["task"] = task

    return StartExecutionResponse(execution_id=execution_id, status="accepted")


@app.post("/execution/{execution_id}/cancel")  # type: ignore
async def cancel_execution(execution_id: str) -> Dict[str, str]:
    job = job_registry.get(execution_id)
    if not job:
        raise HTTPException(status_code=404, detail="Execution not found")

    task = job.get("task")
    if task:
        task.cancel()
        return {"status": "cancelled"}

    return {"status": "failed to cancel"}
