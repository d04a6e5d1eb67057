# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_opal

from typing import AsyncGenerator, Optional

from coreason_opal.core.interfaces import GenerationPort
from coreason_opal.core.manifest import WorkflowDAG
from coreason_opal.engine.handlers import NodeExecutor
from coreason_opal.engine.resolver import ReferenceResolver
from coreason_opal.engine.state import RunState
from coreason_opal.engine.topology import TopologyEngine, WorkflowValidationError
from coreason_opal.events.factory import LogFactory
from coreason_opal.events.protocol import ExecutionResult, LogEntry
from coreason_opal.events.sink import AsyncEventSink
from coreason_opal.utils.logger import logger


class WorkflowRunner:
    """
    The main execution engine that walks the DAG one node at a time.
    """

    def __init__(
        self,
        generator: GenerationPort | None = None,
        topology: TopologyEngine | None = None,
        sink: AsyncEventSink | None = None,
        enforce_terminals: bool = True,
    ) -> None:
        self.topology = topology or TopologyEngine()
        self.resolver = ReferenceResolver()
        self.executor = NodeExecutor(generator, self.resolver)
        self.sink = sink
        self.enforce_terminals = enforce_terminals

    async def run_workflow(
        self,
        dag: WorkflowDAG,
        user_input: str,
        state: RunState | None = None,
    ) -> AsyncGenerator[LogEntry, None]:
        """
        Executes the workflow and streams its log.

        Nodes run strictly one after another in topological order. A failing node stops the run;
        outputs and logs produced before it are kept in ``state``. Stopping iteration early means
        no further node is started.

        Args:
            dag: The workflow to run. It is never mutated.
            user_input: The text handed to the Input node.
            state: Run state to fill in. A fresh one is created when omitted.

        Yields:
            LogEntry: Log entries in emission order.
        """
        state = state or RunState.start(dag)
        run_id = state.run_id

        logger.info(f"Run {run_id}: starting workflow '{dag.name}' ({len(dag.nodes)} nodes)")
        yield await self._emit(state, LogFactory.create_run_start(run_id, dag.name))

        try:
            order = self.topology.get_execution_order(dag, enforce_terminals=self.enforce_terminals)
        except WorkflowValidationError as e:
            logger.warning(f"Run {run_id}: rejected before execution: {e}")
            state.fail(str(e))
            yield await self._emit(state, LogFactory.create_error(run_id, str(e)))
            return

        state.execution_order = [node.node_id for node in order]
        yield await self._emit(
            state, LogFactory.create_execution_order(run_id, [node.display_name for node in order])
        )

        nodes = dag.node_list
        for step, node in enumerate(order, start=1):
            yield await self._emit(
                state,
                LogFactory.create_node_start(run_id, step, node.node_id, node.node_type, node.display_name),
            )
            state.mark(node.node_id, "running")

            try:
                output = await self.executor.execute(node, state.node_outputs, nodes, user_input)
            except Exception as e:
                logger.error(f"Run {run_id}: node '{node.node_id}' failed: {e}")
                state.fail(str(e), node_id=node.node_id)
                yield await self._emit(state, LogFactory.create_error(run_id, str(e), node_id=node.node_id))
                return

            state.record(node.node_id, output)
            yield await self._emit(state, LogFactory.create_node_done(run_id, step, node.node_id, output))

        state.complete(self._final_output(dag, state))
        logger.info(f"Run {run_id}: completed")
        yield await self._emit(state, LogFactory.create_run_done(run_id))

    async def execute(self, dag: WorkflowDAG, user_input: str, run_id: str | None = None) -> ExecutionResult:
        """
        Runs the workflow to completion and returns the structured result. Never raises for run failures.
        """
        state = RunState.start(dag, run_id=run_id)
        async for _ in self.run_workflow(dag, user_input, state):
            pass
        return state.to_result()

    def _final_output(self, dag: WorkflowDAG, state: RunState) -> Optional[str]:
        output_nodes = dag.nodes_of_type("Output")
        if output_nodes and output_nodes[0].node_id in state.node_outputs:
            return state.node_outputs[output_nodes[0].node_id]
        if not state.node_outputs:
            return None
        # Lenient mode only: no Output node ran, fall back to the last produced value
        return list(state.node_outputs.values())[-1]

    async def _emit(self, state: RunState, entry: LogEntry) -> LogEntry:
        state.logs.append(entry)
        if self.sink is not None:
            try:
                await self.sink.emit(entry)
            except Exception as e:
                logger.warning(f"Run {state.run_id}: event sink failed: {e}")
        return entry


async def execute(
    dag: WorkflowDAG,
    user_input: str,
    generator: GenerationPort | None = None,
    sink: AsyncEventSink | None = None,
) -> ExecutionResult:
    """Convenience wrapper: one full run with a default runner."""
    return await WorkflowRunner(generator=generator, sink=sink).execute(dag, user_input)
