"""
Execution Manager.

Creates an ExecutionEngine per run and keeps a bounded registry of runs so
they can be looked up, listed and cancelled while (and shortly after) they
execute.
"""

from typing import Any, Dict, List, Optional
from datetime import datetime, timedelta
import asyncio
import uuid
import logging

from nodeflow.config import settings
from nodeflow.engine.errors import ExecutionCapacityError
from nodeflow.engine.executor import ExecutionEngine, ExecutionResult
from nodeflow.engine.types import ExecutionStatus, WorkflowDefinition
from nodeflow.nodes.factory import NodeFactory
from nodeflow.services.base import Services
from nodeflow.storage.memory import ExecutionStorage


logger = logging.getLogger(__name__)


class ExecutionManager:
    """
    Registry of workflow runs.

    Runs are registered before they start, so a caller can cancel a run
    that is still executing. Finished runs are kept until they expire
    (``ttl_seconds``) or are evicted to make room (``max_executions``).

    Usage:
        manager = ExecutionManager(services=services)
        result = await manager.execute_workflow(definition, "hello", user_id="u1")

        # Or in the background
        execution_id = await manager.start_workflow(definition, "hello")
        engine = manager.get_execution(execution_id)
    """

    def __init__(
        self,
        services: Optional[Services] = None,
        factory: Optional[NodeFactory] = None,
        storage: Optional[ExecutionStorage] = None,
        max_executions: Optional[int] = None,
        ttl_seconds: Optional[int] = None,
    ):
        self.services = services or Services()
        self.factory = factory or NodeFactory()
        self.storage = storage
        self.max_executions = settings.MAX_EXECUTIONS if max_executions is None else max_executions
        self.ttl_seconds = settings.EXECUTION_TTL_SECONDS if ttl_seconds is None else ttl_seconds

        self._executions: Dict[str, ExecutionEngine] = {}
        self._results: Dict[str, ExecutionResult] = {}
        self._tasks: Dict[str, asyncio.Task] = {}

    # ========================================================================
    # Running
    # ========================================================================

    async def create_execution(
        self,
        workflow: WorkflowDefinition,
        input: Any = None,
        user_id: Optional[str] = None,
        execution_id: Optional[str] = None,
    ) -> ExecutionEngine:
        """
        Build and register an engine for a new run.

        Raises:
            ExecutionCapacityError: If every slot holds a live run
        """
        execution_id = execution_id or str(uuid.uuid4())
        await self._make_room()

        engine = ExecutionEngine(
            workflow,
            execution_id=execution_id,
            services=self.services,
            factory=self.factory,
        )
        self._executions[execution_id] = engine
        if self.storage is not None:
            await self.storage.create(
                execution_id, workflow.id, input, user_id
            )
        logger.debug(f"Registered execution {execution_id} ({len(self._executions)} tracked)")
        return engine

    async def execute_workflow(
        self,
        workflow: WorkflowDefinition,
        input: Any = None,
        user_id: Optional[str] = None,
        execution_id: Optional[str] = None,
    ) -> ExecutionResult:
        """
        Run a workflow to completion.

        Returns:
            ExecutionResult of the completed run

        Raises:
            Whatever the engine raises; the run stays registered either way
        """
        engine = await self.create_execution(workflow, input, user_id, execution_id)
        return await self._run(engine, input, user_id)

    async def start_workflow(
        self,
        workflow: WorkflowDefinition,
        input: Any = None,
        user_id: Optional[str] = None,
        execution_id: Optional[str] = None,
    ) -> str:
        """
        Start a run in the background.

        Returns:
            The execution ID; poll ``get_execution`` / ``get_result``
        """
        engine = await self.create_execution(workflow, input, user_id, execution_id)

        async def run_in_background():
            try:
                await self._run(engine, input, user_id)
            except asyncio.CancelledError:
                logger.info(f"Background execution {engine.execution_id} cancelled")
            except Exception as e:
                logger.warning(f"Background execution {engine.execution_id} failed: {e}")
            finally:
                self._tasks.pop(engine.execution_id, None)

        self._tasks[engine.execution_id] = asyncio.create_task(run_in_background())
        return engine.execution_id

    async def _run(self, engine: ExecutionEngine, input: Any, user_id: Optional[str]) -> ExecutionResult:
        if self.storage is not None:
            await self.storage.update_status(engine.execution_id, ExecutionStatus.RUNNING)
        try:
            await engine.execute(input, user_id)
        finally:
            if engine.is_finished:
                result = engine.to_result()
                self._results[engine.execution_id] = result
                if self.storage is not None:
                    await self.storage.finish(result)
        return self._results[engine.execution_id]

    # ========================================================================
    # Lookup & control
    # ========================================================================

    def get_execution(self, execution_id: str) -> Optional[ExecutionEngine]:
        """Get a tracked run's engine."""
        return self._executions.get(execution_id)

    def get_result(self, execution_id: str) -> Optional[ExecutionResult]:
        """Get a finished run's result, or None while it is still running."""
        return self._results.get(execution_id)

    def list_executions(self) -> List[ExecutionEngine]:
        """All tracked runs, oldest first."""
        return list(self._executions.values())

    def cancel_execution(self, execution_id: str) -> bool:
        """
        Cancel a run.

        Returns:
            True if the run is tracked; cancellation is requested when it
            is still live
        """
        engine = self._executions.get(execution_id)
        if engine is None:
            return False
        if engine.cancel():
            logger.info(f"Cancellation requested for execution {execution_id}")
        return True

    async def release(self, execution_id: str) -> bool:
        """Forget a finished run and its stored record. Live runs are kept."""
        engine = self._executions.get(execution_id)
        if engine is None or not engine.is_finished:
            return False
        del self._executions[execution_id]
        self._results.pop(execution_id, None)
        if self.storage is not None:
            await self.storage.delete(execution_id)
        return True

    async def shutdown(self) -> None:
        """Cancel all background runs and wait for them to settle."""
        for execution_id in list(self._tasks):
            self.cancel_execution(execution_id)
        tasks = list(self._tasks.values())
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    def __len__(self) -> int:
        return len(self._executions)

    # ========================================================================
    # Capacity
    # ========================================================================

    async def _make_room(self) -> None:
        """Sweep expired runs, then evict the oldest finished run if full."""
        cutoff = datetime.now() - timedelta(seconds=self.ttl_seconds)
        for execution_id, engine in list(self._executions.items()):
            if engine.is_finished and engine.completed_at and engine.completed_at <= cutoff:
                await self.release(execution_id)

        if len(self._executions) < self.max_executions:
            return

        for execution_id, engine in list(self._executions.items()):
            if engine.is_finished:
                logger.debug(f"Evicting finished execution {execution_id}")
                await self.release(execution_id)
                return

        raise ExecutionCapacityError(
            f"Execution limit reached ({self.max_executions} live runs)"
        )
