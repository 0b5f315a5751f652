"""
Async Workflow Execution Engine.

The engine runs one workflow definition for one input: it resolves the
start nodes, walks the graph depth-first along edges, memoizes each
node's result, waits for all live inputs of fan-in nodes, prunes
conditional branches that were not taken and records a per-node log.
"""

from typing import Any, Callable, Dict, List, Optional, Set, Tuple
from dataclasses import dataclass, field
from datetime import datetime
import asyncio
import uuid
import time
import logging

from nodeflow.config import settings
from nodeflow.engine.context import ExecutionContext
from nodeflow.engine.errors import ExecutionCancelledError, WorkflowValidationError
from nodeflow.engine.topology import GraphTopology
from nodeflow.engine.types import (
    ExecutionStatus,
    WorkflowDefinition,
    WorkflowEdge,
    WorkflowNode,
)
from nodeflow.nodes.conditional import evaluate_condition, get_field_value
from nodeflow.nodes.factory import NodeFactory
from nodeflow.services.base import Services


logger = logging.getLogger(__name__)


@dataclass
class ExecutionStep:
    """A single node attempt in the execution log."""
    step: int
    node_id: str
    node_type: str
    started_at: datetime
    completed_at: Optional[datetime] = None
    duration_ms: Optional[float] = None
    status: str = "running"  # running | success | error | skipped | cancelled
    error: Optional[str] = None
    _clock: float = field(default=0.0, repr=False, compare=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "step": self.step,
            "nodeId": self.node_id,
            "nodeType": self.node_type,
            "startedAt": self.started_at.isoformat(),
            "completedAt": self.completed_at.isoformat() if self.completed_at else None,
            "durationMs": self.duration_ms,
            "status": self.status,
            "error": self.error,
        }


@dataclass
class ExecutionResult:
    """Outcome of a finished run."""
    execution_id: str
    workflow_id: str
    status: ExecutionStatus
    result: Any
    error: Optional[str] = None
    node_results: Dict[str, Any] = field(default_factory=dict)
    execution_log: List[ExecutionStep] = field(default_factory=list)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    total_duration_ms: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "executionId": self.execution_id,
            "workflowId": self.workflow_id,
            "status": self.status.value,
            "result": self.result,
            "error": self.error,
            "nodeResults": self.node_results,
            "executionLog": [step.to_dict() for step in self.execution_log],
            "startedAt": self.started_at.isoformat() if self.started_at else None,
            "completedAt": self.completed_at.isoformat() if self.completed_at else None,
            "totalDurationMs": self.total_duration_ms,
        }


def _unwrap(results: List[Any]) -> Any:
    """A single result stands alone; anything else stays a list."""
    return results[0] if len(results) == 1 else results


class ExecutionEngine:
    """
    Runs a single workflow execution.

    Lifecycle: PENDING -> RUNNING -> COMPLETED | FAILED | CANCELLED.
    Each node runs at most once per run. A handler error fails the whole
    run and is re-raised unchanged.

    Usage:
        engine = ExecutionEngine(definition, services=services)
        result = await engine.execute("capital of France", user_id="u1")
    """

    def __init__(
        self,
        workflow: WorkflowDefinition,
        execution_id: Optional[str] = None,
        services: Optional[Services] = None,
        factory: Optional[NodeFactory] = None,
        prune_branches: Optional[bool] = None,
        parallel: Optional[bool] = None,
        on_step: Optional[Callable[[ExecutionStep], None]] = None,
    ):
        """
        Initialize the engine.

        Args:
            workflow: The definition to run (read-only)
            execution_id: Run ID (generated if not provided)
            services: Capability handles exposed to node handlers
            factory: Node factory (a default one if not provided)
            prune_branches: Follow only matching conditional branches
                (defaults to settings.BRANCH_PRUNING)
            parallel: Run sibling nodes concurrently
                (defaults to settings.PARALLEL_FAN_OUT)
            on_step: Optional callback invoked as each node finishes
        """
        self.workflow = workflow
        self.execution_id = execution_id or str(uuid.uuid4())
        self.services = services or Services()
        self.factory = factory or NodeFactory()
        self.prune_branches = settings.BRANCH_PRUNING if prune_branches is None else prune_branches
        self.parallel = settings.PARALLEL_FAN_OUT if parallel is None else parallel
        self.on_step = on_step
        self.topology = GraphTopology(workflow)

        # Run state
        self.context: Optional[ExecutionContext] = None
        self._status = ExecutionStatus.PENDING
        self._node_results: Dict[str, Any] = {}
        self._claimed: Set[str] = set()
        self._skipped: Set[str] = set()
        self._terminal: List[str] = []
        self._execution_log: List[ExecutionStep] = []
        self._step_counter = 0
        self._task: Optional[asyncio.Task] = None
        self._cancel_requested = False
        self.error: Optional[str] = None
        self.result: Any = None
        self.started_at: Optional[datetime] = None
        self.completed_at: Optional[datetime] = None
        self.total_duration_ms: Optional[float] = None

    # ========================================================================
    # Accessors
    # ========================================================================

    @property
    def status(self) -> ExecutionStatus:
        """Get the current execution status."""
        return self._status

    def get_status(self) -> ExecutionStatus:
        return self._status

    def get_execution_id(self) -> str:
        return self.execution_id

    @property
    def node_results(self) -> Dict[str, Any]:
        """Results memoized so far, keyed by node id."""
        return dict(self._node_results)

    def get_node_results(self) -> Dict[str, Any]:
        return self.node_results

    @property
    def execution_log(self) -> List[ExecutionStep]:
        return list(self._execution_log)

    @property
    def is_finished(self) -> bool:
        return self._status in (
            ExecutionStatus.COMPLETED,
            ExecutionStatus.FAILED,
            ExecutionStatus.CANCELLED,
        )

    def get_summary(self) -> Dict[str, Any]:
        """Get a summary of the current execution."""
        return {
            "execution_id": self.execution_id,
            "workflow_id": self.workflow.id,
            "status": self._status.value,
            "completed_nodes": list(self._node_results),
            "skipped_nodes": sorted(self._skipped),
            "step_count": self._step_counter,
            "error": self.error,
        }

    # ========================================================================
    # Control
    # ========================================================================

    def cancel(self) -> bool:
        """
        Request cancellation.

        A pending run will not start; a running run is interrupted at its
        current await point. Returns False if the run already finished.
        """
        if self.is_finished:
            return False
        self._cancel_requested = True
        if self.context is not None:
            self.context.cancel()
        if self._task is not None and not self._task.done():
            self._task.cancel()
        return True

    async def execute(self, input: Any = None, user_id: Optional[str] = None) -> Any:
        """
        Execute the workflow.

        Args:
            input: Run input, handed to every start node
            user_id: Acting user, exposed to services via the context

        Returns:
            The terminal node result (a list when several terminal nodes ran)

        Raises:
            WorkflowValidationError: If the definition is malformed
            ExecutionCancelledError: If the run was cancelled
            Exception: Any node handler error, unchanged
        """
        if self._status != ExecutionStatus.PENDING:
            raise RuntimeError(f"Execution {self.execution_id} has already been started")

        start_time = time.time()
        self.started_at = datetime.now()
        self._status = ExecutionStatus.RUNNING
        self.context = ExecutionContext(
            execution_id=self.execution_id,
            variables=self.workflow.variable_defaults(),
            services=self.services,
            user_id=user_id,
        )
        logger.info(f"Starting execution {self.execution_id} of workflow '{self.workflow.name}'")

        try:
            if self._cancel_requested:
                raise ExecutionCancelledError(self.execution_id)

            errors = self.topology.validate()
            if errors:
                raise WorkflowValidationError(errors)

            self._task = asyncio.ensure_future(self._run(input))
            result = await self._task

        except asyncio.CancelledError:
            self._finish(ExecutionStatus.CANCELLED, start_time, "Execution cancelled")
            if self._cancel_requested:
                raise ExecutionCancelledError(self.execution_id) from None
            raise
        except ExecutionCancelledError as e:
            self._finish(ExecutionStatus.CANCELLED, start_time, str(e))
            raise
        except Exception as e:
            logger.error(f"Execution {self.execution_id} failed: {e}")
            self._finish(ExecutionStatus.FAILED, start_time, str(e))
            raise

        self.result = result
        self._finish(ExecutionStatus.COMPLETED, start_time)
        return result

    def _finish(self, status: ExecutionStatus, start_time: float, error: Optional[str] = None) -> None:
        self._status = status
        self.error = error
        self.completed_at = datetime.now()
        self.total_duration_ms = (time.time() - start_time) * 1000
        logger.info(
            f"Execution {self.execution_id} {status.value} "
            f"in {self.total_duration_ms:.1f}ms"
        )

    def to_result(self) -> ExecutionResult:
        """Package the run as it stands."""
        return ExecutionResult(
            execution_id=self.execution_id,
            workflow_id=self.workflow.id,
            status=self._status,
            result=self.result,
            error=self.error,
            node_results=self.node_results,
            execution_log=self.execution_log,
            started_at=self.started_at,
            completed_at=self.completed_at,
            total_duration_ms=self.total_duration_ms,
        )

    # ========================================================================
    # Traversal
    # ========================================================================

    async def _run(self, input: Any) -> Any:
        start_nodes = self.topology.start_nodes()
        logger.debug(f"Start nodes: {[n.id for n in start_nodes]}")

        await self._execute_nodes(start_nodes, input)

        return _unwrap([self._node_results[node_id] for node_id in self._terminal])

    async def _execute_nodes(self, nodes: List[WorkflowNode], input: Any) -> Any:
        """Execute a set of sibling nodes with the same input."""
        if self.parallel and len(nodes) > 1:
            results = await asyncio.gather(
                *(self._execute_node(node, input) for node in nodes)
            )
        else:
            results = []
            for node in nodes:
                results.append(await self._execute_node(node, input))
        return _unwrap(results)

    async def _execute_node(self, node: WorkflowNode, input: Any) -> Any:
        """
        Execute one node, then its downstream nodes.

        A node already claimed by this run returns its memoized result
        without invoking the handler again. A fan-in node whose live
        sources have not all settled is left for the last source to
        trigger.
        """
        if node.id in self._node_results:
            return self._node_results[node.id]
        if node.id in self._claimed or node.id in self._skipped:
            return None
        if not self._inputs_settled(node):
            logger.debug(f"Node {node.id} waiting for remaining inputs")
            return None

        self._claimed.add(node.id)
        self.context.raise_if_cancelled(node.id)

        node_input = self._prepare_node_input(node, input)
        step = self._start_step(node)
        logger.info(f"Executing node: {node.id} [{node.type.value}] (step {step.step})")

        try:
            handler = self.factory.create_node(node)
            result = await handler.execute(node_input, self.context)
        except asyncio.CancelledError:
            self._finish_step(step, "cancelled")
            raise
        except Exception as e:
            self._finish_step(step, "error", str(e))
            raise

        self._node_results[node.id] = result
        self._finish_step(step, "success")

        followed, pruned = self._route(node, result)
        if not followed:
            self._terminal.append(node.id)

        for target in self.topology.nodes_for_edges(pruned):
            await self._skip_if_dead(target)

        downstream = self.topology.nodes_for_edges(followed)
        if downstream:
            await self._execute_nodes(downstream, result)

        return result

    def _prepare_node_input(self, node: WorkflowNode, default_input: Any) -> Any:
        """
        Collect the node's input.

        Start nodes get the run input. Other nodes get the results of their
        resolved sources in edge declaration order, unwrapped when single.
        """
        incoming = self.topology.incoming_edges(node.id)
        if not incoming:
            return default_input

        inputs = []
        for edge in incoming:
            if edge.source in self._node_results and self._edge_live(edge):
                inputs.append(self._node_results[edge.source])
        return _unwrap(inputs)

    # ========================================================================
    # Routing
    # ========================================================================

    def _route(self, node: WorkflowNode, result: Any) -> Tuple[List[WorkflowEdge], List[WorkflowEdge]]:
        """Split a node's outgoing edges into followed and pruned."""
        followed: List[WorkflowEdge] = []
        pruned: List[WorkflowEdge] = []
        for edge in self.topology.outgoing_edges(node.id):
            if self.topology.get_node(edge.target) is None:
                continue
            if self._edge_passes(edge, result):
                followed.append(edge)
            else:
                logger.debug(f"Pruned edge {edge.id} ({edge.source} -> {edge.target})")
                pruned.append(edge)
        return followed, pruned

    def _edge_passes(self, edge: WorkflowEdge, result: Any) -> bool:
        """Whether an edge carries ``result`` under the branch-routing policy."""
        if not self.prune_branches:
            return True

        if isinstance(result, dict) and "outputPort" in result:
            handle = edge.source_handle
            if handle in ("true", "false") and handle != result["outputPort"]:
                return False

        condition = edge.data.condition if edge.data else None
        if condition is not None:
            field_value = get_field_value(result, condition.field)
            return evaluate_condition(field_value, condition.operator, condition.value)

        return True

    def _edge_live(self, edge: WorkflowEdge) -> bool:
        """An edge from a resolved source that routing did not prune."""
        if edge.source not in self._node_results:
            return False
        return self._edge_passes(edge, self._node_results[edge.source])

    def _inputs_settled(self, node: WorkflowNode) -> bool:
        """Every source feeding ``node`` has resolved or can no longer feed it."""
        for edge in self.topology.incoming_edges(node.id):
            source = edge.source
            if self.topology.get_node(source) is None or source in self._skipped:
                continue
            if source not in self._node_results:
                return False
        return True

    async def _skip_if_dead(self, node: WorkflowNode) -> None:
        """
        Handle a node that lost an input edge to branch pruning.

        With no live input left the node is skipped, and so is everything
        only reachable through it. Otherwise it runs once its remaining
        inputs have settled.
        """
        if node.id in self._claimed or node.id in self._skipped:
            return
        if not self._inputs_settled(node):
            return

        has_live_input = any(
            self._edge_live(edge) for edge in self.topology.incoming_edges(node.id)
        )
        if has_live_input:
            await self._execute_node(node, None)
            return

        self._skipped.add(node.id)
        step = self._start_step(node)
        self._finish_step(step, "skipped")
        logger.debug(f"Skipped node {node.id} (no live inputs)")

        for target in self.topology.downstream_nodes(node.id):
            await self._skip_if_dead(target)

    # ========================================================================
    # Execution log
    # ========================================================================

    def _start_step(self, node: WorkflowNode) -> ExecutionStep:
        self._step_counter += 1
        step = ExecutionStep(
            step=self._step_counter,
            node_id=node.id,
            node_type=node.type.value,
            started_at=datetime.now(),
            _clock=time.time(),
        )
        self._execution_log.append(step)
        return step

    def _finish_step(self, step: ExecutionStep, status: str, error: Optional[str] = None) -> None:
        step.completed_at = datetime.now()
        step.duration_ms = (time.time() - step._clock) * 1000
        step.status = status
        step.error = error

        if self.on_step:
            try:
                self.on_step(step)
            except Exception as e:
                logger.warning(f"Step callback failed: {e}")


async def execute_workflow(
    workflow: WorkflowDefinition,
    input: Any = None,
    user_id: Optional[str] = None,
    services: Optional[Services] = None,
    factory: Optional[NodeFactory] = None,
) -> ExecutionResult:
    """
    Convenience function to run a workflow once.

    Returns:
        ExecutionResult of the completed run
    """
    engine = ExecutionEngine(workflow, services=services, factory=factory)
    await engine.execute(input, user_id)
    return engine.to_result()
