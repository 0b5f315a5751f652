"""
In-Memory Storage for Workflows and Executions.

Stands in for the persistence layer: workflow definitions keyed by id and
a history of execution records. Can be replaced with a database
implementation behind the same async interface.
"""

from typing import Any, Dict, List, Optional
from datetime import datetime
import asyncio
from dataclasses import dataclass, field

from nodeflow.engine.executor import ExecutionResult
from nodeflow.engine.types import ExecutionStatus, WorkflowDefinition


@dataclass
class StoredWorkflow:
    """A stored workflow definition."""
    workflow_id: str
    definition: WorkflowDefinition
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    @property
    def name(self) -> str:
        return self.definition.name

    def to_dict(self) -> Dict[str, Any]:
        return {
            "workflowId": self.workflow_id,
            "name": self.definition.name,
            "definition": self.definition.to_dict(),
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }


@dataclass
class StoredExecution:
    """A stored execution record."""
    execution_id: str
    workflow_id: str
    status: ExecutionStatus
    input: Any = None
    user_id: Optional[str] = None
    result: Any = None
    error: Optional[str] = None
    node_results: Dict[str, Any] = field(default_factory=dict)
    execution_log: List[Dict[str, Any]] = field(default_factory=list)
    started_at: datetime = field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None
    total_duration_ms: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "executionId": self.execution_id,
            "workflowId": self.workflow_id,
            "status": self.status.value,
            "input": self.input,
            "userId": self.user_id,
            "result": self.result,
            "error": self.error,
            "nodeResults": self.node_results,
            "executionLog": self.execution_log,
            "startedAt": self.started_at.isoformat(),
            "completedAt": self.completed_at.isoformat() if self.completed_at else None,
            "totalDurationMs": self.total_duration_ms,
        }


class WorkflowStorage:
    """
    In-memory storage for workflow definitions, safe across tasks.

    Definitions are stored by their ``id``.
    """

    def __init__(self):
        self._workflows: Dict[str, StoredWorkflow] = {}
        self._lock = asyncio.Lock()

    async def save(self, definition: WorkflowDefinition) -> StoredWorkflow:
        """
        Save a workflow definition, replacing any with the same id.

        Args:
            definition: The workflow definition

        Returns:
            The stored workflow
        """
        async with self._lock:
            stored = StoredWorkflow(workflow_id=definition.id, definition=definition)
            self._workflows[definition.id] = stored
            return stored

    async def get(self, workflow_id: str) -> Optional[StoredWorkflow]:
        """Get a workflow by ID."""
        async with self._lock:
            return self._workflows.get(workflow_id)

    async def update(self, workflow_id: str, definition: WorkflowDefinition) -> Optional[StoredWorkflow]:
        """Replace a workflow's definition and bump its version."""
        async with self._lock:
            if workflow_id not in self._workflows:
                return None
            stored = self._workflows[workflow_id]
            stored.definition = definition.model_copy(
                update={"id": workflow_id, "version": stored.definition.version + 1}
            )
            stored.updated_at = datetime.now()
            return stored

    async def delete(self, workflow_id: str) -> bool:
        """Delete a workflow."""
        async with self._lock:
            if workflow_id in self._workflows:
                del self._workflows[workflow_id]
                return True
            return False

    async def list_all(self) -> List[StoredWorkflow]:
        """List all stored workflows."""
        async with self._lock:
            return list(self._workflows.values())

    async def exists(self, workflow_id: str) -> bool:
        """Check if a workflow exists."""
        async with self._lock:
            return workflow_id in self._workflows

    def __len__(self) -> int:
        return len(self._workflows)


class ExecutionStorage:
    """
    In-memory history of execution records.

    The ExecutionManager deletes a record when it releases the run, so the
    store stays within the manager's bounds.
    """

    def __init__(self):
        self._executions: Dict[str, StoredExecution] = {}
        self._lock = asyncio.Lock()

    async def create(
        self,
        execution_id: str,
        workflow_id: str,
        input: Any = None,
        user_id: Optional[str] = None,
    ) -> StoredExecution:
        """
        Create a pending execution record.

        Args:
            execution_id: Unique execution identifier
            workflow_id: Workflow being run
            input: Run input
            user_id: Acting user

        Returns:
            The stored execution
        """
        async with self._lock:
            stored = StoredExecution(
                execution_id=execution_id,
                workflow_id=workflow_id,
                status=ExecutionStatus.PENDING,
                input=input,
                user_id=user_id,
            )
            self._executions[execution_id] = stored
            return stored

    async def get(self, execution_id: str) -> Optional[StoredExecution]:
        """Get an execution by ID."""
        async with self._lock:
            return self._executions.get(execution_id)

    async def update_status(self, execution_id: str, status: ExecutionStatus) -> Optional[StoredExecution]:
        """Update the status of a live execution."""
        async with self._lock:
            if execution_id not in self._executions:
                return None
            stored = self._executions[execution_id]
            stored.status = status
            return stored

    async def finish(self, result: ExecutionResult) -> Optional[StoredExecution]:
        """Record the outcome of a finished run."""
        async with self._lock:
            if result.execution_id not in self._executions:
                return None
            stored = self._executions[result.execution_id]
            stored.status = result.status
            stored.result = result.result
            stored.error = result.error
            stored.node_results = result.node_results
            stored.execution_log = [step.to_dict() for step in result.execution_log]
            stored.completed_at = result.completed_at or datetime.now()
            stored.total_duration_ms = result.total_duration_ms
            return stored

    async def list_all(self) -> List[StoredExecution]:
        """List all executions."""
        async with self._lock:
            return list(self._executions.values())

    async def list_by_workflow(self, workflow_id: str) -> List[StoredExecution]:
        """List all executions of a specific workflow."""
        async with self._lock:
            return [e for e in self._executions.values() if e.workflow_id == workflow_id]

    async def delete(self, execution_id: str) -> bool:
        """Delete an execution record."""
        async with self._lock:
            if execution_id in self._executions:
                del self._executions[execution_id]
                return True
            return False

    def __len__(self) -> int:
        return len(self._executions)
