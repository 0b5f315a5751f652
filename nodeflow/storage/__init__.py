"""
Storage package - In-memory storage for workflows and executions.
"""

from nodeflow.storage.memory import (
    ExecutionStorage,
    StoredExecution,
    StoredWorkflow,
    WorkflowStorage,
)

__all__ = [
    "ExecutionStorage",
    "StoredExecution",
    "StoredWorkflow",
    "WorkflowStorage",
]
