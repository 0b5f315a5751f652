"""
Exceptions raised by the workflow engine and node handlers.

Every error keeps the original message; callers tell failure kinds apart
by exception class.
"""

from typing import List, Optional


class WorkflowError(Exception):
    """Base class for workflow engine errors."""
    pass


class WorkflowValidationError(WorkflowError):
    """The workflow definition is structurally invalid."""

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__(f"Workflow validation failed: {'; '.join(self.errors)}")


class NodeConfigurationError(WorkflowError, ValueError):
    """A node's configuration is missing or malformed."""
    pass


class UnknownNodeTypeError(NodeConfigurationError):
    """No handler is available for a node type."""

    def __init__(self, node_type: str):
        self.node_type = node_type
        super().__init__(f"Unknown node type: {node_type}")


class NodeInputError(WorkflowError, ValueError):
    """A node received input it cannot process."""
    pass


class DependencyNotFoundError(WorkflowError, LookupError):
    """An upstream dependency (agent, collection, ...) does not resolve."""
    pass


class ServiceUnavailableError(WorkflowError, RuntimeError):
    """A capability a node needs was not injected into the context."""
    pass


class RequestTimeoutError(WorkflowError, TimeoutError):
    """An outbound request did not complete in time."""

    def __init__(self, timeout_ms: int):
        self.timeout_ms = timeout_ms
        super().__init__(f"Request timeout after {timeout_ms}ms")


class ExecutionCancelledError(WorkflowError):
    """The run was cancelled before it completed."""

    def __init__(self, execution_id: str, node_id: Optional[str] = None):
        self.execution_id = execution_id
        self.node_id = node_id
        where = f" at node '{node_id}'" if node_id else ""
        super().__init__(f"Execution {execution_id} cancelled{where}")


class ExecutionCapacityError(WorkflowError, RuntimeError):
    """The execution manager has no free slot for another live run."""
    pass
