"""
Execution Context.

One context is created per run and passed by reference to every node
invocation. It carries the run identifier, the mutable variable store,
the injected services and the acting user.
"""

from typing import Any, Dict, Optional
from dataclasses import dataclass, field

from nodeflow.engine.errors import ExecutionCancelledError
from nodeflow.services.base import Services


@dataclass
class ExecutionContext:
    """
    Per-run mutable state visible to every node.

    Attributes:
        execution_id: Unique run identifier
        variables: Run variables (read/write by node handlers)
        services: Injected capability handles
        user_id: Acting user, forwarded to service calls
    """
    execution_id: str
    variables: Dict[str, Any] = field(default_factory=dict)
    services: Services = field(default_factory=Services)
    user_id: Optional[str] = None
    _cancelled: bool = field(default=False, repr=False)

    @property
    def cancelled(self) -> bool:
        """Whether cancellation of the run was requested."""
        return self._cancelled

    def cancel(self) -> None:
        """Request cancellation of the run."""
        self._cancelled = True

    def raise_if_cancelled(self, node_id: Optional[str] = None) -> None:
        """Raise ExecutionCancelledError if cancellation was requested."""
        if self._cancelled:
            raise ExecutionCancelledError(self.execution_id, node_id)

    def lookup(self, key: str) -> Any:
        """
        Resolve a ``{{context.key}}`` placeholder.

        Run identity keys resolve first, then run variables.
        """
        if key in ("executionId", "execution_id"):
            return self.execution_id
        if key in ("userId", "user_id"):
            return self.user_id
        return self.variables.get(key)
