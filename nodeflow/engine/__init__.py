"""
Engine package - Workflow model, graph topology and execution.

``ExecutionEngine`` and ``ExecutionManager`` live in
``nodeflow.engine.executor`` and ``nodeflow.engine.manager``; they depend
on the node handlers, which in turn depend on the modules exported here.
"""

from nodeflow.engine.types import (
    ConditionOperator,
    ConditionRule,
    DataType,
    EdgeData,
    EdgeType,
    ExecutionStatus,
    NodeData,
    NodeType,
    PortDefinition,
    Position,
    WorkflowDefinition,
    WorkflowEdge,
    WorkflowNode,
    WorkflowVariable,
)
from nodeflow.engine.errors import (
    DependencyNotFoundError,
    ExecutionCancelledError,
    ExecutionCapacityError,
    NodeConfigurationError,
    NodeInputError,
    RequestTimeoutError,
    ServiceUnavailableError,
    UnknownNodeTypeError,
    WorkflowError,
    WorkflowValidationError,
)
from nodeflow.engine.context import ExecutionContext
from nodeflow.engine.topology import GraphTopology

__all__ = [
    "ConditionOperator",
    "ConditionRule",
    "DataType",
    "EdgeData",
    "EdgeType",
    "ExecutionStatus",
    "NodeData",
    "NodeType",
    "PortDefinition",
    "Position",
    "WorkflowDefinition",
    "WorkflowEdge",
    "WorkflowNode",
    "WorkflowVariable",
    "DependencyNotFoundError",
    "ExecutionCancelledError",
    "ExecutionCapacityError",
    "NodeConfigurationError",
    "NodeInputError",
    "RequestTimeoutError",
    "ServiceUnavailableError",
    "UnknownNodeTypeError",
    "WorkflowError",
    "WorkflowValidationError",
    "ExecutionContext",
    "GraphTopology",
]
