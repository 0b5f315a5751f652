"""
Workflow Definition Types.

These models describe a workflow as it is stored and exchanged with the
editor: nodes, edges, declared variables and the enumerations they draw
from. Definitions are read-only for the engine.

Field names are snake_case in Python; the original camelCase JSON keys
(``sourceHandle``, ``isPublished``, ...) are accepted as aliases.
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field
from datetime import datetime
from enum import Enum


# ============================================================
# Enums
# ============================================================

class NodeType(str, Enum):
    """Every node kind a workflow may declare."""
    # Input nodes
    USER_INPUT = "user_input"
    FILE_UPLOAD = "file_upload"
    API_TRIGGER = "api_trigger"
    WEBHOOK_RECEIVER = "webhook_receiver"

    # Processing nodes
    LLM_AGENT = "llm_agent"
    RAG_SEARCH = "rag_search"
    DEEP_RESEARCH = "deep_research"
    WEB_SEARCH = "web_search"

    # Data transformation nodes
    TEXT_PROCESSOR = "text_processor"
    JSON_PARSER = "json_parser"
    PROMPT_TEMPLATE = "prompt_template"
    DATA_MAPPER = "data_mapper"

    # Logic control nodes
    CONDITIONAL = "conditional"
    LOOP = "loop"
    PARALLEL = "parallel"
    SEQUENTIAL = "sequential"
    WAIT = "wait"

    # Integration nodes
    HTTP_REQUEST = "http_request"
    DATABASE_QUERY = "database_query"

    # Output nodes
    RESPONSE = "response"
    WEBHOOK_SENDER = "webhook_sender"
    EMAIL_SENDER = "email_sender"
    NOTIFICATION = "notification"


class DataType(str, Enum):
    """Data types for ports and variables."""
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ARRAY = "array"
    OBJECT = "object"
    FILE = "file"
    ANY = "any"


class EdgeType(str, Enum):
    """Types of edges between nodes."""
    DEFAULT = "default"
    CONDITIONAL = "conditional"
    ERROR = "error"


class ConditionOperator(str, Enum):
    """Operators understood by conditional nodes and edge conditions."""
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    IS_EMPTY = "is_empty"
    IS_NOT_EMPTY = "is_not_empty"


class ExecutionStatus(str, Enum):
    """Status of a workflow execution."""
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"
    PAUSED = "paused"


# ============================================================
# Node Models
# ============================================================

class Position(BaseModel):
    """Editor canvas position. Ignored by execution."""
    x: float = 0
    y: float = 0


class PortDefinition(BaseModel):
    """Descriptive input/output port metadata."""
    id: str
    label: str = ""
    type: DataType = DataType.ANY
    required: Optional[bool] = None
    multiple: Optional[bool] = None


class NodeData(BaseModel):
    """Label, free-form config and description of a node."""
    label: str = ""
    config: Dict[str, Any] = Field(default_factory=dict)
    description: Optional[str] = None


class WorkflowNode(BaseModel):
    """A typed unit of work within a workflow."""
    id: str
    type: NodeType
    position: Position = Field(default_factory=Position)
    data: NodeData = Field(default_factory=NodeData)
    inputs: Optional[List[PortDefinition]] = None
    outputs: Optional[List[PortDefinition]] = None

    @property
    def config(self) -> Dict[str, Any]:
        """Shortcut to the node's configuration dict."""
        return self.data.config

    @property
    def label(self) -> str:
        return self.data.label or self.id


# ============================================================
# Edge Models
# ============================================================

class ConditionRule(BaseModel):
    """A field/operator/value test used for conditional routing."""
    field: str = ""
    operator: ConditionOperator
    value: Any = None


class EdgeData(BaseModel):
    """Optional label and routing condition of an edge."""
    label: Optional[str] = None
    condition: Optional[ConditionRule] = None


class WorkflowEdge(BaseModel):
    """A directed data-flow link between two nodes."""
    id: str
    source: str
    target: str
    source_handle: Optional[str] = Field(None, alias="sourceHandle")
    target_handle: Optional[str] = Field(None, alias="targetHandle")
    type: EdgeType = EdgeType.DEFAULT
    data: Optional[EdgeData] = None

    class Config:
        populate_by_name = True


# ============================================================
# Workflow Models
# ============================================================

class WorkflowVariable(BaseModel):
    """A declared workflow variable."""
    name: str
    type: DataType = DataType.ANY
    default_value: Any = Field(None, alias="defaultValue")
    description: Optional[str] = None

    class Config:
        populate_by_name = True


class WorkflowDefinition(BaseModel):
    """
    The static graph of nodes and edges describing an automation.

    Attributes:
        id: Storage identifier
        workflow_id: Public workflow identifier
        name: Human-readable name
        version: Definition version
        is_published: Whether other users may run it
        nodes: Ordered list of nodes
        edges: List of edges
        variables: Declared variables (defaults seed the run's variables)
    """
    id: str
    workflow_id: str = Field("", alias="workflowId")
    name: str
    description: Optional[str] = None
    version: int = 1
    is_published: bool = Field(False, alias="isPublished")
    nodes: List[WorkflowNode] = Field(default_factory=list)
    edges: List[WorkflowEdge] = Field(default_factory=list)
    variables: Optional[List[WorkflowVariable]] = None
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")

    class Config:
        populate_by_name = True

    def get_node(self, node_id: str) -> Optional[WorkflowNode]:
        """Get a node by ID."""
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def variable_defaults(self) -> Dict[str, Any]:
        """Initial values for the run's variable store."""
        return {
            v.name: v.default_value
            for v in self.variables or []
            if v.default_value is not None
        }

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with the camelCase keys the editor uses."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
