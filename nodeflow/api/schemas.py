"""
Pydantic Schemas for API Request/Response Models.

Requests and responses use the camelCase field names of the workflow
JSON format; snake_case names are accepted on input as well.
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

from nodeflow.engine.types import (
    ExecutionStatus,
    WorkflowEdge,
    WorkflowNode,
    WorkflowVariable,
)


class CamelModel(BaseModel):
    """Base for API models that serialize with camelCase aliases."""

    class Config:
        populate_by_name = True


# ============================================================
# Workflow Schemas
# ============================================================

class WorkflowCreateRequest(CamelModel):
    """Request to create (or replace) a workflow definition."""
    id: Optional[str] = Field(None, description="Workflow id (generated if omitted)")
    workflow_id: str = Field("", alias="workflowId", description="Owning workflow record id")
    name: str = Field(..., description="Name of the workflow")
    description: Optional[str] = Field(None, description="What this workflow does")
    is_published: bool = Field(False, alias="isPublished")
    nodes: List[WorkflowNode] = Field(default_factory=list, description="Nodes of the graph")
    edges: List[WorkflowEdge] = Field(default_factory=list, description="Directed edges between nodes")
    variables: Optional[List[WorkflowVariable]] = Field(None, description="Declared workflow variables")

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "name": "support-triage",
                "description": "Answer a question from the knowledge base",
                "nodes": [
                    {"id": "in", "type": "user_input", "data": {"label": "Question"}},
                    {
                        "id": "prompt",
                        "type": "prompt_template",
                        "data": {"label": "Prompt", "config": {"template": "Q: {{input}}"}},
                    },
                    {"id": "out", "type": "response", "data": {"label": "Answer", "config": {"format": "text"}}},
                ],
                "edges": [
                    {"id": "e1", "source": "in", "target": "prompt"},
                    {"id": "e2", "source": "prompt", "target": "out"},
                ],
            }
        }


class WorkflowCreateResponse(CamelModel):
    """Response after creating a workflow."""
    workflow_id: str = Field(..., alias="workflowId")
    name: str
    message: str = Field(default="Workflow created successfully")
    node_count: int = Field(..., alias="nodeCount")


class WorkflowInfoResponse(CamelModel):
    """Response with workflow information."""
    workflow_id: str = Field(..., alias="workflowId")
    name: str
    description: Optional[str] = None
    version: int
    is_published: bool = Field(..., alias="isPublished")
    node_count: int = Field(..., alias="nodeCount")
    edge_count: int = Field(..., alias="edgeCount")
    nodes: List[str]
    start_nodes: List[str] = Field(..., alias="startNodes")
    created_at: str = Field(..., alias="createdAt")
    updated_at: str = Field(..., alias="updatedAt")
    mermaid_diagram: Optional[str] = Field(None, alias="mermaidDiagram", description="Mermaid diagram of the graph")
    definition: Optional[Dict[str, Any]] = None


class WorkflowListResponse(BaseModel):
    """Response listing all workflows."""
    workflows: List[WorkflowInfoResponse]
    total: int


# ============================================================
# Execution Schemas
# ============================================================

class ExecutionRequest(CamelModel):
    """Request to execute a stored workflow."""
    workflow_id: str = Field(..., alias="workflowId", description="ID of the workflow to run")
    input: Any = Field(None, description="Run input, handed to every start node")
    user_id: Optional[str] = Field(None, alias="userId", description="Acting user")
    async_execution: bool = Field(
        False,
        alias="asyncExecution",
        description="If true, run in background and return immediately",
    )

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "workflowId": "qa-demo",
                "input": "What is the capital of France?",
                "userId": "user-1",
                "asyncExecution": False,
            }
        }


class ExecutionLogEntry(CamelModel):
    """A single node attempt in the execution log."""
    step: int
    node_id: str = Field(..., alias="nodeId")
    node_type: str = Field(..., alias="nodeType")
    started_at: str = Field(..., alias="startedAt")
    completed_at: Optional[str] = Field(None, alias="completedAt")
    duration_ms: Optional[float] = Field(None, alias="durationMs")
    status: str
    error: Optional[str] = None


class ExecutionResponse(CamelModel):
    """State of a workflow execution."""
    execution_id: str = Field(..., alias="executionId", description="Unique identifier for this run")
    workflow_id: str = Field(..., alias="workflowId")
    status: ExecutionStatus
    input: Any = None
    user_id: Optional[str] = Field(None, alias="userId")
    result: Any = None
    error: Optional[str] = None
    node_results: Dict[str, Any] = Field(default_factory=dict, alias="nodeResults")
    execution_log: List[ExecutionLogEntry] = Field(default_factory=list, alias="executionLog")
    started_at: Optional[str] = Field(None, alias="startedAt")
    completed_at: Optional[str] = Field(None, alias="completedAt")
    total_duration_ms: Optional[float] = Field(None, alias="totalDurationMs")

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "executionId": "3b8e2f0c-1d2a-4c8e-9a57-0f6b1c2d3e4f",
                "workflowId": "qa-demo",
                "status": "completed",
                "input": "What is the capital of France?",
                "result": {
                    "format": "text",
                    "content": "Q: What is the capital of France?",
                    "metadata": {"executionId": "3b8e2f0c-1d2a-4c8e-9a57-0f6b1c2d3e4f"},
                },
                "executionLog": [
                    {
                        "step": 1,
                        "nodeId": "in",
                        "nodeType": "user_input",
                        "startedAt": "2024-01-01T12:00:00",
                        "completedAt": "2024-01-01T12:00:00.002",
                        "durationMs": 2.1,
                        "status": "success",
                        "error": None,
                    }
                ],
            }
        }


class ExecutionListResponse(BaseModel):
    """Response listing executions."""
    executions: List[ExecutionResponse]
    total: int


class CancelResponse(CamelModel):
    """Response after a cancellation request."""
    execution_id: str = Field(..., alias="executionId")
    cancelled: bool = Field(..., description="Whether a live run was asked to stop")
    status: ExecutionStatus


# ============================================================
# Node Catalogue Schemas
# ============================================================

class NodeTypeInfo(BaseModel):
    """A node type the engine can execute."""
    type: str
    handler: str
    builtin: bool
    description: str = ""


class NodeTypeListResponse(BaseModel):
    """Response listing executable node types."""
    nodes: List[NodeTypeInfo]
    total: int
    unsupported: List[str] = Field(
        default_factory=list,
        description="Declared node types with no handler",
    )


# ============================================================
# Error Schemas
# ============================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str
    detail: Optional[str] = None
    status_code: int
