"""
Workflow API Routes.

Endpoints for creating, inspecting, updating and deleting workflow
definitions.
"""

from typing import List
from fastapi import APIRouter, Depends, HTTPException, status
from uuid import uuid4
import logging

from nodeflow.api.dependencies import get_workflow_storage
from nodeflow.api.schemas import (
    ErrorResponse,
    WorkflowCreateRequest,
    WorkflowCreateResponse,
    WorkflowInfoResponse,
    WorkflowListResponse,
)
from nodeflow.engine.topology import GraphTopology
from nodeflow.engine.types import WorkflowDefinition
from nodeflow.storage.memory import StoredWorkflow, WorkflowStorage


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/workflows", tags=["Workflows"])


def _build_definition(request: WorkflowCreateRequest, workflow_id: str) -> WorkflowDefinition:
    """Turn a request into a definition, rejecting malformed graphs with 400."""
    definition = WorkflowDefinition(
        id=workflow_id,
        workflow_id=request.workflow_id or workflow_id,
        name=request.name,
        description=request.description,
        is_published=request.is_published,
        nodes=request.nodes,
        edges=request.edges,
        variables=request.variables,
    )

    errors: List[str] = GraphTopology(definition).validate()
    if errors:
        raise HTTPException(
            status_code=400,
            detail=f"Workflow validation failed: {'; '.join(errors)}",
        )
    return definition


def _to_info(stored: StoredWorkflow, include_definition: bool = False) -> WorkflowInfoResponse:
    definition = stored.definition
    topology = GraphTopology(definition)
    return WorkflowInfoResponse(
        workflow_id=stored.workflow_id,
        name=definition.name,
        description=definition.description,
        version=definition.version,
        is_published=definition.is_published,
        node_count=len(definition.nodes),
        edge_count=len(definition.edges),
        nodes=[node.id for node in definition.nodes],
        start_nodes=[node.id for node in topology.start_nodes()],
        created_at=stored.created_at.isoformat(),
        updated_at=stored.updated_at.isoformat(),
        mermaid_diagram=topology.to_mermaid() if include_definition else None,
        definition=definition.to_dict() if include_definition else None,
    )


# ============================================================
# Workflow CRUD Endpoints
# ============================================================

@router.post(
    "",
    response_model=WorkflowCreateResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid workflow definition"},
        409: {"model": ErrorResponse, "description": "Workflow id already in use"},
    },
)
async def create_workflow(
    request: WorkflowCreateRequest,
    storage: WorkflowStorage = Depends(get_workflow_storage),
) -> WorkflowCreateResponse:
    """
    Create a new workflow.

    The graph is validated before it is stored: node ids must be unique,
    every edge must connect existing nodes and the graph must be acyclic.
    """
    workflow_id = request.id or str(uuid4())
    if await storage.exists(workflow_id):
        raise HTTPException(status_code=409, detail=f"Workflow '{workflow_id}' already exists")

    definition = _build_definition(request, workflow_id)
    await storage.save(definition)

    logger.info(f"Created workflow: {workflow_id} ({request.name})")

    return WorkflowCreateResponse(
        workflow_id=workflow_id,
        name=request.name,
        node_count=len(definition.nodes),
    )


@router.get(
    "",
    response_model=WorkflowListResponse,
)
async def list_workflows(
    storage: WorkflowStorage = Depends(get_workflow_storage),
) -> WorkflowListResponse:
    """List all stored workflows."""
    workflows = [_to_info(stored) for stored in await storage.list_all()]
    return WorkflowListResponse(workflows=workflows, total=len(workflows))


@router.get(
    "/{workflow_id}",
    response_model=WorkflowInfoResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_workflow(
    workflow_id: str,
    storage: WorkflowStorage = Depends(get_workflow_storage),
) -> WorkflowInfoResponse:
    """Get a workflow with its full definition and a Mermaid diagram."""
    stored = await storage.get(workflow_id)
    if not stored:
        raise HTTPException(status_code=404, detail=f"Workflow '{workflow_id}' not found")
    return _to_info(stored, include_definition=True)


@router.put(
    "/{workflow_id}",
    response_model=WorkflowInfoResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid workflow definition"},
        404: {"model": ErrorResponse},
    },
)
async def update_workflow(
    workflow_id: str,
    request: WorkflowCreateRequest,
    storage: WorkflowStorage = Depends(get_workflow_storage),
) -> WorkflowInfoResponse:
    """Replace a workflow's definition. The version is incremented."""
    if not await storage.exists(workflow_id):
        raise HTTPException(status_code=404, detail=f"Workflow '{workflow_id}' not found")

    definition = _build_definition(request, workflow_id)
    stored = await storage.update(workflow_id, definition)
    if not stored:
        raise HTTPException(status_code=404, detail=f"Workflow '{workflow_id}' not found")

    logger.info(f"Updated workflow: {workflow_id} (version {stored.definition.version})")
    return _to_info(stored, include_definition=True)


@router.delete(
    "/{workflow_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}},
)
async def delete_workflow(
    workflow_id: str,
    storage: WorkflowStorage = Depends(get_workflow_storage),
):
    """Delete a workflow. Its execution history is kept."""
    deleted = await storage.delete(workflow_id)
    if not deleted:
        raise HTTPException(status_code=404, detail=f"Workflow '{workflow_id}' not found")
    logger.info(f"Deleted workflow: {workflow_id}")
