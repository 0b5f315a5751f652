"""
Execution API Routes.

Endpoints for running stored workflows, polling run state and
cancelling runs.
"""

from typing import Optional
from fastapi import APIRouter, Depends, HTTPException
from uuid import uuid4
import logging

from nodeflow.api.dependencies import (
    get_execution_manager,
    get_execution_storage,
    get_workflow_storage,
)
from nodeflow.api.schemas import (
    CancelResponse,
    ErrorResponse,
    ExecutionListResponse,
    ExecutionRequest,
    ExecutionResponse,
)
from nodeflow.engine.errors import ExecutionCapacityError
from nodeflow.engine.manager import ExecutionManager
from nodeflow.storage.memory import ExecutionStorage, StoredExecution, WorkflowStorage


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/executions", tags=["Executions"])


def _to_response(stored: StoredExecution) -> ExecutionResponse:
    return ExecutionResponse.model_validate(stored.to_dict())


# ============================================================
# Execution Endpoints
# ============================================================

@router.post(
    "",
    response_model=ExecutionResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Workflow not found"},
        503: {"model": ErrorResponse, "description": "Execution limit reached"},
    },
)
async def execute_workflow(
    request: ExecutionRequest,
    workflows: WorkflowStorage = Depends(get_workflow_storage),
    executions: ExecutionStorage = Depends(get_execution_storage),
    manager: ExecutionManager = Depends(get_execution_manager),
) -> ExecutionResponse:
    """
    Execute a stored workflow with the given input.

    A run that fails is still reported here, with status ``failed`` and
    the error message. If ``asyncExecution`` is true the run continues in
    the background; poll ``GET /executions/{execution_id}``.
    """
    stored = await workflows.get(request.workflow_id)
    if not stored:
        raise HTTPException(
            status_code=404,
            detail=f"Workflow '{request.workflow_id}' not found",
        )

    execution_id = str(uuid4())
    try:
        if request.async_execution:
            await manager.start_workflow(
                stored.definition, request.input, request.user_id, execution_id
            )
        else:
            await manager.execute_workflow(
                stored.definition, request.input, request.user_id, execution_id
            )
    except ExecutionCapacityError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        logger.warning(f"Execution {execution_id} of workflow {request.workflow_id} failed: {e}")

    record = await executions.get(execution_id)
    return _to_response(record)


@router.get(
    "",
    response_model=ExecutionListResponse,
)
async def list_executions(
    workflow_id: Optional[str] = None,
    executions: ExecutionStorage = Depends(get_execution_storage),
) -> ExecutionListResponse:
    """List all executions, optionally filtered by workflow_id."""
    if workflow_id:
        records = await executions.list_by_workflow(workflow_id)
    else:
        records = await executions.list_all()

    items = [_to_response(record) for record in records]
    return ExecutionListResponse(executions=items, total=len(items))


@router.get(
    "/{execution_id}",
    response_model=ExecutionResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_execution(
    execution_id: str,
    executions: ExecutionStorage = Depends(get_execution_storage),
) -> ExecutionResponse:
    """
    Get the current state of an execution.

    Use this to poll the status of async executions.
    """
    record = await executions.get(execution_id)
    if not record:
        raise HTTPException(status_code=404, detail=f"Execution '{execution_id}' not found")
    return _to_response(record)


@router.post(
    "/{execution_id}/cancel",
    response_model=CancelResponse,
    responses={404: {"model": ErrorResponse}},
)
async def cancel_execution(
    execution_id: str,
    executions: ExecutionStorage = Depends(get_execution_storage),
    manager: ExecutionManager = Depends(get_execution_manager),
) -> CancelResponse:
    """
    Cancel a running execution.

    Cancelling a finished run is not an error; ``cancelled`` is false and
    the final status is returned.
    """
    record = await executions.get(execution_id)
    if not record:
        raise HTTPException(status_code=404, detail=f"Execution '{execution_id}' not found")

    engine = manager.get_execution(execution_id)
    cancelled = engine is not None and not engine.is_finished
    if cancelled:
        manager.cancel_execution(execution_id)

    return CancelResponse(
        execution_id=execution_id,
        cancelled=cancelled,
        status=engine.status if engine is not None else record.status,
    )
