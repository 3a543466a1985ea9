"""Execution API Routes - Start, inspect, resume and cancel workflow executions"""
from typing import Any, Dict, List, Optional
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field

from ..deps import get_correlation_id_dep, get_workflow_service
from ...domain.errors import DomainError
from ...services.workflow_service import WorkflowService
from ...utils.logger import get_logger

logger = get_logger(__name__)
router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================

class StartExecutionRequest(BaseModel):
    """Request to start the workflow a trigger selects for a case"""
    case_id: str = Field(..., min_length=1)
    trigger: Optional[str] = Field(None, description="Defaults to the configured default trigger")
    initiated_by: Optional[str] = None
    run_in_background: bool = False


class StartExecutionResponse(BaseModel):
    started: bool
    scheduled: bool = False
    execution: Optional[Dict[str, Any]] = None
    message: Optional[str] = None


class CancelExecutionRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=2000)
    cancelled_by: Optional[str] = None


class ExecutionListResponse(BaseModel):
    items: List[Dict[str, Any]]
    count: int


# ============================================================================
# Background Job
# ============================================================================

def _start_in_background(
    service: WorkflowService,
    case_id: str,
    trigger: Optional[str],
    initiated_by: Optional[str]
) -> None:
    """Run a workflow start outside the request; failures only reach the log"""
    try:
        service.start_for_case(case_id, trigger, initiated_by=initiated_by)
    except DomainError as e:
        logger.error(
            f"Background workflow start failed: {e.message}",
            extra={"case_id": case_id, "error_code": e.error_code}
        )


# ============================================================================
# Routes
# ============================================================================

@router.post("", response_model=StartExecutionResponse)
def start_execution(
    request: StartExecutionRequest,
    background_tasks: BackgroundTasks,
    service: WorkflowService = Depends(get_workflow_service),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """
    Start a workflow for a case
    
    With run_in_background the request returns immediately and the
    execution runs after the response is sent.
    """
    if request.run_in_background:
        background_tasks.add_task(
            _start_in_background, service, request.case_id, request.trigger, request.initiated_by
        )
        return StartExecutionResponse(started=False, scheduled=True, message="Workflow start scheduled")
    
    try:
        execution = service.start_for_case(
            request.case_id, request.trigger, initiated_by=request.initiated_by
        )
    except DomainError as e:
        raise HTTPException(status_code=e.http_status, detail=e.to_dict())
    
    if execution is None:
        return StartExecutionResponse(started=False, message="No applicable workflow")
    return StartExecutionResponse(started=True, execution=execution.model_dump(mode="json"))


@router.get("", response_model=ExecutionListResponse)
async def list_executions(
    case_id: str = Query(..., min_length=1),
    service: WorkflowService = Depends(get_workflow_service),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """Executions for a case, newest first"""
    executions = service.list_executions(case_id)
    return ExecutionListResponse(
        items=[e.model_dump(mode="json") for e in executions],
        count=len(executions)
    )


@router.get("/{execution_id}")
async def get_execution(
    execution_id: str,
    service: WorkflowService = Depends(get_workflow_service),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    try:
        return service.get_execution(execution_id).model_dump(mode="json")
    except DomainError as e:
        raise HTTPException(status_code=e.http_status, detail=e.to_dict())


@router.post("/{execution_id}/resume")
def resume_execution(
    execution_id: str,
    service: WorkflowService = Depends(get_workflow_service),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """Resume a waiting execution"""
    try:
        return service.resume_execution(execution_id).model_dump(mode="json")
    except DomainError as e:
        raise HTTPException(status_code=e.http_status, detail=e.to_dict())


@router.post("/{execution_id}/cancel")
def cancel_execution(
    execution_id: str,
    request: CancelExecutionRequest,
    service: WorkflowService = Depends(get_workflow_service),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """Cancel a pending, running or waiting execution"""
    try:
        execution = service.cancel_execution(
            execution_id, request.reason, cancelled_by=request.cancelled_by
        )
        return execution.model_dump(mode="json")
    except DomainError as e:
        raise HTTPException(status_code=e.http_status, detail=e.to_dict())
