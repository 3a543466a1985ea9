"""Task API Routes - List and complete human tasks"""
from typing import Any, Dict, List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from ..deps import get_correlation_id_dep, get_workflow_service
from ...domain.enums import TaskStatus
from ...domain.errors import DomainError
from ...services.workflow_service import WorkflowService
from ...utils.logger import get_logger

logger = get_logger(__name__)
router = APIRouter()


class CompleteTaskRequest(BaseModel):
    """Request to complete a task"""
    result: str = Field(default="completed", min_length=1, max_length=100)
    completed_by: Optional[str] = None
    notes: Optional[str] = Field(None, max_length=5000)


class CompleteTaskResponse(BaseModel):
    task: Dict[str, Any]
    execution: Optional[Dict[str, Any]] = None
    resumed: bool


class TaskListResponse(BaseModel):
    items: List[Dict[str, Any]]
    page: int
    page_size: int


@router.get("", response_model=TaskListResponse)
async def list_tasks(
    assigned_to: Optional[str] = Query(None),
    status: Optional[TaskStatus] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    service: WorkflowService = Depends(get_workflow_service),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """Tasks filtered by assignee and status, newest first"""
    tasks = service.list_tasks(
        assigned_to=assigned_to, status=status, skip=(page - 1) * page_size, limit=page_size
    )
    return TaskListResponse(
        items=[t.model_dump(mode="json") for t in tasks],
        page=page,
        page_size=page_size
    )


@router.post("/{task_id}/complete", response_model=CompleteTaskResponse)
def complete_task(
    task_id: str,
    request: CompleteTaskRequest,
    service: WorkflowService = Depends(get_workflow_service),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """
    Complete a pending task
    
    The owning execution is resumed; resumed=false means it could not be
    (for example because it was cancelled meanwhile).
    """
    try:
        completion = service.complete_task(
            task_id,
            request.result,
            completed_by=request.completed_by,
            notes=request.notes
        )
    except DomainError as e:
        raise HTTPException(status_code=e.http_status, detail=e.to_dict())
    
    return CompleteTaskResponse(
        task=completion.task.model_dump(mode="json"),
        execution=completion.execution.model_dump(mode="json") if completion.execution else None,
        resumed=completion.resumed
    )
