"""Workflow API Routes - Definition management"""
from typing import Any, Dict, List, Optional
from fastapi import APIRouter, Depends, HTTPException, status, Query
from pydantic import BaseModel, Field

from ..deps import get_correlation_id_dep, get_workflow_service
from ...domain.enums import WorkflowStatus
from ...domain.errors import DomainError
from ...services.workflow_service import WorkflowService
from ...utils.logger import get_logger

logger = get_logger(__name__)
router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================

class CreateWorkflowRequest(BaseModel):
    """Request to create a workflow definition"""
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    workflow_type: str = Field(default="permit_review")
    trigger_type: str = Field(..., min_length=1)
    trigger_conditions: Optional[Dict[str, Any]] = None
    priority: int = 0
    status: WorkflowStatus = WorkflowStatus.DRAFT
    steps: List[Dict[str, Any]] = Field(default_factory=list)


class WorkflowListResponse(BaseModel):
    """Response for workflow list"""
    items: List[Dict[str, Any]]
    page: int
    page_size: int


# ============================================================================
# Routes
# ============================================================================

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_workflow(
    request: CreateWorkflowRequest,
    service: WorkflowService = Depends(get_workflow_service),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """Create a workflow definition; steps are validated on the way in"""
    try:
        workflow = service.create_workflow(request.model_dump(exclude_none=True))
        return workflow.model_dump(mode="json")
    except DomainError as e:
        raise HTTPException(status_code=e.http_status, detail=e.to_dict())


@router.get("", response_model=WorkflowListResponse)
async def list_workflows(
    status: Optional[WorkflowStatus] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    service: WorkflowService = Depends(get_workflow_service),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """List workflow definitions"""
    skip = (page - 1) * page_size
    workflows = service.list_workflows(status=status, skip=skip, limit=page_size)
    return WorkflowListResponse(
        items=[w.model_dump(mode="json") for w in workflows],
        page=page,
        page_size=page_size
    )


@router.get("/{workflow_id}")
async def get_workflow(
    workflow_id: str,
    service: WorkflowService = Depends(get_workflow_service),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    try:
        return service.get_workflow(workflow_id).model_dump(mode="json")
    except DomainError as e:
        raise HTTPException(status_code=e.http_status, detail=e.to_dict())


@router.post("/{workflow_id}/activate")
async def activate_workflow(
    workflow_id: str,
    service: WorkflowService = Depends(get_workflow_service),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """Make a definition eligible for trigger resolution"""
    try:
        return service.activate_workflow(workflow_id).model_dump(mode="json")
    except DomainError as e:
        raise HTTPException(status_code=e.http_status, detail=e.to_dict())


@router.post("/{workflow_id}/deactivate")
async def deactivate_workflow(
    workflow_id: str,
    service: WorkflowService = Depends(get_workflow_service),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    try:
        return service.deactivate_workflow(workflow_id).model_dump(mode="json")
    except DomainError as e:
        raise HTTPException(status_code=e.http_status, detail=e.to_dict())
