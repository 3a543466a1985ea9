"""Workflow Service - Entry points used by the API and scripts"""
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from ..domain.models import (
    WorkflowDefinition, WorkflowExecution, Task, TaskCompletion
)
from ..domain.enums import TaskStatus, WorkflowStatus
from ..domain.errors import WorkflowValidationError
from ..engine.engine import WorkflowEngine
from ..engine.task_bridge import TaskBridge
from ..utils.idgen import generate_workflow_id, generate_step_id
from ..utils.time import utc_now
from ..utils.logger import get_logger

logger = get_logger(__name__)


class WorkflowService:
    """Service for workflow definitions and executions"""
    
    def __init__(self, engine: Optional[WorkflowEngine] = None):
        self.engine = engine or WorkflowEngine()
        self.task_bridge = TaskBridge(self.engine)
        self.case_repo = self.engine.case_repo
        self.workflow_repo = self.engine.workflow_repo
    
    # =========================================================================
    # Definitions
    # =========================================================================
    
    def create_workflow(self, data: Dict[str, Any]) -> WorkflowDefinition:
        """
        Validate and store a workflow definition (draft unless a status is given)
        
        Missing workflow and step IDs are generated; steps are stamped with
        the owning workflow ID.
        """
        now = utc_now()
        doc = dict(data)
        doc.setdefault("workflow_id", generate_workflow_id())
        doc.setdefault("created_at", now)
        doc.setdefault("updated_at", now)
        
        steps = []
        for step in doc.get("steps", []):
            step = dict(step)
            step.setdefault("step_id", generate_step_id())
            step["workflow_id"] = doc["workflow_id"]
            steps.append(step)
        doc["steps"] = steps
        
        try:
            workflow = WorkflowDefinition.model_validate(doc)
        except PydanticValidationError as e:
            raise WorkflowValidationError(
                f"Invalid workflow definition: {str(e)[:500]}",
                details={
                    "workflow_id": doc["workflow_id"],
                    "errors": [
                        {"loc": [str(part) for part in err["loc"]], "msg": err["msg"], "type": err["type"]}
                        for err in e.errors()
                    ]
                }
            )
        
        if workflow.status == WorkflowStatus.ACTIVE and workflow.published_at is None:
            workflow.published_at = now
        return self.workflow_repo.create_workflow(workflow)
    
    def get_workflow(self, workflow_id: str) -> WorkflowDefinition:
        return self.workflow_repo.get_workflow_or_raise(workflow_id)
    
    def activate_workflow(self, workflow_id: str) -> WorkflowDefinition:
        return self.workflow_repo.update_status(workflow_id, WorkflowStatus.ACTIVE)
    
    def deactivate_workflow(self, workflow_id: str) -> WorkflowDefinition:
        return self.workflow_repo.update_status(workflow_id, WorkflowStatus.INACTIVE)
    
    def list_workflows(
        self,
        status: Optional[WorkflowStatus] = None,
        skip: int = 0,
        limit: int = 50
    ) -> List[WorkflowDefinition]:
        """List workflows"""
        return self.workflow_repo.list_workflows(status=status, skip=skip, limit=limit)
    
    # =========================================================================
    # Executions
    # =========================================================================
    
    def start_for_case(
        self,
        case_id: str,
        trigger: Optional[str] = None,
        initiated_by: Optional[str] = None
    ) -> Optional[WorkflowExecution]:
        """Load a case and start the workflow its trigger selects"""
        case = self.case_repo.get_case_or_raise(case_id)
        return self.engine.start(case, trigger, initiated_by=initiated_by)
    
    def get_execution(self, execution_id: str) -> WorkflowExecution:
        return self.engine.get_execution(execution_id)
    
    def list_executions(self, case_id: str) -> List[WorkflowExecution]:
        return self.engine.list_executions(case_id)
    
    def resume_execution(self, execution_id: str) -> WorkflowExecution:
        return self.engine.resume(execution_id)
    
    def cancel_execution(
        self,
        execution_id: str,
        reason: Optional[str] = None,
        cancelled_by: Optional[str] = None
    ) -> WorkflowExecution:
        return self.engine.cancel(execution_id, reason, cancelled_by=cancelled_by)
    
    def complete_task(
        self,
        task_id: str,
        result: str = "completed",
        completed_by: Optional[str] = None,
        notes: Optional[str] = None
    ) -> TaskCompletion:
        return self.task_bridge.complete(task_id, result, completed_by=completed_by, notes=notes)
    
    def list_tasks(
        self,
        assigned_to: Optional[str] = None,
        status: Optional[TaskStatus] = None,
        skip: int = 0,
        limit: int = 50
    ) -> List[Task]:
        """Task inbox for a reviewer; completing one of these drives resume"""
        return self.engine.task_repo.list_tasks(
            assigned_to=assigned_to, status=status, skip=skip, limit=limit
        )
