"""Audit Writer - Append-only audit events"""
from typing import Any, Dict, Optional

from ..domain.models import AuditEvent, StepResult, WorkflowExecution, WorkflowStep
from ..domain.enums import AuditEventType
from ..repositories.audit_repo import AuditRepository
from ..utils.idgen import generate_audit_event_id
from ..utils.time import utc_now
from ..utils.logger import get_logger, get_correlation_id

logger = get_logger(__name__)


class AuditWriter:
    """
    Write audit events (append-only)
    
    Every execution state change and every attempted step produces an
    audit event. The correlation ID defaults to the one bound to the
    current request.
    """
    
    def __init__(self, repo: Optional[AuditRepository] = None):
        self.repo = repo or AuditRepository()
    
    def write_event(
        self,
        execution: WorkflowExecution,
        event_type: AuditEventType,
        actor_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        correlation_id: Optional[str] = None
    ) -> AuditEvent:
        """Write a single audit event"""
        event = AuditEvent(
            audit_event_id=generate_audit_event_id(),
            execution_id=execution.execution_id,
            case_id=execution.case_id,
            event_type=event_type,
            actor_id=actor_id,
            details=details or {},
            timestamp=utc_now(),
            correlation_id=correlation_id or get_correlation_id()
        )
        
        return self.repo.create_event(event)
    
    def write_execution_started(self, execution: WorkflowExecution, trigger: str) -> AuditEvent:
        """Write execution start event"""
        return self.write_event(
            execution,
            AuditEventType.EXECUTION_STARTED,
            actor_id=execution.initiated_by,
            details={
                "workflow_id": execution.workflow_id,
                "workflow_name": execution.workflow_name,
                "trigger": trigger
            }
        )
    
    def write_step_executed(
        self,
        execution: WorkflowExecution,
        step: WorkflowStep,
        result: StepResult
    ) -> AuditEvent:
        """Write step execution event"""
        return self.write_event(
            execution,
            AuditEventType.STEP_EXECUTED,
            details={
                "step_id": step.step_id,
                "step_name": step.name,
                "step_type": step.step_type,
                "order": step.order,
                "success": result.success,
                "skipped": result.skipped
            }
        )
    
    def write_step_skipped(self, execution: WorkflowExecution, step: WorkflowStep) -> AuditEvent:
        """Write step skipped (conditions not met) event"""
        return self.write_event(
            execution,
            AuditEventType.STEP_SKIPPED,
            details={
                "step_id": step.step_id,
                "step_name": step.name,
                "order": step.order,
                "reason": "conditions not met"
            }
        )
    
    def write_suspended(self, execution: WorkflowExecution, step: WorkflowStep, task_id: Optional[str]) -> AuditEvent:
        """Write execution suspended (waiting on a human task) event"""
        return self.write_event(
            execution,
            AuditEventType.EXECUTION_SUSPENDED,
            details={"step_id": step.step_id, "step_name": step.name, "task_id": task_id}
        )
    
    def write_resumed(self, execution: WorkflowExecution) -> AuditEvent:
        return self.write_event(
            execution,
            AuditEventType.EXECUTION_RESUMED,
            details={"current_step_order": execution.current_step_order}
        )
    
    def write_completed(self, execution: WorkflowExecution) -> AuditEvent:
        return self.write_event(
            execution,
            AuditEventType.EXECUTION_COMPLETED,
            details={"steps_attempted": len(execution.step_history)}
        )
    
    def write_failed(
        self,
        execution: WorkflowExecution,
        error_message: str,
        error_details: Optional[Dict[str, Any]] = None
    ) -> AuditEvent:
        """Write execution failure event"""
        return self.write_event(
            execution,
            AuditEventType.EXECUTION_FAILED,
            details={
                "error_message": error_message,
                "error_details": error_details or {}
            }
        )
    
    def write_cancelled(
        self,
        execution: WorkflowExecution,
        reason: Optional[str],
        cancelled_by: Optional[str],
        tasks_cancelled: int
    ) -> AuditEvent:
        """Write execution cancellation event"""
        return self.write_event(
            execution,
            AuditEventType.EXECUTION_CANCELLED,
            actor_id=cancelled_by,
            details={"reason": reason, "tasks_cancelled": tasks_cancelled}
        )
    
    def write_task_completed(
        self,
        execution: WorkflowExecution,
        task_id: str,
        outcome: str,
        completed_by: Optional[str]
    ) -> AuditEvent:
        """Write human task completion event"""
        return self.write_event(
            execution,
            AuditEventType.TASK_COMPLETED,
            actor_id=completed_by,
            details={"task_id": task_id, "outcome": outcome}
        )
