"""
Workflow Engine - The Brain of the System

This module contains the WorkflowEngine class that drives a case through the
ordered steps of a workflow definition.

=============================================================================
MODULE STRUCTURE
=============================================================================

1. INITIALIZATION
   - Constructor with injectable repository and service dependencies

2. LIFECYCLE OPERATIONS
   - start: Resolve a workflow for a trigger and run it
   - resume: Continue a waiting execution after its task completed
   - cancel: Stop a non-terminal execution and cancel its tasks

3. READ ACCESS
   - get_execution / list_executions

4. ADVANCE LOOP
   - _advance: Evaluate, execute and persist steps until the execution
     completes, fails, suspends or is asked to cancel
   - _complete / _fail: Terminal transitions

=============================================================================
STATE MACHINE
=============================================================================

    pending -> in_progress -> (waiting <-> in_progress)* -> completed
                    \\              \\
                     -> failed       -> failed
    pending | in_progress | waiting -> cancelled

Allowed transitions live in domain/state_machine.py; anything else raises
InvalidStateError.

=============================================================================
"""

from typing import Any, Dict, List, Optional

from ..domain.models import (
    CaseRecord, WorkflowDefinition, WorkflowExecution, WorkflowStep,
    StepHistoryEntry, StepResult
)
from ..domain.enums import ExecutionStatus, TaskStatus, SUSPEND_STEP_TYPES
from ..domain.errors import (
    CaseNotFoundError, DomainError, InvalidStateError, StepExecutionError
)
from ..domain.state_machine import ensure_transition
from ..repositories.case_repo import CaseRepository
from ..repositories.workflow_repo import WorkflowRepository
from ..repositories.execution_repo import ExecutionRepository
from ..repositories.task_repo import TaskRepository
from ..repositories.inspection_repo import InspectionRepository
from ..services.ai_advisor import AIAdvisor
from ..services.directory_service import DirectoryService
from ..services.notification_service import NotificationService
from .audit_writer import AuditWriter
from .condition_evaluator import ConditionEvaluator
from .execution_lock import ExecutionLockRegistry
from .step_executor import StepExecutor
from .trigger_resolver import TriggerResolver
from ..config.settings import settings
from ..utils.idgen import generate_execution_id
from ..utils.time import utc_now, format_iso
from ..utils.logger import get_logger

logger = get_logger(__name__)


class WorkflowEngine:
    """
    The Workflow Engine - Central orchestrator for workflow executions
    
    Responsibilities:
    - Start executions for domain triggers (e.g. permit_submitted)
    - Advance executions step by step, persisting after every step
    - Suspend on manual review / approval steps and resume on task completion
    - Record failures, cancellations and completions as terminal states
    
    Collaborators default to their MongoDB-backed implementations and can be
    replaced through the constructor.
    """
    
    def __init__(
        self,
        case_repo: Optional[CaseRepository] = None,
        workflow_repo: Optional[WorkflowRepository] = None,
        execution_repo: Optional[ExecutionRepository] = None,
        task_repo: Optional[TaskRepository] = None,
        inspection_repo: Optional[InspectionRepository] = None,
        notification_service: Optional[NotificationService] = None,
        directory_service: Optional[DirectoryService] = None,
        ai_advisor: Optional[AIAdvisor] = None,
        audit_writer: Optional[AuditWriter] = None,
        locks: Optional[ExecutionLockRegistry] = None,
        trigger_resolver: Optional[TriggerResolver] = None,
        condition_evaluator: Optional[ConditionEvaluator] = None,
        step_executor: Optional[StepExecutor] = None
    ):
        self.case_repo = case_repo or CaseRepository()
        self.workflow_repo = workflow_repo or WorkflowRepository()
        self.execution_repo = execution_repo or ExecutionRepository()
        self.task_repo = task_repo or TaskRepository()
        self.inspection_repo = inspection_repo or InspectionRepository()
        self.notification_service = notification_service or NotificationService()
        self.directory_service = directory_service or DirectoryService(task_repo=self.task_repo)
        self.ai_advisor = ai_advisor or AIAdvisor()
        self.audit_writer = audit_writer or AuditWriter()
        self.locks = locks or ExecutionLockRegistry()
        self.trigger_resolver = trigger_resolver or TriggerResolver(self.workflow_repo)
        self.condition_evaluator = condition_evaluator or ConditionEvaluator()
        self.step_executor = step_executor or StepExecutor(
            case_repo=self.case_repo,
            task_repo=self.task_repo,
            inspection_repo=self.inspection_repo,
            notifier=self.notification_service,
            directory=self.directory_service,
            ai_advisor=self.ai_advisor
        )
    
    # =========================================================================
    # Lifecycle Operations
    # =========================================================================
    
    def start(
        self,
        case_record: CaseRecord,
        trigger_name: Optional[str] = None,
        initiated_by: Optional[str] = None
    ) -> Optional[WorkflowExecution]:
        """
        Start the workflow a trigger selects for a case
        
        Algorithm:
        1. Resolve the applicable workflow definition (None -> no-op)
        2. Create the execution as pending with cursor 0
        3. Move it to in_progress and advance
        
        Returns:
            The execution (completed, waiting, failed or in progress), or
            None when no active workflow applies to the case
        """
        trigger = trigger_name or settings.default_trigger
        workflow = self.trigger_resolver.resolve(case_record, trigger)
        if workflow is None:
            logger.info(
                f"No applicable workflow for case {case_record.case_id}",
                extra={"case_id": case_record.case_id, "trigger": trigger}
            )
            return None
        
        now = utc_now()
        execution = WorkflowExecution(
            execution_id=generate_execution_id(),
            workflow_id=workflow.workflow_id,
            workflow_name=workflow.name,
            case_id=case_record.case_id,
            initiated_by=initiated_by or case_record.owner_id,
            status=ExecutionStatus.PENDING,
            current_step_order=0,
            context={
                "trigger": trigger,
                "case_type": case_record.case_type,
                "case_number": case_record.case_number
            },
            created_at=now,
            updated_at=now
        )
        execution = self.execution_repo.create_execution(execution)
        
        with self.locks.hold(execution.execution_id):
            ensure_transition(execution.status, ExecutionStatus.IN_PROGRESS, execution.execution_id)
            execution = self._save(execution, {
                "status": ExecutionStatus.IN_PROGRESS.value,
                "started_at": now
            })
            self.audit_writer.write_execution_started(execution, trigger)
            logger.info(
                f"Started workflow '{workflow.name}' for case {case_record.case_number}",
                extra={
                    "execution_id": execution.execution_id,
                    "workflow_id": workflow.workflow_id,
                    "case_id": case_record.case_id,
                    "trigger": trigger
                }
            )
            return self._advance(execution, workflow)
    
    def resume(self, execution_id: str, step_id: Optional[str] = None) -> WorkflowExecution:
        """
        Resume a waiting execution past the step it suspended on
        
        With step_id (a completed task's step) the execution only resumes
        when it is still waiting on that step. Any other pending tasks of the
        consumed step are cancelled.
        
        Raises:
            ExecutionNotFoundError: Unknown execution
            InvalidStateError: Execution is not waiting, or waits on another step
        """
        with self.locks.hold(execution_id):
            execution = self.execution_repo.get_execution_or_raise(execution_id)
            if execution.status != ExecutionStatus.WAITING:
                raise InvalidStateError(
                    f"Execution {execution_id} is {execution.status.value}, only waiting executions can resume",
                    details={"execution_id": execution_id, "current_status": execution.status.value}
                )
            ensure_transition(execution.status, ExecutionStatus.IN_PROGRESS, execution_id)
            
            workflow = self.workflow_repo.get_workflow_or_raise(execution.workflow_id)
            order = execution.current_step_order
            waiting_on = workflow.steps[order].step_id if order < len(workflow.steps) else None
            if step_id is not None and step_id != waiting_on:
                raise InvalidStateError(
                    f"Execution {execution_id} is waiting on step {waiting_on}, not {step_id}",
                    details={
                        "execution_id": execution_id,
                        "waiting_step_id": waiting_on,
                        "step_id": step_id
                    }
                )
            
            execution = self._save(execution, {
                "status": ExecutionStatus.IN_PROGRESS.value,
                "current_step_order": order + 1
            })
            for task in self.task_repo.list_pending_for_execution(execution_id):
                if task.step_id == waiting_on:
                    self.task_repo.update_task(task.task_id, {"status": TaskStatus.CANCELLED.value})
            
            self.audit_writer.write_resumed(execution)
            logger.info(
                f"Resumed execution at step {execution.current_step_order}",
                extra={"execution_id": execution_id, "case_id": execution.case_id}
            )
            return self._advance(execution, workflow)
    
    def cancel(
        self,
        execution_id: str,
        reason: Optional[str] = None,
        cancelled_by: Optional[str] = None
    ) -> WorkflowExecution:
        """
        Cancel a non-terminal execution
        
        The cancellation flag is raised before the lock is taken so a running
        advance loop stops after its current step and releases the lock.
        Pending tasks of the execution are cancelled too.
        
        Raises:
            ExecutionNotFoundError: Unknown execution
            InvalidStateError: Execution already completed, failed or cancelled
        """
        self.locks.request_cancel(execution_id)
        try:
            with self.locks.hold(execution_id):
                execution = self.execution_repo.get_execution_or_raise(execution_id)
                ensure_transition(execution.status, ExecutionStatus.CANCELLED, execution_id)
                
                now = utc_now()
                context = dict(execution.context)
                context["cancel_reason"] = reason
                context["cancelled_at"] = format_iso(now)
                context["cancelled_by"] = cancelled_by
                execution = self._save(execution, {
                    "status": ExecutionStatus.CANCELLED.value,
                    "cancelled_at": now,
                    "cancelled_by": cancelled_by,
                    "cancellation_reason": reason,
                    "context": context
                })
                
                pending = self.task_repo.list_pending_for_execution(execution_id)
                for task in pending:
                    self.task_repo.update_task(task.task_id, {"status": TaskStatus.CANCELLED.value})
                
                self.audit_writer.write_cancelled(execution, reason, cancelled_by, len(pending))
                logger.info(
                    f"Cancelled execution ({len(pending)} pending tasks cancelled): {reason or 'no reason given'}",
                    extra={"execution_id": execution_id, "case_id": execution.case_id}
                )
                return execution
        finally:
            self.locks.clear_cancel(execution_id)
    
    # =========================================================================
    # Read Access
    # =========================================================================
    
    def get_execution(self, execution_id: str) -> WorkflowExecution:
        return self.execution_repo.get_execution_or_raise(execution_id)
    
    def list_executions(self, case_id: str) -> List[WorkflowExecution]:
        return self.execution_repo.list_for_case(case_id)
    
    # =========================================================================
    # Advance Loop
    # =========================================================================
    
    def _advance(self, execution: WorkflowExecution, workflow: WorkflowDefinition) -> WorkflowExecution:
        """
        Run steps from the cursor until the execution stops moving
        
        Each pass handles exactly one step and persists the cursor and
        history before the next one, so the loop runs at most once per
        remaining step plus the final completion pass.
        """
        steps = workflow.steps
        
        for _ in range(len(steps) + 1):
            if self.locks.cancel_requested(execution.execution_id):
                logger.info(
                    "Cancellation requested, stopping before next step",
                    extra={"execution_id": execution.execution_id}
                )
                return execution
            
            if execution.current_step_order >= len(steps):
                return self._complete(execution)
            
            step = steps[execution.current_step_order]
            
            # Reload so conditions see mutations made by earlier steps
            case = self.case_repo.get_case(execution.case_id)
            if case is None:
                error = CaseNotFoundError(
                    f"Case {execution.case_id} not found",
                    details={"case_id": execution.case_id}
                )
                return self._fail(execution, step, error)
            
            if not self.condition_evaluator.evaluate(step.conditions, case, execution.step_history):
                execution = self._save(execution, {
                    "step_history": self._history_with(execution, step, None, skipped=True),
                    "current_step_order": execution.current_step_order + 1
                })
                self.audit_writer.write_step_skipped(execution, step)
                logger.info(
                    f"Skipped step {step.order}: {step.name} (conditions not met)",
                    extra={"execution_id": execution.execution_id, "step_id": step.step_id}
                )
                continue
            
            try:
                result = self.step_executor.execute(step, execution, case)
            except StepExecutionError as e:
                return self._fail(execution, step, e)
            
            history = self._history_with(execution, step, result)
            
            if step.step_type in SUSPEND_STEP_TYPES:
                ensure_transition(execution.status, ExecutionStatus.WAITING, execution.execution_id)
                execution = self._save(execution, {
                    "status": ExecutionStatus.WAITING.value,
                    "step_history": history
                })
                task_id = getattr(result, "task_id", None)
                if not getattr(result, "assigned_to", None):
                    logger.warning(
                        f"Execution waiting on unassigned task {task_id}",
                        extra={"execution_id": execution.execution_id, "task_id": task_id}
                    )
                self.audit_writer.write_suspended(execution, step, task_id)
                logger.info(
                    f"Execution waiting on step {step.order}: {step.name}",
                    extra={
                        "execution_id": execution.execution_id,
                        "step_id": step.step_id,
                        "task_id": task_id
                    }
                )
                return execution
            
            execution = self._save(execution, {
                "step_history": history,
                "current_step_order": execution.current_step_order + 1
            })
            self.audit_writer.write_step_executed(execution, step, result)
        
        return execution
    
    def _complete(self, execution: WorkflowExecution) -> WorkflowExecution:
        """Cursor passed the last step: mark completed and tell the case owner"""
        ensure_transition(execution.status, ExecutionStatus.COMPLETED, execution.execution_id)
        
        now = utc_now()
        context = dict(execution.context)
        context["completed_at"] = format_iso(now)
        execution = self._save(execution, {
            "status": ExecutionStatus.COMPLETED.value,
            "completed_at": now,
            "context": context
        })
        self.audit_writer.write_completed(execution)
        logger.info(
            f"Workflow completed after {len(execution.step_history)} steps",
            extra={"execution_id": execution.execution_id, "case_id": execution.case_id}
        )
        
        case = self.case_repo.get_case(execution.case_id)
        owner_id = self.directory_service.resolve_case_owner(case) if case else None
        if owner_id:
            try:
                self.notification_service.notify_workflow_completed(owner_id, execution, case)
            except Exception as e:
                # Completion is already persisted
                logger.warning(
                    f"Failed to send completion notification: {e}",
                    extra={"execution_id": execution.execution_id}
                )
        return execution
    
    def _fail(
        self,
        execution: WorkflowExecution,
        step: WorkflowStep,
        error: DomainError
    ) -> WorkflowExecution:
        """Record the failing step and move the execution to failed"""
        ensure_transition(execution.status, ExecutionStatus.FAILED, execution.execution_id)
        
        cause = error.__cause__ or error
        now = utc_now()
        result = StepResult(success=False, error=str(cause), message=error.message)
        context = dict(execution.context)
        context["error"] = error.message
        context["failed_at"] = format_iso(now)
        
        execution = self._save(execution, {
            "status": ExecutionStatus.FAILED.value,
            "failed_at": now,
            "step_history": self._history_with(execution, step, result, failed=True),
            "context": context
        })
        self.audit_writer.write_failed(execution, error.message, error.details)
        logger.error(
            f"Workflow failed at step {step.order} ({step.name}): {error.message}",
            extra={
                "execution_id": execution.execution_id,
                "case_id": execution.case_id,
                "step_id": step.step_id,
                "error_code": error.error_code
            }
        )
        return execution
    
    # =========================================================================
    # Helpers
    # =========================================================================
    
    def _history_with(
        self,
        execution: WorkflowExecution,
        step: WorkflowStep,
        result: Optional[StepResult],
        skipped: bool = False,
        failed: bool = False
    ) -> List[Dict[str, Any]]:
        """Existing history plus one new entry, serialized for storage"""
        entry = StepHistoryEntry(
            step_id=step.step_id,
            step_name=step.name,
            step_type=step.step_type,
            order=step.order,
            result=result.to_history() if result is not None else None,
            skipped=skipped,
            failed=failed,
            timestamp=utc_now()
        )
        return [e.model_dump() for e in execution.step_history] + [entry.model_dump()]
    
    def _save(self, execution: WorkflowExecution, updates: Dict[str, Any]) -> WorkflowExecution:
        return self.execution_repo.update_execution(
            execution.execution_id,
            updates,
            expected_version=execution.version
        )
