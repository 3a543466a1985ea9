"""Step Executor - Dispatch workflow steps to their handlers"""
from typing import Callable, Dict, Optional

from ..domain.models import (
    CaseRecord, WorkflowExecution, WorkflowStep, StepResult, Task, Inspection,
    AutomaticReviewStep, ClassificationStep, DocumentCheckStep, PaymentCheckStep,
    NotificationStep, ManualReviewStep, ApprovalStep, InspectionStep, StatusUpdateStep
)
from ..domain.enums import StepType, TaskStatus, TaskType, InspectionStatus
from ..domain.errors import CollaboratorUnavailable, StepExecutionError
from ..repositories.case_repo import CaseRepository
from ..repositories.task_repo import TaskRepository
from ..repositories.inspection_repo import InspectionRepository
from ..services.ai_advisor import AIAdvisor
from ..services.directory_service import DirectoryService
from ..services.notification_service import NotificationService
from ..config.settings import settings
from ..utils.idgen import generate_task_id, generate_inspection_id
from ..utils.time import utc_now, add_days, due_date_from_days, format_iso
from ..utils.logger import get_logger

logger = get_logger(__name__)

StepHandler = Callable[[WorkflowStep, WorkflowExecution, CaseRecord], StepResult]


class StepExecutor:
    """
    Execute a single workflow step against a case
    
    Handlers are looked up by step type. An unregistered type yields an
    unsuccessful result instead of raising. A disabled AI advisor yields a
    skipped result. Any other handler exception is wrapped in
    StepExecutionError for the engine to record.
    """
    
    def __init__(
        self,
        case_repo: CaseRepository,
        task_repo: TaskRepository,
        inspection_repo: InspectionRepository,
        notifier: NotificationService,
        directory: DirectoryService,
        ai_advisor: AIAdvisor
    ):
        self.case_repo = case_repo
        self.task_repo = task_repo
        self.inspection_repo = inspection_repo
        self.notifier = notifier
        self.directory = directory
        self.ai_advisor = ai_advisor
        
        self._handlers: Dict[str, StepHandler] = {
            StepType.AUTOMATIC_REVIEW.value: self._execute_automatic_review,
            StepType.AI_CLASSIFICATION.value: self._execute_ai_classification,
            StepType.DOCUMENT_CHECK.value: self._execute_document_check,
            StepType.PAYMENT_CHECK.value: self._execute_payment_check,
            StepType.NOTIFICATION.value: self._execute_notification,
            StepType.MANUAL_REVIEW.value: self._execute_manual_review,
            StepType.APPROVAL.value: self._execute_approval,
            StepType.INSPECTION.value: self._execute_inspection,
            StepType.UPDATE_STATUS.value: self._execute_status_update,
        }
    
    def supports(self, step_type: str) -> bool:
        return step_type in self._handlers
    
    def execute(
        self,
        step: WorkflowStep,
        execution: WorkflowExecution,
        case_record: CaseRecord
    ) -> StepResult:
        """
        Run the handler for a step
        
        Raises:
            StepExecutionError: The handler raised (original error chained)
        """
        handler = self._handlers.get(step.step_type)
        if handler is None:
            logger.warning(
                f"No handler for step type {step.step_type}",
                extra={"execution_id": execution.execution_id, "step_id": step.step_id}
            )
            return StepResult(success=False, message="unknown step type")
        
        logger.info(
            f"Executing step {step.order}: {step.name}",
            extra={
                "execution_id": execution.execution_id,
                "step_id": step.step_id,
                "step_type": step.step_type
            }
        )
        try:
            return handler(step, execution, case_record)
        except CollaboratorUnavailable as e:
            logger.warning(
                f"Skipping step {step.name}: {e.message}",
                extra={"execution_id": execution.execution_id, "step_id": step.step_id}
            )
            return StepResult(success=False, skipped=True, message=e.message)
        except Exception as e:
            raise StepExecutionError(
                f"Step '{step.name}' ({step.step_type}) failed: {e}",
                details={
                    "step_id": step.step_id,
                    "step_type": step.step_type,
                    "error": str(e)
                }
            ) from e
    
    # =========================================================================
    # AI-assisted steps
    # =========================================================================
    
    def _execute_automatic_review(
        self,
        step: AutomaticReviewStep,
        execution: WorkflowExecution,
        case: CaseRecord
    ) -> StepResult:
        if not self.ai_advisor.is_available():
            raise CollaboratorUnavailable("AI service not available")
        
        review = self.ai_advisor.review(case.summary_text(), step.config.criteria)
        min_confidence = step.config.min_confidence
        if min_confidence is None:
            min_confidence = settings.review_min_confidence
        
        auto_approved = bool(review["approved"]) and review["confidence"] > min_confidence
        return StepResult(
            success=True,
            message="Automatically approved" if auto_approved else "Requires further review",
            ai_review=review,
            auto_approved=auto_approved
        )
    
    def _execute_ai_classification(
        self,
        step: ClassificationStep,
        execution: WorkflowExecution,
        case: CaseRecord
    ) -> StepResult:
        if not self.ai_advisor.is_available():
            raise CollaboratorUnavailable("AI service not available")
        
        classification = self.ai_advisor.classify(case.summary_text())
        min_confidence = step.config.min_confidence
        if min_confidence is None:
            min_confidence = settings.classification_min_confidence
        
        new_type = classification["type"]
        confidence = classification["confidence"]
        if new_type != case.case_type and confidence > min_confidence:
            self.case_repo.update_case(case.case_id, {"case_type": new_type, "ai_classified": True})
            logger.info(
                f"Case reclassified from {case.case_type} to {new_type} ({confidence:.2f})",
                extra={"case_id": case.case_id, "execution_id": execution.execution_id}
            )
            return StepResult(
                success=True,
                reclassified=True,
                old_type=case.case_type,
                new_type=new_type,
                confidence=confidence
            )
        
        return StepResult(
            success=True,
            reclassified=False,
            confirmed_type=case.case_type,
            confidence=confidence
        )
    
    # =========================================================================
    # Checks (read-only)
    # =========================================================================
    
    def _execute_document_check(
        self,
        step: DocumentCheckStep,
        execution: WorkflowExecution,
        case: CaseRecord
    ) -> StepResult:
        required = step.config.required_documents
        count = self.case_repo.count_documents(case.case_id, step.config.document_types)
        passed = count >= required
        return StepResult(
            success=True,
            passed=passed,
            document_count=count,
            required_documents=required,
            message="Document check passed" if passed else f"Missing documents ({count}/{required})"
        )
    
    def _execute_payment_check(
        self,
        step: PaymentCheckStep,
        execution: WorkflowExecution,
        case: CaseRecord
    ) -> StepResult:
        paid = self.case_repo.has_completed_payment(case.case_id)
        return StepResult(
            success=True,
            passed=paid,
            payment_completed=paid,
            message="Payment verified" if paid else "Payment not found"
        )
    
    # =========================================================================
    # Side-effecting steps
    # =========================================================================
    
    def _execute_notification(
        self,
        step: NotificationStep,
        execution: WorkflowExecution,
        case: CaseRecord
    ) -> StepResult:
        owner_id = self.directory.resolve_case_owner(case)
        if not owner_id:
            return StepResult(success=False, message="User not found")
        
        config = step.config
        self.notifier.send(owner_id, {
            "type": config.notification_type,
            "title": config.title,
            "message": config.message or f"Your permit {case.case_number} has been updated.",
            "priority": config.priority,
            "related_entity": "case",
            "related_entity_id": case.case_id
        })
        return StepResult(success=True, notification_sent=True)
    
    def _execute_manual_review(
        self,
        step: ManualReviewStep,
        execution: WorkflowExecution,
        case: CaseRecord
    ) -> StepResult:
        return self._create_task(
            step,
            execution,
            case,
            task_type=TaskType.REVIEW,
            default_title=f"Review permit {case.case_number}",
            default_description=f"Manual review required for {case.case_type} permit"
        )
    
    def _execute_approval(
        self,
        step: ApprovalStep,
        execution: WorkflowExecution,
        case: CaseRecord
    ) -> StepResult:
        return self._create_task(
            step,
            execution,
            case,
            task_type=TaskType.APPROVAL,
            default_title=f"Approve permit {case.case_number}",
            default_description=f"Approval required for {case.case_type} permit"
        )
    
    def _create_task(
        self,
        step,
        execution: WorkflowExecution,
        case: CaseRecord,
        task_type: TaskType,
        default_title: str,
        default_description: str
    ) -> StepResult:
        """Create the pending human task a suspend step waits on"""
        config = step.config
        assignee: Optional[str] = config.assign_to
        if not assignee:
            assignee = self.directory.least_loaded(config.assignee_role or settings.default_assignee_role)
        
        now = utc_now()
        task = Task(
            task_id=generate_task_id(),
            execution_id=execution.execution_id,
            step_id=step.step_id,
            case_id=case.case_id,
            assigned_to=assignee,
            title=config.task_title or default_title,
            description=config.task_description or default_description,
            task_type=task_type,
            priority=config.priority,
            status=TaskStatus.PENDING,
            due_date=due_date_from_days(config.due_days, now),
            created_at=now,
            updated_at=now
        )
        self.task_repo.create_task(task)
        
        if assignee:
            self.notifier.notify_task_assigned(task, case)
        
        return StepResult(
            success=True,
            task_created=True,
            task_id=task.task_id,
            assigned_to=assignee
        )
    
    def _execute_inspection(
        self,
        step: InspectionStep,
        execution: WorkflowExecution,
        case: CaseRecord
    ) -> StepResult:
        config = step.config
        days = config.days_from_now
        if days is None:
            days = settings.inspection_days_default
        
        inspector_id = self.directory.first_active(settings.inspector_role)
        now = utc_now()
        inspection = Inspection(
            inspection_id=generate_inspection_id(),
            case_id=case.case_id,
            inspector_id=inspector_id,
            inspection_type=config.inspection_type,
            scheduled_date=add_days(now, days),
            status=InspectionStatus.SCHEDULED,
            notes=config.notes or "Scheduled via workflow automation",
            execution_id=execution.execution_id,
            created_at=now
        )
        self.inspection_repo.create_inspection(inspection)
        
        return StepResult(
            success=True,
            inspection_scheduled=True,
            inspection_id=inspection.inspection_id,
            inspector_id=inspector_id,
            scheduled_date=format_iso(inspection.scheduled_date)
        )
    
    def _execute_status_update(
        self,
        step: StatusUpdateStep,
        execution: WorkflowExecution,
        case: CaseRecord
    ) -> StepResult:
        new_status = step.config.status
        if not new_status:
            return StepResult(success=False, message="No status specified")
        
        self.case_repo.update_case(case.case_id, {"status": new_status})
        return StepResult(success=True, status_updated=True, new_status=new_status)
