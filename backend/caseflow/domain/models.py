"""Domain Models - Pydantic schemas for all entities"""
from datetime import datetime
from typing import Annotated, Any, Dict, List, Literal, Optional, Union
from pydantic import (
    AliasChoices, BaseModel, ConfigDict, EmailStr, Field, model_validator
)

from .enums import (
    ExecutionStatus, WorkflowStatus, StepType, TaskStatus, TaskType, Priority,
    UserStatus, InspectionStatus, AuditEventType
)


def _alias(*names: str) -> AliasChoices:
    """Accept snake_case field names plus the legacy camelCase keys"""
    return AliasChoices(*names)


# ============================================================================
# Case & Directory
# ============================================================================

class CaseRecord(BaseModel):
    """The domain record processed by a workflow (a permit application)"""
    model_config = ConfigDict(extra="ignore")

    case_id: str = Field(..., description="Case ID")
    case_number: str = Field(..., description="Human readable case number")
    case_type: str = Field(..., description="Case category, e.g. building, electrical")
    status: str = Field(default="submitted")
    description: Optional[str] = None
    property_address: Optional[str] = None
    estimated_cost: Optional[float] = None
    owner_id: Optional[str] = Field(None, description="Owning user ID")
    applicant_email: Optional[EmailStr] = None
    ai_classified: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def summary_text(self) -> str:
        """Descriptive fields handed to the AI advisor"""
        cost = f"${self.estimated_cost:,.2f}" if self.estimated_cost is not None else "N/A"
        return (
            f"Case Type: {self.case_type}\n"
            f"Description: {self.description or 'N/A'}\n"
            f"Property Address: {self.property_address or 'N/A'}\n"
            f"Estimated Cost: {cost}"
        )


class UserRecord(BaseModel):
    """Directory entry used to resolve assignees and case owners"""
    model_config = ConfigDict(extra="ignore")

    user_id: str
    email: EmailStr
    name: str
    role: str
    status: UserStatus = UserStatus.ACTIVE
    created_at: Optional[datetime] = None


# ============================================================================
# Step Conditions
# ============================================================================

class StepConditions(BaseModel):
    """Predicates gating a step; all present predicates are AND-combined"""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    case_type: Optional[str] = Field(None, validation_alias=_alias("case_type", "permitType"))
    numeric_field: str = Field("estimated_cost", description="Case field the bounds apply to")
    min_value: Optional[float] = Field(None, validation_alias=_alias("min_value", "minCost"))
    max_value: Optional[float] = Field(None, validation_alias=_alias("max_value", "maxCost"))
    require_step_result: Optional[str] = Field(
        None,
        validation_alias=_alias("require_step_result", "requireStepResult"),
        description="Name or ID of a prior step that must have succeeded"
    )

    def is_empty(self) -> bool:
        return (
            self.case_type is None
            and self.min_value is None
            and self.max_value is None
            and self.require_step_result is None
        )


# ============================================================================
# Step Configuration (one model per step type)
# ============================================================================

class _StepConfig(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class AutomaticReviewConfig(_StepConfig):
    criteria: Optional[str] = None
    min_confidence: Optional[float] = Field(None, validation_alias=_alias("min_confidence", "minConfidence"))


class ClassificationConfig(_StepConfig):
    min_confidence: Optional[float] = Field(None, validation_alias=_alias("min_confidence", "minConfidence"))


class DocumentCheckConfig(_StepConfig):
    required_documents: int = Field(1, ge=0, validation_alias=_alias("required_documents", "requiredDocuments"))
    document_types: List[str] = Field(default_factory=list, validation_alias=_alias("document_types", "documentTypes"))


class PaymentCheckConfig(_StepConfig):
    pass


class NotificationStepConfig(_StepConfig):
    notification_type: str = Field("workflow_update", validation_alias=_alias("notification_type", "notificationType"))
    title: str = "Case Update"
    message: Optional[str] = None
    priority: Priority = Priority.MEDIUM


class ManualTaskConfig(_StepConfig):
    assign_to: Optional[str] = Field(None, validation_alias=_alias("assign_to", "assignTo"))
    assignee_role: Optional[str] = Field(None, validation_alias=_alias("assignee_role", "assigneeRole"))
    task_title: Optional[str] = Field(None, validation_alias=_alias("task_title", "taskTitle"))
    task_description: Optional[str] = Field(None, validation_alias=_alias("task_description", "taskDescription"))
    priority: Priority = Priority.MEDIUM
    due_days: Optional[int] = Field(None, ge=0, validation_alias=_alias("due_days", "dueDays"))


class InspectionConfig(_StepConfig):
    inspection_type: str = Field("general", validation_alias=_alias("inspection_type", "inspectionType"))
    days_from_now: Optional[int] = Field(None, ge=0, validation_alias=_alias("days_from_now", "daysFromNow"))
    notes: Optional[str] = None


class StatusUpdateConfig(_StepConfig):
    status: Optional[str] = None


# ============================================================================
# Workflow Steps (tagged union discriminated by step_type)
# ============================================================================

class BaseWorkflowStep(BaseModel):
    """Base step - fields common to all step variants"""
    model_config = ConfigDict(extra="ignore")

    step_id: str = Field(..., description="Unique step ID")
    workflow_id: Optional[str] = Field(None, description="Owning workflow definition")
    name: str = Field(..., description="Display name")
    description: Optional[str] = None
    step_type: str = Field(..., description="Step type")
    order: int = Field(..., ge=0, description="Zero-based position in the workflow")
    conditions: Optional[StepConditions] = None


class AutomaticReviewStep(BaseWorkflowStep):
    step_type: Literal["automatic_review"] = StepType.AUTOMATIC_REVIEW.value
    config: AutomaticReviewConfig = Field(default_factory=AutomaticReviewConfig)


class ClassificationStep(BaseWorkflowStep):
    step_type: Literal["ai_classification"] = StepType.AI_CLASSIFICATION.value
    config: ClassificationConfig = Field(default_factory=ClassificationConfig)


class DocumentCheckStep(BaseWorkflowStep):
    step_type: Literal["document_check"] = StepType.DOCUMENT_CHECK.value
    config: DocumentCheckConfig = Field(default_factory=DocumentCheckConfig)


class PaymentCheckStep(BaseWorkflowStep):
    step_type: Literal["payment_check"] = StepType.PAYMENT_CHECK.value
    config: PaymentCheckConfig = Field(default_factory=PaymentCheckConfig)


class NotificationStep(BaseWorkflowStep):
    step_type: Literal["notification"] = StepType.NOTIFICATION.value
    config: NotificationStepConfig = Field(default_factory=NotificationStepConfig)


class ManualReviewStep(BaseWorkflowStep):
    step_type: Literal["manual_review"] = StepType.MANUAL_REVIEW.value
    config: ManualTaskConfig = Field(default_factory=ManualTaskConfig)


class ApprovalStep(BaseWorkflowStep):
    step_type: Literal["approval"] = StepType.APPROVAL.value
    config: ManualTaskConfig = Field(default_factory=ManualTaskConfig)


class InspectionStep(BaseWorkflowStep):
    step_type: Literal["inspection"] = StepType.INSPECTION.value
    config: InspectionConfig = Field(default_factory=InspectionConfig)


class StatusUpdateStep(BaseWorkflowStep):
    step_type: Literal["update_status"] = StepType.UPDATE_STATUS.value
    config: StatusUpdateConfig = Field(default_factory=StatusUpdateConfig)


WorkflowStep = Annotated[
    Union[
        AutomaticReviewStep,
        ClassificationStep,
        DocumentCheckStep,
        PaymentCheckStep,
        NotificationStep,
        ManualReviewStep,
        ApprovalStep,
        InspectionStep,
        StatusUpdateStep,
    ],
    Field(discriminator="step_type"),
]


# ============================================================================
# Workflow Definition
# ============================================================================

class TriggerConditions(BaseModel):
    """Trigger-matching predicate; a missing case_type matches any case"""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    case_type: Optional[str] = Field(None, validation_alias=_alias("case_type", "permitType"))


class WorkflowDefinition(BaseModel):
    """Workflow definition with its ordered steps"""
    model_config = ConfigDict(extra="ignore")

    workflow_id: str = Field(..., description="Unique workflow ID")
    name: str = Field(..., description="Workflow name")
    description: Optional[str] = None
    workflow_type: str = Field(default="permit_review")
    trigger_type: str = Field(..., description="Trigger name, e.g. permit_submitted")
    trigger_conditions: Optional[TriggerConditions] = None
    status: WorkflowStatus = WorkflowStatus.DRAFT
    priority: int = Field(default=0, description="Higher wins when several definitions match")
    version: int = Field(default=1)
    steps: List[WorkflowStep] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    published_at: Optional[datetime] = None

    @model_validator(mode="after")
    def _check_step_order(self) -> "WorkflowDefinition":
        """Step orders must be unique and dense (0..n-1)"""
        self.steps.sort(key=lambda s: s.order)
        orders = [s.order for s in self.steps]
        if orders != list(range(len(orders))):
            raise ValueError(
                f"Step orders must be unique and dense starting at 0, got {orders}"
            )
        return self

    @property
    def matching_case_type(self) -> Optional[str]:
        """Case type this definition is restricted to, None for wildcard"""
        if self.trigger_conditions is None:
            return None
        return self.trigger_conditions.case_type


# ============================================================================
# Execution
# ============================================================================

class StepResult(BaseModel):
    """Outcome of one step handler; type-specific fields are kept as extras"""
    model_config = ConfigDict(extra="allow")

    success: bool
    message: Optional[str] = None
    skipped: bool = False
    error: Optional[str] = None

    def to_history(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class StepHistoryEntry(BaseModel):
    """One attempted step in an execution's append-only log"""
    model_config = ConfigDict(extra="ignore")

    step_id: str
    step_name: str
    step_type: str
    order: int
    result: Optional[Dict[str, Any]] = None
    skipped: bool = False
    failed: bool = False
    timestamp: datetime

    @property
    def succeeded(self) -> bool:
        return not self.skipped and bool((self.result or {}).get("success"))


class WorkflowExecution(BaseModel):
    """One run of a workflow definition against one case"""
    model_config = ConfigDict(extra="ignore")

    execution_id: str = Field(..., description="Unique execution ID")
    workflow_id: str
    workflow_name: Optional[str] = None
    case_id: str
    initiated_by: Optional[str] = None
    status: ExecutionStatus = ExecutionStatus.PENDING
    current_step_order: int = Field(default=0, ge=0)
    step_history: List[StepHistoryEntry] = Field(default_factory=list)
    context: Dict[str, Any] = Field(default_factory=dict)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    failed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancelled_by: Optional[str] = None
    cancellation_reason: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    version: int = Field(default=1, description="Optimistic concurrency version")

    @property
    def is_terminal(self) -> bool:
        return self.status in (
            ExecutionStatus.COMPLETED,
            ExecutionStatus.FAILED,
            ExecutionStatus.CANCELLED,
        )


# ============================================================================
# Tasks, Inspections, Notifications, Audit
# ============================================================================

class Task(BaseModel):
    """Human work item; completing it resumes the owning execution"""
    model_config = ConfigDict(extra="ignore")

    task_id: str
    execution_id: Optional[str] = None
    step_id: Optional[str] = None
    case_id: Optional[str] = None
    assigned_to: Optional[str] = None
    title: str
    description: Optional[str] = None
    task_type: TaskType = TaskType.REVIEW
    priority: Priority = Priority.MEDIUM
    status: TaskStatus = TaskStatus.PENDING
    due_date: Optional[datetime] = None
    completed_by: Optional[str] = None
    completed_at: Optional[datetime] = None
    outcome: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class TaskCompletion(BaseModel):
    """Result of completing a task through the task bridge"""
    task: Task
    execution: Optional[WorkflowExecution] = None
    resumed: bool = False


class Inspection(BaseModel):
    """Downstream scheduling record created by inspection steps"""
    model_config = ConfigDict(extra="ignore")

    inspection_id: str
    case_id: str
    inspector_id: Optional[str] = None
    inspection_type: str = "general"
    scheduled_date: datetime
    status: InspectionStatus = InspectionStatus.SCHEDULED
    notes: Optional[str] = None
    execution_id: Optional[str] = None
    created_at: datetime


class Notification(BaseModel):
    """In-app notification record"""
    model_config = ConfigDict(extra="ignore")

    notification_id: str
    user_id: str
    type: str
    title: str
    message: str
    priority: Priority = Priority.MEDIUM
    related_entity: Optional[str] = None
    related_entity_id: Optional[str] = None
    read: bool = False
    created_at: datetime


class AuditEvent(BaseModel):
    """Append-only audit event for engine state changes"""
    model_config = ConfigDict(extra="forbid")

    audit_event_id: str
    execution_id: str
    case_id: Optional[str] = None
    event_type: AuditEventType
    actor_id: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime
    correlation_id: Optional[str] = None
