"""Domain Enumerations - All status and type definitions"""
from enum import Enum


class ExecutionStatus(str, Enum):
    """Workflow execution status"""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    WAITING = "waiting"  # Suspended on a manual review / approval step
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class WorkflowStatus(str, Enum):
    """Workflow definition status - only ACTIVE definitions are triggered"""
    DRAFT = "draft"
    ACTIVE = "active"
    INACTIVE = "inactive"
    ARCHIVED = "archived"


class StepType(str, Enum):
    """Types of workflow steps"""
    AUTOMATIC_REVIEW = "automatic_review"
    AI_CLASSIFICATION = "ai_classification"
    DOCUMENT_CHECK = "document_check"
    PAYMENT_CHECK = "payment_check"
    NOTIFICATION = "notification"
    MANUAL_REVIEW = "manual_review"
    APPROVAL = "approval"
    INSPECTION = "inspection"
    UPDATE_STATUS = "update_status"


# Step types that halt automatic progression until a human completes a task
SUSPEND_STEP_TYPES = frozenset({
    StepType.MANUAL_REVIEW.value,
    StepType.APPROVAL.value,
})


class TaskStatus(str, Enum):
    """Human task status"""
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"  # Owning execution was cancelled


class TaskType(str, Enum):
    """Kind of human task created by a suspend step"""
    REVIEW = "review"
    APPROVAL = "approval"


class Priority(str, Enum):
    """Priority for tasks and notifications"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class UserStatus(str, Enum):
    """Directory user status"""
    ACTIVE = "active"
    INACTIVE = "inactive"


class InspectionStatus(str, Enum):
    """Inspection status"""
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class NotificationType(str, Enum):
    """Notification types emitted by the engine"""
    WORKFLOW_UPDATE = "workflow_update"
    WORKFLOW_COMPLETED = "workflow_completed"
    TASK_ASSIGNED = "task_assigned"


class AuditEventType(str, Enum):
    """Types of audit events"""
    EXECUTION_STARTED = "EXECUTION_STARTED"
    STEP_EXECUTED = "STEP_EXECUTED"
    STEP_SKIPPED = "STEP_SKIPPED"
    EXECUTION_SUSPENDED = "EXECUTION_SUSPENDED"
    EXECUTION_RESUMED = "EXECUTION_RESUMED"
    EXECUTION_COMPLETED = "EXECUTION_COMPLETED"
    EXECUTION_FAILED = "EXECUTION_FAILED"
    EXECUTION_CANCELLED = "EXECUTION_CANCELLED"
    TASK_COMPLETED = "TASK_COMPLETED"
