"""Notification Service - In-app notifications for case owners and assignees"""
from typing import Any, Dict, Optional

from ..domain.models import Notification, Task, WorkflowExecution, CaseRecord
from ..domain.enums import NotificationType, Priority
from ..repositories.notification_repo import NotificationRepository
from ..utils.idgen import generate_notification_id
from ..utils.time import utc_now
from ..utils.logger import get_logger

logger = get_logger(__name__)


class NotificationService:
    """Service for sending notifications"""
    
    def __init__(self, repo: Optional[NotificationRepository] = None):
        self.repo = repo or NotificationRepository()
    
    def send(self, user_id: str, payload: Dict[str, Any]) -> Notification:
        """
        Deliver a notification to a user
        
        Args:
            user_id: Recipient
            payload: {type, title, message, priority, related_entity, related_entity_id}
        """
        notification = Notification(
            notification_id=generate_notification_id(),
            user_id=user_id,
            type=payload.get("type", NotificationType.WORKFLOW_UPDATE.value),
            title=payload.get("title", "Case Update"),
            message=payload.get("message", ""),
            priority=payload.get("priority", Priority.MEDIUM),
            related_entity=payload.get("related_entity"),
            related_entity_id=payload.get("related_entity_id"),
            created_at=utc_now()
        )
        return self.repo.create_notification(notification)
    
    def notify_task_assigned(self, task: Task, case: CaseRecord) -> Optional[Notification]:
        """Tell an assignee about a new task"""
        if not task.assigned_to:
            return None
        return self.send(task.assigned_to, {
            "type": NotificationType.TASK_ASSIGNED.value,
            "title": "New Task Assigned",
            "message": f"You have been assigned: {task.title} for case {case.case_number}",
            "priority": Priority.HIGH,
            "related_entity": "task",
            "related_entity_id": task.task_id
        })
    
    def notify_workflow_completed(self, owner_id: str, execution: WorkflowExecution, case: CaseRecord) -> Notification:
        """Tell the case owner that processing finished"""
        return self.send(owner_id, {
            "type": NotificationType.WORKFLOW_COMPLETED.value,
            "title": "Workflow Completed",
            "message": f"Processing workflow for case {case.case_number} has completed",
            "priority": Priority.MEDIUM,
            "related_entity": "case",
            "related_entity_id": case.case_id
        })
