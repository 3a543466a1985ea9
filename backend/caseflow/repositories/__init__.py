"""Repository modules - Data access layer"""
from .mongo_client import get_database, get_collection, create_indexes, health_check
from .case_repo import CaseRepository
from .workflow_repo import WorkflowRepository
from .execution_repo import ExecutionRepository
from .task_repo import TaskRepository
from .inspection_repo import InspectionRepository
from .user_repo import UserRepository
from .notification_repo import NotificationRepository
from .audit_repo import AuditRepository

__all__ = [
    "get_database",
    "get_collection",
    "create_indexes",
    "health_check",
    "CaseRepository",
    "WorkflowRepository",
    "ExecutionRepository",
    "TaskRepository",
    "InspectionRepository",
    "UserRepository",
    "NotificationRepository",
    "AuditRepository",
]
