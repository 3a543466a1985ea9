"""Service modules - Collaborators consumed by the workflow engine

WorkflowService wires the engine itself and is imported from
caseflow.services.workflow_service directly to keep this package free of
engine imports.
"""
from .ai_advisor import AIAdvisor
from .directory_service import DirectoryService
from .notification_service import NotificationService

__all__ = [
    "AIAdvisor",
    "DirectoryService",
    "NotificationService",
]
