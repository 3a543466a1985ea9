"""Directory Service - Assignee resolution and case owner lookup"""
from datetime import datetime
from typing import Optional

from ..domain.models import CaseRecord, UserRecord
from ..repositories.user_repo import UserRepository
from ..repositories.task_repo import TaskRepository
from ..utils.logger import get_logger

logger = get_logger(__name__)


class DirectoryService:
    """
    Service for directory operations backed by the users collection
    
    Used by step handlers to pick task assignees and inspectors, and to
    find who should hear about a case.
    """
    
    def __init__(
        self,
        user_repo: Optional[UserRepository] = None,
        task_repo: Optional[TaskRepository] = None
    ):
        self.user_repo = user_repo or UserRepository()
        self.task_repo = task_repo or TaskRepository()
    
    def least_loaded(self, role: str) -> Optional[str]:
        """
        Active user in a role with the fewest pending tasks
        
        Ties go to the earliest created account. Returns None when nobody
        holds the role.
        """
        users = self.user_repo.list_active_by_role(role)
        if not users:
            logger.warning(f"No active users with role {role}")
            return None
        
        counts = self.task_repo.count_pending_by_assignee([u.user_id for u in users])
        chosen = min(users, key=lambda u: (counts.get(u.user_id, 0), _created_key(u), u.user_id))
        logger.debug(
            f"Least loaded {role}: {chosen.user_id} ({counts.get(chosen.user_id, 0)} pending)"
        )
        return chosen.user_id
    
    def first_active(self, role: str) -> Optional[str]:
        """First active user in a role (oldest account)"""
        users = self.user_repo.list_active_by_role(role)
        return users[0].user_id if users else None
    
    def resolve_case_owner(self, case: CaseRecord) -> Optional[str]:
        """Owner ID of a case, falling back to a lookup by applicant email"""
        if case.owner_id:
            return case.owner_id
        if case.applicant_email:
            user: Optional[UserRecord] = self.user_repo.get_by_email(case.applicant_email)
            if user:
                return user.user_id
        return None


def _created_key(user: UserRecord) -> datetime:
    # Accounts without a creation date sort last; tz dropped so aware and naive compare
    if user.created_at is None:
        return datetime.max
    return user.created_at.replace(tzinfo=None)
