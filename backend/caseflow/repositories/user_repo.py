"""User Repository - Directory lookups for assignees and case owners"""
from typing import List, Optional
from pymongo.collection import Collection
from pymongo import ASCENDING

from .mongo_client import get_collection
from ..domain.models import UserRecord
from ..domain.enums import UserStatus


class UserRepository:
    """Read-only access to the user directory"""
    
    def __init__(self, users: Optional[Collection] = None):
        self._users: Collection = users if users is not None else get_collection("users")
    
    def get_user(self, user_id: str) -> Optional[UserRecord]:
        doc = self._users.find_one({"user_id": user_id})
        if doc:
            doc.pop("_id", None)
            return UserRecord.model_validate(doc)
        return None
    
    def get_by_email(self, email: str) -> Optional[UserRecord]:
        """Get user by email (case-insensitive)"""
        doc = self._users.find_one({"email": email.lower()})
        if doc:
            doc.pop("_id", None)
            return UserRecord.model_validate(doc)
        return None
    
    def list_active_by_role(self, role: str) -> List[UserRecord]:
        """Active users holding a role, oldest account first"""
        cursor = self._users.find({
            "role": role,
            "status": UserStatus.ACTIVE.value
        }).sort("created_at", ASCENDING)
        
        users = []
        for doc in cursor:
            doc.pop("_id", None)
            users.append(UserRecord.model_validate(doc))
        return users
