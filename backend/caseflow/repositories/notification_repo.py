"""Notification Repository - Data access for in-app notifications"""
from typing import Any, Dict, List, Optional
from pymongo.collection import Collection
from pymongo import DESCENDING

from .mongo_client import get_collection
from ..domain.models import Notification
from ..utils.logger import get_logger

logger = get_logger(__name__)


class NotificationRepository:
    """Repository for in-app notification operations"""
    
    def __init__(self, notifications: Optional[Collection] = None):
        self._notifications: Collection = (
            notifications if notifications is not None else get_collection("notifications")
        )
    
    def create_notification(self, notification: Notification) -> Notification:
        """Create a notification"""
        doc = notification.model_dump()
        doc["_id"] = notification.notification_id
        
        self._notifications.insert_one(doc)
        logger.info(
            f"Created notification: {notification.type}",
            extra={"notification_id": notification.notification_id}
        )
        return notification
    
    def list_for_user(
        self,
        user_id: str,
        unread_only: bool = False,
        limit: int = 50
    ) -> List[Notification]:
        """Notifications for a user, newest first"""
        query: Dict[str, Any] = {"user_id": user_id}
        if unread_only:
            query["read"] = False
        
        cursor = self._notifications.find(query).sort("created_at", DESCENDING).limit(limit)
        
        notifications = []
        for doc in cursor:
            doc.pop("_id", None)
            notifications.append(Notification.model_validate(doc))
        return notifications
