"""Audit Repository - Data access for audit events"""
from typing import Any, Dict, List, Optional
from pymongo.collection import Collection
from pymongo import ASCENDING

from .mongo_client import get_collection
from ..domain.models import AuditEvent
from ..domain.enums import AuditEventType
from ..utils.logger import get_logger

logger = get_logger(__name__)


class AuditRepository:
    """Repository for audit event operations (append-only)"""
    
    def __init__(self, audit_events: Optional[Collection] = None):
        self._audit_events: Collection = (
            audit_events if audit_events is not None else get_collection("audit_events")
        )
    
    def create_event(self, event: AuditEvent) -> AuditEvent:
        """Create an audit event (append-only)"""
        doc = event.model_dump()
        doc["_id"] = event.audit_event_id
        
        self._audit_events.insert_one(doc)
        logger.debug(
            f"Created audit event: {event.event_type.value}",
            extra={"execution_id": event.execution_id, "case_id": event.case_id}
        )
        return event
    
    def get_events_for_execution(
        self,
        execution_id: str,
        event_types: Optional[List[AuditEventType]] = None,
        skip: int = 0,
        limit: int = 200
    ) -> List[AuditEvent]:
        """Audit trail of an execution in chronological order"""
        query: Dict[str, Any] = {"execution_id": execution_id}
        
        if event_types:
            query["event_type"] = {"$in": [et.value for et in event_types]}
        
        cursor = self._audit_events.find(query).sort("timestamp", ASCENDING).skip(skip).limit(limit)
        
        events = []
        for doc in cursor:
            doc.pop("_id", None)
            events.append(AuditEvent.model_validate(doc))
        return events
    
    def get_events_by_correlation_id(self, correlation_id: str) -> List[AuditEvent]:
        """Get audit events by correlation ID"""
        cursor = self._audit_events.find(
            {"correlation_id": correlation_id}
        ).sort("timestamp", ASCENDING)
        
        events = []
        for doc in cursor:
            doc.pop("_id", None)
            events.append(AuditEvent.model_validate(doc))
        return events
