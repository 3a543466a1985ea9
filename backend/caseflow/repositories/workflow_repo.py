"""Workflow Repository - Data access for workflow definitions"""
from typing import Any, Dict, List, Optional
from datetime import datetime
from pymongo.collection import Collection
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import DuplicateKeyError
from pydantic import ValidationError

from .mongo_client import get_collection
from ..domain.models import WorkflowDefinition
from ..domain.enums import WorkflowStatus
from ..domain.errors import (
    WorkflowNotFoundError, WorkflowValidationError, AlreadyExistsError
)
from ..utils.logger import get_logger

logger = get_logger(__name__)


class WorkflowRepository:
    """Repository for workflow definition operations"""
    
    def __init__(self, workflows: Optional[Collection] = None):
        self._workflows: Collection = workflows if workflows is not None else get_collection("workflows")
    
    def create_workflow(self, workflow: WorkflowDefinition) -> WorkflowDefinition:
        """Create a new workflow definition"""
        doc = workflow.model_dump()
        doc["_id"] = workflow.workflow_id
        
        try:
            self._workflows.insert_one(doc)
        except DuplicateKeyError:
            raise AlreadyExistsError(
                f"Workflow {workflow.workflow_id} already exists",
                details={"workflow_id": workflow.workflow_id}
            )
        logger.info(
            f"Created workflow: {workflow.workflow_id} ({len(workflow.steps)} steps)",
            extra={"workflow_id": workflow.workflow_id}
        )
        return workflow
    
    def get_workflow(self, workflow_id: str) -> Optional[WorkflowDefinition]:
        """Get workflow by ID"""
        doc = self._workflows.find_one({"workflow_id": workflow_id})
        if doc:
            return self._to_model(doc)
        return None
    
    def get_workflow_or_raise(self, workflow_id: str) -> WorkflowDefinition:
        """Get workflow by ID or raise error"""
        workflow = self.get_workflow(workflow_id)
        if not workflow:
            raise WorkflowNotFoundError(
                f"Workflow {workflow_id} not found",
                details={"workflow_id": workflow_id}
            )
        return workflow
    
    def list_active_by_trigger(self, trigger_type: str) -> List[WorkflowDefinition]:
        """All ACTIVE definitions for a trigger.

        Corrupted definitions are logged and left out so that one bad
        document cannot block every case on the same trigger.
        """
        cursor = self._workflows.find({
            "trigger_type": trigger_type,
            "status": WorkflowStatus.ACTIVE.value
        }).sort("created_at", ASCENDING)
        
        workflows = []
        for doc in cursor:
            try:
                workflows.append(self._to_model(doc))
            except WorkflowValidationError as e:
                logger.error(e.message, extra={"workflow_id": doc.get("workflow_id")})
        return workflows
    
    def list_workflows(
        self,
        status: Optional[WorkflowStatus] = None,
        skip: int = 0,
        limit: int = 50
    ) -> List[WorkflowDefinition]:
        """List workflows with optional status filter"""
        query: Dict[str, Any] = {}
        if status:
            query["status"] = status.value
        
        cursor = self._workflows.find(query).sort("updated_at", DESCENDING).skip(skip).limit(limit)
        return [self._to_model(doc) for doc in cursor]
    
    def update_status(self, workflow_id: str, status: WorkflowStatus) -> WorkflowDefinition:
        """Change a definition's lifecycle status"""
        now = datetime.utcnow()
        updates: Dict[str, Any] = {"status": status.value, "updated_at": now}
        if status == WorkflowStatus.ACTIVE:
            updates["published_at"] = now
        
        result = self._workflows.find_one_and_update(
            {"workflow_id": workflow_id},
            {"$set": updates},
            return_document=True
        )
        if result is None:
            raise WorkflowNotFoundError(
                f"Workflow {workflow_id} not found",
                details={"workflow_id": workflow_id}
            )
        logger.info(
            f"Workflow {workflow_id} is now {status.value}",
            extra={"workflow_id": workflow_id, "status": status.value}
        )
        return self._to_model(result)
    
    def _to_model(self, doc: Dict[str, Any]) -> WorkflowDefinition:
        doc.pop("_id", None)
        try:
            return WorkflowDefinition.model_validate(doc)
        except ValidationError as e:
            workflow_id = doc.get("workflow_id")
            raise WorkflowValidationError(
                f"Corrupted workflow data for {workflow_id}: {str(e)[:500]}",
                details={"workflow_id": workflow_id, "error_count": len(e.errors())}
            )
