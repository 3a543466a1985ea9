"""Execution Repository - Data access for workflow executions"""
from typing import Any, Dict, List, Optional
from datetime import datetime
from pymongo.collection import Collection
from pymongo import DESCENDING

from .mongo_client import get_collection
from ..domain.models import WorkflowExecution
from ..domain.enums import ExecutionStatus
from ..domain.errors import ExecutionNotFoundError, ConcurrencyError
from ..utils.logger import get_logger

logger = get_logger(__name__)


class ExecutionRepository:
    """Repository for workflow execution operations"""
    
    def __init__(self, executions: Optional[Collection] = None):
        self._executions: Collection = (
            executions if executions is not None else get_collection("workflow_executions")
        )
    
    def create_execution(self, execution: WorkflowExecution) -> WorkflowExecution:
        """Create a new execution"""
        # Don't use mode="json" - it converts datetime to strings, breaking MongoDB sorting
        doc = execution.model_dump()
        doc["_id"] = execution.execution_id
        
        self._executions.insert_one(doc)
        logger.info(
            f"Created execution: {execution.execution_id}",
            extra={
                "execution_id": execution.execution_id,
                "workflow_id": execution.workflow_id,
                "case_id": execution.case_id
            }
        )
        return execution
    
    def get_execution(self, execution_id: str) -> Optional[WorkflowExecution]:
        """Get execution by ID"""
        doc = self._executions.find_one({"execution_id": execution_id})
        if doc:
            doc.pop("_id", None)
            return WorkflowExecution.model_validate(doc)
        return None
    
    def get_execution_or_raise(self, execution_id: str) -> WorkflowExecution:
        """Get execution by ID or raise error"""
        execution = self.get_execution(execution_id)
        if not execution:
            raise ExecutionNotFoundError(
                f"Execution {execution_id} not found",
                details={"execution_id": execution_id}
            )
        return execution
    
    def update_execution(
        self,
        execution_id: str,
        updates: Dict[str, Any],
        expected_version: Optional[int] = None
    ) -> WorkflowExecution:
        """Update execution with optimistic concurrency"""
        updates["updated_at"] = datetime.utcnow()
        
        filter_query: Dict[str, Any] = {"execution_id": execution_id}
        if expected_version is not None:
            filter_query["version"] = expected_version
            updates["version"] = expected_version + 1
        
        result = self._executions.find_one_and_update(
            filter_query,
            {"$set": updates},
            return_document=True
        )
        
        if result is None:
            if expected_version is not None:
                exists = self._executions.find_one({"execution_id": execution_id})
                if exists:
                    raise ConcurrencyError(
                        f"Execution {execution_id} was modified concurrently",
                        details={"execution_id": execution_id, "expected_version": expected_version}
                    )
            raise ExecutionNotFoundError(
                f"Execution {execution_id} not found",
                details={"execution_id": execution_id}
            )
        
        result.pop("_id", None)
        logger.debug(f"Updated execution: {execution_id}", extra={"execution_id": execution_id})
        return WorkflowExecution.model_validate(result)
    
    def list_for_case(
        self,
        case_id: str,
        status: Optional[ExecutionStatus] = None,
        skip: int = 0,
        limit: int = 50
    ) -> List[WorkflowExecution]:
        """Executions for a case, newest first"""
        query: Dict[str, Any] = {"case_id": case_id}
        if status:
            query["status"] = status.value
        
        cursor = self._executions.find(query).sort("created_at", DESCENDING).skip(skip).limit(limit)
        
        executions = []
        for doc in cursor:
            doc.pop("_id", None)
            executions.append(WorkflowExecution.model_validate(doc))
        return executions
