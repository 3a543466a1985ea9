"""Task Repository - Data access for human tasks"""
from typing import Any, Dict, List, Optional
from datetime import datetime
from pymongo.collection import Collection
from pymongo import ASCENDING, DESCENDING

from .mongo_client import get_collection
from ..domain.models import Task
from ..domain.enums import TaskStatus
from ..domain.errors import InvalidStateError, TaskNotFoundError
from ..utils.logger import get_logger

logger = get_logger(__name__)


class TaskRepository:
    """Repository for task operations"""
    
    def __init__(self, tasks: Optional[Collection] = None):
        self._tasks: Collection = tasks if tasks is not None else get_collection("tasks")
    
    def create_task(self, task: Task) -> Task:
        """Create a new task"""
        doc = task.model_dump()
        doc["_id"] = task.task_id
        
        self._tasks.insert_one(doc)
        logger.info(
            f"Created task: {task.task_id}",
            extra={"task_id": task.task_id, "execution_id": task.execution_id}
        )
        return task
    
    def get_task(self, task_id: str) -> Optional[Task]:
        """Get task by ID"""
        doc = self._tasks.find_one({"task_id": task_id})
        if doc:
            doc.pop("_id", None)
            return Task.model_validate(doc)
        return None
    
    def get_task_or_raise(self, task_id: str) -> Task:
        """Get task by ID or raise error"""
        task = self.get_task(task_id)
        if not task:
            raise TaskNotFoundError(f"Task {task_id} not found", details={"task_id": task_id})
        return task
    
    def update_task(
        self,
        task_id: str,
        updates: Dict[str, Any],
        expected_status: Optional[TaskStatus] = None
    ) -> Task:
        """
        Apply field updates to a task
        
        With expected_status the update only matches a task still in that
        status, so two concurrent completions cannot both succeed.
        
        Raises:
            TaskNotFoundError: Unknown task
            InvalidStateError: Task is no longer in expected_status
        """
        query: Dict[str, Any] = {"task_id": task_id}
        if expected_status is not None:
            query["status"] = TaskStatus(expected_status).value
        
        updates["updated_at"] = datetime.utcnow()
        result = self._tasks.find_one_and_update(
            query,
            {"$set": updates},
            return_document=True
        )
        if result is None:
            current = self.get_task_or_raise(task_id)
            raise InvalidStateError(
                f"Task {task_id} is {current.status.value}, expected {query.get('status')}",
                details={"task_id": task_id, "current_status": current.status.value}
            )
        
        result.pop("_id", None)
        logger.info(f"Updated task: {task_id}", extra={"task_id": task_id})
        return Task.model_validate(result)
    
    def list_tasks(
        self,
        assigned_to: Optional[str] = None,
        status: Optional[TaskStatus] = None,
        skip: int = 0,
        limit: int = 50
    ) -> List[Task]:
        """Task inbox filtered by assignee and status, newest first"""
        query: Dict[str, Any] = {}
        if assigned_to:
            query["assigned_to"] = assigned_to
        if status:
            query["status"] = TaskStatus(status).value
        
        cursor = self._tasks.find(query).sort("created_at", DESCENDING).skip(skip).limit(limit)
        
        tasks = []
        for doc in cursor:
            doc.pop("_id", None)
            tasks.append(Task.model_validate(doc))
        return tasks
    
    def list_pending_for_execution(self, execution_id: str) -> List[Task]:
        """Pending tasks owned by an execution"""
        cursor = self._tasks.find({
            "execution_id": execution_id,
            "status": TaskStatus.PENDING.value
        }).sort("created_at", ASCENDING)
        
        tasks = []
        for doc in cursor:
            doc.pop("_id", None)
            tasks.append(Task.model_validate(doc))
        return tasks
    
    def count_pending_by_assignee(self, user_ids: List[str]) -> Dict[str, int]:
        """Pending task counts per assignee; users with no tasks map to 0"""
        counts = {user_id: 0 for user_id in user_ids}
        if not user_ids:
            return counts
        
        pipeline = [
            {"$match": {"assigned_to": {"$in": user_ids}, "status": TaskStatus.PENDING.value}},
            {"$group": {"_id": "$assigned_to", "count": {"$sum": 1}}}
        ]
        for row in self._tasks.aggregate(pipeline):
            counts[row["_id"]] = row["count"]
        return counts
