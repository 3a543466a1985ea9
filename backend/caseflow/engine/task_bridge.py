"""Task Bridge - Complete human tasks and resume the waiting execution"""
from typing import Optional

from ..domain.models import TaskCompletion
from ..domain.enums import TaskStatus
from ..domain.errors import InvalidStateError
from ..repositories.task_repo import TaskRepository
from ..utils.time import utc_now
from ..utils.logger import get_logger
from .engine import WorkflowEngine

logger = get_logger(__name__)


class TaskBridge:
    """Connects human task completion back to the workflow engine"""
    
    def __init__(self, engine: WorkflowEngine, task_repo: Optional[TaskRepository] = None):
        self.engine = engine
        self.task_repo = task_repo or engine.task_repo
    
    def complete(
        self,
        task_id: str,
        result: str = "completed",
        completed_by: Optional[str] = None,
        notes: Optional[str] = None
    ) -> TaskCompletion:
        """
        Complete a pending task and resume its execution
        
        The pending -> completed update is conditional, so of two concurrent
        completions only one wins. The execution resumes only while it is
        still waiting on the task's own step; a task left over from an
        earlier step, or one whose execution was cancelled meanwhile, stays
        completed with resumed=False.
        
        Raises:
            TaskNotFoundError: Unknown task
            InvalidStateError: Task is not pending
        """
        updates = {
            "status": TaskStatus.COMPLETED.value,
            "outcome": result,
            "completed_by": completed_by,
            "completed_at": utc_now()
        }
        if notes is not None:
            updates["notes"] = notes
        task = self.task_repo.update_task(task_id, updates, expected_status=TaskStatus.PENDING)
        logger.info(
            f"Task completed with outcome {result}",
            extra={"task_id": task_id, "execution_id": task.execution_id}
        )
        
        if not task.execution_id:
            return TaskCompletion(task=task)
        
        execution = self.engine.execution_repo.get_execution(task.execution_id)
        if execution is None:
            logger.warning(
                f"Task references missing execution {task.execution_id}",
                extra={"task_id": task_id}
            )
            return TaskCompletion(task=task)
        
        self.engine.audit_writer.write_task_completed(execution, task_id, result, completed_by)
        
        try:
            execution = self.engine.resume(task.execution_id, step_id=task.step_id)
        except InvalidStateError as e:
            logger.warning(
                f"Task completed but execution not resumed: {e.message}",
                extra={"task_id": task_id, "execution_id": task.execution_id}
            )
            return TaskCompletion(
                task=task,
                execution=self.engine.execution_repo.get_execution(task.execution_id),
                resumed=False
            )
        
        return TaskCompletion(task=task, execution=execution, resumed=True)
