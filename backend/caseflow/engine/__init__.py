"""Workflow Engine - The brain of the system"""
from .engine import WorkflowEngine
from .task_bridge import TaskBridge
from .trigger_resolver import TriggerResolver
from .step_executor import StepExecutor
from .condition_evaluator import ConditionEvaluator, evaluate
from .execution_lock import ExecutionLockRegistry
from .audit_writer import AuditWriter

__all__ = [
    "WorkflowEngine",
    "TaskBridge",
    "TriggerResolver",
    "StepExecutor",
    "ConditionEvaluator",
    "evaluate",
    "ExecutionLockRegistry",
    "AuditWriter",
]
