"""Execution State Machine - allowed status transitions"""
from typing import Dict, FrozenSet

from .enums import ExecutionStatus
from .errors import InvalidStateError


ALLOWED_TRANSITIONS: Dict[ExecutionStatus, FrozenSet[ExecutionStatus]] = {
    ExecutionStatus.PENDING: frozenset({
        ExecutionStatus.IN_PROGRESS,
        ExecutionStatus.CANCELLED,
    }),
    ExecutionStatus.IN_PROGRESS: frozenset({
        ExecutionStatus.WAITING,
        ExecutionStatus.COMPLETED,
        ExecutionStatus.FAILED,
        ExecutionStatus.CANCELLED,
    }),
    ExecutionStatus.WAITING: frozenset({
        ExecutionStatus.IN_PROGRESS,
        ExecutionStatus.FAILED,
        ExecutionStatus.CANCELLED,
    }),
    # Terminal
    ExecutionStatus.COMPLETED: frozenset(),
    ExecutionStatus.FAILED: frozenset(),
    ExecutionStatus.CANCELLED: frozenset(),
}


def can_transition(current: ExecutionStatus, target: ExecutionStatus) -> bool:
    return target in ALLOWED_TRANSITIONS.get(ExecutionStatus(current), frozenset())


def ensure_transition(
    current: ExecutionStatus,
    target: ExecutionStatus,
    execution_id: str
) -> None:
    """Raise InvalidStateError unless current -> target is allowed"""
    if not can_transition(current, target):
        raise InvalidStateError(
            f"Execution {execution_id} cannot move from {ExecutionStatus(current).value} "
            f"to {ExecutionStatus(target).value}",
            details={
                "execution_id": execution_id,
                "current_status": ExecutionStatus(current).value,
                "target_status": ExecutionStatus(target).value
            }
        )
