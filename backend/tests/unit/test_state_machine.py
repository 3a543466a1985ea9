"""Tests for execution status transitions"""
import pytest

from caseflow.domain.enums import ExecutionStatus
from caseflow.domain.errors import InvalidStateError
from caseflow.domain.state_machine import ALLOWED_TRANSITIONS, can_transition, ensure_transition

TERMINAL = [ExecutionStatus.COMPLETED, ExecutionStatus.FAILED, ExecutionStatus.CANCELLED]


@pytest.mark.parametrize("current,target", [
    (ExecutionStatus.PENDING, ExecutionStatus.IN_PROGRESS),
    (ExecutionStatus.IN_PROGRESS, ExecutionStatus.WAITING),
    (ExecutionStatus.WAITING, ExecutionStatus.IN_PROGRESS),
    (ExecutionStatus.IN_PROGRESS, ExecutionStatus.COMPLETED),
    (ExecutionStatus.IN_PROGRESS, ExecutionStatus.FAILED),
    (ExecutionStatus.WAITING, ExecutionStatus.CANCELLED),
])
def test_allowed_transitions(current, target) -> None:
    assert can_transition(current, target) is True


@pytest.mark.parametrize("current,target", [
    (ExecutionStatus.PENDING, ExecutionStatus.COMPLETED),
    (ExecutionStatus.PENDING, ExecutionStatus.WAITING),
    (ExecutionStatus.WAITING, ExecutionStatus.COMPLETED),
])
def test_forbidden_transitions(current, target) -> None:
    assert can_transition(current, target) is False


@pytest.mark.parametrize("terminal", TERMINAL)
def test_terminal_states_have_no_exits(terminal) -> None:
    assert ALLOWED_TRANSITIONS[terminal] == frozenset()
    for target in ExecutionStatus:
        assert can_transition(terminal, target) is False


def test_ensure_transition_accepts_raw_values() -> None:
    ensure_transition("waiting", "in_progress", "EXE-1")


def test_ensure_transition_raises_with_details() -> None:
    with pytest.raises(InvalidStateError) as exc_info:
        ensure_transition(ExecutionStatus.COMPLETED, ExecutionStatus.CANCELLED, "EXE-1")

    assert exc_info.value.details == {
        "execution_id": "EXE-1",
        "current_status": "completed",
        "target_status": "cancelled",
    }
    assert exc_info.value.http_status == 409
