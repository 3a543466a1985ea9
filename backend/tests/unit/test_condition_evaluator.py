"""Tests for step condition evaluation"""
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import pytest

from caseflow.domain.models import CaseRecord, StepConditions, StepHistoryEntry
from caseflow.engine.condition_evaluator import ConditionEvaluator, evaluate


def _case(**overrides: Any) -> CaseRecord:
    data = {"case_id": "CASE-1", "case_number": "BP-1", "case_type": "building", "estimated_cost": 20000}
    data.update(overrides)
    return CaseRecord(**data)


def _entry(name: str, success: Optional[bool], skipped: bool = False, step_id: str = "S") -> StepHistoryEntry:
    result: Optional[Dict[str, Any]] = None if success is None else {"success": success}
    return StepHistoryEntry(
        step_id=step_id,
        step_name=name,
        step_type="document_check",
        order=0,
        result=result,
        skipped=skipped,
        timestamp=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )


def test_no_conditions_always_apply() -> None:
    assert evaluate(None, _case(), []) is True
    assert evaluate(StepConditions(), _case(), []) is True


def test_case_type_must_match() -> None:
    conditions = StepConditions(case_type="electrical")
    assert evaluate(conditions, _case(), []) is False
    assert evaluate(conditions, _case(case_type="electrical"), []) is True


def test_cost_bounds_are_inclusive() -> None:
    conditions = StepConditions.model_validate({"minCost": 10000, "maxCost": 20000})
    assert evaluate(conditions, _case(estimated_cost=10000), []) is True
    assert evaluate(conditions, _case(estimated_cost=20000), []) is True
    assert evaluate(conditions, _case(estimated_cost=9999.99), []) is False
    assert evaluate(conditions, _case(estimated_cost=20000.01), []) is False


def test_missing_numeric_value_fails_closed() -> None:
    conditions = StepConditions(min_value=0)
    assert evaluate(conditions, _case(estimated_cost=None), []) is False


def test_non_numeric_field_fails_closed() -> None:
    conditions = StepConditions(numeric_field="description", max_value=100)
    assert evaluate(conditions, _case(description="not a number"), []) is False


def test_unknown_numeric_field_fails_closed() -> None:
    conditions = StepConditions(numeric_field="unknown_field", min_value=1)
    assert evaluate(conditions, _case(), []) is False


def test_all_predicates_are_combined() -> None:
    conditions = StepConditions(case_type="building", min_value=50000)
    assert evaluate(conditions, _case(estimated_cost=20000), []) is False
    assert evaluate(conditions, _case(estimated_cost=60000), []) is True


@pytest.mark.parametrize("history,expected", [
    ([], False),
    ([_entry("Document Check", True)], True),
    ([_entry("Document Check", False)], False),
    ([_entry("Document Check", None, skipped=True)], False),
    ([_entry("Document Check", False), _entry("Document Check", True)], True),
    ([_entry("Document Check", True), _entry("Document Check", None, skipped=True)], True),
])
def test_require_step_result(history, expected) -> None:
    conditions = StepConditions(require_step_result="Document Check")
    assert evaluate(conditions, _case(), history) is expected


def test_require_step_result_matches_step_id() -> None:
    conditions = StepConditions.model_validate({"requireStepResult": "STP-42"})
    history = [_entry("Anything", True, step_id="STP-42")]
    assert ConditionEvaluator().evaluate(conditions, _case(), history) is True


def test_evaluation_does_not_mutate_inputs() -> None:
    case = _case()
    history = [_entry("Document Check", True)]
    snapshot = (case.model_dump(), [h.model_dump() for h in history])

    evaluate(StepConditions(require_step_result="Document Check", min_value=1), case, history)

    assert (case.model_dump(), [h.model_dump() for h in history]) == snapshot
