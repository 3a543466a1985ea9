"""Condition Evaluator - Decide whether a workflow step applies to a case"""
from typing import Any, Optional, Sequence

from ..domain.models import CaseRecord, StepConditions, StepHistoryEntry
from ..utils.logger import get_logger

logger = get_logger(__name__)


class ConditionEvaluator:
    """
    Evaluate step conditions against a case and its step history
    
    Every predicate present in the conditions must hold (AND). Evaluation
    is pure: nothing is read from or written to storage.
    """
    
    def evaluate(
        self,
        conditions: Optional[StepConditions],
        case_record: CaseRecord,
        step_history: Sequence[StepHistoryEntry]
    ) -> bool:
        """
        Evaluate a step's conditions
        
        Args:
            conditions: Step conditions (None or empty means always applies)
            case_record: The case being processed
            step_history: Steps attempted so far in this execution
            
        Returns:
            True if the step should run
        """
        if conditions is None or conditions.is_empty():
            return True  # No conditions = always true
        
        if conditions.case_type is not None and case_record.case_type != conditions.case_type:
            return False
        
        if conditions.min_value is not None or conditions.max_value is not None:
            value = self._numeric_value(case_record, conditions.numeric_field)
            if value is None:
                return False  # Fail closed
            if conditions.min_value is not None and value < conditions.min_value:
                return False
            if conditions.max_value is not None and value > conditions.max_value:
                return False
        
        if conditions.require_step_result is not None:
            if not self._prior_step_succeeded(conditions.require_step_result, step_history):
                return False
        
        return True
    
    def _numeric_value(self, case_record: CaseRecord, field: str) -> Optional[float]:
        """Read a numeric case field; missing or non-numeric values yield None"""
        raw: Any = getattr(case_record, field, None)
        if raw is None or isinstance(raw, bool):
            return None
        try:
            return float(raw)
        except (ValueError, TypeError):
            logger.debug(f"Field {field} is not numeric: {raw!r}", extra={"case_id": case_record.case_id})
            return None
    
    def _prior_step_succeeded(
        self,
        step_ref: str,
        step_history: Sequence[StepHistoryEntry]
    ) -> bool:
        """Latest non-skipped entry whose step name or ID matches must have succeeded"""
        for entry in reversed(step_history):
            if entry.skipped:
                continue
            if entry.step_name == step_ref or entry.step_id == step_ref:
                return entry.succeeded
        return False


_default_evaluator = ConditionEvaluator()


def evaluate(
    conditions: Optional[StepConditions],
    case_record: CaseRecord,
    step_history: Sequence[StepHistoryEntry]
) -> bool:
    """Module-level shortcut for ConditionEvaluator().evaluate"""
    return _default_evaluator.evaluate(conditions, case_record, step_history)
