"""
Validate stored workflow definitions

Reports definitions whose steps do not load (unknown step types, bad
config) or whose step orders are not unique and dense from 0.

Run: python -m scripts.validate_workflow [workflow_id ...]
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from typing import Any, Dict, List

from pydantic import ValidationError

from caseflow.domain.models import WorkflowDefinition


def check_step_orders(doc: Dict[str, Any]) -> List[str]:
    """Problems with the raw step order values of a workflow document"""
    problems = []
    orders = [step.get("order") for step in doc.get("steps", [])]
    
    missing = [i for i, order in enumerate(orders) if not isinstance(order, int)]
    if missing:
        problems.append(f"steps without an integer order at positions {missing}")
        return problems
    
    duplicates = sorted({o for o in orders if orders.count(o) > 1})
    if duplicates:
        problems.append(f"duplicate orders {duplicates}")
    
    expected = set(range(len(orders)))
    gaps = sorted(expected - set(orders))
    if gaps:
        problems.append(f"missing orders {gaps}")
    out_of_range = sorted(set(orders) - expected)
    if out_of_range:
        problems.append(f"orders outside 0..{len(orders) - 1}: {out_of_range}")
    return problems


def validate_document(doc: Dict[str, Any]) -> List[str]:
    """All problems found in a workflow document (empty when valid)"""
    problems = check_step_orders(doc)
    doc = {k: v for k, v in doc.items() if k != "_id"}
    try:
        WorkflowDefinition.model_validate(doc)
    except ValidationError as e:
        for err in e.errors():
            location = ".".join(str(part) for part in err["loc"])
            problems.append(f"{location or 'workflow'}: {err['msg']}")
    return problems


def main(workflow_ids: List[str]) -> int:
    from caseflow.repositories.mongo_client import get_collection
    
    query: Dict[str, Any] = {"workflow_id": {"$in": workflow_ids}} if workflow_ids else {}
    invalid = 0
    checked = 0
    for doc in get_collection("workflows").find(query):
        checked += 1
        problems = validate_document(doc)
        label = f"{doc.get('workflow_id')} ({doc.get('name')})"
        if problems:
            invalid += 1
            print(f"INVALID {label}")
            for problem in problems:
                print(f"   - {problem}")
        else:
            print(f"OK      {label}: {len(doc.get('steps', []))} steps")
    
    print(f"\nChecked {checked} workflows, {invalid} invalid")
    return 1 if invalid else 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
