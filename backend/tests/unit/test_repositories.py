"""Tests for MongoDB repositories against mocked collections"""
from datetime import datetime
from unittest.mock import MagicMock

import pytest
from pymongo.errors import DuplicateKeyError

from caseflow.domain.errors import (
    AlreadyExistsError, ConcurrencyError, ExecutionNotFoundError, InvalidStateError,
    TaskNotFoundError, WorkflowNotFoundError
)
from caseflow.domain.enums import TaskStatus, WorkflowStatus
from caseflow.domain.models import WorkflowExecution
from caseflow.repositories.case_repo import CaseRepository
from caseflow.repositories.execution_repo import ExecutionRepository
from caseflow.repositories.task_repo import TaskRepository
from caseflow.repositories.workflow_repo import WorkflowRepository
from tests.conftest import build_workflow

NOW = datetime(2024, 1, 1)


def _execution_doc(**overrides):
    doc = {
        "_id": "EXE-1",
        "execution_id": "EXE-1",
        "workflow_id": "WF-1",
        "case_id": "CASE-1",
        "status": "in_progress",
        "current_step_order": 1,
        "created_at": NOW,
        "updated_at": NOW,
        "version": 4,
    }
    doc.update(overrides)
    return doc


# =============================================================================
# Executions
# =============================================================================

def test_update_execution_bumps_version() -> None:
    collection = MagicMock()
    collection.find_one_and_update.return_value = _execution_doc()
    repo = ExecutionRepository(executions=collection)

    execution = repo.update_execution("EXE-1", {"current_step_order": 1}, expected_version=3)

    query, update = collection.find_one_and_update.call_args[0]
    assert query == {"execution_id": "EXE-1", "version": 3}
    assert update["$set"]["version"] == 4
    assert update["$set"]["current_step_order"] == 1
    assert execution.version == 4


def test_update_execution_version_mismatch() -> None:
    collection = MagicMock()
    collection.find_one_and_update.return_value = None
    collection.find_one.return_value = _execution_doc()
    repo = ExecutionRepository(executions=collection)

    with pytest.raises(ConcurrencyError):
        repo.update_execution("EXE-1", {"status": "waiting"}, expected_version=2)


def test_update_missing_execution() -> None:
    collection = MagicMock()
    collection.find_one_and_update.return_value = None
    collection.find_one.return_value = None
    repo = ExecutionRepository(executions=collection)

    with pytest.raises(ExecutionNotFoundError):
        repo.update_execution("EXE-404", {"status": "waiting"}, expected_version=1)


def test_get_execution_strips_mongo_id() -> None:
    collection = MagicMock()
    collection.find_one.return_value = _execution_doc()
    repo = ExecutionRepository(executions=collection)

    execution = repo.get_execution("EXE-1")

    assert execution.execution_id == "EXE-1"
    assert execution.current_step_order == 1


def test_create_execution_uses_execution_id_as_key() -> None:
    collection = MagicMock()
    repo = ExecutionRepository(executions=collection)
    doc = _execution_doc()
    doc.pop("_id")
    execution = WorkflowExecution.model_validate(doc)

    repo.create_execution(execution)

    stored = collection.insert_one.call_args[0][0]
    assert stored["_id"] == "EXE-1"
    assert isinstance(stored["created_at"], datetime)


# =============================================================================
# Workflows
# =============================================================================

def test_duplicate_workflow_rejected() -> None:
    collection = MagicMock()
    collection.insert_one.side_effect = DuplicateKeyError("duplicate key")
    repo = WorkflowRepository(workflows=collection)

    with pytest.raises(AlreadyExistsError):
        repo.create_workflow(build_workflow([], workflow_id="WF-dup"))


def test_corrupted_definitions_are_skipped() -> None:
    good = build_workflow([{"step_type": "payment_check"}], workflow_id="WF-good").model_dump()
    bad = dict(good, workflow_id="WF-bad", steps=[{"step_id": "S", "name": "x", "step_type": "webhook", "order": 0}])
    collection = MagicMock()
    collection.find.return_value.sort.return_value = [dict(good, _id="WF-good"), dict(bad, _id="WF-bad")]
    repo = WorkflowRepository(workflows=collection)

    workflows = repo.list_active_by_trigger("permit_submitted")

    assert [w.workflow_id for w in workflows] == ["WF-good"]
    assert collection.find.call_args[0][0] == {"trigger_type": "permit_submitted", "status": "active"}


def test_activate_sets_published_at() -> None:
    collection = MagicMock()
    collection.find_one_and_update.return_value = build_workflow([], workflow_id="WF-1").model_dump()
    repo = WorkflowRepository(workflows=collection)

    repo.update_status("WF-1", WorkflowStatus.ACTIVE)

    updates = collection.find_one_and_update.call_args[0][1]["$set"]
    assert updates["status"] == "active"
    assert "published_at" in updates


def test_update_status_unknown_workflow() -> None:
    collection = MagicMock()
    collection.find_one_and_update.return_value = None
    repo = WorkflowRepository(workflows=collection)

    with pytest.raises(WorkflowNotFoundError):
        repo.update_status("WF-404", WorkflowStatus.INACTIVE)


# =============================================================================
# Tasks and cases
# =============================================================================

def test_pending_counts_default_to_zero() -> None:
    collection = MagicMock()
    collection.aggregate.return_value = [{"_id": "USR-1", "count": 2}]
    repo = TaskRepository(tasks=collection)

    counts = repo.count_pending_by_assignee(["USR-1", "USR-2"])

    assert counts == {"USR-1": 2, "USR-2": 0}


def test_pending_counts_without_users_skip_query() -> None:
    collection = MagicMock()
    repo = TaskRepository(tasks=collection)

    assert repo.count_pending_by_assignee([]) == {}
    collection.aggregate.assert_not_called()


def test_count_documents_filters_by_type() -> None:
    documents = MagicMock()
    documents.count_documents.return_value = 2
    repo = CaseRepository(cases=MagicMock(), documents=documents, payments=MagicMock())

    assert repo.count_documents("CASE-1", ["plans", "survey"]) == 2
    documents.count_documents.assert_called_once_with(
        {"case_id": "CASE-1", "document_type": {"$in": ["plans", "survey"]}}
    )


def test_has_completed_payment() -> None:
    payments = MagicMock()
    payments.find_one.return_value = None
    repo = CaseRepository(cases=MagicMock(), documents=MagicMock(), payments=payments)

    assert repo.has_completed_payment("CASE-1") is False
    payments.find_one.assert_called_once_with({"case_id": "CASE-1", "status": "completed"})


def _task_doc(**overrides):
    doc = {
        "_id": "TSK-1",
        "task_id": "TSK-1",
        "execution_id": "EXE-1",
        "title": "Review",
        "status": "pending",
        "created_at": NOW,
        "updated_at": NOW,
    }
    doc.update(overrides)
    return doc


def test_conditional_task_update_filters_on_status() -> None:
    collection = MagicMock()
    collection.find_one_and_update.return_value = _task_doc(status="completed")
    repo = TaskRepository(tasks=collection)

    task = repo.update_task("TSK-1", {"status": "completed"}, expected_status=TaskStatus.PENDING)

    assert task.status == TaskStatus.COMPLETED
    query = collection.find_one_and_update.call_args.args[0]
    assert query == {"task_id": "TSK-1", "status": "pending"}


def test_conditional_task_update_loses_to_earlier_writer() -> None:
    collection = MagicMock()
    collection.find_one_and_update.return_value = None
    collection.find_one.return_value = _task_doc(status="completed")
    repo = TaskRepository(tasks=collection)

    with pytest.raises(InvalidStateError) as exc_info:
        repo.update_task("TSK-1", {"status": "completed"}, expected_status=TaskStatus.PENDING)

    assert exc_info.value.details["current_status"] == "completed"


def test_conditional_update_of_unknown_task() -> None:
    collection = MagicMock()
    collection.find_one_and_update.return_value = None
    collection.find_one.return_value = None
    repo = TaskRepository(tasks=collection)

    with pytest.raises(TaskNotFoundError):
        repo.update_task("TSK-404", {"status": "completed"}, expected_status=TaskStatus.PENDING)


def test_list_tasks_filters_and_pages() -> None:
    collection = MagicMock()
    collection.find.return_value.sort.return_value.skip.return_value.limit.return_value = [
        _task_doc(assigned_to="USR-staff-1")
    ]
    repo = TaskRepository(tasks=collection)

    tasks = repo.list_tasks(assigned_to="USR-staff-1", status=TaskStatus.PENDING, skip=10, limit=5)

    assert [t.task_id for t in tasks] == ["TSK-1"]
    collection.find.assert_called_once_with({"assigned_to": "USR-staff-1", "status": "pending"})
    collection.find.return_value.sort.return_value.skip.assert_called_once_with(10)
    collection.find.return_value.sort.return_value.skip.return_value.limit.assert_called_once_with(5)
