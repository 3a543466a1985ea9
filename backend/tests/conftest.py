"""
Pytest Configuration and Fixtures

In-memory stand-ins for the MongoDB repositories and the AI advisor, plus a
WorkflowEngine wired to them. The real NotificationService, DirectoryService
and AuditWriter are used on top of the in-memory repositories.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional

import pytest

from caseflow.domain.models import (
    AuditEvent, CaseRecord, Inspection, Notification, Task, UserRecord,
    WorkflowDefinition, WorkflowExecution
)
from caseflow.domain.enums import TaskStatus, UserStatus, WorkflowStatus
from caseflow.domain.errors import (
    CaseNotFoundError, CollaboratorUnavailable, ConcurrencyError,
    ExecutionNotFoundError, InvalidStateError, TaskNotFoundError, WorkflowNotFoundError
)
from caseflow.engine.audit_writer import AuditWriter
from caseflow.engine.engine import WorkflowEngine
from caseflow.engine.task_bridge import TaskBridge
from caseflow.services.directory_service import DirectoryService
from caseflow.services.notification_service import NotificationService
from caseflow.utils.time import utc_now


# =============================================================================
# In-memory repositories
# =============================================================================

class InMemoryCaseRepository:
    def __init__(self):
        self.cases: Dict[str, CaseRecord] = {}
        self.documents: Dict[str, int] = {}
        self.paid: set = set()

    def add(self, case: CaseRecord) -> CaseRecord:
        self.cases[case.case_id] = case
        return case

    def get_case(self, case_id: str) -> Optional[CaseRecord]:
        case = self.cases.get(case_id)
        return case.model_copy(deep=True) if case else None

    def get_case_or_raise(self, case_id: str) -> CaseRecord:
        case = self.get_case(case_id)
        if case is None:
            raise CaseNotFoundError(f"Case {case_id} not found")
        return case

    def update_case(self, case_id: str, updates: Dict[str, Any]) -> CaseRecord:
        if case_id not in self.cases:
            raise CaseNotFoundError(f"Case {case_id} not found")
        updated = self.cases[case_id].model_copy(update=dict(updates, updated_at=utc_now()))
        self.cases[case_id] = updated
        return updated.model_copy(deep=True)

    def count_documents(self, case_id: str, document_types: Optional[list] = None) -> int:
        return self.documents.get(case_id, 0)

    def has_completed_payment(self, case_id: str) -> bool:
        return case_id in self.paid


class InMemoryWorkflowRepository:
    def __init__(self):
        self.workflows: Dict[str, WorkflowDefinition] = {}

    def create_workflow(self, workflow: WorkflowDefinition) -> WorkflowDefinition:
        self.workflows[workflow.workflow_id] = workflow
        return workflow

    def get_workflow(self, workflow_id: str) -> Optional[WorkflowDefinition]:
        return self.workflows.get(workflow_id)

    def get_workflow_or_raise(self, workflow_id: str) -> WorkflowDefinition:
        workflow = self.get_workflow(workflow_id)
        if workflow is None:
            raise WorkflowNotFoundError(f"Workflow {workflow_id} not found")
        return workflow

    def list_active_by_trigger(self, trigger_type: str) -> List[WorkflowDefinition]:
        return [
            w for w in self.workflows.values()
            if w.trigger_type == trigger_type and w.status == WorkflowStatus.ACTIVE
        ]

    def list_workflows(self, status=None, skip: int = 0, limit: int = 50) -> List[WorkflowDefinition]:
        items = [w for w in self.workflows.values() if status is None or w.status == status]
        return items[skip:skip + limit]

    def update_status(self, workflow_id: str, status: WorkflowStatus) -> WorkflowDefinition:
        workflow = self.get_workflow_or_raise(workflow_id)
        updated = workflow.model_copy(update={"status": status, "published_at": utc_now()})
        self.workflows[workflow_id] = updated
        return updated


class InMemoryExecutionRepository:
    def __init__(self):
        self.executions: Dict[str, WorkflowExecution] = {}
        self.snapshots: List[WorkflowExecution] = []

    def create_execution(self, execution: WorkflowExecution) -> WorkflowExecution:
        self.executions[execution.execution_id] = execution
        self.snapshots.append(execution)
        return execution.model_copy(deep=True)

    def get_execution(self, execution_id: str) -> Optional[WorkflowExecution]:
        execution = self.executions.get(execution_id)
        return execution.model_copy(deep=True) if execution else None

    def get_execution_or_raise(self, execution_id: str) -> WorkflowExecution:
        execution = self.get_execution(execution_id)
        if execution is None:
            raise ExecutionNotFoundError(f"Execution {execution_id} not found")
        return execution

    def update_execution(
        self,
        execution_id: str,
        updates: Dict[str, Any],
        expected_version: Optional[int] = None
    ) -> WorkflowExecution:
        current = self.executions.get(execution_id)
        if current is None:
            raise ExecutionNotFoundError(f"Execution {execution_id} not found")
        if expected_version is not None and current.version != expected_version:
            raise ConcurrencyError(f"Execution {execution_id} was modified concurrently")
        data = current.model_dump()
        data.update(updates)
        data["version"] = current.version + 1
        data["updated_at"] = utc_now()
        updated = WorkflowExecution.model_validate(data)
        self.executions[execution_id] = updated
        self.snapshots.append(updated)
        return updated.model_copy(deep=True)

    def list_for_case(self, case_id: str, status=None, skip: int = 0, limit: int = 50) -> List[WorkflowExecution]:
        items = [e for e in self.executions.values() if e.case_id == case_id]
        items.sort(key=lambda e: e.created_at, reverse=True)
        return [e.model_copy(deep=True) for e in items[skip:skip + limit]]


class InMemoryTaskRepository:
    def __init__(self):
        self.tasks: Dict[str, Task] = {}

    def create_task(self, task: Task) -> Task:
        self.tasks[task.task_id] = task
        return task

    def get_task(self, task_id: str) -> Optional[Task]:
        task = self.tasks.get(task_id)
        return task.model_copy(deep=True) if task else None

    def get_task_or_raise(self, task_id: str) -> Task:
        task = self.get_task(task_id)
        if task is None:
            raise TaskNotFoundError(f"Task {task_id} not found")
        return task

    def update_task(
        self, task_id: str, updates: Dict[str, Any], expected_status: Optional[TaskStatus] = None
    ) -> Task:
        if task_id not in self.tasks:
            raise TaskNotFoundError(f"Task {task_id} not found")
        current = self.tasks[task_id].status
        if expected_status is not None and current != TaskStatus(expected_status):
            raise InvalidStateError(
                f"Task {task_id} is {current.value}",
                details={"task_id": task_id, "current_status": current.value}
            )
        data = self.tasks[task_id].model_dump()
        data.update(updates)
        data["updated_at"] = utc_now()
        updated = Task.model_validate(data)
        self.tasks[task_id] = updated
        return updated.model_copy(deep=True)

    def list_tasks(
        self,
        assigned_to: Optional[str] = None,
        status: Optional[TaskStatus] = None,
        skip: int = 0,
        limit: int = 50
    ) -> List[Task]:
        matching = [
            t for t in self.tasks.values()
            if (not assigned_to or t.assigned_to == assigned_to)
            and (not status or t.status == TaskStatus(status))
        ]
        matching.sort(key=lambda t: t.created_at, reverse=True)
        return matching[skip:skip + limit]

    def list_pending_for_execution(self, execution_id: str) -> List[Task]:
        return [
            t for t in self.tasks.values()
            if t.execution_id == execution_id and t.status == TaskStatus.PENDING
        ]

    def count_pending_by_assignee(self, user_ids: List[str]) -> Dict[str, int]:
        counts = {user_id: 0 for user_id in user_ids}
        for task in self.tasks.values():
            if task.status == TaskStatus.PENDING and task.assigned_to in counts:
                counts[task.assigned_to] += 1
        return counts


class InMemoryInspectionRepository:
    def __init__(self):
        self.inspections: List[Inspection] = []

    def create_inspection(self, inspection: Inspection) -> Inspection:
        self.inspections.append(inspection)
        return inspection

    def list_for_case(self, case_id: str) -> List[Inspection]:
        return [i for i in self.inspections if i.case_id == case_id]


class InMemoryUserRepository:
    def __init__(self):
        self.users: Dict[str, UserRecord] = {}

    def add(self, user: UserRecord) -> UserRecord:
        self.users[user.user_id] = user
        return user

    def get_user(self, user_id: str) -> Optional[UserRecord]:
        return self.users.get(user_id)

    def get_by_email(self, email: str) -> Optional[UserRecord]:
        for user in self.users.values():
            if user.email.lower() == email.lower():
                return user
        return None

    def list_active_by_role(self, role: str) -> List[UserRecord]:
        users = [u for u in self.users.values() if u.role == role and u.status == UserStatus.ACTIVE]
        return sorted(users, key=lambda u: u.created_at)


class RecordingNotificationRepository:
    def __init__(self):
        self.notifications: List[Notification] = []

    def create_notification(self, notification: Notification) -> Notification:
        self.notifications.append(notification)
        return notification

    def of_type(self, notification_type: str) -> List[Notification]:
        return [n for n in self.notifications if n.type == notification_type]


class RecordingAuditRepository:
    def __init__(self):
        self.events: List[AuditEvent] = []

    def create_event(self, event: AuditEvent) -> AuditEvent:
        self.events.append(event)
        return event

    def event_types(self) -> List[str]:
        return [e.event_type.value for e in self.events]


class FakeAIAdvisor:
    """Scriptable stand-in for the OpenAI-backed advisor"""

    def __init__(self):
        self.available = True
        self.review_response: Dict[str, Any] = {"approved": True, "confidence": 0.95, "reason": "Looks complete"}
        self.classify_response: Dict[str, Any] = {"type": "building", "confidence": 0.95, "reasoning": ""}
        self.error: Optional[Exception] = None
        self.calls: List[str] = []

    def is_available(self) -> bool:
        return self.available

    def review(self, case_text: str, criteria: Optional[str] = None) -> Dict[str, Any]:
        self.calls.append("review")
        return self._respond(self.review_response)

    def classify(self, case_text: str) -> Dict[str, Any]:
        self.calls.append("classify")
        return self._respond(self.classify_response)

    def _respond(self, response: Dict[str, Any]) -> Dict[str, Any]:
        if not self.available:
            raise CollaboratorUnavailable("AI service not available")
        if self.error is not None:
            raise self.error
        return dict(response)


# =============================================================================
# Fixtures
# =============================================================================

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def case_repo() -> InMemoryCaseRepository:
    return InMemoryCaseRepository()


@pytest.fixture
def workflow_repo() -> InMemoryWorkflowRepository:
    return InMemoryWorkflowRepository()


@pytest.fixture
def execution_repo() -> InMemoryExecutionRepository:
    return InMemoryExecutionRepository()


@pytest.fixture
def task_repo() -> InMemoryTaskRepository:
    return InMemoryTaskRepository()


@pytest.fixture
def inspection_repo() -> InMemoryInspectionRepository:
    return InMemoryInspectionRepository()


@pytest.fixture
def notification_repo() -> RecordingNotificationRepository:
    return RecordingNotificationRepository()


@pytest.fixture
def audit_repo() -> RecordingAuditRepository:
    return RecordingAuditRepository()


@pytest.fixture
def ai_advisor() -> FakeAIAdvisor:
    return FakeAIAdvisor()


@pytest.fixture
def user_repo() -> InMemoryUserRepository:
    """Directory with two staff members, one inspector and the case owner"""
    repo = InMemoryUserRepository()
    users = [
        ("USR-staff-1", "staff.one@example.gov", "Staff One", "staff"),
        ("USR-staff-2", "staff.two@example.gov", "Staff Two", "staff"),
        ("USR-insp-1", "inspector@example.gov", "Ina Inspector", "inspector"),
        ("USR-owner", "owner@example.com", "Case Owner", "citizen"),
    ]
    for i, (user_id, email, name, role) in enumerate(users):
        repo.add(UserRecord(
            user_id=user_id,
            email=email,
            name=name,
            role=role,
            created_at=BASE_TIME + timedelta(days=i)
        ))
    return repo


@pytest.fixture
def notifier(notification_repo: RecordingNotificationRepository) -> NotificationService:
    return NotificationService(repo=notification_repo)


@pytest.fixture
def directory(user_repo: InMemoryUserRepository, task_repo: InMemoryTaskRepository) -> DirectoryService:
    return DirectoryService(user_repo=user_repo, task_repo=task_repo)


@pytest.fixture
def engine(
    case_repo, workflow_repo, execution_repo, task_repo, inspection_repo,
    notifier, directory, ai_advisor, audit_repo
) -> WorkflowEngine:
    """WorkflowEngine wired entirely to in-memory collaborators"""
    return WorkflowEngine(
        case_repo=case_repo,
        workflow_repo=workflow_repo,
        execution_repo=execution_repo,
        task_repo=task_repo,
        inspection_repo=inspection_repo,
        notification_service=notifier,
        directory_service=directory,
        ai_advisor=ai_advisor,
        audit_writer=AuditWriter(repo=audit_repo)
    )


@pytest.fixture
def task_bridge(engine: WorkflowEngine) -> TaskBridge:
    return TaskBridge(engine)


@pytest.fixture
def case(case_repo: InMemoryCaseRepository) -> CaseRecord:
    """A stored building permit case owned by USR-owner"""
    return case_repo.add(CaseRecord(
        case_id="CASE-1",
        case_number="BP-2024-0001",
        case_type="building",
        status="submitted",
        description="Two-storey rear extension",
        property_address="12 High Street",
        estimated_cost=20000,
        owner_id="USR-owner",
        applicant_email="owner@example.com",
        created_at=BASE_TIME
    ))


_step_counter = {"n": 0}


def build_workflow(steps: List[Dict[str, Any]], **overrides: Any) -> WorkflowDefinition:
    """Build an active permit_submitted workflow; steps get IDs and orders by position"""
    _step_counter["n"] += 1
    workflow_id = overrides.pop("workflow_id", f"WF-test-{_step_counter['n']}")
    prepared = []
    for i, step in enumerate(steps):
        step = dict(step)
        step.setdefault("step_id", f"{workflow_id}-S{i}")
        step.setdefault("name", f"Step {i}")
        step.setdefault("order", i)
        prepared.append(step)
    data: Dict[str, Any] = {
        "workflow_id": workflow_id,
        "name": f"Test workflow {workflow_id}",
        "trigger_type": "permit_submitted",
        "status": "active",
        "created_at": BASE_TIME,
        "steps": prepared,
    }
    data.update(overrides)
    return WorkflowDefinition.model_validate(data)


@pytest.fixture
def add_workflow(workflow_repo: InMemoryWorkflowRepository) -> Callable[..., WorkflowDefinition]:
    """Store an active workflow built from step dicts"""
    def _add(steps: List[Dict[str, Any]], **overrides: Any) -> WorkflowDefinition:
        return workflow_repo.create_workflow(build_workflow(steps, **overrides))
    return _add
