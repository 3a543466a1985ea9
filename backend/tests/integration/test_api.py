"""API endpoint tests using the FastAPI TestClient over in-memory repositories"""
import inspect

import pytest
from fastapi.routing import APIRoute
from fastapi.testclient import TestClient

from caseflow.api.deps import get_workflow_service
from caseflow.main import create_app
from caseflow.services.workflow_service import WorkflowService


@pytest.fixture
def service(engine) -> WorkflowService:
    return WorkflowService(engine=engine)


@pytest.fixture
def client(service):
    """TestClient without the lifespan, so no MongoDB connection is made"""
    app = create_app()
    app.dependency_overrides[get_workflow_service] = lambda: service
    return TestClient(app)


def _error_code(response) -> str:
    return response.json()["detail"]["error"]["code"]


def test_root(client) -> None:
    response = client.get("/")

    assert response.status_code == 200
    assert response.json()["name"] == "Caseflow Workflow Engine"


def test_correlation_id_is_echoed(client) -> None:
    response = client.get("/api/v1/executions", params={"case_id": "CASE-1"}, headers={"X-Correlation-Id": "COR-test"})

    assert response.headers["X-Correlation-Id"] == "COR-test"


def test_create_and_list_workflows(client) -> None:
    response = client.post("/api/v1/workflows", json={
        "name": "Sign permits",
        "trigger_type": "permit_submitted",
        "trigger_conditions": {"case_type": "sign"},
        "steps": [{"name": "Check payment", "step_type": "payment_check", "order": 0}],
    })

    assert response.status_code == 201
    created = response.json()
    assert created["status"] == "draft"
    assert created["steps"][0]["step_id"]

    listed = client.get("/api/v1/workflows").json()
    assert [w["workflow_id"] for w in listed["items"]] == [created["workflow_id"]]

    activated = client.post(f"/api/v1/workflows/{created['workflow_id']}/activate")
    assert activated.json()["status"] == "active"


def test_create_workflow_with_bad_steps(client) -> None:
    response = client.post("/api/v1/workflows", json={
        "name": "Broken",
        "trigger_type": "permit_submitted",
        "steps": [{"name": "a", "step_type": "payment_check", "order": 1}],
    })

    assert response.status_code == 400
    assert _error_code(response) == "WORKFLOW_VALIDATION_ERROR"


def test_request_validation_error_shape(client) -> None:
    response = client.post("/api/v1/executions", json={})

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


def test_start_suspend_and_complete_task(client, add_workflow, case, task_repo) -> None:
    add_workflow([{"step_type": "approval"}, {"step_type": "update_status", "config": {"status": "approved"}}])

    response = client.post("/api/v1/executions", json={"case_id": case.case_id, "initiated_by": "USR-clerk"})

    assert response.status_code == 200
    body = response.json()
    assert body["started"] is True
    execution = body["execution"]
    assert execution["status"] == "waiting"
    assert execution["current_step_order"] == 0

    task = task_repo.list_pending_for_execution(execution["execution_id"])[0]
    completed = client.post(f"/api/v1/tasks/{task.task_id}/complete", json={"result": "approved"})

    assert completed.status_code == 200
    assert completed.json()["resumed"] is True
    assert completed.json()["execution"]["status"] == "completed"
    assert completed.json()["task"]["outcome"] == "approved"

    fetched = client.get(f"/api/v1/executions/{execution['execution_id']}").json()
    assert fetched["status"] == "completed"
    assert fetched["current_step_order"] == 2


def test_start_without_workflow(client, case) -> None:
    response = client.post("/api/v1/executions", json={"case_id": case.case_id})

    assert response.status_code == 200
    assert response.json()["started"] is False
    assert response.json()["message"] == "No applicable workflow"


def test_start_for_unknown_case(client) -> None:
    response = client.post("/api/v1/executions", json={"case_id": "CASE-404"})

    assert response.status_code == 404
    assert _error_code(response) == "CASE_NOT_FOUND"


def test_start_in_background(client, add_workflow, case, execution_repo) -> None:
    add_workflow([{"step_type": "payment_check"}])

    response = client.post("/api/v1/executions", json={"case_id": case.case_id, "run_in_background": True})

    assert response.status_code == 200
    assert response.json()["scheduled"] is True
    # TestClient runs background tasks before returning
    executions = list(execution_repo.executions.values())
    assert len(executions) == 1
    assert executions[0].status == "completed"


def test_list_executions_for_case(client, add_workflow, case) -> None:
    add_workflow([{"step_type": "manual_review"}])
    client.post("/api/v1/executions", json={"case_id": case.case_id})
    client.post("/api/v1/executions", json={"case_id": case.case_id})

    body = client.get("/api/v1/executions", params={"case_id": case.case_id}).json()

    assert body["count"] == 2
    assert {item["status"] for item in body["items"]} == {"waiting"}


def test_unknown_execution_is_404(client) -> None:
    response = client.get("/api/v1/executions/EXE-missing")

    assert response.status_code == 404
    assert _error_code(response) == "EXECUTION_NOT_FOUND"


def test_resume_non_waiting_is_409(client, add_workflow, case) -> None:
    add_workflow([{"step_type": "payment_check"}])
    execution = client.post("/api/v1/executions", json={"case_id": case.case_id}).json()["execution"]

    response = client.post(f"/api/v1/executions/{execution['execution_id']}/resume")

    assert response.status_code == 409
    assert _error_code(response) == "INVALID_STATE"


def test_cancel_then_resume(client, add_workflow, case) -> None:
    add_workflow([{"step_type": "manual_review"}])
    execution = client.post("/api/v1/executions", json={"case_id": case.case_id}).json()["execution"]
    execution_id = execution["execution_id"]

    cancelled = client.post(
        f"/api/v1/executions/{execution_id}/cancel",
        json={"reason": "Applicant withdrew", "cancelled_by": "USR-owner"}
    )

    assert cancelled.status_code == 200
    assert cancelled.json()["status"] == "cancelled"
    assert cancelled.json()["cancellation_reason"] == "Applicant withdrew"

    assert client.post(f"/api/v1/executions/{execution_id}/resume").status_code == 409
    assert client.post(f"/api/v1/executions/{execution_id}/cancel", json={}).status_code == 409


def test_complete_unknown_task(client) -> None:
    response = client.post("/api/v1/tasks/TSK-missing/complete", json={})

    assert response.status_code == 404
    assert _error_code(response) == "TASK_NOT_FOUND"


def test_get_workflow(client, add_workflow) -> None:
    workflow = add_workflow([{"step_type": "payment_check"}])

    response = client.get(f"/api/v1/workflows/{workflow.workflow_id}")

    assert response.status_code == 200
    assert response.json()["steps"][0]["step_type"] == "payment_check"

    missing = client.get("/api/v1/workflows/WF-missing")
    assert missing.status_code == 404
    assert _error_code(missing) == "WORKFLOW_NOT_FOUND"


def test_reviewer_finds_and_completes_task_from_inbox(client, add_workflow, case) -> None:
    add_workflow([{"step_type": "manual_review"}, {"step_type": "update_status", "config": {"status": "approved"}}])
    execution = client.post("/api/v1/executions", json={"case_id": case.case_id}).json()["execution"]

    inbox = client.get("/api/v1/tasks", params={"assigned_to": "USR-staff-1", "status": "pending"})

    assert inbox.status_code == 200
    items = inbox.json()["items"]
    assert len(items) == 1
    assert items[0]["execution_id"] == execution["execution_id"]
    assert client.get("/api/v1/tasks", params={"assigned_to": "USR-staff-2"}).json()["items"] == []

    completed = client.post(f"/api/v1/tasks/{items[0]['task_id']}/complete", json={"result": "approved"})
    assert completed.json()["resumed"] is True

    assert client.get("/api/v1/tasks", params={"status": "pending"}).json()["items"] == []
    done = client.get("/api/v1/tasks", params={"status": "completed"}).json()["items"]
    assert [t["task_id"] for t in done] == [items[0]["task_id"]]


def test_task_list_rejects_unknown_status(client) -> None:
    response = client.get("/api/v1/tasks", params={"status": "sleeping"})

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


@pytest.mark.parametrize("method,path", [
    ("POST", "/api/v1/executions"),
    ("POST", "/api/v1/executions/{execution_id}/resume"),
    ("POST", "/api/v1/executions/{execution_id}/cancel"),
    ("POST", "/api/v1/tasks/{task_id}/complete"),
])
def test_lock_taking_routes_run_in_threadpool(method, path) -> None:
    app = create_app()
    route = next(
        r for r in app.routes
        if isinstance(r, APIRoute) and r.path == path and method in r.methods
    )

    assert not inspect.iscoroutinefunction(route.endpoint)
