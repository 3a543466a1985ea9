"""
MongoDB connection for Caseflow

A single lazily created client is shared by every repository. The first
call pings the server so a bad MONGO_URI fails at startup rather than on
the first case lookup.
"""
from typing import Any, Dict, Optional

from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import ConnectionFailure, PyMongoError

from ..config.settings import settings
from ..utils.logger import get_logger

logger = get_logger(__name__)

_SERVER_SELECTION_MS = 5000
_SOCKET_TIMEOUT_MS = 30000

_client: Optional[MongoClient] = None


def get_client() -> MongoClient:
    """Shared client, verified with a ping on creation"""
    global _client
    if _client is not None:
        return _client

    client = MongoClient(
        settings.mongo_uri,
        serverSelectionTimeoutMS=_SERVER_SELECTION_MS,
        connectTimeoutMS=_SERVER_SELECTION_MS,
        socketTimeoutMS=_SOCKET_TIMEOUT_MS,
    )
    try:
        client.admin.command("ping")
    except ConnectionFailure as e:
        client.close()
        logger.error(f"Cannot reach MongoDB at {settings.mongo_uri}: {e}")
        raise
    logger.info(f"Connected to MongoDB, database '{settings.mongo_db}'")
    _client = client
    return _client


def get_database() -> Database:
    return get_client()[settings.mongo_db]


def get_collection(name: str) -> Collection:
    return get_database()[name]


def close_connection() -> None:
    global _client
    if _client is None:
        return
    _client.close()
    _client = None
    logger.info("MongoDB client closed")


def create_indexes() -> None:
    """Create all required indexes"""
    db = get_database()
    logger.info("Creating MongoDB indexes...")

    # Cases collection
    cases = db["cases"]
    cases.create_index("case_id", unique=True)
    cases.create_index("case_number", unique=True)
    cases.create_index("status")

    # Documents and payments (counted by workflow checks)
    db["documents"].create_index("case_id")
    db["payments"].create_index([("case_id", ASCENDING), ("status", ASCENDING)])

    # Workflows collection
    workflows = db["workflows"]
    workflows.create_index("workflow_id", unique=True)
    workflows.create_index([("trigger_type", ASCENDING), ("status", ASCENDING)])
    workflows.create_index("updated_at", background=True)

    # Workflow executions collection
    executions = db["workflow_executions"]
    executions.create_index("execution_id", unique=True)
    executions.create_index([("case_id", ASCENDING), ("created_at", DESCENDING)])
    executions.create_index("status")
    executions.create_index("workflow_id")

    # Tasks collection
    tasks = db["tasks"]
    tasks.create_index("task_id", unique=True)
    tasks.create_index([("execution_id", ASCENDING), ("status", ASCENDING)])
    tasks.create_index([("assigned_to", ASCENDING), ("status", ASCENDING)])
    tasks.create_index("due_date", background=True)

    # Inspections collection
    inspections = db["inspections"]
    inspections.create_index("inspection_id", unique=True)
    inspections.create_index("case_id")

    # Users collection
    users = db["users"]
    users.create_index("user_id", unique=True)
    users.create_index("email", unique=True)
    users.create_index([("role", ASCENDING), ("status", ASCENDING), ("created_at", ASCENDING)])

    # Notifications collection
    notifications = db["notifications"]
    notifications.create_index("notification_id", unique=True)
    notifications.create_index([("user_id", ASCENDING), ("created_at", DESCENDING)])

    # Audit events collection
    audit_events = db["audit_events"]
    audit_events.create_index("audit_event_id", unique=True)
    audit_events.create_index([("execution_id", ASCENDING), ("timestamp", DESCENDING)])
    audit_events.create_index("correlation_id")

    logger.info("MongoDB indexes created successfully")


def health_check() -> Dict[str, Any]:
    """Ping result for /health; never raises"""
    report: Dict[str, Any] = {"database": settings.mongo_db}
    try:
        get_client().admin.command("ping")
    except PyMongoError as e:
        logger.error(f"MongoDB health check failed: {e}")
        report.update(status="unhealthy", error=str(e))
        return report
    report["status"] = "healthy"
    return report
