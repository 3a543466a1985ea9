"""
Identifiers for workflow records

Every stored record gets ``<PREFIX>-<12 hex chars>``. Correlation IDs carry
a UTC timestamp so they sort by the time the request arrived.
"""
import uuid
from datetime import datetime
from typing import Optional

WORKFLOW_PREFIX = "WF"
STEP_PREFIX = "STEP"
EXECUTION_PREFIX = "EXE"
TASK_PREFIX = "TSK"
INSPECTION_PREFIX = "INS"
NOTIFICATION_PREFIX = "NTF"
AUDIT_PREFIX = "AUD"


def generate_id(prefix: Optional[str] = None) -> str:
    """
    >>> generate_id("EXE")   # doctest: +SKIP
    'EXE-a1b2c3d4e5f6'
    """
    token = uuid.uuid4().hex[:12]
    return f"{prefix}-{token}" if prefix else token


def generate_workflow_id() -> str:
    return generate_id(WORKFLOW_PREFIX)


def generate_step_id() -> str:
    return generate_id(STEP_PREFIX)


def generate_execution_id() -> str:
    return generate_id(EXECUTION_PREFIX)


def generate_task_id() -> str:
    return generate_id(TASK_PREFIX)


def generate_inspection_id() -> str:
    return generate_id(INSPECTION_PREFIX)


def generate_notification_id() -> str:
    return generate_id(NOTIFICATION_PREFIX)


def generate_audit_event_id() -> str:
    return generate_id(AUDIT_PREFIX)


def generate_correlation_id() -> str:
    """COR-<yyyymmddHHMMSS>-<8 hex chars>"""
    stamp = datetime.utcnow().strftime("%Y%m%d%H%M%S")
    return f"COR-{stamp}-{uuid.uuid4().hex[:8]}"
