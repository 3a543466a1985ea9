"""Route dependencies"""
from functools import lru_cache
from typing import Optional

from fastapi import Header

from ..services.workflow_service import WorkflowService
from ..utils.logger import get_correlation_id, set_correlation_id
from ..utils.idgen import generate_correlation_id


async def get_correlation_id_dep(
    x_correlation_id: Optional[str] = Header(None, alias="X-Correlation-Id")
) -> str:
    """
    Correlation ID for the current request

    The middleware has normally bound one already; the header and a fresh
    ID are fallbacks for apps mounted without it.
    """
    correlation_id = get_correlation_id() or x_correlation_id or generate_correlation_id()
    set_correlation_id(correlation_id)
    return correlation_id


@lru_cache()
def get_workflow_service() -> WorkflowService:
    """One service per process, so all requests share the execution locks"""
    return WorkflowService()
