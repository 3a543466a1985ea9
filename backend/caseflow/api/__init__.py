"""API module - Routes and dependencies"""
from .deps import get_correlation_id_dep, get_workflow_service

__all__ = ["get_correlation_id_dep", "get_workflow_service"]
