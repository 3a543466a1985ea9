"""API Routes module"""
from fastapi import APIRouter

from .workflows import router as workflows_router
from .executions import router as executions_router
from .tasks import router as tasks_router

# Main API router
api_router = APIRouter()

# Include all route modules
api_router.include_router(workflows_router, prefix="/workflows", tags=["Workflows"])
api_router.include_router(executions_router, prefix="/executions", tags=["Executions"])
api_router.include_router(tasks_router, prefix="/tasks", tags=["Tasks"])

__all__ = ["api_router"]
