"""Domain Errors - Centralized Exception Hierarchy"""
from typing import Any, Dict, Optional


class DomainError(Exception):
    """Base domain error - all errors extend this"""

    error_code: str = "DOMAIN_ERROR"
    http_status: int = 400

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if error_code:
            self.error_code = error_code

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to API response dict"""
        return {
            "error": {
                "code": self.error_code,
                "message": self.message,
                "details": self.details
            }
        }


# Validation Errors
class ValidationError(DomainError):
    """Input validation failed"""
    error_code = "VALIDATION_ERROR"
    http_status = 400


class WorkflowValidationError(ValidationError):
    """Workflow definition validation failed"""
    error_code = "WORKFLOW_VALIDATION_ERROR"


# Not Found Errors
class NotFoundError(DomainError):
    """Resource not found"""
    error_code = "NOT_FOUND"
    http_status = 404


class WorkflowNotFoundError(NotFoundError):
    """Workflow definition not found"""
    error_code = "WORKFLOW_NOT_FOUND"


class CaseNotFoundError(NotFoundError):
    """Case record not found"""
    error_code = "CASE_NOT_FOUND"


class ExecutionNotFoundError(NotFoundError):
    """Workflow execution not found"""
    error_code = "EXECUTION_NOT_FOUND"


class TaskNotFoundError(NotFoundError):
    """Task not found"""
    error_code = "TASK_NOT_FOUND"


# Conflict Errors
class ConflictError(DomainError):
    """Resource conflict (e.g., concurrent modification)"""
    error_code = "CONFLICT"
    http_status = 409


class ConcurrencyError(ConflictError):
    """Optimistic concurrency conflict"""
    error_code = "CONCURRENCY_CONFLICT"


class InvalidStateError(ConflictError):
    """Action not valid for current state"""
    error_code = "INVALID_STATE"


class AlreadyExistsError(ConflictError):
    """Resource already exists"""
    error_code = "ALREADY_EXISTS"


# Engine Errors
class EngineError(DomainError):
    """Workflow engine error"""
    error_code = "ENGINE_ERROR"
    http_status = 500


class StepExecutionError(EngineError):
    """A step handler raised; the execution is moved to FAILED"""
    error_code = "STEP_EXECUTION_ERROR"


# External Service Errors
class ExternalServiceError(DomainError):
    """External service failure"""
    error_code = "EXTERNAL_SERVICE_ERROR"
    http_status = 502


class CollaboratorUnavailable(ExternalServiceError):
    """A collaborator (AI, OCR, ...) is disabled or unreachable"""
    error_code = "COLLABORATOR_UNAVAILABLE"
    http_status = 503


class OpenAIError(ExternalServiceError):
    """OpenAI API error"""
    error_code = "OPENAI_ERROR"
