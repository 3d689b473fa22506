"""
archery_league/errors.py
Centralized Error Handling

ERROR RESPONSE STRUCTURE:
{
    "success": false,
    "error": "ErrorType",
    "message": "Human-readable description",
    "code": "UNIQUE_ERROR_CODE",
    "details": {} (optional)
}

HTTP STATUS CODE DISCIPLINE:
- 200/201: Successful, valid request
- 404: Referenced stage, round, entry, handicap or match result does not exist
- 409: Write could not be applied and was rolled back
- 422: Validation error (Pydantic)
- 429: Rate limit exceeded
- 500: Internal only
"""

import logging
from typing import Optional, Dict, Any
from fastapi import status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

logger = logging.getLogger(__name__)


class ErrorCode:
    """Unique error codes for machine-readable error handling"""

    VALIDATION_ERROR = "VALIDATION_ERROR"

    NOT_FOUND = "NOT_FOUND"
    STAGE_NOT_FOUND = "STAGE_NOT_FOUND"
    ROUND_NOT_FOUND = "ROUND_NOT_FOUND"
    ENTRY_NOT_FOUND = "ENTRY_NOT_FOUND"
    HANDICAP_NOT_FOUND = "HANDICAP_NOT_FOUND"
    MATCH_RESULT_NOT_FOUND = "MATCH_RESULT_NOT_FOUND"

    INVALID_STATE = "INVALID_STATE"
    MATCH_RESULT_NOT_REMOVED = "MATCH_RESULT_NOT_REMOVED"

    INTERNAL_ERROR = "INTERNAL_ERROR"


class ErrorResponse(BaseModel):
    """Standard error response model"""
    success: bool = False
    error: str
    message: str
    code: str
    details: Optional[Dict[str, Any]] = None


class APIError(Exception):
    """Base API exception with consistent structure"""

    def __init__(
        self,
        status_code: int,
        error: str,
        message: str,
        code: str,
        details: Optional[Dict[str, Any]] = None
    ):
        self.status_code = status_code
        self.error = error
        self.message = message
        self.code = code
        self.details = details
        super().__init__(message)

    def to_response(self) -> JSONResponse:
        """Convert to FastAPI JSONResponse"""
        return JSONResponse(status_code=self.status_code, content=self.to_dict())

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        result = {
            "success": False,
            "error": self.error,
            "message": self.message,
            "code": self.code
        }
        if self.details:
            result["details"] = self.details
        return result


class NotFoundError(APIError):
    """
    404 Not Found - Referenced resource does not exist.

    resource and identifier name the missing reference so callers can
    report exactly what was absent.
    """
    def __init__(
        self,
        resource: str,
        identifier: Any = None,
        code: str = ErrorCode.NOT_FOUND,
        details: Optional[Dict[str, Any]] = None
    ):
        self.resource = resource
        self.identifier = identifier
        message = f"{resource} not found"
        if identifier is not None:
            message = f"{resource} with id '{identifier}' not found"
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            error="Not Found",
            message=message,
            code=code,
            details=details
        )


class InvalidStateError(APIError):
    """409 Conflict - Write could not be applied"""
    def __init__(self, message: str, code: str = ErrorCode.INVALID_STATE, details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            error="Invalid State",
            message=message,
            code=code,
            details=details
        )


def log_internal_error(error: Exception, context: str = "") -> JSONResponse:
    """Log an internal error and build a safe 500 response"""
    import uuid
    log_id = str(uuid.uuid4())[:8]
    logger.error(f"[{log_id}] Internal error in {context}: {type(error).__name__}: {str(error)}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "error": "Internal Error",
            "message": "An unexpected error occurred. Please try again later.",
            "code": ErrorCode.INTERNAL_ERROR,
            "details": {"log_id": log_id}
        }
    )
