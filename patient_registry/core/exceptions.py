from typing import Dict, Any, Optional
from fastapi import status
from pydantic import BaseModel


class BaseCustomException(Exception):
    """Base class for custom exceptions"""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.error_code = error_code
        super().__init__(self.message)


class DatabaseError(BaseCustomException):
    """Exception for database errors"""

    def __init__(
        self,
        message: str = "Database operation failed",
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    ):
        super().__init__(
            message=message,
            status_code=status_code,
            details=details,
            error_code=error_code or "DATABASE_ERROR"
        )


class InitializationError(DatabaseError):
    """The engine could not be created or the schema could not be applied"""

    def __init__(
        self,
        message: str = "Database initialization failed",
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        super().__init__(
            message=message,
            details=details,
            error_code=error_code or "INITIALIZATION_ERROR",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE
        )


class WriteError(DatabaseError):
    """An insert was rejected by the engine"""

    def __init__(
        self,
        message: str = "Patient registration failed",
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        super().__init__(
            message=message,
            details=details,
            error_code=error_code or "WRITE_ERROR"
        )


class ReadError(DatabaseError):
    """A select failed in the engine"""

    def __init__(
        self,
        message: str = "Failed to load patients",
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        super().__init__(
            message=message,
            details=details,
            error_code=error_code or "READ_ERROR"
        )


class DatabaseNotReadyError(BaseCustomException):
    """Data was requested before the database finished initializing"""

    def __init__(
        self,
        message: str = "Database is still initializing",
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        super().__init__(
            message=message,
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            details=details,
            error_code=error_code or "DATABASE_NOT_READY"
        )


# Response models for errors
class ErrorResponse(BaseModel):
    """Standard error response model"""
    error: str
    message: str
    error_code: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
