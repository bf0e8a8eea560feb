"""
Error handling for the site backend.

This module provides the exception hierarchy raised by the security layer and
the API routes, error categorization, structured logging of failures and the
FastAPI integration that turns them into JSON responses.
"""

import traceback
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

import sentry_sdk
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.config import settings
from app.security.monitoring.security_metrics import ERRORS_TOTAL
from app.utils.logger import get_logger

logger = get_logger(__name__)


class ErrorSeverity(str, Enum):
    """Error severity levels for categorization and alerting"""

    LOW = "low"  # Expected client errors, logging only
    MEDIUM = "medium"  # Important issues, monitoring alerts
    HIGH = "high"  # Critical issues, immediate attention
    CRITICAL = "critical"  # System-threatening issues, emergency response


class ErrorCategory(str, Enum):
    """Error categories for systematic handling"""

    CONFIGURATION = "configuration"
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    VALIDATION = "validation"
    RATE_LIMIT = "rate_limit"
    CSRF = "csrf"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    DATABASE = "database"
    NOTIFICATION = "notification"
    SYSTEM = "system"


class ErrorContext:
    """Container for error context information"""

    def __init__(
        self,
        error: Exception,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        category: ErrorCategory = ErrorCategory.SYSTEM,
        user_message: Optional[str] = None,
        technical_details: Optional[Dict[str, Any]] = None,
    ):
        self.error = error
        self.severity = severity
        self.category = category
        self.user_message = user_message or self._generate_user_message()
        self.technical_details = technical_details or {}
        self.timestamp = datetime.now(timezone.utc)
        self.error_id = f"err_{int(self.timestamp.timestamp())}"

    def _generate_user_message(self) -> str:
        """Generate user-friendly error message based on error type"""
        if isinstance(self.error, SiteError):
            return str(self.error)

        user_messages = {
            "OperationalError": "Unable to reach the database. Please try again.",
            "IntegrityError": "The request conflicts with existing data.",
            "ValidationError": "The provided data is invalid. Please check your input.",
        }

        return user_messages.get(
            type(self.error).__name__,
            "Internal server error. Please try again later.",
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert error context to dictionary for logging/serialization"""
        return {
            "error_id": self.error_id,
            "timestamp": self.timestamp.isoformat(),
            "error_type": type(self.error).__name__,
            "error_message": str(self.error),
            "severity": self.severity.value,
            "category": self.category.value,
            "user_message": self.user_message,
            "technical_details": self.technical_details,
            "traceback": traceback.format_exc()
            if self.severity in [ErrorSeverity.HIGH, ErrorSeverity.CRITICAL]
            else None,
        }


# === Custom Exception Classes ===


class SiteError(Exception):
    """Base exception for errors that map onto an HTTP response"""

    status_code = 500

    def __init__(
        self,
        message: str,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        category: ErrorCategory = ErrorCategory.SYSTEM,
        technical_details: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.severity = severity
        self.category = category
        self.technical_details = technical_details or {}
        self.headers = headers or {}
        if status_code is not None:
            self.status_code = status_code

    def to_body(self, error_context: ErrorContext) -> Dict[str, Any]:
        return {
            "success": False,
            "error": self.message,
            "error_id": error_context.error_id,
            "category": self.category.value,
        }


class AuthenticationError(SiteError):
    """Raised when a request carries no valid session"""

    status_code = 401

    def __init__(self, message: str = "Unauthorized", **kwargs):
        super().__init__(
            message,
            severity=ErrorSeverity.LOW,
            category=ErrorCategory.AUTHENTICATION,
            **kwargs,
        )


class AuthorizationError(SiteError):
    """Raised when the session lacks the required role"""

    status_code = 403

    def __init__(self, message: str = "Forbidden", **kwargs):
        super().__init__(
            message,
            severity=ErrorSeverity.LOW,
            category=ErrorCategory.AUTHORIZATION,
            **kwargs,
        )


class CsrfValidationError(SiteError):
    """Raised when a mutating request fails the double-submit CSRF check"""

    status_code = 403

    def __init__(self, message: str = "Invalid or missing CSRF token", **kwargs):
        super().__init__(
            message,
            severity=ErrorSeverity.LOW,
            category=ErrorCategory.CSRF,
            **kwargs,
        )

    def to_body(self, error_context: ErrorContext) -> Dict[str, Any]:
        return {"success": False, "message": self.message}


class RateLimitExceededError(SiteError):
    """Raised when an identifier exhausted its rate-limit window"""

    status_code = 429

    def __init__(
        self,
        message: str = "Too many requests",
        retry_after: int = 1,
        **kwargs,
    ):
        super().__init__(
            message,
            severity=ErrorSeverity.LOW,
            category=ErrorCategory.RATE_LIMIT,
            technical_details={"retry_after": retry_after},
            **kwargs,
        )
        self.retry_after = retry_after

    def to_body(self, error_context: ErrorContext) -> Dict[str, Any]:
        return {"error": self.message, "retryAfter": self.retry_after}


class RequestValidationFailed(SiteError):
    """Raised when a request body fails schema validation"""

    status_code = 400

    def __init__(
        self,
        errors: Optional[List[Dict[str, Any]]] = None,
        message: str = "Validation failed",
        **kwargs,
    ):
        super().__init__(
            message,
            severity=ErrorSeverity.LOW,
            category=ErrorCategory.VALIDATION,
            **kwargs,
        )
        self.errors = errors or []

    def to_body(self, error_context: ErrorContext) -> Dict[str, Any]:
        return {"success": False, "error": self.message, "errors": self.errors}


class ConflictError(SiteError):
    """Raised when a resource already exists"""

    status_code = 409

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            severity=ErrorSeverity.LOW,
            category=ErrorCategory.CONFLICT,
            **kwargs,
        )


class NotFoundError(SiteError):
    """Raised when a resource does not exist"""

    status_code = 404

    def __init__(self, message: str = "Not found", **kwargs):
        super().__init__(
            message,
            severity=ErrorSeverity.LOW,
            category=ErrorCategory.NOT_FOUND,
            **kwargs,
        )


class NotificationError(SiteError):
    """Raised when a lead notification cannot be delivered"""

    def __init__(self, message: str = "Notification delivery failed", **kwargs):
        super().__init__(
            message,
            severity=ErrorSeverity.MEDIUM,
            category=ErrorCategory.NOTIFICATION,
            **kwargs,
        )


# === Error Handler Class ===


class ErrorHandler:
    """Centralized error categorization, logging and reporting"""

    def __init__(self):
        self._error_counts: Dict[str, int] = {}

    def handle_error(
        self, error: Exception, context: Optional[Dict[str, Any]] = None
    ) -> ErrorContext:
        """
        Handle an error with appropriate categorization and logging.

        Args:
            error: The exception that occurred
            context: Additional context information

        Returns:
            ErrorContext with detailed error information
        """
        context = context or {}
        error_context = self._categorize_error(error, context)
        self._log_error(error_context)
        self._record_error_metrics(error_context)
        if error_context.severity in (ErrorSeverity.HIGH, ErrorSeverity.CRITICAL):
            sentry_sdk.capture_exception(error)
        return error_context

    def _categorize_error(
        self, error: Exception, context: Dict[str, Any]
    ) -> ErrorContext:
        if isinstance(error, SiteError):
            details = dict(error.technical_details)
            details.update(context)
            return ErrorContext(
                error=error,
                severity=error.severity,
                category=error.category,
                technical_details=details,
            )

        error_mappings = {
            ConnectionError: (ErrorSeverity.HIGH, ErrorCategory.SYSTEM),
            TimeoutError: (ErrorSeverity.MEDIUM, ErrorCategory.SYSTEM),
            ValueError: (ErrorSeverity.MEDIUM, ErrorCategory.VALIDATION),
            PermissionError: (ErrorSeverity.HIGH, ErrorCategory.CONFIGURATION),
        }
        severity, category = error_mappings.get(
            type(error), (ErrorSeverity.HIGH, ErrorCategory.SYSTEM)
        )
        if type(error).__module__.startswith("sqlalchemy"):
            severity, category = ErrorSeverity.HIGH, ErrorCategory.DATABASE

        return ErrorContext(
            error=error,
            severity=severity,
            category=category,
            technical_details=context,
        )

    def _log_error(self, error_context: ErrorContext) -> None:
        log_data = {
            "error_id": error_context.error_id,
            "error_type": type(error_context.error).__name__,
            "category": error_context.category.value,
            "severity": error_context.severity.value,
            "technical_details": error_context.technical_details,
        }

        if error_context.severity == ErrorSeverity.CRITICAL:
            logger.critical(error_context.user_message, **log_data, exc_info=True)
        elif error_context.severity == ErrorSeverity.HIGH:
            logger.error(error_context.user_message, **log_data, exc_info=True)
        elif error_context.severity == ErrorSeverity.MEDIUM:
            logger.warning(error_context.user_message, **log_data)
        else:
            logger.info(error_context.user_message, **log_data)

    def _record_error_metrics(self, error_context: ErrorContext) -> None:
        ERRORS_TOTAL.labels(
            category=error_context.category.value,
            severity=error_context.severity.value,
        ).inc()

        error_key = (
            f"{type(error_context.error).__name__}:{error_context.category.value}"
        )
        self._error_counts[error_key] = self._error_counts.get(error_key, 0) + 1

        if self._error_counts[error_key] > 5:
            logger.warning(
                "High frequency error detected",
                error_key=error_key,
                count=self._error_counts[error_key],
                error_id=error_context.error_id,
            )


# === Global Error Handler Instance ===

error_handler = ErrorHandler()


def _request_context(request: Request) -> Dict[str, Any]:
    return {
        "request_path": request.url.path,
        "request_method": request.method,
        "client_ip": request.client.host if request.client else None,
        "request_id": getattr(request.state, "request_id", None),
    }


def create_error_response(
    error: Exception,
    context: Optional[Dict[str, Any]] = None,
    handler: Optional[ErrorHandler] = None,
) -> JSONResponse:
    """Create standardized error response for APIs"""

    error_context = (handler or error_handler).handle_error(error, context)

    if isinstance(error, SiteError):
        return JSONResponse(
            status_code=error.status_code,
            content=error.to_body(error_context),
            headers=error.headers or None,
        )

    content: Dict[str, Any] = {
        "success": False,
        "error": error_context.user_message,
        "error_id": error_context.error_id,
        "category": error_context.category.value,
    }
    if settings.is_development:
        content["message"] = str(error)
    return JSONResponse(status_code=500, content=content)


# === FastAPI integration ===


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Catch-all for exceptions that escape the routers"""

    def __init__(self, app, handler: Optional[ErrorHandler] = None):
        super().__init__(app)
        self.error_handler = handler or error_handler

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as e:  # noqa: BLE001
            return create_error_response(
                e, _request_context(request), handler=self.error_handler
            )


def register_exception_handlers(app: FastAPI) -> None:
    """Map SiteError subclasses onto their HTTP responses."""

    @app.exception_handler(SiteError)
    async def _site_error_handler(request: Request, exc: SiteError) -> JSONResponse:
        return create_error_response(exc, _request_context(request))
