"""
Custom exceptions for AgentReady
Provides structured error handling across all domains

Every error carries an ErrorKind so the HTTP boundary can pick a status code
without inspecting message text.
"""
from enum import Enum
from typing import Any, Dict, List, Optional


class ErrorKind(str, Enum):
    """Structural error classification"""

    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    TIMEOUT = "timeout"
    TOO_LARGE = "too_large"
    RATE_LIMITED = "rate_limited"
    INTERNAL = "internal"

    @property
    def status_code(self) -> int:
        return _STATUS_BY_KIND[self]


_STATUS_BY_KIND = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.TIMEOUT: 408,
    ErrorKind.TOO_LARGE: 413,
    ErrorKind.RATE_LIMITED: 429,
    ErrorKind.INTERNAL: 500,
}

_KIND_BY_UPSTREAM_STATUS = {
    400: ErrorKind.VALIDATION,
    403: ErrorKind.NOT_FOUND,  # private repositories answer 403 or 404
    404: ErrorKind.NOT_FOUND,
    408: ErrorKind.TIMEOUT,
    413: ErrorKind.TOO_LARGE,
    429: ErrorKind.RATE_LIMITED,
    504: ErrorKind.TIMEOUT,
}


class ReadinessError(Exception):
    """Base exception for all AgentReady errors"""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        kind: ErrorKind = ErrorKind.INTERNAL,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        self.kind = kind

    @property
    def status_code(self) -> int:
        return self.kind.status_code

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses"""
        return {
            "error": self.error_code,
            "message": self.message,
            "kind": self.kind.value,
            "details": self.details,
        }


def kind_of(error: BaseException) -> ErrorKind:
    """Return the ErrorKind of any exception, INTERNAL for foreign ones"""
    if isinstance(error, ReadinessError):
        return error.kind
    return ErrorKind.INTERNAL


class ValidationError(ReadinessError):
    """Raised when input validation fails"""

    def __init__(self, message: str, field: Optional[str] = None, **details):
        super().__init__(
            message=message,
            error_code="VALIDATION_ERROR",
            details={"field": field, **details} if field else details,
            kind=ErrorKind.VALIDATION,
        )


class ConfigurationError(ReadinessError):
    """Raised when configuration is invalid or missing"""

    def __init__(self, message: str, setting: Optional[str] = None):
        super().__init__(
            message=message,
            error_code="CONFIGURATION_ERROR",
            details={"setting": setting} if setting else {},
        )


class RegistrationError(ReadinessError):
    """Raised when a plugin cannot be registered"""

    def __init__(self, message: str, **details):
        super().__init__(message=message, error_code="REGISTRATION_ERROR", details=details)


class DuplicateRegistrationError(RegistrationError):
    """Raised when a plugin with the same (type, name) is already registered"""

    def __init__(self, plugin_kind: str, plugin_type: str, name: str):
        super().__init__(
            f"{plugin_kind} {plugin_type}:{name} is already registered",
            plugin_kind=plugin_kind,
            plugin_type=plugin_type,
            name=name,
        )


class NoPluginError(ReadinessError):
    """Raised when no plugin is registered for an analysis type"""

    def __init__(self, plugin_kind: str, plugin_type: str, name: Optional[str] = None):
        target = f"{plugin_type}:{name}" if name else plugin_type
        super().__init__(
            message=f"No {plugin_kind} found for type: {target}",
            error_code="NO_PLUGIN",
            details={"plugin_kind": plugin_kind, "plugin_type": plugin_type, "name": name},
        )


class CannotHandleError(ReadinessError):
    """Raised when a plugin declines an input"""

    def __init__(self, plugin_name: str, target: str):
        super().__init__(
            message=f"{plugin_name} cannot handle input: {target}",
            error_code="CANNOT_HANDLE",
            details={"plugin": plugin_name, "target": target},
            kind=ErrorKind.VALIDATION,
        )


class _RetriesExhaustedError(ReadinessError):
    """Shared shape of the two retry-exhaustion errors"""

    label = "Operation"
    code = "RETRIES_EXHAUSTED"

    def __init__(self, attempts: int, last_error: Optional[BaseException], plugin_name: Optional[str] = None):
        last = str(last_error) if last_error is not None else "unknown error"
        kind = kind_of(last_error) if last_error is not None else ErrorKind.INTERNAL
        super().__init__(
            message=f"{self.label} failed after {attempts} attempts: {last}",
            error_code=self.code,
            details={
                "attempts": attempts,
                "plugin": plugin_name,
                "last_error": last,
                "last_error_type": type(last_error).__name__ if last_error is not None else None,
            },
            kind=kind,
        )
        self.attempts = attempts
        self.last_error = last_error


class AnalysisFailedError(_RetriesExhaustedError):
    """Raised when static analysis exhausts its retries"""

    label = "Analysis"
    code = "ANALYSIS_FAILED"


class AssessmentFailedError(_RetriesExhaustedError):
    """Raised when AI assessment exhausts its retries"""

    label = "AI assessment"
    code = "AI_ASSESSMENT_FAILED"


class NetworkError(ReadinessError):
    """Raised when a download or external API call fails"""

    def __init__(
        self,
        provider: str,
        message: str,
        upstream_status: Optional[int] = None,
        response_body: Optional[str] = None,
        **details,
    ):
        super().__init__(
            message=f"{provider} error: {message}",
            error_code="NETWORK_ERROR",
            details={
                "provider": provider,
                "upstream_status": upstream_status,
                "response_body": response_body,
                **details,
            },
            kind=_KIND_BY_UPSTREAM_STATUS.get(upstream_status, ErrorKind.INTERNAL),
        )
        self.upstream_status = upstream_status


class DeadlineExceededError(ReadinessError):
    """Raised when an operation runs past its deadline"""

    def __init__(self, operation: str, timeout_seconds: Optional[float]):
        super().__init__(
            message=f"{operation} timed out after {timeout_seconds}s",
            error_code="TIMEOUT",
            details={"operation": operation, "timeout_seconds": timeout_seconds},
            kind=ErrorKind.TIMEOUT,
        )


class InvalidAnalysisError(ReadinessError):
    """Raised when a plugin's own validation rejects its result"""

    def __init__(self, plugin_name: str, errors: List[str]):
        super().__init__(
            message=f"Analysis validation failed: {', '.join(errors)}",
            error_code="ANALYSIS_INVALID",
            details={"plugin": plugin_name, "errors": list(errors)},
        )
