#signalwatch/domain/common/errors.py

"""
Domain-specific error types for the recognition pipeline.

Stage-local failures are carried inside Result objects as DomainError instances
and logged where they occur. The only failure that is raised (and propagates to
the caller) is EngineInitializationError, because the pipeline cannot run
without a recognition engine.
"""
from enum import Enum
from typing import Optional, Dict, Any


class ErrorCategory(Enum):
    """Categories of errors in the application."""
    VALIDATION = "Validation"
    CONFIGURATION = "Configuration"
    RESOURCE = "Resource"
    PREPROCESSING = "Preprocessing"
    RECOGNITION = "Recognition"
    RULE = "Rule"
    DELIVERY = "Delivery"
    UNKNOWN = "Unknown"


class ErrorSeverity(Enum):
    """Severity levels for errors."""
    INFO = "Info"
    WARNING = "Warning"
    ERROR = "Error"
    CRITICAL = "Critical"


class DomainError:
    """
    Base class for domain-specific errors.

    Holds structured error information used for logging and for branching
    in the monitoring loop.
    """

    def __init__(self,
                 message: str,
                 category: ErrorCategory = ErrorCategory.UNKNOWN,
                 severity: ErrorSeverity = ErrorSeverity.ERROR,
                 code: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None,
                 inner_error: Optional[Exception] = None):
        """
        Initialize a domain error.

        Args:
            message: Human-readable error message
            category: Error category
            severity: Error severity
            code: Optional error code for programmatic handling
            details: Optional additional error details
            inner_error: Optional original exception
        """
        self.message = message
        self.category = category
        self.severity = severity
        self.code = code
        self.details = details or {}
        self.inner_error = inner_error

    @staticmethod
    def from_exception(ex: Exception,
                       category: ErrorCategory = ErrorCategory.UNKNOWN,
                       severity: ErrorSeverity = ErrorSeverity.ERROR) -> 'DomainError':
        """Create a domain error from an exception."""
        return DomainError(
            message=str(ex),
            category=category,
            severity=severity,
            inner_error=ex
        )

    def __str__(self) -> str:
        return f"{self.category.value} Error: {self.message}"


class ValidationError(DomainError):
    """Error for invalid input values (regions, payloads, settings)."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None, inner_error: Optional[Exception] = None):
        super().__init__(
            message=message,
            category=ErrorCategory.VALIDATION,
            severity=ErrorSeverity.WARNING,
            details=details,
            inner_error=inner_error
        )


class ConfigurationError(DomainError):
    """Error for configuration and rule file issues."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None, inner_error: Optional[Exception] = None):
        super().__init__(
            message=message,
            category=ErrorCategory.CONFIGURATION,
            severity=ErrorSeverity.ERROR,
            details=details,
            inner_error=inner_error
        )


class ResourceError(DomainError):
    """Error for screen capture, file and template access issues."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None, inner_error: Optional[Exception] = None):
        super().__init__(
            message=message,
            category=ErrorCategory.RESOURCE,
            severity=ErrorSeverity.ERROR,
            details=details,
            inner_error=inner_error
        )


class PreprocessingError(DomainError):
    """
    A preprocessing stage failed.

    Aborts recognition for the current tick only; the monitoring loop
    continues on the next tick.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None, inner_error: Optional[Exception] = None):
        super().__init__(
            message=message,
            category=ErrorCategory.PREPROCESSING,
            severity=ErrorSeverity.ERROR,
            code="PreprocessingFailed",
            details=details,
            inner_error=inner_error
        )


class RecognitionError(DomainError):
    """A single recognition strategy failed. The orchestrator moves on to the next one."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None, inner_error: Optional[Exception] = None):
        super().__init__(
            message=message,
            category=ErrorCategory.RECOGNITION,
            severity=ErrorSeverity.WARNING,
            code="RecognitionFailed",
            details=details,
            inner_error=inner_error
        )


class InvalidRulePatternError(DomainError):
    """A rule carries a pattern that cannot be compiled. Only that rule is skipped."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None, inner_error: Optional[Exception] = None):
        super().__init__(
            message=message,
            category=ErrorCategory.RULE,
            severity=ErrorSeverity.WARNING,
            code="InvalidRulePattern",
            details=details,
            inner_error=inner_error
        )


class DeliveryError(DomainError):
    """A notification could not be delivered after its retry."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None, inner_error: Optional[Exception] = None):
        super().__init__(
            message=message,
            category=ErrorCategory.DELIVERY,
            severity=ErrorSeverity.ERROR,
            code="DeliveryFailed",
            details=details,
            inner_error=inner_error
        )


class EngineInitializationError(Exception):
    """Raised when the recognition engine cannot be created. Fatal at startup."""

    def __init__(self, message: str, inner_error: Optional[Exception] = None):
        super().__init__(message)
        self.error = DomainError(
            message=message,
            category=ErrorCategory.RESOURCE,
            severity=ErrorSeverity.CRITICAL,
            code="EngineInitFailed",
            inner_error=inner_error
        )
