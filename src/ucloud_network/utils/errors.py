"""Error handling framework for provider operations."""

from typing import Optional, Dict, Any, List
from enum import Enum
from dataclasses import dataclass

import requests
from pydantic import ValidationError as PydanticValidationError

from ucloud_network.utils.logging import get_logger

logger = get_logger(__name__)


class ErrorCategory(Enum):
    """Categories of errors that can occur while managing resources."""
    CONFIGURATION = "configuration"
    API = "api"
    NETWORK = "network"
    NOT_FOUND = "not_found"
    TIMEOUT = "timeout"
    STATE = "state"
    CREDENTIAL = "credential"
    VALIDATION = "validation"
    UNKNOWN = "unknown"


class ErrorSeverity(Enum):
    """Severity levels for errors."""
    CRITICAL = "critical"  # Operation cannot continue
    ERROR = "error"  # Resource operation failed
    WARNING = "warning"  # Non-fatal issue
    INFO = "info"  # Informational message


@dataclass
class ErrorContext:
    """Context information for an error."""
    resource_id: Optional[str] = None
    resource_type: Optional[str] = None
    operation: Optional[str] = None
    action: Optional[str] = None
    request_id: Optional[str] = None
    additional_info: Optional[Dict[str, Any]] = None


class ProviderError(Exception):
    """Base exception for provider errors."""

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.UNKNOWN,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: Optional[ErrorContext] = None,
        cause: Optional[Exception] = None,
        suggestions: Optional[List[str]] = None
    ):
        """Initialize provider error.

        Args:
            message: Human-readable error message
            category: Error category
            severity: Error severity
            context: Additional context about the error
            cause: Original exception that caused this error
            suggestions: List of suggested fixes
        """
        super().__init__(message)
        self.message = message
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.cause = cause
        self.suggestions = suggestions or []

    def to_user_message(self) -> str:
        """Convert error to user-friendly message.

        Returns:
            Formatted error message for display to user
        """
        lines = [f"{self.severity.value.upper()}: {self.message}"]

        if self.context.resource_id:
            lines.append(f"   Resource: {self.context.resource_id}")
        if self.context.operation:
            lines.append(f"   Operation: {self.context.operation}")
        if self.context.action:
            lines.append(f"   API action: {self.context.action}")

        if self.suggestions:
            lines.append("\nSuggested fixes:")
            for i, suggestion in enumerate(self.suggestions, 1):
                lines.append(f"   {i}. {suggestion}")

        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for logging/serialization.

        Returns:
            Dictionary representation of the error
        """
        return {
            'message': self.message,
            'category': self.category.value,
            'severity': self.severity.value,
            'context': {
                'resource_id': self.context.resource_id,
                'resource_type': self.context.resource_type,
                'operation': self.context.operation,
                'action': self.context.action,
                'request_id': self.context.request_id,
                'additional_info': self.context.additional_info
            },
            'cause': str(self.cause) if self.cause else None,
            'suggestions': self.suggestions
        }


class APICallError(ProviderError):
    """A remote API action returned a non-zero RetCode or failed in transport."""

    def __init__(self, message: str, action: Optional[str] = None,
                 ret_code: Optional[int] = None, **kwargs):
        kwargs.setdefault('category', ErrorCategory.API)
        super().__init__(message, **kwargs)
        self.action = action
        self.ret_code = ret_code
        if action and not self.context.action:
            self.context.action = action


class NotFoundError(ProviderError):
    """The requested remote record does not exist.

    Read, delete and state refresh paths treat this as an absence signal
    rather than a failure.
    """

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.NOT_FOUND,
            severity=ErrorSeverity.INFO,
            **kwargs
        )


class WaitTimeoutError(ProviderError):
    """A wait or retry loop ran past its deadline."""

    def __init__(self, message: str, last_state: Optional[str] = None, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.TIMEOUT,
            severity=ErrorSeverity.ERROR,
            **kwargs
        )
        self.last_state = last_state


class UnexpectedStateError(ProviderError):
    """A polled resource reported a state that is neither pending nor target."""

    def __init__(self, message: str, state: Optional[str] = None, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.STATE,
            severity=ErrorSeverity.ERROR,
            **kwargs
        )
        self.state = state


class ConfigurationError(ProviderError):
    """Error in configuration file or settings."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.CONFIGURATION,
            severity=ErrorSeverity.CRITICAL,
            **kwargs
        )


class CredentialError(ProviderError):
    """Error related to API credentials."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.CREDENTIAL,
            severity=ErrorSeverity.CRITICAL,
            **kwargs
        )


class NetworkError(ProviderError):
    """Transport-level failure talking to the API endpoint."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.NETWORK,
            severity=ErrorSeverity.ERROR,
            **kwargs
        )


class ValidationError(ProviderError):
    """A configuration change was rejected before any remote call."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.VALIDATION,
            severity=ErrorSeverity.ERROR,
            **kwargs
        )


class ErrorHandler:
    """Handles and categorizes errors from the API client and other sources."""

    # HTTP status codes returned by the API gateway itself
    HTTP_STATUS_MAPPING = {
        401: {
            'category': ErrorCategory.CREDENTIAL,
            'message': 'API credentials were rejected',
            'suggestions': [
                'Check UCLOUD_PUBLIC_KEY and UCLOUD_PRIVATE_KEY',
                'Verify the key pair has not been disabled in the console'
            ]
        },
        403: {
            'category': ErrorCategory.CREDENTIAL,
            'message': 'Access denied',
            'suggestions': [
                'Verify the key pair has permission for this project',
                'Check the project_id setting'
            ]
        },
        429: {
            'category': ErrorCategory.NETWORK,
            'message': 'API rate limit exceeded',
            'suggestions': [
                'Reduce the frequency of API calls',
                'Automatic retry with backoff is enabled'
            ]
        },
    }

    def __init__(self):
        """Initialize error handler."""
        self.logger = get_logger(__name__)

    def handle_exception(
        self,
        error: Exception,
        context: Optional[ErrorContext] = None
    ) -> ProviderError:
        """Handle an exception and convert to ProviderError.

        Args:
            error: The exception to handle
            context: Additional context about where the error occurred

        Returns:
            ProviderError with categorization and suggestions
        """
        context = context or ErrorContext()

        if isinstance(error, ProviderError):
            return error

        if isinstance(error, requests.HTTPError):
            return self._handle_http_error(error, context)

        if isinstance(error, (requests.ConnectionError, requests.Timeout,
                              ConnectionError, TimeoutError)):
            return self._handle_network_error(error, context)

        if isinstance(error, PydanticValidationError):
            return self._handle_validation_error(error, context)

        return ProviderError(
            message=str(error),
            category=ErrorCategory.UNKNOWN,
            severity=ErrorSeverity.ERROR,
            context=context,
            cause=error,
            suggestions=['Check logs for more details']
        )

    def _handle_http_error(
        self,
        error: requests.HTTPError,
        context: ErrorContext
    ) -> ProviderError:
        """Handle an HTTP error status from the API endpoint.

        Args:
            error: The HTTPError
            context: Error context

        Returns:
            Categorized ProviderError
        """
        status = error.response.status_code if error.response is not None else None
        error_info = self.HTTP_STATUS_MAPPING.get(status)

        if error_info:
            return ProviderError(
                message=f"{error_info['message']}: {error}",
                category=error_info['category'],
                severity=ErrorSeverity.ERROR,
                context=context,
                cause=error,
                suggestions=error_info['suggestions']
            )

        return NetworkError(
            message=f"HTTP error ({status}): {error}",
            context=context,
            cause=error,
            suggestions=['Retry the operation (automatic retry enabled)']
        )

    def _handle_network_error(
        self,
        error: Exception,
        context: ErrorContext
    ) -> NetworkError:
        """Handle network-related errors.

        Args:
            error: The network error
            context: Error context

        Returns:
            NetworkError
        """
        return NetworkError(
            message=f'Network error: {str(error)}',
            context=context,
            cause=error,
            suggestions=[
                'Check your internet connection',
                'Verify the api base_url setting is reachable',
                'Check if VPN or proxy is interfering',
                'Retry the operation (automatic retry enabled)'
            ]
        )

    def _handle_validation_error(
        self,
        error: PydanticValidationError,
        context: ErrorContext
    ) -> ValidationError:
        """Handle pydantic validation errors raised on resource records.

        Args:
            error: The pydantic validation error
            context: Error context

        Returns:
            ValidationError listing each failing field
        """
        problems = []
        for item in error.errors():
            location = ".".join(str(loc) for loc in item.get("loc", []))
            problems.append(f"{location}: {item.get('msg', 'invalid value')}")

        return ValidationError(
            message="Invalid resource configuration: " + "; ".join(problems),
            context=context,
            cause=error
        )

    def log_error(self, error: ProviderError):
        """Log an error with appropriate level.

        Args:
            error: The error to log
        """
        log_message = error.to_user_message()

        if error.severity in (ErrorSeverity.CRITICAL, ErrorSeverity.ERROR):
            self.logger.error(log_message)
        elif error.severity == ErrorSeverity.WARNING:
            self.logger.warning(log_message)
        else:
            self.logger.info(log_message)

        self.logger.debug(f"Error details: {error.to_dict()}")


# Global error handler instance
error_handler = ErrorHandler()
