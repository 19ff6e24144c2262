"""Utility modules for logging, API client management, and helpers."""

from ucloud_network.utils.client import UCloudClient, encode_params, sign_params
from ucloud_network.utils.retry import (
    RetryStrategy,
    RetryOutcome,
    RetryResult,
    retry_until,
)
from ucloud_network.utils.waiter import StateWaiter, STATUS_PENDING, STATUS_INITIALIZED
from ucloud_network.utils.errors import (
    ErrorCategory,
    ErrorSeverity,
    ErrorContext,
    ProviderError,
    APICallError,
    NotFoundError,
    WaitTimeoutError,
    UnexpectedStateError,
    ConfigurationError,
    CredentialError,
    NetworkError,
    ValidationError,
    ErrorHandler,
    error_handler
)
from ucloud_network.utils.logging import get_logger, setup_logging, LogContext

__all__ = [
    # API client
    'UCloudClient',
    'encode_params',
    'sign_params',

    # Retry
    'RetryStrategy',
    'RetryOutcome',
    'RetryResult',
    'retry_until',

    # Waiting
    'StateWaiter',
    'STATUS_PENDING',
    'STATUS_INITIALIZED',

    # Errors
    'ErrorCategory',
    'ErrorSeverity',
    'ErrorContext',
    'ProviderError',
    'APICallError',
    'NotFoundError',
    'WaitTimeoutError',
    'UnexpectedStateError',
    'ConfigurationError',
    'CredentialError',
    'NetworkError',
    'ValidationError',
    'ErrorHandler',
    'error_handler',

    # Logging
    'get_logger',
    'setup_logging',
    'LogContext',
]
