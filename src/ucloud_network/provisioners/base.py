"""Base resource handler interface and shared types."""

import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Generic, List, Optional, TypeVar

from pydantic import BaseModel

from ucloud_network.config.models import WaitConfig
from ucloud_network.utils.client import UCloudClient
from ucloud_network.utils.errors import (
    APICallError,
    ErrorCategory,
    ErrorContext,
    NotFoundError,
    ProviderError,
    WaitTimeoutError,
)
from ucloud_network.utils.logging import get_logger
from ucloud_network.utils.retry import RetryResult, retry_until
from ucloud_network.utils.waiter import StateWaiter, STATUS_PENDING, STATUS_INITIALIZED

logger = get_logger(__name__)

ConfigT = TypeVar('ConfigT', bound=BaseModel)
StateT = TypeVar('StateT', bound=BaseModel)


class ChangeType(Enum):
    """Type of change for a resource."""
    CREATE = "create"
    UPDATE = "update"
    REPLACE = "replace"
    NO_CHANGE = "no_change"


@dataclass
class ProviderContext:
    """Everything a handler needs to talk to the remote service."""
    client: UCloudClient
    waits: WaitConfig = field(default_factory=WaitConfig)

    @classmethod
    def from_client(cls, client: UCloudClient) -> "ProviderContext":
        return cls(client=client, waits=client.config.waits)


@dataclass
class ProvisionPlan(Generic[ConfigT, StateT]):
    """Plan for bringing a resource to its declared configuration."""
    desired: ConfigT
    change_type: ChangeType
    current_state: Optional[StateT]
    changed_fields: List[str] = field(default_factory=list)


def generate_name(prefix: str) -> str:
    """Generate a unique default resource name with the given prefix."""
    stamp = datetime.now(timezone.utc).strftime('%Y%m%d%H%M%S%f')
    return f"{prefix}{stamp}{uuid.uuid4().hex[:8]}"


def timestamp_to_string(ts: Optional[int]) -> Optional[str]:
    """Format a unix timestamp as an RFC 3339 UTC string."""
    if not ts:
        return None
    return datetime.fromtimestamp(int(ts), tz=timezone.utc).strftime('%Y-%m-%dT%H:%M:%SZ')


class BaseHandler(ABC, Generic[ConfigT, StateT]):
    """Base class for resource lifecycle handlers."""

    resource_type = 'resource'

    def __init__(self, context: ProviderContext):
        """Initialize handler with a provider context.

        Args:
            context: API client and wait settings shared by all operations
        """
        self.context = context
        self.client = context.client
        self.waits = context.waits

    @abstractmethod
    def create(self, config: ConfigT) -> StateT:
        """Create the resource and wait until it is ready.

        Args:
            config: Declared configuration

        Returns:
            Refreshed state, including the identifier assigned remotely
        """
        pass

    @abstractmethod
    def read(self, resource_id: str) -> Optional[StateT]:
        """Fetch current resource state.

        Args:
            resource_id: Remote identifier

        Returns:
            Current state, or None if the resource no longer exists
        """
        pass

    @abstractmethod
    def update(self, resource_id: str, old: ConfigT, new: ConfigT) -> StateT:
        """Apply in-place changes.

        Args:
            resource_id: Remote identifier
            old: Previously applied configuration
            new: Newly declared configuration

        Returns:
            Refreshed state
        """
        pass

    @abstractmethod
    def delete(self, resource_id: str) -> None:
        """Delete the resource and confirm it is gone.

        Args:
            resource_id: Remote identifier
        """
        pass

    def import_state(self, resource_id: str) -> StateT:
        """Adopt an existing resource by its identifier, used verbatim.

        Raises:
            NotFoundError: If no resource with this identifier exists
        """
        state = self.read(resource_id)
        if state is None:
            raise NotFoundError(
                f"cannot import {self.resource_type} {resource_id!r}, it does not exist",
                context=ErrorContext(
                    resource_id=resource_id,
                    resource_type=self.resource_type,
                    operation='import'
                )
            )
        logger.info(f"Imported {self.resource_type} {resource_id}")
        return state

    def plan(self, desired: ConfigT, current: Optional[StateT]) -> ProvisionPlan:
        """Determine what changes are needed for the resource.

        Args:
            desired: The declared configuration
            current: The current state (None if doesn't exist)

        Returns:
            ProvisionPlan describing the changes needed
        """
        if current is None:
            return ProvisionPlan(desired, ChangeType.CREATE, None)

        current_config = current.to_config()
        changed = [
            name for name in type(desired).model_fields
            if self._differs(getattr(desired, name), getattr(current_config, name))
        ]

        if not changed:
            return ProvisionPlan(desired, ChangeType.NO_CHANGE, current)

        if any(name in desired.FORCE_NEW_FIELDS for name in changed):
            return ProvisionPlan(desired, ChangeType.REPLACE, current, changed)

        self.validate_change(current_config, desired)
        return ProvisionPlan(desired, ChangeType.UPDATE, current, changed)

    def validate_change(self, old: ConfigT, new: ConfigT) -> None:
        """Reject in-place changes the remote API cannot apply in one step."""
        pass

    @staticmethod
    def _differs(desired, current) -> bool:
        # Optional attributes left unset keep whatever the service assigned
        if desired is None or current is None:
            return False
        return desired != current

    def wrap_error(
        self,
        error: Exception,
        message: str,
        operation: str,
        resource_id: Optional[str] = None
    ) -> ProviderError:
        """Copy ``error`` with operation and resource context attached.

        The wrapped error keeps the category of the original so callers can
        still tell a timeout from an API failure.
        """
        context = ErrorContext(
            resource_id=resource_id,
            resource_type=self.resource_type,
            operation=operation,
            action=error.context.action if isinstance(error, ProviderError) else None
        )

        if isinstance(error, WaitTimeoutError):
            return WaitTimeoutError(message, last_state=error.last_state,
                                    context=context, cause=error)
        if isinstance(error, APICallError):
            return APICallError(message, action=error.action, ret_code=error.ret_code,
                                context=context, cause=error)
        if isinstance(error, ProviderError):
            return ProviderError(message, category=error.category, severity=error.severity,
                                 context=context, cause=error, suggestions=error.suggestions)
        return APICallError(message, context=context, cause=error)

    def wait_until_available(self, resource_id: str, describe: Callable[[str], dict]) -> dict:
        """Poll ``describe`` until the new resource is visible.

        A not-found read keeps the waiter pending; any other read error ends
        the wait immediately.

        Raises:
            WaitTimeoutError: If the resource is still missing at the deadline
        """
        def refresh():
            try:
                return describe(resource_id), STATUS_INITIALIZED
            except NotFoundError:
                return None, STATUS_PENDING

        waiter = StateWaiter(
            refresh,
            pending=[STATUS_PENDING],
            target=[STATUS_INITIALIZED],
            timeout=self.waits.create_timeout,
            delay=self.waits.create_delay,
            min_timeout=self.waits.poll_interval,
            description=f"{self.resource_type} {resource_id}",
        )
        return waiter.wait()

    def delete_and_confirm(
        self,
        resource_id: str,
        delete: Callable[[], object],
        describe: Callable[[str], dict]
    ) -> None:
        """Issue ``delete`` and re-check until the resource is gone.

        Each attempt calls ``delete`` then ``describe``. A failed delete call
        or a failed read other than not-found is terminal; a resource that
        still exists is retried until ``waits.delete_timeout``.
        """
        kind = self.resource_type

        def attempt() -> RetryResult:
            try:
                delete()
            except ProviderError as e:
                return RetryResult.terminal(self.wrap_error(
                    e, f"error on deleting {kind} {resource_id!r}, {e}", 'delete', resource_id))

            try:
                describe(resource_id)
            except NotFoundError:
                return RetryResult.success()
            except ProviderError as e:
                return RetryResult.terminal(self.wrap_error(
                    e, f"error on reading {kind} when deleting {resource_id!r}, {e}",
                    'delete', resource_id))

            return RetryResult.retryable(ProviderError(
                f"the specified {kind} {resource_id!r} has not been deleted due to unknown error",
                category=ErrorCategory.STATE,
                context=ErrorContext(resource_id=resource_id, resource_type=kind, operation='delete')
            ))

        try:
            retry_until(attempt, timeout=self.waits.delete_timeout)
        except WaitTimeoutError as e:
            raise self.wrap_error(
                e, f"error on deleting {kind} {resource_id!r}, {e}", 'delete', resource_id) from e
