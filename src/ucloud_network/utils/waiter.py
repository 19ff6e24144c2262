"""Polling waiter for asynchronous remote state transitions."""

import time
from typing import Any, Callable, Iterable, Optional, Tuple

from ucloud_network.utils.errors import UnexpectedStateError, WaitTimeoutError
from ucloud_network.utils.logging import get_logger

logger = get_logger(__name__)

STATUS_PENDING = 'pending'
STATUS_INITIALIZED = 'initialized'

# refresh() returns the current remote object (or None) and its state name
RefreshFunc = Callable[[], Tuple[Optional[Any], str]]


class StateWaiter:
    """Polls a refresh function until the remote object reaches a target state.

    The waiter starts in the first pending state. After an initial ``delay``
    it calls ``refresh`` every ``min_timeout`` seconds. The first time refresh
    reports a target state the waiter returns the refreshed object; it never
    polls again after that. Errors raised by ``refresh`` propagate unchanged.
    """

    def __init__(
        self,
        refresh: RefreshFunc,
        pending: Iterable[str] = (STATUS_PENDING,),
        target: Iterable[str] = (STATUS_INITIALIZED,),
        timeout: float = 180.0,
        delay: float = 2.0,
        min_timeout: float = 1.0,
        description: str = 'resource',
    ):
        """Initialize the waiter.

        Args:
            refresh: Callable returning ``(value, state)``
            pending: States that mean "keep waiting"
            target: States that end the wait successfully
            timeout: Maximum wait in seconds
            delay: Seconds to sleep before the first refresh
            min_timeout: Seconds to sleep between refreshes
            description: Label used in log and error messages
        """
        self.refresh = refresh
        self.pending = list(pending)
        self.target = list(target)
        self.timeout = timeout
        self.delay = delay
        self.min_timeout = min_timeout
        self.description = description
        self.state = self.pending[0] if self.pending else None

    def wait(self) -> Any:
        """Block until a target state is reached.

        Returns:
            The object returned by the refresh call that reached the target

        Raises:
            WaitTimeoutError: If the timeout elapsed while still pending
            UnexpectedStateError: If refresh reported an unknown state
        """
        deadline = time.monotonic() + self.timeout
        polls = 0

        if self.delay > 0:
            time.sleep(min(self.delay, self.timeout))

        while True:
            value, state = self.refresh()
            polls += 1
            logger.debug(f"Waiting for {self.description}: poll {polls} state={state!r}")

            if state in self.target:
                self.state = state
                logger.debug(f"{self.description} reached {state!r} after {polls} polls")
                return value

            if state not in self.pending:
                raise UnexpectedStateError(
                    f"unexpected state {state!r} for {self.description}, "
                    f"wanted target {self.target}",
                    state=state
                )

            self.state = state
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise WaitTimeoutError(
                    f"timeout while waiting for {self.description} to become "
                    f"{self.target} (last state: {state!r}, timeout: {self.timeout:.0f}s)",
                    last_state=state
                )

            time.sleep(min(self.min_timeout, remaining))
