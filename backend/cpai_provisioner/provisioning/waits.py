"""
Cancellable waits and polling

Every pause in the workflow goes through a Waiter so that an operator
interrupt is noticed within check_interval seconds and so tests can
replace real time.
"""

import logging
import threading
import time
from typing import Callable

from cpai_provisioner.core.exceptions import ProvisioningCancelled

logger = logging.getLogger(__name__)


class Waiter:
    """
    Sleeps and polls that respect a shared cancel token

    Attributes:
        cancel_event: Set to abort the current and all future waits
        total_waited: Seconds spent in completed waits
    """

    def __init__(
        self,
        cancel_event: threading.Event | None = None,
        clock: Callable[[], float] = time.monotonic,
        check_interval: float = 0.5,
    ):
        self.cancel_event = cancel_event or threading.Event()
        self.clock = clock
        self.check_interval = check_interval
        self.total_waited = 0.0

    def cancel(self) -> None:
        self.cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def check_cancelled(self) -> None:
        """Raise if cancellation was requested."""
        if self.cancelled:
            raise ProvisioningCancelled()

    def _pause(self, seconds: float) -> bool:
        """Block for up to `seconds`; return True if cancelled meanwhile."""
        remaining = seconds
        while remaining > 0:
            chunk = min(self.check_interval, remaining)
            if self.cancel_event.wait(chunk):
                return True
            remaining -= chunk
        return False

    def sleep(self, seconds: float, reason: str = "") -> None:
        """
        Sleep that respects cancellation

        Raises:
            ProvisioningCancelled: If cancelled during the sleep
        """
        self.check_cancelled()
        if seconds <= 0:
            return
        if reason:
            logger.info(f"Waiting {seconds:g}s {reason}...")
        if self._pause(seconds):
            logger.debug(f"Sleep of {seconds}s cancelled")
            raise ProvisioningCancelled()
        self.total_waited += seconds

    def poll_until(
        self,
        condition: Callable[[], bool],
        timeout: float,
        initial_interval: float = 2.0,
        max_interval: float = 15.0,
        backoff: float = 2.0,
        description: str = "condition",
    ) -> bool:
        """
        Poll a condition with exponential backoff until it holds or time runs out

        The condition is checked immediately, then after waits of
        initial_interval, initial_interval * backoff, ... capped at
        max_interval. The final wait is shortened so the total never
        exceeds timeout.

        Returns:
            True if the condition became true, False on timeout

        Raises:
            ProvisioningCancelled: If cancelled while polling
        """
        deadline = self.clock() + timeout
        interval = initial_interval
        attempt = 0

        while True:
            self.check_cancelled()
            attempt += 1
            if condition():
                logger.debug(f"{description} satisfied after {attempt} check(s)")
                return True

            remaining = deadline - self.clock()
            if remaining <= 0:
                logger.debug(f"{description} not satisfied within {timeout:g}s")
                return False

            self.sleep(min(interval, remaining))
            interval = min(interval * backoff, max_interval)
