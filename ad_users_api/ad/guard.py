"""Pre-request health check for the shared directory session.

Every request that touches the directory first goes through
ConnectionGuard.ensure_ready(). A failed bind is retried with exponential
backoff; the session lock is only held during each bind attempt, never while
sleeping, so other requests keep using a healthy connection in between.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Iterator

from .errors import AuthError, DirectoryUnavailable, TransportError
from .session import DirectorySession

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 5
    initial_delay: float = 0.5
    backoff: float = 2.0
    max_delay: float = 30.0

    def delays(self) -> Iterator[float]:
        """Sleep before each retry; yields max_attempts - 1 values."""
        delay = self.initial_delay
        for _ in range(max(0, self.max_attempts - 1)):
            yield min(delay, self.max_delay)
            delay *= self.backoff


class ConnectionGuard:
    def __init__(self, policy: RetryPolicy | None = None, sleep: Callable[[float], None] = time.sleep) -> None:
        self.policy = policy or RetryPolicy()
        self._sleep = sleep

    def ensure_ready(self, session: DirectorySession) -> None:
        """Return once the session is bound, or raise DirectoryUnavailable."""
        last_error: Exception | None = None
        delays = self.policy.delays()
        attempt = 0
        while True:
            attempt += 1
            try:
                session.bind()
                if attempt > 1:
                    log.info("Directory session recovered on attempt %d", attempt)
                return
            except (AuthError, TransportError) as e:
                last_error = e

            delay = next(delays, None)
            if delay is None:
                break
            log.warning(
                "Directory bind attempt %d/%d failed: %s; retrying in %.1fs",
                attempt, self.policy.max_attempts, last_error, delay,
            )
            self._sleep(delay)

        log.error("Giving up on directory after %d attempts: %s", attempt, last_error)
        raise DirectoryUnavailable(attempt, last_error)
