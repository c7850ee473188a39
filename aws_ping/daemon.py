"""Polling loop that drives discovery rounds, with signal handling and backoff."""

from __future__ import annotations

import logging
import random
import signal
import time
from types import FrameType

from .config import PollingConfig
from .discovery import MembershipSource
from .discovery.models import MemberAddress

logger = logging.getLogger(__name__)


class Daemon:
    """Host-side loop: resolve members -> log snapshot -> sleep.

    Retries of failed rounds happen here, on the polling schedule; the
    membership source itself never retries.
    """

    def __init__(self, source: MembershipSource, cluster_name: str, polling: PollingConfig):
        self._source = source
        self._cluster_name = cluster_name
        self._polling = polling
        self._shutdown = False
        self._consecutive_failures = 0

    def run_once(self) -> list[MemberAddress]:
        """Execute a single discovery round."""
        return self._round()

    def run(self) -> None:
        """Run discovery rounds until a shutdown signal."""
        self._install_signal_handlers()
        logger.info("Daemon started, polling every %ds", self._polling.interval_seconds)

        while not self._shutdown:
            round_start = time.monotonic()

            try:
                self._round()
                self._consecutive_failures = 0
            except Exception:
                self._consecutive_failures += 1
                logger.exception(
                    "Round failed (consecutive failures: %d)",
                    self._consecutive_failures,
                    extra={"cluster": self._cluster_name, "consecutive_failures": self._consecutive_failures},
                )

            elapsed = time.monotonic() - round_start
            sleep_time = self._calculate_sleep(elapsed)
            logger.debug("Sleeping %.1fs before next round", sleep_time)
            self._interruptible_sleep(sleep_time)

        logger.info("Daemon stopped")

    def stop(self) -> None:
        self._shutdown = True

    def _round(self) -> list[MemberAddress]:
        start = time.monotonic()
        members = self._source.resolve_members(self._cluster_name)
        elapsed = time.monotonic() - start
        logger.info(
            "Cluster %s members: %s",
            self._cluster_name, ", ".join(str(m) for m in members) or "(none)",
            extra={"cluster": self._cluster_name, "total_members": len(members),
                   "elapsed_seconds": round(elapsed, 2)},
        )
        return members

    def _calculate_sleep(self, elapsed: float) -> float:
        """Determine how long to sleep, applying backoff and jitter."""
        base = self._polling.interval_seconds

        if self._consecutive_failures > 0:
            base = min(
                self._polling.backoff_base_seconds * (2 ** (self._consecutive_failures - 1)),
                self._polling.max_backoff_seconds,
            )

        jitter = random.uniform(0, self._polling.jitter_seconds)
        return max(0.0, base - elapsed + jitter)

    def _interruptible_sleep(self, seconds: float) -> None:
        """Sleep in short increments so we can respond to shutdown signals."""
        end = time.monotonic() + seconds
        while not self._shutdown and time.monotonic() < end:
            remaining = end - time.monotonic()
            time.sleep(min(remaining, 1.0))

    def _install_signal_handlers(self) -> None:
        signal.signal(signal.SIGTERM, self._handle_shutdown)
        signal.signal(signal.SIGINT, self._handle_shutdown)

    def _handle_shutdown(self, signum: int, frame: FrameType | None) -> None:
        logger.info("Received %s, shutting down", signal.Signals(signum).name)
        self._shutdown = True
