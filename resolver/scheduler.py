"""Scan scheduling: staleness clock, rate limit and concurrency gates.

Two kinds of scan are run against the configured network scanner:

- Full scan: the whole configured address range. At most one runs at a
  time; a request arriving while one is in flight is dropped, not queued.
  Requests within the minimum interval of the last successful full scan
  are dropped as well.
- Partial scan: only the invalidated IP addresses. Up to N run at the same
  time; callers wait for a free slot. A partial scan request escalates to a
  full scan while any hardware address is invalidated.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from typing import Callable, Optional

from config import INTERVALS, RESOLVER, LogContext, ScanNotSupportedError, get_logger
from config.settings import normalize_interval, normalize_parallel_count
from resolver.cancellation import CancellationToken
from resolver.invalidation import InvalidationTracker

logger = get_logger(__name__)


class ScanScheduler:
    """Decides whether and when the network scanner runs.

    Intervals may be changed at any time; the change applies to the next
    scheduling decision.

    Args:
        scanner: The NetworkScanner, or None when scanning is unsupported.
        tracker: Invalidation state shared with the resolver.
        full_scan_interval: Seconds after which a resolve triggers a full
            scan first. None or math.inf disables automatic scans.
        full_scan_min_interval: Minimum seconds between two full scans.
            Zero disables the rate limit.
        partial_scan_parallelism: Maximum concurrent partial scans.
        clock: Monotonic time source, replaceable in tests.
    """

    def __init__(
        self,
        scanner,
        tracker: InvalidationTracker,
        full_scan_interval: Optional[float] = INTERVALS.FULL_SCAN_SECONDS,
        full_scan_min_interval: float = INTERVALS.FULL_SCAN_MIN_SECONDS,
        partial_scan_parallelism: int = RESOLVER.PARTIAL_SCAN_PARALLEL_MAX,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._scanner = scanner
        self._tracker = tracker
        self._clock = clock

        self._full_scan_interval = normalize_interval(
            full_scan_interval, "network scan interval", allow_zero=False
        )
        self._full_scan_min_interval = normalize_interval(
            full_scan_min_interval, "network scan minimum interval", allow_zero=True
        )
        self._last_full_scan_at: Optional[float] = None

        self._full_scan_gate = threading.Lock()
        self._partial_scan_parallelism = normalize_parallel_count(partial_scan_parallelism)
        self._partial_scan_gate = threading.BoundedSemaphore(self._partial_scan_parallelism)
        self._config_lock = threading.Lock()

    # ========================================================================
    # Configuration
    # ========================================================================

    @property
    def can_scan(self) -> bool:
        return self._scanner is not None

    @property
    def scanner(self):
        return self._scanner

    @property
    def full_scan_interval(self) -> float:
        return self._full_scan_interval

    @full_scan_interval.setter
    def full_scan_interval(self, value: Optional[float]) -> None:
        self._full_scan_interval = normalize_interval(value, "network scan interval", allow_zero=False)

    @property
    def full_scan_min_interval(self) -> float:
        return self._full_scan_min_interval

    @full_scan_min_interval.setter
    def full_scan_min_interval(self, value: float) -> None:
        self._full_scan_min_interval = normalize_interval(
            value, "network scan minimum interval", allow_zero=True
        )

    @property
    def partial_scan_parallelism(self) -> int:
        return self._partial_scan_parallelism

    @partial_scan_parallelism.setter
    def partial_scan_parallelism(self, value: int) -> None:
        value = normalize_parallel_count(value)
        with self._config_lock:
            # Scans holding a slot release it to the gate they acquired
            self._partial_scan_gate = threading.BoundedSemaphore(value)
            self._partial_scan_parallelism = value

    @property
    def last_full_scan_at(self) -> Optional[float]:
        return self._last_full_scan_at

    # ========================================================================
    # Staleness
    # ========================================================================

    @property
    def has_full_scan_interval_elapsed(self) -> bool:
        """True when a resolve should run a full scan before reading the table."""
        if self._full_scan_interval == math.inf:
            return False
        if self._last_full_scan_at is None:
            return True
        return self._last_full_scan_at + self._full_scan_interval <= self._clock()

    @property
    def has_full_scan_min_interval_elapsed(self) -> bool:
        if self._last_full_scan_at is None or self._full_scan_min_interval == 0:
            return True
        return self._last_full_scan_at + self._full_scan_min_interval <= self._clock()

    # ========================================================================
    # Scans
    # ========================================================================

    def _require_scanner(self) -> None:
        if self._scanner is None:
            raise ScanNotSupportedError()

    def full_scan(self, cancel_token: CancellationToken = CancellationToken.NONE) -> bool:
        """Scan the whole address range unless rate-limited or already running.

        On success both invalidation sets are cleared and the full-scan
        timestamp is reset.

        Returns:
            True if the scanner ran, False if the request was dropped.
        """
        self._require_scanner()

        if not self.has_full_scan_min_interval_elapsed:
            logger.info("Network scan was not performed since the minimum interval has not elapsed")
            return False

        if not self._full_scan_gate.acquire(blocking=False):
            logger.info("Network scan was not performed since another scan is in progress")
            return False

        try:
            # Another caller may have finished a scan between the check and the acquire
            if not self.has_full_scan_min_interval_elapsed:
                logger.info("Network scan was not performed since the minimum interval has not elapsed")
                return False

            cancel_token.raise_if_cancelled()

            with LogContext(logger, "Network scan", level=logging.INFO):
                self._scanner.scan(cancel_token=cancel_token)

            self._tracker.clear()
            self._last_full_scan_at = self._clock()
            return True
        finally:
            self._full_scan_gate.release()

    def partial_scan(self, cancel_token: CancellationToken = CancellationToken.NONE) -> bool:
        """Scan the invalidated IP addresses.

        Does nothing when nothing is invalidated, and runs a full scan
        instead when a hardware address is invalidated.

        Returns:
            True if the scanner ran.
        """
        self._require_scanner()

        if not self._tracker.has_invalidated:
            logger.debug("No invalidated addresses to refresh")
            return False

        if not self._tracker.mac_addresses.is_empty:
            logger.debug(
                "Invalidated MAC addresses: "
                f"{' '.join(str(m) for m in self._tracker.mac_addresses.snapshot_keys())}"
            )
            return self.full_scan(cancel_token)

        gate = self._acquire_partial_scan_slot(cancel_token)
        try:
            snapshot = self._tracker.ip_addresses.snapshot()
            if not snapshot:
                logger.debug("Invalidated addresses were refreshed while waiting for a scan slot")
                return False

            cancel_token.raise_if_cancelled()

            addresses = list(snapshot)
            logger.debug(f"Invalidated IP addresses: {' '.join(str(a) for a in addresses)}")

            with LogContext(
                logger,
                f"Network scan for {len(addresses)} invalidated IP addresses",
                level=logging.INFO,
            ):
                self._scanner.scan_addresses(addresses, cancel_token=cancel_token)

            self._tracker.ip_addresses.discard_snapshot(snapshot)
            return True
        finally:
            gate.release()

    def _acquire_partial_scan_slot(self, cancel_token: CancellationToken) -> threading.BoundedSemaphore:
        with self._config_lock:
            gate = self._partial_scan_gate

        while not gate.acquire(timeout=INTERVALS.GATE_POLL_SECONDS):
            cancel_token.raise_if_cancelled()

        if cancel_token.is_cancelled:
            gate.release()
            cancel_token.raise_if_cancelled()

        return gate


__all__ = ["ScanScheduler"]
