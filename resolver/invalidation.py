"""Tracking of addresses whose cached mapping must not be trusted."""

from __future__ import annotations

import itertools
import threading
from typing import Dict, Generic, Hashable, List, Mapping, TypeVar

from resolver.addresses import IPAddress, MacAddress

K = TypeVar("K", bound=Hashable)


class InvalidationSet(Generic[K]):
    """Thread-safe set of invalidated addresses.

    Every add() stamps the address with a fresh sequence number. A scan takes
    a snapshot() and, when it succeeds, calls discard_snapshot(): addresses
    invalidated again while the scan was running carry a newer stamp and so
    stay invalidated.
    """

    def __init__(self) -> None:
        self._stamps: Dict[K, int] = {}
        self._lock = threading.Lock()
        self._sequence = itertools.count(1)

    def add(self, key: K) -> None:
        with self._lock:
            self._stamps[key] = next(self._sequence)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._stamps

    def contains(self, key: K) -> bool:
        return key in self

    def __len__(self) -> int:
        with self._lock:
            return len(self._stamps)

    @property
    def is_empty(self) -> bool:
        return len(self) == 0

    def clear(self) -> None:
        with self._lock:
            self._stamps.clear()

    def snapshot(self) -> Dict[K, int]:
        """Copy of the current members with their stamps."""
        with self._lock:
            return dict(self._stamps)

    def snapshot_keys(self) -> List[K]:
        with self._lock:
            return list(self._stamps)

    def discard_snapshot(self, snapshot: Mapping[K, int]) -> int:
        """Remove members not re-invalidated since the snapshot was taken.

        Returns:
            Number of addresses removed.
        """
        removed = 0
        with self._lock:
            for key, stamp in snapshot.items():
                if self._stamps.get(key) == stamp:
                    del self._stamps[key]
                    removed += 1
        return removed


class InvalidationTracker:
    """Invalidated IP addresses and hardware addresses of one resolver."""

    def __init__(self) -> None:
        self.ip_addresses: InvalidationSet[IPAddress] = InvalidationSet()
        self.mac_addresses: InvalidationSet[MacAddress] = InvalidationSet()

    @property
    def has_invalidated(self) -> bool:
        return not (self.ip_addresses.is_empty and self.mac_addresses.is_empty)

    def clear(self) -> None:
        self.ip_addresses.clear()
        self.mac_addresses.clear()


__all__ = ["InvalidationSet", "InvalidationTracker"]
