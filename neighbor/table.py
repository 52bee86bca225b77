"""Address table sources: read-only views of the neighbor table.

Every table exposes enumerate_entries(), which returns a lazy, cancelable
iterator of NeighborEntry. Each call reads a fresh snapshot and an empty
table yields nothing.

Example:
    >>> table = ProcfsArpAddressTable()
    >>> for entry in table.enumerate_entries():
    ...     print(entry)
"""

from __future__ import annotations

import ipaddress
import os
import threading
from typing import Iterable, Iterator, List, Optional

from config import NETWORK, InvalidAddressError, ResolverDisposedError, get_logger
from resolver.addresses import MacAddress
from resolver.cancellation import CancellationToken
from resolver.entry import EntryState, NeighborEntry

logger = get_logger(__name__)


class AddressTable:
    """Base class for neighbor table readers.

    Subclasses implement _enumerate_entries(); the public method checks
    cancellation and disposal before any I/O starts.
    """

    def __init__(self) -> None:
        self._closed = threading.Event()

    def close(self) -> None:
        self._closed.set()

    def __enter__(self) -> "AddressTable":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def _throw_if_disposed(self) -> None:
        if self._closed.is_set():
            raise ResolverDisposedError(type(self).__name__)

    def enumerate_entries(
        self, cancel_token: Optional[CancellationToken] = None
    ) -> Iterator[NeighborEntry]:
        cancel_token = cancel_token or CancellationToken.NONE
        cancel_token.raise_if_cancelled()
        self._throw_if_disposed()
        return self._enumerate_entries(cancel_token)

    def _enumerate_entries(self, cancel_token: CancellationToken) -> Iterator[NeighborEntry]:
        raise NotImplementedError


class NullAddressTable(AddressTable):
    """A table that is always empty."""

    def _enumerate_entries(self, cancel_token: CancellationToken) -> Iterator[NeighborEntry]:
        return iter(())

    def __repr__(self) -> str:
        return "NullAddressTable()"


class StaticAddressTable(AddressTable):
    """A table over a fixed list of entries, in the order given.

    Useful for statically configured hosts and for tests. The list may be
    replaced at any time with set_entries().
    """

    def __init__(self, entries: Iterable[NeighborEntry] = ()) -> None:
        super().__init__()
        self._lock = threading.Lock()
        self._entries: List[NeighborEntry] = list(entries)

    def set_entries(self, entries: Iterable[NeighborEntry]) -> None:
        with self._lock:
            self._entries = list(entries)

    def add_entry(self, entry: NeighborEntry) -> None:
        with self._lock:
            self._entries.append(entry)

    def _enumerate_entries(self, cancel_token: CancellationToken) -> Iterator[NeighborEntry]:
        with self._lock:
            entries = list(self._entries)
        for entry in entries:
            cancel_token.raise_if_cancelled()
            yield entry

    def __repr__(self) -> str:
        return f"StaticAddressTable({len(self._entries)} entries)"


# ============================================================================
# /proc/net/arp
# ============================================================================

# ATF_* flags from <net/if_arp.h>
ATF_COM = 0x02
ATF_PERM = 0x04


def parse_procfs_arp_line(line: str) -> Optional[NeighborEntry]:
    """Parse one data line of /proc/net/arp.

    Columns: IP address, HW type, Flags, HW address, Mask, Device.

    Returns:
        The entry, or None if the line cannot be parsed.
    """
    columns = line.split()
    if len(columns) < 6:
        return None

    try:
        ip_address = ipaddress.ip_address(columns[0])
    except ValueError:
        return None

    hardware_type, flags = columns[1], columns[2]
    if not (hardware_type.startswith("0x") and flags.startswith("0x")):
        return None
    try:
        int(hardware_type, 16)
        flags_value = int(flags, 16)
        mac_address = MacAddress.parse(columns[3])
    except (ValueError, InvalidAddressError):
        return None

    state = EntryState.STALE if flags_value & ATF_COM else EntryState.INCOMPLETE

    return NeighborEntry(
        ip_address=ip_address,
        mac_address=mac_address,
        is_permanent=bool(flags_value & ATF_PERM),
        state=state,
        interface_id=columns[5],
    )


class ProcfsArpAddressTable(AddressTable):
    """Reads the Linux kernel ARP table from /proc/net/arp.

    The kernel does not report NUD states here: completed entries are
    reported as STALE, unresolved ones as INCOMPLETE with an all-zero
    hardware address.
    """

    def __init__(self, path: str = NETWORK.PROCFS_ARP_PATH) -> None:
        super().__init__()
        self.path = path

    @staticmethod
    def is_supported(path: str = NETWORK.PROCFS_ARP_PATH) -> bool:
        return os.path.isfile(path)

    def _enumerate_entries(self, cancel_token: CancellationToken) -> Iterator[NeighborEntry]:
        logger.debug(f"Reading {self.path}")

        with open(self.path, "r", encoding="ascii", errors="replace") as f:
            for line in f:
                cancel_token.raise_if_cancelled()

                line = line.strip()
                if not line or line.startswith("IP address"):
                    continue

                entry = parse_procfs_arp_line(line)
                if entry is None:
                    logger.warning(f"Failed to parse line: {line!r}")
                    continue

                yield entry

    def __repr__(self) -> str:
        return f"ProcfsArpAddressTable(path={self.path!r})"


__all__ = [
    "AddressTable",
    "NullAddressTable",
    "ProcfsArpAddressTable",
    "StaticAddressTable",
    "parse_procfs_arp_line",
]
