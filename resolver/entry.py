"""Neighbor table entries.

A NeighborEntry is one row of an ARP/NDP neighbor table as reported by an
address table source. Entries are immutable and hashable.

Example:
    >>> entry = NeighborEntry(
    ...     ip_address=ipaddress.ip_address("192.0.2.1"),
    ...     mac_address=MacAddress.parse("aa:bb:cc:dd:ee:ff"),
    ...     state=EntryState.REACHABLE,
    ...     interface_id="eth0",
    ... )
    >>> entry.has_usable_mac_address
    True
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional

from resolver.addresses import (
    IPAddress,
    MacAddress,
    ip_addresses_equal,
    normalize_interface_id,
)


class EntryState(Enum):
    """Neighbor cache entry states (RFC 4861 section 7.3.2).

    NONE means the table did not report a state.
    """
    NONE = "none"
    INCOMPLETE = "incomplete"
    REACHABLE = "reachable"
    STALE = "stale"
    DELAY = "delay"
    PROBE = "probe"


@dataclass(frozen=True, eq=False)
class NeighborEntry:
    """One neighbor table row.

    Attributes:
        ip_address: IP address; None only for the EMPTY entry.
        mac_address: Hardware address, None if unresolved.
        is_permanent: True for statically configured entries.
        state: Neighbor cache state.
        interface_id: Owning network interface, None if not reported.
    """

    ip_address: Optional[IPAddress] = None
    mac_address: Optional[MacAddress] = None
    is_permanent: bool = False
    state: EntryState = EntryState.NONE
    interface_id: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return self.ip_address is None

    @property
    def has_usable_mac_address(self) -> bool:
        """False when the hardware address is absent or the all-zero sentinel."""
        return self.mac_address is not None and not self.mac_address.is_zero

    @property
    def is_authoritative(self) -> bool:
        """Permanent and reachable entries win candidate selection outright."""
        return self.is_permanent or self.state is EntryState.REACHABLE

    def matches_ip_address(self, ip_address: IPAddress, consider_ipv4_mapped_ipv6: bool = False) -> bool:
        return ip_addresses_equal(self.ip_address, ip_address, consider_ipv4_mapped_ipv6)

    def matches_mac_address(self, mac_address: Optional[MacAddress]) -> bool:
        return self.mac_address == mac_address

    def with_state(self, state: EntryState) -> "NeighborEntry":
        return replace(self, state=state)

    def _key_except_state(self) -> tuple:
        return (
            self.ip_address,
            self.mac_address,
            self.is_permanent,
            normalize_interface_id(self.interface_id),
        )

    def equals_except_state(self, other: "NeighborEntry") -> bool:
        """Compare every field but state.

        Lets callers detect a state transition without treating it as a
        content change.
        """
        if not isinstance(other, NeighborEntry):
            return False
        return self._key_except_state() == other._key_except_state()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NeighborEntry):
            return NotImplemented
        return self.equals_except_state(other) and self.state is other.state

    def __hash__(self) -> int:
        return hash(self._key_except_state() + (self.state,))

    def __str__(self) -> str:
        return (
            f"{{IP={self.ip_address}, MAC={self.mac_address or '(null)'}, "
            f"IsPermanent={self.is_permanent}, State={self.state.name}, "
            f"Iface={self.interface_id}}}"
        )


EMPTY_ENTRY = NeighborEntry()


__all__ = ["EMPTY_ENTRY", "EntryState", "NeighborEntry"]
