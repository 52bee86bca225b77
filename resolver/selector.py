"""Candidate selection among neighbor table entries.

Several rows of a neighbor table can match the same address: an incomplete
row next to a resolved one, the same host on two interfaces, a permanent
row shadowed by a learned one. CandidateSelector filters the rows and
breaks ties:

1. rows outside the interface scope are dropped
2. rows without a usable hardware address are dropped
3. rows whose complementary address is invalidated are dropped
4. the first permanent or reachable survivor wins outright; otherwise the
   last survivor in table order wins
"""

from __future__ import annotations

import ipaddress
from typing import Callable, Iterable, Optional

from config import get_logger
from resolver.addresses import IPAddress, MacAddress, interface_id_equals
from resolver.entry import EMPTY_ENTRY, NeighborEntry
from resolver.invalidation import InvalidationTracker

logger = get_logger(__name__)

EntryPredicate = Callable[[NeighborEntry], bool]


class CandidateSelector:
    """Filters and ranks neighbor entries for one resolver.

    Args:
        tracker: Invalidation state consulted on every selection.
        interface: Optional interface scope. Any object with ``id``,
            ``supports_ipv4`` and ``supports_ipv6`` attributes.
        resolve_ipv4_mapped_ipv6_address: Match ::ffff:a.b.c.d against
            a.b.c.d when resolving an IP address.
    """

    def __init__(
        self,
        tracker: InvalidationTracker,
        interface=None,
        resolve_ipv4_mapped_ipv6_address: bool = False,
    ) -> None:
        self._tracker = tracker
        self.interface = interface
        self.resolve_ipv4_mapped_ipv6_address = resolve_ipv4_mapped_ipv6_address

    # ========================================================================
    # Filters
    # ========================================================================

    def is_in_interface_scope(self, entry: NeighborEntry) -> bool:
        """True unless the entry belongs to another interface or address family."""
        interface = self.interface
        if interface is None:
            return True

        if entry.interface_id is not None and not interface_id_equals(entry.interface_id, interface.id):
            return False

        if isinstance(entry.ip_address, ipaddress.IPv4Address):
            return bool(interface.supports_ipv4)
        if isinstance(entry.ip_address, ipaddress.IPv6Address):
            return bool(interface.supports_ipv6)
        return True

    def _is_ip_address_invalidated(self, entry: NeighborEntry) -> bool:
        return entry.ip_address is not None and entry.ip_address in self._tracker.ip_addresses

    def _is_mac_address_invalidated(self, entry: NeighborEntry) -> bool:
        return entry.mac_address is not None and entry.mac_address in self._tracker.mac_addresses

    # ========================================================================
    # Selection
    # ========================================================================

    def select(self, entries: Iterable[NeighborEntry], predicate: EntryPredicate) -> NeighborEntry:
        """Pick the best entry satisfying predicate.

        Entries must already be restricted to the interface scope. Stops
        reading entries as soon as an authoritative one is found.

        Returns:
            The selected entry, or EMPTY_ENTRY when nothing survives.
        """
        candidate = EMPTY_ENTRY

        for entry in entries:
            if not entry.has_usable_mac_address:
                logger.debug(f"Skipping entry without hardware address: {entry}")
                continue
            if not predicate(entry):
                continue

            if entry.is_authoritative:
                logger.debug(f"Selected authoritative entry: {entry}")
                return entry

            # Later rows are fresher
            candidate = entry

        if candidate.is_empty:
            logger.debug("No matching entry")
        else:
            logger.debug(f"Selected entry: {candidate}")
        return candidate

    def select_by_ip_address(
        self, entries: Iterable[NeighborEntry], ip_address: IPAddress
    ) -> NeighborEntry:
        """Best entry for an IP address, skipping invalidated hardware addresses."""
        consider_mapped = self.resolve_ipv4_mapped_ipv6_address

        def matches(entry: NeighborEntry) -> bool:
            if not entry.matches_ip_address(ip_address, consider_mapped):
                return False
            if self._is_mac_address_invalidated(entry):
                logger.debug(f"Skipping entry with invalidated hardware address: {entry}")
                return False
            return True

        return self.select(entries, matches)

    def select_by_mac_address(
        self, entries: Iterable[NeighborEntry], mac_address: MacAddress
    ) -> NeighborEntry:
        """Best entry for a hardware address, skipping invalidated IP addresses."""

        def matches(entry: NeighborEntry) -> bool:
            if not entry.matches_mac_address(mac_address):
                return False
            if self._is_ip_address_invalidated(entry):
                logger.debug(f"Skipping entry with invalidated IP address: {entry}")
                return False
            return True

        return self.select(entries, matches)


def select_candidate(entries: Iterable[NeighborEntry], predicate: Optional[EntryPredicate] = None) -> NeighborEntry:
    """Apply the tie-break to entries without interface or invalidation state."""
    return CandidateSelector(InvalidationTracker()).select(entries, predicate or (lambda entry: True))


__all__ = ["CandidateSelector", "EntryPredicate", "select_candidate"]
