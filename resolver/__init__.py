"""MAC address resolution engine.

This package resolves IP addresses to hardware addresses and back from a
neighbor table, scanning the network when cached knowledge is stale or
explicitly invalidated.

Modules:
    addresses: Hardware address type and address helpers
    entry: Neighbor table entries
    cancellation: Cooperative cancellation tokens
    invalidation: Invalidated address tracking
    scheduler: Full and partial scan scheduling
    selector: Candidate entry selection
    engine: MacAddressResolver

Example:
    >>> from resolver import MacAddressResolver
    >>> with MacAddressResolver(table, scanner) as resolver:
    ...     print(resolver.resolve_ip_to_mac("192.0.2.1"))
"""
from .addresses import (
    ALL_ZERO_MAC_ADDRESS,
    MacAddress,
    interface_id_equals,
    ip_addresses_equal,
    to_ip_address,
    to_mac_address,
)
from .cancellation import CancellationToken, LinkedCancellationToken
from .engine import MacAddressResolver
from .entry import EMPTY_ENTRY, EntryState, NeighborEntry
from .invalidation import InvalidationSet, InvalidationTracker
from .scheduler import ScanScheduler
from .selector import CandidateSelector, select_candidate

__all__ = [
    # Engine
    "MacAddressResolver",
    # Addresses
    "MacAddress",
    "ALL_ZERO_MAC_ADDRESS",
    "to_mac_address",
    "to_ip_address",
    "ip_addresses_equal",
    "interface_id_equals",
    # Entries
    "NeighborEntry",
    "EntryState",
    "EMPTY_ENTRY",
    # Cancellation
    "CancellationToken",
    "LinkedCancellationToken",
    # Internals
    "InvalidationSet",
    "InvalidationTracker",
    "ScanScheduler",
    "CandidateSelector",
    "select_candidate",
]
