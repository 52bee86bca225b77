"""MAC address resolution engine.

MacAddressResolver is the object callers use. It composes an address
table (read-only view of the neighbor table), an optional network scanner,
the invalidation tracker, the scan scheduler and the candidate selector.

Example:
    >>> with MacAddressResolver(ProcfsArpAddressTable(), NmapCommandNetworkScanner(profile)) as resolver:
    ...     mac = resolver.resolve_ip_to_mac("192.0.2.1")
    ...     resolver.invalidate(mac)
    ...     resolver.refresh_invalidated_addresses()
"""

from __future__ import annotations

import ipaddress
import threading
import time
from typing import Callable, Iterator, Optional, Union

from config import ConfigurationError, InvalidAddressError, ResolverDisposedError, get_logger
from config.settings import ResolverSettings
from resolver.addresses import IPAddress, MacAddress, to_ip_address, to_mac_address
from resolver.cancellation import CancellationToken, LinkedCancellationToken
from resolver.entry import NeighborEntry
from resolver.invalidation import InvalidationTracker
from resolver.scheduler import ScanScheduler
from resolver.selector import CandidateSelector, EntryPredicate

logger = get_logger(__name__)


class MacAddressResolver:
    """Resolves IP addresses to hardware addresses and back.

    Thread-safe: resolve, invalidate and refresh may be called concurrently
    from any number of threads.

    Args:
        address_table: Source of neighbor entries (``enumerate_entries``).
        network_scanner: Optional active scanner (``scan`` and
            ``scan_addresses``). Without one, resolution reads whatever the
            table already holds and refresh calls raise ScanNotSupportedError.
        interface: Optional interface scope. Entries tagged with another
            interface, or of an address family the interface lacks, are
            ignored.
        settings: Initial option values; defaults to ResolverSettings().
        clock: Monotonic time source for the scan scheduler.
    """

    def __init__(
        self,
        address_table,
        network_scanner=None,
        interface=None,
        settings: Optional[ResolverSettings] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if address_table is None:
            raise ConfigurationError("address_table must not be None")

        settings = (settings or ResolverSettings()).validate()

        self._address_table = address_table
        self._tracker = InvalidationTracker()
        self._scheduler = ScanScheduler(
            network_scanner,
            self._tracker,
            full_scan_interval=settings.network_scan_interval,
            full_scan_min_interval=settings.network_scan_min_interval,
            partial_scan_parallelism=settings.max_parallel_count_for_refresh_invalidated_addresses,
            clock=clock,
        )
        self._selector = CandidateSelector(
            self._tracker,
            interface=interface,
            resolve_ipv4_mapped_ipv6_address=settings.resolve_ipv4_mapped_ipv6_address,
        )

        self._closed = threading.Event()
        self._close_lock = threading.Lock()
        self._disposal_token = CancellationToken(f"{type(self).__name__} has been disposed")

        if network_scanner is None:
            logger.info("No network scanner configured, automatic network scan is disabled")

    # ========================================================================
    # Options
    # ========================================================================

    @property
    def address_table(self):
        return self._address_table

    @property
    def network_scanner(self):
        return self._scheduler.scanner

    @property
    def can_scan(self) -> bool:
        return self._scheduler.can_scan

    @property
    def interface(self):
        return self._selector.interface

    @property
    def network_scan_interval(self) -> float:
        """Seconds after which a resolve runs a full scan first; math.inf disables it."""
        return self._scheduler.full_scan_interval

    @network_scan_interval.setter
    def network_scan_interval(self, value: Optional[float]) -> None:
        self._scheduler.full_scan_interval = value

    @property
    def network_scan_min_interval(self) -> float:
        """Minimum seconds between two full scans; zero disables the limit."""
        return self._scheduler.full_scan_min_interval

    @network_scan_min_interval.setter
    def network_scan_min_interval(self, value: float) -> None:
        self._scheduler.full_scan_min_interval = value

    @property
    def max_parallel_count_for_refresh_invalidated_addresses(self) -> int:
        return self._scheduler.partial_scan_parallelism

    @max_parallel_count_for_refresh_invalidated_addresses.setter
    def max_parallel_count_for_refresh_invalidated_addresses(self, value: int) -> None:
        self._scheduler.partial_scan_parallelism = value

    @property
    def resolve_ipv4_mapped_ipv6_address(self) -> bool:
        return self._selector.resolve_ipv4_mapped_ipv6_address

    @resolve_ipv4_mapped_ipv6_address.setter
    def resolve_ipv4_mapped_ipv6_address(self, value: bool) -> None:
        self._selector.resolve_ipv4_mapped_ipv6_address = bool(value)

    # ========================================================================
    # Lifecycle
    # ========================================================================

    @property
    def is_closed(self) -> bool:
        return self._closed.is_set()

    def close(self) -> None:
        """Dispose the resolver. Safe to call more than once.

        Calls waiting for a scan slot are woken with OperationCanceledError;
        every later call raises ResolverDisposedError.
        """
        with self._close_lock:
            if self._closed.is_set():
                return
            self._closed.set()
        self._disposal_token.cancel()
        logger.debug("Resolver closed")

    def __enter__(self) -> "MacAddressResolver":
        self._throw_if_disposed()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def _throw_if_disposed(self) -> None:
        if self._closed.is_set():
            raise ResolverDisposedError(type(self).__name__)

    def _begin(self, cancel_token: Optional[CancellationToken]) -> CancellationToken:
        """Common entry checks; returns the token operations should observe."""
        cancel_token = cancel_token or CancellationToken.NONE
        cancel_token.raise_if_cancelled()
        self._throw_if_disposed()
        return LinkedCancellationToken([cancel_token, self._disposal_token])

    # ========================================================================
    # Resolution
    # ========================================================================

    def resolve_ip_to_mac(
        self,
        ip_address: Union[IPAddress, str],
        cancel_token: Optional[CancellationToken] = None,
    ) -> Optional[MacAddress]:
        """Resolve an IP address to a hardware address.

        Runs a full scan first when the network scan interval has elapsed.

        Returns:
            The hardware address, or None if no eligible entry matches.

        Raises:
            InvalidAddressError: If ip_address is None or malformed.
            ResolverDisposedError: If the resolver is closed.
            OperationCanceledError: If cancel_token is cancelled.
        """
        token = self._begin(cancel_token)
        ip_address = to_ip_address(ip_address)

        self._full_scan_if_stale(token)

        entry = self._selector.select_by_ip_address(self._enumerate_scoped_entries(token), ip_address)
        return None if entry.is_empty else entry.mac_address

    def resolve_mac_to_ip(
        self,
        mac_address: Union[MacAddress, str, bytes],
        cancel_token: Optional[CancellationToken] = None,
    ) -> Optional[IPAddress]:
        """Resolve a hardware address to an IP address.

        The all-zero hardware address never resolves and returns None
        without reading the table.

        Returns:
            The IP address, or None if no eligible entry matches.
        """
        token = self._begin(cancel_token)
        mac_address = to_mac_address(mac_address)

        if mac_address.is_zero:
            return None

        self._full_scan_if_stale(token)

        entry = self._selector.select_by_mac_address(self._enumerate_scoped_entries(token), mac_address)
        return None if entry.is_empty else entry.ip_address

    def _full_scan_if_stale(self, token: CancellationToken) -> None:
        if self._scheduler.can_scan and self._scheduler.has_full_scan_interval_elapsed:
            logger.debug("Network scan interval elapsed, scanning before resolving")
            self._scheduler.full_scan(token)

    # ========================================================================
    # Invalidation
    # ========================================================================

    def invalidate(self, address: Union[IPAddress, MacAddress, str]) -> None:
        """Mark an IP or hardware address as untrustworthy until rescanned.

        Strings are read as an IP address when they parse as one, and as a
        hardware address otherwise.
        """
        self._throw_if_disposed()

        if address is None:
            raise InvalidAddressError("address must not be None")
        if isinstance(address, MacAddress):
            self.invalidate_mac(address)
        elif isinstance(address, (ipaddress.IPv4Address, ipaddress.IPv6Address)):
            self.invalidate_ip(address)
        elif isinstance(address, str):
            try:
                ip_address = ipaddress.ip_address(address.strip())
            except ValueError:
                self.invalidate_mac(address)
            else:
                self.invalidate_ip(ip_address)
        else:
            raise InvalidAddressError(
                f"Unsupported address type: {type(address).__name__}", {"value": address}
            )

    def invalidate_ip(self, ip_address: Union[IPAddress, str]) -> None:
        self._throw_if_disposed()
        ip_address = to_ip_address(ip_address)
        self._tracker.ip_addresses.add(ip_address)
        logger.debug(f"Invalidated IP address {ip_address}")

    def invalidate_mac(self, mac_address: Union[MacAddress, str, bytes]) -> None:
        self._throw_if_disposed()
        mac_address = to_mac_address(mac_address)
        self._tracker.mac_addresses.add(mac_address)
        logger.debug(f"Invalidated MAC address {mac_address}")

    @property
    def has_invalidated(self) -> bool:
        """True while any IP or hardware address awaits a rescan."""
        self._throw_if_disposed()
        return self._tracker.has_invalidated

    # ========================================================================
    # Refresh
    # ========================================================================

    def refresh_address_table(self, cancel_token: Optional[CancellationToken] = None) -> bool:
        """Run a full network scan, subject to the minimum interval.

        Returns:
            True if the scanner ran; False if the request was rate-limited
            or another full scan was already running.

        Raises:
            ScanNotSupportedError: If no network scanner is configured.
        """
        token = self._begin(cancel_token)
        return self._scheduler.full_scan(token)

    def refresh_invalidated_addresses(self, cancel_token: Optional[CancellationToken] = None) -> bool:
        """Scan the invalidated addresses.

        Does nothing when nothing is invalidated. While a hardware address
        is invalidated this runs a full scan instead.

        Raises:
            ScanNotSupportedError: If no network scanner is configured.
        """
        token = self._begin(cancel_token)
        return self._scheduler.partial_scan(token)

    # ========================================================================
    # Enumeration
    # ========================================================================

    def enumerate_entries(
        self,
        predicate: Optional[EntryPredicate] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> Iterator[NeighborEntry]:
        """Lazily read the address table, restricted to the interface scope.

        Each call starts a fresh read. Cancellation is checked before every
        entry.
        """
        token = self._begin(cancel_token)
        return self._enumerate_filtered(predicate, token)

    def _enumerate_filtered(
        self, predicate: Optional[EntryPredicate], token: CancellationToken
    ) -> Iterator[NeighborEntry]:
        for entry in self._enumerate_scoped_entries(token):
            if predicate is None or predicate(entry):
                yield entry

    def _enumerate_scoped_entries(self, token: CancellationToken) -> Iterator[NeighborEntry]:
        for entry in self._address_table.enumerate_entries(cancel_token=token):
            token.raise_if_cancelled()
            if self._selector.is_in_interface_scope(entry):
                yield entry
            else:
                logger.debug(f"Skipping entry outside interface scope: {entry}")

    def __repr__(self) -> str:
        return (
            f"MacAddressResolver(address_table={self._address_table!r}, "
            f"network_scanner={self.network_scanner!r}, interface={self.interface!r}, "
            f"closed={self.is_closed})"
        )


__all__ = ["MacAddressResolver"]
