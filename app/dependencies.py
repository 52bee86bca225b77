"""Dependency wiring for the MAC address resolver.

Picks the address table and network scanner for the running platform and
builds a MacAddressResolver from them.

Usage:
    from app.dependencies import create_resolver

    with create_resolver() as resolver:
        resolver.resolve_ip_to_mac("192.0.2.1")
"""

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from config import NetworkProfileError, get_logger
from config.settings import ResolverSettings, SettingsManager
from neighbor.profile import IPNetworkProfile
from neighbor.scanner import ArpScanCommandNetworkScanner, NetworkScanner, NmapCommandNetworkScanner
from neighbor.table import AddressTable, ProcfsArpAddressTable
from resolver.engine import MacAddressResolver

logger = get_logger(__name__)


@dataclass
class ResolverDependencies:
    """Collaborators a resolver is built from.

    Using a dataclass makes dependencies explicit and easy to mock in tests.
    """

    address_table: AddressTable
    network_scanner: Optional[NetworkScanner] = None
    network_profile: Optional[IPNetworkProfile] = None
    settings: Optional[ResolverSettings] = None

    def __post_init__(self):
        logger.debug("ResolverDependencies container created")

    def create_resolver(self, **kwargs) -> MacAddressResolver:
        interface = self.network_profile.interface if self.network_profile else None
        return MacAddressResolver(
            self.address_table,
            self.network_scanner,
            interface=interface,
            settings=self.settings,
            **kwargs,
        )


def create_network_profile(settings: ResolverSettings) -> IPNetworkProfile:
    """Network profile described by settings.

    An explicit address range (CIDR strings) wins over the interface's own
    subnet. Without either, the first suitable interface is used.
    """
    profile = (
        IPNetworkProfile.from_interface(id=settings.interface)
        if settings.interface
        else IPNetworkProfile.default()
    )

    if settings.address_range:
        # Validate eagerly
        ranges = [IPNetworkProfile.from_subnet(*_split_cidr(cidr)) for cidr in settings.address_range]

        def addresses():
            for r in ranges:
                yield from r.get_address_range()

        profile = IPNetworkProfile.from_addresses(addresses, interface=profile.interface)

    return profile


def _split_cidr(cidr: str):
    base, sep, prefix = cidr.partition("/")
    if not sep:
        return base, 32
    try:
        return base, int(prefix)
    except ValueError as e:
        raise NetworkProfileError(f"Invalid address range: {cidr!r}") from e


def create_dependencies(
    settings: Optional[ResolverSettings] = None,
    network_profile: Optional[IPNetworkProfile] = None,
    enable_scanner: bool = True,
) -> ResolverDependencies:
    """Select the collaborators for this platform.

    The address table is /proc/net/arp on Linux. The scanner is nmap when
    installed, otherwise arp-scan, otherwise none (automatic scanning is
    then disabled).

    Raises:
        NetworkProfileError: If this platform has no supported address table.
    """
    settings = settings or ResolverSettings()

    if not sys.platform.startswith("linux") or not ProcfsArpAddressTable.is_supported():
        raise NetworkProfileError(
            "No supported address table on this platform", {"platform": sys.platform}
        )
    address_table = ProcfsArpAddressTable()

    if network_profile is None and (enable_scanner or settings.interface):
        network_profile = create_network_profile(settings)

    network_scanner = None
    if enable_scanner:
        if NmapCommandNetworkScanner.is_supported():
            network_scanner = NmapCommandNetworkScanner(network_profile)
        elif ArpScanCommandNetworkScanner.is_supported():
            network_scanner = ArpScanCommandNetworkScanner(network_profile)
        else:
            logger.warning("Neither nmap nor arp-scan is installed, network scanning is disabled")

    logger.info(f"Using {address_table!r} with scanner {type(network_scanner).__name__}")

    return ResolverDependencies(
        address_table=address_table,
        network_scanner=network_scanner,
        network_profile=network_profile,
        settings=settings,
    )


def create_resolver(
    data_dir: Optional[Path] = None,
    settings: Optional[ResolverSettings] = None,
    enable_scanner: bool = True,
) -> MacAddressResolver:
    """Build a resolver for this machine.

    Settings are read from data_dir when not given.

    Example:
        >>> resolver = create_resolver()
        >>> resolver.resolve_mac_to_ip("aa:bb:cc:dd:ee:ff")
    """
    if settings is None:
        settings = SettingsManager(data_dir).settings
    return create_dependencies(settings, enable_scanner=enable_scanner).create_resolver()


__all__ = [
    "ResolverDependencies",
    "create_dependencies",
    "create_network_profile",
    "create_resolver",
]
