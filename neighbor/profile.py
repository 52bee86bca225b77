"""Network profile: interface scope and address range to scan.

Interfaces are discovered through psutil. On Linux and macOS the interface
id is the interface name; on Windows psutil reports the friendly name,
which is also used as the id.

Example:
    >>> profile = IPNetworkProfile.from_subnet("192.168.1.0", prefix_length=24)
    >>> len(list(profile.get_address_range()))
    254
    >>> profile = IPNetworkProfile.default()
    >>> profile.interface.id
    'eth0'
"""

from __future__ import annotations

import ipaddress
import socket
from dataclasses import dataclass, field
from typing import Callable, Iterable, Iterator, List, Optional, Tuple, Union

import psutil

from config import NETWORK, InvalidAddressError, NetworkProfileError, get_logger
from resolver.addresses import IPAddress, MacAddress, interface_id_equals

logger = get_logger(__name__)


@dataclass(frozen=True)
class NetworkInterface:
    """A network interface as seen by the resolver.

    Attributes:
        id: Identifier matched against NeighborEntry.interface_id.
        name: Display name.
        is_up: Operational status.
        is_loopback: True for loopback interfaces.
        mac_address: Hardware address of the interface, if any.
        ipv4_addresses: (address, netmask) pairs assigned to the interface.
        ipv6_addresses: Addresses assigned to the interface.
    """

    id: str
    name: str
    is_up: bool = True
    is_loopback: bool = False
    mac_address: Optional[MacAddress] = None
    ipv4_addresses: Tuple[Tuple[str, Optional[str]], ...] = field(default_factory=tuple)
    ipv6_addresses: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def supports_ipv4(self) -> bool:
        return bool(self.ipv4_addresses)

    @property
    def supports_ipv6(self) -> bool:
        return bool(self.ipv6_addresses)


def list_interfaces() -> List[NetworkInterface]:
    """All network interfaces reported by psutil."""
    addrs = psutil.net_if_addrs()
    stats = psutil.net_if_stats()

    interfaces = []
    for name, addr_list in addrs.items():
        ipv4: List[Tuple[str, Optional[str]]] = []
        ipv6: List[str] = []
        mac_address = None

        for addr in addr_list:
            if addr.family == socket.AF_INET:
                ipv4.append((addr.address, addr.netmask))
            elif addr.family == socket.AF_INET6:
                # Drop the zone index of link-local addresses
                ipv6.append(addr.address.split("%", 1)[0])
            elif addr.family == psutil.AF_LINK and addr.address:
                try:
                    mac_address = MacAddress.parse(addr.address)
                except InvalidAddressError:
                    pass

        is_loopback = name.startswith("lo") or any(
            ipaddress.ip_address(a).is_loopback for a, _ in ipv4
        )

        interfaces.append(NetworkInterface(
            id=name,
            name=name,
            is_up=name in stats and stats[name].isup,
            is_loopback=is_loopback,
            mac_address=mac_address,
            ipv4_addresses=tuple(ipv4),
            ipv6_addresses=tuple(ipv6),
        ))

    return interfaces


def ipv4_address_range(
    address: Union[str, ipaddress.IPv4Address],
    netmask: Union[str, int, ipaddress.IPv4Address],
) -> Iterator[ipaddress.IPv4Address]:
    """Host addresses of the IPv4 network containing address.

    The network and broadcast addresses are excluded; a /32 yields the
    single address.
    """
    network = ipaddress.IPv4Network(f"{address}/{netmask}", strict=False)

    if network.num_addresses == 1:
        yield network.network_address
        return

    first = int(network.network_address) + 1
    last = int(network.broadcast_address)
    for value in range(first, last):
        yield ipaddress.IPv4Address(value)


class IPNetworkProfile:
    """Optional interface scope plus the address range a full scan covers.

    Args:
        interface: Interface to scope entries and scanners to, or None.
        address_range: Callable returning the addresses to scan, or None
            when the range is unknown (scanners then fall back to their own
            local network discovery where they have one).
    """

    def __init__(
        self,
        interface: Optional[NetworkInterface] = None,
        address_range: Optional[Callable[[], Optional[Iterable[IPAddress]]]] = None,
    ) -> None:
        self.interface = interface
        self._address_range = address_range

    def get_address_range(self) -> Optional[Iterable[IPAddress]]:
        if self._address_range is None:
            return None
        return self._address_range()

    def __repr__(self) -> str:
        iface = self.interface.id if self.interface else None
        return f"IPNetworkProfile(interface={iface!r})"

    # ========================================================================
    # Constructors
    # ========================================================================

    @classmethod
    def from_addresses(
        cls,
        address_range: Callable[[], Optional[Iterable[IPAddress]]],
        interface: Optional[NetworkInterface] = None,
    ) -> "IPNetworkProfile":
        """Profile whose range is produced by a callable on every scan."""
        if address_range is None:
            raise NetworkProfileError("address_range must not be None")
        return cls(interface=interface, address_range=address_range)

    @classmethod
    def from_subnet(
        cls,
        base_address: Union[str, IPAddress],
        prefix_length: Optional[int] = None,
        subnet_mask: Optional[Union[str, IPAddress]] = None,
        interface: Optional[NetworkInterface] = None,
    ) -> "IPNetworkProfile":
        """Profile covering an IPv4 subnet given by prefix length or mask.

        Raises:
            NetworkProfileError: For IPv6 subnets, a prefix length outside
                1..32, a malformed mask, or a range too large to scan.
        """
        if (prefix_length is None) == (subnet_mask is None):
            raise NetworkProfileError("Specify exactly one of prefix_length or subnet_mask")

        try:
            base = ipaddress.ip_address(base_address)
        except ValueError as e:
            raise NetworkProfileError(f"Invalid base address: {base_address!r}") from e

        if isinstance(base, ipaddress.IPv6Address):
            raise NetworkProfileError("IPv6 address ranges are not supported", {"base_address": str(base)})

        if prefix_length is not None:
            if isinstance(prefix_length, bool) or not 1 <= prefix_length <= 32:
                raise NetworkProfileError("Prefix length must be between 1 and 32", {"prefix_length": prefix_length})
            netmask: Union[int, str] = prefix_length
        else:
            try:
                mask = ipaddress.ip_address(subnet_mask)
            except ValueError as e:
                raise NetworkProfileError(f"Invalid subnet mask: {subnet_mask!r}") from e
            if not isinstance(mask, ipaddress.IPv4Address):
                raise NetworkProfileError("Address family mismatch between base address and subnet mask")
            netmask = str(mask)

        try:
            network = ipaddress.IPv4Network(f"{base}/{netmask}", strict=False)
        except ValueError as e:
            raise NetworkProfileError(f"Invalid subnet: {base}/{netmask}") from e

        if network.num_addresses > NETWORK.MAX_ADDRESS_RANGE_SIZE:
            raise NetworkProfileError(
                "Address range is too large to scan",
                {"network": str(network), "max": NETWORK.MAX_ADDRESS_RANGE_SIZE},
            )

        return cls(interface=interface, address_range=lambda: ipv4_address_range(base, netmask))

    @classmethod
    def from_network_interface(cls, interface: NetworkInterface) -> "IPNetworkProfile":
        """Profile for an interface, covering its first IPv4 subnet.

        Raises:
            NetworkProfileError: If the interface only has IPv6 addresses,
                or no IP addresses at all.
        """
        for address, netmask in interface.ipv4_addresses:
            if netmask is None:
                continue
            return cls.from_subnet(address, subnet_mask=netmask, interface=interface)

        if interface.ipv6_addresses:
            raise NetworkProfileError(
                "IPv6 address ranges are not supported", {"interface": interface.id}
            )
        raise NetworkProfileError(
            "Interface has no IP address", {"interface": interface.id}
        )

    @classmethod
    def from_interface(
        cls,
        id: Optional[str] = None,
        name: Optional[str] = None,
        mac_address: Optional[Union[MacAddress, str]] = None,
        predicate: Optional[Callable[[NetworkInterface], bool]] = None,
    ) -> "IPNetworkProfile":
        """Profile for the first up, non-loopback IP interface matching the criteria.

        With no criteria the first such interface is selected.

        Raises:
            NetworkProfileError: If no interface matches.
        """
        if isinstance(mac_address, str):
            mac_address = MacAddress.parse(mac_address)

        def matches(interface: NetworkInterface) -> bool:
            if id is not None and not interface_id_equals(interface.id, id):
                return False
            if name is not None and interface.name != name:
                return False
            if mac_address is not None and interface.mac_address != mac_address:
                return False
            return predicate is None or predicate(interface)

        for interface in list_interfaces():
            if not (interface.supports_ipv4 or interface.supports_ipv6):
                continue
            if interface.is_loopback or not interface.is_up:
                continue
            if matches(interface):
                logger.info(f"Selected network interface {interface.id}")
                return cls.from_network_interface(interface)

        raise NetworkProfileError(
            "No suitable network interface found",
            {"id": id, "name": name, "mac_address": str(mac_address) if mac_address else None},
        )

    @classmethod
    def default(cls) -> "IPNetworkProfile":
        return cls.from_interface()


__all__ = [
    "IPNetworkProfile",
    "NetworkInterface",
    "ipv4_address_range",
    "list_interfaces",
]
