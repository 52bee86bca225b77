"""Address value types and helpers.

Example:
    >>> mac = MacAddress.parse("aa-bb-cc-dd-ee-ff")
    >>> str(mac)
    'AA:BB:CC:DD:EE:FF'
    >>> mac.to_string(delimiter="")
    'AABBCCDDEEFF'
"""

from __future__ import annotations

import ipaddress
import re
import sys
from dataclasses import dataclass
from typing import Optional, Union

from config import RESOLVER, InvalidAddressError

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]

_HEX_PAIR_RE = re.compile(r"^[0-9A-Fa-f]{1,2}$")
_BARE_HEX_RE = re.compile(r"^[0-9A-Fa-f]{12}$")
_DOTTED_RE = re.compile(r"^[0-9A-Fa-f]{4}\.[0-9A-Fa-f]{4}\.[0-9A-Fa-f]{4}$")


@dataclass(frozen=True)
class MacAddress:
    """An immutable 48-bit hardware address."""

    octets: bytes

    def __post_init__(self) -> None:
        if not isinstance(self.octets, (bytes, bytearray)):
            raise InvalidAddressError("octets must be bytes", {"value": self.octets})
        if len(self.octets) != RESOLVER.MAC_ADDRESS_LENGTH:
            raise InvalidAddressError(
                "Hardware address must be 6 octets", {"length": len(self.octets)}
            )
        object.__setattr__(self, "octets", bytes(self.octets))

    @classmethod
    def parse(cls, text: str) -> "MacAddress":
        """Parse a hardware address.

        Accepts ':' or '-' separated octets (leading zeros optional),
        Cisco-style dotted groups, and bare 12-digit hex. Case-insensitive.

        Raises:
            InvalidAddressError: If text is not a hardware address.
        """
        if not isinstance(text, str):
            raise InvalidAddressError("Hardware address must be a string", {"value": text})

        value = text.strip()
        if _BARE_HEX_RE.match(value):
            return cls(bytes.fromhex(value))
        if _DOTTED_RE.match(value):
            return cls(bytes.fromhex(value.replace(".", "")))

        parts = re.split(r"[:-]", value)
        if len(parts) == RESOLVER.MAC_ADDRESS_LENGTH and all(_HEX_PAIR_RE.match(p) for p in parts):
            return cls(bytes(int(p, 16) for p in parts))

        raise InvalidAddressError(f"Invalid hardware address: {text!r}", {"value": text})

    @property
    def is_zero(self) -> bool:
        """True for 00:00:00:00:00:00, which means "no hardware address"."""
        return not any(self.octets)

    def to_string(self, delimiter: str = ":") -> str:
        return delimiter.join(f"{b:02X}" for b in self.octets)

    def __str__(self) -> str:
        return self.to_string()

    def __repr__(self) -> str:
        return f"MacAddress('{self}')"


ALL_ZERO_MAC_ADDRESS = MacAddress(bytes(RESOLVER.MAC_ADDRESS_LENGTH))


def to_mac_address(value: Union[MacAddress, str, bytes, None]) -> MacAddress:
    """Coerce a MacAddress, string or 6 bytes into a MacAddress.

    Raises:
        InvalidAddressError: If value is None or not a hardware address.
    """
    if value is None:
        raise InvalidAddressError("Hardware address must not be None")
    if isinstance(value, MacAddress):
        return value
    if isinstance(value, (bytes, bytearray)):
        return MacAddress(bytes(value))
    return MacAddress.parse(value)


def to_ip_address(value: Union[IPAddress, str, None]) -> IPAddress:
    """Coerce an ipaddress object or string into an IP address.

    Raises:
        InvalidAddressError: If value is None or not an IP address.
    """
    if value is None:
        raise InvalidAddressError("IP address must not be None")
    if isinstance(value, (ipaddress.IPv4Address, ipaddress.IPv6Address)):
        return value
    try:
        return ipaddress.ip_address(value)
    except ValueError as e:
        raise InvalidAddressError(f"Invalid IP address: {value!r}", {"value": value}) from e


def ip_addresses_equal(
    a: Optional[IPAddress],
    b: Optional[IPAddress],
    consider_ipv4_mapped_ipv6: bool = False,
) -> bool:
    """Compare two IP addresses, optionally treating ::ffff:a.b.c.d as a.b.c.d."""
    if a is None or b is None:
        return a is None and b is None
    if a == b:
        return True
    if consider_ipv4_mapped_ipv6:
        return _unmap(a) == _unmap(b)
    return False


def _unmap(address: IPAddress) -> IPAddress:
    if isinstance(address, ipaddress.IPv6Address) and address.ipv4_mapped is not None:
        return address.ipv4_mapped
    return address


# Windows interface identifiers are GUIDs and compared without case
INTERFACE_ID_IGNORE_CASE = sys.platform == "win32"


def normalize_interface_id(interface_id: Optional[str]) -> Optional[str]:
    """Key used to hash and compare interface identifiers on this platform."""
    if interface_id is None:
        return None
    interface_id = str(interface_id)
    return interface_id.casefold() if INTERFACE_ID_IGNORE_CASE else interface_id


def interface_id_equals(a: Optional[str], b: Optional[str]) -> bool:
    return normalize_interface_id(a) == normalize_interface_id(b)


__all__ = [
    "ALL_ZERO_MAC_ADDRESS",
    "INTERFACE_ID_IGNORE_CASE",
    "IPAddress",
    "MacAddress",
    "interface_id_equals",
    "ip_addresses_equal",
    "normalize_interface_id",
    "to_ip_address",
    "to_mac_address",
]
