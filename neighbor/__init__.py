"""Neighbor table sources, network scanners and network profiles.

These are the collaborators a MacAddressResolver is built from.

Modules:
    table: Address tables (/proc/net/arp, static, null)
    scanner: Network scanners (nmap, arp-scan, ping, null)
    profile: Interface selection and address ranges via psutil

Example:
    >>> from neighbor import IPNetworkProfile, NmapCommandNetworkScanner, ProcfsArpAddressTable
    >>> profile = IPNetworkProfile.default()
    >>> scanner = NmapCommandNetworkScanner(profile)
    >>> table = ProcfsArpAddressTable()
"""
from .profile import IPNetworkProfile, NetworkInterface, ipv4_address_range, list_interfaces
from .scanner import (
    ArpScanCommandNetworkScanner,
    CommandNetworkScanner,
    NetworkScanner,
    NmapCommandNetworkScanner,
    NullNetworkScanner,
    PingNetworkScanner,
)
from .table import (
    AddressTable,
    NullAddressTable,
    ProcfsArpAddressTable,
    StaticAddressTable,
    parse_procfs_arp_line,
)

__all__ = [
    # Address tables
    "AddressTable",
    "NullAddressTable",
    "ProcfsArpAddressTable",
    "StaticAddressTable",
    "parse_procfs_arp_line",
    # Network scanners
    "NetworkScanner",
    "NullNetworkScanner",
    "CommandNetworkScanner",
    "NmapCommandNetworkScanner",
    "ArpScanCommandNetworkScanner",
    "PingNetworkScanner",
    # Network profile
    "IPNetworkProfile",
    "NetworkInterface",
    "ipv4_address_range",
    "list_interfaces",
]
