"""Centralized constants and default configuration for the MAC address resolver.

All defaults that the resolver, the address tables and the network scanners
use live here, so that they can be tuned in one place.

Usage:
    from config.constants import INTERVALS, RESOLVER, NETWORK

    interval = INTERVALS.FULL_SCAN_SECONDS
    parallelism = RESOLVER.PARTIAL_SCAN_PARALLEL_MAX
"""
from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class Intervals:
    """Time intervals for scanning and subprocess execution (in seconds)."""
    # Automatic full scan before resolution (staleness threshold)
    FULL_SCAN_SECONDS: float = 900.0  # 15 minutes

    # Hard floor between two full scans, even on explicit request
    FULL_SCAN_MIN_SECONDS: float = 20.0

    # Polling step while waiting on a partial-scan slot
    GATE_POLL_SECONDS: float = 0.05

    # Subprocess timeouts
    SUBPROCESS_TIMEOUT_SECONDS: float = 60.0
    NMAP_TIMEOUT_SECONDS: float = 300.0
    ARP_SCAN_TIMEOUT_SECONDS: float = 120.0
    PING_TIMEOUT_SECONDS: float = 1.0


@dataclass(frozen=True)
class ResolverConfig:
    """Address resolution engine defaults."""
    # Number of partial scans allowed to run at the same time
    PARTIAL_SCAN_PARALLEL_MAX: int = 3

    # Match ::ffff:a.b.c.d against a.b.c.d
    RESOLVE_IPV4_MAPPED_IPV6_ADDRESS: bool = False

    MAC_ADDRESS_LENGTH: int = 6


@dataclass(frozen=True)
class NetworkConfig:
    """Network scanner and address table configuration."""
    # Linux ARP table pseudo-file
    PROCFS_ARP_PATH: str = "/proc/net/arp"

    # Command line options for external scanners
    NMAP_BASE_OPTIONS: Tuple[str, ...] = ("-sn", "-n", "-T4", "-oG", "-")
    ARP_SCAN_BASE_OPTIONS: Tuple[str, ...] = ("--numeric", "--quiet")
    ARP_SCAN_LOCALNET_OPTION: str = "--localnet"

    # ping: one probe per address
    PING_COUNT: int = 1

    # Limit of addresses generated for a single profile range
    MAX_ADDRESS_RANGE_SIZE: int = 65536


@dataclass(frozen=True)
class StorageConfig:
    """Storage and file-related configuration."""
    DATA_DIR_NAME: str = ".macresolver"
    SETTINGS_FILE: str = "settings.json"
    LOG_FILE: str = "macresolver.log"

    # Log rotation
    LOG_MAX_BYTES: int = 5_000_000  # 5MB
    LOG_BACKUP_COUNT: int = 3


# Global instances - import these
INTERVALS = Intervals()
RESOLVER = ResolverConfig()
NETWORK = NetworkConfig()
STORAGE = StorageConfig()


# Allowed commands for subprocess safety
ALLOWED_SUBPROCESS_COMMANDS = frozenset({
    'nmap',
    'arp-scan',
    'ping',
})
