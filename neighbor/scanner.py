"""Network scanners: provoke the OS into populating its neighbor table.

A scanner exposes two operations: scan() probes the whole configured
address range, scan_addresses() probes an explicit set. Both only hint
the OS; a finished scan does not guarantee every address became
resolvable. Unreachable hosts are not errors, a missing tool is.

Scanners:
    NmapCommandNetworkScanner: nmap ping scan (-sn)
    ArpScanCommandNetworkScanner: arp-scan
    PingNetworkScanner: one ICMP echo per address
    NullNetworkScanner: does nothing
"""

from __future__ import annotations

import ipaddress
import math
from typing import Iterable, List, Optional

from config import INTERVALS, NETWORK, NetworkProfileError, SubprocessError, get_logger
from config.subprocess_runner import find_command, safe_run
from resolver.addresses import IPAddress
from resolver.cancellation import CancellationToken

logger = get_logger(__name__)


class NetworkScanner:
    """Base class for network scanners."""

    def scan(self, cancel_token: Optional[CancellationToken] = None) -> None:
        raise NotImplementedError

    def scan_addresses(
        self,
        addresses: Iterable[IPAddress],
        cancel_token: Optional[CancellationToken] = None,
    ) -> None:
        raise NotImplementedError


class NullNetworkScanner(NetworkScanner):
    """A scanner that never probes anything."""

    def scan(self, cancel_token: Optional[CancellationToken] = None) -> None:
        (cancel_token or CancellationToken.NONE).raise_if_cancelled()

    def scan_addresses(
        self,
        addresses: Iterable[IPAddress],
        cancel_token: Optional[CancellationToken] = None,
    ) -> None:
        if addresses is None:
            raise ValueError("addresses must not be None")
        (cancel_token or CancellationToken.NONE).raise_if_cancelled()

    def __repr__(self) -> str:
        return "NullNetworkScanner()"


# ============================================================================
# External commands
# ============================================================================

class CommandNetworkScanner(NetworkScanner):
    """Scanner that runs one external command per scan.

    Subclasses set COMMAND and build the argument lists; returning None
    from a builder means there is nothing to scan.
    """

    COMMAND: str = ""
    TIMEOUT: float = INTERVALS.SUBPROCESS_TIMEOUT_SECONDS

    @classmethod
    def is_supported(cls) -> bool:
        return find_command(cls.COMMAND) is not None

    def _executable(self) -> str:
        path = find_command(self.COMMAND)
        if path is None:
            raise SubprocessError(
                f"'{self.COMMAND}' is not available. Make sure that the PATH "
                "environment variable is set properly.",
                command=[self.COMMAND],
            )
        return path

    def _full_scan_arguments(self) -> Optional[List[str]]:
        raise NotImplementedError

    def _partial_scan_arguments(self, addresses: List[IPAddress]) -> Optional[List[str]]:
        raise NotImplementedError

    def scan(self, cancel_token: Optional[CancellationToken] = None) -> None:
        cancel_token = cancel_token or CancellationToken.NONE
        cancel_token.raise_if_cancelled()

        args = self._full_scan_arguments()
        if args is not None:
            self._run(args, cancel_token)

    def scan_addresses(
        self,
        addresses: Iterable[IPAddress],
        cancel_token: Optional[CancellationToken] = None,
    ) -> None:
        if addresses is None:
            raise ValueError("addresses must not be None")
        cancel_token = cancel_token or CancellationToken.NONE
        cancel_token.raise_if_cancelled()

        args = self._partial_scan_arguments(list(addresses))
        if args is not None:
            self._run(args, cancel_token)

    def _run(self, args: List[str], cancel_token: CancellationToken) -> None:
        cmd = [self._executable()] + args
        logger.debug(f"Running: {' '.join(cmd)}")

        result = safe_run(cmd, timeout=self.TIMEOUT, cancel_token=cancel_token)

        for line in (result.stdout or "").splitlines():
            logger.debug(line)
        if result.returncode != 0:
            for line in (result.stderr or "").splitlines():
                logger.error(line)
            logger.error(f"{self.COMMAND} exited with code {result.returncode}")


class NmapCommandNetworkScanner(CommandNetworkScanner):
    """Ping scan with nmap: ``nmap -sn -n -T4 -oG - [-e IFACE] TARGETS``.

    Raises:
        NetworkProfileError: If the profile has no address range.
    """

    COMMAND = "nmap"
    TIMEOUT = INTERVALS.NMAP_TIMEOUT_SECONDS

    def __init__(self, network_profile) -> None:
        if network_profile is None:
            raise NetworkProfileError("network_profile must not be None")

        self._common_options = list(NETWORK.NMAP_BASE_OPTIONS)
        if network_profile.interface is not None:
            self._common_options += ["-e", network_profile.interface.id]

        address_range = network_profile.get_address_range()
        self._targets = [str(a) for a in address_range] if address_range is not None else []
        if not self._targets:
            raise NetworkProfileError("One or more IP addresses must be specified in address range")

    def _full_scan_arguments(self) -> Optional[List[str]]:
        return self._common_options + self._targets

    def _partial_scan_arguments(self, addresses: List[IPAddress]) -> Optional[List[str]]:
        if not addresses:
            return None
        return self._common_options + [str(a) for a in addresses]


class ArpScanCommandNetworkScanner(CommandNetworkScanner):
    """ARP scan: ``arp-scan --numeric --quiet [--interface=IFACE] TARGETS|--localnet``.

    arp-scan needs raw socket access; it usually runs as root or with the
    setuid bit set.
    """

    COMMAND = "arp-scan"
    TIMEOUT = INTERVALS.ARP_SCAN_TIMEOUT_SECONDS

    def __init__(self, network_profile=None) -> None:
        self._common_options = list(NETWORK.ARP_SCAN_BASE_OPTIONS)
        if network_profile is not None and network_profile.interface is not None:
            self._common_options.append(f"--interface={network_profile.interface.id}")

        address_range = network_profile.get_address_range() if network_profile is not None else None
        if address_range is None:
            self._full_scan_targets = [NETWORK.ARP_SCAN_LOCALNET_OPTION]
        else:
            self._full_scan_targets = [str(a) for a in address_range]

    def _full_scan_arguments(self) -> Optional[List[str]]:
        return self._common_options + self._full_scan_targets

    def _partial_scan_arguments(self, addresses: List[IPAddress]) -> Optional[List[str]]:
        if not addresses:
            return None
        return self._common_options + [str(a) for a in addresses]


# ============================================================================
# ping
# ============================================================================

class PingNetworkScanner(NetworkScanner):
    """Sends one ICMP echo request to each address in turn.

    Failures for individual hosts are logged and never raised.
    """

    COMMAND = "ping"

    def __init__(self, network_profile, timeout: float = INTERVALS.PING_TIMEOUT_SECONDS) -> None:
        if network_profile is None:
            raise NetworkProfileError("network_profile must not be None")
        self._network_profile = network_profile
        self.timeout = timeout

    @classmethod
    def is_supported(cls) -> bool:
        return find_command(cls.COMMAND) is not None

    def scan(self, cancel_token: Optional[CancellationToken] = None) -> None:
        addresses = self._network_profile.get_address_range()
        if addresses is None:
            raise NetworkProfileError("Could not get address range from the network profile")
        self.scan_addresses(addresses, cancel_token=cancel_token)

    def scan_addresses(
        self,
        addresses: Iterable[IPAddress],
        cancel_token: Optional[CancellationToken] = None,
    ) -> None:
        if addresses is None:
            raise ValueError("addresses must not be None")
        cancel_token = cancel_token or CancellationToken.NONE
        cancel_token.raise_if_cancelled()

        ping = find_command(self.COMMAND)
        if ping is None:
            raise SubprocessError("'ping' is not available", command=[self.COMMAND])

        for address in addresses:
            cancel_token.raise_if_cancelled()
            self._ping(ping, address, cancel_token)

    def _ping(self, ping: str, address: IPAddress, cancel_token: CancellationToken) -> None:
        cmd = [ping, "-c", str(NETWORK.PING_COUNT), "-W", str(max(1, math.ceil(self.timeout)))]
        if isinstance(address, ipaddress.IPv6Address):
            cmd.append("-6")
        cmd.append(str(address))

        try:
            result = safe_run(cmd, timeout=self.timeout + 1, cancel_token=cancel_token)
        except SubprocessError as e:
            logger.warning(f"Ping failed: {address}: {e}")
            return

        status = "reachable" if result.returncode == 0 else "no reply"
        logger.debug(f"{address}: {status}")


__all__ = [
    "ArpScanCommandNetworkScanner",
    "CommandNetworkScanner",
    "NetworkScanner",
    "NmapCommandNetworkScanner",
    "NullNetworkScanner",
    "PingNetworkScanner",
]
