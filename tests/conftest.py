"""Pytest configuration and shared fixtures.

This module provides:
- Common test fixtures for data directories, sample entries, and fakes
- Pytest markers for test categorization (unit, integration, slow)
- A controllable monotonic clock for the scan scheduler
"""
import ipaddress
import logging
import tempfile
from pathlib import Path
from typing import Generator, List
from unittest.mock import MagicMock, patch

import pytest

from config.logging_config import ROOT_LOGGER_NAME
from config.subprocess_runner import clear_command_cache
from resolver.addresses import MacAddress
from resolver.entry import EntryState, NeighborEntry
from tests.mocks import FakeClock, FakeInterface, RecordingNetworkScanner

# =============================================================================
# Pytest Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers for test categorization."""
    config.addinivalue_line("markers", "unit: mark test as a unit test (fast, isolated)")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")
    config.addinivalue_line("markers", "linux_only: mark test as requiring Linux")


@pytest.fixture(autouse=True)
def _reset_command_cache() -> Generator[None, None, None]:
    """Command lookups are cached process-wide; keep tests independent."""
    clear_command_cache()
    yield
    clear_command_cache()


@pytest.fixture(autouse=True)
def _reset_logging() -> Generator[None, None, None]:
    """setup_logging() attaches handlers to streams and files owned by one test."""
    yield
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in root_logger.handlers:
        handler.close()
    root_logger.handlers.clear()
    root_logger.setLevel(logging.NOTSET)


# =============================================================================
# Directory and Path Fixtures
# =============================================================================


@pytest.fixture
def temp_data_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test data."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def procfs_arp_path(temp_data_dir: Path) -> Path:
    """A /proc/net/arp lookalike with a header, resolved and unresolved rows."""
    path = temp_data_dir / "arp"
    path.write_text(
        "IP address       HW type     Flags       HW address            Mask     Device\n"
        "192.168.1.1      0x1         0x2         aa:bb:cc:dd:ee:01     *        eth0\n"
        "192.168.1.20     0x1         0x0         00:00:00:00:00:00     *        eth0\n"
        "192.168.1.30     0x1         0x6         aa:bb:cc:dd:ee:03     *        wlan0\n"
    )
    return path


# =============================================================================
# Sample Data Fixtures
# =============================================================================


IP_1 = ipaddress.ip_address("192.0.2.1")
IP_2 = ipaddress.ip_address("192.0.2.2")
MAC_1 = MacAddress.parse("aa:bb:cc:dd:ee:ff")
MAC_2 = MacAddress.parse("00:11:22:33:44:55")


@pytest.fixture
def sample_entries() -> List[NeighborEntry]:
    """Two hosts, one with an unresolved row before its resolved row."""
    return [
        NeighborEntry(ip_address=IP_1, mac_address=None, state=EntryState.INCOMPLETE),
        NeighborEntry(ip_address=IP_1, mac_address=MAC_1, state=EntryState.STALE),
        NeighborEntry(ip_address=IP_2, mac_address=MAC_2, state=EntryState.REACHABLE),
    ]


# =============================================================================
# Fake Fixtures
# =============================================================================


@pytest.fixture
def fake_clock() -> FakeClock:
    """Monotonic clock that only moves when told to."""
    return FakeClock(start=1000.0)


@pytest.fixture
def recording_scanner() -> RecordingNetworkScanner:
    """Scanner that records every call and does nothing else."""
    return RecordingNetworkScanner()


@pytest.fixture
def wlan0() -> FakeInterface:
    """Dual-stack interface used for interface scoping tests."""
    return FakeInterface(id="wlan0", supports_ipv4=True, supports_ipv6=True)


@pytest.fixture
def mock_network_interfaces() -> Generator[MagicMock, None, None]:
    """Mock psutil interface discovery with eth0, wlan0 (down) and lo."""
    import socket

    import psutil

    addrs = {
        "lo": [
            MagicMock(family=socket.AF_INET, address="127.0.0.1", netmask="255.0.0.0"),
        ],
        "wlan0": [
            MagicMock(family=socket.AF_INET, address="10.0.0.5", netmask="255.255.255.0"),
        ],
        "eth0": [
            MagicMock(family=socket.AF_INET, address="192.168.1.50", netmask="255.255.255.0"),
            MagicMock(family=socket.AF_INET6, address="fe80::1%eth0", netmask=None),
            MagicMock(family=psutil.AF_LINK, address="02:00:00:00:00:01", netmask=None),
        ],
        "tun0": [
            MagicMock(family=socket.AF_INET6, address="fd00::1", netmask=None),
        ],
    }
    stats = {
        "lo": MagicMock(isup=True),
        "wlan0": MagicMock(isup=False),
        "eth0": MagicMock(isup=True),
        "tun0": MagicMock(isup=True),
    }
    with patch("psutil.net_if_addrs", return_value=addrs) as mock_addrs, \
            patch("psutil.net_if_stats", return_value=stats):
        yield mock_addrs
