"""Tests for app/dependencies.py - collaborator selection and wiring."""

import ipaddress
from unittest.mock import MagicMock, patch

import pytest

from app.dependencies import (
    ResolverDependencies,
    create_dependencies,
    create_network_profile,
    create_resolver,
)
from config import NetworkProfileError
from config.settings import ResolverSettings
from neighbor.scanner import ArpScanCommandNetworkScanner, NmapCommandNetworkScanner
from neighbor.table import ProcfsArpAddressTable, StaticAddressTable
from resolver.engine import MacAddressResolver
from tests.mocks import FakeInterface, RecordingNetworkScanner


@pytest.fixture
def linux_platform():
    """Pretend to run on Linux with a readable /proc/net/arp."""
    with patch("app.dependencies.sys.platform", "linux"), \
            patch.object(ProcfsArpAddressTable, "is_supported", return_value=True):
        yield


def tools(*installed):
    return patch("neighbor.scanner.find_command", side_effect=lambda name: f"/usr/bin/{name}" if name in installed else None)


class TestResolverDependencies:
    """Tests for the ResolverDependencies dataclass."""

    def test_basic_creation(self):
        table = StaticAddressTable()
        scanner = RecordingNetworkScanner()
        deps = ResolverDependencies(address_table=table, network_scanner=scanner)
        assert deps.address_table is table
        assert deps.network_scanner is scanner
        assert deps.network_profile is None

    def test_create_resolver(self):
        profile = MagicMock(interface=FakeInterface("eth0"))
        settings = ResolverSettings(network_scan_interval=60)
        deps = ResolverDependencies(
            address_table=StaticAddressTable(),
            network_scanner=RecordingNetworkScanner(),
            network_profile=profile,
            settings=settings,
        )
        with deps.create_resolver() as resolver:
            assert isinstance(resolver, MacAddressResolver)
            assert resolver.interface.id == "eth0"
            assert resolver.network_scan_interval == 60
            assert resolver.can_scan


class TestCreateNetworkProfile:
    """Tests for settings driven profile selection."""

    def test_default_interface(self, mock_network_interfaces):
        profile = create_network_profile(ResolverSettings())
        assert profile.interface.id == "eth0"

    def test_address_range_overrides_subnet(self, mock_network_interfaces):
        settings = ResolverSettings(address_range=["192.0.2.0/30", "198.51.100.7"])
        profile = create_network_profile(settings)
        assert profile.interface.id == "eth0"
        assert list(profile.get_address_range()) == [
            ipaddress.ip_address("192.0.2.1"),
            ipaddress.ip_address("192.0.2.2"),
            ipaddress.ip_address("198.51.100.7"),
        ]

    def test_bad_address_range(self, mock_network_interfaces):
        with pytest.raises(NetworkProfileError):
            create_network_profile(ResolverSettings(address_range=["192.0.2.0/abc"]))

    def test_unknown_interface(self, mock_network_interfaces):
        with pytest.raises(NetworkProfileError):
            create_network_profile(ResolverSettings(interface="eth7"))


class TestCreateDependencies:
    """Tests for create_dependencies."""

    def test_unsupported_platform(self):
        with patch("app.dependencies.sys.platform", "darwin"):
            with pytest.raises(NetworkProfileError):
                create_dependencies()

    def test_prefers_nmap(self, linux_platform, mock_network_interfaces):
        with tools("nmap", "arp-scan"):
            deps = create_dependencies()
        assert isinstance(deps.address_table, ProcfsArpAddressTable)
        assert isinstance(deps.network_scanner, NmapCommandNetworkScanner)

    def test_falls_back_to_arp_scan(self, linux_platform, mock_network_interfaces):
        with tools("arp-scan"):
            deps = create_dependencies()
        assert isinstance(deps.network_scanner, ArpScanCommandNetworkScanner)

    def test_no_scanner_installed(self, linux_platform, mock_network_interfaces, caplog):
        with tools():
            deps = create_dependencies()
        assert deps.network_scanner is None
        assert "network scanning is disabled" in caplog.text

    def test_scanner_disabled(self, linux_platform):
        """No interface lookup happens when nothing needs a profile."""
        with patch("app.dependencies.create_network_profile") as mock_profile:
            deps = create_dependencies(enable_scanner=False)
        mock_profile.assert_not_called()
        assert deps.network_scanner is None
        assert deps.network_profile is None

    def test_interface_scope_without_scanner(self, linux_platform, mock_network_interfaces):
        deps = create_dependencies(ResolverSettings(interface="eth0"), enable_scanner=False)
        assert deps.network_profile.interface.id == "eth0"
        assert deps.network_scanner is None


class TestCreateResolver:
    """Tests for the create_resolver factory."""

    def test_reads_settings_from_data_dir(self, linux_platform, temp_data_dir):
        (temp_data_dir / "settings.json").write_text('{"network_scan_interval": 120}')
        with create_resolver(data_dir=temp_data_dir, enable_scanner=False) as resolver:
            assert resolver.network_scan_interval == 120
            assert not resolver.can_scan
