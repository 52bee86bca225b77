"""Tests for neighbor/scanner.py"""

import ipaddress
import subprocess
from unittest.mock import patch

import pytest

from config import NetworkProfileError, OperationCanceledError, SubprocessError
from neighbor.profile import IPNetworkProfile
from neighbor.scanner import (
    ArpScanCommandNetworkScanner,
    NmapCommandNetworkScanner,
    NullNetworkScanner,
    PingNetworkScanner,
)
from resolver.cancellation import CancellationToken
from tests.mocks import FakeInterface

ADDRESSES = [ipaddress.ip_address("192.0.2.5"), ipaddress.ip_address("192.0.2.6")]


def completed(cmd, returncode=0, stdout="", stderr=""):
    return subprocess.CompletedProcess(cmd, returncode, stdout, stderr)


@pytest.fixture
def profile():
    """/30 on eth0: two host addresses."""
    return IPNetworkProfile.from_subnet("192.0.2.0", prefix_length=30, interface=FakeInterface("eth0"))


@pytest.fixture
def mock_safe_run():
    with patch("neighbor.scanner.safe_run", side_effect=lambda cmd, **kwargs: completed(cmd)) as mock_run:
        yield mock_run


@pytest.fixture
def tools_installed():
    paths = {"nmap": "/usr/bin/nmap", "arp-scan": "/usr/sbin/arp-scan", "ping": "/bin/ping"}
    with patch("neighbor.scanner.find_command", side_effect=paths.get) as mock_find:
        yield mock_find


@pytest.fixture
def no_tools_installed():
    with patch("neighbor.scanner.find_command", return_value=None) as mock_find:
        yield mock_find


class TestNmapCommandNetworkScanner:
    """Tests for the nmap scanner."""

    def test_full_scan_command(self, profile, mock_safe_run, tools_installed):
        NmapCommandNetworkScanner(profile).scan()
        cmd = mock_safe_run.call_args[0][0]
        assert cmd == [
            "/usr/bin/nmap", "-sn", "-n", "-T4", "-oG", "-", "-e", "eth0", "192.0.2.1", "192.0.2.2",
        ]

    def test_partial_scan_command(self, profile, mock_safe_run, tools_installed):
        NmapCommandNetworkScanner(profile).scan_addresses(ADDRESSES)
        cmd = mock_safe_run.call_args[0][0]
        assert cmd[-2:] == ["192.0.2.5", "192.0.2.6"]
        assert "-e" in cmd

    def test_without_interface(self, mock_safe_run, tools_installed):
        profile = IPNetworkProfile.from_subnet("192.0.2.1", prefix_length=32)
        NmapCommandNetworkScanner(profile).scan()
        cmd = mock_safe_run.call_args[0][0]
        assert "-e" not in cmd
        assert cmd[-1] == "192.0.2.1"

    def test_empty_address_set_does_nothing(self, profile, mock_safe_run, tools_installed):
        NmapCommandNetworkScanner(profile).scan_addresses([])
        mock_safe_run.assert_not_called()

    def test_requires_address_range(self):
        with pytest.raises(NetworkProfileError):
            NmapCommandNetworkScanner(IPNetworkProfile())
        with pytest.raises(NetworkProfileError):
            NmapCommandNetworkScanner(None)

    def test_missing_executable(self, profile, mock_safe_run, no_tools_installed):
        with pytest.raises(SubprocessError):
            NmapCommandNetworkScanner(profile).scan()
        mock_safe_run.assert_not_called()

    def test_nonzero_exit_is_logged_not_raised(self, profile, tools_installed, caplog):
        with patch("neighbor.scanner.safe_run", return_value=completed([], 1, stderr="dnet: Failed")):
            NmapCommandNetworkScanner(profile).scan()
        assert "exited with code 1" in caplog.text

    def test_cancelled_before_start(self, profile, mock_safe_run, tools_installed):
        token = CancellationToken()
        token.cancel()
        with pytest.raises(OperationCanceledError):
            NmapCommandNetworkScanner(profile).scan(cancel_token=token)
        mock_safe_run.assert_not_called()

    def test_passes_cancel_token(self, profile, mock_safe_run, tools_installed):
        token = CancellationToken()
        NmapCommandNetworkScanner(profile).scan(cancel_token=token)
        assert mock_safe_run.call_args[1]["cancel_token"] is token

    def test_is_supported(self, tools_installed):
        assert NmapCommandNetworkScanner.is_supported()


class TestArpScanCommandNetworkScanner:
    """Tests for the arp-scan scanner."""

    def test_full_scan_command(self, profile, mock_safe_run, tools_installed):
        ArpScanCommandNetworkScanner(profile).scan()
        cmd = mock_safe_run.call_args[0][0]
        assert cmd == [
            "/usr/sbin/arp-scan", "--numeric", "--quiet", "--interface=eth0", "192.0.2.1", "192.0.2.2",
        ]

    def test_localnet_without_range(self, mock_safe_run, tools_installed):
        ArpScanCommandNetworkScanner().scan()
        cmd = mock_safe_run.call_args[0][0]
        assert cmd == ["/usr/sbin/arp-scan", "--numeric", "--quiet", "--localnet"]

    def test_partial_scan_command(self, mock_safe_run, tools_installed):
        ArpScanCommandNetworkScanner().scan_addresses(ADDRESSES)
        cmd = mock_safe_run.call_args[0][0]
        assert cmd == ["/usr/sbin/arp-scan", "--numeric", "--quiet", "192.0.2.5", "192.0.2.6"]

    def test_empty_address_set_does_nothing(self, mock_safe_run, tools_installed):
        ArpScanCommandNetworkScanner().scan_addresses([])
        mock_safe_run.assert_not_called()

    def test_not_supported(self, no_tools_installed):
        assert not ArpScanCommandNetworkScanner.is_supported()


class TestPingNetworkScanner:
    """Tests for the ping scanner."""

    def test_pings_each_address(self, profile, mock_safe_run, tools_installed):
        PingNetworkScanner(profile).scan_addresses(ADDRESSES)
        targets = [call[0][0][-1] for call in mock_safe_run.call_args_list]
        assert targets == ["192.0.2.5", "192.0.2.6"]

    def test_full_scan_uses_profile_range(self, profile, mock_safe_run, tools_installed):
        PingNetworkScanner(profile).scan()
        targets = [call[0][0][-1] for call in mock_safe_run.call_args_list]
        assert targets == ["192.0.2.1", "192.0.2.2"]

    def test_ipv6_flag(self, profile, mock_safe_run, tools_installed):
        PingNetworkScanner(profile).scan_addresses([ipaddress.ip_address("2001:db8::1")])
        cmd = mock_safe_run.call_args[0][0]
        assert "-6" in cmd

    def test_host_failure_is_logged_not_raised(self, profile, tools_installed, caplog):
        with patch("neighbor.scanner.safe_run", side_effect=SubprocessError("timed out")) as mock_run:
            PingNetworkScanner(profile).scan_addresses(ADDRESSES)
        assert mock_run.call_count == 2
        assert "Ping failed" in caplog.text

    def test_missing_ping(self, profile, no_tools_installed):
        with pytest.raises(SubprocessError):
            PingNetworkScanner(profile).scan_addresses(ADDRESSES)

    def test_cancellation_between_hosts(self, profile, tools_installed):
        token = CancellationToken()

        def cancel_after_first(cmd, **kwargs):
            token.cancel()
            return completed(cmd)

        with patch("neighbor.scanner.safe_run", side_effect=cancel_after_first) as mock_run:
            with pytest.raises(OperationCanceledError):
                PingNetworkScanner(profile).scan_addresses(ADDRESSES, cancel_token=token)
        assert mock_run.call_count == 1

    def test_profile_without_range(self, tools_installed):
        with pytest.raises(NetworkProfileError):
            PingNetworkScanner(IPNetworkProfile()).scan()


class TestNullNetworkScanner:
    """Tests for the no-op scanner."""

    def test_does_nothing(self):
        scanner = NullNetworkScanner()
        scanner.scan()
        scanner.scan_addresses(ADDRESSES)

    def test_rejects_none(self):
        with pytest.raises(ValueError):
            NullNetworkScanner().scan_addresses(None)
