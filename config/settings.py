"""Resolver settings and their JSON persistence.

Only configuration lives here. The resolver never writes address table
data to disk.
"""
import json
import math
import threading
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import List, Optional

from config.constants import INTERVALS, RESOLVER, STORAGE
from config.exceptions import ConfigurationError
from config.logging_config import get_logger

logger = get_logger(__name__)


def normalize_interval(value: Optional[float], name: str, allow_zero: bool) -> float:
    """Convert an interval setting to seconds.

    None and math.inf both mean "infinite".

    Raises:
        ConfigurationError: If the value is negative, or zero where zero is
            not allowed.
    """
    if value is None:
        return math.inf
    try:
        seconds = float(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid {name}", {"value": value}) from e
    if math.isnan(seconds) or seconds < 0 or (seconds == 0 and not allow_zero):
        raise ConfigurationError(f"Invalid {name}", {"value": value})
    return seconds


def normalize_parallel_count(value: int) -> int:
    """Validate the number of partial scans allowed to run at once."""
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ConfigurationError(
            "Invalid max parallel count for refreshing invalidated addresses",
            {"value": value},
        )
    return value


@dataclass
class ResolverSettings:
    """Recognized resolver options.

    Intervals are in seconds; None means infinite (no automatic scan).
    """
    network_scan_interval: Optional[float] = INTERVALS.FULL_SCAN_SECONDS
    network_scan_min_interval: float = INTERVALS.FULL_SCAN_MIN_SECONDS
    max_parallel_count_for_refresh_invalidated_addresses: int = RESOLVER.PARTIAL_SCAN_PARALLEL_MAX
    resolve_ipv4_mapped_ipv6_address: bool = RESOLVER.RESOLVE_IPV4_MAPPED_IPV6_ADDRESS

    # Network profile selection
    interface: Optional[str] = None
    address_range: List[str] = field(default_factory=list)

    def validate(self) -> "ResolverSettings":
        """Check all values, raising ConfigurationError on the first bad one."""
        normalize_interval(self.network_scan_interval, "network scan interval", allow_zero=False)
        normalize_interval(self.network_scan_min_interval, "network scan minimum interval", allow_zero=True)
        normalize_parallel_count(self.max_parallel_count_for_refresh_invalidated_addresses)
        return self

    def to_dict(self) -> dict:
        data = asdict(self)
        if data["network_scan_interval"] == math.inf:
            data["network_scan_interval"] = None
        return data

    @classmethod
    def from_dict(cls, data: dict) -> 'ResolverSettings':
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            logger.warning(f"Ignoring unknown settings: {sorted(unknown)}")
        defaults = cls()
        return cls(
            network_scan_interval=data.get("network_scan_interval", defaults.network_scan_interval),
            network_scan_min_interval=data.get(
                "network_scan_min_interval", defaults.network_scan_min_interval
            ),
            max_parallel_count_for_refresh_invalidated_addresses=data.get(
                "max_parallel_count_for_refresh_invalidated_addresses",
                defaults.max_parallel_count_for_refresh_invalidated_addresses,
            ),
            resolve_ipv4_mapped_ipv6_address=data.get(
                "resolve_ipv4_mapped_ipv6_address", defaults.resolve_ipv4_mapped_ipv6_address
            ),
            interface=data.get("interface"),
            address_range=list(data.get("address_range") or []),
        ).validate()


class SettingsManager:
    """Loads and saves ResolverSettings as JSON."""

    def __init__(self, data_dir: Optional[Path] = None):
        self.data_dir = data_dir or Path.home() / STORAGE.DATA_DIR_NAME
        self.settings_file = self.data_dir / STORAGE.SETTINGS_FILE
        self._lock = threading.Lock()
        self._settings = ResolverSettings()
        self._load()

    def _load(self) -> None:
        """Load settings from file, keeping defaults when it is absent."""
        if not self.settings_file.exists():
            return
        try:
            with open(self.settings_file, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            raise ConfigurationError(
                f"Could not load settings: {e}", {"path": str(self.settings_file)}
            ) from e
        if not isinstance(data, dict):
            raise ConfigurationError(
                "Settings file must contain a JSON object", {"path": str(self.settings_file)}
            )
        self._settings = ResolverSettings.from_dict(data)
        logger.debug(f"Loaded settings from {self.settings_file}")

    def save(self) -> None:
        """Write current settings to file."""
        with self._lock:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            with open(self.settings_file, 'w', encoding='utf-8') as f:
                json.dump(self._settings.to_dict(), f, indent=2)

    @property
    def settings(self) -> ResolverSettings:
        return self._settings

    def update(self, **changes) -> ResolverSettings:
        """Apply changes, validate them, and persist."""
        with self._lock:
            data = self._settings.to_dict()
            data.update(changes)
            self._settings = ResolverSettings.from_dict(data)
        self.save()
        return self._settings
