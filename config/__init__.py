"""Configuration module for the MAC address resolver.

Provides centralized constants, settings, logging, exceptions, and the
subprocess runner used by the network scanners.
"""
from config.constants import (
    ALLOWED_SUBPROCESS_COMMANDS,
    INTERVALS,
    NETWORK,
    RESOLVER,
    STORAGE,
    Intervals,
    NetworkConfig,
    ResolverConfig,
    StorageConfig,
)
from config.exceptions import (
    AddressResolutionError,
    ConfigurationError,
    InvalidAddressError,
    NetworkProfileError,
    OperationCanceledError,
    ResolverDisposedError,
    ScanNotSupportedError,
    SubprocessError,
)
from config.logging_config import LogContext, get_logger, setup_logging

__all__ = [
    # Constants
    "INTERVALS",
    "RESOLVER",
    "NETWORK",
    "STORAGE",
    "Intervals",
    "ResolverConfig",
    "NetworkConfig",
    "StorageConfig",
    "ALLOWED_SUBPROCESS_COMMANDS",
    # Exceptions
    "AddressResolutionError",
    "InvalidAddressError",
    "ResolverDisposedError",
    "OperationCanceledError",
    "ScanNotSupportedError",
    "ConfigurationError",
    "NetworkProfileError",
    "SubprocessError",
    # Logging
    "setup_logging",
    "get_logger",
    "LogContext",
]
