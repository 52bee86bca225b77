"""Exceptions raised by the MAC address resolver.

Caller mistakes (InvalidAddressError, ConfigurationError), lifecycle errors
(ResolverDisposedError), cancellation (OperationCanceledError) and failures
of the external collaborators (SubprocessError, NetworkProfileError) each
have their own class under AddressResolutionError.
"""

from typing import List, Optional


class AddressResolutionError(Exception):
    """Root of the resolver's exceptions.

    Attributes:
        message: Human-readable error description.
        details: Extra context (addresses, option values, commands).
    """

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = dict(details) if details else {}
        super().__init__(message)

    def __str__(self) -> str:
        if not self.details:
            return self.message
        context = ", ".join(f"{key}={value!r}" for key, value in self.details.items())
        return f"{self.message} ({context})"


class InvalidAddressError(AddressResolutionError, ValueError):
    """An IP or hardware address argument is missing or malformed.

    Examples:
        >>> raise InvalidAddressError("Invalid hardware address: 'zz'", {"value": "zz"})
    """


class ResolverDisposedError(AddressResolutionError):
    """An operation was attempted on a resolver (or table) after close()."""

    def __init__(self, name: str = "MacAddressResolver"):
        super().__init__(f"{name} has been disposed", {"object": name})


class OperationCanceledError(AddressResolutionError):
    """A cancellation token was set before or during the operation.

    Not a SubprocessError even when a running scanner was killed.
    """

    def __init__(self, message: str = "The operation was canceled", details: Optional[dict] = None):
        super().__init__(message, details)


class ScanNotSupportedError(AddressResolutionError, NotImplementedError):
    """A refresh was requested from a resolver without a network scanner."""

    def __init__(self, message: str = "Network scan is not supported: no NetworkScanner is configured"):
        super().__init__(message)


class ConfigurationError(AddressResolutionError):
    """An option value is out of range or the settings file is unreadable.

    Examples:
        >>> raise ConfigurationError("Invalid network scan interval", {"value": -10})
    """


class NetworkProfileError(AddressResolutionError):
    """No usable interface, or an address range that cannot be scanned.

    Covers IPv6 ranges, bad prefix lengths and masks, oversized ranges, and
    platforms without a supported address table.
    """


class SubprocessError(AddressResolutionError):
    """An external scanner could not be run to completion.

    Raised for a missing executable, a command outside the allowlist, or a
    timeout. A non-zero exit status is not an error by itself; scanners log
    it instead.

    Attributes:
        command: The command line, executable first.
        returncode: Exit status, when the process ran.
        stdout: Captured output, when available.
        stderr: Captured error output, when available.
    """

    OUTPUT_LIMIT = 500

    def __init__(
        self,
        message: str,
        command: Optional[List[str]] = None,
        returncode: Optional[int] = None,
        stdout: Optional[str] = None,
        stderr: Optional[str] = None,
        details: Optional[dict] = None,
    ):
        context = dict(details) if details else {}
        if command:
            context["command"] = command
        if returncode is not None:
            context["returncode"] = returncode
        for name, output in (("stdout", stdout), ("stderr", stderr)):
            if output:
                context[name] = output[:self.OUTPUT_LIMIT]

        super().__init__(message, context)
        self.command = command
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr

    @property
    def tool(self) -> Optional[str]:
        """Executable name without its directory, e.g. 'nmap'."""
        if not self.command:
            return None
        return self.command[0].replace("\\", "/").rsplit("/", 1)[-1]
