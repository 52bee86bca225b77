"""Subprocess execution with safety checks, timing and cancellation.

The network scanners provoke the OS into populating its neighbor table by
running external tools (nmap, arp-scan, ping). All of them go through
safe_run(), which validates the command against an allowlist, never uses a
shell, and kills the child process when the caller's cancellation token is
set.

Usage:
    from config.subprocess_runner import safe_run, find_command

    nmap = find_command('nmap')
    if nmap:
        result = safe_run([nmap, '-sn', '192.0.2.1'], cancel_token=token)
"""

# nosec B404 - subprocess usage is required and validated via allowlist
import shutil
import subprocess
import threading
import time
from pathlib import Path
from typing import Dict, List, Optional

from config.constants import ALLOWED_SUBPROCESS_COMMANDS, INTERVALS
from config.exceptions import SubprocessError
from config.logging_config import get_logger, log_subprocess_call

logger = get_logger(__name__)

# Tool lookups are static for the lifetime of the process
_command_paths: Dict[str, Optional[str]] = {}
_command_paths_lock = threading.Lock()


def find_command(name: str) -> Optional[str]:
    """Locate an executable on PATH.

    Results are cached indefinitely since installed tools don't change
    during runtime.

    Args:
        name: Command name, e.g. 'nmap'.

    Returns:
        Absolute path to the executable, or None if it is not installed.
    """
    with _command_paths_lock:
        if name not in _command_paths:
            _command_paths[name] = shutil.which(name)
            logger.debug(f"Command lookup: {name} -> {_command_paths[name]}")
        return _command_paths[name]


def clear_command_cache() -> None:
    """Forget cached command lookups."""
    with _command_paths_lock:
        _command_paths.clear()


def _check_allowed(cmd: List[str]) -> None:
    if not cmd:
        raise SubprocessError("Empty command", command=cmd)

    base_cmd = cmd[0]
    if "/" in base_cmd:
        base_cmd = Path(base_cmd).name

    if base_cmd not in ALLOWED_SUBPROCESS_COMMANDS:
        raise SubprocessError(
            f"Command not in allowlist: {base_cmd}",
            command=cmd,
            details={"allowed": sorted(ALLOWED_SUBPROCESS_COMMANDS)},
        )


def safe_run(
    cmd: List[str],
    timeout: Optional[float] = None,
    cancel_token=None,
    check_allowed: bool = True,
) -> subprocess.CompletedProcess:
    """Run a subprocess command with safety checks.

    Args:
        cmd: Command and arguments as list.
        timeout: Command timeout in seconds.
        cancel_token: Optional token; when it is set while the command runs,
            the process is killed and the token's cancellation error raised.
        check_allowed: If True, validate command is in allowlist.

    Returns:
        subprocess.CompletedProcess with captured text output. A non-zero
        exit status is returned, not raised.

    Raises:
        SubprocessError: If command is not allowed, not found, or times out.
        OperationCanceledError: If cancel_token was set.
    """
    if check_allowed:
        _check_allowed(cmd)

    if cancel_token is not None:
        cancel_token.raise_if_cancelled()

    timeout = timeout or INTERVALS.SUBPROCESS_TIMEOUT_SECONDS
    start_time = time.monotonic()

    try:
        proc = subprocess.Popen(  # nosec B603 - Commands validated via allowlist
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
        )
    except FileNotFoundError as e:
        logger.error(f"Command not found: {cmd[0]}")
        raise SubprocessError(f"Command not found: {cmd[0]}", command=cmd) from e
    except OSError as e:
        logger.error(f"Subprocess error for {cmd}: {e}")
        raise SubprocessError(f"Subprocess error: {e}", command=cmd) from e

    with proc:
        while True:
            try:
                stdout, stderr = proc.communicate(timeout=INTERVALS.GATE_POLL_SECONDS)
                break
            except subprocess.TimeoutExpired:
                pass

            if cancel_token is not None and cancel_token.is_cancelled:
                proc.kill()
                proc.communicate()
                logger.debug(f"Command cancelled: {cmd[0]}")
                cancel_token.raise_if_cancelled()

            if time.monotonic() - start_time >= timeout:
                proc.kill()
                proc.communicate()
                duration_ms = (time.monotonic() - start_time) * 1000
                logger.warning(f"Command timed out after {duration_ms:.0f}ms: {cmd}")
                raise SubprocessError(
                    f"Command timed out after {timeout}s", command=cmd, details={"timeout": timeout}
                )

    duration_ms = (time.monotonic() - start_time) * 1000
    log_subprocess_call(
        logger, cmd, proc.returncode, duration_ms
    )

    return subprocess.CompletedProcess(cmd, proc.returncode, stdout, stderr)
