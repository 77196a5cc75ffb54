"""Core module exports."""

from asmscan.core.console import status, suppress_console_logs
from asmscan.core.errors import (
    AsmScanError,
    ConfigError,
    ErrorCode,
    ExitCode,
    IdentityMismatchError,
    ScanError,
    SnapshotError,
)
from asmscan.core.logging import (
    clear_run_id,
    configure_logging,
    get_logger,
    get_run_id,
    set_run_id,
)

__all__ = [
    # Errors
    "AsmScanError",
    "ConfigError",
    "ErrorCode",
    "ExitCode",
    "IdentityMismatchError",
    "ScanError",
    "SnapshotError",
    # Logging
    "clear_run_id",
    "configure_logging",
    "get_logger",
    "get_run_id",
    "set_run_id",
    # Console
    "status",
    "suppress_console_logs",
]
