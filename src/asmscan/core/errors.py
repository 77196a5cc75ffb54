"""asmscan error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Snapshot documents
- 4xxx: Scanning

Every code maps onto a process exit code so the CLI can translate failures
without inspecting messages.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ExitCode(IntEnum):
    """Process exit codes for the ``asmscan`` command."""

    OK = 0
    RECOMMEND_BUILD = 1
    RECOMMEND_REVISION = 2
    RECOMMEND_MINOR = 3
    RECOMMEND_MAJOR = 4
    SNAPSHOT_PARSE_FAILED = 5
    SNAPSHOT_NOT_FOUND = 6
    ASSEMBLY_NOT_FOUND = 7
    USAGE = 8
    SCAN_FAILED = 9
    CONFIG_INVALID = 10


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002

    # Snapshot documents (3xxx)
    SNAPSHOT_NOT_FOUND = 3001
    SNAPSHOT_PARSE_ERROR = 3002
    SNAPSHOT_WRITE_ERROR = 3003

    # Scanning (4xxx)
    ASSEMBLY_NOT_FOUND = 4001
    SCANNER_FAILED = 4002


_EXIT_CODES: dict[ErrorCode, ExitCode] = {
    ErrorCode.CONFIG_PARSE_ERROR: ExitCode.CONFIG_INVALID,
    ErrorCode.CONFIG_INVALID_VALUE: ExitCode.CONFIG_INVALID,
    ErrorCode.SNAPSHOT_NOT_FOUND: ExitCode.SNAPSHOT_NOT_FOUND,
    ErrorCode.SNAPSHOT_PARSE_ERROR: ExitCode.SNAPSHOT_PARSE_FAILED,
    ErrorCode.SNAPSHOT_WRITE_ERROR: ExitCode.SNAPSHOT_NOT_FOUND,
    ErrorCode.ASSEMBLY_NOT_FOUND: ExitCode.ASSEMBLY_NOT_FOUND,
    ErrorCode.SCANNER_FAILED: ExitCode.SCAN_FAILED,
}


@dataclass(frozen=True, slots=True)
class AsmScanError(Exception):
    """Base error with structured context."""

    code: ErrorCode
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'SNAPSHOT_PARSE_ERROR')."""
        return self.code.name

    @property
    def exit_code(self) -> ExitCode:
        return _EXIT_CODES[self.code]

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON output and structured logs."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(AsmScanError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )


class SnapshotError(AsmScanError):
    """Snapshot document loading errors."""

    @classmethod
    def not_found(cls, path: str) -> "SnapshotError":
        return cls(
            code=ErrorCode.SNAPSHOT_NOT_FOUND,
            message=f"Snapshot file not found: {path}",
            details={"path": path},
        )

    @classmethod
    def parse_error(cls, source: str, reason: str) -> "SnapshotError":
        return cls(
            code=ErrorCode.SNAPSHOT_PARSE_ERROR,
            message=f"Failed to parse snapshot from {source}: {reason}",
            details={"source": source, "reason": reason},
        )

    @classmethod
    def write_error(cls, path: str, reason: str) -> "SnapshotError":
        return cls(
            code=ErrorCode.SNAPSHOT_WRITE_ERROR,
            message=f"Failed to write snapshot to {path}: {reason}",
            details={"path": path, "reason": reason},
        )


class ScanError(AsmScanError):
    """Errors producing a fresh snapshot of a binary."""

    @classmethod
    def assembly_not_found(cls, path: str) -> "ScanError":
        return cls(
            code=ErrorCode.ASSEMBLY_NOT_FOUND,
            message=f"Assembly not found: {path}",
            details={"path": path},
        )

    @classmethod
    def scanner_failed(cls, path: str, reason: str) -> "ScanError":
        return cls(
            code=ErrorCode.SCANNER_FAILED,
            message=f"Failed to scan {path}: {reason}",
            details={"path": path, "reason": reason},
        )


class IdentityMismatchError(AssertionError):
    """Two entities with different identity keys were handed to the diff engine.

    This is a bug in the caller's matching logic, not a data problem, so it is
    never translated into an exit code.
    """

    def __init__(self, kind: str, current_key: object, original_key: object) -> None:
        self.kind = kind
        self.current_key = current_key
        self.original_key = original_key
        super().__init__(
            f"The original {kind} key {original_key!r} does not match "
            f"the current {kind} key {current_key!r}."
        )
