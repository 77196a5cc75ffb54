"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (ASMSCAN__SECTION__KEY)
3. Explicit --config file, or ./.asmscan.yaml
4. Global YAML (~/.config/asmscan/config.yaml)
5. Built-in defaults (this file)

Environment Variable Format:
    ASMSCAN__<SECTION>__<KEY>=<VALUE>

Examples:
    ASMSCAN__LOGGING__LEVEL=DEBUG
    ASMSCAN__SCANNER__COMMAND='["dotnet", "asm-introspect.dll"]'
    ASMSCAN__SCANNER__TIMEOUT_SEC=30
    ASMSCAN__OUTPUT__COLOR=false
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration.

    Env vars: Not directly configurable via env (use YAML for multi-output).
    """

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        ASMSCAN__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="WARNING",
        description="Root log level. Change records are always printed; logs are diagnostics.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class ScannerConfig(BaseModel):
    """Introspection command used to produce a fresh snapshot of a binary.

    Env vars:
        ASMSCAN__SCANNER__COMMAND: JSON list, e.g. '["dotnet", "introspect.dll"]'
        ASMSCAN__SCANNER__TIMEOUT_SEC: Max seconds to wait for the command
    """

    command: list[str] = Field(
        default_factory=list,
        description="Command prefix; the binary path is appended as the last argument. "
        "The command must print a snapshot document (without hash) on stdout.",
    )
    timeout_sec: float = Field(
        default=120.0,
        description="Kill the introspection command after this many seconds.",
    )

    @field_validator("timeout_sec")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"Timeout must be positive, got {v}")
        return v


class OutputConfig(BaseModel):
    """Console output configuration.

    Env vars:
        ASMSCAN__OUTPUT__COLOR: true/false (unset = detect terminal)
        ASMSCAN__OUTPUT__INDENT: Indent width for printed snapshot documents
    """

    color: bool | None = Field(
        default=None,
        description="Force colored severity labels on or off. None detects a terminal.",
    )
    indent: int = Field(
        default=2,
        description="Indent width when printing a snapshot document to stdout.",
    )

    @field_validator("indent")
    @classmethod
    def validate_indent(cls, v: int) -> int:
        if not (0 <= v <= 8):
            raise ValueError(f"Indent must be 0-8, got {v}")
        return v


class AsmScanConfig(BaseModel):
    """Root configuration (type hint target for load_config())."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    scanner: ScannerConfig = Field(default_factory=ScannerConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
