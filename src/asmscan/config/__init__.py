"""Config module exports."""

from asmscan.config.loader import load_config
from asmscan.config.models import (
    AsmScanConfig,
    LoggingConfig,
    LogOutputConfig,
    OutputConfig,
    ScannerConfig,
)

__all__ = [
    "load_config",
    "AsmScanConfig",
    "LoggingConfig",
    "LogOutputConfig",
    "OutputConfig",
    "ScannerConfig",
]
