"""User-facing console output for CLI operations.

Design principles:
- Status lines go to stderr so stdout stays machine-readable
- Documents and change records go to stdout
- Graceful degradation in non-TTY (CI, pipes): no color unless forced
- Suppress structlog console output while change records stream

Usage::

    from asmscan.core.console import status, suppress_console_logs

    status("Scanning assembly Foo.dll...")
    status("Wrote snapshot.json", style="success")

    with suppress_console_logs():
        print_changes()
"""

from __future__ import annotations

import sys
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape

if TYPE_CHECKING:
    from structlog.stdlib import BoundLogger

# Console for status output
_console = Console(stderr=True)

# Style prefixes
_STYLES = {
    "success": "[green]✓[/green] ",
    "error": "[red]✗[/red] ",
    "warning": "[yellow]![/yellow] ",
    "info": "",
}

_suppress_console_logs = threading.local()


def is_console_suppressed() -> bool:
    """Check if console logging is currently suppressed."""
    return getattr(_suppress_console_logs, "active", False)


@contextmanager
def suppress_console_logs() -> Iterator[None]:
    """Context manager to suppress structlog console output.

    Used while change records are printed so log lines cannot interleave
    with them.
    """
    previous = is_console_suppressed()
    _suppress_console_logs.active = True
    try:
        yield
    finally:
        _suppress_console_logs.active = previous


def _get_logger() -> BoundLogger:
    from asmscan.core.logging import get_logger

    return get_logger("console")


def make_output_console(color: bool | None = None) -> Console:
    """Create a stdout console.

    ``color=None`` lets rich detect a terminal; ``True``/``False`` force it.
    """
    if color is None:
        return Console(file=sys.stdout, highlight=False)
    return Console(
        file=sys.stdout,
        force_terminal=color,
        no_color=not color,
        highlight=False,
    )


def status(message: str, *, style: str = "info", indent: int = 0) -> None:
    """Print a styled status message to stderr."""
    prefix = _STYLES.get(style, "")
    padding = " " * indent
    _console.print(f"{padding}{prefix}{escape(message)}", highlight=False, soft_wrap=True)

    _get_logger().debug("status", message=message, style=style)
