"""Command line entry point."""

from asmscan.cli.main import cli

__all__ = ["cli"]
