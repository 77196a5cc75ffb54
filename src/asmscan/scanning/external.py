"""Scanner adapter backed by an external introspection command.

The command is invoked as ``[*scanner.command, <binary path>]`` and must print
a snapshot document on stdout. Name and content hash are filled in here; the
hash always comes from the bytes on disk, never from the tool.
"""

from __future__ import annotations

import dataclasses
import subprocess
from pathlib import Path

import structlog

from asmscan.config.models import ScannerConfig
from asmscan.core.errors import ScanError, SnapshotError
from asmscan.scanning.hashing import file_content_hash
from asmscan.snapshot.document import parse_snapshot
from asmscan.snapshot.models import AssemblySnapshot

log = structlog.get_logger(__name__)

# Trailing stderr characters kept in scanner error messages.
_STDERR_TAIL = 500


class ExternalScanner:
    """Produces a fresh ``AssemblySnapshot`` for a binary on disk."""

    def __init__(self, config: ScannerConfig) -> None:
        self._command = list(config.command)
        self._timeout = config.timeout_sec

    def scan(self, path: Path) -> AssemblySnapshot:
        if not path.is_file():
            raise ScanError.assembly_not_found(str(path))
        if not self._command:
            raise ScanError.scanner_failed(
                str(path),
                "no introspection command configured (set scanner.command)",
            )

        content_hash = file_content_hash(path)
        stdout = self._run(path)

        try:
            snapshot = parse_snapshot(stdout, source=f"{self._command[0]} output")
        except SnapshotError as e:
            raise ScanError.scanner_failed(str(path), e.message) from e

        snapshot = dataclasses.replace(
            snapshot,
            name=snapshot.name or path.stem,
            hash=content_hash,
        )

        for t in snapshot.types:
            log.debug("type_found", assembly=snapshot.name, type=t.full_name)
        for r in snapshot.resources:
            log.debug("resource_found", assembly=snapshot.name, resource=r.name, size=r.size)
        log.info(
            "assembly_scanned",
            assembly=snapshot.name,
            version=str(snapshot.version),
            types=len(snapshot.types),
            resources=len(snapshot.resources),
        )
        return snapshot

    def _run(self, path: Path) -> str:
        argv = [*self._command, str(path)]
        log.debug("scanner_invoked", argv=argv, timeout=self._timeout)
        try:
            result = subprocess.run(
                argv,
                capture_output=True,
                text=True,
                timeout=self._timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise ScanError.scanner_failed(
                str(path), f"introspection command timed out after {self._timeout}s"
            ) from e
        except OSError as e:
            raise ScanError.scanner_failed(
                str(path), f"cannot run {self._command[0]!r}: {e}"
            ) from e

        if result.returncode != 0:
            stderr = result.stderr.strip()[-_STDERR_TAIL:]
            raise ScanError.scanner_failed(
                str(path),
                f"introspection command exited with {result.returncode}: {stderr}",
            )
        return result.stdout
