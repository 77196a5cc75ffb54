"""Data models for interface diffs.

All models are plain dataclasses / frozen dataclasses.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, replace
from enum import IntEnum


class Severity(IntEnum):
    """Compatibility impact of one change, from none to breaking."""

    NONE = 0  # informational only, never counted
    NEGLIGIBLE = 1  # caller-compatible; warrants a revision bump
    MINOR = 2  # additive; warrants a minor bump
    MAJOR = 3  # breaks existing callers

    @property
    def label(self) -> str:
        return self.name


@dataclass(frozen=True, slots=True)
class ScanChange:
    """One severity-classified observation.

    Descriptions start relative to the entity that produced them and gain a
    prefix each time a parent comparison relays them, e.g.
    ``Type 'Foo' method Bar() parameter 1 is now optional.``
    """

    severity: Severity
    description: str

    def with_prefix(self, prefix: str) -> ScanChange:
        return replace(self, description=f"{prefix} {self.description}")

    def __str__(self) -> str:
        return f"{self.severity.label} {self.description}"


class ChangeStream(Iterator[ScanChange]):
    """Single-pass, forward-only sequence of change records.

    Records are produced lazily as the stream is iterated. Once exhausted the
    stream stays exhausted; iterating it again yields nothing. Not safe for
    concurrent readers.
    """

    __slots__ = ("_source", "_yielded", "_exhausted")

    def __init__(self, changes: Iterable[ScanChange]) -> None:
        self._source = iter(changes)
        self._yielded = 0
        self._exhausted = False

    def __iter__(self) -> ChangeStream:
        return self

    def __next__(self) -> ScanChange:
        if self._exhausted:
            raise StopIteration
        try:
            change = next(self._source)
        except StopIteration:
            self._exhausted = True
            raise
        self._yielded += 1
        return change

    @property
    def yielded(self) -> int:
        """Number of records produced so far."""
        return self._yielded

    @property
    def exhausted(self) -> bool:
        return self._exhausted
