"""Version recommendation from a stream of change records.

The policy picks the smallest sufficient bump: the most severe change tier
decides which version component must increase, and an increase already
applied to that component (or a more significant one) satisfies it.

Priority order:
1. major changes      -> major must have increased
2. minor changes      -> major or minor must have increased
3. negligible changes -> major, minor or revision must have increased
4. no interface change -> nothing if the bytes are identical, otherwise any
                          increase (build included) satisfies it
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from enum import Enum

import structlog

from asmscan.core.errors import ExitCode
from asmscan.diff.models import ScanChange, Severity
from asmscan.snapshot.models import AssemblySnapshot, AssemblyVersion

log = structlog.get_logger(__name__)

# Version components from most to least significant.
COMPONENTS: tuple[str, ...] = ("major", "minor", "revision", "build")


class Outcome(Enum):
    """Final verdict on which version component should be incremented."""

    NO_CHANGES = "no_changes"
    COMPLIANT = "compliant"
    BUILD = "build"
    REVISION = "revision"
    MINOR = "minor"
    MAJOR = "major"

    @property
    def exit_code(self) -> ExitCode:
        return _OUTCOME_EXIT_CODES[self]

    @property
    def requires_action(self) -> bool:
        return self.exit_code != ExitCode.OK


_OUTCOME_EXIT_CODES: dict[Outcome, ExitCode] = {
    Outcome.NO_CHANGES: ExitCode.OK,
    Outcome.COMPLIANT: ExitCode.OK,
    Outcome.BUILD: ExitCode.RECOMMEND_BUILD,
    Outcome.REVISION: ExitCode.RECOMMEND_REVISION,
    Outcome.MINOR: ExitCode.RECOMMEND_MINOR,
    Outcome.MAJOR: ExitCode.RECOMMEND_MAJOR,
}


@dataclass
class ChangeTally:
    """Running counts of actionable change records (NONE is not counted)."""

    major: int = 0
    minor: int = 0
    negligible: int = 0

    def add(self, change: ScanChange) -> None:
        if change.severity is Severity.MAJOR:
            self.major += 1
        elif change.severity is Severity.MINOR:
            self.minor += 1
        elif change.severity is Severity.NEGLIGIBLE:
            self.negligible += 1

    @classmethod
    def of(cls, changes: Iterable[ScanChange]) -> ChangeTally:
        tally = cls()
        for change in changes:
            tally.add(change)
        return tally

    @property
    def total(self) -> int:
        return self.major + self.minor + self.negligible

    @property
    def highest(self) -> Severity:
        if self.major:
            return Severity.MAJOR
        if self.minor:
            return Severity.MINOR
        if self.negligible:
            return Severity.NEGLIGIBLE
        return Severity.NONE


@dataclass(frozen=True, slots=True)
class VersionDelta:
    """Already-applied change between the original and current versions."""

    major: int = 0
    minor: int = 0
    revision: int = 0
    build: int = 0

    @classmethod
    def between(cls, current: AssemblyVersion, original: AssemblyVersion) -> VersionDelta:
        pairs = zip(current.by_significance(), original.by_significance(), strict=True)
        return cls(*(now - was for now, was in pairs))

    def increased_component(self) -> str | None:
        """Most significant component that went up, or None.

        Components compare lexicographically: a less significant component
        only counts when every more significant one is unchanged, so 2.0 -> 1.5
        is not a minor increase.
        """
        for name in COMPONENTS:
            value = getattr(self, name)
            if value > 0:
                return name
            if value < 0:
                return None
        return None

    def satisfies(self, required: str) -> bool:
        """True when the applied increase is at least as significant as ``required``."""
        increased = self.increased_component()
        if increased is None:
            return False
        return COMPONENTS.index(increased) <= COMPONENTS.index(required)


@dataclass(frozen=True, slots=True)
class Recommendation:
    outcome: Outcome
    message: str
    tally: ChangeTally = field(default_factory=ChangeTally)
    satisfied_by: str | None = None

    @property
    def exit_code(self) -> ExitCode:
        return self.outcome.exit_code


_TIER_REQUIREMENTS: tuple[tuple[Severity, str, Outcome, str], ...] = (
    (Severity.MAJOR, "major", Outcome.MAJOR, "the major version"),
    (Severity.MINOR, "minor", Outcome.MINOR, "the minor version"),
    (Severity.NEGLIGIBLE, "revision", Outcome.REVISION, "the revision"),
)


def decide(tally: ChangeTally, delta: VersionDelta, hashes_equal: bool) -> Recommendation:
    """Apply the recommendation policy to aggregated counts."""
    increased = delta.increased_component()
    highest = tally.highest

    for severity, required, outcome, target in _TIER_REQUIREMENTS:
        if highest is not severity:
            continue
        label = severity.name.lower()
        if delta.satisfies(required):
            return Recommendation(
                outcome=Outcome.COMPLIANT,
                message=(
                    f"The assembly has had {label} changes, and the {increased} version "
                    "has increased. No further version changes required."
                ),
                tally=tally,
                satisfied_by=increased,
            )
        return Recommendation(
            outcome=outcome,
            message=(
                f"The assembly interface has had {label} changes, "
                f"recommend incrementing {target}."
            ),
            tally=tally,
        )

    if hashes_equal:
        return Recommendation(
            outcome=Outcome.NO_CHANGES,
            message="The assembly has not changed. No version changes are recommended.",
            tally=tally,
        )

    if increased is not None:
        return Recommendation(
            outcome=Outcome.COMPLIANT,
            message=(
                "The assembly interface has not changed, but it has had content or code "
                f"changes. The {increased} version has increased. "
                "No further version changes required."
            ),
            tally=tally,
            satisfied_by=increased,
        )

    return Recommendation(
        outcome=Outcome.BUILD,
        message=(
            "The assembly interface has not changed, but it has had content or code "
            "changes. Recommend incrementing the build version."
        ),
        tally=tally,
    )


class RecommendationEngine:
    """Tallies change records as they stream past and produces a verdict.

    Usage::

        engine = RecommendationEngine(current, original)
        for change in engine.consume(compare(current, original)):
            print(change)
        result = engine.recommend()
    """

    def __init__(self, current: AssemblySnapshot, original: AssemblySnapshot) -> None:
        self._delta = VersionDelta.between(current.version, original.version)
        self._hashes_equal = current.has_same_content(original)
        self._tally = ChangeTally()

    @property
    def tally(self) -> ChangeTally:
        return self._tally

    @property
    def delta(self) -> VersionDelta:
        return self._delta

    def consume(self, changes: Iterable[ScanChange]) -> Iterator[ScanChange]:
        """Pass changes through unchanged while counting them."""
        for change in changes:
            self._tally.add(change)
            yield change

    def recommend(self) -> Recommendation:
        result = decide(self._tally, self._delta, self._hashes_equal)
        log.info(
            "recommendation",
            outcome=result.outcome.value,
            major=self._tally.major,
            minor=self._tally.minor,
            negligible=self._tally.negligible,
            total=self._tally.total,
            satisfied_by=result.satisfied_by,
        )
        return result


def recommend(
    current: AssemblySnapshot,
    original: AssemblySnapshot,
    changes: Iterable[ScanChange],
) -> Recommendation:
    """Consume ``changes`` fully and return the recommendation."""
    engine = RecommendationEngine(current, original)
    for _ in engine.consume(changes):
        pass
    return engine.recommend()
