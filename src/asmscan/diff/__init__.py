"""Interface diff package: change records, diff engine, version recommendation.

Public API re-exports for the diff subpackage.
"""

from asmscan.diff.engine import HASH_UNCHANGED, compare, get_changes_from
from asmscan.diff.models import ChangeStream, ScanChange, Severity
from asmscan.diff.recommend import (
    ChangeTally,
    Outcome,
    Recommendation,
    RecommendationEngine,
    VersionDelta,
    decide,
    recommend,
)

__all__ = [
    "HASH_UNCHANGED",
    "ChangeStream",
    "ChangeTally",
    "Outcome",
    "Recommendation",
    "RecommendationEngine",
    "ScanChange",
    "Severity",
    "VersionDelta",
    "compare",
    "decide",
    "get_changes_from",
    "recommend",
]
