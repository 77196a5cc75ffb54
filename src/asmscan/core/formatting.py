"""Summary formatting utilities for consistent terminal output."""

from __future__ import annotations


def pluralize(count: int, singular: str, plural: str | None = None) -> str:
    """Return grammatically correct singular/plural form.

    Args:
        count: The number of items
        singular: Singular form (e.g., "parameter")
        plural: Plural form (default: singular + "s")

    Returns:
        Formatted string like "1 parameter" or "3 parameters"
    """
    if plural is None:
        plural = singular + "s"
    word = singular if count == 1 else plural
    return f"{count} {word}"


def join_counts(counts: dict[str, int]) -> str:
    """Join non-zero labelled counts.

    Examples:
        {"major": 2, "minor": 0, "negligible": 1} -> "2 major, 1 negligible"
        {"major": 0} -> "none"
    """
    parts = [f"{count} {label}" for label, count in counts.items() if count]
    return ", ".join(parts) if parts else "none"
