"""Small helpers shared across modules."""

from collections.abc import Iterable
from datetime import UTC, datetime
from difflib import get_close_matches


def suggest_similar_strings(
    target: str,
    candidates: Iterable[str],
    threshold: float = 0.6,
    max_results: int = 3,
) -> list[str]:
    """Suggest candidates that look like a mistyped ``target``.

    Args:
        target: String to match against.
        candidates: Candidate strings.
        threshold: Minimum similarity threshold (0.0 to 1.0).
        max_results: Maximum number of suggestions to return.

    Returns:
        Similar candidates, most similar first.
    """
    by_lower = {candidate.lower(): candidate for candidate in candidates}
    matches = get_close_matches(
        target.lower(), list(by_lower), n=max_results, cutoff=threshold
    )
    return [by_lower[match] for match in matches]


def utcnow() -> datetime:
    """Timezone-aware current time in UTC."""
    return datetime.now(UTC)


def as_utc(moment: datetime) -> datetime:
    """Treat naive datetimes as UTC (google-auth reports naive UTC expiries)."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC)
