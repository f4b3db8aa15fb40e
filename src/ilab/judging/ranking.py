"""Deterministic submission ranking.

Submissions ranked by score_aggregate DESC, then by earliest submitted_at
ASC (unsubmitted last), then by id ASC as the final tiebreaker. Ranks are
strict ordinals: equal aggregates still get distinct consecutive ranks.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Any


def _timestamp(dt: datetime | None) -> float:
    if dt is None:
        return float("inf")
    # SQLite returns naive datetimes; they were written as UTC
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.timestamp()


def ranking_key(submission: Any) -> tuple[float, float, str]:
    return (
        -float(submission.score_aggregate),
        _timestamp(submission.submitted_at),
        str(submission.id),
    )


def rank_submissions(submissions: Iterable[Any]) -> list[tuple[Any, int]]:
    """Order scored submissions and pair each with its 1-based rank.

    Submissions without an aggregate are left out; they get no rank.
    """
    scored = [s for s in submissions if s.score_aggregate is not None]
    ordered = sorted(scored, key=ranking_key)
    return [(submission, rank) for rank, submission in enumerate(ordered, start=1)]
