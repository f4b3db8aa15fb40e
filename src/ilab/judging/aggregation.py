"""Submission score aggregation policies.

JUDGE_TOTAL (default): sum each judge's criterion scores, then average
those totals across the judges who scored at least one criterion. A judge
who scored more criteria therefore has a larger total; partial scoring
skews the result.

CRITERION_WEIGHTED: average the judges' scores per criterion, normalise
each average to 0-100 by the criterion's max score, and take the
weight-weighted mean across the scored criteria.

Both return None when there are no scores.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Mapping
from enum import Enum
from typing import Any


class AggregationPolicy(str, Enum):
    JUDGE_TOTAL = "JUDGE_TOTAL"
    CRITERION_WEIGHTED = "CRITERION_WEIGHTED"


def judge_total_mean(scores: Iterable[Any]) -> float | None:
    """Mean of per-judge totals. ``scores`` need ``judge_id`` and ``value``."""
    totals: dict[str, float] = defaultdict(float)
    for score in scores:
        totals[score.judge_id] += float(score.value)
    if not totals:
        return None
    return sum(totals.values()) / len(totals)


def criterion_weighted_mean(scores: Iterable[Any], criteria: Mapping[str, Any]) -> float | None:
    """Weighted mean of normalised per-criterion averages (0-100).

    ``criteria`` maps criterion id to an object with ``max_score`` and
    ``weight``. A criterion missing from the mapping is an error.
    """
    by_criterion: dict[str, list[float]] = defaultdict(list)
    for score in scores:
        by_criterion[score.criterion_id].append(float(score.value))
    if not by_criterion:
        return None

    weighted = 0.0
    total_weight = 0.0
    for criterion_id, values in by_criterion.items():
        criterion = criteria[criterion_id]
        normalised = (sum(values) / len(values)) / criterion.max_score * 100
        weighted += normalised * float(criterion.weight)
        total_weight += float(criterion.weight)

    return weighted / total_weight if total_weight > 0 else 0.0


def aggregate_scores(
    scores: Iterable[Any],
    policy: AggregationPolicy = AggregationPolicy.JUDGE_TOTAL,
    criteria: Mapping[str, Any] | None = None,
) -> float | None:
    policy = AggregationPolicy(policy)
    if policy is AggregationPolicy.CRITERION_WEIGHTED:
        return criterion_weighted_mean(scores, criteria or {})
    return judge_total_mean(scores)
