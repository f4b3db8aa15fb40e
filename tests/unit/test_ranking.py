"""Deterministic ranking tests (pure function)."""

from datetime import datetime, timezone
from types import SimpleNamespace

from ilab.judging.ranking import rank_submissions


def _sub(sub_id, aggregate, submitted_at=None):
    return SimpleNamespace(id=sub_id, score_aggregate=aggregate, submitted_at=submitted_at)


class TestRankSubmissions:
    def test_descending_by_aggregate(self):
        subs = [_sub("a", 95.0), _sub("b", 88.0), _sub("c", 92.0), _sub("d", None)]
        ranked = rank_submissions(subs)
        assert [(s.id, r) for s, r in ranked] == [("a", 1), ("c", 2), ("b", 3)]

    def test_unscored_excluded(self):
        ranked = rank_submissions([_sub("x", None), _sub("y", None)])
        assert ranked == []

    def test_ties_earlier_submission_wins(self):
        early = datetime(2026, 3, 1, 10, 0, tzinfo=timezone.utc)
        late = datetime(2026, 3, 1, 11, 0, tzinfo=timezone.utc)
        ranked = rank_submissions([_sub("late", 90.0, late), _sub("early", 90.0, early)])
        assert [(s.id, r) for s, r in ranked] == [("early", 1), ("late", 2)]

    def test_ties_without_timestamp_go_last_then_by_id(self):
        when = datetime(2026, 3, 1, tzinfo=timezone.utc)
        ranked = rank_submissions([_sub("z", 70.0), _sub("m", 70.0), _sub("q", 70.0, when)])
        assert [s.id for s, _ in ranked] == ["q", "m", "z"]

    def test_strict_ordinal_no_shared_ranks(self):
        ranked = rank_submissions([_sub("a", 50.0), _sub("b", 50.0), _sub("c", 50.0)])
        assert [r for _, r in ranked] == [1, 2, 3]

    def test_naive_and_aware_timestamps_mix(self):
        aware = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
        naive = datetime(2026, 3, 1, 11, 0)
        ranked = rank_submissions([_sub("aware", 80.0, aware), _sub("naive", 80.0, naive)])
        assert [s.id for s, _ in ranked] == ["naive", "aware"]

    def test_deterministic_across_input_order(self):
        subs = [_sub(str(i), float(i % 3)) for i in range(12)]
        first = [(s.id, r) for s, r in rank_submissions(subs)]
        second = [(s.id, r) for s, r in rank_submissions(list(reversed(subs)))]
        assert first == second
