"""TallySnapshot のテスト."""

from decimal import Decimal

import pytest

from src.domain.entities.candidate import Candidate
from src.domain.value_objects.tally_snapshot import TallySnapshot, format_percentage


class TestTallySnapshot:
    """集計スナップショットのテスト."""

    def test_totals_and_max(self) -> None:
        snapshot = TallySnapshot.from_candidates(
            [Candidate(1, "A", 10), Candidate(2, "B", 20)]
        )

        assert snapshot.total_votes == 30
        assert snapshot.max_votes == 20

    def test_max_votes_has_floor_of_one(self) -> None:
        snapshot = TallySnapshot.from_candidates(
            [Candidate(1, "A", 0), Candidate(2, "B", 0)]
        )

        assert snapshot.max_votes == 1
        assert TallySnapshot().max_votes == 1

    def test_zero_total_percentage_is_zero(self) -> None:
        """総投票数0では割り算をせず0を返す."""
        candidate = Candidate(1, "A", 0)
        snapshot = TallySnapshot.from_candidates([candidate])

        assert snapshot.percentage_of(candidate) == Decimal(0)
        assert format_percentage(snapshot.percentage_of(candidate)) == "0"

    def test_percentage_rounded_to_one_decimal(self) -> None:
        a = Candidate(1, "A", 10)
        b = Candidate(2, "B", 20)
        snapshot = TallySnapshot.from_candidates([a, b])

        assert snapshot.percentage_of(a) == Decimal("33.3")
        assert snapshot.percentage_of(b) == Decimal("66.7")
        assert format_percentage(snapshot.percentage_of(a)) == "33.3%"

    def test_percentage_rounds_half_up(self) -> None:
        a = Candidate(1, "A", 1)
        b = Candidate(2, "B", 15)
        snapshot = TallySnapshot.from_candidates([a, b])

        # 6.25 -> 6.3, 93.75 -> 93.8
        assert snapshot.percentage_of(a) == Decimal("6.3")
        assert snapshot.percentage_of(b) == Decimal("93.8")

    def test_bar_width_relative_to_leader(self) -> None:
        a = Candidate(1, "A", 5)
        b = Candidate(2, "B", 20)
        snapshot = TallySnapshot.from_candidates([a, b])

        assert snapshot.bar_width_of(a) == pytest.approx(25.0)
        assert snapshot.bar_width_of(b) == pytest.approx(100.0)

    def test_preserves_ledger_order(self) -> None:
        snapshot = TallySnapshot.from_candidates(
            [Candidate(3, "C", 1), Candidate(1, "A", 9)]
        )

        assert [c.id for c in snapshot.candidates] == [3, 1]

    def test_find(self) -> None:
        snapshot = TallySnapshot.from_candidates([Candidate(1, "A", 2)])

        assert snapshot.find(1) == Candidate(1, "A", 2)
        assert snapshot.find(99) is None

    def test_is_empty(self) -> None:
        assert TallySnapshot().is_empty
        assert not TallySnapshot.from_candidates([Candidate(1, "A")]).is_empty


class TestCandidate:
    """Candidate エンティティのテスト."""

    def test_negative_vote_count_rejected(self) -> None:
        with pytest.raises(ValueError):
            Candidate(1, "A", -1)

    def test_str(self) -> None:
        assert str(Candidate(1, "A", 3)) == "A (3)"
