"""投票集計スナップショットの Value Object."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal

from src.domain.entities.candidate import Candidate


_ONE_DECIMAL = Decimal("0.1")


@dataclass(frozen=True)
class TallySnapshot:
    """台帳から一度に読み取った候補者一覧と得票数.

    リフレッシュのたびに丸ごと作り直す。前回のスナップショットとの差分
    マージは行わない（確定していない数値を確定値として見せないため）。
    """

    candidates: tuple[Candidate, ...] = field(default_factory=tuple)

    @classmethod
    def from_candidates(cls, candidates: Iterable[Candidate]) -> TallySnapshot:
        """候補者の並びからスナップショットを生成する（台帳の順序を保持）."""
        return cls(candidates=tuple(candidates))

    @property
    def total_votes(self) -> int:
        """総投票数."""
        return sum(c.vote_count for c in self.candidates)

    @property
    def max_votes(self) -> int:
        """最多得票数（ゼロ除算回避のため下限1）."""
        return max([c.vote_count for c in self.candidates] + [1])

    @property
    def is_empty(self) -> bool:
        """候補者が存在しないか."""
        return not self.candidates

    def percentage_of(self, candidate: Candidate) -> Decimal:
        """得票率（%）を小数第1位で四捨五入して返す.

        総投票数が0の場合は0を返す。
        """
        total = self.total_votes
        if total == 0:
            return Decimal(0)
        ratio = Decimal(candidate.vote_count * 100) / Decimal(total)
        return ratio.quantize(_ONE_DECIMAL, rounding=ROUND_HALF_UP)

    def bar_width_of(self, candidate: Candidate) -> float:
        """最多得票を100としたバーの幅（%）."""
        return candidate.vote_count / self.max_votes * 100

    def find(self, candidate_id: int) -> Candidate | None:
        """IDで候補者を検索する."""
        for candidate in self.candidates:
            if candidate.id == candidate_id:
                return candidate
        return None


def format_percentage(value: Decimal) -> str:
    """得票率の表示文字列を返す（例: "33.3%"、0の場合は "0"）."""
    if value == 0:
        return "0"
    return f"{value}%"
