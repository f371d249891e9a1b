"""描画用ビュー状態のDTO.

このモジュールは、プレゼンターがそのまま描画に使える不変のスナップショットを
定義します。パーセンテージとバー幅は常に最新のTallySnapshotから導出します。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from src.domain.value_objects.tally_snapshot import TallySnapshot, format_percentage
from src.domain.value_objects.vote_transaction import TransactionPhase


@dataclass(frozen=True)
class CandidateView:
    """候補者1件分の描画情報."""

    id: int
    name: str
    vote_count: int
    percentage: Decimal
    percentage_label: str
    bar_width: float

    @classmethod
    def from_snapshot(cls, snapshot: TallySnapshot) -> tuple[CandidateView, ...]:
        """スナップショット全体から描画情報を生成する."""
        views = []
        for candidate in snapshot.candidates:
            percentage = snapshot.percentage_of(candidate)
            views.append(
                cls(
                    id=candidate.id,
                    name=candidate.name,
                    vote_count=candidate.vote_count,
                    percentage=percentage,
                    percentage_label=format_percentage(percentage),
                    bar_width=snapshot.bar_width_of(candidate),
                )
            )
        return tuple(views)


@dataclass(frozen=True)
class ViewState:
    """UIへ渡す調停済みの状態."""

    account: str | None = None
    network_id: int | None = None
    candidates: tuple[CandidateView, ...] = field(default_factory=tuple)
    total_votes: int = 0
    max_votes: int = 1
    has_voted: bool = False
    tx_phase: TransactionPhase = TransactionPhase.IDLE
    tx_candidate_id: int | None = None
    tx_hash: str | None = None
    network_mismatch: bool = False
    no_wallet: bool = False
    connecting: bool = False
    tally_error: str | None = None

    @property
    def is_connected(self) -> bool:
        """アカウント接続済みか."""
        return self.account is not None

    @property
    def short_account(self) -> str:
        """表示用の省略アドレス."""
        if not self.account:
            return ""
        return f"{self.account[:6]}...{self.account[-4:]}"

    @property
    def can_vote(self) -> bool:
        """投票ボタンを有効にできるか."""
        return (
            self.is_connected
            and not self.has_voted
            and not self.connecting
            and self.tx_phase is TransactionPhase.IDLE
        )
