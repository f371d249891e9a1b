"""投票トランザクションのライフサイクル."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum


class TransactionPhase(Enum):
    """投票トランザクションのフェーズ."""

    IDLE = "idle"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    PENDING_INCLUSION = "pending_inclusion"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        """表示用の終端状態（一定時間後にIDLEへ戻る）か."""
        return self in (TransactionPhase.SUCCEEDED, TransactionPhase.FAILED)

    @property
    def is_in_flight(self) -> bool:
        """ウォレットまたは台帳の応答待ちか."""
        return self in (
            TransactionPhase.AWAITING_CONFIRMATION,
            TransactionPhase.PENDING_INCLUSION,
        )


# 許可される遷移。AWAITING_CONFIRMATION → IDLE は台帳が「投票済み」を
# 返した場合のみ使われる（失敗ではない）。
TRANSITIONS: dict[TransactionPhase, frozenset[TransactionPhase]] = {
    TransactionPhase.IDLE: frozenset({TransactionPhase.AWAITING_CONFIRMATION}),
    TransactionPhase.AWAITING_CONFIRMATION: frozenset(
        {
            TransactionPhase.PENDING_INCLUSION,
            TransactionPhase.FAILED,
            TransactionPhase.IDLE,
        }
    ),
    TransactionPhase.PENDING_INCLUSION: frozenset(
        {TransactionPhase.SUCCEEDED, TransactionPhase.FAILED}
    ),
    TransactionPhase.SUCCEEDED: frozenset({TransactionPhase.IDLE}),
    TransactionPhase.FAILED: frozenset({TransactionPhase.IDLE}),
}


class InvalidTransitionError(Exception):
    """遷移表にない遷移が要求された."""

    def __init__(self, current: TransactionPhase, target: TransactionPhase):
        super().__init__(f"Invalid transition: {current.value} -> {target.value}")
        self.current = current
        self.target = target


@dataclass(frozen=True)
class VoteTransaction:
    """セッション内で唯一の投票トランザクション."""

    phase: TransactionPhase = TransactionPhase.IDLE
    candidate_id: int | None = None
    tx_hash: str | None = None
    error_message: str | None = None

    def can_transition_to(self, target: TransactionPhase) -> bool:
        """targetへの遷移が許可されているか."""
        return target in TRANSITIONS[self.phase]

    def transition(
        self,
        target: TransactionPhase,
        *,
        candidate_id: int | None = None,
        tx_hash: str | None = None,
        error_message: str | None = None,
    ) -> VoteTransaction:
        """遷移後の新しいVoteTransactionを返す.

        Raises:
            InvalidTransitionError: 遷移表にない遷移の場合
        """
        if not self.can_transition_to(target):
            raise InvalidTransitionError(self.phase, target)

        if target is TransactionPhase.IDLE:
            return VoteTransaction()

        return replace(
            self,
            phase=target,
            candidate_id=candidate_id if candidate_id is not None else self.candidate_id,
            tx_hash=tx_hash if tx_hash is not None else self.tx_hash,
            error_message=error_message,
        )
