"""投票記録イベントの Value Object."""

from dataclasses import dataclass


@dataclass(frozen=True)
class VoteRecordedEvent:
    """コントラクトが発行した「投票が記録された」通知.

    ペイロードは利用せず、同一イベントの重複配信を判定するためだけに
    (tx_hash, log_index) を保持する。
    """

    tx_hash: str
    log_index: int
    block_number: int | None = None

    @property
    def key(self) -> tuple[str, int]:
        """台帳上のイベントを一意に識別するキー."""
        return (self.tx_hash.lower(), self.log_index)
