"""Candidate entity."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Candidate:
    """投票対象の候補者.

    idは台帳が割り当てる一意で安定した値。vote_countは台帳だけが変更でき、
    クライアントは再読み込みするのみで、ローカルで加算することはない。
    """

    id: int
    name: str
    vote_count: int = 0

    def __post_init__(self) -> None:
        if self.vote_count < 0:
            raise ValueError(f"vote_count must be non-negative: {self.vote_count}")

    def __str__(self) -> str:
        """文字列表現を返す."""
        return f"{self.name} ({self.vote_count})"
