"""投票コントラクトのインターフェース."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any, Protocol

from src.domain.entities.candidate import Candidate
from src.domain.value_objects.vote_recorded_event import VoteRecordedEvent


VoteRecordedHandler = Callable[[VoteRecordedEvent], Awaitable[None]]


class IVoteWatch(Protocol):
    """VotedEvent の監視ハンドル."""

    async def close(self) -> None:
        """監視を停止する（冪等）."""
        ...


class IBallotContract(Protocol):
    """現在の署名者に束縛された投票コントラクトのハンドル.

    セッションが変わるたびに作り直す。close後の呼び出しは
    StaleBindingRaceException となる。
    """

    @property
    def signer_account(self) -> str:
        """このハンドルが束縛されている署名者アドレス."""
        ...

    async def get_all_candidates(self) -> list[Candidate]:
        """全候補者を1回の呼び出しで取得する."""
        ...

    async def has_voted(self, account: str) -> bool:
        """accountが投票済みかを台帳から取得する."""
        ...

    async def submit_vote(self, candidate_id: int) -> str:
        """投票トランザクションをウォレットで署名・送信し、tx hashを返す.

        Raises:
            UserDeclinedException: ユーザーが署名を拒否した
            AlreadyVotedException: 台帳が二重投票として拒否した
            TransactionRejectedOrRevertedException: その他の送信失敗
            StaleBindingRaceException: 署名者がもう現在のアカウントではない
        """
        ...

    async def wait_for_inclusion(self, tx_hash: str) -> bool:
        """ブロックへの取り込みを待ち、成功したかを返す."""
        ...

    async def watch_vote_recorded(self, handler: VoteRecordedHandler) -> IVoteWatch:
        """VotedEvent の監視を開始する."""
        ...

    def close(self) -> None:
        """ハンドルを無効化する."""
        ...


class IBallotContractBinder(Protocol):
    """コントラクトのアドレス・ABI・署名者からハンドルを生成する."""

    def bind(
        self, address: str, abi: list[dict[str, Any]], signer_account: str
    ) -> IBallotContract:
        """署名者に束縛されたハンドルを生成する."""
        ...
