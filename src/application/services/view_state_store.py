"""ビュー状態の調停.

ローカルUI状態・ウォレットのセッション状態・台帳の確定状態を一つの
描画用スナップショットにまとめる。epochの判定は呼び出し側で済ませた
結果だけがここに適用される。
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import replace

from src.application.dtos.view_state_dto import CandidateView, ViewState
from src.common.logging import get_logger
from src.domain.entities.session import Session
from src.domain.value_objects.tally_snapshot import TallySnapshot
from src.domain.value_objects.vote_transaction import VoteTransaction


logger = get_logger(__name__)

ViewStateListener = Callable[[ViewState], None]


class ViewStateStore:
    """描画用ViewStateの保持と変更通知."""

    def __init__(self) -> None:
        self._state = ViewState()
        self._tally = TallySnapshot()
        self._listeners: list[ViewStateListener] = []

    def snapshot(self) -> ViewState:
        """現在のViewStateを返す."""
        return self._state

    @property
    def tally(self) -> TallySnapshot:
        """最後に適用したTallySnapshot."""
        return self._tally

    @property
    def has_voted(self) -> bool:
        """現在のアカウントが投票済みか."""
        return self._state.has_voted

    def add_listener(self, listener: ViewStateListener) -> Callable[[], None]:
        """変更通知を登録し、解除用の関数を返す."""
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def begin_session(self, session: Session) -> None:
        """新しいセッションの状態で初期化する."""
        self._tally = TallySnapshot()
        self._update(
            ViewState(
                account=session.account_address,
                network_id=session.network_id,
            )
        )

    def apply_tally(self, snapshot: TallySnapshot) -> None:
        """新しいスナップショットで集計表示を丸ごと置き換える."""
        self._tally = snapshot
        self._update(
            replace(
                self._state,
                candidates=CandidateView.from_snapshot(snapshot),
                total_votes=snapshot.total_votes,
                max_votes=snapshot.max_votes,
                tally_error=None,
            )
        )

    def mark_tally_error(self, message: str) -> None:
        """集計の読み取り失敗を記録する（前回のスナップショットは保持）."""
        self._update(replace(self._state, tally_error=message))

    def apply_voter_status(self, account: str, has_voted: bool) -> bool:
        """VoterStatusを適用する.

        has_voted は同一セッション内で単調。一度Trueになった後の
        False は無視する。

        Returns:
            状態に反映された場合True
        """
        if not self._is_session_account(account):
            logger.debug(f"Ignoring voter status for non-session account {account}")
            return False

        if self._state.has_voted and not has_voted:
            logger.debug("Ignoring has_voted=False after it was observed True")
            return False

        if self._state.has_voted != has_voted:
            self._update(replace(self._state, has_voted=has_voted))
        return True

    def set_transaction(self, transaction: VoteTransaction) -> None:
        """投票トランザクションのフェーズを反映する."""
        self._update(
            replace(
                self._state,
                tx_phase=transaction.phase,
                tx_candidate_id=transaction.candidate_id,
                tx_hash=transaction.tx_hash,
            )
        )

    def set_network_mismatch(self, mismatch: bool) -> None:
        """ネットワーク違い状態を設定する."""
        if self._state.network_mismatch != mismatch:
            self._update(replace(self._state, network_mismatch=mismatch))

    def set_no_wallet(self, no_wallet: bool) -> None:
        """ウォレット未検出状態を設定する."""
        if self._state.no_wallet != no_wallet:
            self._update(replace(self._state, no_wallet=no_wallet))

    def set_connecting(self, connecting: bool) -> None:
        """接続処理中フラグを設定する."""
        if self._state.connecting != connecting:
            self._update(replace(self._state, connecting=connecting))

    def reset(self) -> None:
        """コールドスタート相当まで状態を破棄する.

        ネットワーク違い表示は再接続を促すため残す。
        """
        self._tally = TallySnapshot()
        self._update(ViewState(network_mismatch=self._state.network_mismatch))

    def _is_session_account(self, account: str) -> bool:
        current = self._state.account
        return current is not None and current.lower() == account.lower()

    def _update(self, state: ViewState) -> None:
        self._state = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception as e:
                logger.error(f"View state listener failed: {e}")
