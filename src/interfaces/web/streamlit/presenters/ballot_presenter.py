"""投票ページのプレゼンター."""

from concurrent.futures import Future
from typing import Any

import pandas as pd

from src.application.dtos.ballot_dto import (
    CastVoteOutputDto,
    CastVoteStatus,
    ConnectWalletOutputDto,
)
from src.application.dtos.view_state_dto import ViewState
from src.application.services.ballot_client import BallotClient
from src.domain.value_objects.network_descriptor import NetworkDescriptor
from src.infrastructure.di.container import Container
from src.interfaces.web.streamlit.presenters.base import BasePresenter
from src.interfaces.web.streamlit.utils.session_manager import SessionManager


CONTAINER_KEY = "ballot_container"
STARTED_KEY = "ballot_client_started"
PENDING_VOTE_KEY = "ballot_pending_vote"
LAST_VOTE_RESULT_KEY = "ballot_last_vote_result"


class BallotPresenter(BasePresenter[ViewState]):
    """投票クライアントとStreamlitの描画をつなぐ.

    BallotClientはブラウザセッションごとに1つだけ生成し、
    st.session_state に保持したコンテナから取り出す。
    """

    def __init__(self, container: Container | None = None):
        """プレゼンターを初期化する."""
        self.session = SessionManager()
        if container is None:
            container = self.session.get_or_create_with(
                CONTAINER_KEY, Container.create_for_environment
            )
        super().__init__(container)
        self.client: BallotClient = self.container.ballot_client()

        if not self.session.get(STARTED_KEY, False):
            self._run_async(self.client.start())
            self.session.set(STARTED_KEY, True)

    @property
    def network(self) -> NetworkDescriptor:
        """投票先ネットワーク."""
        return self.container.infrastructure.network()

    @property
    def contract_address(self) -> str:
        """コントラクトアドレス."""
        return self.container.infrastructure.contract_artifact().address

    @property
    def explorer_url(self) -> str | None:
        """エクスプローラー上のコントラクトページ."""
        return self.network.explorer_address_url(self.contract_address)

    def load_data(self) -> ViewState:
        """現在のViewStateを読み込む."""
        return self.client.view_state()

    def handle_action(self, action: str, **kwargs: Any) -> Any:
        """ユーザーアクションを処理する."""
        if action == "connect":
            return self.connect()
        if action == "vote":
            return self.cast_vote(kwargs["candidate_id"])
        if action == "refresh":
            return self.refresh()
        if action == "disconnect":
            return self._run_async(self.client.reset("user disconnected"))
        raise ValueError(f"Unknown action: {action}")

    def connect(self) -> ConnectWalletOutputDto:
        """ウォレットに接続する."""
        result = self._run_async(self.client.connect())
        if not result.success:
            self.logger.info(f"Connect finished with {result.status.value}")
        return result

    def cast_vote(self, candidate_id: int) -> bool:
        """投票を開始する（完了を待たない）.

        Returns:
            投票を開始した場合True
        """
        pending: Future | None = self.session.get(PENDING_VOTE_KEY)
        if pending is not None and not pending.done():
            return False
        if not self.load_data().can_vote:
            return False

        self.session.set(
            PENDING_VOTE_KEY, self._submit_async(self.client.cast_vote(candidate_id))
        )
        self.session.delete(LAST_VOTE_RESULT_KEY)
        return True

    def poll_vote_result(self) -> CastVoteOutputDto | None:
        """投票が完了していれば結果を返す（結果は最後の1件を保持）."""
        pending: Future | None = self.session.get(PENDING_VOTE_KEY)
        if pending is not None and pending.done():
            self.session.delete(PENDING_VOTE_KEY)
            try:
                result = pending.result()
            except Exception as e:
                self.logger.error(f"Vote failed unexpectedly: {e}")
                result = CastVoteOutputDto(
                    status=CastVoteStatus.FAILED, error_message=str(e)
                )
            self.session.set(LAST_VOTE_RESULT_KEY, result)
        return self.session.get(LAST_VOTE_RESULT_KEY)

    def refresh(self) -> bool:
        """集計を読み直す."""
        result = self._run_async(self.client.refresh())
        return result is not None and result.applied

    def to_dataframe(self, state: ViewState) -> pd.DataFrame:
        """集計をDataFrameに変換する."""
        return pd.DataFrame(
            [
                {
                    "ID": candidate.id,
                    "Candidate": candidate.name,
                    "Votes": candidate.vote_count,
                    "Share": candidate.percentage_label,
                }
                for candidate in state.candidates
            ],
            columns=["ID", "Candidate", "Votes", "Share"],
        )
