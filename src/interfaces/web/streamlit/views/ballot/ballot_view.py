"""投票ページ.

未接続時はウォレット接続画面、接続後は候補者カードと集計を描画する。
集計とトランザクション状態は fragment の定期再実行で反映する。
"""

import streamlit as st

from src.application.dtos.ballot_dto import (
    CastVoteOutputDto,
    CastVoteStatus,
    ConnectStatus,
)
from src.application.dtos.view_state_dto import CandidateView, ViewState
from src.domain.exceptions import ContractArtifactException
from src.domain.value_objects.vote_transaction import TransactionPhase
from src.interfaces.web.streamlit.presenters.ballot_presenter import BallotPresenter
from src.interfaces.web.streamlit.views.ballot.constants import (
    FEATURES,
    get_party,
)


REFRESH_INTERVAL_SECONDS = 1.0

TX_STATUS_MESSAGES = {
    TransactionPhase.AWAITING_CONFIRMATION: (
        "info",
        "Please confirm the transaction in your wallet...",
    ),
    TransactionPhase.PENDING_INCLUSION: (
        "info",
        "⏳ Mining transaction on {network}... Please wait.",
    ),
    TransactionPhase.SUCCEEDED: ("success", "✅ Your vote has been recorded on-chain!"),
    TransactionPhase.FAILED: ("error", "❌ Transaction failed. Please try again."),
}


def render_ballot_page() -> None:
    """投票ページを描画する."""
    try:
        presenter = BallotPresenter()
    except ContractArtifactException as e:
        st.error(f"Ballot contract is not configured: {e.message}")
        return

    state = presenter.load_data()
    if not state.is_connected:
        render_connect_screen(presenter, state)
    else:
        render_ballot(presenter)


def render_connect_screen(presenter: BallotPresenter, state: ViewState) -> None:
    """ウォレット接続画面を描画する."""
    st.markdown("# 🗳️ RemoteChain")
    st.markdown("Blockchain-Powered Election System")
    st.caption(f"⛓️ {presenter.network.chain_name}")

    label = "Connecting..." if state.connecting else "🔐 Connect Wallet to Vote"
    if st.button(label, disabled=state.connecting, type="primary"):
        result = presenter.handle_action("connect")
        if result.status is ConnectStatus.CONNECTED:
            st.rerun()
        elif result.status is ConnectStatus.NO_PROVIDER:
            st.error(
                "No wallet found. Start a local wallet (e.g. Frame) "
                "to use this voting system."
            )
        elif result.status is ConnectStatus.DECLINED:
            st.warning("Wallet connection was declined.")

    state = presenter.load_data()
    if state.network_mismatch:
        st.error(
            f"Wrong network! Click connect again to switch to "
            f"{presenter.network.chain_name} automatically."
        )

    columns = st.columns(len(FEATURES))
    for column, (icon, text) in zip(columns, FEATURES):
        column.markdown(f"{icon} {text}")


@st.fragment(run_every=REFRESH_INTERVAL_SECONDS)
def render_ballot(presenter: BallotPresenter) -> None:
    """接続後の投票画面を描画する."""
    result = presenter.poll_vote_result()
    state = presenter.load_data()
    if not state.is_connected:
        # アカウント・ネットワーク切り替えでリセットされた
        st.rerun(scope="app")

    _render_header(presenter, state)

    st.subheader("Cast Your Vote")
    st.markdown(
        "Select one party. Your vote will be permanently recorded on the "
        f"{presenter.network.chain_name} blockchain."
    )

    _render_tx_status(presenter, state, result)

    if state.has_voted:
        st.success(
            "✅ **Thank you for voting!** Your vote is permanently recorded "
            "on the blockchain."
        )
    if state.network_mismatch:
        st.error(f"Wrong network! Switch your wallet to {presenter.network.chain_name}.")
    if state.tally_error:
        st.warning(f"Could not refresh the tally: {state.tally_error}")

    for candidate in state.candidates:
        _render_candidate_card(presenter, state, candidate)

    st.markdown(f"Total votes cast: **{state.total_votes}**")

    with st.expander("Tally table"):
        st.dataframe(presenter.to_dataframe(state), hide_index=True)

    _render_footer(presenter)


def _render_header(presenter: BallotPresenter, state: ViewState) -> None:
    left, right = st.columns([3, 1])
    left.markdown(f"**🗳️ RemoteChain** · {presenter.network.chain_name}")
    right.markdown(f"🟢 `{state.short_account}`")


def _render_tx_status(
    presenter: BallotPresenter,
    state: ViewState,
    result: CastVoteOutputDto | None,
) -> None:
    message = TX_STATUS_MESSAGES.get(state.tx_phase)
    if message is not None:
        kind, text = message
        getattr(st, kind)(text.format(network=presenter.network.chain_name))
    elif (
        result is not None
        and result.status is CastVoteStatus.WRONG_NETWORK
        and not state.network_mismatch
    ):
        st.error(result.error_message)


def _render_candidate_card(
    presenter: BallotPresenter, state: ViewState, candidate: CandidateView
) -> None:
    party = get_party(candidate.name)

    with st.container(border=True):
        icon, body, action = st.columns([1, 6, 2])
        icon.markdown(f"## {party.symbol}")
        body.markdown(f"**{candidate.name}**")
        body.markdown(
            f'<div style="background:#1e293b;border-radius:4px;height:8px">'
            f'<div style="width:{candidate.bar_width:.1f}%;background:{party.color};'
            f'height:8px;border-radius:4px"></div></div>',
            unsafe_allow_html=True,
        )
        stats = f"{candidate.vote_count} votes"
        if state.total_votes > 0:
            stats += f" · {candidate.percentage_label}"
        body.caption(stats)

        label = "Voted" if state.has_voted else "Vote"
        if action.button(
            label,
            key=f"vote_{candidate.id}",
            disabled=not state.can_vote,
            help=f"Vote for {candidate.name}",
        ):
            presenter.handle_action("vote", candidate_id=candidate.id)


def _render_footer(presenter: BallotPresenter) -> None:
    url = presenter.explorer_url
    if url:
        st.caption(
            f"Votes stored on [{presenter.network.chain_name}]({url}) "
            "• Immutable & Publicly Verifiable"
        )
