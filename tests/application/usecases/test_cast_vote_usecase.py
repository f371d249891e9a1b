"""CastVoteUseCase のテスト."""

import asyncio

import pytest

from src.application.dtos.ballot_dto import CastVoteInputDto, CastVoteStatus
from src.domain.exceptions import (
    AlreadyVotedException,
    LedgerUnavailableException,
    UserDeclinedException,
    WalletProviderException,
)
from src.domain.value_objects.vote_transaction import TransactionPhase
from tests.fixtures.ballot_fakes import (
    ACCOUNT_A,
    FakeBallotContract,
    FakeBinder,
    FakeWallet,
    build_client,
    make_candidates,
)


async def _connected_client(display_seconds: float = 4.0, **contract_kwargs):
    binder = FakeBinder(
        lambda signer: FakeBallotContract(signer_account=signer, **contract_kwargs)
    )
    client = build_client(binder=binder, display_seconds=display_seconds)
    await client.connect()
    return client, binder.bound[0]


class TestCastVoteGuards:
    """投票開始前の判定."""

    @pytest.mark.asyncio
    async def test_not_connected(self) -> None:
        client = build_client()

        result = await client.cast_vote(1)

        assert result.status is CastVoteStatus.NOT_CONNECTED
        assert client.cast_vote_usecase.phase is TransactionPhase.IDLE

    @pytest.mark.asyncio
    async def test_already_voted_account_cannot_submit(self) -> None:
        client, contract = await _connected_client(voted={ACCOUNT_A})

        result = await client.cast_vote(1)

        assert result.status is CastVoteStatus.ALREADY_VOTED
        assert contract.submitted == []
        assert not client.cast_vote_usecase.can_submit()

    @pytest.mark.asyncio
    async def test_concurrent_attempt_is_rejected(self) -> None:
        client, contract = await _connected_client()
        contract.inclusion_gate = asyncio.Event()

        first = asyncio.create_task(client.cast_vote(1))
        await asyncio.sleep(0)

        state = client.view_state()
        assert state.tx_phase is TransactionPhase.PENDING_INCLUSION
        assert state.tx_candidate_id == 1
        assert not state.can_vote

        second = await client.cast_vote(2)
        assert second.status is CastVoteStatus.BUSY

        contract.inclusion_gate.set()
        result = await first

        assert result.status is CastVoteStatus.SUCCEEDED
        assert contract.submitted == [1]

    @pytest.mark.asyncio
    async def test_wrong_network_stays_idle(self) -> None:
        client, contract = await _connected_client()
        client.wallet.chain_id = "0x1"
        client.wallet.responses["wallet_switchEthereumChain"] = (
            WalletProviderException(4001, "User rejected the request.")
        )

        result = await client.cast_vote(1)

        assert result.status is CastVoteStatus.WRONG_NETWORK
        assert client.cast_vote_usecase.phase is TransactionPhase.IDLE
        assert client.view_state().network_mismatch is True
        assert contract.submitted == []


class TestCastVoteLifecycle:
    """投票ライフサイクルのテスト."""

    @pytest.mark.asyncio
    async def test_success_refreshes_and_returns_to_idle(self) -> None:
        client, contract = await _connected_client(
            display_seconds=0.01, candidates=make_candidates(0, 2)
        )

        result = await client.cast_vote(1)

        assert result.status is CastVoteStatus.SUCCEEDED
        assert result.tx_hash == f"0x{1:064x}"
        state = client.view_state()
        assert state.tx_phase is TransactionPhase.SUCCEEDED
        assert state.has_voted is True
        assert [c.vote_count for c in state.candidates] == [1, 2]

        await asyncio.sleep(0.05)

        assert client.cast_vote_usecase.phase is TransactionPhase.IDLE
        assert client.view_state().tx_phase is TransactionPhase.IDLE
        assert not client.view_state().can_vote

    @pytest.mark.asyncio
    async def test_ledger_already_voted_is_not_a_failure(self) -> None:
        client, contract = await _connected_client()
        contract.submit_error = AlreadyVotedException(ACCOUNT_A)

        result = await client.cast_vote(1)

        assert result.status is CastVoteStatus.ALREADY_VOTED
        state = client.view_state()
        assert state.tx_phase is TransactionPhase.IDLE
        assert state.has_voted is True

    @pytest.mark.asyncio
    async def test_declined_signature_fails_then_idles(self) -> None:
        client, contract = await _connected_client(display_seconds=0.01)
        contract.submit_error = UserDeclinedException("vote signature")

        result = await client.cast_vote(1)

        assert result.status is CastVoteStatus.FAILED
        assert client.view_state().tx_phase is TransactionPhase.FAILED
        assert client.cast_vote_usecase.transaction.error_message == result.error_message

        await asyncio.sleep(0.05)

        assert client.cast_vote_usecase.phase is TransactionPhase.IDLE
        assert client.view_state().can_vote

    @pytest.mark.asyncio
    async def test_reverted_transaction_fails(self) -> None:
        client, contract = await _connected_client()
        contract.inclusion_result = False

        result = await client.cast_vote(2)

        assert result.status is CastVoteStatus.FAILED
        assert result.tx_hash is not None
        state = client.view_state()
        assert state.tx_phase is TransactionPhase.FAILED
        assert state.has_voted is False

    @pytest.mark.asyncio
    async def test_unconfirmed_inclusion_fails(self) -> None:
        client, contract = await _connected_client()

        async def no_receipt(tx_hash):
            raise LedgerUnavailableException("wait_for_inclusion", "no receipt")

        contract.wait_for_inclusion = no_receipt

        result = await client.cast_vote(1)

        assert result.status is CastVoteStatus.FAILED
        assert "no receipt" in result.error_message

    @pytest.mark.asyncio
    async def test_ledger_failure_on_submit_fails_then_allows_retry(self) -> None:
        """送信前の台帳エラー（ガス見積もり失敗など）でもfailedを経てidleへ戻る."""
        client, contract = await _connected_client(display_seconds=0.01)
        contract.submit_error = LedgerUnavailableException(
            "build vote transaction", "rpc down"
        )

        result = await client.cast_vote(1)

        assert result.status is CastVoteStatus.FAILED
        assert "rpc down" in result.error_message
        assert client.view_state().tx_phase is TransactionPhase.FAILED

        await asyncio.sleep(0.05)
        assert client.cast_vote_usecase.phase is TransactionPhase.IDLE

        contract.submit_error = None
        retry = await client.cast_vote(1)

        assert retry.status is CastVoteStatus.SUCCEEDED
        assert contract.submitted == [1]

    @pytest.mark.asyncio
    async def test_unexpected_error_during_inclusion_does_not_block(self) -> None:
        client, contract = await _connected_client(display_seconds=0.01)

        async def wallet_gone(tx_hash):
            raise WalletProviderException(
                WalletProviderException.DISCONNECTED, "wallet went away"
            )

        contract.wait_for_inclusion = wallet_gone

        result = await client.cast_vote(1)

        assert result.status is CastVoteStatus.FAILED
        assert result.tx_hash is not None
        assert client.view_state().tx_phase is TransactionPhase.FAILED

        await asyncio.sleep(0.05)
        assert client.cast_vote_usecase.phase is TransactionPhase.IDLE
        assert client.cast_vote_usecase.can_submit()

    @pytest.mark.asyncio
    async def test_reset_mid_flight_drops_result(self) -> None:
        client, contract = await _connected_client()
        contract.inclusion_gate = asyncio.Event()

        task = asyncio.create_task(client.cast_vote(1))
        await asyncio.sleep(0)
        await client.reset("wallet account changed")
        contract.inclusion_gate.set()
        result = await task

        assert result.status is CastVoteStatus.STALE
        state = client.view_state()
        assert state.tx_phase is TransactionPhase.IDLE
        assert state.account is None
        assert client.cast_vote_usecase.phase is TransactionPhase.IDLE

    @pytest.mark.asyncio
    async def test_execute_accepts_input_dto(self) -> None:
        client, contract = await _connected_client()

        result = await client.cast_vote_usecase.execute(CastVoteInputDto(candidate_id=2))

        assert result.status is CastVoteStatus.SUCCEEDED
        assert contract.submitted == [2]


class TestCastVoteWithoutWallet:
    """ウォレットがない環境."""

    @pytest.mark.asyncio
    async def test_cannot_vote_without_wallet(self) -> None:
        client = build_client(wallet=FakeWallet(available=False))
        await client.connect()

        result = await client.cast_vote(1)

        assert result.status is CastVoteStatus.NOT_CONNECTED
