"""RefreshTallyUseCase のテスト."""

import asyncio

import pytest

from src.application.services.binding_registry import BindingRegistry
from src.application.services.view_state_store import ViewStateStore
from src.application.usecases.refresh_tally_usecase import RefreshTallyUseCase
from src.domain.exceptions import LedgerUnavailableException
from tests.fixtures.ballot_fakes import ACCOUNT_A, FakeBallotContract, make_candidates


def _setup(contract: FakeBallotContract):
    registry = BindingRegistry()
    store = ViewStateStore()
    binding = registry.establish(ACCOUNT_A, 8119, contract)
    store.begin_session(binding.session)
    return registry, store, binding, RefreshTallyUseCase(registry, store)


class TestRefreshTallyUseCase:
    """集計リフレッシュのテスト."""

    @pytest.mark.asyncio
    async def test_refresh_applies_snapshot(self) -> None:
        contract = FakeBallotContract(candidates=make_candidates(1, 2))
        _, store, binding, usecase = _setup(contract)

        result = await usecase.refresh(binding)

        assert result.applied
        assert result.snapshot.total_votes == 3
        assert store.snapshot().total_votes == 3

    @pytest.mark.asyncio
    async def test_stale_result_is_discarded(self) -> None:
        contract = FakeBallotContract(candidates=make_candidates(1, 2))
        contract.read_gate = asyncio.Event()
        registry, store, binding, usecase = _setup(contract)

        task = asyncio.create_task(usecase.refresh(binding))
        await asyncio.sleep(0)
        # 読み取り中にセッションが切り替わる
        await registry.invalidate("account changed")
        contract.read_gate.set()
        result = await task

        assert not result.applied
        assert store.snapshot().total_votes == 0

    @pytest.mark.asyncio
    async def test_closed_contract_is_silent(self) -> None:
        contract = FakeBallotContract(candidates=make_candidates(1))
        registry, store, binding, usecase = _setup(contract)
        await registry.invalidate("test")

        result = await usecase.refresh(binding)

        assert not result.applied
        assert result.error_message is None

    @pytest.mark.asyncio
    async def test_ledger_error_marks_tally_error(self) -> None:
        contract = FakeBallotContract(candidates=make_candidates(1))
        _, store, binding, usecase = _setup(contract)
        await usecase.refresh(binding)

        async def failing():
            raise LedgerUnavailableException("getAllCandidates", "timeout")

        contract.get_all_candidates = failing
        result = await usecase.refresh(binding)

        assert not result.applied
        assert "timeout" in result.error_message
        state = store.snapshot()
        assert state.tally_error == result.error_message
        assert state.total_votes == 1

    @pytest.mark.asyncio
    async def test_refresh_all_reads_voter_status(self) -> None:
        contract = FakeBallotContract(voted={ACCOUNT_A})
        _, store, binding, usecase = _setup(contract)

        await usecase.refresh_all(binding)

        assert store.has_voted is True

    @pytest.mark.asyncio
    async def test_voter_status_false_after_true_is_ignored(self) -> None:
        contract = FakeBallotContract(voted={ACCOUNT_A})
        _, store, binding, usecase = _setup(contract)
        await usecase.refresh_voter_status(binding)

        contract.voted.clear()
        value = await usecase.refresh_voter_status(binding)

        assert value is False
        assert store.has_voted is True
