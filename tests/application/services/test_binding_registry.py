"""BindingRegistry のテスト."""

import pytest

from src.application.services.binding_registry import BindingRegistry, ContractBinding
from src.domain.entities.session import Session
from src.domain.exceptions import StaleBindingRaceException
from tests.fixtures.ballot_fakes import ACCOUNT_A, FakeBallotContract, FakeWatch


class TestBindingRegistry:
    """epoch管理のテスト."""

    def test_establish_advances_epoch(self) -> None:
        registry = BindingRegistry()

        binding = registry.establish(ACCOUNT_A, 8119, FakeBallotContract())

        assert binding.epoch == 1
        assert registry.epoch == 1
        assert registry.current is binding
        assert registry.is_current(binding)
        assert binding.account == ACCOUNT_A
        assert binding.session.network_id == 8119

    @pytest.mark.asyncio
    async def test_invalidate_closes_contract_and_subscription(self) -> None:
        registry = BindingRegistry()
        contract = FakeBallotContract()
        binding = registry.establish(ACCOUNT_A, 8119, contract)
        subscription = FakeWatch(handler=None)
        assert await registry.attach_subscription(binding, subscription)

        epoch = await registry.invalidate("test")

        assert epoch == 2
        assert registry.current is None
        assert not registry.is_current(binding)
        assert contract.closed
        assert subscription.close_count == 1

    @pytest.mark.asyncio
    async def test_attach_to_stale_binding_closes_subscription(self) -> None:
        registry = BindingRegistry()
        binding = registry.establish(ACCOUNT_A, 8119, FakeBallotContract())
        await registry.invalidate("test")
        subscription = FakeWatch(handler=None)

        attached = await registry.attach_subscription(binding, subscription)

        assert attached is False
        assert subscription.close_count == 1

    @pytest.mark.asyncio
    async def test_attach_replaces_previous_subscription(self) -> None:
        registry = BindingRegistry()
        binding = registry.establish(ACCOUNT_A, 8119, FakeBallotContract())
        first = FakeWatch(handler=None)
        second = FakeWatch(handler=None)

        await registry.attach_subscription(binding, first)
        await registry.attach_subscription(binding, second)

        assert first.close_count == 1
        assert second.close_count == 0

    def test_establish_over_existing_binding_closes_old_contract(self) -> None:
        registry = BindingRegistry()
        old_contract = FakeBallotContract()
        old = registry.establish(ACCOUNT_A, 8119, old_contract)

        new = registry.establish(ACCOUNT_A, 8119, FakeBallotContract())

        assert old_contract.closed
        assert not registry.is_current(old)
        assert registry.is_current(new)
        assert new.epoch == 2

    @pytest.mark.asyncio
    async def test_invalidate_without_binding(self) -> None:
        registry = BindingRegistry()

        assert await registry.invalidate() == 1
        assert not registry.is_current(None)

    def test_binding_without_account_rejects_signer_lookup(self) -> None:
        """アカウントのないバインディングから署名者を取り出すと例外."""
        binding = ContractBinding(
            epoch=3,
            session=Session(account_address=None, network_id=8119, epoch=3),
            contract=FakeBallotContract(),
        )

        with pytest.raises(StaleBindingRaceException) as exc_info:
            _ = binding.account

        assert exc_info.value.details["epoch"] == 3
