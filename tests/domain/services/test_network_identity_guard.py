"""NetworkIdentityGuard のテスト."""

import pytest

from src.domain.exceptions import WalletProviderException
from src.domain.services.network_identity_guard import (
    NetworkCheckResult,
    NetworkIdentityGuard,
)
from tests.fixtures.ballot_fakes import SHARDEUM, FakeWallet


class TestEnsureNetwork:
    """ensure_network のテスト."""

    @pytest.mark.asyncio
    async def test_already_on_network_has_no_side_effect(self) -> None:
        wallet = FakeWallet(chain_id="0x1fb7")
        guard = NetworkIdentityGuard(wallet)

        result = await guard.ensure_network(SHARDEUM)

        assert result is NetworkCheckResult.OK
        assert wallet.methods() == ["eth_chainId"]

    @pytest.mark.asyncio
    async def test_switches_when_on_other_network(self) -> None:
        wallet = FakeWallet(chain_id="0x1")
        guard = NetworkIdentityGuard(wallet)

        result = await guard.ensure_network(SHARDEUM)

        assert result is NetworkCheckResult.OK
        assert wallet.calls[-1] == (
            "wallet_switchEthereumChain",
            [{"chainId": "0x1FB7"}],
        )

    @pytest.mark.asyncio
    async def test_adds_unknown_network_then_retries_switch_once(self) -> None:
        wallet = FakeWallet(chain_id="0x1")
        switch_attempts = []

        def switch(params):
            switch_attempts.append(params)
            if len(switch_attempts) == 1:
                raise WalletProviderException(
                    WalletProviderException.UNRECOGNIZED_CHAIN, "Unrecognized chain"
                )
            return None

        wallet.responses["wallet_switchEthereumChain"] = switch
        wallet.responses["wallet_addEthereumChain"] = None
        guard = NetworkIdentityGuard(wallet)

        result = await guard.ensure_network(SHARDEUM)

        assert result is NetworkCheckResult.OK
        assert wallet.methods() == [
            "eth_chainId",
            "wallet_switchEthereumChain",
            "wallet_addEthereumChain",
            "wallet_switchEthereumChain",
        ]
        add_params = wallet.calls[2][1]
        assert add_params == SHARDEUM.to_add_chain_params()

    @pytest.mark.asyncio
    async def test_user_rejects_switch(self) -> None:
        wallet = FakeWallet(chain_id="0x1")
        wallet.responses["wallet_switchEthereumChain"] = WalletProviderException(
            WalletProviderException.USER_REJECTED, "User rejected the request"
        )
        guard = NetworkIdentityGuard(wallet)

        result = await guard.ensure_network(SHARDEUM)

        assert result is NetworkCheckResult.NEEDS_MANUAL_SWITCH
        assert "wallet_addEthereumChain" not in wallet.methods()

    @pytest.mark.asyncio
    async def test_user_rejects_add(self) -> None:
        wallet = FakeWallet(chain_id="0x1")
        wallet.responses["wallet_switchEthereumChain"] = WalletProviderException(
            WalletProviderException.UNRECOGNIZED_CHAIN, "Unrecognized chain"
        )
        wallet.responses["wallet_addEthereumChain"] = WalletProviderException(
            WalletProviderException.USER_REJECTED, "User rejected the request"
        )
        guard = NetworkIdentityGuard(wallet)

        result = await guard.ensure_network(SHARDEUM)

        assert result is NetworkCheckResult.NEEDS_MANUAL_SWITCH

    @pytest.mark.asyncio
    async def test_unreadable_chain_id(self) -> None:
        wallet = FakeWallet()
        wallet.responses["eth_chainId"] = WalletProviderException(
            WalletProviderException.DISCONNECTED, "Disconnected"
        )
        guard = NetworkIdentityGuard(wallet)

        result = await guard.ensure_network(SHARDEUM)

        assert result is NetworkCheckResult.NEEDS_MANUAL_SWITCH

    @pytest.mark.asyncio
    async def test_idempotent(self) -> None:
        wallet = FakeWallet(chain_id="0x1")
        guard = NetworkIdentityGuard(wallet)

        first = await guard.ensure_network(SHARDEUM)
        calls_after_first = len(wallet.calls)
        second = await guard.ensure_network(SHARDEUM)

        assert first is second is NetworkCheckResult.OK
        assert len(wallet.calls) == calls_after_first + 1
