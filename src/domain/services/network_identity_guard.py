"""ネットワーク識別ガード ドメインサービス."""

from __future__ import annotations

from enum import Enum

from src.common.logging import get_logger
from src.domain.exceptions import WalletProviderException
from src.domain.services.interfaces.wallet_provider import IWalletProvider
from src.domain.value_objects.network_descriptor import NetworkDescriptor


logger = get_logger(__name__)


class NetworkCheckResult(Enum):
    """ensure_networkの結果."""

    OK = "ok"
    NEEDS_MANUAL_SWITCH = "needs_manual_switch"


class NetworkIdentityGuard:
    """ウォレットセッションを想定ネットワーク上に揃える.

    ウォレットが拒否した場合も例外にはせず NEEDS_MANUAL_SWITCH を返す。
    UIは回復可能な「ネットワーク違い」状態を表示する。
    """

    def __init__(self, wallet: IWalletProvider) -> None:
        self.wallet = wallet

    async def current_chain_id(self) -> str | None:
        """ウォレットの現在のチェーンID（16進文字列）."""
        return await self.wallet.request("eth_chainId")

    async def ensure_network(self, expected: NetworkDescriptor) -> NetworkCheckResult:
        """想定ネットワークでなければ切り替え（必要なら追加）を要求する.

        Args:
            expected: 接続すべきネットワーク

        Returns:
            一致済み・切り替え成功ならOK、それ以外はNEEDS_MANUAL_SWITCH
        """
        try:
            current = await self.current_chain_id()
        except WalletProviderException as e:
            logger.warning(f"Failed to read wallet chain id: {e}")
            return NetworkCheckResult.NEEDS_MANUAL_SWITCH

        if expected.matches(current):
            return NetworkCheckResult.OK

        logger.info(
            f"Wallet is on chain {current}, requesting switch to "
            f"{expected.chain_id_hex} ({expected.chain_name})"
        )
        try:
            await self._switch(expected)
            return NetworkCheckResult.OK
        except WalletProviderException as e:
            if e.code != WalletProviderException.UNRECOGNIZED_CHAIN:
                logger.warning(f"Failed to switch network: {e}")
                return NetworkCheckResult.NEEDS_MANUAL_SWITCH

        # ウォレットが未知のネットワーク → 追加してから一度だけ再試行
        try:
            await self.wallet.request(
                "wallet_addEthereumChain", expected.to_add_chain_params()
            )
            await self._switch(expected)
        except WalletProviderException as e:
            logger.warning(f"Failed to add {expected.chain_name} network: {e}")
            return NetworkCheckResult.NEEDS_MANUAL_SWITCH

        return NetworkCheckResult.OK

    async def _switch(self, expected: NetworkDescriptor) -> None:
        await self.wallet.request(
            "wallet_switchEthereumChain", expected.to_switch_params()
        )
