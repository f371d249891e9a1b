"""投票クライアントのオーケストレーター.

プロセス内で1つだけ生成し、接続・投票・集計・購読の各コンポーネントを
束ねる。ウォレットのアカウント・ネットワーク変更通知を受けると、
コールドスタート相当までリセットする。
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from src.application.dtos.ballot_dto import (
    CastVoteInputDto,
    CastVoteOutputDto,
    ConnectWalletOutputDto,
    RefreshTallyOutputDto,
)
from src.application.dtos.view_state_dto import ViewState
from src.application.services.binding_registry import BindingRegistry
from src.application.services.view_state_store import (
    ViewStateListener,
    ViewStateStore,
)
from src.application.usecases.cast_vote_usecase import CastVoteUseCase
from src.application.usecases.connect_wallet_usecase import ConnectWalletUseCase
from src.application.usecases.refresh_tally_usecase import RefreshTallyUseCase
from src.common.logging import get_logger
from src.domain.services.interfaces.wallet_provider import IWalletProvider
from src.domain.value_objects.network_descriptor import (
    NetworkDescriptor,
    parse_chain_id,
)


logger = get_logger(__name__)

ACCOUNTS_CHANGED = "accountsChanged"
CHAIN_CHANGED = "chainChanged"


class BallotClient:
    """ウォレット・台帳・UI状態を調停するクライアント."""

    def __init__(
        self,
        wallet: IWalletProvider,
        registry: BindingRegistry,
        store: ViewStateStore,
        connect_wallet: ConnectWalletUseCase,
        cast_vote: CastVoteUseCase,
        refresh_tally: RefreshTallyUseCase,
        network: NetworkDescriptor,
    ) -> None:
        self.wallet = wallet
        self.registry = registry
        self.store = store
        self.connect_wallet = connect_wallet
        self.cast_vote_usecase = cast_vote
        self.refresh_tally = refresh_tally
        self.network = network
        self._started = False

    async def start(self) -> None:
        """ウォレットの変更通知を購読する（冪等）."""
        if self._started:
            return
        if not self.wallet.is_available():
            self.store.set_no_wallet(True)
            logger.warning("No wallet provider available; running read-only")
            return
        self.wallet.on(ACCOUNTS_CHANGED, self._on_accounts_changed)
        self.wallet.on(CHAIN_CHANGED, self._on_chain_changed)
        self._started = True

    async def connect(self) -> ConnectWalletOutputDto:
        """ウォレットに接続する."""
        await self.start()
        return await self.connect_wallet.execute()

    async def cast_vote(self, candidate_id: int) -> CastVoteOutputDto:
        """候補者に投票する."""
        return await self.cast_vote_usecase.execute(
            CastVoteInputDto(candidate_id=candidate_id)
        )

    async def refresh(self) -> RefreshTallyOutputDto | None:
        """現在のバインディングで集計とVoterStatusを読み直す.

        Returns:
            未接続の場合はNone
        """
        binding = self.registry.current
        if binding is None:
            return None
        return await self.refresh_tally.refresh_all(binding)

    def view_state(self) -> ViewState:
        """現在のViewState."""
        return self.store.snapshot()

    def add_listener(self, listener: ViewStateListener) -> Callable[[], None]:
        """ViewStateの変更通知を登録する."""
        return self.store.add_listener(listener)

    async def reset(self, reason: str = "session changed") -> None:
        """バインディング・購読・コントローラ・ビュー状態をすべて破棄する."""
        logger.info(f"Resetting ballot client: {reason}")
        self.cast_vote_usecase.reset()
        try:
            await self.registry.invalidate(reason)
        finally:
            self.store.reset()

    async def close(self) -> None:
        """通知の購読を解除し、ウォレット接続を閉じる."""
        if self._started:
            self.wallet.remove_listener(ACCOUNTS_CHANGED, self._on_accounts_changed)
            self.wallet.remove_listener(CHAIN_CHANGED, self._on_chain_changed)
            self._started = False
        await self.reset("client closed")
        await self.wallet.close()

    async def _on_accounts_changed(self, accounts: Any) -> None:
        binding = self.registry.current
        if binding is None:
            return

        account = accounts[0] if accounts else None
        if binding.session.matches(account, binding.session.network_id):
            return
        await self.reset("wallet account changed")

    async def _on_chain_changed(self, chain: Any) -> None:
        chain_id = parse_chain_id(chain)
        binding = self.registry.current
        if binding is None:
            # 未接続中に正しいネットワークへ切り替えられた場合は警告だけ消す
            if chain_id == self.network.chain_id:
                self.store.set_network_mismatch(False)
            return

        if binding.session.matches(binding.session.account_address, chain_id):
            return
        await self.reset("wallet network changed")
        if chain_id != self.network.chain_id:
            self.store.set_network_mismatch(True)
