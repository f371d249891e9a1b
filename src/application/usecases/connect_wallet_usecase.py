"""ウォレット接続のユースケース（Session Connector）."""

from __future__ import annotations

from typing import Any

from src.application.dtos.ballot_dto import ConnectStatus, ConnectWalletOutputDto
from src.application.services.binding_registry import BindingRegistry, ContractBinding
from src.application.services.view_state_store import ViewStateStore
from src.application.services.vote_event_subscriber import VoteEventSubscriber
from src.application.usecases.refresh_tally_usecase import RefreshTallyUseCase
from src.common.logging import get_logger
from src.domain.exceptions import (
    ContractArtifactException,
    LedgerUnavailableException,
    StaleBindingRaceException,
    WalletProviderException,
)
from src.domain.services.interfaces.ballot_contract_service import (
    IBallotContractBinder,
)
from src.domain.services.interfaces.wallet_provider import IWalletProvider
from src.domain.services.network_identity_guard import (
    NetworkCheckResult,
    NetworkIdentityGuard,
)
from src.domain.value_objects.network_descriptor import (
    NetworkDescriptor,
    parse_chain_id,
)


logger = get_logger(__name__)


class ConnectWalletUseCase:
    """ウォレットセッションを確立し、コントラクトへ束縛する.

    ネットワークガードを通過するまでアカウントは「接続済み」とみなさない。
    成功時のみ、セッション状態をちょうど1回変更する。
    """

    def __init__(
        self,
        wallet: IWalletProvider,
        guard: NetworkIdentityGuard,
        binder: IBallotContractBinder,
        registry: BindingRegistry,
        store: ViewStateStore,
        tally_reader: RefreshTallyUseCase,
        subscriber: VoteEventSubscriber,
        network: NetworkDescriptor,
        contract_address: str,
        contract_abi: list[dict[str, Any]],
    ) -> None:
        """ユースケースを初期化する.

        Args:
            wallet: ウォレットプロバイダー
            guard: ネットワーク識別ガード
            binder: コントラクトハンドル生成
            registry: バインディングレジストリ
            store: ビュー状態ストア
            tally_reader: 集計リフレッシュ
            subscriber: VotedEvent 購読
            network: 想定ネットワーク
            contract_address: デプロイ済みコントラクトのアドレス
            contract_abi: コントラクトのABI
        """
        self.wallet = wallet
        self.guard = guard
        self.binder = binder
        self.registry = registry
        self.store = store
        self.tally_reader = tally_reader
        self.subscriber = subscriber
        self.network = network
        self.contract_address = contract_address
        self.contract_abi = contract_abi

    async def execute(self) -> ConnectWalletOutputDto:
        """ウォレットに接続する."""
        if not self.wallet.is_available():
            self.store.set_no_wallet(True)
            return ConnectWalletOutputDto(
                status=ConnectStatus.NO_PROVIDER,
                error_message="No wallet provider is configured",
            )

        self.store.set_connecting(True)
        try:
            return await self._connect()
        finally:
            self.store.set_connecting(False)

    async def _connect(self) -> ConnectWalletOutputDto:
        try:
            accounts = await self.wallet.request("eth_requestAccounts")
        except WalletProviderException as e:
            if e.is_disconnected:
                logger.warning(f"Wallet is unreachable: {e}")
                self.store.set_no_wallet(True)
                return ConnectWalletOutputDto(
                    status=ConnectStatus.NO_PROVIDER, error_message=e.message
                )
            logger.info(f"Account access declined: {e}")
            return ConnectWalletOutputDto(
                status=ConnectStatus.DECLINED, error_message=e.message
            )

        self.store.set_no_wallet(False)
        if not accounts:
            return ConnectWalletOutputDto(
                status=ConnectStatus.DECLINED,
                error_message="Wallet returned no accounts",
            )

        result = await self.guard.ensure_network(self.network)
        if result is NetworkCheckResult.NEEDS_MANUAL_SWITCH:
            self.store.set_network_mismatch(True)
            return ConnectWalletOutputDto(
                status=ConnectStatus.WRONG_NETWORK,
                error_message=f"Please switch your wallet to {self.network.chain_name}",
            )

        # 切り替え中にアカウントが変わった可能性があるため、確立直前に読み直す
        try:
            account, chain_id = await self._read_wallet_identity(accounts[0])
        except WalletProviderException as e:
            logger.warning(f"Failed to re-read wallet identity: {e}")
            return ConnectWalletOutputDto(
                status=ConnectStatus.DECLINED, error_message=e.message
            )

        if chain_id != self.network.chain_id:
            self.store.set_network_mismatch(True)
            return ConnectWalletOutputDto(
                status=ConnectStatus.WRONG_NETWORK,
                error_message=f"Please switch your wallet to {self.network.chain_name}",
            )

        binding = await self._establish(account, chain_id)
        # 初回読み取りより先に監視を始め、その間に記録された投票を取りこぼさない
        subscribe_error = await self._arm_subscription(binding)
        await self.tally_reader.refresh_all(binding)
        if subscribe_error is not None and self.registry.is_current(binding):
            self.store.mark_tally_error(
                f"Live vote updates are unavailable: {subscribe_error}"
            )

        return ConnectWalletOutputDto(status=ConnectStatus.CONNECTED, account=account)

    async def _read_wallet_identity(self, fallback_account: str) -> tuple[str, int]:
        accounts = await self.wallet.request("eth_accounts")
        chain = await self.wallet.request("eth_chainId")
        account = accounts[0] if accounts else fallback_account
        chain_id = parse_chain_id(chain)
        return account, chain_id if chain_id is not None else -1

    async def _establish(self, account: str, chain_id: int) -> ContractBinding:
        if self.registry.current is not None:
            await self.registry.invalidate("reconnect")

        contract = self.binder.bind(self.contract_address, self.contract_abi, account)
        binding = self.registry.establish(account, chain_id, contract)
        self.store.begin_session(binding.session)
        return binding

    async def _arm_subscription(self, binding: ContractBinding) -> str | None:
        """VotedEvent の購読を開始する.

        Returns:
            購読できなかった場合はその理由、成功時はNone
        """

        async def on_vote_recorded() -> None:
            await self.tally_reader.refresh_all(binding)

        try:
            subscription = await self.subscriber.subscribe(binding, on_vote_recorded)
        except (
            LedgerUnavailableException,
            ContractArtifactException,
            StaleBindingRaceException,
        ) as e:
            logger.error(f"Failed to subscribe to vote events: {e}")
            return e.message
        await self.registry.attach_subscription(binding, subscription)
        return None
