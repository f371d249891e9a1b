"""Dependency injection container.

dependency-injector の DeclarativeContainer で、インフラ・ユースケース・
サービスの3層を組み立てる。プレゼンターやCLIは
``container.use_cases.cast_vote_usecase()`` のように取得する。

BallotClient を構成するコンポーネントは、1つのクライアント内で状態を
共有する必要があるため Singleton として提供する。
"""

from __future__ import annotations

from dependency_injector import containers, providers

from src.application.services.ballot_client import BallotClient
from src.application.services.binding_registry import BindingRegistry
from src.application.services.view_state_store import ViewStateStore
from src.application.services.vote_event_subscriber import VoteEventSubscriber
from src.application.usecases.cast_vote_usecase import CastVoteUseCase
from src.application.usecases.connect_wallet_usecase import ConnectWalletUseCase
from src.application.usecases.refresh_tally_usecase import RefreshTallyUseCase
from src.domain.services.network_identity_guard import NetworkIdentityGuard
from src.infrastructure.config.contract_artifact import load_contract_artifact
from src.infrastructure.config.settings import Settings, get_settings
from src.infrastructure.external.ballot_contract import (
    Web3ContractBinder,
    create_async_web3,
)
from src.infrastructure.external.wallet_bridge import JsonRpcWalletProvider


class InfrastructureContainer(containers.DeclarativeContainer):
    """外部接続（ウォレット・台帳RPC・コントラクト設定）."""

    settings = providers.Dependency(instance_of=Settings)

    network = providers.Singleton(
        lambda settings: settings.network_descriptor(), settings
    )

    contract_artifact = providers.Singleton(
        lambda settings: load_contract_artifact(
            settings.contract_address, settings.contract_abi_path
        ),
        settings,
    )

    wallet = providers.Singleton(
        JsonRpcWalletProvider,
        endpoint=settings.provided.wallet_rpc_url,
        timeout=settings.provided.wallet_timeout,
        poll_interval=settings.provided.wallet_poll_interval,
    )

    web3 = providers.Singleton(create_async_web3, settings.provided.rpc_url)

    contract_binder = providers.Singleton(
        Web3ContractBinder,
        w3=web3,
        wallet=wallet,
        event_poll_interval=settings.provided.event_poll_interval,
        receipt_timeout=settings.provided.tx_receipt_timeout,
    )


class ServiceContainer(containers.DeclarativeContainer):
    """クライアント内で共有される状態を持つサービス."""

    infrastructure = providers.DependenciesContainer()

    binding_registry = providers.Singleton(BindingRegistry)
    view_state_store = providers.Singleton(ViewStateStore)
    vote_event_subscriber = providers.Singleton(VoteEventSubscriber)
    network_identity_guard = providers.Singleton(
        NetworkIdentityGuard, wallet=infrastructure.wallet
    )


class UseCaseContainer(containers.DeclarativeContainer):
    """ユースケース."""

    settings = providers.Dependency(instance_of=Settings)
    infrastructure = providers.DependenciesContainer()
    services = providers.DependenciesContainer()

    refresh_tally_usecase = providers.Singleton(
        RefreshTallyUseCase,
        registry=services.binding_registry,
        store=services.view_state_store,
    )

    connect_wallet_usecase = providers.Singleton(
        ConnectWalletUseCase,
        wallet=infrastructure.wallet,
        guard=services.network_identity_guard,
        binder=infrastructure.contract_binder,
        registry=services.binding_registry,
        store=services.view_state_store,
        tally_reader=refresh_tally_usecase,
        subscriber=services.vote_event_subscriber,
        network=infrastructure.network,
        contract_address=infrastructure.contract_artifact.provided.address,
        contract_abi=infrastructure.contract_artifact.provided.abi,
    )

    cast_vote_usecase = providers.Singleton(
        CastVoteUseCase,
        registry=services.binding_registry,
        store=services.view_state_store,
        tally_reader=refresh_tally_usecase,
        guard=services.network_identity_guard,
        network=infrastructure.network,
        display_seconds=settings.provided.tx_status_display_seconds,
    )


class Container(containers.DeclarativeContainer):
    """アプリケーション全体のコンテナ."""

    settings = providers.Object(get_settings())

    infrastructure = providers.Container(InfrastructureContainer, settings=settings)

    services = providers.Container(ServiceContainer, infrastructure=infrastructure)

    use_cases = providers.Container(
        UseCaseContainer,
        settings=settings,
        infrastructure=infrastructure,
        services=services,
    )

    ballot_client = providers.Singleton(
        BallotClient,
        wallet=infrastructure.wallet,
        registry=services.binding_registry,
        store=services.view_state_store,
        connect_wallet=use_cases.connect_wallet_usecase,
        cast_vote=use_cases.cast_vote_usecase,
        refresh_tally=use_cases.refresh_tally_usecase,
        network=infrastructure.network,
    )

    @classmethod
    def create_for_environment(cls, settings: Settings | None = None) -> Container:
        """環境（.env・環境変数）の設定からコンテナを生成する."""
        container = cls()
        if settings is not None:
            container.settings.override(providers.Object(settings))
        return container


_container: Container | None = None


def init_container(settings: Settings | None = None) -> Container:
    """プロセス全体のコンテナを初期化する."""
    global _container
    _container = Container.create_for_environment(settings)
    return _container


def get_container() -> Container:
    """初期化済みのコンテナを取得する.

    Raises:
        RuntimeError: init_container() が呼ばれていない場合
    """
    if _container is None:
        raise RuntimeError("Container is not initialized")
    return _container
