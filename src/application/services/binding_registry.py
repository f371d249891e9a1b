"""セッションとコントラクトバインディングの保持（epoch管理）.

(アカウント, ネットワーク) が変わるたびにepochを進め、古いepochで
発行された非同期処理の結果を破棄できるようにする。
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from src.common.logging import get_logger
from src.domain.entities.session import Session
from src.domain.exceptions import StaleBindingRaceException
from src.domain.services.interfaces.ballot_contract_service import IBallotContract


logger = get_logger(__name__)


class Closable(Protocol):
    """close()で解放できるリソース."""

    async def close(self) -> None: ...


@dataclass(frozen=True)
class ContractBinding:
    """あるepochにおけるセッションとコントラクトハンドルの組."""

    epoch: int
    session: Session
    contract: IBallotContract

    @property
    def account(self) -> str:
        """署名者アカウント.

        Raises:
            StaleBindingRaceException: セッションにアカウントがない場合
        """
        if self.session.account_address is None:
            raise StaleBindingRaceException(
                epoch=self.epoch, reason="binding has no signer account"
            )
        return self.session.account_address


class BindingRegistry:
    """クライアントインスタンス内で唯一のバインディングを保持する.

    invalidate() はepochを同期的に進めるため、await中の処理から見ても
    無効化は不可分に行われる。
    """

    def __init__(self) -> None:
        self._epoch = 0
        self._current: ContractBinding | None = None
        self._subscription: Closable | None = None

    @property
    def epoch(self) -> int:
        """現在のepoch."""
        return self._epoch

    @property
    def current(self) -> ContractBinding | None:
        """現在のバインディング（未接続ならNone）."""
        return self._current

    def is_current(self, binding: ContractBinding | None) -> bool:
        """bindingがまだ現在のものか."""
        return (
            binding is not None
            and self._current is binding
            and binding.epoch == self._epoch
        )

    def establish(
        self, account: str, network_id: int, contract: IBallotContract
    ) -> ContractBinding:
        """新しいepochでセッションとバインディングを確立する.

        既存のバインディングがあれば先に無効化される（購読は呼び出し側が
        invalidate() で解放済みであること）。
        """
        if self._current is not None:
            logger.warning(
                f"Replacing binding of epoch {self._current.epoch} without teardown"
            )
            self._current.contract.close()

        self._epoch += 1
        session = Session(
            account_address=account, network_id=network_id, epoch=self._epoch
        )
        self._current = ContractBinding(
            epoch=self._epoch, session=session, contract=contract
        )
        logger.info(
            f"Binding established for {session.short_account} "
            f"on chain {network_id} (epoch {self._epoch})"
        )
        return self._current

    async def attach_subscription(
        self, binding: ContractBinding, subscription: Closable
    ) -> bool:
        """bindingに紐づく購読を登録する.

        bindingが既に古い場合は購読を即座に解放してFalseを返す。
        """
        if not self.is_current(binding):
            await subscription.close()
            return False
        if self._subscription is not None:
            await self._subscription.close()
        self._subscription = subscription
        return True

    async def invalidate(self, reason: str = "session changed") -> int:
        """現在のバインディングと購読を破棄し、新しいepochを返す."""
        self._epoch += 1
        binding, self._current = self._current, None
        subscription, self._subscription = self._subscription, None

        try:
            if subscription is not None:
                await subscription.close()
        finally:
            if binding is not None:
                binding.contract.close()
                logger.info(
                    f"Binding of epoch {binding.epoch} invalidated: {reason}"
                )
        return self._epoch
