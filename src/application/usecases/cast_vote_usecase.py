"""投票のユースケース（Vote Transaction Controller）.

1セッションにつき同時に1件の投票だけを扱う。多重の試行はキューせずに
拒否する。ライフサイクルの途中でセッションがリセットされた場合、
その結果は黙って破棄される。
"""

from __future__ import annotations

import asyncio

from src.application.dtos.ballot_dto import (
    CastVoteInputDto,
    CastVoteOutputDto,
    CastVoteStatus,
)
from src.application.services.binding_registry import BindingRegistry, ContractBinding
from src.application.services.view_state_store import ViewStateStore
from src.application.usecases.refresh_tally_usecase import RefreshTallyUseCase
from src.common.logging import get_logger
from src.domain.exceptions import (
    AlreadyVotedException,
    BallotClientException,
    LedgerUnavailableException,
    StaleBindingRaceException,
    TransactionRejectedOrRevertedException,
    UserDeclinedException,
)
from src.domain.services.network_identity_guard import (
    NetworkCheckResult,
    NetworkIdentityGuard,
)
from src.domain.value_objects.network_descriptor import NetworkDescriptor
from src.domain.value_objects.vote_transaction import (
    TransactionPhase,
    VoteTransaction,
)


logger = get_logger(__name__)


class CastVoteUseCase:
    """投票トランザクションのライフサイクルを管理する.

    フェーズは idle → awaiting_confirmation → pending_inclusion →
    {succeeded, failed} → idle と遷移する。終端状態は
    ``display_seconds`` 経過後に自動的に idle へ戻る。
    """

    DEFAULT_DISPLAY_SECONDS = 4.0

    def __init__(
        self,
        registry: BindingRegistry,
        store: ViewStateStore,
        tally_reader: RefreshTallyUseCase,
        guard: NetworkIdentityGuard,
        network: NetworkDescriptor,
        display_seconds: float = DEFAULT_DISPLAY_SECONDS,
    ) -> None:
        """ユースケースを初期化する.

        Args:
            registry: バインディングレジストリ
            store: ビュー状態ストア
            tally_reader: 集計リフレッシュ
            guard: ネットワーク識別ガード
            network: 想定ネットワーク
            display_seconds: 成功・失敗表示を残す秒数
        """
        self.registry = registry
        self.store = store
        self.tally_reader = tally_reader
        self.guard = guard
        self.network = network
        self.display_seconds = display_seconds

        self._transaction = VoteTransaction()
        self._busy = False
        self._generation = 0
        self._idle_timer: asyncio.TimerHandle | None = None

    @property
    def phase(self) -> TransactionPhase:
        """現在のフェーズ."""
        return self._transaction.phase

    @property
    def transaction(self) -> VoteTransaction:
        """現在のトランザクション."""
        return self._transaction

    def can_submit(self) -> bool:
        """新しい投票を受け付けられるか."""
        return (
            self.registry.current is not None
            and not self.store.has_voted
            and not self._busy
            and self._transaction.phase is TransactionPhase.IDLE
        )

    async def execute(self, input_dto: CastVoteInputDto) -> CastVoteOutputDto:
        """投票を実行する.

        Args:
            input_dto: 投票する候補者

        Returns:
            投票結果
        """
        binding = self.registry.current
        if binding is None:
            return CastVoteOutputDto(
                status=CastVoteStatus.NOT_CONNECTED,
                error_message="Wallet is not connected",
            )
        if self.store.has_voted:
            return CastVoteOutputDto(
                status=CastVoteStatus.ALREADY_VOTED,
                error_message="You have already voted",
            )
        if self._busy or self._transaction.phase is not TransactionPhase.IDLE:
            return CastVoteOutputDto(
                status=CastVoteStatus.BUSY,
                error_message="A vote is already in progress",
            )

        # await より前に同期的に確保する（多重クリック対策）
        self._busy = True
        generation = self._generation
        try:
            return await self._run(binding, generation, input_dto.candidate_id)
        except BallotClientException as e:
            return self._abort(binding, generation, e)
        finally:
            if generation == self._generation:
                self._busy = False

    def reset(self) -> None:
        """コントローラをidleへ戻し、進行中のライフサイクルを切り離す."""
        self._generation += 1
        self._cancel_idle_timer()
        self._busy = False
        self._transaction = VoteTransaction()

    async def _run(
        self, binding: ContractBinding, generation: int, candidate_id: int
    ) -> CastVoteOutputDto:
        check = await self.guard.ensure_network(self.network)
        if not self._is_live(binding, generation):
            return self._stale(generation)
        if check is NetworkCheckResult.NEEDS_MANUAL_SWITCH:
            self.store.set_network_mismatch(True)
            return CastVoteOutputDto(
                status=CastVoteStatus.WRONG_NETWORK,
                error_message=f"Please switch your wallet to {self.network.chain_name}",
            )

        self._move(TransactionPhase.AWAITING_CONFIRMATION, candidate_id=candidate_id)

        try:
            tx_hash = await binding.contract.submit_vote(candidate_id)
        except StaleBindingRaceException:
            return self._stale(generation)
        except AlreadyVotedException:
            if not self._is_live(binding, generation):
                return self._stale(generation)
            logger.info("Ledger reports the account has already voted")
            self.store.apply_voter_status(binding.account, True)
            self._move(TransactionPhase.IDLE)
            return CastVoteOutputDto(status=CastVoteStatus.ALREADY_VOTED)
        except (
            UserDeclinedException,
            TransactionRejectedOrRevertedException,
            LedgerUnavailableException,
        ) as e:
            if not self._is_live(binding, generation):
                return self._stale(generation)
            logger.info(f"Vote was not submitted: {e}")
            self._finish(TransactionPhase.FAILED, e.message)
            return CastVoteOutputDto(
                status=CastVoteStatus.FAILED, error_message=e.message
            )

        if not self._is_live(binding, generation):
            return self._stale(generation)
        self._move(TransactionPhase.PENDING_INCLUSION, tx_hash=tx_hash)
        logger.info(f"Vote transaction submitted: {tx_hash}")

        try:
            included = await binding.contract.wait_for_inclusion(tx_hash)
            error_message = None if included else "Transaction reverted"
        except StaleBindingRaceException:
            return self._stale(generation)
        except (
            LedgerUnavailableException,
            TransactionRejectedOrRevertedException,
        ) as e:
            included = False
            error_message = e.message

        if not self._is_live(binding, generation):
            return self._stale(generation)

        if included:
            self._finish(TransactionPhase.SUCCEEDED)
            await self.tally_reader.refresh_all(binding)
            return CastVoteOutputDto(status=CastVoteStatus.SUCCEEDED, tx_hash=tx_hash)

        logger.warning(f"Vote transaction {tx_hash} failed: {error_message}")
        self._finish(TransactionPhase.FAILED, error_message)
        # 別の経路で投票済みになっていないかだけ確認する
        await self.tally_reader.refresh_voter_status(binding)
        return CastVoteOutputDto(
            status=CastVoteStatus.FAILED,
            tx_hash=tx_hash,
            error_message=error_message,
        )

    def _abort(
        self, binding: ContractBinding, generation: int, error: BallotClientException
    ) -> CastVoteOutputDto:
        if not self._is_live(binding, generation):
            return self._stale(generation)
        logger.error(f"Vote lifecycle aborted: {error}")
        phase = self._transaction.phase
        if phase is not TransactionPhase.IDLE and not phase.is_terminal:
            self._finish(TransactionPhase.FAILED, error.message)
        return CastVoteOutputDto(
            status=CastVoteStatus.FAILED,
            tx_hash=self._transaction.tx_hash,
            error_message=error.message,
        )

    def _is_live(self, binding: ContractBinding, generation: int) -> bool:
        return generation == self._generation and self.registry.is_current(binding)

    def _stale(self, generation: int) -> CastVoteOutputDto:
        logger.debug("Dropping vote lifecycle result from a reset session")
        if generation == self._generation:
            # バインディングだけが先に無効化された場合
            self.reset()
        return CastVoteOutputDto(status=CastVoteStatus.STALE)

    def _move(self, target: TransactionPhase, **changes) -> None:
        self._transaction = self._transaction.transition(target, **changes)
        self.store.set_transaction(self._transaction)

    def _finish(self, target: TransactionPhase, error_message: str | None = None) -> None:
        self._move(target, error_message=error_message)
        self._schedule_idle()

    def _schedule_idle(self) -> None:
        self._cancel_idle_timer()
        generation = self._generation
        loop = asyncio.get_running_loop()
        self._idle_timer = loop.call_later(
            self.display_seconds, self._return_to_idle, generation
        )

    def _return_to_idle(self, generation: int) -> None:
        self._idle_timer = None
        if generation != self._generation:
            return
        if self._transaction.phase.is_terminal:
            self._move(TransactionPhase.IDLE)

    def _cancel_idle_timer(self) -> None:
        if self._idle_timer is not None:
            self._idle_timer.cancel()
            self._idle_timer = None
