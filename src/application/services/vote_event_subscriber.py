"""VotedEvent 購読サービス（Event Subscriber）.

他のユーザーの投票をポーリングなしで反映するための仕組み。
通知は順不同・重複・合体して届く可能性があるため、同一イベントは
一度だけ扱い、リフレッシュ中に届いた通知は1回の追加リフレッシュにまとめる。
"""

from __future__ import annotations

from collections import OrderedDict
from collections.abc import Awaitable, Callable

from src.application.services.binding_registry import ContractBinding
from src.common.logging import get_logger
from src.domain.exceptions import StaleBindingRaceException
from src.domain.services.interfaces.ballot_contract_service import (
    IBallotContract,
    IVoteWatch,
)
from src.domain.value_objects.vote_recorded_event import VoteRecordedEvent


logger = get_logger(__name__)

OnVoteRecorded = Callable[[], Awaitable[None]]


class VoteSubscription:
    """バインディング1つ分の購読.

    close()は冪等で、close後に届いた通知は無視される。
    """

    DEFAULT_SEEN_CAPACITY = 1024

    def __init__(
        self,
        on_vote_recorded: OnVoteRecorded,
        epoch: int | None = None,
        seen_capacity: int = DEFAULT_SEEN_CAPACITY,
    ) -> None:
        self.epoch = epoch
        self._on_vote_recorded = on_vote_recorded
        self._seen: OrderedDict[tuple[str, int], None] = OrderedDict()
        self._seen_capacity = seen_capacity
        self._watch: IVoteWatch | None = None
        self._closed = False
        self._refreshing = False
        self._rerun_requested = False
        self.dispatch_count = 0

    @property
    def closed(self) -> bool:
        """解放済みか."""
        return self._closed

    def attach(self, watch: IVoteWatch) -> None:
        """コントラクト側の監視ハンドルを紐づける."""
        self._watch = watch

    async def handle(self, event: VoteRecordedEvent) -> None:
        """VotedEvent を1件処理する."""
        if self._closed:
            return

        if event.key in self._seen:
            logger.debug(f"Duplicate vote event ignored: {event.tx_hash}")
            return
        self._remember(event.key)

        if self._refreshing:
            self._rerun_requested = True
            return

        self._refreshing = True
        try:
            while not self._closed:
                self._rerun_requested = False
                self.dispatch_count += 1
                try:
                    await self._on_vote_recorded()
                except StaleBindingRaceException:
                    return
                except Exception as e:
                    logger.error(f"Refresh after vote event failed: {e}")
                if not self._rerun_requested:
                    break
        finally:
            self._refreshing = False

    async def close(self) -> None:
        """購読を解放する."""
        if self._closed:
            return
        self._closed = True
        watch, self._watch = self._watch, None
        if watch is not None:
            await watch.close()
        logger.debug(f"Vote subscription for epoch {self.epoch} closed")

    def _remember(self, key: tuple[str, int]) -> None:
        self._seen[key] = None
        while len(self._seen) > self._seen_capacity:
            self._seen.popitem(last=False)


class VoteEventSubscriber:
    """バインディングごとに VotedEvent の購読を確立する."""

    def __init__(self, seen_capacity: int = VoteSubscription.DEFAULT_SEEN_CAPACITY):
        self.seen_capacity = seen_capacity

    async def subscribe(
        self, binding: ContractBinding, on_vote_recorded: OnVoteRecorded
    ) -> VoteSubscription:
        """bindingのコントラクトに対して購読を開始する.

        Args:
            binding: 購読対象のバインディング
            on_vote_recorded: 新しいイベントごとに呼ばれるリフレッシュ処理

        Returns:
            close()で解放する購読
        """
        return await self.subscribe_contract(
            binding.contract, on_vote_recorded, epoch=binding.epoch
        )

    async def subscribe_contract(
        self,
        contract: IBallotContract,
        on_vote_recorded: OnVoteRecorded,
        epoch: int | None = None,
    ) -> VoteSubscription:
        """セッションを持たないコントラクトハンドルを直接購読する（読み取り専用）."""
        subscription = VoteSubscription(
            on_vote_recorded, epoch=epoch, seen_capacity=self.seen_capacity
        )
        watch = await contract.watch_vote_recorded(subscription.handle)
        subscription.attach(watch)
        logger.info(f"Subscribed to vote events (epoch {epoch})")
        return subscription
