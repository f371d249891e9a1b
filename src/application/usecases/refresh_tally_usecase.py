"""集計リフレッシュのユースケース（Tally Reader）."""

from src.application.dtos.ballot_dto import RefreshTallyOutputDto
from src.application.services.binding_registry import BindingRegistry, ContractBinding
from src.application.services.view_state_store import ViewStateStore
from src.common.logging import get_logger
from src.domain.exceptions import LedgerUnavailableException, StaleBindingRaceException
from src.domain.value_objects.tally_snapshot import TallySnapshot


logger = get_logger(__name__)


class RefreshTallyUseCase:
    """台帳から集計とVoterStatusを読み取り、ビュー状態へ適用する.

    結果は、それを生んだバインディングがまだ現在のものである場合に限り
    適用する。アカウント・ネットワーク切り替えと競合した応答は黙って破棄する。
    """

    def __init__(self, registry: BindingRegistry, store: ViewStateStore) -> None:
        """ユースケースを初期化する.

        Args:
            registry: バインディングレジストリ
            store: ビュー状態ストア
        """
        self.registry = registry
        self.store = store

    async def read(self, binding: ContractBinding) -> TallySnapshot:
        """全候補者を1回の呼び出しで読み取る（副作用なし）."""
        candidates = await binding.contract.get_all_candidates()
        return TallySnapshot.from_candidates(candidates)

    async def refresh(self, binding: ContractBinding) -> RefreshTallyOutputDto:
        """集計を読み取り、現在のバインディングであれば適用する."""
        try:
            snapshot = await self.read(binding)
        except StaleBindingRaceException:
            logger.debug(f"Tally read on stale binding (epoch {binding.epoch})")
            return RefreshTallyOutputDto(snapshot=None, applied=False)
        except LedgerUnavailableException as e:
            logger.warning(f"Failed to refresh tally: {e}")
            if self.registry.is_current(binding):
                self.store.mark_tally_error(e.message)
            return RefreshTallyOutputDto(
                snapshot=None, applied=False, error_message=e.message
            )

        if not self.registry.is_current(binding):
            logger.debug(f"Discarding tally from stale epoch {binding.epoch}")
            return RefreshTallyOutputDto(snapshot=snapshot, applied=False)

        self.store.apply_tally(snapshot)
        return RefreshTallyOutputDto(snapshot=snapshot, applied=True)

    async def refresh_voter_status(self, binding: ContractBinding) -> bool | None:
        """現在のアカウントのVoterStatusを読み取り、適用する.

        Returns:
            読み取った値（破棄・失敗時はNone）
        """
        try:
            has_voted = await binding.contract.has_voted(binding.account)
        except StaleBindingRaceException:
            return None
        except LedgerUnavailableException as e:
            logger.warning(f"Failed to refresh voter status: {e}")
            return None

        if not self.registry.is_current(binding):
            logger.debug(f"Discarding voter status from stale epoch {binding.epoch}")
            return None

        self.store.apply_voter_status(binding.account, has_voted)
        return has_voted

    async def refresh_all(self, binding: ContractBinding) -> RefreshTallyOutputDto:
        """集計とVoterStatusの両方をリフレッシュする."""
        result = await self.refresh(binding)
        await self.refresh_voter_status(binding)
        return result
