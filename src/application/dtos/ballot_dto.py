"""投票クライアントのユースケース入出力DTO."""

from dataclasses import dataclass
from enum import Enum

from src.domain.value_objects.tally_snapshot import TallySnapshot


# =============================================================================
# Connect
# =============================================================================


class ConnectStatus(Enum):
    """ウォレット接続の結果."""

    CONNECTED = "connected"
    DECLINED = "declined"
    NO_PROVIDER = "no_provider"
    WRONG_NETWORK = "wrong_network"


@dataclass
class ConnectWalletOutputDto:
    """ウォレット接続の出力DTO."""

    status: ConnectStatus
    account: str | None = None
    error_message: str | None = None

    @property
    def success(self) -> bool:
        """接続に成功したか."""
        return self.status is ConnectStatus.CONNECTED


# =============================================================================
# Cast vote
# =============================================================================


@dataclass
class CastVoteInputDto:
    """投票の入力DTO."""

    candidate_id: int


class CastVoteStatus(Enum):
    """投票試行の結果."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    ALREADY_VOTED = "already_voted"
    NOT_CONNECTED = "not_connected"
    BUSY = "busy"
    WRONG_NETWORK = "wrong_network"
    STALE = "stale"


@dataclass
class CastVoteOutputDto:
    """投票の出力DTO."""

    status: CastVoteStatus
    tx_hash: str | None = None
    error_message: str | None = None


# =============================================================================
# Refresh
# =============================================================================


@dataclass
class RefreshTallyOutputDto:
    """集計リフレッシュの出力DTO."""

    snapshot: TallySnapshot | None
    applied: bool
    error_message: str | None = None
