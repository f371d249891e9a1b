"""Domain exceptions for the ballot client.

ウォレット・台帳呼び出しの失敗は、呼び出しを発行したコンポーネントの境界で
ここに定義された種類のいずれかへ変換される。生のプロバイダーエラーが
描画ロジックに届くことはない。
"""

from typing import Any


class BallotClientException(Exception):
    """投票クライアントの基底例外."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class NoWalletCapabilityException(BallotClientException):
    """ウォレットが環境に存在しない（自動リトライしない）."""

    def __init__(self, reason: str = "No wallet provider is available"):
        super().__init__(reason)


class UserDeclinedException(BallotClientException):
    """ユーザーがウォレット上で要求を拒否した（再試行可能）."""

    def __init__(self, operation: str, reason: str | None = None):
        super().__init__(
            f"User declined {operation}" + (f": {reason}" if reason else ""),
            {"operation": operation},
        )
        self.operation = operation


class WrongNetworkException(BallotClientException):
    """ウォレットが想定外のネットワークに接続している."""

    def __init__(self, expected_chain_id: int, actual_chain_id: int | None = None):
        super().__init__(
            f"Wallet is not on chain {expected_chain_id}",
            {"expected": expected_chain_id, "actual": actual_chain_id},
        )
        self.expected_chain_id = expected_chain_id
        self.actual_chain_id = actual_chain_id


class AlreadyVotedException(BallotClientException):
    """台帳がこのアカウントの二重投票を拒否した.

    エラーではなく VoterStatus.has_voted=True として正規化される。
    """

    def __init__(self, account: str | None = None):
        super().__init__("Account has already voted", {"account": account})
        self.account = account


class TransactionRejectedOrRevertedException(BallotClientException):
    """トランザクションの送信拒否、または取り込み時のrevert."""

    def __init__(self, reason: str, tx_hash: str | None = None):
        super().__init__(reason, {"tx_hash": tx_hash})
        self.reason = reason
        self.tx_hash = tx_hash


class StaleBindingRaceException(BallotClientException):
    """無効化済みのバインディングに対する呼び出し.

    利用者には通知せず、結果は黙って破棄される。
    """

    def __init__(self, epoch: int | None = None, reason: str = "binding is stale"):
        super().__init__(reason, {"epoch": epoch})
        self.epoch = epoch


class LedgerUnavailableException(BallotClientException):
    """台帳RPCからの読み取りに失敗した（再試行可能）."""

    def __init__(self, operation: str, reason: str):
        super().__init__(
            f"Ledger read failed during {operation}: {reason}",
            {"operation": operation},
        )
        self.operation = operation


class ContractArtifactException(BallotClientException):
    """デプロイ済みコントラクトのアドレス・ABI設定が不正."""


class WalletProviderException(BallotClientException):
    """ウォレットプロバイダーが返したEIP-1193形式のエラー.

    codeは EIP-1193 / JSON-RPC のエラーコード。
    """

    USER_REJECTED = 4001
    UNAUTHORIZED = 4100
    UNSUPPORTED_METHOD = 4200
    DISCONNECTED = 4900
    CHAIN_DISCONNECTED = 4901
    UNRECOGNIZED_CHAIN = 4902
    EXECUTION_REVERTED = 3
    INTERNAL_ERROR = -32603

    def __init__(self, code: int, message: str, data: Any = None):
        super().__init__(message, {"code": code, "data": data})
        self.code = code
        self.data = data

    @property
    def is_user_rejection(self) -> bool:
        """ユーザー拒否かどうか."""
        return self.code == self.USER_REJECTED

    @property
    def is_disconnected(self) -> bool:
        """ウォレットに到達できないかどうか."""
        return self.code in (self.DISCONNECTED, self.CHAIN_DISCONNECTED)
