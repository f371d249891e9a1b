"""投票送信エラーの分類ドメインサービス.

台帳の「投票済み」判定は、構造化されたrevert理由（事前eth_callで
デコードしたもの）を優先し、取得できない場合のみプロバイダーの
メッセージ文字列を検査する。
"""

from __future__ import annotations

import re

from src.domain.exceptions import (
    AlreadyVotedException,
    BallotClientException,
    TransactionRejectedOrRevertedException,
    UserDeclinedException,
    WalletProviderException,
)


# コントラクトの require(!voters[msg.sender], "Already voted") に対応
_ALREADY_VOTED_PATTERN = re.compile(r"already\s+voted", re.IGNORECASE)


def is_already_voted_reason(reason: str | None) -> bool:
    """revert理由・エラーメッセージが「投票済み」を示すか."""
    if not reason:
        return False
    return _ALREADY_VOTED_PATTERN.search(reason) is not None


def classify_revert_reason(
    reason: str | None, account: str | None = None
) -> BallotClientException:
    """事前実行で得たrevert理由を分類する."""
    if is_already_voted_reason(reason):
        return AlreadyVotedException(account)
    return TransactionRejectedOrRevertedException(reason or "execution reverted")


def classify_submission_error(
    error: WalletProviderException, account: str | None = None
) -> BallotClientException:
    """eth_sendTransaction のエラーを分類する.

    - 4001: ユーザー拒否
    - dataにrevert理由が含まれる / メッセージに "already voted": 投票済み
    - それ以外: 送信拒否
    """
    if error.is_user_rejection:
        return UserDeclinedException("vote signature", error.message)

    data_reason = _extract_data_message(error.data)
    if is_already_voted_reason(data_reason) or is_already_voted_reason(error.message):
        return AlreadyVotedException(account)

    return TransactionRejectedOrRevertedException(error.message)


def _extract_data_message(data: object) -> str | None:
    """JSON-RPCエラーのdataフィールドからメッセージを取り出す."""
    if isinstance(data, str):
        return data
    if isinstance(data, dict):
        for key in ("reason", "message"):
            value = data.get(key)
            if isinstance(value, str):
                return value
        nested = data.get("data")
        if nested is not None and nested is not data:
            return _extract_data_message(nested)
    return None
