"""ウォレットプロバイダーのインターフェース."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any, Protocol


WalletEventHandler = Callable[[Any], Awaitable[None]]


class IWalletProvider(Protocol):
    """署名鍵を保持し、承認とネットワーク設定を仲介するウォレット.

    EIP-1193 の ``request`` / ``on`` に相当する操作を非同期で提供する。
    失敗は WalletProviderException として送出される。
    """

    def is_available(self) -> bool:
        """ウォレットが環境に存在するか."""
        ...

    async def request(self, method: str, params: list[Any] | None = None) -> Any:
        """JSON-RPCメソッドを呼び出す.

        eth_requestAccounts, eth_accounts, eth_chainId,
        wallet_switchEthereumChain, wallet_addEthereumChain,
        eth_sendTransaction を使用する。
        """
        ...

    def on(self, event: str, handler: WalletEventHandler) -> None:
        """"accountsChanged" / "chainChanged" 通知を購読する."""
        ...

    def remove_listener(self, event: str, handler: WalletEventHandler) -> None:
        """購読を解除する."""
        ...

    async def close(self) -> None:
        """接続と監視タスクを閉じる."""
        ...
