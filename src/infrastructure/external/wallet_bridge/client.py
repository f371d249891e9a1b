"""ローカルウォレットのJSON-RPCクライアント.

Frame などのローカルで動作するウォレットが公開するJSON-RPC 2.0
エンドポイントにhttpx asyncで接続する。署名鍵はウォレット側に残り、
このクライアントは承認の要求だけを行う。

HTTPではプッシュ通知を受け取れないため、accountsChanged / chainChanged は
eth_accounts / eth_chainId のポーリングで再現する。
"""

from __future__ import annotations

import asyncio
import itertools
import logging

from typing import Any

import httpx

from src.domain.exceptions import WalletProviderException
from src.domain.services.interfaces.wallet_provider import WalletEventHandler


logger = logging.getLogger(__name__)

ACCOUNTS_CHANGED = "accountsChanged"
CHAIN_CHANGED = "chainChanged"
SUPPORTED_EVENTS = (ACCOUNTS_CHANGED, CHAIN_CHANGED)


class JsonRpcWalletProvider:
    """JSON-RPC over HTTP のウォレットプロバイダー (httpx async)."""

    DEFAULT_TIMEOUT = 120.0
    DEFAULT_POLL_INTERVAL = 1.0

    def __init__(
        self,
        endpoint: str | None,
        client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
    ) -> None:
        """プロバイダーを初期化する.

        Args:
            endpoint: ウォレットのJSON-RPCエンドポイント（未設定ならウォレットなし）
            client: 外部から注入するHTTPクライアント
            timeout: リクエストのタイムアウト秒数（ユーザー承認待ちを含む）
            poll_interval: 変更通知を再現するポーリング間隔
        """
        self.endpoint = endpoint
        self.timeout = timeout
        self.poll_interval = poll_interval
        self._owns_client = client is None
        self._client: httpx.AsyncClient | None = client
        self._ids = itertools.count(1)
        self._handlers: dict[str, list[WalletEventHandler]] = {
            event: [] for event in SUPPORTED_EVENTS
        }
        self._watch_task: asyncio.Task | None = None
        self._last_accounts: list[str] | None = None
        self._last_chain_id: str | None = None

    def is_available(self) -> bool:
        """エンドポイントが設定されているか."""
        return bool(self.endpoint)

    async def _get_client(self) -> httpx.AsyncClient:
        """HTTPクライアントを取得（外部注入 or 自動生成）."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def request(self, method: str, params: list[Any] | None = None) -> Any:
        """JSON-RPCメソッドを呼び出し、resultを返す.

        Raises:
            WalletProviderException: ウォレットがエラーを返した、または到達できない
        """
        if not self.endpoint:
            raise WalletProviderException(
                WalletProviderException.DISCONNECTED, "No wallet endpoint configured"
            )

        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params or [],
        }
        client = await self._get_client()

        try:
            response = await client.post(self.endpoint, json=payload)
            response.raise_for_status()
            data: dict[str, Any] = response.json()
        except httpx.HTTPStatusError as e:
            raise WalletProviderException(
                WalletProviderException.INTERNAL_ERROR,
                f"Wallet request failed: {e.response.status_code}",
            ) from e
        except httpx.TimeoutException as e:
            raise WalletProviderException(
                WalletProviderException.DISCONNECTED, "Wallet request timed out"
            ) from e
        except httpx.HTTPError as e:
            raise WalletProviderException(
                WalletProviderException.DISCONNECTED, f"Wallet is unreachable: {e}"
            ) from e
        except ValueError as e:
            raise WalletProviderException(
                WalletProviderException.INTERNAL_ERROR,
                "Wallet returned a non-JSON response",
            ) from e

        error = data.get("error")
        if error is not None:
            raise self._to_exception(error)
        return data.get("result")

    def on(self, event: str, handler: WalletEventHandler) -> None:
        """変更通知を購読する（初回の購読でポーリングを開始）."""
        if event not in self._handlers:
            raise ValueError(f"Unsupported wallet event: {event}")
        self._handlers[event].append(handler)
        self._ensure_watching()

    def remove_listener(self, event: str, handler: WalletEventHandler) -> None:
        """購読を解除する."""
        handlers = self._handlers.get(event, [])
        if handler in handlers:
            handlers.remove(handler)

    async def close(self) -> None:
        """ポーリングを停止し、HTTPクライアントを閉じる."""
        task, self._watch_task = self._watch_task, None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    def _ensure_watching(self) -> None:
        if self._watch_task is not None and not self._watch_task.done():
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running loop; wallet change polling deferred")
            return
        self._watch_task = loop.create_task(self._watch())

    async def _watch(self) -> None:
        while True:
            try:
                await self.poll_once()
            except WalletProviderException as e:
                logger.debug("Wallet poll failed: %s", e)
            await asyncio.sleep(self.poll_interval)

    async def poll_once(self) -> None:
        """アカウント・チェーンを1回読み、変化があれば通知する.

        最初の読み取りは基準値として記録するだけで通知しない。
        """
        accounts = [a.lower() for a in (await self.request("eth_accounts") or [])]
        chain_id = await self.request("eth_chainId")
        chain_id = chain_id.lower() if isinstance(chain_id, str) else chain_id

        previous_accounts, self._last_accounts = self._last_accounts, accounts
        previous_chain, self._last_chain_id = self._last_chain_id, chain_id

        if previous_accounts is not None and previous_accounts != accounts:
            logger.info("Wallet accounts changed")
            await self._emit(ACCOUNTS_CHANGED, accounts)
        if previous_chain is not None and previous_chain != chain_id:
            logger.info("Wallet chain changed: %s -> %s", previous_chain, chain_id)
            await self._emit(CHAIN_CHANGED, chain_id)

    async def _emit(self, event: str, payload: Any) -> None:
        for handler in list(self._handlers[event]):
            try:
                await handler(payload)
            except Exception:
                logger.exception("Wallet %s handler failed", event)

    @staticmethod
    def _to_exception(error: Any) -> WalletProviderException:
        """JSON-RPCのerrorオブジェクトを例外に変換."""
        if not isinstance(error, dict):
            return WalletProviderException(
                WalletProviderException.INTERNAL_ERROR, str(error)
            )
        try:
            code = int(error.get("code", WalletProviderException.INTERNAL_ERROR))
        except (TypeError, ValueError):
            code = WalletProviderException.INTERNAL_ERROR
        message = str(error.get("message") or "Wallet returned an error")
        return WalletProviderException(code, message, error.get("data"))
