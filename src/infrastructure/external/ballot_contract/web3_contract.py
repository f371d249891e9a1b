"""web3.py による投票コントラクトのハンドル.

読み取り・レシート待ち・ログ取得は台帳のRPCに AsyncWeb3 で接続し、
署名が必要な vote() だけをウォレットの eth_sendTransaction に委ねる。
"""

from __future__ import annotations

import asyncio
import logging

from typing import Any

import aiohttp

from web3 import AsyncWeb3, Web3
from web3.exceptions import ContractLogicError, TimeExhausted, Web3Exception

from src.domain.entities.candidate import Candidate
from src.domain.exceptions import (
    ContractArtifactException,
    LedgerUnavailableException,
    StaleBindingRaceException,
    WalletProviderException,
)
from src.domain.services.interfaces.ballot_contract_service import (
    VoteRecordedHandler,
)
from src.domain.services.interfaces.wallet_provider import IWalletProvider
from src.domain.services.vote_rejection_classifier import (
    classify_revert_reason,
    classify_submission_error,
)
from src.domain.value_objects.vote_recorded_event import VoteRecordedEvent


logger = logging.getLogger(__name__)

VOTED_EVENT = "VotedEvent"

# 台帳RPCの一時的な失敗とみなす例外
_LEDGER_ERRORS = (
    Web3Exception,
    aiohttp.ClientError,
    asyncio.TimeoutError,
    OSError,
    ValueError,
)


def create_async_web3(rpc_url: str) -> AsyncWeb3:
    """台帳RPC用のAsyncWeb3を生成する."""
    return AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(rpc_url))


def event_signature(abi: list[dict[str, Any]], name: str) -> str:
    """ABIからイベントのシグネチャ（例: "VotedEvent(uint256)"）を組み立てる."""
    for entry in abi:
        if entry.get("type") == "event" and entry.get("name") == name:
            types = ",".join(_canonical_type(i) for i in entry.get("inputs", []))
            return f"{name}({types})"
    raise ContractArtifactException(f"Event {name} not found in ABI")


def _canonical_type(param: dict[str, Any]) -> str:
    type_ = param["type"]
    if type_.startswith("tuple"):
        inner = ",".join(_canonical_type(c) for c in param.get("components", []))
        return f"({inner}){type_[len('tuple'):]}"
    return type_


def event_topic(abi: list[dict[str, Any]], name: str) -> str:
    """イベントのtopic0（keccak256ハッシュ）."""
    return Web3.to_hex(Web3.keccak(text=event_signature(abi, name)))


class VotedEventWatch:
    """eth_getLogs のポーリングによる VotedEvent の監視."""

    def __init__(
        self,
        w3: AsyncWeb3,
        address: str,
        topic: str,
        handler: VoteRecordedHandler,
        poll_interval: float,
        from_block: int,
    ) -> None:
        self.w3 = w3
        self.address = address
        self.topic = topic
        self.handler = handler
        self.poll_interval = poll_interval
        self._next_block = from_block
        self._task: asyncio.Task | None = None
        self._closed = False

    def start(self) -> None:
        """ポーリングを開始する."""
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def _run(self) -> None:
        while not self._closed:
            try:
                await self.poll_once()
            except _LEDGER_ERRORS as e:
                logger.warning("VotedEvent poll failed: %s", e)
            await asyncio.sleep(self.poll_interval)

    async def poll_once(self) -> int:
        """新しいブロック範囲のログを1回取得し、ハンドラーへ渡す.

        Returns:
            取得したログ件数
        """
        latest = await self.w3.eth.block_number
        if latest < self._next_block:
            return 0

        logs = await self.w3.eth.get_logs(
            {
                "address": self.address,
                "topics": [self.topic],
                "fromBlock": self._next_block,
                "toBlock": latest,
            }
        )
        self._next_block = latest + 1
        if self._closed or not logs:
            return 0

        events = [
            VoteRecordedEvent(
                tx_hash=Web3.to_hex(log["transactionHash"]),
                log_index=int(log["logIndex"]),
                block_number=int(log["blockNumber"]),
            )
            for log in logs
        ]
        # 同時に渡し、購読側でまとめてリフレッシュさせる
        results = await asyncio.gather(
            *(self.handler(event) for event in events), return_exceptions=True
        )
        for result in results:
            if isinstance(result, Exception):
                logger.error("VotedEvent handler failed: %s", result)
        return len(events)

    def cancel(self) -> None:
        """同期的に停止を要求する."""
        self._closed = True
        if self._task is not None:
            self._task.cancel()

    async def close(self) -> None:
        """監視を停止する（冪等）."""
        self.cancel()
        task, self._task = self._task, None
        if task is not None and task is not asyncio.current_task():
            try:
                await task
            except asyncio.CancelledError:
                pass


class Web3BallotContract:
    """署名者に束縛された投票コントラクトのハンドル."""

    def __init__(
        self,
        w3: AsyncWeb3,
        wallet: IWalletProvider,
        address: str,
        abi: list[dict[str, Any]],
        signer_account: str | None,
        event_poll_interval: float = 2.0,
        receipt_timeout: float = 180.0,
    ) -> None:
        self.w3 = w3
        self.wallet = wallet
        self.address = Web3.to_checksum_address(address)
        self.abi = abi
        self._signer = (
            Web3.to_checksum_address(signer_account) if signer_account else None
        )
        self.event_poll_interval = event_poll_interval
        self.receipt_timeout = receipt_timeout
        self._contract = w3.eth.contract(address=self.address, abi=abi)
        self._watches: list[VotedEventWatch] = []
        self._closed = False

    @property
    def signer_account(self) -> str | None:
        """署名者アドレス（読み取り専用ハンドルはNone）."""
        return self._signer

    @property
    def closed(self) -> bool:
        """無効化済みか."""
        return self._closed

    def _ensure_open(self) -> None:
        if self._closed:
            raise StaleBindingRaceException(reason="contract handle is closed")

    async def get_all_candidates(self) -> list[Candidate]:
        """全候補者を取得する."""
        self._ensure_open()
        try:
            raw = await self._contract.functions.getAllCandidates().call()
        except _LEDGER_ERRORS as e:
            raise LedgerUnavailableException("getAllCandidates", str(e)) from e
        self._ensure_open()
        return [
            Candidate(id=int(item[0]), name=str(item[1]), vote_count=int(item[2]))
            for item in raw
        ]

    async def has_voted(self, account: str) -> bool:
        """accountが投票済みかを取得する."""
        self._ensure_open()
        try:
            voted = await self._contract.functions.voters(
                Web3.to_checksum_address(account)
            ).call()
        except _LEDGER_ERRORS as e:
            raise LedgerUnavailableException("voters", str(e)) from e
        self._ensure_open()
        return bool(voted)

    async def submit_vote(self, candidate_id: int) -> str:
        """vote(candidate_id) をウォレットで署名・送信する."""
        self._ensure_open()
        await self._ensure_signer_is_active()

        vote_fn = self._contract.functions.vote(candidate_id)
        try:
            # 事前実行でrevert理由を構造化して取得する
            await vote_fn.call({"from": self._signer})
        except ContractLogicError as e:
            raise classify_revert_reason(str(e), self._signer) from e
        except _LEDGER_ERRORS as e:
            logger.warning("Pre-flight vote call failed, sending anyway: %s", e)

        try:
            tx = await vote_fn.build_transaction({"from": self._signer})
        except ContractLogicError as e:
            raise classify_revert_reason(str(e), self._signer) from e
        except _LEDGER_ERRORS as e:
            raise LedgerUnavailableException("build vote transaction", str(e)) from e

        self._ensure_open()
        params: dict[str, Any] = {
            "from": self._signer,
            "to": tx["to"],
            "data": tx["data"],
        }
        if tx.get("gas") is not None:
            params["gas"] = hex(tx["gas"])

        try:
            tx_hash = await self.wallet.request("eth_sendTransaction", [params])
        except WalletProviderException as e:
            raise classify_submission_error(e, self._signer) from e

        logger.info("Vote transaction sent by %s: %s", self._signer, tx_hash)
        return tx_hash

    async def wait_for_inclusion(self, tx_hash: str) -> bool:
        """レシートを待ち、status == 1 ならTrue."""
        self._ensure_open()
        try:
            receipt = await self.w3.eth.wait_for_transaction_receipt(
                tx_hash, timeout=self.receipt_timeout
            )
        except TimeExhausted as e:
            raise LedgerUnavailableException(
                "wait_for_inclusion", f"no receipt for {tx_hash}"
            ) from e
        except _LEDGER_ERRORS as e:
            raise LedgerUnavailableException("wait_for_inclusion", str(e)) from e
        self._ensure_open()
        return receipt["status"] == 1

    async def watch_vote_recorded(self, handler: VoteRecordedHandler) -> VotedEventWatch:
        """VotedEvent の監視を開始する（現在のブロック以降）."""
        self._ensure_open()
        try:
            from_block = await self.w3.eth.block_number + 1
        except _LEDGER_ERRORS as e:
            raise LedgerUnavailableException("block_number", str(e)) from e

        watch = VotedEventWatch(
            self.w3,
            self.address,
            event_topic(self.abi, VOTED_EVENT),
            handler,
            self.event_poll_interval,
            from_block,
        )
        watch.start()
        self._watches.append(watch)
        return watch

    def close(self) -> None:
        """ハンドルを無効化し、残っている監視を止める."""
        self._closed = True
        watches, self._watches = self._watches, []
        for watch in watches:
            watch.cancel()

    async def _ensure_signer_is_active(self) -> None:
        if self._signer is None:
            raise StaleBindingRaceException(reason="contract handle is read-only")

        try:
            accounts = await self.wallet.request("eth_accounts")
        except WalletProviderException as e:
            raise classify_submission_error(e, self._signer) from e

        active = accounts[0] if accounts else None
        if active is None or active.lower() != self._signer.lower():
            raise StaleBindingRaceException(
                reason="signer is no longer the wallet's active account"
            )


class Web3ContractBinder:
    """セッションごとに Web3BallotContract を生成する."""

    def __init__(
        self,
        w3: AsyncWeb3,
        wallet: IWalletProvider,
        event_poll_interval: float = 2.0,
        receipt_timeout: float = 180.0,
    ) -> None:
        self.w3 = w3
        self.wallet = wallet
        self.event_poll_interval = event_poll_interval
        self.receipt_timeout = receipt_timeout

    def bind(
        self, address: str, abi: list[dict[str, Any]], signer_account: str | None
    ) -> Web3BallotContract:
        """署名者に束縛されたハンドルを生成する."""
        return Web3BallotContract(
            self.w3,
            self.wallet,
            address,
            abi,
            signer_account,
            event_poll_interval=self.event_poll_interval,
            receipt_timeout=self.receipt_timeout,
        )

    def bind_read_only(
        self, address: str, abi: list[dict[str, Any]]
    ) -> Web3BallotContract:
        """署名者なしのハンドル（集計の表示・監視用）を生成する."""
        return self.bind(address, abi, None)
