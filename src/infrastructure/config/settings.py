"""Application settings.

環境変数・.envファイルから読み込む設定。既定値はデプロイ先の
Shardeum テストネットに合わせている。
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.domain.value_objects.network_descriptor import (
    NativeCurrency,
    NetworkDescriptor,
)


def find_env_file() -> Path | None:
    """カレントディレクトリから上位へ.envファイルを探す."""
    current = Path.cwd()
    for directory in (current, *current.parents):
        candidate = directory / ".env"
        if candidate.is_file():
            return candidate
    return None


ENV_FILE_PATH = find_env_file()


class Settings(BaseSettings):
    """投票クライアントの設定."""

    model_config = SettingsConfigDict(
        env_file=ENV_FILE_PATH,
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # Network
    chain_id: int = Field(default=8119, description="Ballot chain id")
    chain_name: str = Field(default="Shardeum EVM Testnet")
    rpc_url: str = Field(default="https://api-mezame.shardeum.org")
    block_explorer_url: str = Field(default="https://explorer-mezame.shardeum.org")
    currency_name: str = Field(default="SHM")
    currency_symbol: str = Field(default="SHM")
    currency_decimals: int = Field(default=18)

    # Contract
    contract_address: str = Field(
        default="0x712538e4C48303De0a9A17Bea53e8580D373Cccd",
        description="Deployed ballot contract address",
    )
    contract_abi_path: Path = Field(
        default=Path("artifacts/contracts/RemoteVoting.sol/RemoteVoting.json"),
        description="Hardhat artifact JSON or bare ABI list",
    )

    # Wallet
    wallet_rpc_url: str = Field(
        default="http://127.0.0.1:1248",
        description="Local JSON-RPC wallet endpoint (e.g. Frame)",
    )
    wallet_poll_interval: float = Field(default=1.0, gt=0)
    wallet_timeout: float = Field(default=120.0, gt=0)

    # Ledger
    event_poll_interval: float = Field(default=2.0, gt=0)
    tx_receipt_timeout: float = Field(default=180.0, gt=0)
    tx_status_display_seconds: float = Field(default=4.0, ge=0)

    # Logging
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="console", description="console or json")

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        return value.upper()

    @field_validator("log_format")
    @classmethod
    def _check_log_format(cls, value: str) -> str:
        value = value.lower()
        if value not in ("console", "json"):
            raise ValueError("log_format must be 'console' or 'json'")
        return value

    @property
    def json_logs(self) -> bool:
        """JSON形式でログを出力するか."""
        return self.log_format == "json"

    def network_descriptor(self) -> NetworkDescriptor:
        """設定から投票先ネットワークの情報を組み立てる."""
        return NetworkDescriptor(
            chain_id=self.chain_id,
            chain_name=self.chain_name,
            rpc_urls=(self.rpc_url,),
            block_explorer_urls=(
                (self.block_explorer_url,) if self.block_explorer_url else ()
            ),
            native_currency=NativeCurrency(
                name=self.currency_name,
                symbol=self.currency_symbol,
                decimals=self.currency_decimals,
            ),
        )


@lru_cache
def get_settings() -> Settings:
    """設定のシングルトンを取得する."""
    return Settings()


def reload_settings() -> Settings:
    """キャッシュを破棄して設定を読み直す."""
    get_settings.cache_clear()
    return get_settings()


settings = get_settings()
