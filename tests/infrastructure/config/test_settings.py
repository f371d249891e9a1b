"""Settings のテスト."""

from pathlib import Path

import pytest

from pydantic import ValidationError

from src.infrastructure.config.settings import Settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """テストに影響する環境変数を除去する."""
    for name in (
        "CHAIN_ID",
        "CHAIN_NAME",
        "RPC_URL",
        "BLOCK_EXPLORER_URL",
        "CONTRACT_ADDRESS",
        "CONTRACT_ABI_PATH",
        "LOG_LEVEL",
        "LOG_FORMAT",
    ):
        monkeypatch.delenv(name, raising=False)


class TestSettings:
    """設定の読み込み."""

    def test_defaults_target_shardeum_testnet(self) -> None:
        settings = Settings(_env_file=None)

        assert settings.chain_id == 8119
        assert settings.contract_abi_path == Path(
            "artifacts/contracts/RemoteVoting.sol/RemoteVoting.json"
        )
        assert settings.json_logs is False

    def test_environment_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CHAIN_ID", "31337")
        monkeypatch.setenv("RPC_URL", "http://127.0.0.1:8545")
        monkeypatch.setenv("LOG_LEVEL", "debug")
        monkeypatch.setenv("LOG_FORMAT", "JSON")

        settings = Settings(_env_file=None)

        assert settings.chain_id == 31337
        assert settings.rpc_url == "http://127.0.0.1:8545"
        assert settings.log_level == "DEBUG"
        assert settings.json_logs is True

    def test_invalid_log_format(self) -> None:
        with pytest.raises(ValidationError):
            Settings(_env_file=None, log_format="xml")

    def test_network_descriptor(self) -> None:
        settings = Settings(_env_file=None)

        network = settings.network_descriptor()

        assert network.chain_id_hex == "0x1FB7"
        assert network.chain_name == "Shardeum EVM Testnet"
        assert network.rpc_urls == ("https://api-mezame.shardeum.org",)
        assert network.native_currency.symbol == "SHM"
        assert network.native_currency.decimals == 18

    def test_network_without_explorer(self) -> None:
        settings = Settings(_env_file=None, block_explorer_url="")

        network = settings.network_descriptor()

        assert network.block_explorer_urls == ()
        assert network.explorer_address_url("0xabc") is None
