"""投票CLIコマンドのテスト."""

import json

from unittest.mock import AsyncMock, MagicMock, patch

from click.testing import CliRunner

from src.application.services.vote_event_subscriber import VoteEventSubscriber
from src.domain.exceptions import LedgerUnavailableException
from src.domain.services.network_identity_guard import (
    NetworkCheckResult,
    NetworkIdentityGuard,
)
from src.interfaces.cli.commands.ballot.network import network
from src.interfaces.cli.commands.ballot.tally import tally
from src.interfaces.cli.commands.ballot.watch import watch
from src.interfaces.cli.main import cli
from tests.fixtures.ballot_fakes import SHARDEUM, FakeBallotContract, make_candidates


_COMMON_PATH = "src.interfaces.cli.commands.ballot.common"


def _mock_container(mock_get_container: MagicMock) -> MagicMock:
    mock_container = MagicMock()
    mock_container.infrastructure.network.return_value = SHARDEUM
    mock_get_container.return_value = mock_container
    return mock_container


class TestNetworkCommand:
    @patch(f"{_COMMON_PATH}.get_container")
    def test_prints_add_chain_params(self, mock_get_container: MagicMock) -> None:
        _mock_container(mock_get_container)

        result = CliRunner().invoke(network)

        assert result.exit_code == 0
        params = json.loads(result.output)
        assert params["chainId"] == "0x1FB7"
        assert params["chainName"] == "Shardeum EVM Testnet"
        assert params["nativeCurrency"]["symbol"] == "SHM"

    @patch(f"{_COMMON_PATH}.get_container")
    def test_apply_requests_switch(self, mock_get_container: MagicMock) -> None:
        mock_container = _mock_container(mock_get_container)
        guard = AsyncMock(spec=NetworkIdentityGuard)
        guard.ensure_network.return_value = NetworkCheckResult.OK
        mock_container.services.network_identity_guard.return_value = guard
        wallet = AsyncMock()
        mock_container.infrastructure.wallet.return_value = wallet

        result = CliRunner().invoke(network, ["--apply"])

        assert result.exit_code == 0
        assert "Wallet is on Shardeum EVM Testnet" in result.output
        guard.ensure_network.assert_awaited_once_with(SHARDEUM)
        wallet.close.assert_awaited_once()

    @patch(f"{_COMMON_PATH}.get_container")
    def test_apply_rejected(self, mock_get_container: MagicMock) -> None:
        mock_container = _mock_container(mock_get_container)
        guard = AsyncMock(spec=NetworkIdentityGuard)
        guard.ensure_network.return_value = NetworkCheckResult.NEEDS_MANUAL_SWITCH
        mock_container.services.network_identity_guard.return_value = guard
        mock_container.infrastructure.wallet.return_value = AsyncMock()

        result = CliRunner().invoke(network, ["--apply"])

        assert result.exit_code == 1


class TestTallyCommand:
    @patch(f"{_COMMON_PATH}.get_container")
    @patch("src.interfaces.cli.commands.ballot.tally.open_read_only_contract")
    def test_prints_table(
        self, mock_open: MagicMock, mock_get_container: MagicMock
    ) -> None:
        _mock_container(mock_get_container)
        contract = FakeBallotContract(candidates=make_candidates(3, 1))
        mock_open.return_value = contract

        result = CliRunner().invoke(tally)

        assert result.exit_code == 0
        assert "Party 1" in result.output
        assert "75.0%" in result.output
        assert "25.0%" in result.output
        assert "Total votes cast: 4" in result.output
        assert contract.closed

    @patch(f"{_COMMON_PATH}.get_container")
    @patch("src.interfaces.cli.commands.ballot.tally.open_read_only_contract")
    def test_json_output(
        self, mock_open: MagicMock, mock_get_container: MagicMock
    ) -> None:
        _mock_container(mock_get_container)
        mock_open.return_value = FakeBallotContract(candidates=make_candidates(1, 2))

        result = CliRunner().invoke(tally, ["--json"])

        assert result.exit_code == 0
        rows = json.loads(result.output)
        assert rows[0] == {"id": 1, "name": "Party 1", "votes": 1, "share": "33.3"}
        assert rows[1]["share"] == "66.7"

    @patch(f"{_COMMON_PATH}.get_container")
    @patch("src.interfaces.cli.commands.ballot.tally.open_read_only_contract")
    def test_no_candidates(
        self, mock_open: MagicMock, mock_get_container: MagicMock
    ) -> None:
        _mock_container(mock_get_container)
        mock_open.return_value = FakeBallotContract(candidates=[])

        result = CliRunner().invoke(tally)

        assert result.exit_code == 0
        assert "No candidates registered." in result.output

    @patch(f"{_COMMON_PATH}.get_container")
    @patch("src.interfaces.cli.commands.ballot.tally.open_read_only_contract")
    def test_ledger_error_exits_with_error(
        self, mock_open: MagicMock, mock_get_container: MagicMock
    ) -> None:
        _mock_container(mock_get_container)
        contract = FakeBallotContract()
        contract.get_all_candidates = AsyncMock(
            side_effect=LedgerUnavailableException("getAllCandidates", "rpc down")
        )
        mock_open.return_value = contract

        result = CliRunner().invoke(tally)

        assert result.exit_code == 1
        assert contract.closed


class TestWatchCommand:
    @patch(f"{_COMMON_PATH}.get_container")
    @patch("src.interfaces.cli.commands.ballot.watch.open_read_only_contract")
    def test_prints_initial_tally_and_closes(
        self, mock_open: MagicMock, mock_get_container: MagicMock
    ) -> None:
        mock_container = _mock_container(mock_get_container)
        mock_container.services.vote_event_subscriber.return_value = (
            VoteEventSubscriber()
        )
        contract = FakeBallotContract(candidates=make_candidates(2))
        mock_open.return_value = contract

        result = CliRunner().invoke(watch, ["--duration", "0"])

        assert result.exit_code == 0
        assert "Total votes cast: 2" in result.output
        assert "Watching for new votes" in result.output
        assert len(contract.watches) == 1
        assert contract.watches[0].close_count == 1
        assert contract.closed


class TestCliGroup:
    def test_lists_commands(self) -> None:
        result = CliRunner().invoke(cli, ["--help"])

        assert result.exit_code == 0
        for name in ("tally", "watch", "network", "ui"):
            assert name in result.output
