"""RemoteChain CLI のエントリーポイント."""

import click

from src.common.logging import setup_logging
from src.infrastructure.config.settings import get_settings
from src.interfaces.cli.commands.ballot import network, tally, ui, watch


@click.group()
@click.option("--log-level", default=None, help="ログレベル（既定は設定値）")
@click.option("--json-logs", is_flag=True, help="JSON形式でログを出力する")
def cli(log_level: str | None, json_logs: bool):
    """RemoteChain 投票クライアント."""
    settings = get_settings()
    setup_logging(
        log_level or settings.log_level,
        json_format=json_logs or settings.json_logs,
    )


cli.add_command(tally)
cli.add_command(watch)
cli.add_command(network)
cli.add_command(ui)


if __name__ == "__main__":
    cli()
