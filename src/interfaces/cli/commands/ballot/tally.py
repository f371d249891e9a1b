"""集計表示コマンド."""

import asyncio

import click

from src.domain.value_objects.tally_snapshot import TallySnapshot
from src.interfaces.cli.base import with_error_handling
from src.interfaces.cli.commands.ballot.common import (
    format_tally,
    open_read_only_contract,
    resolve_container,
    tally_dataframe,
)


@click.command()
@click.option("--json", "as_json", is_flag=True, help="JSON形式で出力する")
@with_error_handling
def tally(as_json: bool):
    """台帳から現在の集計を読み取って表示する（読み取り専用）."""
    asyncio.run(_run_tally(as_json))


async def _run_tally(as_json: bool) -> None:
    container = resolve_container()
    contract = open_read_only_contract(container)
    try:
        snapshot = TallySnapshot.from_candidates(await contract.get_all_candidates())
    finally:
        contract.close()

    if as_json:
        click.echo(tally_dataframe(snapshot).to_json(orient="records", force_ascii=False))
    else:
        click.echo(format_tally(snapshot))
