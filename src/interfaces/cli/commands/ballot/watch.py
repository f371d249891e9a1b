"""投票イベント監視コマンド."""

import asyncio

import click

from src.domain.value_objects.tally_snapshot import TallySnapshot
from src.interfaces.cli.base import BaseCommand, with_error_handling
from src.interfaces.cli.commands.ballot.common import (
    format_tally,
    open_read_only_contract,
    resolve_container,
)


@click.command()
@click.option(
    "--duration",
    type=float,
    default=None,
    help="監視を続ける秒数（省略時はCtrl+Cまで）",
)
@with_error_handling
def watch(duration: float | None):
    """VotedEventを監視し、新しい投票のたびに集計を再表示する."""
    asyncio.run(_run_watch(duration))


async def _run_watch(duration: float | None) -> None:
    container = resolve_container()
    contract = open_read_only_contract(container)
    subscriber = container.services.vote_event_subscriber()

    async def print_tally() -> None:
        snapshot = TallySnapshot.from_candidates(await contract.get_all_candidates())
        click.echo(format_tally(snapshot))
        click.echo("")

    # 初回表示より先に監視を始める
    subscription = await subscriber.subscribe_contract(contract, print_tally)
    try:
        await print_tally()
        BaseCommand.show_progress("Watching for new votes... (Ctrl+C to stop)")
        if duration is None:
            await asyncio.Event().wait()
        else:
            await asyncio.sleep(duration)
    finally:
        await subscription.close()
        contract.close()
