"""ネットワーク情報コマンド."""

import asyncio
import json

import click

from src.domain.services.network_identity_guard import NetworkCheckResult
from src.interfaces.cli.base import BaseCommand, with_error_handling
from src.interfaces.cli.commands.ballot.common import resolve_container


@click.command()
@click.option(
    "--apply",
    is_flag=True,
    help="ウォレットにネットワークの切り替え（必要なら追加）を要求する",
)
@with_error_handling
def network(apply: bool):
    """wallet_addEthereumChain に渡すネットワーク情報を表示する."""
    container = resolve_container()
    descriptor = container.infrastructure.network()
    click.echo(
        json.dumps(descriptor.to_add_chain_params()[0], indent=2, ensure_ascii=False)
    )

    if apply:
        result = asyncio.run(_apply(container, descriptor))
        if result is NetworkCheckResult.OK:
            BaseCommand.success(f"Wallet is on {descriptor.chain_name}")
        else:
            BaseCommand.error(
                f"Please switch your wallet to {descriptor.chain_name} manually"
            )


async def _apply(container, descriptor) -> NetworkCheckResult:
    guard = container.services.network_identity_guard()
    wallet = container.infrastructure.wallet()
    try:
        return await guard.ensure_network(descriptor)
    finally:
        await wallet.close()
