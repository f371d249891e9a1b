"""投票クライアント CLI コマンド."""

from src.interfaces.cli.commands.ballot.network import network
from src.interfaces.cli.commands.ballot.tally import tally
from src.interfaces.cli.commands.ballot.ui import ui
from src.interfaces.cli.commands.ballot.watch import watch


__all__ = ["network", "tally", "ui", "watch"]
