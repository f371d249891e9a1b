"""Streamlit UI 起動コマンド."""

import subprocess
import sys

from pathlib import Path

import click

from src.interfaces.cli.base import with_error_handling


APP_PATH = Path(__file__).resolve().parents[3] / "web" / "streamlit" / "app.py"


@click.command()
@click.option("--port", type=int, default=8501, help="待ち受けポート")
@with_error_handling
def ui(port: int):
    """投票UIを起動する."""
    command = [
        sys.executable,
        "-m",
        "streamlit",
        "run",
        str(APP_PATH),
        "--server.port",
        str(port),
    ]
    click.echo(f"Starting RemoteChain UI on port {port}...")
    sys.exit(subprocess.call(command))
