"""CLIコマンドの共通処理."""

import functools
import sys

from collections.abc import Callable
from typing import Any, TypeVar

import click

from src.common.logging import get_logger
from src.domain.exceptions import BallotClientException


F = TypeVar("F", bound=Callable[..., Any])

logger = get_logger(__name__)


class BaseCommand:
    """CLIコマンドの出力ヘルパー."""

    @staticmethod
    def show_progress(message: str) -> None:
        """進捗メッセージを表示する."""
        click.echo(message)

    @staticmethod
    def success(message: str) -> None:
        """成功メッセージを表示する."""
        click.secho(f"✓ {message}", fg="green")

    @staticmethod
    def warning(message: str) -> None:
        """警告メッセージを表示する."""
        click.secho(f"⚠ {message}", fg="yellow")

    @staticmethod
    def error(message: str, exit_code: int = 1) -> None:
        """エラーメッセージを表示して終了する."""
        click.secho(f"✗ {message}", fg="red", err=True)
        sys.exit(exit_code)


def with_error_handling(func: F) -> F:
    """ドメイン例外をCLIのエラー表示に変換するデコレーター."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except BallotClientException as e:
            logger.error(f"Command failed: {e.message}")
            BaseCommand.error(e.message)
        except KeyboardInterrupt:
            click.echo("\nInterrupted")
            sys.exit(130)

    return wrapper  # type: ignore[return-value]
