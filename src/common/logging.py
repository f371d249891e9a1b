"""構造化ロギングの設定.

structlogを標準loggingの上に載せ、アプリケーション全体で
``get_logger(__name__)`` から同じ出力形式のロガーを取得できるようにする。
"""

import logging
import sys

from typing import Any

import structlog


_configured = False


def setup_logging(
    log_level: str = "INFO",
    json_format: bool = False,
    stream: Any = None,
) -> None:
    """structlogと標準loggingを初期化する.

    Args:
        log_level: ログレベル（"DEBUG", "INFO" など）
        json_format: TrueならJSON Lines、Falseなら開発用のコンソール表示
        stream: 出力先（省略時はstderr）
    """
    global _configured

    level = getattr(logging, log_level.upper(), logging.INFO)

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    renderer: Any
    if json_format:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    # web3/httpxのリクエスト単位のログは多すぎるため抑制
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))
    logging.getLogger("web3").setLevel(max(level, logging.WARNING))

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    _configured = True


def get_logger(name: str) -> Any:
    """モジュール用のロガーを取得する."""
    return structlog.get_logger(name)


def is_configured() -> bool:
    """setup_loggingが呼ばれたかどうかを返す."""
    return _configured
