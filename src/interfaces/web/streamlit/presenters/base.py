"""プレゼンターの基底クラス.

Streamlitのスクリプト実行は同期的なため、非同期のユースケースは
専用バックグラウンドスレッドのevent loopで実行する。ウォレットの
監視や投票のレシート待ちなど長く生きるタスクも同じloopに載せ、
再描画（rerun）をまたいで継続させる。
"""

import asyncio
import threading

from abc import ABC, abstractmethod
from collections.abc import Coroutine
from concurrent.futures import Future
from typing import Any, Generic, TypeVar

from src.common.logging import get_logger
from src.infrastructure.di.container import Container


T = TypeVar("T")
R = TypeVar("R")

# 専用バックグラウンドスレッドのevent loop
_dedicated_loop: asyncio.AbstractEventLoop | None = None
_dedicated_loop_lock = threading.Lock()


def _get_dedicated_loop() -> asyncio.AbstractEventLoop:
    """非同期処理用の専用event loopを取得する（なければ起動する）."""
    global _dedicated_loop
    with _dedicated_loop_lock:
        if _dedicated_loop is None or _dedicated_loop.is_closed():
            _dedicated_loop = asyncio.new_event_loop()
            thread = threading.Thread(
                target=_dedicated_loop.run_forever,
                daemon=True,
                name="ballot-client-async",
            )
            thread.start()
        return _dedicated_loop


class BasePresenter(ABC, Generic[T]):
    """プレゼンターの基底クラス."""

    def __init__(self, container: Container | None = None):
        """プレゼンターを初期化する.

        Args:
            container: DIコンテナ（省略時は環境設定から生成）
        """
        self.container = container or Container.create_for_environment()
        self.logger = get_logger(self.__class__.__name__)

    @abstractmethod
    def load_data(self) -> T:
        """表示用データを読み込む."""

    @abstractmethod
    def handle_action(self, action: str, **kwargs: Any) -> Any:
        """ユーザーアクションを処理する."""

    def _run_async(self, coro: Coroutine[Any, Any, R]) -> R:
        """コルーチンを専用loopで実行し、完了を待つ.

        Streamlit/TornadoのメインEvent Loopには一切触れない。
        """
        try:
            loop = _get_dedicated_loop()
            future = asyncio.run_coroutine_threadsafe(coro, loop)
            return future.result()
        except Exception as e:
            self.logger.error(f"Failed to run async operation: {e}")
            raise

    def _submit_async(self, coro: Coroutine[Any, Any, R]) -> Future[R]:
        """コルーチンを専用loopへ投入し、完了を待たずにFutureを返す."""
        return asyncio.run_coroutine_threadsafe(coro, _get_dedicated_loop())
