"""Streamlitのセッション状態の薄いラッパー."""

from collections.abc import Callable
from typing import Any, TypeVar

import streamlit as st


T = TypeVar("T")


class SessionManager:
    """st.session_state へのアクセスをまとめる."""

    def __init__(self, namespace: str = "") -> None:
        self.namespace = namespace

    def _key(self, key: str) -> str:
        return f"{self.namespace}_{key}" if self.namespace else key

    def get(self, key: str, default: Any = None) -> Any:
        """値を取得する."""
        return st.session_state.get(self._key(key), default)

    def set(self, key: str, value: Any) -> None:
        """値を設定する."""
        st.session_state[self._key(key)] = value

    def get_or_create(self, key: str, default: T) -> T:
        """値がなければdefaultを保存して返す."""
        full_key = self._key(key)
        if full_key not in st.session_state:
            st.session_state[full_key] = default
        return st.session_state[full_key]

    def get_or_create_with(self, key: str, factory: Callable[[], T]) -> T:
        """値がなければfactoryの結果を保存して返す（生成は1回だけ）."""
        full_key = self._key(key)
        if full_key not in st.session_state:
            st.session_state[full_key] = factory()
        return st.session_state[full_key]

    def delete(self, key: str) -> None:
        """値を削除する."""
        st.session_state.pop(self._key(key), None)
