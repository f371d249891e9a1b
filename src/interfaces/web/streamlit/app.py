"""RemoteChain 投票アプリのエントリーポイント.

``streamlit run src/interfaces/web/streamlit/app.py`` または
``remotechain ui`` で起動する。
"""

import streamlit as st

from src.common.logging import is_configured, setup_logging
from src.infrastructure.config.settings import get_settings
from src.interfaces.web.streamlit.views.ballot.ballot_view import render_ballot_page


def main() -> None:
    """アプリを描画する."""
    settings = get_settings()
    if not is_configured():
        setup_logging(settings.log_level, json_format=settings.json_logs)

    st.set_page_config(page_title="RemoteChain", page_icon="🗳️", layout="centered")
    render_ballot_page()


main()
