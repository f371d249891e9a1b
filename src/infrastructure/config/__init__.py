"""
Configuration module for the ballot client.

設定管理の一元化モジュール。settings.pyが唯一のエントリーポイント。
"""

from src.infrastructure.config.contract_artifact import (
    ContractArtifact,
    load_contract_artifact,
)
from src.infrastructure.config.settings import (
    ENV_FILE_PATH,
    Settings,
    find_env_file,
    get_settings,
    reload_settings,
    settings,
)


__all__ = [
    # Settings
    "Settings",
    "settings",
    "get_settings",
    "reload_settings",
    "find_env_file",
    "ENV_FILE_PATH",
    # Contract artifact
    "ContractArtifact",
    "load_contract_artifact",
]
