"""デプロイ済みコントラクトのアドレスとABIの読み込み.

デプロイパイプラインが出力するHardhatのアーティファクトJSON
（``abi`` キーを持つ）と、ABIのリストだけのJSONの両方を受け付ける。
"""

import json

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from web3 import Web3

from src.domain.exceptions import ContractArtifactException


REQUIRED_MEMBERS = ("getAllCandidates", "voters", "vote", "VotedEvent")


@dataclass(frozen=True)
class ContractArtifact:
    """コントラクトのアドレスとABI."""

    address: str
    abi: list[dict[str, Any]]

    def member_names(self) -> set[str]:
        """ABIに含まれる関数・イベント名."""
        return {entry["name"] for entry in self.abi if "name" in entry}


def load_abi(path: Path) -> list[dict[str, Any]]:
    """ABIをファイルから読み込む."""
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ContractArtifactException(
            f"Contract ABI file not found: {path}", {"path": str(path)}
        ) from e
    except json.JSONDecodeError as e:
        raise ContractArtifactException(
            f"Contract ABI file is not valid JSON: {path}", {"path": str(path)}
        ) from e

    abi = raw.get("abi") if isinstance(raw, dict) else raw
    if not isinstance(abi, list):
        raise ContractArtifactException(
            f"No ABI list found in {path}", {"path": str(path)}
        )
    return abi


def load_contract_artifact(address: str, abi_path: Path) -> ContractArtifact:
    """アドレスとABIを検証して読み込む.

    Raises:
        ContractArtifactException: アドレスが不正、ABIが読めない、
            または必要な関数・イベントが欠けている場合
    """
    if not address or not Web3.is_address(address):
        raise ContractArtifactException(
            f"Invalid contract address: {address!r}", {"address": address}
        )

    artifact = ContractArtifact(
        address=Web3.to_checksum_address(address), abi=load_abi(Path(abi_path))
    )

    missing = [name for name in REQUIRED_MEMBERS if name not in artifact.member_names()]
    if missing:
        raise ContractArtifactException(
            f"Contract ABI is missing: {', '.join(missing)}", {"missing": missing}
        )
    return artifact
