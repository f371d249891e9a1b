"""ネットワーク識別情報の Value Object."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class NativeCurrency:
    """ネットワークのネイティブ通貨."""

    name: str
    symbol: str
    decimals: int = 18


@dataclass(frozen=True)
class NetworkDescriptor:
    """ウォレットに追加・切り替えを要求する台帳ネットワーク.

    chain_idは数値で保持し、ウォレットへの要求時のみ16進表記に変換する。
    """

    chain_id: int
    chain_name: str
    rpc_urls: tuple[str, ...]
    block_explorer_urls: tuple[str, ...] = field(default_factory=tuple)
    native_currency: NativeCurrency = field(
        default_factory=lambda: NativeCurrency(name="ETH", symbol="ETH")
    )

    @property
    def chain_id_hex(self) -> str:
        """EIP-3085形式の16進チェーンID（例: 8119 → "0x1FB7"）."""
        return f"0x{self.chain_id:X}"

    def matches(self, chain_id: int | str | None) -> bool:
        """ウォレットが返したチェーンIDと一致するか."""
        parsed = parse_chain_id(chain_id)
        return parsed is not None and parsed == self.chain_id

    def to_switch_params(self) -> list[dict[str, str]]:
        """wallet_switchEthereumChain のパラメータ."""
        return [{"chainId": self.chain_id_hex}]

    def to_add_chain_params(self) -> list[dict[str, Any]]:
        """wallet_addEthereumChain のパラメータ（ネットワーク全情報）."""
        return [
            {
                "chainId": self.chain_id_hex,
                "chainName": self.chain_name,
                "rpcUrls": list(self.rpc_urls),
                "blockExplorerUrls": list(self.block_explorer_urls),
                "nativeCurrency": {
                    "name": self.native_currency.name,
                    "symbol": self.native_currency.symbol,
                    "decimals": self.native_currency.decimals,
                },
            }
        ]

    def explorer_address_url(self, address: str) -> str | None:
        """エクスプローラー上のアドレスページURL."""
        if not self.block_explorer_urls:
            return None
        return f"{self.block_explorer_urls[0].rstrip('/')}/address/{address}"


def parse_chain_id(value: int | str | None) -> int | None:
    """ウォレットが返すチェーンID（"0x1fb7" / "8119" / 8119）を数値に変換."""
    if value is None or value == "":
        return None
    if isinstance(value, int):
        return value
    try:
        text = value.strip().lower()
        if text.startswith("0x"):
            return int(text, 16)
        return int(text)
    except (ValueError, AttributeError):
        return None
