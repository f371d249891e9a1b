"""ローカルウォレット（JSON-RPCエンドポイント）接続パッケージ."""

from .client import JsonRpcWalletProvider


__all__ = ["JsonRpcWalletProvider"]
