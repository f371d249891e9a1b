"""Wallet session entity."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Session:
    """ウォレット接続セッション.

    アカウントまたはネットワークが変わった場合は部分的に更新せず、
    新しいepochのSessionとして作り直す。
    """

    account_address: str | None
    network_id: int | None
    epoch: int

    @property
    def is_connected(self) -> bool:
        """アカウントとネットワークの両方が確定しているか."""
        return self.account_address is not None and self.network_id is not None

    def matches(self, account_address: str | None, network_id: int | None) -> bool:
        """同じ(アカウント, ネットワーク)の組を指しているか.

        アドレスは大文字小文字（チェックサム表記）を無視して比較する。
        """
        if network_id != self.network_id:
            return False
        if account_address is None or self.account_address is None:
            return account_address is self.account_address
        return account_address.lower() == self.account_address.lower()

    @property
    def short_account(self) -> str:
        """表示用の省略アドレス（0x1234...abcd）."""
        if not self.account_address:
            return ""
        return f"{self.account_address[:6]}...{self.account_address[-4:]}"
