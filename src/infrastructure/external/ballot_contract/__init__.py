"""web3.py による投票コントラクト接続パッケージ."""

from .web3_contract import (
    VotedEventWatch,
    Web3BallotContract,
    Web3ContractBinder,
    create_async_web3,
    event_signature,
    event_topic,
)


__all__ = [
    "VotedEventWatch",
    "Web3BallotContract",
    "Web3ContractBinder",
    "create_async_web3",
    "event_signature",
    "event_topic",
]
