"""投票CLIコマンドの共通処理."""

import pandas as pd

from src.domain.value_objects.tally_snapshot import TallySnapshot
from src.infrastructure.di.container import Container, get_container, init_container
from src.infrastructure.external.ballot_contract import Web3BallotContract


def resolve_container() -> Container:
    """初期化済みのコンテナ、なければ新しく初期化したものを返す."""
    try:
        return get_container()
    except RuntimeError:
        return init_container()


def open_read_only_contract(container: Container) -> Web3BallotContract:
    """署名者なしのコントラクトハンドルを生成する."""
    artifact = container.infrastructure.contract_artifact()
    binder = container.infrastructure.contract_binder()
    return binder.bind_read_only(artifact.address, artifact.abi)


def tally_dataframe(snapshot: TallySnapshot) -> pd.DataFrame:
    """集計を表示用のDataFrameに変換する."""
    return pd.DataFrame(
        [
            {
                "id": candidate.id,
                "name": candidate.name,
                "votes": candidate.vote_count,
                "share": str(snapshot.percentage_of(candidate)),
            }
            for candidate in snapshot.candidates
        ],
        columns=["id", "name", "votes", "share"],
    )


def format_tally(snapshot: TallySnapshot) -> str:
    """集計をテキスト表にする."""
    if snapshot.is_empty:
        return "No candidates registered."
    frame = tally_dataframe(snapshot)
    frame["share"] = frame["share"] + "%"
    return (
        frame.to_string(index=False)
        + f"\n\nTotal votes cast: {snapshot.total_votes}"
    )
