"""投票ページの表示定数."""

from dataclasses import dataclass


@dataclass(frozen=True)
class PartyStyle:
    """政党のシンボルとテーマカラー."""

    symbol: str
    color: str


PARTIES: dict[str, PartyStyle] = {
    "Bharatiya Janata Party (BJP)": PartyStyle("🪷", "#FF6B00"),
    "Indian National Congress (INC)": PartyStyle("✋", "#00BFFF"),
    "Aam Aadmi Party (AAP)": PartyStyle("🧹", "#0047AB"),
    "Dravida Munnetra Kazhagam (DMK)": PartyStyle("☀️", "#E60000"),
    "Nota (None of the Above)": PartyStyle("✖️", "#6B7280"),
}

DEFAULT_PARTY = PartyStyle("🏛️", "#6366f1")

FEATURES = (
    ("🔒", "Tamper-Proof"),
    ("👁️", "Transparent"),
    ("🌍", "Vote Remotely"),
    ("🚫", "No Data Stored"),
)


def get_party(name: str) -> PartyStyle:
    """候補者名から表示スタイルを取得する."""
    return PARTIES.get(name, DEFAULT_PARTY)
