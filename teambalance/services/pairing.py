"""
Match types and doubles pairs.
Which formats a group can play, and building validated pair competitors.
"""
from __future__ import annotations

from teambalance.models import Competitor, Gender, MatchPlayer, MatchType, Player


class InvalidPairError(ValueError):
    """Two players cannot form a pair for the requested match type."""


# Fallback order when the preferred type cannot be played
MATCH_TYPE_ORDER = [MatchType.MD, MatchType.WD, MatchType.XD, MatchType.MS, MatchType.WS]


def count_genders(players: list[Player] | list[MatchPlayer]) -> tuple[int, int]:
    """(male_count, female_count)."""
    male = sum(1 for p in players if p.gender == Gender.MALE)
    return male, len(players) - male


def detect_match_type(players: list[Player] | list[MatchPlayer]) -> MatchType:
    """All male -> MS, all female -> WS. Mixed groups default to MS."""
    male, female = count_genders(players)
    if female and not male:
        return MatchType.WS
    return MatchType.MS


def can_play_match_type(match_type: MatchType, male_count: int, female_count: int) -> bool:
    """Enough players of the right genders for one match of this type."""
    if match_type == MatchType.MS:
        return male_count >= 2
    if match_type == MatchType.WS:
        return female_count >= 2
    if match_type == MatchType.MD:
        return male_count >= 4
    if match_type == MatchType.WD:
        return female_count >= 4
    return male_count >= 2 and female_count >= 2


def first_playable_match_type(
    male_count: int,
    female_count: int,
    preferred: MatchType | None = None,
) -> MatchType:
    if preferred is not None and can_play_match_type(preferred, male_count, female_count):
        return preferred
    for match_type in MATCH_TYPE_ORDER:
        if can_play_match_type(match_type, male_count, female_count):
            return match_type
    return MatchType.MD


def validate_pair(match_type: MatchType, first: MatchPlayer, second: MatchPlayer) -> None:
    """Raise InvalidPairError if the two players cannot pair up for match_type."""
    if first.id == second.id:
        raise InvalidPairError("A pair needs two different players")
    if match_type.players_per_side != 2:
        raise InvalidPairError(f"{match_type.value} is a singles format; pairs are not allowed")
    genders = {first.gender, second.gender}
    if match_type == MatchType.MD and genders != {Gender.MALE}:
        raise InvalidPairError("Men's doubles needs two male players")
    if match_type == MatchType.WD and genders != {Gender.FEMALE}:
        raise InvalidPairError("Women's doubles needs two female players")
    if match_type == MatchType.XD and len(genders) != 2:
        raise InvalidPairError("Mixed doubles needs one male and one female player")


def create_pair(
    first: Player | MatchPlayer,
    second: Player | MatchPlayer,
    match_type: MatchType | None = None,
    pair_id: str | None = None,
    name: str | None = None,
) -> Competitor:
    """
    Pair competitor from two players. With a match_type the genders are checked.
    Without pair_id a synthetic id is derived from the member ids.
    """
    a = first if isinstance(first, MatchPlayer) else MatchPlayer.from_player(first)
    b = second if isinstance(second, MatchPlayer) else MatchPlayer.from_player(second)
    if match_type is not None:
        validate_pair(match_type, a, b)
    elif a.id == b.id:
        raise InvalidPairError("A pair needs two different players")
    return Competitor.pair(a, b, pair_id=pair_id, label=name.strip() if name and name.strip() else None)
