"""
Quick matches: auto-balanced ad-hoc lineups, their results, and team points.

A suggestion enumerates every legal lineup for the match type, keeps the ones
whose skill gap is within max(smallest gap, MAX_BALANCED_GAP), and picks one.
Without an rng the pick is the first lineup with the smallest gap, so the same
roster always gives the same suggestion. In team mode the two sides come from
different split teams and players without a team are left out.
"""
from __future__ import annotations

import logging
import random
from dataclasses import replace
from itertools import combinations

from teambalance.models import Gender, MatchPlayer, MatchStatus, MatchType, Player, QuickMatch, generate_id
from teambalance.services.tournament_service import MatchNotFoundError, decide_winner

logger = logging.getLogger(__name__)

MAX_BALANCED_GAP = 2
POINTS_PER_WIN = 1

Lineup = tuple[tuple[Player, ...], tuple[Player, ...]]


def _skill(side: tuple[Player, ...]) -> int:
    return sum(p.skill_level for p in side)


def _gap(lineup: Lineup) -> int:
    return abs(_skill(lineup[0]) - _skill(lineup[1]))


def _eligible(players: list[Player], match_type: MatchType) -> list[Player]:
    active = [p for p in players if p.is_active]
    if match_type in (MatchType.MS, MatchType.MD):
        return [p for p in active if p.gender == Gender.MALE]
    if match_type in (MatchType.WS, MatchType.WD):
        return [p for p in active if p.gender == Gender.FEMALE]
    return active


def _by_gender(players: list[Player], gender: Gender) -> list[Player]:
    return [p for p in players if p.gender == gender]


# ---------- Lineup enumeration ----------


def _free_play_lineups(eligible: list[Player], match_type: MatchType) -> list[Lineup]:
    if match_type == MatchType.XD:
        males = _by_gender(eligible, Gender.MALE)
        females = _by_gender(eligible, Gender.FEMALE)
        lineups: list[Lineup] = []
        for m1, m2 in combinations(males, 2):
            for f1, f2 in combinations(females, 2):
                lineups.append(((m1, f1), (m2, f2)))
                lineups.append(((m1, f2), (m2, f1)))
        return lineups
    if match_type.players_per_side == 2:
        # Both orientations of each disjoint pair of pairs
        return [
            (pair_a, pair_b)
            for pair_a in combinations(eligible, 2)
            for pair_b in combinations(eligible, 2)
            if not {p.id for p in pair_a} & {p.id for p in pair_b}
        ]
    return [((a,), (b,)) for a, b in combinations(eligible, 2)]


def _team_mode_lineups(eligible: list[Player], match_type: MatchType) -> list[Lineup]:
    groups: dict[str, list[Player]] = {}
    for p in eligible:
        if p.team:
            groups.setdefault(p.team, []).append(p)

    if match_type == MatchType.XD:
        sides = {
            name: [
                (m, f)
                for m in _by_gender(members, Gender.MALE)
                for f in _by_gender(members, Gender.FEMALE)
            ]
            for name, members in groups.items()
        }
    elif match_type.players_per_side == 2:
        sides = {name: list(combinations(members, 2)) for name, members in groups.items()}
    else:
        sides = {name: [(p,) for p in members] for name, members in groups.items()}

    names = [name for name in groups if sides[name]]
    return [
        (side_a, side_b)
        for first, second in combinations(names, 2)
        for side_a in sides[first]
        for side_b in sides[second]
    ]


def candidate_lineups(players: list[Player], match_type: MatchType, team_mode: bool = False) -> list[Lineup]:
    """Every legal lineup for match_type among the active players, in roster order."""
    eligible = _eligible(players, match_type)
    if team_mode:
        return _team_mode_lineups(eligible, match_type)
    return _free_play_lineups(eligible, match_type)


def balanced_lineups(lineups: list[Lineup]) -> list[Lineup]:
    """Lineups whose skill gap is within max(smallest gap, MAX_BALANCED_GAP)."""
    if not lineups:
        return []
    limit = max(min(_gap(lineup) for lineup in lineups), MAX_BALANCED_GAP)
    return [lineup for lineup in lineups if _gap(lineup) <= limit]


# ---------- Quick matches ----------


def create_quick_match(
    side_a: list[Player] | list[MatchPlayer],
    side_b: list[Player] | list[MatchPlayer],
    match_type: MatchType,
    match_id: str | None = None,
) -> QuickMatch:
    """Pending quick match; players are snapshotted."""

    def snapshot(side) -> tuple[MatchPlayer, ...]:
        return tuple(p if isinstance(p, MatchPlayer) else MatchPlayer.from_player(p) for p in side)

    return QuickMatch(
        id=match_id or generate_id(),
        match_type=match_type,
        side_a=snapshot(side_a),
        side_b=snapshot(side_b),
    )


def suggest_balanced_match(
    players: list[Player],
    match_type: MatchType,
    team_mode: bool = False,
    rng: random.Random | None = None,
    match_id: str | None = None,
) -> QuickMatch | None:
    """
    Auto-balanced quick match, or None when the roster cannot field one.
    With rng, one of the balanced lineups is picked at random.
    """
    lineups = candidate_lineups(players, match_type, team_mode)
    good = balanced_lineups(lineups)
    if not good:
        logger.debug("No %s lineup available (team_mode=%s)", match_type.value, team_mode)
        return None
    if rng is None:
        chosen = min(good, key=_gap)
    else:
        chosen = rng.choice(good)
    logger.debug(
        "Suggested %s lineup with skill gap %d from %d balanced of %d candidates",
        match_type.value,
        _gap(chosen),
        len(good),
        len(lineups),
    )
    return create_quick_match(list(chosen[0]), list(chosen[1]), match_type, match_id=match_id)


def record_match_result(
    matches: list[QuickMatch],
    match_id: str,
    score_a: int,
    score_b: int,
    strict: bool = False,
) -> list[QuickMatch]:
    """
    Record (or overwrite) a quick match score. Returns a new list; equal scores
    complete the match with no winner. Unknown match_id returns the list
    unchanged, or raises MatchNotFoundError when strict=True.
    """
    score_a, score_b = int(score_a), int(score_b)
    updated: list[QuickMatch] = []
    found = False
    for match in matches:
        if match.id == match_id:
            found = True
            match = replace(
                match,
                score_a=score_a,
                score_b=score_b,
                winner=decide_winner(score_a, score_b),
                status=MatchStatus.COMPLETED,
            )
        updated.append(match)

    if not found:
        if strict:
            raise MatchNotFoundError(f"Match not found: {match_id}")
        logger.warning("Ignoring result for unknown quick match id %s", match_id)
        return matches
    return updated


def team_points(matches: list[QuickMatch], players: list[Player]) -> dict[str, int]:
    """
    Points per split team, recomputed from completed quick matches.
    Each win is worth one point to the current team of the first winning player.
    Every team on the roster is listed, starting at zero.
    """
    team_of = {p.id: p.team for p in players}
    points: dict[str, int] = {}
    for p in players:
        if p.team:
            points.setdefault(p.team, 0)

    for match in matches:
        if not match.is_completed:
            continue
        winners = match.winning_side()
        if not winners:
            continue
        team = team_of.get(winners[0].id)
        if team:
            points[team] = points.get(team, 0) + POINTS_PER_WIN
    return points
