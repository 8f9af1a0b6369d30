"""
Round-robin tournament lifecycle: create a tournament from players or pairs,
record match results, derive standings and progress.

Every result recomputes standings, current round and completion from the
full schedule. The previous TournamentData is never modified; a new value is returned.
"""
from __future__ import annotations

import logging
from dataclasses import replace
from typing import Union

from teambalance.models import (
    Competitor,
    Gender,
    MatchPlayer,
    MatchSide,
    MatchStatus,
    MatchType,
    Player,
    Round,
    TournamentData,
)
from teambalance.services.pairing import detect_match_type
from teambalance.services.scheduling import generate_round_robin_schedule
from teambalance.services.standings import calculate_standings

logger = logging.getLogger(__name__)


class MatchNotFoundError(ValueError):
    """No match with the given id in the tournament schedule."""


Entrant = Union[Player, MatchPlayer, Competitor]


def to_competitor(entrant: Entrant) -> Competitor:
    if isinstance(entrant, Competitor):
        return entrant
    return Competitor.single(entrant)


def infer_match_type(competitors: list[Competitor]) -> MatchType | None:
    """Singles: MS/WS from genders. Pairs: MD, WD or XD. None when there is nobody."""
    if not competitors:
        return None
    if not any(c.is_pair for c in competitors):
        return detect_match_type([c.members[0] for c in competitors])
    genders = {g for c in competitors for g in c.genders}
    if len(genders) == 2:
        return MatchType.XD
    return MatchType.WD if genders == {Gender.FEMALE} else MatchType.MD


def decide_winner(score_a: int, score_b: int) -> MatchSide | None:
    """Strictly higher score wins. Equal scores produce no winner."""
    if score_a > score_b:
        return MatchSide.A
    if score_b > score_a:
        return MatchSide.B
    return None


def is_schedule_complete(schedule: list[Round]) -> bool:
    """True when there is at least one match and every match is completed."""
    matches = [m for rnd in schedule for m in rnd]
    return bool(matches) and all(m.is_completed for m in matches)


def compute_current_round(schedule: list[Round]) -> int:
    """1-based index of the first round with a pending match, else the last round."""
    for index, rnd in enumerate(schedule, start=1):
        if any(m.status == MatchStatus.PENDING for m in rnd):
            return index
    return max(1, len(schedule))


def competitors_from_schedule(schedule: list[Round]) -> list[Competitor]:
    """Distinct competitors in order of first appearance."""
    seen: dict[str, Competitor] = {}
    for rnd in schedule:
        for match in rnd:
            seen.setdefault(match.side_a.id, match.side_a)
            seen.setdefault(match.side_b.id, match.side_b)
    return list(seen.values())


def create_tournament(
    entrants: list[Entrant],
    match_type: MatchType | None = None,
) -> TournamentData:
    """
    New round-robin tournament. Entrants may be players or pair competitors.
    match_type is inferred from the entrants when omitted.
    """
    competitors = [to_competitor(e) for e in entrants]
    schedule = generate_round_robin_schedule(competitors)
    tournament = TournamentData(
        schedule=schedule,
        standings=calculate_standings(competitors, schedule),
        current_round=compute_current_round(schedule),
        is_complete=is_schedule_complete(schedule),
        competitors=competitors,
        match_type=match_type or infer_match_type(competitors),
    )
    logger.info(
        "Created round-robin tournament: %d competitors, %d rounds, %d matches",
        len(competitors),
        len(schedule),
        len(tournament.all_matches()),
    )
    return tournament


def record_tournament_match_result(
    tournament: TournamentData,
    match_id: str,
    score_a: int,
    score_b: int,
    strict: bool = False,
) -> TournamentData:
    """
    Record (or overwrite) the score of one match and recompute everything derived.
    Unknown match_id: the tournament is returned unchanged, or MatchNotFoundError
    is raised when strict=True.
    """
    score_a, score_b = int(score_a), int(score_b)
    found = False
    schedule: list[Round] = []
    for rnd in tournament.schedule:
        new_round: Round = []
        for match in rnd:
            if match.id == match_id:
                found = True
                match = replace(
                    match,
                    score_a=score_a,
                    score_b=score_b,
                    winner=decide_winner(score_a, score_b),
                    status=MatchStatus.COMPLETED,
                )
            new_round.append(match)
        schedule.append(new_round)

    if not found:
        if strict:
            raise MatchNotFoundError(f"Match not found: {match_id}")
        logger.warning("Ignoring result for unknown match id %s", match_id)
        return tournament

    competitors = tournament.competitors or competitors_from_schedule(schedule)
    return replace(
        tournament,
        schedule=schedule,
        standings=calculate_standings(competitors, schedule),
        current_round=compute_current_round(schedule),
        is_complete=is_schedule_complete(schedule),
        competitors=competitors,
    )
