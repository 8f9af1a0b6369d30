"""
Standings table derived from completed matches.
Always recomputed from scratch; nothing is carried over from earlier tables.
"""
from __future__ import annotations

from dataclasses import dataclass, replace

from teambalance.models import Competitor, MatchSide, Round, Standing

# ---------- Points ----------
WIN_POINTS = 2
LOSS_POINTS = 0


@dataclass
class _Tally:
    played: int = 0
    wins: int = 0
    losses: int = 0
    points: int = 0
    score_difference: int = 0

    def record(self, won: bool, scored: int, conceded: int) -> None:
        self.played += 1
        if won:
            self.wins += 1
            self.points += WIN_POINTS
        else:
            self.losses += 1
            self.points += LOSS_POINTS
        self.score_difference += scored - conceded


def sort_key(standing: Standing) -> tuple[int, int, int]:
    """Points desc, then wins desc, then losses asc."""
    return (-standing.points, -standing.wins, standing.losses)


def assign_ranks(ordered: list[Standing]) -> list[Standing]:
    """
    Standard competition ranking on points: rows level on points with the row
    above share its rank, the next row resumes at its 1-based position (1, 2, 2, 4).
    """
    ranked: list[Standing] = []
    for position, standing in enumerate(ordered, start=1):
        if ranked and standing.points == ranked[-1].points:
            rank = ranked[-1].rank
        else:
            rank = position
        ranked.append(replace(standing, rank=rank))
    return ranked


def calculate_standings(competitors: list[Competitor], schedule: list[Round]) -> list[Standing]:
    """
    Ranked table over completed matches that have a winner.
    A completed match with equal scores has no winner and counts for neither side.
    Sides that are not in `competitors` are ignored.
    """
    unique: dict[str, Competitor] = {}
    for c in competitors:
        unique.setdefault(c.id, c)
    tallies: dict[str, _Tally] = {cid: _Tally() for cid in unique}

    for rnd in schedule:
        for match in rnd:
            if not match.is_completed or match.winner is None:
                continue
            score_a = match.score_a or 0
            score_b = match.score_b or 0
            tally_a = tallies.get(match.side_a.id)
            tally_b = tallies.get(match.side_b.id)
            if tally_a is not None:
                tally_a.record(match.winner == MatchSide.A, score_a, score_b)
            if tally_b is not None:
                tally_b.record(match.winner == MatchSide.B, score_b, score_a)

    rows = [
        Standing(
            competitor=c,
            played=tallies[c.id].played,
            wins=tallies[c.id].wins,
            losses=tallies[c.id].losses,
            points=tallies[c.id].points,
            score_difference=tallies[c.id].score_difference,
        )
        for c in unique.values()
    ]
    rows.sort(key=sort_key)
    return assign_ranks(rows)
