"""
Deterministic round-robin schedule generation for tournaments.

Round-robin is used so every competitor meets every other competitor exactly
once; the tournament lasts N-1 rounds (N even) or N rounds (N odd).

BYE handling: when the number of competitors is odd, we add a virtual BYE.
Each round one competitor is paired with BYE and sits out. Bye pairings take
part in the rotation but never become matches.

Uses the circle method: fix first slot, rotate others each round. Same
competitor ordering yields the same schedule, including match ids.
"""
from __future__ import annotations

from teambalance.models import Competitor, Round, TournamentMatch


def match_id(round_number: int, position: int) -> str:
    """Deterministic match id from 1-based round and pairing position."""
    return f"r{round_number}-m{position}"


def circle_rounds(count: int) -> list[list[tuple[int, int | None]]]:
    """
    Index pairings per round for `count` slots.
    Each entry is (home_index, away_index); away_index is None for a bye.
    """
    if count < 2:
        return []
    n = count + 1 if count % 2 == 1 else count
    bye_slot = count if n != count else None
    order = list(range(n))
    rounds: list[list[tuple[int, int | None]]] = []
    # Circle method: indices 0..N-1. Fix 0, rotate 1..N-1 each round.
    # Round 1: pair (0, N-1), (1, N-2), (2, N-3), ...
    for _ in range(n - 1):
        pairings: list[tuple[int, int | None]] = []
        for i in range(n // 2):
            a, b = order[i], order[n - 1 - i]
            if a == bye_slot:
                pairings.append((b, None))
            elif b == bye_slot:
                pairings.append((a, None))
            else:
                pairings.append((a, b))
        rounds.append(pairings)
        # Rotate: keep 0, then order[N-1], order[1], order[2], ..., order[N-2]
        order = [order[0]] + [order[n - 1]] + order[1 : n - 1]
    return rounds


def round_robin_pairings(ids: list[str]) -> list[tuple[int, str, str | None]]:
    """
    Round-robin pairings: (round_number, home_id, away_id).
    away_id is None when home_id has a bye (odd number of competitors).
    """
    result: list[tuple[int, str, str | None]] = []
    for round_index, pairings in enumerate(circle_rounds(len(ids))):
        for a, b in pairings:
            result.append((round_index + 1, ids[a], ids[b] if b is not None else None))
    return result


def generate_round_robin_schedule(competitors: list[Competitor]) -> list[Round]:
    """
    Rounds of pending matches. Bye pairings are dropped, but the position
    counter still advances over them so match ids match the rotation slot.
    Fewer than two competitors gives an empty schedule.
    """
    schedule: list[Round] = []
    for round_index, pairings in enumerate(circle_rounds(len(competitors))):
        round_number = round_index + 1
        matches: Round = []
        for position, (a, b) in enumerate(pairings, start=1):
            if b is None:
                continue
            matches.append(
                TournamentMatch(
                    id=match_id(round_number, position),
                    round=round_number,
                    side_a=competitors[a],
                    side_b=competitors[b],
                )
            )
        schedule.append(matches)
    return schedule


def generate_schedule_fixtures(competitors: list[Competitor]) -> list[dict]:
    """
    Flat fixture list: { "round": int, "match_id": str | None, "home_id": str, "away_id": str | None }.
    away_id None = bye. Useful for consumers that display who sits out each round.
    """
    fixtures: list[dict] = []
    for round_index, pairings in enumerate(circle_rounds(len(competitors))):
        for position, (a, b) in enumerate(pairings, start=1):
            fixtures.append({
                "round": round_index + 1,
                "match_id": match_id(round_index + 1, position) if b is not None else None,
                "home_id": competitors[a].id,
                "away_id": competitors[b].id if b is not None else None,
            })
    return fixtures
