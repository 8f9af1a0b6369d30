"""
Balanced team splitting and round-robin tournaments for casual sports sessions.
"""
from __future__ import annotations

from teambalance.services import (
    calculate_standings,
    create_tournament,
    generate_round_robin_schedule,
    record_tournament_match_result,
    split_teams,
)

__version__ = "0.1.0"

__all__ = [
    "split_teams",
    "generate_round_robin_schedule",
    "calculate_standings",
    "record_tournament_match_result",
    "create_tournament",
]
