"""
Service layer: team balancing, round-robin scheduling, standings, pairs, quick matches.
Pure functions over in-memory values; no persistence.
"""
from .team_balancer import (
    Balancer2Way,
    ExhaustiveBalancer,
    GreedyBalancer,
    build_quotas,
    select_two_way_balancer,
    split_teams,
)
from .scheduling import generate_round_robin_schedule, round_robin_pairings
from .standings import calculate_standings
from .pairing import (
    InvalidPairError,
    can_play_match_type,
    create_pair,
    detect_match_type,
    first_playable_match_type,
)
from .tournament_service import (
    MatchNotFoundError,
    create_tournament,
    record_tournament_match_result,
)
from .matchmaking import (
    create_quick_match,
    record_match_result,
    suggest_balanced_match,
    team_points,
)

__all__ = [
    "Balancer2Way",
    "ExhaustiveBalancer",
    "GreedyBalancer",
    "build_quotas",
    "select_two_way_balancer",
    "split_teams",
    "generate_round_robin_schedule",
    "round_robin_pairings",
    "calculate_standings",
    "InvalidPairError",
    "can_play_match_type",
    "create_pair",
    "detect_match_type",
    "first_playable_match_type",
    "MatchNotFoundError",
    "create_tournament",
    "record_tournament_match_result",
    "create_quick_match",
    "record_match_result",
    "suggest_balanced_match",
    "team_points",
]
