"""
Data models for team balancing and round-robin tournaments.
Domain objects only, no persistence or API logic.

Teams are never stored: a Team is a view projected from the players' `team`
field. Tournament state is a plain value that is replaced, not mutated, when
a result is recorded.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

SKILL_MIN = 1
SKILL_MAX = 10


def clamp_skill(value: Any) -> int:
    """Normalize a skill level into [1, 10]. Out-of-range input is clamped, never rejected."""
    try:
        level = int(value)
    except (TypeError, ValueError):
        return SKILL_MIN
    return max(SKILL_MIN, min(SKILL_MAX, level))


def generate_id() -> str:
    return uuid.uuid4().hex[:8]


# ---------- Enums ----------
class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"


class MatchSide(str, Enum):
    A = "a"
    B = "b"


class MatchStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"


class MatchType(str, Enum):
    """Singles (MS/WS) and doubles (MD/WD/XD) formats."""
    MS = "MS"  # Men's singles
    WS = "WS"  # Women's singles
    MD = "MD"  # Men's doubles
    WD = "WD"  # Women's doubles
    XD = "XD"  # Mixed doubles

    @property
    def players_per_side(self) -> int:
        return 1 if self in (MatchType.MS, MatchType.WS) else 2


class CompetitorKind(str, Enum):
    PLAYER = "player"
    PAIR = "pair"


# ---------- Player ----------
@dataclass
class Player:
    """
    A roster entry. `team` is the assigned team name or None (unassigned).
    skill_level is clamped to [1, 10]; inactive players never hold a team.
    """
    id: str
    name: str
    gender: Gender
    skill_level: int
    team: str | None = None
    is_active: bool = True

    def __post_init__(self) -> None:
        self.gender = Gender(self.gender)
        self.skill_level = clamp_skill(self.skill_level)
        if not self.is_active:
            self.team = None

    def with_team(self, team: str | None) -> Player:
        return replace(self, team=team if self.is_active else None)

    def with_skill(self, skill_level: int) -> Player:
        return replace(self, skill_level=clamp_skill(skill_level))

    def with_active(self, is_active: bool) -> Player:
        return replace(self, is_active=is_active, team=self.team if is_active else None)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "gender": self.gender.value,
            "skill_level": self.skill_level,
            "team": self.team,
            "is_active": self.is_active,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Player:
        return cls(
            id=str(d["id"]),
            name=d["name"],
            gender=Gender(d["gender"]),
            skill_level=d.get("skill_level", SKILL_MIN),
            team=d.get("team"),
            is_active=bool(d.get("is_active", True)),
        )


# ---------- Teams (computed views) ----------
@dataclass(frozen=True)
class TeamStats:
    count: int = 0
    male_count: int = 0
    female_count: int = 0
    total_skill: int = 0

    @classmethod
    def of(cls, players: list[Player]) -> TeamStats:
        male = sum(1 for p in players if p.gender == Gender.MALE)
        return cls(
            count=len(players),
            male_count=male,
            female_count=len(players) - male,
            total_skill=sum(p.skill_level for p in players),
        )

    def to_dict(self) -> dict[str, int]:
        return {
            "count": self.count,
            "male_count": self.male_count,
            "female_count": self.female_count,
            "total_skill": self.total_skill,
        }


@dataclass(frozen=True)
class Team:
    """Derived view of the active players whose `team` equals `name`."""
    name: str
    players: tuple[Player, ...]
    stats: TeamStats

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "players": [p.to_dict() for p in self.players],
            "stats": self.stats.to_dict(),
        }


def project_teams(players: list[Player], team_names: list[str]) -> list[Team]:
    """Build Team views from the authoritative player list. Inactive players are skipped."""
    members: dict[str, list[Player]] = {name: [] for name in team_names}
    for p in players:
        if p.is_active and p.team in members:
            members[p.team].append(p)
    return [
        Team(name=name, players=tuple(members[name]), stats=TeamStats.of(members[name]))
        for name in team_names
    ]


@dataclass(frozen=True)
class TeamSpread:
    """Max minus min across teams for each balance dimension."""
    count: int = 0
    male: int = 0
    female: int = 0
    skill: int = 0

    @classmethod
    def of(cls, teams: list[Team]) -> TeamSpread:
        if not teams:
            return cls()

        def spread(values: list[int]) -> int:
            return max(values) - min(values)

        return cls(
            count=spread([t.stats.count for t in teams]),
            male=spread([t.stats.male_count for t in teams]),
            female=spread([t.stats.female_count for t in teams]),
            skill=spread([t.stats.total_skill for t in teams]),
        )

    def to_dict(self) -> dict[str, int]:
        return {"count": self.count, "male": self.male, "female": self.female, "skill": self.skill}


@dataclass
class SplitResult:
    teams: list[Team]
    bench: list[Player]
    warnings: list[str] = field(default_factory=list)
    spread: TeamSpread = field(default_factory=TeamSpread)

    def assigned_players(self) -> list[Player]:
        return [p for t in self.teams for p in t.players]

    def to_dict(self) -> dict[str, Any]:
        return {
            "teams": [t.to_dict() for t in self.teams],
            "bench": [p.to_dict() for p in self.bench],
            "warnings": list(self.warnings),
            "spread": self.spread.to_dict(),
        }


# ---------- Tournament competitors ----------
@dataclass(frozen=True)
class MatchPlayer:
    """Player snapshot carried inside tournament fixtures."""
    id: str
    name: str
    gender: Gender
    skill_level: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "gender", Gender(self.gender))
        object.__setattr__(self, "skill_level", clamp_skill(self.skill_level))

    @classmethod
    def from_player(cls, player: Player) -> MatchPlayer:
        return cls(id=player.id, name=player.name, gender=player.gender, skill_level=player.skill_level)

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "gender": self.gender.value, "skill_level": self.skill_level}

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> MatchPlayer:
        return cls(id=str(d["id"]), name=d["name"], gender=Gender(d["gender"]), skill_level=d.get("skill_level", SKILL_MIN))


@dataclass(frozen=True)
class Competitor:
    """
    One side of a tournament fixture: a single player or a pair.
    Both kinds expose the same capabilities (id, display name, genders, skill).
    """
    kind: CompetitorKind
    id: str
    members: tuple[MatchPlayer, ...]
    label: str | None = None

    @classmethod
    def single(cls, player: Player | MatchPlayer) -> Competitor:
        mp = player if isinstance(player, MatchPlayer) else MatchPlayer.from_player(player)
        return cls(kind=CompetitorKind.PLAYER, id=mp.id, members=(mp,))

    @classmethod
    def pair(
        cls,
        first: Player | MatchPlayer,
        second: Player | MatchPlayer,
        pair_id: str | None = None,
        label: str | None = None,
    ) -> Competitor:
        a = first if isinstance(first, MatchPlayer) else MatchPlayer.from_player(first)
        b = second if isinstance(second, MatchPlayer) else MatchPlayer.from_player(second)
        return cls(
            kind=CompetitorKind.PAIR,
            id=pair_id or f"pair-{a.id}-{b.id}",
            members=(a, b),
            label=label,
        )

    @property
    def is_pair(self) -> bool:
        return self.kind == CompetitorKind.PAIR

    @property
    def names(self) -> list[str]:
        return [m.name for m in self.members]

    @property
    def display_name(self) -> str:
        if self.label:
            return self.label
        return " / ".join(self.names)

    @property
    def genders(self) -> list[Gender]:
        return [m.gender for m in self.members]

    @property
    def skill(self) -> int:
        return sum(m.skill_level for m in self.members)

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "kind": self.kind.value,
            "id": self.id,
            "display_name": self.display_name,
            "members": [m.to_dict() for m in self.members],
            "skill": self.skill,
        }
        if self.label is not None:
            d["label"] = self.label
        return d

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Competitor:
        members = tuple(MatchPlayer.from_dict(m) for m in d["members"])
        kind = CompetitorKind(d.get("kind") or (CompetitorKind.PAIR if len(members) == 2 else CompetitorKind.PLAYER))
        return cls(kind=kind, id=str(d["id"]), members=members, label=d.get("label"))


# ---------- Quick matches ----------
@dataclass(frozen=True)
class QuickMatch:
    """
    Ad-hoc match between two sides of one or two players, outside any tournament.
    Sides are player snapshots; the team a player scores for is looked up from
    the roster when points are counted.
    """
    id: str
    match_type: MatchType
    side_a: tuple[MatchPlayer, ...]
    side_b: tuple[MatchPlayer, ...]
    score_a: int | None = None
    score_b: int | None = None
    winner: MatchSide | None = None
    status: MatchStatus = MatchStatus.PENDING

    @property
    def is_completed(self) -> bool:
        return self.status == MatchStatus.COMPLETED

    @property
    def skill_gap(self) -> int:
        return abs(sum(p.skill_level for p in self.side_a) - sum(p.skill_level for p in self.side_b))

    def winning_side(self) -> tuple[MatchPlayer, ...]:
        if self.winner == MatchSide.A:
            return self.side_a
        if self.winner == MatchSide.B:
            return self.side_b
        return ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "match_type": self.match_type.value,
            "side_a": [p.to_dict() for p in self.side_a],
            "side_b": [p.to_dict() for p in self.side_b],
            "score_a": self.score_a,
            "score_b": self.score_b,
            "winner": self.winner.value if self.winner else None,
            "status": self.status.value,
            "skill_gap": self.skill_gap,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> QuickMatch:
        winner = d.get("winner")
        return cls(
            id=str(d["id"]),
            match_type=MatchType(d["match_type"]),
            side_a=tuple(MatchPlayer.from_dict(p) for p in d["side_a"]),
            side_b=tuple(MatchPlayer.from_dict(p) for p in d["side_b"]),
            score_a=d.get("score_a"),
            score_b=d.get("score_b"),
            winner=MatchSide(winner) if winner else None,
            status=MatchStatus(d.get("status", MatchStatus.PENDING)),
        )


# ---------- Tournament ----------
@dataclass(frozen=True)
class TournamentMatch:
    """Fixture between two competitors. pending until a score is recorded."""
    id: str
    round: int
    side_a: Competitor
    side_b: Competitor
    score_a: int | None = None
    score_b: int | None = None
    winner: MatchSide | None = None
    status: MatchStatus = MatchStatus.PENDING

    @property
    def is_completed(self) -> bool:
        return self.status == MatchStatus.COMPLETED

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "round": self.round,
            "side_a": self.side_a.to_dict(),
            "side_b": self.side_b.to_dict(),
            "score_a": self.score_a,
            "score_b": self.score_b,
            "winner": self.winner.value if self.winner else None,
            "status": self.status.value,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> TournamentMatch:
        winner = d.get("winner")
        return cls(
            id=str(d["id"]),
            round=int(d["round"]),
            side_a=Competitor.from_dict(d["side_a"]),
            side_b=Competitor.from_dict(d["side_b"]),
            score_a=d.get("score_a"),
            score_b=d.get("score_b"),
            winner=MatchSide(winner) if winner else None,
            status=MatchStatus(d.get("status", MatchStatus.PENDING)),
        )


Round = list[TournamentMatch]


@dataclass(frozen=True)
class Standing:
    competitor: Competitor
    played: int = 0
    wins: int = 0
    losses: int = 0
    points: int = 0
    rank: int = 0
    score_difference: int = 0  # informational only; not used for ordering

    def to_dict(self) -> dict[str, Any]:
        return {
            "competitor": self.competitor.to_dict(),
            "played": self.played,
            "wins": self.wins,
            "losses": self.losses,
            "points": self.points,
            "rank": self.rank,
            "score_difference": self.score_difference,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Standing:
        return cls(
            competitor=Competitor.from_dict(d["competitor"]),
            played=int(d.get("played", 0)),
            wins=int(d.get("wins", 0)),
            losses=int(d.get("losses", 0)),
            points=int(d.get("points", 0)),
            rank=int(d.get("rank", 0)),
            score_difference=int(d.get("score_difference", 0)),
        )


@dataclass(frozen=True)
class TournamentData:
    """
    Round-robin tournament state.
    current_round: 1-based first round with a pending match, else the last round.
    is_complete: every match in every round is completed.
    """
    schedule: list[Round]
    standings: list[Standing]
    current_round: int = 1
    is_complete: bool = False
    competitors: list[Competitor] = field(default_factory=list)
    match_type: MatchType | None = None
    format: str = "round_robin"

    def all_matches(self) -> list[TournamentMatch]:
        return [m for rnd in self.schedule for m in rnd]

    def to_dict(self) -> dict[str, Any]:
        return {
            "format": self.format,
            "match_type": self.match_type.value if self.match_type else None,
            "competitors": [c.to_dict() for c in self.competitors],
            "schedule": [[m.to_dict() for m in rnd] for rnd in self.schedule],
            "standings": [s.to_dict() for s in self.standings],
            "current_round": self.current_round,
            "is_complete": self.is_complete,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> TournamentData:
        match_type = d.get("match_type")
        return cls(
            schedule=[[TournamentMatch.from_dict(m) for m in rnd] for rnd in d.get("schedule", [])],
            standings=[Standing.from_dict(s) for s in d.get("standings", [])],
            current_round=int(d.get("current_round", 1)),
            is_complete=bool(d.get("is_complete", False)),
            competitors=[Competitor.from_dict(c) for c in d.get("competitors", [])],
            match_type=MatchType(match_type) if match_type else None,
            format=d.get("format", "round_robin"),
        )
