"""
Team balancing: split the active players of a roster into N teams with even
headcount, even gender counts and close total skill.

Two teams: exhaustive search over side-A subsets for small rosters, greedy
beyond that (or when no subset fits the quotas). More teams: greedy seeding,
then pairwise-swap hill climbing on the skill spread.

Never raises; every active player ends up on exactly one team. Inputs are not
mutated; assigned players are copies with `team` set.
"""
from __future__ import annotations

import logging
from dataclasses import replace
from itertools import combinations
from typing import Protocol

from teambalance.config import Settings, get_settings
from teambalance.models import Gender, Player, SplitResult, Team, TeamSpread, project_teams

logger = logging.getLogger(__name__)

MIN_TEAMS = 2
MIN_PLAYERS_PER_TEAM = 2

# ---------- Warnings ----------
WARNING_NOT_ENOUGH_PLAYERS = "Not enough players: fewer than {minimum} active for {teams} teams"
WARNING_COUNT_SPREAD = "Team sizes differ by more than 1"
WARNING_MALE_SPREAD = "Male counts differ by more than 1"
WARNING_FEMALE_SPREAD = "Female counts differ by more than 1"
WARNING_SKILL_SPREAD = "Total skill differs by more than {threshold}"

TwoWaySplit = tuple[list[Player], list[Player]]


def team_name(index: int) -> str:
    """A, B, ... Z, then 'Team 27', 'Team 28', ..."""
    if index < 26:
        return chr(ord("A") + index)
    return f"Team {index + 1}"


def build_quotas(total: int, team_count: int) -> list[int]:
    """Even split of `total`; the first `total % team_count` teams get one extra."""
    base, extra = divmod(total, team_count)
    return [base + 1 if i < extra else base for i in range(team_count)]


def _by_skill_desc(players: list[Player]) -> list[Player]:
    # sorted() is stable: equal skills keep roster order
    return sorted(players, key=lambda p: -p.skill_level)


def _total_skill(players: list[Player]) -> int:
    return sum(p.skill_level for p in players)


# ---------- Two-team strategies ----------


class Balancer2Way(Protocol):
    """Split skill-sorted male and female pools into sides A and B, or None if infeasible."""

    def balance(self, males: list[Player], females: list[Player]) -> TwoWaySplit | None:
        ...


class ExhaustiveBalancer:
    """
    Optimal two-way split for small rosters.

    Side A must hold exactly the headcount quota. First try the exact per-gender
    quotas; if those cannot add up to the headcount, allow each gender to differ
    by at most one between sides. Minimizes |skill A - skill B|; ties keep the
    first subset found in index order.
    """

    def balance(self, males: list[Player], females: list[Player]) -> TwoWaySplit | None:
        size_a = build_quotas(len(males) + len(females), 2)[0]
        male_a = build_quotas(len(males), 2)[0]
        female_a = build_quotas(len(females), 2)[0]

        exact = [(male_a, female_a)] if male_a + female_a == size_a else []
        best = self._search(males, females, exact)
        if best is not None:
            return best

        relaxed = [
            (m, size_a - m)
            for m in range(len(males) + 1)
            if 0 <= size_a - m <= len(females)
            and abs(2 * m - len(males)) <= 1
            and abs(2 * (size_a - m) - len(females)) <= 1
        ]
        logger.debug("Exact gender quotas infeasible; relaxed candidates %s", relaxed)
        return self._search(males, females, relaxed)

    def _search(
        self,
        males: list[Player],
        females: list[Player],
        gender_counts: list[tuple[int, int]],
    ) -> TwoWaySplit | None:
        total = _total_skill(males) + _total_skill(females)
        best_diff: int | None = None
        best_pick: tuple[tuple[int, ...], tuple[int, ...]] | None = None

        for male_count, female_count in gender_counts:
            female_options = [
                (combo, sum(females[j].skill_level for j in combo))
                for combo in combinations(range(len(females)), female_count)
            ]
            for male_combo in combinations(range(len(males)), male_count):
                male_skill = sum(males[i].skill_level for i in male_combo)
                for female_combo, female_skill in female_options:
                    diff = abs(total - 2 * (male_skill + female_skill))
                    if best_diff is None or diff < best_diff:
                        best_diff = diff
                        best_pick = (male_combo, female_combo)
                        if diff == 0:
                            return self._materialize(males, females, best_pick)

        if best_pick is None:
            return None
        return self._materialize(males, females, best_pick)

    @staticmethod
    def _materialize(
        males: list[Player],
        females: list[Player],
        pick: tuple[tuple[int, ...], tuple[int, ...]],
    ) -> TwoWaySplit:
        male_idx, female_idx = set(pick[0]), set(pick[1])
        side_a = [p for i, p in enumerate(males) if i in male_idx] + [
            p for j, p in enumerate(females) if j in female_idx
        ]
        side_b = [p for i, p in enumerate(males) if i not in male_idx] + [
            p for j, p in enumerate(females) if j not in female_idx
        ]
        return side_a, side_b


class GreedyBalancer:
    """
    One pass per gender pool (males first), strongest first.
    Each player goes to the side still short of that gender, then the side
    short on headcount; ties go to the side with the lower skill sum.
    """

    def balance(self, males: list[Player], females: list[Player]) -> TwoWaySplit:
        size_quota = build_quotas(len(males) + len(females), 2)
        sides: tuple[list[Player], list[Player]] = ([], [])
        skills = [0, 0]

        for pool in (males, females):
            gender_quota = build_quotas(len(pool), 2)
            placed = [0, 0]
            for player in pool:
                need_gender = [placed[i] < gender_quota[i] for i in (0, 1)]
                need_size = [len(sides[i]) < size_quota[i] for i in (0, 1)]
                side = self._pick_side(need_gender, need_size, skills)
                sides[side].append(player)
                placed[side] += 1
                skills[side] += player.skill_level

        return sides[0], sides[1]

    @staticmethod
    def _pick_side(need_gender: list[bool], need_size: list[bool], skills: list[int]) -> int:
        a_not_stronger = skills[0] <= skills[1]
        if need_gender[0] and (not need_gender[1] or a_not_stronger):
            return 0
        if need_gender[1]:
            return 1
        if need_size[0] and (not need_size[1] or a_not_stronger):
            return 0
        if need_size[1]:
            return 1
        return 0 if a_not_stronger else 1


def select_two_way_balancer(roster_size: int, settings: Settings | None = None) -> Balancer2Way:
    """Exhaustive search up to the configured roster size, greedy beyond it."""
    settings = settings or get_settings()
    if roster_size <= settings.exhaustive_limit:
        return ExhaustiveBalancer()
    return GreedyBalancer()


def _split_two(active: list[Player], settings: Settings) -> list[list[Player]]:
    males = _by_skill_desc([p for p in active if p.gender == Gender.MALE])
    females = _by_skill_desc([p for p in active if p.gender == Gender.FEMALE])
    balancer = select_two_way_balancer(len(active), settings)
    logger.debug("Two-team split of %d players with %s", len(active), type(balancer).__name__)
    result = balancer.balance(males, females)
    if result is None:
        logger.debug("No quota-feasible partition; falling back to greedy")
        result = GreedyBalancer().balance(males, females)
    return [result[0], result[1]]


# ---------- More than two teams ----------


def _split_many(active: list[Player], team_count: int, settings: Settings) -> list[list[Player]]:
    size_quota = build_quotas(len(active), team_count)
    gender_quota = {
        g: build_quotas(sum(1 for p in active if p.gender == g), team_count) for g in Gender
    }
    teams: list[list[Player]] = [[] for _ in range(team_count)]
    skills = [0] * team_count
    gender_counts = {g: [0] * team_count for g in Gender}

    for player in _by_skill_desc(active):
        g = player.gender

        def preference(i: int) -> tuple[bool, bool, int, int]:
            room = len(teams[i]) < size_quota[i]
            needs_gender = gender_counts[g][i] < gender_quota[g][i]
            return (not (needs_gender and room), not room, skills[i], i)

        idx = min(range(team_count), key=preference)
        teams[idx].append(player)
        skills[idx] += player.skill_level
        gender_counts[g][idx] += 1

    passes = _refine_by_swaps(teams, settings.swap_iterations)
    logger.debug("Swap refinement for %d teams applied %d swaps", team_count, passes)
    return teams


def _spread(values: list[int]) -> int:
    return max(values) - min(values)


def _swap_score(
    skills: list[int],
    males: list[int],
    females: list[int],
) -> tuple[int, int]:
    """(gender spread above 1, skill spread); lower is better."""
    gender_excess = max(0, _spread(males) - 1, _spread(females) - 1)
    return gender_excess, _spread(skills)


def _refine_by_swaps(teams: list[list[Player]], max_passes: int) -> int:
    """
    Pairwise-swap hill climbing. Each pass applies the single best swap between
    two teams; a swap is accepted only when it strictly lowers the score, so
    gender spreads of at most 1 are never broken. Returns the number of swaps applied.
    """
    team_count = len(teams)
    skills = [_total_skill(t) for t in teams]
    males = [sum(1 for p in t if p.gender == Gender.MALE) for t in teams]
    females = [len(t) - m for t, m in zip(teams, males)]
    current = _swap_score(skills, males, females)

    applied = 0
    for _ in range(max_passes):
        if current == (0, 0):
            break
        best: tuple[int, int] | None = None
        best_move: tuple[int, int, int, int] | None = None
        for i in range(team_count):
            for j in range(i + 1, team_count):
                for pi, p in enumerate(teams[i]):
                    for qj, q in enumerate(teams[j]):
                        if p.gender == q.gender and p.skill_level == q.skill_level:
                            continue
                        delta = q.skill_level - p.skill_level
                        new_skills = list(skills)
                        new_skills[i] += delta
                        new_skills[j] -= delta
                        new_males, new_females = males, females
                        if p.gender != q.gender:
                            shift = 1 if p.gender == Gender.MALE else -1
                            new_males = list(males)
                            new_females = list(females)
                            new_males[i] -= shift
                            new_males[j] += shift
                            new_females[i] += shift
                            new_females[j] -= shift
                        score = _swap_score(new_skills, new_males, new_females)
                        if score < current and (best is None or score < best):
                            best = score
                            best_move = (i, pi, j, qj)
        if best_move is None:
            break
        i, pi, j, qj = best_move
        p, q = teams[i][pi], teams[j][qj]
        teams[i][pi], teams[j][qj] = q, p
        skills[i] += q.skill_level - p.skill_level
        skills[j] += p.skill_level - q.skill_level
        if p.gender != q.gender:
            shift = 1 if p.gender == Gender.MALE else -1
            males[i] -= shift
            males[j] += shift
            females[i] += shift
            females[j] -= shift
        current = _swap_score(skills, males, females)
        applied += 1
    return applied


# ---------- Warnings ----------


def collect_warnings(
    teams: list[Team],
    active_count: int,
    team_count: int,
    settings: Settings | None = None,
) -> list[str]:
    """Advisory observations over a finished partition."""
    settings = settings or get_settings()
    warnings: list[str] = []
    minimum = team_count * MIN_PLAYERS_PER_TEAM
    if active_count < minimum:
        warnings.append(WARNING_NOT_ENOUGH_PLAYERS.format(minimum=minimum, teams=team_count))
    spread = TeamSpread.of(teams)
    if spread.count > 1:
        warnings.append(WARNING_COUNT_SPREAD)
    if spread.male > 1:
        warnings.append(WARNING_MALE_SPREAD)
    if spread.female > 1:
        warnings.append(WARNING_FEMALE_SPREAD)
    if spread.skill > settings.skill_spread_warning:
        warnings.append(WARNING_SKILL_SPREAD.format(threshold=settings.skill_spread_warning))
    return warnings


# ---------- Entry point ----------


def split_teams(
    players: list[Player],
    team_count: int = 2,
    settings: Settings | None = None,
) -> SplitResult:
    """
    Partition active players into `team_count` teams (minimum 2).
    Inactive players come back on the bench with team=None.
    """
    settings = settings or get_settings()
    team_count = max(MIN_TEAMS, int(team_count))
    names = [team_name(i) for i in range(team_count)]
    active = [p for p in players if p.is_active]

    if team_count == 2:
        groups = _split_two(active, settings)
    else:
        groups = _split_many(active, team_count, settings)

    assigned = [p.with_team(names[i]) for i, group in enumerate(groups) for p in group]
    teams = project_teams(assigned, names)
    bench = [replace(p, team=None) for p in players if not p.is_active]
    warnings = collect_warnings(teams, len(active), team_count, settings)
    if warnings:
        logger.debug("Split produced warnings: %s", warnings)
    return SplitResult(teams=teams, bench=bench, warnings=warnings, spread=TeamSpread.of(teams))
