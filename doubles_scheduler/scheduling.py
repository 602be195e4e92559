"""Core scheduling logic: team enumeration, pairing history, match scoring and round selection."""

import logging
import math
import time as time_module
from collections import defaultdict
from dataclasses import dataclass
from itertools import combinations
from typing import Dict, FrozenSet, List, Optional, Sequence, Tuple

from ortools.sat.python import cp_model

from doubles_scheduler.models import (
    MAX_ROUNDS,
    Match,
    Player,
    ScheduleConfig,
    ScheduleResult,
    Team,
)
from doubles_scheduler.roster import group_by_round, sitting_out

logger = logging.getLogger(__name__)

MIN_PLAYERS = 4

# Repeating a partner costs more than repeating an opponent, which costs more
# than one extra match of play-time imbalance.
PARTNER_WEIGHT = 5
OPPONENT_WEIGHT = 3
PLAY_WEIGHT = 1

Pairing = Tuple[Team, Team]


def generate_all_teams(players: Sequence[Player]) -> List[Team]:
    """Every unordered pair of real players, in roster order"""
    eligible = [player for player in players if not player.is_bye]
    return [Team(first, second) for first, second in combinations(eligible, 2)]


class PairingHistory:
    """Partner, opponent and play counters for one schedule run.

    Pair counters are keyed by the frozenset of both player ids so lookups are
    order independent. Counters only ever go up.
    """

    def __init__(self):
        self.partner_counts: Dict[FrozenSet[str], int] = defaultdict(int)
        self.opponent_counts: Dict[FrozenSet[str], int] = defaultdict(int)
        self.play_counts: Dict[str, int] = defaultdict(int)

    @staticmethod
    def _pair(a: Player, b: Player) -> FrozenSet[str]:
        return frozenset((a.id, b.id))

    def add_partner(self, a: Player, b: Player):
        self.partner_counts[self._pair(a, b)] += 1

    def add_opponent(self, a: Player, b: Player):
        self.opponent_counts[self._pair(a, b)] += 1

    def add_play(self, player: Player):
        self.play_counts[player.id] += 1

    def partner_count(self, a: Player, b: Player) -> int:
        return self.partner_counts.get(self._pair(a, b), 0)

    def opponent_count(self, a: Player, b: Player) -> int:
        return self.opponent_counts.get(self._pair(a, b), 0)

    def play_count(self, player: Player) -> int:
        return self.play_counts.get(player.id, 0)

    def record_match(self, team_a: Team, team_b: Team):
        """Commit one match from each player's side.

        Every player adds a partner count toward their teammate, an opponent
        count toward each player across the net and one appearance. A pair
        therefore gains 2 for each match it shares.
        """
        for team, opponents in ((team_a, team_b), (team_b, team_a)):
            for player in team:
                self.add_partner(player, team.partner_of(player))
                for opponent in opponents:
                    self.add_opponent(player, opponent)
                self.add_play(player)


def score_match(team_a: Team, team_b: Team, history: PairingHistory) -> int:
    """Penalty for putting two teams on court against each other; lower is better"""
    partner_penalty = history.partner_count(*team_a.players()) + history.partner_count(
        *team_b.players()
    )
    opponent_penalty = sum(history.opponent_count(a, b) for a in team_a for b in team_b)
    play_penalty = sum(history.play_count(player) for player in (*team_a, *team_b))

    return (
        PARTNER_WEIGHT * partner_penalty
        + OPPONENT_WEIGHT * opponent_penalty
        + PLAY_WEIGHT * play_penalty
    )


def match_key(team_a: Team, team_b: Team) -> str:
    """Canonical tie-break key: the four player ids sorted and joined"""
    return "_".join(sorted(player.id for player in (*team_a, *team_b)))


@dataclass(frozen=True)
class Candidate:
    """A scored team pairing considered for the current round"""

    team_a: Team
    team_b: Team
    score: int
    key: str

    def player_ids(self) -> List[str]:
        return [player.id for player in (*self.team_a, *self.team_b)]


def build_candidates(teams: Sequence[Team], history: PairingHistory) -> List[Candidate]:
    """Score every pair of disjoint teams and sort by (score, key).

    The sort is stable, so splits of the same four players with equal scores
    keep their enumeration order.
    """
    candidates = []
    for team_a, team_b in combinations(teams, 2):
        if team_a.key() & team_b.key():
            continue
        candidates.append(
            Candidate(
                team_a=team_a,
                team_b=team_b,
                score=score_match(team_a, team_b, history),
                key=match_key(team_a, team_b),
            )
        )

    candidates.sort(key=lambda c: (c.score, c.key))
    return candidates


class RoundSelector:
    """Picks the team pairings for one round"""

    def select(
        self, teams: Sequence[Team], history: PairingHistory, court_count: int
    ) -> List[Pairing]:
        raise NotImplementedError("Subclasses must implement select")


class GreedyRoundSelector(RoundSelector):
    """Walk the sorted candidates and keep each one that shares no player with those already kept"""

    def select(
        self, teams: Sequence[Team], history: PairingHistory, court_count: int
    ) -> List[Pairing]:
        if court_count <= 0 or len(teams) < 2:
            return []

        selected: List[Pairing] = []
        used = set()
        for candidate in build_candidates(teams, history):
            if len(selected) >= court_count:
                break
            ids = candidate.player_ids()
            if any(player_id in used for player_id in ids):
                continue
            used.update(ids)
            selected.append((candidate.team_a, candidate.team_b))

        return selected


class ORToolsRoundSelector(RoundSelector):
    """CP-SAT selection of the lowest total-penalty set of disjoint matches.

    Uses the same candidates, scores and tie-break order as the greedy
    selector. The round always fills min(courts, players // 4) courts; among
    equal total penalties the earliest candidates in sorted order win.
    """

    def __init__(self, time_limit: float = 10.0, random_seed: int = 0):
        self.time_limit = time_limit
        self.random_seed = random_seed
        self.fallback = GreedyRoundSelector()

    def select(
        self, teams: Sequence[Team], history: PairingHistory, court_count: int
    ) -> List[Pairing]:
        if court_count <= 0 or len(teams) < 2:
            return []

        candidates = build_candidates(teams, history)
        if not candidates:
            return []

        eligible = {player.id for team in teams for player in team}
        target = min(court_count, len(eligible) // 4)

        model = cp_model.CpModel()
        picks = [model.NewBoolVar(f"match_{idx}") for idx in range(len(candidates))]

        # Constraint 1: each player on at most one court
        player_to_candidates = defaultdict(list)
        for idx, candidate in enumerate(candidates):
            for player_id in candidate.player_ids():
                player_to_candidates[player_id].append(idx)
        for indices in player_to_candidates.values():
            model.Add(sum(picks[idx] for idx in indices) <= 1)

        # Constraint 2: fill every court the roster allows
        model.Add(cp_model.LinearExpr.Sum(picks) == target)

        # Objective: total penalty first, sorted position second
        scale = target * len(candidates)
        weights = [candidate.score * scale + idx for idx, candidate in enumerate(candidates)]
        model.Minimize(cp_model.LinearExpr.WeightedSum(picks, weights))

        solver = cp_model.CpSolver()
        solver.parameters.max_time_in_seconds = self.time_limit
        solver.parameters.num_workers = 1
        solver.parameters.random_seed = self.random_seed
        status = solver.Solve(model)

        if status not in (cp_model.OPTIMAL, cp_model.FEASIBLE):
            logger.warning(
                f"⚠️  OR-Tools round selection failed with status {solver.StatusName(status)}, using greedy selection"
            )
            return self.fallback.select(teams, history, court_count)

        return [
            (candidate.team_a, candidate.team_b)
            for idx, candidate in enumerate(candidates)
            if solver.BooleanValue(picks[idx])
        ]


def compute_target_rounds(
    player_count: int, court_count: int, ceiling: int = MAX_ROUNDS
) -> int:
    """Rounds to attempt: a partner round-robin plus a buffer for limited courts, capped"""
    base = max(player_count - 1, 1)
    buffer = math.ceil(max(0, player_count - 4) / max(court_count, 1))
    return min(base + buffer, ceiling)


def generate_schedule(
    players: Sequence[Player],
    court_count: int,
    selector: Optional[RoundSelector] = None,
    max_rounds: int = MAX_ROUNDS,
) -> List[Match]:
    """Build the full rotation for a roster.

    Returns matches in round-major, court-minor order. Rosters under four
    entries, zero courts or an empty team universe yield an empty schedule.
    Generation stops early at the first round that cannot seat a match.
    """
    players = list(players)
    if len(players) < MIN_PLAYERS:
        logger.debug(f"Roster of {len(players)} is too small for doubles")
        return []

    total_rounds = compute_target_rounds(len(players), court_count, max_rounds)
    teams = generate_all_teams(players)
    if not teams:
        return []

    selector = selector or GreedyRoundSelector()
    history = PairingHistory()
    matches: List[Match] = []

    for round_number in range(1, total_rounds + 1):
        pairings = selector.select(teams, history, court_count)
        if not pairings:
            logger.debug(f"No valid pairings for round {round_number}, stopping")
            break

        for index, (team_a, team_b) in enumerate(pairings):
            history.record_match(team_a, team_b)
            matches.append(
                Match(
                    id=f"{round_number}-{index}",
                    round=round_number,
                    court=index + 1,
                    team_a=team_a,
                    team_b=team_b,
                )
            )
        logger.debug(f"Round {round_number}: {len(pairings)} matches")

    return matches


class DoublesScheduler:
    """Main scheduler class wrapping the rotation generator"""

    def __init__(self, config: ScheduleConfig):
        self.config = config
        self.selector = self._build_selector()

    def _build_selector(self) -> RoundSelector:
        if self.config.strategy == "optimal":
            return ORToolsRoundSelector(time_limit=self.config.solver_time_limit)
        return GreedyRoundSelector()

    def schedule(self, players: Sequence[Player]) -> ScheduleResult:
        """Generate a complete rotation for the roster"""
        start_time = time_module.time()
        players = list(players)
        bye_added = any(player.is_bye for player in players)

        logger.info(
            f"Starting {self.config.strategy} schedule for {len(players)} players on {self.config.court_count} courts"
        )

        try:
            matches = generate_schedule(
                players,
                self.config.court_count,
                selector=self.selector,
                max_rounds=self.config.max_rounds,
            )
        except Exception as e:
            logger.error(f"💥 Error during scheduling: {str(e)}")
            return ScheduleResult(
                success=False,
                matches=[],
                total_rounds=0,
                court_count=self.config.court_count,
                player_count=len(players),
                bye_added=bye_added,
                generation_time=time_module.time() - start_time,
                error_message=str(e),
            )

        generation_time = time_module.time() - start_time
        total_rounds = max((match.round for match in matches), default=0)
        warnings = self._collect_warnings(players, total_rounds)

        if not matches:
            if len(players) < MIN_PLAYERS:
                error_message = "Add at least 4 players to build a rotation."
            else:
                error_message = "No valid round could be formed"
            logger.error(f"❌ Failed to generate schedule: {error_message}")
            return ScheduleResult(
                success=False,
                matches=[],
                total_rounds=0,
                court_count=self.config.court_count,
                player_count=len(players),
                bye_added=bye_added,
                generation_time=generation_time,
                error_message=error_message,
                warnings=warnings,
            )

        logger.info(
            f"✅ Schedule generated in {generation_time:.2f} seconds: {total_rounds} rounds, {len(matches)} matches"
        )
        for warning in warnings:
            logger.warning(f"⚠️  {warning}")

        return ScheduleResult(
            success=True,
            matches=matches,
            total_rounds=total_rounds,
            court_count=self.config.court_count,
            player_count=len(players),
            bye_added=bye_added,
            generation_time=generation_time,
            warnings=warnings,
        )

    def _collect_warnings(self, players: List[Player], total_rounds: int) -> List[str]:
        warnings = []
        eligible = sum(1 for player in players if not player.is_bye)
        usable_courts = eligible // 4
        if 0 < usable_courts < self.config.court_count:
            warnings.append(
                f"Only {usable_courts} of {self.config.court_count} courts can be filled with {eligible} players"
            )

        target = compute_target_rounds(
            len(players), self.config.court_count, self.config.max_rounds
        )
        if 0 < total_rounds < target:
            warnings.append(f"Stopped after {total_rounds} of {target} target rounds")
        return warnings

    def print_schedule_summary(self, result: ScheduleResult, players: Sequence[Player]):
        """Print a round-by-round table of the rotation"""
        if not result.success:
            print(f"❌ Schedule generation failed: {result.error_message}")
            return

        print(f"\n🏸 Doubles Rotation")
        print("=" * 80)
        print(f"📊 Summary:")
        print(
            f"   • Players: {result.player_count}{' (Bye added)' if result.bye_added else ''}"
        )
        print(f"   • Courts: {result.court_count}")
        print(f"   • Rounds: {result.total_rounds}")
        print(f"   • Total matches: {result.total_matches}")
        print(f"   • Generation time: {result.generation_time:.2f} seconds")

        if result.warnings:
            print(f"\n⚠️  Warnings:")
            for warning in result.warnings:
                print(f"   • {warning}")

        resting = sitting_out(result.matches, players)
        for round_number, round_matches in group_by_round(result.matches).items():
            print(f"\nRound {round_number}:")
            print("-" * 60)
            for match in round_matches:
                print(f"   Court {match.court:<2} | {str(match.team_a):25} vs {match.team_b}")
            if resting.get(round_number):
                names = ", ".join(player.name for player in resting[round_number])
                print(f"   Sitting out: {names}")
