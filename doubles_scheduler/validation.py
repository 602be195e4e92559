"""Constraint validation for doubles rotations."""

from collections import defaultdict
from itertools import combinations
from typing import List, Optional, Sequence, Tuple

from doubles_scheduler.models import Match, Player
from doubles_scheduler.roster import group_by_round


class ScheduleValidator:
    """Helper class to validate rotation constraints"""

    @staticmethod
    def validate_distinct_players(matches: List[Match]) -> Tuple[bool, List[str]]:
        """Validate that the four players of every match are different people"""
        violations = []

        for match in matches:
            ids = match.player_ids()
            if len(set(ids)) != len(ids):
                violations.append(f"Match {match.id}: a player appears twice ({', '.join(ids)})")

        return len(violations) == 0, violations

    @staticmethod
    def validate_round_conflicts(matches: List[Match]) -> Tuple[bool, List[str]]:
        """Validate that no player is on two courts in the same round"""
        violations = []

        for round_number, round_matches in group_by_round(matches).items():
            courts_by_player = defaultdict(list)
            for match in round_matches:
                for player_id in set(match.player_ids()):
                    courts_by_player[player_id].append(match.court)

            for player_id, courts in courts_by_player.items():
                if len(courts) > 1:
                    violations.append(
                        f"Round {round_number}: player {player_id} is on courts {courts}"
                    )

        return len(violations) == 0, violations

    @staticmethod
    def validate_court_capacity(
        matches: List[Match], court_count: int, players: Optional[Sequence[Player]] = None
    ) -> Tuple[bool, List[str]]:
        """Validate that each round fits the courts and the number of real players"""
        violations = []
        limit = court_count
        if players is not None:
            eligible = sum(1 for player in players if not player.is_bye)
            limit = min(limit, eligible // 4)

        for round_number, round_matches in group_by_round(matches).items():
            if len(round_matches) > limit:
                violations.append(
                    f"Round {round_number}: {len(round_matches)} matches exceed the limit of {limit}"
                )

        return len(violations) == 0, violations

    @staticmethod
    def validate_round_numbering(matches: List[Match]) -> Tuple[bool, List[str]]:
        """Validate round-major order with rounds from 1 and courts from 1 in each round"""
        violations = []

        expected_round = 1
        expected_court = 1
        for match in matches:
            if match.round == expected_round + 1 and expected_court > 1:
                expected_round += 1
                expected_court = 1

            if match.round != expected_round or match.court != expected_court:
                violations.append(
                    f"Match {match.id}: found round {match.round} court {match.court}, "
                    f"expected round {expected_round} court {expected_court}"
                )
                expected_round = match.round
                expected_court = match.court
            expected_court += 1

        return len(violations) == 0, violations

    @staticmethod
    def validate_no_bye_teams(matches: List[Match]) -> Tuple[bool, List[str]]:
        """Validate that the Bye placeholder never takes a court"""
        violations = [
            f"Match {match.id}: Bye placeholder is on court"
            for match in matches
            if any(player.is_bye for player in match.players())
        ]
        return len(violations) == 0, violations

    @staticmethod
    def validate_all(
        matches: List[Match], court_count: int, players: Optional[Sequence[Player]] = None
    ) -> Tuple[bool, List[str]]:
        """Validate all constraints at once"""
        all_violations = []
        overall_valid = True

        for valid, violations in (
            ScheduleValidator.validate_distinct_players(matches),
            ScheduleValidator.validate_round_conflicts(matches),
            ScheduleValidator.validate_court_capacity(matches, court_count, players),
            ScheduleValidator.validate_round_numbering(matches),
            ScheduleValidator.validate_no_bye_teams(matches),
        ):
            overall_valid = overall_valid and valid
            all_violations.extend(violations)

        return overall_valid, all_violations


def partner_coverage(matches: Sequence[Match], players: Sequence[Player]) -> Tuple[int, int]:
    """(distinct partnerships played, partnerships possible) among real players"""
    eligible = [player for player in players if not player.is_bye]
    partnered = set()
    for match in matches:
        partnered.add(match.team_a.key())
        partnered.add(match.team_b.key())

    possible = len(list(combinations(eligible, 2)))
    return len(partnered), possible


def play_balance(matches: Sequence[Match], players: Sequence[Player]) -> int:
    """Spread between the most and least matches played by a real player"""
    counts = {player.id: 0 for player in players if not player.is_bye}
    if not counts:
        return 0
    for match in matches:
        for player_id in match.player_ids():
            if player_id in counts:
                counts[player_id] += 1
    return max(counts.values()) - min(counts.values())
