"""Unit tests for the doubles rotation generator."""

import csv
import io
import json
import os
import tempfile
import unittest
from collections import Counter, defaultdict
from contextlib import redirect_stdout
from itertools import combinations
from unittest import mock

from doubles_scheduler.cli import export_csv, main
from doubles_scheduler.models import Match, Player, ScheduleConfig, Team
from doubles_scheduler.roster import (
    build_roster,
    clamp_courts,
    ensure_even_players,
    group_by_round,
    parse_names,
    sitting_out,
    to_players,
)
from doubles_scheduler.scheduling import (
    DoublesScheduler,
    GreedyRoundSelector,
    ORToolsRoundSelector,
    PairingHistory,
    build_candidates,
    compute_target_rounds,
    generate_all_teams,
    generate_schedule,
    match_key,
    score_match,
)
from doubles_scheduler.validation import ScheduleValidator, partner_coverage, play_balance


def make_players(count):
    return to_players([chr(65 + i) for i in range(count)])


def partner_pairs(match):
    return [match.team_a.key(), match.team_b.key()]


def directional_schedule(players, court_count):
    """Greedy rotation with counts stored per (player, other) and summed both ways"""
    eligible = [p for p in players if not p.is_bye]
    teams = list(combinations(eligible, 2))
    if len(players) < 4 or not teams:
        return []

    partners = defaultdict(Counter)
    opponents = defaultdict(Counter)
    plays = Counter()

    def both(counts, x, y):
        return counts[x.id][y.id] + counts[y.id][x.id]

    schedule = []
    for round_number in range(1, compute_target_rounds(len(players), court_count) + 1):
        ranked = []
        for team_a, team_b in combinations(teams, 2):
            group = team_a + team_b
            if len({p.id for p in group}) < 4:
                continue
            score = (
                5 * (both(partners, *team_a) + both(partners, *team_b))
                + 3 * sum(both(opponents, x, y) for x in team_a for y in team_b)
                + sum(plays[p.id] for p in group)
            )
            ranked.append((score, "_".join(sorted(p.id for p in group)), team_a, team_b))
        ranked.sort(key=lambda item: (item[0], item[1]))

        used = set()
        picked = []
        for _, _, team_a, team_b in ranked:
            if len(picked) >= court_count:
                break
            ids = {p.id for p in team_a + team_b}
            if ids & used:
                continue
            used |= ids
            picked.append((team_a, team_b))
        if not picked:
            break

        for team_a, team_b in picked:
            for team, other in ((team_a, team_b), (team_b, team_a)):
                for player in team:
                    mate = team[1] if player is team[0] else team[0]
                    partners[player.id][mate.id] += 1
                    for opponent in other:
                        opponents[player.id][opponent.id] += 1
                    plays[player.id] += 1
            schedule.append(
                (round_number, tuple(p.id for p in team_a), tuple(p.id for p in team_b))
            )
    return schedule


class TestTeamEnumeration(unittest.TestCase):
    """Test the universe of legal teams"""

    def test_all_pairs_in_roster_order(self):
        """Test that n players give n*(n-1)/2 teams ordered by index"""
        players = make_players(4)
        teams = generate_all_teams(players)

        self.assertEqual(len(teams), 6)
        self.assertEqual(
            [(t.first.name, t.second.name) for t in teams],
            [("A", "B"), ("A", "C"), ("A", "D"), ("B", "C"), ("B", "D"), ("C", "D")],
        )

    def test_bye_never_forms_a_team(self):
        """Test that the Bye placeholder is excluded"""
        players, bye_added = build_roster("A, B, C, D, E")
        teams = generate_all_teams(players)

        self.assertTrue(bye_added)
        self.assertEqual(len(players), 6)
        self.assertEqual(len(teams), 10)  # 5*4/2
        for team in teams:
            self.assertFalse(any(p.is_bye for p in team))

    def test_too_few_players(self):
        """Test that fewer than 2 real players yields no teams"""
        self.assertEqual(generate_all_teams(make_players(1)), [])
        self.assertEqual(generate_all_teams([]), [])

    def test_team_identity_is_unordered(self):
        """Test that teams compare by their pair of ids"""
        a, b = make_players(2)
        self.assertEqual(Team(a, b), Team(b, a))
        self.assertEqual(hash(Team(a, b)), hash(Team(b, a)))
        self.assertEqual(Team(a, b).partner_of(a), b)


class TestPairingHistory(unittest.TestCase):
    """Test the additive counters"""

    def setUp(self):
        self.a, self.b, self.c, self.d = make_players(4)
        self.history = PairingHistory()

    def test_defaults_to_zero(self):
        """Test lookups on an empty history"""
        self.assertEqual(self.history.partner_count(self.a, self.b), 0)
        self.assertEqual(self.history.opponent_count(self.a, self.b), 0)
        self.assertEqual(self.history.play_count(self.a), 0)

    def test_lookups_are_symmetric(self):
        """Test that pair order does not matter"""
        self.history.add_partner(self.a, self.b)
        self.history.add_opponent(self.c, self.a)

        self.assertEqual(self.history.partner_count(self.b, self.a), 1)
        self.assertEqual(self.history.opponent_count(self.a, self.c), 1)

    def test_record_match(self):
        """Test that each player commits their own partner and opponent counts"""
        self.history.record_match(Team(self.a, self.b), Team(self.c, self.d))

        self.assertEqual(self.history.partner_count(self.a, self.b), 2)
        self.assertEqual(self.history.partner_count(self.c, self.d), 2)
        self.assertEqual(self.history.partner_count(self.a, self.c), 0)
        for x in (self.a, self.b):
            for y in (self.c, self.d):
                self.assertEqual(self.history.opponent_count(x, y), 2)
        self.assertEqual(self.history.opponent_count(self.a, self.b), 0)
        for player in (self.a, self.b, self.c, self.d):
            self.assertEqual(self.history.play_count(player), 1)


class TestMatchScoring(unittest.TestCase):
    """Test the penalty formula"""

    def setUp(self):
        self.a, self.b, self.c, self.d = make_players(4)

    def test_fresh_match_scores_zero(self):
        """Test a match with no history"""
        history = PairingHistory()
        self.assertEqual(score_match(Team(self.a, self.b), Team(self.c, self.d), history), 0)

    def test_weights(self):
        """Test partner 5, opponent 3 and play 1 weights"""
        history = PairingHistory()
        history.add_partner(self.a, self.b)
        history.add_opponent(self.a, self.c)
        history.add_opponent(self.b, self.d)
        history.add_play(self.d)

        score = score_match(Team(self.a, self.b), Team(self.c, self.d), history)
        self.assertEqual(score, 5 * 1 + 3 * 2 + 1 * 1)

    def test_repeat_after_one_match(self):
        """Test replaying the same match after it was committed"""
        history = PairingHistory()
        history.record_match(Team(self.a, self.b), Team(self.c, self.d))

        # 2 partnerships and 4 opponent pairs, each counted by both players
        self.assertEqual(
            score_match(Team(self.a, self.b), Team(self.c, self.d), history), 20 + 24 + 4
        )
        # Same four players split differently: 2 opponent pairs repeat
        self.assertEqual(
            score_match(Team(self.a, self.c), Team(self.b, self.d), history), 12 + 4
        )

    def test_match_key(self):
        """Test that the tie-break key is the sorted ids joined"""
        key = match_key(Team(self.d, self.b), Team(self.c, self.a))
        self.assertEqual(key, "0-A_1-B_2-C_3-D")


class TestRoundSelection(unittest.TestCase):
    """Test greedy conflict-free round selection"""

    def test_candidates_skip_shared_players(self):
        """Test that candidate matches have four distinct players"""
        teams = generate_all_teams(make_players(5))
        candidates = build_candidates(teams, PairingHistory())

        self.assertEqual(len(candidates), 15)  # C(5,4) groups * 3 splits
        for candidate in candidates:
            self.assertEqual(len(set(candidate.player_ids())), 4)

    def test_candidates_sorted_by_score_then_key(self):
        """Test candidate ordering"""
        players = make_players(6)
        history = PairingHistory()
        history.record_match(Team(players[0], players[1]), Team(players[2], players[3]))
        candidates = build_candidates(generate_all_teams(players), history)

        order = [(c.score, c.key) for c in candidates]
        self.assertEqual(order, sorted(order))

    def test_first_round_is_deterministic(self):
        """Test that the lowest key wins when every score ties"""
        players = make_players(8)
        pairings = GreedyRoundSelector().select(
            generate_all_teams(players), PairingHistory(), 2
        )

        names = [(str(a), str(b)) for a, b in pairings]
        self.assertEqual(names, [("A & B", "C & D"), ("E & F", "G & H")])

    def test_no_player_twice_in_a_round(self):
        """Test that selected matches are disjoint"""
        pairings = GreedyRoundSelector().select(
            generate_all_teams(make_players(12)), PairingHistory(), 3
        )

        self.assertEqual(len(pairings), 3)
        ids = [p.id for a, b in pairings for p in (*a, *b)]
        self.assertEqual(len(ids), len(set(ids)))

    def test_limited_by_players(self):
        """Test that a round never exceeds floor(players / 4) matches"""
        pairings = GreedyRoundSelector().select(
            generate_all_teams(make_players(10)), PairingHistory(), 6
        )
        self.assertEqual(len(pairings), 2)

    def test_zero_courts_or_no_teams(self):
        """Test empty selections"""
        selector = GreedyRoundSelector()
        teams = generate_all_teams(make_players(8))

        self.assertEqual(selector.select(teams, PairingHistory(), 0), [])
        self.assertEqual(selector.select([], PairingHistory(), 2), [])
        self.assertEqual(selector.select(teams[:1], PairingHistory(), 2), [])


class TestORToolsSelection(unittest.TestCase):
    """Test the OR-Tools round selector"""

    def test_never_worse_than_greedy(self):
        """Test that the optimal round has no more total penalty than the greedy one"""
        players = make_players(8)
        teams = generate_all_teams(players)
        history = PairingHistory()
        for a, b in GreedyRoundSelector().select(teams, history, 2):
            history.record_match(a, b)

        greedy = GreedyRoundSelector().select(teams, history, 2)
        optimal = ORToolsRoundSelector(time_limit=30.0).select(teams, history, 2)

        self.assertEqual(len(optimal), len(greedy))
        self.assertLessEqual(
            sum(score_match(a, b, history) for a, b in optimal),
            sum(score_match(a, b, history) for a, b in greedy),
        )

    def test_valid_and_deterministic_schedule(self):
        """Test a full rotation built with the optimal selector"""
        players = make_players(8)
        first = generate_schedule(players, 2, selector=ORToolsRoundSelector(time_limit=30.0))
        second = generate_schedule(players, 2, selector=ORToolsRoundSelector(time_limit=30.0))

        self.assertEqual(first, second)
        self.assertEqual(len(first), 2 * compute_target_rounds(8, 2))
        valid, violations = ScheduleValidator.validate_all(first, 2, players)
        self.assertTrue(valid, violations)

    def test_zero_courts(self):
        """Test that zero courts selects nothing"""
        teams = generate_all_teams(make_players(8))
        self.assertEqual(ORToolsRoundSelector().select(teams, PairingHistory(), 0), [])


class TestScheduleGeneration(unittest.TestCase):
    """Test the schedule driver"""

    def test_target_rounds(self):
        """Test the round count formula"""
        self.assertEqual(compute_target_rounds(4, 1), 3)
        self.assertEqual(compute_target_rounds(8, 2), 7 + 2)
        self.assertEqual(compute_target_rounds(12, 2), 11 + 4)
        self.assertEqual(compute_target_rounds(9, 0), 8 + 5)
        self.assertEqual(compute_target_rounds(40, 1), 50)
        self.assertEqual(compute_target_rounds(1, 1), 1)

    def test_fewer_than_four_players(self):
        """Test that small rosters produce an empty schedule"""
        for count in range(4):
            self.assertEqual(generate_schedule(make_players(count), 1), [])

    def test_three_players_and_bye(self):
        """Test that three real players padded to four cannot form a match"""
        players = to_players(["A", "B", "C", "Bye"])
        self.assertEqual(generate_schedule(players, 1), [])

    def test_zero_courts(self):
        """Test that zero courts gives an empty schedule immediately"""
        self.assertEqual(generate_schedule(make_players(8), 0), [])

    def test_four_players_one_court(self):
        """Test that four players rotate through all three partner splits"""
        matches = generate_schedule(make_players(4), 1)

        self.assertEqual(len(matches), 3)
        self.assertEqual([m.round for m in matches], [1, 2, 3])
        self.assertTrue(all(m.court == 1 for m in matches))
        self.assertEqual(
            [(str(m.team_a), str(m.team_b)) for m in matches],
            [("A & B", "C & D"), ("A & C", "B & D"), ("A & D", "B & C")],
        )
        partnerships = Counter(key for m in matches for key in partner_pairs(m))
        self.assertEqual(len(partnerships), 6)
        self.assertTrue(all(count == 1 for count in partnerships.values()))

    def test_five_players_with_bye(self):
        """Test an odd roster: the Bye never plays and one real player sits out each round"""
        players, bye_added = build_roster("A\nB\nC\nD\nE")
        matches = generate_schedule(players, 1)

        self.assertTrue(bye_added)
        self.assertEqual(len(matches), compute_target_rounds(6, 1))
        valid, violations = ScheduleValidator.validate_no_bye_teams(matches)
        self.assertTrue(valid, violations)
        for resting in sitting_out(matches, players).values():
            self.assertEqual(len(resting), 1)

    def test_match_ids_and_courts(self):
        """Test match ids, round numbers and court numbers"""
        matches = generate_schedule(make_players(8), 2)

        self.assertEqual(matches[0].id, "1-0")
        self.assertEqual(matches[1].id, "1-1")
        self.assertEqual([m.court for m in matches[:4]], [1, 2, 1, 2])
        valid, violations = ScheduleValidator.validate_round_numbering(matches)
        self.assertTrue(valid, violations)

    def test_first_two_rounds_use_new_partners(self):
        """Test that eight players on two courts do not repeat a partner early"""
        matches = generate_schedule(make_players(8), 2)
        rounds = group_by_round(matches)

        self.assertEqual(
            [(str(m.team_a), str(m.team_b)) for m in rounds[1] + rounds[2]],
            [
                ("A & B", "C & D"),
                ("E & F", "G & H"),
                ("A & E", "B & F"),
                ("C & G", "D & H"),
            ],
        )

    def test_diversity_over_full_run(self):
        """Test that eight players meet every partner once before any partner repeats"""
        players = make_players(8)
        matches = generate_schedule(players, 2)
        covered, possible = partner_coverage(matches, players)

        self.assertEqual(len(matches), 18)
        self.assertEqual(possible, 28)
        seen = set()
        for match in matches:
            for key in partner_pairs(match):
                if len(seen) < possible:
                    self.assertNotIn(
                        key, seen, f"Match {match.id} repeats {sorted(key)} after {len(seen)} pairs"
                    )
                seen.add(key)
        self.assertEqual(len(seen), possible)
        self.assertEqual(covered, possible)
        self.assertEqual(play_balance(matches, players), 0)

    def test_ten_players_two_courts(self):
        """Test the first eight rounds for ten players, where repeat weights decide the pairings"""
        players = to_players([f"P{i}" for i in range(10)])
        matches = generate_schedule(players, 2)

        expected = [
            (1, "P0 & P1", "P2 & P3"),
            (1, "P4 & P5", "P6 & P7"),
            (2, "P0 & P8", "P1 & P9"),
            (2, "P2 & P4", "P3 & P5"),
            (3, "P0 & P6", "P7 & P8"),
            (3, "P1 & P2", "P4 & P9"),
            (4, "P3 & P9", "P5 & P6"),
            (4, "P1 & P8", "P2 & P7"),
            (5, "P3 & P4", "P8 & P9"),
            (5, "P0 & P5", "P1 & P6"),
            (6, "P0 & P2", "P4 & P7"),
            (6, "P3 & P8", "P5 & P9"),
            (7, "P1 & P7", "P3 & P6"),
            (7, "P0 & P9", "P2 & P5"),
            (8, "P2 & P9", "P6 & P7"),
            (8, "P0 & P3", "P4 & P8"),
        ]
        self.assertEqual(
            [(m.round, str(m.team_a), str(m.team_b)) for m in matches[: len(expected)]],
            expected,
        )
        self.assertEqual(
            (matches[14].team_a.first.id, matches[14].team_a.second.id), ("2-P2", "9-P9")
        )

    def test_matches_directional_counting(self):
        """Test the driver against a rendition that counts each pair from both players' sides"""
        for count in range(4, 15):
            for courts in range(1, 5):
                players = make_players(count)
                actual = [
                    (m.round, tuple(p.id for p in m.team_a), tuple(p.id for p in m.team_b))
                    for m in generate_schedule(players, courts)
                ]
                self.assertEqual(
                    actual,
                    directional_schedule(players, courts),
                    f"{count} players, {courts} courts",
                )

    def test_schedule_properties(self):
        """Test rotation constraints across roster sizes and court counts"""
        for count in (4, 5, 6, 7, 9, 10, 13):
            for courts in (1, 2, 3, 6):
                players, _ = build_roster(",".join(chr(65 + i) for i in range(count)))
                matches = generate_schedule(players, courts)
                valid, violations = ScheduleValidator.validate_all(matches, courts, players)
                self.assertTrue(valid, f"{count} players, {courts} courts: {violations}")
                self.assertLessEqual(
                    max(m.round for m in matches),
                    compute_target_rounds(len(players), courts),
                )

    def test_deterministic(self):
        """Test that identical inputs give identical schedules"""
        players = make_players(10)
        self.assertEqual(generate_schedule(players, 2), generate_schedule(players, 2))

    def test_history_is_monotonic(self):
        """Test that counters never decrease between rounds"""
        snapshots = []

        class RecordingSelector(GreedyRoundSelector):
            def select(self, teams, history, court_count):
                snapshots.append(
                    (
                        dict(history.partner_counts),
                        dict(history.opponent_counts),
                        dict(history.play_counts),
                    )
                )
                return super().select(teams, history, court_count)

        generate_schedule(make_players(9), 2, selector=RecordingSelector())

        self.assertGreater(len(snapshots), 1)
        for earlier, later in zip(snapshots, snapshots[1:]):
            for before, after in zip(earlier, later):
                for key, value in before.items():
                    self.assertGreaterEqual(after.get(key, 0), value)

    def test_max_rounds_ceiling(self):
        """Test that an explicit ceiling caps the rounds"""
        matches = generate_schedule(make_players(8), 2, max_rounds=3)
        self.assertEqual(max(m.round for m in matches), 3)


class TestRoster(unittest.TestCase):
    """Test roster intake helpers"""

    def test_parse_names(self):
        """Test comma and newline splitting"""
        self.assertEqual(parse_names(" Ava, Ben\n\nChloe ,\r\nDrew,"), ["Ava", "Ben", "Chloe", "Drew"])
        self.assertEqual(parse_names(""), [])
        self.assertEqual(parse_names(None), [])

    def test_ensure_even_players(self):
        """Test Bye padding"""
        self.assertEqual(ensure_even_players(["A", "B"]), ["A", "B"])
        self.assertEqual(ensure_even_players(["A", "B", "C"]), ["A", "B", "C", "Bye"])

    def test_player_ids(self):
        """Test index-based ids keep duplicate names distinct"""
        players = to_players(["Sam", "Sam"])
        self.assertEqual([p.id for p in players], ["0-Sam", "1-Sam"])

    def test_clamp_courts(self):
        """Test court clamping to 1-6"""
        self.assertEqual(clamp_courts(None), 2)
        self.assertEqual(clamp_courts(0), 2)
        self.assertEqual(clamp_courts(-3), 1)
        self.assertEqual(clamp_courts(4), 4)
        self.assertEqual(clamp_courts(10), 6)

    def test_sitting_out(self):
        """Test per-round resting players"""
        players = make_players(6)
        resting = sitting_out(generate_schedule(players, 1)[:1], players)
        self.assertEqual([p.name for p in resting[1]], ["E", "F"])


class TestConstraintValidation(unittest.TestCase):
    """Test the rotation validator on hand-built schedules"""

    def setUp(self):
        self.a, self.b, self.c, self.d, self.e, self.f, self.g, self.h = make_players(8)

    def test_duplicate_player_in_match(self):
        """Test detection of a player on both teams"""
        match = Match("1-0", 1, 1, Team(self.a, self.b), Team(self.a, self.c))
        valid, violations = ScheduleValidator.validate_distinct_players([match])
        self.assertFalse(valid)
        self.assertEqual(len(violations), 1)

    def test_player_on_two_courts(self):
        """Test detection of a round conflict"""
        matches = [
            Match("1-0", 1, 1, Team(self.a, self.b), Team(self.c, self.d)),
            Match("1-1", 1, 2, Team(self.a, self.e), Team(self.f, self.g)),
        ]
        valid, violations = ScheduleValidator.validate_round_conflicts(matches)
        self.assertFalse(valid)
        self.assertIn("0-A", violations[0])

    def test_court_capacity(self):
        """Test too many matches for the courts"""
        matches = [
            Match("1-0", 1, 1, Team(self.a, self.b), Team(self.c, self.d)),
            Match("1-1", 1, 2, Team(self.e, self.f), Team(self.g, self.h)),
        ]
        self.assertFalse(ScheduleValidator.validate_court_capacity(matches, 1)[0])
        self.assertTrue(ScheduleValidator.validate_court_capacity(matches, 2)[0])

    def test_round_numbering(self):
        """Test gaps in rounds and courts"""
        good = [
            Match("1-0", 1, 1, Team(self.a, self.b), Team(self.c, self.d)),
            Match("1-1", 1, 2, Team(self.e, self.f), Team(self.g, self.h)),
            Match("2-0", 2, 1, Team(self.a, self.c), Team(self.b, self.d)),
        ]
        gap = [
            Match("1-0", 1, 1, Team(self.a, self.b), Team(self.c, self.d)),
            Match("3-0", 3, 1, Team(self.a, self.c), Team(self.b, self.d)),
        ]
        self.assertTrue(ScheduleValidator.validate_round_numbering(good)[0])
        self.assertFalse(ScheduleValidator.validate_round_numbering(gap)[0])

    def test_bye_on_court(self):
        """Test detection of the Bye placeholder in a match"""
        bye = Player(id="4-Bye", name="Bye")
        match = Match("1-0", 1, 1, Team(self.a, bye), Team(self.c, self.d))
        self.assertFalse(ScheduleValidator.validate_no_bye_teams([match])[0])


class TestScheduler(unittest.TestCase):
    """Test the scheduler facade"""

    def test_successful_result(self):
        """Test result fields for a normal roster"""
        players, _ = build_roster("A,B,C,D,E,F,G,H,I,J,K,L")
        result = DoublesScheduler(ScheduleConfig(court_count=2)).schedule(players)

        self.assertTrue(result.success)
        self.assertEqual(result.total_rounds, compute_target_rounds(12, 2))
        self.assertEqual(result.total_matches, 2 * result.total_rounds)
        self.assertFalse(result.bye_added)
        self.assertEqual(result.warnings, [])

    def test_not_enough_players(self):
        """Test the failure message for a small roster"""
        result = DoublesScheduler(ScheduleConfig(court_count=1)).schedule(make_players(3))

        self.assertFalse(result.success)
        self.assertEqual(result.error_message, "Add at least 4 players to build a rotation.")

    def test_unused_courts_warning(self):
        """Test the warning when courts outnumber players"""
        result = DoublesScheduler(ScheduleConfig(court_count=3)).schedule(make_players(8))

        self.assertTrue(result.success)
        self.assertEqual(len(result.warnings), 1)
        self.assertIn("Only 2 of 3 courts", result.warnings[0])

    def test_unexpected_error(self):
        """Test that an internal failure returns a failed result"""
        scheduler = DoublesScheduler(ScheduleConfig(court_count=2))
        with mock.patch(
            "doubles_scheduler.scheduling.generate_schedule", side_effect=RuntimeError("boom")
        ):
            result = scheduler.schedule(make_players(8))

        self.assertFalse(result.success)
        self.assertEqual(result.error_message, "boom")

    def test_invalid_configurations(self):
        """Test that invalid configurations raise appropriate errors"""
        with self.assertRaises(ValueError):
            ScheduleConfig(court_count=-1)
        with self.assertRaises(ValueError):
            ScheduleConfig(court_count=2, strategy="random")
        with self.assertRaises(ValueError):
            ScheduleConfig(court_count=2, max_rounds=0)

    def test_optimal_strategy_selector(self):
        """Test that the optimal strategy uses OR-Tools"""
        scheduler = DoublesScheduler(ScheduleConfig(court_count=2, strategy="optimal"))
        self.assertIsInstance(scheduler.selector, ORToolsRoundSelector)

    def test_summary_lists_resting_players(self):
        """Test that the summary names the players sitting out each round"""
        players = make_players(6)
        scheduler = DoublesScheduler(ScheduleConfig(court_count=1))
        result = scheduler.schedule(players)

        output = io.StringIO()
        with redirect_stdout(output):
            scheduler.print_schedule_summary(result, players)

        self.assertIn("Round 1:", output.getvalue())
        self.assertIn("Sitting out: E, F", output.getvalue())


class TestCommandLine(unittest.TestCase):
    """Test the command line entry point"""

    def run_cli(self, argv):
        output = io.StringIO()
        with redirect_stdout(output):
            code = main(argv)
        return code, output.getvalue()

    def test_not_enough_players(self):
        """Test the exit code for a small roster"""
        code, output = self.run_cli(["--players", "A, B, C"])
        self.assertEqual(code, 1)
        self.assertIn("Add at least 4 players", output)

    def test_sample_roster_with_exports(self):
        """Test a full run with CSV and JSON export"""
        with tempfile.TemporaryDirectory() as tmp:
            csv_path = os.path.join(tmp, "schedule.csv")
            json_path = os.path.join(tmp, "schedule.json")
            code, output = self.run_cli(
                [
                    "--sample-roster",
                    "--courts",
                    "3",
                    "--validate",
                    "--export-csv",
                    csv_path,
                    "--export-json",
                    json_path,
                ]
            )

            self.assertEqual(code, 0)
            self.assertIn("Round 1:", output)
            self.assertIn("PASSED", output)

            with open(csv_path, encoding="utf-8", newline="") as f:
                rows = list(csv.reader(f))
            with open(json_path, encoding="utf-8") as f:
                data = json.load(f)

        self.assertEqual(rows[0][:4], ["Round", "Court", "Team A", "Team B"])
        self.assertEqual(rows[1][:2], ["1", "1"])
        self.assertEqual(len(rows) - 1, len(data["matches"]))
        self.assertEqual(data["courts"], 3)
        self.assertEqual(data["matches"][0]["team_a"][0]["name"], "Alex")

    def test_players_file(self):
        """Test reading the roster from a file"""
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "players.txt")
            with open(path, "w", encoding="utf-8") as f:
                f.write("Ava\nBen\nChloe\nDrew\nEli\n")
            code, output = self.run_cli(["--players-file", path, "--courts", "1"])

        self.assertEqual(code, 0)
        self.assertIn("(Bye added)", output)
        self.assertIn("Sitting out:", output)

    def test_missing_players_file(self):
        """Test a clean error for a missing file"""
        code, output = self.run_cli(["--players-file", "/nonexistent/players.txt"])
        self.assertEqual(code, 1)
        self.assertIn("Error loading players", output)

    def test_undecodable_players_file(self):
        """Test a clean error for a file that is not UTF-8"""
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "players.txt")
            with open(path, "wb") as f:
                f.write(b"Ava\nB\xffob\nChloe\nDrew\n")
            code, output = self.run_cli(["--players-file", path])

        self.assertEqual(code, 1)
        self.assertIn("Error loading players", output)

    def test_export_csv_blank_scores(self):
        """Test that score columns are left empty"""
        matches = generate_schedule(make_players(4), 1)
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "out.csv")
            export_csv(path, matches)
            with open(path, encoding="utf-8", newline="") as f:
                rows = list(csv.reader(f))

        self.assertEqual(rows[1], ["1", "1", "A & B", "C & D", "", ""])


if __name__ == "__main__":
    unittest.main()
