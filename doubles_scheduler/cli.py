"""Command line interface for the doubles rotation generator."""

import argparse
import csv
import json
import logging
from typing import Any, Dict, List, Optional

from doubles_scheduler.models import Match, Player, ScheduleConfig, ScheduleResult
from doubles_scheduler.roster import (
    DEFAULT_ROSTER,
    build_roster,
    clamp_courts,
    has_enough_players,
    parse_names,
)
from doubles_scheduler.scheduling import DoublesScheduler
from doubles_scheduler.validation import ScheduleValidator, partner_coverage, play_balance

logger = logging.getLogger(__name__)


def run_all_tests() -> bool:
    """Run all unit tests"""
    import unittest

    from doubles_scheduler import tests

    loader = unittest.TestLoader()
    suite = loader.loadTestsFromModule(tests)
    runner = unittest.TextTestRunner(verbosity=2)
    result = runner.run(suite)
    return result.wasSuccessful()


def serialize_match(match: Match) -> Dict[str, Any]:
    """Serialize a Match to a dictionary for JSON export"""
    return {
        "id": match.id,
        "round": match.round,
        "court": match.court,
        "team_a": [{"id": p.id, "name": p.name} for p in match.team_a],
        "team_b": [{"id": p.id, "name": p.name} for p in match.team_b],
    }


def export_json(path: str, result: ScheduleResult, players: List[Player]):
    data = {
        "players": [{"id": p.id, "name": p.name} for p in players],
        "courts": result.court_count,
        "rounds": result.total_rounds,
        "bye_added": result.bye_added,
        "warnings": result.warnings,
        "matches": [serialize_match(m) for m in result.matches],
    }
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)


def export_csv(path: str, matches: List[Match]):
    """Write one row per match with blank score columns to fill in courtside"""
    with open(path, "w", encoding="utf-8", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(["Round", "Court", "Team A", "Team B", "Team A Score", "Team B Score"])
        for match in matches:
            writer.writerow([match.round, match.court, str(match.team_a), str(match.team_b), "", ""])


def read_roster_text(args: argparse.Namespace) -> Optional[str]:
    if args.sample_roster:
        return "\n".join(DEFAULT_ROSTER)
    if args.players_file:
        with open(args.players_file, "r", encoding="utf-8") as f:
            return f.read()
    return args.players


def report_validation(result: ScheduleResult, players: List[Player]):
    """Print constraint checks and diversity figures for a generated rotation"""
    print(f"\n🔍 Validating rotation constraints...")
    valid, violations = ScheduleValidator.validate_all(
        result.matches, result.court_count, players
    )
    print(f"✅ Rotation constraints: {'PASSED' if valid else 'FAILED'}")
    for violation in violations[:5]:
        print(f"   ❌ {violation}")

    covered, possible = partner_coverage(result.matches, players)
    print(f"📊 Partnerships used: {covered}/{possible}")
    print(f"📊 Play balance (max - min matches): {play_balance(result.matches, players)}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Doubles Rotation Generator (balanced partners, opponents and play time)"
    )
    parser.add_argument("--test", action="store_true", help="Run unit tests")
    parser.add_argument(
        "--players", type=str, help="Player names, comma or newline separated"
    )
    parser.add_argument("--players-file", type=str, help="File with one player per line")
    parser.add_argument(
        "--sample-roster", action="store_true", help="Use the 12 player sample roster"
    )
    parser.add_argument(
        "--courts", type=int, default=2, help="Courts in use (clamped to 1-6)"
    )
    parser.add_argument(
        "--strategy",
        choices=["greedy", "optimal"],
        default="greedy",
        help="Round selection: greedy walk or OR-Tools optimisation per round",
    )
    parser.add_argument("--export-csv", type=str, help="Export schedule to CSV file")
    parser.add_argument("--export-json", type=str, help="Export schedule to JSON file")
    parser.add_argument(
        "--validate", action="store_true", help="Check the rotation after generating it"
    )
    parser.add_argument("--verbose", action="store_true", help="Log every round")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main command line interface"""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    if args.test:
        print("🧪 Running unit tests...")
        return 0 if run_all_tests() else 1

    try:
        text = read_roster_text(args)
    except (OSError, ValueError) as e:
        print(f"❌ Error loading players: {e}")
        return 1

    if text is None:
        print("❌ Please specify --players, --players-file or --sample-roster")
        parser.print_help()
        return 1

    if not has_enough_players(parse_names(text)):
        print("❌ Add at least 4 players to build a rotation.")
        return 1

    players, _ = build_roster(text)
    court_count = clamp_courts(args.courts)
    if court_count != args.courts:
        logger.warning(f"⚠️  Courts should be between 1 and 6, using {court_count}")

    try:
        config = ScheduleConfig(court_count=court_count, strategy=args.strategy)
    except ValueError as e:
        print(f"❌ {e}")
        return 1

    scheduler = DoublesScheduler(config)
    result = scheduler.schedule(players)
    scheduler.print_schedule_summary(result, players)

    if not result.success:
        return 1

    if args.validate:
        report_validation(result, players)

    if args.export_csv:
        export_csv(args.export_csv, result.matches)
        print(f"💾 Schedule exported to {args.export_csv}")
    if args.export_json:
        export_json(args.export_json, result, players)
        print(f"💾 Schedule exported to {args.export_json}")

    return 0
