"""Roster intake and per-round views of a schedule."""

import re
from collections import defaultdict
from typing import Dict, List, Optional, Sequence, Tuple

from doubles_scheduler.models import BYE_NAME, Match, Player

MIN_COURTS = 1
MAX_COURTS = 6
DEFAULT_COURTS = 2
MIN_ROSTER_SIZE = 4

DEFAULT_ROSTER = [
    "Alex",
    "Brooke",
    "Casey",
    "Drew",
    "Elliot",
    "Finley",
    "Gray",
    "Harper",
    "Indie",
    "Jules",
    "Kai",
    "Logan",
]

_SEPARATORS = re.compile(r"[\n,]")


def parse_names(text: Optional[str]) -> List[str]:
    """Split comma or newline separated names, dropping blanks"""
    return [name.strip() for name in _SEPARATORS.split(text or "") if name.strip()]


def ensure_even_players(names: Sequence[str]) -> List[str]:
    """Append a Bye placeholder to an odd roster"""
    names = list(names)
    if len(names) % 2 == 0:
        return names
    return names + [BYE_NAME]


def to_players(names: Sequence[str]) -> List[Player]:
    return [Player(id=f"{index}-{name}", name=name) for index, name in enumerate(names)]


def clamp_courts(value: Optional[int], default: int = DEFAULT_COURTS) -> int:
    """Missing or zero falls back to the default; the result is kept within 1-6"""
    return min(max(value or default, MIN_COURTS), MAX_COURTS)


def has_enough_players(names: Sequence[str]) -> bool:
    return len(names) >= MIN_ROSTER_SIZE


def build_roster(text: Optional[str]) -> Tuple[List[Player], bool]:
    """Parse free text into players, returning (players, bye_added)"""
    names = parse_names(text)
    padded = ensure_even_players(names)
    return to_players(padded), len(padded) != len(names)


def group_by_round(matches: Sequence[Match]) -> Dict[int, List[Match]]:
    grouped: Dict[int, List[Match]] = defaultdict(list)
    for match in matches:
        grouped[match.round].append(match)
    return dict(grouped)


def sitting_out(matches: Sequence[Match], players: Sequence[Player]) -> Dict[int, List[Player]]:
    """Real players without a court in each round, in roster order"""
    resting = {}
    for round_number, round_matches in group_by_round(matches).items():
        playing = {player_id for match in round_matches for player_id in match.player_ids()}
        resting[round_number] = [
            player for player in players if not player.is_bye and player.id not in playing
        ]
    return resting
