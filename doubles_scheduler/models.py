"""Data models for doubles rotation scheduling."""

from dataclasses import dataclass, field
from typing import FrozenSet, Iterator, List, Optional, Tuple

BYE_NAME = "Bye"
MAX_ROUNDS = 50
STRATEGIES = ("greedy", "optimal")


@dataclass(frozen=True)
class Player:
    """A roster entry; the id is stable for the whole run"""

    id: str
    name: str

    @property
    def is_bye(self) -> bool:
        """Placeholder added to even out an odd roster"""
        return self.name == BYE_NAME

    def __str__(self):
        return self.name


@dataclass(frozen=True, eq=False)
class Team:
    """Two distinct players on the same side, compared as an unordered pair"""

    first: Player
    second: Player

    def key(self) -> FrozenSet[str]:
        return frozenset((self.first.id, self.second.id))

    def players(self) -> Tuple[Player, Player]:
        return (self.first, self.second)

    def partner_of(self, player: Player) -> Player:
        """Return the teammate of the given player"""
        if player.id == self.first.id:
            return self.second
        if player.id == self.second.id:
            return self.first
        raise ValueError(f"{player.name} is not on team {self}")

    def __iter__(self) -> Iterator[Player]:
        return iter(self.players())

    def __eq__(self, other):
        if not isinstance(other, Team):
            return NotImplemented
        return self.key() == other.key()

    def __hash__(self):
        return hash(self.key())

    def __str__(self):
        return f"{self.first.name} & {self.second.name}"


@dataclass(frozen=True)
class Match:
    """One team against another on a court within a round"""

    id: str
    round: int
    court: int
    team_a: Team
    team_b: Team

    def players(self) -> Tuple[Player, Player, Player, Player]:
        return (*self.team_a.players(), *self.team_b.players())

    def player_ids(self) -> List[str]:
        return [player.id for player in self.players()]

    def __str__(self):
        return f"Round {self.round}, Court {self.court}: {self.team_a} vs {self.team_b}"


@dataclass
class ScheduleConfig:
    """Schedule generation parameters"""

    court_count: int
    strategy: str = "greedy"  # "greedy" or "optimal"
    max_rounds: int = MAX_ROUNDS
    solver_time_limit: float = 10.0  # seconds per round, optimal strategy only

    def __post_init__(self):
        """Validate configuration after initialization"""
        if self.court_count < 0:
            raise ValueError("Number of courts cannot be negative")
        if self.strategy not in STRATEGIES:
            raise ValueError(
                f"Unknown strategy '{self.strategy}', expected one of {', '.join(STRATEGIES)}"
            )
        if self.max_rounds < 1:
            raise ValueError("Maximum rounds must be at least 1")
        if self.solver_time_limit <= 0:
            raise ValueError("Solver time limit must be positive")


@dataclass
class ScheduleResult:
    """Result of schedule generation"""

    success: bool
    matches: List[Match]
    total_rounds: int
    court_count: int
    player_count: int
    bye_added: bool
    generation_time: float  # seconds
    error_message: Optional[str] = None
    warnings: List[str] = field(default_factory=list)

    @property
    def total_matches(self) -> int:
        return len(self.matches)
