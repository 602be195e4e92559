"""Doubles rotation generator: balanced partners, opponents and playing time across courts."""

from doubles_scheduler.models import Match, Player, ScheduleConfig, ScheduleResult, Team
from doubles_scheduler.scheduling import DoublesScheduler, generate_schedule

__all__ = [
    "DoublesScheduler",
    "Match",
    "Player",
    "ScheduleConfig",
    "ScheduleResult",
    "Team",
    "generate_schedule",
]
