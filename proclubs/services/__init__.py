"""
Service layer: domain rules, fixture generation, standings.
Pure functions in standings/scheduling/swiss_draw; the services orchestrate persistence.
"""
from .competition_service import (
    CompetitionService,
    CompetitionStateError,
    RegistrationError,
    ResultError,
)
from .fantasy_service import FantasyService, FantasyValidationError
from .lineup_service import (
    DeadlinePassedError,
    LineupService,
    LineupStateError,
    LineupValidationError,
)
from .scheduling import FixtureGenerationError
from .swiss_draw import SwissDrawEngine, SwissDrawError

__all__ = [
    "CompetitionService",
    "CompetitionStateError",
    "RegistrationError",
    "ResultError",
    "FantasyService",
    "FantasyValidationError",
    "DeadlinePassedError",
    "LineupService",
    "LineupStateError",
    "LineupValidationError",
    "FixtureGenerationError",
    "SwissDrawEngine",
    "SwissDrawError",
]
