"""ORM model registry — import all models so Alembic autogenerate discovers them."""

from elections_api.models.fec_filing import FecFiling
from elections_api.models.geography import CalendarEvent, ElectionCycle, State
from elections_api.models.race import Candidate, District, Race, RaceCandidate
from elections_api.models.sync_log import AutomationConfig, SyncLog

__all__ = [
    "AutomationConfig",
    "CalendarEvent",
    "Candidate",
    "District",
    "ElectionCycle",
    "FecFiling",
    "Race",
    "RaceCandidate",
    "State",
    "SyncLog",
]
