from tourney.models.event import Event, ParticipantType
from tourney.models.fixture import Fixture
from tourney.models.participant import Participant
from tourney.models.tournament import Tournament

__all__ = [
    "Tournament",
    "Event",
    "ParticipantType",
    "Participant",
    "Fixture",
]
