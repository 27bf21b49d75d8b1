# Force SQLModel table registration at test discovery time
# This ensures all models are registered before any test database creation
from tourney.models.event import Event  # noqa: F401
from tourney.models.fixture import Fixture  # noqa: F401
from tourney.models.participant import Participant  # noqa: F401
from tourney.models.tournament import Tournament  # noqa: F401
