# Force SQLModel table registration at test discovery time
# This ensures all models are registered before any test database creation
from app.models.disputed_score import DisputedScore  # noqa: F401
from app.models.division import Division  # noqa: F401
from app.models.game import Game  # noqa: F401
from app.models.league import League  # noqa: F401
from app.models.match import Match  # noqa: F401
from app.models.player import Player  # noqa: F401
from app.models.registration import Registration  # noqa: F401
