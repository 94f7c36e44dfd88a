from . import auth
from . import trips
from . import votes
from . import notifications
from . import health

__all__ = [
    "auth",
    "trips",
    "votes",
    "notifications",
    "health",
]
