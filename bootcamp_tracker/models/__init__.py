"""ORM Models — SQLAlchemy declarative models for all domain entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - Bootcamper owns games, streams and personal-list associations

Design Decisions:
    - All models imported here so SQLAlchemy resolves string-based relationship()
      references before any query runs
"""

from bootcamp_tracker.models.user import User, UserLayout  # noqa: F401
from bootcamp_tracker.models.bootcamper import Bootcamper, UserBootcamper  # noqa: F401
from bootcamp_tracker.models.game import Game  # noqa: F401
from bootcamp_tracker.models.twitch_stream import TwitchStream  # noqa: F401
from bootcamp_tracker.models.champion_playrate import ChampionPlayrate  # noqa: F401
