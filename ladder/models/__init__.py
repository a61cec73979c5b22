"""ORM Models — SQLAlchemy declarative models for all ladder entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - MatchSession owns its participant rows; Match owns its two entries

Design Decisions:
    - One file per entity for locality
    - All models imported here so SQLAlchemy resolves string-based relationship()
      references before any query runs
"""

from ladder.models.player import Player  # noqa: F401
from ladder.models.league import League  # noqa: F401
from ladder.models.match_session import MatchSession, MatchSessionPlayer  # noqa: F401
from ladder.models.match import Match  # noqa: F401
from ladder.models.match_entry import MatchEntry  # noqa: F401
