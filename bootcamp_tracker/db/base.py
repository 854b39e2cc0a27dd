"""SQLAlchemy Declarative Base — shared metadata for every ORM model.

Invariants:
    - Constraint and index names follow PostgreSQL's own defaults
      (users_pkey, games_riot_game_id_bootcamper_id_key, bootcampers_user_id_fkey)
      so autogenerate output matches the hand-written migrations
"""

from sqlalchemy import MetaData
from sqlalchemy.orm import DeclarativeBase

NAMING_CONVENTION = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "uq": "%(table_name)s_%(column_0_N_name)s_key",
    "fk": "%(table_name)s_%(column_0_name)s_fkey",
    "pk": "%(table_name)s_pkey",
}


class Base(DeclarativeBase):
    metadata = MetaData(naming_convention=NAMING_CONVENTION)
