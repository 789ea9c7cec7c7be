from functools import lru_cache

from sqlalchemy.ext.asyncio import AsyncEngine

from machine_booking.config import get_settings
from machine_booking.infrastructure.db.engine import build_engine, build_sessionmaker


@lru_cache(maxsize=1)
def get_engine() -> AsyncEngine:
    return build_engine(get_settings())


@lru_cache(maxsize=1)
def get_session_maker():
    return build_sessionmaker(get_engine())
