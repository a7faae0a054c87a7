"""
Shared modules for the CryptoLens portfolio analytics engine.
"""
from .config import settings
from .database import Base, get_db, engine, SessionLocal

__all__ = [
    "settings",
    "Base",
    "get_db",
    "engine",
    "SessionLocal",
]
