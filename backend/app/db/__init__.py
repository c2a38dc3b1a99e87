# backend/app/db/__init__.py

"""
Database Module

Engine and session factory, the case/timeline/artifact models, and the
camelCase API schemas.
"""

from app.db.database import Base, engine, SessionLocal, get_db
from app.db import models, schemas

__all__ = [
    'Base',
    'engine',
    'SessionLocal',
    'get_db',
    'models',
    'schemas'
]
