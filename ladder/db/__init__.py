"""Database Schema Base — SQLAlchemy declarative Base and column helpers.

Invariants:
    - Every ORM model inherits from db.base.Base
    - Engine and sessions live in infrastructure/database.py, not here

Design Decisions:
    - asyncpg driver for PostgreSQL in production, aiosqlite in tests
"""
