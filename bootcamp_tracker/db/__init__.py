"""Database Infrastructure — declarative Base and script session factory.

Design Decisions:
    - asyncpg driver for PostgreSQL in production, aiosqlite in tests
"""
