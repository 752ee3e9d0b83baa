"""
Adtime storage test suite.

Test Organization
-----------------
- tests/unit/          : SQLite (aiosqlite) and an in-memory cache; no services needed
- tests/integration/   : PostgreSQL and Redis via testcontainers (marker `integration`)
- tests/fakes.py       : cache and clock test doubles

Run `pytest` for the unit suite, `pytest -m integration` for the container suite.
"""
