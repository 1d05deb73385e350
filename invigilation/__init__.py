"""Invigilator allocation engine.

Modules:
- config: load and validate engine configuration (YAML)
- errors: validation / not-found / conflict errors
- domain: SQLAlchemy models, session helpers and repositories
- services: availability, scoring, roster resolution, constraint loading
- engine: allocation generator, reassignment, day maintenance
- io: CSV export of a day's schedule
- cli: command-line interface entrypoints
"""

__all__ = [
    "config",
    "errors",
    "domain",
    "services",
    "engine",
    "io",
    "cli",
]
