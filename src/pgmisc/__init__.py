"""Process-control and WAL timeline admin toolkit for PostgreSQL clusters."""

__version__ = "0.1.0"
