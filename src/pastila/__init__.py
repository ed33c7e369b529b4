"""Pastila CLI: read, write and edit pastes on pastila.nl."""

__version__ = "0.1.0"
