"""Persisted task list with due-date ordering and a restart-safe work/break timer."""

__version__ = "0.1.0"
