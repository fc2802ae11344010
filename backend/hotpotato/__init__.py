"""Authoritative session server for the hot potato party game."""

__version__ = "0.1.0"
