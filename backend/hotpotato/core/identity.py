"""Opaque per-session player identifiers."""

from __future__ import annotations

import uuid


def new_player_id() -> str:
    return str(uuid.uuid4())
