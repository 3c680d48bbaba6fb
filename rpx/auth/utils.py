"""Helpers to read the logged in user from the request context."""

from __future__ import annotations

from typing import Optional

from flask import g, session


def current_user_id() -> Optional[str]:
    """Return the uid of the user loaded for this request, if any."""
    user = g.get("user")
    return user["uid"] if user else None


def current_user_is_admin() -> bool:
    """Admins are flagged in the session or on their user document."""
    user = g.get("user") or {}
    return bool(
        session.get("is_admin") or user.get("isAdmin") or user.get("role") == "admin"
    )
