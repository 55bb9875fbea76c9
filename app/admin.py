"""Admin access check shared by the admin routes.

Admin endpoints take the ``X-Admin-Token`` header; they are disabled
outright when no token is configured.
"""

from __future__ import annotations

import hmac
from typing import Optional

from fastapi import HTTPException

from app.config import get_settings


def require_admin(token: Optional[str]) -> None:
    """Raise 403 unless *token* matches the configured admin token."""
    expected = get_settings().admin_token
    if not expected:
        raise HTTPException(status_code=403, detail="Admin access is disabled")
    if not token or not hmac.compare_digest(token, expected):
        raise HTTPException(status_code=403, detail="Invalid admin token")
