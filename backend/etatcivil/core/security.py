"""
Security utilities: persisted bearer token (client side) and JWT handling (reference backend).
"""

import json
import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path

from jose import jwt, JWTError

from etatcivil.config import get_settings

logger = logging.getLogger(__name__)


# ── Client-side credential storage ───────────────────────

class TokenStore:
    """Bearer token and current user, persisted in a small JSON file."""

    def __init__(self, path: str | Path | None = None):
        self.path = Path(path or get_settings().TOKEN_FILE)

    def _read(self) -> dict:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            logger.warning(f"Unreadable token file {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def load(self) -> str | None:
        """The stored token, or None when logged out."""
        return self._read().get("token") or None

    def user(self) -> dict | None:
        return self._read().get("user") or None

    def save(self, token: str, user: dict | None = None) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump({"token": token, "user": user}, f, ensure_ascii=False)

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


# ── JWT Token ────────────────────────────────────────────

def create_access_token(user_id: str, extra_data: dict | None = None) -> str:
    """Create a JWT access token for app authentication."""
    settings = get_settings()

    payload = {
        "sub": str(user_id),
        "exp": datetime.now(timezone.utc) + timedelta(minutes=settings.JWT_EXPIRY_MINUTES),
        "iat": datetime.now(timezone.utc),
    }
    if extra_data:
        payload.update(extra_data)

    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict | None:
    """Decode and validate a JWT token. Returns payload or None if invalid."""
    settings = get_settings()
    try:
        payload = jwt.decode(
            token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM]
        )
        return payload
    except JWTError:
        return None
