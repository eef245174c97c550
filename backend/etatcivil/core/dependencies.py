"""
FastAPI dependency injection functions (reference backend).
"""

from functools import lru_cache

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from etatcivil.core.exceptions import UnauthenticatedError
from etatcivil.core.security import decode_access_token
from etatcivil.features.calendar.service import CalendarService

# Bearer token scheme for Swagger UI; missing header handled below
bearer_scheme = HTTPBearer(auto_error=False)


@lru_cache
def get_calendar_service() -> CalendarService:
    """Dependency: shared in-memory calendar store."""
    return CalendarService()


async def get_current_user_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str:
    """Dependency: extract and validate user_id from JWT token.

    Raises:
        UnauthenticatedError: If the token is missing, invalid or expired.
    """
    if credentials is None:
        raise UnauthenticatedError()

    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise UnauthenticatedError("Token invalide ou expiré")

    user_id = payload.get("sub")
    if not user_id:
        raise UnauthenticatedError("Token sans identifiant utilisateur")

    return user_id
