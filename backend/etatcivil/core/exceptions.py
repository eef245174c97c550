"""
Custom exception classes for unified error handling.

Client side: every error degrades to a toast and a safe fallback value.
Server side (reference backend): errors become `{success: false, message}` bodies.
"""

from fastapi import Request
from fastapi.responses import JSONResponse


class AppBaseError(Exception):
    """Base exception for all application errors."""
    status_code: int = 400

    def __init__(self, message: str, detail: str | None = None):
        self.message = message
        self.detail = detail
        super().__init__(message)


class UnauthenticatedError(AppBaseError):
    """Raised when no bearer token is available or the server rejected it."""
    status_code = 401

    def __init__(self, message: str = "Non authentifié"):
        super().__init__(
            message=message,
            detail="Veuillez vous reconnecter.",
        )


class FetchFailedError(AppBaseError):
    """Raised on transport failure or a non-success HTTP status."""
    status_code = 502

    def __init__(self, message: str = "Erreur lors du chargement des événements", http_status: int | None = None):
        self.http_status = http_status
        super().__init__(
            message=message,
            detail="Le serveur est peut-être indisponible. Réessayez plus tard.",
        )


class MalformedResponseError(AppBaseError):
    """Raised when the API answers with an unexpected payload shape."""
    status_code = 502

    def __init__(self, message: str = "Format de réponse invalide"):
        super().__init__(message=message)


class LocalValidationError(AppBaseError):
    """Raised when an event form fails its required-field checks."""
    status_code = 422

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message=message)


class PermissionDeniedError(AppBaseError):
    """Raised when desktop notifications are unsupported or refused."""
    status_code = 403

    def __init__(self, message: str = "Notifications refusées"):
        super().__init__(message=message)


class InvalidParameterError(AppBaseError):
    """Raised by the backend when a request parameter cannot be parsed."""
    status_code = 400

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message=message, detail=field)


class EventNotFoundError(AppBaseError):
    """Raised by the backend when an event id does not exist for the user."""
    status_code = 404

    def __init__(self, event_id: str):
        super().__init__(message=f"Événement introuvable : '{event_id}'")


class UnsupportedActeTypeError(AppBaseError):
    """Raised when a PDF is requested for an unknown certificate type."""

    def __init__(self, acte_type: str):
        self.acte_type = acte_type
        super().__init__(
            message="Type d'acte non pris en charge",
            detail=f"Type reçu : '{acte_type}'",
        )


# ── Utility: convert to JSON error body ──────────────────

def app_error_to_response(error: AppBaseError) -> JSONResponse:
    """Convert an AppBaseError to a JSONResponse with consistent body."""
    return JSONResponse(
        status_code=error.status_code,
        content={
            "success": False,
            "message": error.message,
            "detail": error.detail,
            "type": type(error).__name__,
        },
    )


async def app_error_handler(request: Request, error: AppBaseError) -> JSONResponse:
    """FastAPI exception handler for AppBaseError."""
    return app_error_to_response(error)
