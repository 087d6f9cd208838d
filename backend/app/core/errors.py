"""
Domain error taxonomy.

Services raise these; the handlers registered in app.main turn them into the
JSON envelope {"success": false, "error": "..."} with the matching status.
Messages are meant for end users and never include internal identifiers.
"""

from typing import Optional

from fastapi import status


class AppError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "internal_error"
    default_message: str = "Error interno del servidor"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class AuthenticationRequired(AppError):
    """Missing, malformed, expired or badly signed bearer credential."""

    status_code = status.HTTP_401_UNAUTHORIZED
    code = "authentication_required"
    default_message = "Autenticación requerida"


class Unauthorized(AppError):
    """Authenticated, but not allowed to touch this resource."""

    status_code = status.HTTP_403_FORBIDDEN
    code = "unauthorized"
    default_message = "No autorizado"


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"
    default_message = "Recurso no encontrado"


class BusinessRuleFailure(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "business_rule"
    default_message = "Operación no permitida"


class InternalFailure(AppError):
    """Storage or cache failure where nothing was applied."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "internal_error"


class PartiallyApplied(InternalFailure):
    """
    The first step of a multi-step write committed and a later one failed.

    Raised when an inscription row was deleted but the event's participant
    counter could not be decremented. The counter now overstates the real
    tally and needs repair.
    """

    code = "partially_applied"
    default_message = "La operación se aplicó parcialmente"
