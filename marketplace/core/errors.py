"""
Domain error taxonomy.
Services raise these; main.py converts them into JSON responses so nothing
reaches the generic 500 handler.
"""

from fastapi import Request, status
from fastapi.responses import JSONResponse


class MarketplaceError(Exception):
    """Base class. `message` is safe to show to the user."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"detail": self.message, "code": self.code}


class ValidationError(MarketplaceError):
    """Missing required field, too many images, oversized file, wrong MIME type."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "validation_error"

    def __init__(self, message: str, missing_fields: list[str] | None = None):
        super().__init__(message)
        self.missing_fields = missing_fields or []

    def to_dict(self) -> dict:
        data = super().to_dict()
        if self.missing_fields:
            data["missing_fields"] = self.missing_fields
        return data


class TransportError(MarketplaceError):
    """Storage, record store or AI call failed. Never retried automatically."""

    status_code = status.HTTP_502_BAD_GATEWAY
    code = "transport_error"


class AuthorizationError(MarketplaceError):
    """Acting user is not an owner (or the change would leave no owner)."""

    status_code = status.HTTP_403_FORBIDDEN
    code = "authorization_error"


class NotFoundError(MarketplaceError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


async def marketplace_error_handler(request: Request, exc: MarketplaceError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())
