"""Application services."""

from api.src.services.auth_service import TokenValidationError, TokenValidator, fetch_jwks

__all__ = ["TokenValidator", "TokenValidationError", "fetch_jwks"]
