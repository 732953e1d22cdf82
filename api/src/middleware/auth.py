"""
Bearer token authentication middleware for FastAPI.

Provides:
- Token extraction from the Authorization header
- Validation against the configured issuer and audience
- Rejection of unauthenticated requests before they reach a router
- Request context enrichment with the authenticated principal
"""

import structlog
from typing import Callable, Iterable, Optional
from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from api.src.models.auth import Principal
from api.src.services.auth_service import TokenValidationError, TokenValidator

logger = structlog.get_logger(__name__)


class AuthMiddleware(BaseHTTPMiddleware):
    """
    Middleware to authenticate requests using bearer tokens.

    The validator is read from ``app.state.token_validator``, which the
    application lifespan sets up before the first request is served.
    """

    def __init__(self, app, exempt_paths: Optional[Iterable[str]] = None):
        """
        Initialize auth middleware.

        Args:
            app: ASGI application
            exempt_paths: Path prefixes that don't require authentication
        """
        super().__init__(app)
        self.exempt_paths = list(exempt_paths or ["/health", "/metrics"])

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """
        Process request and authenticate caller.

        Args:
            request: HTTP request
            call_next: Next middleware in chain

        Returns:
            HTTP response
        """
        request.state.principal = None

        if self._is_exempt_path(request.url.path):
            logger.debug("auth_exempt", path=request.url.path)
            return await call_next(request)

        token = self._extract_token(request)
        if not token:
            logger.warning(
                "auth_missing_token",
                path=request.url.path,
                method=request.method,
                client=request.client.host if request.client else None
            )
            return self._unauthorized("Missing authentication token")

        validator: Optional[TokenValidator] = getattr(request.app.state, "token_validator", None)
        if validator is None:
            logger.error("auth_validator_not_initialized", path=request.url.path)
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content={"message": "Authentication not available"}
            )

        try:
            principal = validator.validate(token)
        except TokenValidationError as e:
            logger.warning(
                "auth_invalid_token",
                path=request.url.path,
                method=request.method,
                reason=str(e),
                client=request.client.host if request.client else None
            )
            return self._unauthorized("Invalid authentication token")

        request.state.principal = principal

        logger.info(
            "request_authenticated",
            path=request.url.path,
            method=request.method,
            subject=principal.subject
        )

        return await call_next(request)

    def _is_exempt_path(self, path: str) -> bool:
        """
        Check if path is exempt from authentication.

        Args:
            path: Request path

        Returns:
            True if exempt, False otherwise
        """
        for exempt_path in self.exempt_paths:
            if path.startswith(exempt_path):
                return True
        return False

    def _extract_token(self, request: Request) -> Optional[str]:
        """
        Extract bearer token from Authorization header.

        Args:
            request: HTTP request

        Returns:
            Token or None if not found
        """
        authorization = request.headers.get("Authorization")

        if not authorization:
            return None

        parts = authorization.split()

        if len(parts) != 2 or parts[0].lower() != "bearer":
            logger.warning("auth_malformed_header")
            return None

        return parts[1]

    @staticmethod
    def _unauthorized(message: str) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"message": message},
            headers={"WWW-Authenticate": "Bearer"}
        )


async def get_current_principal(request: Request) -> Principal:
    """
    Get the authenticated principal of the current request.

    Args:
        request: HTTP request

    Returns:
        Principal set by ``AuthMiddleware``

    Raises:
        RuntimeError: If called on a route the middleware does not guard
    """
    principal = getattr(request.state, "principal", None)
    if principal is None:
        raise RuntimeError("No authenticated principal on an authenticated route")
    return principal
