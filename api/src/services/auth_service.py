"""
Bearer token validation.

Provides:
- JWT signature, expiry, issuer and audience validation (python-jose)
- Signing key resolution from a shared secret, a PEM public key or the
  issuer's JWKS document
- Mapping of validated claims onto a ``Principal``
"""

import aiohttp
import structlog
from typing import Any, Dict, List, Optional, Union
from jose import JWTError, jwt

from api.src.config import Settings
from api.src.models.auth import Principal

logger = structlog.get_logger(__name__)

SigningKey = Union[str, Dict[str, Any]]


class TokenValidationError(Exception):
    """Token is missing, malformed, expired or not meant for this API."""


class TokenValidator:
    """Validates bearer tokens issued by the configured identity issuer."""

    def __init__(
        self,
        key: SigningKey,
        issuer: str,
        audience: str,
        algorithms: List[str],
        leeway_seconds: int = 0
    ):
        """
        Initialize token validator.

        Args:
            key: Shared secret, PEM public key or JWKS document
            issuer: Expected iss claim
            audience: Expected aud claim
            algorithms: Accepted signing algorithms
            leeway_seconds: Tolerated clock skew
        """
        self.key = key
        self.issuer = issuer
        self.audience = audience
        self.algorithms = algorithms
        self.leeway_seconds = leeway_seconds

    @classmethod
    def from_settings(cls, settings: Settings, jwks: Optional[Dict[str, Any]] = None) -> "TokenValidator":
        """
        Build a validator from settings.

        Key precedence: JWKS document, PEM public key, shared secret.

        Raises:
            ValueError: If no signing key is configured
        """
        key: Optional[SigningKey] = jwks or settings.auth_public_key or settings.auth_secret_key
        if not key:
            raise ValueError(
                "No token signing key configured. Set TASK_API_AUTH_SECRET_KEY, "
                "TASK_API_AUTH_PUBLIC_KEY or TASK_API_AUTH_JWKS_URL"
            )

        return cls(
            key=key,
            issuer=settings.auth_issuer,
            audience=settings.auth_audience,
            algorithms=settings.auth_algorithms,
            leeway_seconds=settings.auth_leeway_seconds,
        )

    def validate(self, token: str) -> Principal:
        """
        Decode and validate a bearer token.

        Args:
            token: Encoded JWT

        Returns:
            Authenticated principal

        Raises:
            TokenValidationError: If the token is not acceptable
        """
        try:
            claims = jwt.decode(
                token,
                self.key,
                algorithms=self.algorithms,
                audience=self.audience,
                issuer=self.issuer,
                options={"leeway": self.leeway_seconds, "require_sub": True}
            )
        except JWTError as e:
            logger.debug("token_rejected", error=str(e))
            raise TokenValidationError(str(e)) from e

        principal = Principal.from_claims(claims)
        logger.debug("token_validated", subject=principal.subject)
        return principal


async def fetch_jwks(url: str, timeout_seconds: float = 10.0) -> Dict[str, Any]:
    """
    Download the issuer's JWKS document.

    Args:
        url: JWKS endpoint
        timeout_seconds: Total request timeout

    Returns:
        Parsed JWKS document

    Raises:
        aiohttp.ClientError: On network or HTTP failure
        ValueError: If the document has no keys
    """
    timeout = aiohttp.ClientTimeout(total=timeout_seconds)
    async with aiohttp.ClientSession(timeout=timeout) as session:
        async with session.get(url) as response:
            response.raise_for_status()
            jwks = await response.json()

    if not isinstance(jwks, dict) or not jwks.get("keys"):
        raise ValueError(f"JWKS document at {url} contains no keys")

    logger.info("jwks_loaded", url=url, key_count=len(jwks["keys"]))
    return jwks
