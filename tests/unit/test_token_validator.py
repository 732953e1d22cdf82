"""
Unit tests for bearer token validation.

Tests cover:
- Accepting tokens from the configured issuer for the configured audience
- Rejecting expired, foreign, tampered and incomplete tokens
- Claims mapping onto Principal
- Signing key resolution from settings and JWKS documents
"""

import base64
import pytest
from datetime import timedelta
from jose import jwt

from api.src.config import Settings
from api.src.models.auth import Principal
from api.src.services.auth_service import TokenValidationError, TokenValidator
from tests.tokens import AuthConfig, create_access_token


pytestmark = pytest.mark.unit


@pytest.fixture
def validator() -> TokenValidator:
    return TokenValidator(
        key=AuthConfig.SECRET_KEY,
        issuer=AuthConfig.ISSUER,
        audience=AuthConfig.AUDIENCE,
        algorithms=[AuthConfig.ALGORITHM],
    )


class TestAcceptedTokens:
    """Tokens that must validate."""

    def test_valid_token_yields_principal(self, validator):
        principal = validator.validate(create_access_token())

        assert isinstance(principal, Principal)
        assert principal.subject == "user-123"
        assert principal.name == "Test Caller"
        assert principal.scopes == ["tasks.read", "tasks.write"]

    def test_roles_and_preferred_username_are_mapped(self, validator):
        token = create_access_token({
            "name": None,
            "preferred_username": "ada@example.com",
            "roles": "Tasks.Admin",
        })

        principal = validator.validate(token)

        assert principal.name == "ada@example.com"
        assert principal.roles == ["Tasks.Admin"]

    def test_leeway_tolerates_recent_expiry(self):
        lenient = TokenValidator(
            key=AuthConfig.SECRET_KEY,
            issuer=AuthConfig.ISSUER,
            audience=AuthConfig.AUDIENCE,
            algorithms=[AuthConfig.ALGORITHM],
            leeway_seconds=120,
        )
        token = create_access_token(expires_delta=timedelta(seconds=-30))

        assert lenient.validate(token).subject == "user-123"


class TestRejectedTokens:
    """Tokens that must be refused."""

    def test_expired_token(self, validator):
        token = create_access_token(expires_delta=timedelta(minutes=-5))

        with pytest.raises(TokenValidationError):
            validator.validate(token)

    def test_wrong_audience(self, validator):
        token = create_access_token(audience="api://someone-else")

        with pytest.raises(TokenValidationError):
            validator.validate(token)

    def test_wrong_issuer(self, validator):
        token = create_access_token(issuer="https://evil.example.com")

        with pytest.raises(TokenValidationError):
            validator.validate(token)

    def test_wrong_signature(self, validator):
        token = create_access_token(secret="another-secret-key-that-is-long-enough-0000")

        with pytest.raises(TokenValidationError):
            validator.validate(token)

    def test_missing_subject(self, validator):
        claims = jwt.get_unverified_claims(create_access_token())
        claims.pop("sub")
        token = jwt.encode(claims, AuthConfig.SECRET_KEY, algorithm=AuthConfig.ALGORITHM)

        with pytest.raises(TokenValidationError):
            validator.validate(token)

    def test_garbage(self, validator):
        with pytest.raises(TokenValidationError):
            validator.validate("not-a-jwt")


class TestKeyResolution:
    """TokenValidator.from_settings."""

    def test_secret_from_settings(self):
        settings = Settings(
            _env_file=None,
            auth_secret_key=AuthConfig.SECRET_KEY,
            auth_issuer=AuthConfig.ISSUER,
            auth_audience=AuthConfig.AUDIENCE,
        )

        validator = TokenValidator.from_settings(settings)

        assert validator.validate(create_access_token()).subject == "user-123"

    def test_missing_key_is_a_configuration_error(self):
        with pytest.raises(ValueError, match="No token signing key"):
            TokenValidator.from_settings(Settings(_env_file=None))

    def test_jwks_document_takes_precedence(self):
        secret = "jwks-distributed-secret-key-0123456789abcdef"
        encoded = base64.urlsafe_b64encode(secret.encode()).rstrip(b"=").decode()
        jwks = {"keys": [{"kty": "oct", "kid": "k1", "alg": "HS256", "k": encoded}]}
        settings = Settings(
            _env_file=None,
            auth_secret_key=AuthConfig.SECRET_KEY,
            auth_issuer=AuthConfig.ISSUER,
            auth_audience=AuthConfig.AUDIENCE,
        )

        validator = TokenValidator.from_settings(settings, jwks=jwks)

        assert validator.validate(create_access_token(secret=secret)).subject == "user-123"
        with pytest.raises(TokenValidationError):
            validator.validate(create_access_token())
