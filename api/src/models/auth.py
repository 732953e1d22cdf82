"""
Authentication models.

The service does not issue tokens; it validates bearer tokens minted by the
configured identity issuer and exposes the caller as a ``Principal``.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class Principal(BaseModel):
    """Authenticated caller derived from validated token claims."""
    subject: str = Field(
        ...,
        description="sub claim"
    )
    name: Optional[str] = Field(
        default=None,
        description="name or preferred_username claim"
    )
    scopes: List[str] = Field(
        default_factory=list,
        description="Delegated scopes (scp claim)"
    )
    roles: List[str] = Field(
        default_factory=list,
        description="Application roles (roles claim)"
    )
    claims: Dict[str, Any] = Field(
        default_factory=dict,
        description="All validated claims"
    )

    @classmethod
    def from_claims(cls, claims: Dict[str, Any]) -> "Principal":
        """Build a principal from a decoded token payload."""
        scopes = claims.get("scp") or []
        if isinstance(scopes, str):
            scopes = scopes.split()

        roles = claims.get("roles") or []
        if isinstance(roles, str):
            roles = [roles]

        return cls(
            subject=str(claims.get("sub") or claims.get("oid") or ""),
            name=claims.get("name") or claims.get("preferred_username"),
            scopes=list(scopes),
            roles=list(roles),
            claims=claims,
        )
