"""
Authentication models.

Pydantic schemas for:
- Supabase access token payloads
- The authenticated user attached to a request
- Error responses
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# Token Models
# ============================================================================


class TokenPayload(BaseModel):
    """
    Claims of a Supabase access token.

    Supabase issues HS256 tokens whose subject is the auth user ID and whose
    audience is "authenticated" for signed-in users.
    """

    sub: str = Field(..., description="Subject (auth user ID)")
    exp: int = Field(..., description="Expiration timestamp")
    iat: Optional[int] = Field(None, description="Issued at timestamp")
    aud: Optional[str] = Field(None, description="Audience")
    email: Optional[str] = Field(None, description="User email")
    role: Optional[str] = Field(None, description="Postgres role of the user")
    session_id: Optional[str] = Field(None, description="Auth session ID")
    app_metadata: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(extra="ignore")


# ============================================================================
# Current User
# ============================================================================


class CurrentUser(BaseModel):
    """
    Authenticated user attached to a request.

    Every notification endpoint operates on the data of this user only.
    """

    id: str = Field(..., description="Auth user ID")
    email: Optional[str] = Field(None, description="User email")
    role: str = Field(default="authenticated", description="Postgres role of the user")

    @classmethod
    def from_payload(cls, payload: TokenPayload) -> "CurrentUser":
        return cls(id=payload.sub, email=payload.email, role=payload.role or "authenticated")


# ============================================================================
# Error Models
# ============================================================================


class ErrorResponse(BaseModel):
    """Standard error response body."""

    detail: str = Field(..., description="Error message")

    model_config = ConfigDict(
        json_schema_extra={"example": {"detail": "Invalid authentication token"}}
    )
