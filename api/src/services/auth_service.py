"""
Authentication service for Supabase access tokens.

The API does not issue tokens. Clients sign in against Supabase Auth and send
the resulting access token as a Bearer token; this service verifies its
signature, expiry and audience with the project JWT secret.
"""

from typing import Optional

import structlog
from jose import ExpiredSignatureError, JWTError, jwt
from pydantic import ValidationError

from api.src.config import Settings, get_settings
from api.src.models.auth import CurrentUser, TokenPayload

logger = structlog.get_logger(__name__)


class AuthService:
    """Verifies Supabase access tokens."""

    def __init__(self, settings: Optional[Settings] = None):
        """
        Initialize authentication service.

        Args:
            settings: API settings (cached settings if None)
        """
        self.settings = settings or get_settings()

    def decode_token(self, token: str) -> Optional[TokenPayload]:
        """
        Decode and validate an access token.

        Args:
            token: Encoded JWT

        Returns:
            Token payload, or None if the token is invalid or expired
        """
        try:
            claims = jwt.decode(
                token,
                self.settings.jwt_secret,
                algorithms=[self.settings.jwt_algorithm],
                audience=self.settings.jwt_audience,
            )
        except ExpiredSignatureError:
            logger.info("token_expired")
            return None
        except JWTError as e:
            logger.warning("token_decode_failed", error=str(e))
            return None

        try:
            return TokenPayload(**claims)
        except ValidationError as e:
            logger.warning("token_payload_invalid", error=str(e))
            return None

    def get_current_user(self, token: str) -> Optional[CurrentUser]:
        """
        Resolve the user of an access token.

        Args:
            token: Encoded JWT

        Returns:
            Current user, or None if the token is not valid
        """
        payload = self.decode_token(token)
        if payload is None:
            return None
        return CurrentUser.from_payload(payload)
