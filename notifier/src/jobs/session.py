"""Resolves the Supabase session user the background jobs run for."""

from typing import Optional

import structlog
from supabase import Client

logger = structlog.get_logger(__name__)


class SupabaseSessionUser:
    """Reads the signed-in user from the Supabase auth session."""

    def __init__(self, client: Client):
        self.client = client

    def sign_in(self, email: str, password: str) -> Optional[str]:
        """
        Sign the worker in with email and password.

        Returns:
            The user ID, or None if sign-in failed
        """
        try:
            response = self.client.auth.sign_in_with_password({"email": email, "password": password})
        except Exception as e:
            logger.error("service_sign_in_failed", email=email, error=str(e))
            return None

        user = getattr(response, "user", None)
        if user is None:
            logger.error("service_sign_in_failed", email=email, error="no user in response")
            return None

        logger.info("service_signed_in", user_id=user.id)
        return user.id

    def __call__(self) -> Optional[str]:
        """Return the ID of the session user, or None when nobody is signed in."""
        try:
            response = self.client.auth.get_user()
        except Exception as e:
            logger.warning("session_user_unavailable", error=str(e))
            return None

        user = getattr(response, "user", None) if response is not None else None
        return user.id if user is not None else None
