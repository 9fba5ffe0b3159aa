"""Resolve the authenticated caller from a Supabase access token."""

from typing import Optional
from listing_traffic.models.caller import CallerIdentity
from listing_traffic.services.supabase_client import SupabaseClient
from listing_traffic.utils.errors import AuthenticationError
from listing_traffic.utils.logging import get_structured_logger, mask_user_id

logger = get_structured_logger(__name__)


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Pull the token out of an ``Authorization: Bearer <token>`` header."""
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


async def resolve_caller(access_token: Optional[str]) -> CallerIdentity:
    """
    Validate an access token with Supabase Auth and return the caller.

    Raises AuthenticationError when the token is missing, invalid, or
    belongs to no user.
    """
    if not access_token:
        raise AuthenticationError("You must be signed in.")

    async with SupabaseClient() as client:
        try:
            response = client.auth.get_user(access_token)
        except Exception as e:
            logger.warning("Access token rejected", error=str(e))
            raise AuthenticationError("Invalid or expired session.")

    user = getattr(response, "user", None) if response else None
    if user is None:
        raise AuthenticationError("You must be signed in.")

    logger.debug("Resolved caller", user_id=mask_user_id(user.id))
    return CallerIdentity(
        user_id=user.id,
        email=getattr(user, "email", None),
        access_token=access_token,
    )
