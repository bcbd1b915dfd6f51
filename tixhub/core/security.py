import jwt
import logging
from fastapi import Request
from tixhub.config import settings
from typing import Optional, Dict, Any

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"


def get_bearer_token(request: Request) -> Optional[str]:
    """Extract bearer token from the Authorization header"""
    auth_header = request.headers.get("authorization", "")
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    return token.strip()


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Decode and verify an access token issued by the auth provider.

    Returns the session data (user_id, email, expires_at) or None when the
    token is invalid, expired or issued for another audience.
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[JWT_ALGORITHM],
            audience=settings.jwt_audience
        )
    except jwt.ExpiredSignatureError:
        logger.info("Access token expired")
        return None
    except jwt.InvalidTokenError as e:
        logger.warning(f"Invalid access token: {e}")
        return None

    user_id = payload.get("sub")
    if not user_id:
        logger.warning("Access token without subject")
        return None

    return {
        "user_id": user_id,
        "email": payload.get("email"),
        "name": (payload.get("user_metadata") or {}).get("full_name"),
        "expires_at": payload.get("exp"),
    }


async def get_session_from_request(request: Request) -> Optional[Dict[str, Any]]:
    """Resolve session data from the request's bearer token"""
    token = get_bearer_token(request)
    if not token:
        return None
    return decode_access_token(token)


def create_access_token(user_id: str, email: str = None, expires_in: int = 3600) -> str:
    """Issue a token with the same shape as the auth provider's (used by tests and scripts)"""
    from datetime import datetime, timedelta, timezone

    now = datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "email": email,
        "aud": settings.jwt_audience,
        "iat": now,
        "exp": now + timedelta(seconds=expires_in),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=JWT_ALGORITHM)
