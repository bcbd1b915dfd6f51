from fastapi import Request
from tixhub.core.middleware import get_session_context
from tixhub.core.exceptions import AuthenticationError, AuthorizationError
from typing import Optional
import logging

logger = logging.getLogger(__name__)


async def get_current_user_id(request: Request) -> Optional[str]:
    """
    Dependency to get current user ID from session.
    Returns None if not authenticated.
    """
    session = get_session_context(request)
    return str(session.user_id) if session.is_valid else None


class AuthenticatedUser:
    """
    Dependency class that provides the caller's identity.
    Use this for endpoints that require authentication.
    """
    def __init__(self, request: Request):
        self.session = get_session_context(request)

        if not self.session.is_valid:
            raise AuthenticationError("Authentication required")

    @property
    def user_id(self) -> str:
        return str(self.session.user_id)

    @property
    def email(self) -> Optional[str]:
        return self.session.email

    @property
    def name(self) -> Optional[str]:
        return self.session.name


def get_authenticated_user(request: Request) -> AuthenticatedUser:
    """Dependency to get authenticated user"""
    return AuthenticatedUser(request)


class AuthenticatedSeller(AuthenticatedUser):
    """Authenticated user that owns a seller profile"""

    def __init__(self, request: Request, seller):
        super().__init__(request)
        self.seller = seller

    @property
    def seller_id(self) -> str:
        return str(self.seller.id)


async def get_authenticated_seller(request: Request) -> AuthenticatedSeller:
    """Dependency that requires the caller to be a registered seller"""
    user = AuthenticatedUser(request)

    from tixhub.services import sellers_service
    seller = await sellers_service.get_seller_by_user(user.user_id)
    if not seller:
        raise AuthorizationError("Seller profile required")

    return AuthenticatedSeller(request, seller)
