import logging
import time
from typing import Optional, Dict, Any
from fastapi import Request

logger = logging.getLogger(__name__)

class SessionContext:
    """Session context object"""
    def __init__(self, session_data: Optional[Dict[str, Any]] = None):
        if session_data:
            self.user_id = session_data['user_id']
            self.email = session_data.get('email')
            self.name = session_data.get('name')
            self.expires_at = session_data.get('expires_at')
            self.is_valid = True
        else:
            self.user_id = None
            self.email = None
            self.name = None
            self.expires_at = None
            self.is_valid = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'user_id': self.user_id,
            'email': self.email,
            'name': self.name,
            'expires_at': self.expires_at,
            'is_valid': self.is_valid
        }

async def session_validation_middleware(request: Request, call_next):
    """
    Middleware to resolve the caller's session from the bearer token.
    Sets request.state.session_context for use in endpoints; endpoints decide
    whether authentication is required.
    """
    path = request.url.path
    public_endpoints = ['/docs', '/redoc', '/openapi.json', '/health']

    if path == '/' or any(path.startswith(endpoint) for endpoint in public_endpoints):
        request.state.session_context = SessionContext()
        return await call_next(request)

    from tixhub.core.security import get_session_from_request
    try:
        session_data = await get_session_from_request(request)
        request.state.session_context = SessionContext(session_data)
    except Exception as e:
        logger.warning(f"Session validation error for path {path}: {e}")
        request.state.session_context = SessionContext()

    return await call_next(request)

def get_session_context(request: Request) -> SessionContext:
    """Helper function to get session context from request"""
    return getattr(request.state, 'session_context', SessionContext())

async def request_logging_middleware(request: Request, call_next):
    """Simple request logging middleware"""
    start_time = time.time()

    method = request.method
    path = request.url.path

    response = await call_next(request)

    duration = round((time.time() - start_time) * 1000, 2)
    logger.info(f"{method} {path} | {response.status_code} | {duration}ms")

    return response
