from fastapi import Request
from fastapi.responses import JSONResponse
import logging
from typing import Dict, Any
from tixhub.core.logging import log_request_context

logger = logging.getLogger(__name__)

class APIError(Exception):
    """Base API exception"""

    def __init__(self, message: str, status_code: int = 500, details: Dict[str, Any] = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

class AuthenticationError(APIError):
    """Authentication related errors"""

    def __init__(self, message: str = "Authentication required", details: Dict[str, Any] = None):
        super().__init__(message, 401, details)

class AuthorizationError(APIError):
    """Authorization related errors"""

    def __init__(self, message: str = "Access denied", details: Dict[str, Any] = None):
        super().__init__(message, 403, details)

class NotFoundError(APIError):
    """Missing resource"""

    def __init__(self, message: str = "Not found", details: Dict[str, Any] = None):
        super().__init__(message, 404, details)

class ValidationError(APIError):
    """Validation related errors"""

    def __init__(self, message: str = "Validation failed", details: Dict[str, Any] = None):
        super().__init__(message, 400, details)

class DatabaseError(APIError):
    """Database operation errors"""

    def __init__(self, message: str = "Database operation failed", details: Dict[str, Any] = None):
        super().__init__(message, 500, details)

class PaymentError(APIError):
    """Payment processing errors"""

    def __init__(self, message: str = "Payment failed", details: Dict[str, Any] = None):
        super().__init__(message, 402, details)

class CheckoutError(APIError):
    """Checkout could not reserve the requested tickets"""

    def __init__(self, message: str = "Checkout failed", details: Dict[str, Any] = None):
        super().__init__(message, 409, details)

class PromoCodeError(APIError):
    """Promo code rejected during checkout"""

    def __init__(self, message: str = "Invalid promo code", reason: str = "invalid", details: Dict[str, Any] = None):
        self.reason = reason
        details = dict(details or {})
        details.setdefault("reason", reason)
        super().__init__(message, 400, details)

class TicketError(APIError):
    """Ticket/check-in related errors"""

    def __init__(self, message: str = "Ticket operation failed", details: Dict[str, Any] = None):
        super().__init__(message, 400, details)

async def api_exception_handler(request: Request, exc: APIError):
    """Handle custom API exceptions with logging"""

    session = getattr(request.state, 'session_context', None)
    context = log_request_context(getattr(session, 'user_id', None))
    context.update({
        "error_type": exc.__class__.__name__,
        "status_code": exc.status_code,
        "path": str(request.url.path),
        "method": request.method
    })

    if exc.status_code >= 500:
        logger.error(f"API Error: {exc.message}", extra={"context": context})
    else:
        logger.warning(f"API Error: {exc.message}", extra={"context": context})

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": True,
            "message": exc.message,
            "details": exc.details,
            "timestamp": context["timestamp"]
        }
    )

async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions"""

    session = getattr(request.state, 'session_context', None)
    context = log_request_context(getattr(session, 'user_id', None))
    context.update({
        "error_type": exc.__class__.__name__,
        "path": str(request.url.path),
        "method": request.method
    })

    logger.error(f"Unexpected error: {str(exc)}", extra={"context": context}, exc_info=True)

    return JSONResponse(
        status_code=500,
        content={
            "error": True,
            "message": "Internal server error",
            "timestamp": context["timestamp"]
        }
    )
