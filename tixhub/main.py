import asyncio
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi
from tixhub.config import settings
from tixhub.database import DatabasePool
from tixhub.core.logging import setup_logging
from tixhub.core.exceptions import api_exception_handler, general_exception_handler, APIError
from tixhub.core.middleware import session_validation_middleware, request_logging_middleware

# Initialize logging
setup_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle - startup and shutdown"""
    from tixhub.tasks.cleanup import run_cleanup_loop

    await DatabasePool.create_pool()
    cleanup_task = asyncio.create_task(run_cleanup_loop())

    yield

    cleanup_task.cancel()
    try:
        await cleanup_task
    except asyncio.CancelledError:
        pass
    await DatabasePool.close_pool()


app = FastAPI(
    title="TixHub API",
    description="API for the TixHub ticket marketplace",
    version="1.0.0",
    debug=settings.debug,
    docs_url="/docs",
    lifespan=lifespan
)


def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema
    openapi_schema = get_openapi(
        title="TixHub API",
        version="1.0.0",
        description="Event discovery, cart, checkout with Monnify and seller check-in",
        routes=app.routes,
    )
    openapi_schema["components"]["securitySchemes"] = {
        "bearerAuth": {
            "type": "http",
            "scheme": "bearer",
            "bearerFormat": "JWT"
        }
    }

    # Protected prefixes (everything else is public or optional auth)
    protected_prefixes = ["/cart", "/tickets", "/seller", "/checkout", "/recommendations/preferences"]

    for path in openapi_schema["paths"]:
        if path == "/checkout/verify":
            continue
        if not any(path.startswith(prefix) for prefix in protected_prefixes):
            continue

        for method in openapi_schema["paths"][path]:
            if method in ["get", "post", "put", "delete", "patch"]:
                openapi_schema["paths"][path][method]["security"] = [{"bearerAuth": []}]

    app.openapi_schema = openapi_schema
    return app.openapi_schema

app.openapi = custom_openapi

# Exception handlers
app.add_exception_handler(APIError, api_exception_handler)
app.add_exception_handler(Exception, general_exception_handler)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Custom middleware (order matters - first added runs last)
# Execution order: session_validation → logging
app.middleware("http")(request_logging_middleware)    # runs last
app.middleware("http")(session_validation_middleware)  # runs first

# Import and include routers
from tixhub.routers import (
    events, cart, promo_codes, checkout, tickets, recommendations, seller
)

# Catalog (public, favorites and reviews require auth)
app.include_router(events.router, prefix="/events", tags=["events"])

# Cart and checkout (requires auth, except payment verification)
app.include_router(cart.router, prefix="/cart", tags=["cart"])
app.include_router(promo_codes.router, prefix="/promo-codes", tags=["promo-codes"])
app.include_router(checkout.router, prefix="/checkout", tags=["checkout"])

# Buyer tickets (requires auth)
app.include_router(tickets.router, prefix="/tickets", tags=["tickets"])

# Recommendations (optional auth)
app.include_router(recommendations.router, prefix="/recommendations", tags=["recommendations"])

# Seller tools (requires seller profile)
app.include_router(seller.router, prefix="/seller", tags=["seller"])


@app.get("/")
async def root():
    return {
        "service": "TixHub API",
        "version": "1.0.0",
        "database": settings.db_name,
        "environment": settings.app_env
    }

@app.get("/health")
async def health():
    return {
        "status": "healthy",
        "database": settings.db_name,
        "host": settings.db_host
    }

# Auto-start server if run directly
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "tixhub.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
