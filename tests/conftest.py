"""
Configuración global de pytest y fixtures compartidos.
"""
import pytest
from typing import AsyncGenerator
from httpx import AsyncClient, ASGITransport
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Settings are read at import time
os.environ.setdefault("JWT_SECRET", "test-jwt-secret-key-for-tixhub-unit-tests")
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DEBUG", "false")

from tixhub.main import app
from tixhub.core.security import create_access_token
from tixhub.models.seller import Seller
from tests.utils.mocks import MockDBConnection, patch_db
from tests.utils.factories import SellerFactory


# ============================================================================
# Cliente HTTP Async
# ============================================================================

@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Cliente HTTP async para hacer requests al API."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# ============================================================================
# Mock de Base de Datos
# ============================================================================

@pytest.fixture(autouse=True)
def db() -> MockDBConnection:
    """Conexión mock, inyectada en todos los servicios."""
    connection = MockDBConnection()
    with patch_db(connection):
        yield connection


# ============================================================================
# Autenticación
# ============================================================================

@pytest.fixture
def user_id() -> str:
    return "11111111-1111-1111-1111-111111111111"


@pytest.fixture
def auth_headers(user_id):
    """Headers con bearer token valido."""
    token = create_access_token(user_id, email="buyer@test.com")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def seller(user_id) -> Seller:
    return Seller(**SellerFactory.create(id="22222222-2222-2222-2222-222222222222", user_id=user_id))
