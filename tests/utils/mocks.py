"""
Mocks para base de datos y servicios externos.
"""
from contextlib import ExitStack, contextmanager
from unittest.mock import AsyncMock, patch
from typing import Optional, List, Any
from decimal import Decimal

from tixhub.core.exceptions import PaymentError
from tixhub.services.gateways.base import (
    BaseGateway, PaymentData, PaymentIntent, PaymentVerification, PaymentStatus
)

# Modules that import get_db_connection directly
DB_MODULES = [
    "tixhub.services.cart_service",
    "tixhub.services.events_service",
    "tixhub.services.promo_codes_service",
    "tixhub.services.checkout_service",
    "tixhub.services.tickets_service",
    "tixhub.services.recommendations_service",
    "tixhub.services.sellers_service",
    "tixhub.services.email_service",
    "tixhub.tasks.cleanup",
]


class MockDBConnection:
    """Mock de conexión a base de datos asyncpg."""

    def __init__(self):
        self.fetchrow_returns = {}
        self.fetch_returns = {}
        self.fetchval_returns = {}
        self.execute_returns = {}
        self._call_history = []

    def set_fetchrow_return(self, query_contains: str, value: Any):
        """Configura valor de retorno para fetchrow según query."""
        self.fetchrow_returns[query_contains] = value

    def set_fetch_return(self, query_contains: str, value: Any):
        """Configura valor de retorno para fetch según query."""
        self.fetch_returns[query_contains] = value

    def set_fetchval_return(self, query_contains: str, value: Any):
        self.fetchval_returns[query_contains] = value

    def set_execute_return(self, query_contains: str, value: str):
        self.execute_returns[query_contains] = value

    @staticmethod
    def _match(returns: dict, query: str, args: tuple, default: Any):
        for key, value in returns.items():
            if key in query:
                if callable(value):
                    return value(*args)
                return value
        return default

    async def fetchrow(self, query: str, *args) -> Optional[dict]:
        """Mock de fetchrow."""
        self._call_history.append(("fetchrow", query, args))
        return self._match(self.fetchrow_returns, query, args, None)

    async def fetch(self, query: str, *args) -> List[dict]:
        """Mock de fetch."""
        self._call_history.append(("fetch", query, args))
        return self._match(self.fetch_returns, query, args, [])

    async def execute(self, query: str, *args) -> str:
        """Mock de execute."""
        self._call_history.append(("execute", query, args))
        return self._match(self.execute_returns, query, args, "UPDATE 1")

    async def fetchval(self, query: str, *args) -> Any:
        """Mock de fetchval."""
        self._call_history.append(("fetchval", query, args))
        return self._match(self.fetchval_returns, query, args, None)

    def get_call_history(self) -> List[tuple]:
        """Retorna historial de llamadas."""
        return self._call_history

    def calls_with(self, method: str, query_contains: str) -> List[tuple]:
        """Argumentos de cada llamada que coincide."""
        return [
            call[2] for call in self._call_history
            if call[0] == method and query_contains in call[1]
        ]

    def was_called_with(self, method: str, query_contains: str) -> bool:
        """Verifica si se llamó un método con cierta query."""
        return bool(self.calls_with(method, query_contains))


class MockDBContextManager:
    """Context manager mock para get_db_connection."""

    def __init__(self, connection: MockDBConnection = None):
        self.connection = connection or MockDBConnection()

    async def __aenter__(self):
        return self.connection

    async def __aexit__(self, *args):
        pass


@contextmanager
def patch_db(connection: MockDBConnection):
    """Patch get_db_connection in every module that uses it."""
    with ExitStack() as stack:
        for module in DB_MODULES:
            stack.enter_context(patch(
                f"{module}.get_db_connection",
                side_effect=lambda *args, **kwargs: MockDBContextManager(connection)
            ))
        yield connection


def sequence(*values):
    """Callable for set_*_return that yields one value per call."""
    iterator = iter(values)

    def _next(*args):
        return next(iterator)

    return _next


class FakeGateway(BaseGateway):
    """Gateway en memoria que registra las llamadas."""

    def __init__(self, status: PaymentStatus = PaymentStatus.PAID, amount_paid: Optional[Decimal] = None,
                 fail_init: bool = False):
        self.status = status
        self.amount_paid = amount_paid
        self.fail_init = fail_init
        self.initialized: List[PaymentData] = []
        self.verified: List[str] = []

    @property
    def name(self) -> str:
        return "fake"

    @property
    def display_name(self) -> str:
        return "Fake"

    async def initialize_transaction(self, data: PaymentData) -> PaymentIntent:
        self.initialized.append(data)
        if self.fail_init:
            raise PaymentError("Monnify rejected the transaction")
        return PaymentIntent(
            reference=data.reference,
            checkout_url=f"https://sandbox.monnify.com/checkout/{data.reference}",
            amount=data.amount,
            currency=data.currency,
            transaction_reference=f"MNFY|{len(self.initialized)}"
        )

    async def verify_transaction(self, reference: str) -> PaymentVerification:
        self.verified.append(reference)
        return PaymentVerification(
            success=True,
            reference=reference,
            status=self.status,
            amount_paid=self.amount_paid,
            status_message=self.status.value
        )


def mock_seller(seller):
    """Hace que el usuario autenticado tenga perfil de vendedor."""
    return patch(
        "tixhub.services.sellers_service.get_seller_by_user",
        new_callable=AsyncMock,
        return_value=seller
    )


def mock_email():
    """Evita envíos reales de email de confirmación."""
    return patch(
        "tixhub.services.email_service.send_order_confirmation_for_reference",
        new_callable=AsyncMock,
        return_value=True
    )
