"""
Base Payment Gateway Interface

All payment gateways must implement this interface so checkout and the
payment callback behave the same regardless of provider.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Dict, Any
from decimal import Decimal
from enum import Enum


class PaymentStatus(str, Enum):
    """Unified payment status across all gateways"""
    PAID = "paid"
    PENDING = "pending"
    FAILED = "failed"
    EXPIRED = "expired"
    CANCELLED = "cancelled"
    OVERPAID = "overpaid"
    PARTIALLY_PAID = "partially_paid"


@dataclass
class PaymentData:
    """Data needed to initialize a payment"""
    reference: str
    amount: Decimal
    currency: str
    customer_email: str
    customer_name: str
    description: Optional[str] = None
    redirect_url: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


@dataclass
class PaymentIntent:
    """Result of initializing a transaction"""
    reference: str
    checkout_url: str
    amount: Decimal
    currency: str
    transaction_reference: Optional[str] = None
    extra_data: Optional[Dict[str, Any]] = None


@dataclass
class PaymentVerification:
    """Result of querying a transaction"""
    success: bool
    reference: str
    status: PaymentStatus
    amount_paid: Optional[Decimal] = None
    transaction_reference: Optional[str] = None
    status_message: Optional[str] = None
    payment_method: Optional[str] = None
    raw_data: Optional[Dict[str, Any]] = None

    @property
    def is_paid(self) -> bool:
        return self.success and self.status == PaymentStatus.PAID


class BaseGateway(ABC):
    """
    Abstract base class for payment gateways.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Gateway identifier (e.g., 'monnify')"""
        pass

    @property
    @abstractmethod
    def display_name(self) -> str:
        """Human-readable gateway name"""
        pass

    @abstractmethod
    async def initialize_transaction(self, data: PaymentData) -> PaymentIntent:
        """
        Create a hosted checkout for the payment.

        Args:
            data: Payment data including amount, customer info, etc.

        Returns:
            PaymentIntent with the checkout URL the buyer is redirected to
        """
        pass

    @abstractmethod
    async def verify_transaction(self, reference: str) -> PaymentVerification:
        """
        Query payment status from the gateway.

        Args:
            reference: Our payment reference

        Returns:
            PaymentVerification with current payment status
        """
        pass

    def map_status(self, gateway_status: str) -> PaymentStatus:
        """
        Map gateway-specific status to unified PaymentStatus.
        Override in subclasses for gateway-specific mappings.
        """
        status_map = {
            'paid': PaymentStatus.PAID,
            'pending': PaymentStatus.PENDING,
            'failed': PaymentStatus.FAILED,
            'expired': PaymentStatus.EXPIRED,
            'cancelled': PaymentStatus.CANCELLED,
        }
        return status_map.get((gateway_status or '').lower(), PaymentStatus.PENDING)
