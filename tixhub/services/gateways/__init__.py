# Payment Gateways
from tixhub.services.gateways.base import (
    BaseGateway, PaymentData, PaymentIntent, PaymentVerification, PaymentStatus
)
from tixhub.services.gateways.monnify import MonnifyGateway

GATEWAYS = {
    'monnify': MonnifyGateway,
}

DEFAULT_GATEWAY = 'monnify'

def get_gateway(name: str = DEFAULT_GATEWAY) -> BaseGateway:
    """Get gateway instance by name"""
    gateway_class = GATEWAYS.get(name.lower())
    if not gateway_class:
        raise ValueError(f"Unknown gateway: {name}. Available: {list(GATEWAYS.keys())}")
    return gateway_class()
