from fastapi import APIRouter, Depends
from typing import List
from tixhub.core.dependencies import (
    get_authenticated_user, get_authenticated_seller, AuthenticatedUser, AuthenticatedSeller
)
from tixhub.models.event import EventCreate, EventDetail, EventSummary
from tixhub.models.promo_code import PromoCode, PromoCodeCreate
from tixhub.models.seller import Seller, SellerApply, DashboardStats, SellerAnalytics
from tixhub.models.ticket import TicketLookupRequest, TicketLookup, CheckInResponse
from tixhub.services import (
    sellers_service, events_service, promo_codes_service, tickets_service
)

router = APIRouter()


@router.post("/apply", response_model=Seller, status_code=201)
async def apply_as_seller(
    data: SellerApply,
    user: AuthenticatedUser = Depends(get_authenticated_user)
):
    """Register the current user as a seller"""
    return await sellers_service.apply_as_seller(user.user_id, data, email=user.email)


@router.get("/dashboard", response_model=DashboardStats)
async def get_dashboard(seller: AuthenticatedSeller = Depends(get_authenticated_seller)):
    """Sales, revenue and tickets from completed orders"""
    return await sellers_service.get_dashboard_stats(seller.seller_id)


@router.get("/analytics", response_model=SellerAnalytics)
async def get_analytics(seller: AuthenticatedSeller = Depends(get_authenticated_seller)):
    """Daily sales, revenue per category and top events"""
    return await sellers_service.get_seller_analytics(seller.seller_id)


# ============================================================================
# Events
# ============================================================================

@router.get("/events", response_model=List[EventSummary])
async def get_seller_events(seller: AuthenticatedSeller = Depends(get_authenticated_seller)):
    return await events_service.get_seller_events(seller.seller_id)


@router.post("/events", response_model=EventDetail, status_code=201)
async def create_event(
    data: EventCreate,
    seller: AuthenticatedSeller = Depends(get_authenticated_seller)
):
    return await events_service.create_event(seller.seller_id, data)


# ============================================================================
# Promo codes
# ============================================================================

@router.get("/promo-codes", response_model=List[PromoCode])
async def list_promo_codes(seller: AuthenticatedSeller = Depends(get_authenticated_seller)):
    return await promo_codes_service.list_promo_codes(seller.seller_id)


@router.post("/promo-codes", response_model=PromoCode, status_code=201)
async def create_promo_code(
    data: PromoCodeCreate,
    seller: AuthenticatedSeller = Depends(get_authenticated_seller)
):
    """
    Create a promo code. Leave `code` empty to get a random 8-character one.
    """
    return await promo_codes_service.create_promo_code(seller.seller_id, data)


@router.delete("/promo-codes/{promo_id}", status_code=204)
async def delete_promo_code(
    promo_id: str,
    seller: AuthenticatedSeller = Depends(get_authenticated_seller)
):
    await promo_codes_service.delete_promo_code(seller.seller_id, promo_id)


# ============================================================================
# Check-in
# ============================================================================

@router.post("/check-in/lookup", response_model=TicketLookup)
async def lookup_ticket(
    data: TicketLookupRequest,
    seller: AuthenticatedSeller = Depends(get_authenticated_seller)
):
    """Resolve a scanned QR code without marking it"""
    return await tickets_service.lookup_ticket(seller.seller_id, data.qr_code)


@router.post("/check-in/{ticket_id}", response_model=CheckInResponse)
async def check_in_ticket(
    ticket_id: str,
    seller: AuthenticatedSeller = Depends(get_authenticated_seller)
):
    """Mark the ticket as used"""
    return await tickets_service.check_in_ticket(seller.seller_id, ticket_id)
