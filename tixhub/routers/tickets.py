from fastapi import APIRouter, Depends
from typing import List
from tixhub.core.dependencies import get_authenticated_user, AuthenticatedUser
from tixhub.models.ticket import MyTicket, TicketQRResponse
from tixhub.services import tickets_service

router = APIRouter()


@router.get("/me", response_model=List[MyTicket])
async def get_my_tickets(user: AuthenticatedUser = Depends(get_authenticated_user)):
    return await tickets_service.get_my_tickets(user.user_id)


@router.get("/{ticket_id}/qr", response_model=TicketQRResponse)
async def get_ticket_qr(
    ticket_id: str,
    user: AuthenticatedUser = Depends(get_authenticated_user)
):
    """QR image for a paid ticket"""
    return await tickets_service.get_ticket_qr(user.user_id, ticket_id)
