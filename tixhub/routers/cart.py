from fastapi import APIRouter, Depends
from tixhub.core.dependencies import get_authenticated_user, AuthenticatedUser
from tixhub.models.cart import CartItemCreate, CartItemUpdate, CartResponse
from tixhub.services import cart_service

router = APIRouter()


@router.get("", response_model=CartResponse)
async def get_cart(user: AuthenticatedUser = Depends(get_authenticated_user)):
    """Current cart with line totals and subtotal"""
    return await cart_service.get_cart(user.user_id)


@router.post("/items", response_model=CartResponse)
async def add_item(
    data: CartItemCreate,
    user: AuthenticatedUser = Depends(get_authenticated_user)
):
    """
    Add tickets to the cart. Adding a ticket type already in the cart
    increases its quantity.
    """
    return await cart_service.add_item(user.user_id, data.ticket_type_id, data.quantity)


@router.patch("/items/{item_id}", response_model=CartResponse)
async def update_item(
    item_id: str,
    data: CartItemUpdate,
    user: AuthenticatedUser = Depends(get_authenticated_user)
):
    """Set quantity; 0 removes the line"""
    return await cart_service.update_item(user.user_id, item_id, data.quantity)


@router.delete("/items/{item_id}", response_model=CartResponse)
async def remove_item(
    item_id: str,
    user: AuthenticatedUser = Depends(get_authenticated_user)
):
    return await cart_service.remove_item(user.user_id, item_id)


@router.delete("", status_code=204)
async def clear_cart(user: AuthenticatedUser = Depends(get_authenticated_user)):
    await cart_service.clear_cart(user.user_id)
