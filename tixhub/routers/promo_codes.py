from fastapi import APIRouter
from tixhub.models.promo_code import ValidatePromoCodeRequest, PromoCodeValidation
from tixhub.services import promo_codes_service

router = APIRouter()


@router.post("/validate", response_model=PromoCodeValidation)
async def validate_promo_code(data: ValidatePromoCodeRequest):
    """
    Check a code against a subtotal without consuming it.
    A rejected code is reported in the body, not as an HTTP error.
    """
    return await promo_codes_service.validate_promo_code(data.code, data.event_id, data.subtotal)
