from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends

from ..config import Settings
from ..deps import get_relay, settings_from_request
from ..responses import SUCCESS_FLAG, render
from ..schemas import ApplyDiscountRequest, DiscountRequest, parse_input
from ..services import discounts
from ..services.relay import UpstreamRelay

router = APIRouter(prefix="/api", tags=["discounts"])


@router.post("/generate-discount")
def generate_discount(
    payload: Annotated[Any, Body()] = None,
    settings: Settings = Depends(settings_from_request),
    relay: UpstreamRelay = Depends(get_relay),
):
    req = parse_input(DiscountRequest, payload)
    if not isinstance(req, DiscountRequest):
        return render(req, SUCCESS_FLAG)
    return render(discounts.generate_discount(relay, settings, req), SUCCESS_FLAG)


@router.post("/apply-discount-code")
def apply_discount_code(
    payload: Annotated[Any, Body()] = None,
    settings: Settings = Depends(settings_from_request),
    relay: UpstreamRelay = Depends(get_relay),
):
    req = parse_input(ApplyDiscountRequest, payload)
    if not isinstance(req, ApplyDiscountRequest):
        return render(req, SUCCESS_FLAG)
    return render(discounts.verify_discount_code(relay, settings, req), SUCCESS_FLAG)
