from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends

from ..config import Settings
from ..deps import get_relay, settings_from_request
from ..responses import OK_FLAG, SUCCESS_FLAG, render
from ..schemas import CartCreditCheckInput, CreditCheckInput, parse_input
from ..services import credit
from ..services.relay import UpstreamRelay

router = APIRouter(tags=["credit"])


@router.post("/test/creditCheck")
def test_credit_check(
    payload: Annotated[Any, Body()] = None,
    settings: Settings = Depends(settings_from_request),
    relay: UpstreamRelay = Depends(get_relay),
):
    """Direct credit check, no App Proxy signature required."""
    inp = parse_input(CreditCheckInput, payload)
    if not isinstance(inp, CreditCheckInput):
        return render(inp, OK_FLAG)
    return render(credit.check_credit(relay, settings, inp), OK_FLAG)


@router.post("/api/credit-check")
def cart_credit_check(
    payload: Annotated[Any, Body()] = None,
    settings: Settings = Depends(settings_from_request),
    relay: UpstreamRelay = Depends(get_relay),
):
    inp = parse_input(CartCreditCheckInput, payload)
    if not isinstance(inp, CartCreditCheckInput):
        return render(inp, SUCCESS_FLAG)
    return render(credit.decide_cart_credit(relay, settings, inp), SUCCESS_FLAG)
