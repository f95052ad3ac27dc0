# credit_relay/routes/proxy.py
# Shopify forwards /apps/<prefix>/* to /proxy/*
import json
from typing import Any, Callable, Dict, Tuple

from fastapi import APIRouter, Depends, Request
from starlette.concurrency import run_in_threadpool

from ..deps import get_relay, require_proxy_signature, settings_from_request
from ..responses import OK_FLAG, SUCCESS_FLAG, render
from ..results import ErrorKind, Failure, Success
from ..schemas import ApplyDiscountRequest, CreditCheckInput, DiscountRequest, parse_input
from ..services import credit, demo, discounts

router = APIRouter(prefix="/proxy", tags=["proxy"], dependencies=[Depends(require_proxy_signature)])

# subpath -> (input model or None, operation, envelope flag)
HANDLERS: Dict[str, Tuple[Any, Callable, str]] = {
    "creditCheck": (CreditCheckInput, credit.check_credit, OK_FLAG),
    "generate-discount": (DiscountRequest, discounts.generate_discount, SUCCESS_FLAG),
    "apply-discount-code": (ApplyDiscountRequest, discounts.verify_discount_code, SUCCESS_FLAG),
    "test": (None, demo.proxy_demo, OK_FLAG),
}


async def _json_body(request: Request) -> Any:
    raw = await request.body()
    if not raw.strip():
        return None
    try:
        return json.loads(raw)
    except ValueError:
        return Failure(ErrorKind.VALIDATION, "Request body is not valid JSON")


@router.api_route("/{subpath:path}", methods=["GET", "POST", "PUT", "PATCH", "DELETE"])
async def app_proxy(subpath: str, request: Request):
    entry = HANDLERS.get(subpath)
    if entry is None:
        return render(Success({"message": f"Reached proxy at /{subpath}"}), OK_FLAG)

    model, operation, flag = entry
    settings = settings_from_request(request)
    relay = get_relay(request)

    if model is None:
        result = await run_in_threadpool(operation, relay, settings)
        return render(result, flag)

    payload = await _json_body(request)
    if isinstance(payload, Failure):
        return render(payload, flag)
    inp = parse_input(model, payload)
    if isinstance(inp, Failure):
        return render(inp, flag)
    # the relay blocks on requests; keep it off the event loop
    result = await run_in_threadpool(operation, relay, settings, inp)
    return render(result, flag)
