# credit_relay/services/credit.py
from __future__ import annotations

from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional, Tuple

from ..config import Settings
from ..results import Failure, Result, Success
from ..schemas import CartCreditCheckInput, CreditCheckInput
from ..utils.clock import isoformat, utcnow
from ..utils.logging import logger
from .relay import UpstreamRelay

LABEL = "Credit check API"
APPROVED_STATUS = "success"


def _call_credit_service(relay: UpstreamRelay, settings: Settings, customer_id: str, purchase_order: str) -> Result:
    return relay.send(
        "POST",
        settings.CREDIT_CHECK_URL,
        label=LABEL,
        json_body={"customer_id": customer_id, "purchase_order": purchase_order},
    )


def check_credit(
    relay: UpstreamRelay,
    settings: Settings,
    inp: CreditCheckInput,
    now: Optional[datetime] = None,
) -> Result:
    logger.info(
        "Credit check for customer %s (purchase_order=%s, check_date=%s)",
        inp.customer_id, inp.purchase_order, inp.check_date,
    )
    result = _call_credit_service(relay, settings, inp.customer_id, inp.purchase_order)
    if isinstance(result, Failure):
        return result
    return Success({
        "credit_check": result.body,
        "request_data": {
            "customer_id": inp.customer_id,
            "purchase_order": inp.purchase_order,
            "check_date": inp.check_date,
        },
        "timestamp": isoformat(now or utcnow()),
    })


def _parse_credit(credit_check: Any) -> Tuple[Optional[str], Optional[Decimal]]:
    if not isinstance(credit_check, dict):
        return None, None
    status = credit_check.get("status")
    raw = credit_check.get("credit")
    try:
        credit = Decimal(str(raw)) if raw is not None and not isinstance(raw, bool) else None
    except InvalidOperation:
        credit = None
    if credit is not None and not credit.is_finite():
        credit = None
    return (str(status) if status is not None else None), credit


def approval_decision(credit_check: Any, cart_total: Decimal) -> Dict[str, Any]:
    """Compare the upstream credit amount with the cart total."""
    status, credit = _parse_credit(credit_check)
    if status != APPROVED_STATUS:
        approved, message = False, f"Credit check not approved (status: {status or 'unknown'})"
    elif credit is None:
        approved, message = False, "Credit check response did not include a usable credit amount"
    elif credit >= cart_total:
        approved, message = True, "Credit approved for cart total"
    else:
        approved, message = False, "Insufficient credit for cart total"
    return {
        "approved": approved,
        "credit_status": status,
        "available_credit": str(credit) if credit is not None else None,
        "cart_total": str(cart_total),
        "message": message,
    }


def decide_cart_credit(
    relay: UpstreamRelay,
    settings: Settings,
    inp: CartCreditCheckInput,
    now: Optional[datetime] = None,
) -> Result:
    logger.info(
        "Cart credit check for customer %s in shop %s (purchase_order=%s, cart_total=%s)",
        inp.customer_id, inp.shop, inp.purchase_order, inp.cart_total,
    )
    result = _call_credit_service(relay, settings, inp.customer_id, inp.purchase_order)
    if isinstance(result, Failure):
        return result
    decision = approval_decision(result.body, inp.cart_total)
    logger.info("Customer %s credit decision: %s", inp.customer_id, decision["message"])
    return Success({
        **decision,
        "credit_check": result.body,
        "timestamp": isoformat(now or utcnow()),
    })
