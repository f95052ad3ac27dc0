# credit_relay/services/discounts.py
from __future__ import annotations

import string
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from ..config import Settings
from ..results import ErrorKind, Failure, Result, Success
from ..schemas import ApplyDiscountRequest, DiscountRequest
from ..utils.clock import isoformat, utcnow
from ..utils.logging import logger
from ..utils.shopify import admin_headers, admin_url
from .relay import UpstreamRelay

LABEL = "Shopify API"
CODE_PREFIX = "CREDIT"
CODE_LIFETIME = timedelta(hours=24)
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

_BASE36 = string.digits + string.ascii_uppercase


def to_base36(n: int) -> str:
    if n < 0:
        raise ValueError("base36 encoding needs a non-negative integer")
    if n == 0:
        return "0"
    out = []
    while n:
        n, rem = divmod(n, 36)
        out.append(_BASE36[rem])
    return "".join(reversed(out))


def epoch_millis(when: datetime) -> int:
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return (when - EPOCH) // timedelta(milliseconds=1)


def generate_discount_code(customer_id: str, now: Optional[datetime] = None) -> str:
    """
    CREDIT_<last 8 chars of customer id>_<epoch millis in base 36>, uppercased.

    Uniqueness comes from the timestamp; Shopify rejects duplicates anyway.
    """
    when = now or utcnow()
    return f"{CODE_PREFIX}_{customer_id[-8:].upper()}_{to_base36(epoch_millis(when))}"


def build_price_rule(req: DiscountRequest, code: str, now: datetime) -> Dict[str, Any]:
    return {
        "price_rule": {
            "title": f"Credit Discount - {req.customer_id[-8:]}",
            "target_type": "line_item",
            "target_selection": "all",
            "allocation_method": "across",
            "value_type": "fixed_amount",
            "value": f"-{req.cart_total}",
            "customer_selection": "all",
            "starts_at": isoformat(now),
            "ends_at": isoformat(now + CODE_LIFETIME),
            "usage_limit": 1,
            "applies_once": True,
            "discount_codes": [{"code": code, "usage_count": 0}],
        }
    }


def generate_discount(
    relay: UpstreamRelay,
    settings: Settings,
    req: DiscountRequest,
    now: Optional[datetime] = None,
) -> Result:
    now = now or utcnow()
    code = generate_discount_code(req.customer_id, now)
    logger.info(
        "Generating discount code for customer %s in shop %s (purchase_order=%s, cart_total=%s)",
        req.customer_id, req.shop, req.purchase_order, req.cart_total,
    )

    result = relay.send(
        "POST",
        admin_url(req.shop, settings.SHOPIFY_API_VERSION, "price_rules.json"),
        label=LABEL,
        headers=admin_headers(req.access_token),
        json_body=build_price_rule(req, code, now),
        required_scope="write_discounts",
    )
    if isinstance(result, Failure):
        return result

    price_rule = result.body.get("price_rule") if isinstance(result.body, dict) else None
    if not isinstance(price_rule, dict) or "id" not in price_rule:
        return Failure(
            ErrorKind.UPSTREAM_REJECTED,
            f"{LABEL} response did not include a price rule id",
            {"upstream_body": result.body},
        )

    # nothing is persisted; the record only goes to the log
    logger.info(
        "Discount issued: code=%s price_rule_id=%s customer=%s purchase_order=%s amount=%s shop=%s",
        code, price_rule["id"], req.customer_id, req.purchase_order, req.cart_total, req.shop,
    )
    return Success({
        "discount_code": code,
        "price_rule_id": price_rule["id"],
        "message": "Discount code generated successfully",
        "timestamp": isoformat(now),
    })


def verify_discount_code(
    relay: UpstreamRelay,
    settings: Settings,
    req: ApplyDiscountRequest,
    now: Optional[datetime] = None,
) -> Result:
    """Look the code up in Shopify; the cart itself is left to checkout."""
    logger.info("Verifying discount code %s for cart %s in shop %s", req.discount_code, req.cart_token, req.shop)
    result = relay.send(
        "GET",
        admin_url(req.shop, settings.SHOPIFY_API_VERSION, "discount_codes/lookup.json"),
        label=LABEL,
        headers=admin_headers(req.access_token),
        params={"code": req.discount_code},
        required_scope="read_discounts",
    )
    if isinstance(result, Failure):
        return result
    return Success({
        "message": "Discount code verified successfully",
        "discount_code": req.discount_code,
        "discount_info": result.body,
        "note": "Discount code is valid and ready to use at checkout",
        "timestamp": isoformat(now or utcnow()),
    })
