# tests/test_discounts.py
import re
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from credit_relay.results import ErrorKind, Failure, Success
from credit_relay.schemas import ApplyDiscountRequest, DiscountRequest
from credit_relay.services.discounts import (
    build_price_rule,
    epoch_millis,
    generate_discount,
    generate_discount_code,
    to_base36,
    verify_discount_code,
)

NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)
CODE_RE = re.compile(r"^CREDIT_[A-Z0-9]{8}_[0-9A-Z]+$")


def _request(**overrides):
    data = {
        "shop": "demo.myshopify.com",
        "customer_id": "gid12345678abc",
        "purchase_order": "PO-1",
        "cart_total": "150.00",
        "access_token": "shpat_test",
    }
    data.update(overrides)
    return DiscountRequest(**data)


@pytest.mark.parametrize("n, expected", [(0, "0"), (35, "Z"), (36, "10"), (1295, "ZZ")])
def test_to_base36(n, expected):
    assert to_base36(n) == expected


def test_to_base36_rejects_negative():
    with pytest.raises(ValueError):
        to_base36(-1)


def test_discount_code_shape():
    code = generate_discount_code("gid12345678abc", NOW)
    assert CODE_RE.match(code)
    prefix, customer, stamp = code.split("_")
    assert customer == "45678ABC"
    assert int(stamp, 36) == epoch_millis(NOW) == 1704067200000


def test_short_customer_id_is_used_whole():
    assert generate_discount_code("c1", NOW).startswith("CREDIT_C1_")


def test_codes_differ_across_timestamps():
    later = NOW + timedelta(milliseconds=1)
    assert generate_discount_code("customer-42", NOW) != generate_discount_code("customer-42", later)


def test_price_rule_payload():
    rule = build_price_rule(_request(), "CREDIT_X_1", NOW)["price_rule"]
    assert rule["value_type"] == "fixed_amount"
    assert rule["value"] == "-150.00"
    assert rule["title"] == "Credit Discount - 45678abc"
    assert rule["starts_at"] == "2024-01-01T00:00:00.000Z"
    assert rule["ends_at"] == "2024-01-02T00:00:00.000Z"
    assert rule["usage_limit"] == 1
    assert rule["applies_once"] is True
    assert rule["discount_codes"] == [{"code": "CREDIT_X_1", "usage_count": 0}]


def test_generate_discount_creates_price_rule(relay, settings, upstream):
    upstream.queue_json({"price_rule": {"id": 987}}, status=201)
    result = generate_discount(relay, settings, _request(), now=NOW)
    assert isinstance(result, Success)
    assert result.body["price_rule_id"] == 987
    assert result.body["discount_code"] == generate_discount_code("gid12345678abc", NOW)
    call = upstream.calls[0]
    assert call["url"] == "https://demo.myshopify.com/admin/api/2024-01/price_rules.json"
    assert call["headers"]["X-Shopify-Access-Token"] == "shpat_test"
    assert call["json"]["price_rule"]["discount_codes"][0]["code"] == result.body["discount_code"]


def test_generate_discount_without_price_rule_id(relay, settings, upstream):
    upstream.queue_json({"errors": "nope"}, status=200)
    result = generate_discount(relay, settings, _request(), now=NOW)
    assert isinstance(result, Failure)
    assert result.kind is ErrorKind.UPSTREAM_REJECTED


def test_verify_discount_code_looks_up_code(relay, settings, upstream):
    upstream.queue_json({"discount_code": {"id": 5, "code": "CREDIT_A_1"}})
    req = ApplyDiscountRequest(shop="demo.myshopify.com", discount_code="CREDIT_A_1",
                               cart_token="cart-1", access_token="shpat_test")
    result = verify_discount_code(relay, settings, req, now=NOW)
    assert isinstance(result, Success)
    assert result.body["discount_info"] == {"discount_code": {"id": 5, "code": "CREDIT_A_1"}}
    call = upstream.calls[0]
    assert call["method"] == "GET"
    assert call["url"].endswith("/admin/api/2024-01/discount_codes/lookup.json")
    assert call["params"] == {"code": "CREDIT_A_1"}


def test_cart_total_is_decimal():
    assert _request(cart_total=99.5).cart_total == Decimal("99.5")


def test_epoch_millis_does_not_lose_a_millisecond():
    when = datetime(2024, 1, 1, 0, 0, 0, 292000, tzinfo=timezone.utc)
    assert epoch_millis(when) == 1704067200292
    assert epoch_millis(datetime(1970, 1, 1, 0, 0, 0, 1000, tzinfo=timezone.utc)) == 1


def test_epoch_millis_treats_naive_as_utc():
    assert epoch_millis(datetime(2024, 1, 1)) == 1704067200000
