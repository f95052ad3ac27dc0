# tests/test_relay.py
import pytest
import requests

from credit_relay.results import ErrorKind, Failure, Success
from credit_relay.services.relay import classify_rejection

URL = "https://demo.myshopify.com/admin/api/2024-01/price_rules.json"


def test_success_returns_parsed_json(relay, upstream):
    upstream.queue_json({"price_rule": {"id": 1}}, status=201)
    result = relay.send("POST", URL, label="Shopify API", json_body={"a": 1})
    assert result == Success({"price_rule": {"id": 1}})


def test_request_carries_timeout_body_and_merged_headers(relay, upstream):
    upstream.queue_json({})
    relay.send("POST", URL, label="Shopify API", headers={"X-Shopify-Access-Token": "tok"},
               json_body={"a": 1}, params={"code": "X"})
    call = upstream.calls[0]
    assert call["method"] == "POST"
    assert call["url"] == URL
    assert call["timeout"] == 5.0
    assert call["json"] == {"a": 1}
    assert call["params"] == {"code": "X"}
    assert call["headers"]["X-Shopify-Access-Token"] == "tok"
    assert call["headers"]["Content-Type"] == "application/json"


@pytest.mark.parametrize("status, fragment", [
    (401, "Invalid access token"),
    (403, "app needs write_discounts scope"),
    (422, "Invalid data rejected by Shopify API"),
    (500, "Shopify API error: 500 - upstream body"),
    (404, "Shopify API error: 404 - upstream body"),
])
def test_non_2xx_is_classified(relay, upstream, status, fragment):
    upstream.queue_text("upstream body", status=status)
    result = relay.send("POST", URL, label="Shopify API", required_scope="write_discounts")
    assert isinstance(result, Failure)
    assert result.kind is ErrorKind.UPSTREAM_REJECTED
    assert fragment in result.message
    assert result.details == {"upstream_status": status, "upstream_body": "upstream body"}
    assert result.status_code == 500


def test_403_without_scope_names_the_upstream():
    assert classify_rejection(403, "", "Credit check API") == "Insufficient permissions for Credit check API"


@pytest.mark.parametrize("exc", [
    requests.ConnectionError("connection refused"),
    requests.Timeout("read timed out"),
    requests.exceptions.InvalidURL("bad url"),
])
def test_transport_errors_become_failures(relay, upstream, exc):
    upstream.queue_error(exc)
    result = relay.send("GET", URL, label="Shopify API")
    assert isinstance(result, Failure)
    assert result.kind is ErrorKind.UPSTREAM_TRANSPORT
    assert result.message == "Shopify API call failed"
    assert result.details["error"] == str(exc)
    assert result.status_code == 500


def test_non_json_success_body_is_a_failure(relay, upstream):
    upstream.queue_text("<html>ok</html>", status=200)
    result = relay.send("GET", URL, label="Demo API")
    assert isinstance(result, Failure)
    assert result.message == "Demo API returned a non-JSON response"
    assert result.details["upstream_status"] == 200


def test_status_codes_for_failure_kinds():
    assert Failure(ErrorKind.VALIDATION, "x").status_code == 400
    assert Failure(ErrorKind.AUTHENTICATION, "x").status_code == 403
    assert Failure(ErrorKind.INTERNAL, "x").status_code == 500
