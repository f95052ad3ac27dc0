"""
Shopify App Proxy signature verification.

Shopify forwards storefront requests under /apps/<prefix>/* to /proxy/* and
appends a signed query string. The signature is an HMAC-SHA256 (hex) over the
remaining query parameters, sorted by key and concatenated as ``key=value``
with no separator between pairs:

    path_prefix=/apps/extlogged_in_customer_id=shop=x.myshopify.comtimestamp=1

Repeated keys are signed as one entry whose values are joined with commas, in
the order they appear in the query string.
"""
from __future__ import annotations

import hashlib
import hmac
from collections.abc import Iterable, Mapping

from .config import ConfigurationError

SIGNATURE_PARAM = "signature"

QueryItems = Iterable[tuple[str, str]]


def _collect(query: Mapping[str, str] | QueryItems) -> dict[str, list[str]]:
    items = query.items() if isinstance(query, Mapping) else query
    grouped: dict[str, list[str]] = {}
    for key, value in items:
        grouped.setdefault(key, []).append(value)
    return grouped


def split_signature(query: Mapping[str, str] | QueryItems) -> tuple[dict[str, list[str]], str | None]:
    """Separate the supplied signature from the signed parameters."""
    grouped = _collect(query)
    supplied = grouped.pop(SIGNATURE_PARAM, None)
    # a repeated signature param is never a valid Shopify request
    if supplied is None or len(supplied) != 1:
        return grouped, None
    return grouped, supplied[0]


def canonical_message(params: Mapping[str, list[str]] | Mapping[str, str]) -> str:
    parts = []
    for key in sorted(params):
        value = params[key]
        if not isinstance(value, str):
            value = ",".join(value)
        parts.append(f"{key}={value}")
    return "".join(parts)


def compute_signature(params: Mapping[str, list[str]] | Mapping[str, str], secret: str) -> str:
    message = canonical_message(params)
    return hmac.new(secret.encode("utf-8"), message.encode("utf-8"), hashlib.sha256).hexdigest()


class ProxySignatureVerifier:
    """Checks the ``signature`` param of App Proxy requests against a shared secret."""

    def __init__(self, secret: str | None):
        if not secret:
            raise ConfigurationError(
                "SHOPIFY_PROXY_SECRET (or SHOPIFY_API_SECRET) must be set to verify App Proxy requests"
            )
        self._secret = secret

    def expected_signature(self, query: Mapping[str, str] | QueryItems) -> str:
        params, _ = split_signature(query)
        return compute_signature(params, self._secret)

    def verify(self, query: Mapping[str, str] | QueryItems) -> bool:
        params, supplied = split_signature(query)
        expected = compute_signature(params, self._secret)
        if supplied is None:
            return False
        return hmac.compare_digest(expected.encode("utf-8"), supplied.encode("utf-8"))
