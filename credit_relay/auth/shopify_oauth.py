# credit_relay/auth/shopify_oauth.py
import hashlib
import hmac
import secrets
import urllib.parse
from typing import Iterable, Tuple

from ..config import Settings
from ..results import Result
from ..services.relay import UpstreamRelay


def _nonce() -> str:
    return secrets.token_urlsafe(24)


def _sign_ok(query: Iterable[Tuple[str, str]], secret: str) -> bool:
    """
    Verify Shopify OAuth callback HMAC.
    Shopify signs all query params except hmac (and signature); order is lexicographic,
    pairs joined with '&'.
    """
    items = list(query)
    supplied = [v for k, v in items if k == "hmac"]
    if len(supplied) != 1 or not secret:
        return False
    signed = sorted(((k, v) for k, v in items if k not in ("hmac", "signature")), key=lambda x: x[0])
    msg = "&".join([f"{k}={v}" for k, v in signed]).encode("utf-8")
    digest = hmac.new(secret.encode("utf-8"), msg, hashlib.sha256).hexdigest()
    return hmac.compare_digest(digest.encode("utf-8"), supplied[0].encode("utf-8"))


def build_install_url(settings: Settings, shop: str, state: str) -> str:
    """
    Offline access: DO NOT include grant_options[]=per-user
    """
    base = f"https://{shop}/admin/oauth/authorize"
    params = {
        "client_id": settings.SHOPIFY_API_KEY,
        "scope": settings.SHOPIFY_SCOPES,
        "redirect_uri": settings.redirect_uri,
        "state": state,
    }
    return f"{base}?{urllib.parse.urlencode(params)}"


def exchange_token(relay: UpstreamRelay, settings: Settings, shop: str, code: str) -> Result:
    """
    POST /admin/oauth/access_token to get an offline token ({access_token, scope}).
    """
    url = f"https://{shop}/admin/oauth/access_token"
    payload = {
        "client_id": settings.SHOPIFY_API_KEY,
        "client_secret": settings.api_secret,
        "code": code,
    }
    return relay.send("POST", url, label="Shopify OAuth", json_body=payload)
