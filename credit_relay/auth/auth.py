# credit_relay/auth/auth.py
import html

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from ..config import Settings
from ..deps import get_relay, settings_from_request
from ..responses import render
from ..results import ErrorKind, Failure
from ..services.relay import UpstreamRelay
from ..utils.logging import logger
from ..utils.shopify import normalize_shop_domain
from .shopify_oauth import _nonce, _sign_ok, build_install_url, exchange_token

router = APIRouter(prefix="/auth", tags=["auth"])

STATE_COOKIE = "shopify_state"

SUCCESS_PAGE = """<!DOCTYPE html>
<html>
  <head><title>App installed</title></head>
  <body>
    <h1>Credit check app installed</h1>
    <p>Shop: {shop}</p>
    <p>Granted scopes: {scope}</p>
    <p>Admin API access token (store it in your cart snippet settings, it is not kept here):</p>
    <pre>{token}</pre>
  </body>
</html>
"""


@router.get("")
def start_auth(request: Request, settings: Settings = Depends(settings_from_request)):
    """
    Entry: /auth?shop=mystore.myshopify.com
    Creates a CSRF state (nonce) in a short-lived cookie and redirects to Shopify.
    """
    raw_shop = request.query_params.get("shop")
    if not raw_shop:
        return render(Failure(ErrorKind.VALIDATION, "Missing required query parameter: shop"))
    try:
        shop = normalize_shop_domain(raw_shop)
    except ValueError as exc:
        return render(Failure(ErrorKind.VALIDATION, str(exc)))
    if not settings.SHOPIFY_API_KEY:
        return render(Failure(ErrorKind.INTERNAL, "SHOPIFY_API_KEY is not configured"))

    state = _nonce()
    resp = RedirectResponse(build_install_url(settings, shop, state), status_code=302)
    resp.set_cookie(STATE_COOKIE, state, httponly=True, samesite="lax", max_age=600)
    return resp


@router.get("/callback")
def oauth_callback(
    request: Request,
    settings: Settings = Depends(settings_from_request),
    relay: UpstreamRelay = Depends(get_relay),
):
    q = request.query_params
    shop = q.get("shop")
    code = q.get("code")
    state = q.get("state")

    if not shop or not code:
        return render(Failure(ErrorKind.VALIDATION, "Missing required query parameters: code and shop"))
    try:
        shop = normalize_shop_domain(shop)
    except ValueError as exc:
        return render(Failure(ErrorKind.VALIDATION, str(exc)))

    if not state or request.cookies.get(STATE_COOKIE) != state:
        return render(Failure(ErrorKind.VALIDATION, "State mismatch"))

    if not _sign_ok(q.multi_items(), settings.api_secret or ""):
        return render(Failure(ErrorKind.AUTHENTICATION, "Invalid HMAC"))

    result = exchange_token(relay, settings, shop, code)
    if isinstance(result, Failure):
        return render(result)

    body = result.body if isinstance(result.body, dict) else {}
    access_token = body.get("access_token")
    if not access_token:
        return render(Failure(ErrorKind.UPSTREAM_REJECTED, "No access token returned"))

    logger.info("OAuth completed for shop %s (scope=%s)", shop, body.get("scope", ""))
    page = SUCCESS_PAGE.format(
        shop=html.escape(shop),
        scope=html.escape(str(body.get("scope", ""))),
        token=html.escape(str(access_token)),
    )
    resp = HTMLResponse(page)
    resp.delete_cookie(STATE_COOKIE)
    return resp
