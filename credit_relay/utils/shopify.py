import re

MYSHOPIFY_RE = re.compile(r"^[a-z0-9][a-z0-9-]*\.myshopify\.com$", re.I)


def normalize_shop_domain(shop: str) -> str:
    s = (shop or "").strip().lower()
    if not MYSHOPIFY_RE.match(s):
        raise ValueError(f"Invalid shop domain: {s!r}")
    return s


def admin_url(shop: str, api_version: str, path: str) -> str:
    return f"https://{shop}/admin/api/{api_version}/{path.lstrip('/')}"


def admin_headers(access_token: str) -> dict:
    return {"X-Shopify-Access-Token": access_token, "Content-Type": "application/json"}
