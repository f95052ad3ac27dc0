# credit_relay/services/relay.py
from __future__ import annotations

from typing import Any, Dict, Optional

import requests

from ..config import Settings
from ..results import ErrorKind, Failure, Result, Success
from ..utils.logging import logger


def classify_rejection(status: int, body: str, label: str, required_scope: Optional[str] = None) -> str:
    if status == 401:
        return "Invalid access token - please check your Shopify app permissions"
    if status == 403:
        if required_scope:
            return f"Insufficient permissions - app needs {required_scope} scope"
        return f"Insufficient permissions for {label}"
    if status == 422:
        return f"Invalid data rejected by {label} - check request parameters"
    return f"{label} error: {status} - {body}"


class UpstreamRelay:
    """
    Performs one outbound HTTP call and folds the outcome into a Result.

    Never raises for transport or upstream problems; callers get a Failure
    carrying the classified message plus upstream status/body.
    """

    def __init__(self, settings: Settings, session: Optional[requests.Session] = None):
        self.timeout = settings.UPSTREAM_TIMEOUT_SECONDS
        self.session = session or requests.Session()

    def send(
        self,
        method: str,
        url: str,
        *,
        label: str,
        headers: Optional[Dict[str, str]] = None,
        json_body: Any = None,
        params: Optional[Dict[str, Any]] = None,
        required_scope: Optional[str] = None,
    ) -> Result:
        hdrs = {"Content-Type": "application/json", "Accept": "application/json"}
        hdrs.update(headers or {})
        try:
            r = self.session.request(
                method,
                url,
                headers=hdrs,
                json=json_body,
                params=params,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.warning("%s %s %s transport failure: %s", label, method, url, exc)
            return Failure(
                ErrorKind.UPSTREAM_TRANSPORT,
                f"{label} call failed",
                {"error": str(exc) or exc.__class__.__name__},
            )

        if not 200 <= r.status_code < 300:
            body = r.text
            message = classify_rejection(r.status_code, body, label, required_scope)
            logger.error("%s %s %s -> HTTP %s\nBody:\n%s", label, method, url, r.status_code, body)
            return Failure(
                ErrorKind.UPSTREAM_REJECTED,
                message,
                {"upstream_status": r.status_code, "upstream_body": body},
            )

        try:
            data = r.json()
        except ValueError:
            logger.error("%s %s %s returned non-JSON body: %.200s", label, method, url, r.text)
            return Failure(
                ErrorKind.UPSTREAM_REJECTED,
                f"{label} returned a non-JSON response",
                {"upstream_status": r.status_code, "upstream_body": r.text},
            )
        return Success(data)
