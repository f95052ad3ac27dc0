from fastapi import Request

from .config import Settings
from .results import ErrorKind, Failure
from .security import ProxySignatureVerifier
from .services.relay import UpstreamRelay
from .utils.logging import logger


class ProxySignatureRejected(Exception):
    def __init__(self, failure: Failure):
        super().__init__(failure.message)
        self.failure = failure


def settings_from_request(request: Request) -> Settings:
    return request.app.state.settings


def get_relay(request: Request) -> UpstreamRelay:
    return request.app.state.relay


def get_verifier(request: Request) -> ProxySignatureVerifier:
    return request.app.state.verifier


def require_proxy_signature(request: Request) -> None:
    """Reject forged App Proxy calls before the body is read or any upstream is hit."""
    verifier = get_verifier(request)
    if not verifier.verify(request.query_params.multi_items()):
        logger.warning("Rejected App Proxy request to %s: invalid signature", request.url.path)
        raise ProxySignatureRejected(Failure(ErrorKind.AUTHENTICATION, "Invalid proxy signature"))
