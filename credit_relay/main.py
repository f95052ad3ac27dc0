from typing import Optional

import requests
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import PlainTextResponse, Response

from .auth.auth import router as auth_router
from .config import Settings, get_settings
from .deps import ProxySignatureRejected
from .responses import OK_FLAG, SUCCESS_FLAG, internal_error, render
from .results import ErrorKind, Failure
from .routes.credit import router as credit_router
from .routes.discounts import router as discounts_router
from .routes.proxy import router as proxy_router
from .security import ProxySignatureVerifier
from .services.relay import UpstreamRelay
from .utils.logging import logger, set_level

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Origin, X-Requested-With, Content-Type, Accept, Authorization",
}

LIVENESS_TEXT = "ESND Credit Check API is running"


def create_app(settings: Optional[Settings] = None, session: Optional[requests.Session] = None) -> FastAPI:
    settings = settings or get_settings()
    set_level(settings.LOG_LEVEL)

    app = FastAPI(title="ESND Credit Check Relay",
                  description="Relay between the storefront, the credit check service and the Shopify Admin API",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json")

    # fails fast when no proxy secret is configured
    app.state.settings = settings
    app.state.verifier = ProxySignatureVerifier(settings.proxy_secret)
    app.state.relay = UpstreamRelay(settings, session=session)

    @app.middleware("http")
    async def cors_and_errors(request: Request, call_next):
        if request.method == "OPTIONS":
            response = PlainTextResponse("OK")
        else:
            try:
                response = await call_next(request)
            except Exception as exc:
                logger.exception("Unhandled error on %s %s", request.method, request.url.path)
                response = internal_error(exc)
        response.headers.update(CORS_HEADERS)
        return response

    @app.exception_handler(ProxySignatureRejected)
    async def proxy_signature_rejected(_request: Request, exc: ProxySignatureRejected) -> Response:
        return render(exc.failure)

    @app.exception_handler(RequestValidationError)
    async def request_validation_failed(request: Request, exc: RequestValidationError) -> Response:
        # /api/* routes answer with a "success" flag
        flag = SUCCESS_FLAG if request.url.path.startswith("/api/") else OK_FLAG
        messages = [e.get("msg") for e in exc.errors()]
        return render(Failure(ErrorKind.VALIDATION, "Request body is not valid JSON", {"errors": messages}), flag)

    app.include_router(auth_router)
    app.include_router(credit_router)
    app.include_router(discounts_router)
    app.include_router(proxy_router)

    @app.get("/", response_class=PlainTextResponse)
    def liveness():
        return LIVENESS_TEXT

    @app.get("/health")
    def health():
        return {"ok": True}

    return app


def run() -> None:
    import uvicorn

    settings = get_settings()
    if settings.HTTPS_PORT and settings.SSL_CERTFILE and settings.SSL_KEYFILE:
        logger.info("Serving HTTPS on port %s", settings.HTTPS_PORT)
        uvicorn.run("credit_relay.main:create_app", factory=True, host="0.0.0.0",
                    port=settings.HTTPS_PORT,
                    ssl_certfile=settings.SSL_CERTFILE, ssl_keyfile=settings.SSL_KEYFILE)
    else:
        logger.info("Serving HTTP on port %s", settings.PORT)
        uvicorn.run("credit_relay.main:create_app", factory=True, host="0.0.0.0", port=settings.PORT)


if __name__ == "__main__":
    run()
