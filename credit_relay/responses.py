from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from .results import ErrorKind, Failure, Result, Success
from .utils.logging import logger

OK_FLAG = "ok"
SUCCESS_FLAG = "success"


def failure_body(failure: Failure, flag: str = OK_FLAG) -> dict:
    body = {flag: False, "error": failure.kind.value, "message": failure.message}
    if failure.details:
        body["details"] = failure.details
    return body


def render(result: Result, flag: str = OK_FLAG) -> JSONResponse:
    """Map a relay result to its HTTP status and JSON envelope."""
    if isinstance(result, Success):
        content = {flag: True}
        if isinstance(result.body, dict):
            content.update(result.body)
        else:
            content["data"] = result.body
        return JSONResponse(content=jsonable_encoder(content))

    if result.kind not in (ErrorKind.VALIDATION, ErrorKind.AUTHENTICATION):
        logger.error("Request failed (%s): %s", result.kind.value, result.message)
    return JSONResponse(status_code=result.status_code, content=jsonable_encoder(failure_body(result, flag)))


def internal_error(exc: Exception) -> JSONResponse:
    return render(Failure(ErrorKind.INTERNAL, "Internal server error", {"error": str(exc)}))
