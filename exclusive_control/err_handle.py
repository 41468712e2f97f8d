import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from exclusive_control.base.err_code import ErrCode
from exclusive_control.base.errors import ExclusiveControlError
from exclusive_control.models import LockErrorResponse

logger = logging.getLogger("exclusive_control")

ERR_HTTP_MAP = {
    ErrCode.VERSION_CONFLICT: 409,
    ErrCode.KEY_NOT_FOUND: 404,
    ErrCode.INVALID_ARGUMENT: 400,
    ErrCode.NOT_CONFIGURED: 500,
}


def status_for(exc: ExclusiveControlError) -> int:
    return ERR_HTTP_MAP.get(exc.err, 500)


def handle_lock_error(exc: ExclusiveControlError):
    """Re-raise a lock error as an HTTPException carrying the error report."""
    raise HTTPException(
        status_code=status_for(exc),
        detail=LockErrorResponse.from_error(exc).model_dump(mode="json"),
    ) from exc


async def exclusive_control_exception_handler(request: Request, exc: ExclusiveControlError):
    """Handle exclusive control errors raised inside a request."""
    logger.error(
        f"Exclusive control error: {exc.message}",
        extra={"code": exc.err.name, "path": request.url.path}
    )
    return JSONResponse(
        status_code=status_for(exc),
        content=LockErrorResponse.from_error(exc).model_dump(mode="json")
    )


def install_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ExclusiveControlError, exclusive_control_exception_handler)
