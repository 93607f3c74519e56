from fastapi import Request
from fastapi.responses import ORJSONResponse
from loguru import logger

from watchcast.shared.api.utils import ApiFailure
from watchcast.utils.app_errors import AppError, AppErrorCode


async def app_error_handler(request: Request, exc: AppError) -> ORJSONResponse:
    """
    Custom exception handler for AppError.
    Converts AppError to ApiFailure, keeping the caller info captured at raise time in the log.
    """
    log_msg = f"{exc.errcode} {exc.erresid} msg={exc.errmesg} caller={exc.caller_info}"
    if exc.errcode == AppErrorCode.E_INTERNAL_ERROR.value:
        logger.error(log_msg)
    else:
        logger.warning(log_msg)

    failure = ApiFailure(errcode=exc.errcode, errmesg=exc.errmesg, erresid=exc.erresid)
    return ORJSONResponse(status_code=exc.status_code, content=failure.model_dump())
