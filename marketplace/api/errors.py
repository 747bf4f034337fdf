# marketplace/api/errors.py
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from marketplace.domain.errors import ErrorKind, ServiceError
from marketplace.utils.logging import get_logger

logger = get_logger(__name__)

STATUS_BY_KIND = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.OUT_OF_STOCK: 400,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.INVALID_INPUT: 400,
    ErrorKind.EMPTY_CART: 400,
    ErrorKind.DOWNSTREAM_FAILURE: 502,
    ErrorKind.CONFLICT: 409,
}


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    status_code = STATUS_BY_KIND.get(exc.kind, 400)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} -> {status_code} {exc.kind.value}")
    return JSONResponse(status_code=status_code, content=jsonable_encoder(exc.to_dict()))


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ServiceError, service_error_handler)
