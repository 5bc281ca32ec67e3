from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from resourcekit.services.params_parser import ParseError

_LOG = logging.getLogger("resourcekit.http")


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ParseError)
    async def _parse_error_handler(request: Request, exc: ParseError):
        _LOG.warning(
            "%s %s parse_error value=%r original_message=%s",
            request.method,
            request.url.path,
            exc.value,
            exc.original_message,
        )
        return JSONResponse(
            status_code=400,
            content={"detail": str(exc), "value": jsonable_encoder(exc.value)},
        )
