from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class WeatherDashError(Exception):
    """Base for errors that map onto an HTTP response.

    ``message`` is the only text that reaches the caller; anything more
    specific belongs in the log.
    """

    status_code = 500
    message = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class ConfigurationError(WeatherDashError):
    status_code = 500
    message = "Server configuration error"


class UpstreamError(WeatherDashError):
    status_code = 500
    message = "Error fetching upstream data"

    def __init__(self, message: Optional[str] = None, upstream_status: Optional[int] = None):
        super().__init__(message)
        self.upstream_status = upstream_status


class ClientInputError(WeatherDashError):
    status_code = 400
    message = "Invalid request"


class DomainFetchError(Exception):
    """Client side: a domain fetch failed. Caught by the store, never surfaced."""

    def __init__(self, domain: str, message: str):
        super().__init__(message)
        self.domain = domain
        self.message = message


async def _weatherdash_error_handler(request: Request, exc: WeatherDashError) -> JSONResponse:
    logger.info("%s %s -> %s (%s)", request.method, request.url.path, exc.status_code, type(exc).__name__)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


def install_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(WeatherDashError, _weatherdash_error_handler)
