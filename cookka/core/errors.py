from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


class GatewayError(Exception):
    """Failure that is rendered to the caller as ``{"error": message}``."""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        details: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details
        if status_code is not None:
            self.status_code = status_code


class InvalidInput(GatewayError):
    status_code = 400


class MisconfiguredService(GatewayError):
    status_code = 500


class UpstreamFailure(GatewayError):
    """Non-success status from Gemini; the status is passed through."""


class UnexpectedFailure(GatewayError):
    status_code = 500


async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
    content: dict[str, str] = {"error": exc.message}
    if exc.details:
        content["details"] = exc.details
    return JSONResponse(status_code=exc.status_code, content=content)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(GatewayError, gateway_error_handler)
