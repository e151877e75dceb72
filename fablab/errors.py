"""Domain errors and their HTTP translation."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from fablab.domain.models import Slot

logger = logging.getLogger(__name__)


class BookingEngineError(Exception):
    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def payload(self) -> dict:
        return {"error": self.message}


class InvalidInputError(BookingEngineError):
    status_code = 400


class ConflictError(BookingEngineError):
    """A proposed interval overlaps a blocking one.

    ``suggested_slots`` is set on the booking path so the caller can pick an
    alternative without another round trip.
    """

    status_code = 409

    def __init__(self, message: str, suggested_slots: list[Slot] | None = None) -> None:
        super().__init__(message)
        self.suggested_slots = suggested_slots

    def payload(self) -> dict:
        body = super().payload()
        if self.suggested_slots is not None:
            body["suggestedSlots"] = [
                slot.model_dump(by_alias=True) for slot in self.suggested_slots
            ]
        return body


class NotFoundError(BookingEngineError):
    status_code = 404


class UnauthorizedError(BookingEngineError):
    status_code = 401


class ForbiddenError(BookingEngineError):
    status_code = 403


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(BookingEngineError)
    async def handle_engine_error(_request: Request, err: BookingEngineError):
        return JSONResponse(err.payload(), status_code=err.status_code)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(_request: Request, err: RequestValidationError):
        fields = sorted(
            {".".join(str(p) for p in e["loc"] if p != "body") for e in err.errors()}
        )
        message = f"Invalid or missing fields: {', '.join(fields)}" if fields else "Bad request"
        return JSONResponse({"error": message}, status_code=400)

    @app.exception_handler(Exception)
    async def handle_server_error(request: Request, _err: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse({"error": "Server error"}, status_code=500)
