"""Operational errors and their translation into JSON error envelopes.

`AppError` marks failures whose message is safe to show to a client (bad
input, missing documents). Errors raised by pydantic or the Mongo driver are
translated into `AppError` where they map to a client mistake; anything else
is treated as a programming error and hidden in production.
"""

from __future__ import annotations

import logging
import traceback
from typing import Any

from bson.errors import InvalidId
from pydantic import ValidationError
from pymongo.errors import DuplicateKeyError

log = logging.getLogger(__name__)


class AppError(Exception):
    """An expected, client-facing failure carrying an HTTP status code."""

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.status = "fail" if str(status_code).startswith("4") else "error"
        self.is_operational = True


def _duplicate_key_error(exc: DuplicateKeyError) -> AppError:
    key_value = (exc.details or {}).get("keyValue") or {}
    if key_value:
        value = next(iter(key_value.values()))
        return AppError(f"Duplicate field value: {value}. Please use another value", 400)
    return AppError("Duplicate field value. Please use another value", 400)


def _validation_error(exc: ValidationError) -> AppError:
    messages = []
    for err in exc.errors():
        field = ".".join(str(p) for p in err.get("loc", ()))
        messages.append(f"{field}: {err['msg']}" if field else err["msg"])
    return AppError(f"Invalid input data. {'. '.join(messages)}", 400)


def translate_error(exc: BaseException) -> BaseException:
    """Map driver and validation errors onto operational `AppError`s.

    Args:
        exc: Any exception raised while handling a request.

    Returns:
        An `AppError` when the failure is the client's fault, otherwise `exc`
        unchanged.
    """
    if isinstance(exc, AppError):
        return exc
    if isinstance(exc, InvalidId):
        return AppError(f"Invalid id. {exc}", 400)
    if isinstance(exc, DuplicateKeyError):
        return _duplicate_key_error(exc)
    if isinstance(exc, ValidationError):
        return _validation_error(exc)
    return exc


def error_envelope(exc: BaseException, app_env: str = "production") -> tuple[int, dict[str, Any]]:
    """Build the `(status_code, body)` pair reported for a failed request.

    In development the body carries the exception repr and stack trace. In
    production only operational errors expose their message; everything else
    is logged and replaced with a generic 500.

    Args:
        exc: The exception raised by a handler.
        app_env: "development" or "production".

    Returns:
        Tuple of HTTP status code and JSON-serializable body.
    """
    err = translate_error(exc)
    status_code = getattr(err, "status_code", 500)
    status = getattr(err, "status", "error")

    if app_env == "development":
        return status_code, {
            "status": status,
            "error": repr(err),
            "message": str(err),
            "stack": "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
        }

    if getattr(err, "is_operational", False):
        return status_code, {"status": status, "message": str(err)}

    log.error("Unhandled error: %r", exc, exc_info=exc)
    return 500, {"status": "error", "message": "Something went wrong!"}
