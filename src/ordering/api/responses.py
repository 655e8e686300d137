"""Response envelope shared by every endpoint.

``{"success", "data", "message", "timestamp"}``, plus ``pagination`` on
list endpoints.
"""

from datetime import UTC, datetime

from fastapi.responses import JSONResponse

from ordering.errors import HTTP_STATUS, ErrorKind, Result
from ordering.shared.paging import Page


def envelope(data=None, message: str = "", success: bool = True, pagination: dict | None = None) -> dict:
    body = {
        "success": success,
        "data": data,
        "message": message,
        "timestamp": datetime.now(UTC).isoformat(),
    }
    if pagination is not None:
        body["pagination"] = pagination
    return body


def error_response(kind: ErrorKind, message: str) -> JSONResponse:
    return JSONResponse(status_code=HTTP_STATUS[kind], content=envelope(message=message, success=False))


def respond(result: Result, status_code: int = 200, message: str = "") -> JSONResponse:
    """Render a service ``Result``; failures take their status from ``result.kind``."""
    if not result.ok:
        return error_response(result.kind, result.message)

    text = result.warning or result.message or message
    if isinstance(result.value, Page):
        content = envelope(data=result.value.items, message=text, pagination=result.value.as_pagination())
    else:
        content = envelope(data=result.value, message=text)
    return JSONResponse(status_code=status_code, content=content)
