"""Response error extraction for load test observability.

Parses ordering API error responses into human-readable messages.
Handles two response shapes:

- Envelope errors (400/401/403/404/409/500/503):
  {"success": false, "data": null, "message": "...", "timestamp": "..."}
- Anything else that still parses as JSON
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from requests import Response


def extract_error_detail(response: Response) -> str:
    """Extract a human-readable error message from an API error response.

    Returns a compact string suitable for Locust failure messages and log lines.
    Gracefully handles unparseable bodies and missing fields.
    """
    try:
        body = response.json()
    except ValueError:
        # Not JSON: return raw text, truncated
        text = getattr(response, "text", "") or ""
        return text[:300] or "(empty response body)"

    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])[:300]

    # Unknown shape: stringify and truncate
    return str(body)[:300]


def envelope_data(response: Response):
    """The ``data`` member of a successful envelope, or None."""
    try:
        return response.json().get("data")
    except (ValueError, AttributeError):
        return None
