# backend/api.py

"""
API ERROR NORMALIZATION

Every domain error leaves the API in one shape:

    {"error": {"code": "...", "message": "...", "details": ...}}

`details` is omitted when there is nothing to add.
"""

from __future__ import annotations

from rest_framework.response import Response


def error_response(*, code: str, message: str, http_status: int, details=None):
    """
    Canonical API error response.
    """
    body = {"code": code, "message": message}
    if details is not None:
        body["details"] = details
    return Response({"error": body}, status=http_status)
