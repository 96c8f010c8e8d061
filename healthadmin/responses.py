"""JSON response envelope: ``{status, message?, data?, meta?}``."""

from typing import Any

from flask import jsonify


def success(
    data: Any = None,
    message: str | None = None,
    meta: dict[str, Any] | None = None,
    status_code: int = 200,
):
    """Build a ``status: "success"`` response."""
    body: dict[str, Any] = {"status": "success"}
    if message is not None:
        body["message"] = message
    if data is not None:
        body["data"] = data
    if meta is not None:
        body["meta"] = meta
    return jsonify(body), status_code
