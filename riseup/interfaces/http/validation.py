"""Request parsing helpers shared by the route blueprints."""

from __future__ import annotations

from typing import Any, Mapping, Optional, Tuple, Type, TypeVar

from flask import jsonify, request
from pydantic import BaseModel, ValidationError

from riseup.models import validation_errors

M = TypeVar("M", bound=BaseModel)


def error_response(code: str, message: str, status: int, **extra: Any):
    body = {"error": code, "message": message}
    body.update(extra)
    return jsonify(body), status


def parse_body(model: Type[M], data: Optional[Mapping[str, Any]] = None) -> Tuple[Optional[M], Any]:
    """
    Validate the JSON body (or ``data``) against ``model``.

    Returns ``(instance, None)`` on success and ``(None, response)`` with a
    400 ``invalid_data`` response otherwise.
    """
    if data is None:
        data = request.get_json(silent=True) or {}
    if not isinstance(data, Mapping):
        return None, error_response("invalid_data", "Request body must be a JSON object", 400)
    try:
        return model.model_validate(dict(data)), None
    except ValidationError as exc:
        errors = validation_errors(exc)
        first = next(iter(errors.values()), "Invalid request")
        return None, error_response("invalid_data", first, 400, errors=errors)


__all__ = ["error_response", "parse_body"]
