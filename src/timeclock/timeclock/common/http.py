"""Request parsing shared by the JSON controllers."""

from __future__ import annotations

from datetime import date
from typing import Any, Optional

from flask import request

from ..core.exceptions import MalformedInput
from .datetime_utils import parse_iso_date

USER_HEADER = "X-User-Id"


def acting_user_id() -> str:
    """Id of the caller, set by the upstream auth layer."""
    user_id = (request.headers.get(USER_HEADER) or "").strip()
    if not user_id:
        raise MalformedInput(f"Missing {USER_HEADER} header", code="MISSING_USER")
    return user_id


def json_body() -> dict[str, Any]:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise MalformedInput("Request body must be a JSON object")
    return data


def query_date(name: str, default: Optional[date] = None) -> Optional[date]:
    raw = request.args.get(name)
    if not raw:
        return default
    return parse_iso_date(raw)


def as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)
