from __future__ import annotations

from typing import Mapping

from flask import Flask, jsonify

from ..common.http import acting_user_id, as_bool, json_body
from ..container import Container
from ..core.exceptions import MalformedInput
from ..punches.model import GeoStamp


def _geo_from(payload) -> GeoStamp | None:
    if not payload:
        return None
    if not isinstance(payload, Mapping):
        raise MalformedInput("geo must be an object with lat and lng")
    try:
        radius = payload.get("radius_m")
        return GeoStamp(
            lat=float(payload["lat"]),
            lng=float(payload["lng"]),
            radius_m=float(radius) if radius is not None else None,
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise MalformedInput("geo needs numeric lat and lng") from exc


def register(app: Flask, container: Container) -> None:
    @app.route("/api/punches", methods=["POST"], endpoint="submit_punch")
    def submit_punch():
        data = json_body()
        event = container.punch_clock_service.submit_punch(
            acting_user_id(),
            data.get("type"),
            note=data.get("note"),
            force=as_bool(data.get("force", False)),
            geo=_geo_from(data.get("geo")),
        )
        directory = container.directory_service
        org = directory.organization_for(directory.require_member(event.user_id))
        return jsonify(event.to_dict(org.settings.timezone)), 201

    @app.route("/api/punches/status", methods=["GET"], endpoint="punch_status")
    def punch_status():
        snapshot = container.punch_clock_service.status(acting_user_id())
        return jsonify(snapshot.to_dict())
