from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_iso_date
from ..common.validators import require_user_id, require_vector
from ..common.web import current_actor, login_required
from ..container import Container
from ..core.enums import EventKind
from ..core.exceptions import AuthorizationError, ValidationError
from .model import AttendanceEvent, EventFilter

_ACTIONS = {EventKind.IN: "time_in", EventKind.OUT: "time_out"}
_MESSAGES = {
    EventKind.IN: "Time in recorded successfully",
    EventKind.OUT: "Time out recorded successfully",
}


def register(app: Flask, container: Container) -> None:
    def _claimant(requested) -> str:
        """Employees act for themselves; admins may name another user."""

        actor = current_actor()
        if requested in (None, ""):
            return actor.user_id
        user_id = require_user_id(requested)
        if not actor.can_act_for(user_id):
            raise AuthorizationError("You can only mark your own attendance")
        return user_id

    def _parse_date_arg(name: str):
        value = request.args.get(name)
        if not value:
            return None
        try:
            return parse_iso_date(value)
        except ValueError:
            raise ValidationError(f"{name} must be YYYY-MM-DD")

    def _created(event: AttendanceEvent):
        return jsonify({
            "success": True,
            "action": _ACTIONS[event.kind],
            "message": _MESSAGES[event.kind],
            "event": event.to_dict(),
        }), 201

    @app.route("/api/attendance", methods=["POST"], endpoint="api_attendance_submit")
    @login_required
    def api_attendance_submit():
        """Verify the captured embedding and record the next event for today.

        A client-sent confidence_score is ignored: the stored score is recomputed here.
        """
        data = request.get_json(silent=True) or {}
        user_id = _claimant(data.get("user_id"))
        if "embedding" not in data:
            raise ValidationError("embedding is required")
        vector = require_vector(data.get("embedding"), dimension=container.matcher.dimension)

        event = container.gate.submit(user_id, vector)
        return _created(event)

    @app.route("/api/attendance/image", methods=["POST"], endpoint="api_attendance_submit_image")
    @login_required
    def api_attendance_submit_image():
        """Same as /api/attendance, but the face vector is extracted from an uploaded image."""
        user_id = _claimant(request.form.get("user_id"))
        if "image" not in request.files:
            raise ValidationError("image file is required")

        vector = container.extractor.extract(request.files["image"].read())
        event = container.gate.submit(user_id, vector)
        return _created(event)

    @app.route("/api/attendance", methods=["GET"], endpoint="api_attendance_list")
    @login_required
    def api_attendance_list():
        actor = current_actor()

        # Non-admins can only view their own logs
        user_id = actor.user_id
        if actor.is_admin:
            requested = request.args.get("user_id")
            user_id = require_user_id(requested) if requested else None

        kind_s = request.args.get("kind") or request.args.get("logType")
        try:
            kind = EventKind(kind_s.upper()) if kind_s else None
        except ValueError:
            raise ValidationError("kind must be IN or OUT")

        limit_s = request.args.get("limit")
        try:
            limit = int(limit_s) if limit_s else None
        except ValueError:
            raise ValidationError("limit must be an integer")

        events = container.ledger.list_events(
            EventFilter(
                user_id=user_id,
                start_date=_parse_date_arg("start_date"),
                end_date=_parse_date_arg("end_date"),
                kind=kind,
                limit=limit,
            )
        )
        return jsonify({"events": [e.to_dict() for e in events]}), 200

    @app.route("/api/attendance/check", methods=["GET"], endpoint="api_attendance_check")
    @login_required
    def api_attendance_check():
        user_id = _claimant(request.args.get("user_id"))
        work_date = _parse_date_arg("date") or container.ledger.today()

        status = container.ledger.get_day_status(user_id, work_date)
        return jsonify(status.to_dict()), 200

    @app.route("/api/attendance/history", methods=["GET"], endpoint="api_attendance_history")
    @login_required
    def api_attendance_history():
        user_id = _claimant(request.args.get("user_id"))
        days = container.ledger.get_history(user_id)
        return jsonify({"days": [d.to_dict() for d in days]}), 200
