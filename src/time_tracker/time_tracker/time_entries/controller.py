from __future__ import annotations

import logging

from flask import Flask, jsonify, request, session

from ..common.datetime_utils import parse_iso_date
from ..common.guards import current_user_id, login_required, role_required
from ..common.validators import optional_positive_int
from ..core.enums import Role
from ..core.exceptions import PersistenceError, ValidationError
from ..container import Container

logger = logging.getLogger(__name__)


def _json_body() -> dict:
    payload = request.get_json(silent=True)
    # Arrays and scalars carry no named fields.
    return payload if isinstance(payload, dict) else {}


def register(app: Flask, container: Container) -> None:
    @app.before_request
    def finalize_stale_sessions():
        """Close yesterday's forgotten sessions before serving any logged-in request."""
        if "user_id" not in session:
            return None
        try:
            container.rollover_sweeper.sweep(int(session["user_id"]))
        except PersistenceError:
            # The request itself can still be served; the next one retries the sweep.
            logger.exception("rollover_sweep_failed", extra={"user_id": session.get("user_id"), "path": request.path})
        return None

    @app.route("/api/time-entries/current", methods=["GET"], endpoint="time_entries_current")
    @login_required
    def current():
        view = container.time_entry_service.current_entry(current_user_id())
        return jsonify({"entry": view.to_dict() if view else None})

    @app.route("/api/time-entries/clock-in", methods=["POST"], endpoint="time_entries_clock_in")
    @login_required
    def clock_in():
        task_id = optional_positive_int(_json_body().get("task_id"), "task_id")
        entry = container.time_entry_service.clock_in(current_user_id(), task_id=task_id)
        return jsonify({"message": "Clocked in successfully", "entry": entry.to_dict()}), 201

    @app.route("/api/time-entries/clock-out", methods=["POST"], endpoint="time_entries_clock_out")
    @login_required
    def clock_out():
        result = container.time_entry_service.clock_out(current_user_id())
        return jsonify(
            {
                "message": "Clocked out successfully",
                "entry": result.session.to_dict(),
                "total_hours": f"{result.session.total_hours:.2f}",
            }
        )

    @app.route("/api/time-entries/break-start", methods=["POST"], endpoint="time_entries_break_start")
    @login_required
    def break_start():
        entry = container.time_entry_service.start_break(current_user_id())
        return jsonify({"message": "Break started", "entry": entry.to_dict()})

    @app.route("/api/time-entries/break-end", methods=["POST"], endpoint="time_entries_break_end")
    @login_required
    def break_end():
        entry = container.time_entry_service.end_break(current_user_id())
        return jsonify({"message": "Break ended", "entry": entry.to_dict()})

    @app.route("/api/time-entries/lunch-start", methods=["POST"], endpoint="time_entries_lunch_start")
    @login_required
    def lunch_start():
        entry = container.time_entry_service.start_lunch(current_user_id())
        return jsonify({"message": "Lunch started", "entry": entry.to_dict()})

    @app.route("/api/time-entries/lunch-end", methods=["POST"], endpoint="time_entries_lunch_end")
    @login_required
    def lunch_end():
        entry = container.time_entry_service.end_lunch(current_user_id())
        return jsonify({"message": "Lunch ended", "entry": entry.to_dict()})

    @app.route("/api/time-entries/my-entries", methods=["GET"], endpoint="time_entries_mine")
    @login_required
    def my_entries():
        limit = optional_positive_int(request.args.get("limit"), "limit")
        entries = container.time_entry_service.my_entries(current_user_id(), limit=limit)
        return jsonify({"entries": [e.to_dict() for e in entries]})

    @app.route("/api/tasks/start", methods=["POST"], endpoint="tasks_start")
    @login_required
    def task_start():
        try:
            task_id = optional_positive_int(_json_body().get("task_id"), "task_id")
        except ValidationError:
            task_id = None
        # A missing or malformed id is reported as an invalid task.
        entry = container.task_timer_service.start_task(current_user_id(), task_id)
        return jsonify({"message": "Task started", "entry": entry.to_dict()}), 201

    @app.route("/api/tasks/stop", methods=["POST"], endpoint="tasks_stop")
    @login_required
    def task_stop():
        entry = container.task_timer_service.stop_task(current_user_id())
        return jsonify({"message": "Task stopped", "entry": entry.to_dict()})

    @app.route("/api/tasks/today-entries", methods=["GET"], endpoint="tasks_today_entries")
    @login_required
    def task_today_entries():
        entries = container.task_timer_service.today_task_entries(current_user_id())
        return jsonify({"entries": [e.to_dict() for e in entries]})

    @app.route("/api/admin/time-entries/sweep", methods=["POST"], endpoint="admin_time_entries_sweep")
    @role_required(Role.ADMIN)
    def admin_sweep():
        raw = _json_body().get("as_of")
        try:
            as_of = parse_iso_date(raw) if raw else None
        except (TypeError, ValueError):
            raise ValidationError("as_of must be YYYY-MM-DD")
        summary = container.rollover_sweeper.sweep_all(as_of)
        return jsonify(
            {
                "users": len(summary),
                "finalized": sum(summary.values()),
                "per_user": {str(uid): count for uid, count in summary.items()},
            }
        )
