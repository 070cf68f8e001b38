from __future__ import annotations

import hmac
from functools import wraps
from typing import Any, Callable

from flask import Flask, jsonify, request

from ..common.validators import require_period
from ..core.exceptions import ValidationError
from ..core.result import Outcome, capture

HTTP_STATUS = {
    "ValidationError": 400,
    "NotFound": 404,
    "OutsideGeofence": 403,
    "OutsideNightWindow": 409,
    "AlreadyPunchedIn": 409,
    "NoOpenPunch": 409,
    "RecordLocked": 409,
    "NotPending": 409,
    "InvalidTransition": 409,
    "PolicyNotConfigured": 422,
}


def outcome_response(outcome: Outcome, render: Callable[[Any], Any] = lambda value: value):
    if outcome.ok:
        return jsonify(render(outcome.value))
    return jsonify(outcome.to_dict()), HTTP_STATUS.get(outcome.error_kind, 400)


def _requested_period(data: dict) -> tuple:
    month, year = data.get("month"), data.get("year")
    if (month is None) != (year is None):
        raise ValidationError("month and year must be given together")
    if month is None:
        return None, None
    try:
        return require_period(int(month), int(year))
    except (TypeError, ValueError):
        raise ValidationError("month and year must be integers")


def register(app: Flask, container) -> None:
    """Manual/cron triggers for the batch jobs, guarded by the shared CRON_TOKEN."""

    def cron_token_required(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            expected = str(app.config.get("CRON_TOKEN") or "")
            supplied = request.headers.get("X-Cron-Token", "")
            auth = request.headers.get("Authorization", "")
            if auth.startswith("Bearer "):
                supplied = auth[len("Bearer "):]
            if not expected or not hmac.compare_digest(supplied.encode(), expected.encode()):
                return jsonify({"ok": False, "error": "Unauthorized", "code": "Unauthorized"}), 401
            return view(*args, **kwargs)

        return wrapper

    def batch(result):
        return result.to_dict()

    @app.route("/api/cron/auto-punch-out", methods=["POST"], endpoint="cron_auto_punch_out")
    @cron_token_required
    def cron_auto_punch_out():
        return outcome_response(capture(container.auto_punch_out_job.run), batch)

    @app.route("/api/cron/mark-absent", methods=["POST"], endpoint="cron_mark_absent")
    @cron_token_required
    def cron_mark_absent():
        return outcome_response(capture(container.mark_absent_job.run), batch)

    @app.route("/api/cron/salary-generate", methods=["POST"], endpoint="cron_salary_generate")
    @cron_token_required
    def cron_salary_generate():
        data = request.get_json(silent=True) or {}

        def generate():
            month, year = _requested_period(data)
            if month is None:
                return container.salary_generation_job.run()
            return container.salary_generation_job.run(month, year)

        return outcome_response(capture(generate), batch)
