# backend/fitpet/routes/debug_routes.py
#
# Time controls for manual testing. Only registered when
# DEBUG_TIME_CONTROL is on.

from datetime import date

from flask import Blueprint, current_app, jsonify, request

debug_bp = Blueprint("debug", __name__)


def _clock_state():
    clock = current_app.clock
    return {
        "effective_now": clock.now().isoformat(),
        "effective_today": clock.today().isoformat(),
        "is_faked": clock.is_faked,
    }


@debug_bp.route("/set-time", methods=["POST"])
def set_time():
    """
    Body: { "date": "2025-05-04" } or { "date": "2025-05-04T07:30:00" }
    A bare date pins the clock to noon of that day.
    """
    data = request.get_json(silent=True) or {}
    raw = (data.get("date") or "").strip()
    if not raw:
        return jsonify({"message": "date is required"}), 400

    try:
        value = date.fromisoformat(raw) if len(raw) == 10 else raw
        current_app.clock.set_fake_date(value)
    except ValueError:
        return jsonify({"message": "date must be ISO formatted"}), 400

    current_app.logger.warning(f"[debug/set-time] clock pinned to {current_app.clock.now()}")
    return jsonify(_clock_state()), 200


@debug_bp.route("/advance-days", methods=["POST"])
def advance_days():
    """
    Body: { "days": 1 }
    """
    data = request.get_json(silent=True) or {}
    try:
        days = int(data.get("days", 1))
    except (TypeError, ValueError):
        return jsonify({"message": "days must be an integer"}), 400

    current_app.clock.advance_days(days)
    current_app.logger.warning(f"[debug/advance-days] +{days} -> {current_app.clock.now()}")
    return jsonify(_clock_state()), 200


@debug_bp.route("/reset-time", methods=["POST"])
def reset_time():
    current_app.clock.reset()
    return jsonify(_clock_state()), 200


@debug_bp.route("/current-time", methods=["GET"])
def current_time():
    return jsonify(_clock_state()), 200
