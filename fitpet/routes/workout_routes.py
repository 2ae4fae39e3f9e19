# backend/fitpet/routes/workout_routes.py

from datetime import date, datetime
from typing import Any, Dict, Optional, Tuple

from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import jwt_required, get_jwt_identity

from ..clock import end_of_day, start_of_day
from ..errors import NotFoundError
from ..services import pets, workout_logs, workout_plans

plans_bp = Blueprint("workout_plans", __name__)
workout_logs_bp = Blueprint("workout_logs", __name__)

PLAN_TYPES = ("strength", "cardio", "hiit", "flexibility", "hybrid")


# ------------------------------
# Helpers
# ------------------------------
def _safe_int(v: Any, default: int = 0) -> int:
    try:
        return int(v)
    except (TypeError, ValueError):
        return default


def _safe_int_or_none(v: Any) -> Optional[int]:
    if v is None:
        return None
    try:
        return int(v)
    except (TypeError, ValueError):
        return None


def _parse_dt(v: Any) -> Optional[datetime]:
    if not v:
        return None
    try:
        return datetime.fromisoformat(str(v)).replace(tzinfo=None)
    except ValueError:
        return None


def _parse_date(v: Any) -> Optional[date]:
    if not v:
        return None
    try:
        return date.fromisoformat(str(v))
    except ValueError:
        return None


# ------------------------------
# Workout plans
# ------------------------------
def _plan_fields(data: Dict[str, Any], partial: bool = False) -> Tuple[Dict[str, Any], Optional[str]]:
    """Validated plan columns from a request body, or an error message."""
    fields: Dict[str, Any] = {}

    if "name" in data or not partial:
        name = (data.get("name") or "").strip()
        if not name:
            return {}, "name is required"
        fields["name"] = name

    if "type" in data or not partial:
        plan_type = data.get("type") or "strength"
        if plan_type not in PLAN_TYPES:
            return {}, f"type must be one of {', '.join(PLAN_TYPES)}"
        fields["type"] = plan_type

    if "exercises" in data or not partial:
        exercises = data.get("exercises") or []
        if not isinstance(exercises, list):
            return {}, "exercises must be a list"
        fields["exercises"] = exercises

    if "description" in data or not partial:
        fields["description"] = data.get("description")

    if "duration_minutes" in data or not partial:
        fields["duration_minutes"] = _safe_int_or_none(data.get("duration_minutes"))

    return fields, None


@plans_bp.route("", methods=["GET"])
@jwt_required()
def list_plans():
    user_id = int(get_jwt_identity())
    rows = workout_plans.list_plans(user_id)
    return jsonify({"workout_plans": [p.to_dict() for p in rows]}), 200


@plans_bp.route("", methods=["POST"])
@jwt_required()
def create_plan():
    """
    Expected body:
    {
      "name": "Push day",
      "type": "strength",
      "duration_minutes": 45,
      "exercises": [{"name": "pushup", "sets": 3, "reps": 12}]
    }
    """
    user_id = int(get_jwt_identity())
    fields, error = _plan_fields(request.get_json(silent=True) or {})
    if error:
        return jsonify({"message": error}), 400

    plan = workout_plans.create_plan(user_id, fields)
    return jsonify({"workout_plan": plan.to_dict()}), 201


@plans_bp.route("/<int:plan_id>", methods=["GET"])
@jwt_required()
def get_plan(plan_id):
    user_id = int(get_jwt_identity())
    plan = workout_plans.find_plan(plan_id, user_id)
    return jsonify({"workout_plan": plan.to_dict()}), 200


@plans_bp.route("/<int:plan_id>", methods=["PATCH"])
@jwt_required()
def update_plan(plan_id):
    """
    Body: any subset of the POST fields.
    """
    user_id = int(get_jwt_identity())
    changes, error = _plan_fields(request.get_json(silent=True) or {}, partial=True)
    if error:
        return jsonify({"message": error}), 400

    plan = workout_plans.update_plan(plan_id, user_id, changes)
    return jsonify({"workout_plan": plan.to_dict()}), 200


@plans_bp.route("/<int:plan_id>", methods=["DELETE"])
@jwt_required()
def delete_plan(plan_id):
    user_id = int(get_jwt_identity())
    current_app.logger.info(f"[workout-plans/delete] user_id={user_id} plan_id={plan_id}")
    workout_plans.delete_plan(plan_id, user_id)
    return jsonify({"message": "Workout plan deleted"}), 200


# ------------------------------
# Workout logs
# ------------------------------
@workout_logs_bp.route("", methods=["GET"])
@jwt_required()
def list_logs():
    user_id = int(get_jwt_identity())
    limit = max(1, min(_safe_int(request.args.get("limit"), 50), 200))
    rows = workout_logs.list_logs(user_id, limit)
    return jsonify({"workout_logs": [w.to_dict() for w in rows]}), 200


@workout_logs_bp.route("", methods=["POST"])
@jwt_required()
def start_log():
    """
    Expected body: { "workout_plan_id": 3 }
    """
    user_id = int(get_jwt_identity())
    data = request.get_json(silent=True) or {}

    plan_id = _safe_int_or_none(data.get("workout_plan_id"))
    if not plan_id:
        return jsonify({"message": "workout_plan_id is required"}), 400

    log = workout_logs.start_workout_log(user_id, plan_id, current_app.clock)
    return jsonify({"workout_log": log.to_dict()}), 201


@workout_logs_bp.route("/<int:log_id>/complete", methods=["POST"])
@jwt_required()
def complete_log(log_id):
    """
    Expected body (all optional):
    {
      "end_time": "2025-05-04T18:30:00",
      "xp_earned": 40
    }
    """
    user_id = int(get_jwt_identity())
    data = request.get_json(silent=True) or {}

    end_time = None
    if data.get("end_time"):
        end_time = _parse_dt(data.get("end_time"))
        if end_time is None:
            return jsonify({"message": "invalid end_time"}), 400

    log = workout_logs.complete_workout_log(
        log_id,
        user_id,
        current_app.clock,
        end_time=end_time,
        xp_earned=_safe_int_or_none(data.get("xp_earned")),
    )

    try:
        pet = pets.find_by_user_id(user_id).to_dict()
    except NotFoundError:
        pet = None

    return jsonify({"workout_log": log.to_dict(), "pet": pet}), 200


@workout_logs_bp.route("/range", methods=["GET"])
@jwt_required()
def logs_in_range():
    """
    GET /api/workout-logs/range?start=2025-05-01&end=2025-05-07&workout_plan_id=3
    """
    user_id = int(get_jwt_identity())
    start = _parse_date(request.args.get("start"))
    end = _parse_date(request.args.get("end"))
    if start is None or end is None:
        return jsonify({"message": "start and end (YYYY-MM-DD) are required"}), 400
    if end < start:
        return jsonify({"message": "end must not be before start"}), 400

    rows = workout_logs.find_logs_in_range(
        user_id,
        start_of_day(start),
        end_of_day(end),
        _safe_int_or_none(request.args.get("workout_plan_id")),
    )
    return jsonify({"workout_logs": [w.to_dict() for w in rows]}), 200


@workout_logs_bp.route("/stats", methods=["GET"])
@jwt_required()
def log_stats():
    """
    GET /api/workout-logs/stats[?start=2025-05-01&end=2025-05-07]
    """
    user_id = int(get_jwt_identity())
    start = _parse_date(request.args.get("start"))
    end = _parse_date(request.args.get("end"))
    if (request.args.get("start") or request.args.get("end")) and (start is None or end is None or end < start):
        return jsonify({"message": "start and end must be a valid YYYY-MM-DD range"}), 400

    stats = workout_logs.get_stats(user_id, current_app.clock, start, end)
    return jsonify({"stats": stats}), 200


@workout_logs_bp.route("/<int:log_id>", methods=["GET"])
@jwt_required()
def get_log(log_id):
    user_id = int(get_jwt_identity())
    log = workout_logs.find_log(log_id, user_id)
    return jsonify({"workout_log": log.to_dict()}), 200


@workout_logs_bp.route("/<int:log_id>", methods=["PATCH"])
@jwt_required()
def update_log(log_id):
    """
    Body (all optional):
    {
      "start_time": "2025-05-04T17:45:00",
      "end_time": "2025-05-04T18:30:00",
      "xp_earned": 40
    }
    An end_time on an active session completes it.
    """
    user_id = int(get_jwt_identity())
    data = request.get_json(silent=True) or {}

    times = {}
    for key in ("start_time", "end_time"):
        if data.get(key):
            times[key] = _parse_dt(data.get(key))
            if times[key] is None:
                return jsonify({"message": f"invalid {key}"}), 400

    log = workout_logs.update_workout_log(
        log_id,
        user_id,
        current_app.clock,
        xp_earned=_safe_int_or_none(data.get("xp_earned")),
        **times,
    )
    return jsonify({"workout_log": log.to_dict()}), 200


@workout_logs_bp.route("/<int:log_id>", methods=["DELETE"])
@jwt_required()
def delete_log(log_id):
    user_id = int(get_jwt_identity())
    workout_logs.delete_log(log_id, user_id)
    return jsonify({"message": "Workout log deleted"}), 200
