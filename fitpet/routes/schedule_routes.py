# backend/fitpet/routes/schedule_routes.py
from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import jwt_required, get_jwt_identity

from ..services import reschedule, schedule

schedule_bp = Blueprint("schedule", __name__)

_ENTRY_KEYS = ("workout_plan_id", "preferred_time", "notes")


@schedule_bp.route("", methods=["GET"])
@jwt_required()
def get_weekly_view():
    """
    Returns:
    {
      "name": "My Weekly Schedule",
      "is_active": true,
      "days": [
        {
          "date": "2025-05-04",
          "day_of_week": "sunday",
          "entries": [{ "workout_plan_id": null, ... }],
          "is_today": false
        },
        ...
      ]
    }
    """
    user_id = int(get_jwt_identity())
    view = schedule.get_weekly_view(
        user_id,
        current_app.clock,
        apply_reschedules=current_app.config["SCHEDULE_VIEW_APPLIES_RESCHEDULES"],
    )
    return jsonify(view), 200


@schedule_bp.route("", methods=["PUT"])
@jwt_required()
def update_schedule():
    user_id = int(get_jwt_identity())
    data = request.get_json(silent=True) or {}
    updated = schedule.update_schedule(user_id, name=data.get("name"), is_active=data.get("is_active"))
    return jsonify({"schedule": updated.to_dict()}), 200


@schedule_bp.route("/day/<day>", methods=["PUT"])
@jwt_required()
def update_day(day):
    """
    Body (any subset):
    {
      "workout_plan_id": 3,     // null = rest day
      "preferred_time": "07:30",
      "notes": "legs"
    }
    """
    user_id = int(get_jwt_identity())
    data = request.get_json(silent=True) or {}
    changes = {k: data[k] for k in _ENTRY_KEYS if k in data}

    if changes.get("workout_plan_id") is not None:
        try:
            changes["workout_plan_id"] = int(changes["workout_plan_id"])
        except (TypeError, ValueError):
            return jsonify({"message": "workout_plan_id must be an integer or null"}), 400

    current_app.logger.info(f"[schedule/day] user_id={user_id} day={day} keys={list(changes)}")
    entry = schedule.update_schedule_entry(user_id, day, changes)
    return jsonify({"entry": entry.to_dict()}), 200


@schedule_bp.route("/day/<day>", methods=["DELETE"])
@jwt_required()
def clear_day(day):
    user_id = int(get_jwt_identity())
    entry = schedule.set_day_to_rest(user_id, day)
    return jsonify({"entry": entry.to_dict()}), 200


@schedule_bp.route("", methods=["DELETE"])
@jwt_required()
def reset_schedule():
    user_id = int(get_jwt_identity())
    updated = schedule.reset_schedule(user_id)
    return jsonify({"schedule": updated.to_dict()}), 200


# ------------------------------
# Manual job triggers
# ------------------------------
@schedule_bp.route("/tasks/trigger-skip-check", methods=["POST"])
@jwt_required()
def trigger_skip_check():
    current_app.logger.warning(f"Manually triggering skip check by user {get_jwt_identity()}")
    created = reschedule.check_skipped_workouts(current_app.clock)
    return jsonify(
        {
            "message": "Skip check task finished.",
            "rescheduled": [r.to_dict() for r in created],
        }
    ), 200


@schedule_bp.route("/tasks/trigger-cleanup", methods=["POST"])
@jwt_required()
def trigger_cleanup():
    current_app.logger.warning(f"Manually triggering cleanup by user {get_jwt_identity()}")
    deleted = reschedule.cleanup_old_reschedules(current_app.clock)
    return jsonify({"message": "Cleanup task finished.", "deleted": deleted}), 200
