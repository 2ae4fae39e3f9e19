# backend/fitpet/routes/pet_routes.py
from typing import Any, Optional

from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import jwt_required, get_jwt_identity

from ..services import pets

pet_bp = Blueprint("pet", __name__)


def _safe_int_or_none(v: Any) -> Optional[int]:
    if v is None:
        return None
    try:
        return int(v)
    except (TypeError, ValueError):
        return None


@pet_bp.route("", methods=["GET"])
@jwt_required()
def get_pet():
    user_id = int(get_jwt_identity())
    pet = pets.find_by_user_id(user_id)
    return jsonify({"pet": pet.to_dict()}), 200


@pet_bp.route("", methods=["POST"])
@jwt_required()
def create_pet():
    """
    Only needed when signup's pet creation never went through.
    Body: { "name": "optional" }
    """
    user_id = int(get_jwt_identity())
    data = request.get_json(silent=True) or {}
    pet = pets.create_pet(user_id, data.get("name"))
    return jsonify({"pet": pet.to_dict()}), 201


@pet_bp.route("", methods=["PATCH"])
@jwt_required()
def update_pet():
    """
    Body (all optional):
    {
      "name": "Draco",
      "health_points": 80
    }
    """
    user_id = int(get_jwt_identity())
    data = request.get_json(silent=True) or {}

    health = None
    if "health_points" in data:
        health = _safe_int_or_none(data.get("health_points"))
        if health is None:
            return jsonify({"message": "health_points must be an integer"}), 400

    pet = pets.update_pet(user_id, name=data.get("name"), health_points=health)
    return jsonify({"pet": pet.to_dict()}), 200


@pet_bp.route("/add-xp", methods=["POST"])
@jwt_required()
def add_xp():
    """
    Body: { "xp_amount": 30 }
    """
    user_id = int(get_jwt_identity())
    data = request.get_json(silent=True) or {}

    amount = _safe_int_or_none(data.get("xp_amount"))
    if amount is None:
        return jsonify({"message": "xp_amount is required"}), 400

    pet = pets.add_xp(user_id, amount)
    return jsonify({"pet": pet.to_dict()}), 200


@pet_bp.route("/resurrect", methods=["POST"])
@jwt_required()
def resurrect():
    user_id = int(get_jwt_identity())
    pet = pets.resurrect(user_id)
    return jsonify({"pet": pet.to_dict()}), 200


@pet_bp.route("/restart-journey", methods=["POST"])
@jwt_required()
def restart_journey():
    user_id = int(get_jwt_identity())
    current_app.logger.info(f"[pet/restart-journey] user_id={user_id}")
    pet = pets.handle_pet_restart(user_id)
    return jsonify({"pet": pet.to_dict()}), 201
