from flask import Blueprint, g, jsonify

from clinic.schemas import PrescriptionCreate, PrescriptionUpdate
from clinic.routes.helpers import parse_body
from clinic.services import redis_service
from clinic.services.token_service import require_role


prescription_bp = Blueprint("prescription", __name__, url_prefix="/prescription")


@prescription_bp.route("", methods=["POST"])
@require_role("doctor")
def prescription_create():
    body = parse_body(PrescriptionCreate)
    p = redis_service.save_prescription(g.current_user, body)
    return jsonify({"message": "Prescription saved", "prescription": p.to_dict()}), 201


@prescription_bp.route("/<int:appointment_id>", methods=["PUT"])
@require_role("doctor")
def prescription_update(appointment_id: int):
    body = parse_body(PrescriptionUpdate)
    p = redis_service.update_prescription(g.current_user, appointment_id, body)
    return jsonify({"message": "Prescription updated", "prescription": p.to_dict()})


@prescription_bp.route("/<int:appointment_id>", methods=["GET"])
@require_role("doctor", "patient")
def prescription_get(appointment_id: int):
    p = redis_service.get_prescription(appointment_id, g.current_user, g.current_role)
    return jsonify({"prescription": p.to_dict()})
