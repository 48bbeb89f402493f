from flask import Blueprint, g, jsonify, request

from clinic.schemas import LoginRequest, PatientCreate
from clinic.routes.helpers import parse_body
from clinic.services import appointment_service, clinic_service, redis_service
from clinic.services.token_service import require_role


patient_bp = Blueprint("patient", __name__, url_prefix="/patient")


@patient_bp.route("", methods=["POST"])
def patient_signup():
    body = parse_body(PatientCreate)
    patient = clinic_service.create_patient(body)
    return jsonify({"message": "Signup successful", "patient": patient.to_dict()}), 201


@patient_bp.route("/login", methods=["POST"])
def patient_login():
    body = parse_body(LoginRequest)
    return jsonify(clinic_service.login_patient(body.email, body.password))


@patient_bp.route("/me", methods=["GET"])
@require_role("patient")
def patient_me():
    return jsonify({"patient": g.current_user.to_dict()})


@patient_bp.route("/appointments", methods=["GET"])
@require_role("patient")
def patient_appointments():
    """?condition=past|future and ?name= (doctor name substring) are optional."""
    appointments = appointment_service.patient_appointments(
        g.current_user,
        condition=request.args.get("condition"),
        doctor_name=request.args.get("name"),
    )
    return jsonify({"appointments": [a.to_dict() for a in appointments]})


@patient_bp.route("/prescriptions", methods=["GET"])
@require_role("patient")
def patient_prescriptions():
    items = redis_service.list_patient_prescriptions(g.current_user.id)
    return jsonify({"prescriptions": [p.to_dict() for p in items]})
