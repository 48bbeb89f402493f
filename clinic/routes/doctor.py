from flask import Blueprint, g, jsonify, request

from clinic.schemas import AvailabilityUpdate, DoctorCreate, DoctorUpdate, LoginRequest
from clinic.routes.helpers import parse_body
from clinic.services import appointment_service, clinic_service
from clinic.services.token_service import require_role


doctor_bp = Blueprint("doctor", __name__, url_prefix="/doctor")


@doctor_bp.route("", methods=["GET"])
def doctors_list():
    """
    Public doctor directory.
    Optional filters: name (substring), specialty, time ("AM"/"PM").
    """
    doctors = clinic_service.filter_doctors(
        name=request.args.get("name"),
        specialty=request.args.get("specialty"),
        time=request.args.get("time"),
    )
    return jsonify({"doctors": [d.to_dict() for d in doctors]})


@doctor_bp.route("/<int:doctor_id>", methods=["GET"])
def doctor_detail(doctor_id: int):
    return jsonify({"doctor": clinic_service.get_doctor(doctor_id).to_dict()})


@doctor_bp.route("/<int:doctor_id>/availability", methods=["GET"])
def doctor_availability(doctor_id: int):
    date = (request.args.get("date") or "").strip()
    if not date:
        return jsonify({"error": "date is required"}), 400
    slots = appointment_service.get_doctor_availability(doctor_id, date)
    return jsonify({"doctor_id": doctor_id, "date": date, "available_times": slots})


@doctor_bp.route("", methods=["POST"])
@require_role("admin")
def doctors_create():
    body = parse_body(DoctorCreate)
    doctor = clinic_service.create_doctor(body)
    return jsonify({"message": "Doctor added", "doctor": doctor.to_dict()}), 201


@doctor_bp.route("/<int:doctor_id>", methods=["PUT"])
@require_role("admin")
def doctors_update(doctor_id: int):
    body = parse_body(DoctorUpdate)
    doctor = clinic_service.update_doctor(doctor_id, body)
    return jsonify({"message": "Doctor updated", "doctor": doctor.to_dict()})


@doctor_bp.route("/<int:doctor_id>", methods=["DELETE"])
@require_role("admin")
def doctors_delete(doctor_id: int):
    clinic_service.delete_doctor(doctor_id)
    return jsonify({"message": "Doctor deleted"})


@doctor_bp.route("/login", methods=["POST"])
def doctor_login():
    body = parse_body(LoginRequest)
    return jsonify(clinic_service.login_doctor(body.email, body.password))


@doctor_bp.route("/me", methods=["GET"])
@require_role("doctor")
def doctor_me():
    return jsonify({"doctor": g.current_user.to_dict()})


@doctor_bp.route("/me/availability", methods=["PUT"])
@require_role("doctor")
def doctor_set_availability():
    """Replace the calling doctor's declared slots wholesale."""
    body = parse_body(AvailabilityUpdate)
    doctor = clinic_service.set_available_times(g.current_user, body.available_times)
    return jsonify({"available_times": doctor.available_times})


@doctor_bp.route("/appointments", methods=["GET"])
@require_role("doctor")
def doctor_appointments():
    """The calling doctor's appointments for ?date= (default today), filtered by ?name=."""
    appointments = appointment_service.doctor_appointments(
        g.current_user,
        date=request.args.get("date"),
        patient_name=request.args.get("name"),
    )
    return jsonify({"appointments": [a.to_dict() for a in appointments]})
