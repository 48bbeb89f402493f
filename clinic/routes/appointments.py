from flask import Blueprint, g, jsonify

from clinic.schemas import BookingRequest, RescheduleRequest
from clinic.routes.helpers import parse_body
from clinic.services import appointment_service
from clinic.services.token_service import require_role


appointments_bp = Blueprint("appointments", __name__, url_prefix="/appointments")


@appointments_bp.route("", methods=["POST"])
@require_role("patient")
def book():
    """
    Book one of a doctor's declared slots for the calling patient.
    Body: {"doctor_id": 1, "date": "2030-01-15", "slot": "09:00-10:00"}
    """
    body = parse_body(BookingRequest)
    appt = appointment_service.book_appointment(g.current_user, body.doctor_id, body.date, body.slot)
    return jsonify({"message": "Appointment booked", "appointment": appt.to_dict()}), 201


@appointments_bp.route("/<int:appointment_id>", methods=["PUT"])
@require_role("patient")
def reschedule(appointment_id: int):
    body = parse_body(RescheduleRequest)
    appt = appointment_service.reschedule_appointment(g.current_user, appointment_id, body.date, body.slot)
    return jsonify({"message": "Appointment updated", "appointment": appt.to_dict()})


@appointments_bp.route("/<int:appointment_id>", methods=["DELETE"])
@require_role("patient")
def cancel(appointment_id: int):
    appointment_service.cancel_appointment(g.current_user, appointment_id)
    return jsonify({"message": "Appointment cancelled"})


@appointments_bp.route("/<int:appointment_id>/complete", methods=["PUT"])
@require_role("doctor")
def complete(appointment_id: int):
    appt = appointment_service.complete_appointment(g.current_user, appointment_id)
    return jsonify({"message": "Appointment completed", "appointment": appt.to_dict()})
