import logging

from flask import Blueprint, jsonify, redirect

from clinic.services.token_service import identify, validate_token


logger = logging.getLogger("clinic.dashboard")

dashboard_bp = Blueprint("dashboard", __name__)


@dashboard_bp.route("/", methods=["GET"])
def index():
    """Landing endpoint; failed dashboard logins are redirected here."""
    return jsonify({"status": "ok", "service": "clinic-portal"})


@dashboard_bp.route("/adminDashboard/<token>", methods=["GET"])
def admin_dashboard(token: str):
    """
    Clinic-wide overview: today's appointments and headline counts.
    Invalid tokens are sent back to the root page.
    """
    from clinic.services.appointment_service import admin_snapshot  # local import to avoid cycles

    errors = validate_token(token, "admin")
    if errors:
        logger.info(f"[admin_dashboard] token rejected: {errors}")
        return redirect("/", code=302)
    return jsonify(admin_snapshot())


@dashboard_bp.route("/doctorDashboard/<token>", methods=["GET"])
def doctor_dashboard(token: str):
    """
    A doctor's own calendar for today.
    """
    from clinic.services.appointment_service import doctor_snapshot  # local import to avoid cycles

    errors = validate_token(token, "doctor")
    if errors:
        logger.info(f"[doctor_dashboard] token rejected: {errors}")
        return redirect("/", code=302)
    doctor, _ = identify(token)
    return jsonify(doctor_snapshot(doctor))
