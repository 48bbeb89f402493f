from flask import Blueprint, jsonify

from clinic.schemas import AdminLoginRequest
from clinic.routes.helpers import parse_body
from clinic.services.clinic_service import list_doctors, login_admin
from clinic.services.token_service import require_role


admin_bp = Blueprint("admin", __name__, url_prefix="/admin")


@admin_bp.route("/login", methods=["POST"])
def admin_login():
    body = parse_body(AdminLoginRequest)
    return jsonify(login_admin(body.username, body.password))


@admin_bp.route("/doctors", methods=["GET"])
@require_role("admin")
def admin_doctors():
    return jsonify({"doctors": [d.to_dict() for d in list_doctors()]})
