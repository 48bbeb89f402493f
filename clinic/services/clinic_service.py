import logging

from sqlalchemy.exc import IntegrityError
from werkzeug.security import check_password_hash, generate_password_hash

from extensions import db
from clinic.errors import AuthError, ConflictError, NotFoundError
from clinic.models import Admin, Doctor, Patient
from clinic.schemas import parse_slot
from clinic.services.redis_service import delete_prescriptions_for
from clinic.services.token_service import generate_token


logger = logging.getLogger("clinic.service")

INVALID_CREDENTIALS = "Invalid email or password"


def _commit(tag: str, conflict_message: str):
    """Commit the session; unique-key violations become a 409."""
    try:
        db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        logger.warning(f"[{tag}] integrity error: {e.orig}")
        raise ConflictError(conflict_message)
    except Exception as e:
        db.session.rollback()
        logger.exception(f"[{tag}] commit failed: {e}")
        raise


# -------------------------------
# 🔑 LOGIN
# -------------------------------

def login_admin(username: str, password: str) -> dict:
    admin = Admin.query.filter_by(username=username.strip()).first()
    if not admin or not check_password_hash(admin.password, password):
        logger.info(f"[login_admin] failed for username={username!r}")
        raise AuthError("Invalid username or password")
    return {"token": generate_token(admin.username, "admin"), "role": "admin"}


def login_doctor(email: str, password: str) -> dict:
    doctor = Doctor.query.filter_by(email=email.strip().lower()).first()
    if not doctor or not check_password_hash(doctor.password, password):
        logger.info(f"[login_doctor] failed for email={email!r}")
        raise AuthError(INVALID_CREDENTIALS)
    return {"token": generate_token(doctor.email, "doctor"), "role": "doctor"}


def login_patient(email: str, password: str) -> dict:
    patient = Patient.query.filter_by(email=email.strip().lower()).first()
    if not patient or not check_password_hash(patient.password, password):
        logger.info(f"[login_patient] failed for email={email!r}")
        raise AuthError(INVALID_CREDENTIALS)
    return {"token": generate_token(patient.email, "patient"), "role": "patient"}


def create_admin(username: str, password: str) -> Admin:
    admin = Admin(username=username.strip(), password=generate_password_hash(password))
    db.session.add(admin)
    _commit("create_admin", "Admin already exists")
    logger.info(f"[create_admin] created admin {admin.username}")
    return admin


# -------------------------------
# 👤 PATIENT HELPERS
# -------------------------------

def create_patient(data) -> Patient:
    """Sign up a new patient; email and phone must both be unused."""
    email = data.email.lower()
    if Patient.query.filter(
        (Patient.email == email) | (Patient.phone == data.phone)
    ).first():
        raise ConflictError("Patient with this email or phone already exists")

    patient = Patient(
        name=data.name.title(),
        email=email,
        password=generate_password_hash(data.password),
        phone=data.phone,
        address=data.address.strip(),
    )
    db.session.add(patient)
    _commit("create_patient", "Patient with this email or phone already exists")
    logger.info(f"[create_patient] patient_id={patient.id}")
    return patient


# -------------------------------
# 🩺 DOCTOR HELPERS
# -------------------------------

def get_doctor(doctor_id: int) -> Doctor:
    doctor = db.session.get(Doctor, doctor_id)
    if not doctor:
        raise NotFoundError("Doctor not found")
    return doctor


def list_doctors():
    return Doctor.query.order_by(Doctor.name.asc()).all()


def create_doctor(data) -> Doctor:
    email = data.email.lower()
    if Doctor.query.filter_by(email=email).first():
        raise ConflictError("Doctor with this email already exists")

    doctor = Doctor(
        name=data.name,
        specialty=data.specialty.strip(),
        email=email,
        password=generate_password_hash(data.password),
        phone=data.phone,
    )
    doctor.available_times = data.available_times
    db.session.add(doctor)
    _commit("create_doctor", "Doctor with this email already exists")
    logger.info(f"[create_doctor] doctor_id={doctor.id} slots={doctor.available_times}")
    return doctor


def update_doctor(doctor_id: int, data) -> Doctor:
    """Apply the fields present in `data`; the rest are left untouched."""
    doctor = get_doctor(doctor_id)
    changes = data.model_dump(exclude_unset=True)

    if "email" in changes and changes["email"]:
        email = changes["email"].lower()
        clash = Doctor.query.filter(Doctor.email == email, Doctor.id != doctor.id).first()
        if clash:
            raise ConflictError("Doctor with this email already exists")
        doctor.email = email
    if changes.get("name"):
        doctor.name = changes["name"].strip()
    if changes.get("specialty"):
        doctor.specialty = changes["specialty"].strip()
    if changes.get("phone"):
        doctor.phone = changes["phone"]
    if changes.get("password"):
        doctor.password = generate_password_hash(changes["password"])
    if changes.get("available_times") is not None:
        doctor.available_times = changes["available_times"]

    _commit("update_doctor", "Doctor with this email already exists")
    logger.info(f"[update_doctor] doctor_id={doctor.id} fields={sorted(changes)}")
    return doctor


def set_available_times(doctor: Doctor, slots) -> Doctor:
    doctor.available_times = slots
    _commit("set_available_times", "Could not update availability")
    logger.info(f"[set_available_times] doctor_id={doctor.id} slots={doctor.available_times}")
    return doctor


def delete_doctor(doctor_id: int) -> None:
    """Delete a doctor together with their appointments."""
    doctor = get_doctor(doctor_id)
    appointment_ids = [a.id for a in doctor.appointments]
    db.session.delete(doctor)
    _commit("delete_doctor", "Doctor could not be deleted")
    delete_prescriptions_for(appointment_ids)
    logger.info(f"[delete_doctor] doctor_id={doctor_id}")


def _in_period(slot: str, period: str) -> bool:
    start, _ = parse_slot(slot)
    return start.hour < 12 if period == "AM" else start.hour >= 12


def filter_doctors(name: str | None = None, specialty: str | None = None, time: str | None = None):
    """
    Doctor directory search.
    - name: case-insensitive substring
    - specialty: case-insensitive exact match
    - time: "AM" or "PM", matching doctors with at least one slot in that half of the day
    """
    query = Doctor.query
    if name:
        query = query.filter(Doctor.name.ilike(f"%{name.strip()}%"))
    if specialty:
        query = query.filter(db.func.lower(Doctor.specialty) == specialty.strip().lower())
    doctors = query.order_by(Doctor.name.asc()).all()

    period = (time or "").strip().upper()
    if period in ("AM", "PM"):
        doctors = [d for d in doctors if any(_in_period(s, period) for s in d.available_times)]
    return doctors
