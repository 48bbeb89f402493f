from datetime import datetime, timedelta
import logging

import pytz
from flask import current_app
from sqlalchemy.exc import IntegrityError

from extensions import db
from clinic.errors import (
    NotFoundError,
    PermissionDenied,
    SlotConflictError,
    SlotUnavailableError,
    ValidationFailed,
)
from clinic.models import (
    Appointment,
    Doctor,
    Patient,
    STATUS_COMPLETED,
    STATUS_SCHEDULED,
)
from clinic.schemas import parse_date, parse_slot
from clinic.services.redis_service import delete_prescriptions_for


logger = logging.getLogger("clinic.booking")

CONDITIONS = {"past": STATUS_COMPLETED, "future": STATUS_SCHEDULED}


def clinic_now() -> datetime:
    """Current wall-clock time in the clinic timezone, as a naive datetime."""
    try:
        tz = pytz.timezone(current_app.config["CLINIC_TIMEZONE"])
    except pytz.UnknownTimeZoneError:
        logger.warning("[clinic_now] unknown CLINIC_TIMEZONE, falling back to UTC")
        tz = pytz.UTC
    return datetime.now(tz).replace(tzinfo=None)


def _slot_start(date: str, slot: str) -> datetime:
    try:
        day = parse_date(date)
        start, _ = parse_slot(slot)
    except ValueError as e:
        raise ValidationFailed(str(e))
    return datetime.combine(day, start)


def _on_day(day):
    """Filter clauses selecting appointments that start on `day`."""
    start = datetime.combine(day, datetime.min.time())
    return (
        Appointment.appointment_time >= start,
        Appointment.appointment_time < start + timedelta(days=1),
    )


def _load_doctor(doctor_id: int) -> Doctor:
    doctor = db.session.get(Doctor, doctor_id)
    if not doctor:
        raise NotFoundError("Doctor not found")
    return doctor


def _check_slot(doctor: Doctor, date: str, slot: str, exclude_id: int | None = None) -> datetime:
    """
    Validate (doctor, date, slot) and return the appointment start time.
    Raises if the slot was never declared, is in the past, or is already taken.
    """
    start = _slot_start(date, slot)

    if slot not in doctor.available_times:
        logger.info(f"[check_slot] doctor_id={doctor.id} has no slot {slot!r}")
        raise SlotUnavailableError("Selected slot is not in the doctor's available times")

    if start <= clinic_now():
        raise ValidationFailed("Appointment time must be in the future")

    query = Appointment.query.filter(
        Appointment.doctor_id == doctor.id,
        Appointment.appointment_time == start,
    )
    if exclude_id is not None:
        query = query.filter(Appointment.id != exclude_id)
    if query.first():
        logger.info(f"[check_slot] doctor_id={doctor.id} slot {slot} on {date} already booked")
        raise SlotConflictError("Slot already booked for this date")

    return start


def _commit_booking(tag: str):
    try:
        db.session.commit()
    except IntegrityError as e:
        # Lost a race with a concurrent booking of the same slot.
        db.session.rollback()
        logger.warning(f"[{tag}] unique constraint rejected booking: {e.orig}")
        raise SlotConflictError("Slot already booked for this date")
    except Exception as e:
        db.session.rollback()
        logger.exception(f"[{tag}] commit failed: {e}")
        raise


def _owned_appointment(appointment_id: int, *, patient: Patient | None = None, doctor: Doctor | None = None) -> Appointment:
    appt = db.session.get(Appointment, appointment_id)
    if not appt:
        raise NotFoundError("Appointment not found")
    if patient is not None and appt.patient_id != patient.id:
        raise PermissionDenied("Appointment belongs to another patient")
    if doctor is not None and appt.doctor_id != doctor.id:
        raise PermissionDenied("Appointment belongs to another doctor")
    return appt


# -------------------------------
# 📅 BOOKING
# -------------------------------

def book_appointment(patient: Patient, doctor_id: int, date: str, slot: str) -> Appointment:
    """Book `slot` on `date` with the doctor for the calling patient."""
    doctor = _load_doctor(doctor_id)
    start = _check_slot(doctor, date, slot)

    appt = Appointment(
        doctor_id=doctor.id,
        patient_id=patient.id,
        appointment_time=start,
        status=STATUS_SCHEDULED,
    )
    db.session.add(appt)
    _commit_booking("book_appointment")
    logger.info(
        f"[book_appointment] appointment_id={appt.id} doctor_id={doctor.id} "
        f"patient_id={patient.id} at {start.isoformat()}"
    )
    return appt


def reschedule_appointment(patient: Patient, appointment_id: int, date: str, slot: str) -> Appointment:
    appt = _owned_appointment(appointment_id, patient=patient)
    if appt.status != STATUS_SCHEDULED:
        raise ValidationFailed("Only scheduled appointments can be rescheduled")

    start = _check_slot(appt.doctor, date, slot, exclude_id=appt.id)
    appt.appointment_time = start
    _commit_booking("reschedule_appointment")
    logger.info(f"[reschedule_appointment] appointment_id={appt.id} moved to {start.isoformat()}")
    return appt


def cancel_appointment(patient: Patient, appointment_id: int) -> None:
    appt = _owned_appointment(appointment_id, patient=patient)
    if appt.status != STATUS_SCHEDULED:
        raise ValidationFailed("Only scheduled appointments can be cancelled")

    db.session.delete(appt)
    _commit_booking("cancel_appointment")
    delete_prescriptions_for([appointment_id])
    logger.info(f"[cancel_appointment] appointment_id={appointment_id} cancelled")


def complete_appointment(doctor: Doctor, appointment_id: int) -> Appointment:
    appt = _owned_appointment(appointment_id, doctor=doctor)
    appt.status = STATUS_COMPLETED
    _commit_booking("complete_appointment")
    logger.info(f"[complete_appointment] appointment_id={appt.id} completed")
    return appt


def get_booked_slots(doctor_id: int, date: str) -> list[str]:
    """Return all booked slots for a doctor on a given date."""
    try:
        day = parse_date(date)
    except ValueError as e:
        raise ValidationFailed(str(e))

    appointments = Appointment.query.filter(
        Appointment.doctor_id == doctor_id,
        *_on_day(day),
    ).all()
    return [a.slot for a in appointments]


def get_doctor_availability(doctor_id: int, date: str) -> list[str]:
    """Declared slots minus those already booked on `date`."""
    doctor = _load_doctor(doctor_id)
    booked_starts = {b.split("-")[0] for b in get_booked_slots(doctor.id, date)}
    return [s for s in doctor.available_times if s.split("-")[0] not in booked_starts]


# -------------------------------
# 📋 DASHBOARD QUERIES
# -------------------------------

def doctor_appointments(doctor: Doctor, date: str | None = None, patient_name: str | None = None):
    """A doctor's appointments for one day (default: today), optionally filtered by patient name."""
    day = date or clinic_now().strftime("%Y-%m-%d")
    try:
        parsed = parse_date(day)
    except ValueError as e:
        raise ValidationFailed(str(e))

    query = (
        Appointment.query
        .join(Patient, Appointment.patient_id == Patient.id)
        .filter(Appointment.doctor_id == doctor.id)
        .filter(*_on_day(parsed))
    )
    # The dashboard sends the literal "null" when the search box is empty.
    if patient_name and patient_name.strip() and patient_name.strip().lower() != "null":
        query = query.filter(Patient.name.ilike(f"%{patient_name.strip()}%"))

    return query.order_by(Appointment.appointment_time.asc()).all()


def patient_appointments(patient: Patient, condition: str | None = None, doctor_name: str | None = None):
    """A patient's appointments; condition "past" = completed, "future" = scheduled."""
    query = (
        Appointment.query
        .join(Doctor, Appointment.doctor_id == Doctor.id)
        .filter(Appointment.patient_id == patient.id)
    )
    if condition:
        key = condition.strip().lower()
        if key not in CONDITIONS:
            raise ValidationFailed("condition must be 'past' or 'future'")
        query = query.filter(Appointment.status == CONDITIONS[key])
    if doctor_name and doctor_name.strip() and doctor_name.strip().lower() != "null":
        query = query.filter(Doctor.name.ilike(f"%{doctor_name.strip()}%"))

    return query.order_by(Appointment.appointment_time.asc()).all()


def _snapshot(appointments_query):
    now = clinic_now()
    todays = (
        appointments_query
        .filter(*_on_day(now.date()))
        .order_by(Appointment.appointment_time.asc())
        .all()
    )
    status_counts = {STATUS_SCHEDULED: 0, STATUS_COMPLETED: 0}
    for appt in todays:
        status_counts[appt.status] = status_counts.get(appt.status, 0) + 1

    return {
        "today_appointments": [a.to_dict() for a in todays],
        "stats": {
            "today_total": len(todays),
            "today_scheduled": status_counts[STATUS_SCHEDULED],
            "today_completed": status_counts[STATUS_COMPLETED],
            "upcoming_total": appointments_query.filter(
                Appointment.appointment_time > now,
                Appointment.status == STATUS_SCHEDULED,
            ).count(),
            "today_label": now.strftime("%A, %b %d"),
            "as_of_human": now.strftime("%b %d, %Y %I:%M %p"),
            "timezone": current_app.config["CLINIC_TIMEZONE"],
        },
    }


def admin_snapshot() -> dict:
    """Clinic-wide overview for the admin dashboard."""
    snapshot = _snapshot(Appointment.query)
    snapshot["stats"]["total_doctors"] = Doctor.query.count()
    snapshot["stats"]["total_patients"] = Patient.query.count()
    return snapshot


def doctor_snapshot(doctor: Doctor) -> dict:
    snapshot = _snapshot(Appointment.query.filter(Appointment.doctor_id == doctor.id))
    snapshot["doctor"] = doctor.to_dict()
    return snapshot
