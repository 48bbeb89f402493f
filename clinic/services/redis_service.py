import json
import logging
import os
import redis
from dataclasses import dataclass, asdict, field
from datetime import datetime
from typing import Optional, List

from extensions import db
from clinic.errors import ConflictError, NotFoundError, PermissionDenied
from clinic.models import Appointment, Doctor

logger = logging.getLogger("clinic.prescriptions")

# ✅ Redis connection setup (prescription document store)
def _make_client() -> redis.Redis:
    return redis.Redis(
        host=os.getenv("REDIS_HOST", "localhost"),
        port=int(os.getenv("REDIS_PORT", 6379)),
        db=0,
        decode_responses=True,
    )

r = _make_client()


# ===============================================================
# 💊 PRESCRIPTION DOCUMENTS
# ===============================================================
@dataclass
class Prescription:
    appointment_id: int
    patient_id: int
    doctor_id: int
    patient_name: str
    medication: str
    dosage: str
    doctor_notes: Optional[str] = None
    last_updated: str = field(default_factory=lambda: datetime.utcnow().isoformat())
    # Earlier versions, oldest first. Never rewritten, only appended to.
    history: List[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)

    def snapshot(self) -> dict:
        data = asdict(self)
        data.pop("history")
        return data


# ✅ Helpers for redis key formatting
def _key(appointment_id: int) -> str:
    return f"prescription:{appointment_id}"

def _patient_index_key(patient_id: int) -> str:
    return f"patient_prescriptions:{patient_id}"


def _load(appointment_id: int) -> Prescription | None:
    raw = r.get(_key(appointment_id))
    if not raw:
        return None
    try:
        return Prescription(**json.loads(raw))
    except (TypeError, ValueError) as e:
        logger.error(f"[load] corrupted prescription for appointment {appointment_id}: {e}")
        return None


def _store(p: Prescription) -> None:
    r.set(_key(p.appointment_id), json.dumps(p.to_dict()))
    r.sadd(_patient_index_key(p.patient_id), p.appointment_id)


def save_prescription(doctor: Doctor, data) -> Prescription:
    """Create the prescription for one of the doctor's appointments."""
    appt = db.session.get(Appointment, data.appointment_id)
    if not appt:
        raise NotFoundError("Appointment not found")
    if appt.doctor_id != doctor.id:
        raise PermissionDenied("Appointment belongs to another doctor")
    p = Prescription(
        appointment_id=appt.id,
        patient_id=appt.patient_id,
        doctor_id=doctor.id,
        patient_name=appt.patient.name,
        medication=data.medication.strip(),
        dosage=data.dosage.strip(),
        doctor_notes=data.doctor_notes,
    )
    # NX makes the existence check and the write one atomic step.
    if not r.set(_key(p.appointment_id), json.dumps(p.to_dict()), nx=True):
        raise ConflictError("Prescription already exists for this appointment")
    r.sadd(_patient_index_key(p.patient_id), p.appointment_id)
    logger.info(f"[save_prescription] appointment_id={appt.id} doctor_id={doctor.id}")
    return p


def update_prescription(doctor: Doctor, appointment_id: int, data) -> Prescription:
    """Apply changes, keeping the previous version in `history`."""
    p = _load(appointment_id)
    if p is None:
        raise NotFoundError("Prescription not found")
    if p.doctor_id != doctor.id:
        raise PermissionDenied("Prescription belongs to another doctor")

    changes = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}
    if not changes:
        return p

    p.history.append(p.snapshot())
    for name, value in changes.items():
        setattr(p, name, value.strip() if isinstance(value, str) else value)
    p.last_updated = datetime.utcnow().isoformat()
    _store(p)
    logger.info(f"[update_prescription] appointment_id={appointment_id} version={len(p.history) + 1}")
    return p


def get_prescription(appointment_id: int, user, role: str) -> Prescription:
    """Readable only by the prescribing doctor or the patient it was written for."""
    p = _load(appointment_id)
    if p is None:
        raise NotFoundError("Prescription not found")
    if role == "doctor" and p.doctor_id != user.id:
        raise PermissionDenied("Prescription belongs to another doctor")
    if role == "patient" and p.patient_id != user.id:
        raise PermissionDenied("Prescription belongs to another patient")
    return p


def list_patient_prescriptions(patient_id: int) -> List[Prescription]:
    items = []
    for appointment_id in r.smembers(_patient_index_key(patient_id)):
        p = _load(int(appointment_id))
        if p is not None:
            items.append(p)
    items.sort(key=lambda p: p.last_updated, reverse=True)
    return items


def delete_prescriptions_for(appointment_ids) -> None:
    """
    Drop documents whose appointments no longer exist.
    Runs after the database commit, so a Redis outage is logged, never raised.
    """
    for appointment_id in appointment_ids:
        try:
            p = _load(appointment_id)
            if p is None:
                continue
            r.delete(_key(appointment_id))
            r.srem(_patient_index_key(p.patient_id), appointment_id)
            logger.info(f"[delete_prescriptions_for] removed prescription for appointment {appointment_id}")
        except redis.RedisError as e:
            logger.exception(f"[delete_prescriptions_for] cleanup failed for appointment {appointment_id}: {e}")
