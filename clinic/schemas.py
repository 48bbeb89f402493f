import re
from datetime import date, datetime, timedelta
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

SLOT_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)-([01]\d|2[0-3]):([0-5]\d)$")


def parse_slot(slot: str):
    """Split a one-hour slot "09:00-10:00" into (time(9, 0), time(10, 0)); raise ValueError otherwise."""
    if not slot or not SLOT_PATTERN.match(slot.strip()):
        raise ValueError("Slot must be in 'HH:MM-HH:MM' format.")
    start_text, end_text = slot.strip().split("-")
    start = datetime.strptime(start_text, "%H:%M").time()
    end = datetime.strptime(end_text, "%H:%M").time()
    if datetime.combine(date.min, end) - datetime.combine(date.min, start) != timedelta(hours=1):
        raise ValueError("Slot must span exactly one hour.")
    return start, end


def check_slots(slots):
    cleaned = [slot.strip() for slot in slots]
    for slot in cleaned:
        if not 1 <= len(slot) <= 50:
            raise ValueError("time slot must be non-empty and <=50 chars")
        parse_slot(slot)
    return cleaned


def parse_date(value: str):
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except (AttributeError, ValueError):
        raise ValueError("Date must be in format YYYY-MM-DD.")


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class AdminLoginRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class PersonBase(BaseModel):
    name: str = Field(..., min_length=3, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6)
    phone: str

    @field_validator("name")
    @classmethod
    def strip_name(cls, v):
        return v.strip()

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        if not re.fullmatch(r"\d{10}", v.strip()):
            raise ValueError("Phone number must be exactly 10 digits")
        return v.strip()


class PatientCreate(PersonBase):
    address: str = Field(..., max_length=255)


class DoctorCreate(PersonBase):
    specialty: str = Field(..., min_length=3, max_length=50)
    available_times: List[str] = Field(default_factory=list)

    @field_validator("available_times")
    @classmethod
    def validate_slots(cls, v):
        return check_slots(v)


class DoctorUpdate(BaseModel):
    """Partial update; omitted fields keep their stored values."""
    name: Optional[str] = Field(None, min_length=3, max_length=100)
    specialty: Optional[str] = Field(None, min_length=3, max_length=50)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=6)
    phone: Optional[str] = None
    available_times: Optional[List[str]] = None

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        if v is not None and not re.fullmatch(r"\d{10}", v.strip()):
            raise ValueError("Phone number must be exactly 10 digits")
        return v.strip() if v else v

    @field_validator("available_times")
    @classmethod
    def validate_slots(cls, v):
        return check_slots(v) if v is not None else v


class AvailabilityUpdate(BaseModel):
    available_times: List[str]

    @field_validator("available_times")
    @classmethod
    def validate_slots(cls, v):
        return check_slots(v)


class SlotRequest(BaseModel):
    date: str = Field(..., description="Appointment date in YYYY-MM-DD format")
    slot: str = Field(..., description="One of the doctor's slots, e.g. 09:00-10:00")

    @field_validator("date")
    @classmethod
    def validate_date(cls, v):
        parse_date(v)
        return v.strip()

    @field_validator("slot")
    @classmethod
    def validate_slot(cls, v):
        parse_slot(v)
        return v.strip()


class BookingRequest(SlotRequest):
    doctor_id: int


class RescheduleRequest(SlotRequest):
    pass


class PrescriptionCreate(BaseModel):
    appointment_id: int
    medication: str = Field(..., min_length=1, max_length=100)
    dosage: str = Field(..., min_length=1, max_length=50)
    doctor_notes: Optional[str] = Field(None, max_length=200)


class PrescriptionUpdate(BaseModel):
    medication: Optional[str] = Field(None, min_length=1, max_length=100)
    dosage: Optional[str] = Field(None, min_length=1, max_length=50)
    doctor_notes: Optional[str] = Field(None, max_length=200)
