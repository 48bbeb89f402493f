from clinic.models.admin_db import Admin
from clinic.models.patient_db import Patient
from clinic.models.doctor_db import Doctor, DoctorAvailableTime
from clinic.models.appointments_db import Appointment, STATUS_SCHEDULED, STATUS_COMPLETED

__all__ = [
    "Admin",
    "Patient",
    "Doctor",
    "DoctorAvailableTime",
    "Appointment",
    "STATUS_SCHEDULED",
    "STATUS_COMPLETED",
]
