from datetime import timedelta
from extensions import db

STATUS_SCHEDULED = 0
STATUS_COMPLETED = 1

class Appointment(db.Model):
    __tablename__ = "appointments"

    id = db.Column(db.Integer, primary_key=True)
    doctor_id = db.Column(db.Integer, db.ForeignKey('doctors.id'), nullable=False)
    patient_id = db.Column(db.Integer, db.ForeignKey('patients.id'), nullable=False)
    appointment_time = db.Column(db.DateTime, nullable=False)
    status = db.Column(db.Integer, nullable=False, default=STATUS_SCHEDULED)

    # One doctor, one start time: two bookings of the same slot cannot both commit.
    __table_args__ = (
        db.UniqueConstraint("doctor_id", "appointment_time", name="uq_doctor_appointment_time"),
    )

    doctor = db.relationship('Doctor', backref=db.backref('appointments', lazy=True, cascade="all, delete"))
    patient = db.relationship('Patient', backref=db.backref('appointments', lazy=True, cascade="all, delete"))

    @property
    def end_time(self):
        """Appointments last one hour."""
        if self.appointment_time is None:
            return None
        return self.appointment_time + timedelta(hours=1)

    @property
    def appointment_date(self):
        return self.appointment_time.date() if self.appointment_time else None

    @property
    def appointment_time_only(self):
        return self.appointment_time.time() if self.appointment_time else None

    @property
    def duration_minutes(self) -> int:
        return int((self.end_time - self.appointment_time).total_seconds() // 60)

    @property
    def slot(self) -> str:
        return f"{self.appointment_time:%H:%M}-{self.end_time:%H:%M}"

    def to_dict(self):
        patient = self.patient
        doctor = self.doctor
        return {
            "id": self.id,
            "doctor_id": self.doctor_id,
            "doctor_name": getattr(doctor, "name", None),
            "doctor_specialty": getattr(doctor, "specialty", None),
            "patient_id": self.patient_id,
            "patient_name": getattr(patient, "name", None),
            "patient_email": getattr(patient, "email", None),
            "patient_phone": getattr(patient, "phone", None),
            "appointment_time": self.appointment_time.isoformat(),
            "end_time": self.end_time.isoformat(),
            "date": self.appointment_date.isoformat(),
            "slot": self.slot,
            "status": self.status,
        }
