from extensions import db


class DoctorAvailableTime(db.Model):
    __tablename__ = "doctor_available_times"

    id = db.Column(db.Integer, primary_key=True)
    doctor_id = db.Column(db.Integer, db.ForeignKey("doctors.id", ondelete="CASCADE"), nullable=False)
    time_slot = db.Column(db.String(50), nullable=False)


class Doctor(db.Model):
    __tablename__ = "doctors"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    specialty = db.Column(db.String(50), nullable=False)
    email = db.Column(db.String(100), unique=True, nullable=False)
    password = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(10), nullable=False)

    slots = db.relationship(
        "DoctorAvailableTime",
        cascade="all, delete-orphan",
        lazy=True,
    )

    @property
    def available_times(self) -> list[str]:
        return sorted(s.time_slot for s in self.slots)

    @available_times.setter
    def available_times(self, values):
        # Replaced wholesale, never edited slot by slot.
        self.slots = [DoctorAvailableTime(time_slot=v) for v in sorted(set(values or []))]

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "specialty": self.specialty,
            "email": self.email,
            "phone": self.phone,
            "available_times": self.available_times,
        }
