"""SQLAlchemy database models for appointment persistence."""
from sqlalchemy import Column, Index, Integer, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()

# Columns exposed as plain dict keys by the store
APPOINTMENT_FIELDS = (
    "booking_id",
    "tenant_id",
    "customer_name",
    "phone_number",
    "service_id",
    "service_name",
    "service_duration",
    "date",
    "time",
    "end_time",
    "status",
    "notes",
    "created_at",
    "updated_at",
    "cancelled_at",
    "cancellation_reason",
)


class Appointment(Base):
    """Appointment record. Never deleted; cancellation flips status."""
    __tablename__ = "appointments"

    booking_id = Column(String(100), primary_key=True)
    tenant_id = Column(String(100), nullable=False)
    customer_name = Column(String(200), nullable=False)
    phone_number = Column(String(20), nullable=False, index=True)
    service_id = Column(String(50), nullable=False)
    service_name = Column(String(200), nullable=False)
    service_duration = Column(Integer, nullable=False)
    date = Column(String(10), nullable=False)  # YYYY-MM-DD
    time = Column(String(5), nullable=False)  # HH:MM
    end_time = Column(String(5), nullable=False)  # HH:MM
    status = Column(String(20), nullable=False, default="confirmed", index=True)
    notes = Column(Text, nullable=False, default="")
    created_at = Column(String(40), nullable=False)
    updated_at = Column(String(40), nullable=False)
    cancelled_at = Column(String(40), nullable=True)
    cancellation_reason = Column(Text, nullable=True)

    __table_args__ = (
        Index("ix_appointments_tenant_date", "tenant_id", "date"),
        Index("ix_appointments_date_time", "date", "time"),
    )

    def to_dict(self) -> dict:
        return {name: getattr(self, name) for name in APPOINTMENT_FIELDS}

    def __repr__(self):
        return f"<Appointment(booking_id={self.booking_id}, status={self.status})>"
