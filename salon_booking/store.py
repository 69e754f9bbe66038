"""Appointment persistence.

Thin wrapper around SQLAlchemy. The booking_id primary key is the
uniqueness constraint that turns an identifier race into a
DuplicateBookingIdError instead of a silent duplicate.
"""
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from salon_booking.database_models import APPOINTMENT_FIELDS, Appointment, Base
from salon_booking.errors import BusinessRuleViolation, DuplicateBookingIdError, NotFoundError
from salon_booking.logging_config import get_logger

logger = get_logger(__name__)


def create_db_engine(database_url: str):
    """
    Create an engine for database_url.

    In-memory SQLite shares one connection across threads so every
    session sees the same database.
    """
    if database_url.startswith("sqlite") and ":memory:" in database_url:
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    if database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            pool_pre_ping=True,
        )
    return create_engine(database_url, pool_pre_ping=True)


class AppointmentStore:
    """
    Create/find/update appointment records.

    Records are returned as plain dicts so callers never hold
    session-bound ORM objects.
    """

    def __init__(self, database_url: str):
        """
        Initialize store with database connection.

        Args:
            database_url: SQLAlchemy connection string
        """
        self.engine = create_db_engine(database_url)
        Base.metadata.create_all(self.engine)
        self.SessionLocal = sessionmaker(bind=self.engine)

    def find_by_date_status(
        self,
        tenant_id: str,
        date: str,
        statuses: Iterable[str],
        exclude_booking_id: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """
        Appointments for tenant+date whose status is in statuses.

        Args:
            exclude_booking_id: Booking to leave out (the one being updated)
        """
        with self.SessionLocal() as db:
            query = db.query(Appointment).filter(
                Appointment.tenant_id == tenant_id,
                Appointment.date == date,
                Appointment.status.in_(list(statuses))
            )
            if exclude_booking_id:
                query = query.filter(Appointment.booking_id != exclude_booking_id)
            return [row.to_dict() for row in query.order_by(Appointment.time).all()]

    def insert(self, appointment: Dict[str, Any]) -> Dict[str, Any]:
        """
        Persist a new appointment.

        Raises:
            DuplicateBookingIdError: If booking_id already exists
        """
        row = Appointment(**{k: appointment.get(k) for k in APPOINTMENT_FIELDS})
        with self.SessionLocal() as db:
            db.add(row)
            try:
                db.commit()
            except IntegrityError as e:
                db.rollback()
                logger.warning("booking_id_collision", booking_id=row.booking_id)
                raise DuplicateBookingIdError(row.booking_id) from e
            return row.to_dict()

    def find_by_id(self, tenant_id: str, booking_id: str) -> Optional[Dict[str, Any]]:
        with self.SessionLocal() as db:
            row = db.query(Appointment).filter(
                Appointment.tenant_id == tenant_id,
                Appointment.booking_id == booking_id
            ).first()
            return row.to_dict() if row else None

    def update_fields(
        self,
        tenant_id: str,
        booking_id: str,
        fields: Dict[str, Any],
        require_active: bool = False
    ) -> Dict[str, Any]:
        """
        Apply a partial update and return the updated record.

        With require_active the UPDATE only matches a non-cancelled row,
        so a cancel committed by another writer is never overwritten.

        Raises:
            NotFoundError: If the appointment does not exist
            BusinessRuleViolation: If require_active and it is cancelled
            ValueError: If fields names an unknown column
        """
        unknown = set(fields) - set(APPOINTMENT_FIELDS)
        if unknown or "booking_id" in fields:
            raise ValueError(f"Cannot update fields: {sorted(unknown | ({'booking_id'} & set(fields)))}")

        with self.SessionLocal() as db:
            query = db.query(Appointment).filter(
                Appointment.tenant_id == tenant_id,
                Appointment.booking_id == booking_id
            )
            matched = query
            if require_active:
                matched = query.filter(Appointment.status != "cancelled")

            if matched.update(fields, synchronize_session=False) == 0:
                db.rollback()
                if query.first() is None:
                    raise NotFoundError(f"Booking not found: {booking_id}")
                raise BusinessRuleViolation("Cannot update a cancelled appointment")
            db.commit()
            return query.one().to_dict()

    def find_by_phone_since(
        self,
        tenant_id: str,
        phone_number: str,
        since_date: str
    ) -> List[Dict[str, Any]]:
        """Appointments for a phone dated on/after since_date, newest first."""
        with self.SessionLocal() as db:
            rows = db.query(Appointment).filter(
                Appointment.tenant_id == tenant_id,
                Appointment.phone_number == phone_number,
                Appointment.date >= since_date
            ).order_by(Appointment.date.desc(), Appointment.time.desc()).all()
            return [row.to_dict() for row in rows]

    def find_booking_ids_with_prefix(self, tenant_id: str, prefix: str) -> List[str]:
        """All booking IDs for tenant starting with prefix."""
        escaped = prefix.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        with self.SessionLocal() as db:
            rows = db.query(Appointment.booking_id).filter(
                Appointment.tenant_id == tenant_id,
                Appointment.booking_id.like(f"{escaped}%", escape="\\")
            ).all()
            return [row[0] for row in rows]

    def is_connected(self) -> bool:
        """Cheap connectivity probe for health checks."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError:
            return False

    def close(self) -> None:
        self.engine.dispose()
