"""Booking operations: list slots, book, find, update, cancel.

Flow for writes:
    rules (validator) -> capacity (availability) -> ID (generator) -> store

Check-then-act gaps are closed in-process by a lock per tenant+date held
across the capacity check and the write. Identifier collisions that still
reach the store (e.g. a second process) are retried a bounded number of
times.
"""
import threading
import weakref
from contextlib import ExitStack, contextmanager
from datetime import timedelta
from typing import Any, Dict, List, Optional

from salon_booking.availability import AvailabilityEngine, Slot
from salon_booking.booking_ids import BookingIdGenerator
from salon_booking.clock import Clock, add_minutes
from salon_booking.config_manager import TenantConfigProvider
from salon_booking.errors import (
    BusinessRuleViolation,
    CapacityExceededError,
    ConflictError,
    DuplicateBookingIdError,
    NotFoundError,
    ValidationFailed,
)
from salon_booking.logging_config import get_logger
from salon_booking.phone import PhoneNormalizer
from salon_booking.settings import PHONE_LOOKUP_DAYS_BACK, Settings
from salon_booking.store import AppointmentStore
from salon_booking.tenant_config import ServiceConfig
from salon_booking.validator import BookingValidator, ValidationResult

logger = get_logger(__name__)


class SlotLocks:
    """
    One lock per (tenant_id, date).

    Locks live only while someone holds or waits on them, so the table
    does not grow with every date ever booked.
    """

    def __init__(self):
        self._locks: "weakref.WeakValueDictionary[tuple, threading.Lock]" = weakref.WeakValueDictionary()
        self._guard = threading.Lock()

    def __len__(self) -> int:
        return len(self._locks)

    def _lock_for(self, key: tuple) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, tenant_id: str, *dates: str):
        """Hold the locks for every given date, acquired in sorted order."""
        with ExitStack() as stack:
            for date in sorted(set(dates)):
                stack.enter_context(self._lock_for((tenant_id, date)))
            yield


class BookingService:
    """Entry point used by the HTTP and tool transports."""

    def __init__(
        self,
        config_provider: TenantConfigProvider,
        store: AppointmentStore,
        clock: Optional[Clock] = None,
        settings: Optional[Settings] = None,
        phone_normalizer: Optional[PhoneNormalizer] = None
    ):
        self.settings = settings or Settings()
        self.config_provider = config_provider
        self.store = store
        self.clock = clock or Clock(self.settings.timezone)
        self.validator = BookingValidator(config_provider, self.clock, phone_normalizer)
        self.availability = AvailabilityEngine(config_provider, store)
        self.id_generator = BookingIdGenerator(store)
        self.locks = SlotLocks()

    def get_available_slots(
        self,
        tenant_id: str,
        date: str,
        service_id: str
    ) -> Dict[str, Any]:
        """
        Free slots for a date and service.

        Returns:
            {"date", "service", "slots": [Slot, ...]}

        Raises:
            ValidationFailed / BusinessRuleViolation: date or service invalid
        """
        result = ValidationResult()
        result.add(self.validator.validate_date(tenant_id, date))
        service_check = self.validator.validate_service(tenant_id, service_id)
        result.add(service_check)
        result.raise_for_errors()

        service = service_check.service
        slots: List[Slot] = self.availability.compute_available_slots(
            tenant_id, date, service.duration_minutes
        )
        return {"date": date, "service": service, "slots": slots}

    def book_appointment(
        self,
        tenant_id: str,
        customer_name: str,
        phone_number: str,
        service_id: str,
        date: str,
        time: str,
        notes: Optional[str] = ""
    ) -> Dict[str, Any]:
        """
        Create a confirmed appointment.

        Returns:
            Stored appointment record

        Raises:
            ValidationFailed / BusinessRuleViolation: with every reason
            CapacityExceededError: no stylist free for the window
            ConflictError: identifier collisions exhausted every retry
        """
        validation = self.validator.validate_booking_input(
            tenant_id, customer_name, phone_number, service_id, date, time
        )
        validation.raise_for_errors()

        service: ServiceConfig = validation.data["service"]

        with self.locks.hold(tenant_id, date):
            slot = self.availability.check_slot_availability(
                tenant_id, date, time, service.duration_minutes
            )
            if not slot.available:
                logger.info(
                    "booking_rejected_capacity",
                    tenant_id=tenant_id, date=date, time=time
                )
                raise CapacityExceededError(slot.reason)

            now = self.clock.timestamp()
            appointment = {
                "tenant_id": tenant_id,
                "customer_name": customer_name.strip(),
                "phone_number": validation.data["phone_number"],
                "service_id": service.id,
                "service_name": service.name,
                "service_duration": service.duration_minutes,
                "date": date,
                "time": time,
                "end_time": add_minutes(time, service.duration_minutes),
                "status": "confirmed",
                "notes": (notes or "").strip(),
                "created_at": now,
                "updated_at": now,
                "cancelled_at": None,
                "cancellation_reason": None,
            }
            saved = self._insert_with_new_id(tenant_id, date, appointment)

        logger.info(
            "appointment_booked",
            tenant_id=tenant_id,
            booking_id=saved["booking_id"],
            date=date,
            time=time,
            service_id=service.id
        )
        return saved

    def _insert_with_new_id(
        self,
        tenant_id: str,
        date: str,
        appointment: Dict[str, Any]
    ) -> Dict[str, Any]:
        attempts = max(1, self.settings.booking_id_max_retries)
        for attempt in range(1, attempts + 1):
            appointment["booking_id"] = self.id_generator.next_booking_id(tenant_id, date)
            try:
                return self.store.insert(appointment)
            except DuplicateBookingIdError as e:
                logger.warning(
                    "booking_id_retry",
                    tenant_id=tenant_id,
                    booking_id=e.booking_id,
                    attempt=attempt
                )
        raise ConflictError("Could not allocate a booking ID. Please try again")

    def find_appointment(
        self,
        tenant_id: str,
        booking_id: Optional[str] = None,
        phone_number: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """
        Look up by booking ID, or by phone (last 7 days onward, newest first).

        Raises:
            ValidationFailed: neither key given, or a key is malformed
            NotFoundError: nothing matches
        """
        if booking_id:
            return [self._get_existing(tenant_id, booking_id)]

        if phone_number:
            phone = self.validator.validate_phone(tenant_id, phone_number)
            if not phone.valid:
                raise ValidationFailed(phone.error)

            since = (self.clock.today() - timedelta(days=PHONE_LOOKUP_DAYS_BACK)).isoformat()
            appointments = self.store.find_by_phone_since(tenant_id, phone.formatted, since)
            if not appointments:
                raise NotFoundError("No appointments found for this phone number")
            return appointments

        raise ValidationFailed("Provide a booking ID or a phone number")

    def _get_existing(self, tenant_id: str, booking_id: str) -> Dict[str, Any]:
        check = self.validator.validate_booking_id(booking_id)
        if not check.valid:
            raise ValidationFailed(check.error)

        appointment = self.store.find_by_id(tenant_id, booking_id)
        if appointment is None:
            raise NotFoundError(f"Booking not found: {booking_id}")
        return appointment

    def update_appointment(
        self,
        tenant_id: str,
        booking_id: str,
        new_date: Optional[str] = None,
        new_time: Optional[str] = None,
        new_service_id: Optional[str] = None,
        new_notes: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Change date, time, service and/or notes.

        When date, time or service changes, the new values are re-validated
        and capacity is re-checked without counting this appointment.

        Raises:
            NotFoundError, BusinessRuleViolation (cancelled appointment),
            ValidationFailed / BusinessRuleViolation, CapacityExceededError
        """
        if new_date is None and new_time is None and new_service_id is None and new_notes is None:
            raise ValidationFailed("Nothing to update")

        appointment = self._get_existing(tenant_id, booking_id)
        if appointment["status"] == "cancelled":
            raise BusinessRuleViolation("Cannot update a cancelled appointment")

        target_date = new_date or appointment["date"]
        target_time = new_time or appointment["time"]
        duration = appointment["service_duration"]
        updates: Dict[str, Any] = {}
        result = ValidationResult()

        if new_date or new_time:
            date_check = self.validator.validate_date(tenant_id, target_date)
            if result.add(date_check):
                result.add(self.validator.validate_time(tenant_id, target_time, date_check.day_name))

        if new_service_id:
            service_check = self.validator.validate_service(tenant_id, new_service_id)
            if result.add(service_check):
                service = service_check.service
                duration = service.duration_minutes
                updates["service_id"] = service.id
                updates["service_name"] = service.name
                updates["service_duration"] = service.duration_minutes

        result.raise_for_errors()

        if new_date:
            updates["date"] = new_date
        if new_time:
            updates["time"] = new_time
        if new_notes is not None:
            updates["notes"] = new_notes.strip()

        schedule_changed = bool(new_date or new_time or new_service_id)

        with self.locks.hold(tenant_id, appointment["date"], target_date):
            # Re-read under the lock so a cancel or move that landed meanwhile wins
            current = self._get_existing(tenant_id, booking_id)
            if current["status"] == "cancelled":
                raise BusinessRuleViolation("Cannot update a cancelled appointment")
            if any(current[key] != appointment[key] for key in ("date", "time", "service_id")):
                raise ConflictError("Appointment changed while updating. Please try again")

            if schedule_changed:
                slot = self.availability.check_slot_availability(
                    tenant_id, target_date, target_time, duration,
                    exclude_booking_id=booking_id
                )
                if not slot.available:
                    raise CapacityExceededError(slot.reason)
                updates["end_time"] = add_minutes(target_time, duration)

            updates["updated_at"] = self.clock.timestamp()
            updated = self.store.update_fields(tenant_id, booking_id, updates, require_active=True)

        logger.info(
            "appointment_updated",
            tenant_id=tenant_id,
            booking_id=booking_id,
            fields=sorted(k for k in updates if k != "updated_at")
        )
        return updated

    def cancel_appointment(
        self,
        tenant_id: str,
        booking_id: str,
        cancellation_reason: Optional[str] = ""
    ) -> Dict[str, Any]:
        """
        Cancel (never delete) an appointment under the notice policy.

        Raises:
            NotFoundError, BusinessRuleViolation (already cancelled),
            CancellationNotAllowed (past or insufficient notice)
        """
        appointment = self._get_existing(tenant_id, booking_id)

        with self.locks.hold(tenant_id, appointment["date"]):
            # Re-read under the lock so two cancels cannot both succeed
            appointment = self._get_existing(tenant_id, booking_id)
            if appointment["status"] == "cancelled":
                raise BusinessRuleViolation("This appointment is already cancelled")

            self.validator.check_cancellation_notice(tenant_id, appointment)

            now = self.clock.timestamp()
            cancelled = self.store.update_fields(tenant_id, booking_id, {
                "status": "cancelled",
                "cancelled_at": now,
                "cancellation_reason": (cancellation_reason or "").strip(),
                "updated_at": now,
            })

        logger.info("appointment_cancelled", tenant_id=tenant_id, booking_id=booking_id)
        return cancelled
