from __future__ import annotations

import calendar
import dataclasses
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional

from ..constants import EnrollmentStatus, EventType, PriceType
from ..logging_config import logger
from ..models import Enrollment, Event
from ..storage.backend import BackendClient
from ..utils.errors import NotFoundError, ValidationError
from ..utils.validators import is_valid_uuid
from .base import store_operation
from .mapper import map_event_for_display

EVENT_EMBED = {"profiles": {}, "batches": {}, "discounts": {}}
ENROLLMENT_EMBED = {"event": {"profiles": {}, "batches": {}}}

# Event columns the caller may set on update; creating also sets the organizer.
EDITABLE_FIELDS = (
    "name",
    "description",
    "event_type",
    "price_type",
    "base_price",
    "min_hours",
    "min_weeks",
    "min_months",
)
CREATE_FIELDS = EDITABLE_FIELDS + ("organizer_id",)
MINIMUM_FIELDS = ("min_hours", "min_weeks", "min_months")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def add_one_month(moment: datetime) -> datetime:
    """Same day next month, clamped to the month's last day."""
    year = moment.year + moment.month // 12
    month = moment.month % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def _require_user_id(user_id: str) -> None:
    if not is_valid_uuid(user_id):
        raise ValidationError("Invalid user ID format. Expected UUID.")


def _validate_event_fields(data: Mapping[str, Any], creating: bool) -> Dict[str, Any]:
    allowed = CREATE_FIELDS if creating else EDITABLE_FIELDS
    unknown = [key for key in data if key not in allowed]
    if unknown:
        raise ValidationError(f"Fields cannot be edited: {', '.join(sorted(unknown))}")
    values = dict(data)
    if creating:
        for required in ("name", "organizer_id", "event_type", "price_type", "base_price"):
            if values.get(required) in (None, ""):
                raise ValidationError(f"Field '{required}' is required.")
    if "name" in values:
        values["name"] = str(values["name"]).strip()
        if not values["name"]:
            raise ValidationError("Event name cannot be empty.")
    if "event_type" in values and values["event_type"] not in {t.value for t in EventType}:
        raise ValidationError("Unknown event type.")
    if "price_type" in values and values["price_type"] not in {t.value for t in PriceType}:
        raise ValidationError("Unknown price type.")
    if "base_price" in values:
        try:
            values["base_price"] = float(values["base_price"])
        except (TypeError, ValueError) as ex:
            raise ValidationError("Base price must be a number.") from ex
        if values["base_price"] < 0:
            raise ValidationError("Base price cannot be negative.")
    for key in MINIMUM_FIELDS:
        if values.get(key) is None:
            continue
        try:
            values[key] = int(values[key])
        except (TypeError, ValueError) as ex:
            raise ValidationError(f"{key} must be a whole number.") from ex
        if values[key] < 0:
            raise ValidationError(f"{key} cannot be negative.")
    return values


@dataclass
class EventState:
    events: List[Event] = field(default_factory=list)
    user_enrollments: List[Enrollment] = field(default_factory=list)
    is_loading: bool = False
    error: Optional[str] = None


class EventStore:
    """Catalog and enrollment state for one session.

    Every operation waits for the backend to confirm before touching
    ``state``.
    """

    def __init__(self, backend: BackendClient, clock: Callable[[], datetime] = _utcnow):
        self.backend = backend
        self.clock = clock
        self.state = EventState()

    def _map(self, row: Mapping[str, Any]) -> Event:
        return map_event_for_display(row, now=self.clock())

    async def _load_event_row(self, event_id: str) -> Dict[str, Any]:
        row = await self.backend.select("events", eq={"id": event_id}, embed=EVENT_EMBED, single=True)
        if not row:
            raise NotFoundError("Event not found")
        return row

    @store_operation("Failed to fetch events")
    async def fetch_events(self) -> List[Event]:
        logger.debug("Backend auth handle: %s", self.backend.auth_admin)
        rows = await self.backend.select("events", embed=EVENT_EMBED)
        events = [self._map(row) for row in rows]
        self.state.events = events
        logger.debug("Fetched %s events", len(events))
        return events

    @store_operation("Failed to fetch event")
    async def fetch_event_by_id(self, event_id: str) -> Event:
        return self._map(await self._load_event_row(event_id))

    @store_operation("Failed to fetch enrollments")
    async def fetch_user_enrollments(self, user_id: str) -> List[Enrollment]:
        _require_user_id(user_id)
        rows = await self.backend.select(
            "registrations",
            eq={"user_id": user_id},
            embed=ENROLLMENT_EMBED,
            order_by="created_at",
            ascending=False,
        )
        enrollments = [
            Enrollment.from_row(row, event=self._map(row["event"]) if row.get("event") else None)
            for row in rows
        ]
        self.state.user_enrollments = enrollments
        return enrollments

    @store_operation("Failed to enroll in event")
    async def enroll_in_event(self, user_id: str, event_id: str, batch_id: Optional[str] = None) -> Enrollment:
        _require_user_id(user_id)
        event_row = await self._load_event_row(event_id)
        if batch_id:
            batch = next((b for b in event_row.get("batches") or [] if b["id"] == batch_id), None)
            if batch is None:
                raise ValidationError("Batch does not belong to this event.")
            if int(batch.get("enrolled") or 0) >= int(batch.get("capacity") or 0):
                raise ValidationError("Batch is full")

        # Discounts are not applied to the charge.
        price = float(event_row.get("base_price") or 0)
        start = self.clock()
        row = await self.backend.insert(
            "registrations",
            {
                "user_id": user_id,
                "event_id": event_id,
                "batch_id": batch_id,
                "status": EnrollmentStatus.PENDING.value,
                "start_date": start.isoformat(),
                "end_date": add_one_month(start).isoformat(),
                "total_amount": price,
                "discount_applied": 0,
                "final_amount": price,
            },
        )

        if batch_id:
            await self.backend.rpc("increment_batch_enrollment", {"p_batch_id": batch_id})
            event_row = await self._load_event_row(event_id)

        enrollment = Enrollment.from_row(row, event=self._map(event_row))
        self.state.user_enrollments = self.state.user_enrollments + [enrollment]
        logger.info("User %s enrolled in event %s (batch=%s)", user_id, event_id, batch_id)
        return enrollment

    @store_operation("Failed to cancel enrollment")
    async def cancel_enrollment(self, enrollment_id: str) -> Optional[Enrollment]:
        rows = await self.backend.update(
            "registrations",
            {"status": EnrollmentStatus.CANCELLED.value},
            eq={"id": enrollment_id},
        )
        if not rows:
            raise NotFoundError("Enrollment not found")

        cancelled = None
        updated = []
        for enrollment in self.state.user_enrollments:
            if enrollment.id == enrollment_id:
                enrollment = dataclasses.replace(
                    enrollment,
                    status=EnrollmentStatus.CANCELLED.value,
                    updated_at=rows[0].get("updated_at") or enrollment.updated_at,
                )
                cancelled = enrollment
            updated.append(enrollment)
        self.state.user_enrollments = updated
        logger.info("Enrollment %s cancelled", enrollment_id)
        return cancelled

    @store_operation("Failed to create event")
    async def create_event(self, data: Mapping[str, Any]) -> Event:
        values = _validate_event_fields(data, creating=True)
        inserted = await self.backend.insert("events", values)
        event = self._map(await self._load_event_row(inserted["id"]))
        self.state.events = self.state.events + [event]
        logger.info("Event created id=%s name=%s", event.id, event.name)
        return event

    @store_operation("Failed to update event")
    async def update_event(self, event_id: str, data: Mapping[str, Any]) -> Event:
        values = _validate_event_fields(data, creating=False)
        if not values:
            raise ValidationError("Nothing to update.")
        rows = await self.backend.update("events", values, eq={"id": event_id})
        if not rows:
            raise NotFoundError("Event not found")
        event = self._map(await self._load_event_row(event_id))
        self.state.events = [event if e.id == event_id else e for e in self.state.events]
        logger.info("Event %s updated (%s)", event_id, ", ".join(sorted(values)))
        return event

    def organizer_events(self, organizer_id: str) -> List[Event]:
        return [e for e in self.state.events if e.organizer_id == organizer_id]
