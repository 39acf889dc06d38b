from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional

from ..constants import EVENT_IMAGES, EventType
from ..models import Batch, Discount, Event

FLEXIBLE_DATE = "Flexible"
TO_BE_ANNOUNCED = "To be announced"
UNKNOWN_ORGANIZER = "Unknown Organizer"


def get_event_image(event_type: str) -> str:
    return EVENT_IMAGES.get(event_type, EVENT_IMAGES[EventType.REGULAR.value])


def map_event_for_display(row: Mapping[str, Any], now: Optional[datetime] = None) -> Event:
    """Build a view Event from a raw event row with optional embeds.

    Schedule fields come from the first batch. ``date`` is a stamp of the
    current day, not the batch's own date.
    """
    batches = [Batch.from_row(b) for b in row.get("batches") or []]
    discounts = [Discount.from_row(d) for d in row.get("discounts") or []]
    first_batch = batches[0] if batches else None

    if first_batch:
        date = (now or datetime.now()).strftime("%B %d, %Y")
        time = f"{first_batch.start_time[:5]} - {first_batch.end_time[:5]}"
        location = first_batch.schedule
    else:
        date, time, location = FLEXIBLE_DATE, TO_BE_ANNOUNCED, TO_BE_ANNOUNCED

    profile = row.get("profiles") or {}
    event_type = row.get("event_type") or ""

    return Event(
        id=row["id"],
        name=row.get("name") or "",
        description=row.get("description") or "",
        organizer_id=row.get("organizer_id") or "",
        organizer_name=profile.get("full_name") or UNKNOWN_ORGANIZER,
        event_type=event_type,
        price_type=row.get("price_type") or "",
        base_price=float(row.get("base_price") or 0),
        min_hours=row.get("min_hours"),
        min_weeks=row.get("min_weeks"),
        min_months=row.get("min_months"),
        created_at=row.get("created_at") or "",
        updated_at=row.get("updated_at") or "",
        batches=batches,
        discounts=discounts,
        category=event_type[:1].upper() + event_type[1:],
        date=date,
        time=time,
        location=location,
        capacity=first_batch.capacity if first_batch else 0,
        enrolled=first_batch.enrolled if first_batch else 0,
        image_url=get_event_image(event_type),
    )
