"""Demo data: seeded users, notifications, attendance and catalog rows."""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import List

from ..constants import Role
from ..models import Attendance, Notification, User
from .backend import BackendClient

logger = logging.getLogger(__name__)

ALICE_ID = "3f6c1a52-8d4e-4b7a-9c21-5e8f0a1b2c3d"
OLIVIA_ID = "7b2e9d10-4c3a-4f8e-a1b5-2d6c8e0f9a47"
ADMIN_ID = "c9d8e7f6-a5b4-4c3d-8e2f-1a0b9c8d7e6f"

YOGA_EVENT_ID = "5d1f0b8e-2a3c-4e6f-9b7d-0c1e2f3a4b5c"
CODING_EVENT_ID = "8a9b0c1d-2e3f-4a5b-8c6d-7e8f9a0b1c2d"
SUMMER_EVENT_ID = "1c2d3e4f-5a6b-4c7d-9e8f-0a1b2c3d4e5f"

YOGA_MORNING_BATCH_ID = "2b3c4d5e-6f70-4182-a3b4-c5d6e7f8a9b0"
YOGA_EVENING_BATCH_ID = "9f8e7d6c-5b4a-4392-8170-6f5e4d3c2b1a"
CODING_BATCH_ID = "4e5f6a7b-8c9d-4e0f-b1a2-b3c4d5e6f7a8"

DEMO_USERS: List[User] = [
    User(id=ALICE_ID, name="Alice Walker", email="alice@example.com", role=Role.USER, join_date="2025-01-15"),
    User(id=OLIVIA_ID, name="Olivia Grant", email="olivia@example.com", role=Role.ORGANIZER, join_date="2024-11-02"),
    User(id=ADMIN_ID, name="Sam Admin", email="admin@example.com", role=Role.ADMIN, join_date="2024-09-20"),
]

DEMO_NOTIFICATIONS: List[Notification] = [
    Notification(
        id="n1",
        user_id=ALICE_ID,
        title="Enrollment confirmed",
        message="You are enrolled in Morning Yoga Flow.",
        read=False,
        created_at="2025-06-10T09:00:00+00:00",
        link=f"/events/{YOGA_EVENT_ID}",
    ),
    Notification(
        id="n2",
        user_id=ALICE_ID,
        title="Schedule change",
        message="Tuesday's session starts 30 minutes later.",
        read=False,
        created_at="2025-06-12T18:30:00+00:00",
    ),
    Notification(
        id="n3",
        user_id=ALICE_ID,
        title="Welcome to EventHub",
        message="Browse events and enroll in a batch that suits you.",
        read=True,
        created_at="2025-01-15T12:00:00+00:00",
    ),
    Notification(
        id="n4",
        user_id=OLIVIA_ID,
        title="New enrollment",
        message="A new participant joined Python for Data Work.",
        read=False,
        created_at="2025-06-11T08:15:00+00:00",
    ),
]

DEMO_ATTENDANCE: List[Attendance] = [
    Attendance(
        id="1",
        user_id=ALICE_ID,
        event_id=YOGA_EVENT_ID,
        batch_id=YOGA_MORNING_BATCH_ID,
        date="2025-06-15",
        status="present",
    ),
    Attendance(
        id="2",
        user_id=ALICE_ID,
        event_id=YOGA_EVENT_ID,
        batch_id=YOGA_MORNING_BATCH_ID,
        date="2025-06-16",
        status="late",
        notes="Arrived 15 minutes late",
    ),
]


@dataclass
class SeedData:
    """Per-process copies of the demo datasets used by the local stores."""

    users: List[User] = field(default_factory=lambda: copy.deepcopy(DEMO_USERS))
    notifications: List[Notification] = field(default_factory=lambda: copy.deepcopy(DEMO_NOTIFICATIONS))
    attendance: List[Attendance] = field(default_factory=lambda: copy.deepcopy(DEMO_ATTENDANCE))


async def seed_demo_catalog(backend: BackendClient) -> bool:
    """Insert demo profiles and events unless the catalog already has events."""
    existing = await backend.select("events")
    if existing:
        logger.debug("Catalog already has %s events; skipping demo seed", len(existing))
        return False

    for user in DEMO_USERS:
        if await backend.select("profiles", eq={"id": user.id}, single=True) is None:
            await backend.insert(
                "profiles",
                {"id": user.id, "full_name": user.name, "email": user.email, "role": user.role.value},
            )

    await backend.insert(
        "events",
        {
            "id": YOGA_EVENT_ID,
            "name": "Morning Yoga Flow",
            "description": "Gentle yoga sessions for all levels.",
            "organizer_id": OLIVIA_ID,
            "event_type": "regular",
            "price_type": "monthly",
            "base_price": 45.0,
            "min_months": 1,
        },
    )
    await backend.insert(
        "batches",
        {
            "id": YOGA_MORNING_BATCH_ID,
            "event_id": YOGA_EVENT_ID,
            "name": "Morning batch",
            "schedule": "Community Hall, Room 2",
            "start_time": "07:00:00",
            "end_time": "08:00:00",
            "working_days": ["Mon", "Wed", "Fri"],
            "capacity": 20,
            "enrolled": 12,
        },
    )
    await backend.insert(
        "batches",
        {
            "id": YOGA_EVENING_BATCH_ID,
            "event_id": YOGA_EVENT_ID,
            "name": "Evening batch",
            "schedule": "Community Hall, Room 1",
            "start_time": "18:30:00",
            "end_time": "19:30:00",
            "working_days": ["Tue", "Thu"],
            "capacity": 15,
            "enrolled": 4,
        },
    )
    await backend.insert(
        "discounts",
        {
            "event_id": YOGA_EVENT_ID,
            "name": "Early bird",
            "discount_type": "early_bird",
            "percentage": 10.0,
            "valid_from": "2025-01-01",
            "valid_until": "2025-12-31",
        },
    )

    await backend.insert(
        "events",
        {
            "id": CODING_EVENT_ID,
            "name": "Python for Data Work",
            "description": "Hands-on course on pandas and notebooks.",
            "organizer_id": OLIVIA_ID,
            "event_type": "intermediate",
            "price_type": "weekly",
            "base_price": 120.0,
            "min_weeks": 4,
        },
    )
    await backend.insert(
        "batches",
        {
            "id": CODING_BATCH_ID,
            "event_id": CODING_EVENT_ID,
            "name": "Weekend batch",
            "schedule": "Online",
            "start_time": "10:00:00",
            "end_time": "13:00:00",
            "working_days": ["Sat", "Sun"],
            "capacity": 30,
            "enrolled": 9,
        },
    )

    await backend.insert(
        "events",
        {
            "id": SUMMER_EVENT_ID,
            "name": "Summer Art Camp",
            "description": "Painting and sculpture for teenagers.",
            "organizer_id": OLIVIA_ID,
            "event_type": "summer",
            "price_type": "weekly",
            "base_price": 250.0,
        },
    )
    logger.info("Seeded demo catalog (3 events)")
    return True
