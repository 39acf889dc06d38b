from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    USER = "user"
    ORGANIZER = "organizer"
    ADMIN = "admin"


class EventType(str, Enum):
    REGULAR = "regular"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    SUMMER = "summer"


class PriceType(str, Enum):
    HOURLY = "hourly"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class EnrollmentStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class AttendanceStatus(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    REFUNDED = "refunded"


class DiscountType(str, Enum):
    SEASONAL = "seasonal"
    BULK = "bulk"
    EARLY_BIRD = "early_bird"


DEMO_PASSWORD = "password"

EVENT_IMAGES = {
    EventType.REGULAR.value: "https://images.pexels.com/photos/3184360/pexels-photo-3184360.jpeg",
    EventType.INTERMEDIATE.value: "https://images.pexels.com/photos/3184291/pexels-photo-3184291.jpeg",
    EventType.ADVANCED.value: "https://images.pexels.com/photos/3184339/pexels-photo-3184339.jpeg",
    EventType.SUMMER.value: "https://images.pexels.com/photos/3184302/pexels-photo-3184302.jpeg",
}


class Conversation:
    NEW_EVENT_NAME = 1
    NEW_EVENT_TYPE = 2
    NEW_EVENT_PRICE_TYPE = 3
    NEW_EVENT_PRICE = 4
    NEW_EVENT_DESCRIPTION = 5
