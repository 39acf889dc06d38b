from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .constants import DiscountType, Role


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class User:
    id: str
    name: str
    email: str
    role: Role = Role.USER
    avatar: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    join_date: str = ""


@dataclass
class Batch:
    id: str
    event_id: str
    name: str
    schedule: str
    start_time: str
    end_time: str
    working_days: List[str] = field(default_factory=list)
    capacity: int = 0
    enrolled: int = 0
    created_at: str = field(default_factory=utcnow_iso)
    updated_at: str = field(default_factory=utcnow_iso)

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Batch":
        return cls(
            id=row["id"],
            event_id=row["event_id"],
            name=row.get("name") or "",
            schedule=row.get("schedule") or "",
            start_time=row.get("start_time") or "",
            end_time=row.get("end_time") or "",
            working_days=list(row.get("working_days") or []),
            capacity=int(row.get("capacity") or 0),
            enrolled=int(row.get("enrolled") or 0),
            created_at=row.get("created_at") or "",
            updated_at=row.get("updated_at") or "",
        )

    @property
    def is_full(self) -> bool:
        return self.enrolled >= self.capacity


@dataclass
class Discount:
    id: str
    event_id: str
    name: str
    discount_type: DiscountType
    percentage: float
    valid_from: str
    valid_until: str
    description: Optional[str] = None
    min_registration_value: Optional[float] = None
    created_at: str = field(default_factory=utcnow_iso)
    updated_at: str = field(default_factory=utcnow_iso)

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Discount":
        return cls(
            id=row["id"],
            event_id=row["event_id"],
            name=row.get("name") or "",
            discount_type=DiscountType(row["discount_type"]),
            percentage=float(row.get("percentage") or 0),
            valid_from=row.get("valid_from") or "",
            valid_until=row.get("valid_until") or "",
            description=row.get("description"),
            min_registration_value=row.get("min_registration_value"),
            created_at=row.get("created_at") or "",
            updated_at=row.get("updated_at") or "",
        )


@dataclass
class Event:
    """Event as shown to users.

    The display fields at the bottom are filled in by
    ``services.mapper.map_event_for_display`` and are never written back.
    """

    id: str
    name: str
    description: str
    organizer_id: str
    organizer_name: str
    event_type: str
    price_type: str
    base_price: float
    created_at: str
    updated_at: str
    min_hours: Optional[int] = None
    min_weeks: Optional[int] = None
    min_months: Optional[int] = None
    batches: List[Batch] = field(default_factory=list)
    discounts: List[Discount] = field(default_factory=list)
    image_url: str = ""
    category: str = ""
    date: str = ""
    time: str = ""
    location: str = ""
    capacity: int = 0
    enrolled: int = 0


@dataclass
class Enrollment:
    id: str
    user_id: str
    event_id: str
    total_amount: float
    discount_applied: float
    final_amount: float
    status: str
    start_date: str
    end_date: str
    batch_id: Optional[str] = None
    hours_registered: Optional[int] = None
    weeks_registered: Optional[int] = None
    months_registered: Optional[int] = None
    created_at: str = field(default_factory=utcnow_iso)
    updated_at: str = field(default_factory=utcnow_iso)
    event: Optional[Event] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any], event: Optional[Event] = None) -> "Enrollment":
        return cls(
            id=row["id"],
            user_id=row["user_id"],
            event_id=row["event_id"],
            batch_id=row.get("batch_id"),
            hours_registered=row.get("hours_registered"),
            weeks_registered=row.get("weeks_registered"),
            months_registered=row.get("months_registered"),
            total_amount=float(row.get("total_amount") or 0),
            discount_applied=float(row.get("discount_applied") or 0),
            final_amount=float(row.get("final_amount") or 0),
            status=row.get("status") or "pending",
            start_date=row.get("start_date") or "",
            end_date=row.get("end_date") or "",
            created_at=row.get("created_at") or "",
            updated_at=row.get("updated_at") or "",
            event=event,
        )


@dataclass
class Attendance:
    id: str
    user_id: str
    event_id: str
    batch_id: str
    date: str
    status: str
    notes: Optional[str] = None


@dataclass
class Notification:
    id: str
    user_id: str
    title: str
    message: str
    read: bool = False
    created_at: str = field(default_factory=utcnow_iso)
    link: Optional[str] = None


@dataclass
class PaymentDetails:
    id: str
    user_id: str
    event_id: str
    amount: float
    status: str
    payment_method: str
    payment_date: str
    transaction_id: str


@dataclass
class ProfileStats:
    total_events: int = 0
    completed_events: int = 0
    upcoming_events: int = 0
    attendance_rate: float = 0


@dataclass
class UserProfile:
    user: User
    enrollments: List[Enrollment] = field(default_factory=list)
    attendance: List[Attendance] = field(default_factory=list)
    payments: List[PaymentDetails] = field(default_factory=list)
    stats: ProfileStats = field(default_factory=ProfileStats)
