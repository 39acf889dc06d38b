from __future__ import annotations

import asyncio
import dataclasses
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, List, Optional, Tuple
from uuid import uuid4

from ..constants import AttendanceStatus
from ..logging_config import logger
from ..models import Attendance
from ..utils.errors import NotFoundError, ValidationError
from .base import store_operation

ATTENDANCE_SCORES = {
    AttendanceStatus.PRESENT.value: 1.0,
    AttendanceStatus.LATE.value: 0.5,
    AttendanceStatus.ABSENT.value: 0.0,
}


def _validate_status(status: str) -> str:
    if status not in ATTENDANCE_SCORES:
        raise ValidationError("Attendance status must be present, absent or late.")
    return status


def _validate_date(date: str) -> str:
    try:
        datetime.strptime(date, "%Y-%m-%d")
    except ValueError as ex:
        raise ValidationError("Invalid date. Use YYYY-MM-DD") from ex
    return date


def attendance_heatmap(records: Iterable[Attendance]) -> List[Tuple[str, float]]:
    return [(r.date, ATTENDANCE_SCORES.get(r.status, 0.0)) for r in records]


def attendance_rate(records: Iterable[Attendance]) -> int:
    """Percentage of attended sessions; a late arrival counts as half."""
    scores = [score for _, score in attendance_heatmap(records)]
    if not scores:
        return 0
    return round(sum(scores) / len(scores) * 100)


@dataclass
class AttendanceState:
    attendance_records: List[Attendance] = field(default_factory=list)
    is_loading: bool = False
    error: Optional[str] = None


class AttendanceStore:
    def __init__(self, dataset: List[Attendance], latency: float = 0.5):
        self.dataset = dataset
        self.latency = latency
        self.state = AttendanceState()

    @store_operation("Failed to fetch attendance")
    async def fetch_attendance(self, event_id: str, batch_id: str) -> List[Attendance]:
        await asyncio.sleep(self.latency)
        records = [r for r in self.dataset if r.event_id == event_id and r.batch_id == batch_id]
        self.state.attendance_records = records
        return records

    @store_operation("Failed to mark attendance")
    async def mark_attendance(
        self,
        user_id: str,
        event_id: str,
        batch_id: str,
        date: str,
        status: str,
        notes: Optional[str] = None,
    ) -> Attendance:
        _validate_status(status)
        _validate_date(date)
        await asyncio.sleep(self.latency)
        # One record per participant, batch and day.
        for record in self.dataset:
            if record.user_id == user_id and record.batch_id == batch_id and record.date == date:
                raise ValidationError("Attendance already marked for this date")

        record = Attendance(
            id=uuid4().hex[:9],
            user_id=user_id,
            event_id=event_id,
            batch_id=batch_id,
            date=date,
            status=status,
            notes=notes,
        )
        self.dataset.append(record)
        self.state.attendance_records = self.state.attendance_records + [record]
        logger.info("Attendance %s marked for user %s on %s (batch=%s)", status, user_id, date, batch_id)
        return record

    def find_record(self, attendance_id: str) -> Optional[Attendance]:
        return next((r for r in self.dataset if r.id == attendance_id), None)

    @store_operation("Failed to update attendance")
    async def update_attendance(self, attendance_id: str, status: str, notes: Optional[str] = None) -> Attendance:
        _validate_status(status)
        await asyncio.sleep(self.latency)
        index = next((i for i, r in enumerate(self.dataset) if r.id == attendance_id), None)
        if index is None:
            raise NotFoundError("Attendance record not found")

        updated = dataclasses.replace(self.dataset[index], status=status, notes=notes)
        self.dataset[index] = updated
        self.state.attendance_records = [
            updated if r.id == attendance_id else r for r in self.state.attendance_records
        ]
        logger.info("Attendance %s changed to %s", attendance_id, status)
        return updated

    @store_operation("Failed to fetch user attendance")
    async def get_user_attendance(self, user_id: str, event_id: str) -> List[Attendance]:
        await asyncio.sleep(self.latency)
        return [r for r in self.dataset if r.user_id == user_id and r.event_id == event_id]
