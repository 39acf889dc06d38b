from __future__ import annotations

import asyncio
import dataclasses
from dataclasses import dataclass, field
from typing import List, Optional

from ..logging_config import logger
from ..models import Notification
from .base import store_operation


@dataclass
class NotificationState:
    notifications: List[Notification] = field(default_factory=list)
    unread_count: int = 0
    is_loading: bool = False
    error: Optional[str] = None


class NotificationStore:
    def __init__(self, dataset: List[Notification], latency: float = 0.5):
        self.dataset = dataset
        self.latency = latency
        self.state = NotificationState()

    def _set_notifications(self, notifications: List[Notification]) -> None:
        self.state.notifications = notifications
        self.state.unread_count = sum(1 for n in notifications if not n.read)

    def _persist_read(self, ids: set[str]) -> None:
        self.dataset[:] = [dataclasses.replace(n, read=True) if n.id in ids else n for n in self.dataset]

    @store_operation("Failed to fetch notifications")
    async def fetch_notifications(self, user_id: str) -> List[Notification]:
        await asyncio.sleep(self.latency)
        self._set_notifications([n for n in self.dataset if n.user_id == user_id])
        logger.debug("Fetched %s notifications for %s", len(self.state.notifications), user_id)
        return self.state.notifications

    @store_operation("Failed to mark notification as read", loading_attr=None)
    async def mark_as_read(self, notification_id: str) -> int:
        await asyncio.sleep(self.latency)
        self._persist_read({notification_id})
        self._set_notifications(
            [
                dataclasses.replace(n, read=True) if n.id == notification_id else n
                for n in self.state.notifications
            ]
        )
        return self.state.unread_count

    @store_operation("Failed to mark notifications as read", loading_attr=None)
    async def mark_all_as_read(self) -> int:
        await asyncio.sleep(self.latency)
        self._persist_read({n.id for n in self.state.notifications})
        self.state.notifications = [dataclasses.replace(n, read=True) for n in self.state.notifications]
        self.state.unread_count = 0
        return 0
