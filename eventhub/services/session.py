from __future__ import annotations

from dataclasses import dataclass, field

from ..config import Config
from ..storage.backend import BackendClient
from ..storage.seed import SeedData
from .attendance import AttendanceStore
from .auth import AuthStore
from .events import EventStore
from .notifications import NotificationStore
from .payments import PaymentStore
from .profiles import UserProfileStore


@dataclass
class Session:
    """Stores owned by one chat."""

    auth: AuthStore
    events: EventStore
    attendance: AttendanceStore
    payments: PaymentStore
    notifications: NotificationStore
    profile: UserProfileStore

    @property
    def user(self):
        return self.auth.state.user


@dataclass
class SessionFactory:
    backend: BackendClient
    config: Config
    seed: SeedData = field(default_factory=SeedData)

    def create(self) -> Session:
        latency = self.config.simulated_latency
        return Session(
            auth=AuthStore(self.seed.users, latency=latency),
            events=EventStore(self.backend),
            attendance=AttendanceStore(self.seed.attendance, latency=latency),
            payments=PaymentStore(delay=self.config.payment_delay),
            notifications=NotificationStore(self.seed.notifications, latency=latency),
            profile=UserProfileStore(self.seed.users, latency=latency),
        )
