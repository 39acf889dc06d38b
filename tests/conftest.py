from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Any, Optional

import pytest

from eventhub.config import Config
from eventhub.services.attendance import AttendanceStore
from eventhub.services.auth import AuthStore
from eventhub.services.events import EventStore
from eventhub.services.notifications import NotificationStore
from eventhub.services.payments import PaymentStore
from eventhub.services.profiles import UserProfileStore
from eventhub.services.session import SessionFactory
from eventhub.storage.backend import BackendClient, SqliteBackend
from eventhub.storage.db import Database
from eventhub.storage.seed import SeedData, seed_demo_catalog

FIXED_NOW = datetime(2025, 6, 5, 9, 30, tzinfo=timezone.utc)


@dataclass
class FakeUser:
    id: int
    username: str = ""
    full_name: str = ""


@dataclass
class FakeChat:
    id: int


@dataclass
class FakeMessage:
    chat_id: int
    text: str = ""
    chat: FakeChat = field(init=False)
    replies: list[dict[str, Any]] = field(default_factory=list)

    def __post_init__(self):
        self.chat = FakeChat(self.chat_id)

    async def reply_text(self, text: str, reply_markup: Any = None, **kwargs: Any):
        self.replies.append(
            {"text": text, "reply_markup": reply_markup, "kwargs": kwargs}
        )


@dataclass
class FakeCallbackQuery:
    data: str
    from_user: FakeUser
    message: FakeMessage
    answered: int = 0
    edits: list[dict[str, Any]] = field(default_factory=list)

    async def answer(self, **kwargs: Any):
        self.answered += 1

    async def edit_message_text(self, text: str, reply_markup: Any = None, **kwargs: Any):
        self.edits.append({"text": text, "reply_markup": reply_markup, "kwargs": kwargs})


@dataclass
class FakeUpdate:
    effective_user: FakeUser
    effective_chat: FakeChat
    message: Optional[FakeMessage] = None
    callback_query: Optional[FakeCallbackQuery] = None

    @property
    def effective_message(self) -> Optional[FakeMessage]:
        if self.message is not None:
            return self.message
        return self.callback_query.message if self.callback_query else None


class FakeBot:
    def __init__(self):
        self.sent_messages: list[dict[str, Any]] = []

    async def send_message(self, chat_id: int, text: str, reply_markup: Any = None, **kwargs: Any):
        payload = {"chat_id": chat_id, "text": text, "reply_markup": reply_markup, "kwargs": kwargs}
        self.sent_messages.append(payload)
        return SimpleNamespace(message_id=len(self.sent_messages), chat=SimpleNamespace(id=chat_id))


class FakeApplication:
    def __init__(self, bot_data: dict[str, Any]):
        self.bot_data = bot_data


@dataclass
class FakeContext:
    application: FakeApplication
    bot: FakeBot
    user_data: dict[str, Any] = field(default_factory=dict)
    args: list[str] = field(default_factory=list)


class RecordingBackend(BackendClient):
    """Backend double that records calls and serves canned rows."""

    def __init__(self, rows: Optional[dict[str, list[dict[str, Any]]]] = None):
        self.rows = rows or {}
        self.calls: list[tuple[str, str]] = []

    @property
    def auth_admin(self) -> Any:
        return None

    async def select(self, table, *, eq=None, embed=None, order_by=None, ascending=True, single=False):
        self.calls.append(("select", table))
        rows = [r for r in self.rows.get(table, []) if all(r.get(k) == v for k, v in (eq or {}).items())]
        if order_by:
            rows = sorted(rows, key=lambda r: r[order_by], reverse=not ascending)
        if single:
            return rows[0] if rows else None
        return rows

    async def insert(self, table, row):
        self.calls.append(("insert", table))
        stored = dict(row)
        self.rows.setdefault(table, []).append(stored)
        return stored

    async def update(self, table, values, *, eq):
        self.calls.append(("update", table))
        matched = [r for r in self.rows.get(table, []) if all(r.get(k) == v for k, v in eq.items())]
        for r in matched:
            r.update(values)
        return matched

    async def rpc(self, name, params):
        self.calls.append(("rpc", name))


def make_message_update(user_id: int, text: str = "") -> FakeUpdate:
    user = FakeUser(id=user_id)
    chat = FakeChat(id=user_id)
    return FakeUpdate(effective_user=user, effective_chat=chat, message=FakeMessage(chat_id=user_id, text=text))


def make_callback_update(user_id: int, data: str) -> FakeUpdate:
    user = FakeUser(id=user_id)
    chat = FakeChat(id=user_id)
    cq = FakeCallbackQuery(data=data, from_user=user, message=FakeMessage(chat_id=user_id))
    return FakeUpdate(effective_user=user, effective_chat=chat, message=None, callback_query=cq)


@pytest.fixture
def config() -> Config:
    return Config(
        bot_token="TEST_TOKEN",
        database_path=":memory:",
        log_level="INFO",
        simulated_latency=0,
        payment_delay=0,
        seed_demo_data=True,
    )


@pytest.fixture
async def db(tmp_path) -> Database:
    database = Database(str(tmp_path / "test.db"))
    await database.init_db()
    try:
        yield database
    finally:
        await database.close()


@pytest.fixture
async def backend(db: Database) -> SqliteBackend:
    return SqliteBackend(db)


@pytest.fixture
async def seeded_backend(backend: SqliteBackend) -> SqliteBackend:
    await seed_demo_catalog(backend)
    return backend


@pytest.fixture
def seed() -> SeedData:
    return SeedData()


@pytest.fixture
async def stores(seeded_backend, seed: SeedData):
    return SimpleNamespace(
        events=EventStore(seeded_backend, clock=lambda: FIXED_NOW),
        attendance=AttendanceStore(seed.attendance, latency=0),
        payments=PaymentStore(delay=0),
        notifications=NotificationStore(seed.notifications, latency=0),
        auth=AuthStore(seed.users, latency=0),
        profile=UserProfileStore(seed.users, latency=0),
    )


@pytest.fixture
def fake_bot() -> FakeBot:
    return FakeBot()


@pytest.fixture
async def context(seeded_backend, config: Config, seed: SeedData, fake_bot: FakeBot) -> FakeContext:
    bot_data = {
        "config": config,
        "backend": seeded_backend,
        "session_factory": SessionFactory(backend=seeded_backend, config=config, seed=seed),
    }
    return FakeContext(application=FakeApplication(bot_data), bot=fake_bot)
