"""Placeholder authentication against the seeded user list.

There is no session token, password hashing or persistence: every seeded
account shares the demo password and registered accounts live only in the
session that created them.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import date
from typing import List, Optional
from uuid import uuid4

from ..constants import DEMO_PASSWORD, Role
from ..logging_config import logger
from ..models import User
from ..utils.errors import NotFoundError, ValidationError
from ..utils.validators import is_valid_email
from .base import store_operation


def _normalize_email(email: str) -> str:
    return (email or "").strip().lower()


@dataclass
class AuthState:
    user: Optional[User] = None
    is_authenticated: bool = False
    is_loading: bool = False
    error: Optional[str] = None


class AuthStore:
    def __init__(self, users: List[User], latency: float = 1.0):
        self.users = users
        self.latency = latency
        self.state = AuthState()

    def _find(self, email: str) -> Optional[User]:
        email = _normalize_email(email)
        return next((u for u in self.users if u.email.lower() == email), None)

    @store_operation("An unknown error occurred")
    async def login(self, email: str, password: str) -> User:
        await asyncio.sleep(self.latency)
        user = self._find(email)
        if user is None or password != DEMO_PASSWORD:
            raise ValidationError("Invalid email or password")
        self.state.user = user
        self.state.is_authenticated = True
        logger.info("User %s logged in", user.id)
        return user

    @store_operation("An unknown error occurred")
    async def register(self, name: str, email: str, password: str) -> User:
        name = (name or "").strip()
        if len(name) < 2:
            raise ValidationError("Name must be at least 2 characters")
        if not is_valid_email(_normalize_email(email)):
            raise ValidationError("Invalid email address")
        if len(password or "") < 6:
            raise ValidationError("Password must be at least 6 characters")
        await asyncio.sleep(self.latency)
        if self._find(email) is not None:
            raise ValidationError("Email already in use")

        user = User(
            id=str(uuid4()),
            name=name,
            email=_normalize_email(email),
            role=Role.USER,
            join_date=date.today().isoformat(),
        )
        self.state.user = user
        self.state.is_authenticated = True
        logger.info("Registered session-only user %s", user.id)
        return user

    def logout(self) -> None:
        if self.state.user:
            logger.info("User %s logged out", self.state.user.id)
        self.state.user = None
        self.state.is_authenticated = False

    @store_operation("An unknown error occurred")
    async def reset_password(self, email: str) -> None:
        await asyncio.sleep(self.latency)
        if self._find(email) is None:
            raise NotFoundError("Email not found")
        logger.info("Password reset requested for %s", _normalize_email(email))
