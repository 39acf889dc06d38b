from __future__ import annotations

import asyncio
import dataclasses
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional

from ..logging_config import logger
from ..models import ProfileStats, User, UserProfile
from ..utils.errors import NotFoundError, ValidationError
from .base import store_operation

PLACEHOLDER_PHONE = "+1 (555) 123-4567"
PLACEHOLDER_ADDRESS = "123 Main St, City, State 12345"
PLACEHOLDER_JOIN_DATE = "2025-01-15"

PROFILE_FIELDS = {f.name for f in dataclasses.fields(UserProfile)}


@dataclass
class ProfileState:
    profile: Optional[UserProfile] = None
    is_loading: bool = False
    error: Optional[str] = None


class UserProfileStore:
    """Profile view state.

    The aggregate is static demo data; it is not derived from the event,
    attendance or payment stores.
    """

    def __init__(self, users: List[User], latency: float = 1.0):
        self.users = users
        self.latency = latency
        self.state = ProfileState()

    @store_operation("Failed to fetch user profile")
    async def fetch_user_profile(self, user_id: str) -> UserProfile:
        await asyncio.sleep(self.latency)
        user = next((u for u in self.users if u.id == user_id), None)
        if user is None:
            raise NotFoundError("User not found")

        profile = UserProfile(
            user=dataclasses.replace(
                user,
                phone=PLACEHOLDER_PHONE,
                address=PLACEHOLDER_ADDRESS,
                join_date=PLACEHOLDER_JOIN_DATE,
            ),
            enrollments=[],
            attendance=[],
            payments=[],
            stats=ProfileStats(total_events=3, completed_events=1, upcoming_events=2, attendance_rate=85),
        )
        self.state.profile = profile
        return profile

    @store_operation("Failed to update user profile")
    async def update_user_profile(self, user_id: str, data: Mapping[str, Any]) -> Optional[UserProfile]:
        unknown = [key for key in data if key not in PROFILE_FIELDS]
        if unknown:
            raise ValidationError(f"Unknown profile fields: {', '.join(sorted(unknown))}")
        await asyncio.sleep(self.latency)
        profile = self.state.profile
        if profile is None:
            return None
        if profile.user.id != user_id:
            raise ValidationError("Loaded profile belongs to another user")
        self.state.profile = dataclasses.replace(profile, **data)
        logger.info("Profile %s updated (%s)", user_id, ", ".join(sorted(data)))
        return self.state.profile
