from __future__ import annotations

from functools import wraps
from typing import Any, Awaitable, Callable, Optional

from telegram import Update
from telegram.ext import ContextTypes

from ..constants import Role
from ..utils.errors import PermissionDenied
from .messaging import get_session


ROLE_ORDER = {
    Role.USER: 0,
    Role.ORGANIZER: 1,
    Role.ADMIN: 2,
}

LOGIN_REQUIRED_TEXT = "Please log in first: /login <email> <password>"


def has_role(user_role: Role, required: Role) -> bool:
    return ROLE_ORDER[user_role] >= ROLE_ORDER[required]


def require_login(required: Optional[Role] = None):
    """Only run the handler for an authenticated session (with ``required`` role)."""

    def decorator(func: Callable[[Update, ContextTypes.DEFAULT_TYPE], Awaitable[Any]]):
        @wraps(func)
        async def wrapper(update: Update, context: ContextTypes.DEFAULT_TYPE, *args, **kwargs):
            auth = get_session(context).auth.state
            if not auth.is_authenticated or auth.user is None:
                query = getattr(update, "callback_query", None)
                if query is not None:
                    await query.answer()
                message = getattr(update, "effective_message", None) or getattr(update, "message", None)
                if message is None and query is not None:
                    message = query.message
                if message is not None:
                    await message.reply_text(LOGIN_REQUIRED_TEXT)
                return None
            if required is not None and not has_role(auth.user.role, required):
                raise PermissionDenied(f"Need role {required.value}, got {auth.user.role.value}")
            return await func(update, context, *args, **kwargs)

        return wrapper

    return decorator
