from __future__ import annotations

from typing import List

from telegram import ReplyKeyboardMarkup
from telegram.ext import ContextTypes

from ..constants import Role
from ..logging_config import logger
from .session import Session

MENU_LABEL_EVENTS = "📅 Events"
MENU_LABEL_MY_ENROLLMENTS = "📝 My enrollments"
MENU_LABEL_NOTIFICATIONS = "🔔 Notifications"
MENU_LABEL_PROFILE = "👤 Profile"
ORGANIZER_BUTTON_TEXT = "🗂 My events"
DEFAULT_MENU_TEXT = "Main menu"

BASE_MENU_ITEMS: List[str] = [
    MENU_LABEL_EVENTS,
    MENU_LABEL_MY_ENROLLMENTS,
    MENU_LABEL_NOTIFICATIONS,
    MENU_LABEL_PROFILE,
]


def get_session(context: ContextTypes.DEFAULT_TYPE) -> Session:
    """Return the chat's session, creating it on first use."""
    session = context.user_data.get("session")
    if session is None:
        session = context.application.bot_data["session_factory"].create()
        context.user_data["session"] = session
    return session


def build_main_keyboard(menu_items: List[str], show_organizer: bool) -> ReplyKeyboardMarkup:
    buttons = [[title] for title in menu_items]
    if show_organizer:
        buttons.append([ORGANIZER_BUTTON_TEXT])
    return ReplyKeyboardMarkup(buttons, resize_keyboard=True, one_time_keyboard=False)


async def send_main_menu(context: ContextTypes.DEFAULT_TYPE, chat_id: int, text: str = DEFAULT_MENU_TEXT):
    user = get_session(context).user
    role = user.role if user else None
    keyboard = build_main_keyboard(
        menu_items=BASE_MENU_ITEMS,
        show_organizer=role in (Role.ORGANIZER, Role.ADMIN),
    )
    await context.bot.send_message(chat_id=chat_id, text=text, reply_markup=keyboard)
    logger.debug("Sent main menu to chat_id=%s role=%s", chat_id, role)
