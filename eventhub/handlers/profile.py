from __future__ import annotations

import logging

from telegram import InlineKeyboardButton, InlineKeyboardMarkup, Update
from telegram.ext import CallbackQueryHandler, CommandHandler, ContextTypes, MessageHandler, filters

from ..services.attendance import attendance_heatmap, attendance_rate
from ..services.messaging import MENU_LABEL_NOTIFICATIONS, MENU_LABEL_PROFILE, get_session
from ..services.permissions import require_login

logger = logging.getLogger(__name__)

HEATMAP_CELLS = {1.0: "🟩", 0.5: "🟨", 0.0: "🟥"}


@require_login()
async def show_profile(update: Update, context: ContextTypes.DEFAULT_TYPE):
    session = get_session(context)
    result = await session.profile.fetch_user_profile(session.user.id)
    if not result.ok:
        await update.message.reply_text(f"⚠️ {result.error}")
        return
    profile = result.value
    user, stats = profile.user, profile.stats
    text = (
        "👤 Profile\n"
        f"Name: {user.name}\n"
        f"Email: {user.email}\n"
        f"Role: {user.role.value}\n"
        f"Phone: {user.phone or '—'}\n"
        f"Address: {user.address or '—'}\n"
        f"Member since: {user.join_date or '—'}\n\n"
        f"Events: {stats.total_events} total, {stats.completed_events} completed, "
        f"{stats.upcoming_events} upcoming\n"
        f"Attendance: {stats.attendance_rate}%"
    )
    await update.message.reply_text(text)


@require_login()
async def show_my_attendance(update: Update, context: ContextTypes.DEFAULT_TYPE):
    if len(context.args or []) != 1:
        await update.message.reply_text("Usage: /myattendance <eventId>")
        return
    session = get_session(context)
    result = await session.attendance.get_user_attendance(session.user.id, context.args[0])
    if not result.ok:
        await update.message.reply_text(f"⚠️ {result.error}")
        return
    if not result.value:
        await update.message.reply_text("No attendance recorded for this event yet.")
        return
    lines = [f"{r.date}: {r.status}" + (f" ({r.notes})" if r.notes else "") for r in result.value]
    lines.append("".join(HEATMAP_CELLS[score] for _, score in attendance_heatmap(result.value)))
    lines.append(f"Attendance rate: {attendance_rate(result.value)}%")
    await update.message.reply_text("\n".join(lines))


def _notifications_view(notifications, unread_count):
    lines = [f"🔔 Notifications ({unread_count} unread)"]
    rows = []
    for n in notifications:
        marker = "●" if not n.read else "○"
        lines.append(f"{marker} {n.title}: {n.message}")
        if not n.read:
            rows.append([InlineKeyboardButton(f"✔️ {n.title}", callback_data=f"notif_read_{n.id}")])
    if rows:
        rows.append([InlineKeyboardButton("✔️ Mark all as read", callback_data="notif_read_all")])
    return "\n".join(lines), InlineKeyboardMarkup(rows) if rows else None


@require_login()
async def show_notifications(update: Update, context: ContextTypes.DEFAULT_TYPE):
    session = get_session(context)
    result = await session.notifications.fetch_notifications(session.user.id)
    if not result.ok:
        await update.message.reply_text(f"⚠️ {result.error}")
        return
    if not result.value:
        await update.message.reply_text("No notifications.")
        return
    text, kb = _notifications_view(result.value, session.notifications.state.unread_count)
    await update.message.reply_text(text, reply_markup=kb)


@require_login()
async def mark_notification_read(update: Update, context: ContextTypes.DEFAULT_TYPE):
    query = update.callback_query
    await query.answer()
    store = get_session(context).notifications
    if query.data == "notif_read_all":
        result = await store.mark_all_as_read()
    else:
        result = await store.mark_as_read(query.data.replace("notif_read_", ""))
    if not result.ok:
        await query.edit_message_text(f"⚠️ {result.error}")
        return
    text, kb = _notifications_view(store.state.notifications, store.state.unread_count)
    await query.edit_message_text(text, reply_markup=kb)


def setup_handlers(application):
    application.add_handler(CommandHandler("profile", show_profile))
    application.add_handler(CommandHandler("myattendance", show_my_attendance))
    application.add_handler(CommandHandler("notifications", show_notifications))
    application.add_handler(MessageHandler(filters.Regex(f"^{MENU_LABEL_PROFILE}$"), show_profile))
    application.add_handler(MessageHandler(filters.Regex(f"^{MENU_LABEL_NOTIFICATIONS}$"), show_notifications))
    application.add_handler(CallbackQueryHandler(mark_notification_read, pattern="^notif_read_.*$"))
