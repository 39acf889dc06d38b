from __future__ import annotations

import logging
from datetime import date

from telegram import InlineKeyboardButton, InlineKeyboardMarkup, Update
from telegram.ext import (
    CallbackQueryHandler,
    CommandHandler,
    ContextTypes,
    ConversationHandler,
    MessageHandler,
    filters,
)

from ..constants import Conversation, EventType, PriceType, Role
from ..services.attendance import attendance_rate
from ..services.messaging import ORGANIZER_BUTTON_TEXT, get_session, send_main_menu
from ..services.permissions import require_login
from ..utils.errors import PermissionDenied

logger = logging.getLogger(__name__)


def _choice_keyboard(prefix: str, values):
    return InlineKeyboardMarkup([[InlineKeyboardButton(v.title(), callback_data=f"{prefix}{v}")] for v in values])


async def _owned_event(context: ContextTypes.DEFAULT_TYPE, event_id: str):
    session = get_session(context)
    result = await session.events.fetch_event_by_id(event_id)
    if not result.ok:
        return result
    user = session.user
    if user.role != Role.ADMIN and result.value.organizer_id != user.id:
        raise PermissionDenied(f"User {user.id} does not organize event {event_id}")
    return result


@require_login(Role.ORGANIZER)
async def my_events(update: Update, context: ContextTypes.DEFAULT_TYPE):
    session = get_session(context)
    result = await session.events.fetch_events()
    if not result.ok:
        await update.message.reply_text(f"⚠️ {result.error}")
        return
    events = session.events.organizer_events(session.user.id)
    if not events:
        await update.message.reply_text("You have no events yet. Create one with /newevent.")
        return
    lines = ["🗂 Your events:"]
    for ev in events:
        lines.append(f"• {ev.name} [{ev.id}] · {ev.base_price:.2f}/{ev.price_type}")
        for batch in ev.batches:
            lines.append(f"   – {batch.name} [{batch.id}] {batch.enrolled}/{batch.capacity}")
    await update.message.reply_text("\n".join(lines))


@require_login(Role.ORGANIZER)
async def new_event_start(update: Update, context: ContextTypes.DEFAULT_TYPE):
    context.user_data["new_event"] = {}
    await update.message.reply_text("Event name:")
    return Conversation.NEW_EVENT_NAME


async def new_event_name(update: Update, context: ContextTypes.DEFAULT_TYPE):
    name = update.message.text.strip()
    if not name:
        await update.message.reply_text("Event name cannot be empty:")
        return Conversation.NEW_EVENT_NAME
    context.user_data["new_event"]["name"] = name
    await update.message.reply_text(
        "Level:", reply_markup=_choice_keyboard("newevent_type_", [t.value for t in EventType])
    )
    return Conversation.NEW_EVENT_TYPE


async def new_event_type(update: Update, context: ContextTypes.DEFAULT_TYPE):
    query = update.callback_query
    await query.answer()
    context.user_data["new_event"]["event_type"] = query.data.replace("newevent_type_", "")
    await query.edit_message_text(
        "Billing period:", reply_markup=_choice_keyboard("newevent_price_", [p.value for p in PriceType])
    )
    return Conversation.NEW_EVENT_PRICE_TYPE


async def new_event_price_type(update: Update, context: ContextTypes.DEFAULT_TYPE):
    query = update.callback_query
    await query.answer()
    context.user_data["new_event"]["price_type"] = query.data.replace("newevent_price_", "")
    await query.edit_message_text("Base price (0 for free):")
    return Conversation.NEW_EVENT_PRICE


async def new_event_price(update: Update, context: ContextTypes.DEFAULT_TYPE):
    try:
        price = float(update.message.text.strip().replace(",", "."))
    except ValueError:
        price = -1
    if price < 0:
        await update.message.reply_text("Enter a non-negative number:")
        return Conversation.NEW_EVENT_PRICE
    context.user_data["new_event"]["base_price"] = price
    await update.message.reply_text("Description:")
    return Conversation.NEW_EVENT_DESCRIPTION


async def new_event_description(update: Update, context: ContextTypes.DEFAULT_TYPE):
    session = get_session(context)
    data = context.user_data.pop("new_event", {})
    data["description"] = update.message.text.strip()
    data["organizer_id"] = session.user.id
    result = await session.events.create_event(data)
    if not result.ok:
        await update.message.reply_text(f"❌ {result.error}")
        return ConversationHandler.END
    await update.message.reply_text(f"✅ Created: {result.value.name} [{result.value.id}]")
    logger.info("Organizer %s created event %s", session.user.id, result.value.id)
    return ConversationHandler.END


async def new_event_cancel(update: Update, context: ContextTypes.DEFAULT_TYPE):
    context.user_data.pop("new_event", None)
    await send_main_menu(context, update.effective_chat.id, text="Cancelled.")
    return ConversationHandler.END


@require_login(Role.ORGANIZER)
async def edit_event(update: Update, context: ContextTypes.DEFAULT_TYPE):
    args = context.args or []
    if len(args) < 3:
        await update.message.reply_text("Usage: /editevent <eventId> <field> <value>")
        return
    event_id, field, value = args[0], args[1], " ".join(args[2:])
    owned = await _owned_event(context, event_id)
    if not owned.ok:
        await update.message.reply_text(f"⚠️ {owned.error}")
        return
    result = await get_session(context).events.update_event(event_id, {field: value})
    if not result.ok:
        await update.message.reply_text(f"❌ {result.error}")
        return
    await update.message.reply_text(f"✅ Updated {field} of {result.value.name}")


@require_login(Role.ORGANIZER)
async def show_attendance(update: Update, context: ContextTypes.DEFAULT_TYPE):
    if len(context.args or []) != 2:
        await update.message.reply_text("Usage: /attendance <eventId> <batchId>")
        return
    event_id, batch_id = context.args
    owned = await _owned_event(context, event_id)
    if not owned.ok:
        await update.message.reply_text(f"⚠️ {owned.error}")
        return
    result = await get_session(context).attendance.fetch_attendance(event_id, batch_id)
    if not result.ok:
        await update.message.reply_text(f"⚠️ {result.error}")
        return
    if not result.value:
        await update.message.reply_text("No attendance recorded for this batch.")
        return
    lines = [f"[{r.id}] {r.date} {r.user_id}: {r.status}" + (f" ({r.notes})" if r.notes else "") for r in result.value]
    lines.append(f"Attendance rate: {attendance_rate(result.value)}%")
    await update.message.reply_text("\n".join(lines))


@require_login(Role.ORGANIZER)
async def mark_attendance(update: Update, context: ContextTypes.DEFAULT_TYPE):
    args = context.args or []
    if len(args) < 4:
        await update.message.reply_text(
            "Usage: /mark <eventId> <batchId> <userId> <present|absent|late> [YYYY-MM-DD] [notes]"
        )
        return
    event_id, batch_id, user_id, status = args[:4]
    day = args[4] if len(args) > 4 else date.today().isoformat()
    notes = " ".join(args[5:]) or None
    owned = await _owned_event(context, event_id)
    if not owned.ok:
        await update.message.reply_text(f"⚠️ {owned.error}")
        return
    if batch_id not in {b.id for b in owned.value.batches}:
        await update.message.reply_text("⚠️ Batch does not belong to this event.")
        return
    result = await get_session(context).attendance.mark_attendance(
        user_id=user_id,
        event_id=event_id,
        batch_id=batch_id,
        date=day,
        status=status,
        notes=notes,
    )
    if not result.ok:
        await update.message.reply_text(f"⚠️ {result.error}. Use /remark <attendanceId> <status> to change it.")
        return
    await update.message.reply_text(f"✅ Marked {status} for {day} [{result.value.id}]")


@require_login(Role.ORGANIZER)
async def remark_attendance(update: Update, context: ContextTypes.DEFAULT_TYPE):
    args = context.args or []
    if len(args) < 2:
        await update.message.reply_text("Usage: /remark <attendanceId> <present|absent|late> [notes]")
        return
    attendance = get_session(context).attendance
    record = attendance.find_record(args[0])
    if record is None:
        await update.message.reply_text("⚠️ Attendance record not found")
        return
    owned = await _owned_event(context, record.event_id)
    if not owned.ok:
        await update.message.reply_text(f"⚠️ {owned.error}")
        return
    result = await attendance.update_attendance(args[0], args[1], " ".join(args[2:]) or None)
    if not result.ok:
        await update.message.reply_text(f"⚠️ {result.error}")
        return
    await update.message.reply_text(f"✅ Attendance {result.value.id} is now {result.value.status}")


def setup_handlers(application):
    conv = ConversationHandler(
        entry_points=[CommandHandler("newevent", new_event_start)],
        states={
            Conversation.NEW_EVENT_NAME: [MessageHandler(filters.TEXT & ~filters.COMMAND, new_event_name)],
            Conversation.NEW_EVENT_TYPE: [CallbackQueryHandler(new_event_type, pattern="^newevent_type_.*$")],
            Conversation.NEW_EVENT_PRICE_TYPE: [CallbackQueryHandler(new_event_price_type, pattern="^newevent_price_.*$")],
            Conversation.NEW_EVENT_PRICE: [MessageHandler(filters.TEXT & ~filters.COMMAND, new_event_price)],
            Conversation.NEW_EVENT_DESCRIPTION: [MessageHandler(filters.TEXT & ~filters.COMMAND, new_event_description)],
        },
        fallbacks=[CommandHandler("cancel", new_event_cancel)],
        per_user=True,
    )
    application.add_handler(conv)
    application.add_handler(CommandHandler("myevents", my_events))
    application.add_handler(MessageHandler(filters.Regex(f"^{ORGANIZER_BUTTON_TEXT}$"), my_events))
    application.add_handler(CommandHandler("editevent", edit_event))
    application.add_handler(CommandHandler("attendance", show_attendance))
    application.add_handler(CommandHandler("mark", mark_attendance))
    application.add_handler(CommandHandler("remark", remark_attendance))
