from __future__ import annotations

import logging
from typing import Dict, Optional

from telegram import InlineKeyboardButton, InlineKeyboardMarkup, Update
from telegram.ext import CallbackQueryHandler, CommandHandler, ContextTypes, MessageHandler, filters

from ..constants import EnrollmentStatus
from ..models import Event
from ..services.filters import EventFilters, filter_events
from ..services.messaging import MENU_LABEL_EVENTS, MENU_LABEL_MY_ENROLLMENTS, get_session
from ..services.permissions import require_login

logger = logging.getLogger(__name__)

PAYMENT_METHOD = "credit_card"

STATUS_LABELS: Dict[str, str] = {
    EnrollmentStatus.PENDING.value: "⏳ Pending",
    EnrollmentStatus.ACTIVE.value: "✅ Active",
    EnrollmentStatus.COMPLETED.value: "🏁 Completed",
    EnrollmentStatus.CANCELLED.value: "❌ Cancelled",
}

CANCELLABLE = (EnrollmentStatus.PENDING.value, EnrollmentStatus.ACTIVE.value)


def _event_keyboard(events):
    rows = []
    for ev in events:
        rows.append([InlineKeyboardButton(f"{ev.name} · {ev.category} · {ev.base_price:.2f}", callback_data=f"event_view_{ev.id}")])
    return InlineKeyboardMarkup(rows)


def format_event(event: Event) -> str:
    return (
        f"📅 {event.name} ({event.category})\n"
        f"👤 Organizer: {event.organizer_name}\n"
        f"🗓 {event.date}, {event.time}\n"
        f"📍 {event.location}\n"
        f"💳 {event.base_price:.2f} / {event.price_type}\n"
        f"👥 Enrolled: {event.enrolled}/{event.capacity}\n\n"
        f"{event.description}"
    )


async def list_events(update: Update, context: ContextTypes.DEFAULT_TYPE):
    session = get_session(context)
    result = await session.events.fetch_events()
    if not result.ok:
        await update.message.reply_text(f"⚠️ {result.error}")
        return

    event_filters = EventFilters.from_query(" ".join(context.args or []))
    events = filter_events(result.value, event_filters)
    if not events:
        await update.message.reply_text("No events match your filters. Try /events without arguments.")
        return
    header = "Choose an event:"
    if not event_filters.is_empty:
        header = f"Filters: {event_filters.to_query()}\n{header}"
    await update.message.reply_text(header, reply_markup=_event_keyboard(events))


async def view_event(update: Update, context: ContextTypes.DEFAULT_TYPE):
    query = update.callback_query
    await query.answer()
    event_id = query.data.replace("event_view_", "")
    result = await get_session(context).events.fetch_event_by_id(event_id)
    if not result.ok:
        await query.edit_message_text(f"⚠️ {result.error}")
        return
    event = result.value
    context.user_data["viewed_event"] = event

    rows = []
    full = []
    for batch in event.batches:
        label = f"{batch.name} {batch.start_time[:5]}-{batch.end_time[:5]} ({batch.enrolled}/{batch.capacity})"
        if batch.is_full:
            full.append(f"🚫 {label}: Full")
            continue
        rows.append([InlineKeyboardButton(f"📝 {label}", callback_data=f"enroll_batch_{batch.id}")])
    if not event.batches:
        rows.append([InlineKeyboardButton("📝 Enroll", callback_data=f"enroll_event_{event.id}")])
    text = format_event(event)
    if full:
        text += "\n\n" + "\n".join(full)
    if event.batches and not rows:
        text += "\nSold out."
    await query.edit_message_text(text, reply_markup=InlineKeyboardMarkup(rows))


async def _enroll(update: Update, context: ContextTypes.DEFAULT_TYPE, event: Event, batch_id: Optional[str]):
    query = update.callback_query
    session = get_session(context)
    user = session.user

    if event.base_price > 0:
        payment = await session.payments.process_payment(user.id, event.id, event.base_price, PAYMENT_METHOD)
        if not payment.ok:
            await query.edit_message_text(f"⚠️ {payment.error}")
            return

    result = await session.events.enroll_in_event(user.id, event.id, batch_id)
    if not result.ok:
        if event.base_price > 0:
            logger.warning(
                "Enrollment failed after payment %s for user %s",
                session.payments.state.payment_details.id,
                user.id,
            )
        await query.edit_message_text(f"⚠️ {result.error}")
        return
    await query.edit_message_text(f"✅ Enrolled in {event.name}. Status: {STATUS_LABELS[result.value.status]}")


@require_login()
async def enroll_event(update: Update, context: ContextTypes.DEFAULT_TYPE):
    query = update.callback_query
    await query.answer()
    event_id = query.data.replace("enroll_event_", "")
    event = context.user_data.get("viewed_event")
    if event is None or event.id != event_id:
        result = await get_session(context).events.fetch_event_by_id(event_id)
        if not result.ok:
            await query.edit_message_text(f"⚠️ {result.error}")
            return
        event = result.value
    await _enroll(update, context, event, None)


@require_login()
async def enroll_batch(update: Update, context: ContextTypes.DEFAULT_TYPE):
    query = update.callback_query
    await query.answer()
    batch_id = query.data.replace("enroll_batch_", "")
    event = context.user_data.get("viewed_event")
    batch = next((b for b in event.batches if b.id == batch_id), None) if event else None
    if batch is None:
        await query.edit_message_text("Open the event again to pick a batch.")
        return
    if batch.is_full:
        await query.edit_message_text(f"🚫 {batch.name} is full. Pick another batch.")
        return
    await _enroll(update, context, event, batch_id)


@require_login()
async def list_my_enrollments(update: Update, context: ContextTypes.DEFAULT_TYPE):
    session = get_session(context)
    result = await session.events.fetch_user_enrollments(session.user.id)
    if not result.ok:
        await update.message.reply_text(f"⚠️ {result.error}")
        return
    if not result.value:
        await update.message.reply_text("You have no enrollments yet.")
        return

    lines = ["Your enrollments:"]
    rows = []
    for enrollment in result.value:
        name = enrollment.event.name if enrollment.event else enrollment.event_id
        status = STATUS_LABELS.get(enrollment.status, enrollment.status)
        lines.append(f"{status}: {name} · {enrollment.final_amount:.2f} (until {enrollment.end_date[:10]})")
        if enrollment.status in CANCELLABLE:
            rows.append([InlineKeyboardButton(f"❌ Cancel {name}", callback_data=f"enrollment_cancel_{enrollment.id}")])
    await update.message.reply_text("\n".join(lines), reply_markup=InlineKeyboardMarkup(rows) if rows else None)


@require_login()
async def cancel_enrollment_callback(update: Update, context: ContextTypes.DEFAULT_TYPE):
    query = update.callback_query
    await query.answer()
    enrollment_id = query.data.replace("enrollment_cancel_", "")
    session = get_session(context)
    events = session.events
    enrollment = next((e for e in events.state.user_enrollments if e.id == enrollment_id), None)
    if enrollment is None or enrollment.user_id != session.user.id or enrollment.status not in CANCELLABLE:
        await query.edit_message_text("This enrollment can no longer be cancelled. Open /my again.")
        return
    result = await events.cancel_enrollment(enrollment_id)
    if not result.ok:
        await query.edit_message_text(f"⚠️ {result.error}")
        return
    await query.edit_message_text("❌ Enrollment cancelled.")


def setup_handlers(application):
    application.add_handler(CommandHandler("events", list_events))
    application.add_handler(CommandHandler("my", list_my_enrollments))
    application.add_handler(MessageHandler(filters.Regex(f"^{MENU_LABEL_EVENTS}$"), list_events))
    application.add_handler(MessageHandler(filters.Regex(f"^{MENU_LABEL_MY_ENROLLMENTS}$"), list_my_enrollments))
    application.add_handler(CallbackQueryHandler(view_event, pattern="^event_view_.*$"))
    application.add_handler(CallbackQueryHandler(enroll_event, pattern="^enroll_event_.*$"))
    application.add_handler(CallbackQueryHandler(enroll_batch, pattern="^enroll_batch_.*$"))
    application.add_handler(CallbackQueryHandler(cancel_enrollment_callback, pattern="^enrollment_cancel_.*$"))
