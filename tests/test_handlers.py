from __future__ import annotations

import dataclasses

import pytest

from eventhub.constants import Role
from eventhub.handlers import events as events_handlers
from eventhub.handlers import organizer as organizer_handlers
from eventhub.handlers import profile as profile_handlers
from eventhub.handlers import start as start_handlers
from eventhub.services.messaging import get_session
from eventhub.services.permissions import LOGIN_REQUIRED_TEXT
from eventhub.storage.seed import (
    ALICE_ID,
    CODING_BATCH_ID,
    CODING_EVENT_ID,
    SUMMER_EVENT_ID,
    YOGA_EVENT_ID,
    YOGA_MORNING_BATCH_ID,
)
from eventhub.utils.errors import PermissionDenied

from .conftest import make_callback_update, make_message_update


async def _login(context, email="alice@example.com"):
    context.args = [email, "password"]
    await start_handlers.login(make_message_update(1, text="/login"), context)
    context.args = []


@pytest.mark.asyncio
async def test_start_without_session_shows_welcome(context):
    update = make_message_update(1, text="/start")
    await start_handlers.start(update, context)
    assert "/login" in update.message.replies[-1]["text"]


@pytest.mark.asyncio
async def test_login_sends_menu_and_bad_password_warns(context):
    context.args = ["alice@example.com", "nope"]
    update = make_message_update(1, text="/login")
    await start_handlers.login(update, context)
    assert update.message.replies[-1]["text"] == "⚠️ Invalid email or password"

    await _login(context)
    assert get_session(context).auth.state.is_authenticated
    assert "Logged in as Alice Walker" in context.bot.sent_messages[-1]["text"]


@pytest.mark.asyncio
async def test_logout_drops_session(context):
    await _login(context)
    await start_handlers.logout(make_message_update(1, text="/logout"), context)
    assert "session" not in context.user_data
    assert get_session(context).user is None


@pytest.mark.asyncio
async def test_list_events_applies_filters(context):
    context.args = ["priceRange=over-200"]
    update = make_message_update(1, text="/events")
    await events_handlers.list_events(update, context)
    reply = update.message.replies[-1]
    assert reply["text"].startswith("Filters: priceRange=over-200")
    buttons = [row[0].callback_data for row in reply["reply_markup"].inline_keyboard]
    assert buttons == [f"event_view_{SUMMER_EVENT_ID}"]


@pytest.mark.asyncio
async def test_view_event_offers_batches(context):
    update = make_callback_update(1, data=f"event_view_{YOGA_EVENT_ID}")
    await events_handlers.view_event(update, context)
    edit = update.callback_query.edits[-1]
    assert "Morning Yoga Flow" in edit["text"]
    buttons = [row[0].callback_data for row in edit["reply_markup"].inline_keyboard]
    assert len(buttons) == 2
    assert all(b.startswith("enroll_batch_") for b in buttons)
    assert context.user_data["viewed_event"].id == YOGA_EVENT_ID


@pytest.mark.asyncio
async def test_enroll_requires_login(context):
    update = make_callback_update(1, data=f"enroll_event_{SUMMER_EVENT_ID}")
    await events_handlers.enroll_event(update, context)
    assert update.callback_query.message.replies[-1]["text"] == LOGIN_REQUIRED_TEXT
    assert get_session(context).events.state.user_enrollments == []


@pytest.mark.asyncio
async def test_paid_batch_enrollment_flow(context):
    await _login(context)
    await events_handlers.view_event(make_callback_update(1, data=f"event_view_{CODING_EVENT_ID}"), context)

    update = make_callback_update(1, data=f"enroll_batch_{CODING_BATCH_ID}")
    await events_handlers.enroll_batch(update, context)
    assert update.callback_query.edits[-1]["text"].startswith("✅ Enrolled in Python for Data Work")

    session = get_session(context)
    assert session.payments.state.payment_details.amount == 120.0
    [enrollment] = session.events.state.user_enrollments
    assert enrollment.batch_id == CODING_BATCH_ID

    my = make_message_update(1, text="/my")
    await events_handlers.list_my_enrollments(my, context)
    reply = my.message.replies[-1]
    assert "Python for Data Work" in reply["text"]
    cancel_data = reply["reply_markup"].inline_keyboard[0][0].callback_data
    assert cancel_data == f"enrollment_cancel_{enrollment.id}"

    cancel = make_callback_update(1, data=cancel_data)
    await events_handlers.cancel_enrollment_callback(cancel, context)
    assert cancel.callback_query.edits[-1]["text"] == "❌ Enrollment cancelled."
    assert session.events.state.user_enrollments[0].status == "cancelled"


@pytest.mark.asyncio
async def test_notifications_mark_all(context):
    await _login(context)
    update = make_message_update(1, text="/notifications")
    await profile_handlers.show_notifications(update, context)
    assert "2 unread" in update.message.replies[-1]["text"]

    cb = make_callback_update(1, data="notif_read_all")
    await profile_handlers.mark_notification_read(cb, context)
    assert "0 unread" in cb.callback_query.edits[-1]["text"]
    assert cb.callback_query.edits[-1]["reply_markup"] is None


@pytest.mark.asyncio
async def test_profile_shows_static_stats(context):
    await _login(context)
    update = make_message_update(1, text="/profile")
    await profile_handlers.show_profile(update, context)
    text = update.message.replies[-1]["text"]
    assert "Alice Walker" in text
    assert "Attendance: 85%" in text


@pytest.mark.asyncio
async def test_organizer_commands_require_role(context):
    await _login(context)
    with pytest.raises(PermissionDenied):
        await organizer_handlers.my_events(make_message_update(1, text="/myevents"), context)


@pytest.mark.asyncio
async def test_organizer_lists_events_and_marks_attendance(context):
    await _login(context, "olivia@example.com")
    update = make_message_update(1, text="/myevents")
    await organizer_handlers.my_events(update, context)
    assert "Morning Yoga Flow" in update.message.replies[-1]["text"]

    context.args = [CODING_EVENT_ID, CODING_BATCH_ID, "3f6c1a52-8d4e-4b7a-9c21-5e8f0a1b2c3d", "late", "2025-06-21"]
    mark = make_message_update(1, text="/mark")
    await organizer_handlers.mark_attendance(mark, context)
    assert mark.message.replies[-1]["text"].startswith("✅ Marked late for 2025-06-21")

    duplicate = make_message_update(1, text="/mark")
    await organizer_handlers.mark_attendance(duplicate, context)
    assert "already marked" in duplicate.message.replies[-1]["text"]

    context.args = [CODING_EVENT_ID, CODING_BATCH_ID]
    listing = make_message_update(1, text="/attendance")
    await organizer_handlers.show_attendance(listing, context)
    assert "Attendance rate: 50%" in listing.message.replies[-1]["text"]


@pytest.mark.asyncio
async def test_edit_event_updates_price(context):
    await _login(context, "olivia@example.com")
    context.args = [SUMMER_EVENT_ID, "base_price", "199"]
    update = make_message_update(1, text="/editevent")
    await organizer_handlers.edit_event(update, context)
    assert update.message.replies[-1]["text"] == "✅ Updated base_price of Summer Art Camp"


@pytest.mark.asyncio
async def test_my_attendance_shows_heatmap(context):
    await _login(context)
    context.args = [YOGA_EVENT_ID]
    update = make_message_update(1, text="/myattendance")
    await profile_handlers.show_my_attendance(update, context)
    text = update.message.replies[-1]["text"]
    assert "🟩🟨" in text
    assert "Attendance rate: 75%" in text


async def _login_as_new_organizer(context):
    context.args = ["Nora", "Blake", "nora@example.com", "secret1"]
    await start_handlers.register(make_message_update(1, text="/register"), context)
    context.args = []
    auth = get_session(context).auth
    auth.state.user = dataclasses.replace(auth.state.user, role=Role.ORGANIZER)


@pytest.mark.asyncio
async def test_full_batch_is_shown_but_cannot_be_enrolled(context, seeded_backend):
    await seeded_backend.update("batches", {"enrolled": 30}, eq={"id": CODING_BATCH_ID})
    await _login(context)

    view = make_callback_update(1, data=f"event_view_{CODING_EVENT_ID}")
    await events_handlers.view_event(view, context)
    edit = view.callback_query.edits[-1]
    assert "Weekend batch 10:00-13:00 (30/30): Full" in edit["text"]
    assert "Sold out." in edit["text"]
    assert len(edit["reply_markup"].inline_keyboard) == 0

    update = make_callback_update(1, data=f"enroll_batch_{CODING_BATCH_ID}")
    await events_handlers.enroll_batch(update, context)
    assert update.callback_query.edits[-1]["text"] == "🚫 Weekend batch is full. Pick another batch."
    session = get_session(context)
    assert session.payments.state.payment_details is None
    assert session.events.state.user_enrollments == []


@pytest.mark.asyncio
async def test_cancel_refuses_closed_or_unknown_enrollments(context):
    await _login(context)
    await events_handlers.enroll_event(make_callback_update(1, data=f"enroll_event_{SUMMER_EVENT_ID}"), context)
    [enrollment] = get_session(context).events.state.user_enrollments

    first = make_callback_update(1, data=f"enrollment_cancel_{enrollment.id}")
    await events_handlers.cancel_enrollment_callback(first, context)
    assert first.callback_query.edits[-1]["text"] == "❌ Enrollment cancelled."

    again = make_callback_update(1, data=f"enrollment_cancel_{enrollment.id}")
    await events_handlers.cancel_enrollment_callback(again, context)
    assert "can no longer be cancelled" in again.callback_query.edits[-1]["text"]

    stranger = make_callback_update(1, data="enrollment_cancel_not-mine")
    await events_handlers.cancel_enrollment_callback(stranger, context)
    assert "can no longer be cancelled" in stranger.callback_query.edits[-1]["text"]


@pytest.mark.asyncio
async def test_remark_requires_ownership_of_the_event(context, seed):
    await _login_as_new_organizer(context)
    context.args = ["1", "absent", "overwritten"]
    with pytest.raises(PermissionDenied):
        await organizer_handlers.remark_attendance(make_message_update(1, text="/remark"), context)
    record = next(r for r in seed.attendance if r.id == "1")
    assert (record.status, record.notes) == ("present", None)

    context.args = ["missing", "absent"]
    update = make_message_update(1, text="/remark")
    await organizer_handlers.remark_attendance(update, context)
    assert update.message.replies[-1]["text"] == "⚠️ Attendance record not found"


@pytest.mark.asyncio
async def test_owner_can_remark_attendance(context, seed):
    await _login(context, "olivia@example.com")
    context.args = ["2", "present", "on", "time"]
    update = make_message_update(1, text="/remark")
    await organizer_handlers.remark_attendance(update, context)
    assert update.message.replies[-1]["text"] == "✅ Attendance 2 is now present"
    record = next(r for r in seed.attendance if r.id == "2")
    assert (record.status, record.notes) == ("present", "on time")


@pytest.mark.asyncio
async def test_mark_rejects_batch_of_another_event(context, seed):
    await _login(context, "olivia@example.com")
    context.args = [CODING_EVENT_ID, YOGA_MORNING_BATCH_ID, ALICE_ID, "present", "2025-06-21"]
    update = make_message_update(1, text="/mark")
    await organizer_handlers.mark_attendance(update, context)
    assert update.message.replies[-1]["text"] == "⚠️ Batch does not belong to this event."
    assert len(seed.attendance) == 2
