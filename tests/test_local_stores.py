from __future__ import annotations

import pytest

from eventhub.models import Attendance
from eventhub.services.attendance import attendance_heatmap, attendance_rate
from eventhub.storage.seed import ALICE_ID, OLIVIA_ID, YOGA_EVENT_ID, YOGA_MORNING_BATCH_ID


@pytest.mark.asyncio
async def test_fetch_attendance_filters_by_event_and_batch(stores):
    result = await stores.attendance.fetch_attendance(YOGA_EVENT_ID, YOGA_MORNING_BATCH_ID)
    assert result.ok
    assert [r.id for r in stores.attendance.state.attendance_records] == ["1", "2"]

    other = await stores.attendance.fetch_attendance(YOGA_EVENT_ID, "other-batch")
    assert other.value == []
    assert stores.attendance.state.attendance_records == []


@pytest.mark.asyncio
async def test_mark_attendance_assigns_id_and_rejects_duplicates(stores):
    await stores.attendance.fetch_attendance(YOGA_EVENT_ID, YOGA_MORNING_BATCH_ID)
    result = await stores.attendance.mark_attendance(
        user_id=OLIVIA_ID,
        event_id=YOGA_EVENT_ID,
        batch_id=YOGA_MORNING_BATCH_ID,
        date="2025-06-15",
        status="absent",
    )
    assert result.ok
    assert len(result.value.id) == 9
    assert len(stores.attendance.state.attendance_records) == 3

    again = await stores.attendance.mark_attendance(
        user_id=OLIVIA_ID,
        event_id=YOGA_EVENT_ID,
        batch_id=YOGA_MORNING_BATCH_ID,
        date="2025-06-15",
        status="present",
    )
    assert not again.ok
    assert again.error == "Attendance already marked for this date"
    assert len(stores.attendance.state.attendance_records) == 3


@pytest.mark.asyncio
async def test_mark_attendance_validates_input(stores):
    bad_status = await stores.attendance.mark_attendance(ALICE_ID, YOGA_EVENT_ID, YOGA_MORNING_BATCH_ID, "2025-06-20", "sleeping")
    assert not bad_status.ok
    bad_date = await stores.attendance.mark_attendance(ALICE_ID, YOGA_EVENT_ID, YOGA_MORNING_BATCH_ID, "20/06/2025", "present")
    assert bad_date.error == "Invalid date. Use YYYY-MM-DD"
    assert not stores.attendance.state.is_loading


@pytest.mark.asyncio
async def test_update_attendance_replaces_status_and_notes(stores):
    await stores.attendance.fetch_attendance(YOGA_EVENT_ID, YOGA_MORNING_BATCH_ID)
    result = await stores.attendance.update_attendance("2", "present")
    assert result.ok
    record = next(r for r in stores.attendance.state.attendance_records if r.id == "2")
    assert record.status == "present"
    assert record.notes is None
    assert next(r for r in stores.attendance.state.attendance_records if r.id == "1").status == "present"

    missing = await stores.attendance.update_attendance("nope", "late")
    assert missing.error == "Attendance record not found"


@pytest.mark.asyncio
async def test_get_user_attendance_leaves_records_alone(stores):
    result = await stores.attendance.get_user_attendance(ALICE_ID, YOGA_EVENT_ID)
    assert [r.status for r in result.value] == ["present", "late"]
    assert stores.attendance.state.attendance_records == []


def test_attendance_rate_and_heatmap():
    records = [
        Attendance("a", "u", "e", "b", "2025-06-01", "present"),
        Attendance("b", "u", "e", "b", "2025-06-02", "late"),
        Attendance("c", "u", "e", "b", "2025-06-03", "absent"),
        Attendance("d", "u", "e", "b", "2025-06-04", "present"),
    ]
    assert attendance_heatmap(records)[1] == ("2025-06-02", 0.5)
    assert attendance_rate(records) == 62
    assert attendance_rate([]) == 0


@pytest.mark.asyncio
async def test_payments_are_completed_with_distinct_ids(stores):
    first = await stores.payments.process_payment(ALICE_ID, YOGA_EVENT_ID, 45.0, "credit_card")
    second = await stores.payments.process_payment(ALICE_ID, YOGA_EVENT_ID, 45.0, "credit_card")
    for result in (first, second):
        assert result.ok
        assert result.value.status == "completed"
        assert result.value.id.startswith("pay_")
        assert result.value.transaction_id.startswith("txn_")
    assert first.value.id != second.value.id
    assert first.value.transaction_id != second.value.transaction_id
    assert stores.payments.state.payment_details == second.value
    assert not stores.payments.state.is_processing


@pytest.mark.asyncio
async def test_payment_failure_returns_no_value(stores):
    result = await stores.payments.process_payment(ALICE_ID, YOGA_EVENT_ID, -5, "credit_card")
    assert not result.ok
    assert result.value is None
    assert stores.payments.state.error == "Payment amount cannot be negative"


@pytest.mark.asyncio
async def test_notifications_read_flow(stores):
    await stores.notifications.fetch_notifications(ALICE_ID)
    state = stores.notifications.state
    assert len(state.notifications) == 3
    assert state.unread_count == 2

    await stores.notifications.mark_as_read("n1")
    assert state.unread_count == 1
    assert next(n for n in state.notifications if n.id == "n1").read

    result = await stores.notifications.mark_all_as_read()
    assert result.ok
    assert state.unread_count == 0
    assert all(n.read for n in state.notifications)

    await stores.notifications.fetch_notifications(ALICE_ID)
    assert state.unread_count == 0


@pytest.mark.asyncio
async def test_mark_all_as_read_on_empty_state(stores):
    await stores.notifications.mark_all_as_read()
    assert stores.notifications.state.unread_count == 0


@pytest.mark.asyncio
async def test_login_with_demo_password(stores):
    result = await stores.auth.login("alice@example.com", "password")
    assert result.ok
    assert stores.auth.state.is_authenticated
    assert stores.auth.state.user.id == ALICE_ID

    stores.auth.logout()
    assert stores.auth.state.user is None
    assert not stores.auth.state.is_authenticated


@pytest.mark.asyncio
async def test_login_with_wrong_password_fails(stores):
    result = await stores.auth.login("alice@example.com", "hunter2")
    assert not result.ok
    assert result.error == "Invalid email or password"
    assert not stores.auth.state.is_authenticated

    unknown = await stores.auth.login("nobody@example.com", "password")
    assert unknown.error == "Invalid email or password"


@pytest.mark.asyncio
async def test_register_creates_session_only_user(stores, seed):
    taken = await stores.auth.register("Alice Again", "alice@example.com", "secret1")
    assert taken.error == "Email already in use"

    short = await stores.auth.register("Bo", "bo@example.com", "123")
    assert short.error == "Password must be at least 6 characters"

    result = await stores.auth.register("Bo", "bo@example.com", "secret1")
    assert result.ok
    assert stores.auth.state.is_authenticated
    assert result.value.role.value == "user"
    assert all(u.email != "bo@example.com" for u in seed.users)


@pytest.mark.asyncio
async def test_reset_password_only_checks_email(stores):
    assert (await stores.auth.reset_password("alice@example.com")).ok
    missing = await stores.auth.reset_password("ghost@example.com")
    assert missing.error == "Email not found"


@pytest.mark.asyncio
async def test_profile_is_static_and_mergeable(stores):
    result = await stores.profile.fetch_user_profile(ALICE_ID)
    assert result.ok
    profile = result.value
    assert profile.user.phone == "+1 (555) 123-4567"
    assert profile.stats.attendance_rate == 85
    assert profile.enrollments == []

    updated = await stores.profile.update_user_profile(ALICE_ID, {"payments": []})
    assert updated.ok
    assert stores.profile.state.profile.user.name == "Alice Walker"

    unknown = await stores.profile.update_user_profile(ALICE_ID, {"nickname": "al"})
    assert not unknown.ok

    missing = await stores.profile.fetch_user_profile("nobody")
    assert missing.error == "User not found"
