import json
import threading

import pytest

from coursehub.schemas.notification import AlertItem, ReminderItem
from coursehub.worker.dispatchers import (
    DEAD_LETTERED,
    IDLE,
    REQUEUED,
    SENT,
    SKIPPED,
    AlertDispatcher,
    ReminderDispatcher,
)
from factories import make_allocation, make_log, make_user


@pytest.fixture()
def reminder_dispatcher(reminders, session_factory, sent):
    return ReminderDispatcher(reminders, session_factory, send=sent.append, pop_timeout=0.05, backoff_seconds=0.01)


@pytest.fixture()
def alert_dispatcher(alerts, session_factory, sent):
    return AlertDispatcher(alerts, session_factory, send=sent.append, pop_timeout=0.05, backoff_seconds=0.01)


def test_alert_is_rendered_for_all_active_managers(db, alerts, alert_dispatcher, sent):
    m1 = make_user(db, "m1@example.com", role="manager")
    m2 = make_user(db, "m2@example.com", role="manager")
    make_user(db, "retired@example.com", role="manager", active=False)
    fac = make_user(db, "fac@example.com", id=7, first="Ada", last="Lovelace")
    alloc = make_allocation(db, fac, manager=m1, course_code="CS101", cohort_name="2024-Spring")
    make_log(db, alloc, week_number=2, academic_year="2024", id=42)

    alerts.push(AlertItem(action="submitted", log_id=42, facilitator_id=7, week_number=2, academic_year="2024"))

    assert alert_dispatcher.run_once() == SENT
    (msg,) = sent
    assert msg.kind == "alert"
    assert "Submitted" in msg.subject
    assert "Week 2" in msg.subject
    assert msg.recipients == [m1.email, m2.email]
    assert "Ada Lovelace" in msg.body
    assert "CS101" in msg.body
    assert "2024-Spring" in msg.body
    assert "- Action: submitted" in msg.body


def test_reminder_is_rendered_for_facilitator(db, reminders, reminder_dispatcher, sent):
    fac = make_user(db, "fac@example.com", first="Grace", last="Hopper")
    alloc = make_allocation(db, fac, course_code="CS201", course_title="Data Structures", cohort_name="2024-Fall")

    reminders.push(ReminderItem(facilitator_id=fac.id, allocation_id=alloc.id, week_number=3, academic_year="2024"))

    assert reminder_dispatcher.run_once() == SENT
    (msg,) = sent
    assert msg.recipients == ["fac@example.com"]
    assert "Week 3" in msg.subject
    assert "Grace Hopper" in msg.body
    assert "CS201 - Data Structures" in msg.body
    assert "2024-Fall" in msg.body


def test_reminder_for_unknown_entities_is_skipped(db, reminders, reminder_dispatcher, sent):
    fac = make_user(db, "fac@example.com")
    reminders.push(ReminderItem(facilitator_id=fac.id, allocation_id=999, week_number=3, academic_year="2024"))
    reminders.push(ReminderItem(facilitator_id=999, allocation_id=1, week_number=3, academic_year="2024"))

    assert reminder_dispatcher.run_once() == SKIPPED
    assert reminder_dispatcher.run_once() == SKIPPED
    assert sent == []
    assert len(reminders) == 0


def test_alert_for_missing_log_is_skipped(db, alerts, alert_dispatcher, sent):
    make_user(db, "m@example.com", role="manager")
    fac = make_user(db, "fac@example.com")
    alerts.push(AlertItem(action="deleted", log_id=12345, facilitator_id=fac.id, week_number=1, academic_year="2024"))

    assert alert_dispatcher.run_once() == SKIPPED
    assert sent == []


def test_alert_without_active_managers_is_skipped_with_warning(db, alerts, alert_dispatcher, sent, caplog):
    make_user(db, "retired@example.com", role="manager", active=False)
    fac = make_user(db, "fac@example.com")
    alloc = make_allocation(db, fac)
    row = make_log(db, alloc, week_number=2)
    alerts.push(AlertItem(action="updated", log_id=row.id, facilitator_id=fac.id, week_number=2, academic_year="2024"))

    with caplog.at_level("WARNING", logger="coursehub.worker"):
        assert alert_dispatcher.run_once() == SKIPPED
    assert sent == []
    assert "no active managers" in caplog.text


def test_items_are_dispatched_in_queue_order(db, reminders, reminder_dispatcher, sent):
    fac = make_user(db, "fac@example.com")
    first = make_allocation(db, fac, course_code="CS101")
    second = make_allocation(db, fac, course_code="CS102")

    reminders.push(ReminderItem(facilitator_id=fac.id, allocation_id=first.id, week_number=3, academic_year="2024"))
    reminders.push(ReminderItem(facilitator_id=fac.id, allocation_id=second.id, week_number=3, academic_year="2024"))

    assert reminder_dispatcher.run_once() == SENT
    assert reminder_dispatcher.run_once() == SENT
    assert "CS101" in sent[0].body
    assert "CS102" in sent[1].body


def test_empty_queue_times_out_idle(reminder_dispatcher, sent):
    assert reminder_dispatcher.run_once() == IDLE
    assert sent == []


def test_malformed_payload_goes_to_dead_letter(redis_client, reminders, reminder_dispatcher, sent):
    redis_client.lpush(reminders.name, "{broken")

    assert reminder_dispatcher.run_once() == DEAD_LETTERED
    (record,) = redis_client.pending(reminders.dead_letter)
    record = json.loads(record)
    assert record["queue"] == reminders.name
    assert record["payload"] == "{broken"
    assert record["error"]
    assert sent == []


def test_wrong_kind_on_queue_goes_to_dead_letter(redis_client, reminders, reminder_dispatcher):
    reminders.push(AlertItem(action="updated", log_id=1, facilitator_id=1, week_number=1, academic_year="2024"))

    assert reminder_dispatcher.run_once() == DEAD_LETTERED
    assert len(redis_client.pending(reminders.dead_letter)) == 1


def test_item_popped_after_stop_is_handed_back(db, reminders, reminder_dispatcher, redis_client, sent):
    reminders.push(ReminderItem(facilitator_id=1, allocation_id=1, week_number=3, academic_year="2024"))
    reminders.push(ReminderItem(facilitator_id=2, allocation_id=2, week_number=3, academic_year="2024"))
    token = threading.Event()
    token.set()

    assert reminder_dispatcher.run_once(token) == REQUEUED
    head = json.loads(redis_client.pending(reminders.name)[0])
    assert head["facilitatorId"] == 1
    assert len(reminders) == 2
    assert sent == []


def test_loop_logs_errors_backs_off_and_keeps_going(reminders, sent, caplog):
    token = threading.Event()
    calls = []

    def broken_session_factory():
        calls.append(1)
        if len(calls) == 2:
            token.set()
        raise RuntimeError("database unavailable")

    for n in range(3):
        reminders.push(ReminderItem(facilitator_id=n + 1, allocation_id=1, week_number=3, academic_year="2024"))

    dispatcher = ReminderDispatcher(
        reminders, broken_session_factory, send=sent.append, pop_timeout=0.05, backoff_seconds=0.01
    )
    with caplog.at_level("ERROR", logger="coursehub.worker"):
        dispatcher.run(token)

    assert len(calls) == 2
    assert len(reminders) == 1
    assert sent == []
    assert "database unavailable" in caplog.text
