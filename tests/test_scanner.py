from datetime import date

from coursehub.schemas.notification import ReminderItem, parse_queue_item
from coursehub.worker.scanner import scan_missing_submissions
from factories import make_allocation, make_log, make_user

WEEK_3 = date(2024, 1, 17)
WEEK_4 = date(2024, 1, 24)


def _queued(redis_client, queue):
    return [parse_queue_item(raw) for raw in redis_client.pending(queue.name)]


def test_existing_log_suppresses_reminder_only_for_its_week(db, reminders, redis_client):
    fac = make_user(db, "fac@example.com")
    alloc = make_allocation(db, fac, id=5)
    make_log(db, alloc, week_number=3, academic_year="2024")

    assert scan_missing_submissions(db, reminders, today=WEEK_3) == 0
    assert len(reminders) == 0

    assert scan_missing_submissions(db, reminders, today=WEEK_4) == 1
    (item,) = _queued(redis_client, reminders)
    assert isinstance(item, ReminderItem)
    assert (item.allocation_id, item.facilitator_id) == (5, fac.id)
    assert (item.week_number, item.academic_year) == (4, "2024")


def test_repeated_scan_queues_duplicate_reminders(db, reminders, redis_client):
    fac = make_user(db, "fac@example.com")
    make_allocation(db, fac)

    scan_missing_submissions(db, reminders, today=WEEK_3)
    scan_missing_submissions(db, reminders, today=WEEK_3)

    first, second = _queued(redis_client, reminders)
    ignore = {"enqueued_at"}
    assert first.model_dump(exclude=ignore) == second.model_dump(exclude=ignore)


def test_only_active_facilitators_and_allocations_are_scanned(db, reminders, redis_client):
    manager = make_user(db, "boss@example.com", role="manager")
    active = make_user(db, "active@example.com")
    inactive = make_user(db, "gone@example.com", active=False)

    live = make_allocation(db, active, manager=manager)
    make_allocation(db, active, manager=manager, course_code="CS102", active=False)
    make_allocation(db, inactive, manager=manager, course_code="CS103")
    make_allocation(db, manager, course_code="CS104")  # managers are never reminded

    assert scan_missing_submissions(db, reminders, today=WEEK_3) == 1
    (item,) = _queued(redis_client, reminders)
    assert item.allocation_id == live.id


def test_failure_on_one_pair_does_not_abort_the_scan(db, reminders, redis_client, monkeypatch):
    fac = make_user(db, "fac@example.com")
    first = make_allocation(db, fac)
    second = make_allocation(db, fac, course_code="CS102")

    real_push = reminders.push
    calls = []

    def flaky_push(item):
        calls.append(item.allocation_id)
        if item.allocation_id == first.id:
            raise ConnectionError("redis hiccup")
        real_push(item)

    monkeypatch.setattr(reminders, "push", flaky_push)

    assert scan_missing_submissions(db, reminders, today=WEEK_3) == 1
    assert calls == [first.id, second.id]
    (item,) = _queued(redis_client, reminders)
    assert item.allocation_id == second.id
