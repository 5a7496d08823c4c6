from datetime import date, datetime

import pytest
from helpers import at, spans

from medbook.domain.availability.service import AvailabilityService, prepare_slots
from medbook.errors import ConflictError, NotFoundError, OverlapError, ValidationError
from medbook.models import AvailabilityWindow, Booking, Slot

DAY = date(2025, 10, 1)


@pytest.fixture
def service(db):
    return AvailabilityService(db)


def occupy(db, slot_id):
    db.get(Slot, slot_id).occupied = True
    db.commit()


# ============================================================================
# SLOT PREPARATION
# ============================================================================


def test_prepare_slots_sorts_valid_input():
    specs = prepare_slots(DAY, spans(DAY, ("11:00", "11:30"), ("09:00", "09:30")))
    assert [s.start for s in specs] == [at(DAY, "09:00"), at(DAY, "11:00")]


def test_prepare_slots_rejects_inverted_interval():
    with pytest.raises(ValidationError):
        prepare_slots(DAY, spans(DAY, ("10:00", "09:00")))


def test_prepare_slots_rejects_zero_length_interval():
    with pytest.raises(ValidationError):
        prepare_slots(DAY, spans(DAY, ("10:00", "10:00")))


def test_prepare_slots_rejects_slot_outside_the_day():
    with pytest.raises(ValidationError):
        prepare_slots(DAY, spans(date(2025, 10, 2), ("09:00", "09:30")))


def test_prepare_slots_allows_slot_ending_at_midnight():
    specs = prepare_slots(DAY, spans(DAY, ("23:30", "24:00")))
    assert specs[0].end == datetime(2025, 10, 2, 0, 0)


def test_prepare_slots_rejects_empty_input():
    with pytest.raises(ValidationError):
        prepare_slots(DAY, [])


def test_prepare_slots_rejects_self_overlap():
    with pytest.raises(OverlapError):
        prepare_slots(DAY, spans(DAY, ("09:00", "10:00"), ("09:30", "10:30")))


# ============================================================================
# CREATE
# ============================================================================


def test_disjoint_sets_on_same_date_both_succeed(service, government_provider, db):
    first = service.create_window(government_provider.id, DAY, spans(DAY, ("09:00", "09:30"), ("09:30", "10:00")))
    second = service.create_window(government_provider.id, DAY, spans(DAY, ("10:00", "10:30")))

    assert first.window.id != second.window.id
    assert db.query(AvailabilityWindow).count() == 2
    assert db.query(Slot).count() == 3
    assert all(not s.occupied for s in db.query(Slot).all())


def test_overlapping_create_fails_without_writing(service, government_provider, db):
    service.create_window(government_provider.id, DAY, spans(DAY, ("09:00", "10:00")))

    with pytest.raises(OverlapError) as exc_info:
        service.create_window(government_provider.id, DAY, spans(DAY, ("11:00", "12:00"), ("09:30", "10:30")))

    assert exc_info.value.message == "Overlapping time slot"
    assert db.query(AvailabilityWindow).count() == 1
    assert db.query(Slot).count() == 1


def test_other_providers_do_not_conflict(service, government_provider, private_provider):
    service.create_window(government_provider.id, DAY, spans(DAY, ("09:00", "10:00")))
    result = service.create_window(private_provider.id, DAY, spans(DAY, ("09:00", "10:00")))
    assert result.window.provider_id == private_provider.id


def test_create_for_unknown_provider(service):
    with pytest.raises(NotFoundError):
        service.create_window(999, DAY, spans(DAY, ("09:00", "10:00")))


def test_unknown_recurrence_is_rejected(service, government_provider):
    with pytest.raises(ValidationError):
        service.create_window(government_provider.id, DAY, spans(DAY, ("09:00", "10:00")), "yearly")


def test_daily_recurrence_skips_colliding_dates(service, government_provider, db):
    blocked = date(2025, 10, 15)
    service.create_window(government_provider.id, blocked, spans(blocked, ("09:30", "10:30")))

    result = service.create_window(government_provider.id, DAY, spans(DAY, ("09:00", "10:00")), "daily")

    assert result.skipped_dates == [blocked]
    assert len(result.generated) == 29
    assert all(w.template_id == result.window.id for w in result.generated)
    assert result.window.recurrence == "daily"
    assert all(w.recurrence == "none" for w in result.generated)
    generated_dates = {w.date for w in result.generated}
    assert date(2025, 10, 31) in generated_dates
    assert date(2025, 11, 1) not in generated_dates
    # template + generated + the pre-existing window
    assert db.query(AvailabilityWindow).count() == 31
    oct_20 = next(w for w in result.generated if w.date == date(2025, 10, 20))
    assert [(s.start, s.end) for s in oct_20.slots] == [(datetime(2025, 10, 20, 9), datetime(2025, 10, 20, 10))]


def test_monthly_recurrence_only_creates_the_template(service, government_provider, db):
    result = service.create_window(government_provider.id, DAY, spans(DAY, ("09:00", "10:00")), "monthly")
    assert result.generated == []
    assert result.skipped_dates == []
    assert db.query(AvailabilityWindow).count() == 1


# ============================================================================
# UPDATE
# ============================================================================


def test_moving_a_window_shifts_its_slots(service, government_provider):
    created = service.create_window(government_provider.id, DAY, spans(DAY, ("09:00", "09:30")))
    slot_id = created.window.slots[0].id
    target = date(2025, 10, 3)

    edit = service.update_window(government_provider.id, created.window.id, day=target)

    assert edit.window.date == target
    assert [(s.id, s.start, s.end, s.occupied) for s in edit.window.slots] == [
        (slot_id, at(target, "09:00"), at(target, "09:30"), False)
    ]
    assert edit.dropped_occupied_slots == []


def test_moving_a_window_with_a_booked_slot_fails(service, government_provider, db):
    created = service.create_window(government_provider.id, DAY, spans(DAY, ("09:00", "09:30")))
    slot_id = created.window.slots[0].id
    occupy(db, slot_id)

    with pytest.raises(ConflictError):
        service.update_window(government_provider.id, created.window.id, day=date(2025, 10, 3))

    db.expire_all()
    window = db.get(AvailabilityWindow, created.window.id)
    assert window.date == DAY
    assert db.get(Slot, slot_id).start == at(DAY, "09:00")


def test_moving_onto_a_busy_date_fails(service, government_provider):
    target = date(2025, 10, 3)
    service.create_window(government_provider.id, target, spans(target, ("09:15", "09:45")))
    created = service.create_window(government_provider.id, DAY, spans(DAY, ("09:00", "09:30")))

    with pytest.raises(OverlapError):
        service.update_window(government_provider.id, created.window.id, day=target)


def test_update_overlapping_another_window_fails(service, government_provider, db):
    service.create_window(government_provider.id, DAY, spans(DAY, ("09:00", "10:00")))
    other = service.create_window(government_provider.id, DAY, spans(DAY, ("10:00", "11:00")))

    with pytest.raises(OverlapError):
        service.update_window(government_provider.id, other.window.id, raw_slots=spans(DAY, ("09:30", "11:00")))

    db.expire_all()
    window = db.get(AvailabilityWindow, other.window.id)
    assert [(s.start, s.end) for s in window.slots] == [(at(DAY, "10:00"), at(DAY, "11:00"))]


def test_update_does_not_conflict_with_its_own_slots(service, government_provider):
    created = service.create_window(government_provider.id, DAY, spans(DAY, ("09:00", "10:00")))
    edit = service.update_window(government_provider.id, created.window.id, raw_slots=spans(DAY, ("09:30", "10:30")))
    assert [(s.start, s.end) for s in edit.window.slots] == [(at(DAY, "09:30"), at(DAY, "10:30"))]


def test_replacing_slots_keeps_identical_occupied_slot(service, government_provider, db):
    created = service.create_window(government_provider.id, DAY, spans(DAY, ("09:00", "09:30"), ("09:30", "10:00")))
    kept_id = created.window.slots[0].id
    occupy(db, kept_id)

    edit = service.update_window(
        government_provider.id,
        created.window.id,
        raw_slots=spans(DAY, ("09:00", "09:30"), ("11:00", "11:30")),
    )

    slots = {s.id: s for s in edit.window.slots}
    assert kept_id in slots
    assert slots[kept_id].occupied is True
    assert len(slots) == 2
    assert edit.dropped_occupied_slots == []


def test_replacing_slots_reports_dropped_occupied_slot(service, government_provider, db):
    created = service.create_window(government_provider.id, DAY, spans(DAY, ("09:00", "09:30")))
    slot_id = created.window.slots[0].id
    occupy(db, slot_id)
    booking = Booking(
        consumer_id="pat-1",
        provider_id=government_provider.id,
        slot_id=slot_id,
        date=DAY,
        slot_start=at(DAY, "09:00"),
        slot_end=at(DAY, "09:30"),
        category="government",
        status="booked",
    )
    db.add(booking)
    db.commit()
    booking_id = booking.id

    edit = service.update_window(government_provider.id, created.window.id, raw_slots=spans(DAY, ("14:00", "14:30")))

    assert [s.id for s in edit.dropped_occupied_slots] == [slot_id]
    assert db.get(Slot, slot_id) is None
    db.expire_all()
    detached = db.get(Booking, booking_id)
    assert detached.slot_id is None
    assert detached.status == "booked"


def test_recurrence_change_only_records_policy(service, government_provider, db):
    created = service.create_window(government_provider.id, DAY, spans(DAY, ("09:00", "10:00")))
    edit = service.update_window(government_provider.id, created.window.id, recurrence="weekly")
    assert edit.window.recurrence == "weekly"
    assert db.query(AvailabilityWindow).count() == 1


def test_update_unknown_window(service, government_provider):
    with pytest.raises(NotFoundError):
        service.update_window(government_provider.id, 12345, day=DAY)


def test_update_window_of_another_provider(service, government_provider, private_provider):
    created = service.create_window(private_provider.id, DAY, spans(DAY, ("09:00", "10:00")))
    with pytest.raises(NotFoundError):
        service.update_window(government_provider.id, created.window.id, day=DAY)


# ============================================================================
# DELETE
# ============================================================================


def test_delete_window_with_occupied_slot_fails(service, government_provider, db):
    created = service.create_window(government_provider.id, DAY, spans(DAY, ("09:00", "09:30")))
    occupy(db, created.window.slots[0].id)

    with pytest.raises(ConflictError):
        service.delete_window(government_provider.id, created.window.id)
    assert db.query(AvailabilityWindow).count() == 1


def test_delete_free_window_removes_it_and_its_slots(service, government_provider, db):
    created = service.create_window(government_provider.id, DAY, spans(DAY, ("09:00", "09:30")))

    service.delete_window(government_provider.id, created.window.id)

    assert db.query(AvailabilityWindow).count() == 0
    assert db.query(Slot).count() == 0


# ============================================================================
# LISTING
# ============================================================================


def test_list_availability_for_a_date_excludes_occupied(service, government_provider, db):
    created = service.create_window(government_provider.id, DAY, spans(DAY, ("09:00", "09:30"), ("09:30", "10:00")))
    occupy(db, created.window.slots[0].id)

    listing = service.list_availability(government_provider.id, now=datetime(2025, 9, 1), day=DAY)

    assert listing.category == "government"
    assert [s.start for s in listing.slots] == [at(DAY, "09:30")]


def test_list_availability_uses_now_and_lookahead(service, government_provider):
    for day in (date(2025, 9, 30), date(2025, 10, 1), date(2025, 10, 30), date(2025, 10, 31)):
        service.create_window(government_provider.id, day, spans(day, ("09:00", "09:30")))

    listing = service.list_availability(government_provider.id, now=datetime(2025, 10, 1, 18, 0))

    # today's slot has already started; Oct 31 is the 31st day
    assert [s.date for s in listing.slots] == [date(2025, 10, 30)]


def test_list_availability_keeps_later_slots_today(service, government_provider):
    service.create_window(government_provider.id, DAY, spans(DAY, ("09:00", "09:30"), ("18:00", "18:30"), ("19:00", "19:30")))

    listing = service.list_availability(government_provider.id, now=datetime(2025, 10, 1, 18, 0))

    assert [s.start for s in listing.slots] == [at(DAY, "18:00"), at(DAY, "19:00")]


def test_list_availability_for_a_date_ignores_now(service, government_provider):
    service.create_window(government_provider.id, DAY, spans(DAY, ("09:00", "09:30")))

    listing = service.list_availability(government_provider.id, now=datetime(2025, 10, 1, 18, 0), day=DAY)

    assert [s.start for s in listing.slots] == [at(DAY, "09:00")]


def test_list_windows(service, government_provider):
    service.create_window(government_provider.id, date(2025, 10, 2), spans(date(2025, 10, 2), ("09:00", "09:30")))
    service.create_window(government_provider.id, DAY, spans(DAY, ("09:00", "09:30")))

    windows = service.list_windows(government_provider.id)

    assert [w.date for w in windows] == [DAY, date(2025, 10, 2)]


def test_list_for_unknown_provider(service):
    with pytest.raises(NotFoundError):
        service.list_availability(404, now=datetime(2025, 10, 1))
