"""Availability service - Business logic for windows and slots"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from ...config import AVAILABILITY_LOOKAHEAD_DAYS
from ...errors import ConflictError, NotFoundError, OverlapError, ValidationError
from ...locks import provider_transaction
from ...models import RECURRENCE_POLICIES, AvailabilityWindow, Provider, Slot
from ...shared.validators import to_naive_utc, within_day
from .overlap import SlotSpec, find_internal_overlaps, find_overlaps
from .recurrence import plan_expansion, shift_slots
from .repository import AvailabilityRepository

logger = logging.getLogger(__name__)


@dataclass
class WindowCreation:
    """Template window plus whatever recurrence expansion produced"""

    window: AvailabilityWindow
    generated: list[AvailabilityWindow] = field(default_factory=list)
    skipped_dates: list[date] = field(default_factory=list)


@dataclass(frozen=True)
class SlotSnapshot:
    """Slot state captured before the row is removed"""

    id: int
    start: datetime
    end: datetime
    occupied: bool


@dataclass
class WindowEdit:
    window: AvailabilityWindow
    dropped_occupied_slots: list[SlotSnapshot] = field(default_factory=list)


@dataclass(frozen=True)
class OpenSlot:
    id: int
    window_id: int
    date: date
    start: datetime
    end: datetime


@dataclass
class AvailabilityListing:
    provider_id: int
    category: str
    slots: list[OpenSlot]


def prepare_slots(day: date, raw_slots: Iterable) -> list[SlotSpec]:
    """
    Validate proposed slots for ``day``.

    Raises ValidationError for empty input, inverted intervals or slots
    outside the day, and OverlapError when proposed slots collide with each
    other. Nothing is persisted.
    """
    specs = []
    for raw in raw_slots:
        start = to_naive_utc(raw.start)
        end = to_naive_utc(raw.end)
        if start is None or end is None:
            raise ValidationError("Slot start and end are required")
        if start >= end:
            raise ValidationError(
                "Slot start must be before end", start=start.isoformat(), end=end.isoformat()
            )
        if not within_day(day, start, end):
            raise ValidationError(
                f"Slot {start.isoformat()} - {end.isoformat()} is outside {day.isoformat()}"
            )
        specs.append(SlotSpec(start=start, end=end))

    if not specs:
        raise ValidationError("At least one slot is required")

    if find_internal_overlaps(specs):
        raise OverlapError("Overlapping time slot", date=day.isoformat())

    return sorted(specs, key=lambda s: s.start)


class AvailabilityService:
    """Service layer for availability windows"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = AvailabilityRepository()

    def create_window(
        self,
        provider_id: int,
        day: date,
        raw_slots: Iterable,
        recurrence: str = "none",
    ) -> WindowCreation:
        """Declare availability for a day and expand it if a recurrence is requested"""
        if recurrence not in RECURRENCE_POLICIES:
            raise ValidationError(f"Unknown recurrence policy '{recurrence}'")
        specs = prepare_slots(day, raw_slots)

        logger.info(f"📥 Creating availability for provider {provider_id} on {day.isoformat()}")

        with provider_transaction(self.db, provider_id):
            existing = self.repo.get_windows(self.db, provider_id)
            if find_overlaps(day, specs, existing):
                logger.warning(f"⚠️ Overlapping slots for provider {provider_id} on {day.isoformat()}")
                raise OverlapError("Overlapping time slot", date=day.isoformat())

            window = self.repo.add_window(self.db, provider_id, day, specs, recurrence)
            result = WindowCreation(window=window)

            if recurrence != "none":
                plan = plan_expansion(day, specs, recurrence, existing)
                for target, generated_slots in plan.accepted:
                    result.generated.append(
                        self.repo.add_window(
                            self.db,
                            provider_id,
                            target,
                            generated_slots,
                            "none",
                            template_id=window.id,
                        )
                    )
                result.skipped_dates = plan.skipped

        logger.info(
            f"✅ Availability {result.window.id} created for provider {provider_id} "
            f"({len(result.generated)} generated, {len(result.skipped_dates)} skipped)"
        )
        return result

    def update_window(
        self,
        provider_id: int,
        window_id: int,
        day: Optional[date] = None,
        raw_slots: Optional[Iterable] = None,
        recurrence: Optional[str] = None,
    ) -> WindowEdit:
        """
        Edit a window's date, slots or recurrence policy.

        A date-only change moves the existing slots to the new day and is
        refused while any of them is booked. Replacing slots keeps any existing
        slot re-submitted with the same start and end (id and occupied flag
        survive). Occupied slots that do not survive are removed and returned
        in ``dropped_occupied_slots``.
        """
        if recurrence is not None and recurrence not in RECURRENCE_POLICIES:
            raise ValidationError(f"Unknown recurrence policy '{recurrence}'")

        with provider_transaction(self.db, provider_id):
            window = self.repo.get_window(self.db, window_id, provider_id)
            if not window:
                raise NotFoundError("Availability not found", window_id=window_id)

            target_day = day or window.date
            moving = raw_slots is None and target_day != window.date
            if raw_slots is not None:
                specs = prepare_slots(target_day, raw_slots)
            elif moving:
                if window.has_occupied_slots:
                    logger.warning(f"⚠️ Refusing to move availability {window_id}: has booked slots")
                    raise ConflictError("Cannot move availability with booked slots", window_id=window_id)
                specs = shift_slots(window.slots, target_day)
            else:
                specs = None

            edit = WindowEdit(window=window)
            if specs is not None:
                others = self.repo.get_windows_on(self.db, provider_id, target_day)
                if find_overlaps(target_day, specs, others, exclude_window_id=window.id):
                    logger.warning(
                        f"⚠️ Update of availability {window_id} overlaps on {target_day.isoformat()}"
                    )
                    raise OverlapError("Overlapping time slot", date=target_day.isoformat())
                if moving:
                    # Slots keep their id
                    for slot, spec in zip(window.slots, specs):
                        slot.start, slot.end = spec.start, spec.end
                else:
                    edit.dropped_occupied_slots = self._replace_slots(window, specs)
                window.date = target_day

            if recurrence is not None:
                window.recurrence = recurrence
            self.db.flush()

        if edit.dropped_occupied_slots:
            logger.warning(
                f"⚠️ Availability {window_id} update removed {len(edit.dropped_occupied_slots)} booked slot(s): "
                f"{[s.id for s in edit.dropped_occupied_slots]}"
            )
        logger.info(f"✅ Availability {window_id} updated for provider {provider_id}")
        return edit

    def _replace_slots(self, window: AvailabilityWindow, specs: list[SlotSpec]) -> list[SlotSnapshot]:
        existing = {(s.start, s.end): s for s in window.slots}
        kept_ids = set()
        new_slots = []
        for spec in specs:
            match = existing.get((spec.start, spec.end))
            if match is not None:
                kept_ids.add(match.id)
            else:
                new_slots.append(Slot(start=spec.start, end=spec.end, occupied=False))

        removed = [s for s in window.slots if s.id not in kept_ids]
        dropped = [SlotSnapshot(s.id, s.start, s.end, s.occupied) for s in removed if s.occupied]

        self.repo.remove_slots(self.db, window, removed)
        window.slots.extend(new_slots)
        return dropped

    def delete_window(self, provider_id: int, window_id: int) -> None:
        """Remove a window; refused while any of its slots is booked"""
        with provider_transaction(self.db, provider_id):
            window = self.repo.get_window(self.db, window_id, provider_id)
            if not window:
                raise NotFoundError("Availability not found", window_id=window_id)
            if window.has_occupied_slots:
                logger.warning(f"⚠️ Refusing to delete availability {window_id}: has booked slots")
                raise ConflictError("Cannot delete availability with booked slots", window_id=window_id)
            self.repo.delete_window(self.db, window)

        logger.info(f"🗑️ Availability {window_id} removed for provider {provider_id}")

    def list_windows(self, provider_id: int) -> list[AvailabilityWindow]:
        self._get_provider(provider_id)
        return self.repo.get_windows(self.db, provider_id)

    def list_availability(
        self, provider_id: int, now: datetime, day: Optional[date] = None
    ) -> AvailabilityListing:
        """
        Unoccupied slots for a provider.

        With ``day`` only that date is listed; otherwise slots starting at or
        after ``now`` on windows dated through the lookahead period.
        """
        provider = self._get_provider(provider_id)

        now = to_naive_utc(now)
        if day is not None:
            windows = self.repo.get_windows_on(self.db, provider_id, day)
            earliest = None
        else:
            today = now.date()
            windows = self.repo.get_windows_between(
                self.db, provider_id, today, today + timedelta(days=AVAILABILITY_LOOKAHEAD_DAYS)
            )
            earliest = now

        open_slots = [
            OpenSlot(id=s.id, window_id=w.id, date=w.date, start=s.start, end=s.end)
            for w in windows
            for s in w.slots
            if not s.occupied and (earliest is None or s.start >= earliest)
        ]
        open_slots.sort(key=lambda s: (s.start, s.id))
        return AvailabilityListing(provider_id=provider.id, category=provider.category, slots=open_slots)

    def _get_provider(self, provider_id: int) -> Provider:
        provider = self.db.query(Provider).filter(Provider.id == provider_id).first()
        if not provider:
            raise NotFoundError("Provider not found", provider_id=provider_id)
        return provider
