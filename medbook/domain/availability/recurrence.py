"""
Recurrence Expander

Generates follow-on windows from a template over a fixed one-month horizon.
Dates whose generated slots collide with existing availability are skipped;
the rest of the expansion still applies.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Iterable, Sequence

from dateutil.relativedelta import relativedelta

from .overlap import SlotSpec, has_overlap

logger = logging.getLogger(__name__)

RECURRENCE_STEPS = {
    "daily": relativedelta(days=1),
    "weekly": relativedelta(weeks=1),
    "monthly": relativedelta(months=1),
}

# Fixed, not configurable
RECURRENCE_HORIZON = relativedelta(months=1)


@dataclass
class ExpansionPlan:
    """Dates accepted with their slots, plus dates skipped on overlap"""

    accepted: list[tuple[date, list[SlotSpec]]] = field(default_factory=list)
    skipped: list[date] = field(default_factory=list)


def candidate_dates(template_date: date, recurrence: str) -> list[date]:
    """
    Dates after ``template_date`` on the recurrence cadence, strictly before
    ``template_date + 1 month``.

    Steps are multiplied from the template date rather than chained so month
    arithmetic does not drift (Jan 31 + 2 months is Mar 31, not Mar 28).
    """
    step = RECURRENCE_STEPS.get(recurrence)
    if step is None:
        return []

    horizon = template_date + RECURRENCE_HORIZON
    dates = []
    k = 1
    while True:
        candidate = template_date + step * k
        if candidate >= horizon:
            break
        dates.append(candidate)
        k += 1
    return dates


def shift_slots(slots: Iterable[SlotSpec], target_date: date) -> list[SlotSpec]:
    """Move slots to ``target_date`` keeping time of day and duration"""
    shifted = []
    for slot in slots:
        # A slot ending at midnight keeps ending at the target's next midnight
        start = datetime.combine(target_date, slot.start.time())
        shifted.append(SlotSpec(start=start, end=start + (slot.end - slot.start)))
    return shifted


def plan_expansion(
    template_date: date,
    slots: Sequence[SlotSpec],
    recurrence: str,
    existing_windows: Iterable,
) -> ExpansionPlan:
    """
    Work out which generated dates can be created.

    ``existing_windows`` are the provider's current windows (any object with
    ``id``, ``date`` and ``slots``). Nothing is persisted here.
    """
    existing_windows = list(existing_windows)
    plan = ExpansionPlan()

    for target in candidate_dates(template_date, recurrence):
        generated = shift_slots(slots, target)
        if has_overlap(target, generated, existing_windows):
            logger.warning(f"⚠️ Skipping recurrence date {target.isoformat()}: overlaps existing availability")
            plan.skipped.append(target)
            continue
        plan.accepted.append((target, generated))

    return plan
