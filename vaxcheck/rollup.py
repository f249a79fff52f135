"""Per-family rollups for the vaccine status report.

For each animal and each core family (rabies, DHPP/DAPP, Bordetella) the
report shows one line: when the family was last given and when the next dose
is due. This module reduces an AnimalVaccineSet to those lines.

**Rules:**

- Last given: latest completed-at among the family's history records.
- Next due: among the family's scheduled records (every window bucket,
  unknown included), the one with the smallest scheduled-for instant. An
  unresolved instant sorts as +infinity, so a dateless record is chosen only
  when every candidate is dateless. Ties keep the first record encountered.
- Display status: the next-due record's window status; ``current`` when the
  family has history but nothing scheduled; ``none`` when nothing of the
  family is on file.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from .data_models import (
    AnimalVaccineSet,
    CanonicalVaccineRecord,
    FamilyRollup,
    StatusCounts,
)
from .enums import DisplayStatus, VaccineFamily, WindowStatus


def last_given(records: Sequence[CanonicalVaccineRecord]) -> Optional[datetime]:
    """Latest completed-at among records, ignoring those without one."""
    completed = [record.completed_at for record in records if record.completed_at]
    return max(completed) if completed else None


def _schedule_key(record: CanonicalVaccineRecord) -> float:
    if record.scheduled_for is None:
        return math.inf
    return record.scheduled_for.timestamp()


def soonest_scheduled(
    records: Sequence[CanonicalVaccineRecord],
) -> Optional[CanonicalVaccineRecord]:
    """Record with the earliest scheduled-for instant; dateless sorts last."""
    soonest: Optional[CanonicalVaccineRecord] = None
    for record in records:
        if soonest is None or _schedule_key(record) < _schedule_key(soonest):
            soonest = record
    return soonest


def rollup_family(animal: AnimalVaccineSet, family: VaccineFamily) -> FamilyRollup:
    """Summarize one family for one animal.

    Parameters
    ----------
    animal : AnimalVaccineSet
        Reconciled records of the animal.
    family : VaccineFamily
        Family to summarize.

    Returns
    -------
    FamilyRollup
        Last-given date, next-due record and display status.
    """
    history = [record for record in animal.history if record.family is family]
    scheduled = [record for record in animal.scheduled if record.family is family]

    next_due = soonest_scheduled(scheduled)
    if next_due is not None:
        status = DisplayStatus.from_window(next_due.status)
    elif history:
        status = DisplayStatus.CURRENT
    else:
        status = DisplayStatus.NONE

    return FamilyRollup(
        family=family,
        last_given=last_given(history),
        next_due=next_due,
        status=status,
        has_history=bool(history),
    )


def rollup_animal(animal: AnimalVaccineSet) -> Dict[VaccineFamily, FamilyRollup]:
    """Rollups for every core family, in report order."""
    return {family: rollup_family(animal, family) for family in VaccineFamily.core()}


def other_records(animal: AnimalVaccineSet) -> List[CanonicalVaccineRecord]:
    """Every ``other``-family record from the full history, unfiltered."""
    return [record for record in animal.history if record.family is VaccineFamily.OTHER]


def status_counts(animal: AnimalVaccineSet) -> StatusCounts:
    """Count the animal's scheduled records per window bucket."""
    buckets = animal.buckets
    return StatusCounts(
        overdue=len(buckets[WindowStatus.OVERDUE]),
        needs_attention=len(buckets[WindowStatus.NEEDS_ATTENTION]),
        upcoming=len(buckets[WindowStatus.UPCOMING]),
        current=len(buckets[WindowStatus.CURRENT]),
        unknown=len(buckets[WindowStatus.UNKNOWN]),
    )


def pluralize_days(count: int) -> str:
    return f"{count} day{'' if count == 1 else 's'}"


def describe_due(rollup: FamilyRollup) -> Optional[str]:
    """Relative wording for the next dose, e.g. "3 days overdue" or "in 1 day".

    Overdue amounts are floored, so "0 days overdue" means less than a day
    late; forward-looking amounts are ceiled, so a dose later today reads
    "in 1 day". Returns None when there is no dated next dose.
    """
    if rollup.days_overdue is not None:
        return f"{pluralize_days(rollup.days_overdue)} overdue"
    if rollup.days_ahead is not None:
        return f"in {pluralize_days(rollup.days_ahead)}"
    return None
