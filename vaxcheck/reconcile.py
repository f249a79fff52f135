"""Reconciliation of the org-wide scheduled feed with per-animal histories.

An animal's vaccine set is the union, by record identifier, of:

(a) its records in the org-wide "scheduled vaccines" feed, which seed the set;
(b) its own full-history feed (completed and scheduled doses), which only
    augments the set with identifiers not already present.

A record seen in both feeds keeps its feed (a) version; feed (b) never
overwrites it. Merging the same history twice is a no-op.

Records that name an animal missing from the discovery step are dropped with a
warning. Known animals with no records at all are still materialized, so the
report can say "nothing on file".
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import replace
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .data_models import (
    AnimalIdentity,
    AnimalVaccineSet,
    CanonicalVaccineRecord,
    ClassifierConfig,
    ReconcileResult,
)
from .normalize import normalize_feed

LOG = logging.getLogger(__name__)


def merge_records(
    animal: AnimalVaccineSet, records: Iterable[CanonicalVaccineRecord]
) -> AnimalVaccineSet:
    """Add records whose identifiers the animal does not have yet.

    Parameters
    ----------
    animal : AnimalVaccineSet
        Current set; never modified.
    records : Iterable[CanonicalVaccineRecord]
        Candidate records, in arrival order.

    Returns
    -------
    AnimalVaccineSet
        A new set with the strictly new records appended. Earlier records win
        over later duplicates, both across and within the inputs.
    """
    known = set(animal.known_ids)
    added: List[CanonicalVaccineRecord] = []
    for record in records:
        if record.record_id in known:
            continue
        known.add(record.record_id)
        added.append(record)

    if not added:
        return animal
    return replace(animal, records=animal.records + tuple(added))


def seed_from_scheduled_feed(
    identities: Sequence[AnimalIdentity],
    scheduled_feed: Sequence[Any],
    now: datetime,
    config: ClassifierConfig | None = None,
) -> Tuple[Dict[str, AnimalVaccineSet], List[str]]:
    """Build each known animal's initial set from the org-wide scheduled feed.

    Parameters
    ----------
    identities : Sequence[AnimalIdentity]
        Animals from the discovery step, in report order.
    scheduled_feed : Sequence[Any]
        Raw org-wide scheduled vaccine objects.
    now : datetime
        Reference instant shared by the whole run.
    config : ClassifierConfig, optional
        Window widths and family rules.

    Returns
    -------
    Tuple[Dict[str, AnimalVaccineSet], List[str]]
        Sets keyed by animal ID (every identity present, possibly empty) and
        warnings for skipped records.
    """
    records, warnings = normalize_feed(
        scheduled_feed, now, config, feed_name="scheduled vaccines"
    )

    grouped: Dict[str, List[CanonicalVaccineRecord]] = {}
    dropped: Counter[str] = Counter()
    known_animals = {identity.animal_id for identity in identities}
    for record in records:
        if record.animal_id not in known_animals:
            dropped[record.animal_id or "unknown"] += 1
            continue
        grouped.setdefault(record.animal_id, []).append(record)

    for animal_id, count in sorted(dropped.items()):
        message = (
            f"Dropped {count} scheduled record(s) for animal {animal_id}: "
            "not found among in-custody animals"
        )
        LOG.warning(message)
        warnings.append(message)

    animals: Dict[str, AnimalVaccineSet] = {}
    for identity in identities:
        if identity.animal_id in animals:
            continue
        animals[identity.animal_id] = merge_records(
            AnimalVaccineSet(identity=identity),
            grouped.get(identity.animal_id, []),
        )
    return animals, warnings


def merge_history(
    animal: AnimalVaccineSet,
    history_feed: Sequence[Any],
    now: datetime,
    config: ClassifierConfig | None = None,
) -> Tuple[AnimalVaccineSet, List[str]]:
    """Augment an animal's set with new records from its full-history feed.

    Every history record belongs to the animal the feed was fetched for,
    whatever animal_id it carries.

    Returns
    -------
    Tuple[AnimalVaccineSet, List[str]]
        The augmented set and warnings for skipped records.
    """
    owner = animal.identity.animal_id
    records, warnings = normalize_feed(
        history_feed,
        now,
        config,
        animal_id=owner,
        feed_name=f"history ({owner})",
    )
    owned = [
        record if record.animal_id == owner else replace(record, animal_id=owner)
        for record in records
    ]
    merged = merge_records(animal, owned)
    LOG.info(
        "Merged history for %s: %d record(s) received, %d new",
        owner,
        len(owned),
        len(merged.records) - len(animal.records),
    )
    return merged, warnings


def reconcile(
    identities: Sequence[AnimalIdentity],
    scheduled_feed: Sequence[Any],
    history_feeds: Mapping[str, Sequence[Any]],
    now: datetime,
    config: ClassifierConfig | None = None,
    *,
    only: Optional[Iterable[str]] = None,
) -> ReconcileResult:
    """Reconcile both feeds for every known animal.

    Parameters
    ----------
    identities : Sequence[AnimalIdentity]
        Animals from the discovery step, in report order.
    scheduled_feed : Sequence[Any]
        Raw org-wide scheduled vaccine objects.
    history_feeds : Mapping[str, Sequence[Any]]
        Raw full-history feed per animal ID. Animals without an entry keep
        their feed (a) records only.
    now : datetime
        Reference instant shared by the whole run.
    config : ClassifierConfig, optional
        Window widths and family rules.
    only : Iterable[str], optional
        Restrict the result to these animal IDs.

    Returns
    -------
    ReconcileResult
        One AnimalVaccineSet per (selected) identity, plus warnings.
    """
    animals, warnings = seed_from_scheduled_feed(identities, scheduled_feed, now, config)
    selected = set(only) if only is not None else None

    results: List[AnimalVaccineSet] = []
    for animal_id, animal in animals.items():
        if selected is not None and animal_id not in selected:
            continue
        history = history_feeds.get(animal_id)
        if history is not None:
            animal, history_warnings = merge_history(animal, history, now, config)
            warnings.extend(history_warnings)
        results.append(animal)

    return ReconcileResult(animals=results, warnings=warnings)
