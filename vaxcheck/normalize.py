"""Record normalization for Shelterluv vaccine feeds.

Converts raw vaccine payloads (arbitrary JSON objects) into
CanonicalVaccineRecord instances. The loose feed shape stops here; every
downstream step works on canonical records only.

**Input Contract:**
- A feed is a sequence of JSON objects as returned by the vaccines endpoints
- Any field may be missing, null, or of an unexpected type

**Output Contract:**
- One canonical record per raw record that has a usable identifier
- Scheduled-for is decoded and windowed; completed-at is decoded only
- Family tag comes from the product name
- Manufacturer and lot are copied verbatim (display placeholders are applied
  by the report, never here)

**Error Handling:**
- A feed that is not a sequence raises TypeError (structural error)
- Items that are not objects, or records without an identifier, are skipped
  and reported as warnings; processing continues
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Any, List, Optional, Tuple

from .data_models import (
    CanonicalVaccineRecord,
    ClassifierConfig,
    RawVaccineRecord,
)
from .due_window import classify_due_window, parse_unix_timestamp
from .families import classify_family

LOG = logging.getLogger(__name__)

RECORD_ID_KEYS = ("id", "vaccine_id", "ID")


def string_or_none(value: Any) -> Optional[str]:
    """Convert a scalar to a stripped string; None, blanks and containers become None."""
    if value is None or isinstance(value, (bool, Mapping, list, tuple)):
        return None
    text = str(value).strip()
    return text or None


def has_value(value: Any) -> bool:
    """True when a raw timestamp field was sent with any non-blank content."""
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def raw_record_from_mapping(
    payload: Mapping[str, Any], animal_id: Optional[str] = None
) -> RawVaccineRecord:
    """Build a RawVaccineRecord from a feed item.

    Parameters
    ----------
    payload : Mapping[str, Any]
        One vaccine object from a Shelterluv response.
    animal_id : Optional[str]
        Owning animal, used when the payload does not name one (per-animal
        history responses often omit it).

    Returns
    -------
    RawVaccineRecord
        Loosely validated record; fields the payload lacks are None.
    """
    record_id = None
    for key in RECORD_ID_KEYS:
        record_id = string_or_none(payload.get(key))
        if record_id:
            break

    return RawVaccineRecord(
        record_id=record_id,
        animal_id=string_or_none(payload.get("animal_id")) or string_or_none(animal_id),
        product=string_or_none(payload.get("product")),
        manufacturer=string_or_none(payload.get("manufacturer")),
        lot=string_or_none(payload.get("lot")),
        scheduled_for=payload.get("scheduled_for"),
        completed_at=payload.get("completed_at"),
    )


def normalize_record(
    raw: RawVaccineRecord,
    now: datetime,
    config: ClassifierConfig | None = None,
) -> Optional[CanonicalVaccineRecord]:
    """Convert one raw record into its canonical form.

    Parameters
    ----------
    raw : RawVaccineRecord
        Record to normalize.
    now : datetime
        Reference instant for the due-window classification.
    config : ClassifierConfig, optional
        Window widths and family rules.

    Returns
    -------
    Optional[CanonicalVaccineRecord]
        The canonical record, or None when the record has no identifier and
        so cannot take part in deduplication.
    """
    if not raw.record_id:
        return None

    window = classify_due_window(raw.scheduled_for, now, config)
    return CanonicalVaccineRecord(
        record_id=raw.record_id,
        animal_id=raw.animal_id,
        product=raw.product,
        manufacturer=raw.manufacturer,
        lot=raw.lot,
        scheduled_for=window.resolved_date,
        completed_at=parse_unix_timestamp(raw.completed_at),
        family=classify_family(raw.product, config),
        status=window.status,
        diff_days=window.diff_days,
        has_schedule=has_value(raw.scheduled_for),
    )


def ensure_feed(feed: Any, feed_name: str) -> Sequence[Any]:
    """Check that a feed is a sequence of items.

    Raises
    ------
    TypeError
        If feed is a string, a mapping, or not a sequence at all.
    """
    if isinstance(feed, (str, bytes, Mapping)) or not isinstance(feed, Sequence):
        raise TypeError(
            f"{feed_name} feed must be a sequence of vaccine objects, "
            f"got {type(feed).__name__}"
        )
    return feed


def normalize_feed(
    feed: Sequence[Any],
    now: datetime,
    config: ClassifierConfig | None = None,
    *,
    animal_id: Optional[str] = None,
    feed_name: str = "vaccine",
) -> Tuple[List[CanonicalVaccineRecord], List[str]]:
    """Normalize every usable record of a feed.

    Parameters
    ----------
    feed : Sequence[Any]
        Raw vaccine objects.
    now : datetime
        Reference instant shared by the whole run.
    config : ClassifierConfig, optional
        Window widths and family rules.
    animal_id : Optional[str]
        Default owning animal for records that do not name one.
    feed_name : str
        Used in warnings and error messages.

    Returns
    -------
    Tuple[List[CanonicalVaccineRecord], List[str]]
        Canonical records in feed order, and warnings for skipped items.
    """
    items = ensure_feed(feed, feed_name)
    records: List[CanonicalVaccineRecord] = []
    warnings: List[str] = []

    for index, item in enumerate(items):
        if not isinstance(item, Mapping):
            message = (
                f"Skipping {feed_name} item {index}: expected an object, "
                f"got {type(item).__name__}"
            )
            LOG.warning(message)
            warnings.append(message)
            continue

        raw = raw_record_from_mapping(item, animal_id=animal_id)
        record = normalize_record(raw, now, config)
        if record is None:
            message = (
                f"Skipping {feed_name} record without an identifier "
                f"(product: {raw.product or 'unknown'}, animal: {raw.animal_id or 'unknown'})"
            )
            LOG.warning(message)
            warnings.append(message)
            continue

        records.append(record)

    return records, warnings
