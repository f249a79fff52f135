"""Unified data models for the vaccine schedule check.

This module provides the dataclasses passed between the classification,
reconciliation, rollup and report steps. Everything here is rebuilt from the
live API snapshot on each run; nothing is persisted.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from .enums import DisplayStatus, VaccineFamily, WindowStatus

DEFAULT_NEEDS_ATTENTION_DAYS = 14.0
DEFAULT_UPCOMING_DAYS = 30.0


@dataclass(frozen=True)
class FamilyRule:
    """One entry of the ordered family keyword list.

    Parameters
    ----------
    family : VaccineFamily
        Family assigned when any keyword matches.
    keywords : Tuple[str, ...]
        Lower-case substrings tested against the lower-cased product name.
    """

    family: VaccineFamily
    keywords: Tuple[str, ...]


DEFAULT_FAMILY_RULES: Tuple[FamilyRule, ...] = (
    FamilyRule(VaccineFamily.RABIES, ("rabies", "rabvac")),
    FamilyRule(
        VaccineFamily.DHPP_DAPP,
        (
            "dhpp",
            "dapp",
            "da2pp",
            "da2ppv",
            "dappv",
            "vanguard dapp",
            "nobivac canine 1-dappv",
        ),
    ),
    FamilyRule(VaccineFamily.BORDETELLA, ("bordetella", "trucan b")),
)


@dataclass(frozen=True)
class ClassifierConfig:
    """Thresholds and keyword rules passed into the classifiers.

    Built from parameters.yaml by config_loader.build_classifier_config(), or
    constructed directly (the defaults match the shipped configuration).

    Parameters
    ----------
    needs_attention_days : float
        Upper bound (inclusive) of the needs-attention window, in days.
    upcoming_days : float
        Upper bound (inclusive) of the upcoming window, in days.
    family_rules : Tuple[FamilyRule, ...]
        Family rules in priority order; first match wins.
    """

    needs_attention_days: float = DEFAULT_NEEDS_ATTENTION_DAYS
    upcoming_days: float = DEFAULT_UPCOMING_DAYS
    family_rules: Tuple[FamilyRule, ...] = DEFAULT_FAMILY_RULES


@dataclass(frozen=True)
class ReportSettings:
    """Date rendering settings for the report.

    Parameters
    ----------
    locale : str
        Babel locale (e.g. 'en_US').
    date_format : str
        Babel date pattern (e.g. 'M/d/yyyy' renders 12/1/2025).
    timezone : str
        IANA timezone the shelter reads dates in.
    """

    locale: str = "en_US"
    date_format: str = "M/d/yyyy"
    timezone: str = "UTC"


@dataclass(frozen=True)
class ShelterluvSettings:
    """Connection and discovery settings for the Shelterluv API."""

    base_url: str = "https://new.shelterluv.com/api/v1"
    page_limit: int = 200
    status_type: str = "in custody"
    animal_type: Optional[str] = "Dog"
    timeout_seconds: float = 30.0


@dataclass(frozen=True)
class RawVaccineRecord:
    """Vaccine record as received from a feed, loosely validated.

    Identifiers and free-text fields are stripped strings or None. Timestamp
    fields keep the value exactly as received (normally a seconds-since-epoch
    numeric string); decoding happens in the normalizer.
    """

    record_id: Optional[str]
    animal_id: Optional[str]
    product: Optional[str] = None
    manufacturer: Optional[str] = None
    lot: Optional[str] = None
    scheduled_for: Any = None
    completed_at: Any = None


@dataclass(frozen=True)
class WindowClassification:
    """Result of classifying a scheduled-for timestamp.

    Parameters
    ----------
    status : WindowStatus
        Due-window bucket.
    diff_days : Optional[float]
        Signed, fractional days from now to the resolved date. None iff
        status is UNKNOWN.
    resolved_date : Optional[datetime]
        Decoded scheduled-for instant (UTC), or None.
    """

    status: WindowStatus
    diff_days: Optional[float]
    resolved_date: Optional[datetime]


@dataclass(frozen=True)
class CanonicalVaccineRecord:
    """Normalized vaccine record carrying both classifications.

    Fields
    ------
    record_id : str
        Source identifier; the identity used for deduplication.
    animal_id : Optional[str]
        Owning animal's vaccine ID.
    product, manufacturer, lot : Optional[str]
        Copied verbatim from the raw record.
    scheduled_for : Optional[datetime]
        Resolved scheduled-for instant.
    completed_at : Optional[datetime]
        Resolved completed-at instant; history only, never windowed.
    family : VaccineFamily
        Family tag from the product name.
    status : WindowStatus
        Due-window status from scheduled_for.
    diff_days : Optional[float]
        Signed day offset from now; None iff status is UNKNOWN.
    has_schedule : bool
        True when the raw record carried a scheduled-for value at all, even
        an unparseable one. Only such records occupy a window bucket.
    """

    record_id: str
    animal_id: Optional[str]
    product: Optional[str]
    manufacturer: Optional[str]
    lot: Optional[str]
    scheduled_for: Optional[datetime]
    completed_at: Optional[datetime]
    family: VaccineFamily
    status: WindowStatus
    diff_days: Optional[float]
    has_schedule: bool


@dataclass(frozen=True)
class AnimalIdentity:
    """Display identity of an animal from the discovery step."""

    animal_id: str
    name: str
    photo_url: Optional[str] = None


@dataclass(frozen=True)
class AnimalVaccineSet:
    """All canonical vaccine records known for one animal.

    Records are kept in insertion order with unique record IDs. The window
    buckets and the unfiltered history are views over the same tuple.
    """

    identity: AnimalIdentity
    records: Tuple[CanonicalVaccineRecord, ...] = ()

    @property
    def known_ids(self) -> frozenset[str]:
        return frozenset(record.record_id for record in self.records)

    @property
    def history(self) -> List[CanonicalVaccineRecord]:
        """Every record, including completed-only ones without a schedule."""
        return list(self.records)

    @property
    def scheduled(self) -> List[CanonicalVaccineRecord]:
        """Records that occupy a window bucket, in insertion order."""
        return [record for record in self.records if record.has_schedule]

    def bucket(self, status: WindowStatus) -> List[CanonicalVaccineRecord]:
        return [record for record in self.scheduled if record.status is status]

    @property
    def buckets(self) -> Dict[WindowStatus, List[CanonicalVaccineRecord]]:
        return {status: self.bucket(status) for status in WindowStatus.bucket_order()}


@dataclass(frozen=True)
class FamilyRollup:
    """Last-given / next-due summary for one animal and one core family.

    Parameters
    ----------
    family : VaccineFamily
        The family summarized.
    last_given : Optional[datetime]
        Latest completed-at among the family's history records.
    next_due : Optional[CanonicalVaccineRecord]
        Soonest scheduled record of the family, if any.
    status : DisplayStatus
        next_due's window status; CURRENT when only history exists; NONE when
        nothing of this family is on file.
    has_history : bool
        True when any record of this family exists for the animal.
    """

    family: VaccineFamily
    last_given: Optional[datetime]
    next_due: Optional[CanonicalVaccineRecord]
    status: DisplayStatus
    has_history: bool = False

    @property
    def days_overdue(self) -> Optional[int]:
        """Whole days overdue, floored, or None when not overdue."""
        if self.status is not DisplayStatus.OVERDUE or self.next_due is None:
            return None
        if self.next_due.diff_days is None:
            return None
        return math.floor(abs(self.next_due.diff_days))

    @property
    def days_ahead(self) -> Optional[int]:
        """Whole days until the next dose, ceiled, for forward-looking statuses."""
        if self.status not in (
            DisplayStatus.NEEDS_ATTENTION,
            DisplayStatus.UPCOMING,
            DisplayStatus.CURRENT,
        ):
            return None
        if self.next_due is None or self.next_due.diff_days is None:
            return None
        return math.ceil(self.next_due.diff_days)

    @property
    def no_upcoming_dose(self) -> bool:
        """True when history exists but nothing of this family is scheduled."""
        return self.next_due is None and self.has_history


@dataclass(frozen=True)
class StatusCounts:
    """Per-animal counts of scheduled records by window status."""

    overdue: int = 0
    needs_attention: int = 0
    upcoming: int = 0
    current: int = 0
    unknown: int = 0

    @property
    def due_within_month(self) -> int:
        """Combined needs-attention and upcoming count, a display-only view."""
        return self.needs_attention + self.upcoming


@dataclass(frozen=True)
class ReconcileResult:
    """Result of the reconciliation step.

    Parameters
    ----------
    animals : List[AnimalVaccineSet]
        One entry per known animal, in discovery order.
    warnings : List[str]
        Non-fatal issues encountered (records without identifiers, records
        for animals missing from the discovery step).
    """

    animals: List[AnimalVaccineSet]
    warnings: List[str] = field(default_factory=list)
