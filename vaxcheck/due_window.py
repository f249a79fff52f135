"""Temporal classification of scheduled vaccine doses.

Maps a scheduled-for timestamp (seconds since the epoch, usually sent as a
numeric string) to a due-window status relative to a reference instant.

**Contracts:**

- A missing, empty, non-numeric or non-finite timestamp classifies as
  ``unknown`` with no day offset and no resolved date. This is a normal
  outcome, not an error.
- The day offset is ``(resolved - now) / 86400 s``, signed and fractional.
  Window buckets are derived from it and from nothing else.
- Windows are evaluated top to bottom and the first match wins:

  1. ``diff_days < 0`` -> overdue
  2. ``diff_days <= needs_attention_days`` -> needsAttention
  3. ``diff_days <= upcoming_days`` -> upcoming
  4. otherwise -> current
"""

from __future__ import annotations

import math
import re
from datetime import datetime, timezone
from typing import Any, Optional, Tuple

from .data_models import ClassifierConfig, WindowClassification
from .enums import WindowStatus

SECONDS_PER_DAY = 24 * 3600

# Plain decimal notation with an optional exponent; no underscores, no words.
_NUMERIC_TEXT = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$")


def ensure_utc(instant: datetime) -> datetime:
    """Return instant as an aware UTC datetime; naive values are taken as UTC."""
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc)


def parse_unix_timestamp(value: Any) -> Optional[datetime]:
    """Decode a seconds-since-epoch value into an aware UTC datetime.

    Parameters
    ----------
    value : Any
        Numeric string (e.g. "1735689600"), int or float. Anything else,
        including booleans, decodes to None.

    Returns
    -------
    Optional[datetime]
        The decoded instant, or None when the value is absent or unusable.

    Examples
    --------
    >>> parse_unix_timestamp("0")
    datetime.datetime(1970, 1, 1, 0, 0, tzinfo=datetime.timezone.utc)
    >>> parse_unix_timestamp("soon") is None
    True
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        seconds = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not _NUMERIC_TEXT.match(text):
            return None
        seconds = float(text)
    else:
        return None

    if not math.isfinite(seconds):
        return None

    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def window_rules(
    config: ClassifierConfig,
) -> Tuple[Tuple[float, bool, WindowStatus], ...]:
    """Ordered window rules as (upper bound, inclusive, status) triples.

    The windows overlap by construction; their order is the tie-break.
    Offsets beyond the last rule are ``current``.
    """
    return (
        (0.0, False, WindowStatus.OVERDUE),
        (float(config.needs_attention_days), True, WindowStatus.NEEDS_ATTENTION),
        (float(config.upcoming_days), True, WindowStatus.UPCOMING),
    )


def status_for_offset(
    diff_days: float, config: ClassifierConfig | None = None
) -> WindowStatus:
    """Bucket a day offset into a window status.

    Parameters
    ----------
    diff_days : float
        Signed day offset from now.
    config : ClassifierConfig, optional
        Window widths; defaults to 14 and 30 days.

    Returns
    -------
    WindowStatus
        First window whose upper bound admits the offset, else CURRENT.
    """
    config = config or ClassifierConfig()
    for bound, inclusive, status in window_rules(config):
        if diff_days < bound or (inclusive and diff_days == bound):
            return status
    return WindowStatus.CURRENT


def day_offset(resolved: datetime, now: datetime) -> float:
    """Signed fractional days from now to resolved."""
    delta = ensure_utc(resolved) - ensure_utc(now)
    return delta.total_seconds() / SECONDS_PER_DAY


def classify_due_window(
    scheduled_for: Any,
    now: datetime,
    config: ClassifierConfig | None = None,
) -> WindowClassification:
    """Classify a scheduled-for timestamp relative to now.

    Parameters
    ----------
    scheduled_for : Any
        Raw scheduled-for value from a feed.
    now : datetime
        Reference instant, captured once per run by the caller.
    config : ClassifierConfig, optional
        Window widths.

    Returns
    -------
    WindowClassification
        Status, day offset and resolved date. Unparseable input yields
        ``WindowClassification(UNKNOWN, None, None)``.
    """
    resolved = parse_unix_timestamp(scheduled_for)
    if resolved is None:
        return WindowClassification(WindowStatus.UNKNOWN, None, None)

    diff_days = day_offset(resolved, now)
    return WindowClassification(status_for_offset(diff_days, config), diff_days, resolved)
