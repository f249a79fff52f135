"""Slack message rendering for per-animal vaccine status.

Builds one Block Kit payload per animal from its rollups: a header, a
summary of scheduled-dose counts, one section per core family, an optional
"Other Vaccines" section, and a divider.

The summary's "due within the month" figure adds needs-attention and upcoming
counts together. It is a display view only; the two statuses stay distinct
everywhere else.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional
from zoneinfo import ZoneInfo

from babel.dates import format_date

from .data_models import (
    AnimalVaccineSet,
    CanonicalVaccineRecord,
    FamilyRollup,
    ReportSettings,
)
from .enums import DisplayStatus, VaccineFamily
from .rollup import describe_due, other_records, rollup_animal, status_counts

NOT_AVAILABLE = "n/a"
UNKNOWN_DATE = "unknown date"

STATUS_EMOJI = {
    DisplayStatus.OVERDUE: ":alert:",
    DisplayStatus.NEEDS_ATTENTION: ":warning:",
    DisplayStatus.UPCOMING: ":large_orange_circle:",
    DisplayStatus.CURRENT: ":white_check_mark:",
    DisplayStatus.NONE: ":bangbang:",
    DisplayStatus.UNKNOWN: ":grey_question:",
}

# Wording when a next dose exists but has no day offset to describe.
_UNDATED_WORDING = {
    DisplayStatus.OVERDUE: "Overdue",
    DisplayStatus.NEEDS_ATTENTION: "due soon",
    DisplayStatus.UPCOMING: "upcoming",
    DisplayStatus.CURRENT: "scheduled",
}


def format_display_date(
    value: Optional[datetime], settings: ReportSettings | None = None
) -> str:
    """Render an instant as a local calendar date, e.g. "12/1/2025".

    Parameters
    ----------
    value : Optional[datetime]
        Instant to render; None renders as "unknown date".
    settings : ReportSettings, optional
        Locale, babel pattern and timezone.

    Returns
    -------
    str
        Formatted date.
    """
    if value is None:
        return UNKNOWN_DATE
    settings = settings or ReportSettings()
    local = value.astimezone(ZoneInfo(settings.timezone))
    return format_date(local.date(), format=settings.date_format, locale=settings.locale)


def display_or_placeholder(value: Optional[str]) -> str:
    return value if value else NOT_AVAILABLE


def family_status_text(
    rollup: FamilyRollup, settings: ReportSettings | None = None
) -> str:
    """Text of a core-family section, without the emoji and label line."""
    last_given_part = ""
    if rollup.last_given is not None:
        last_given_part = f"Last given {format_display_date(rollup.last_given, settings)}. "

    if rollup.status is DisplayStatus.NONE:
        return f"_No {rollup.family.label.lower()} vaccine on file_"

    if rollup.next_due is None:
        return f"{last_given_part}No upcoming dose scheduled."

    if rollup.status is DisplayStatus.UNKNOWN:
        return f"{last_given_part}Next dose date unknown"

    date_str = format_display_date(rollup.next_due.scheduled_for, settings)
    wording = describe_due(rollup) or _UNDATED_WORDING[rollup.status]
    if rollup.status is DisplayStatus.CURRENT:
        return f"{last_given_part}Next dose: {wording} – {date_str}"
    return f"{last_given_part}Next dose: *{wording}* – {date_str}"


def other_vaccine_row(
    record: CanonicalVaccineRecord, settings: ReportSettings | None = None
) -> str:
    """One line of the "Other Vaccines" section."""
    status = (
        DisplayStatus.from_window(record.status)
        if record.has_schedule
        else DisplayStatus.UNKNOWN
    )
    when = record.scheduled_for or record.completed_at
    return (
        f"{STATUS_EMOJI[status]} {record.product or 'Unknown product'} – "
        f"{format_display_date(when, settings)} "
        f"(manufacturer: {display_or_placeholder(record.manufacturer)}, "
        f"lot: {display_or_placeholder(record.lot)})"
    )


def summary_text(animal: AnimalVaccineSet) -> str:
    counts = status_counts(animal)
    if not (counts.overdue or counts.due_within_month or counts.current):
        return "No upcoming scheduled vaccines"
    return (
        f"– {counts.overdue} overdue\n"
        f"- {counts.due_within_month} due within the month\n"
        f"- {counts.current} current"
    )


def build_slack_payload(
    animal: AnimalVaccineSet,
    rollups: Optional[Mapping[VaccineFamily, FamilyRollup]] = None,
    settings: ReportSettings | None = None,
) -> Dict[str, Any]:
    """Build the Slack webhook payload for one animal.

    Parameters
    ----------
    animal : AnimalVaccineSet
        Reconciled records of the animal.
    rollups : Mapping[VaccineFamily, FamilyRollup], optional
        Precomputed core-family rollups; computed when omitted.
    settings : ReportSettings, optional
        Date rendering settings.

    Returns
    -------
    Dict[str, Any]
        ``{"text": ..., "blocks": [...]}`` ready to be posted as JSON.
    """
    identity = animal.identity
    rollups = rollups if rollups is not None else rollup_animal(animal)

    blocks: List[Dict[str, Any]] = [
        {
            "type": "header",
            "text": {
                "type": "plain_text",
                "text": f"{identity.name}'s Vaccine Status",
                "emoji": True,
            },
        }
    ]

    summary_block: Dict[str, Any] = {
        "type": "section",
        "text": {"type": "mrkdwn", "text": summary_text(animal)},
    }
    if identity.photo_url:
        summary_block["accessory"] = {
            "type": "image",
            "image_url": identity.photo_url,
            "alt_text": identity.name,
        }
    blocks.append(summary_block)

    for family in VaccineFamily.core():
        rollup = rollups[family]
        emoji = STATUS_EMOJI.get(rollup.status, STATUS_EMOJI[DisplayStatus.UNKNOWN])
        blocks.append(
            {
                "type": "section",
                "text": {
                    "type": "mrkdwn",
                    "text": f"{emoji} *{family.label}*\n{family_status_text(rollup, settings)}\n",
                },
            }
        )

    others = other_records(animal)
    if others:
        rows = "\n".join(other_vaccine_row(record, settings) for record in others)
        blocks.append(
            {
                "type": "section",
                "text": {"type": "mrkdwn", "text": f"*Other Vaccines*\n{rows}\n"},
            }
        )

    blocks.append({"type": "divider"})

    return {
        "text": f"Shelterluv vaccine schedule check – {identity.name}",
        "blocks": blocks,
    }
