"""Unit tests for report module - Slack Block Kit payloads.

Tests cover:
- Local calendar date rendering via babel
- Core-family section wording for every display status
- Summary counts and the empty-summary message
- "Other Vaccines" rows with placeholders for missing fields
- Block order and the photo accessory

Real-world significance:
- Staff read these messages to decide which dogs need a vet visit this week
- A wrong date or emoji sends the wrong signal
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from tests.fixtures.sample_feeds import create_vaccine
from vaxcheck import report
from vaxcheck.data_models import AnimalIdentity, AnimalVaccineSet, ReportSettings
from vaxcheck.enums import VaccineFamily
from vaxcheck.normalize import normalize_feed
from vaxcheck.rollup import rollup_family

RICO = AnimalIdentity(animal_id="100000001", name="Rico", photo_url="https://img.test/rico.jpg")
LUNA = AnimalIdentity(animal_id="100000002", name="Luna")


def animal_with(now: datetime, *vaccines, identity: AnimalIdentity = RICO) -> AnimalVaccineSet:
    records, _ = normalize_feed(list(vaccines), now, animal_id=identity.animal_id)
    return AnimalVaccineSet(identity=identity, records=tuple(records))


@pytest.mark.unit
class TestFormatDisplayDate:
    """Unit tests for format_display_date()."""

    def test_default_pattern(self) -> None:
        value = datetime(2025, 12, 1, 15, 0, tzinfo=timezone.utc)
        assert report.format_display_date(value) == "12/1/2025"

    def test_missing_value(self) -> None:
        assert report.format_display_date(None) == "unknown date"

    def test_date_is_taken_in_configured_timezone(self) -> None:
        """Verify an instant just after UTC midnight shows the local day."""
        value = datetime(2025, 6, 12, 0, 30, tzinfo=timezone.utc)
        settings = ReportSettings(timezone="America/Los_Angeles")

        assert report.format_display_date(value, settings) == "6/11/2025"
        assert report.format_display_date(value) == "6/12/2025"

    def test_custom_pattern(self) -> None:
        value = datetime(2025, 6, 1, 12, tzinfo=timezone.utc)
        settings = ReportSettings(date_format="yyyy-MM-dd")
        assert report.format_display_date(value, settings) == "2025-06-01"


@pytest.mark.unit
class TestFamilyStatusText:
    """Unit tests for family_status_text()."""

    def test_needs_attention_with_last_given(self, now: datetime) -> None:
        animal = animal_with(
            now,
            create_vaccine("v1", None, "Rabies", now, completed_days_ago=400),
            create_vaccine("v2", None, "Rabies", now, scheduled_in_days=10),
        )
        text = report.family_status_text(rollup_family(animal, VaccineFamily.RABIES))

        assert text == "Last given 4/27/2024. Next dose: *in 10 days* – 6/11/2025"

    def test_overdue(self, now: datetime) -> None:
        animal = animal_with(now, create_vaccine("v1", None, "DHPP", now, scheduled_in_days=-3.5))
        text = report.family_status_text(rollup_family(animal, VaccineFamily.DHPP_DAPP))

        assert text == "Next dose: *3 days overdue* – 5/29/2025"

    def test_current_is_not_emphasized(self, now: datetime) -> None:
        animal = animal_with(now, create_vaccine("v1", None, "DHPP", now, scheduled_in_days=45))
        text = report.family_status_text(rollup_family(animal, VaccineFamily.DHPP_DAPP))

        assert text == "Next dose: in 45 days – 7/16/2025"

    def test_unknown_date(self, now: datetime) -> None:
        animal = animal_with(now, create_vaccine("v1", None, "Bordetella", now, scheduled_for="TBD"))
        text = report.family_status_text(rollup_family(animal, VaccineFamily.BORDETELLA))

        assert text == "Next dose date unknown"

    def test_history_without_schedule(self, now: datetime) -> None:
        animal = animal_with(now, create_vaccine("v1", None, "Rabies", now, completed_days_ago=400))
        text = report.family_status_text(rollup_family(animal, VaccineFamily.RABIES))

        assert text == "Last given 4/27/2024. No upcoming dose scheduled."

    def test_nothing_on_file(self, now: datetime) -> None:
        rollup = rollup_family(AnimalVaccineSet(identity=RICO), VaccineFamily.BORDETELLA)
        assert report.family_status_text(rollup) == "_No bordetella vaccine on file_"


@pytest.mark.unit
class TestSummaryText:
    """Unit tests for summary_text()."""

    def test_counts(self, now: datetime) -> None:
        animal = animal_with(
            now,
            create_vaccine("v1", None, "Rabies", now, scheduled_in_days=-1),
            create_vaccine("v2", None, "DHPP", now, scheduled_in_days=3),
            create_vaccine("v3", None, "Lepto", now, scheduled_in_days=25),
            create_vaccine("v4", None, "Bordetella", now, scheduled_in_days=90),
        )

        assert report.summary_text(animal) == (
            "– 1 overdue\n- 2 due within the month\n- 1 current"
        )

    def test_nothing_scheduled(self, now: datetime) -> None:
        """Verify unknown-only and history-only animals get the empty message."""
        animal = animal_with(
            now,
            create_vaccine("v1", None, "Rabies", now, completed_days_ago=30),
            create_vaccine("v2", None, "DHPP", now, scheduled_for="junk"),
        )
        assert report.summary_text(animal) == "No upcoming scheduled vaccines"


@pytest.mark.unit
class TestOtherVaccineRow:
    """Unit tests for other_vaccine_row()."""

    def test_placeholders_for_missing_fields(self, now: datetime) -> None:
        animal = animal_with(now, create_vaccine("v1", None, "Lepto", now, scheduled_in_days=25))
        row = report.other_vaccine_row(animal.records[0])

        assert row == (
            ":large_orange_circle: Lepto – 6/26/2025 (manufacturer: n/a, lot: n/a)"
        )

    def test_completed_record_uses_completion_date(self, now: datetime) -> None:
        animal = animal_with(
            now,
            create_vaccine(
                "v1", None, "Heartworm", now, completed_days_ago=1, manufacturer="Merck", lot="H-9"
            ),
        )
        row = report.other_vaccine_row(animal.records[0])

        assert row == ":grey_question: Heartworm – 5/31/2025 (manufacturer: Merck, lot: H-9)"


@pytest.mark.unit
class TestBuildSlackPayload:
    """Unit tests for build_slack_payload()."""

    def test_block_layout(self, now: datetime) -> None:
        animal = animal_with(
            now,
            create_vaccine("v1", None, "Rabies", now, scheduled_in_days=10),
            create_vaccine("v2", None, "Lepto", now, scheduled_in_days=25),
        )

        payload = report.build_slack_payload(animal)
        blocks = payload["blocks"]

        assert payload["text"] == "Shelterluv vaccine schedule check – Rico"
        assert [b["type"] for b in blocks] == [
            "header",
            "section",
            "section",
            "section",
            "section",
            "section",
            "divider",
        ]
        assert blocks[0]["text"]["text"] == "Rico's Vaccine Status"
        assert blocks[1]["accessory"] == {
            "type": "image",
            "image_url": "https://img.test/rico.jpg",
            "alt_text": "Rico",
        }
        assert blocks[2]["text"]["text"].startswith(":warning: *Rabies*\n")
        assert blocks[3]["text"]["text"].startswith(":bangbang: *DHPP/DAPP*\n")
        assert blocks[4]["text"]["text"].startswith(":bangbang: *Bordetella*\n")
        assert blocks[5]["text"]["text"].startswith("*Other Vaccines*\n")

    def test_without_photo_or_other_vaccines(self, now: datetime) -> None:
        animal = AnimalVaccineSet(identity=LUNA)

        payload = report.build_slack_payload(animal)
        blocks = payload["blocks"]

        assert "accessory" not in blocks[1]
        assert blocks[1]["text"]["text"] == "No upcoming scheduled vaccines"
        assert len(blocks) == 6
        assert blocks[-1] == {"type": "divider"}
