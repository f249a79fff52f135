"""Integration tests from raw Shelterluv feeds to a rendered Slack payload.

Tests cover the reconcile, rollup and report steps working together on
realistic feeds, without HTTP.

Real-world significance:
- Rico's rabies dose appears in both feeds; the message must count it once
  and show the scheduled-feed product
- Completed doses must show as "Last given", never as overdue
"""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from tests.fixtures.sample_feeds import create_vaccine, rico_feeds
from vaxcheck.data_models import AnimalIdentity, ClassifierConfig
from vaxcheck.enums import DisplayStatus, VaccineFamily, WindowStatus
from vaxcheck.reconcile import reconcile
from vaxcheck.report import build_slack_payload
from vaxcheck.rollup import rollup_animal, status_counts

RICO = AnimalIdentity(animal_id="100000001", name="Rico", photo_url="https://img.test/rico.jpg")


@pytest.mark.integration
class TestRicoScenario:
    """Rico: rabies given 400 days ago and due in 10 days, DHPP due in 45 days."""

    @pytest.fixture
    def rico(self, now: datetime):
        feeds = rico_feeds(now)
        result = reconcile([RICO], feeds["scheduled"], {RICO.animal_id: feeds["history"]}, now)
        return result.animals[0]

    def test_rollups(self, rico, now: datetime) -> None:
        rollups = rollup_animal(rico)

        rabies = rollups[VaccineFamily.RABIES]
        assert rabies.last_given == now - timedelta(days=400)
        assert rabies.status is DisplayStatus.NEEDS_ATTENTION
        assert rabies.days_ahead == 10
        assert rabies.next_due.product == "Rabvac 3 Rabies"

        dhpp = rollups[VaccineFamily.DHPP_DAPP]
        assert dhpp.status is DisplayStatus.CURRENT
        assert dhpp.days_ahead == 45

        assert rollups[VaccineFamily.BORDETELLA].status is DisplayStatus.NONE

    def test_duplicate_is_counted_once(self, rico) -> None:
        counts = status_counts(rico)

        assert counts.needs_attention == 1
        assert counts.current == 1
        assert counts.overdue == 0
        assert len(rico.records) == 3

    def test_payload(self, rico) -> None:
        blocks = build_slack_payload(rico)["blocks"]
        texts = [block["text"]["text"] for block in blocks if block["type"] == "section"]

        assert texts[0] == "– 0 overdue\n- 1 due within the month\n- 1 current"
        assert texts[1] == (
            ":warning: *Rabies*\n"
            "Last given 4/27/2024. Next dose: *in 10 days* – 6/11/2025\n"
        )
        assert texts[2] == ":white_check_mark: *DHPP/DAPP*\nNext dose: in 45 days – 7/16/2025\n"
        assert texts[3] == ":bangbang: *Bordetella*\n_No bordetella vaccine on file_\n"
        assert len(texts) == 4


@pytest.mark.integration
class TestConfigDrivenWindows:
    """Window widths flow from ClassifierConfig through to the rendered emoji."""

    def test_wider_needs_attention_window(self, now: datetime) -> None:
        feeds = rico_feeds(now)
        config = ClassifierConfig(needs_attention_days=60, upcoming_days=90)

        result = reconcile([RICO], feeds["scheduled"], {}, now, config)
        rollups = rollup_animal(result.animals[0])

        assert rollups[VaccineFamily.DHPP_DAPP].status is DisplayStatus.NEEDS_ATTENTION


@pytest.mark.integration
class TestMixedFeeds:
    """Overdue, unknown and other-family records across both feeds."""

    def test_other_and_unknown_records(self, now: datetime) -> None:
        scheduled = [
            create_vaccine("s1", RICO.animal_id, "Bordetella", now, scheduled_in_days=-5),
            create_vaccine("s2", RICO.animal_id, "Leptospirosis", now, scheduled_for="pending"),
        ]
        history = [
            create_vaccine("h1", None, "Heartworm test", now, completed_days_ago=20, lot="HW-2"),
        ]

        result = reconcile([RICO], scheduled, {RICO.animal_id: history}, now)
        animal = result.animals[0]
        payload = build_slack_payload(animal)
        texts = [b["text"]["text"] for b in payload["blocks"] if b["type"] == "section"]

        assert [r.record_id for r in animal.bucket(WindowStatus.UNKNOWN)] == ["s2"]
        assert texts[0] == "– 1 overdue\n- 0 due within the month\n- 0 current"
        assert texts[3] == ":alert: *Bordetella*\nNext dose: *5 days overdue* – 5/27/2025\n"
        assert texts[4] == (
            "*Other Vaccines*\n"
            ":grey_question: Leptospirosis – unknown date (manufacturer: n/a, lot: n/a)\n"
            ":grey_question: Heartworm test – 5/12/2025 (manufacturer: n/a, lot: HW-2)\n"
        )
