"""Vaccine schedule check orchestrator.

Runs the periodic check end to end: discover in-custody animals, fetch the
org-wide scheduled vaccine feed, reconcile it with each animal's full history,
roll up each core vaccine family, and post one Slack message per animal.

**Error Handling Philosophy:**

- **Infrastructure Errors** (missing config, missing environment variables)
  fail fast with exit code 1.
- **Critical Steps** (animal discovery, org-wide scheduled feed) halt the run
  on any error; exit code 1.
- **Per-animal Steps** (history fetch, Slack delivery) recover per item: the
  failure is logged, the animal is counted as skipped or failed, and the run
  continues with the next animal.

**Exit Codes:**
- 0: Check completed (some animals may have been skipped)
- 1: Check failed (critical step or infrastructure error)
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
import time
import traceback
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import requests
from dotenv import load_dotenv

from . import report, rollup, slack
from .config_loader import (
    build_classifier_config,
    build_report_settings,
    build_shelterluv_settings,
    load_config,
)
from .data_models import (
    AnimalIdentity,
    AnimalVaccineSet,
    ClassifierConfig,
    ReportSettings,
)
from .reconcile import reconcile
from .shelterluv import ShelterluvClient, animal_identity_from_payload

SCRIPT_DIR = Path(__file__).resolve().parent
ROOT_DIR = SCRIPT_DIR.parent
DEFAULT_OUTPUT_DIR = ROOT_DIR / "output"
DEFAULT_CONFIG_DIR = ROOT_DIR / "config"

API_KEY_ENV = "SHELTERLUV_API_KEY"
WEBHOOK_ENV = "SLACK_WEBHOOK_URL"

LOG = logging.getLogger(__name__)


@dataclass
class RunSummary:
    """Counters and warnings collected over one run."""

    animals_reported: int = 0
    animals_skipped: int = 0
    deliveries_failed: int = 0
    warnings: List[str] = field(default_factory=list)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Check shelter vaccine schedules and post per-animal status to Slack",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s
  %(prog)s --dry-run
  %(prog)s --animal 123456789 --dry-run
        """,
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=DEFAULT_OUTPUT_DIR,
        dest="output_dir",
        help=f"Output directory for logs (default: {DEFAULT_OUTPUT_DIR})",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG_DIR,
        dest="config_dir",
        help=f"Config directory (default: {DEFAULT_CONFIG_DIR})",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print Slack payloads as JSON instead of posting them",
    )
    parser.add_argument(
        "--animal",
        action="append",
        default=None,
        dest="animal_ids",
        metavar="ID",
        help="Only report this vaccine animal ID (repeatable)",
    )
    return parser.parse_args(argv)


def configure_logging(output_dir: Path, run_id: str) -> Path:
    """Configure file logging for the run.

    Parameters
    ----------
    output_dir : Path
        Root output directory where the logs subdirectory will be created.
    run_id : str
        Unique run identifier used in the log filename.

    Returns
    -------
    Path
        Path to the created log file.
    """
    log_dir = output_dir / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / f"vaxcheck_{run_id}.log"

    handler = logging.FileHandler(log_path, encoding="utf-8")
    formatter = logging.Formatter("%(asctime)s %(levelname)s %(message)s")
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(logging.INFO)
    root_logger.addHandler(handler)

    return log_path


def read_credentials(dry_run: bool) -> tuple[str, Optional[str]]:
    """Read the API key and webhook URL from the environment (and .env).

    Raises
    ------
    ValueError
        If the API key is missing, or the webhook URL is missing outside
        dry-run mode.
    """
    load_dotenv()
    api_key = os.environ.get(API_KEY_ENV, "").strip()
    webhook_url = os.environ.get(WEBHOOK_ENV, "").strip() or None

    missing = []
    if not api_key:
        missing.append(API_KEY_ENV)
    if webhook_url is None and not dry_run:
        missing.append(WEBHOOK_ENV)
    if missing:
        raise ValueError(f"Missing environment variable(s): {', '.join(missing)}")
    return api_key, webhook_url


def print_header(dry_run: bool) -> None:
    """Print the run header."""
    print()
    print("💉 Running vaccine schedule check")
    if dry_run:
        print("🧪 Dry run: payloads are printed, not posted")
    print()


def print_step(step_num: int, description: str) -> None:
    """Print a step header."""
    print()
    print(f"{'=' * 60}")
    print(f"Step {step_num}: {description}")
    print(f"{'=' * 60}")


def print_step_complete(step_num: int, description: str, duration: float) -> None:
    """Print step completion message."""
    print(f"✅ Step {step_num}: {description} complete in {duration:.1f} seconds.")


def run_step_1_discover_animals(
    client: ShelterluvClient, summary: RunSummary
) -> List[AnimalIdentity]:
    """Step 1: Discover in-custody animals with a resolvable vaccine ID."""
    print_step(1, "Discovering in-custody animals")

    identities: List[AnimalIdentity] = []
    for animal in client.fetch_in_custody_animals():
        identity = animal_identity_from_payload(animal)
        if identity is None:
            message = (
                "Could not find vaccine internal ID for animal "
                f"{animal.get('Name') or 'unnamed'}, skipping"
            )
            LOG.warning(message)
            summary.warnings.append(message)
            summary.animals_skipped += 1
            continue
        identities.append(identity)

    print(f"🐕 Animals with vaccine IDs: {len(identities)}")
    return identities


def run_step_2_fetch_scheduled(client: ShelterluvClient) -> List[Any]:
    """Step 2: Fetch the org-wide scheduled vaccine feed."""
    print_step(2, "Fetching scheduled vaccines")

    scheduled = client.fetch_scheduled_vaccines()
    print(f"📅 Scheduled vaccines: {len(scheduled)}")
    return scheduled


def run_step_3_reconcile(
    client: ShelterluvClient,
    identities: Sequence[AnimalIdentity],
    scheduled: Sequence[Any],
    now: datetime,
    classifier_config: ClassifierConfig,
    summary: RunSummary,
    only: Optional[Sequence[str]] = None,
) -> List[AnimalVaccineSet]:
    """Step 3: Reconcile each animal's scheduled records with its history.

    An animal whose history cannot be fetched is skipped.
    """
    print_step(3, "Reconciling vaccine histories")

    if only is not None:
        known = {identity.animal_id for identity in identities}
        for animal_id in only:
            if animal_id not in known:
                message = f"Requested animal {animal_id} not found among in-custody animals"
                LOG.warning(message)
                summary.warnings.append(message)

    histories: Dict[str, List[Any]] = {}
    for identity in identities:
        if only is not None and identity.animal_id not in only:
            continue
        try:
            histories[identity.animal_id] = client.fetch_animal_vaccines(identity.animal_id)
        except (requests.RequestException, RuntimeError, ValueError) as exc:
            message = (
                f"Error fetching vaccines for {identity.name} "
                f"({identity.animal_id}), skipping: {exc}"
            )
            LOG.error(message)
            summary.warnings.append(message)
            summary.animals_skipped += 1

    result = reconcile(
        identities,
        scheduled,
        histories,
        now,
        classifier_config,
        only=list(histories),
    )
    summary.warnings.extend(result.warnings)

    print(f"🧾 Animals reconciled: {len(result.animals)}")
    return result.animals


def run_step_4_deliver(
    animals: Sequence[AnimalVaccineSet],
    report_settings: ReportSettings,
    webhook_url: Optional[str],
    summary: RunSummary,
    dry_run: bool = False,
    session: requests.Session | None = None,
) -> List[Dict[str, Any]]:
    """Step 4: Render and post one Slack message per animal.

    Returns:
        The rendered payloads, in animal order.
    """
    print_step(4, "Delivering reports" if not dry_run else "Rendering reports")

    payloads: List[Dict[str, Any]] = []
    for animal in animals:
        rollups = rollup.rollup_animal(animal)
        payload = report.build_slack_payload(animal, rollups, report_settings)
        payloads.append(payload)
        name = animal.identity.name

        if dry_run or webhook_url is None:
            print(json.dumps(payload, indent=2, ensure_ascii=False))
            summary.animals_reported += 1
            continue

        try:
            slack.post_payload(webhook_url, payload, session=session)
        except (requests.RequestException, slack.SlackDeliveryError) as exc:
            message = f"Failed to send Slack message for {name}: {exc}"
            LOG.error(message)
            summary.warnings.append(message)
            summary.deliveries_failed += 1
            continue

        print(f"Slack message sent for {name}.")
        summary.animals_reported += 1

    return payloads


def print_summary(
    step_times: list[tuple[str, float]],
    total_duration: float,
    summary: RunSummary,
) -> None:
    """Print the run summary."""
    print()
    print(f"{'=' * 60}")
    print("🎉 Vaccine schedule check completed!")
    print(f"{'=' * 60}")
    print()
    print("🕒 Time Summary:")
    for step_name, duration in step_times:
        print(f"  - {step_name:<25} {duration:.1f}s")
    print(f"  - {'─' * 25} {'─' * 6}")
    print(f"  - {'Total Time':<25} {total_duration:.1f}s")
    print()
    print(f"🐕 Animals reported:       {summary.animals_reported}")
    print(f"⏭️  Animals skipped:        {summary.animals_skipped}")
    print(f"📭 Deliveries failed:      {summary.deliveries_failed}")
    if summary.warnings:
        print(f"⚠️  Warnings:               {len(summary.warnings)}")
        for warning in summary.warnings:
            print(f" - {warning}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the vaccine schedule check."""
    args = parse_args(argv)

    output_dir = args.output_dir.resolve()
    config_dir = args.config_dir.resolve()
    run_id = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S")

    try:
        config = load_config(config_dir / "parameters.yaml")
        api_key, webhook_url = read_credentials(args.dry_run)
    except (FileNotFoundError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    classifier_config = build_classifier_config(config)
    report_settings = build_report_settings(config)
    client = ShelterluvClient(api_key, build_shelterluv_settings(config))

    log_path = configure_logging(output_dir, run_id)
    print_header(args.dry_run)
    print(f"Log written to {log_path}")

    # "now" is captured once so every record is classified against the same instant.
    now = datetime.now(timezone.utc)
    LOG.info("Run %s classifying against %s", run_id, now.isoformat())

    summary = RunSummary()
    total_start = time.time()
    step_times = []

    try:
        step_start = time.time()
        identities = run_step_1_discover_animals(client, summary)
        step_duration = time.time() - step_start
        step_times.append(("Animal Discovery", step_duration))
        print_step_complete(1, "Animal discovery", step_duration)

        step_start = time.time()
        scheduled = run_step_2_fetch_scheduled(client)
        step_duration = time.time() - step_start
        step_times.append(("Scheduled Feed", step_duration))
        print_step_complete(2, "Scheduled feed", step_duration)

        step_start = time.time()
        animals = run_step_3_reconcile(
            client,
            identities,
            scheduled,
            now,
            classifier_config,
            summary,
            only=args.animal_ids,
        )
        step_duration = time.time() - step_start
        step_times.append(("Reconciliation", step_duration))
        print_step_complete(3, "Reconciliation", step_duration)

        step_start = time.time()
        run_step_4_deliver(
            animals, report_settings, webhook_url, summary, dry_run=args.dry_run
        )
        step_duration = time.time() - step_start
        step_times.append(("Delivery", step_duration))
        print_step_complete(4, "Delivery", step_duration)

        print_summary(step_times, time.time() - total_start, summary)
        return 0

    except Exception as exc:
        LOG.exception("Vaccine schedule check failed")
        print(f"\n❌ Vaccine schedule check failed: {exc}", file=sys.stderr)
        traceback.print_exc()
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
