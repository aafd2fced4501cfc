"""
Command line interface for the Financial Exorcist.

Replays a JSON file of offerings through a fresh in-memory service and prints
the resulting purity report or audit ledger.
"""

import argparse
import json
import sys
from datetime import timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError  # type: ignore

from .domain.demons import build_demon_registry
from .domain.models import now_ms
from .services.exorcism_service import ExorcismService
from .utils.logging_config import get_logger
from .utils.money import to_display, to_minor_units


def load_offerings(path: Path) -> List[Dict[str, Any]]:
    """Read a JSON list of offerings.

    ``amount`` may be an integer in minor units or a string in major units
    (``"12.99"``).
    """
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    if not isinstance(data, list):
        raise ValueError("Offerings file must contain a JSON list")

    offerings = []
    for entry in data:
        if not isinstance(entry, dict):
            raise ValueError(f"Offering entries must be objects, got {entry!r}")
        entry = dict(entry)
        if isinstance(entry.get("amount"), str):
            entry["amount"] = to_minor_units(entry["amount"])
        offerings.append(entry)
    return offerings


class ReplayClock:
    """Clock pinned to the timestamp of the offering being replayed."""

    def __init__(self):
        self.pinned: Optional[int] = None

    def __call__(self) -> int:
        return self.pinned if self.pinned is not None else now_ms()


def replay(path: Path, utc: bool = False) -> ExorcismService:
    """Feed every offering in the file into a new service.

    Audit events are stamped with the replayed offering's timestamp so the
    possession window lines up with the history.
    """
    clock = ReplayClock()
    service = ExorcismService(clock=clock, tz=timezone.utc if utc else None)

    for entry in load_offerings(path):
        timestamp = entry.get("timestamp")
        clock.pinned = timestamp if isinstance(timestamp, int) else None
        outcome = service.record_offering(
            amount=entry.get("amount"),
            description=entry.get("description"),
            category=entry.get("category"),
            timestamp=timestamp,
        )
        if outcome.possessed:
            get_logger("cli").info(
                f"{outcome.offering.description}: possessed by {outcome.demon.name}"
            )

    clock.pinned = None
    return service


def cmd_demons(args) -> int:
    for index, demon in enumerate(build_demon_registry(), start=1):
        print(f"{index:2}. {demon.name} - {demon.title}")
        print(f"    ritual: {demon.ritual_type.value} {demon.ritual_config.model_dump()}")
        print(f"    {demon.punishment_message}")
    return 0


def cmd_report(args) -> int:
    service = replay(Path(args.file), utc=args.utc)
    report = service.report(now=args.now).to_dict()
    report["total_spend_display"] = to_display(report["total_spend"])
    print(json.dumps(report, indent=2))
    return 0


def cmd_audit(args) -> int:
    service = replay(Path(args.file), utc=args.utc)
    events = service.audit.get_events(unmask=args.unmask)
    print(json.dumps([e.model_dump(mode="json") for e in events], indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="financial-exorcist",
        description="Judge your spending and measure your soul purity",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    demons_parser = subparsers.add_parser("demons", help="List the demon registry")
    demons_parser.set_defaults(func=cmd_demons)

    report_parser = subparsers.add_parser("report", help="Print the soul purity report")
    report_parser.add_argument("file", help="JSON list of offerings")
    report_parser.add_argument("--now", type=int, help="Report time in Unix milliseconds")
    report_parser.add_argument("--utc", action="store_true", help="Judge hours in UTC")
    report_parser.set_defaults(func=cmd_report)

    audit_parser = subparsers.add_parser("audit", help="Print the audit ledger")
    audit_parser.add_argument("file", help="JSON list of offerings")
    audit_parser.add_argument("--unmask", action="store_true", help="Show amounts")
    audit_parser.add_argument("--utc", action="store_true", help="Judge hours in UTC")
    audit_parser.set_defaults(func=cmd_audit)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        return args.func(args)
    except (OSError, ValueError) as e:
        # ValidationError is a ValueError; keep pydantic's message readable
        message = str(e) if not isinstance(e, ValidationError) else e.errors()[0]["msg"]
        print(f"Error: {message}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
