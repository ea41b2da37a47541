# ruff: noqa: T201

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from pushstate.app import (
    apply_manifest,
    cancel_by_tag,
    cancel_receipt,
    list_sounds,
    plan_manifest,
    poll_receipt,
    rename_group,
    validate_user,
)
from pushstate.config import configure_logging
from pushstate.domain.errors import ValidationError
from pushstate.manifest import load_manifest

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from pushstate.app import ApplyResult

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reconcile Pushover notifications and groups")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log remote calls")
    subparsers = parser.add_subparsers(dest="command", required=True)

    apply = subparsers.add_parser("apply", help="Converge remote state to a manifest")
    apply.add_argument("manifest", type=Path, help="Path to the TOML manifest")

    plan = subparsers.add_parser("plan", help="Show what apply would change")
    plan.add_argument("manifest", type=Path, help="Path to the TOML manifest")

    subparsers.add_parser("sounds", help="List available notification sounds")

    validate = subparsers.add_parser("validate", help="Check a user or group key")
    validate.add_argument("user", help="User or group key")
    validate.add_argument("--device", help="Device name to check for")

    receipt = subparsers.add_parser("receipt", help="Show an emergency receipt's status")
    receipt.add_argument("receipt")

    cancel = subparsers.add_parser("cancel-receipt", help="Stop retries of an emergency send")
    cancel.add_argument("receipt")

    cancel_tag = subparsers.add_parser(
        "cancel-tag", help="Stop retries of every emergency send carrying a tag"
    )
    cancel_tag.add_argument("tag")

    rename = subparsers.add_parser("rename-group", help="Rename a delivery group")
    rename.add_argument("group", help="Group key")
    rename.add_argument("name", help="New group name")

    return parser.parse_args(list(argv))


def _print_outcomes(result: ApplyResult) -> None:
    for outcome in result.outcomes:
        marker = " (drifted)" if outcome.drifted else ""
        if outcome.error is not None:
            print(f"{outcome.address}: FAILED {outcome.error}")
            continue
        print(f"{outcome.address}: {outcome.action}{marker} - {outcome.plan.reason}")


def _run(args: argparse.Namespace) -> int:
    match args.command:
        case "apply":
            result = apply_manifest(load_manifest(args.manifest))
            _print_outcomes(result)
            return 0 if result.ok else 1
        case "plan":
            result = plan_manifest(load_manifest(args.manifest))
            _print_outcomes(result)
            return 0 if result.ok else 1
        case "sounds":
            catalog = list_sounds()
            for key in catalog.keys:
                print(f"{key}\t{catalog.sounds[key]}")
        case "validate":
            validation = validate_user(args.user, device=args.device)
            kind = "group" if validation.is_group else "user"
            print(f"{validation.recipient}: valid {kind}")
            if validation.devices:
                print(f"devices: {', '.join(validation.devices)}")
        case "receipt":
            status = poll_receipt(args.receipt)
            print(f"acknowledged: {status.acknowledged}")
            if status.acknowledged_at is not None:
                print(f"acknowledged_at: {status.acknowledged_at.isoformat()}")
                print(f"acknowledged_by: {status.acknowledged_by}")
            print(f"expired: {status.expired}")
            if status.expires_at is not None:
                print(f"expires_at: {status.expires_at.isoformat()}")
        case "cancel-receipt":
            cancel_receipt(args.receipt)
        case "cancel-tag":
            print(f"cancelled: {cancel_by_tag(args.tag)}")
        case "rename-group":
            rename_group(args.group, args.name)
        case _:
            raise ValueError(f"Unsupported command: {args.command}")
    return 0


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)

    try:
        exit_code = _run(parsed_args)
    except ValidationError as exc:
        log.error("Invalid input: %s", exc)  # noqa: TRY400
        sys.exit(2)
    except Exception:
        log.exception("Fatal error")
        sys.exit(1)
    if exit_code:
        sys.exit(exit_code)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


if __name__ == "__main__":
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()
