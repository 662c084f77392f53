import argparse
import logging
import sys

from referral_dispatch.config import ConfigError, get_settings
from referral_dispatch.database import build_session_factory
from referral_dispatch.pipeline import build_job
from referral_dispatch.report import render_report
from referral_dispatch.scheduler import start_scheduler
from referral_dispatch.schemas import DispatchOutcome
from referral_dispatch.store import StoreUnavailableError
from referral_dispatch.window import resolve_window


EXIT_ITEM_ERRORS = 1
EXIT_STORE_UNAVAILABLE = 2
EXIT_CONFIG_INVALID = 3


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Send referral results for registration, one per physician")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="dispatch one day's referrals")
    run_parser.add_argument("-m", "--month", help="month of the day to process (with --day), e.g. 03")
    run_parser.add_argument("-d", "--day", help="day of month to process (with --month), e.g. 12")

    schedule_parser = subparsers.add_parser("schedule", help="start daily scheduler")
    schedule_parser.add_argument("--run-now", action="store_true", help="also run once immediately")

    return parser.parse_args(argv)


def print_progress(done: int, total: int, outcome: DispatchOutcome) -> None:
    end = "\n" if done == total else ""
    print(f"\r[{done}/{total}] {outcome.item_id} {outcome.status.value}", end=end, file=sys.stderr, flush=True)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    try:
        settings = get_settings()
    except ConfigError as exc:
        print(f"[ERROR] invalid configuration: {exc}", file=sys.stderr)
        raise SystemExit(EXIT_CONFIG_INVALID) from exc

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    session_factory = build_session_factory(settings.database_url)
    if args.command == "schedule":
        start_scheduler(settings, session_factory, run_now=args.run_now)
        return

    window, warning = resolve_window(args.month, args.day, timezone=settings.timezone)
    if warning:
        print(f"[WARNING] {warning}")

    job = build_job(settings, session_factory, on_progress=print_progress)
    try:
        report = job.run(window)
    except StoreUnavailableError as exc:
        print(f"[ERROR] candidate store unavailable: {exc}", file=sys.stderr)
        raise SystemExit(EXIT_STORE_UNAVAILABLE) from exc

    print(render_report(report))
    if report.has_errors:
        raise SystemExit(EXIT_ITEM_ERRORS)


if __name__ == "__main__":
    main()
