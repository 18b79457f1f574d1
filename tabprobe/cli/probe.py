#!/usr/bin/env python3
"""CLI entry point for probing a page's new-tab shortcut."""
import argparse
import dataclasses
import json
import sys

from tabprobe.handler import handle_event, build_runner
from tabprobe.utils.config import config
from tabprobe.utils.logger import set_log_level


def build_config(args: argparse.Namespace):
    """Apply command-line overrides on top of the environment config."""
    overrides = {}
    if args.headless:
        overrides["browser_headless"] = True
    if args.isolated:
        overrides["isolated"] = True
    if args.timeout is not None:
        overrides["worker_timeout"] = args.timeout
    if args.log_level:
        overrides["log_level"] = args.log_level
    if args.audit:
        overrides["audit_enabled"] = True
    return dataclasses.replace(config, **overrides)


def main(argv=None) -> int:
    """Run one session and print the response body."""
    parser = argparse.ArgumentParser(
        description="Open a page, press its new-tab shortcut and report the new tab's URL",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Probe a page in-process
  python -m tabprobe.cli.probe --url https://example.com/listing/42

  # Run the session in an isolated worker process with a 90s watchdog
  python -m tabprobe.cli.probe --url https://example.com --isolated --timeout 90

  # Show the effective configuration
  python -m tabprobe.cli.probe --show-config
        """
    )

    parser.add_argument(
        "--url",
        type=str,
        help="Target page URL"
    )

    parser.add_argument(
        "--isolated",
        action="store_true",
        help="Run the session in a separate worker process (single attempt, no clipboard fallback)"
    )

    parser.add_argument(
        "--headless",
        action="store_true",
        help="Run browser in headless mode"
    )

    parser.add_argument(
        "--timeout",
        type=float,
        help="Watchdog timeout in seconds for the isolated worker"
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Override log level"
    )

    parser.add_argument(
        "--audit",
        action="store_true",
        help="Append a session record to the audit log"
    )

    parser.add_argument(
        "--show-config",
        action="store_true",
        help="Print configuration and exit"
    )

    args = parser.parse_args(argv)
    cfg = build_config(args)
    if args.log_level:
        set_log_level(args.log_level)

    if args.show_config:
        cfg.print_status()
        return 0

    if not args.url:
        parser.print_usage(sys.stderr)
        print("error: --url is required", file=sys.stderr)
        return 2

    try:
        response = handle_event(
            {"body": json.dumps({"url": args.url})},
            runner=build_runner(cfg),
        )
    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return 130

    print(response["body"])
    return 0 if response["statusCode"] == 200 else 1


if __name__ == "__main__":
    sys.exit(main())
