#!/usr/bin/env python3
"""Command line interface for PortKiller.

Commands:
    list [--filter Q] [--json]      Show listening TCP ports
    kill PID [--port N] [--yes]     Kill the process behind a port
    serve                           Run the HTTP API

Usage:
    portkiller list --filter node
    portkiller kill 4242
    python -m portkiller.cli.portctl kill 88 --yes
"""

import argparse
import asyncio
import json
import logging
import sys

from portkiller.config import settings
from portkiller.logging_config import setup_logging
from portkiller.models import PortRecord, TerminationDecision
from portkiller.service import PortService, filter_records, split_by_port_class

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_REFUSED = 2

HEADERS = ["PORT", "PID", "UID", "ADDRESS", "PROCESS", "POLICY"]


def _rows(records: list[PortRecord], service: PortService) -> list[list[str]]:
    return [
        [
            str(r.port),
            str(r.pid),
            str(r.owner_uid),
            r.bind_address,
            r.process_name,
            service.classify(r).value,
        ]
        for r in records
    ]


def print_table(title: str, records: list[PortRecord], service: PortService) -> None:
    rows = _rows(records, service)
    widths = [len(h) for h in HEADERS]
    for row in rows:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], len(cell))

    fmt = "  ".join(f"{{:<{w}}}" for w in widths)
    print(f"\n{title} ({len(rows)})")
    print(fmt.format(*HEADERS))
    print("  ".join("-" * w for w in widths))
    for row in rows:
        print(fmt.format(*row))


async def cmd_list(args: argparse.Namespace, service: PortService) -> int:
    """Scan and print listening ports."""
    result = await service.scan()
    if not result.ok:
        print(f"Error: {result.error}", file=sys.stderr)
        return EXIT_FAILURE

    records = filter_records(result.records, args.filter or "")

    if args.json:
        data = [
            {**r.model_dump(), "decision": service.classify(r).value}
            for r in records
        ]
        print(json.dumps(data, indent=2))
        return EXIT_OK

    system, user = split_by_port_class(records)
    print_table("USER PORTS", user, service)
    print_table("SYSTEM PORTS", system, service)
    return EXIT_OK


def _confirm(prompt: str) -> bool:
    try:
        answer = input(f"{prompt} [y/N] ")
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes")


async def cmd_kill(args: argparse.Namespace, service: PortService) -> int:
    """Kill a process listening on a port."""
    result = await service.scan()
    if not result.ok:
        print(f"Error: {result.error}", file=sys.stderr)
        return EXIT_FAILURE

    record = service.find(args.pid, args.port)
    if record is None:
        print(f"PID {args.pid} is not listening on any TCP port", file=sys.stderr)
        return EXIT_FAILURE

    outcome = await service.request_termination(record, confirmed=args.yes)

    if outcome.decision == TerminationDecision.BLOCKED:
        print(outcome.message, file=sys.stderr)
        return EXIT_REFUSED

    if outcome.termination is None:
        print(f"Warning: {outcome.message}")
        if not _confirm("Kill process anyway?"):
            print("Cancelled")
            return EXIT_REFUSED
        outcome = await service.request_termination(record, confirmed=True)

    if not outcome.success:
        print(outcome.message, file=sys.stderr)
        return EXIT_FAILURE

    print(outcome.message)
    if outcome.rescan is not None and outcome.rescan.ok:
        still_listening = [r for r in outcome.rescan.records if r.pid == record.pid]
        if still_listening:
            print(f"PID {record.pid} is still listening, it may take a moment to exit")
    return EXIT_OK


def cmd_serve(args: argparse.Namespace) -> int:
    from portkiller.main import main as serve

    serve()
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="portkiller",
        description="Find processes listening on TCP ports and stop them safely",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    list_parser = subparsers.add_parser("list", help="Show listening TCP ports")
    list_parser.add_argument("--filter", "-f", default="", help="Filter by port, name, PID or address")
    list_parser.add_argument("--json", action="store_true", help="Print JSON")

    kill_parser = subparsers.add_parser("kill", help="Kill the process behind a port")
    kill_parser.add_argument("pid", type=int, help="Process ID")
    kill_parser.add_argument("--port", type=int, default=None, help="Port, when a PID listens on several")
    kill_parser.add_argument("--yes", "-y", action="store_true", help="Skip the confirmation prompt")

    subparsers.add_parser("serve", help="Run the HTTP API")

    return parser


def main(argv: list[str] | None = None, service: PortService | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(debug=args.debug or settings.debug, json_logs=settings.json_logs)

    if args.command == "serve":
        return cmd_serve(args)

    service = service or PortService()
    if args.command == "list":
        return asyncio.run(cmd_list(args, service))
    return asyncio.run(cmd_kill(args, service))


if __name__ == "__main__":
    sys.exit(main())
