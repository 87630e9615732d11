"""Coach signals: CLI demo runner.

Runs the signal engine against a fixture snapshot and renders the ranked
signals, with their recommended copilot actions, as a Rich table.

Usage:
    python cli.py
    python cli.py --org org_demo --now 2026-02-19T12:00:00.000Z
    python cli.py --fixture path/to/export.json --org org_42

Environment (a .env file is honoured):
    SIGNALS_FIXTURE:  default fixture path (fixtures/demo_org.json)
    SIGNALS_LOG_FILE: log file path (signals.log next to this file)
"""

import argparse
import asyncio
import logging
import logging.handlers
import os
import pathlib

from dotenv import load_dotenv
from rich.console import Console

from copilot.actions import DEFAULT_SIGNAL_ACTIONS
from core.engine import SignalEngine
from display.report import SignalReport
from schemas.signal import Signal
from sources.fixture import FixtureDataSource, FixtureError, UnknownOrganizationError

console = Console()

_ROOT = pathlib.Path(__file__).parent
_DEFAULT_FIXTURE = _ROOT / "fixtures" / "demo_org.json"
_DEFAULT_LOG_FILE = _ROOT / "signals.log"
_DEMO_NOW = "2026-02-19T12:00:00.000Z"

LOG_FORMAT = "%(asctime)s  %(levelname)-8s  %(name)s  %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


# ── Logging ───────────────────────────────────────────────────────────────────

def configure_logging(log_file: pathlib.Path, level: int = logging.INFO) -> None:
    """Send root logging to a rotating file so the console stays clean."""
    handler = logging.handlers.RotatingFileHandler(
        log_file, maxBytes=1_000_000, backupCount=3, encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))

    root = logging.getLogger()
    root.setLevel(level)
    root.addHandler(handler)


# ── Arguments ─────────────────────────────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="coach-signals",
        description="Detect attendance and reporting risk signals for an organization.",
    )
    parser.add_argument("--org", default="org_demo", help="organization id (default: org_demo)")
    parser.add_argument(
        "--now",
        default=_DEMO_NOW,
        help=f"reference instant, ISO-8601 (default: {_DEMO_NOW}); pass 'live' for the wall clock",
    )
    parser.add_argument(
        "--fixture",
        default=os.environ.get("SIGNALS_FIXTURE", str(_DEFAULT_FIXTURE)),
        help="fixture JSON with organization snapshots",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="log at DEBUG level")
    return parser


# ── Entry point ───────────────────────────────────────────────────────────────

async def _run(args: argparse.Namespace) -> list[Signal]:
    source = FixtureDataSource.from_file(args.fixture)
    engine = SignalEngine(source)
    now_iso = None if args.now == "live" else args.now
    return await engine.get_signals(args.org, now_iso=now_iso)


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)
    configure_logging(
        pathlib.Path(os.environ.get("SIGNALS_LOG_FILE", str(_DEFAULT_LOG_FILE))),
        logging.DEBUG if args.verbose else logging.INFO,
    )

    console.rule("[bold]Coach Signals[/bold]")
    console.print(f"  organization  [cyan]{args.org}[/cyan]")
    console.print(f"  now           [cyan]{args.now}[/cyan]")
    console.print(f"  fixture       [cyan]{args.fixture}[/cyan]")

    try:
        signals = asyncio.run(_run(args))
    except FixtureError as exc:
        console.print(f"\n[bold red]{exc}[/bold red]")
        return 1
    except UnknownOrganizationError as exc:
        console.print(f"\n[bold red]{exc.args[0]}[/bold red]")
        return 1

    SignalReport(console).render(signals, DEFAULT_SIGNAL_ACTIONS)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
