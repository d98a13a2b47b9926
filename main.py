"""Main CLI entry-point."""
from __future__ import annotations

import argparse
import asyncio
import shutil
import sys

from core.logging.config import bootstrap_logging, shutdown_logging
from config import settings

_BRIGHT_GREEN = "\033[1;92m"
_CYAN = "\033[96m"
_YELLOW = "\033[93m"
_RESET = "\033[0m"
_BOLD = "\033[1m"


def _g(s: str) -> str:
    return f"{_BRIGHT_GREEN}{s}{_RESET}"


def _c(s: str) -> str:
    return f"{_CYAN}{s}{_RESET}"


_LOGO = r"""
   █████╗ ██████╗  █████╗ ███╗   ███╗    ██████╗ ██╗██████╗ ███████╗██╗     ██╗███╗   ██╗███████╗
  ██╔══██╗██╔══██╗██╔══██╗████╗ ████║    ██╔══██╗██║██╔══██╗██╔════╝██║     ██║████╗  ██║██╔════╝
  ███████║██████╔╝███████║██╔████╔██║    ██████╔╝██║██████╔╝█████╗  ██║     ██║██╔██╗ ██║█████╗
  ██╔══██║██╔══██╗██╔══██║██║╚██╔╝██║    ██╔═══╝ ██║██╔═══╝ ██╔══╝  ██║     ██║██║╚██╗██║██╔══╝
  ██║  ██║██║  ██║██║  ██║██║ ╚═╝ ██║    ██║     ██║██║     ███████╗███████╗██║██║ ╚████║███████╗
  ╚═╝  ╚═╝╚═╝  ╚═╝╚═╝  ╚═╝╚═╝     ╚═╝    ╚═╝     ╚═╝╚═╝     ╚══════╝╚══════╝╚═╝╚═╝  ╚═══╝╚══════╝
"""


def _print_logo() -> None:
    cols = shutil.get_terminal_size(fallback=(100, 20)).columns
    div = "═" * min(cols, 96)
    print(_g(div))
    for line in _LOGO.splitlines():
        print(_g(line))
    print(_c("  ARAM match ingestion & enrichment pipeline"))
    print(_g(div))


def _menu() -> int:
    _print_logo()
    from presentation.cli import CleanupCommand, EnrichCommand, ScrapeCommand, ServeCommand

    while True:
        cols = shutil.get_terminal_size(fallback=(96, 20)).columns
        print(f"\n{_g('═' * min(cols, 48))}")
        print(f"  {_BOLD}MAIN MENU{_RESET}")
        print(_g("═" * min(cols, 48)))
        print(f"  {_c('1')}  Run one scrape invocation")
        print(f"  {_c('2')}  Enrich a match")
        print(f"  {_c('3')}  Clean up stale aggregates")
        print(f"  {_c('4')}  Serve HTTP API")
        print(f"  {_c('5')}  Exit")
        print(_g("─" * min(cols, 48)))
        choice = input("  Choose: ").strip()

        if choice == "1":
            asyncio.run(ScrapeCommand().run())
        elif choice == "2":
            asyncio.run(EnrichCommand().run())
        elif choice == "3":
            CleanupCommand().run()
        elif choice == "4":
            return ServeCommand().run()
        elif choice == "5":
            print(f"\n  {_g('Goodbye!')}\n")
            return 0
        else:
            print(f"  {_YELLOW}Invalid option.{_RESET}")


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="aram-pipeline", description="ARAM match ingestion & enrichment pipeline")
    sub = parser.add_subparsers(dest="command")

    scrape = sub.add_parser("scrape", help="run one scrape invocation")
    scrape.add_argument("--json", action="store_true", help="print the summary as JSON")

    enrich = sub.add_parser("enrich", help="enrich one stored match")
    enrich.add_argument("match_id")
    enrich.add_argument("region", help="cluster (europe) or platform (euw1)")

    cleanup = sub.add_parser("cleanup", help="delete aggregates outside the newest patches")
    cleanup.add_argument("--keep", type=int, default=None)
    cleanup.add_argument("--yes", action="store_true", help="skip the confirmation prompt")

    serve = sub.add_parser("serve", help="serve the HTTP API")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)
    return parser


def run(argv: list[str]) -> int:
    args = _parser().parse_args(argv)
    from presentation.cli import CleanupCommand, EnrichCommand, ScrapeCommand, ServeCommand

    if args.command == "scrape":
        return asyncio.run(ScrapeCommand().run(as_json=args.json))
    if args.command == "enrich":
        return asyncio.run(EnrichCommand().run(args.match_id, args.region))
    if args.command == "cleanup":
        return CleanupCommand().run(args.keep, assume_yes=args.yes)
    if args.command == "serve":
        return ServeCommand().run(args.host, args.port)
    return _menu()


def main(argv: list[str]) -> int:
    bootstrap_logging(
        service="pipeline",
        level=settings.LOG_LEVEL,
        log_dir=settings.LOG_DIR,
        log_file_name="pipeline.jsonl",
    )
    try:
        return run(argv)
    finally:
        shutdown_logging()


def run_cli() -> int:
    return main(sys.argv[1:])


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
