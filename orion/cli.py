"""
orion/cli.py
Command-line interface for ORION.

USAGE:
  orion chat                      # talk to ORION AI in the terminal
  orion chat --no-delay           # same, without the simulated typing time
  orion report --type medical --description "Malaise en tribune"
  orion history
  orion history --id 1767225600000
  orion serve --port 8770

EXAMPLES:
  # Manual report with every field
  orion report -t securite -u urgent -l "Stade Lat Dior - Thiès" \\
               -d "Colis abandonné près de l'entrée" --photo colis.jpg

  # Use another store file
  orion --store /tmp/reports.json history
"""

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import Optional

from orion.config import load_config, resolve_store_path
from orion.confirmation import MESSAGE as CONFIRMATION_MESSAGE
from orion.confirmation import THANKS as CONFIRMATION_THANKS
from orion.confirmation import TITLE as CONFIRMATION_TITLE
from orion.confirmation import ConfirmationView
from orion.conversation.driver import ConversationState
from orion.conversation.session import ConversationSession, EmptyMessageError
from orion.history import (
    EMPTY_HISTORY_MESSAGE,
    EMPTY_HISTORY_TITLE,
    HistoryEntry,
    list_history,
    select_report,
)
from orion.report_form import DEFAULT_LOCATION, FormValidationError, ReportForm, submit_report
from orion.store.report_store import JsonFileReportStore, StoreError

logger = logging.getLogger(__name__)

# ANSI colors
GREEN  = '\033[92m'
RED    = '\033[91m'
CYAN   = '\033[96m'
RESET  = '\033[0m'
BOLD   = '\033[1m'


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog        = 'orion',
        description = 'ORION — Signalez. Protégez. Coordonnez.',
        formatter_class = argparse.RawDescriptionHelpFormatter,
        epilog = """
Jeux Olympiques de la Jeunesse 2026 - Sénégal.
Reports are kept in a local JSON file (see --store).
        """
    )
    parser.add_argument(
        '--store', '-s',
        type    = Path,
        default = None,
        help    = 'Report store JSON file (default: store_path from orion_config.json)',
    )
    parser.add_argument(
        '--verbose', '-v',
        action  = 'store_true',
        help    = 'Enable debug logging',
    )

    sub = parser.add_subparsers(dest='command', required=True)

    chat = sub.add_parser('chat', help='Report an incident by chatting with ORION AI')
    chat.add_argument(
        '--no-delay',
        action  = 'store_true',
        help    = 'Answer immediately instead of simulating typing time',
    )

    report = sub.add_parser('report', help='Submit a report from structured fields')
    report.add_argument(
        '--type', '-t',
        required = True,
        help     = 'securite / medical / technique / logistique / autre',
    )
    report.add_argument(
        '--description', '-d',
        required = True,
        help     = 'What happened',
    )
    report.add_argument(
        '--urgency', '-u',
        default = 'non-urgent',
        choices = ['urgent', 'non-urgent'],
        help    = 'Urgency level (default: non-urgent)',
    )
    report.add_argument(
        '--location', '-l',
        default = DEFAULT_LOCATION,
        help    = f'Where it happened (default: {DEFAULT_LOCATION})',
    )
    report.add_argument(
        '--photo',
        default = None,
        help    = 'Photo file to attach (only the file name is recorded)',
    )

    history = sub.add_parser('history', help='List submitted reports')
    history.add_argument(
        '--id',
        dest    = 'report_id',
        default = None,
        help    = 'Show one report in detail',
    )

    serve = sub.add_parser('serve', help='Start the local HTTP API')
    serve.add_argument('--host', default=None, help='Host to bind (default: from config)')
    serve.add_argument('--port', type=int, default=None, help='Port to bind (default: from config)')

    return parser


def main(argv: Optional[list] = None) -> int:
    args = build_parser().parse_args(argv)

    # ── LOGGING SETUP ────────────────────────────────────────
    log_level = logging.DEBUG if args.verbose else logging.WARNING
    logging.basicConfig(
        level   = log_level,
        format  = '%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt = '%H:%M:%S',
    )

    config     = load_config()
    store_path = args.store or resolve_store_path(config)
    store      = JsonFileReportStore(store_path)

    try:
        if args.command == 'chat':
            return _run_chat(store, config, pace=not args.no_delay)
        if args.command == 'report':
            return _run_report(store, args)
        if args.command == 'history':
            return _run_history(store, args.report_id)
        if args.command == 'serve':
            from orion.api import serve
            serve(
                host       = args.host or config['host'],
                port       = args.port or int(config['port']),
                store_path = store_path,
            )
            return 0
    except StoreError as e:
        _print(f"{RED}Error: {e}{RESET}")
        return 1
    return 2


# ── COMMANDS ─────────────────────────────────────────────────

def _run_chat(store: JsonFileReportStore, config: dict, pace: bool = True) -> int:
    session = ConversationSession(
        store  = store,
        config = config,
        pacer  = _typing_pause if pace else None,
    )
    _banner()
    _ai(session.messages[0].text)

    while not session.is_finished:
        try:
            text = input(f"{BOLD}Vous ›{RESET} ")
        except (EOFError, KeyboardInterrupt):
            _print("")
            return 130
        try:
            outcome = session.send(text)
        except EmptyMessageError:
            continue

        _ai(outcome.reply.text)
        for note in outcome.notifications:
            color = GREEN if note.level == 'success' else RED
            _print(f"  {color}● {note.text}{RESET}")

    if session.state is ConversationState.CONFIRMED and session.navigation is not None:
        if pace:
            time.sleep(session.navigation.delay)
        view = ConfirmationView(
            incident          = session.navigation.payload,
            auto_return_after = float(config['confirmation_timeout_s']),
        )
        _confirmation(view)
    return 0


def _run_report(store: JsonFileReportStore, args: argparse.Namespace) -> int:
    form = ReportForm(
        type        = args.type,
        urgency     = args.urgency,
        location    = args.location,
        description = args.description,
        photo       = Path(args.photo).name if args.photo else None,
    )
    try:
        report = submit_report(form, store)
    except FormValidationError as e:
        _print(f"{RED}{e}{RESET}")
        return 1
    _ok(f"Signalement {report.id} enregistré")
    _confirmation(ConfirmationView(incident=report.incident))
    return 0


def _run_history(store: JsonFileReportStore, report_id: Optional[str]) -> int:
    if report_id:
        entry = select_report(store, report_id)
        if entry is None:
            _print(f"{RED}Signalement introuvable : {report_id}{RESET}")
            return 1
        _detail(entry)
        return 0

    entries = list_history(store)
    if not entries:
        _print(f"\n{BOLD}{EMPTY_HISTORY_TITLE}{RESET}")
        _print(f"  {EMPTY_HISTORY_MESSAGE}\n")
        return 0

    _print(f"\n{BOLD}Mes signalements ({len(entries)}){RESET}")
    for entry in entries:
        _print(
            f"  {entry.emoji} {BOLD}{entry.title:<10}{RESET} "
            f"[{entry.report.status}]  📍 {entry.report.location}  "
            f"{CYAN}{entry.date_label}{RESET}  ({entry.report.id})"
        )
    _print("")
    return 0


# ── PRINT HELPERS ────────────────────────────────────────────

def _banner():
    _print(f"""
{BOLD}{CYAN}
   ██████╗ ██████╗ ██╗ ██████╗ ███╗   ██╗
  ██╔═══██╗██╔══██╗██║██╔═══██╗████╗  ██║
  ██║   ██║██████╔╝██║██║   ██║██╔██╗ ██║
  ██║   ██║██╔══██╗██║██║   ██║██║╚██╗██║
  ╚██████╔╝██║  ██║██║╚██████╔╝██║ ╚████║
   ╚═════╝ ╚═╝  ╚═╝╚═╝ ╚═════╝ ╚═╝  ╚═══╝
  Signalez. Protégez. Coordonnez.
  Jeux Olympiques de la Jeunesse 2026 - Sénégal
{RESET}""")


def _detail(entry: HistoryEntry):
    r = entry.report
    _print(f"\n{BOLD}{entry.emoji} {entry.title}{RESET}  [{r.status}]")
    _print(f"  Référence   : {r.id}")
    _print(f"  Date        : {entry.date_label}")
    _print(f"  Urgence     : {entry.urgency_badge}")
    _print(f"  Lieu        : {r.location}")
    _print(f"  Description : {r.description}")
    if r.photo:
        _print(f"  Photo       : {r.photo}")
    if entry.agent:
        _print(f"  Agent       : {entry.agent}")
    _print("")


def _confirmation(view: ConfirmationView):
    _print(f"\n{BOLD}{GREEN}✓ {CONFIRMATION_TITLE}{RESET}")
    _print(f"  {CONFIRMATION_MESSAGE}")
    _print(f"  {CONFIRMATION_THANKS}")
    _print(f"  Numéro de référence : {BOLD}{view.reference}{RESET}\n")


def _typing_pause(seconds: float):
    sys.stdout.write(f"  {CYAN}ORION AI écrit…{RESET}")
    sys.stdout.flush()
    time.sleep(seconds)
    sys.stdout.write('\r' + ' ' * 24 + '\r')
    sys.stdout.flush()


def _ai(msg):    _print(f"{CYAN}ORION AI ›{RESET} {msg}")
def _ok(msg):    _print(f"  {GREEN}✓{RESET} {msg}")
def _print(msg): print(msg)


if __name__ == '__main__':
    sys.exit(main())
