#!/usr/bin/env python3
"""
VibeGeometry - Zirkel-und-Lineal Konstruktionen
Einstiegspunkt (Headless Makro-Wiedergabe)

    python main.py macro.txt --open start.json --out ergebnis.json
"""

import argparse
import sys
import os

from loguru import logger

# Füge Projektverzeichnis zum Pfad hinzu
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))


def build_parser() -> argparse.ArgumentParser:
    from config.version import APP_NAME, VERSION_FULL

    parser = argparse.ArgumentParser(
        prog="vibegeometry",
        description=f"{APP_NAME} {VERSION_FULL} - spielt ein Konstruktions-Makro ohne GUI ab",
    )
    parser.add_argument("macro", help="Makro-Datei (ein Befehl pro Zeile)")
    parser.add_argument("--open", dest="diagram", help="Diagramm vor der Wiedergabe laden")
    parser.add_argument("--out", help="Diagramm nach der Wiedergabe speichern")
    parser.add_argument("--delay", type=int, default=0,
                        help="Pause zwischen Befehlen in ms (> 0 nutzt den Qt Event-Loop)")
    parser.add_argument("--verbose", action="store_true", help="Debug-Ausgaben")
    return parser


def configure_logging(verbose: bool):
    from config.feature_flags import set_flag

    logger.remove()
    logger.add(sys.stderr, format="<level>{level: <8}</level> | {message}",
               level="DEBUG" if verbose else "INFO")
    if verbose:
        set_flag("macro_debug", True)


def run_with_event_loop(session, commands, summaries) -> None:
    """Wiedergabe mit echter Pause im QCoreApplication Event-Loop"""
    from PySide6.QtCore import QCoreApplication
    from gui.replay_scheduler import QtReplayScheduler

    app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])
    session.scheduler = QtReplayScheduler()

    def finished(summary):
        summaries.append(summary)
        app.quit()

    result = session.run_macro(commands, on_finished=finished)
    if result.success and session.is_replaying:
        app.exec()


def main(argv=None) -> int:
    """Startet die Wiedergabe; Exit-Code 0 bei Erfolg"""
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)

    from construction import ConstructionSession

    session = ConstructionSession(step_delay_ms=max(0, args.delay))

    if args.diagram:
        result = session.open_diagram(args.diagram)
        if not result.success:
            logger.error(f"Diagramm nicht lesbar: {result.message}")
            return 1

    result = session.load_macro(args.macro)
    if not result.success:
        logger.error(result.message)
        return 1

    commands = session.macro_commands
    summaries = []
    if args.delay > 0:
        run_with_event_loop(session, commands, summaries)
    else:
        session.run_macro(commands, on_finished=summaries.append)

    if summaries:
        s = summaries[-1]
        logger.info(f"{s.executed} ausgeführt, {s.failed} abgelehnt, {s.skipped} übersprungen")
    logger.info(f"Ergebnis: {session.store}")

    if args.out:
        result = session.save_diagram(args.out)
        if not result.success:
            logger.error(result.message)
            return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
