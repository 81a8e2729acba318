"""
VibeGeometry - Qt Replay Scheduler
==================================

Kooperative Pause zwischen zwei Makro-Befehlen über den Qt Event-Loop.

Problem: Ein blockierendes sleep() zwischen den Befehlen friert das Canvas ein.
Lösung: QTimer.singleShot ruft den nächsten Schritt nach der Pause auf;
dazwischen verarbeitet der Event-Loop Redraws und Eingaben.

Usage:
    session = ConstructionSession(scheduler=QtReplayScheduler())
    session.run_macro(commands, on_finished=lambda summary: app.quit())
    app.exec()
"""

from typing import Callable

from loguru import logger
from PySide6.QtCore import QObject, QTimer


class QtReplayScheduler(QObject):
    """Scheduler für MacroPlayer im Qt Event-Loop"""

    def __init__(self, parent=None):
        super().__init__(parent)
        self._pending = 0

    @property
    def pending(self) -> int:
        """Anzahl geplanter, noch nicht ausgeführter Schritte"""
        return self._pending

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> None:
        self._pending += 1

        def fire():
            self._pending -= 1
            try:
                callback()
            except Exception as e:
                logger.exception(f"[Macro] Wiedergabe-Schritt fehlgeschlagen: {e}")

        QTimer.singleShot(max(0, int(delay_ms)), fire)
