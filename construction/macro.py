"""
VibeGeometry - Macro Protocol
=============================

Zeilenbasiertes Makro-Format für Aufnahme und Wiedergabe von Konstruktionen.

Eine Zeile pro Befehl, Zahlen mit 8 Nachkommastellen:

    addPoint:x,y
    addLine:ax,ay|bx,by
    addCircle:cx,cy|ex,ey
    addNormal:ax,ay|bx,by;px,py
    extendLines
    intersections
    setLabel:Text
    deleteSelected;P=x,y|x,y;L=ax,ay|bx,by#...;E=...;C=cx,cy,r#...
    deleteAll
    open:pfad
    save:pfad

Die Wiedergabe stellt die Selektion über geometrische Suche wieder her
(Toleranz COMPARE_POINT), nicht über Handles. Handles verschieben sich beim
Löschen, Koordinaten nicht.

Verwendung:
    recorder = MacroRecorder()
    recorder.start()
    recorder.record(MacroCommand.add_point(Point2D(1, 2)))
    recorder.stop()

    player = MacroPlayer(session, ImmediateScheduler())
    player.run(recorder.commands, on_finished=print)
"""

import math
from collections import deque
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Deque, List, Optional, Protocol, Sequence, Tuple, Union, TYPE_CHECKING

from loguru import logger

from config.feature_flags import is_enabled
from config.tolerances import Tolerances
from .geometry import EntityKind, Point2D
from .result import OperationResult

if TYPE_CHECKING:
    from .session import ConstructionSession

PathLike = Union[str, Path]

# Befehle ohne Nutzdaten
BARE_COMMANDS = ("extendLines", "intersections", "deleteAll")
# Alte Form ohne Koordinaten: wirkt auf die aktuelle Selektion
LEGACY_COMMANDS = ("addCircle", "addNormal")


class MacroParseError(ValueError):
    """Makro-Zeile nicht interpretierbar"""


# ==================== Zahlen-Format ====================

def format_number(value: float) -> str:
    return f"{value:.{Tolerances.MACRO_DECIMALS}f}"


def format_point(p: Point2D) -> str:
    return f"{format_number(p.x)},{format_number(p.y)}"


def _parse_float(text: str) -> float:
    try:
        value = float(text.strip())
    except ValueError:
        raise MacroParseError(f"Keine Zahl: '{text}'") from None
    if not math.isfinite(value):
        raise MacroParseError(f"Zahl nicht endlich: '{text}'")
    return value


def _parse_point(text: str) -> Point2D:
    parts = text.split(",")
    if len(parts) != 2:
        raise MacroParseError(f"Punkt erwartet 'x,y': '{text}'")
    return Point2D(_parse_float(parts[0]), _parse_float(parts[1]))


def _parse_segment(text: str) -> Tuple[Point2D, Point2D]:
    parts = text.split("|")
    if len(parts) != 2:
        raise MacroParseError(f"Segment erwartet 'ax,ay|bx,by': '{text}'")
    return _parse_point(parts[0]), _parse_point(parts[1])


def _parse_circle(text: str) -> Tuple[Point2D, float]:
    parts = text.split(",")
    if len(parts) != 3:
        raise MacroParseError(f"Kreis erwartet 'cx,cy,r': '{text}'")
    return Point2D(_parse_float(parts[0]), _parse_float(parts[1])), _parse_float(parts[2])


# ==================== Befehle ====================

@dataclass
class MacroCommand:
    """
    Ein Makro-Befehl.

    `points` trägt die Koordinaten des Befehls:
        addPoint  -> [p]
        addLine   -> [a, b]
        addCircle -> [zentrum, rand]
        addNormal -> [a, b, durch]
    Leere `points` bei addCircle/addNormal ist die alte Form ohne Koordinaten.
    """
    name: str
    points: List[Point2D] = field(default_factory=list)
    text: Optional[str] = None  # setLabel / open / save
    delete_points: List[Point2D] = field(default_factory=list)
    delete_lines: List[Tuple[Point2D, Point2D]] = field(default_factory=list)
    delete_extended_lines: List[Tuple[Point2D, Point2D]] = field(default_factory=list)
    delete_circles: List[Tuple[Point2D, float]] = field(default_factory=list)

    # === Konstruktoren ===

    @classmethod
    def add_point(cls, pos: Point2D) -> 'MacroCommand':
        return cls("addPoint", [pos])

    @classmethod
    def add_line(cls, a: Point2D, b: Point2D) -> 'MacroCommand':
        return cls("addLine", [a, b])

    @classmethod
    def add_circle(cls, center: Point2D, edge: Point2D) -> 'MacroCommand':
        return cls("addCircle", [center, edge])

    @classmethod
    def add_normal(cls, a: Point2D, b: Point2D, through: Point2D) -> 'MacroCommand':
        return cls("addNormal", [a, b, through])

    @classmethod
    def set_label(cls, text: str) -> 'MacroCommand':
        return cls("setLabel", text=text)

    @classmethod
    def open(cls, path: str) -> 'MacroCommand':
        return cls("open", text=path)

    @classmethod
    def save(cls, path: str) -> 'MacroCommand':
        return cls("save", text=path)

    @classmethod
    def delete_selected(cls, points=(), lines=(), extended_lines=(), circles=()) -> 'MacroCommand':
        return cls("deleteSelected",
                   delete_points=list(points),
                   delete_lines=list(lines),
                   delete_extended_lines=list(extended_lines),
                   delete_circles=list(circles))

    @property
    def is_legacy(self) -> bool:
        return self.name in LEGACY_COMMANDS and not self.points

    # === Serialisierung ===

    def to_line(self) -> str:
        if self.name in BARE_COMMANDS or self.is_legacy:
            return self.name
        if self.name == "addPoint":
            return f"addPoint:{format_point(self.points[0])}"
        if self.name in ("addLine", "addCircle"):
            return f"{self.name}:{format_point(self.points[0])}|{format_point(self.points[1])}"
        if self.name == "addNormal":
            a, b, through = self.points
            return f"addNormal:{format_point(a)}|{format_point(b)};{format_point(through)}"
        if self.name in ("setLabel", "open", "save"):
            return f"{self.name}:{self.text or ''}"
        if self.name == "deleteSelected":
            return self._delete_line()
        raise MacroParseError(f"Unbekannter Befehl: {self.name}")

    def _delete_line(self) -> str:
        fields = ["deleteSelected"]
        if self.delete_points:
            fields.append("P=" + "|".join(format_point(p) for p in self.delete_points))
        if self.delete_lines:
            fields.append("L=" + "#".join(f"{format_point(a)}|{format_point(b)}"
                                          for a, b in self.delete_lines))
        if self.delete_extended_lines:
            fields.append("E=" + "#".join(f"{format_point(a)}|{format_point(b)}"
                                          for a, b in self.delete_extended_lines))
        if self.delete_circles:
            fields.append("C=" + "#".join(f"{format_point(c)},{format_number(r)}"
                                          for c, r in self.delete_circles))
        return ";".join(fields)


def parse_command(line: str) -> MacroCommand:
    """
    Parst eine Makro-Zeile.

    Raises:
        MacroParseError: unbekannter Befehl oder fehlerhafte Nutzdaten
    """
    line = line.strip()
    if not line:
        raise MacroParseError("Leere Zeile")

    if line in BARE_COMMANDS or line in LEGACY_COMMANDS:
        return MacroCommand(line)

    if line == "deleteSelected" or line.startswith("deleteSelected;"):
        return _parse_delete(line[len("deleteSelected"):])

    name, sep, payload = line.partition(":")
    if not sep:
        raise MacroParseError(f"Unbekannter Befehl: '{line}'")

    if name == "addPoint":
        return MacroCommand.add_point(_parse_point(payload))
    if name == "addLine":
        return MacroCommand.add_line(*_parse_segment(payload))
    if name == "addCircle":
        return MacroCommand.add_circle(*_parse_segment(payload))
    if name == "addNormal":
        segment, sep, through = payload.partition(";")
        if not sep:
            raise MacroParseError(f"addNormal ohne Durchgangspunkt: '{line}'")
        a, b = _parse_segment(segment)
        return MacroCommand.add_normal(a, b, _parse_point(through))
    if name == "setLabel":
        return MacroCommand.set_label(payload)
    if name in ("open", "save"):
        if not payload.strip():
            raise MacroParseError(f"{name} ohne Pfad")
        return MacroCommand(name, text=payload.strip())

    raise MacroParseError(f"Unbekannter Befehl: '{name}'")


def _parse_delete(rest: str) -> MacroCommand:
    cmd = MacroCommand("deleteSelected")
    for part in rest.split(";"):
        if not part:
            continue
        key, sep, items = part.partition("=")
        if not sep:
            raise MacroParseError(f"deleteSelected: Feld ohne '=': '{part}'")
        if key == "P":
            cmd.delete_points = [_parse_point(item) for item in items.split("|") if item]
        elif key == "L":
            cmd.delete_lines = [_parse_segment(item) for item in items.split("#") if item]
        elif key == "E":
            cmd.delete_extended_lines = [_parse_segment(item) for item in items.split("#") if item]
        elif key == "C":
            cmd.delete_circles = [_parse_circle(item) for item in items.split("#") if item]
        else:
            raise MacroParseError(f"deleteSelected: unbekanntes Feld '{key}'")
    return cmd


# ==================== Aufnahme ====================

class MacroRecorder:
    """
    Sammelt Befehlszeilen während einer Aufnahme.

    Während einer Wiedergabe (`replaying`) wird nichts aufgenommen und die
    Aufnahme kann nicht umgeschaltet werden.
    """

    def __init__(self):
        self.commands: List[str] = []
        self.recording = False
        self.replaying = False

    @property
    def is_recording(self) -> bool:
        return self.recording

    def start(self) -> bool:
        if self.replaying:
            logger.warning("[Macro] Aufnahme während Wiedergabe nicht möglich")
            return False
        self.commands.clear()
        self.recording = True
        logger.info("[Macro] Aufnahme gestartet")
        return True

    def stop(self):
        if self.recording:
            self.recording = False
            logger.info(f"[Macro] Aufnahme beendet ({len(self.commands)} Befehle)")

    def toggle(self) -> bool:
        """Schaltet die Aufnahme um; liefert den neuen Zustand"""
        if self.replaying:
            logger.warning("[Macro] Aufnahme während Wiedergabe nicht umschaltbar")
            return self.recording
        if self.recording:
            self.stop()
        else:
            self.start()
        return self.recording

    def record(self, command: MacroCommand):
        if not self.recording or self.replaying:
            return
        line = command.to_line()
        self.commands.append(line)
        if is_enabled("macro_debug"):
            logger.debug(f"[Macro] + {line}")

    def load(self, path: PathLike) -> OperationResult:
        """Ersetzt die Befehlsliste durch die nicht-leeren Zeilen der Datei"""
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"[Macro] Makro-Datei nicht lesbar: {path} ({e})")
            return OperationResult.persistence(f"Makro-Datei nicht lesbar: {path}")

        self.commands = [line.strip() for line in text.splitlines() if line.strip()]
        logger.info(f"[Macro] {len(self.commands)} Befehle geladen aus {path}")
        return OperationResult.ok(data=len(self.commands))

    def save(self, path: PathLike) -> OperationResult:
        path = Path(path)
        try:
            path.write_text("".join(f"{line}\n" for line in self.commands), encoding="utf-8")
        except OSError as e:
            logger.error(f"[Macro] Makro-Datei nicht schreibbar: {path} ({e})")
            return OperationResult.persistence(f"Makro-Datei nicht schreibbar: {path}")
        logger.info(f"[Macro] {len(self.commands)} Befehle gespeichert in {path}")
        return OperationResult.ok(data=len(self.commands))


# ==================== Scheduler ====================

class ReplayScheduler(Protocol):
    """Ruft callback nach delay_ms auf (kooperativ, kein Blockieren)"""

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> None:
        ...


class ImmediateScheduler:
    """
    Führt Callbacks ohne Wartezeit aus (Tests, Headless-Betrieb).

    Verschachtelte Aufrufe landen in einer Queue, die in einer Schleife
    abgearbeitet wird; die Rekursionstiefe bleibt konstant.
    """

    def __init__(self):
        self._queue: Deque[Callable[[], None]] = deque()
        self._draining = False
        self.requested_delays: List[int] = []

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> None:
        self.requested_delays.append(delay_ms)
        self._queue.append(callback)
        if self._draining:
            return
        self._draining = True
        try:
            while self._queue:
                self._queue.popleft()()
        finally:
            self._draining = False


# ==================== Wiedergabe ====================

@dataclass
class ReplaySummary:
    executed: int = 0
    skipped: int = 0  # nicht parsebar
    failed: int = 0   # Operation abgelehnt

    @property
    def total(self) -> int:
        return self.executed + self.skipped + self.failed


class MacroPlayer:
    """
    Spielt Befehlszeilen nacheinander auf einer Session ab.

    Zwischen zwei Befehlen wird über den Scheduler `delay_ms` gewartet.
    Fehlerhafte Zeilen werden übersprungen, abgelehnte Operationen sind
    geloggte No-Ops.
    """

    def __init__(self, session: 'ConstructionSession', scheduler: Optional[ReplayScheduler] = None,
                 delay_ms: int = Tolerances.MACRO_STEP_DELAY_MS):
        self.session = session
        self.scheduler = scheduler if scheduler is not None else ImmediateScheduler()
        self.delay_ms = delay_ms
        self.summary = ReplaySummary()
        self._commands: List[str] = []
        self._index = 0
        self._running = False
        self._on_finished: Optional[Callable[[ReplaySummary], None]] = None

        self._handlers = {
            "addPoint": self._replay_add_point,
            "addLine": self._replay_add_line,
            "addCircle": self._replay_add_circle,
            "addNormal": self._replay_add_normal,
            "extendLines": lambda cmd: self.session.extend_selected_lines(),
            "intersections": lambda cmd: self.session.recompute_selected_intersections(),
            "setLabel": lambda cmd: self.session.set_label_for_selection(cmd.text or ""),
            "deleteSelected": self._replay_delete_selected,
            "deleteAll": lambda cmd: self.session.delete_all(),
            "open": lambda cmd: self.session.open_diagram(cmd.text),
            "save": lambda cmd: self.session.save_diagram(cmd.text),
        }

    @property
    def is_running(self) -> bool:
        return self._running

    def run(self, commands: Sequence[str],
            on_finished: Optional[Callable[[ReplaySummary], None]] = None) -> OperationResult:
        """
        Startet die Wiedergabe. Eine laufende Aufnahme wird vorher beendet.

        Mit ImmediateScheduler ist die Wiedergabe beim Rücksprung fertig,
        mit einem Event-Loop-Scheduler läuft sie asynchron weiter.
        """
        recorder = self.session.recorder
        if self._running or recorder.replaying:
            return OperationResult.precondition("Wiedergabe läuft bereits")
        if not commands:
            return OperationResult.precondition("Keine Makro-Befehle vorhanden")

        recorder.stop()
        recorder.replaying = True
        self._running = True
        self._commands = list(commands)
        self._index = 0
        self._on_finished = on_finished
        self.summary = ReplaySummary()

        logger.info(f"[Macro] Wiedergabe von {len(self._commands)} Befehlen")
        self._step()
        return OperationResult.ok(data=self.summary)

    def _step(self):
        self.execute_line(self._commands[self._index])
        self._index += 1
        if self._index >= len(self._commands):
            self._finish()
            return
        self.scheduler.call_later(self.delay_ms, self._step)

    def _finish(self):
        self._running = False
        self.session.recorder.replaying = False
        s = self.summary
        logger.info(f"[Macro] Wiedergabe beendet: {s.executed} ausgeführt, "
                    f"{s.failed} abgelehnt, {s.skipped} übersprungen")
        if self._on_finished is not None:
            self._on_finished(self.summary)

    def execute_line(self, line: str) -> OperationResult:
        """Führt eine einzelne Zeile aus und zählt das Ergebnis"""
        try:
            cmd = parse_command(line)
        except MacroParseError as e:
            logger.warning(f"[Macro] Zeile übersprungen: '{line}' ({e})")
            self.summary.skipped += 1
            return OperationResult.parse_failure(str(e))

        if is_enabled("macro_debug"):
            logger.debug(f"[Macro] > {line}")

        try:
            result = self._handlers[cmd.name](cmd)
        except Exception as e:
            # Schritt bleibt No-Op, die Wiedergabe läuft weiter
            logger.exception(f"[Macro] '{line}' fehlgeschlagen: {e}")
            self.summary.failed += 1
            return OperationResult.precondition(f"Befehl fehlgeschlagen: {e}")

        if result.is_error:
            logger.warning(f"[Macro] '{line}' abgelehnt: {result.status.name} {result.message}")
            self.summary.failed += 1
        else:
            self.summary.executed += 1
        return result

    # === Selektion über Geometrie ===

    def _select_point(self, pos: Point2D, create: bool = False) -> bool:
        store = self.session.store
        handle = store.find_point(pos, Tolerances.COMPARE_POINT)
        if handle is None:
            if not create:
                return False
            handle = self.session.add_point(pos.x, pos.y, auto_select=False).data
        self.session.selection.select(EntityKind.POINT, handle)
        return True

    def _select_line(self, a: Point2D, b: Point2D) -> bool:
        handle = self.session.store.find_line_by_endpoints(a, b)
        if handle is None:
            return False
        self.session.selection.select(EntityKind.LINE, handle)
        return True

    def _select_extended_line(self, a: Point2D, b: Point2D) -> bool:
        handle = self.session.store.find_extended_line_by_endpoints(a, b)
        if handle is None:
            return False
        self.session.selection.select(EntityKind.EXTENDED_LINE, handle)
        return True

    def _select_circle(self, center: Point2D, radius: float) -> bool:
        handle = self.session.store.find_circle(center, radius)
        if handle is None:
            return False
        self.session.selection.select(EntityKind.CIRCLE, handle)
        return True

    # === Befehle ===

    def _replay_add_point(self, cmd: MacroCommand) -> OperationResult:
        pos = cmd.points[0]
        return self.session.add_point(pos.x, pos.y)

    def _replay_add_line(self, cmd: MacroCommand) -> OperationResult:
        self.session.selection.clear()
        a, b = cmd.points
        self._select_point(a, create=True)
        self._select_point(b, create=True)
        return self.session.add_line_between_selected()

    def _replay_add_circle(self, cmd: MacroCommand) -> OperationResult:
        if cmd.is_legacy:
            return self.session.add_circle()
        self.session.selection.clear()
        center, edge = cmd.points
        if not (self._select_point(center) and self._select_point(edge)):
            return OperationResult.precondition("Zentrum oder Randpunkt nicht gefunden")
        return self.session.add_circle()

    def _replay_add_normal(self, cmd: MacroCommand) -> OperationResult:
        if cmd.is_legacy:
            return self.session.add_normal_at_point()
        self.session.selection.clear()
        a, b, through = cmd.points
        if not self._select_line(a, b):
            return OperationResult.precondition("Linie für Normale nicht gefunden")
        if not self._select_point(through):
            return OperationResult.precondition("Punkt für Normale nicht gefunden")
        return self.session.add_normal_at_point()

    def _replay_delete_selected(self, cmd: MacroCommand) -> OperationResult:
        self.session.selection.clear()
        missing = 0
        for pos in cmd.delete_points:
            missing += not self._select_point(pos)
        for a, b in cmd.delete_lines:
            missing += not self._select_line(a, b)
        for a, b in cmd.delete_extended_lines:
            missing += not self._select_extended_line(a, b)
        for center, radius in cmd.delete_circles:
            missing += not self._select_circle(center, radius)
        if missing:
            logger.warning(f"[Macro] deleteSelected: {missing} Objekte nicht gefunden")
        return self.session.delete_selected()
