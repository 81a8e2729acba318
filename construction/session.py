"""
VibeGeometry - Construction Session
===================================

Expliziter Kontext einer Konstruktion: Store, Selektion, Schnittpunkt-Engine
und Makro-Aufnahme. Das ist die schmale Schnittstelle zum Host (Canvas,
Buttons, Datei-Dialoge); der Host mappt Pixel auf Welt-Koordinaten und ruft
nur diese Methoden auf.

Jede erfolgreiche Operation wird bei laufender Aufnahme als Makro-Befehl mit
literalen Koordinaten protokolliert.

Verwendung:
    session = ConstructionSession()
    session.add_point(0, 0)
    session.add_point(1, 0)
    session.pick(EntityKind.POINT, 0)
    session.pick(EntityKind.POINT, 1, add=True)
    result = session.add_line_between_selected()
"""

from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple, Union

from loguru import logger

from config.tolerances import Tolerances
from .diagram_io import DiagramFormatError, load_diagram, save_diagram
from .geometry import EntityKind, Point2D
from .intersections import IntersectionEngine
from .macro import ImmediateScheduler, MacroCommand, MacroPlayer, MacroRecorder, ReplayScheduler, ReplaySummary
from .operations import (
    CircleOperation, ConnectOperation, DeleteAllOperation, DeleteOperation,
    ExtendOperation, IntersectOperation, LabelOperation, NormalOperation,
)
from .result import OperationResult
from .selection import SelectionModel
from .store import GeometryStore

PathLike = Union[str, Path]


class ConstructionSession:
    """
    Besitzt das Modell und die Selektion einer Zeichenfläche.

    Kein Zustand liegt global; der Host hält genau eine Session pro Canvas.
    """

    def __init__(self, scheduler: Optional[ReplayScheduler] = None,
                 step_delay_ms: int = Tolerances.MACRO_STEP_DELAY_MS):
        self.store = GeometryStore()
        self.selection = SelectionModel()
        self.engine = IntersectionEngine(self.store)
        self.recorder = MacroRecorder()
        self.scheduler = scheduler if scheduler is not None else ImmediateScheduler()
        self.step_delay_ms = step_delay_ms
        self._player: Optional[MacroPlayer] = None

    # ==================== Punkte & Selektion ====================

    def add_point(self, x: float, y: float, label: Optional[str] = None,
                  auto_select: bool = True) -> OperationResult:
        """
        Fügt einen Punkt hinzu. Ohne Label wird "P<n>" vergeben.

        Existiert an (x, y) schon ein Punkt, wird dessen Handle als
        NO_CHANGE zurückgegeben.
        """
        pos = Point2D(x, y)
        if label is None:
            label = f"P{self.store.count(EntityKind.POINT) + 1}"

        handle, created = self.store.add_point(pos, label)
        if auto_select:
            self.selection.pick(EntityKind.POINT, handle)

        if not created:
            return OperationResult.no_change("Punkt existiert bereits", data=handle)

        self.recorder.record(MacroCommand.add_point(pos))
        return OperationResult.ok(data=handle)

    def pick(self, kind: EntityKind, handle: int, add: bool = False) -> bool:
        """Klick auf ein Objekt (add = Ctrl-Modifier)"""
        if not self.store.is_valid(kind, handle):
            logger.warning(f"[Session] Pick auf ungültigen Handle {kind.name} {handle}")
            return False
        self.selection.pick(kind, handle, add)
        return True

    def pick_nothing(self, add: bool = False):
        self.selection.pick_nothing(add)

    def pick_at(self, x: float, y: float, add: bool = False,
                tolerance: float = Tolerances.HIT_TOLERANCE) -> Optional[Tuple[EntityKind, int]]:
        """Hit-Test in Welt-Koordinaten plus Pick bzw. Pick ins Leere"""
        hit = self.store.hit_test(Point2D(x, y), tolerance)
        if hit is None:
            self.selection.pick_nothing(add)
        else:
            self.selection.pick(hit[0], hit[1], add)
        return hit

    def clear_selection(self):
        self.selection.clear()

    # ==================== Konstruktion ====================

    def add_line_between_selected(self) -> OperationResult:
        op = ConnectOperation(self.store, self.selection)
        pair = op.endpoints()
        result = op.execute()
        if result.success:
            a, b = pair
            self.recorder.record(MacroCommand.add_line(self.store.point_at(a), self.store.point_at(b)))
        return result

    def extend_selected_lines(self) -> OperationResult:
        result = ExtendOperation(self.store, self.selection).execute()
        if result.success:
            self.recorder.record(MacroCommand("extendLines"))
        return result

    def add_circle(self) -> OperationResult:
        """Kreis aus den zwei selektierten Punkten (erster = Zentrum)"""
        op = CircleOperation(self.store, self.selection)
        pair = op.center_and_edge()
        result = op.execute()
        if result.success:
            center, edge = pair
            self.recorder.record(MacroCommand.add_circle(self.store.point_at(center), self.store.point_at(edge)))
        return result

    def add_normal_at_point(self) -> OperationResult:
        """Normale zur selektierten Linie durch den selektierten Punkt"""
        op = NormalOperation(self.store, self.selection)
        targets = op.targets()
        command = None
        if targets is not None:
            line_handle, point_handle = targets
            a, b = self.store.line_endpoints(line_handle)
            command = MacroCommand.add_normal(a, b, self.store.point_at(point_handle))
        result = op.execute()
        if result.success:
            self.recorder.record(command)
        return result

    def delete_selected(self) -> OperationResult:
        command = self._delete_command()
        result = DeleteOperation(self.store, self.selection).execute()
        if result.success:
            self.recorder.record(command)
        return result

    def delete_all(self) -> OperationResult:
        result = DeleteAllOperation(self.store, self.selection).execute()
        self.recorder.record(MacroCommand("deleteAll"))
        return result

    def set_label_for_selection(self, text: str) -> OperationResult:
        result = LabelOperation(self.store, self.selection, text).execute()
        if result.success:
            self.recorder.record(MacroCommand.set_label(text))
        return result

    def recompute_selected_intersections(self) -> OperationResult:
        result = IntersectOperation(self.store, self.selection).execute()
        if not result.is_error:
            self.recorder.record(MacroCommand("intersections"))
        return result

    def recompute_all_intersections(self) -> OperationResult:
        created = self.engine.recompute_all_intersections()
        if not created:
            return OperationResult.no_change("Keine neuen Schnittpunkte", data=0)
        return OperationResult.ok(f"{created} neue Punkte", data=created)

    def _delete_command(self) -> MacroCommand:
        """Geometrische Nutzdaten der aktuellen Selektion (vor dem Löschen)"""
        store, selection = self.store, self.selection
        points = [store.point_at(h) for h in sorted(selection.selected(EntityKind.POINT))
                  if store.is_valid(EntityKind.POINT, h)]
        lines = [store.line_endpoints(h) for h in sorted(selection.selected(EntityKind.LINE))
                 if store.is_valid(EntityKind.LINE, h)]
        extended = [(store.extended_lines[h].start, store.extended_lines[h].end)
                    for h in sorted(selection.selected(EntityKind.EXTENDED_LINE))
                    if store.is_valid(EntityKind.EXTENDED_LINE, h)]
        circles = [(store.circles[h].center, store.circles[h].radius)
                   for h in sorted(selection.selected(EntityKind.CIRCLE))
                   if store.is_valid(EntityKind.CIRCLE, h)]
        return MacroCommand.delete_selected(points, lines, extended, circles)

    # ==================== Dateien ====================

    def open_diagram(self, path: PathLike) -> OperationResult:
        """Ersetzt das Modell atomar; bei Fehlern bleibt es unverändert"""
        try:
            loaded = load_diagram(path)
        except DiagramFormatError as e:
            logger.error(f"[Session] Öffnen fehlgeschlagen: {e}")
            return OperationResult.persistence(str(e))

        self.store.replace_with(loaded)
        self.selection.clear()
        self.recorder.record(MacroCommand.open(str(path)))
        return OperationResult.ok(data=str(path))

    def save_diagram(self, path: PathLike) -> OperationResult:
        """Speichert als JSON; ohne Dateiendung wird .json angehängt"""
        path = Path(path)
        if not path.suffix:
            path = path.with_suffix(".json")
        if not save_diagram(self.store, path):
            return OperationResult.persistence(f"Diagramm konnte nicht gespeichert werden: {path}")
        self.recorder.record(MacroCommand.save(str(path)))
        return OperationResult.ok(data=str(path))

    # ==================== Makros ====================

    @property
    def is_recording(self) -> bool:
        return self.recorder.is_recording

    @property
    def is_replaying(self) -> bool:
        return self.recorder.replaying

    def start_recording(self) -> bool:
        return self.recorder.start()

    def stop_recording(self):
        self.recorder.stop()

    def toggle_recording(self) -> bool:
        return self.recorder.toggle()

    @property
    def macro_commands(self) -> List[str]:
        return list(self.recorder.commands)

    def load_macro(self, path: PathLike) -> OperationResult:
        return self.recorder.load(path)

    def save_macro(self, path: PathLike) -> OperationResult:
        return self.recorder.save(path)

    def run_macro(self, commands: Optional[Sequence[str]] = None,
                  on_finished: Optional[Callable[[ReplaySummary], None]] = None) -> OperationResult:
        """
        Spielt die übergebenen (oder die aufgenommenen) Befehle ab.

        Mit dem Standard-Scheduler ist die Wiedergabe beim Rücksprung
        abgeschlossen; mit QtReplayScheduler läuft sie im Event-Loop weiter.
        """
        if self._player is not None and self._player.is_running:
            return OperationResult.precondition("Wiedergabe läuft bereits")
        if commands is None:
            commands = self.recorder.commands
        self._player = MacroPlayer(self, self.scheduler, self.step_delay_ms)
        return self._player.run(list(commands), on_finished=on_finished)

    # ==================== Read-only Zugriff ====================

    @property
    def point_count(self) -> int:
        return self.store.count(EntityKind.POINT)

    @property
    def line_count(self) -> int:
        return self.store.count(EntityKind.LINE)

    @property
    def extended_line_count(self) -> int:
        return self.store.count(EntityKind.EXTENDED_LINE)

    @property
    def circle_count(self) -> int:
        return self.store.count(EntityKind.CIRCLE)

    def selected_handles(self, kind: EntityKind) -> List[int]:
        if kind == EntityKind.POINT:
            return self.selection.ordered_points()
        return sorted(self.selection.selected(kind))

    def selected_point_positions(self) -> List[Point2D]:
        """Positionen in Selektions-Reihenfolge"""
        return [self.store.point_at(h) for h in self.selection.ordered_points()]

    def selected_line_endpoints(self) -> List[Tuple[Point2D, Point2D]]:
        return [self.store.line_endpoints(h) for h in self.selected_handles(EntityKind.LINE)]

    def selected_extended_line_endpoints(self) -> List[Tuple[Point2D, Point2D]]:
        return [(self.store.extended_lines[h].start, self.store.extended_lines[h].end)
                for h in self.selected_handles(EntityKind.EXTENDED_LINE)]

    def selected_circles(self) -> List[Tuple[Point2D, float]]:
        return [(self.store.circles[h].center, self.store.circles[h].radius)
                for h in self.selected_handles(EntityKind.CIRCLE)]

    def hit_test(self, x: float, y: float,
                 tolerance: float = Tolerances.HIT_TOLERANCE) -> Optional[Tuple[EntityKind, int]]:
        return self.store.hit_test(Point2D(x, y), tolerance)

    def __repr__(self):
        return f"ConstructionSession({self.store}, {self.selection})"
