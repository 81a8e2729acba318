"""
VibeGeometry Construction - GeometryStore
Alleiniger Besitzer aller Entities (Punkte, Linien, verlängerte Linien, Kreise)
"""

from typing import Dict, List, Optional, Set, Tuple, TYPE_CHECKING
from loguru import logger

from config.tolerances import Tolerances
from .geometry import (
    Point2D, EntityKind, PointEntity, LineEntity, ExtendedLineEntity, CircleEntity,
)
from .intersections import clip_line_to_box, distance_to_segment, point_on_circle
from .result import OperationResult

if TYPE_CHECKING:
    from .selection import SelectionModel


class GeometryStore:
    """
    Vier parallele, dichte Collections; jede Entity wird über ihre Position
    (Handle) adressiert.

    Invarianten:
    - Jede (nicht-custom) Linie referenziert zwei gültige, verschiedene Punkte
    - Kein ungerichtetes Punkt-Paar kommt doppelt vor
    - Radius > 0
    - Keine zwei Punkte an derselben Koordinate (pro Achse innerhalb Toleranz)

    Handles sind stabil bis zur nächsten Löschung; delete_selected
    kompaktiert die Punkte und mappt alle Linien-Referenzen um.
    """

    def __init__(self):
        self.points: List[PointEntity] = []
        self.lines: List[LineEntity] = []
        self.extended_lines: List[ExtendedLineEntity] = []
        self.circles: List[CircleEntity] = []

    # === Zugriff ===

    def _collection(self, kind: EntityKind) -> list:
        if kind == EntityKind.POINT:
            return self.points
        if kind == EntityKind.LINE:
            return self.lines
        if kind == EntityKind.EXTENDED_LINE:
            return self.extended_lines
        return self.circles

    def count(self, kind: EntityKind) -> int:
        return len(self._collection(kind))

    def is_valid(self, kind: EntityKind, handle: int) -> bool:
        return 0 <= handle < self.count(kind)

    def is_empty(self) -> bool:
        return not (self.points or self.lines or self.extended_lines or self.circles)

    def point_at(self, handle: int) -> Point2D:
        return self.points[handle].pos

    def line_endpoints(self, handle: int) -> Tuple[Point2D, Point2D]:
        """Endpunkte einer Linie (aufgelöste Handles oder custom-Koordinaten)"""
        line = self.lines[handle]
        if line.custom is not None:
            return line.custom
        return self.points[line.a].pos, self.points[line.b].pos

    def entity_label(self, kind: EntityKind, handle: int) -> str:
        return self._collection(kind)[handle].label

    def set_label(self, kind: EntityKind, handle: int, text: str) -> bool:
        if not self.is_valid(kind, handle):
            return False
        self._collection(kind)[handle].label = text
        logger.debug(f"[Store] Label {kind.name} {handle} = '{text}'")
        return True

    # === Geometrische Suche ===

    def find_point(self, pos: Point2D, tolerance: float = Tolerances.POINT_MATCH) -> Optional[int]:
        """Handle des ersten Punktes an pos (pro Achse innerhalb tolerance)"""
        for handle, point in enumerate(self.points):
            if point.pos.matches(pos, tolerance):
                return handle
        return None

    def find_line(self, a: int, b: int) -> Optional[int]:
        """Handle der Linie zwischen zwei Punkt-Handles (ungerichtet)"""
        for handle, line in enumerate(self.lines):
            if line.same_pair(a, b):
                return handle
        return None

    def find_line_by_endpoints(self, start: Point2D, end: Point2D,
                               tolerance: float = Tolerances.COMPARE_POINT) -> Optional[int]:
        for handle in range(len(self.lines)):
            if _same_segment(self.line_endpoints(handle), start, end, tolerance):
                return handle
        return None

    def find_extended_line_by_endpoints(self, start: Point2D, end: Point2D,
                                        tolerance: float = Tolerances.COMPARE_POINT) -> Optional[int]:
        for handle, ext in enumerate(self.extended_lines):
            if _same_segment((ext.start, ext.end), start, end, tolerance):
                return handle
        return None

    def find_circle(self, center: Point2D, radius: float,
                    tolerance: float = Tolerances.COMPARE_POINT) -> Optional[int]:
        for handle, circle in enumerate(self.circles):
            if circle.center.matches(center, tolerance) and abs(circle.radius - radius) <= tolerance:
                return handle
        return None

    # === Geometrie-Erstellung ===

    def add_point(self, pos: Point2D, label: str = "",
                  tolerance: float = Tolerances.POINT_MATCH) -> Tuple[int, bool]:
        """
        Fügt einen Punkt hinzu, sofern an pos noch keiner existiert.

        Returns:
            (handle, created) - bei Duplikat der existierende Handle und False
        """
        existing = self.find_point(pos, tolerance)
        if existing is not None:
            return existing, False
        self.points.append(PointEntity(pos, label))
        handle = len(self.points) - 1
        logger.debug(f"[Store] Punkt {handle} bei {pos} '{label}'")
        return handle, True

    def add_line(self, a: int, b: int, label: str = "") -> OperationResult:
        """Verbindet zwei existierende Punkte (ungerichtet eindeutig)"""
        if not (self.is_valid(EntityKind.POINT, a) and self.is_valid(EntityKind.POINT, b)):
            return OperationResult.precondition(f"Ungültige Punkt-Handles ({a}, {b})")
        if a == b:
            return OperationResult.degenerate("Linie braucht zwei verschiedene Punkte")
        if self.points[a].pos.matches(self.points[b].pos, Tolerances.POINT_MATCH):
            return OperationResult.degenerate("Endpunkte fallen zusammen")
        existing = self.find_line(a, b)
        if existing is not None:
            return OperationResult.duplicate("Linie existiert bereits", data=existing)

        self.lines.append(LineEntity(a, b, label))
        handle = len(self.lines) - 1
        logger.debug(f"[Store] Linie {handle}: {a} -> {b}")
        return OperationResult.ok(data=handle)

    def extend_line(self, handle: int) -> OperationResult:
        """
        Ersetzt eine Linie destruktiv durch eine auf die Box geclippte
        verlängerte Linie. Die Linie wird entfernt (Linien-Handles dahinter
        rutschen nach).
        """
        if not self.is_valid(EntityKind.LINE, handle):
            return OperationResult.precondition(f"Ungültiger Linien-Handle {handle}")

        start, end = self.line_endpoints(handle)
        new_start, new_end = clip_line_to_box(start, end)
        label = self.lines[handle].label

        self.extended_lines.append(ExtendedLineEntity(new_start, new_end, label))
        del self.lines[handle]
        ext_handle = len(self.extended_lines) - 1
        logger.debug(f"[Store] Linie {handle} verlängert -> {new_start} .. {new_end}")
        return OperationResult.ok(data=ext_handle)

    def add_circle(self, center: Point2D, edge: Point2D, label: str = "") -> OperationResult:
        """Kreis um center durch edge"""
        radius = center.distance_to(edge)
        if radius <= Tolerances.EPSILON_MATH:
            return OperationResult.degenerate("Zentrum und Randpunkt dürfen nicht identisch sein")
        self.circles.append(CircleEntity(center, radius, label))
        handle = len(self.circles) - 1
        logger.debug(f"[Store] Kreis {handle}: {center} r={radius:.6f}")
        return OperationResult.ok(data=handle)

    def add_normal_at_point(self, line_handle: int, through: Point2D, label: str = "") -> OperationResult:
        """Senkrechte zur Linie durch einen Punkt als verlängerte Linie"""
        if not self.is_valid(EntityKind.LINE, line_handle):
            return OperationResult.precondition(f"Ungültiger Linien-Handle {line_handle}")

        start, end = self.line_endpoints(line_handle)
        direction = end - start
        length = direction.length()
        if length < Tolerances.EPSILON_MATH:
            return OperationResult.degenerate("Linie ohne Richtung")

        normal = Point2D(-direction.y / length, direction.x / length)
        span = normal.scaled(Tolerances.NORMAL_SPAN)
        self.extended_lines.append(ExtendedLineEntity(through - span, through + span, label))
        handle = len(self.extended_lines) - 1
        logger.debug(f"[Store] Normale {handle} zu Linie {line_handle} durch {through}")
        return OperationResult.ok(data=handle)

    def add_custom_line(self, start: Point2D, end: Point2D, label: str = "") -> int:
        """Linie mit literalen Endpunkten (nur aus Diagramm-Dateien)"""
        self.lines.append(LineEntity(label=label, custom=(start, end)))
        return len(self.lines) - 1

    # === Löschen ===

    def delete_selected(self, selection: 'SelectionModel') -> bool:
        """
        Löscht alle selektierten Entities mit Kaskade:
        ein gelöschter Punkt entfernt jede Linie, die ihn referenziert.
        Verbleibende Punkte werden kompaktiert und Linien umgemappt.

        Returns:
            True wenn sich etwas geändert hat
        """
        dead_points: Set[int] = {h for h in selection.selected(EntityKind.POINT)
                                 if self.is_valid(EntityKind.POINT, h)}
        dead_lines: Set[int] = {h for h in selection.selected(EntityKind.LINE)
                                if self.is_valid(EntityKind.LINE, h)}
        dead_ext: Set[int] = {h for h in selection.selected(EntityKind.EXTENDED_LINE)
                              if self.is_valid(EntityKind.EXTENDED_LINE, h)}
        dead_circles: Set[int] = {h for h in selection.selected(EntityKind.CIRCLE)
                                  if self.is_valid(EntityKind.CIRCLE, h)}

        if not (dead_points or dead_lines or dead_ext or dead_circles):
            return False

        # Kaskade: Linien an gelöschten Punkten
        for handle, line in enumerate(self.lines):
            if any(line.references(p) for p in dead_points):
                dead_lines.add(handle)

        # Punkte kompaktieren: alter Handle -> neuer Handle
        remap: Dict[int, int] = {}
        survivors: List[PointEntity] = []
        for old, point in enumerate(self.points):
            if old in dead_points:
                continue
            remap[old] = len(survivors)
            survivors.append(point)

        new_lines: List[LineEntity] = []
        for handle, line in enumerate(self.lines):
            if handle in dead_lines:
                continue
            if not line.is_custom:
                line.a = remap[line.a]
                line.b = remap[line.b]
            new_lines.append(line)

        removed_lines = len(self.lines) - len(new_lines)
        self.points = survivors
        self.lines = new_lines
        self.extended_lines = [e for h, e in enumerate(self.extended_lines) if h not in dead_ext]
        self.circles = [c for h, c in enumerate(self.circles) if h not in dead_circles]

        logger.debug(
            f"[Store] Gelöscht: {len(dead_points)} Punkte, {removed_lines} Linien, "
            f"{len(dead_ext)} verl. Linien, {len(dead_circles)} Kreise"
        )
        return True

    def delete_all(self):
        """Leert alle Collections"""
        self.points.clear()
        self.lines.clear()
        self.extended_lines.clear()
        self.circles.clear()
        logger.debug("[Store] Alles gelöscht")

    def replace_with(self, other: 'GeometryStore'):
        """Übernimmt das komplette Modell eines anderen Stores (atomar)"""
        self.points, self.lines = other.points, other.lines
        self.extended_lines, self.circles = other.extended_lines, other.circles

    # === Hit-Tests (Welt-Koordinaten, Pixel-Mapping macht der Host) ===

    def is_point_on_line(self, pos: Point2D, handle: int,
                         tolerance: float = Tolerances.HIT_TOLERANCE) -> bool:
        start, end = self.line_endpoints(handle)
        return distance_to_segment(pos, start, end) <= tolerance

    def is_point_on_extended_line(self, pos: Point2D, handle: int,
                                  tolerance: float = Tolerances.HIT_TOLERANCE) -> bool:
        ext = self.extended_lines[handle]
        return distance_to_segment(pos, ext.start, ext.end) <= tolerance

    def is_point_on_circle(self, pos: Point2D, handle: int,
                           tolerance: float = Tolerances.HIT_TOLERANCE) -> bool:
        circle = self.circles[handle]
        return point_on_circle(pos, circle.center, circle.radius, tolerance)

    def is_point_in_circle(self, pos: Point2D, handle: int) -> bool:
        circle = self.circles[handle]
        return pos.distance_to(circle.center) <= circle.radius

    def hit_test(self, pos: Point2D,
                 tolerance: float = Tolerances.HIT_TOLERANCE) -> Optional[Tuple[EntityKind, int]]:
        """
        Findet das Objekt unter pos. Punkte haben Vorrang, danach die
        nächstgelegene Kurve innerhalb tolerance.
        """
        best: Optional[Tuple[EntityKind, int]] = None
        best_dist = tolerance
        for handle, point in enumerate(self.points):
            dist = point.pos.distance_to(pos)
            if dist <= best_dist:
                best, best_dist = (EntityKind.POINT, handle), dist
        if best is not None:
            return best

        for handle in range(len(self.lines)):
            start, end = self.line_endpoints(handle)
            dist = distance_to_segment(pos, start, end)
            if dist <= best_dist:
                best, best_dist = (EntityKind.LINE, handle), dist
        for handle, ext in enumerate(self.extended_lines):
            dist = distance_to_segment(pos, ext.start, ext.end)
            if dist <= best_dist:
                best, best_dist = (EntityKind.EXTENDED_LINE, handle), dist
        for handle, circle in enumerate(self.circles):
            dist = abs(pos.distance_to(circle.center) - circle.radius)
            if dist <= best_dist:
                best, best_dist = (EntityKind.CIRCLE, handle), dist
        return best

    def __repr__(self):
        return (f"GeometryStore({len(self.points)} Punkte, {len(self.lines)} Linien, "
                f"{len(self.extended_lines)} verl. Linien, {len(self.circles)} Kreise)")


def _same_segment(endpoints: Tuple[Point2D, Point2D], start: Point2D, end: Point2D,
                  tolerance: float) -> bool:
    """Ungerichteter Endpunkt-Vergleich"""
    a, b = endpoints
    return ((a.matches(start, tolerance) and b.matches(end, tolerance))
            or (a.matches(end, tolerance) and b.matches(start, tolerance)))
