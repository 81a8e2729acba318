"""
VibeGeometry Construction - Schnittpunkt-Engine
===============================================

Reine Funktionen für Schnittpunkte zwischen Strecken, unendlichen Linien
und Kreisen, plus IntersectionEngine, die Treffer als Punkte im
GeometryStore ablegt (dedupliziert über add_point).

Toleranzen:
- EPSILON_MATH (1e-9): Parallelität, Null-Längen, Segment-Grenzen
- COMPARE_POINT (1e-6): Wiederverwendung existierender Punkte
"""

import math
from typing import List, NamedTuple, Optional, Tuple, Union, TYPE_CHECKING

import numpy as np
from loguru import logger

from config.feature_flags import is_enabled
from config.tolerances import Tolerances
from .geometry import Point2D, EntityKind, ALL_KINDS
from .result import OperationResult

if TYPE_CHECKING:
    from .store import GeometryStore
    from .selection import SelectionModel


EPS = Tolerances.EPSILON_MATH


# === Reine Geometrie-Funktionen ===

def segment_intersection(p1: Point2D, p2: Point2D, q1: Point2D, q2: Point2D,
                         infinite_first: bool = False,
                         infinite_second: bool = False) -> Optional[Point2D]:
    """
    Schnittpunkt zweier Strecken p1-p2 und q1-q2 (oder None).

    Löst p1 + t*(p2-p1) = q1 + u*(q2-q1). Parallel/kollinear -> None.
    Mit infinite_* entfällt die [0,1]-Prüfung für den jeweiligen Operanden.
    """
    r = p2 - p1
    s = q2 - q1
    denom = r.cross(s)
    if abs(denom) < EPS:
        return None  # Parallel

    qp = q1 - p1
    t = qp.cross(s) / denom
    u = qp.cross(r) / denom

    if not infinite_first and not (-EPS <= t <= 1.0 + EPS):
        return None
    if not infinite_second and not (-EPS <= u <= 1.0 + EPS):
        return None

    return p1 + r.scaled(t)


def segment_circle_intersections(p1: Point2D, p2: Point2D, center: Point2D, radius: float,
                                 infinite: bool = False) -> List[Point2D]:
    """
    Schnittpunkte Strecke/Kreis (0..2 Punkte).

    Parametrische Form P = p1 + t*(p2-p1) in die Kreisgleichung eingesetzt
    ergibt A t² + B t + C = 0.

    Args:
        infinite: Wenn True, auch Punkte außerhalb t ∈ [0,1] zurückgeben.
    """
    d = p2 - p1
    f = p1 - center

    a = d.dot(d)
    if a < EPS:
        return []  # Strecke ohne Länge

    b = 2.0 * f.dot(d)
    c = f.dot(f) - radius * radius

    discriminant = b * b - 4.0 * a * c
    # Relative tolerance keeps near-tangent cases numerically stable.
    disc_tol = EPS * (abs(b * b) + abs(4.0 * a * c) + 1.0)
    if discriminant < -disc_tol:
        return []

    if abs(discriminant) <= disc_tol:
        roots = [-b / (2.0 * a)]  # Tangente: nur ein Punkt
    else:
        sqrt_disc = math.sqrt(discriminant)
        roots = [(-b - sqrt_disc) / (2.0 * a), (-b + sqrt_disc) / (2.0 * a)]

    points = []
    for t in roots:
        if infinite:
            points.append(p1 + d.scaled(t))
        elif -EPS <= t <= 1.0 + EPS:
            points.append(p1 + d.scaled(max(0.0, min(1.0, t))))
    return points


def circle_circle_intersections(c0: Point2D, r0: float, c1: Point2D, r1: float) -> List[Point2D]:
    """
    Kreis-Kreis Schnitt über die Radikalachse.

    - Konzentrisch: keine Schnittpunkte
    - d außerhalb [|r0-r1|, r0+r1]: keine Schnittpunkte
    - h ≈ 0 (Tangente): genau ein Punkt
    """
    delta = c1 - c0
    d = delta.length()

    if d < EPS:
        return []

    if d > r0 + r1 + EPS or d < abs(r0 - r1) - EPS:
        return []

    a = (r0 * r0 - r1 * r1 + d * d) / (2.0 * d)
    h = math.sqrt(max(r0 * r0 - a * a, 0.0))

    # Punkt auf der Verbindungslinie (Sehnenmitte)
    mid = c0 + delta.scaled(a / d)

    if h < Tolerances.COMPARE_POINT:
        return [mid]

    offset = Point2D(-delta.y * h / d, delta.x * h / d)
    return [mid + offset, mid - offset]


def project_point_on_line(p: Point2D, a: Point2D, b: Point2D, clamp: bool = True) -> Optional[Point2D]:
    """Lotfußpunkt von p auf a-b (geklemmt auf die Strecke wenn clamp)."""
    d = b - a
    length_sq = d.dot(d)
    if length_sq < EPS:
        return None

    t = (p - a).dot(d) / length_sq
    if clamp:
        t = max(0.0, min(1.0, t))
    return a + d.scaled(t)


def distance_to_segment(p: Point2D, a: Point2D, b: Point2D, clamp: bool = True) -> float:
    """Kürzester Abstand zu einer Strecke (bzw. Geraden ohne clamp)."""
    foot = project_point_on_line(p, a, b, clamp)
    if foot is None:
        return p.distance_to(a)
    return p.distance_to(foot)


def point_on_circle(p: Point2D, center: Point2D, radius: float,
                    tolerance: float = Tolerances.COMPARE_POINT) -> bool:
    """Prüft ob Punkt auf dem Kreis liegt (absolute Toleranz)."""
    return abs(p.distance_to(center) - radius) <= tolerance


def clip_line_to_box(a: Point2D, b: Point2D,
                     box_min: float = Tolerances.CANVAS_MIN,
                     box_max: float = Tolerances.CANVAS_MAX) -> Tuple[Point2D, Point2D]:
    """
    Schneidet die Gerade durch a, b mit den vier Kanten der Box.

    Treffer werden dedupliziert (Ecken) und nach ihrem Parameter entlang
    der Richtung a -> b sortiert (gemessen auf der dominanten Achse); die
    beiden äußersten Treffer sind die neuen Endpunkte, start liegt also
    auf der Seite von a. Bei weniger als zwei Treffern bleiben a, b erhalten.
    """
    d = b - a
    tol = Tolerances.COMPARE_POINT
    hits: List[Tuple[float, float]] = []

    if abs(d.x) > EPS:
        for x in (box_min, box_max):
            y = a.y + (x - a.x) / d.x * d.y
            if box_min - tol <= y <= box_max + tol:
                hits.append((x, y))

    if abs(d.y) > EPS:
        for y in (box_min, box_max):
            x = a.x + (y - a.y) / d.y * d.x
            if box_min - tol <= x <= box_max + tol:
                hits.append((x, y))

    unique: List[Tuple[float, float]] = []
    for hit in hits:
        if all(math.hypot(hit[0] - u[0], hit[1] - u[1]) > tol for u in unique):
            unique.append(hit)

    if len(unique) < 2:
        return a, b

    pts = np.array(unique, dtype=np.float64)
    axis = 0 if abs(d.x) >= abs(d.y) else 1
    t = (pts[:, axis] - a.as_tuple()[axis]) / (d.x, d.y)[axis]
    order = np.argsort(t, kind="stable")
    first, last = pts[order[0]], pts[order[-1]]
    return Point2D(first[0], first[1]), Point2D(last[0], last[1])


# === Formen für den Paar-Dispatch ===

class SegmentShape(NamedTuple):
    start: Point2D
    end: Point2D
    infinite: bool


class CircleShape(NamedTuple):
    center: Point2D
    radius: float


Shape = Union[SegmentShape, CircleShape]

CURVE_KINDS = (EntityKind.LINE, EntityKind.EXTENDED_LINE, EntityKind.CIRCLE)


def intersect_shapes(s1: Shape, s2: Shape) -> List[Point2D]:
    """Schnittpunkte zweier Formen (Strecke/Gerade/Kreis)."""
    if isinstance(s1, SegmentShape) and isinstance(s2, SegmentShape):
        hit = segment_intersection(s1.start, s1.end, s2.start, s2.end,
                                   infinite_first=s1.infinite, infinite_second=s2.infinite)
        return [hit] if hit is not None else []
    if isinstance(s1, SegmentShape):
        return segment_circle_intersections(s1.start, s1.end, s2.center, s2.radius, infinite=s1.infinite)
    if isinstance(s2, SegmentShape):
        return segment_circle_intersections(s2.start, s2.end, s1.center, s1.radius, infinite=s2.infinite)
    return circle_circle_intersections(s1.center, s1.radius, s2.center, s2.radius)


class IntersectionEngine:
    """
    Legt Schnittpunkte als Punkte im GeometryStore ab.

    Alle Treffer laufen über GeometryStore.add_point mit COMPARE_POINT,
    d.h. existierende Punkte werden wiederverwendet (idempotent).
    """

    def __init__(self, store: 'GeometryStore'):
        self.store = store

    def shape_of(self, kind: EntityKind, handle: int) -> Shape:
        if kind == EntityKind.LINE:
            start, end = self.store.line_endpoints(handle)
            return SegmentShape(start, end, False)
        if kind == EntityKind.EXTENDED_LINE:
            ext = self.store.extended_lines[handle]
            return SegmentShape(ext.start, ext.end, True)
        if kind == EntityKind.CIRCLE:
            circle = self.store.circles[handle]
            return CircleShape(circle.center, circle.radius)
        raise ValueError(f"Keine Kurve: {kind.name}")

    def _emit(self, pos: Point2D) -> Tuple[int, bool]:
        handle, created = self.store.add_point(pos, tolerance=Tolerances.COMPARE_POINT)
        if is_enabled("construction_debug"):
            logger.debug(f"[Intersect] Treffer {pos} -> Punkt {handle} (neu={created})")
        return handle, created

    def find_intersections_for_entity(self, kind: EntityKind, handle: int) -> int:
        """
        Schneidet eine Entity mit allen anderen Linien, verlängerten Linien
        und Kreisen.

        Returns:
            Anzahl neu erzeugter Punkte
        """
        shape = self.shape_of(kind, handle)
        created_count = 0
        for other_kind in CURVE_KINDS:
            for other in range(self.store.count(other_kind)):
                if other_kind == kind and other == handle:
                    continue
                for hit in intersect_shapes(shape, self.shape_of(other_kind, other)):
                    _, created = self._emit(hit)
                    if created:
                        created_count += 1
        if created_count:
            logger.debug(f"[Intersect] {kind.name} {handle}: {created_count} neue Punkte")
        return created_count

    def recompute_all_intersections(self) -> int:
        """Schneidet jede Kurve mit jeder anderen (idempotent)."""
        total = 0
        for kind in CURVE_KINDS:
            for handle in range(self.store.count(kind)):
                total += self.find_intersections_for_entity(kind, handle)
        logger.debug(f"[Intersect] Alle Schnittpunkte: {total} neue Punkte")
        return total

    def recompute_selected_intersections(self, selection: 'SelectionModel') -> OperationResult:
        """
        Schnittpunkte genau zweier selektierter Objekte.

        Punkt x Linie projiziert den Punkt (nur bei endlichen Linien geklemmt),
        Punkt x Kreis liefert den Punkt selbst wenn er auf dem Kreis liegt.
        """
        picked = [(kind, handle) for kind in ALL_KINDS for handle in sorted(selection.selected(kind))]
        if len(picked) != 2:
            return OperationResult.precondition("Genau zwei Objekte selektieren")

        (k1, h1), (k2, h2) = picked

        if k1 == EntityKind.POINT and k2 == EntityKind.POINT:
            return OperationResult.no_change("Punkt x Punkt hat keine Schnittpunkte")

        if k1 == EntityKind.POINT:
            pos = self.store.points[h1].pos
            if k2 == EntityKind.CIRCLE:
                circle = self.store.circles[h2]
                hits = [pos] if point_on_circle(pos, circle.center, circle.radius) else []
            else:
                shape = self.shape_of(k2, h2)
                foot = project_point_on_line(pos, shape.start, shape.end, clamp=(k2 == EntityKind.LINE))
                hits = [foot] if foot is not None else []
        else:
            hits = intersect_shapes(self.shape_of(k1, h1), self.shape_of(k2, h2))

        if not hits:
            return OperationResult.no_change("Keine Schnittpunkte")

        handles = []
        created_count = 0
        for hit in hits:
            handle, created = self._emit(hit)
            handles.append(handle)
            created_count += int(created)

        logger.debug(f"[Intersect] {k1.name} {h1} x {k2.name} {h2}: {len(hits)} Treffer, {created_count} neu")
        return OperationResult.ok(f"{created_count} neue Punkte", data=handles)
