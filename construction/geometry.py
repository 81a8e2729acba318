"""
VibeGeometry Construction - Geometrie-Primitives
Punkte, Linien, verlängerte Linien und Kreise der Konstruktion
"""

from dataclasses import dataclass
from typing import Optional, Tuple
from enum import Enum, auto
import math


class EntityKind(Enum):
    """Entity-Typen (je eine Collection im GeometryStore)"""
    POINT = auto()
    LINE = auto()
    EXTENDED_LINE = auto()
    CIRCLE = auto()


ALL_KINDS = (EntityKind.POINT, EntityKind.LINE, EntityKind.EXTENDED_LINE, EntityKind.CIRCLE)


@dataclass(frozen=True)
class Point2D:
    """2D-Koordinate (Wert-Typ, keine Entity)"""
    x: float = 0.0
    y: float = 0.0

    def __post_init__(self):
        # NumPy-Skalare und ints sofort in native floats wandeln
        object.__setattr__(self, "x", float(self.x))
        object.__setattr__(self, "y", float(self.y))

    def distance_to(self, other: 'Point2D') -> float:
        return math.hypot(self.x - other.x, self.y - other.y)

    def matches(self, other: 'Point2D', tolerance: float) -> bool:
        """Gleichheit pro Achse innerhalb der Toleranz"""
        return abs(self.x - other.x) <= tolerance and abs(self.y - other.y) <= tolerance

    def __add__(self, other: 'Point2D') -> 'Point2D':
        return Point2D(self.x + other.x, self.y + other.y)

    def __sub__(self, other: 'Point2D') -> 'Point2D':
        return Point2D(self.x - other.x, self.y - other.y)

    def scaled(self, factor: float) -> 'Point2D':
        return Point2D(self.x * factor, self.y * factor)

    def dot(self, other: 'Point2D') -> float:
        return self.x * other.x + self.y * other.y

    def cross(self, other: 'Point2D') -> float:
        return self.x * other.y - self.y * other.x

    def length(self) -> float:
        return math.hypot(self.x, self.y)

    def as_tuple(self) -> Tuple[float, float]:
        return (self.x, self.y)

    def __repr__(self):
        return f"P({self.x:.4f}, {self.y:.4f})"


@dataclass
class PointEntity:
    """Konstruktions-Punkt"""
    pos: Point2D
    label: str = ""

    def to_dict(self) -> dict:
        """Serialisiert zu Dictionary für JSON."""
        return {"x": self.pos.x, "y": self.pos.y, "label": self.label}


@dataclass
class LineEntity:
    """
    Strecke zwischen zwei Punkt-Handles.

    Eine "custom" Linie (aus Diagramm-Dateien) trägt stattdessen zwei
    literale Endpunkte; a und b sind dann -1.
    """
    a: int = -1
    b: int = -1
    label: str = ""
    custom: Optional[Tuple[Point2D, Point2D]] = None

    @property
    def is_custom(self) -> bool:
        return self.custom is not None

    def references(self, handle: int) -> bool:
        """True wenn die Linie den Punkt-Handle verwendet"""
        return not self.is_custom and (self.a == handle or self.b == handle)

    def same_pair(self, a: int, b: int) -> bool:
        """Ungerichteter Vergleich des Punkt-Paares"""
        if self.is_custom:
            return False
        return (self.a == a and self.b == b) or (self.a == b and self.b == a)

    def to_dict(self) -> dict:
        """Serialisiert zu Dictionary für JSON."""
        if self.custom is not None:
            start, end = self.custom
            return {
                "customAx": start.x,
                "customAy": start.y,
                "customBx": end.x,
                "customBy": end.y,
                "label": self.label,
                "custom": True,
            }
        return {"a": self.a, "b": self.b, "label": self.label}

    def __repr__(self):
        if self.custom is not None:
            return f"Line(custom {self.custom[0]} -> {self.custom[1]})"
        return f"Line({self.a} -> {self.b})"


@dataclass
class ExtendedLineEntity:
    """Verlängerte Linie mit zwei literalen (geclippten) Endpunkten"""
    start: Point2D
    end: Point2D
    label: str = ""

    def to_dict(self) -> dict:
        """Serialisiert zu Dictionary für JSON."""
        return {
            "ax": self.start.x,
            "ay": self.start.y,
            "bx": self.end.x,
            "by": self.end.y,
            "label": self.label,
        }

    def __repr__(self):
        return f"ExtLine({self.start} -> {self.end})"


@dataclass
class CircleEntity:
    """Kreis aus Zentrum und Radius (> 0)"""
    center: Point2D
    radius: float
    label: str = ""

    def to_dict(self) -> dict:
        """Serialisiert zu Dictionary für JSON."""
        return {"x": self.center.x, "y": self.center.y, "r": self.radius, "label": self.label}

    def __repr__(self):
        return f"Circle(center={self.center}, r={self.radius:.4f})"
