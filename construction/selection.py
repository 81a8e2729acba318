"""
VibeGeometry - Selection Model
==============================

Single Source of Truth für die Selektion der Konstruktion.

Verwaltet:
- Ein Handle-Set pro Entity-Art (Punkt, Linie, verl. Linie, Kreis)
- Die Reihenfolge selektierter Punkte (erster Punkt = Kreiszentrum / Linienstart)

Ohne "add"-Modifier ist genau ein Objekt selektiert; mit Modifier sind
heterogene Mehrfach-Selektionen möglich (z.B. Linie + Kreis für Schnittpunkte).
"""

from typing import Dict, List, Optional, Set, Tuple
from loguru import logger

from .geometry import EntityKind, ALL_KINDS


class SelectionModel:
    """
    Usage:
        selection.pick(EntityKind.POINT, 0)            # nur Punkt 0
        selection.pick(EntityKind.POINT, 3, add=True)  # Punkt 3 togglen
        selection.pick_nothing()                       # alles abwählen
    """

    def __init__(self):
        self._selected: Dict[EntityKind, Set[int]] = {kind: set() for kind in ALL_KINDS}
        self._point_order: List[int] = []

    def clear(self):
        """Alle Selektionen entfernen"""
        for handles in self._selected.values():
            handles.clear()
        self._point_order.clear()

    # ----------------------------------------------------------------------
    # Pick-Events (Host)
    # ----------------------------------------------------------------------

    def pick(self, kind: EntityKind, handle: int, add: bool = False):
        """
        Klick auf ein Objekt.

        Mit add wird die Mitgliedschaft getoggelt, sonst ersetzt das Objekt
        die gesamte Selektion.
        """
        if add:
            handles = self._selected[kind]
            if handle in handles:
                handles.discard(handle)
                if kind == EntityKind.POINT and handle in self._point_order:
                    self._point_order.remove(handle)
            else:
                self._add(kind, handle)
        else:
            self.clear()
            self._add(kind, handle)
        logger.debug(f"[Selection] Pick {kind.name} {handle} (add={add}) -> {self.total_selected_count()} selektiert")

    def pick_nothing(self, add: bool = False):
        """Klick ins Leere: ohne Modifier wird alles abgewählt"""
        if not add:
            self.clear()

    def clear_kind(self, kind: EntityKind):
        """Alle Selektionen einer Art entfernen (z.B. nach Handle-Verschiebung)"""
        self._selected[kind].clear()
        if kind == EntityKind.POINT:
            self._point_order.clear()

    def select(self, kind: EntityKind, handle: int, add: bool = True):
        """Programmatische Selektion (Makro-Wiedergabe), ohne Toggle"""
        if not add:
            self.clear()
        self._add(kind, handle)

    def _add(self, kind: EntityKind, handle: int):
        handles = self._selected[kind]
        if handle in handles:
            return
        handles.add(handle)
        if kind == EntityKind.POINT:
            self._point_order.append(handle)

    # ----------------------------------------------------------------------
    # Abfragen
    # ----------------------------------------------------------------------

    def selected(self, kind: EntityKind) -> Set[int]:
        """Kopie der selektierten Handles einer Art"""
        return set(self._selected[kind])

    def count(self, kind: EntityKind) -> int:
        return len(self._selected[kind])

    def ordered_points(self) -> List[int]:
        """Selektierte Punkte in Selektions-Reihenfolge"""
        return list(self._point_order)

    def total_selected_count(self) -> int:
        return sum(len(handles) for handles in self._selected.values())

    def is_empty(self) -> bool:
        return self.total_selected_count() == 0

    def is_selected(self, kind: EntityKind, handle: int) -> bool:
        return handle in self._selected[kind]

    def single(self) -> Optional[Tuple[EntityKind, int]]:
        """Das einzige selektierte Objekt, oder None"""
        if self.total_selected_count() != 1:
            return None
        for kind in ALL_KINDS:
            if self._selected[kind]:
                return kind, next(iter(self._selected[kind]))
        return None

    def __repr__(self):
        parts = ", ".join(f"{kind.name}={sorted(self._selected[kind])}" for kind in ALL_KINDS
                          if self._selected[kind])
        return f"SelectionModel({parts or 'leer'})"
