"""
VibeGeometry - Connect Operation
================================

Verbindet die ersten beiden selektierten Punkte mit einer Linie.

Verwendung:
    op = ConnectOperation(store, selection)
    result = op.execute()
    if result.success:
        line_handle = result.data
"""

from typing import Optional, Tuple

from ..geometry import EntityKind
from ..result import OperationResult
from .base import ConstructionOperation


class ConnectOperation(ConstructionOperation):
    """Linie zwischen zwei selektierten Punkten (erster = Endpunkt a)"""

    name = "Connect"

    def endpoints(self) -> Optional[Tuple[int, int]]:
        """Erste zwei Punkte in Selektions-Reihenfolge, sonst die zwei kleinsten Handles"""
        ordered = self.selection.ordered_points()
        if len(ordered) >= 2:
            return ordered[0], ordered[1]
        handles = sorted(self.selection.selected(EntityKind.POINT))
        if len(handles) >= 2:
            return handles[0], handles[1]
        return None

    def can_execute(self) -> bool:
        return self.endpoints() is not None

    def execute(self) -> OperationResult:
        pair = self.endpoints()
        if pair is None:
            return self._finish(OperationResult.precondition(
                "Mindestens zwei Punkte selektieren (Ctrl+Klick für Mehrfachauswahl)"))

        result = self.store.add_line(*pair)
        if result.success:
            self._auto_intersect(EntityKind.LINE, result.data)
        return self._finish(result)
