"""
VibeGeometry - Circle Operation
===============================

Kreis aus genau zwei selektierten Punkten: der zuerst selektierte Punkt
ist das Zentrum, der zweite liegt auf dem Rand.
"""

from typing import Optional, Tuple

from ..geometry import EntityKind
from ..result import OperationResult
from .base import ConstructionOperation


class CircleOperation(ConstructionOperation):

    name = "Circle"

    def can_execute(self) -> bool:
        return self.selection.count(EntityKind.POINT) == 2

    def center_and_edge(self) -> Optional[Tuple[int, int]]:
        """(Zentrum, Randpunkt) als Punkt-Handles, oder None"""
        if not self.can_execute():
            return None
        ordered = self.selection.ordered_points()
        if len(ordered) != 2:
            ordered = sorted(self.selection.selected(EntityKind.POINT))
        return ordered[0], ordered[1]

    def execute(self) -> OperationResult:
        pair = self.center_and_edge()
        if pair is None:
            return self._finish(OperationResult.precondition(
                "Genau zwei Punkte selektieren (Zentrum, dann Randpunkt)"))

        center = self.store.point_at(pair[0])
        edge = self.store.point_at(pair[1])

        result = self.store.add_circle(center, edge)
        if result.success:
            self._auto_intersect(EntityKind.CIRCLE, result.data)
        return self._finish(result)
