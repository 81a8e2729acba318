"""
VibeGeometry - Intersect Operation
==================================

Schnittpunkte genau zweier selektierter Objekte (beliebige Arten).
Die Paar-Logik liegt in IntersectionEngine.recompute_selected_intersections.
"""

from ..intersections import IntersectionEngine
from ..result import OperationResult
from .base import ConstructionOperation


class IntersectOperation(ConstructionOperation):

    name = "Intersect"

    def can_execute(self) -> bool:
        return self.selection.total_selected_count() == 2

    def execute(self) -> OperationResult:
        engine = IntersectionEngine(self.store)
        return self._finish(engine.recompute_selected_intersections(self.selection))
