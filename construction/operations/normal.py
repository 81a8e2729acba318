"""
VibeGeometry - Normal Operation
===============================

Senkrechte zu genau einer selektierten Linie durch genau einen
selektierten Punkt.
"""

from typing import Optional, Tuple

from ..geometry import EntityKind
from ..result import OperationResult
from .base import ConstructionOperation


class NormalOperation(ConstructionOperation):

    name = "Normal"

    def can_execute(self) -> bool:
        return (self.selection.count(EntityKind.LINE) == 1
                and self.selection.count(EntityKind.POINT) == 1)

    def targets(self) -> Optional[Tuple[int, int]]:
        """(Linien-Handle, Punkt-Handle), oder None"""
        if not self.can_execute():
            return None
        line_handle = next(iter(self.selection.selected(EntityKind.LINE)))
        point_handle = next(iter(self.selection.selected(EntityKind.POINT)))
        return line_handle, point_handle

    def execute(self) -> OperationResult:
        targets = self.targets()
        if targets is None:
            return self._finish(OperationResult.precondition("Genau eine Linie und einen Punkt selektieren"))

        line_handle, point_handle = targets
        result = self.store.add_normal_at_point(line_handle, self.store.point_at(point_handle))
        if result.success:
            self._auto_intersect(EntityKind.EXTENDED_LINE, result.data)
        return self._finish(result)
