"""
VibeGeometry - Delete Operations
================================

Löschen der Selektion (mit Kaskade über den GeometryStore) und
Löschen des gesamten Modells. Nach dem Löschen ist die Selektion leer,
da Handles umnummeriert werden.
"""

from ..result import OperationResult
from .base import ConstructionOperation


class DeleteOperation(ConstructionOperation):

    name = "Delete"

    def can_execute(self) -> bool:
        return not self.selection.is_empty()

    def execute(self) -> OperationResult:
        if not self.can_execute():
            return self._finish(OperationResult.precondition("Keine selektierten Objekte zum Löschen"))

        changed = self.store.delete_selected(self.selection)
        self.selection.clear()
        if not changed:
            return self._finish(OperationResult.no_change("Selektion enthält keine gültigen Objekte"))
        return self._finish(OperationResult.ok())


class DeleteAllOperation(ConstructionOperation):

    name = "DeleteAll"

    def execute(self) -> OperationResult:
        self.store.delete_all()
        self.selection.clear()
        return self._finish(OperationResult.ok())
