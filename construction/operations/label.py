"""
VibeGeometry - Label Operation
==============================

Setzt das Label des einzigen selektierten Objekts.
"""

from ..result import OperationResult
from .base import ConstructionOperation


class LabelOperation(ConstructionOperation):

    name = "Label"

    def __init__(self, store, selection, text: str):
        super().__init__(store, selection)
        self.text = text

    def can_execute(self) -> bool:
        return self.selection.total_selected_count() == 1

    def execute(self) -> OperationResult:
        target = self.selection.single()
        if target is None:
            return self._finish(OperationResult.precondition("Genau ein Objekt selektieren, um das Label zu ändern"))

        kind, handle = target
        if not self.store.set_label(kind, handle, self.text):
            return self._finish(OperationResult.precondition(f"Ungültiger Handle {kind.name} {handle}"))
        return self._finish(OperationResult.ok(data=(kind, handle)))
