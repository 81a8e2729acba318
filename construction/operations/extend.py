"""
VibeGeometry - Extend Operation
===============================

Ersetzt jede selektierte Linie durch eine auf den Zeichenbereich
geclippte verlängerte Linie. Verlängerte Linien sind eine eigene
Entity-Art, daher ist ein zweites Extend wirkungslos.
"""

from ..geometry import EntityKind
from ..result import OperationResult
from .base import ConstructionOperation


class ExtendOperation(ConstructionOperation):
    """Verlängert alle selektierten Linien"""

    name = "Extend"

    def can_execute(self) -> bool:
        return self.selection.count(EntityKind.LINE) >= 1

    def execute(self) -> OperationResult:
        if not self.can_execute():
            if self.selection.count(EntityKind.EXTENDED_LINE):
                return self._finish(OperationResult.no_change("Selektierte Linien sind bereits verlängert"))
            return self._finish(OperationResult.precondition("Mindestens eine Linie selektieren"))

        # Absteigend, damit die Handles der noch offenen Linien gültig bleiben
        handles = sorted(self.selection.selected(EntityKind.LINE), reverse=True)
        self.selection.clear_kind(EntityKind.LINE)

        extended = []
        for handle in handles:
            result = self.store.extend_line(handle)
            if result.success:
                extended.append(result.data)

        if not extended:
            return self._finish(OperationResult.no_change("Keine Linie verlängert"))

        for ext_handle in extended:
            self._auto_intersect(EntityKind.EXTENDED_LINE, ext_handle)
        return self._finish(OperationResult.ok(f"{len(extended)} Linien verlängert", data=extended))
