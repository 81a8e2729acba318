"""
VibeGeometry - Base Classes for Construction Operations
=======================================================

Abstrakte Basisklasse für alle selektionsgetriebenen Operationen.
"""

from abc import ABC, abstractmethod
from typing import Optional, TYPE_CHECKING
from loguru import logger

from config.feature_flags import is_enabled
from ..geometry import EntityKind
from ..intersections import IntersectionEngine
from ..result import OperationResult

if TYPE_CHECKING:
    from ..store import GeometryStore
    from ..selection import SelectionModel


class ConstructionOperation(ABC):
    """
    Abstrakte Basisklasse für Konstruktions-Operationen.

    Jede Operation hat:
    - Referenz auf Store und Selektion (nur für die Dauer der Operation)
    - execute() Methode
    - Strukturiertes Ergebnis, kein stiller Teilerfolg
    """

    name = "operation"

    def __init__(self, store: 'GeometryStore', selection: 'SelectionModel'):
        self.store = store
        self.selection = selection
        self._last_result: Optional[OperationResult] = None

    @property
    def last_result(self) -> Optional[OperationResult]:
        """Letztes Ergebnis der Operation."""
        return self._last_result

    @abstractmethod
    def execute(self) -> OperationResult:
        """
        Führt die Operation aus.

        Returns:
            OperationResult mit Status und Details
        """
        pass

    def can_execute(self) -> bool:
        """
        Prüft ob die Selektion zur Operation passt.
        Override in Subklassen für Validierung.
        """
        return True

    def _finish(self, result: OperationResult) -> OperationResult:
        self._last_result = result
        if result.is_error:
            logger.warning(f"[{self.name}] {result.status.name}: {result.message}")
        return result

    def _auto_intersect(self, kind: EntityKind, handle: int) -> int:
        """Schneidet eine neue Entity sofort mit allem (Feature-Flag)"""
        if not is_enabled("auto_intersections"):
            return 0
        return IntersectionEngine(self.store).find_intersections_for_entity(kind, handle)
