"""
VibeGeometry - Construction Operations Module
=============================================

Selektionsgetriebene Operationen mit klarer Schnittstelle.
Jede Operation ist eine eigenständige Klasse.

Verwendung:
    from construction.operations import ConnectOperation

    op = ConnectOperation(store, selection)
    result = op.execute()

    if result.success:
        # Operation erfolgreich
    else:
        print(result.message)
"""

from .base import ConstructionOperation
from .connect import ConnectOperation
from .extend import ExtendOperation
from .circle import CircleOperation
from .normal import NormalOperation
from .delete import DeleteOperation, DeleteAllOperation
from .intersect import IntersectOperation
from .label import LabelOperation

__all__ = [
    # Core
    'ConstructionOperation',
    # Operationen
    'ConnectOperation',
    'ExtendOperation',
    'CircleOperation',
    'NormalOperation',
    'DeleteOperation',
    'DeleteAllOperation',
    'IntersectOperation',
    'LabelOperation',
]
