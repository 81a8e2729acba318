"""
VibeGeometry - Ergebnis-Typen
=============================

Strukturierte Ergebnisse aller Konstruktions-Operationen.
Keine Operation wirft über die Host-Grenze hinweg; Fehler werden als
OperationResult mit passendem Status gemeldet.
"""

from dataclasses import dataclass
from typing import Any
from enum import Enum, auto


class ResultStatus(Enum):
    """Status einer Operation."""
    SUCCESS = auto()
    NO_CHANGE = auto()  # Gültig, aber nichts geändert
    PRECONDITION_UNMET = auto()  # Falsche Selektion (Art/Anzahl)
    DEGENERATE_GEOMETRY = auto()  # Radius ~0, identische Punkte, Null-Richtung
    DUPLICATE_ENTITY = auto()  # Linie existiert bereits
    PERSISTENCE_FAILURE = auto()  # Datei nicht les-/schreibbar oder kaputt
    MACRO_PARSE_FAILURE = auto()  # Makro-Zeile nicht interpretierbar


@dataclass
class OperationResult:
    """
    Strukturiertes Ergebnis einer Konstruktions-Operation.

    Ermöglicht klare Unterscheidung zwischen Erfolg, No-Op und Fehler.
    `data` trägt bei Erfolg typischerweise den neuen Handle.
    """
    status: ResultStatus
    message: str = ""
    data: Any = None

    @property
    def success(self) -> bool:
        return self.status == ResultStatus.SUCCESS

    @property
    def is_error(self) -> bool:
        return self.status not in (ResultStatus.SUCCESS, ResultStatus.NO_CHANGE)

    @classmethod
    def ok(cls, message: str = "", data: Any = None) -> 'OperationResult':
        return cls(ResultStatus.SUCCESS, message, data)

    @classmethod
    def no_change(cls, message: str = "Nichts geändert", data: Any = None) -> 'OperationResult':
        return cls(ResultStatus.NO_CHANGE, message, data)

    @classmethod
    def precondition(cls, message: str) -> 'OperationResult':
        return cls(ResultStatus.PRECONDITION_UNMET, message)

    @classmethod
    def degenerate(cls, message: str) -> 'OperationResult':
        return cls(ResultStatus.DEGENERATE_GEOMETRY, message)

    @classmethod
    def duplicate(cls, message: str, data: Any = None) -> 'OperationResult':
        return cls(ResultStatus.DUPLICATE_ENTITY, message, data)

    @classmethod
    def persistence(cls, message: str) -> 'OperationResult':
        return cls(ResultStatus.PERSISTENCE_FAILURE, message)

    @classmethod
    def parse_failure(cls, message: str) -> 'OperationResult':
        return cls(ResultStatus.MACRO_PARSE_FAILURE, message)
