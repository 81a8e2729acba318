"""
VibeGeometry - Diagramm-Dateien (JSON)
======================================

Format (Objekt, kein Array):
    {
      "points":        [{"x", "y", "label"}],
      "lines":         [{"a", "b", "label"}
                        | {"customAx", "customAy", "customBx", "customBy", "label", "custom": true}],
      "extendedLines": [{"ax", "ay", "bx", "by", "label"}],
      "circles":       [{"x", "y", "r", "label"}]
    }

Laden ist alles-oder-nichts: diagram_from_dict baut einen neuen Store und
wirft DiagramFormatError, das bestehende Modell bleibt unberührt.
Speichern schreibt in eine Temp-Datei und ersetzt das Ziel atomar.
"""

import json
import math
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Union

from loguru import logger

from .geometry import Point2D, EntityKind, PointEntity, LineEntity, ExtendedLineEntity, CircleEntity
from .store import GeometryStore

PathLike = Union[str, Path]


class DiagramFormatError(ValueError):
    """Diagramm-Datei nicht lesbar oder inhaltlich ungültig"""


def diagram_to_dict(store: GeometryStore) -> Dict[str, Any]:
    """Konvertiert das Modell zu einem JSON-fähigen Dictionary"""
    return {
        "points": [p.to_dict() for p in store.points],
        "lines": [l.to_dict() for l in store.lines],
        "extendedLines": [e.to_dict() for e in store.extended_lines],
        "circles": [c.to_dict() for c in store.circles],
    }


def _number(obj: dict, key: str, where: str) -> float:
    value = obj.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise DiagramFormatError(f"{where}: '{key}' ist keine Zahl ({value!r})")
    try:
        number = float(value)
    except OverflowError as e:
        raise DiagramFormatError(f"{where}: '{key}' außerhalb des Zahlenbereichs") from e
    # json akzeptiert NaN und Infinity
    if not math.isfinite(number):
        raise DiagramFormatError(f"{where}: '{key}' ist nicht endlich ({value!r})")
    return number


def _label(obj: dict) -> str:
    label = obj.get("label")
    if label is None:
        return ""
    return label if isinstance(label, str) else str(label)


def _array(data: dict, key: str) -> list:
    value = data.get(key, [])
    if not isinstance(value, list):
        raise DiagramFormatError(f"'{key}' ist kein Array")
    return value


def _object(value: Any, where: str) -> dict:
    if not isinstance(value, dict):
        raise DiagramFormatError(f"{where}: kein Objekt")
    return value


def diagram_from_dict(data: Any) -> GeometryStore:
    """
    Baut einen neuen GeometryStore aus einem Dictionary.

    Raises:
        DiagramFormatError: bei Struktur- oder Invariantenverletzung
    """
    if not isinstance(data, dict):
        raise DiagramFormatError("Wurzel ist kein JSON-Objekt")

    store = GeometryStore()

    for i, raw in enumerate(_array(data, "points")):
        obj = _object(raw, f"points[{i}]")
        pos = Point2D(_number(obj, "x", f"points[{i}]"), _number(obj, "y", f"points[{i}]"))
        store.points.append(PointEntity(pos, _label(obj)))

    for i, raw in enumerate(_array(data, "lines")):
        where = f"lines[{i}]"
        obj = _object(raw, where)
        if obj.get("custom"):
            start = Point2D(_number(obj, "customAx", where), _number(obj, "customAy", where))
            end = Point2D(_number(obj, "customBx", where), _number(obj, "customBy", where))
            store.lines.append(LineEntity(label=_label(obj), custom=(start, end)))
            continue
        a, b = obj.get("a"), obj.get("b")
        if not (isinstance(a, int) and isinstance(b, int)) or isinstance(a, bool) or isinstance(b, bool):
            raise DiagramFormatError(f"{where}: 'a'/'b' müssen ganze Zahlen sein")
        if not (store.is_valid(EntityKind.POINT, a) and store.is_valid(EntityKind.POINT, b)) or a == b:
            raise DiagramFormatError(f"{where}: ungültige Punkt-Referenzen ({a}, {b})")
        if store.find_line(a, b) is not None:
            raise DiagramFormatError(f"{where}: doppelte Linie ({a}, {b})")
        store.lines.append(LineEntity(a, b, _label(obj)))

    for i, raw in enumerate(_array(data, "extendedLines")):
        where = f"extendedLines[{i}]"
        obj = _object(raw, where)
        start = Point2D(_number(obj, "ax", where), _number(obj, "ay", where))
        end = Point2D(_number(obj, "bx", where), _number(obj, "by", where))
        store.extended_lines.append(ExtendedLineEntity(start, end, _label(obj)))

    for i, raw in enumerate(_array(data, "circles")):
        where = f"circles[{i}]"
        obj = _object(raw, where)
        center = Point2D(_number(obj, "x", where), _number(obj, "y", where))
        radius = _number(obj, "r", where)
        if radius <= 0.0:
            raise DiagramFormatError(f"{where}: Radius muss positiv sein ({radius})")
        store.circles.append(CircleEntity(center, radius, _label(obj)))

    return store


def load_diagram(path: PathLike) -> GeometryStore:
    """
    Lädt ein Diagramm aus einer JSON-Datei.

    Raises:
        DiagramFormatError: Datei fehlt, ist nicht lesbar oder ungültig
    """
    path = Path(path)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, UnicodeDecodeError) as e:
        raise DiagramFormatError(f"Datei nicht lesbar: {path} ({e})") from e
    except json.JSONDecodeError as e:
        raise DiagramFormatError(f"Kein gültiges JSON: {path} ({e})") from e

    store = diagram_from_dict(data)
    logger.info(f"[DiagramIO] Geladen: {path} ({store})")
    return store


def save_diagram(store: GeometryStore, path: PathLike) -> bool:
    """
    Speichert das Diagramm atomar (Temp-Datei + os.replace).

    Returns:
        True bei Erfolg; bei Fehler bleibt eine bestehende Datei unverändert
    """
    path = Path(path)
    tmp_name = None
    try:
        if path.parent and not path.parent.exists():
            path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(mode='w', suffix='.tmp', dir=path.parent or None,
                                         delete=False, encoding='utf-8') as tmp:
            tmp_name = tmp.name
            json.dump(diagram_to_dict(store), tmp, indent=2, ensure_ascii=False)
        os.replace(tmp_name, path)
        logger.info(f"[DiagramIO] Gespeichert: {path}")
        return True
    except OSError as e:
        logger.error(f"[DiagramIO] Diagramm konnte nicht gespeichert werden: {e}")
        if tmp_name and os.path.exists(tmp_name):
            os.remove(tmp_name)
        return False
