"""
VibeGeometry - Zentralisierte Toleranz-Konfiguration
====================================================

Alle Toleranzen und Konstanten der Konstruktions-Engine an einem Ort.

Toleranz-Philosophie:
- Punkt-Identität: 1e-9 pro Achse (zwei Punkte sind "derselbe" Punkt)
- Degeneration: 1e-9 (Determinanten, Null-Richtungen, Radius)
- Vergleich/Wiederverwendung: 1e-6 (Schnittpunkte, Box-Treffer, Makro-Lookup)

Verwendung:
    from config.tolerances import Tolerances

    eps = Tolerances.EPSILON_MATH
"""

import math


class Tolerances:
    """
    Zentrale Toleranz-Konstanten für die Konstruktions-Engine.

    Kategorien:
    - POINT_*: Punkt-Identität
    - EPSILON_*: Numerische Stabilität
    - COMPARE_*: Geometrische Vergleiche
    - CANVAS_*: Fester Zeichenbereich
    - MACRO_*: Makro-Aufzeichnung und -Wiedergabe
    """

    # =========================================================================
    # Punkt-Identität
    # =========================================================================

    # Zwei Punkte sind gleich wenn beide Achsen innerhalb dieser Toleranz liegen
    POINT_MATCH = 1e-9

    # =========================================================================
    # Mathematische Epsilon-Werte (Numerische Stabilität)
    # =========================================================================

    # Determinante, Richtungsvektor-Länge, Mindestradius
    EPSILON_MATH = 1e-9

    # =========================================================================
    # Vergleichs-Toleranzen
    # =========================================================================

    # Schnittpunkt-Wiederverwendung, Box-Treffer, Punkt-auf-Kreis
    COMPARE_POINT = 1e-6

    # =========================================================================
    # Zeichenbereich (Welt-Koordinaten)
    # =========================================================================

    CANVAS_MIN = -5.0
    CANVAS_MAX = 5.0

    # Halbe Länge einer Normalen (>= 2x halbe Box-Diagonale)
    NORMAL_SPAN = 20.0

    # =========================================================================
    # Host-Hilfen
    # =========================================================================

    # Standard-Fangbereich für Hit-Tests in Welt-Einheiten
    HIT_TOLERANCE = 0.1

    # =========================================================================
    # Makros
    # =========================================================================

    # Nachkommastellen der Koordinaten im Makro-Text
    MACRO_DECIMALS = 8

    # Pause zwischen zwei Befehlen bei der Wiedergabe
    MACRO_STEP_DELAY_MS = 1000


# =============================================================================
# Convenience-Funktionen
# =============================================================================

def canvas_half_diagonal() -> float:
    """Halbe Diagonale des Zeichenbereichs."""
    half = (Tolerances.CANVAS_MAX - Tolerances.CANVAS_MIN) / 2.0
    return math.hypot(half, half)


def point_tolerance() -> float:
    """Gibt die Toleranz für Punkt-Identität zurück."""
    return Tolerances.POINT_MATCH


def compare_tolerance() -> float:
    """Gibt die Vergleichs-Toleranz zurück."""
    return Tolerances.COMPARE_POINT


# =============================================================================
# Toleranz-Validierung (für Debugging)
# =============================================================================

def validate_tolerances():
    """
    Validiert dass alle Toleranzen sinnvolle Werte haben.
    Nützlich für Tests und Debugging.
    """
    issues = []

    if Tolerances.CANVAS_MIN >= Tolerances.CANVAS_MAX:
        issues.append(f"Leerer Zeichenbereich: [{Tolerances.CANVAS_MIN}, {Tolerances.CANVAS_MAX}]")

    # Normale muss den ganzen Zeichenbereich überspannen
    if Tolerances.NORMAL_SPAN < 2.0 * canvas_half_diagonal():
        issues.append(f"NORMAL_SPAN ({Tolerances.NORMAL_SPAN}) kleiner als Box-Diagonale")

    # Punkt-Identität darf nicht lockerer sein als Vergleich
    if Tolerances.POINT_MATCH > Tolerances.COMPARE_POINT:
        issues.append(f"POINT_MATCH ({Tolerances.POINT_MATCH}) lockerer als COMPARE_POINT ({Tolerances.COMPARE_POINT})")

    # Makro-Rundung muss unter der Lookup-Toleranz liegen
    if 0.5 * 10 ** -Tolerances.MACRO_DECIMALS > Tolerances.COMPARE_POINT:
        issues.append(f"MACRO_DECIMALS ({Tolerances.MACRO_DECIMALS}) zu grob für COMPARE_POINT")

    return issues


# Automatische Validierung beim Import (nur Warnung, kein Fehler)
_validation_issues = validate_tolerances()
if _validation_issues:
    from loguru import logger
    for issue in _validation_issues:
        logger.warning(f"Toleranz-Validierung: {issue}")
