"""
VibeGeometry - Feature Flags
============================

Feature Flags ermöglichen inkrementelle Rollouts und einfaches Rollback.
Diese Datei enthält aktive Debug-Flags und optionale Verhaltensweisen.
"""

from typing import Dict

# Feature Flag Registry
# =====================

FEATURE_FLAGS: Dict[str, bool] = {
    # Debug-Modi
    "construction_debug": False,  # Jeden Schnittpunkt-Treffer loggen ([Intersect])
    "macro_debug": False,  # Jeden Makro-Befehl bei der Wiedergabe loggen ([Macro])

    # Verhalten
    "auto_intersections": False,  # Neue Linien/Kreise sofort mit allem schneiden
}


def is_enabled(flag: str) -> bool:
    """
    Prüft ob ein Feature-Flag aktiviert ist.

    Args:
        flag: Name des Feature-Flags

    Returns:
        True wenn aktiviert, False wenn nicht aktiviert oder unbekannt
    """
    return FEATURE_FLAGS.get(flag, False)


def set_flag(flag: str, value: bool) -> None:
    """
    Setzt ein Feature-Flag zur Laufzeit.
    Nützlich für Tests und Debugging.

    Args:
        flag: Name des Feature-Flags
        value: Neuer Wert
    """
    FEATURE_FLAGS[flag] = value


def get_all_flags() -> Dict[str, bool]:
    """Gibt alle Feature-Flags zurück."""
    return FEATURE_FLAGS.copy()
