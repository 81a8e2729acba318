"""
VibeGeometry - Configuration Module
===================================

Zentrale Konfiguration für alle globalen Einstellungen.
"""

from .tolerances import Tolerances, point_tolerance, compare_tolerance, canvas_half_diagonal
from .feature_flags import is_enabled, set_flag, get_all_flags, FEATURE_FLAGS
