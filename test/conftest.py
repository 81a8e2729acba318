import pytest

from config.feature_flags import set_flag
from construction import ConstructionSession, GeometryStore, SelectionModel
from construction.geometry import Point2D


# Global Feature Flag Defaults - Single Source of Truth for Test Isolation
# ========================================================================
# WICHTIG: Jeder Test muss mit sauberen Feature-Flags starten.
# Diese Defaults müssen mit config/feature_flags.py synchron gehalten werden.
FEATURE_FLAG_DEFAULTS = {
    # Debug-Modi
    "construction_debug": False,
    "macro_debug": False,

    # Verhalten
    "auto_intersections": False,
}


@pytest.fixture(autouse=True)
def _global_feature_flag_isolation():
    """
    Globale Feature-Flag-Isolation.

    Stellt sicher, dass jeder Test mit sauberen, deterministischen
    Feature-Flags startet und keine Mutation in den nächsten Test leckt.
    """
    for key, value in FEATURE_FLAG_DEFAULTS.items():
        set_flag(key, value)

    yield

    for key, value in FEATURE_FLAG_DEFAULTS.items():
        set_flag(key, value)


@pytest.fixture
def store():
    return GeometryStore()


@pytest.fixture
def selection():
    return SelectionModel()


@pytest.fixture
def session():
    return ConstructionSession(step_delay_ms=0)


@pytest.fixture
def triangle_store(store):
    """Drei Punkte P0(0,0), P1(1,0), P2(0,1) und Linie P0-P1"""
    store.add_point(Point2D(0, 0), "A")
    store.add_point(Point2D(1, 0), "B")
    store.add_point(Point2D(0, 1), "C")
    store.add_line(0, 1, "AB")
    return store
