"""
VibeGeometry Construction Module
"""

from .geometry import (
    Point2D, EntityKind, ALL_KINDS,
    PointEntity, LineEntity, ExtendedLineEntity, CircleEntity,
)

from .result import ResultStatus, OperationResult

from .intersections import (
    IntersectionEngine,
    segment_intersection, segment_circle_intersections, circle_circle_intersections,
    project_point_on_line, point_on_circle, distance_to_segment, clip_line_to_box,
)

from .store import GeometryStore
from .selection import SelectionModel

from .macro import (
    MacroCommand, MacroParseError, MacroRecorder, MacroPlayer,
    ImmediateScheduler, ReplaySummary, parse_command,
)

from .diagram_io import DiagramFormatError, load_diagram, save_diagram

from .session import ConstructionSession
