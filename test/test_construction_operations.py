"""
Construction Operations Tests - Vorbedingungen und Ergebnisse
"""

import pytest

from config.feature_flags import set_flag
from construction.geometry import EntityKind, Point2D
from construction.operations import (
    CircleOperation,
    ConnectOperation,
    DeleteAllOperation,
    DeleteOperation,
    ExtendOperation,
    IntersectOperation,
    LabelOperation,
    NormalOperation,
)
from construction.result import ResultStatus


def P(x, y):
    return Point2D(x, y)


@pytest.fixture
def four_points(store):
    for pos in (P(0, 0), P(2, 0), P(0, 2), P(2, 2)):
        store.add_point(pos)
    return store


class TestConnect:

    def test_requires_two_points(self, four_points, selection):
        selection.pick(EntityKind.POINT, 0)
        op = ConnectOperation(four_points, selection)
        assert not op.can_execute()
        assert op.execute().status == ResultStatus.PRECONDITION_UNMET

    def test_uses_selection_order(self, four_points, selection):
        selection.pick(EntityKind.POINT, 3)
        selection.pick(EntityKind.POINT, 1, add=True)
        selection.pick(EntityKind.POINT, 0, add=True)
        result = ConnectOperation(four_points, selection).execute()
        assert result.success
        line = four_points.lines[result.data]
        assert (line.a, line.b) == (3, 1)

    def test_falls_back_to_lowest_handles(self, four_points, selection):
        selection._selected[EntityKind.POINT].update({2, 1, 3})
        assert ConnectOperation(four_points, selection).endpoints() == (1, 2)

    def test_already_connected(self, four_points, selection):
        four_points.add_line(0, 1)
        selection.pick(EntityKind.POINT, 1)
        selection.pick(EntityKind.POINT, 0, add=True)
        op = ConnectOperation(four_points, selection)
        assert op.execute().status == ResultStatus.DUPLICATE_ENTITY
        assert op.last_result.status == ResultStatus.DUPLICATE_ENTITY

    def test_auto_intersections_flag(self, four_points, selection):
        set_flag("auto_intersections", True)
        four_points.add_line(0, 3)
        selection.pick(EntityKind.POINT, 1)
        selection.pick(EntityKind.POINT, 2, add=True)
        assert ConnectOperation(four_points, selection).execute().success
        assert four_points.find_point(P(1, 1)) is not None


class TestExtend:

    def test_extends_all_selected(self, four_points, selection):
        four_points.add_line(0, 1)
        four_points.add_line(2, 3)
        four_points.add_line(0, 2)
        selection.pick(EntityKind.LINE, 0)
        selection.pick(EntityKind.LINE, 2, add=True)

        result = ExtendOperation(four_points, selection).execute()
        assert result.success
        assert four_points.count(EntityKind.LINE) == 1
        assert four_points.count(EntityKind.EXTENDED_LINE) == 2
        assert four_points.line_endpoints(0) == (P(0, 2), P(2, 2))
        assert selection.count(EntityKind.LINE) == 0

    def test_second_extend_is_no_op(self, four_points, selection):
        four_points.add_line(0, 1)
        selection.pick(EntityKind.LINE, 0)
        ExtendOperation(four_points, selection).execute()

        selection.pick(EntityKind.EXTENDED_LINE, 0)
        result = ExtendOperation(four_points, selection).execute()
        assert result.status == ResultStatus.NO_CHANGE
        assert four_points.count(EntityKind.EXTENDED_LINE) == 1

    def test_requires_line(self, four_points, selection):
        selection.pick(EntityKind.POINT, 0)
        assert ExtendOperation(four_points, selection).execute().status == ResultStatus.PRECONDITION_UNMET


class TestCircle:

    def test_first_point_is_center(self, four_points, selection):
        selection.pick(EntityKind.POINT, 1)
        selection.pick(EntityKind.POINT, 0, add=True)
        result = CircleOperation(four_points, selection).execute()
        assert result.success
        circle = four_points.circles[0]
        assert circle.center == P(2, 0)
        assert circle.radius == pytest.approx(2.0)

    def test_requires_exactly_two(self, four_points, selection):
        selection.pick(EntityKind.POINT, 0)
        selection.pick(EntityKind.POINT, 1, add=True)
        selection.pick(EntityKind.POINT, 2, add=True)
        assert CircleOperation(four_points, selection).execute().status == ResultStatus.PRECONDITION_UNMET
        assert four_points.count(EntityKind.CIRCLE) == 0


class TestNormal:

    def test_normal(self, four_points, selection):
        four_points.add_line(0, 1)
        selection.pick(EntityKind.LINE, 0)
        selection.pick(EntityKind.POINT, 3, add=True)
        result = NormalOperation(four_points, selection).execute()
        assert result.success
        ext = four_points.extended_lines[0]
        assert ext.start.x == pytest.approx(2.0)
        assert ext.end.x == pytest.approx(2.0)

    def test_requires_line_and_point(self, four_points, selection):
        four_points.add_line(0, 1)
        selection.pick(EntityKind.LINE, 0)
        assert NormalOperation(four_points, selection).execute().status == ResultStatus.PRECONDITION_UNMET


class TestDelete:

    def test_delete_clears_selection(self, four_points, selection):
        selection.pick(EntityKind.POINT, 0)
        result = DeleteOperation(four_points, selection).execute()
        assert result.success
        assert selection.is_empty()
        assert four_points.count(EntityKind.POINT) == 3

    def test_delete_without_selection(self, four_points, selection):
        result = DeleteOperation(four_points, selection).execute()
        assert result.status == ResultStatus.PRECONDITION_UNMET
        assert four_points.count(EntityKind.POINT) == 4

    def test_delete_all(self, four_points, selection):
        selection.pick(EntityKind.POINT, 2)
        assert DeleteAllOperation(four_points, selection).execute().success
        assert four_points.is_empty()
        assert selection.is_empty()


class TestLabelAndIntersect:

    def test_label_requires_single_selection(self, four_points, selection):
        selection.pick(EntityKind.POINT, 0)
        selection.pick(EntityKind.POINT, 1, add=True)
        assert LabelOperation(four_points, selection, "x").execute().status == ResultStatus.PRECONDITION_UNMET

        selection.pick(EntityKind.POINT, 1)
        assert LabelOperation(four_points, selection, "x").execute().success
        assert four_points.entity_label(EntityKind.POINT, 1) == "x"

    def test_intersect_two_lines(self, four_points, selection):
        four_points.add_line(0, 3)
        four_points.add_line(1, 2)
        selection.pick(EntityKind.LINE, 0)
        selection.pick(EntityKind.LINE, 1, add=True)
        op = IntersectOperation(four_points, selection)
        assert op.can_execute()
        assert op.execute().success
        assert four_points.find_point(P(1, 1)) == 4
