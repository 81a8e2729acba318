"""
Makro Tests - Befehls-Codec, Aufnahme und Wiedergabe
"""

import pytest

from config.feature_flags import set_flag
from construction import ConstructionSession
from construction.geometry import EntityKind, Point2D
from construction.macro import (
    ImmediateScheduler,
    MacroCommand,
    MacroParseError,
    MacroPlayer,
    MacroRecorder,
    parse_command,
)
from construction.result import ResultStatus


def P(x, y):
    return Point2D(x, y)


class TestCommandCodec:

    def test_add_point_format(self):
        assert MacroCommand.add_point(P(1, -0.5)).to_line() == "addPoint:1.00000000,-0.50000000"

    def test_add_normal_format(self):
        line = MacroCommand.add_normal(P(0, 0), P(1, 0), P(0.5, 2)).to_line()
        assert line == "addNormal:0.00000000,0.00000000|1.00000000,0.00000000;0.50000000,2.00000000"

    def test_delete_selected_format(self):
        cmd = MacroCommand.delete_selected(
            points=[P(1, 2), P(3, 4)],
            circles=[(P(0, 0), 1.5)],
        )
        assert cmd.to_line() == (
            "deleteSelected;P=1.00000000,2.00000000|3.00000000,4.00000000"
            ";C=0.00000000,0.00000000,1.50000000"
        )

    def test_parse_add_line(self):
        cmd = parse_command("addLine:0,0|1.5,2")
        assert cmd.name == "addLine"
        assert cmd.points == [P(0, 0), P(1.5, 2)]

    def test_parse_delete_all_fields(self):
        cmd = parse_command("deleteSelected;P=1,2;L=0,0|1,0#2,2|3,3;E=-5,0|5,0;C=0,0,1")
        assert cmd.delete_points == [P(1, 2)]
        assert cmd.delete_lines == [(P(0, 0), P(1, 0)), (P(2, 2), P(3, 3))]
        assert cmd.delete_extended_lines == [(P(-5, 0), P(5, 0))]
        assert cmd.delete_circles == [(P(0, 0), 1.0)]

    def test_parse_bare_delete(self):
        cmd = parse_command("deleteSelected")
        assert cmd.name == "deleteSelected"
        assert cmd.delete_points == []

    def test_parse_set_label_keeps_text(self):
        assert parse_command("setLabel:Mitte: M").text == "Mitte: M"

    def test_parse_legacy_forms(self):
        assert parse_command("addCircle").is_legacy
        assert parse_command("addNormal").is_legacy
        assert parse_command("addCircle").to_line() == "addCircle"

    @pytest.mark.parametrize("line", [
        "",
        "frobnicate",
        "addPoint:1",
        "addPoint:a,b",
        "addPoint:nan,1",
        "addLine:0,0",
        "addNormal:0,0|1,0",
        "deleteSelected;X=1,2",
        "deleteSelected;C=1,2",
        "open:",
    ])
    def test_malformed_lines(self, line):
        with pytest.raises(MacroParseError):
            parse_command(line)

    def test_round_trip_through_text(self):
        cmd = MacroCommand.delete_selected(lines=[(P(0, 0), P(1, 1))], extended_lines=[(P(-5, -5), P(5, 5))])
        again = parse_command(cmd.to_line())
        assert again.delete_lines == cmd.delete_lines
        assert again.delete_extended_lines == cmd.delete_extended_lines


class TestRecorder:

    def test_not_recording_by_default(self):
        recorder = MacroRecorder()
        recorder.record(MacroCommand("deleteAll"))
        assert recorder.commands == []

    def test_start_clears(self):
        recorder = MacroRecorder()
        recorder.start()
        recorder.record(MacroCommand("deleteAll"))
        recorder.stop()
        recorder.start()
        assert recorder.commands == []

    def test_toggle_refused_during_replay(self):
        recorder = MacroRecorder()
        recorder.replaying = True
        assert recorder.toggle() is False
        assert not recorder.start()

    def test_no_recording_while_replaying(self):
        recorder = MacroRecorder()
        recorder.start()
        recorder.replaying = True
        recorder.record(MacroCommand("deleteAll"))
        assert recorder.commands == []

    def test_save_and_load(self, tmp_path):
        set_flag("macro_debug", True)
        recorder = MacroRecorder()
        recorder.start()
        recorder.record(MacroCommand.add_point(P(1, 2)))
        recorder.record(MacroCommand("extendLines"))
        path = tmp_path / "makro.txt"
        assert recorder.save(path).success

        other = MacroRecorder()
        path.write_text(path.read_text() + "\n   \n", encoding="utf-8")
        result = other.load(path)
        assert result.success
        assert other.commands == ["addPoint:1.00000000,2.00000000", "extendLines"]

    def test_load_missing_file(self, tmp_path):
        result = MacroRecorder().load(tmp_path / "fehlt.txt")
        assert result.status == ResultStatus.PERSISTENCE_FAILURE


class TestScheduler:

    def test_immediate_scheduler_runs_nested_calls_iteratively(self):
        scheduler = ImmediateScheduler()
        calls = []

        def step(n):
            calls.append(n)
            if n < 500:
                scheduler.call_later(10, lambda: step(n + 1))

        scheduler.call_later(10, lambda: step(0))
        assert calls == list(range(501))
        assert scheduler.requested_delays[0] == 10


class TestReplay:

    def test_point_point_line_round_trip(self):
        """Test: addPoint, addPoint, addLine ergibt genau eine Linie zwischen zwei Punkten."""
        session = ConstructionSession()
        commands = ["addPoint:0,0", "addPoint:1,0", "addLine:0,0|1,0"]
        summaries = []
        result = session.run_macro(commands, on_finished=summaries.append)

        assert result.success
        assert session.point_count == 2
        assert session.line_count == 1
        a, b = session.store.line_endpoints(0)
        assert {a.as_tuple(), b.as_tuple()} == {(0.0, 0.0), (1.0, 0.0)}
        assert summaries[0].executed == 3

    def test_add_line_creates_missing_points(self):
        session = ConstructionSession()
        session.run_macro(["addLine:0,0|2,1"])
        assert session.point_count == 2
        assert session.line_count == 1

    def test_malformed_lines_are_skipped(self):
        session = ConstructionSession()
        summaries = []
        session.run_macro(["addPoint:0,0", "bogus", "addPoint:x,1", "addPoint:1,1"],
                          on_finished=summaries.append)
        assert session.point_count == 2
        assert summaries[0].skipped == 2
        assert summaries[0].executed == 2

    def test_failing_command_does_not_abort(self):
        session = ConstructionSession()
        summaries = []
        session.run_macro(["addCircle:0,0|1,0", "addPoint:3,3"], on_finished=summaries.append)
        assert session.circle_count == 0
        assert session.point_count == 1
        assert summaries[0].failed == 1
        assert summaries[0].total == 2

    def test_delay_between_commands(self):
        scheduler = ImmediateScheduler()
        session = ConstructionSession(scheduler=scheduler, step_delay_ms=1000)
        session.run_macro(["addPoint:0,0", "addPoint:1,0", "addPoint:2,0"])
        assert scheduler.requested_delays == [1000, 1000]

    def test_replay_stops_recording_and_is_not_recorded(self):
        session = ConstructionSession()
        session.start_recording()
        session.add_point(5, 5)
        session.run_macro(["addPoint:0,0"])
        assert not session.is_recording
        assert session.macro_commands == ["addPoint:5.00000000,5.00000000"]
        assert not session.is_replaying

    def test_replay_of_empty_macro(self):
        session = ConstructionSession()
        assert session.run_macro([]).status == ResultStatus.PRECONDITION_UNMET

    def test_player_rejects_reentry(self):
        session = ConstructionSession()
        session.recorder.replaying = True
        player = MacroPlayer(session)
        assert player.run(["addPoint:0,0"]).status == ResultStatus.PRECONDITION_UNMET

    def test_delete_selected_by_geometry(self):
        session = ConstructionSession()
        session.run_macro([
            "addLine:0,0|1,0",
            "addLine:1,0|1,1",
            "addCircle:0,0|1,0",
            "deleteSelected;P=0,0;C=0,0,1",
        ])
        assert session.point_count == 2
        assert session.line_count == 1
        assert session.circle_count == 0
        assert session.store.line_endpoints(0) == (P(1, 0), P(1, 1))

    def test_delete_selected_extended_line(self):
        session = ConstructionSession()
        session.run_macro(["addLine:0,0|1,0", "extendLines"])
        # extendLines wirkt auf die aktuelle Selektion (zwei Punkte) -> nichts verlängert
        assert session.extended_line_count == 0

        session.pick(EntityKind.LINE, 0)
        session.extend_selected_lines()
        session.run_macro(["deleteSelected;E=-5,0|5,0"])
        assert session.extended_line_count == 0

    def test_normal_replay(self):
        session = ConstructionSession()
        session.run_macro([
            "addLine:0,0|2,0",
            "addPoint:1,1",
            "addNormal:0,0|2,0;1,1",
        ])
        assert session.extended_line_count == 1
        ext = session.store.extended_lines[0]
        assert ext.start.x == pytest.approx(1.0)
        assert ext.end.x == pytest.approx(1.0)

    def test_normal_replay_missing_line(self):
        session = ConstructionSession()
        summaries = []
        session.run_macro(["addPoint:1,1", "addNormal:0,0|2,0;1,1"], on_finished=summaries.append)
        assert session.extended_line_count == 0
        assert summaries[0].failed == 1

    def test_legacy_add_circle_uses_selection(self):
        session = ConstructionSession()
        session.add_point(0, 0)
        session.add_point(0, 3)
        session.pick(EntityKind.POINT, 0)
        session.pick(EntityKind.POINT, 1, add=True)
        session.run_macro(["addCircle"])
        assert session.circle_count == 1
        assert session.store.circles[0].radius == pytest.approx(3.0)

    def test_set_label_requires_single_selection(self):
        session = ConstructionSession()
        session.run_macro([
            "addPoint:0,0",
            "addPoint:2,0",
            "addLine:0,0|2,0",
            "setLabel:ignored",
        ])
        session.pick(EntityKind.LINE, 0)
        session.run_macro(["setLabel:g"])
        assert session.store.entity_label(EntityKind.LINE, 0) == "g"

    def test_raising_command_does_not_stall_replay(self, monkeypatch):
        session = ConstructionSession()

        def broken():
            raise RuntimeError("kaputt")

        monkeypatch.setattr(session, "delete_all", broken)
        summaries = []
        result = session.run_macro(["addPoint:0,0", "deleteAll", "addPoint:1,1"],
                                   on_finished=summaries.append)

        assert result.success
        assert session.point_count == 2
        assert summaries[0].failed == 1
        assert summaries[0].executed == 2
        assert not session.is_replaying
        assert session.start_recording()

    def test_unreadable_diagram_in_macro_is_a_failed_step(self, tmp_path):
        bad = tmp_path / "riesig.json"
        bad.write_text('{"points": [{"x": 1' + "0" * 400 + ', "y": 0}]}', encoding="utf-8")
        session = ConstructionSession()
        summaries = []
        session.run_macro([f"open:{bad}", "addPoint:1,1"], on_finished=summaries.append)

        assert session.point_count == 1
        assert summaries[0].failed == 1
        assert not session.is_replaying
