"""Tests for core.parser: command extraction, carry-forward and envelope.

Properties covered:
    - X, Y and F carry forward from the last line that set them
    - Envelope is the exact min/max of all command coordinates
    - No commands -> default envelope (0..100, 0..100)
    - Only G0/G1 lines produce commands; malformed input never raises

Run:
    pytest tests/test_parser.py -v
"""

from __future__ import annotations

import math
import random

import pytest

from core.canonical import MotionCommand, MoveKind
from core.geometry import Envelope
from core.playback import PlaybackEngine


def _tuples(result):
    return [(c.kind, c.x, c.y, c.feed_rate) for c in result.commands]


class TestCommands:

    def test_carry_forward(self, parser):
        result = parser.parse("G0 X5\nG1 Y10 F200")
        assert _tuples(result) == [
            (MoveKind.RAPID, 5.0, 0.0, 0.0),
            (MoveKind.LINEAR, 5.0, 10.0, 200.0),
        ]

    def test_source_line_numbers(self, parser, square_gcode):
        result = parser.parse(square_gcode)
        assert [c.source_line_number for c in result.commands] == [5, 6, 7, 8, 9, 10]

    def test_square_counts(self, parser, square_gcode):
        result = parser.parse(square_gcode)
        assert len(result) == 6
        assert result.rapid_count == 2
        assert result.linear_count == 4
        assert result.total_lines == 12
        assert result.commands[2] == MotionCommand(MoveKind.LINEAR, 20.0, 20.0, 300.0, 7)

    @pytest.mark.parametrize("word, kind", [
        ("G0", MoveKind.RAPID), ("G00", MoveKind.RAPID),
        ("G1", MoveKind.LINEAR), ("G01", MoveKind.LINEAR),
    ])
    def test_motion_word_forms(self, parser, word, kind):
        result = parser.parse(f"{word} X1 Y2")
        assert result.commands[0].kind is kind

    @pytest.mark.parametrize("line", ["G17", "G10 X5", "G2 X5 Y5", "M30", "F500", "X5 Y5"])
    def test_non_motion_lines_produce_nothing(self, parser, line):
        assert len(parser.parse(line)) == 0

    def test_lone_feed_line_does_not_carry(self, parser):
        result = parser.parse("F500\nG1 X1")
        assert result.commands[0].feed_rate == 0.0

    def test_motion_without_axes_repeats_position(self, parser):
        result = parser.parse("G0 X3 Y4\nG1")
        assert _tuples(result)[1] == (MoveKind.LINEAR, 3.0, 4.0, 0.0)

    def test_comments_are_ignored(self, parser):
        result = parser.parse("(G1 X99)\n; G0 X50\nG1 X1 (G0 X77) Y2 ; X88")
        assert _tuples(result) == [(MoveKind.LINEAR, 1.0, 2.0, 0.0)]

    def test_crlf_line_endings(self, parser):
        result = parser.parse("G0 X1\r\nG1 X2 F100\r\n")
        assert _tuples(result) == [
            (MoveKind.RAPID, 1.0, 0.0, 0.0),
            (MoveKind.LINEAR, 2.0, 0.0, 100.0),
        ]

    def test_z_does_not_move_xy(self, parser):
        result = parser.parse("G0 Z5\nG0 X1 Z-1")
        assert _tuples(result) == [
            (MoveKind.RAPID, 0.0, 0.0, 0.0),
            (MoveKind.RAPID, 1.0, 0.0, 0.0),
        ]

    def test_z_and_m_words_are_ignored_silently(self, parser):
        result = parser.parse("G0 Z1 Z2 M3\nM5\nG1 X4 M8")
        assert result.diagnostics == ()
        assert _tuples(result) == [
            (MoveKind.RAPID, 0.0, 0.0, 0.0),
            (MoveKind.LINEAR, 4.0, 0.0, 0.0),
        ]


class TestDiagnostics:

    def test_g0_and_g1_on_one_line(self, parser):
        result = parser.parse("G0 G1 X5")
        assert result.commands[0].kind is MoveKind.RAPID
        assert len(result.diagnostics) == 1
        assert result.diagnostics[0].line_number == 1

    def test_repeated_word_keeps_first(self, parser):
        result = parser.parse("G1 X1 X2")
        assert result.commands[0].x == 1.0
        assert "Repeated X" in result.diagnostics[0].message

    def test_negative_feed_ignored(self, parser):
        result = parser.parse("G1 X1 F100\nG1 X2 F-5")
        assert result.commands[1].feed_rate == 100.0
        assert result.diagnostics[0].line_number == 2

    def test_junk_is_reported_not_raised(self, parser):
        result = parser.parse("G1 X1 ??\nG1 X2")
        assert len(result) == 2
        assert [d.line_number for d in result.diagnostics] == [1]

    def test_diagnostics_reset_between_parses(self, parser):
        parser.parse("G1 X1 ??")
        result = parser.parse("G1 X1")
        assert result.diagnostics == ()

    def test_overflowing_number_is_dropped(self, parser):
        result = parser.parse("G1 X" + "9" * 400 + " Y5")
        assert _tuples(result) == [(MoveKind.LINEAR, 0.0, 5.0, 0.0)]
        assert "Invalid number" in result.diagnostics[0].message
        assert all(math.isfinite(v) for v in (result.envelope.min_x, result.envelope.max_x,
                                               result.envelope.min_y, result.envelope.max_y))

    def test_overflowing_program_still_plays_to_completion(self, parser):
        result = parser.parse("G0 X1 Y1\nG1 X" + "9" * 400 + " Y5 F100")
        engine = PlaybackEngine(result.commands)
        engine.start()
        state = engine.run_to_completion(max_steps=1000)
        assert state.complete
        assert (state.tool_x, state.tool_y) == pytest.approx((1.0, 5.0))


class TestEnvelope:

    def test_empty_program_gets_default(self, parser):
        result = parser.parse("")
        assert len(result) == 0
        assert result.envelope == Envelope.default()
        assert result.envelope == Envelope(0.0, 100.0, 0.0, 100.0)

    def test_comment_only_program_gets_default(self, parser):
        assert parser.parse("(nothing)\n; here").envelope == Envelope.default()

    def test_envelope_does_not_include_origin(self, parser):
        result = parser.parse("G0 X10 Y20\nG1 X30 Y25")
        assert result.envelope == Envelope(10.0, 30.0, 20.0, 25.0)

    def test_single_point_is_degenerate(self, parser):
        result = parser.parse("G0 X7 Y8")
        assert result.envelope == Envelope(7.0, 7.0, 8.0, 8.0)
        assert result.envelope.is_degenerate()

    def test_envelope_matches_commands(self, parser):
        rng = random.Random(7)
        lines = []
        for _ in range(200):
            word = rng.choice(["G0", "G1"])
            lines.append(f"{word} X{rng.uniform(-500, 500):.3f} Y{rng.uniform(-500, 500):.3f}")
        result = parser.parse("\n".join(lines))
        xs = [c.x for c in result.commands]
        ys = [c.y for c in result.commands]
        assert result.envelope == Envelope(min(xs), max(xs), min(ys), max(ys))
        assert result.envelope == Envelope.from_commands(result.commands)


class TestStatistics:

    def test_lengths_measured_from_origin(self, parser, square_gcode):
        stats = parser.parse(square_gcode).statistics
        assert stats.rapid_length == pytest.approx(0.0)
        assert stats.linear_length == pytest.approx(80.0)
        assert stats.total_count == 6

    def test_statistics_computed_once(self, parser, square_gcode):
        result = parser.parse(square_gcode)
        assert result.statistics is result.statistics
        assert (result.rapid_count, result.linear_count) == (2, 4)

    def test_final_state(self, parser):
        result = parser.parse("G0 X1 Y2\nG1 X3 F50")
        assert result.final_state.get_state_summary() == {'position': [3.0, 2.0], 'feed_rate': 50.0}
