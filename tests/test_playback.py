"""Test the playback engine and its pure step function.

Properties covered:
    - Same commands, speed and action sequence -> identical state sequence
    - reset() twice == reset() once
    - step() never decreases command_index; COMPLETE exactly when index == count
    - history holds only reached waypoints, starting with the origin entry

Run:
    pytest tests/test_playback.py -v
"""

from __future__ import annotations

import pytest

from core.canonical import START_POINT, MotionCommand, MoveKind, PathPoint
from core.playback import (PlaybackEngine, PlaybackState, PlaybackStatus, WaypointHistory,
                           step, step_length)


def _linear(x, y, feed=400.0, line=1):
    return MotionCommand(MoveKind.LINEAR, x, y, feed, line)


def _rapid(x, y, line=1):
    return MotionCommand(MoveKind.RAPID, x, y, 0.0, line)


@pytest.fixture
def commands(parser, square_gcode):
    return parser.parse(square_gcode).commands


@pytest.fixture
def engine(commands):
    return PlaybackEngine(commands)


RUNNING = PlaybackState(status=PlaybackStatus.RUNNING)


class TestStepLength:

    def test_linear_and_rapid(self):
        assert step_length(MoveKind.LINEAR, 50) == pytest.approx(2.0)
        assert step_length(MoveKind.RAPID, 50) == pytest.approx(6.0)
        assert step_length(MoveKind.LINEAR, 100) == pytest.approx(4.0)


class TestStepFunction:

    def test_interpolates_toward_target(self):
        state = step(RUNNING, [_linear(10, 0)], 50)
        assert (state.tool_x, state.tool_y) == pytest.approx((2.0, 0.0))
        assert state.command_index == 0
        assert state.history == (START_POINT,)

    def test_exact_step_distance_does_not_snap_yet(self):
        commands = [_linear(4, 0)]
        state = RUNNING
        for _ in range(4):
            state = step(state, commands, 25)
        assert state.tool_x == pytest.approx(4.0)
        assert state.command_index == 0
        state = step(state, commands, 25)
        assert state.command_index == 1
        assert state.complete

    def test_snap_records_waypoint_and_feed(self):
        state = step(RUNNING, [_linear(1, 0, feed=250, line=7), _rapid(50, 0)], 50)
        assert state.command_index == 1
        assert (state.tool_x, state.tool_y) == (1, 0)
        assert state.feed_rate == 250
        assert state.current_line == 7
        assert state.history == (START_POINT, PathPoint(1, 0, MoveKind.LINEAR))
        assert state.running

    def test_zero_length_move_completes_in_one_step(self):
        state = step(RUNNING, [_rapid(0, 0)], 1)
        assert state.complete
        assert state.command_index == 1

    def test_rapids_cover_three_times_the_distance(self):
        state = step(RUNNING, [_rapid(100, 0)], 50)
        assert state.tool_x == pytest.approx(6.0)

    @pytest.mark.parametrize("status", [PlaybackStatus.IDLE, PlaybackStatus.PAUSED,
                                        PlaybackStatus.COMPLETE])
    def test_not_running_is_unchanged(self, status):
        state = PlaybackState(status=status)
        assert step(state, [_linear(10, 0)], 50) is state

    def test_running_past_end_completes(self):
        state = PlaybackState(command_index=1, status=PlaybackStatus.RUNNING)
        assert step(state, [_linear(1, 1)], 50).complete


class TestTransitions:

    def test_initial_state(self, engine):
        assert engine.status is PlaybackStatus.IDLE
        assert engine.state == PlaybackState()
        assert engine.progress == 0.0

    def test_start_pause_resume(self, engine):
        assert engine.start()
        assert engine.status is PlaybackStatus.RUNNING
        assert engine.pause()
        assert engine.status is PlaybackStatus.PAUSED
        assert engine.resume()
        assert engine.status is PlaybackStatus.RUNNING

    def test_start_while_paused_resumes_in_place(self, engine):
        engine.start()
        for _ in range(3):
            engine.step()
        paused = engine.state
        engine.pause()
        engine.start()
        assert engine.state.tool_x == paused.tool_x
        assert engine.state.command_index == paused.command_index

    def test_start_after_complete_starts_over(self, engine):
        engine.run_to_completion()
        assert engine.start()
        assert engine.state.command_index == 0
        assert engine.state.history == (START_POINT,)

    def test_invalid_requests_are_noops(self, engine):
        assert not engine.pause()
        assert not engine.resume()
        before = engine.state
        assert engine.step() is before
        assert engine.state is before

    def test_start_without_commands(self):
        engine = PlaybackEngine()
        assert not engine.start()
        assert engine.status is PlaybackStatus.IDLE

    def test_toggle_pause(self, engine):
        engine.start()
        engine.toggle_pause()
        assert engine.state.paused
        engine.toggle_pause()
        assert engine.state.running

    def test_step_while_paused_is_noop(self, engine):
        engine.start()
        engine.step()
        engine.pause()
        before = engine.state
        engine.step()
        assert engine.state == before

    def test_load_resets(self, engine, commands):
        engine.start()
        engine.step()
        engine.load(commands[:2])
        assert engine.state == PlaybackState()
        assert engine.command_count == 2

    def test_reset_is_idempotent(self, engine):
        engine.start()
        for _ in range(10):
            engine.step()
        engine.reset()
        once = engine.state
        engine.reset()
        assert engine.state == once == PlaybackState()


class TestRun:

    def test_determinism(self, commands):
        def run():
            engine = PlaybackEngine(commands, speed=37)
            engine.start()
            states = []
            while engine.state.running:
                states.append(engine.step())
            return states
        assert run() == run()

    def test_index_monotonic_and_completion(self, engine):
        engine.start()
        previous = 0
        while engine.state.running:
            state = engine.step()
            assert state.command_index >= previous
            assert state.complete == (state.command_index == engine.command_count)
            previous = state.command_index
        assert engine.state.complete
        assert engine.progress == 1.0

    def test_history_is_the_command_list(self, engine, commands):
        final = engine.run_to_completion()
        assert final.history[0] == START_POINT
        assert final.history[1:] == tuple(PathPoint(c.x, c.y, c.kind) for c in commands)
        assert (final.tool_x, final.tool_y) == (commands[-1].x, commands[-1].y)
        assert final.current_line == commands[-1].source_line_number

    def test_max_steps_bounds_the_run(self, commands):
        engine = PlaybackEngine(commands, speed=1)
        state = engine.run_to_completion(max_steps=3)
        assert state.running


class TestSpeed:

    @pytest.mark.parametrize("value, clamped", [(0, 1), (-5, 1), (1, 1), (50, 50), (100, 100), (250, 100)])
    def test_clamped(self, value, clamped):
        engine = PlaybackEngine(speed=value)
        assert engine.speed == clamped
        engine.speed = value
        assert engine.speed == clamped

    def test_speed_change_applies_to_next_step(self):
        engine = PlaybackEngine([_linear(100, 0)], speed=25)
        engine.start()
        engine.step()
        assert engine.state.tool_x == pytest.approx(1.0)
        engine.speed = 100
        engine.step()
        assert engine.state.tool_x == pytest.approx(5.0)


class TestListeners:

    def test_listener_sees_every_state(self, engine):
        seen = []
        engine.add_listener(seen.append)
        engine.start()
        engine.step()
        engine.pause()
        assert [s.status for s in seen] == [PlaybackStatus.RUNNING, PlaybackStatus.RUNNING,
                                            PlaybackStatus.PAUSED]
        engine.remove_listener(seen.append)
        engine.reset()
        assert len(seen) == 3


class TestWaypointHistory:

    def test_starts_at_origin(self):
        history = WaypointHistory()
        assert len(history) == 1
        assert history == (START_POINT,)
        assert history[-1] == START_POINT

    def test_append_leaves_snapshot_unchanged(self):
        first = WaypointHistory()
        second = first.append(PathPoint(1, 0, MoveKind.LINEAR))
        third = second.append(PathPoint(2, 0, MoveKind.LINEAR))
        assert first == (START_POINT,)
        assert len(second) == 2
        assert third[1:] == (PathPoint(1, 0, MoveKind.LINEAR), PathPoint(2, 0, MoveKind.LINEAR))

    def test_branching_from_older_snapshot(self):
        base = WaypointHistory().append(PathPoint(1, 1, MoveKind.RAPID))
        newer = base.append(PathPoint(2, 2, MoveKind.LINEAR))
        branch = base.append(PathPoint(9, 9, MoveKind.LINEAR))
        assert newer[-1] == PathPoint(2, 2, MoveKind.LINEAR)
        assert branch[-1] == PathPoint(9, 9, MoveKind.LINEAR)
        assert len(newer) == len(branch) == 3

    def test_out_of_range_index(self):
        history = WaypointHistory().append(PathPoint(1, 0, MoveKind.LINEAR))
        with pytest.raises(IndexError):
            history[2]

    def test_states_from_one_run_keep_their_own_history(self, engine, commands):
        engine.start()
        snapshots = []
        while engine.state.running:
            snapshots.append(engine.step())
        for state in snapshots:
            assert len(state.history) == state.command_index + 1
            assert state.history[1:] == tuple(PathPoint(c.x, c.y, c.kind)
                                              for c in commands[:state.command_index])

    def test_long_program_history(self):
        commands = [_linear(i * 0.5, 0) for i in range(1, 2001)]
        final = PlaybackEngine(commands, speed=100).run_to_completion()
        assert final.complete
        assert len(final.history) == 2001
        assert final.history[-1] == PathPoint(1000.0, 0.0, MoveKind.LINEAR)
