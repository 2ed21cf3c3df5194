"""
Playback engine: moves a virtual tool along the command list one tick at a time.

States: IDLE -> RUNNING <-> PAUSED -> COMPLETE, and reset() back to IDLE.

The per-tick arithmetic is the pure function step(); PlaybackEngine owns the
current PlaybackState, the command list and the speed setting, and applies
step() and the state transitions. It does not schedule anything itself, see
core.simulation_controller for the tick driver.
"""
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from enum import Enum
from itertools import islice
from typing import Callable, List, Tuple

from core.canonical import START_POINT, MotionCommand, MoveKind, PathPoint
from utils.geometry import distance, lerp_point

logger = logging.getLogger(__name__)

DEFAULT_SPEED = 50
MIN_SPEED = 1
MAX_SPEED = 100
DEFAULT_SPEED_DIVISOR = 25.0
DEFAULT_RAPID_FACTOR = 3.0


class PlaybackStatus(Enum):
    IDLE = "Ready"
    RUNNING = "Running"
    PAUSED = "Paused"
    COMPLETE = "Complete"


class WaypointHistory(Sequence):
    """
    Append-only list of reached waypoints, starting with the origin entry.

    Each instance is an immutable view of the first `len()` items of a
    shared backing list. Appending to the newest view extends that list in
    place, so a run costs O(1) per waypoint; appending to an older view
    copies its prefix first, which leaves every earlier snapshot intact.
    """

    def __init__(self, points: Sequence[PathPoint] = (START_POINT,)):
        self._points: List[PathPoint] = list(points)
        self._length = len(self._points)

    @classmethod
    def _view(cls, points: List[PathPoint], length: int) -> 'WaypointHistory':
        view = cls.__new__(cls)
        view._points = points
        view._length = length
        return view

    def append(self, point: PathPoint) -> 'WaypointHistory':
        """A new history with `point` added; this one is unchanged."""
        if self._length == len(self._points):
            points = self._points
        else:
            points = self._points[:self._length]
        points.append(point)
        return self._view(points, self._length + 1)

    def __len__(self):
        return self._length

    def __iter__(self):
        return islice(self._points, self._length)

    def __getitem__(self, index):
        if isinstance(index, slice):
            return tuple(self._points[:self._length][index])
        if index < 0:
            index += self._length
        if not 0 <= index < self._length:
            raise IndexError("waypoint index out of range")
        return self._points[index]

    def __eq__(self, other):
        if not isinstance(other, (WaypointHistory, tuple, list)):
            return NotImplemented
        return len(self) == len(other) and all(a == b for a, b in zip(self, other))

    def __hash__(self):
        return hash(tuple(self))

    def __repr__(self):
        return f"WaypointHistory({list(self)!r})"


@dataclass(frozen=True)
class PlaybackState:
    """
    Snapshot of a simulation run.

    `history` holds only waypoints actually reached, starting with the
    synthetic origin entry; interpolated positions never appear in it.
    """
    command_index: int = 0
    tool_x: float = 0.0
    tool_y: float = 0.0
    feed_rate: float = 0.0
    status: PlaybackStatus = PlaybackStatus.IDLE
    history: WaypointHistory = field(default_factory=WaypointHistory)
    current_line: int = 0

    @property
    def running(self) -> bool:
        return self.status is PlaybackStatus.RUNNING

    @property
    def paused(self) -> bool:
        return self.status is PlaybackStatus.PAUSED

    @property
    def complete(self) -> bool:
        return self.status is PlaybackStatus.COMPLETE

    def progress(self, total_commands: int) -> float:
        """Fraction of commands reached, 0.0 for an empty program."""
        if total_commands <= 0:
            return 0.0
        return self.command_index / total_commands


def step_length(kind: MoveKind, speed: float,
                speed_divisor: float = DEFAULT_SPEED_DIVISOR,
                rapid_factor: float = DEFAULT_RAPID_FACTOR) -> float:
    """Distance covered in one tick; rapids go `rapid_factor` times further."""
    length = speed / speed_divisor
    if kind is MoveKind.RAPID:
        length *= rapid_factor
    return length


def step(state: PlaybackState, commands: Sequence[MotionCommand], speed: float,
         speed_divisor: float = DEFAULT_SPEED_DIVISOR,
         rapid_factor: float = DEFAULT_RAPID_FACTOR) -> PlaybackState:
    """
    Advance one tick.

    Closer to the target than one step: snap onto it, record the waypoint
    and move to the next command. Otherwise move one step along the straight
    line towards it. Anything but a RUNNING state is returned unchanged.
    """
    if not state.running:
        return state
    if state.command_index >= len(commands):
        return replace(state, status=PlaybackStatus.COMPLETE)

    target = commands[state.command_index]
    remaining = distance(state.tool_x, state.tool_y, target.x, target.y)
    length = step_length(target.kind, speed, speed_divisor, rapid_factor)

    if remaining < length:
        index = state.command_index + 1
        return replace(
            state,
            command_index=index,
            tool_x=target.x,
            tool_y=target.y,
            feed_rate=target.feed_rate,
            history=state.history.append(PathPoint(target.x, target.y, target.kind)),
            current_line=target.source_line_number,
            status=PlaybackStatus.COMPLETE if index >= len(commands) else PlaybackStatus.RUNNING,
        )

    x, y = lerp_point(state.tool_x, state.tool_y, target.x, target.y, length / remaining)
    return replace(state, tool_x=x, tool_y=y)


StateListener = Callable[[PlaybackState], None]


class PlaybackEngine:
    """Owns one simulation run over one command list."""

    def __init__(self, commands: Sequence[MotionCommand] = (), speed: int = DEFAULT_SPEED,
                 speed_divisor: float = DEFAULT_SPEED_DIVISOR,
                 rapid_factor: float = DEFAULT_RAPID_FACTOR):
        self._commands: Tuple[MotionCommand, ...] = tuple(commands)
        self._state = PlaybackState()
        self._speed = self._clamp_speed(speed)
        self.speed_divisor = speed_divisor
        self.rapid_factor = rapid_factor
        self._listeners: List[StateListener] = []

    # Queries

    @property
    def commands(self) -> Tuple[MotionCommand, ...]:
        return self._commands

    @property
    def command_count(self) -> int:
        return len(self._commands)

    @property
    def state(self) -> PlaybackState:
        return self._state

    @property
    def status(self) -> PlaybackStatus:
        return self._state.status

    @property
    def progress(self) -> float:
        return self._state.progress(len(self._commands))

    @property
    def current_line(self) -> int:
        return self._state.current_line

    @property
    def speed(self) -> int:
        return self._speed

    @speed.setter
    def speed(self, value: int):
        """Percentage, clamped to 1..100; used from the next step on."""
        self._speed = self._clamp_speed(value)

    # Listeners

    def add_listener(self, listener: StateListener):
        self._listeners.append(listener)

    def remove_listener(self, listener: StateListener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    # Transitions

    def load(self, commands: Sequence[MotionCommand]):
        """Replace the command list; the run starts over."""
        self._commands = tuple(commands)
        self.reset()

    def reset(self):
        self._set_state(PlaybackState())

    def start(self) -> bool:
        """
        Start a run, or resume a paused one.

        From IDLE or COMPLETE the run starts over from the origin. Without
        commands this does nothing and returns False.
        """
        if not self._commands:
            logger.debug("Start ignored: no commands loaded")
            return False
        if self._state.paused:
            return self.resume()
        self._set_state(replace(PlaybackState(), status=PlaybackStatus.RUNNING))
        return True

    def pause(self) -> bool:
        if not self._state.running:
            logger.debug(f"Pause ignored in state {self._state.status.name}")
            return False
        self._set_state(replace(self._state, status=PlaybackStatus.PAUSED))
        return True

    def resume(self) -> bool:
        if not self._state.paused:
            logger.debug(f"Resume ignored in state {self._state.status.name}")
            return False
        self._set_state(replace(self._state, status=PlaybackStatus.RUNNING))
        return True

    def toggle_pause(self) -> bool:
        """Pause when running, resume when paused."""
        if self._state.running:
            return self.pause()
        return self.resume()

    def step(self) -> PlaybackState:
        """Advance one tick; a no-op unless RUNNING."""
        if not self._state.running:
            return self._state
        self._set_state(step(self._state, self._commands, self._speed,
                             self.speed_divisor, self.rapid_factor))
        return self._state

    def run_to_completion(self, max_steps: int = 1_000_000) -> PlaybackState:
        """Run headless until COMPLETE or `max_steps` ticks have passed."""
        if not self._state.running and not self.start():
            return self._state
        steps = 0
        while self._state.running and steps < max_steps:
            self.step()
            steps += 1
        if self._state.running:
            logger.warning(f"Playback still running after {max_steps} steps")
        return self._state

    def _set_state(self, new_state: PlaybackState):
        previous = self._state.status
        self._state = new_state
        if new_state.status is not previous:
            logger.debug(f"Playback {previous.name} -> {new_state.status.name}")
        for listener in list(self._listeners):
            listener(new_state)

    @staticmethod
    def _clamp_speed(value: int) -> int:
        return max(MIN_SPEED, min(MAX_SPEED, int(value)))
