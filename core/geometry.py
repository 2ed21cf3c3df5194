"""
Geometry management for the toolpath.
Envelope (bounding box) of the command list, toolpath statistics and the
reference grid drawn behind the path.
"""
import math
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from core.canonical import MotionCommand, MoveKind
from utils.geometry import distance


@dataclass(frozen=True)
class Envelope:
    """Axis-aligned bounding box of all command coordinates."""
    min_x: float
    max_x: float
    min_y: float
    max_y: float

    @classmethod
    def default(cls) -> 'Envelope':
        """The fixed box used when there is nothing to bound."""
        return cls(0.0, 100.0, 0.0, 100.0)

    @classmethod
    def around(cls, x: float, y: float) -> 'Envelope':
        """A zero-size envelope holding a single point."""
        return cls(x, x, y, y)

    @classmethod
    def from_commands(cls, commands: Iterable[MotionCommand]) -> 'Envelope':
        """Bound a command list, falling back to default() when it is empty."""
        envelope: Optional[Envelope] = None
        for command in commands:
            envelope = cls.around(command.x, command.y) if envelope is None \
                else envelope.include(command.x, command.y)
        return envelope if envelope is not None else cls.default()

    def include(self, x: float, y: float) -> 'Envelope':
        """Return the envelope grown to contain (x, y)."""
        return Envelope(min(self.min_x, x), max(self.max_x, x),
                        min(self.min_y, y), max(self.max_y, y))

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    @property
    def center(self) -> Tuple[float, float]:
        return (self.min_x + self.max_x) / 2, (self.min_y + self.max_y) / 2

    def contains(self, x: float, y: float) -> bool:
        return self.min_x <= x <= self.max_x and self.min_y <= y <= self.max_y

    def is_degenerate(self) -> bool:
        """True when either dimension is zero, i.e. nothing can be fitted to it."""
        return self.width == 0 or self.height == 0


@dataclass(frozen=True)
class ToolpathStatistics:
    """Counts and travelled lengths of a command list, starting at the origin."""
    rapid_count: int = 0
    linear_count: int = 0
    rapid_length: float = 0.0
    linear_length: float = 0.0

    @property
    def total_count(self) -> int:
        return self.rapid_count + self.linear_count

    @property
    def total_length(self) -> float:
        return self.rapid_length + self.linear_length

    @classmethod
    def from_commands(cls, commands: Iterable[MotionCommand]) -> 'ToolpathStatistics':
        rapid_count = linear_count = 0
        rapid_length = linear_length = 0.0
        x = y = 0.0
        for command in commands:
            length = distance(x, y, command.x, command.y)
            if command.kind is MoveKind.RAPID:
                rapid_count += 1
                rapid_length += length
            else:
                linear_count += 1
                linear_length += length
            x, y = command.x, command.y
        return cls(rapid_count, linear_count, rapid_length, linear_length)


@dataclass(frozen=True)
class GridLine:
    """One reference grid line in world coordinates."""
    x1: float
    y1: float
    x2: float
    y2: float
    major: bool


def grid_lines(envelope: Envelope, spacing: float = 10.0,
               major_every: float = 50.0) -> List[GridLine]:
    """
    Grid covering the envelope, snapped outwards to multiples of `spacing`.
    Lines on multiples of `major_every` are flagged as major.
    """
    start_x = math.floor(envelope.min_x / spacing) * spacing
    end_x = math.ceil(envelope.max_x / spacing) * spacing
    start_y = math.floor(envelope.min_y / spacing) * spacing
    end_y = math.ceil(envelope.max_y / spacing) * spacing

    lines = []
    for i in range(int(round((end_x - start_x) / spacing)) + 1):
        x = start_x + i * spacing
        lines.append(GridLine(x, start_y, x, end_y, _is_major(x, major_every)))
    for i in range(int(round((end_y - start_y) / spacing)) + 1):
        y = start_y + i * spacing
        lines.append(GridLine(start_x, y, end_x, y, _is_major(y, major_every)))
    return lines


def _is_major(value: float, major_every: float) -> bool:
    return math.isclose(math.remainder(value, major_every), 0.0, abs_tol=1e-9)
