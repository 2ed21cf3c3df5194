"""
Defines the canonical motion commands.

These are small, immutable data classes for the only two movements the
simulator understands: rapid repositioning and linear feed. The parser's
sole purpose is to turn G-code text into a list of these commands, which
keeps the parser apart from the playback engine and the renderer.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class MoveKind(Enum):
    RAPID = "G0"
    LINEAR = "G1"


@dataclass(frozen=True)
class MotionCommand:
    """One resolved G0/G1 move in absolute coordinates."""
    kind: MoveKind
    x: float
    y: float
    feed_rate: float
    source_line_number: int

    @property
    def is_rapid(self) -> bool:
        return self.kind is MoveKind.RAPID


@dataclass(frozen=True)
class PathPoint:
    """A waypoint actually reached during playback.

    `kind` is None only for the synthetic start entry at the origin.
    """
    x: float
    y: float
    kind: Optional[MoveKind] = None


START_POINT = PathPoint(0.0, 0.0, None)
