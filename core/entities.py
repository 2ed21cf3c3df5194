"""
Geometric entities read from a DXF drawing.

These only live between the DXF parser and the compiler. Fields that were
missing in the file stay at zero.
"""
from dataclasses import dataclass, field
from typing import List, Tuple, Union


@dataclass
class Line:
    x1: float = 0.0
    y1: float = 0.0
    x2: float = 0.0
    y2: float = 0.0


@dataclass
class Polyline:
    points: List[Tuple[float, float]] = field(default_factory=list)
    closed: bool = False


@dataclass
class Circle:
    cx: float = 0.0
    cy: float = 0.0
    r: float = 0.0


@dataclass
class Arc:
    """Counter-clockwise arc; angles in degrees."""
    cx: float = 0.0
    cy: float = 0.0
    r: float = 0.0
    start_angle: float = 0.0
    end_angle: float = 0.0


GeometricEntity = Union[Line, Polyline, Circle, Arc]
