"""
Compiles DXF entities into G-code text.

The output is ordinary G0/G1 text that goes back through the parser, so the
motion language stays the single description of a toolpath. Pen lift and
lower are emitted as G0 Z moves; the parser does not read Z, so they only
show up as zero-length rapids at the current position.
"""
import logging
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence, Tuple

from config.simulator_config import CompilerConfig
from core.canonical import MotionCommand, MoveKind
from core.entities import Arc, Circle, GeometricEntity, Line, Polyline
from utils.geometry import arc_points, circle_points, point_on_circle

logger = logging.getLogger(__name__)

Point = Tuple[float, float]


def format_number(value: float, precision: int = 3) -> str:
    """Fixed-precision coordinate text; never prints '-0.000'."""
    text = f"{value:.{precision}f}"
    if text.startswith('-') and float(text) == 0:
        text = text[1:]
    return text


def _format_constant(value: float) -> str:
    """
    Shortest plain decimal for a constant: 400.0 -> "400", 1e-05 -> "0.00001".

    G-code words have no exponent form, so the text is built from the
    shortest round-tripping repr without ever using one.
    """
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return format(Decimal(repr(value)), "f")


class EntityCompiler:
    """Turns a list of geometric entities into a G-code program."""

    def __init__(self, config: Optional[CompilerConfig] = None):
        self.config = config if config is not None else CompilerConfig()

    def compile(self, entities: Iterable[GeometricEntity]) -> str:
        """Compile entities, in order, into a complete program with header and footer."""
        lines = self._header()
        compiled = 0
        for entity in entities:
            body = self.compile_entity(entity)
            if not body:
                continue
            lines.extend(body)
            lines.append('')
            compiled += 1
        lines.extend(self._footer())
        logger.info(f"Compiled {compiled} entities into {len(lines)} lines of G-code")
        return '\n'.join(lines)

    def compile_entity(self, entity: GeometricEntity) -> List[str]:
        """G-code lines for one entity, or an empty list if it cannot be drawn."""
        if isinstance(entity, Line):
            return self._stroke("; LINE", (entity.x1, entity.y1), [(entity.x2, entity.y2)])

        if isinstance(entity, Polyline):
            if len(entity.points) < 2:
                logger.debug(f"Skipping polyline with {len(entity.points)} point(s)")
                return []
            path = list(entity.points[1:])
            if entity.closed:
                path.append(entity.points[0])
            return self._stroke(f"; POLYLINE ({len(entity.points)} points)", entity.points[0], path)

        if isinstance(entity, Circle):
            start = point_on_circle(entity.cx, entity.cy, entity.r, 0.0)
            path = circle_points(entity.cx, entity.cy, entity.r, self.config.circle_segments)
            title = (f"; CIRCLE (center: {self._fmt(entity.cx)}, {self._fmt(entity.cy)}, "
                     f"r: {self._fmt(entity.r)})")
            return self._stroke(title, start, path)

        if isinstance(entity, Arc):
            start = point_on_circle(entity.cx, entity.cy, entity.r, entity.start_angle)
            path = arc_points(entity.cx, entity.cy, entity.r, entity.start_angle,
                              entity.end_angle, self.config.arc_segments)
            return self._stroke("; ARC", start, path)

        raise TypeError(f"Unsupported entity type: {type(entity).__name__}")

    def _stroke(self, title: str, start: Point, path: Sequence[Point]) -> List[str]:
        """Pen up, rapid to start, pen down, then feed through the path."""
        feed = _format_constant(self.config.feed_rate)
        lines = [
            title,
            self._pen_up(),
            f"G0 X{self._fmt(start[0])} Y{self._fmt(start[1])}",
            self._pen_down(),
        ]
        lines.extend(f"G1 X{self._fmt(x)} Y{self._fmt(y)} F{feed}" for x, y in path)
        return lines

    def _header(self) -> List[str]:
        safe_z = _format_constant(self.config.safe_z)
        cut_z = _format_constant(self.config.cut_z)
        return [
            '%',
            '(Generated from DXF file)',
            f'(Feed Rate: {_format_constant(self.config.feed_rate)} mm/min)',
            f'(Safe Z: {safe_z}mm, Cut Z: {cut_z}mm)',
            '',
            'G21         ; Millimeters',
            'G90         ; Absolute positioning',
            'G17         ; XY plane',
            '',
            '; Initialize - lift pen and go to origin',
            f'G0 Z{safe_z}',
            'G0 X0 Y0',
            '',
        ]

    def _footer(self) -> List[str]:
        return [
            '; Finish - lift pen and return to origin',
            self._pen_up(),
            'G0 X0 Y0',
            '',
            'M30         ; Program end',
            '%',
        ]

    def _pen_up(self) -> str:
        return f"G0 Z{_format_constant(self.config.safe_z)}           ; Pen up"

    def _pen_down(self) -> str:
        return f"G0 Z{_format_constant(self.config.cut_z)}            ; Pen down"

    def _fmt(self, value: float) -> str:
        return format_number(value, self.config.precision)


def format_commands(commands: Iterable[MotionCommand], precision: int = 3) -> str:
    """
    Re-emit parsed commands as G-code text.

    F is written on the first command and whenever it changes, so parsing
    the result gives back the same kinds, feed rates and (rounded to
    `precision`) coordinates.
    """
    lines = []
    feed = 0.0
    for command in commands:
        word = "G0" if command.kind is MoveKind.RAPID else "G1"
        line = f"{word} X{format_number(command.x, precision)} Y{format_number(command.y, precision)}"
        if command.feed_rate != feed:
            line += f" F{_format_constant(command.feed_rate)}"
            feed = command.feed_rate
        lines.append(line)
    return '\n'.join(lines)
