"""
Main G-code processor interface.
This is the primary entry point for the simulator: text editors, the
viewport and scripts talk to the parser, DXF compiler and playback engine
through it.
"""
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from config.simulator_config import ConfigManager, SimulatorConfig
from core.canonical import MotionCommand
from core.compiler import EntityCompiler, format_commands
from core.dxf_parser import DXFParser
from core.geometry import Envelope
from core.parser import GCodeParser, ParseResult
from core.playback import PlaybackEngine, PlaybackState
from core.simulation_controller import ManualScheduler, SimulationController, TickScheduler
from core.view_transform import ViewTransform
from utils.errors import Diagnostic, ErrorCollector

logger = logging.getLogger(__name__)

GCODE_EXTENSIONS = ('.gcode', '.nc', '.ngc', '.txt')
DEFAULT_FILENAME = 'untitled.gcode'

SAMPLE_GCODE = """%
(EKOLAHA RC Foam Board Plane - Vectorized Outline)
(Dimensions: 145.0mm height x 205.0mm width)
(Generated from image contour extraction)
(Feed Rate: 400 mm/min)
(Origin: Bottom-left corner)

G21         ; Set units to millimeters
G90         ; Absolute positioning
G17         ; XY plane selection

; Rapid move to start position
G0 X93.564 Y145.000

; Cut outline
G1 X109.333 Y145.000 F400
G1 X204.650 Y37.886 F400
G1 X199.744 Y0.344 F400
G1 X5.607 Y1.033 F400
G1 X0.000 Y22.043 F400
G1 X1.752 Y39.952 F400
G1 X93.564 Y145.000 F400

; Return to origin
G0 X0 Y0

M30         ; Program end
%"""


def normalize_gcode_filename(filename: str) -> str:
    """Empty names become 'untitled.gcode'; names without a G-code extension get '.gcode'."""
    filename = filename.strip()
    if not filename:
        return DEFAULT_FILENAME
    if not filename.lower().endswith(GCODE_EXTENSIONS):
        filename += '.gcode'
    return filename


def gcode_name_for_dxf(filename: str) -> str:
    """'part.dxf' -> 'part.gcode'."""
    name = filename.strip()
    if name.lower().endswith('.dxf'):
        name = name[:-4]
    return normalize_gcode_filename(name)


class GCodeProcessor:
    """
    Main interface for G-code processing and playback.
    Provides a simple API for text editors and 2D visualization tools.
    """

    def __init__(self, config: Optional[SimulatorConfig] = None,
                 scheduler: Optional[TickScheduler] = None):
        self.config = config if config is not None else ConfigManager.default()

        self.error_collector = ErrorCollector()
        self.dxf_error_collector = ErrorCollector()
        self.parser = GCodeParser(self.error_collector)
        self.dxf_parser = DXFParser(self.dxf_error_collector)
        self.compiler = EntityCompiler(self.config.compiler)

        self.engine = PlaybackEngine(
            speed=self.config.speed,
            speed_divisor=self.config.speed_divisor,
            rapid_factor=self.config.rapid_factor,
        )
        self.controller = SimulationController(
            self.engine, scheduler if scheduler is not None else ManualScheduler()
        )
        self.view = ViewTransform.fitted(
            Envelope.default(), self.config.display_width, self.config.display_height,
            padding=self.config.padding, fit_margin=self.config.fit_margin,
        )

        self._last_processed_text = ""
        self._result = ParseResult(commands=(), envelope=Envelope.default(), total_lines=0)

    # Loading

    def process_gcode(self, gcode_text: str) -> ParseResult:
        """
        Parse G-code text and load the commands for playback.

        Any run in progress is reset; the view is refitted to the new envelope.
        """
        self._last_processed_text = gcode_text
        self._result = self.parser.parse(gcode_text)
        self.view = self.view.refit(self._result.envelope)
        self.controller.load_commands(self._result.commands)
        return self._result

    def convert_dxf(self, dxf_text: str) -> str:
        """Compile DXF text into G-code text without loading it."""
        entities = self.dxf_parser.parse(dxf_text)
        return self.compiler.compile(entities)

    def process_dxf(self, dxf_text: str) -> ParseResult:
        """Compile DXF text and load the resulting G-code."""
        return self.process_gcode(self.convert_dxf(dxf_text))

    def load_file(self, path: Union[str, Path]) -> ParseResult:
        """
        Read a G-code or DXF file (by extension) and process it.

        Raises
        ------
        OSError
            If the file cannot be read
        """
        path = Path(path)
        if path.suffix.lower() == '.dxf':
            text = path.read_text(encoding='utf-8', errors='replace')
            logger.info(f"Loaded DXF file {path}")
            return self.process_dxf(text)
        text = path.read_text(encoding='utf-8')
        logger.info(f"Loaded G-code file {path}")
        return self.process_gcode(text)

    def save_file(self, path: Union[str, Path], gcode_text: Optional[str] = None) -> Path:
        """
        Write G-code text (the last processed text by default).

        The file name is normalized first; returns the path actually written.
        """
        path = Path(path)
        path = path.with_name(normalize_gcode_filename(path.name))
        text = self._last_processed_text if gcode_text is None else gcode_text
        path.write_text(text, encoding='utf-8')
        logger.info(f"Saved {path}")
        return path

    def emit_gcode(self) -> str:
        """Current commands re-emitted as plain G0/G1 text."""
        return format_commands(self._result.commands, self.config.compiler.precision)

    # Playback

    def start(self) -> bool:
        return self.controller.start()

    def pause(self) -> bool:
        return self.controller.pause()

    def toggle_pause(self) -> bool:
        return self.controller.toggle_pause()

    def reset_playback(self):
        self.controller.reset()

    def set_speed(self, speed: int):
        self.controller.set_speed(speed)

    def get_playback_state(self) -> PlaybackState:
        return self.engine.state

    def get_progress(self) -> float:
        return self.engine.progress

    def get_current_line(self) -> int:
        return self.engine.current_line

    # View

    def set_display_size(self, width: float, height: float):
        self.view = self.view.refit(self._result.envelope, width, height)

    def world_to_display(self, x: float, y: float) -> Tuple[float, float]:
        return self.view.world_to_display(x, y)

    def display_to_world(self, dx: float, dy: float) -> Tuple[float, float]:
        return self.view.display_to_world(dx, dy)

    # Queries

    def get_commands(self) -> Tuple[MotionCommand, ...]:
        return self._result.commands

    def get_envelope(self) -> Envelope:
        return self._result.envelope

    def get_all_errors(self) -> List[Diagnostic]:
        """Diagnostics from the last G-code parse."""
        return list(self._result.diagnostics)

    def get_errors_for_line(self, line_number: int) -> List[Diagnostic]:
        return [error for error in self._result.diagnostics if error.line_number == line_number]

    def get_dxf_errors(self) -> List[Diagnostic]:
        """Diagnostics from the last DXF conversion."""
        return self.dxf_error_collector.get_all_errors()

    def get_last_processed_text(self) -> str:
        return self._last_processed_text

    def get_statistics(self) -> Dict[str, Any]:
        """Get processing, toolpath and playback statistics."""
        stats = self.get_toolpath_statistics()
        stats['playback'] = self.get_playback_statistics()
        return stats

    def get_toolpath_statistics(self) -> Dict[str, Any]:
        """Statistics of the loaded program; they only change when it is re-processed."""
        result = self._result
        stats = result.statistics
        envelope = result.envelope
        return {
            'processing': {
                'total_lines': result.total_lines,
                'total_commands': len(result.commands),
                'rapid_moves': stats.rapid_count,
                'linear_moves': stats.linear_count,
                'warnings': len(result.diagnostics),
            },
            'geometry': {
                'total_length': stats.total_length,
                'rapid_length': stats.rapid_length,
                'linear_length': stats.linear_length,
                'bounding_box': {
                    'min': [envelope.min_x, envelope.min_y],
                    'max': [envelope.max_x, envelope.max_y],
                    'size': [envelope.width, envelope.height],
                },
            },
        }

    def get_playback_statistics(self) -> Dict[str, Any]:
        """Where the run is now; cheap enough to call on every tick."""
        state = self.engine.state
        return {
            'status': state.status.value,
            'command_index': state.command_index,
            'progress': self.engine.progress,
            'current_line': state.current_line,
            'tool': [state.tool_x, state.tool_y],
            'feed_rate': state.feed_rate,
        }

    def reset(self):
        """Reset processor to initial state."""
        self.error_collector.clear()
        self.dxf_error_collector.clear()
        self._last_processed_text = ""
        self._result = ParseResult(commands=(), envelope=Envelope.default(), total_lines=0)
        self.controller.load_commands(())
