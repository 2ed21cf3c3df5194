"""
The main window for the G-code toolpath simulator.
Editor on the left, 2D viewport in the middle, statistics on the right.
"""
import logging
from pathlib import Path

from PySide6.QtWidgets import (QMainWindow, QWidget, QVBoxLayout, QHBoxLayout,
                               QPushButton, QFileDialog, QMessageBox, QTextEdit,
                               QSplitter, QLabel, QLineEdit, QProgressBar, QSlider)
from PySide6.QtCore import Qt, QTimer
from PySide6.QtGui import QFont

from .editor import Editor
from .qt_scheduler import QtTickScheduler
from .viewport import Viewport
from config.simulator_config import ConfigManager, SimulatorConfig
from core.playback import MAX_SPEED, MIN_SPEED, PlaybackState, PlaybackStatus
from gcode_processor import (DEFAULT_FILENAME, GCodeProcessor, SAMPLE_GCODE,
                             gcode_name_for_dxf)

logger = logging.getLogger(__name__)


class MainWindow(QMainWindow):
    def __init__(self, config: SimulatorConfig = None):
        super().__init__()
        self.setWindowTitle("G-Code Toolpath Simulator")
        self.setGeometry(100, 100, 1600, 1000)

        self.config = config if config is not None else ConfigManager.default()
        self.scheduler = QtTickScheduler(self.config.tick_interval_ms, self)
        self.processor = GCodeProcessor(self.config, self.scheduler)
        self._program_summary = "Statistics:\nNothing loaded"

        # Re-process the text once typing stops
        self.parse_timer = QTimer()
        self.parse_timer.setSingleShot(True)
        self.parse_timer.timeout.connect(self.process_gcode)

        self.setup_ui()
        self.connect_signals()
        self.processor.engine.add_listener(self.on_playback_state)

        self.load_sample_gcode()

    def setup_ui(self):
        """Toolbar on top, editor/viewport/info in the middle, warnings and console below."""
        central = QWidget()
        self.setCentralWidget(central)
        layout = QVBoxLayout(central)
        layout.addLayout(self._build_toolbar())

        self.editor = Editor()
        self.viewport = Viewport(padding=self.config.padding, fit_margin=self.config.fit_margin,
                                 grid_spacing=self.config.grid_spacing,
                                 grid_major_every=self.config.grid_major_every)
        workspace = self._splitter(Qt.Horizontal, [self.editor, self.viewport, self._build_info_panel()],
                                   [500, 800, 250])

        self.error_console = self._read_only_log()
        self.console = self._read_only_log()
        logs = self._splitter(Qt.Horizontal, [self._titled("Warnings:", self.error_console),
                                              self._titled("Console Output:", self.console)],
                              [500, 500])

        layout.addWidget(self._splitter(Qt.Vertical, [workspace, logs], [800, 200]))

    def _build_toolbar(self):
        self.simulate_button = QPushButton("Simulate")
        self.pause_button = QPushButton("Pause")
        self.pause_button.setEnabled(False)
        self.reset_button = QPushButton("Reset")
        self.load_button = QPushButton("Load G-Code")
        self.save_button = QPushButton("Save G-Code")
        self.load_dxf_button = QPushButton("Load DXF")

        self.filename_input = QLineEdit(DEFAULT_FILENAME)
        self.filename_input.setMaximumWidth(200)

        speed = self.processor.engine.speed
        self.speed_slider = QSlider(Qt.Horizontal)
        self.speed_slider.setRange(MIN_SPEED, MAX_SPEED)
        self.speed_slider.setValue(speed)
        self.speed_slider.setMaximumWidth(160)
        self.speed_label = QLabel(f"{speed}%")

        self.status_label = QLabel(PlaybackStatus.IDLE.value)
        self.progress_bar = QProgressBar()
        self.progress_bar.setRange(0, 100)
        self.progress_bar.setMaximumWidth(200)

        toolbar = QHBoxLayout()
        groups = [
            [self.simulate_button, self.pause_button, self.reset_button],
            [self.load_button, self.save_button, self.load_dxf_button, self.filename_input],
        ]
        for group in groups:
            for widget in group:
                toolbar.addWidget(widget)
            toolbar.addSpacing(20)
        toolbar.addStretch()
        for widget in (QLabel("Speed:"), self.speed_slider, self.speed_label,
                       self.status_label, self.progress_bar):
            toolbar.addWidget(widget)
        return toolbar

    def _build_info_panel(self):
        panel = QWidget()
        layout = QVBoxLayout(panel)
        layout.setContentsMargins(5, 5, 5, 5)

        mono = QFont("Courier", 9)
        self.stats_label = QLabel("Statistics:\nNothing loaded")
        self.stats_label.setAlignment(Qt.AlignTop | Qt.AlignLeft)
        self.cursor_label = QLabel("X: 0.00 Y: 0.00")
        for label in (self.stats_label, self.cursor_label):
            label.setFont(mono)
            layout.addWidget(label)
        layout.addStretch()
        return panel

    @staticmethod
    def _read_only_log():
        log = QTextEdit()
        log.setReadOnly(True)
        log.setMaximumHeight(150)
        return log

    @staticmethod
    def _titled(title, widget):
        pane = QWidget()
        layout = QVBoxLayout(pane)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.addWidget(QLabel(title))
        layout.addWidget(widget)
        return pane

    @staticmethod
    def _splitter(orientation, widgets, sizes):
        splitter = QSplitter(orientation)
        for widget in widgets:
            splitter.addWidget(widget)
        splitter.setSizes(sizes)
        return splitter

    def connect_signals(self):
        for signal, slot in (
            (self.simulate_button.clicked, self.start_simulation),
            (self.pause_button.clicked, self.toggle_pause),
            (self.reset_button.clicked, self.reset_simulation),
            (self.load_button.clicked, self.load_gcode_file),
            (self.save_button.clicked, self.save_gcode_file),
            (self.load_dxf_button.clicked, self.load_dxf_file),
            (self.speed_slider.valueChanged, self.change_speed),
            (self.editor.selectionChangedSignal, self.viewport.highlight_lines),
            (self.editor.textChanged, self.on_text_changed),
            (self.viewport.cursorMoved, self.on_cursor_moved),
        ):
            signal.connect(slot)

    def load_sample_gcode(self):
        """Load the sample outline for demonstration."""
        self.set_editor_text(SAMPLE_GCODE)

    # File handling

    def load_gcode_file(self):
        """Load G-code from a file."""
        file_path, _ = QFileDialog.getOpenFileName(
            self, "Open G-Code File", "",
            "G-Code Files (*.gcode *.nc *.ngc *.txt);;All Files (*)"
        )
        if file_path:
            self.open_gcode(file_path)

    def load_dxf_file(self):
        """Convert a DXF drawing to G-code and load it into the editor."""
        file_path, _ = QFileDialog.getOpenFileName(
            self, "Open DXF File", "", "DXF Files (*.dxf);;All Files (*)"
        )
        if file_path:
            self.open_dxf(file_path)

    def open_path(self, file_path):
        """Open a G-code or DXF file, chosen by extension."""
        if Path(file_path).suffix.lower() == '.dxf':
            self.open_dxf(file_path)
        else:
            self.open_gcode(file_path)

    def open_gcode(self, file_path):
        try:
            text = Path(file_path).read_text(encoding='utf-8')
        except (OSError, UnicodeDecodeError) as e:
            self.show_file_error("open", file_path, e)
            return
        self.filename_input.setText(Path(file_path).name)
        self.set_editor_text(text)
        self.console.append(f"Loaded: {file_path}")

    def open_dxf(self, file_path):
        try:
            dxf_text = Path(file_path).read_text(encoding='utf-8', errors='replace')
        except OSError as e:
            self.show_file_error("open", file_path, e)
            return

        gcode = self.processor.convert_dxf(dxf_text)
        for error in self.processor.get_dxf_errors():
            self.console.append(f"DXF line {error.line_number}: {error.message}")

        self.filename_input.setText(gcode_name_for_dxf(Path(file_path).name))
        self.set_editor_text(gcode)
        self.console.append(f"Converted DXF: {file_path}")

    def save_gcode_file(self):
        """Save the editor contents under the name in the filename box."""
        file_path, _ = QFileDialog.getSaveFileName(
            self, "Save G-Code File", self.filename_input.text(),
            "G-Code Files (*.gcode *.nc *.ngc *.txt);;All Files (*)"
        )
        if not file_path:
            return
        try:
            saved = self.processor.save_file(file_path, self.editor.toPlainText())
        except OSError as e:
            self.show_file_error("save", file_path, e)
            return
        self.filename_input.setText(saved.name)
        self.console.append(f"Saved: {saved}")

    def show_file_error(self, action, file_path, error):
        logger.error(f"Could not {action} {file_path}: {error}")
        QMessageBox.warning(self, "File Error", f"Could not {action} {file_path}:\n{error}")

    def set_editor_text(self, text):
        """Replace the editor text and process it right away."""
        self.editor.setPlainText(text)
        self.parse_timer.stop()
        self.process_gcode()

    # Processing

    def on_text_changed(self):
        self.parse_timer.stop()
        self.parse_timer.start(500)

    def process_gcode(self):
        """Parse the editor text and update all displays."""
        result = self.processor.process_gcode(self.editor.toPlainText())
        self.viewport.set_toolpath(result.commands, result.envelope)
        self.update_error_display()
        self.update_statistics()

    def update_error_display(self):
        """Show parse warnings and mark their lines in the editor."""
        diagnostics = self.processor.get_all_errors()
        self.editor.highlight_error_lines({d.line_number for d in diagnostics})
        if diagnostics:
            self.error_console.setPlainText("\n".join(
                f"Line {d.line_number}: [{d.severity.value.upper()}] {d.message}" for d in diagnostics))
        else:
            self.error_console.setPlainText("No warnings.")

    def update_statistics(self):
        """Rebuild the program summary, then the tool lines under it."""
        stats = self.processor.get_toolpath_statistics()
        processing = stats['processing']
        geometry = stats['geometry']
        bbox = geometry['bounding_box']

        self._program_summary = f"""Statistics:
Lines: {processing['total_lines']}
G0 Moves: {processing['rapid_moves']}
G1 Moves: {processing['linear_moves']}
Warnings: {processing['warnings']}

Bounding Box:
X: {bbox['min'][0]:.1f} - {bbox['max'][0]:.1f}
Y: {bbox['min'][1]:.1f} - {bbox['max'][1]:.1f}
Width: {bbox['size'][0]:.1f} mm
Height: {bbox['size'][1]:.1f} mm

Toolpath:
Total Length: {geometry['total_length']:.2f}
Cut Length: {geometry['linear_length']:.2f}
Rapid Length: {geometry['rapid_length']:.2f}"""
        self.update_tool_display()

    def update_tool_display(self):
        """Per-tick part of the info panel."""
        playback = self.processor.get_playback_statistics()
        self.stats_label.setText(f"""{self._program_summary}

Tool:
X: {playback['tool'][0]:.3f}
Y: {playback['tool'][1]:.3f}
Feed Rate: {playback['feed_rate']:g}
Current Line: {playback['current_line']}""")

    # Playback

    def start_simulation(self):
        # Pending edits first
        if self.parse_timer.isActive():
            self.parse_timer.stop()
            self.process_gcode()
        if not self.processor.start():
            self.console.append("Nothing to simulate")

    def toggle_pause(self):
        self.processor.toggle_pause()

    def reset_simulation(self):
        self.processor.reset_playback()

    def change_speed(self, value):
        self.processor.set_speed(value)
        self.speed_label.setText(f"{self.processor.engine.speed}%")

    def on_playback_state(self, state: PlaybackState):
        """Engine listener: refresh everything that follows the tool."""
        self.viewport.set_playback_state(state)
        self.editor.set_execution_line(state.current_line)
        self.progress_bar.setValue(round(self.processor.get_progress() * 100))
        self.status_label.setText(state.status.value)
        self.pause_button.setEnabled(state.running or state.paused)
        self.pause_button.setText("Resume" if state.paused else "Pause")
        self.update_tool_display()

    def on_cursor_moved(self, x, y):
        self.cursor_label.setText(f"X: {x:.2f} Y: {y:.2f}")

    def closeEvent(self, event):
        self.processor.pause()
        super().closeEvent(event)
