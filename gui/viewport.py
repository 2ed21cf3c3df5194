"""
2D viewport for rendering the toolpath and the simulated tool.
"""
from typing import Iterable, Sequence

from PySide6.QtCore import QPointF, Qt, Signal
from PySide6.QtGui import QColor, QFont, QPainter, QPen, QRadialGradient
from PySide6.QtWidgets import QWidget

from core.canonical import MotionCommand, MoveKind
from core.geometry import Envelope, grid_lines
from core.playback import PlaybackState
from core.view_transform import ViewTransform


class Viewport(QWidget):
    """Top-down view of the toolpath with grid, axes and the moving tool."""

    cursorMoved = Signal(float, float)

    COLORS = {
        'rapid': QColor('#ffaa00'),
        'linear': QColor('#00ff88'),
        'tool': QColor('#ff4466'),
        'grid': QColor(100, 100, 120, 38),
        'grid_major': QColor(100, 100, 120, 77),
        'axis': QColor(0, 212, 255, 128),
        'axis_label': QColor(0, 212, 255, 204),
        'highlight': QColor('#ffff00'),
        'background': QColor('#252532'),
    }

    DISPLAY_KEYS = {Qt.Key_G: 'grid', Qt.Key_A: 'axes', Qt.Key_R: 'rapid'}

    def __init__(self, parent=None, padding: float = 60.0, fit_margin: float = 0.9,
                 grid_spacing: float = 10.0, grid_major_every: float = 50.0):
        super().__init__(parent)
        self.setMouseTracking(True)
        self.setFocusPolicy(Qt.StrongFocus)
        self.setMinimumSize(300, 300)

        self.commands: Sequence[MotionCommand] = ()
        self.envelope = Envelope.default()
        self.playback = PlaybackState()
        self.highlighted_lines = set()

        self.grid_spacing = grid_spacing
        self.grid_major_every = grid_major_every
        self.view = ViewTransform.fitted(self.envelope, self.width(), self.height(),
                                         padding=padding, fit_margin=fit_margin)

        # Display settings
        self.show_grid = True
        self.show_axes = True
        self.show_rapid = True

    def set_toolpath(self, commands: Sequence[MotionCommand], envelope: Envelope):
        """Show a new command list and fit the view to its envelope."""
        self.commands = tuple(commands)
        self.envelope = envelope
        self.view = self.view.refit(envelope, self.width(), self.height())
        self.update()

    def set_playback_state(self, state: PlaybackState):
        self.playback = state
        self.update()

    def highlight_lines(self, line_numbers: Iterable[int]):
        """Highlight the moves produced by specific G-code lines."""
        self.highlighted_lines = set(line_numbers) if line_numbers else set()
        self.update()

    def toggle_display_option(self, option: str):
        """Toggle display options."""
        if option == 'grid':
            self.show_grid = not self.show_grid
        elif option == 'axes':
            self.show_axes = not self.show_axes
        elif option == 'rapid':
            self.show_rapid = not self.show_rapid
        self.update()

    # Qt events

    def resizeEvent(self, event):
        super().resizeEvent(event)
        self.view = self.view.refit(self.envelope, self.width(), self.height())

    def keyPressEvent(self, event):
        if event.key() in self.DISPLAY_KEYS:
            self.toggle_display_option(self.DISPLAY_KEYS[event.key()])
        elif event.key() == Qt.Key_Home:
            self.reset_view()
        else:
            super().keyPressEvent(event)

    def mouseMoveEvent(self, event):
        x, y = self.view.display_to_world(event.position().x(), event.position().y())
        self.cursorMoved.emit(x, y)

    def paintEvent(self, event):
        painter = QPainter(self)
        painter.setRenderHint(QPainter.Antialiasing)
        painter.fillRect(self.rect(), self.COLORS['background'])

        if self.show_grid:
            self.draw_grid(painter)
        if self.show_axes:
            self.draw_axes(painter)
        self.draw_complete_path(painter)
        self.draw_path_history(painter)
        self.draw_tool(painter)
        painter.end()

    # Drawing

    def _point(self, x: float, y: float) -> QPointF:
        return QPointF(*self.view.world_to_display(x, y))

    def _move_pen(self, kind: MoveKind, width: float, highlighted: bool = False) -> QPen:
        if highlighted:
            color = self.COLORS['highlight']
        else:
            color = self.COLORS['rapid'] if kind is MoveKind.RAPID else self.COLORS['linear']
        pen = QPen(color, width)
        if kind is MoveKind.RAPID:
            pen.setDashPattern([5.0 / width, 5.0 / width])
        return pen

    def draw_grid(self, painter: QPainter):
        """Draw the reference grid around the toolpath."""
        for line in grid_lines(self.envelope, self.grid_spacing, self.grid_major_every):
            painter.setPen(QPen(self.COLORS['grid_major' if line.major else 'grid'], 1))
            painter.drawLine(self._point(line.x1, line.y1), self._point(line.x2, line.y2))

    def draw_axes(self, painter: QPainter):
        """Draw X and Y axes through the origin, with labels."""
        padding = self.view.padding
        origin = self._point(0.0, 0.0)

        painter.setPen(QPen(self.COLORS['axis'], 2))
        painter.drawLine(QPointF(padding, origin.y()), QPointF(self.width() - padding, origin.y()))
        painter.drawLine(QPointF(origin.x(), padding), QPointF(origin.x(), self.height() - padding))

        painter.setBrush(self.COLORS['axis'])
        painter.setPen(Qt.NoPen)
        painter.drawEllipse(origin, 5, 5)

        painter.setPen(self.COLORS['axis_label'])
        painter.setFont(QFont('monospace', 9))
        painter.drawText(QPointF(self.width() - padding + 10, origin.y() + 4), 'X')
        painter.drawText(QPointF(origin.x() - 4, padding - 10), 'Y')
        painter.drawText(QPointF(origin.x() + 8, origin.y() + 15), '0')

    def draw_complete_path(self, painter: QPainter):
        """Draw the whole program faintly."""
        if not self.commands:
            return
        painter.save()
        painter.setOpacity(0.2)
        previous = self._point(0.0, 0.0)
        for command in self.commands:
            current = self._point(command.x, command.y)
            if self.show_rapid or not command.is_rapid:
                highlighted = command.source_line_number in self.highlighted_lines
                painter.setPen(self._move_pen(command.kind, 1 if command.is_rapid else 2, highlighted))
                painter.drawLine(previous, current)
            previous = current
        painter.restore()

    def draw_path_history(self, painter: QPainter):
        """Draw the waypoints reached so far."""
        history = self.playback.history
        for previous, current in zip(history, history[1:]):
            if current.kind is MoveKind.RAPID and not self.show_rapid:
                continue
            painter.setPen(self._move_pen(current.kind, 2 if current.kind is MoveKind.RAPID else 3))
            painter.drawLine(self._point(previous.x, previous.y), self._point(current.x, current.y))

    def draw_tool(self, painter: QPainter):
        """Draw the tool marker at its current position."""
        position = self._point(self.playback.tool_x, self.playback.tool_y)

        glow = QRadialGradient(position, 20)
        glow.setColorAt(0.0, QColor(255, 68, 102, 204))
        glow.setColorAt(0.5, QColor(255, 68, 102, 77))
        glow.setColorAt(1.0, QColor(255, 68, 102, 0))

        painter.setPen(Qt.NoPen)
        painter.setBrush(glow)
        painter.drawEllipse(position, 20, 20)
        painter.setBrush(self.COLORS['tool'])
        painter.drawEllipse(position, 6, 6)
        painter.setBrush(QColor('#ffffff'))
        painter.drawEllipse(position, 2, 2)

    def reset_view(self):
        """Refit the view to the current toolpath."""
        self.view = self.view.refit(self.envelope, self.width(), self.height())
        self.update()
