"""
G-code editor widget with syntax highlighting, line numbers and dark mode.
"""
from PySide6.QtWidgets import QPlainTextEdit, QWidget, QTextEdit
from PySide6.QtGui import (QColor, QTextFormat, QPainter, QFont, QSyntaxHighlighter,
                           QTextCharFormat, QPalette)
from PySide6.QtCore import Qt, QRect, Signal, QSize

from core.lexer import GCodeLexer


def _char_format(color, bold=False, italic=False):
    fmt = QTextCharFormat()
    fmt.setForeground(QColor(color))
    if bold:
        fmt.setFontWeight(QFont.Weight.Bold)
    fmt.setFontItalic(italic)
    return fmt


class GCodeHighlighter(QSyntaxHighlighter):
    """
    Syntax highlighter for G0/G1 toolpath programs.

    Words are found with the lexer's own pattern, so what is colored is what
    the parser reads; comments use the lexer's comment rules.
    """

    MOTION_FORMATS = {
        0.0: _char_format('#ffaa00', bold=True),   # Rapid, same color as in the viewport
        1.0: _char_format('#00ff88', bold=True),   # Linear
    }
    LETTER_FORMATS = {
        'G': _char_format('#74c0fc'),
        'M': _char_format('#ff8cc8'),
        'X': _char_format('#ff9999'),
        'Y': _char_format('#99ff99'),
        'Z': _char_format('#9999ff'),
        'F': _char_format('#ffff99'),
    }
    COMMENT_FORMAT = _char_format('#6c757d', italic=True)

    def highlightBlock(self, text):
        stripped = text.lstrip()
        if GCodeLexer.is_comment_line(stripped):
            self.setFormat(0, len(text), self.COMMENT_FORMAT)
            return

        code_end = text.find(';')
        if code_end < 0:
            code_end = len(text)
        else:
            self.setFormat(code_end, len(text) - code_end, self.COMMENT_FORMAT)
        code = text[:code_end]

        for match in GCodeLexer.WORD_PATTERN.finditer(code):
            letter = match.group(1).upper()
            fmt = self.LETTER_FORMATS.get(letter)
            if letter == 'G':
                fmt = self.MOTION_FORMATS.get(float(match.group(2)), fmt)
            if fmt is not None:
                self.setFormat(match.start(), match.end() - match.start(), fmt)

        # Inline comments last so words inside them lose their color
        start = code.find('(')
        while start >= 0:
            end = code.find(')', start)
            end = len(code) if end < 0 else end + 1
            self.setFormat(start, end - start, self.COMMENT_FORMAT)
            start = code.find('(', end)


GUTTER_COLORS = {
    'background': QColor('#383838'),
    'number': QColor('#6c757d'),
    'warning': QColor('#ffaa00'),
    'execution': QColor('#00ff88'),
}

LINE_COLORS = {
    'cursor': QColor('#44475a'),
    'warning': QColor('#664400'),      # Dark amber
    'execution': QColor('#0f5132'),    # Dark green
}


class LineNumberGutter(QWidget):
    """Left margin showing line numbers, colored by warning and execution state."""

    PADDING = 3

    def __init__(self, editor):
        super().__init__(editor)
        self.editor = editor

    def width_hint(self):
        digits = len(str(max(1, self.editor.blockCount())))
        return self.PADDING + self.editor.fontMetrics().horizontalAdvance('9') * digits

    def sizeHint(self):
        return QSize(self.width_hint(), 0)

    def number_color(self, number):
        if number == self.editor.execution_line:
            return GUTTER_COLORS['execution']
        if number in self.editor.error_lines:
            return GUTTER_COLORS['warning']
        return GUTTER_COLORS['number']

    def paintEvent(self, event):
        painter = QPainter(self)
        painter.fillRect(event.rect(), GUTTER_COLORS['background'])
        line_height = self.editor.fontMetrics().height()
        text_width = self.width() - self.PADDING

        for number, top, bottom in self.editor.visible_block_spans():
            if top > event.rect().bottom():
                break
            if bottom < event.rect().top():
                continue
            painter.setPen(self.number_color(number))
            painter.drawText(0, int(top), text_width, line_height, Qt.AlignRight, str(number))


class Editor(QPlainTextEdit):
    """G-code editor with syntax highlighting, warning and execution-line markers."""

    selectionChangedSignal = Signal(list)

    def __init__(self, parent=None):
        super().__init__(parent)
        self.error_lines = set()
        self.execution_line = 0

        self.gutter = LineNumberGutter(self)
        self.apply_theme()
        self.highlighter = GCodeHighlighter(self.document())

        self.blockCountChanged.connect(self.refresh_gutter_width)
        self.updateRequest.connect(self.on_update_request)
        self.cursorPositionChanged.connect(self.update_extra_selections)
        self.selectionChanged.connect(self.on_selection_changed)

    def apply_theme(self):
        """Dark palette, monospace font and no wrapping."""
        palette = self.palette()
        for role, color in ((QPalette.Base, '#2b2b2b'), (QPalette.Text, '#f8f8f2'),
                            (QPalette.Highlight, '#44475a'),
                            (QPalette.HighlightedText, '#f8f8f2')):
            palette.setColor(role, QColor(color))
        self.setPalette(palette)

        self.setLineWrapMode(QPlainTextEdit.NoWrap)
        font = QFont("Consolas", 11)
        if not font.exactMatch():
            font = QFont("Courier New", 11)
        font.setStyleHint(QFont.StyleHint.Monospace)
        font.setFixedPitch(True)
        self.setFont(font)
        self.setTabStopDistance(self.fontMetrics().horizontalAdvance(' ') * 4)
        self.refresh_gutter_width()

    # Line markers

    def highlight_error_lines(self, lines):
        self.error_lines = set(lines or ())
        self.update_extra_selections()
        self.gutter.update()

    def set_execution_line(self, line_number):
        """Mark the line whose move was reached last; 0 clears the marker."""
        if line_number == self.execution_line:
            return
        self.execution_line = line_number
        self.update_extra_selections()
        self.gutter.update()
        if line_number > 0 and not self.hasFocus():
            self._move_cursor_to_line(line_number)

    def _move_cursor_to_line(self, line_number):
        block = self.document().findBlockByNumber(line_number - 1)
        if not block.isValid():
            return
        cursor = self.textCursor()
        cursor.setPosition(block.position())
        self.setTextCursor(cursor)
        self.ensureCursorVisible()

    def _full_width_selection(self, cursor, color):
        selection = QTextEdit.ExtraSelection()
        selection.format.setBackground(color)
        selection.format.setProperty(QTextFormat.FullWidthSelection, True)
        selection.cursor = cursor
        selection.cursor.clearSelection()
        return selection

    def _line_marker(self, line_number, color):
        block = self.document().findBlockByNumber(line_number - 1)
        if line_number <= 0 or not block.isValid():
            return None
        cursor = self.textCursor()
        cursor.setPosition(block.position())
        return self._full_width_selection(cursor, color)

    def update_extra_selections(self):
        """Rebuild the background markers; later entries paint over earlier ones."""
        markers = []
        if not self.isReadOnly() and not self.textCursor().hasSelection():
            markers.append(self._full_width_selection(self.textCursor(), LINE_COLORS['cursor']))

        markers.extend(self._line_marker(n, LINE_COLORS['warning']) for n in sorted(self.error_lines))
        markers.append(self._line_marker(self.execution_line, LINE_COLORS['execution']))

        self.setExtraSelections([m for m in markers if m is not None])

    def selected_code_lines(self):
        """1-based numbers of selected lines that carry code."""
        cursor = self.textCursor()
        if not cursor.hasSelection():
            return []

        document = self.document()
        first = document.findBlock(cursor.selectionStart()).blockNumber()
        end_block = document.findBlock(cursor.selectionEnd())
        last = end_block.blockNumber()
        # Selection ending at the start of a line does not include that line
        if cursor.selectionEnd() == end_block.position() and last > first:
            last -= 1

        lines = []
        for number in range(first, last + 1):
            text = document.findBlockByNumber(number).text().strip()
            if text and not GCodeLexer.is_comment_line(text):
                lines.append(number + 1)
        return lines

    def on_selection_changed(self):
        self.selectionChangedSignal.emit(self.selected_code_lines())
        self.update_extra_selections()

    # Gutter

    def refresh_gutter_width(self, _block_count=None):
        self.setViewportMargins(self.gutter.width_hint(), 0, 0, 0)

    def on_update_request(self, rect, dy):
        if dy:
            self.gutter.scroll(0, dy)
        else:
            self.gutter.update(0, rect.y(), self.gutter.width(), rect.height())
        if rect.contains(self.viewport().rect()):
            self.refresh_gutter_width()

    def visible_block_spans(self):
        """Yield (line number, top, bottom) for blocks from the first visible one down."""
        block = self.firstVisibleBlock()
        top = self.blockBoundingGeometry(block).translated(self.contentOffset()).top()
        while block.isValid():
            bottom = top + self.blockBoundingRect(block).height()
            if block.isVisible():
                yield block.blockNumber() + 1, top, bottom
            block = block.next()
            top = bottom

    def resizeEvent(self, event):
        super().resizeEvent(event)
        rect = self.contentsRect()
        self.gutter.setGeometry(QRect(rect.left(), rect.top(), self.gutter.width_hint(), rect.height()))
