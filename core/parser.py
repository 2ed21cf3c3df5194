"""
G-code parser for turning motion-language text into canonical commands.

Only G0 (rapid) and G1 (linear) lines produce commands; every other line is
skipped without complaint. X, Y and F are modal: a word missing from a line
keeps the value from the last line that had it.
"""
import logging
from dataclasses import dataclass, field
from functools import cached_property
from typing import List, Optional, Tuple

from core.canonical import MotionCommand, MoveKind
from core.geometry import Envelope, ToolpathStatistics
from core.lexer import GCodeLexer, Token, TokenType
from core.machine_state import RunningState
from utils.errors import Diagnostic, ErrorCollector, ErrorType

logger = logging.getLogger(__name__)


@dataclass
class Block:
    """Represents one tokenized line of G-code."""
    line_number: int

    # Command codes, in the order they appear
    g_codes: List[float] = field(default_factory=list)

    # Words
    x: Optional[float] = None
    y: Optional[float] = None
    f: Optional[float] = None

    # Position tracking for error reporting
    tokens: List[Token] = field(default_factory=list)

    def motion_kind(self) -> Optional[MoveKind]:
        """G0 wins over G1 when a line carries both."""
        if 0 in self.g_codes:
            return MoveKind.RAPID
        if 1 in self.g_codes:
            return MoveKind.LINEAR
        return None


@dataclass(frozen=True)
class ParseResult:
    """Commands, envelope and diagnostics produced from one text."""
    commands: Tuple[MotionCommand, ...]
    envelope: Envelope
    total_lines: int
    diagnostics: Tuple[Diagnostic, ...] = ()
    final_state: RunningState = RunningState()

    @cached_property
    def statistics(self) -> ToolpathStatistics:
        """Computed once per result; the command tuple never changes."""
        return ToolpathStatistics.from_commands(self.commands)

    @property
    def rapid_count(self) -> int:
        return self.statistics.rapid_count

    @property
    def linear_count(self) -> int:
        return self.statistics.linear_count

    def __len__(self):
        return len(self.commands)


class GCodeParser:
    """Parses G-code text into motion commands and their envelope."""

    _WORD_FIELDS = {
        TokenType.X_WORD: 'x',
        TokenType.Y_WORD: 'y',
        TokenType.F_WORD: 'f',
    }

    def __init__(self, error_collector: Optional[ErrorCollector] = None):
        self.error_collector = error_collector if error_collector is not None else ErrorCollector()
        self.lexer = GCodeLexer(self.error_collector)

    def parse(self, gcode_text: str) -> ParseResult:
        """Parse a whole program.

        The running state and the envelope are folded over the lines; an
        empty command list gets the default envelope.
        """
        self.error_collector.clear()
        lines = gcode_text.split('\n')

        state = RunningState()
        envelope: Optional[Envelope] = None
        commands: List[MotionCommand] = []

        for line_number, line in enumerate(lines, 1):
            block = self.parse_line(line, line_number)
            if block is None:
                continue
            kind = block.motion_kind()
            if kind is None:
                continue

            state = state.advance(block.x, block.y, block.f)
            envelope = Envelope.around(state.x, state.y) if envelope is None \
                else envelope.include(state.x, state.y)
            commands.append(MotionCommand(kind, state.x, state.y, state.feed_rate, line_number))

        if envelope is None:
            envelope = Envelope.default()

        logger.info(f"Parsed {len(commands)} motion commands from {len(lines)} lines")
        return ParseResult(
            commands=tuple(commands),
            envelope=envelope,
            total_lines=len(lines),
            diagnostics=tuple(self.error_collector.get_all_errors()),
            final_state=state,
        )

    def parse_line(self, line: str, line_number: int) -> Optional[Block]:
        """Tokenize one line into a Block; None for blank or comment-only lines."""
        tokens = self.lexer.tokenize_line(line, line_number)
        if not tokens or all(t.type == TokenType.COMMENT for t in tokens):
            return None

        block = Block(line_number=line_number, tokens=tokens)
        for token in tokens:
            self._process_token(block, token)

        if block.motion_kind() is MoveKind.RAPID and 1 in block.g_codes:
            self.error_collector.add_warning(line_number, "Both G0 and G1 on one line; treated as G0")
        return block

    def _process_token(self, block: Block, token: Token):
        """Process a single token and add it to the block."""
        if token.type in (TokenType.COMMENT, TokenType.OTHER_WORD):
            return

        value = GCodeLexer.number_value(token)
        if value is None:
            self.error_collector.add_error(
                token.line_number, token.char_start, token.char_end,
                f"Invalid number in word: {token.letter}{token.value}",
                ErrorType.SYNTAX
            )
            return

        if token.type == TokenType.G_COMMAND:
            block.g_codes.append(value)
        elif token.type in self._WORD_FIELDS:
            self._set_word(block, token, value)

    def _set_word(self, block: Block, token: Token, value: float):
        name = self._WORD_FIELDS[token.type]
        if name == 'f' and value < 0:
            self.error_collector.add_error(
                token.line_number, token.char_start, token.char_end,
                f"Negative feed rate ignored: F{token.value}",
                ErrorType.SYNTAX
            )
            return
        if getattr(block, name) is not None:
            self.error_collector.add_error(
                token.line_number, token.char_start, token.char_end,
                f"Repeated {token.letter} word ignored",
                ErrorType.SYNTAX
            )
            return
        setattr(block, name, value)
