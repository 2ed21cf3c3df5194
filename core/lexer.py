"""
G-code lexer for tokenizing raw motion-language lines.
"""
import math
import re
from enum import Enum
from dataclasses import dataclass
from typing import List, Optional, Tuple
from utils.errors import ErrorCollector, ErrorType


class TokenType(Enum):
    G_COMMAND = "G"

    # Words the simulator reads
    X_WORD = "X"
    Y_WORD = "Y"
    F_WORD = "F"

    # Any other <letter><number> word (M, Z, S, T, N, ...)
    OTHER_WORD = "WORD"

    COMMENT = "COMMENT"


@dataclass
class Token:
    """Represents a single token in a line of G-code."""
    type: TokenType
    value: str
    line_number: int
    char_start: int
    char_end: int
    letter: str = ""

    def __str__(self):
        return f"{self.type.value}:{self.value}"


class GCodeLexer:
    """Tokenizes G-code lines into word and comment tokens."""

    # Characters that turn a whole line into a comment
    COMMENT_PREFIXES = ('(', ';', '%')

    # Pattern for matching G-code words: a letter directly followed by a number
    WORD_PATTERN = re.compile(r'([A-Z])([+-]?(?:\d+\.?\d*|\.\d+))', re.IGNORECASE)

    _LETTER_TYPES = {
        'G': TokenType.G_COMMAND,
        'X': TokenType.X_WORD,
        'Y': TokenType.Y_WORD,
        'F': TokenType.F_WORD,
    }

    def __init__(self, error_collector: ErrorCollector):
        self.error_collector = error_collector

    @classmethod
    def is_comment_line(cls, stripped_line: str) -> bool:
        return stripped_line.startswith(cls.COMMENT_PREFIXES)

    def tokenize_line(self, line: str, line_number: int) -> List[Token]:
        """
        Tokenize a single line.

        Blank lines give no tokens, whole-line comments a single COMMENT
        token. Anything after the first ';' is a comment. Characters that
        do not form a word are reported as a warning and skipped.
        """
        stripped = line.strip()
        if not stripped:
            return []

        lead = len(line) - len(line.lstrip())
        if self.is_comment_line(stripped):
            return [Token(TokenType.COMMENT, stripped, line_number, lead, lead + len(stripped))]

        code, separator, trailing = stripped.partition(';')
        tokens = self._tokenize_code(code, line_number, lead)
        if separator:
            start = lead + len(code)
            tokens.append(Token(TokenType.COMMENT, trailing.strip(), line_number,
                                start, lead + len(stripped)))
        return tokens

    def _tokenize_code(self, code: str, line_number: int, lead: int) -> List[Token]:
        tokens = []
        pos = 0
        while pos < len(code):
            # Skip whitespace
            if code[pos].isspace():
                pos += 1
                continue

            if code[pos] == '(':
                comment_token, pos = self._parse_paren_comment(code, pos, line_number, lead)
                tokens.append(comment_token)
                continue

            word_match = self.WORD_PATTERN.match(code, pos)
            if word_match:
                letter = word_match.group(1).upper()
                token_type = self._LETTER_TYPES.get(letter, TokenType.OTHER_WORD)
                tokens.append(Token(token_type, word_match.group(2), line_number,
                                    lead + pos, lead + word_match.end(), letter))
                pos = word_match.end()
                continue

            # Unrecognized run: consume up to the next word or whitespace
            start = pos
            pos += 1
            while pos < len(code) and not code[pos].isspace() and code[pos] != '(' \
                    and not self.WORD_PATTERN.match(code, pos):
                pos += 1
            self.error_collector.add_error(
                line_number, lead + start, lead + pos,
                f"Ignored unrecognized text: '{code[start:pos]}'",
                ErrorType.SYNTAX
            )

        return tokens

    def _parse_paren_comment(self, code: str, pos: int, line_number: int,
                             lead: int) -> Tuple[Token, int]:
        """Consume an inline (...) comment starting at pos."""
        close = code.find(')', pos + 1)
        if close < 0:
            self.error_collector.add_error(
                line_number, lead + pos, lead + len(code),
                "Unclosed parenthesis in comment",
                ErrorType.SYNTAX
            )
            end = len(code)
            text = code[pos + 1:]
        else:
            end = close + 1
            text = code[pos + 1:close]
        return Token(TokenType.COMMENT, text, line_number, lead + pos, lead + end), end

    @staticmethod
    def number_value(token: Token) -> Optional[float]:
        """Numeric value of a word token, None if it does not convert to a finite number."""
        try:
            value = float(token.value)
        except ValueError:
            return None
        return value if math.isfinite(value) else None
