"""
Diagnostic definitions and collection for the G-code and DXF readers.

Nothing reported here aborts a parse: malformed lines and entities are
skipped or zero-filled and the reason is kept as a diagnostic so the editor
can mark the offending line.
"""
from enum import Enum
from dataclasses import dataclass
from typing import List


class ErrorType(Enum):
    SYNTAX = "syntax"
    FORMAT = "format"


class ErrorSeverity(Enum):
    WARNING = "warning"
    ERROR = "error"


@dataclass
class Diagnostic:
    """A problem found while reading input, with its source position."""
    line_number: int
    char_start: int
    char_end: int
    message: str
    error_type: ErrorType
    severity: ErrorSeverity = ErrorSeverity.WARNING

    def __str__(self):
        return f"Line {self.line_number}: {self.message}"


class ErrorCollector:
    """Collects and manages diagnostics during parsing."""

    def __init__(self):
        self.errors: List[Diagnostic] = []

    def add_error(self, line_number: int, char_start: int, char_end: int,
                  message: str, error_type: ErrorType,
                  severity: ErrorSeverity = ErrorSeverity.WARNING):
        """Add a diagnostic to the collection."""
        self.errors.append(Diagnostic(line_number, char_start, char_end,
                                      message, error_type, severity))

    def add_warning(self, line_number: int, message: str,
                    error_type: ErrorType = ErrorType.SYNTAX):
        """Shorthand for a whole-line warning."""
        self.add_error(line_number, 0, 0, message, error_type)

    def get_errors_for_line(self, line_number: int) -> List[Diagnostic]:
        """Get all diagnostics for a specific line."""
        return [error for error in self.errors if error.line_number == line_number]

    def has_errors(self) -> bool:
        """Check if there are any errors (excluding warnings)."""
        return any(error.severity == ErrorSeverity.ERROR for error in self.errors)

    def has_warnings(self) -> bool:
        return any(error.severity == ErrorSeverity.WARNING for error in self.errors)

    def clear(self):
        """Clear all diagnostics."""
        self.errors.clear()

    def get_all_errors(self) -> List[Diagnostic]:
        """Get all diagnostics sorted by line number."""
        return sorted(self.errors, key=lambda e: (e.line_number, e.char_start))

    def __len__(self):
        return len(self.errors)
