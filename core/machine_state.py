"""
Running machine state for the G-code parser.
Tracks the modal X, Y and feed rate that carry forward from line to line.
"""
from dataclasses import dataclass, replace
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class RunningState:
    """
    Position and feed rate in effect after a line has been read.

    Immutable: every recognized motion line produces a new state, so the
    parse is a fold over the lines and each intermediate state can be
    inspected on its own.
    """
    x: float = 0.0
    y: float = 0.0
    feed_rate: float = 0.0

    def advance(self, x: Optional[float] = None, y: Optional[float] = None,
                feed_rate: Optional[float] = None) -> 'RunningState':
        """Overwrite the fields given, inherit the rest."""
        return replace(
            self,
            x=self.x if x is None else x,
            y=self.y if y is None else y,
            feed_rate=self.feed_rate if feed_rate is None else feed_rate,
        )

    def get_state_summary(self) -> Dict[str, Any]:
        """Get a summary of the current state for debugging."""
        return {
            'position': [self.x, self.y],
            'feed_rate': self.feed_rate,
        }
