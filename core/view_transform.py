"""
Mapping between world units (mm, Y up) and a display surface (pixels, Y down).
"""
from dataclasses import dataclass, replace
from typing import Optional, Tuple

from core.geometry import Envelope

DEFAULT_PADDING = 60.0
DEFAULT_FIT_MARGIN = 0.9


@dataclass(frozen=True)
class ViewTransform:
    """
    Uniform scale plus offset that centers an envelope in a padded display.

    Instances are values: refit() returns a new transform, or the same one
    when the envelope has a zero-size dimension and cannot be fitted.
    """
    width: float
    height: float
    scale: float = 1.0
    offset_x: float = 0.0
    offset_y: float = 0.0
    padding: float = DEFAULT_PADDING
    fit_margin: float = DEFAULT_FIT_MARGIN

    @classmethod
    def fitted(cls, envelope: Envelope, width: float, height: float,
               padding: float = DEFAULT_PADDING,
               fit_margin: float = DEFAULT_FIT_MARGIN) -> 'ViewTransform':
        """Build a transform for a display and fit it to an envelope."""
        return cls(width, height, padding=padding, fit_margin=fit_margin).refit(envelope)

    def refit(self, envelope: Envelope, width: Optional[float] = None,
              height: Optional[float] = None) -> 'ViewTransform':
        """
        Fit to `envelope`, optionally for a new display size.

        A zero-width or zero-height envelope (a single point, a straight
        axis-aligned line) leaves the scale and offsets as they were.
        """
        width = self.width if width is None else width
        height = self.height if height is None else height
        if envelope.is_degenerate():
            return replace(self, width=width, height=height)

        usable_w = width - self.padding * 2
        usable_h = height - self.padding * 2
        scale = min(usable_w / envelope.width, usable_h / envelope.height) * self.fit_margin
        if scale <= 0:
            # Display smaller than its own padding
            return replace(self, width=width, height=height)

        offset_x = self.padding + (usable_w - envelope.width * scale) / 2 - envelope.min_x * scale
        offset_y = self.padding + (usable_h - envelope.height * scale) / 2 - envelope.min_y * scale
        return replace(self, width=width, height=height, scale=scale,
                       offset_x=offset_x, offset_y=offset_y)

    def world_to_display(self, x: float, y: float) -> Tuple[float, float]:
        """World point to display point; the Y axis is flipped."""
        return x * self.scale + self.offset_x, self.height - (y * self.scale + self.offset_y)

    def display_to_world(self, dx: float, dy: float) -> Tuple[float, float]:
        """Exact inverse of world_to_display."""
        return (dx - self.offset_x) / self.scale, (self.height - dy - self.offset_y) / self.scale
