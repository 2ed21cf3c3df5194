"""Tests for core.view_transform.

Properties covered:
    - display_to_world(world_to_display(p)) == p within 1e-6 (1000 random points)
    - Fitting a degenerate envelope leaves scale and offsets unchanged
    - The fitted envelope is centered inside the padded display
"""

from __future__ import annotations

import random

import pytest

from core.geometry import Envelope
from core.view_transform import ViewTransform


@pytest.fixture
def view():
    return ViewTransform.fitted(Envelope(0, 205, 0, 145), 800, 600)


class TestFit:

    def test_scale_uses_tighter_axis(self, view):
        # usable 680 x 480: min(680/205, 480/145) * 0.9
        expected = min(680 / 205, 480 / 145) * 0.9
        assert view.scale == pytest.approx(expected)

    def test_envelope_is_centered(self, view):
        left, bottom = view.world_to_display(0, 0)
        right, top = view.world_to_display(205, 145)
        assert (left + right) / 2 == pytest.approx(400)
        assert (top + bottom) / 2 == pytest.approx(300)

    def test_y_axis_points_up(self, view):
        _, low = view.world_to_display(0, 0)
        _, high = view.world_to_display(0, 100)
        assert high < low

    def test_default_envelope_fit(self):
        view = ViewTransform.fitted(Envelope.default(), 800, 600)
        assert view.scale == pytest.approx(4.8 * 0.9)
        assert view.world_to_display(50, 50) == pytest.approx((400, 300))

    @pytest.mark.parametrize("envelope", [
        Envelope(5, 5, 5, 5),
        Envelope(0, 100, 20, 20),
        Envelope(10, 10, 0, 50),
    ])
    def test_degenerate_envelope_is_noop(self, view, envelope):
        refitted = view.refit(envelope)
        assert (refitted.scale, refitted.offset_x, refitted.offset_y) == \
            (view.scale, view.offset_x, view.offset_y)

    def test_degenerate_refit_still_takes_new_size(self, view):
        refitted = view.refit(Envelope(1, 1, 1, 1), 1024, 768)
        assert (refitted.width, refitted.height) == (1024, 768)
        assert refitted.scale == view.scale

    def test_display_smaller_than_padding_is_noop(self, view):
        refitted = view.refit(Envelope(0, 10, 0, 10), 100, 100)
        assert refitted.scale == view.scale

    def test_refit_returns_new_value(self, view):
        refitted = view.refit(Envelope(0, 10, 0, 10))
        assert refitted is not view
        assert view.scale == pytest.approx(min(680 / 205, 480 / 145) * 0.9)


class TestRoundTrip:

    def test_random_points_round_trip(self):
        rng = random.Random(1234)
        for _ in range(1000):
            envelope = Envelope(rng.uniform(-1000, 0), rng.uniform(1, 1000),
                                rng.uniform(-1000, 0), rng.uniform(1, 1000))
            view = ViewTransform.fitted(envelope, rng.uniform(300, 2000), rng.uniform(300, 2000))
            x, y = rng.uniform(-2000, 2000), rng.uniform(-2000, 2000)
            back = view.display_to_world(*view.world_to_display(x, y))
            assert back[0] == pytest.approx(x, abs=1e-6)
            assert back[1] == pytest.approx(y, abs=1e-6)
