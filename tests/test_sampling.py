"""Tests for sample-rate gating."""

from __future__ import annotations

import pytest

from metricwire.sampling import FixedDraw, SamplingDecider


class TestSamplingDecider:
    """Tests for SamplingDecider."""

    @pytest.mark.parametrize("rate", [0.01, 0.25, 0.5, 0.99])
    def test_draw_below_rate_emits(self, rate):
        decider = SamplingDecider(draw=FixedDraw(rate - 0.005))
        assert decider.should_emit(rate)

    @pytest.mark.parametrize("rate", [0.01, 0.25, 0.5, 0.99])
    def test_draw_at_or_above_rate_drops(self, rate):
        assert not SamplingDecider(draw=FixedDraw(rate)).should_emit(rate)
        assert not SamplingDecider(draw=FixedDraw(0.999)).should_emit(rate)

    def test_full_rate_always_emits(self):
        draw = FixedDraw(0.9999)
        decider = SamplingDecider(draw=draw)

        assert decider.should_emit(1.0)
        assert draw.calls == 0

    def test_one_draw_per_decision(self):
        draw = FixedDraw(0.4)
        decider = SamplingDecider(draw=draw)

        decider.should_emit(0.5)
        decider.should_emit(0.3)

        assert draw.calls == 2

    def test_default_draw_source(self):
        decider = SamplingDecider()
        results = {decider.should_emit(0.5) for _ in range(200)}
        assert results == {True, False}
