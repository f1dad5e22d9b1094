"""
Calibration Curve Tests.

Covers curve construction from pooled buckets and application of a
curve to new scores, including property-based checks.
"""

import pytest
from hypothesis import given, settings as hyp_settings
from hypothesis import strategies as st

from tradecal.engine.buckets import bucketize
from tradecal.engine.curve import apply_calibration, build_curve, interpolate
from tradecal.engine.isotonic import pool_adjacent_violators
from tradecal.schemas.calibration import CalibrationData, CalibrationPoint
from tests.factories import outcome, outcomes_at


def _points(*pairs: tuple[float, float]) -> list[CalibrationPoint]:
    return [CalibrationPoint(raw_confidence=r, calibrated_confidence=c) for r, c in pairs]


def _curve(*pairs: tuple[float, float]) -> CalibrationData:
    return CalibrationData(market="BTC", window_days=60, points=_points(*pairs))


class TestBuildCurve:
    def test_anchored_at_both_ends(self):
        outcomes = outcomes_at(0.35, 1, 1) + outcomes_at(0.75, 3, 1)
        points = build_curve(pool_adjacent_violators(bucketize(outcomes)))

        assert points[0] == CalibrationPoint(raw_confidence=0.0, calibrated_confidence=0.0)
        assert points[-1].raw_confidence == 1.0

    def test_breakpoints_at_bucket_midpoints(self):
        outcomes = outcomes_at(0.35, 1, 1) + outcomes_at(0.75, 3, 1)
        points = build_curve(pool_adjacent_violators(bucketize(outcomes)))

        assert [p.raw_confidence for p in points] == pytest.approx([0.0, 0.35, 0.75, 1.0])
        assert [p.calibrated_confidence for p in points] == pytest.approx([0.0, 0.5, 0.75, 0.75])

    def test_flat_beyond_last_bucket(self):
        points = build_curve(pool_adjacent_violators(bucketize(outcomes_at(0.45, 2, 2))))
        assert points[-1].calibrated_confidence == points[-2].calibrated_confidence

    def test_no_outcomes_gives_flat_zero_curve(self):
        points = build_curve(pool_adjacent_violators(bucketize([])))
        assert points == _points((0.0, 0.0), (1.0, 0.0))

    def test_pooled_bucket_uses_merged_midpoint(self):
        outcomes = outcomes_at(0.65, 2, 0) + outcomes_at(0.85, 1, 1)
        points = build_curve(pool_adjacent_violators(bucketize(outcomes)))
        assert [p.raw_confidence for p in points] == pytest.approx([0.0, 0.75, 1.0])
        assert points[1].calibrated_confidence == pytest.approx(0.75)


class TestInterpolate:
    def test_midpoint_interpolation(self):
        curve = _curve((0.0, 0.0), (0.7, 0.55), (0.8, 0.65), (1.0, 0.65))
        assert apply_calibration(0.75, curve) == pytest.approx(0.60)

    def test_input_clamped_above_one(self):
        curve = _curve((0.0, 0.0), (0.5, 0.4), (1.0, 0.8))
        assert apply_calibration(1.5, curve) == 0.8

    def test_input_clamped_below_zero(self):
        curve = _curve((0.0, 0.1), (1.0, 0.9))
        assert apply_calibration(-0.3, curve) == 0.1

    def test_exact_breakpoint(self):
        curve = _curve((0.0, 0.0), (0.15, 0.3333333333333333), (1.0, 0.9))
        assert apply_calibration(0.15, curve) == 0.3333333333333333

    def test_empty_curve_passthrough(self):
        assert apply_calibration(0.42, _curve()) == 0.42

    def test_missing_calibration_passthrough(self):
        assert apply_calibration(0.42, None) == 0.42
        assert apply_calibration(7.0, None) == 1.0

    def test_single_point_is_constant(self):
        curve = _curve((0.5, 0.3))
        assert apply_calibration(0.0, curve) == 0.3
        assert apply_calibration(0.9, curve) == 0.3

    def test_duplicate_breakpoints_do_not_divide_by_zero(self):
        points = _points((0.0, 0.0), (0.5, 0.2), (0.5, 0.6), (1.0, 0.8))
        assert 0.0 <= interpolate(0.5, points) <= 1.0
        assert interpolate(0.75, points) == pytest.approx(0.7)


def _curves():
    data = st.lists(
        st.tuples(
            st.floats(min_value=0.0, max_value=1.0, allow_nan=False),
            st.sampled_from([-1.0, 0.0, 1.0]),
        ),
        max_size=60,
    )
    return data.map(
        lambda pairs: build_curve(
            pool_adjacent_violators(bucketize([outcome(c, p) for c, p in pairs]))
        )
    )


class TestCurveProperties:
    @given(points=_curves())
    @hyp_settings(max_examples=100)
    def test_curve_monotonic_and_anchored(self, points):
        data = CalibrationData(market="BTC", window_days=60, points=points)
        assert data.is_monotonic()
        assert data.is_anchored()

    @given(points=_curves())
    @hyp_settings(max_examples=100)
    def test_breakpoints_reproduced_exactly(self, points):
        for p in points:
            assert interpolate(p.raw_confidence, points) == p.calibrated_confidence

    @given(points=_curves(), x=st.floats(min_value=-2.0, max_value=2.0, allow_nan=False))
    @hyp_settings(max_examples=200)
    def test_output_bounded(self, points, x):
        assert 0.0 <= interpolate(x, points) <= 1.0

    @given(x=st.floats(min_value=0.0, max_value=1.0, allow_nan=False))
    @hyp_settings(max_examples=50)
    def test_empty_curve_is_identity(self, x):
        assert interpolate(x, []) == x
