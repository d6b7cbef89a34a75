import math

import pytest

from moodgauge.utils.numeric import _isnum, _nz, clamp, clamp01, max_pairwise_gap, saturate


def test_isnum_handles_common_edge_cases():
    assert not _isnum(None)
    assert not _isnum(float("nan"))
    assert not _isnum("0.5")
    assert _isnum(0.0)
    assert _isnum(5)


def test_nz_returns_default_for_missing_values():
    assert _nz(None, 2.5) == 2.5
    assert _nz(float("nan"), 42) == 42
    assert _nz(7, 1) == 7


def test_clamp01_limits_values_between_zero_and_one():
    assert clamp01(None) == 0.0
    assert clamp01(-1.0) == 0.0
    assert clamp01(0.4) == 0.4
    assert clamp01(1.5) == 1.0


def test_clamp_uses_given_bounds():
    assert clamp(11.0, 0.0, 10.0) == 10.0
    assert clamp(-3.0, -2.0, 2.0) == -2.0
    assert clamp(1.0, 0.0, 10.0) == 1.0


def test_saturate_is_bounded_and_has_diminishing_returns():
    assert saturate(0, 0.6) == 0.0
    assert saturate(-1, 0.6) == 0.0
    assert saturate(1, 0.6) == pytest.approx(1 - math.exp(-0.6))
    first = saturate(1, 0.6)
    second = saturate(2, 0.6) - first
    assert second < first
    assert saturate(100, 0.6) <= 1.0


def test_max_pairwise_gap():
    assert max_pairwise_gap([]) == 0.0
    assert max_pairwise_gap([0.4]) == 0.0
    assert max_pairwise_gap([0.365, 0.15, 0.75, 0.56, 0.34]) == pytest.approx(0.6)
    assert max_pairwise_gap(iter([1.0, 0.0])) == 1.0
