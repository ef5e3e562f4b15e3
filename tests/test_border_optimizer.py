import numpy as np
import pytest
from dorkroom.features.border.logic import _snap_scores, calculate_optimal_min_border


def _score(paper_w, paper_h, ratio, border):
    return float(_snap_scores(paper_w, paper_h, ratio, np.array([border]))[0])


def test_already_snapped_start_is_kept():
    # 8x10 landscape, 3:2, 0.5" border -> 0.5" sides and 1" top/bottom
    assert calculate_optimal_min_border(10, 8, 3, 2, 0.5) == pytest.approx(0.5)


def test_nudges_to_quarter_inch_borders():
    assert calculate_optimal_min_border(10, 8, 3, 2, 0.6) == pytest.approx(0.5)


@pytest.mark.parametrize(
    "paper_w, paper_h, ratio_w, ratio_h, start",
    [
        (10, 8, 3, 2, 0.73),
        (14, 11, 4, 3, 1.2),
        (20, 16, 1, 1, 0.9),
        (7, 5, 65, 24, 0.4),
    ],
)
def test_result_within_window_and_no_worse_than_start(paper_w, paper_h, ratio_w, ratio_h, start):
    result = calculate_optimal_min_border(paper_w, paper_h, ratio_w, ratio_h, start)
    assert start - 0.5 - 1e-9 <= result <= start + 0.5 + 1e-9

    ratio = ratio_w / ratio_h
    assert _score(paper_w, paper_h, ratio, result) <= _score(paper_w, paper_h, ratio, start) + 1e-6


def test_result_is_rounded_to_hundredths():
    result = calculate_optimal_min_border(14, 11, 4, 3, 1.2)
    assert result == round(result, 2)


def test_lower_bound_never_below_minimum_candidate():
    result = calculate_optimal_min_border(10, 8, 3, 2, 0.05)
    assert result >= 0.01


@pytest.mark.parametrize("ratio_h", [0, -1])
def test_invalid_ratio_returns_start(ratio_h):
    assert calculate_optimal_min_border(10, 8, 3, ratio_h, 0.7) == 0.7


@pytest.mark.parametrize("start", [float("nan"), float("inf")])
def test_non_finite_start_returned_unchanged(start):
    result = calculate_optimal_min_border(10, 8, 3, 2, start)
    assert result == start or (np.isnan(result) and np.isnan(start))


def test_infeasible_candidates_score_infinite():
    scores = _snap_scores(2, 2, 1.0, np.array([0.5, 1.0, 1.5]))
    assert np.isfinite(scores[0])
    assert np.isinf(scores[1])
    assert np.isinf(scores[2])
