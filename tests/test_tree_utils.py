"""
Tests for the shared tree utility functions.
"""
import math

import pytest

from pyacd import tree_utils
from pyacd.tree_utils import calculate_crown_area, calculate_tree_basal_area, logistic


def test_exports_resolve():
    for name in tree_utils.__all__:
        assert hasattr(tree_utils, name), name


def test_tree_basal_area():
    assert calculate_tree_basal_area(20.0) == pytest.approx(math.pi * 0.1 ** 2, rel=1e-4)
    assert calculate_tree_basal_area(20.0, tph=50.0) == pytest.approx(50.0 * calculate_tree_basal_area(20.0))


def test_crown_area_percent_of_hectare():
    # 100 trees with 4 m crowns cover 1256.6 m2, 12.566 % of a hectare
    assert calculate_crown_area(4.0, 100.0) == pytest.approx(12.566, abs=1e-3)


@pytest.mark.parametrize("x", [
    pytest.param(-800.0, id="large_negative"),
    pytest.param(-2.0, id="negative"),
    pytest.param(0.0, id="zero"),
    pytest.param(3.0, id="positive"),
    pytest.param(800.0, id="large_positive"),
])
def test_logistic(x):
    value = logistic(x)
    assert 0.0 <= value <= 1.0
    assert value + logistic(-x) == pytest.approx(1.0)
