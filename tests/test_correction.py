import numpy as np
import pytest

from pathfuse.exceptions import ConfigurationError, InputValidationError
from pathfuse.stats.correction import adjust_p, bh_fdr

P = np.array([0.01, 0.04, 0.03])


def test_none_leaves_values_unchanged():
    out = adjust_p(P, "none")
    assert np.array_equal(out, P)
    assert out is not P


@pytest.mark.parametrize(
    "method,expected",
    [
        ("bonferroni", [0.03, 0.12, 0.09]),
        ("holm", [0.03, 0.06, 0.06]),
        ("hochberg", [0.03, 0.04, 0.04]),
        ("BH", [0.03, 0.04, 0.04]),
        ("fdr", [0.03, 0.04, 0.04]),
        ("BY", [0.055, 0.04 * 11.0 / 6.0, 0.04 * 11.0 / 6.0]),
    ],
)
def test_known_adjustments(method, expected):
    assert np.allclose(adjust_p(P, method), expected)


@pytest.mark.parametrize("method", ["holm", "hochberg", "bonferroni", "BH", "BY"])
def test_order_preserving_and_bounded(method):
    rng = np.random.default_rng(1)
    p = rng.uniform(0, 0.2, size=40)
    q = adjust_p(p, method)
    order = np.argsort(p, kind="mergesort")
    assert np.all(np.diff(q[order]) >= -1e-12)
    assert np.all((q >= p - 1e-15) & (q <= 1.0))


def test_ties_get_equal_adjustments():
    q = adjust_p(np.array([0.02, 0.02, 0.5]), "holm")
    assert q[0] == q[1]


def test_nan_passthrough_and_empty():
    q = bh_fdr(np.array([0.01, np.nan, 0.02]))
    assert np.isnan(q[1])
    assert np.allclose(q[[0, 2]], [0.02, 0.02])
    assert adjust_p(np.array([]), "holm").size == 0


def test_unknown_method_rejected():
    with pytest.raises(ConfigurationError, match="Unknown correction method"):
        adjust_p(P, "sidak")


@pytest.mark.parametrize("method", ["holm", "BH", "bonferroni"])
def test_out_of_range_values_rejected(method):
    with pytest.raises(InputValidationError, match=r"\[0,1\]"):
        adjust_p(np.array([0.2, 1.5]), method)
