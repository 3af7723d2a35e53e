import math

import numpy as np
import pandas as pd
import pytest
from scipy.stats import chi2, norm

from pathfuse.exceptions import ConfigurationError, InputValidationError
from pathfuse.stats.merge import (
    apply_direction_penalty,
    brown_covariance,
    brown_merge,
    brown_parameters,
    fisher_merge,
    merge_p_values,
    stouffer_merge,
    strube_correlation,
    strube_merge,
)

METHODS = ["Fisher", "Stouffer", "Brown", "Strube"]


def _random_scores(n: int = 50, k: int = 3, seed: int = 0) -> np.ndarray:
    rng = np.random.default_rng(seed)
    return rng.uniform(1e-6, 1.0, size=(n, k))


@pytest.mark.parametrize("method", METHODS)
def test_single_dataset_is_identity(method):
    assert np.isclose(merge_p_values(np.array([0.037]), method), 0.037)
    col = np.array([[0.2], [0.01], [0.7], [1.0]])
    out = merge_p_values(col, method)
    assert np.allclose(out, col[:, 0])


@pytest.mark.parametrize("method", METHODS)
def test_merged_values_stay_in_unit_interval(method):
    out = merge_p_values(_random_scores(), method)
    assert out.shape == (50,)
    assert np.all((out > 0.0) & (out <= 1.0))


def test_fisher_two_values():
    merged = merge_p_values(np.array([0.01, 0.5]), "Fisher")
    assert 0.01 * 0.5 < merged < 0.5
    # chi2 with 4 df has survival exp(-x/2)(1 + x/2)
    assert np.isclose(merged, 0.005 * (1.0 - math.log(0.005)))
    assert np.isclose(merged, chi2.sf(-2.0 * math.log(0.005), 4))


def test_stouffer_two_values():
    merged = merge_p_values(np.array([0.05, 0.05]), "stouffer")
    expected = norm.sf(2.0 * norm.isf(0.05) / math.sqrt(2.0))
    assert np.isclose(merged, expected)
    assert merged < 0.05


def test_brown_reduces_to_fisher_without_covariance():
    p = _random_scores(n=10, k=3)
    assert np.allclose(brown_merge(p, np.diag([4.0, 4.0, 4.0])), fisher_merge(p))
    assert brown_parameters(np.diag([4.0, 4.0])) == (1.0, 4.0)


def test_brown_negative_covariance_is_capped_at_fisher():
    c, df = brown_parameters(np.array([[4.0, -1.0], [-1.0, 4.0]]))
    assert c == 1.0
    assert df == 4.0


def test_brown_is_conservative_for_correlated_datasets():
    col = np.linspace(0.001, 1.0, 200)
    scores = np.column_stack([col, col])
    brown = merge_p_values(scores, "Brown")
    fisher = merge_p_values(scores, "Fisher")
    assert brown[0] > fisher[0]
    cov = brown_covariance(scores)
    assert cov.shape == (2, 2)
    assert cov[0, 1] > 0


def test_strube_identity_correlation_matches_stouffer():
    p = _random_scores(n=20, k=4)
    assert np.allclose(strube_merge(p, np.eye(4)), stouffer_merge(p))


def test_strube_identical_columns_recover_single_pvalue():
    col = np.linspace(0.001, 0.9, 100)
    scores = np.column_stack([col, col])
    corr = strube_correlation(scores)
    assert np.allclose(corr, np.ones((2, 2)))
    out = merge_p_values(scores, "Strube")
    assert np.allclose(out, col, rtol=1e-6)


def test_direction_penalty_forces_conflicting_values_to_one():
    p = np.array([[0.01, 0.02], [0.03, 0.04]])
    d = np.array([[1.5, -2.0], [0.0, 3.0]])
    out = apply_direction_penalty(p, d, np.array([1.0, 1.0]))
    assert np.array_equal(out, np.array([[0.01, 1.0], [0.03, 0.04]]))
    unconstrained = apply_direction_penalty(p, d, np.array([1.0, 0.0]))
    assert np.array_equal(unconstrained, p)


@pytest.mark.parametrize("method", ["Fisher", "Stouffer"])
def test_directional_merge_equals_forced_pvalue(method):
    scores = np.array([[0.01, 0.02, 0.3], [0.2, 0.001, 0.04], [0.5, 0.6, 0.7]])
    directions = np.array([[1.0, -1.0, 1.0], [1.0, 1.0, -1.0], [-1.0, -1.0, -1.0]])
    constraints = [1, 1, -1]
    directional = merge_p_values(scores, method, directions, constraints)
    forced = scores.copy()
    forced[0, 1] = 1.0
    forced[0, 2] = 1.0
    forced[2, 0] = 1.0
    forced[2, 1] = 1.0
    assert np.allclose(directional, merge_p_values(forced, method))


def test_directional_brown_uses_unpenalised_covariance():
    scores = _random_scores(n=40, k=2, seed=3)
    directions = np.ones_like(scores)
    directions[0, 1] = -1.0
    cov = brown_covariance(scores)
    directional = merge_p_values(scores, "Brown", directions, [1, 1])
    forced = scores.copy()
    forced[0, 1] = 1.0
    assert np.isclose(directional[0], merge_p_values(forced, "Brown", covariance=cov)[0])
    assert np.allclose(directional[1:], merge_p_values(scores, "Brown")[1:])


def test_directional_strube_uses_unpenalised_correlation():
    scores = _random_scores(n=40, k=3, seed=5)
    directions = np.ones_like(scores)
    directions[0, 2] = -1.0
    directions[4, 0] = -1.0
    corr = strube_correlation(scores)
    directional = merge_p_values(scores, "Strube", directions, [1, 1, 1])
    forced = scores.copy()
    forced[0, 2] = 1.0
    forced[4, 0] = 1.0
    assert np.allclose(directional, merge_p_values(forced, "Strube", covariance=corr))
    untouched = [i for i in range(40) if i not in (0, 4)]
    assert np.allclose(directional[untouched], merge_p_values(scores, "Strube")[untouched])


@pytest.mark.parametrize("method", ["Stouffer", "Strube"])
def test_pvalue_of_one_does_not_erase_other_datasets(method):
    scores = np.vstack([[1e-8, 1e-8, 1.0], _random_scores(n=30, k=3, seed=7)])
    merged = merge_p_values(scores, method)
    assert np.all(np.isfinite(merged))
    assert merged[0] < 0.5
    single = merge_p_values(np.array([1e-8, 1e-8, 1.0]), method)
    assert single < 0.05


def test_dataframe_input_returns_series_and_aligns_directions():
    scores = pd.DataFrame(
        {"rna": [0.01, 0.5, 0.2], "protein": [0.02, 0.6, 0.3]},
        index=["A", "B", "C"],
    )
    directions = pd.DataFrame(
        {"rna": [1.0, 1.0, 1.0], "protein": [1.0, 1.0, -1.0]},
        index=["C", "A", "B"],
    )
    merged = merge_p_values(scores, "Fisher", directions, [1, 1])
    assert isinstance(merged, pd.Series)
    assert list(merged.index) == ["A", "B", "C"]
    # only "B" has a negative protein effect once rows are realigned
    assert np.isclose(merged["B"], merge_p_values(np.array([0.5, 1.0]), "Fisher"))
    assert np.isclose(merged["A"], merge_p_values(np.array([0.01, 0.02]), "Fisher"))
    assert np.isclose(merged["C"], merge_p_values(np.array([0.2, 0.3]), "Fisher"))


@pytest.mark.parametrize("bad", [0.0, -0.1, 1.2, np.nan])
def test_out_of_range_pvalues_rejected(bad):
    with pytest.raises(InputValidationError):
        merge_p_values(np.array([0.1, bad]), "Fisher")


def test_unknown_method_rejected():
    with pytest.raises(ConfigurationError, match="Unknown merge method"):
        merge_p_values(np.array([0.1, 0.2]), "Tippett")


def test_direction_inputs_validated():
    scores = np.array([[0.1, 0.2], [0.3, 0.4]])
    with pytest.raises(ConfigurationError, match="constraints_vector length"):
        merge_p_values(scores, "Fisher", np.ones((2, 2)), [1, 1, 1])
    with pytest.raises(InputValidationError, match="same shape"):
        merge_p_values(scores, "Fisher", np.ones((3, 2)), [1, 1])
    with pytest.raises(ConfigurationError, match="together"):
        merge_p_values(scores, "Fisher", np.ones((2, 2)))
    with pytest.raises(ConfigurationError, match="-1, 0 or 1"):
        merge_p_values(scores, "Fisher", np.ones((2, 2)), [2, 1])
