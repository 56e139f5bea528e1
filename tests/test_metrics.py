import numpy as np
import pytest
from scipy.stats import kstest, skew

from EzCS.metrics import (count_outliers, ks_statistic, percent_errors, sample_moments, score, sse,
                          within_tolerance)
from EzCS.target import TargetStatistics


def make_target(mu_ln, sigma_ln, ind_t1=None):
    mu_ln = np.asarray(mu_ln, dtype=float)
    sigma_ln = np.asarray(sigma_ln, dtype=float)
    return TargetStatistics(periods=np.logspace(-1, 0, len(mu_ln)), mu_ln=mu_ln, sigma_ln=sigma_ln,
                            cov=np.diag(sigma_ln ** 2), ind_t1=ind_t1)


def test_sample_moments():
    rng = np.random.default_rng(0)
    sample = rng.standard_normal((12, 4))
    mean, std, skewness = sample_moments(sample)
    np.testing.assert_allclose(mean, sample.mean(axis=0))
    np.testing.assert_allclose(std, sample.std(axis=0))
    np.testing.assert_allclose(skewness, skew(sample, axis=0))


def test_skewness_without_dispersion():
    _, std, skewness = sample_moments(np.ones((3, 2)))
    assert np.all(std == 0)
    assert np.all(skewness == 0)

    # rounding noise of a constant column is not dispersion
    _, std, skewness = sample_moments(np.full((3, 2), 0.1))
    assert np.all(std < 1e-15)
    np.testing.assert_array_equal(skewness, [0.0, 0.0])
    _, _, skewness = sample_moments(np.array([[0.1, 1.0], [0.1, 2.0], [0.1, 4.0]]))
    assert skewness[0] == 0.0
    assert skewness[1] == pytest.approx(skew([1.0, 2.0, 4.0]))


def test_sse_is_zero_for_matching_moments():
    target = make_target([0.0, 0.0], [1.0, 1.0])
    sample = np.array([[1.0, 1.0], [-1.0, -1.0]])
    assert sse(sample, target, [1.0, 2.0, 0.3]) == pytest.approx(0.0)


def test_sse_terms():
    target = make_target([0.0, 0.0], [1.0, 1.0])
    sample = np.array([[2.0, 0.0], [0.0, 0.0]])  # mean (1, 0), std (1, 0)
    assert sse(sample, target, [1.0, 2.0, 0.3]) == pytest.approx(1.0 + 2.0 * 1.0)
    assert sse(sample, target, [3.0, 0.0, 0.3]) == pytest.approx(3.0)

    skewed = np.array([[3.0, 0.0], [0.0, 0.0], [0.0, 0.0]])
    skewness = skew(skewed[:, 0])
    assert sse(skewed, target, [0.0, 0.0, 0.3], skew_weight=0.5) == pytest.approx(0.5 * skewness ** 2)


def test_sse_ignores_dispersion_at_conditioning_period():
    target = make_target([0.0, 0.0], [0.0, 1.0], ind_t1=0)
    sample = np.array([[1.0, 1.0], [-1.0, -1.0]])
    assert sse(sample, target, [1.0, 2.0, 0.3]) == pytest.approx(0.0)


def test_ks_statistic_matches_scipy():
    rng = np.random.default_rng(1)
    target = make_target([0.0, 1.0, -0.5], [1.0, 0.5, 0.8])
    sample = target.mu_ln + target.sigma_ln * rng.standard_normal((15, 3))
    expected = [kstest(sample[:, k], 'norm', args=(target.mu_ln[k], target.sigma_ln[k])).statistic for k in range(3)]
    assert ks_statistic(sample, target) == pytest.approx(np.sum(expected))
    assert ks_statistic(sample, target, aggregate='max') == pytest.approx(np.max(expected))


def test_ks_statistic_for_sets():
    rng = np.random.default_rng(2)
    target = make_target([0.0, 1.0], [1.0, 0.5])
    sets = rng.standard_normal((4, 6, 2))
    dn = ks_statistic(sets, target)
    assert dn.shape == (4,)
    np.testing.assert_allclose(dn, [ks_statistic(sample, target) for sample in sets])


def test_ks_statistic_skips_periods_without_dispersion():
    target = make_target([0.0, 0.0], [0.0, 1.0], ind_t1=0)
    sample = np.array([[5.0, 0.0]])
    # one record at the median: D = 0.5 at the second period only
    assert ks_statistic(sample, target) == pytest.approx(0.5)
    assert ks_statistic(sample[:, :1], make_target([0.0], [0.0])) == 0.0


def test_count_outliers():
    target = make_target([0.0, 0.0, 0.0], [1.0, 1.0, 0.0])
    spectra = np.array([[0.0, 0.0, 9.0], [3.5, -3.5, 0.0], [3.5, 0.0, 0.0]])
    np.testing.assert_array_equal(count_outliers(spectra, target), [0, 2, 1])
    np.testing.assert_array_equal(count_outliers(spectra[1], target), [2])


def test_score():
    target = make_target([0.0, 0.0], [1.0, 1.0])
    sample = np.array([[2.0, 0.0], [0.0, 0.0]])
    assert score(sample, target, [1.0, 2.0, 0.3]) == sse(sample, target, [1.0, 2.0, 0.3])
    assert score(sample, target, [1.0, 2.0, 0.3], mode='KS') == ks_statistic(sample, target)
    with pytest.raises(ValueError):
        score(sample, target, [1.0, 2.0, 0.3], mode='MSE')


def test_percent_errors():
    target = make_target([0.0, 0.0], [1.0, 1.0])
    sample = np.array([[1.0, 1.0], [-1.0, -1.0]])
    median_error, std_error = percent_errors(sample, target)
    assert median_error == pytest.approx(0.0)
    assert std_error == pytest.approx(0.0)

    sample = np.array([[np.log(1.1) + 1.0, 1.5], [np.log(1.1) - 1.0, -1.5]])
    median_error, std_error = percent_errors(sample, target)
    assert median_error == pytest.approx(10.0)
    assert std_error == pytest.approx(50.0)


def test_percent_errors_without_dispersion():
    target = make_target([0.0, 0.0], [0.0, 0.0])
    median_error, std_error = percent_errors(np.zeros((2, 2)), target)
    assert median_error == 0.0
    assert np.isnan(std_error)
    assert not within_tolerance(median_error, std_error, 10.0)


def test_within_tolerance():
    assert within_tolerance(5.0, 5.0, 10.0)
    assert not within_tolerance(5.0, 15.0, 10.0)
    assert within_tolerance(10.0, 5.0, 10.0)
    assert not within_tolerance(10.1, 5.0, 10.0)
    assert within_tolerance(0.0, 0.0, 0.0)
