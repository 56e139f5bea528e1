"""
Error metrics between a set of spectra and the target distribution
"""

# Import python libraries
import numpy as np
from scipy.stats import norm, skew


def sample_moments(sample):
    """
    Details
    -------
    Mean, (population) standard deviation and skewness of logarithmic spectra along the periods.
    The skewness of a period without dispersion is taken as zero.

    Parameters
    ----------
    sample : numpy.ndarray (num_records x num_periods)
        Logarithmic spectral accelerations.

    Returns
    -------
    mean, std, skewness : numpy.ndarray (1-D)
    """

    sample = np.asarray(sample, dtype=float)
    mean = sample.mean(axis=0)
    std = sample.std(axis=0)
    # scipy returns nan where the spread is below its resolution
    skewness = np.nan_to_num(skew(sample, axis=0), nan=0.0)

    return mean, std, skewness


def sse(sample, target, error_weights, skew_weight=0.0):
    """
    Details
    -------
    Weighted sum of squared errors in mean, standard deviation and skewness (target skewness is zero).
    The conditioning period is excluded from the standard deviation and skewness terms.

    Parameters
    ----------
    sample : numpy.ndarray (num_records x num_periods)
        Logarithmic spectral accelerations.
    target : EzCS.target.TargetStatistics
        Target spectrum.
    error_weights : numpy.ndarray or list
        Weights for error in mean and standard deviation (the third item is not used here).
    skew_weight : float, optional
        Weight for error in skewness.
        The default is 0.

    Returns
    -------
    dev_total : float
        Total error.
    """

    mean, std, skewness = sample_moments(sample)
    std_mask = target.std_mask
    dev_mean = mean - target.mu_ln
    dev_sig = (std - target.sigma_ln)[std_mask]
    dev_total = error_weights[0] * np.sum(dev_mean ** 2) + error_weights[1] * np.sum(dev_sig ** 2)
    if skew_weight > 0:
        dev_total += skew_weight * np.sum(skewness[std_mask] ** 2)

    return float(dev_total)


def ks_statistic(sample, target, aggregate='sum'):
    """
    Details
    -------
    Kolmogorov-Smirnov D-statistic between the empirical distribution of the spectra and the target
    normal distribution at each period with non-zero target dispersion, aggregated across periods.

    Parameters
    ----------
    sample : numpy.ndarray (num_records x num_periods) or (num_sets x num_records x num_periods)
        Logarithmic spectral accelerations. A 3-D array is evaluated set by set.
    target : EzCS.target.TargetStatistics
        Target spectrum.
    aggregate : str, optional
        'sum' or 'max' of the D-statistics across periods.
        The default is 'sum'.

    Returns
    -------
    dn : float or numpy.ndarray
        Aggregated D-statistic, one value per set for a 3-D sample.
    """

    sample = np.asarray(sample, dtype=float)
    single = sample.ndim == 2
    if single:
        sample = sample[np.newaxis]

    mask = target.variance_mask
    num_records = sample.shape[1]
    if not np.any(mask):
        dn = np.zeros(sample.shape[0])
        return float(dn[0]) if single else dn

    sorted_sample = np.sort(sample[:, :, mask], axis=1)
    cdf = norm.cdf(sorted_sample, loc=target.mu_ln[mask], scale=target.sigma_ln[mask])
    upper = (np.arange(1, num_records + 1) / num_records).reshape(1, -1, 1)
    lower = (np.arange(num_records) / num_records).reshape(1, -1, 1)
    dn_periods = np.maximum(np.max(upper - cdf, axis=1), np.max(cdf - lower, axis=1))

    dn = dn_periods.sum(axis=1) if aggregate == 'sum' else dn_periods.max(axis=1)
    return float(dn[0]) if single else dn


def count_outliers(spectra, target):
    """
    Number of periods at which each spectrum is more than 3 sigma away from the target mean.
    Periods without target dispersion are not counted.
    """

    spectra = np.atleast_2d(spectra)
    mask = target.variance_mask
    deviation = np.abs(spectra[:, mask] - target.mu_ln[mask])
    return np.sum(deviation > 3.0 * target.sigma_ln[mask], axis=1)


def score(sample, target, error_weights, mode='SSE', skew_weight=0.0, ks_aggregate='sum'):
    """
    Details
    -------
    Scalar discrepancy between the spectra and the target distribution.

    Parameters
    ----------
    sample : numpy.ndarray (num_records x num_periods)
        Logarithmic spectral accelerations.
    target : EzCS.target.TargetStatistics
        Target spectrum.
    error_weights : numpy.ndarray or list
        Weights for error in mean, standard deviation and skewness.
    mode : str, optional
        'SSE' or 'KS'.
        The default is 'SSE'.
    skew_weight : float, optional
        Weight for error in skewness (SSE only).
        The default is 0.
    ks_aggregate : str, optional
        'sum' or 'max' (KS only).
        The default is 'sum'.

    Returns
    -------
    dev_total : float
    """

    if mode == 'SSE':
        return sse(sample, target, error_weights, skew_weight)
    if mode == 'KS':
        return ks_statistic(sample, target, ks_aggregate)
    raise ValueError(f'Unknown error metric {mode}')


def percent_errors(sample, target):
    """
    Details
    -------
    Maximum (across periods) percent errors in median and standard deviation.
    The standard deviation error is computed over the periods with non-zero target dispersion
    (excluding the conditioning period). It is undefined (nan) if no such period exists.

    Parameters
    ----------
    sample : numpy.ndarray (num_records x num_periods)
        Logarithmic spectral accelerations.
    target : EzCS.target.TargetStatistics
        Target spectrum.

    Returns
    -------
    median_error : float
        Max error in median [%].
    std_error : float
        Max error in standard deviation [%].
    """

    mean, std, _ = sample_moments(sample)
    median_error = np.max(np.abs(np.exp(mean) - np.exp(target.mu_ln)) / np.exp(target.mu_ln)) * 100

    mask = target.std_mask & target.variance_mask
    if np.any(mask):
        std_error = np.max(np.abs(std[mask] - target.sigma_ln[mask]) / target.sigma_ln[mask]) * 100
    else:
        std_error = np.nan

    return float(median_error), float(std_error)


def within_tolerance(median_error, std_error, tolerance):
    """True if both percent errors are finite and do not exceed the tolerance."""
    return bool(median_error <= tolerance and std_error <= tolerance)
