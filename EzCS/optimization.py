"""
Greedy subset modification of the selected records
"""

# Import python libraries
import numpy as np
from joblib import Parallel, delayed
from numba import njit
from .matching import admissible, compute_scale_factors
from .metrics import count_outliers, ks_statistic, percent_errors, score, within_tolerance

EPS = np.finfo(np.float64).eps


@njit(nogil=True)
def _find_rec_greedy(sample_small, sample_big, log_scale_factors, candidates, mu_ln, sigma_ln, std_mask,
                     variance_mask, error_weights, skew_weight, penalty):
    """
    Details
    -------
    Sum of squared errors of the record set obtained by adding each candidate to the reduced set.
    The method is defined separately so that njit can be used as wrapper and the routine can be run faster.

    Parameters
    ----------
    sample_small : numpy.ndarray (2-D)
        Spectra of the reduced record set (num_records - 1)
    sample_big : numpy.ndarray (2-D)
        Spectra of the records in the candidate pool
    log_scale_factors : numpy.ndarray (1-D)
        Logarithm of scale factors for all records in the candidate pool
    candidates : numpy.ndarray (1-D)
        Candidate pool indices to evaluate
    mu_ln : numpy.ndarray (1-D)
        Logarithmic mean of the target spectrum
    sigma_ln : numpy.ndarray (1-D)
        Logarithmic standard deviation of the target spectrum
    std_mask : numpy.ndarray (1-D)
        Periods included in the standard deviation and skewness errors
    variance_mask : numpy.ndarray (1-D)
        Periods with non-zero target dispersion, used for penalizing
    error_weights : numpy.ndarray (1-D)
        Weights for error in mean and standard deviation
    skew_weight : float
        Weight for error in skewness
    penalty : float
        > 0 to penalize candidate spectra more than 3 sigma from the target at any period, 0 otherwise.

    Returns
    -------
    errors : numpy.ndarray (1-D)
        Total error for each candidate
    """

    num_small, num_periods = sample_small.shape
    num_records = num_small + 1
    errors = np.empty(len(candidates))

    for c in range(len(candidates)):
        j = candidates[c]
        dev_total = 0.0
        num_outliers = 0
        for k in range(num_periods):
            x_new = sample_big[j, k] + log_scale_factors[j]
            mean = x_new
            for m in range(num_small):
                mean += sample_small[m, k]
            mean /= num_records

            d = x_new - mean
            m2 = d * d
            m3 = d * d * d
            for m in range(num_small):
                d = sample_small[m, k] - mean
                m2 += d * d
                m3 += d * d * d
            m2 /= num_records
            m3 /= num_records

            dev_mean = mean - mu_ln[k]
            dev_total += error_weights[0] * dev_mean * dev_mean
            if std_mask[k]:
                dev_sig = np.sqrt(m2) - sigma_ln[k]
                dev_total += error_weights[1] * dev_sig * dev_sig
                if skew_weight > 0.0 and m2 > (EPS * mean) ** 2:
                    skewness = m3 / m2 ** 1.5
                    dev_total += skew_weight * skewness * skewness

            # Penalize bad spectra
            if variance_mask[k] and abs(x_new - mu_ln[k]) > 3.0 * sigma_ln[k]:
                num_outliers += 1

        errors[c] = dev_total + penalty * num_outliers

    return errors


def _ks_errors(sample_small, sample_big, log_scale_factors, candidates, target, aggregate, penalty, chunk_size=500):
    errors = np.empty(len(candidates))
    for start in range(0, len(candidates), chunk_size):
        ids = candidates[start:start + chunk_size]
        spectra = sample_big[ids, :] + log_scale_factors[ids, None]
        reduced = np.broadcast_to(sample_small, (len(ids),) + sample_small.shape)
        trial = np.concatenate((reduced, spectra[:, np.newaxis, :]), axis=1)
        errors[start:start + len(ids)] = ks_statistic(trial, target, aggregate) + penalty * count_outliers(spectra, target)
    return errors


def evaluate_candidates(sample_small, sample_big, log_scale_factors, candidates, target, config):
    """
    Details
    -------
    Error of the record set if each candidate is added to the reduced set. The evaluation is
    read-only, so that the candidates can be evaluated concurrently (config.n_jobs > 1).

    Parameters
    ----------
    sample_small : numpy.ndarray (2-D)
        Spectra of the reduced record set (num_records - 1)
    sample_big : numpy.ndarray (2-D)
        Spectra of the records in the candidate pool
    log_scale_factors : numpy.ndarray (1-D)
        Logarithm of scale factors for all records in the candidate pool
    candidates : numpy.ndarray (1-D)
        Candidate pool indices to evaluate
    target : EzCS.target.TargetStatistics
        Target spectrum
    config : EzCS.config.SelectionConfig
        Selection settings

    Returns
    -------
    errors : numpy.ndarray (1-D)
        Total error (including penalty) for each candidate
    """

    penalty = float(config.penalty)
    if config.opt_type == 'SSE':
        weights = np.asarray(config.error_weights, dtype=float)
        skew_weight = float(weights[2]) if config.optimize_skewness else 0.0

        def evaluate(ids):
            return _find_rec_greedy(sample_small, sample_big, log_scale_factors, ids, target.mu_ln, target.sigma_ln,
                                    target.std_mask, target.variance_mask, weights, skew_weight, penalty)
    else:
        def evaluate(ids):
            return _ks_errors(sample_small, sample_big, log_scale_factors, ids, target, config.ks_aggregate, penalty)

    candidates = np.asarray(candidates, dtype=np.int64)
    if config.n_jobs == 1 or len(candidates) < 2 * config.n_jobs:
        return evaluate(candidates)

    chunks = np.array_split(candidates, config.n_jobs)
    results = Parallel(n_jobs=config.n_jobs, prefer='threads')(delayed(evaluate)(chunk) for chunk in chunks)
    return np.concatenate(results)


def optimize_ground_motions(target, selection, pool, config, simulated=None):
    """
    Details
    -------
    Greedy subset modification algorithm. Each record of the selection is removed in turn and
    replaced with the candidate record (at its scale factor) that minimizes the total error of the
    set. The replacement is made only if this error, including the penalty of the candidate, is
    lower than the error of the current set, so that the error of the set never increases.
    Ties are resolved in favour of the lowest candidate index. The selection is modified in place.

    For SSE optimization, the procedure is skipped if the errors of the initial selection are
    within the tolerance, and it is stopped after any loop whose errors are within the tolerance.

    References
    ----------
    Jayaram, N., Lin, T., and Baker, J. W. (2011).
    A computationally efficient ground-motion selection algorithm for
    matching a target response spectrum mean and variance.
    Earthquake Spectra, 27(3), 797-815.

    Lee, C. and Baker, J.W. (2016). An Improved Algorithm for Selecting
    Ground Motions to Match a Conditional Spectrum, Earthquake Spectra.

    Parameters
    ----------
    target : EzCS.target.TargetStatistics
        Target spectrum
    selection : EzCS.matching.Selection
        Initial selection
    pool : EzCS.database.CandidatePool
        Candidate records
    config : EzCS.config.SelectionConfig
        Selection settings
    simulated : numpy.ndarray (2-D) or EzCS.simulation.SimulatedPopulation, optional
        Simulated spectra used to scale records for unconditional selection.
        The default is None, records are scaled to the target median.

    Returns
    -------
    selection : EzCS.matching.Selection
        The optimized selection (same object).
    """

    sim_spec = getattr(simulated, 'spectra', simulated)
    weights = np.asarray(config.error_weights, dtype=float)
    skew_weight = weights[2] if config.optimize_skewness else 0.0

    def objective(sample):
        return score(sample, target, weights, config.opt_type, skew_weight, config.ks_aggregate)

    selection.history = [objective(selection.sample)]
    median_error, std_error = percent_errors(selection.sample, target)
    if config.opt_type == 'SSE' and within_tolerance(median_error, std_error, config.tolerance):
        print('Greedy optimization was skipped based on user input tolerance.')
        return selection

    num_records = len(selection)
    for _ in range(config.num_greedy_loops):  # Number of passes

        for i in range(num_records):
            others = np.delete(np.arange(num_records), i)
            sample_small = selection.sample[others, :]

            reference = None if sim_spec is None else sim_spec[i, :]
            scale_factors = compute_scale_factors(pool.sample_big, target, config.is_scaled, reference)
            mask = admissible(scale_factors, config.max_scale_factor, config.is_scaled)
            mask[selection.rec_id[others]] = False
            candidates = np.where(mask)[0]
            if len(candidates) == 0:
                continue

            log_scale_factors = np.log(scale_factors)
            errors = evaluate_candidates(sample_small, pool.sample_big, log_scale_factors, candidates, target, config)
            current_error = objective(selection.sample)

            best = int(np.argmin(errors))
            if errors[best] < current_error:
                min_id = candidates[best]
                selection.replace(i, min_id, scale_factors[min_id], pool.sample_big[min_id, :] + log_scale_factors[min_id])

        selection.history.append(objective(selection.sample))

        # Lets check if the selected ground motions are good enough, if the errors are sufficiently small stop!
        if config.opt_type == 'SSE':
            median_error, std_error = percent_errors(selection.sample, target)
            if within_tolerance(median_error, std_error, config.tolerance):
                break

    selection.optimized = True
    return selection
