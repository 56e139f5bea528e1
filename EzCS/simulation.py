"""
Simulation of response spectra consistent with the target distribution
"""

# Import python libraries
from dataclasses import dataclass
import numpy as np
from scipy.stats import norm, qmc
from .metrics import sse


@dataclass
class SimulatedPopulation:
    """
    Details
    -------
    Simulated logarithmic response spectra of the best trial.

    Parameters
    ----------
    spectra : numpy.ndarray (num_records x num_periods)
        Simulated logarithmic spectral accelerations.
    trial_errors : numpy.ndarray (1-D)
        Total error of each simulation trial.
    best_trial : int
        Index of the retained trial.
    """

    spectra: np.ndarray
    trial_errors: np.ndarray
    best_trial: int

    def __len__(self):
        return self.spectra.shape[0]


def get_rng(seed_value=None):
    """
    Details
    -------
    Creates the random number generator for the simulation. For a particular seed value not equal
    to zero the generator is deterministic, otherwise it is seeded from fresh operating system entropy.
    """

    if seed_value:
        return np.random.default_rng(seed_value)
    return np.random.default_rng()


def random_uniform(num_dimensions, num_samples, sampling_type, rng):
    """
    Details
    -------
    Used to perform sampling based on Monte Carlo Simulation or Latin Hypercube Sampling

    References
    ----------
    https://docs.scipy.org/doc/scipy/reference/generated/scipy.stats.qmc.LatinHypercube.html#scipy.stats.qmc.LatinHypercube

    Parameters
    ----------
    num_dimensions : int
        number of dimensions
    num_samples : int
        number of samples
    sampling_type : str
        type of sampling.
        Monte Carlo Sampling: 'MCS'
        Latin Hypercube Sampling: 'LHS'
    rng : numpy.random.Generator
        random number generator

    Returns
    -------
    sample : numpy.ndarray (num_samples x num_dimensions)
        Array which contains randomly generated numbers between 0 and 1
    """

    if sampling_type == 'MCS':
        # Do Monte Carlo Sampling without any grid
        return rng.uniform(size=(num_samples, num_dimensions))
    if sampling_type == 'LHS':
        # A Latin hypercube sample generates n points in [0, 1)^d.
        # Each univariate marginal distribution is stratified, placing exactly one point in each possible grid.
        sampler = qmc.LatinHypercube(d=num_dimensions, seed=rng)
        return sampler.random(n=num_samples)
    raise ValueError(f'Unknown sampling type {sampling_type}')


def decompose_covariance(cov):
    """
    Details
    -------
    Lower-triangular decomposition of a covariance matrix. If the matrix is not positive
    definite, an eigen decomposition with negative eigenvalues set to zero is used instead.

    Parameters
    ----------
    cov : numpy.ndarray (2-D)
        Covariance matrix

    Returns
    -------
    lower : numpy.ndarray (2-D)
        Matrix satisfying lower @ lower.T = cov (approximately, if not positive definite)
    """

    try:
        return np.linalg.cholesky(cov)
    except np.linalg.LinAlgError:
        eigen_values, eigen_vectors = np.linalg.eigh(cov)
        return eigen_vectors @ np.diag(np.sqrt(np.clip(eigen_values, 0, None)))


def random_multivariate_normal(mu, cov, num_samples, sampling_option='LHS', rng=None):
    """
    Details
    -------
    Used to generate multivariate correlated normal samples.
    Dimensions with zero variance are not sampled, they are set to the mean value.

    References
    ----------
    Yang, T. Y., Moehle, J., Stojadinovic, B., & Der Kiureghian, A. (2009).
    Seismic Performance Evaluation of Facilities: Methodology and Implementation.
    In Journal of Structural Engineering (Vol. 135, Issue 10, pp. 1146–1154).
    American Society of Civil Engineers (ASCE). https://doi.org/10.1061/(asce)0733-9445(2009)135:10(1146)

    Parameters
    ----------
    mu : numpy.ndarray (1-D)
        Mean value vector
    cov : numpy.ndarray (2-D)
        Covariance matrix
    num_samples : int
        number of samples
    sampling_option : str, optional
        Monte Carlo Sampling: 'MCS'
        Latin Hypercube Sampling: 'LHS'
        The default is 'LHS'.
    rng : numpy.random.Generator, optional
        random number generator
        The default is None.

    Returns
    -------
    z : numpy.ndarray (num_samples x num_dimensions)
        Array which contains the correlated samples
    """

    rng = get_rng() if rng is None else rng
    mu = np.asarray(mu, dtype=float).ravel()
    z = np.tile(mu, (num_samples, 1))

    active = np.diagonal(cov) > 0
    if not np.any(active):
        return z

    lower = decompose_covariance(cov[np.ix_(active, active)])
    u = random_uniform(int(active.sum()), num_samples, sampling_option, rng)
    # Compute standard random numbers
    u = norm(loc=0, scale=1).ppf(u)
    z[:, active] = mu[active] + u @ lower.T

    return z


def _correlation_error(sample, target):
    mask = target.variance_mask & (np.std(sample, axis=0) > 0)
    if mask.sum() < 2:
        return 0.0
    dev_rho = np.corrcoef(sample[:, mask], rowvar=False) - target.correlation[np.ix_(mask, mask)]
    return float(np.sum(dev_rho ** 2))


def simulate_spectra(target, num_records, num_simulations=20, seed_value=None, error_weights=(1.0, 2.0, 0.3),
                     sampling='LHS', correlation_weight=0.0):
    """
    Details
    -------
    Generates simulated response spectra with best matches to the target values.
    num_simulations sets of response spectra are simulated and the best set (in terms of
    matching means, variances and skewness) is chosen as the seed for the record selection.

    Parameters
    ----------
    target : EzCS.target.TargetStatistics
        Target spectrum.
    num_records : int
        Number of spectra per set.
    num_simulations : int, optional
        Number of sets to simulate.
        The default is 20.
    seed_value : int, optional
        Seed of the random number generator, None or 0 to randomize.
        The default is None.
    error_weights : tuple, optional
        Weights for error in mean, standard deviation and skewness.
        The default is (1.0, 2.0, 0.3).
    sampling : str, optional
        'LHS' or 'MCS'.
        The default is 'LHS'.
    correlation_weight : float, optional
        Weight for the error in inter-period correlation coefficients.
        The default is 0.

    Returns
    -------
    population : SimulatedPopulation
        The best set of simulated logarithmic spectra.
    """

    rng = get_rng(seed_value)
    weights = np.asarray(error_weights, dtype=float)

    trial_errors = np.zeros(num_simulations)
    spectra = []
    for j in range(num_simulations):
        sample = random_multivariate_normal(target.mu_ln, target.cov, num_records, sampling, rng)
        # combine mean, standard deviation and skewness errors to compute a total error
        trial_errors[j] = sse(sample, target, weights, skew_weight=0.1 * weights[2])
        if correlation_weight > 0:
            trial_errors[j] += correlation_weight * _correlation_error(sample, target)
        spectra.append(sample)

    best_trial = int(np.argmin(trial_errors))  # find the simulated spectra that best match the targets

    return SimulatedPopulation(spectra=spectra[best_trial], trial_errors=trial_errors, best_trial=best_trial)
