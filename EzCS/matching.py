"""
Initial matching of simulated spectra to records of the candidate pool
"""

# Import python libraries
import numpy as np
from .exceptions import PoolExhaustedError
from .metrics import sample_moments


class Selection:
    """
    Details
    -------
    Set of selected records, their scale factors and scaled logarithmic spectra.
    Record ids are the row indices in the candidate pool and they are unique at all times.

    Parameters
    ----------
    rec_id : numpy.ndarray (1-D)
        Candidate pool indices of selected records.
    scale_factors : numpy.ndarray (1-D)
        Scale factors of selected records.
    sample : numpy.ndarray (2-D)
        Scaled logarithmic spectra of selected records.
    """

    def __init__(self, rec_id, scale_factors, sample):
        self.rec_id = np.asarray(rec_id, dtype=int)
        self.scale_factors = np.asarray(scale_factors, dtype=float)
        self.sample = np.asarray(sample, dtype=float)
        self.history = []
        self.optimized = False

    def __len__(self):
        return len(self.rec_id)

    @property
    def means(self):
        return sample_moments(self.sample)[0]

    @property
    def stds(self):
        return sample_moments(self.sample)[1]

    @property
    def skewness(self):
        return sample_moments(self.sample)[2]

    def replace(self, position, record, scale_factor, spectrum):
        """Puts a new record in the given slot."""
        others = np.delete(self.rec_id, position)
        if record in others:
            raise ValueError(f'Record {record} is already selected')
        self.rec_id[position] = record
        self.scale_factors[position] = scale_factor
        self.sample[position, :] = spectrum

    def copy(self):
        selection = Selection(self.rec_id.copy(), self.scale_factors.copy(), self.sample.copy())
        selection.history = list(self.history)
        selection.optimized = self.optimized
        return selection


def compute_scale_factors(sample_big, target, is_scaled, reference=None):
    """
    Details
    -------
    Computes the scale factor of every record in the candidate pool.

    If scaling is not allowed, all scale factors are 1. For conditional targets records are scaled
    to the target spectral acceleration at the conditioning period. Otherwise the scale factor
    minimizes the squared difference between the scaled spectrum and the reference spectrum
    (a simulated spectrum or the target median) in linear space.

    Parameters
    ----------
    sample_big : numpy.ndarray (2-D)
        Logarithmic spectra of the candidate pool.
    target : EzCS.target.TargetStatistics
        Target spectrum.
    is_scaled : bool
        True if amplitude scaling is allowed.
    reference : numpy.ndarray (1-D), optional
        Logarithmic reference spectrum for unconditional scaling.
        The default is None, which uses the target mean.

    Returns
    -------
    scale_factors : numpy.ndarray (1-D)
    """

    if not is_scaled:
        return np.ones(sample_big.shape[0])

    if target.is_conditioned:
        return np.exp(target.mu_ln[target.ind_t1] - sample_big[:, target.ind_t1])

    reference = target.mu_ln if reference is None else reference
    sa_big = np.exp(sample_big)
    return np.sum(sa_big * np.exp(reference), axis=1) / np.sum(sa_big ** 2, axis=1)


def admissible(scale_factors, max_scale_factor, is_scaled):
    """Records whose scale factors lie within [1/max_scale_factor, max_scale_factor]."""
    if not is_scaled:
        return np.ones(len(scale_factors), dtype=bool)
    return (scale_factors >= 1 / max_scale_factor) & (scale_factors <= max_scale_factor)


def find_ground_motions(simulated, pool, target, is_scaled=True, max_scale_factor=4.0):
    """
    Details
    -------
    Finds the best matches to the simulated spectra from the candidate pool.
    The simulated spectra are processed in their input order, and each one is matched to the
    unused record (at its scale factor) with the smallest sum of squared logarithmic differences.
    Ties are resolved in favour of the lowest record index.

    Parameters
    ----------
    simulated : numpy.ndarray (num_records x num_periods) or EzCS.simulation.SimulatedPopulation
        Simulated logarithmic spectra.
    pool : EzCS.database.CandidatePool
        Candidate records.
    target : EzCS.target.TargetStatistics
        Target spectrum.
    is_scaled : bool, optional
        True if amplitude scaling is allowed.
        The default is True.
    max_scale_factor : float, optional
        The maximum allowable scale factor.
        The default is 4.

    Returns
    -------
    selection : Selection
        Initial set of records.
    """

    sim_spec = getattr(simulated, 'spectra', simulated)
    sample_big = pool.sample_big
    num_records = sim_spec.shape[0]
    if len(pool) < num_records:
        raise PoolExhaustedError(f'There are not enough records ({len(pool)}) which satisfy the given record '
                                 f'selection criteria to select {num_records} records. '
                                 f'Please broaden your selection criteria.')

    rec_id = np.zeros(num_records, dtype=int)
    final_scale_factors = np.ones(num_records)
    sample_small = np.zeros((num_records, sample_big.shape[1]))
    used = np.zeros(len(pool), dtype=bool)

    for i in range(num_records):
        scale_factors = compute_scale_factors(sample_big, target, is_scaled, sim_spec[i, :])
        mask = admissible(scale_factors, max_scale_factor, is_scaled) & ~used
        if not np.any(mask):
            raise PoolExhaustedError(f'No admissible record is left for simulated spectrum {i}')

        error = np.full(len(pool), np.inf)
        error[mask] = np.sum((sample_big[mask, :] + np.log(scale_factors[mask, None]) - sim_spec[i, :]) ** 2, axis=1)
        rec_id[i] = int(np.argmin(error))
        used[rec_id[i]] = True

        final_scale_factors[i] = scale_factors[rec_id[i]]
        # Save the selected spectra
        sample_small[i, :] = sample_big[rec_id[i], :] + np.log(final_scale_factors[i])

    return Selection(rec_id, final_scale_factors, sample_small)
