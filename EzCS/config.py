"""
Selection settings and rupture scenario definitions
"""

# Import python libraries
from dataclasses import dataclass
from typing import Optional, Tuple
import numpy as np
from .exceptions import ConfigurationError

SPECTRUM_DEFINITIONS = {'Arbitrary': 1, 'GeoMean': 2, 'SRSS': 2, 'ArithmeticMean': 2, 'RotD50': 2, 'RotD100': 2}
FAULT_TYPES = {0: 'unspecified', 1: 'strike-slip', 2: 'normal', 3: 'reverse'}
REGIONS = {0: 'global', 1: 'california', 2: 'japan', 3: 'china_turkey', 4: 'italy'}


@dataclass(frozen=True)
class RuptureScenario:
    """
    Details
    -------
    Earthquake rupture scenario for which the target spectrum is evaluated.

    Parameters
    ----------
    magnitude : float
        Moment magnitude of the earthquake.
    distance : float
        Closest distance to surface projection of the fault rupture, Rjb (km).
    vs30 : float
        Average shear-wave velocity in the top 30 m of the soil (m/s).
    z1pt0 : float, optional
        Basin depth, depth to Vs=1 km/sec (m). None if unknown.
        The default is None.
    region : int, optional
        0 for global, 1 for California, 2 for Japan, 3 for China or Turkey, 4 for Italy.
        It is informational for OpenQuake models, their regional versions are chosen by gmpe name
        or gmpe keyword arguments of EzCS.gmm.OpenQuakeModel.
        The default is 0.
    fault_type : int, optional
        0 for unspecified fault, 1 for strike-slip fault, 2 for normal fault, 3 for reverse fault.
        The default is 1.
    epsilon : float, optional
        Epsilon value at the conditioning period (conditional selection).
        The default is None.
    sa_cond : float, optional
        Target spectral acceleration at the conditioning period [g]. If given, epsilon
        is back-computed from it and the epsilon value above is ignored.
        The default is None.
    """

    magnitude: float
    distance: float
    vs30: float
    z1pt0: Optional[float] = None
    region: int = 0
    fault_type: int = 1
    epsilon: Optional[float] = None
    sa_cond: Optional[float] = None

    def __post_init__(self):
        if self.fault_type not in FAULT_TYPES:
            raise ConfigurationError(f'Unknown fault type {self.fault_type}, use one of {list(FAULT_TYPES)}')
        if self.region not in REGIONS:
            raise ConfigurationError(f'Unknown region {self.region}, use one of {list(REGIONS)}')
        if self.vs30 <= 0:
            raise ConfigurationError('vs30 must be positive')
        if self.distance < 0:
            raise ConfigurationError('distance cannot be negative')

    @property
    def rake(self):
        """Representative rake angle of the fault type."""
        return {0: 0.0, 1: 0.0, 2: -90.0, 3: 90.0}[self.fault_type]


@dataclass(frozen=True)
class SelectionConfig:
    """
    Details
    -------
    Immutable collection of record selection settings. It is passed explicitly to every stage
    of the selection, and validated before any computation begins.

    Parameters
    ----------
    database : str, optional
        Database to use: NGA_W2, ESM_2018. Its meta data file is read from EzCS/Meta_Data
        unless the database or a candidate pool is given to ConditionalSpectrum.
        The default is 'NGA_W2'.
    is_conditioned : bool, optional
        True for conditional spectrum based selection, False for unconditional selection.
        The default is True.
    num_components : int, optional
        1 for single-component selection and arbitrary component sigma.
        2 for two-component selection and average component sigma.
        If None it is determined based on spectrum_definition.
        The default is None.
    spectrum_definition : str, optional
        The spectra definition of horizontal component, 'Arbitrary', 'GeoMean', 'SRSS',
        'ArithmeticMean', 'RotD50', 'RotD100'.
        The default is 'RotD50'.
    num_records : int, optional
        Number of ground motions to be selected.
        The default is 30.
    t_cond : float, optional
        Conditioning period, T1 [sec]. Ignored for unconditional selection.
        The default is 0.5.
    period_range : tuple, optional
        Smallest and largest spectral period of interest [sec].
        The default is (0.1, 10).
    num_periods : int, optional
        Number of log-spaced periods in the period range.
        The default is 30.
    is_scaled : bool, optional
        True to allow amplitude scaling of records.
        The default is True.
    max_scale_factor : float, optional
        The maximum allowable scale factor.
        The default is 4.
    tolerance : float, optional
        Tolerable percent error to skip optimization (only used for SSE optimization).
        The default is 10.
    opt_type : str, optional
        'SSE' to use the sum of squared errors approach to optimize the selected spectra,
        'KS' to use D-statistic calculations from the KS-test.
        The default is 'SSE'.
    ks_aggregate : str, optional
        'sum' or 'max', aggregation of D-statistics across periods.
        The default is 'sum'.
    penalty : float, optional
        > 0 to penalize selected spectra more than 3 sigma from the target at any period,
        0 otherwise.
        The default is 0.
    error_weights : tuple, optional
        Weights for error in mean, standard deviation and skewness.
        The default is (1.0, 2.0, 0.3).
    optimize_skewness : bool, optional
        True to include the skewness term in the greedy optimization objective.
        The default is False.
    num_greedy_loops : int, optional
        Number of loops of optimization to perform.
        The default is 2.
    use_variance : bool, optional
        False to use a target variance of 0.
        The default is True.
    vs30_limits, mag_limits, rjb_limits : tuple, optional
        Limiting values on Vs30, magnitude and Rjb of records.
        The default is None.
    mech_limits : tuple, optional
        Allowed fault mechanisms of records.
        The default is None.
    seed_value : int, optional
        For repeatability. For a particular seed value not equal to zero, the same simulated
        spectra are generated. If None or zero, the simulation is randomized.
        The default is None.
    num_simulations : int, optional
        Number of trials of the spectral simulation step.
        The default is 20.
    sampling : str, optional
        'LHS' for Latin Hypercube Sampling, 'MCS' for Monte Carlo Sampling.
        The default is 'LHS'.
    correlation_weight : float, optional
        Weight for the error in inter-period correlation while choosing the best simulation trial.
        The default is 0.
    n_jobs : int, optional
        Number of threads used to evaluate candidate records during optimization.
        The default is 1.
    """

    database: str = 'NGA_W2'
    is_conditioned: bool = True
    num_components: Optional[int] = None
    spectrum_definition: str = 'RotD50'
    num_records: int = 30
    t_cond: float = 0.5
    period_range: Tuple[float, float] = (0.1, 10.0)
    num_periods: int = 30
    is_scaled: bool = True
    max_scale_factor: float = 4.0
    tolerance: float = 10.0
    opt_type: str = 'SSE'
    ks_aggregate: str = 'sum'
    penalty: float = 0.0
    error_weights: Tuple[float, float, float] = (1.0, 2.0, 0.3)
    optimize_skewness: bool = False
    num_greedy_loops: int = 2
    use_variance: bool = True
    vs30_limits: Optional[Tuple[float, float]] = None
    mag_limits: Optional[Tuple[float, float]] = None
    rjb_limits: Optional[Tuple[float, float]] = None
    mech_limits: Optional[tuple] = None
    seed_value: Optional[int] = None
    num_simulations: int = 20
    sampling: str = 'LHS'
    correlation_weight: float = 0.0
    n_jobs: int = 1

    def __post_init__(self):
        if self.spectrum_definition not in SPECTRUM_DEFINITIONS:
            raise ConfigurationError(f'Unexpected Sa definition {self.spectrum_definition}, '
                                     f'use one of {list(SPECTRUM_DEFINITIONS)}')
        if self.num_components is None:
            object.__setattr__(self, 'num_components', SPECTRUM_DEFINITIONS[self.spectrum_definition])
        elif self.num_components not in (1, 2):
            raise ConfigurationError('Selection can only be performed for one or two components at the moment')
        elif self.num_components != SPECTRUM_DEFINITIONS[self.spectrum_definition]:
            raise ConfigurationError(f'{self.num_components} component(s) cannot be used with '
                                     f'spectrum definition {self.spectrum_definition}')

        if self.num_records < 1:
            raise ConfigurationError('At least one record must be selected')
        if self.num_periods < 2:
            raise ConfigurationError('At least two periods are required')
        t_min, t_max = self.period_range
        if not 0 < t_min < t_max:
            raise ConfigurationError(f'Invalid period range {self.period_range}')
        if self.is_conditioned and not t_min <= self.t_cond <= t_max:
            raise ConfigurationError(f'Conditioning period {self.t_cond} is outside the period range {self.period_range}')
        if self.max_scale_factor < 1:
            raise ConfigurationError('max_scale_factor must be greater than or equal to 1')
        if len(self.error_weights) != 3 or np.any(np.asarray(self.error_weights) < 0):
            raise ConfigurationError('error_weights must be three non-negative values')
        if self.penalty < 0 or self.tolerance < 0 or self.correlation_weight < 0:
            raise ConfigurationError('penalty, tolerance and correlation_weight cannot be negative')
        if self.opt_type not in ('SSE', 'KS'):
            raise ConfigurationError("opt_type must be 'SSE' or 'KS'")
        if self.ks_aggregate not in ('sum', 'max'):
            raise ConfigurationError("ks_aggregate must be 'sum' or 'max'")
        if self.sampling not in ('LHS', 'MCS'):
            raise ConfigurationError("sampling must be 'LHS' or 'MCS'")
        if self.num_greedy_loops < 0 or self.num_simulations < 1 or self.n_jobs < 1:
            raise ConfigurationError('num_greedy_loops, num_simulations and n_jobs are out of range')
        for name in ('vs30_limits', 'mag_limits', 'rjb_limits'):
            limits = getattr(self, name)
            if limits is not None and len(limits) != 2:
                raise ConfigurationError(f'{name} must contain a lower and an upper bound')

    @property
    def scale_bounds(self):
        """Admissible range of scale factors."""
        if self.is_scaled:
            return 1 / self.max_scale_factor, self.max_scale_factor
        return 1.0, 1.0
