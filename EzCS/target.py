"""
Target spectrum computation (conditional and unconditional)
"""

# Import python libraries
from dataclasses import dataclass
from typing import Optional
import numpy as np
from scipy import interpolate
from .exceptions import ConfigurationError, ScenarioError


@dataclass(frozen=True)
class TargetStatistics:
    """
    Details
    -------
    Target distribution of logarithmic spectral accelerations.

    Parameters
    ----------
    periods : numpy.ndarray (1-D)
        Periods of the target spectrum [sec].
    mu_ln : numpy.ndarray (1-D)
        Logarithmic mean of the target spectrum.
    sigma_ln : numpy.ndarray (1-D)
        Logarithmic standard deviation of the target spectrum.
    cov : numpy.ndarray (2-D)
        Covariance matrix of the logarithmic spectral accelerations.
    ind_t1 : int or None
        Index of the conditioning period in periods, None for unconditional targets.
    epsilon : float or None
        Epsilon value used for conditioning.
    sa_cond : float or None
        Spectral acceleration at the conditioning period [g].
    """

    periods: np.ndarray
    mu_ln: np.ndarray
    sigma_ln: np.ndarray
    cov: np.ndarray
    ind_t1: Optional[int] = None
    epsilon: Optional[float] = None
    sa_cond: Optional[float] = None

    @property
    def is_conditioned(self):
        return self.ind_t1 is not None

    @property
    def t_cond(self):
        return None if self.ind_t1 is None else float(self.periods[self.ind_t1])

    @property
    def std_mask(self):
        """Periods contributing to the standard deviation error, T1 is excluded for conditional targets."""
        mask = np.ones(len(self.periods), dtype=bool)
        if self.is_conditioned:
            mask[self.ind_t1] = False
        return mask

    @property
    def variance_mask(self):
        """Periods with non-zero target variance."""
        return self.sigma_ln > 0

    @property
    def correlation(self):
        """Correlation matrix, zero rows and columns for periods without variance."""
        mask = self.variance_mask
        rho = np.zeros_like(self.cov)
        scale = np.outer(self.sigma_ln[mask], self.sigma_ln[mask])
        rho[np.ix_(mask, mask)] = self.cov[np.ix_(mask, mask)] / scale
        return rho


def make_period_grid(t_min, t_max, num_periods=30, t_cond=None):
    """
    Details
    -------
    Computes an array of log-spaced periods between t_min and t_max.
    If a conditioning period is given, the closest period is replaced by it
    so that the conditioning period is a member of the grid.

    Parameters
    ----------
    t_min : float
        Smallest spectral period of interest.
    t_max : float
        Largest spectral period of interest.
    num_periods : int, optional
        Number of periods.
        The default is 30.
    t_cond : float, optional
        Conditioning period.
        The default is None.

    Returns
    -------
    periods : numpy.ndarray
        Period grid.
    ind_t1 : int or None
        Index of the conditioning period.
    """

    periods = np.logspace(np.log10(t_min), np.log10(t_max), num_periods)
    if t_cond is None:
        return periods, None

    ind_t1 = int(np.argmin(np.abs(np.log(periods) - np.log(t_cond))))
    periods[ind_t1] = t_cond

    return periods, ind_t1


def baker_jayaram_correlation(period1, period2):
    """
    Details
    -------
    Valid for T = 0.01-10sec

    References
    ----------
    Baker JW, Jayaram N. Correlation of Spectral Acceleration Values from NGA Ground Motion Models.
    Earthquake Spectra 2008; 24(1): 299–317. DOI: 10.1193/1.2857544.

    Parameters
    ----------
    period1 : float
        First period
    period2 : float
        Second period

    Returns
    -------
    rho: float
         Predicted correlation coefficient
    """

    if period1 == period2:
        return 1.0

    t_min = min(period1, period2)
    t_max = max(period1, period2)

    c1 = 1.0 - np.cos(np.pi / 2.0 - np.log(t_max / max(t_min, 0.109)) * 0.366)
    if t_max < 0.2:
        c2 = 1.0 - 0.105 * (1.0 - 1.0 / (1.0 + np.exp(100.0 * t_max - 5.0))) * (t_max - t_min) / (t_max - 0.0099)
    else:
        c2 = 0
    c3 = c2 if t_max < 0.109 else c1
    c4 = c1 + 0.5 * (np.sqrt(c3) - c3) * (1.0 + np.cos(np.pi * t_min / 0.109))

    if t_max <= 0.109:
        return float(c2)
    if t_min > 0.109:
        return float(c1)
    if t_max < 0.2:
        return float(min(c2, c4))
    return float(c4)


def rotd100_ratio(periods):
    """
    Details
    -------
    Computes Sa_RotD100/Sa_RotD50 ratios.

    References
    ----------
    Shahi, S. K., and Baker, J. W. (2014). "NGA-West2 models for ground-
    motion directionality." Earthquake Spectra, 30(3), 1285-1300.

    Parameters
    ----------
    periods : float or numpy.ndarray
        Period(s) of interest (sec)

    Returns
    -------
    ratio : float or numpy.ndarray
         geometric mean of Sa_RotD100/Sa_RotD50
    sigma : float or numpy.ndarray
        standard deviation of log(Sa_RotD100/Sa_RotD50)
    """

    # Table 1 of Shahi and Baker (2014)
    periods_orig = np.array([0.01, 0.02, 0.03, 0.05, 0.075, 0.1, 0.15, 0.2, 0.25, 0.3, 0.4, 0.5, 0.75,
                             1.0, 1.5, 2.0, 3.0, 4.0, 5.0, 7.5, 10.0])
    mu_ratios_orig = np.array([1.192438059, 1.191246217, 1.187677833, 1.186490749, 1.187677833, 1.187677833,
                               1.199614194, 1.205627285, 1.216526905, 1.218962394, 1.228753204, 1.228753204,
                               1.237384651, 1.241102379, 1.242344102, 1.243587068, 1.247323431, 1.259859239,
                               1.264908769, 1.285310084, 1.294338819])

    log_periods = np.log(np.clip(periods, periods_orig[0], periods_orig[-1]))
    mu_ratio = interpolate.interp1d(np.log(periods_orig), mu_ratios_orig)(log_periods)
    sigma = np.full_like(mu_ratio, 0.08, dtype=float)

    return mu_ratio, sigma


def _check_periods(periods, model):
    period_range = getattr(model, 'period_range', None)
    if period_range is None:
        return
    lower, upper = period_range
    if np.any(periods < lower) or np.any(periods > upper):
        raise ScenarioError(f'Requested periods [{periods.min():.3f} - {periods.max():.3f}] are outside the range '
                            f'supported by the ground motion model [{lower} - {upper}]')


def compute_target(periods, scenario, model, t_cond=None, use_variance=True):
    """
    Details
    -------
    Creates the target spectrum (conditional or unconditional).

    References
    ----------
    Baker JW. Conditional Mean Spectrum: Tool for Ground-Motion Selection.
    Journal of Structural Engineering 2011; 137(3): 322–331.
    DOI: 10.1061/(ASCE)ST.1943-541X.0000215.

    Parameters
    ----------
    periods : numpy.ndarray
        Period grid of the target spectrum [sec].
    scenario : EzCS.config.RuptureScenario
        Rupture scenario. For conditional targets either scenario.sa_cond (epsilon is back computed)
        or scenario.epsilon must be given.
    model : object
        Ground motion model providing get_mean_and_std(period, scenario),
        get_correlation(period1, period2, scenario) and period_range.
    t_cond : float, optional
        Conditioning period. If None the target is an unconditional spectrum.
        The default is None.
    use_variance : bool, optional
        False not to use variance in target spectrum.
        The default is True.

    Returns
    -------
    target : TargetStatistics
        Target mean, standard deviation and covariance of logarithmic spectral accelerations.
    """

    periods = np.asarray(periods, dtype=float)
    _check_periods(periods, model)

    ind_t1 = None
    if t_cond is not None:
        matches = np.where(np.isclose(periods, t_cond, rtol=1e-10, atol=0))[0]
        if len(matches) == 0:
            raise ScenarioError(f'Conditioning period {t_cond} is not present in the period grid')
        ind_t1 = int(matches[0])

    # gmpe spectral values
    mu_lnSaT = np.zeros(len(periods))
    sigma_lnSaT = np.zeros(len(periods))
    for i, period in enumerate(periods):
        mu_lnSaT[i], sigma_lnSaT[i] = model.get_mean_and_std(period, scenario)
    if not (np.all(np.isfinite(mu_lnSaT)) and np.all(np.isfinite(sigma_lnSaT))) or np.any(sigma_lnSaT < 0):
        raise ScenarioError('The ground motion model returned invalid values for the scenario')

    # inter-period correlation coefficients, symmetric by construction
    rho = np.eye(len(periods))
    for i in range(len(periods)):
        for j in range(i + 1, len(periods)):
            rho[i, j] = rho[j, i] = model.get_correlation(periods[i], periods[j], scenario)

    epsilon = None
    sa_cond = None
    if ind_t1 is None:
        mu_ln = mu_lnSaT
        cov = rho * np.outer(sigma_lnSaT, sigma_lnSaT)
    else:
        if scenario.sa_cond is not None:
            if scenario.sa_cond <= 0:
                raise ScenarioError('Target spectral acceleration at the conditioning period must be positive')
            # Back calculate epsilon
            epsilon = (np.log(scenario.sa_cond) - mu_lnSaT[ind_t1]) / sigma_lnSaT[ind_t1]
        elif scenario.epsilon is not None:
            epsilon = scenario.epsilon
        else:
            raise ConfigurationError('Either epsilon or sa_cond must be defined for a conditional target')
        if not np.isfinite(epsilon):
            raise ScenarioError('Epsilon cannot be computed for the conditioning period')

        # Get the value of the ln(CMS), conditioned on T_star
        rho_t1 = rho[:, ind_t1]
        mu_ln = mu_lnSaT + rho_t1 * epsilon * sigma_lnSaT
        cov = (rho - np.outer(rho_t1, rho_t1)) * np.outer(sigma_lnSaT, sigma_lnSaT)
        sa_cond = float(np.exp(mu_ln[ind_t1]))

    # over-write covariance matrix with zeros if no variance is desired in the ground motion selection
    if not use_variance:
        cov = np.zeros_like(cov)

    cov = 0.5 * (cov + cov.T)
    variances = np.clip(np.diagonal(cov), 0, None)
    cov[np.diag_indices_from(cov)] = variances
    sigma_ln = np.sqrt(variances)

    return TargetStatistics(periods=periods, mu_ln=mu_ln, sigma_ln=sigma_ln, cov=cov, ind_t1=ind_t1,
                            epsilon=None if epsilon is None else float(epsilon), sa_cond=sa_cond)
