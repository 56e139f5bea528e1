"""
Ground motion model adapter based on OpenQuake hazardlib
"""

# Import python libraries
import difflib
import numpy as np
from openquake.hazardlib import gsim, imt
from openquake.hazardlib.contexts import RuptureContext, get_mean_stds
from .exceptions import ConfigurationError
from .target import baker_jayaram_correlation, rotd100_ratio

CORRELATION_MODELS = {
    'baker_jayaram': baker_jayaram_correlation,
}


def estimate_z1pt0(vs30, gmpe=''):
    """
    Details
    -------
    Estimates the depth to Vs=1 km/sec (m) from vs30 when the basin depth is unknown.

    Parameters
    ----------
    vs30 : float
        Average shear-wave velocity of the site (m/s).
    gmpe : str, optional
        Name of the ground motion model, Chiou and Youngs models use their own relationship.
        The default is ''.

    Returns
    -------
    z1pt0 : float
        Depth to Vs=1 km/sec (m).
    """

    if 'ChiouYoungs' in gmpe:
        return float(np.exp(28.5 - 3.82 / 8 * np.log(vs30 ** 8 + 378.7 ** 8)))
    if vs30 < 180:
        return float(np.exp(6.745))
    if vs30 <= 500:
        return float(np.exp(6.745 - 1.35 * np.log(vs30 / 180)))
    return float(np.exp(5.394 - 4.48 * np.log(vs30 / 500)))


def rupture_parameters(mag, rake, rjb, dip=None, hypo_depth=None, upper_sd=0.0, lower_sd=500.0, fhw=0):
    """
    Details
    -------
    Derives the rupture geometry and source-to-site distances which are not defined by the scenario.
    Dip, hypocentral depth, fault width, ztor, azimuth and distances based on extended sources
    are defined according to the relationships included in Kaklamanos et al. 2011.

    References
    ----------
    Kaklamanos J, Baise LG, Boore DM. (2011) Estimating unknown input parameters
    when implementing the NGA ground-motion prediction equations in engineering
    practice. Earthquake Spectra 27: 1219-1235.
    https://doi.org/10.1193/1.3650372.

    Parameters
    ----------
    mag : float
        Earthquake magnitude.
    rake : float
        Fault rake.
    rjb : float
        Closest distance to surface projection of coseismic rupture (km).
    dip : float, optional
        Fault dip, estimated from rake if None.
    hypo_depth : float, optional
        Hypocentral depth (km), estimated from magnitude if None.
    upper_sd : float, optional
        Upper seismogenic depth (km). The default is 0.
    lower_sd : float, optional
        Lower seismogenic depth (km). The default is 500.
    fhw : int, optional
        Hanging-wall factor, 1 for site on down-dip side of top of rupture; 0 otherwise.
        The default is 0.

    Returns
    -------
    params : dict
        dip, hypo_depth, width, ztor, rjb, rx, ry0 and rrup values.
    """

    strike_slip = (-45 <= rake <= 45) or (rake >= 135) or (rake <= -135)

    if hypo_depth is None:
        hypo_depth = 5.63 + 0.68 * mag if strike_slip else 11.24 - 0.2 * mag
    if dip is None:
        dip = 90.0 if strike_slip else (40.0 if rake > 0 else 50.0)

    # Rupture width and depth to top of coseismic rupture (km)
    if strike_slip:
        width = 10.0 ** (-0.76 + 0.27 * mag)
    elif rake > 0:
        width = 10.0 ** (-1.61 + 0.41 * mag)
    else:
        width = 10.0 ** (-1.14 + 0.35 * mag)
    sin_dip = np.sin(np.radians(dip))
    cos_dip = np.cos(np.radians(dip))
    vertical_width = width * sin_dip
    ztor = max(hypo_depth - 0.6 * vertical_width, upper_sd)
    if ztor + vertical_width > lower_sd:
        vertical_width = lower_sd - ztor
        width = vertical_width / sin_dip

    # Source-to-site azimuth
    azimuth = 50.0 if fhw == 1 else -50.0

    if rjb == 0:
        rx = 0.5 * width * cos_dip
    elif dip == 90:
        rx = rjb * np.sin(np.radians(azimuth))
    elif 0 <= azimuth <= 180 and azimuth != 90:
        tan_az = np.tan(np.radians(azimuth))
        if rjb * np.abs(tan_az) <= width * cos_dip:
            rx = rjb * np.abs(tan_az)
        else:
            rx = rjb * tan_az * np.cos(np.radians(azimuth) - np.arcsin(width * cos_dip * np.cos(np.radians(azimuth)) / rjb))
    else:
        rx = rjb * np.sin(np.radians(azimuth))

    ry0 = np.abs(rx / np.tan(np.radians(azimuth)))

    if dip == 90:
        rrup = np.sqrt(rjb ** 2 + ztor ** 2)
    else:
        tan_dip = np.tan(np.radians(dip))
        if rx < ztor * tan_dip:
            rrup_prime = np.sqrt(rx ** 2 + ztor ** 2)
        elif rx <= ztor * tan_dip + width / cos_dip:
            rrup_prime = rx * sin_dip + ztor * cos_dip
        else:
            rrup_prime = np.sqrt((rx - width * cos_dip) ** 2 + (ztor + width * sin_dip) ** 2)
        rrup = np.sqrt(rrup_prime ** 2 + ry0 ** 2)

    return {'dip': float(dip), 'hypo_depth': float(hypo_depth), 'width': float(width), 'ztor': float(ztor),
            'rjb': float(rjb), 'rx': float(rx), 'ry0': float(ry0), 'rrup': float(rrup)}


def get_supported_period_range(oq_gmpe):
    """
    Details
    -------
    Retrieves the SA period range supported by an OpenQuake gmpe instance from its coefficient tables.

    Returns
    -------
    period_range : tuple or None
        (lower, upper) periods, None if the range is unknown.
    """

    lowers, uppers = [], []
    for label in difflib.get_close_matches('COEFFS', dir(oq_gmpe)):
        table = getattr(oq_gmpe, label, None)
        sa_coeffs = getattr(table, 'sa_coeffs', None)
        if sa_coeffs:
            sa_periods = sorted(key.period for key in sa_coeffs)
            lowers.append(sa_periods[0])
            uppers.append(sa_periods[-1])
    if not lowers:
        return None
    return max(lowers), min(uppers)


class OpenQuakeModel:
    """
    Details
    -------
    Evaluates an OpenQuake ground motion model for a rupture scenario.

    Parameters
    ----------
    gmpe : str, optional
        GMPE model (see OpenQuake library).
        The default is 'BooreEtAl2014'.
    correlation_model : str or callable, optional
        Inter-period correlation model, "baker_jayaram" or a function (period1, period2) -> rho.
        The default is 'baker_jayaram'.
    spectrum_definition : str, optional
        Horizontal component definition of the target. For 'RotD100' the gmpe values are
        modified using RotD100/RotD50 ratios, unless the gmpe is already defined for RotD100.
        The default is 'RotD50'.
    **gmpe_kwargs
        Keyword arguments passed to the gmpe, e.g. for its regional version.
        The region of the rupture scenario is not passed to the gmpe.
    """

    def __init__(self, gmpe='BooreEtAl2014', correlation_model='baker_jayaram', spectrum_definition='RotD50',
                 **gmpe_kwargs):
        try:  # this is smth like self.bgmpe = gsim.boore_2014.BooreEtAl2014()
            self.bgmpe = gsim.get_available_gsims()[gmpe](**gmpe_kwargs)
        except KeyError:
            raise ConfigurationError(f'{gmpe} is not a valid gmpe name')

        if callable(correlation_model):
            self._correlation = correlation_model
        elif correlation_model in CORRELATION_MODELS:
            self._correlation = CORRELATION_MODELS[correlation_model]
        else:
            raise ConfigurationError('Not a valid correlation function')

        self.gmpe = gmpe
        self.spectrum_definition = spectrum_definition
        self.period_range = get_supported_period_range(self.bgmpe)
        self._contexts = {}

    @property
    def _rotd100_adjustment(self):
        component = self.bgmpe.DEFINED_FOR_INTENSITY_MEASURE_COMPONENT
        return self.spectrum_definition == 'RotD100' and 'RotD100' not in str(component)

    def get_context(self, scenario):
        """
        Details
        -------
        Sets the rupture, distance and site parameters of the scenario in a single context.

        Parameters
        ----------
        scenario : EzCS.config.RuptureScenario
            Rupture scenario.

        Returns
        -------
        ctx : openquake.hazardlib.contexts.RuptureContext
            Context used to evaluate the gmpe.
        """

        if scenario in self._contexts:
            return self._contexts[scenario]

        params = rupture_parameters(scenario.magnitude, scenario.rake, scenario.distance)
        z1pt0 = scenario.z1pt0 if scenario.z1pt0 is not None else estimate_z1pt0(scenario.vs30, self.gmpe)

        ctx = RuptureContext()
        ctx.sids = np.array([0])
        ctx.mag = float(scenario.magnitude)
        ctx.rake = scenario.rake
        ctx.occurrence_rate = 0.0
        for key in ('dip', 'width', 'ztor', 'hypo_depth'):
            setattr(ctx, key, params[key])
        for key in ('rjb', 'rrup', 'rx', 'ry0'):
            setattr(ctx, key, np.array([params[key]]))
        ctx.vs30 = np.array([float(scenario.vs30)])
        ctx.vs30measured = np.array([True])
        ctx.z1pt0 = np.array([z1pt0])
        ctx.z2pt5 = np.array([519 + 3.595 * z1pt0]) / 1000  # km

        self._contexts[scenario] = ctx
        return ctx

    def get_mean_and_std(self, period, scenario):
        """
        Details
        -------
        Logarithmic mean and total standard deviation of Sa(period) for the scenario.
        """

        ctx = self.get_context(scenario)
        mean_stds = get_mean_stds(self.bgmpe, ctx, [imt.SA(period=float(period))])
        mu_ln = float(mean_stds[0][0][0])
        sigma_ln = float(mean_stds[1][0][0])

        # modify spectral targets if RotD100 values were specified
        if self._rotd100_adjustment:
            mu_ratio, sigma_ratio = rotd100_ratio(period)
            mu_ln = mu_ln + float(np.log(mu_ratio))
            sigma_ln = float(np.sqrt(sigma_ln ** 2 + sigma_ratio ** 2))

        return mu_ln, sigma_ln

    def get_correlation(self, period1, period2, scenario=None):
        """Inter-period correlation of logarithmic spectral accelerations."""
        return self._correlation(period1, period2)


def check_gmpe_attributes(gmpe):
    """
    Details
    -------
    Prints the attributes of a ground motion prediction equation (gmpe) available in OpenQuake.

    Parameters
    ----------
    gmpe : str
        gmpe name for which attributes going to be checked

    Returns
    -------
    None.
    """

    try:
        oq_gmpe = gsim.get_available_gsims()[gmpe]()
    except KeyError:
        raise ConfigurationError(f'{gmpe} is not a valid gmpe name')

    print(f"GMPE name: {gmpe}")
    print(f"Supported tectonic region: {oq_gmpe.DEFINED_FOR_TECTONIC_REGION_TYPE.name}")
    print(f"Supported standard deviation: {', '.join([std for std in oq_gmpe.DEFINED_FOR_STANDARD_DEVIATION_TYPES])}")
    print(f"Supported intensity measure: "
          f"{', '.join([im.__name__ for im in oq_gmpe.DEFINED_FOR_INTENSITY_MEASURE_TYPES])}")
    print(f"Supported intensity measure component: {oq_gmpe.DEFINED_FOR_INTENSITY_MEASURE_COMPONENT.name}")
    period_range = get_supported_period_range(oq_gmpe)
    if period_range is None:
        print("The supported SA period range is unknown")
    else:
        print(f"Supported SA period range: {period_range[0]} - {period_range[1]}")
    print(f"Required distance parameters: {', '.join([dist for dist in oq_gmpe.REQUIRES_DISTANCES])}")
    print(f"Required rupture parameters: {', '.join([rup for rup in oq_gmpe.REQUIRES_RUPTURE_PARAMETERS])}")
    print(f"Required site parameters: {', '.join([site for site in oq_gmpe.REQUIRES_SITES_PARAMETERS])}")
