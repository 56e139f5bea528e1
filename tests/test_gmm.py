import numpy as np
import pytest

pytest.importorskip('openquake.hazardlib')

from EzCS.config import RuptureScenario
from EzCS.exceptions import ConfigurationError
from EzCS.gmm import OpenQuakeModel, estimate_z1pt0, rupture_parameters
from EzCS.target import compute_target, make_period_grid, rotd100_ratio


def test_estimate_z1pt0():
    assert estimate_z1pt0(150.0) == pytest.approx(np.exp(6.745))
    assert estimate_z1pt0(300.0) > estimate_z1pt0(450.0) > estimate_z1pt0(800.0)
    assert estimate_z1pt0(500.0, gmpe='ChiouYoungs2014') == pytest.approx(
        np.exp(28.5 - 3.82 / 8 * np.log(500.0 ** 8 + 378.7 ** 8)))


def test_rupture_parameters_strike_slip():
    params = rupture_parameters(7.0, 0.0, 10.0)
    assert params['dip'] == 90.0
    assert params['hypo_depth'] == pytest.approx(5.63 + 0.68 * 7.0)
    assert params['width'] == pytest.approx(10 ** (-0.76 + 0.27 * 7.0))
    assert params['ztor'] >= 0
    assert params['rrup'] == pytest.approx(np.sqrt(10.0 ** 2 + params['ztor'] ** 2))
    assert params['rx'] == pytest.approx(10.0 * np.sin(np.radians(-50.0)))


def test_rupture_parameters_reverse():
    params = rupture_parameters(6.5, 90.0, 20.0)
    assert params['dip'] == 40.0
    assert params['rrup'] >= params['rjb']
    params = rupture_parameters(6.5, 90.0, 0.0)
    assert params['rx'] == pytest.approx(0.5 * params['width'] * np.cos(np.radians(40.0)))


def test_invalid_model_settings():
    with pytest.raises(ConfigurationError):
        OpenQuakeModel(gmpe='NotAGmpe')
    with pytest.raises(ConfigurationError):
        OpenQuakeModel(correlation_model='unknown')


def test_openquake_model():
    model = OpenQuakeModel(gmpe='BooreEtAl2014')
    scenario = RuptureScenario(magnitude=7.0, distance=10.0, vs30=500.0, epsilon=1.0)
    lower, upper = model.period_range
    assert lower <= 0.1 and upper >= 4.0

    mu_ln, sigma_ln = model.get_mean_and_std(1.0, scenario)
    assert np.isfinite(mu_ln)
    assert sigma_ln > 0
    # larger magnitude, larger amplitude
    bigger = RuptureScenario(magnitude=7.5, distance=10.0, vs30=500.0)
    assert model.get_mean_and_std(1.0, bigger)[0] > mu_ln
    assert model.get_correlation(1.0, 1.0) == 1.0

    rotd100 = OpenQuakeModel(gmpe='BooreEtAl2014', spectrum_definition='RotD100')
    mu_ln_100, sigma_ln_100 = rotd100.get_mean_and_std(1.0, scenario)
    ratio, _ = rotd100_ratio(1.0)
    assert mu_ln_100 == pytest.approx(mu_ln + np.log(ratio))
    assert sigma_ln_100 > sigma_ln


def test_target_from_openquake_model():
    model = OpenQuakeModel(gmpe='BooreEtAl2014')
    scenario = RuptureScenario(magnitude=7.0, distance=10.0, vs30=500.0, epsilon=1.0)
    periods, ind_t1 = make_period_grid(0.1, 4.0, 15, t_cond=1.0)
    target = compute_target(periods, scenario, model, t_cond=1.0)
    assert target.sigma_ln[ind_t1] == 0.0
    assert np.all(np.isfinite(target.mu_ln))


def test_region_is_not_passed_to_openquake_model():
    model = OpenQuakeModel(gmpe='BooreEtAl2014')
    scenario = RuptureScenario(magnitude=7.0, distance=10.0, vs30=500.0)
    japan = RuptureScenario(magnitude=7.0, distance=10.0, vs30=500.0, region=2)
    assert model.get_mean_and_std(1.0, japan) == model.get_mean_and_std(1.0, scenario)
