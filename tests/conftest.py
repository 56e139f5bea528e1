import matplotlib

matplotlib.use('Agg')

import numpy as np
import pytest

from EzCS.config import RuptureScenario, SelectionConfig
from EzCS.database import CandidatePool
from EzCS.target import baker_jayaram_correlation, compute_target, make_period_grid


class AnalyticModel:
    """Smooth closed-form ground motion model used in place of a real gmpe."""

    period_range = (0.01, 10.0)

    def __init__(self, sigma_scale=1.0):
        self.sigma_scale = sigma_scale
        self.calls = 0

    def get_mean_and_std(self, period, scenario):
        self.calls += 1
        mu_ln = (np.log(0.4) - 0.7 * np.log(max(period, 0.2) / 0.2) + 0.5 * (scenario.magnitude - 6.5)
                 - 0.01 * scenario.distance - 0.3 * np.log(scenario.vs30 / 500))
        sigma_ln = self.sigma_scale * (0.6 + 0.05 * np.log(period))
        return float(mu_ln), float(sigma_ln)

    def get_correlation(self, period1, period2, scenario=None):
        return baker_jayaram_correlation(period1, period2)


def make_pool(target, num_records=50, shift=0.0, seed=1):
    """Candidate spectra drawn around the target, with a constant log shift."""
    rng = np.random.default_rng(seed)
    z = rng.standard_normal((num_records, len(target.periods)))
    sigma = np.where(target.sigma_ln > 0, target.sigma_ln, 0.0)
    return CandidatePool(target.mu_ln + sigma * z + shift)


@pytest.fixture
def model():
    return AnalyticModel()


@pytest.fixture
def scenario():
    return RuptureScenario(magnitude=7.0, distance=10.0, vs30=500.0, epsilon=1.5)


@pytest.fixture
def grid():
    return make_period_grid(0.1, 2.0, 10, t_cond=0.5)


@pytest.fixture
def conditional_target(grid, scenario, model):
    periods, _ = grid
    return compute_target(periods, scenario, model, t_cond=0.5)


@pytest.fixture
def unconditional_target(scenario, model):
    periods, _ = make_period_grid(0.1, 2.0, 10)
    return compute_target(periods, scenario, model)


@pytest.fixture
def config():
    return SelectionConfig(num_records=5, t_cond=0.5, period_range=(0.1, 2.0), num_periods=10, seed_value=7,
                           num_simulations=10, tolerance=0.0)


@pytest.fixture
def fake_database():
    """Small database in the layout of the meta data files."""
    rng = np.random.default_rng(3)
    num_records = 40
    periods = np.array([0.0, 0.05, 0.1, 0.2, 0.5, 1.0, 2.0, 3.0, 5.0])
    shape = 0.5 * np.exp(-0.5 * np.log(np.maximum(periods, 0.05) / 0.2) ** 2)
    sa_1 = shape * np.exp(0.5 * rng.standard_normal((num_records, len(periods))))
    sa_2 = shape * np.exp(0.5 * rng.standard_normal((num_records, len(periods))))
    return {
        'Name': 'NGA_W2',
        'Periods': periods,
        'Sa_1': sa_1,
        'Sa_2': sa_2,
        'Sa_RotD50': np.sqrt(sa_1 * sa_2),
        'Sa_RotD100': np.maximum(sa_1, sa_2),
        'soil_Vs30': np.linspace(200, 900, num_records),
        'magnitude': np.linspace(5.0, 8.0, num_records),
        'Rjb': np.linspace(0, 100, num_records),
        'mechanism': np.tile([0, 1, 2, 3], num_records // 4),
        'EQID': np.arange(num_records) // 2,
        'NGA_num': np.arange(1, num_records + 1),
        'Filename_1': np.array([f'RSN{i + 1}_H1.AT2' for i in range(num_records)]),
        'Filename_2': np.array([f'RSN{i + 1}_H2.AT2' for i in range(num_records)]),
    }


@pytest.fixture
def pool_factory():
    return make_pool
