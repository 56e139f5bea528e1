import dataclasses

import numpy as np
import pytest

from EzCS.database import CandidatePool
from EzCS.matching import admissible, find_ground_motions
from EzCS.metrics import count_outliers, ks_statistic, score, sse
from EzCS.optimization import evaluate_candidates, optimize_ground_motions
from EzCS.simulation import simulate_spectra


@pytest.fixture
def problem(conditional_target, pool_factory, config):
    pool = pool_factory(conditional_target, 50)
    simulated = simulate_spectra(conditional_target, config.num_records, 5, seed_value=3)
    return conditional_target, pool, simulated


def initial_selection(target, pool, simulated, config):
    return find_ground_motions(simulated, pool, target, config.is_scaled, config.max_scale_factor)


def test_sse_evaluation(problem, config):
    target, pool, _ = problem
    sample_small = pool.sample_big[:4, :]
    candidates = np.arange(4, 50)
    log_scale_factors = np.full(50, np.log(1.5))
    errors = evaluate_candidates(sample_small, pool.sample_big, log_scale_factors, candidates, target, config)
    expected = [sse(np.vstack([sample_small, pool.sample_big[j] + np.log(1.5)]), target, config.error_weights)
                for j in candidates]
    np.testing.assert_allclose(errors, expected, rtol=1e-10)

    skew_config = dataclasses.replace(config, optimize_skewness=True)
    errors = evaluate_candidates(sample_small, pool.sample_big, log_scale_factors, candidates, target, skew_config)
    expected = [sse(np.vstack([sample_small, pool.sample_big[j] + np.log(1.5)]), target, config.error_weights, 0.3)
                for j in candidates]
    np.testing.assert_allclose(errors, expected, rtol=1e-10)


def test_ks_evaluation(problem, config):
    target, pool, _ = problem
    ks_config = dataclasses.replace(config, opt_type='KS', ks_aggregate='max')
    sample_small = pool.sample_big[:4, :]
    candidates = np.arange(4, 50)
    errors = evaluate_candidates(sample_small, pool.sample_big, np.zeros(50), candidates, target, ks_config)
    expected = [ks_statistic(np.vstack([sample_small, pool.sample_big[j]]), target, 'max') for j in candidates]
    np.testing.assert_allclose(errors, expected)


@pytest.mark.parametrize('opt_type', ['SSE', 'KS'])
def test_penalty(problem, config, opt_type):
    target, pool, _ = problem
    sample_small = pool.sample_big[:4, :]
    candidates = np.arange(4, 50)
    log_scale_factors = np.full(50, np.log(3.5))
    plain = dataclasses.replace(config, opt_type=opt_type)
    penalized = dataclasses.replace(config, opt_type=opt_type, penalty=2.0)
    difference = (evaluate_candidates(sample_small, pool.sample_big, log_scale_factors, candidates, target, penalized)
                  - evaluate_candidates(sample_small, pool.sample_big, log_scale_factors, candidates, target, plain))
    outliers = count_outliers(pool.sample_big[candidates] + np.log(3.5), target)
    assert np.any(outliers > 0)
    np.testing.assert_allclose(difference, 2.0 * outliers, atol=1e-9)


def test_optimization_never_worsens_the_selection(problem, config):
    target, pool, simulated = problem
    selection = initial_selection(target, pool, simulated, config)
    initial_error = sse(selection.sample, target, config.error_weights)

    optimize_ground_motions(target, selection, pool, config)

    assert selection.optimized
    assert len(selection.history) == config.num_greedy_loops + 1
    assert selection.history[0] == pytest.approx(initial_error)
    assert np.all(np.diff(selection.history) <= 1e-9)
    assert sse(selection.sample, target, config.error_weights) <= initial_error + 1e-9
    assert len(set(selection.rec_id)) == config.num_records
    assert np.all(admissible(selection.scale_factors, config.max_scale_factor, config.is_scaled))
    np.testing.assert_allclose(selection.sample,
                               pool.sample_big[selection.rec_id] + np.log(selection.scale_factors)[:, None])


def test_ks_optimization(problem, config):
    target, pool, simulated = problem
    ks_config = dataclasses.replace(config, opt_type='KS')
    selection = initial_selection(target, pool, simulated, ks_config)
    optimize_ground_motions(target, selection, pool, ks_config)
    assert np.all(np.diff(selection.history) <= 1e-12)
    assert selection.history[-1] == pytest.approx(ks_statistic(selection.sample, target))
    assert len(set(selection.rec_id)) == config.num_records


def test_optimization_is_skipped_within_tolerance(problem, config, capsys):
    target, pool, simulated = problem
    loose = dataclasses.replace(config, tolerance=1e6)
    selection = initial_selection(target, pool, simulated, loose)
    rec_id = selection.rec_id.copy()
    scale_factors = selection.scale_factors.copy()

    optimize_ground_motions(target, selection, pool, loose)

    np.testing.assert_array_equal(selection.rec_id, rec_id)
    np.testing.assert_array_equal(selection.scale_factors, scale_factors)
    assert not selection.optimized
    assert len(selection.history) == 1
    assert 'skipped' in capsys.readouterr().out


def test_parallel_evaluation_matches_serial(problem, config):
    target, pool, simulated = problem
    serial = initial_selection(target, pool, simulated, config)
    parallel = serial.copy()
    optimize_ground_motions(target, serial, pool, config)
    optimize_ground_motions(target, parallel, pool, dataclasses.replace(config, n_jobs=2))
    np.testing.assert_array_equal(parallel.rec_id, serial.rec_id)
    np.testing.assert_array_equal(parallel.scale_factors, serial.scale_factors)
    np.testing.assert_allclose(parallel.history, serial.history)


def test_unconditional_optimization(unconditional_target, pool_factory, config):
    target = unconditional_target
    unconditional = dataclasses.replace(config, is_conditioned=False, max_scale_factor=5.0)
    pool = pool_factory(target, 60)
    simulated = simulate_spectra(target, unconditional.num_records, 5, seed_value=5)
    selection = initial_selection(target, pool, simulated, unconditional)
    optimize_ground_motions(target, selection, pool, unconditional, simulated)
    assert np.all(np.diff(selection.history) <= 1e-9)
    assert np.all(admissible(selection.scale_factors, 5.0, True))
    assert len(set(selection.rec_id)) == unconditional.num_records


@pytest.mark.parametrize('opt_type', ['SSE', 'KS'])
@pytest.mark.parametrize('seed', range(30, 40))
def test_penalized_optimization_never_worsens_the_selection(conditional_target, config, opt_type, seed):
    target = conditional_target
    rng = np.random.default_rng(seed)
    # wide pool, many candidates are outliers
    pool = CandidatePool(target.mu_ln + 2.5 * target.sigma_ln * rng.standard_normal((60, len(target.periods))))
    penalized = dataclasses.replace(config, opt_type=opt_type, penalty=5.0, num_greedy_loops=1)
    simulated = simulate_spectra(target, config.num_records, 5, seed_value=seed)
    selection = initial_selection(target, pool, simulated, penalized)
    before = score(selection.sample, target, config.error_weights, opt_type)

    optimize_ground_motions(target, selection, pool, penalized)

    assert score(selection.sample, target, config.error_weights, opt_type) <= before + 1e-9
    assert np.all(np.diff(selection.history) <= 1e-9)


def test_skewness_of_constant_periods(conditional_target, config):
    target = conditional_target
    constant = np.full((6, len(target.periods)), 0.1)
    skew_config = dataclasses.replace(config, optimize_skewness=True)
    errors = evaluate_candidates(constant[:4], constant, np.zeros(6), np.arange(4, 6), target, skew_config)
    expected = sse(constant[:5], target, config.error_weights, 0.3)
    np.testing.assert_allclose(errors, [expected, expected], rtol=1e-10)
