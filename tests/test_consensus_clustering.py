"""Tests for the consensus clustering engine."""

import numpy as np
import pandas as pd
import pytest
from sklearn.datasets import make_blobs
from sklearn.metrics import adjusted_rand_score

from neatmaps import (
    ConsensusClustering,
    ConsensusKResult,
    ConsensusResult,
    DegenerateResample,
    InvalidInput,
    InvalidParameter,
    consensus_cluster,
)


@pytest.fixture
def data():
    rng = np.random.default_rng(42)
    return rng.normal(size=(20, 5))


@pytest.fixture
def four_groups():
    # Two large groups close together and two small groups far away. Stability
    # jumps most when the two large groups are finally split at k=4.
    rng = np.random.default_rng(0)
    centers = [((0.0, 0.0), 12), ((10.0, 0.0), 12), ((5.0, 30.0), 3), ((5.0, -80.0), 3)]
    return np.vstack([rng.normal(loc=c, scale=0.5, size=(n, 2)) for c, n in centers])


@pytest.fixture
def fitted(data):
    return ConsensusClustering(max_k=4, reps=20, random_state=3).fit(data)


class TestFit:
    def test_one_record_per_k(self, fitted):
        results = fitted.results_

        assert isinstance(results, ConsensusResult)
        assert results.k_values == [2, 3, 4]
        assert len(results) == 3
        assert all(isinstance(results[k], ConsensusKResult) for k in results)

    def test_consensus_matrix_properties(self, fitted):
        for k in fitted.results_:
            M = fitted.results_[k].consensus_matrix

            assert M.shape == (20, 20)
            np.testing.assert_array_equal(np.diag(M), np.ones(20))
            np.testing.assert_array_equal(np.isnan(M), np.isnan(M.T))
            np.testing.assert_allclose(np.nan_to_num(M), np.nan_to_num(M.T))
            defined = M[~np.isnan(M)]
            assert np.all((defined >= 0) & (defined <= 1))

    def test_consensus_matrix_is_read_only(self, fitted):
        with pytest.raises(ValueError):
            fitted.results_[2].consensus_matrix[0, 1] = 0.5

    def test_ecdf_properties(self, fitted):
        for k in fitted.results_:
            F = fitted.results_[k].ecdf
            assert F(-1e-9) == 0.0
            assert F(1.0) == 1.0
            assert np.all(np.diff(F.heights) >= 0)

    def test_labels(self, fitted):
        for k in fitted.results_:
            record = fitted.results_[k]
            assert record.labels.shape == (20,)
            assert set(record.labels) == set(range(1, k + 1))
            assert set(record.consensus_labels) == set(range(1, k + 1))
            assert record.labels[0] == 1

    def test_delta_only_from_second_k(self, fitted):
        results = fitted.results_
        assert results[2].delta is None
        assert results[2].relative_area_change is None
        for k in (3, 4):
            assert 0.0 <= results[k].delta <= 1.0
        assert sorted(results.deltas()) == [3, 4]

    def test_trial_accounting(self, fitted):
        for k in fitted.results_:
            record = fitted.results_[k]
            assert record.n_trials + record.n_skipped == 20
        assert fitted.n_skipped_ == {2: 0, 3: 0, 4: 0}

    def test_get_result(self, fitted):
        assert fitted.get_result(3) is fitted.results_[3]
        with pytest.raises(KeyError):
            fitted.get_result(7)

    def test_get_result_before_fit(self):
        with pytest.raises(ValueError, match="not been fitted"):
            ConsensusClustering().get_result(2)


class TestDeterminism:
    def test_same_seed_same_results(self, data):
        a = ConsensusClustering(max_k=3, reps=15, p_var=0.6, random_state=9).fit_transform(data)
        b = ConsensusClustering(max_k=3, reps=15, p_var=0.6, random_state=9).fit_transform(data)

        for k in a:
            np.testing.assert_array_equal(a[k].consensus_matrix, b[k].consensus_matrix)
            np.testing.assert_array_equal(a[k].labels, b[k].labels)
            assert a[k].cdf_area == b[k].cdf_area

    def test_parallel_matches_sequential(self, data):
        sequential = ConsensusClustering(max_k=3, reps=12, random_state=5, n_jobs=1).fit_transform(data)
        parallel = ConsensusClustering(max_k=3, reps=12, random_state=5, n_jobs=2).fit_transform(data)

        for k in sequential:
            np.testing.assert_array_equal(sequential[k].consensus_matrix, parallel[k].consensus_matrix)
        pd.testing.assert_frame_equal(sequential.summary(), parallel.summary())

    def test_more_reps_never_lose_pairs(self, data):
        few = ConsensusClustering(max_k=2, reps=2, p_net=0.3, random_state=1).fit(data)
        many = ConsensusClustering(max_k=2, reps=10, p_net=0.3, random_state=1).fit(data)

        assert few.accumulators_[2].n_defined_pairs() <= many.accumulators_[2].n_defined_pairs()
        assert many.accumulators_[2].n_defined_pairs() <= 20 * 19 // 2


class TestBoundaries:
    def test_full_proportions(self, data):
        model = ConsensusClustering(max_k=3, reps=5, p_net=1.0, p_var=1.0, random_state=0).fit(data)

        for k, accumulator in model.accumulators_.items():
            assert np.all(accumulator.co_occurrence_ == 5)
            M = model.results_[k].consensus_matrix
            assert set(np.unique(M)) <= {0.0, 1.0}

    def test_k_larger_than_subsample_is_skipped(self):
        X = np.random.default_rng(2).normal(size=(10, 3))
        model = ConsensusClustering(max_k=5, reps=10, p_net=0.3, random_state=0)

        with pytest.warns(UserWarning, match="All 10 repetitions"):
            model.fit(X)

        assert model.n_skipped_ == {2: 0, 3: 0, 4: 10, 5: 10}
        record = model.results_[5]
        assert record.n_trials == 0
        assert np.all(np.isnan(record.consensus_matrix[np.triu_indices(10, k=1)]))
        assert record.ecdf.is_empty
        assert np.isnan(record.delta)
        assert np.isnan(model.results_[4].delta)
        assert set(record.labels) == set(range(1, 6))

    def test_degenerate_subsamples_are_skipped(self):
        rng = np.random.default_rng(4)
        X = rng.uniform(1.0, 9.0, size=(10, 4))
        X[0] = [1.0, 1.0, 1.0, 5.0]
        model = ConsensusClustering(
            max_k=2, reps=30, p_net=1.0, p_var=0.5, dist_method='pearson', random_state=0
        )

        with pytest.warns(UserWarning, match="could not be clustered"):
            model.fit(X)

        record = model.results_[2]
        assert 0 < model.n_skipped_[2] < 30
        assert record.n_trials + record.n_skipped == 30

    def test_degenerate_full_data_raises(self):
        X = np.array([[1.0, 1.0, 1.0], [1.0, 2.0, 3.0], [3.0, 1.0, 2.0], [2.0, 3.0, 1.0]])
        with pytest.raises(DegenerateResample):
            ConsensusClustering(max_k=2, reps=3, dist_method='pearson').fit(X)


def test_delta_peaks_at_true_number_of_groups(four_groups):
    results = consensus_cluster(four_groups, max_k=6, reps=50, p_net=0.9, random_state=7)
    deltas = results.deltas()

    assert deltas[4] > deltas[3]
    assert deltas[4] > deltas[5]


def test_delta_drops_after_true_number_of_groups():
    # Balanced groups: every stable split separates a similar share of pairs,
    # so delta decreases up to the true k and collapses right after it.
    X, y = make_blobs(n_samples=40, centers=4, cluster_std=0.3, random_state=0)
    results = consensus_cluster(X, max_k=6, reps=50)
    deltas = results.deltas()

    assert deltas[4] > 0.1
    assert deltas[5] < 0.5 * deltas[4]
    assert deltas[6] < 0.5 * deltas[4]
    assert adjusted_rand_score(y, results[4].labels) == pytest.approx(1.0)


class TestTables:
    def test_dataframe_input(self, data):
        df = pd.DataFrame(data, index=[f"row{i}" for i in range(20)], columns=list("abcde"))
        results = ConsensusClustering(max_k=3, reps=10, random_state=0).fit_transform(df)

        frame = results.to_frame()
        assert list(frame.columns) == ["k=2", "k=3"]
        assert list(frame.index) == list(df.index)

        summary = results.summary()
        assert list(summary.index) == [2, 3]
        assert list(summary.columns) == [
            'cdf_area', 'delta', 'relative_area_change', 'pac', 'n_trials', 'n_skipped'
        ]
        assert np.isnan(summary.loc[2, 'delta'])
        assert summary.loc[3, 'delta'] == pytest.approx(results[3].delta)

    def test_ecdfs(self, fitted):
        ecdfs = fitted.results_.ecdfs()
        assert sorted(ecdfs) == [2, 3, 4]
        assert ecdfs[2] is fitted.results_[2].ecdf


class TestValidation:
    @pytest.mark.parametrize("params", [
        {'max_k': 1},
        {'max_k': 2.5},
        {'max_k': None},
        {'max_k': float('nan')},
        {'reps': None},
        {'reps': True},
        {'p_net': None},
        {'reps': 0},
        {'p_net': 0.0},
        {'p_var': 1.5},
        {'dist_method': 'cosine'},
        {'link_method': 'ward'},
        {'n_jobs': 0},
    ])
    def test_invalid_parameters(self, params):
        with pytest.raises(InvalidParameter):
            ConsensusClustering(**params)

    def test_max_k_larger_than_rows(self, data):
        with pytest.raises(InvalidParameter, match="max_k"):
            ConsensusClustering(max_k=21, reps=2).fit(data)

    def test_subsample_too_small(self, data):
        with pytest.raises(InvalidParameter):
            ConsensusClustering(max_k=2, reps=2, p_net=0.05).fit(data)

    @pytest.mark.parametrize("X", [
        np.array([[1.0, np.nan], [2.0, 3.0], [4.0, 5.0]]),
        np.array([[1.0, 2.0]]),
        np.array([["a", "b"], ["c", "d"]]),
        np.array([1.0, 2.0, 3.0]),
    ])
    def test_invalid_input(self, X):
        with pytest.raises(InvalidInput):
            ConsensusClustering(max_k=2, reps=2).fit(X)

    def test_params_changed_after_construction_are_checked(self, data):
        model = ConsensusClustering(max_k=3, reps=2)
        model.set_params(p_net=2.0)
        with pytest.raises(InvalidParameter):
            model.fit(data)


def test_consensus_cluster_matches_estimator(data):
    params = dict(max_k=3, reps=8, link_method='complete', dist_method='manhattan', random_state=11)
    from_function = consensus_cluster(data, **params)
    from_estimator = ConsensusClustering(**params).fit_transform(data)

    pd.testing.assert_frame_equal(from_function.to_frame(), from_estimator.to_frame())
    pd.testing.assert_frame_equal(from_function.summary(), from_estimator.summary())
