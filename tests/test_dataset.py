import numpy as np
import pandas as pd
import pytest

from ctrboot import (CampaignDataset, CampaignObservation, DivisionError,
                     ValidationError, log_impression_weights)


def test_observation_defaults_to_unit_weight():
    obs = CampaignObservation(3, 10)
    assert obs.weight == 1.0
    assert obs.ratio == pytest.approx(0.3)


def test_observation_allows_clicks_above_impressions():
    obs = CampaignObservation(12, 10)
    assert obs.ratio == pytest.approx(1.2)


@pytest.mark.parametrize("clicks, impressions, weight", [
    (-1, 10, 1.0),
    (1, -10, 1.0),
    (1.5, 10, 1.0),
    (1, 10, -0.5),
    (1, 10, float('nan')),
])
def test_observation_rejects_invalid_values(clicks, impressions, weight):
    with pytest.raises(ValidationError):
        CampaignObservation(clicks, impressions, weight)


def test_observation_is_immutable():
    obs = CampaignObservation(1, 10)
    with pytest.raises(AttributeError):
        obs.clicks = 2


def test_empty_dataset_is_rejected():
    with pytest.raises(ValidationError):
        CampaignDataset([])


def test_create_accepts_zero_impressions():
    ds = CampaignDataset.create([CampaignObservation(5, 0), CampaignObservation(1, 10)])
    assert ds.size() == 2
    assert not ds.has_weights
    with pytest.raises(DivisionError):
        ds.ratios()


def test_weights_default_to_one():
    ds = CampaignDataset.from_records([(1, 10), (2, 20)])
    np.testing.assert_array_equal(ds.weights(), [1.0, 1.0])


def test_from_records_with_weights():
    ds = CampaignDataset.from_records([(1, 10, 2.0), (2, 20, 0.5)])
    assert ds.has_weights
    np.testing.assert_array_equal(ds.weights(), [2.0, 0.5])


def test_from_records_rejects_bad_arity():
    with pytest.raises(ValidationError):
        CampaignDataset.from_records([(1,)])


def test_sample_repeats_indices_and_keeps_references():
    ds = CampaignDataset.from_records([(1, 10), (2, 20), (3, 30)])
    sub = ds.sample([2, 2, 0])
    assert sub.size() == 3
    np.testing.assert_array_equal(sub.clicks, [3, 3, 1])
    assert sub[0] is ds[2]
    assert ds.size() == 3


@pytest.mark.parametrize("indices", [[0, 3], [-1], [5, 0]])
def test_sample_out_of_range(indices):
    ds = CampaignDataset.from_records([(1, 10), (2, 20), (3, 30)])
    with pytest.raises(IndexError):
        ds.sample(indices)


def test_views_are_read_only():
    ds = CampaignDataset.from_records([(1, 10), (2, 20)])
    with pytest.raises(ValueError):
        ds.clicks[0] = 5
    with pytest.raises(ValueError):
        ds.weights()[0] = 5.0


def test_from_dataframe_round_trip():
    df = pd.DataFrame({'c': [1, 4], 'n': [10, 40], 'w': [1.0, 3.0]})
    ds = CampaignDataset.from_dataframe(df, clicks='c', impressions='n', weight='w')
    assert ds.has_weights
    frame = ds.to_frame()
    assert list(frame.columns) == ['clicks', 'impressions', 'weight']
    np.testing.assert_array_equal(frame['weight'].to_numpy(), [1.0, 3.0])


def test_from_dataframe_missing_column():
    df = pd.DataFrame({'clicks': [1]})
    with pytest.raises(ValidationError, match='impressions'):
        CampaignDataset.from_dataframe(df)


def test_from_arrays_length_mismatch():
    with pytest.raises(ValidationError):
        CampaignDataset.from_arrays([1, 2], [10])


def test_log_impression_weights():
    ds = CampaignDataset.from_records([(0, 0), (1, 99)])
    w = log_impression_weights(ds)
    assert w[0] == 0.0
    assert w[1] == pytest.approx(np.log(100))


@pytest.mark.parametrize("records, expected", [
    ([(1, 10), (2, 20)], False),
    ([(1, 10, 1.0), (2, 20, 1.0)], False),
    ([(1, 10, 1.0), (2, 20, 2.0)], True),
])
def test_has_weights_means_non_unit_weights(records, expected):
    ds = CampaignDataset.from_records(records)
    assert ds.has_weights is expected
    assert CampaignDataset.create(ds.observations).has_weights is expected
    assert ds.sample([1]).has_weights is (ds[1].weight != 1.0)


def test_normalized_weights_scale_to_largest():
    ds = CampaignDataset.from_records([(1, 10, 1e308), (2, 20, 5e307)])
    np.testing.assert_allclose(ds.normalized_weights(), [1.0, 0.5])
    zeros = CampaignDataset.from_records([(1, 10, 0.0)])
    np.testing.assert_array_equal(zeros.normalized_weights(), [0.0])
