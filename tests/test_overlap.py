import pytest

pd = pytest.importorskip("pandas")
np = pytest.importorskip("numpy")

from scanplot.overlap import distance_matrix, label_visibility, suppressed_labels


def test_shorter_fixation_is_suppressed():
    points = [(50, 50), (55, 52.5), (450, 250)]
    assert suppressed_labels(points, [200, 400, 600]) == {0}
    assert suppressed_labels(points, [400, 200, 600]) == {1}


def test_equal_durations_suppress_later_index():
    assert suppressed_labels([(0, 0), (10, 0)], [300, 300]) == {1}


def test_distance_at_threshold_is_not_overlap():
    points = [(0, 0), (50, 0)]
    assert suppressed_labels(points, [100, 200], threshold=50) == frozenset()
    assert suppressed_labels(points, [100, 200], threshold=50.001) == {0}


def test_zero_threshold_disables_suppression():
    # Coincident points have distance 0, which is not < 0
    points = [(10, 10), (10, 10), (12, 10)]
    assert suppressed_labels(points, [100, 200, 300], threshold=0) == frozenset()
    assert suppressed_labels(points, [100, 200, 300], threshold=-5) == frozenset()


def test_suppression_is_union_of_pairs():
    # 0-1 and 1-2 are close, 0-2 are not. 1 is shorter than both neighbours.
    points = [(0, 0), (40, 0), (80, 0)]
    assert suppressed_labels(points, [500, 100, 300]) == {1}
    # 1 loses to 2 but wins over 0; no transitivity means 0 stays hidden
    # even though its only suppressor is itself hidden.
    assert suppressed_labels(points, [100, 200, 300]) == {0, 1}


def test_single_and_empty_sequences():
    assert suppressed_labels([(1, 1)], [100]) == frozenset()
    assert suppressed_labels(np.empty((0, 2)), []) == frozenset()
    assert distance_matrix([(1, 1)]).shape == (1, 1)


def test_distance_matrix_is_euclidean():
    dist = distance_matrix([(0, 0), (3, 4)])
    assert dist[0, 1] == pytest.approx(5.0)
    assert dist[1, 0] == pytest.approx(5.0)


def test_label_visibility():
    df = pd.DataFrame({
        'img_x': [50.0, 55.0, 450.0],
        'img_y': [50.0, 52.5, 250.0],
        'fixDuration': [200, 400, 600],
    })
    assert label_visibility(df).tolist() == [False, True, True]
    assert label_visibility(df, threshold=0).tolist() == [True, True, True]


def test_mismatched_lengths():
    with pytest.raises(ValueError):
        suppressed_labels([(0, 0), (1, 1)], [100])
