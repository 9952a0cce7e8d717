import pytest

pd = pytest.importorskip("pandas")
np = pytest.importorskip("numpy")

from scanplot.encoding import encode_fixations, fixation_order, rescale_durations
from scanplot.errors import MissingFieldError


def test_rescale_bounds():
    sizes = rescale_durations([250, 120, 900, 300])
    assert sizes.min() == pytest.approx(1.0)
    assert sizes.max() == pytest.approx(10.0)
    assert sizes[1] == pytest.approx(1.0)
    assert sizes[2] == pytest.approx(10.0)


def test_rescale_is_linear():
    assert rescale_durations([200, 400, 600]).tolist() == pytest.approx([1.0, 5.5, 10.0])


def test_rescale_equal_durations_use_midpoint():
    assert rescale_durations([300, 300, 300]).tolist() == [5.5, 5.5, 5.5]
    assert rescale_durations([42]).tolist() == [5.5]


def test_rescale_custom_range():
    assert rescale_durations([0, 10], to=(2, 4)).tolist() == [2.0, 4.0]


def test_fixation_order_follows_sequence():
    assert fixation_order(4).tolist() == [1, 2, 3, 4]


def test_encode_fixations_keeps_row_order(scenario_df):
    # Durations out of order must not re-sort the sequence
    df = scenario_df.assign(fixDuration=[600.0, 200.0, 400.0])
    encoded = encode_fixations(df)
    assert encoded['fix_order'].tolist() == [1, 2, 3]
    assert encoded['fix_size'].tolist() == pytest.approx([10.0, 1.0, 5.5])
    assert encoded['fixX'].tolist() == df['fixX'].tolist()


def test_encode_fixations_requires_duration(scenario_df):
    with pytest.raises(MissingFieldError, match="fixDuration"):
        encode_fixations(scenario_df.drop(columns=['fixDuration']))
