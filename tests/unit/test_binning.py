import pytest

from ruinsim.analysis import DistributionBinner


@pytest.fixture
def binner():
    return DistributionBinner()


@pytest.mark.parametrize("bins", [1, 3, 20])
def test_counts_sum_to_input_length(binner, bins):
    values = [0.0, 1.5, 2.25, 7.0, 7.0, 9.9, 10.0, 3.3]
    assert sum(binner.bin(values, bins)) == len(values)


def test_linear_bins_with_max_in_last_bin(binner):
    values = list(range(11))
    assert binner.bin(values, 5) == [2, 2, 2, 2, 3]


def test_extremes_only(binner):
    assert binner.bin([0, 10], 5) == [1, 0, 0, 0, 1]


def test_degenerate_all_in_first_bin(binner):
    assert binner.bin([4.0] * 6, 4) == [6, 0, 0, 0]


def test_empty_input(binner):
    assert binner.bin([], 3) == [0, 0, 0]
    histogram = binner.histogram([])
    assert histogram.total == 0
    assert histogram.min_value == 0.0


def test_default_bin_count():
    assert len(DistributionBinner(bin_count=8).bin([1, 2, 3])) == 8


def test_histogram_edges(binner):
    histogram = binner.histogram([2.0, 4.0, 12.0], 5)

    assert histogram.min_value == 2.0
    assert histogram.max_value == 12.0
    assert histogram.bin_width == pytest.approx(2.0)
    assert histogram.bin_edges() == pytest.approx([2, 4, 6, 8, 10, 12])
    assert histogram.counts == [1, 1, 0, 0, 1]


def test_rejects_zero_bins(binner):
    with pytest.raises(ValueError):
        DistributionBinner(bin_count=0)
    with pytest.raises(ValueError):
        binner.bin([1.0], 0)


def test_infinite_values_keep_count_law(binner):
    values = [0.0, 5.0, 10.0, float("inf"), float("-inf")]
    counts = binner.bin(values, 5)

    assert sum(counts) == len(values)
    assert counts[0] == 2
    assert counts[-1] == 2


def test_histogram_range_ignores_infinity(binner):
    histogram = binner.histogram([0.0, float("inf"), 4.0], 2)

    assert histogram.min_value == 0.0
    assert histogram.max_value == 4.0
    assert histogram.counts == [1, 2]


def test_only_infinite_values(binner):
    assert binner.bin([float("inf")] * 3, 4) == [0, 0, 0, 3]
