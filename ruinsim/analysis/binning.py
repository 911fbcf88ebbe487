"""
Distribution Binner - Fixed-bin-count histograms over result arrays.
"""
from typing import Optional, Sequence

import numpy as np

from ruinsim.models import DistributionHistogram


def finite_range(values: Sequence[float]) -> tuple[float, float]:
    """Min and max over the finite values; (0.0, 0.0) when there are none."""
    data = np.asarray(values, dtype=float)
    data = data[np.isfinite(data)]
    if data.size == 0:
        return 0.0, 0.0
    return float(data.min()), float(data.max())


class DistributionBinner:
    """
    Builds linear histograms with a fixed number of bins.

    All values equal puts every value in bin 0. The maximum value lands in
    the last bin, so the counts always sum to the number of values. Bins
    span the finite values; +inf is counted in the last bin, -inf and NaN
    in the first.
    """

    def __init__(self, bin_count: int = 20):
        if bin_count < 1:
            raise ValueError(f"bin_count must be >= 1, got {bin_count}")
        self.bin_count = bin_count

    def bin(self, values: Sequence[float], bin_count: Optional[int] = None) -> list[int]:
        bins = self.bin_count if bin_count is None else bin_count
        if bins < 1:
            raise ValueError(f"bin_count must be >= 1, got {bins}")

        data = np.asarray(values, dtype=float)
        if data.size == 0:
            return [0] * bins

        low, high = finite_range(data)
        if low == high:
            counts = [0] * bins
            counts[0] = int(np.count_nonzero(data != np.inf))
            counts[-1] += int(np.count_nonzero(data == np.inf))
            return counts

        width = (high - low) / bins
        finite = np.isfinite(data)
        indices = np.zeros(data.size, dtype=np.int64)
        indices[finite] = np.floor((data[finite] - low) / width).astype(np.int64)
        indices[data == np.inf] = bins - 1
        np.clip(indices, 0, bins - 1, out=indices)
        return np.bincount(indices, minlength=bins).tolist()

    def histogram(
        self,
        values: Sequence[float],
        bin_count: Optional[int] = None,
    ) -> DistributionHistogram:
        bins = self.bin_count if bin_count is None else bin_count
        low, high = finite_range(values)
        return DistributionHistogram(
            bin_count=bins,
            min_value=low,
            max_value=high,
            counts=self.bin(values, bins),
        )
