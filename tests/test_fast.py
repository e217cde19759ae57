"""Tests for the Numba kernels and the sequential reference."""
import numpy as np
import pytest

from bucketlib import fast, NOT_FOUND, Bucket
from bucketlib.reference import sequential_upper_bound, SequentialPrefixSum


# ============================================================
# Row aggregation kernels
# ============================================================

class TestRowKernels:

    def test_row_sum(self):
        data = np.arange(10, dtype=np.float64)
        assert fast.row_sum(data, 0, 4) == 0 + 1 + 2 + 3
        assert fast.row_sum(data, 1, 4) == 4 + 5 + 6 + 7

    def test_row_sum_padding(self):
        data = np.arange(10, dtype=np.int64)
        assert fast.row_sum(data, 2, 4) == 8 + 9
        assert fast.row_sum(data, 3, 4) == 0

    def test_all_row_sums(self):
        data = np.arange(1, 8, dtype=np.int64)
        sums = np.zeros(3, dtype=np.int64)
        fast.all_row_sums(data, sums, 3)
        assert np.array_equal(sums, [6, 15, 7])


# ============================================================
# Cumulative kernels
# ============================================================

class TestCumulativeKernels:

    def test_full_cumsum(self):
        sums = np.array([6, 15, 24], dtype=np.int64)
        cum = np.full(4, -1, dtype=np.int64)
        fast.full_cumsum(sums, cum)
        assert np.array_equal(cum, [0, 6, 21, 45])

    def test_refresh_middle_span(self):
        sums = np.array([1, 2, 3, 4, 5], dtype=np.int64)
        cum = np.zeros(6, dtype=np.int64)
        fast.full_cumsum(sums, cum)

        sums[1] = 10
        sums[3] = 0
        fast.refresh_cumsum(sums, cum, 1, 3)

        expected = np.zeros(6, dtype=np.int64)
        fast.full_cumsum(sums, expected)
        assert np.array_equal(cum, expected)

    def test_refresh_last_row(self):
        sums = np.array([1.0, 2.0, 3.0])
        cum = np.zeros(4)
        fast.full_cumsum(sums, cum)
        sums[2] = 0.5
        fast.refresh_cumsum(sums, cum, 2, 2)
        assert np.allclose(cum, [0.0, 1.0, 3.0, 3.5])

    def test_refresh_clean_sentinel_is_noop(self):
        sums = np.array([1, 2, 3], dtype=np.int64)
        cum = np.zeros(4, dtype=np.int64)
        fast.full_cumsum(sums, cum)
        before = cum.copy()
        fast.refresh_cumsum(sums, cum, 3, 0)
        assert np.array_equal(cum, before)

    def test_shift_cumsum(self):
        cum = np.array([0, 1, 3, 6], dtype=np.int64)
        fast.shift_cumsum(cum, 1, np.int64(4))
        assert np.array_equal(cum, [0, 1, 7, 10])


# ============================================================
# Query kernels
# ============================================================

class TestQueryKernels:

    def test_find_upper_bound(self):
        data = np.array([0.1, 0.2, 0.3, 0.4, 0.5, 0.6, 0.7, 0.8, 0.9])
        cum = np.array([0.0, 0.6, 2.1, 4.5])
        assert fast.find_upper_bound(data, cum, 3, 0.1) == 0
        assert fast.find_upper_bound(data, cum, 3, 0.7) == 3
        assert fast.find_upper_bound(data, cum, 3, 2.2) == 6

    def test_scan_exhausted(self):
        data = np.ones(4)
        cum = np.array([0.0, 10.0, 20.0])  # inconsistent on purpose
        assert fast.scan_row(data, cum, 0, 2, 5.0) == NOT_FOUND
        assert fast.find_upper_bound(data, cum, 2, 5.0) == NOT_FOUND

    def test_scan_rounding_shortfall(self):
        data = np.array([0.1, 0.2, 0.3, 0.0])
        walked = 0.0
        for v in data:
            walked += v
        # row sum one ulp above what the walk reaches
        cum = np.array([0.0, np.nextafter(walked, 1.0)])
        assert fast.scan_row(data, cum, 0, 4, cum[1]) == 2
        assert fast.find_upper_bound(data, cum, 4, cum[1]) == 2

    def test_beyond_total_is_sentinel(self):
        data = np.ones(4)
        cum = np.array([0.0, 2.0, 4.0])
        assert fast.find_upper_bound(data, cum, 2, 5.0) == NOT_FOUND

    def test_find_row(self):
        cum = np.array([0, 2, 2, 5], dtype=np.int64)
        assert fast.find_row(cum, 1) == 0
        assert fast.find_row(cum, 2) == 0
        assert fast.find_row(cum, 3) == 2

    def test_find_upper_bounds(self):
        data = np.array([1, 0, 3, 6], dtype=np.int64)
        cum = np.array([0, 1, 10], dtype=np.int64)
        out = fast.find_upper_bounds(data, cum, 2, np.array([0.5, 1.0, 1.5, 4.0, 9.9]))
        assert out.dtype == np.int64
        assert out.tolist() == [0, 0, 2, 2, 3]

    def test_warmup(self):
        fast.warmup()


# ============================================================
# Sequential reference
# ============================================================

class TestReference:

    def test_sequential_upper_bound(self):
        data = [0.1, 0.2, 0.3, 0.4]
        assert sequential_upper_bound(data, 0.1) == 0
        assert sequential_upper_bound(data, 0.35) == 2
        assert sequential_upper_bound(data, 5.0) == NOT_FOUND

    def test_prefix_sum_matches_bucket(self):
        rng = np.random.default_rng(4)
        data = rng.integers(0, 20, size=120)
        seq = SequentialPrefixSum(data)
        b = Bucket(11, 11, data)
        assert seq.total == b.total
        for t in rng.uniform(0, b.total, size=200):
            if t > 0:
                assert seq.find_upper_bound(t) == b.find_upper_bound(t)

    def test_prefix_sum_refresh(self):
        data = np.ones(6)
        seq = SequentialPrefixSum(data)
        data[0] = 5.0
        seq.refresh()
        assert seq.total == pytest.approx(10.0)
        assert seq.find_upper_bound(5.5) == 1
        assert seq.find_upper_bound(11.0) == NOT_FOUND


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
