"""
Bucket: two-level partial sums over a caller-owned numeric sequence.

The flat sequence is split into ROWS logical rows of COLS values. The
bucket keeps one sum per row and the cumulative sums over those rows, so
that "first index where the running total reaches t" costs a binary
search over ROWS + 1 values plus a scan of one row.

Lazy update protocol:
  1. Caller changes backing values in place
  2. update_row(r) for each row touched (marks the dirty range)
  3. incremental_refresh() repairs only the dirty span + one shift
  4. find_upper_bound(t) / sample()

Author: Carmen Esteban
"""

import sys

import numpy as np

from bucketlib import fast as _fast
from bucketlib.config import NOT_FOUND, resolve_checks
from bucketlib.detector import (
    accumulator_dtype, is_numeric_dtype, suggest_shape, unsupported_reason,
    view_without_copy,
)
from bucketlib.errors import DirtyStateError, RowIndexOutOfRange, ValueOutOfRange


def _as_backing_view(backing, copy):
    """Validate backing and return the 1D numpy array the bucket reads."""
    if copy:
        view = np.array(backing)
        if is_numeric_dtype(view.dtype) and not view.dtype.isnative:
            view = view.astype(view.dtype.newbyteorder("="))
    else:
        view = view_without_copy(backing)
        if view is None:
            raise TypeError(
                f"{type(backing).__name__} does not expose the buffer protocol; "
                f"pass a numpy array, array.array or memoryview, or use copy=True")

    reason = unsupported_reason(view.dtype)
    if reason is not None:
        raise TypeError(f"Backing {reason}")
    if view.ndim != 1:
        raise ValueError(f"Backing must be one-dimensional, got shape {view.shape}")
    return view


def _check_shape(name, value):
    if isinstance(value, (bool, np.bool_)) or not isinstance(value, (int, np.integer)):
        raise ValueError(f"{name} must be a positive integer, got {value!r}")
    if value <= 0:
        raise ValueError(f"{name} must be a positive integer, got {value}")
    return int(value)


class Bucket:
    """
    Row sums and cumulative row sums over a borrowed numeric sequence.

    The bucket never copies, owns or resizes the backing (unless copy=True).
    It must stay alive, in place and at the same length for as long as the
    bucket is used. Values are assumed non-negative; this is not enforced.

    Parameters
    ----------
    rows : int
        Number of logical rows (ROWS).
    cols : int
        Values per row (COLS). rows * cols must be >= len(backing).
    backing : numpy.ndarray, array.array, memoryview
        Flat numeric values, viewed without copying.
    checks : bool or None
        Raise RowIndexOutOfRange / ValueOutOfRange on violated
        preconditions. None uses bucketlib.config.CHECKS_ENABLED. Fixed for
        the lifetime of the bucket.
    copy : bool
        Defensive-copy mode: take a private copy of backing (required for
        plain lists). Mutate it afterwards through ``bucket.backing``.
    verbose : bool
        Print shape and mode at construction.

    Examples
    --------
    >>> data = np.array([0.1, 0.2, 0.3, 0.4, 0.5, 0.6, 0.7, 0.8, 0.9])
    >>> b = Bucket(3, 3, data)
    >>> b.get_cumsums()
    array([0. , 0.6, 2.1, 4.5])
    >>> b.find_upper_bound(0.7)
    3
    >>> data[0] = 1.0
    >>> b.update_row(0)
    >>> b.incremental_refresh()
    >>> b.total
    5.4
    """

    def __init__(self, rows, cols, backing, checks=None, copy=False, verbose=False):
        self._rows = _check_shape("rows", rows)
        self._cols = _check_shape("cols", cols)
        self._data = _as_backing_view(backing, copy)

        # Always enforced, independent of the checks switch
        if self._data.size > self._rows * self._cols:
            raise ValueError(
                f"Backing length {self._data.size} exceeds "
                f"rows * cols = {self._rows * self._cols}")

        self._checks = resolve_checks(checks)
        self._owns_copy = bool(copy)

        acc = accumulator_dtype(self._data.dtype)
        self._sums = np.zeros(self._rows, dtype=acc)
        self._cum_sums = np.zeros(self._rows + 1, dtype=acc)

        self.update_all_rows()
        self.full_refresh()

        if verbose:
            mode = "checked" if self._checks else "unchecked"
            print(f"  [bucket] {self._rows:,} x {self._cols:,} over "
                  f"{self._data.size:,} {self._data.dtype} values, {mode}, "
                  f"total={self.total}")
            sys.stdout.flush()

    @classmethod
    def auto(cls, backing, checks=None, copy=False, verbose=False):
        """Build a bucket with the shape from suggest_shape(len(backing))."""
        view = _as_backing_view(backing, copy)
        rows, cols = suggest_shape(view.size)
        # view already holds the copy, if any
        return cls(rows, cols, view, checks=checks, copy=False, verbose=verbose)

    # ------- accessors -------

    @property
    def rows(self):
        return self._rows

    @property
    def cols(self):
        return self._cols

    @property
    def size(self):
        """Logical size ROWS * COLS, not the backing length."""
        return self._rows * self._cols

    @property
    def length(self):
        """Real backing length N."""
        return int(self._data.size)

    @property
    def backing(self):
        """The numpy view the bucket reads (the private copy if copy=True)."""
        return self._data

    @property
    def dtype(self):
        return self._data.dtype

    @property
    def checks(self):
        return self._checks

    @property
    def min_row_affected(self):
        """First row updated since the last refresh (ROWS when clean)."""
        return self._min_row

    @property
    def max_row_affected(self):
        """Last row updated since the last refresh (0 when clean)."""
        return self._max_row

    @property
    def dirty_range(self):
        return self._min_row, self._max_row

    @property
    def is_dirty(self):
        return self._min_row <= self._max_row

    @property
    def total(self):
        """Sum of the whole (padded) backing, valid when clean."""
        return self._cum_sums[-1].item()

    def get_sums(self):
        """Snapshot of the per-row sums."""
        return self._sums.copy()

    def get_cumsums(self):
        """Snapshot of the cumulative row sums (length ROWS + 1)."""
        return self._cum_sums.copy()

    def dump(self):
        """Cumulative sums as comma separated text, for diagnostics."""
        return "".join(f"{v}," for v in self._cum_sums.tolist())

    # ------- row aggregator -------

    def _mark(self, row):
        if row < self._min_row:
            self._min_row = row
        if row > self._max_row:
            self._max_row = row

    def _check_row(self, row):
        if not self._checks:
            return
        # floats and bools index numpy arrays badly or not at all
        if (isinstance(row, (bool, np.bool_))
                or not isinstance(row, (int, np.integer))
                or not 0 <= row < self._rows):
            raise RowIndexOutOfRange(row, self._rows)

    def update_row(self, row):
        """
        Recompute the sum of one row and add it to the dirty range.

        Parameters
        ----------
        row : int
            Row index in [0, rows).

        Raises
        ------
        RowIndexOutOfRange
            If checks are enabled and row is out of range. Nothing is
            modified in that case.
        """
        self._check_row(row)
        self._sums[row] = _fast.row_sum(self._data, row, self._cols)
        self._mark(row)

    def update_all_rows(self):
        """Recompute every row sum. Use when changes are not localized."""
        _fast.all_row_sums(self._data, self._sums, self._cols)
        self._min_row = 0
        self._max_row = self._rows - 1

    def update_rows(self, rows):
        """update_row for each row in an iterable.

        In checked mode all rows are validated before any is updated.
        """
        rows = list(rows)
        for row in rows:
            self._check_row(row)
        for row in rows:
            self._sums[row] = _fast.row_sum(self._data, row, self._cols)
            self._mark(row)

    def update_row_of_index(self, index):
        """Update the row holding backing index ``index``; return that row."""
        row = index // self._cols
        self.update_row(row)
        return row

    # ------- cumulative layer -------

    def _clear(self):
        self._min_row = self._rows
        self._max_row = 0

    def full_refresh(self):
        """Recompute all cumulative sums from the row sums. Always correct."""
        _fast.full_cumsum(self._sums, self._cum_sums)
        self._clear()

    def incremental_refresh(self):
        """
        Repair the cumulative sums for the dirty rows only.

        Cheaper than full_refresh() when few rows changed: the dirty span
        is recomputed and every later entry is shifted by one scalar.

        The caller must guarantee that no row outside the dirty range
        changed since the previous refresh, i.e. every modified row went
        through update_row(). This is not verified.
        """
        if self.is_dirty:
            _fast.refresh_cumsum(self._sums, self._cum_sums,
                                 self._min_row, self._max_row)
        self._clear()

    def refresh(self, full=False):
        """Bring a dirty bucket back to clean; no-op when already clean."""
        if not self.is_dirty:
            return
        if full:
            self.full_refresh()
        else:
            self.incremental_refresh()

    def apply_row_change(self, row):
        """
        Eager single-row update: recompute one row and shift all later
        cumulative sums right away, without touching the dirty range.

        Only valid on a clean bucket.

        Raises
        ------
        RowIndexOutOfRange
            If checks are enabled and row is out of range.
        DirtyStateError
            If checks are enabled and rows are pending a refresh.
        """
        self._check_row(row)
        if self._checks and self.is_dirty:
            raise DirtyStateError(self._min_row, self._max_row)
        old = self._sums[row]
        self._sums[row] = _fast.row_sum(self._data, row, self._cols)
        _fast.shift_cumsum(self._cum_sums, row, self._sums[row] - old)

    # ------- query engine -------

    def _check_value(self, threshold):
        if not self._checks:
            return
        if not threshold > 0:
            raise ValueOutOfRange(threshold, self.total, "below first element")
        if not threshold < self._cum_sums[-1]:
            raise ValueOutOfRange(threshold, self.total, "at or beyond total")

    def find_upper_bound(self, threshold):
        """
        Index where the running total of the backing first reaches threshold.

        Parameters
        ----------
        threshold : float or int
            Target value, 0 < threshold < total.

        Returns
        -------
        int
            Smallest i with sum(backing[:i + 1]) >= threshold, or NOT_FOUND
            when the row scan runs out (stale sums or negative values).

        Raises
        ------
        ValueOutOfRange
            If checks are enabled and threshold is outside (0, total).
        """
        self._check_value(threshold)
        return int(_fast.find_upper_bound(
            self._data, self._cum_sums, self._cols, threshold))

    def find_row(self, threshold):
        """Row whose cumulative span contains threshold."""
        self._check_value(threshold)
        return int(_fast.find_row(self._cum_sums, threshold))

    @staticmethod
    def is_valid_index(index):
        """True unless index is the NOT_FOUND sentinel."""
        return index != NOT_FOUND

    def sample(self, rng=None, size=None):
        """
        Inverse-CDF sampling: draw indices with probability proportional to
        their backing value.

        Parameters
        ----------
        rng : numpy.random.Generator or int, optional
            Generator or seed passed to numpy.random.default_rng.
        size : int, optional
            Number of draws. None returns a single int.

        Returns
        -------
        int or numpy.ndarray of int64
        """
        total = self.total
        if not total > 0:
            raise ValueError(f"Cannot sample, total is {total}")
        rng = np.random.default_rng(rng)

        n = 1 if size is None else int(size)
        thresholds = rng.random(n) * total
        # Keep draws inside the open interval (0, total)
        bad = (thresholds <= 0) | (thresholds >= total)
        while bad.any():
            thresholds[bad] = rng.random(int(bad.sum())) * total
            bad = (thresholds <= 0) | (thresholds >= total)

        # Index i owns the thresholds in (prefix[i - 1], prefix[i]]
        out = _fast.find_upper_bounds(self._data, self._cum_sums,
                                      self._cols, thresholds)
        if size is None:
            return int(out[0])
        return out

    # ------- diagnostics -------

    def memory_bytes(self):
        """Memory of the bucket's own arrays (the backing is not counted)."""
        return self._sums.nbytes + self._cum_sums.nbytes

    def info(self):
        """Report of shape, state and memory."""
        return {
            "shape": (self._rows, self._cols),
            "length": self.length,
            "padding": self.size - self.length,
            "dtype": str(self._data.dtype),
            "accumulator": str(self._sums.dtype),
            "checks": self._checks,
            "copy": self._owns_copy,
            "dirty_range": self.dirty_range,
            "total": self.total,
            "memory_bytes": self.memory_bytes(),
        }

    def __repr__(self):
        mode = "checked" if self._checks else "unchecked"
        state = "dirty" if self.is_dirty else "clean"
        return (f"Bucket(rows={self._rows:,}, cols={self._cols:,}, "
                f"length={self.length:,}, dtype={self._data.dtype}, "
                f"{mode}, {state})")
