"""
Bucket Fast: Numba JIT-compiled kernels for the row and cumulative loops.

Every loop that touches O(COLS) backing values or O(ROWS) cumulative sums
lives here. The Bucket class only does bookkeeping around these calls.

All kernels clamp row slices to the real backing length, so rows past the
end of the data read as zeros (implicit padding up to ROWS * COLS).

Author: Carmen Esteban
"""

import numpy as np
from numba import njit

from bucketlib.config import NOT_FOUND

# float64 machine epsilon, the per-addition relative rounding bound
FLOAT_EPS = float(np.finfo(np.float64).eps)


# ============================================================
# Row aggregation
# ============================================================

@njit(cache=True)
def row_sum(data, row, cols):
    """Sum of the zero-padded slice of one row.

    Parameters
    ----------
    data : 1D numpy array
        Backing values.
    row : int
        Row to sum.
    cols : int
        Row width.

    Returns
    -------
    int64 or float64
        Row total.
    """
    n = len(data)
    start = row * cols
    stop = start + cols
    if stop > n:
        stop = n
    total = 0
    for i in range(start, stop):
        total += data[i]
    return total


@njit(cache=True)
def all_row_sums(data, sums, cols):
    """Recompute every entry of sums in place."""
    for row in range(len(sums)):
        sums[row] = row_sum(data, row, cols)


# ============================================================
# Cumulative layer
# ============================================================

@njit(cache=True)
def full_cumsum(sums, cum):
    """Rebuild cum (length rows + 1) from sums with the prefix recurrence."""
    cum[0] = 0
    for row in range(len(sums)):
        cum[row + 1] = cum[row] + sums[row]


@njit(cache=True)
def refresh_cumsum(sums, cum, min_row, max_row):
    """Repair cum after rows [min_row, max_row] changed.

    Rows before min_row are untouched, so cum[min_row] is already right.
    The dirty span is recomputed, and every later entry is shifted by the
    single difference observed at the end of the span.

    Parameters
    ----------
    sums : 1D numpy array
        Per-row sums, already recomputed for the dirty rows.
    cum : 1D numpy array
        Cumulative sums, length len(sums) + 1, repaired in place.
    min_row, max_row : int
        Inclusive dirty range. min_row > max_row means clean (no-op).
    """
    if min_row > max_row:
        return
    rows = len(sums)
    diff = cum[max_row + 1]
    for row in range(min_row, max_row + 1):
        cum[row + 1] = cum[row] + sums[row]
    diff -= cum[max_row + 1]

    for row in range(max_row + 1, rows):
        cum[row + 1] -= diff


@njit(cache=True)
def shift_cumsum(cum, row, delta):
    """Add delta to every cumulative entry after row."""
    for i in range(row + 1, len(cum)):
        cum[i] += delta


# ============================================================
# Query: binary search across rows, linear scan within one row
# ============================================================

@njit(cache=True)
def scan_row(data, cum, row, cols, threshold):
    """Walk one row from cum[row] until the running total reaches threshold.

    The row sum was accumulated from zero and the walk starts from
    cum[row], so the two can round differently (refresh shifts add a
    little more). When the walk falls short of a threshold <= cum[row + 1]
    by no more than that rounding, relative to the total, the answer is
    the last positive value in the row.

    Returns
    -------
    int
        Backing index, or NOT_FOUND if the row is exhausted first.
    """
    n = len(data)
    index = row * cols
    stop = index + cols
    if stop > n:
        stop = n
    total = cum[row]
    last = NOT_FOUND
    while index < stop:
        value = data[index]
        total += value
        if total >= threshold:
            return index
        if value > 0:
            last = index
        index += 1
    if row + 1 < len(cum) and threshold <= cum[row + 1]:
        slack = (cols + len(cum)) * FLOAT_EPS * abs(cum[len(cum) - 1])
        if cum[row + 1] - total <= slack:
            return last
    return NOT_FOUND


@njit(cache=True)
def find_row(cum, threshold):
    """Row in which the running total reaches threshold.

    cum[row] < threshold <= cum[row + 1]: the entry before the first cum
    value >= threshold. A threshold landing exactly on a row boundary
    belongs to the row that ends there.
    """
    row = np.searchsorted(cum, threshold, side='left') - 1
    if row < 0:
        row = 0
    return row


@njit(cache=True)
def find_upper_bound(data, cum, cols, threshold):
    """Smallest index whose inclusive running total is >= threshold."""
    row = find_row(cum, threshold)
    return scan_row(data, cum, row, cols, threshold)


@njit(cache=True)
def find_upper_bounds(data, cum, cols, thresholds):
    """Vector form of find_upper_bound, used for batch sampling."""
    out = np.empty(len(thresholds), dtype=np.int64)
    for i in range(len(thresholds)):
        out[i] = find_upper_bound(data, cum, cols, thresholds[i])
    return out


# ============================================================
# Warmup
# ============================================================

def warmup():
    """Trigger JIT compilation for float64 and int64 backings.

    Call this once before timing anything, so that compilation does not
    land inside the first measured iteration.
    """
    for dtype, acc in ((np.float64, np.float64), (np.int64, np.int64)):
        data = np.ones(4, dtype=dtype)
        sums = np.zeros(2, dtype=acc)
        cum = np.zeros(3, dtype=acc)
        all_row_sums(data, sums, 2)
        full_cumsum(sums, cum)
        row_sum(data, 1, 2)
        refresh_cumsum(sums, cum, 1, 1)
        shift_cumsum(cum, 0, acc(0))
        find_upper_bound(data, cum, 2, acc(1))
        find_upper_bounds(data, cum, 2, np.ones(1, dtype=np.float64))
