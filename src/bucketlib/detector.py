"""
Bucket Detector: inspect a candidate backing before building a bucket.

Analyzes a sequence and returns a report with:
  - Length, dtype, whether the dtype is a supported numeric kind
  - Whether it can be viewed without a copy (buffer protocol)
  - Suggested ROWS x COLS shape (COLS close to sqrt(N))
  - Memory estimates for the bucket's own arrays

Usage:
    import bucketlib
    report = bucketlib.detect_backing(weights)
    print(report)
"""

import math

import numpy as np

# Signed int, unsigned int, float. Excludes bool, complex, chars, objects.
NUMERIC_KINDS = "iuf"

# Item sizes the compiled kernels handle; float16 and 80/128-bit
# long double have no kernel support.
KERNEL_ITEMSIZES = {"i": (1, 2, 4, 8), "u": (1, 2, 4, 8), "f": (4, 8)}


def is_numeric_dtype(dtype):
    """True for the arithmetic scalar kinds a bucket accepts."""
    return np.dtype(dtype).kind in NUMERIC_KINDS


def unsupported_reason(dtype):
    """Why the kernels cannot read dtype, or None if they can."""
    dtype = np.dtype(dtype)
    if not is_numeric_dtype(dtype):
        return (f"dtype {dtype} is not numeric "
                f"(bool, character, complex and object are rejected)")
    if dtype.itemsize not in KERNEL_ITEMSIZES[dtype.kind]:
        return f"dtype {dtype} has no kernel support (itemsize {dtype.itemsize})"
    if not dtype.isnative:
        return f"dtype {dtype.str} is not in native byte order"
    return None


def accumulator_dtype(dtype):
    """dtype of the row sums and cumulative sums for a backing dtype."""
    if np.dtype(dtype).kind == "f":
        return np.dtype(np.float64)
    return np.dtype(np.int64)


def suggest_shape(n):
    """
    Recommend a ROWS x COLS shape for n backing values.

    Query cost is O(COLS) and update cost O(ROWS + COLS), so both sides are
    kept close to sqrt(n).

    Parameters
    ----------
    n : int
        Backing length.

    Returns
    -------
    tuple of int
        (rows, cols) with rows * cols >= n, both at least 1.
    """
    if n < 0:
        raise ValueError(f"Length must be non-negative, got {n}")
    if n == 0:
        return 1, 1
    rows = math.isqrt(n)
    if rows * rows < n:
        rows += 1
    cols = -(-n // rows)
    return rows, cols


def view_without_copy(backing):
    """Return a numpy view sharing memory with backing, or None.

    numpy arrays are returned as is. Anything exporting the buffer protocol
    (array.array, memoryview, bytearray, ...) is wrapped without copying.
    """
    if isinstance(backing, np.ndarray):
        return backing
    try:
        mv = memoryview(backing)
    except TypeError:
        return None
    try:
        return np.asarray(mv)
    except (ValueError, NotImplementedError):
        # e.g. array.array('u'): a character buffer numpy cannot map
        raise TypeError(f"Unsupported buffer format {mv.format!r}") from None


def detect_backing(backing):
    """
    Analyze a candidate backing sequence.

    Parameters
    ----------
    backing : numpy.ndarray, array.array, memoryview or sequence
        The values a bucket would be built over.

    Returns
    -------
    dict
        Report with length, dtype, numeric, zero_copy, suggested shape,
        padding and memory estimates.
    """
    view = view_without_copy(backing)
    zero_copy = view is not None
    if view is None:
        view = np.asarray(backing)

    n = int(view.size) if view.ndim == 1 else None
    numeric = is_numeric_dtype(view.dtype)

    report = {
        "length": n,
        "ndim": view.ndim,
        "dtype": str(view.dtype),
        "numeric": numeric,
        "zero_copy": zero_copy,
        "backing_mb": round(view.nbytes / 1e6, 3),
    }

    if n is None:
        report["supported"] = False
        report["reason"] = "backing must be one-dimensional"
        return report
    reason = unsupported_reason(view.dtype)
    if reason is not None:
        report["supported"] = False
        report["reason"] = reason
        return report

    rows, cols = suggest_shape(n)
    acc = accumulator_dtype(view.dtype)
    report["supported"] = True
    report["reason"] = ("zero-copy view" if zero_copy
                        else "no buffer protocol, needs copy=True")
    report["suggested_shape"] = (rows, cols)
    report["padding"] = rows * cols - n
    report["bucket_mb"] = round((2 * rows + 1) * acc.itemsize / 1e6, 3)
    return report
