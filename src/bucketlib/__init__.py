"""
bucketlib - Two-level partial sums for weighted sampling
========================================================

Row sums + cumulative row sums over a numeric sequence you own, for
simulation loops that change a few values and then ask "where does the
running total first reach t?" (inverse-CDF / kinetic Monte-Carlo).

Quick start:
    import numpy as np
    import bucketlib

    rates = np.random.rand(10_000)
    b = bucketlib.Bucket(100, 100, rates)   # view, no copy

    rates[4321] = 0.0                       # change the data in place
    b.update_row(4321 // b.cols)            # mark the row
    b.incremental_refresh()                 # repair cumulative sums
    event = b.find_upper_bound(0.5 * b.total)

Author: Carmen Esteban
License: MIT
"""

__version__ = "0.1.0"
__author__ = "Carmen Esteban"

from bucketlib.config import NOT_FOUND
from bucketlib.errors import (
    BucketError, RowIndexOutOfRange, ValueOutOfRange, DirtyStateError,
)
from bucketlib.detector import detect_backing, suggest_shape
from bucketlib.bucket import Bucket
from bucketlib import fast

__all__ = [
    "Bucket", "NOT_FOUND", "detect_backing", "suggest_shape",
    "BucketError", "RowIndexOutOfRange", "ValueOutOfRange", "DirtyStateError",
    "fast",
]
