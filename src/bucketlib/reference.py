"""
Bucket Reference: naive full prefix-sum search.

Recomputes the whole prefix sum and bisects it. O(N) per refresh, which
is what the bucket is measured against, and the oracle the tests compare
find_upper_bound with.
"""

import numpy as np

from bucketlib.config import NOT_FOUND


def sequential_upper_bound(data, threshold):
    """
    First index whose inclusive prefix sum is >= threshold.

    Parameters
    ----------
    data : array-like of numbers
        Non-negative values.
    threshold : float or int
        Target running total.

    Returns
    -------
    int
        Index into data, or NOT_FOUND if the total never reaches threshold.
    """
    prefix = np.cumsum(np.asarray(data))
    idx = int(np.searchsorted(prefix, threshold, side="left"))
    if idx >= prefix.size:
        return NOT_FOUND
    return idx


class SequentialPrefixSum:
    """
    Flat prefix sum over a borrowed array, rebuilt completely on refresh.

    Exposes the query side of Bucket (total, find_upper_bound) so the
    benchmark can time the same query stream against both.

    Parameters
    ----------
    data : numpy.ndarray
        Backing values, read in place.
    """

    def __init__(self, data):
        self.data = data
        self.prefix = np.empty(len(data) + 1, dtype=np.float64)
        self.prefix[0] = 0.0
        self.refresh()

    def refresh(self):
        np.cumsum(self.data, out=self.prefix[1:])

    @property
    def total(self):
        return float(self.prefix[-1])

    def find_upper_bound(self, threshold):
        """Same contract as Bucket.find_upper_bound, by bisection."""
        idx = int(np.searchsorted(self.prefix, threshold, side="left")) - 1
        if idx < 0:
            idx = 0
        if idx >= len(self.data):
            return NOT_FOUND
        return idx
