"""
Bucket Errors: precondition failures raised in checked mode.

Each error subclasses the builtin a caller would expect, so
``except IndexError`` still catches a bad row.
"""


class BucketError(Exception):
    """Base class for bucketlib errors."""


class RowIndexOutOfRange(BucketError, IndexError):
    """Row index outside [0, rows)."""

    def __init__(self, row, rows):
        self.row = row
        self.rows = rows
        super().__init__(f"Row index {row} out of range for {rows} rows")


class ValueOutOfRange(BucketError, ValueError):
    """Query threshold outside the open interval (0, total)."""

    def __init__(self, value, total, reason):
        self.value = value
        self.total = total
        self.reason = reason
        super().__init__(
            f"In upper bound, value {value!r} is {reason} (total={total!r})")


class DirtyStateError(BucketError, RuntimeError):
    """Operation needs a clean bucket but rows are pending a refresh."""

    def __init__(self, min_row, max_row):
        self.min_row = min_row
        self.max_row = max_row
        super().__init__(
            f"Rows [{min_row}, {max_row}] are pending a cumulative refresh")
