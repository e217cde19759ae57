"""
Bucket Config: process-wide defaults.

Precondition checks are decided once per bucket, at construction. The
default comes from the BUCKETLIB_CHECKS environment variable, read when
this module is imported:

    BUCKETLIB_CHECKS=0 python my_simulation.py   # unchecked fast path

Author: Carmen Esteban
"""

import os

CHECKS_ENV_VAR = "BUCKETLIB_CHECKS"

_TRUE = ("1", "true", "yes", "on")
_FALSE = ("0", "false", "no", "off")

# Sentinel returned by queries that do not land inside a row scan
NOT_FOUND = -1


def _read_checks_env(environ=None):
    """Parse BUCKETLIB_CHECKS. Unset or empty means checks enabled."""
    if environ is None:
        environ = os.environ
    raw = environ.get(CHECKS_ENV_VAR, "").strip().lower()
    if raw == "" or raw in _TRUE:
        return True
    if raw in _FALSE:
        return False
    raise ValueError(
        f"{CHECKS_ENV_VAR}={raw!r} not understood, use one of "
        f"{', '.join(_TRUE + _FALSE)}")


CHECKS_ENABLED = _read_checks_env()


def resolve_checks(checks=None):
    """Return the check mode for a new bucket.

    Parameters
    ----------
    checks : bool or None
        Explicit mode, or None for the process-wide default.

    Returns
    -------
    bool
    """
    if checks is None:
        return CHECKS_ENABLED
    return bool(checks)
