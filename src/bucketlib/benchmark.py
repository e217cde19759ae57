"""
Bucket Benchmark: lazy bucket updates vs. a full sequential prefix sum.

Each iteration mutates the data, brings the structure up to date and
answers one random upper-bound query. Scenarios:

  A  change one random entry (one dirty row)
  B  change 4 consecutive random entries (one or two dirty rows)
  C  change the first entry of every row (all rows dirty, worst case)

The sequential baseline applies the same mutations from an identically
seeded generator and recomputes its whole prefix sum each time.

Usage:
    python -m bucketlib.benchmark --iterations 20000 --csv results.csv

Author: Carmen Esteban
"""

import argparse
import csv
import sys
import time
from collections import defaultdict

import numpy as np
from scipy.stats import gmean

from bucketlib import fast as _fast
from bucketlib.bucket import Bucket
from bucketlib.reference import SequentialPrefixSum

DEFAULT_N = 1_000
DEFAULT_ROW_OPTIONS = (10, 20, 50, 100)
DEFAULT_ITERATIONS = 100_000
DEFAULT_REPEATS = 5
DEFAULT_SEED = 42

CSV_HEADER = ("benchmark_type", "rows", "cols", "bucket_duration", "seq_duration")


# ============================================================
# Mutation patterns (return the rows they touched)
# ============================================================

def _mutate_single(data, rng, rows, cols):
    idx = int(rng.integers(data.size))
    data[idx] = rng.random()
    return (idx // cols,)


def _mutate_block(data, rng, rows, cols, width=4):
    idx = int(rng.integers(data.size - width + 1))
    data[idx:idx + width] = rng.random(width)
    return range(idx // cols, (idx + width - 1) // cols + 1)


def _mutate_row_heads(data, rng, rows, cols):
    data[0:rows * cols:cols] = rng.random(rows)
    return range(rows)


SCENARIOS = {
    "A": _mutate_single,
    "B": _mutate_block,
    "C": _mutate_row_heads,
}


# ============================================================
# Timed loops
# ============================================================

def _time_bucket(bucket, mutate, rng, iterations):
    data = bucket.backing
    rows, cols = bucket.rows, bucket.cols
    sink = 0
    t0 = time.perf_counter()
    for _ in range(iterations):
        touched = mutate(data, rng, rows, cols)
        bucket.update_rows(touched)
        bucket.incremental_refresh()
        sink = bucket.find_upper_bound(rng.random() * bucket.total)
    return time.perf_counter() - t0, sink


def _time_sequential(seq, mutate, rng, iterations, rows, cols):
    data = seq.data
    sink = 0
    t0 = time.perf_counter()
    for _ in range(iterations):
        mutate(data, rng, rows, cols)
        seq.refresh()
        sink = seq.find_upper_bound(rng.random() * seq.total)
    return time.perf_counter() - t0, sink


def benchmark_scenario(name, rows, cols, iterations, seed=DEFAULT_SEED, checks=False):
    """
    Time one scenario for one shape.

    Parameters
    ----------
    name : str
        Scenario key, one of SCENARIOS.
    rows, cols : int
        Bucket shape; the data has rows * cols values.
    iterations : int
        Mutate / refresh / query cycles per structure.
    seed : int
        Seed for the data and for both mutation streams.
    checks : bool
        Run the bucket in checked mode (off by default, as in production).

    Returns
    -------
    dict
        benchmark, rows, cols, iterations, bucket_seconds,
        sequential_seconds, speedup.
    """
    if name not in SCENARIOS:
        raise ValueError(f"Unknown scenario {name!r}, expected one of {sorted(SCENARIOS)}")
    mutate = SCENARIOS[name]
    n = rows * cols
    if name == "B" and n < 4:
        raise ValueError("Scenario B needs at least 4 values")

    data = np.random.default_rng(seed).random(n)
    bucket = Bucket(rows, cols, data.copy(), checks=checks)
    seq = SequentialPrefixSum(data.copy())

    bucket_time, _ = _time_bucket(
        bucket, mutate, np.random.default_rng(seed + 1), iterations)
    seq_time, _ = _time_sequential(
        seq, mutate, np.random.default_rng(seed + 1), iterations, rows, cols)

    return {
        "benchmark": name,
        "rows": rows,
        "cols": cols,
        "iterations": iterations,
        "bucket_seconds": bucket_time,
        "sequential_seconds": seq_time,
        "speedup": seq_time / bucket_time if bucket_time > 0 else float("inf"),
    }


def run_benchmarks(n=DEFAULT_N, row_options=DEFAULT_ROW_OPTIONS,
                   iterations=DEFAULT_ITERATIONS, repeats=DEFAULT_REPEATS,
                   scenarios="ABC", seed=DEFAULT_SEED, verbose=True):
    """
    Sweep scenarios over shapes rows x (n // rows), repeated.

    Returns
    -------
    list of dict
        One benchmark_scenario() result per (repeat, rows, scenario).
    """
    _fast.warmup()
    if verbose:
        print(f"  [benchmark] n={n:,}, rows={list(row_options)}, "
              f"iterations={iterations:,}, repeats={repeats}")
        sys.stdout.flush()

    results = []
    for rep in range(repeats):
        for rows in row_options:
            cols = n // rows
            for name in scenarios:
                result = benchmark_scenario(name, rows, cols, iterations,
                                            seed=seed + rep)
                results.append(result)
                if verbose:
                    print(f"  [benchmark] rep {rep} {name} {rows}x{cols}: "
                          f"bucket={result['bucket_seconds']:.3f}s "
                          f"seq={result['sequential_seconds']:.3f}s "
                          f"speedup={result['speedup']:.2f}x")
                    sys.stdout.flush()
    return results


def summarize(results):
    """
    Aggregate repeats per (benchmark, rows, cols).

    Returns
    -------
    list of dict
        Mean timings and geometric-mean speedup, sorted by key.
    """
    groups = defaultdict(list)
    for r in results:
        groups[(r["benchmark"], r["rows"], r["cols"])].append(r)

    summary = []
    for (name, rows, cols), group in sorted(groups.items()):
        summary.append({
            "benchmark": name,
            "rows": rows,
            "cols": cols,
            "repeats": len(group),
            "bucket_seconds": float(np.mean([g["bucket_seconds"] for g in group])),
            "sequential_seconds": float(np.mean([g["sequential_seconds"] for g in group])),
            "speedup": float(gmean([g["speedup"] for g in group])),
        })
    return summary


def write_csv(results, path_or_file):
    """Write results in the benchmark_type,rows,cols,... CSV format."""
    if hasattr(path_or_file, "write"):
        _write_rows(results, path_or_file)
        return
    with open(path_or_file, "w", newline="") as f:
        _write_rows(results, f)


def _write_rows(results, f):
    writer = csv.writer(f)
    writer.writerow(CSV_HEADER)
    for r in results:
        writer.writerow((r["benchmark"], r["rows"], r["cols"],
                         r["bucket_seconds"], r["sequential_seconds"]))


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Time bucket updates against a sequential prefix sum.")
    parser.add_argument("--n", type=int, default=DEFAULT_N)
    parser.add_argument("--rows", type=int, nargs="+", default=list(DEFAULT_ROW_OPTIONS))
    parser.add_argument("--iterations", type=int, default=DEFAULT_ITERATIONS)
    parser.add_argument("--repeats", type=int, default=DEFAULT_REPEATS)
    parser.add_argument("--scenarios", default="ABC")
    parser.add_argument("--seed", type=int, default=DEFAULT_SEED)
    parser.add_argument("--csv", help="write raw results here instead of stdout")
    parser.add_argument("--quiet", action="store_true")
    args = parser.parse_args(argv)

    # progress lines would interleave with CSV written to stdout
    verbose = not args.quiet and args.csv is not None
    results = run_benchmarks(n=args.n, row_options=args.rows,
                             iterations=args.iterations, repeats=args.repeats,
                             scenarios=args.scenarios, seed=args.seed,
                             verbose=verbose)
    write_csv(results, args.csv or sys.stdout)

    if verbose:
        for s in summarize(results):
            print(f"  [benchmark] {s['benchmark']} {s['rows']}x{s['cols']}: "
                  f"speedup={s['speedup']:.2f}x over {s['repeats']} repeats")
    return 0


if __name__ == "__main__":
    sys.exit(main())
