"""
Bucket vs. sequential prefix sum - full benchmark sweep
=======================================================

Runs scenarios A, B, C for N = 1,000 at 10/20/50/100 rows, 5 repeats,
and saves raw + summarized results.

Usage:
  pip install bucketlib psutil
  python run_benchmarks.py

Author: Carmen Esteban
"""

import json
import os
import platform
import time

import psutil

from bucketlib.benchmark import run_benchmarks, summarize, write_csv

# ── Config ──
RESULTS_DIR = "results"
N = 1_000
ROW_OPTIONS = (10, 20, 50, 100)
ITERATIONS = 100_000
REPEATS = 5

os.makedirs(RESULTS_DIR, exist_ok=True)

machine = {
    "python": platform.python_version(),
    "cpu": platform.processor() or platform.machine(),
    "cpu_count": psutil.cpu_count(logical=True),
    "ram_total_gb": round(psutil.virtual_memory().total / 1e9, 1),
}
print(f"Machine: {machine['cpu']} x{machine['cpu_count']}, "
      f"{machine['ram_total_gb']} GB RAM, Python {machine['python']}")

# ── Run ──
print(f"\n{'='*70}")
print(f"  Bucket benchmark: N={N:,}, {ITERATIONS:,} iterations x {REPEATS} repeats")
print(f"{'='*70}")

t0 = time.time()
results = run_benchmarks(n=N, row_options=ROW_OPTIONS, iterations=ITERATIONS,
                         repeats=REPEATS, verbose=True)
total_time = time.time() - t0
summary = summarize(results)

# ── Save results ──
csv_file = os.path.join(RESULTS_DIR, "bucket_benchmark.csv")
write_csv(results, csv_file)

json_file = os.path.join(RESULTS_DIR, "bucket_benchmark.json")
with open(json_file, "w") as f:
    json.dump({"machine": machine, "total_time": total_time,
               "summary": summary, "results": results}, f, indent=2)
print(f"\nResults saved to {csv_file} and {json_file}")

# ── Summary ──
print(f"\n{'='*70}")
print(f"  {'scenario':<10}{'shape':<12}{'bucket (s)':>12}{'seq (s)':>12}{'speedup':>10}")
for s in summary:
    shape = f"{s['rows']}x{s['cols']}"
    print(f"  {s['benchmark']:<10}{shape:<12}{s['bucket_seconds']:>12.3f}"
          f"{s['sequential_seconds']:>12.3f}{s['speedup']:>9.2f}x")
print(f"  Total time: {total_time:.1f}s")
print(f"{'='*70}")
