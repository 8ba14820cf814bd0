#!/usr/bin/env python
"""
Benchmark the direct DFT against numpy.fft.

The direct transform is O(N^2), so it falls behind quickly; the point is to
see how far the Numba kernels carry it and what parallel=True buys.

Usage:
    python scripts/benchmark_dft.py
    python scripts/benchmark_dft.py --sizes 8 441 4410 --iters 20
"""

import argparse
import time

import numpy as np
from rich import box
from rich.console import Console
from rich.table import Table

from wavdft.dsp_core import dft

console = Console()


def time_call(fn, x, n_iter: int) -> float:
    """Mean wall time of fn(x) in ms."""
    start = time.perf_counter()
    for _ in range(n_iter):
        fn(x)
    return (time.perf_counter() - start) / n_iter * 1000


def main():
    parser = argparse.ArgumentParser(description="Direct DFT benchmark")
    parser.add_argument('--sizes', type=int, nargs='+', default=[8, 64, 441, 1024, 4410])
    parser.add_argument('--iters', type=int, default=10)
    parser.add_argument('--seed', type=int, default=0)
    args = parser.parse_args()

    rng = np.random.default_rng(args.seed)

    # Warm up JIT
    console.print("Warming up JIT...")
    dft(np.ones(8))
    dft(np.ones(8), parallel=True)

    table = Table(title="[bold]Direct DFT vs numpy.fft[/bold]", box=box.ROUNDED, header_style="bold cyan")
    table.add_column("N", justify="right")
    table.add_column("Direct (ms)", justify="right")
    table.add_column("Parallel (ms)", justify="right")
    table.add_column("numpy (ms)", justify="right")
    table.add_column("Max error", justify="right")

    for n in args.sizes:
        x = rng.integers(-32768, 32767, size=n).astype(np.int16)

        t_direct = time_call(dft, x, args.iters)
        t_parallel = time_call(lambda s: dft(s, parallel=True), x, args.iters)
        t_numpy = time_call(lambda s: np.fft.fft(s, norm="forward"), x, args.iters)
        error = np.abs(dft(x) - np.fft.fft(x, norm="forward")).max()

        table.add_row(str(n), f"{t_direct:.3f}", f"{t_parallel:.3f}", f"{t_numpy:.4f}", f"{error:.2e}")

    console.print(table)


if __name__ == '__main__':
    main()
