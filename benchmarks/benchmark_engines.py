"""
Benchmark for contraction engines and decomposition time.

Measures:
- contract_except time vs. tensor size (NumPy vs. Numba)
- Full decomposition time vs. number of terms

Usage:
    python benchmarks/benchmark_engines.py
"""

import time

import numpy as np

from sddtensor import NumbaContractionEngine, NumpyContractionEngine, sdd_tensor


def benchmark_contraction() -> None:
    """Benchmark contract_except per engine."""
    print("=" * 70)
    print("BENCHMARK 1: contract_except Time vs. Tensor Size")
    print("=" * 70)

    engines = [NumpyContractionEngine(), NumbaContractionEngine()]
    shapes = [(20, 20, 20), (50, 50, 50), (100, 100, 50), (30, 30, 30, 30)]
    n_repeat = 10

    print(f"\n{'Shape':>20} {'Elements':>12} {'Engine':>8} {'Time (ms)':>12}")
    print("-" * 56)

    for shape in shapes:
        T = np.random.randn(*shape)
        x = [np.random.choice([-1.0, 0.0, 1.0], size=m) for m in shape]

        for engine in engines:
            start = time.perf_counter()
            for _ in range(n_repeat):
                for idx in range(len(shape)):
                    engine.contract_except(T, x, idx)
            elapsed = (time.perf_counter() - start) / n_repeat

            print(f"{str(shape):>20} {T.size:12,} {engine.name:>8} {elapsed * 1e3:12.3f}")


def benchmark_decomposition() -> None:
    """Benchmark sdd_tensor vs. number of terms."""
    print("\n" + "=" * 70)
    print("BENCHMARK 2: Decomposition Time vs. Number of Terms")
    print("=" * 70)

    A = np.random.randn(40, 40, 40)
    norm_sq = np.sum(A**2)

    print(f"\n{'kmax':>6} {'Engine':>8} {'Time (s)':>10} {'Rel. error':>12}")
    print("-" * 40)

    for kmax in (5, 10, 20):
        for engine in ("numpy", "numba"):
            start = time.perf_counter()
            result = sdd_tensor(A, kmax=kmax, engine=engine)
            elapsed = time.perf_counter() - start

            rel_err = np.sqrt(result.rho[-1] / norm_sq)
            print(f"{kmax:6} {engine:>8} {elapsed:10.3f} {rel_err:12.4f}")


if __name__ == "__main__":
    benchmark_contraction()
    benchmark_decomposition()
