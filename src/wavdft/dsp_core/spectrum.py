"""
Spectrum helpers: magnitudes, bin frequencies, and the (label, value) / (x, y)
pairs consumed by the chart renderers.
"""

from typing import List, Optional, Tuple

import numpy as np

from .dft import InvalidLengthError


def magnitude(X) -> np.ndarray:
    """sqrt(re^2 + im^2) of every coefficient."""
    X = np.asarray(X, dtype=np.complex128)
    return np.sqrt(X.real ** 2 + X.imag ** 2)


def bin_frequencies(n: int, sample_rate: float) -> np.ndarray:
    """
    Frequency in Hz of each of the n bins of an n-point transform.

    Bin k sits at k * sample_rate / n. A 4410-sample head of a 44100 Hz
    recording therefore resolves 10 Hz per bin.
    """
    if n < 1:
        raise InvalidLengthError(f"Number of bins must be positive, got {n}")
    if sample_rate <= 0:
        raise ValueError(f"Sample rate must be positive, got {sample_rate}")

    return np.arange(n) * (float(sample_rate) / n)


def spectrum_pairs(
    X,
    n_bins: Optional[int] = None,
    sample_rate: Optional[float] = None
) -> List[Tuple[str, float]]:
    """
    (label, magnitude) pairs for a bar chart.

    Args:
        X: Complex spectrum
        n_bins: Keep only the first n_bins bins (None keeps all)
        sample_rate: If given, label bins with their frequency in Hz instead
            of their index

    Returns:
        List of (label, magnitude) tuples in bin order
    """
    mags = magnitude(X)
    n = len(mags)

    if sample_rate is not None:
        labels = [f"{f:.0f}" for f in bin_frequencies(n, sample_rate)]
    else:
        labels = [str(k) for k in range(n)]

    if n_bins is not None:
        mags = mags[:n_bins]
        labels = labels[:n_bins]

    return [(label, float(m)) for label, m in zip(labels, mags)]


def signal_points(samples, start: int = 0) -> List[Tuple[float, float]]:
    """(x, y) pairs of a time-domain signal, x counting from start."""
    return [(float(start + i), float(x)) for i, x in enumerate(samples)]


def dominant_bins(
    X,
    count: int = 5,
    sample_rate: Optional[float] = None
) -> List[Tuple[int, Optional[float], float]]:
    """
    The strongest bins of the non-negative half of the spectrum.

    Only bins 0..N//2 are considered; for real input the upper half mirrors
    them. Ties keep the lower bin first.

    Returns:
        List of (bin, frequency in Hz or None, magnitude), strongest first
    """
    mags = magnitude(X)
    n = len(mags)
    if n == 0:
        raise InvalidLengthError("Spectrum is empty")

    half = mags[:n // 2 + 1]
    order = np.argsort(-half, kind='stable')[:max(count, 0)]

    freqs = bin_frequencies(n, sample_rate) if sample_rate is not None else None

    return [
        (int(k), float(freqs[k]) if freqs is not None else None, float(half[k]))
        for k in order
    ]
