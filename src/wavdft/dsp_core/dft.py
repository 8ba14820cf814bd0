"""
Direct DFT Implementation using Numba JIT

This module implements the Discrete Fourier Transform and its inverse by direct
summation of the defining sums, compiled with Numba:

    X[k] = scale * sum_n x[n] * (cos(2*pi*k*n/N) - i*sin(2*pi*k*n/N))
    x[k] = scale * sum_n X[n] * (cos(2*pi*k*n/N) + i*sin(2*pi*k*n/N))

The cost is O(N^2) for every length; there is no power-of-two fast path.

Normalization follows the ``norm`` names of ``numpy.fft``. The default,
"forward", divides the forward pass by N and leaves the inverse unscaled, so
``idft(dft(x)) == x``.
"""

import math
from typing import Optional

import numpy as np
from numba import jit, prange

from ..utils.logging import get_logger

logger = get_logger(__name__)

_NORM_MODES = ("forward", "backward", "ortho")


class InvalidLengthError(ValueError):
    """Raised when a transform is asked to work on an empty sequence."""


@jit(nopython=True, cache=True)
def _angle(k: int, n: int, N: int) -> float:
    """Phase 2*pi*k*n/N of term n in bin k."""
    return 2.0 * math.pi * k * n / N


@jit(nopython=True, cache=True)
def _dft_kth(x: np.ndarray, k: int, sign: float) -> complex:
    """
    Accumulate bin k by direct summation over increasing n.

    sign is -1.0 for the forward kernel (cos - i*sin) and +1.0 for the
    inverse kernel (cos + i*sin).
    """
    N = len(x)
    x_k = 0j
    for n in range(N):
        theta = _angle(k, n, N)
        x_k += x[n] * complex(math.cos(theta), sign * math.sin(theta))
    return x_k


@jit(nopython=True, cache=True)
def _dft_direct(x: np.ndarray, sign: float) -> np.ndarray:
    """All N bins, one after another."""
    N = len(x)
    X = np.empty(N, dtype=np.complex128)
    for k in range(N):
        X[k] = _dft_kth(x, k, sign)
    return X


@jit(nopython=True, cache=True, parallel=True)
def _dft_direct_parallel(x: np.ndarray, sign: float) -> np.ndarray:
    """All N bins, with the k loop spread over Numba's thread pool."""
    N = len(x)
    X = np.empty(N, dtype=np.complex128)
    for k in prange(N):
        X[k] = _dft_kth(x, k, sign)
    return X


def _as_signal(x, name: str) -> np.ndarray:
    """Validate a 1-D non-empty sequence and cast it to complex128."""
    x = np.asarray(x)

    if x.ndim != 1:
        raise ValueError(f"{name} must be one-dimensional, got shape {x.shape}")
    if x.shape[0] == 0:
        raise InvalidLengthError(f"{name} is empty; the transform needs at least one value")

    return x.astype(np.complex128)


def _scale(n: int, norm: str, inverse: bool) -> float:
    if norm not in _NORM_MODES:
        raise ValueError(f"Invalid norm value {norm!r}; should be one of {', '.join(_NORM_MODES)}")

    if norm == "ortho":
        return 1.0 / math.sqrt(n)
    if (norm == "forward") != inverse:
        return 1.0 / n
    return 1.0


def _transform(x: np.ndarray, sign: float, parallel: bool) -> np.ndarray:
    if parallel:
        return _dft_direct_parallel(x, sign)
    return _dft_direct(x, sign)


def dft(x, norm: str = "forward", parallel: bool = False) -> np.ndarray:
    """
    Compute the 1-D discrete Fourier Transform by direct summation.

    Parameters
    ----------
    x : array_like
        Real or complex samples, one-dimensional. Integer samples (e.g. int16
        PCM) are promoted to complex with zero imaginary part.
    norm : str
        Normalization mode: "forward" (default, 1/N on this pass),
        "backward" (unscaled), or "ortho" (1/sqrt(N)).
    parallel : bool
        Distribute the bins over Numba's thread pool.

    Returns
    -------
    np.ndarray
        complex128 spectrum of the same length as x. Index k is frequency bin k.

    Raises
    ------
    InvalidLengthError
        If x is empty.

    Examples
    --------
    >>> import numpy as np
    >>> X = dft(np.array([1, 0, 0, 0], dtype=np.int16))
    >>> # Flat spectrum: every bin is 0.25 + 0j
    """
    signal = _as_signal(x, "samples")
    n = signal.shape[0]
    scale = _scale(n, norm, inverse=False)

    logger.debug("dft: n=%d norm=%s parallel=%s", n, norm, parallel)

    X = _transform(signal, -1.0, parallel)
    if scale != 1.0:
        X *= scale
    return X


def idft(X, norm: str = "forward", parallel: bool = False) -> np.ndarray:
    """
    Compute the 1-D inverse discrete Fourier Transform by direct summation.

    With the default norm="forward" this pass is unscaled, matching ``dft``'s
    default, so ``idft(dft(x))`` reconstructs x. The result is complex even for
    spectra of real signals; their imaginary parts are rounding noise.
    """
    spectrum = _as_signal(X, "spectrum")
    n = spectrum.shape[0]
    scale = _scale(n, norm, inverse=True)

    logger.debug("idft: n=%d norm=%s parallel=%s", n, norm, parallel)

    x = _transform(spectrum, 1.0, parallel)
    if scale != 1.0:
        x *= scale
    return x


def reconstruct_samples(X, norm: str = "forward", dtype: Optional[np.dtype] = np.int16) -> np.ndarray:
    """
    Inverse transform back to real samples.

    Real parts are rounded and, for integer dtypes, clipped to the dtype's
    range. Pass dtype=None to get the float64 real parts unchanged.
    """
    x = idft(X, norm=norm).real

    if dtype is None:
        return x

    dtype = np.dtype(dtype)
    if np.issubdtype(dtype, np.integer):
        info = np.iinfo(dtype)
        x = np.clip(np.rint(x), info.min, info.max)
    return x.astype(dtype)
