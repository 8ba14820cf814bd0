"""
DSP Core Module - Hand-written Discrete Fourier Transform

This module provides a from-scratch direct-summation DFT and inverse DFT,
checked against numpy.fft and scipy.fft, plus the spectrum helpers the chart
renderers consume.

Modules:
    - dft: forward / inverse DFT by direct summation (Numba JIT)
    - spectrum: magnitudes, bin frequencies, chart pairs
"""

from .dft import dft, idft, reconstruct_samples, InvalidLengthError
from .spectrum import (
    magnitude,
    bin_frequencies,
    spectrum_pairs,
    signal_points,
    dominant_bins,
)

__all__ = [
    # DFT functions
    'dft',
    'idft',
    'reconstruct_samples',
    'InvalidLengthError',
    # Spectrum helpers
    'magnitude',
    'bin_frequencies',
    'spectrum_pairs',
    'signal_points',
    'dominant_bins',
]
