import os

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import numpy as np

from ..dsp_core import magnitude, bin_frequencies
from .logging import get_logger

logger = get_logger(__name__)


def plot_waveform(samples, sample_rate, save_path, dpi=150):
    """Plot the time-domain samples and save them as an image."""
    samples = np.asarray(samples)
    t = np.arange(len(samples)) / sample_rate

    plt.figure(figsize=(10, 4))
    plt.plot(t, samples, linewidth=0.8)
    plt.title('Waveform')
    plt.xlabel('Time (s)')
    plt.ylabel('Amplitude')
    plt.grid(True)
    _save(save_path, dpi)


def plot_spectrum(X, sample_rate, save_path, n_bins=None, dpi=150):
    """Bar plot of the magnitude spectrum, optionally only the first n_bins bins."""
    mags = magnitude(X)
    freqs = bin_frequencies(len(mags), sample_rate)
    if n_bins is not None:
        mags = mags[:n_bins]
        freqs = freqs[:n_bins]

    width = freqs[1] - freqs[0] if len(freqs) > 1 else 1.0

    plt.figure(figsize=(10, 4))
    plt.bar(freqs, mags, width=width * 0.8, align='edge')
    plt.title('Magnitude Spectrum')
    plt.xlabel('Frequency (Hz)')
    plt.ylabel('|X[k]|')
    plt.grid(True, axis='y')
    _save(save_path, dpi)


def plot_analysis(samples, X, sample_rate, save_path, n_bins=None, dpi=150):
    """Waveform on top, magnitude spectrum below, in one figure."""
    samples = np.asarray(samples)
    mags = magnitude(X)
    freqs = bin_frequencies(len(mags), sample_rate)
    if n_bins is not None:
        mags = mags[:n_bins]
        freqs = freqs[:n_bins]

    fig, (ax_wave, ax_spec) = plt.subplots(2, 1, figsize=(10, 8))

    ax_wave.plot(np.arange(len(samples)), samples, linewidth=0.8, color='tab:cyan')
    ax_wave.set_title('Waveform')
    ax_wave.set_xlabel('Sample')
    ax_wave.set_ylabel('Amplitude')
    ax_wave.grid(True)

    ax_spec.vlines(freqs, 0, mags, color='tab:orange')
    ax_spec.set_title('Magnitude Spectrum')
    ax_spec.set_xlabel('Frequency (Hz)')
    ax_spec.set_ylabel('|X[k]|')
    ax_spec.grid(True)

    fig.tight_layout()
    _save(save_path, dpi)


def _save(save_path, dpi):
    save_dir = os.path.dirname(os.path.abspath(save_path))
    os.makedirs(save_dir, exist_ok=True)
    plt.savefig(save_path, dpi=dpi)
    logger.info(f"Figure saved to {save_path}")
    plt.close()
