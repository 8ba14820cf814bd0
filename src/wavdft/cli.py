#!/usr/bin/env python
"""
Command line entry point.

Usage:
    # Transform the first 0.1 s of a file and list the strongest bins
    wavdft analyze data/100Hz_44100Hz_16bit_05sec.wav --plot spectrum.png

    # Forward + inverse transform, written back as a WAV file
    wavdft roundtrip input.wav reconstructed.wav

    # Live terminal display (press q to leave)
    wavdft show input.wav
"""

import argparse
import logging
import sys
import time
from typing import Dict, List, Optional

import numpy as np
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .dsp_core import dft, dominant_bins, reconstruct_samples
from .utils.config import load_config
from .utils.logging import RunLogger, get_logger, setup_logging
from .utils.wav import WavFile

console = Console()
log = get_logger(__name__)


def stream_rate(wav: WavFile) -> int:
    """
    Samples per second of the interleaved signal.

    Channels are not separated, so a stereo file delivers 2 * sample_rate
    values per second to the transform, and bins are spaced accordingly.
    """
    if wav.n_channels > 1:
        log.warning(
            f"{wav.n_channels} channels are transformed interleaved; "
            f"bins are spaced for {wav.sample_rate * wav.n_channels} samples/s"
        )
    return wav.sample_rate * wav.n_channels


def head_samples(wav: WavFile, window_seconds: float) -> np.ndarray:
    """First window_seconds of the interleaved signal (all of it if the file is shorter)."""
    n_head = max(int(wav.sample_rate * wav.n_channels * window_seconds), 1)
    return wav.signal[:n_head]


def display_header_table(wav: WavFile, path: str, n_head: int, rate: int):
    table = Table(title=f"[bold]{path}[/bold]", box=box.ROUNDED, show_header=False)
    table.add_column("Field", style="bold cyan")
    table.add_column("Value")

    table.add_row("Sample rate", f"{wav.sample_rate} Hz")
    table.add_row("Channels", str(wav.n_channels))
    table.add_row("Bits per sample", str(wav.fmt_header.bits_per_sample))
    table.add_row("Samples", str(len(wav.signal)))
    table.add_row("Duration", f"{wav.duration:.2f} s")
    table.add_row("Transformed", f"{n_head} samples ({rate / n_head:.2f} Hz per bin)")

    console.print(table)


def display_bins_table(bins):
    table = Table(
        title="[bold]Strongest bins[/bold]",
        box=box.ROUNDED,
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Bin", justify="right")
    table.add_column("Frequency (Hz)", justify="right")
    table.add_column("|X[k]|", justify="right")

    for k, freq, mag in bins:
        table.add_row(str(k), f"{freq:.1f}", f"{mag:.3f}")

    console.print(table)


def save_figures(args, head, X, rate: int, plot_cfg: Dict):
    from .utils.plot import plot_analysis, plot_spectrum, plot_waveform

    n_bins, dpi = plot_cfg['n_bins'], plot_cfg['dpi']
    if args.plot:
        plot_analysis(head, X, rate, args.plot, n_bins=n_bins, dpi=dpi)
        console.print(f"[green]✓[/green] Figure saved to {args.plot}")
    if args.waveform_plot:
        plot_waveform(head, rate, args.waveform_plot, dpi=dpi)
        console.print(f"[green]✓[/green] Waveform saved to {args.waveform_plot}")
    if args.spectrum_plot:
        plot_spectrum(X, rate, args.spectrum_plot, n_bins=n_bins, dpi=dpi)
        console.print(f"[green]✓[/green] Spectrum saved to {args.spectrum_plot}")


def cmd_analyze(args, config: Dict, logger: RunLogger) -> Dict:
    analysis = config['analysis']
    wav = WavFile.from_file(args.input)
    rate = stream_rate(wav)
    head = head_samples(wav, analysis['window_seconds'])

    count = args.bins if args.bins is not None else analysis['top_bins']
    if count < 1:
        raise ValueError(f"--bins must be at least 1, got {count}")

    start = time.perf_counter()
    X = dft(head, norm=analysis['norm'], parallel=analysis['parallel'])
    elapsed = time.perf_counter() - start

    display_header_table(wav, args.input, len(head), rate)

    bins = dominant_bins(X, count=count, sample_rate=rate)
    display_bins_table(bins)
    console.print(f"[green]✓[/green] {len(head)}-point DFT in {elapsed * 1000:.1f} ms")

    save_figures(args, head, X, rate, config['plot'])

    results = {
        'n_samples': len(head),
        'transform_ms': elapsed * 1000,
        'peak_bin': bins[0][0],
        'peak_frequency_hz': bins[0][1],
        'peak_magnitude': bins[0][2],
    }
    logger.log_results(results)
    return results


def cmd_roundtrip(args, config: Dict, logger: RunLogger) -> Dict:
    analysis = config['analysis']
    wav = WavFile.from_file(args.input)
    head = head_samples(wav, analysis['window_seconds'])

    X = dft(head, norm=analysis['norm'], parallel=analysis['parallel'])
    restored = reconstruct_samples(X, norm=analysis['norm'], dtype=None)
    max_error = float(np.abs(restored - head).max())

    out = wav.with_signal(reconstruct_samples(X, norm=analysis['norm']))
    out.write(args.output)

    console.print(f"[green]✓[/green] {len(head)} samples written to {args.output}")
    console.print(f"  Max reconstruction error: {max_error:.2e}")

    results = {'n_samples': len(head), 'max_error': max_error, 'output': args.output}
    logger.log_results(results)
    return results


def cmd_show(args, config: Dict, logger: RunLogger) -> Dict:
    from .display import run

    wav = WavFile.from_file(args.input)
    head = head_samples(wav, config['analysis']['window_seconds'])
    app = run(head, sample_rate=stream_rate(wav), config=config, console=console)

    results = {'last_window': list(app.window)}
    logger.log_results(results)
    return results


COMMANDS = {
    'analyze': cmd_analyze,
    'roundtrip': cmd_roundtrip,
    'show': cmd_show,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='wavdft', description="Direct DFT of 16-bit PCM WAV audio")
    parser.add_argument('--config', type=str, default=None, help='Path to YAML configuration file')
    parser.add_argument('--log-file', type=str, default=None, help='Write a detailed log to this file')

    subparsers = parser.add_subparsers(dest='command', required=True)

    analyze = subparsers.add_parser('analyze', help='Transform the head of a file and list its strongest bins')
    analyze.add_argument('input', help='Input WAV file')
    analyze.add_argument('--plot', type=str, default=None, help='Save waveform and spectrum figure here')
    analyze.add_argument('--bins', type=int, default=None, help='Number of bins to list')
    analyze.add_argument('--waveform-plot', type=str, default=None, help='Save the waveform alone here')
    analyze.add_argument('--spectrum-plot', type=str, default=None, help='Save the magnitude spectrum alone here')

    roundtrip = subparsers.add_parser('roundtrip', help='Forward + inverse transform, written as WAV')
    roundtrip.add_argument('input', help='Input WAV file')
    roundtrip.add_argument('output', help='Output WAV file')

    show = subparsers.add_parser('show', help='Live terminal display of the signal and its spectrum')
    show.add_argument('input', help='Input WAV file')

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config)
    except (OSError, ValueError) as e:
        console.print(f"[bold red]Error: {e}[/bold red]")
        return 1

    log_cfg = config.get('logging', {})
    level = getattr(logging, str(log_cfg.get('level', 'INFO')).upper(), logging.INFO)
    logger = RunLogger(setup_logging(
        log_file=args.log_file or log_cfg.get('log_file'),
        level=level,
        name='wavdft',
    ))
    logger.log_config(config)

    try:
        COMMANDS[args.command](args, config, logger)
    except (OSError, ValueError) as e:
        logger.exception(f"{args.command} failed")
        console.print(f"[bold red]Error: {e}[/bold red]")
        return 1

    if args.command != 'show':
        console.print(Panel.fit("[bold green]Done[/bold green]", border_style="green"))
    return 0


if __name__ == '__main__':
    sys.exit(main())
