"""
Terminal display of a signal and its spectrum.
"""

from .terminal import App, Event, Events, TICK, INPUT, build_layout, render_bars, render_waveform, run

__all__ = [
    'App',
    'Event',
    'Events',
    'TICK',
    'INPUT',
    'build_layout',
    'render_bars',
    'render_waveform',
    'run',
]
