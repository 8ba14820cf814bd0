"""
Live terminal display: a scrolling waveform chart over a spectrum bar chart.

Two producer threads (a ticker and a keyboard reader) push events onto one
queue; the render loop consumes them, scrolling the waveform on every tick and
leaving on the exit key.
"""

import queue
import sys
import threading
import time
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np
from rich import box
from rich.console import Console
from rich.layout import Layout
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..dsp_core import dft, spectrum_pairs, signal_points
from ..utils.config import DEFAULT_CONFIG
from ..utils.logging import get_logger

logger = get_logger(__name__)

TICK = 'tick'
INPUT = 'input'


@dataclass(frozen=True)
class Event:
    kind: str
    key: Optional[str] = None


class Events:
    """
    Tick and keyboard events delivered through a single queue.

    The ticker posts a TICK every tick_rate seconds. The keyboard reader runs
    only when the input stream is a terminal; it puts the terminal in cbreak
    mode, posts each key as an INPUT event, and stops after the exit key
    unless the exit key is disabled.
    """

    def __init__(
        self,
        tick_rate: float = 0.1,
        exit_key: str = 'q',
        read_input: bool = True,
        input_stream=None
    ):
        self.tick_rate = tick_rate
        self.exit_key = exit_key
        self._queue: "queue.Queue[Event]" = queue.Queue()
        self._stop = threading.Event()
        self._ignore_exit_key = threading.Event()

        self._input_thread = None
        self._tty_state = None
        stream = input_stream if input_stream is not None else sys.stdin
        if read_input and stream is not None and stream.isatty():
            # Terminal setup may raise; no thread is running yet at that point.
            self._enter_cbreak(stream)
            self._input_thread = threading.Thread(
                target=self._input_loop, args=(stream,), name='wavdft-input', daemon=True
            )
            self._input_thread.start()

        self._tick_thread = threading.Thread(target=self._tick_loop, name='wavdft-tick', daemon=True)
        self._tick_thread.start()

    def _enter_cbreak(self, stream):
        import termios
        import tty

        fd = stream.fileno()
        self._tty_state = (fd, termios.tcgetattr(fd))
        tty.setcbreak(fd)

    def _restore_terminal(self):
        if self._tty_state is None:
            return
        import termios

        fd, old_settings = self._tty_state
        termios.tcsetattr(fd, termios.TCSADRAIN, old_settings)
        self._tty_state = None

    def _tick_loop(self):
        while not self._stop.is_set():
            self._queue.put(Event(TICK))
            self._stop.wait(self.tick_rate)

    # The reader may still be blocked in read() after stop(); it is a daemon
    # thread and the terminal is restored from stop().
    def _input_loop(self, stream):
        while not self._stop.is_set():
            key = stream.read(1)
            if not key:
                return
            self._queue.put(Event(INPUT, key))
            if not self._ignore_exit_key.is_set() and key == self.exit_key:
                return

    def post(self, event: Event):
        self._queue.put(event)

    def next(self, timeout: Optional[float] = None) -> Event:
        """Block until the next event; raises queue.Empty after timeout."""
        return self._queue.get(timeout=timeout)

    def disable_exit_key(self):
        self._ignore_exit_key.set()

    def enable_exit_key(self):
        self._ignore_exit_key.clear()

    def stop(self):
        self._stop.set()
        self._tick_thread.join(timeout=self.tick_rate * 2 + 1.0)
        self._restore_terminal()


class App:
    """
    State of the display: the samples not yet shown, the visible window, and
    the bar chart data of the whole signal's spectrum.
    """

    def __init__(
        self,
        samples,
        window: int = 100,
        step: int = 5,
        n_bars: int = 40,
        sample_rate: Optional[float] = None,
        norm: str = 'forward'
    ):
        samples = np.asarray(samples)
        if len(samples) == 0:
            raise ValueError("Cannot display an empty signal")

        self.step = step
        self.min = float(samples.min())
        self.max = float(samples.max())

        points = signal_points(samples)
        self.signal_buf: List[Tuple[float, float]] = points[:window]
        self.signal: List[Tuple[float, float]] = points[window:]
        self.window = [0.0, float(len(self.signal_buf))]

        self.frequency = spectrum_pairs(dft(samples, norm=norm), n_bins=n_bars, sample_rate=sample_rate)

    def __repr__(self):
        return (
            f"App(window={self.window}, buffered={len(self.signal_buf)}, "
            f"remaining={len(self.signal)}, bars={len(self.frequency)})"
        )

    def update(self) -> bool:
        """Scroll by one step. Returns False once the signal is exhausted."""
        if len(self.signal) < self.step:
            return False

        del self.signal_buf[:self.step]
        self.signal_buf.extend(self.signal[:self.step])
        del self.signal[:self.step]
        self.window[0] += self.step
        self.window[1] += self.step
        return True


def render_waveform(
    points: List[Tuple[float, float]],
    y_min: float,
    y_max: float,
    height: int = 12
) -> Text:
    """Dot plot of (x, y) points, one column per point, y scaled to height rows."""
    width = len(points)
    grid = [[' '] * width for _ in range(height)]
    span = y_max - y_min

    for col, (_, y) in enumerate(points):
        if span > 0:
            row = int(round((y_max - y) / span * (height - 1)))
        else:
            row = height // 2
        grid[min(max(row, 0), height - 1)][col] = '•'

    return Text('\n'.join(''.join(row) for row in grid), style='cyan')


def render_bars(pairs: List[Tuple[str, float]], bar_width: int = 50) -> Table:
    """Horizontal bar chart of (label, magnitude) pairs."""
    table = Table(box=box.SIMPLE, show_header=True, header_style='bold yellow', pad_edge=False)
    table.add_column('Bin', justify='right')
    table.add_column('|X[k]|')
    table.add_column('Value', justify='right')

    peak = max((m for _, m in pairs), default=0.0)
    for label, m in pairs:
        length = int(round(m / peak * bar_width)) if peak > 0 else 0
        table.add_row(label, Text('█' * length, style='yellow'), f"{m:.2f}")

    return table


def build_layout(app: App, height: int = 12) -> Layout:
    layout = Layout()
    layout.split_column(Layout(name='signal'), Layout(name='spectrum'))

    x0, x1 = app.window
    subtitle = f"samples {x0:.0f} - {x1:.0f} | min {app.min:.0f} | max {app.max:.0f}"
    layout['signal'].update(Panel(
        render_waveform(app.signal_buf, app.min, app.max, height=height),
        title='[bold cyan]wav[/bold cyan]',
        subtitle=subtitle,
        border_style='cyan',
    ))
    layout['spectrum'].update(Panel(
        render_bars(app.frequency),
        title='[bold yellow]spectrum[/bold yellow]',
        border_style='yellow',
    ))
    return layout


def run(
    samples,
    sample_rate: Optional[float] = None,
    config: Optional[dict] = None,
    console: Optional[Console] = None,
    events: Optional[Events] = None
) -> App:
    """
    Show the live display until the exit key, Ctrl-C, or the end of the signal.

    Returns the final App state.
    """
    config = config or DEFAULT_CONFIG
    display_cfg = config.get('display', {})
    norm = config.get('analysis', {}).get('norm', 'forward')
    height = int(display_cfg.get('height', 12))

    console = console or Console()
    app = App(
        samples,
        window=int(display_cfg.get('window', 100)),
        step=int(display_cfg.get('step', 5)),
        n_bars=int(display_cfg.get('n_bars', 40)),
        sample_rate=sample_rate,
        norm=norm,
    )
    exit_key = display_cfg.get('exit_key', 'q')

    if events is None:
        events = Events(tick_rate=float(display_cfg.get('tick_rate', 0.1)), exit_key=exit_key)

    logger.info(f"Starting display: {app!r}")
    started = time.perf_counter()

    try:
        with Live(build_layout(app, height), console=console, screen=console.is_terminal, auto_refresh=False) as live:
            while True:
                event = events.next()
                if event.kind == INPUT and event.key == exit_key:
                    break
                if event.kind == TICK:
                    if not app.update():
                        break
                    live.update(build_layout(app, height), refresh=True)
    except KeyboardInterrupt:
        logger.info("Display interrupted")
    finally:
        events.stop()

    logger.info(f"Display closed after {time.perf_counter() - started:.1f}s: {app!r}")
    return app
