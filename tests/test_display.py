"""
Tests for the terminal display state, renderers, and event loop.
"""

import io
import queue
import threading

import numpy as np
import pytest
from rich.console import Console

from wavdft.display import App, Event, Events, TICK, INPUT, build_layout, render_bars, render_waveform, run


class ScriptedEvents:
    """Stands in for Events: hands out a fixed list of events."""

    def __init__(self, events):
        self._events = list(events)
        self.stopped = False

    def next(self, timeout=None):
        return self._events.pop(0)

    def stop(self):
        self.stopped = True


def quiet_console():
    return Console(file=io.StringIO(), force_terminal=False, width=100)


class TestApp:

    def test_initial_window(self):
        app = App(np.arange(300), window=100, step=5, n_bars=10)

        assert len(app.signal_buf) == 100
        assert len(app.signal) == 200
        assert app.window == [0.0, 100.0]
        assert app.signal_buf[0] == (0.0, 0.0)
        assert app.min == 0.0
        assert app.max == 299.0
        assert len(app.frequency) == 10

    def test_update_scrolls_by_step(self):
        app = App(np.arange(300), window=100, step=5)
        assert app.update()

        assert app.window == [5.0, 105.0]
        assert len(app.signal_buf) == 100
        assert app.signal_buf[0] == (5.0, 5.0)
        assert app.signal_buf[-1] == (104.0, 104.0)
        assert len(app.signal) == 195

    def test_update_stops_at_end(self):
        app = App(np.arange(12), window=10, step=5)
        assert not app.update()
        assert app.window == [0.0, 10.0]

    def test_short_signal(self):
        app = App([3, -3], window=100)
        assert len(app.signal_buf) == 2
        assert app.window == [0.0, 2.0]

    def test_spectrum_bars_use_dft(self):
        app = App([1, 0, 0, 0, 0, 0, 0, 0], n_bars=8)
        assert [label for label, _ in app.frequency] == [str(k) for k in range(8)]
        np.testing.assert_allclose([m for _, m in app.frequency], np.full(8, 0.125))

    def test_hz_labels(self):
        app = App(np.ones(10), n_bars=3, sample_rate=100)
        assert [label for label, _ in app.frequency] == ['0', '10', '20']

    def test_empty_signal(self):
        with pytest.raises(ValueError):
            App([])


class TestRenderers:

    def test_waveform_extremes(self):
        text = render_waveform([(0.0, -1.0), (1.0, 1.0), (2.0, 0.0)], -1.0, 1.0, height=3)
        rows = text.plain.split('\n')

        assert rows == [' • ', '  •', '•  ']

    def test_waveform_flat_signal(self):
        rows = render_waveform([(0.0, 5.0), (1.0, 5.0)], 5.0, 5.0, height=4).plain.split('\n')
        assert rows[2] == '••'

    def test_bars(self):
        table = render_bars([('0', 1.0), ('1', 0.5), ('2', 0.0)], bar_width=10)
        assert table.row_count == 3

        console = quiet_console()
        console.print(table)
        output = console.file.getvalue()
        assert '█' * 10 in output
        assert '0.50' in output

    def test_layout(self):
        layout = build_layout(App(np.arange(50), window=20, n_bars=5), height=5)

        console = quiet_console()
        console.print(layout, height=30)
        output = console.file.getvalue()
        assert 'wav' in output
        assert 'spectrum' in output


class TestRun:

    def test_exit_key(self):
        events = ScriptedEvents([Event(TICK), Event(TICK), Event(INPUT, 'x'), Event(INPUT, 'q')])
        app = run(np.arange(300), console=quiet_console(), events=events)

        assert app.window == [10.0, 110.0]
        assert events.stopped

    def test_stops_when_exhausted(self):
        config = {'display': {'window': 10, 'step': 5, 'n_bars': 4, 'height': 4}}
        events = ScriptedEvents([Event(TICK)] * 10)
        app = run(np.arange(22), config=config, console=quiet_console(), events=events)

        assert app.window == [10.0, 20.0]
        assert events.stopped


class TestEvents:

    def test_ticks(self):
        events = Events(tick_rate=0.01, read_input=False)
        try:
            assert events.next(timeout=1.0).kind == TICK
            assert events.next(timeout=1.0).kind == TICK
        finally:
            events.stop()

    def test_post(self):
        events = Events(tick_rate=10.0, read_input=False)
        try:
            # first tick is posted immediately
            assert events.next(timeout=1.0).kind == TICK
            events.post(Event(INPUT, 'q'))
            assert events.next(timeout=1.0) == Event(INPUT, 'q')
        finally:
            events.stop()

    def test_no_input_thread_without_tty(self):
        events = Events(tick_rate=10.0, input_stream=io.StringIO())
        try:
            assert events._input_thread is None
        finally:
            events.stop()

    def test_stop_ends_ticks(self):
        events = Events(tick_rate=0.01, read_input=False)
        events.stop()
        while True:
            try:
                events.next(timeout=0.05)
            except queue.Empty:
                break

    def test_failed_terminal_setup_leaves_no_ticker(self):
        class BrokenTerminal(io.StringIO):
            def isatty(self):
                return True

            def fileno(self):
                raise io.UnsupportedOperation("fileno")

        def tickers():
            return sum(1 for t in threading.enumerate() if t.name == 'wavdft-tick')

        before = tickers()
        with pytest.raises(io.UnsupportedOperation):
            Events(tick_rate=10.0, input_stream=BrokenTerminal())
        assert tickers() == before
