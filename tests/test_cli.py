"""
End-to-end tests of the command line, config loading, and figure output.
"""

import numpy as np
import pytest
import yaml

from wavdft.cli import head_samples, main
from wavdft.utils.config import DEFAULT_CONFIG, load_config, merge_config
from wavdft.utils.plot import plot_analysis, plot_spectrum, plot_waveform
from wavdft.utils.wav import WavFile
from wavdft.dsp_core import dft


@pytest.fixture
def tone_file(tmp_path):
    """Half a second of a 100 Hz tone at 44100 Hz."""
    sr = 44100
    t = np.arange(sr // 2) / sr
    samples = np.round(10000 * np.sin(2 * np.pi * 100 * t)).astype(np.int16)
    path = tmp_path / '100Hz_44100Hz_16bit.wav'
    WavFile.from_samples(samples, sample_rate=sr).write(path)
    return path


@pytest.fixture
def small_config(tmp_path):
    """Shorter head so the O(N^2) transform stays quick."""
    path = tmp_path / 'config.yaml'
    path.write_text(yaml.safe_dump({'analysis': {'window_seconds': 0.02}}))
    return path


class TestConfig:

    def test_defaults(self):
        config = load_config()
        assert config == DEFAULT_CONFIG
        assert config is not DEFAULT_CONFIG

    def test_yaml_overrides(self, tmp_path):
        path = tmp_path / 'c.yaml'
        path.write_text("analysis:\n  norm: ortho\ndisplay:\n  step: 2\nextra:\n  key: 1\n")
        config = load_config(path)

        assert config['analysis']['norm'] == 'ortho'
        assert config['analysis']['window_seconds'] == 0.1
        assert config['display']['step'] == 2
        assert config['display']['window'] == 100
        assert config['extra'] == {'key': 1}

    def test_empty_yaml(self, tmp_path):
        path = tmp_path / 'empty.yaml'
        path.write_text("")
        assert load_config(path) == DEFAULT_CONFIG

    @pytest.mark.parametrize("text", [
        "- a\n- b\n",
        "analysis:\n  window_seconds: 0\n",
        "analysis:\n  norm: unitary\n",
        "display:\n  step: 0\n",
        "display:\n  tick_rate: -1\n",
        "analysis:\n  top_bins: 0\n",
        "analysis:\n  window_seconds: 0.1s\n",
        "analysis:\n  window_seconds: [0.1]\n",
        "display:\n  window: wide\n",
    ])
    def test_invalid(self, tmp_path, text):
        path = tmp_path / 'bad.yaml'
        path.write_text(text)
        with pytest.raises(ValueError):
            load_config(path)

    def test_numeric_strings_coerced(self, tmp_path):
        path = tmp_path / 'c.yaml'
        path.write_text("analysis:\n  window_seconds: '0.05'\n  top_bins: '3'\n")
        config = load_config(path)

        assert config['analysis']['window_seconds'] == 0.05
        assert config['analysis']['top_bins'] == 3

    def test_merge_does_not_mutate(self):
        base = {'a': {'b': 1}}
        merged = merge_config(base, {'a': {'c': 2}})
        assert merged == {'a': {'b': 1, 'c': 2}}
        assert base == {'a': {'b': 1}}


class TestCLI:

    def test_head_samples(self, tone_file):
        wav = WavFile.from_file(tone_file)
        assert len(head_samples(wav, 0.1)) == 4410
        assert len(head_samples(wav, 10.0)) == len(wav.signal)

    def test_analyze(self, tone_file, tmp_path):
        figure = tmp_path / 'figs' / 'spectrum.png'
        code = main(['analyze', str(tone_file), '--plot', str(figure), '--bins', '3'])

        assert code == 0
        assert figure.exists()

    def test_analyze_with_config_and_log(self, tone_file, small_config, tmp_path):
        log_file = tmp_path / 'logs' / 'run.log'
        code = main(['--config', str(small_config), '--log-file', str(log_file), 'analyze', str(tone_file)])

        assert code == 0
        log = log_file.read_text()
        assert 'CONFIGURATION' in log
        assert 'peak_bin: 2' in log  # 882-point head: 50 Hz per bin

    def test_roundtrip(self, tone_file, small_config, tmp_path):
        out = tmp_path / 'restored.wav'
        code = main(['--config', str(small_config), 'roundtrip', str(tone_file), str(out)])

        assert code == 0
        original = WavFile.from_file(tone_file)
        restored = WavFile.from_file(out)
        assert restored.sample_rate == original.sample_rate
        np.testing.assert_array_equal(restored.signal, original.signal[:882])

    def test_missing_file(self, tmp_path):
        assert main(['analyze', str(tmp_path / 'nope.wav')]) == 1

    def test_malformed_file(self, tmp_path):
        bad = tmp_path / 'bad.wav'
        bad.write_bytes(b'RIFX' + b'\x00' * 40)
        assert main(['analyze', str(bad)]) == 1

    def test_empty_data(self, tmp_path):
        empty = tmp_path / 'empty.wav'
        WavFile.from_samples(np.array([], dtype=np.int16), sample_rate=8000).write(empty)
        assert main(['analyze', str(empty)]) == 1

    def test_bad_config(self, tone_file, tmp_path):
        config = tmp_path / 'bad.yaml'
        config.write_text("analysis:\n  norm: nope\n")
        assert main(['--config', str(config), 'analyze', str(tone_file)]) == 1

    @pytest.mark.parametrize("bins", ['0', '-1'])
    def test_bins_must_be_positive(self, tone_file, small_config, bins):
        assert main(['--config', str(small_config), 'analyze', str(tone_file), '--bins', bins]) == 1

    @pytest.mark.parametrize("text", [
        "analysis:\n  top_bins: 0\n",
        "analysis:\n  window_seconds: 0.1s\n",
    ])
    def test_bad_config_values(self, tone_file, tmp_path, text):
        config = tmp_path / 'bad.yaml'
        config.write_text(text)
        assert main(['--config', str(config), 'analyze', str(tone_file)]) == 1

    def test_separate_figures(self, tone_file, small_config, tmp_path):
        wave, spec = tmp_path / 'wave.png', tmp_path / 'spec.png'
        code = main([
            '--config', str(small_config), 'analyze', str(tone_file),
            '--waveform-plot', str(wave), '--spectrum-plot', str(spec),
        ])

        assert code == 0
        assert wave.stat().st_size > 0
        assert spec.stat().st_size > 0

    def test_stereo_bins_use_interleaved_rate(self, small_config, tmp_path):
        sr = 44100
        t = np.arange(sr // 2) / sr
        mono = np.round(10000 * np.sin(2 * np.pi * 100 * t)).astype(np.int16)
        stereo = tmp_path / 'stereo.wav'
        WavFile.from_samples(np.repeat(mono, 2), sample_rate=sr, n_channels=2).write(stereo)
        log_file = tmp_path / 'run.log'

        code = main(['--config', str(small_config), '--log-file', str(log_file), 'analyze', str(stereo)])

        assert code == 0
        log = log_file.read_text()
        assert '2 channels are transformed interleaved' in log
        # 1764 interleaved values at 88200 values/s: still 50 Hz per bin
        assert 'peak_bin: 2' in log
        assert 'peak_frequency_hz: 100.0000' in log

    def test_config_logged_as_dotted_keys(self, tone_file, small_config, tmp_path):
        log_file = tmp_path / 'run.log'
        main(['--config', str(small_config), '--log-file', str(log_file), 'analyze', str(tone_file)])

        log = log_file.read_text()
        assert 'analysis.window_seconds: 0.0200' in log
        assert 'display.exit_key: q' in log

    def test_requires_command(self):
        with pytest.raises(SystemExit):
            main([])


class TestPlot:

    def test_figures_written(self, tmp_path):
        x = np.round(1000 * np.sin(2 * np.pi * np.arange(200) / 20)).astype(np.int16)
        X = dft(x)

        plot_waveform(x, 8000, tmp_path / 'wave.png', dpi=50)
        plot_spectrum(X, 8000, tmp_path / 'spec.png', n_bins=50, dpi=50)
        plot_analysis(x, X, 8000, tmp_path / 'both.png', dpi=50)

        for name in ['wave.png', 'spec.png', 'both.png']:
            assert (tmp_path / name).stat().st_size > 0
