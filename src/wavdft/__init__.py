"""
wavdft - direct Discrete Fourier Transform of WAV audio, charted in the terminal.
"""

from .dsp_core import dft, idft, InvalidLengthError
from .utils.wav import WavFile, MalformedHeaderError

__all__ = ['dft', 'idft', 'InvalidLengthError', 'WavFile', 'MalformedHeaderError']

__version__ = '1.0.0'
