"""
RIFF/WAVE reading and writing for 16-bit PCM audio.

The layout handled here is the canonical one:

    "RIFF" <u32 file size> "WAVE"
    "fmt " <u32 chunk size> <u16 format> <u16 channels> <u32 sample rate>
           <u32 byte rate> <u16 block align> <u16 bits per sample> [extension]
    [other chunks, kept verbatim]
    "data" <u32 size> <little-endian int16 samples>
    [trailing bytes, kept verbatim]

All fields are little-endian. Samples of multi-channel files stay interleaved.
Everything read is written back byte for byte.
"""

import struct
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Tuple, Union

import numpy as np

from .logging import get_logger

logger = get_logger(__name__)

PCM_FORMAT = 1
SUPPORTED_BITS_PER_SAMPLE = 16

_RIFF_STRUCT = struct.Struct('<4sI4s')
_CHUNK_STRUCT = struct.Struct('<4sI')
_FMT_STRUCT = struct.Struct('<HHIIHH')


class MalformedHeaderError(ValueError):
    """Raised when a file is not a 16-bit PCM RIFF/WAVE file."""


@dataclass
class RiffHeader:
    riff: bytes = b'RIFF'
    file_size: int = 0
    four_cc: bytes = b'WAVE'

    @classmethod
    def parse(cls, data: bytes) -> 'RiffHeader':
        if len(data) < _RIFF_STRUCT.size:
            raise MalformedHeaderError("File too short for a RIFF header")

        riff, file_size, four_cc = _RIFF_STRUCT.unpack_from(data, 0)
        if riff != b'RIFF':
            raise MalformedHeaderError(f"First four bytes are not RIFF: {riff!r}")
        if four_cc != b'WAVE':
            raise MalformedHeaderError(f"RIFF form type is not WAVE: {four_cc!r}")

        return cls(riff=riff, file_size=file_size, four_cc=four_cc)

    def to_bytes(self) -> bytes:
        return _RIFF_STRUCT.pack(self.riff, self.file_size, self.four_cc)


@dataclass
class FmtHeader:
    header_size: int = 16
    format: int = PCM_FORMAT
    n_channels: int = 1
    sample_rate: int = 44100
    byte_rate: int = 88200
    block_align: int = 2
    bits_per_sample: int = 16
    extension: bytes = b''

    @classmethod
    def parse(cls, chunk_size: int, body: bytes) -> 'FmtHeader':
        if chunk_size < _FMT_STRUCT.size or len(body) < chunk_size:
            raise MalformedHeaderError(f"fmt chunk too short: {chunk_size} bytes")

        fields = _FMT_STRUCT.unpack_from(body, 0)
        header = cls(chunk_size, *fields, extension=bytes(body[_FMT_STRUCT.size:chunk_size]))

        if header.format != PCM_FORMAT:
            raise MalformedHeaderError(f"Unsupported audio format {header.format} (only PCM is supported)")
        if header.bits_per_sample != SUPPORTED_BITS_PER_SAMPLE:
            raise MalformedHeaderError(
                f"Unsupported bit depth {header.bits_per_sample} (only 16-bit samples are supported)"
            )
        if header.n_channels < 1:
            raise MalformedHeaderError("fmt chunk declares zero channels")

        return header

    def to_bytes(self) -> bytes:
        body = _FMT_STRUCT.pack(
            self.format,
            self.n_channels,
            self.sample_rate,
            self.byte_rate,
            self.block_align,
            self.bits_per_sample,
        )
        return _CHUNK_STRUCT.pack(b'fmt ', self.header_size) + body + self.extension


@dataclass
class DataHeader:
    size: int = 0

    def to_bytes(self) -> bytes:
        return _CHUNK_STRUCT.pack(b'data', self.size)


@dataclass
class WavFile:
    """
    A 16-bit PCM WAV file: its headers and its interleaved int16 samples.

    Chunks found between "fmt " and "data" and any bytes after the sample
    data are carried along so that writing reproduces the input exactly.
    """
    riff_header: RiffHeader
    fmt_header: FmtHeader
    data_header: DataHeader
    signal: np.ndarray
    extra_chunks: List[Tuple[bytes, int, bytes]] = field(default_factory=list)
    trailer: bytes = b''

    @property
    def sample_rate(self) -> int:
        return self.fmt_header.sample_rate

    @property
    def n_channels(self) -> int:
        return self.fmt_header.n_channels

    @property
    def duration(self) -> float:
        """Length in seconds."""
        frames = len(self.signal) / self.n_channels
        return frames / self.sample_rate if self.sample_rate else 0.0

    @classmethod
    def from_bytes(cls, data: bytes) -> 'WavFile':
        riff_header = RiffHeader.parse(data)
        offset = _RIFF_STRUCT.size

        chunk_id, chunk_size, offset = _read_chunk_header(data, offset)
        if chunk_id != b'fmt ':
            raise MalformedHeaderError(f"Header does not start with fmt: {chunk_id!r}")
        fmt_header = FmtHeader.parse(chunk_size, data[offset:offset + chunk_size])
        offset += chunk_size

        extra_chunks = []
        while True:
            chunk_id, chunk_size, offset = _read_chunk_header(data, offset)
            if chunk_id == b'data':
                break
            body = data[offset:offset + chunk_size + (chunk_size & 1)]
            if len(body) < chunk_size:
                raise MalformedHeaderError(f"Chunk {chunk_id!r} is truncated")
            # (id, declared size, body including the pad byte of odd-sized chunks)
            extra_chunks.append((chunk_id, chunk_size, bytes(body)))
            offset += len(body)

        if chunk_size % 2:
            raise MalformedHeaderError(f"data chunk size {chunk_size} is not a whole number of 16-bit samples")

        end = offset + chunk_size
        if end > len(data):
            raise MalformedHeaderError(
                f"data chunk declares {chunk_size} bytes but only {len(data) - offset} are present"
            )

        signal = np.frombuffer(data, dtype='<i2', count=chunk_size // 2, offset=offset).astype(np.int16)

        wav = cls(
            riff_header=riff_header,
            fmt_header=fmt_header,
            data_header=DataHeader(size=chunk_size),
            signal=signal,
            extra_chunks=extra_chunks,
            trailer=bytes(data[end:]),
        )
        logger.debug(
            "Parsed WAV: %d Hz, %d channel(s), %d samples",
            wav.sample_rate, wav.n_channels, len(signal)
        )
        return wav

    @classmethod
    def from_file(cls, filename: Union[str, Path]) -> 'WavFile':
        """Read a WAV file. OSError propagates; bad headers raise MalformedHeaderError."""
        with open(filename, 'rb') as f:
            data = f.read()
        logger.info(f"Read {len(data)} bytes from {filename}")
        return cls.from_bytes(data)

    @classmethod
    def from_samples(cls, samples, sample_rate: int, n_channels: int = 1) -> 'WavFile':
        """Build a canonical 44-byte-header WAV around int16 samples."""
        signal = np.asarray(samples)
        if signal.ndim != 1:
            raise ValueError(f"Samples must be one-dimensional (interleaved), got shape {signal.shape}")
        if sample_rate <= 0:
            raise ValueError(f"Sample rate must be positive, got {sample_rate}")
        if n_channels < 1:
            raise ValueError(f"Number of channels must be positive, got {n_channels}")

        signal = signal.astype(np.int16)
        block_align = n_channels * SUPPORTED_BITS_PER_SAMPLE // 8
        data_size = signal.nbytes

        fmt_header = FmtHeader(
            header_size=16,
            format=PCM_FORMAT,
            n_channels=n_channels,
            sample_rate=int(sample_rate),
            byte_rate=int(sample_rate) * block_align,
            block_align=block_align,
            bits_per_sample=SUPPORTED_BITS_PER_SAMPLE,
        )
        # "WAVE" + fmt chunk + data chunk header + samples
        file_size = 4 + 8 + 16 + 8 + data_size

        return cls(
            riff_header=RiffHeader(file_size=file_size),
            fmt_header=fmt_header,
            data_header=DataHeader(size=data_size),
            signal=signal,
        )

    def with_signal(self, samples) -> 'WavFile':
        """Copy of this file's format carrying new samples; sizes are recomputed."""
        signal = np.asarray(samples).astype(np.int16)
        size_delta = signal.nbytes - self.data_header.size
        return WavFile(
            riff_header=RiffHeader(
                riff=self.riff_header.riff,
                file_size=self.riff_header.file_size + size_delta,
                four_cc=self.riff_header.four_cc,
            ),
            fmt_header=self.fmt_header,
            data_header=DataHeader(size=signal.nbytes),
            signal=signal,
            extra_chunks=list(self.extra_chunks),
            trailer=self.trailer,
        )

    def to_bytes(self) -> bytes:
        parts = [self.riff_header.to_bytes(), self.fmt_header.to_bytes()]
        for chunk_id, chunk_size, body in self.extra_chunks:
            parts.append(_CHUNK_STRUCT.pack(chunk_id, chunk_size))
            parts.append(body)
        parts.append(self.data_header.to_bytes())
        parts.append(self.signal.astype('<i2').tobytes())
        parts.append(self.trailer)
        return b''.join(parts)

    def write(self, filename: Union[str, Path]) -> None:
        path = Path(filename)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'wb') as f:
            f.write(self.to_bytes())
        logger.info(f"Wrote {len(self.signal)} samples to {path}")


def _read_chunk_header(data: bytes, offset: int) -> Tuple[bytes, int, int]:
    if offset + _CHUNK_STRUCT.size > len(data):
        raise MalformedHeaderError("Unexpected end of file while looking for the data chunk")
    chunk_id, chunk_size = _CHUNK_STRUCT.unpack_from(data, offset)
    return chunk_id, chunk_size, offset + _CHUNK_STRUCT.size
