"""Sample sources and sinks.

* ``SampleReader`` / ``SampleWriter`` -- read and write samples over any
  binary stream using the codec in :mod:`pcmdsp.codec`.
* ``read_wav`` / ``write_wav`` -- PCM WAV files (stdlib ``wave``).
"""

from __future__ import annotations

import wave
from pathlib import Path
from typing import Protocol

import numpy as np

from pcmdsp.buffer import Buffer, Samples, deinterleave, interleave
from pcmdsp.codec import decode, decode_from, encode, encode_to
from pcmdsp.convert import to_int16
from pcmdsp.errors import UnsupportedKindError
from pcmdsp.kinds import ByteOrder, SampleKind


class SampleSource(Protocol):
    """Anything that can fill a block of samples."""

    kind: SampleKind

    def read_samples(self, samples: Samples) -> int: ...


class SampleSink(Protocol):
    """Anything that can consume a block of samples."""

    kind: SampleKind

    def write_samples(self, samples: Samples) -> int: ...


# ---------------------------------------------------------------------------
# Stream adapters
# ---------------------------------------------------------------------------


class SampleReader:
    """Reads samples of one kind from a binary stream.

    Parameters
    ----------
    stream : binary file-like
        Source of encoded bytes.
    kind : SampleKind or str
        Representation of the encoded samples.
    order : ByteOrder or str
        Byte order of the encoded samples.
    """

    __slots__ = ("_stream", "kind", "order")

    def __init__(self, stream, kind, order=ByteOrder.BIG):
        self._stream = stream
        self.kind = SampleKind.parse(kind)
        self.order = ByteOrder.parse(order)

    def read_samples(self, samples: Samples) -> int:
        """Fill *samples* completely; returns the number of samples read."""
        if samples.kind is not self.kind:
            raise UnsupportedKindError(
                f"Reader decodes {self.kind.value}, got {samples.kind.value} buffer"
            )
        return decode_from(samples, self._stream, self.order)


class SampleWriter:
    """Writes samples of one kind to a binary stream."""

    __slots__ = ("_stream", "kind", "order")

    def __init__(self, stream, kind, order=ByteOrder.BIG):
        self._stream = stream
        self.kind = SampleKind.parse(kind)
        self.order = ByteOrder.parse(order)

    def write_samples(self, samples: Samples) -> int:
        """Write all of *samples*; returns the number of samples written."""
        if samples.kind is not self.kind:
            raise UnsupportedKindError(
                f"Writer encodes {self.kind.value}, got {samples.kind.value} buffer"
            )
        return encode_to(samples, self._stream, self.order)


# ---------------------------------------------------------------------------
# WAV files
# ---------------------------------------------------------------------------

_WAV_KINDS = {
    1: SampleKind.UINT8,
    2: SampleKind.INT16,
    4: SampleKind.INT32,
}


def read_wav(path: str | Path) -> Buffer:
    """Read a PCM WAV file into a Buffer of its native kind.

    8-bit files give ``uint8``, 16-bit ``int16`` and 32-bit ``int32``.
    24-bit samples are widened into the top bits of ``int32``. A file that
    is not a PCM WAV raises ValueError.
    """
    path = Path(path)
    try:
        with wave.open(str(path), "rb") as wf:
            n_channels = wf.getnchannels()
            sampwidth = wf.getsampwidth()
            sample_rate = wf.getframerate()
            n_frames = wf.getnframes()
            raw_bytes = wf.readframes(n_frames)
    except wave.Error as e:
        raise ValueError(f"{path}: {e}") from e

    if sampwidth == 3:
        # 24-bit: left-justify each sample in a little-endian int32
        raw = np.frombuffer(raw_bytes, dtype=np.uint8).reshape(-1, 3)
        padded = np.zeros((len(raw), 4), dtype=np.uint8)
        padded[:, 1:4] = raw
        kind = SampleKind.INT32
        flat = decode(padded.tobytes(), kind, ByteOrder.LITTLE)
    elif sampwidth in _WAV_KINDS:
        kind = _WAV_KINDS[sampwidth]
        flat = decode(raw_bytes, kind, ByteOrder.LITTLE)
    else:
        raise UnsupportedKindError(f"Unsupported sample width: {sampwidth} bytes")

    total_samples = n_frames * n_channels
    if len(flat) != total_samples:
        raise ValueError(f"Expected {total_samples} samples, got {len(flat)}")

    return deinterleave(flat, n_channels, sample_rate=float(sample_rate))


def write_wav(path: str | Path, buf: Buffer) -> None:
    """Write a Buffer to a PCM WAV file.

    ``uint8``, ``int16`` and ``int32`` buffers are stored as-is; every other
    kind is converted to 16-bit with :func:`~pcmdsp.convert.to_int16`.
    """
    if buf.channels < 1:
        raise ValueError("Cannot write a WAV file with no channels")

    path = Path(path)
    if buf.kind in _WAV_KINDS.values():
        flat = interleave(buf)
    else:
        flat = Samples(to_int16(interleave(buf)), kind=SampleKind.INT16)

    with wave.open(str(path), "wb") as wf:
        wf.setnchannels(buf.channels)
        wf.setsampwidth(flat.bits_per_sample // 8)
        wf.setframerate(int(round(buf.sample_rate)))
        wf.writeframes(encode(flat, ByteOrder.LITTLE))
