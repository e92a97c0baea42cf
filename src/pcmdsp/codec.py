"""Byte-level encoding and decoding of samples.

Each sample occupies ``bits_per_sample // 8`` bytes, stored as an unsigned
integer in the requested byte order. Float kinds are the IEEE-754 bit
patterns of the value. Streaming variants move data through any binary
file-like object in fixed-size chunks.
"""

from __future__ import annotations

import logging

import numpy as np

from pcmdsp.buffer import Samples
from pcmdsp.errors import ShortBufferError, TransferError
from pcmdsp.kinds import ByteOrder, SampleKind

log = logging.getLogger(__name__)


def _bytes_per_sample(kind: SampleKind) -> int:
    return kind.bits // 8


# ---------------------------------------------------------------------------
# In-memory codec
# ---------------------------------------------------------------------------


def decode_into(samples: Samples, data, order=ByteOrder.BIG) -> int:
    """Fill *samples* in place from the bytes in *data*.

    Returns the number of samples decoded (``len(samples)``).
    """
    order = ByteOrder.parse(order)
    n = len(samples)
    need = n * _bytes_per_sample(samples.kind)
    view = memoryview(data).cast("B")
    if len(view) < need:
        raise ShortBufferError(
            f"Need {need} bytes to decode {n} {samples.kind.value} samples, "
            f"got {len(view)}"
        )
    if n == 0:
        return 0
    samples.data[:] = np.frombuffer(view, dtype=order.dtype(samples.kind), count=n)
    return n


def decode(data, kind, order=ByteOrder.BIG, count: int | None = None) -> Samples:
    """Decode *count* samples of *kind* from *data*.

    When *count* is None every whole sample in *data* is decoded.
    """
    kind = SampleKind.parse(kind)
    if count is None:
        count = len(memoryview(data).cast("B")) // _bytes_per_sample(kind)
    samples = Samples.zeros(count, kind)
    decode_into(samples, data, order)
    return samples


def encode_into(samples: Samples, buf, order=ByteOrder.BIG) -> int:
    """Write the encoded form of *samples* into the writable buffer *buf*.

    Returns the number of bytes written.
    """
    order = ByteOrder.parse(order)
    raw = encode(samples, order)
    view = memoryview(buf).cast("B")
    if len(view) < len(raw):
        raise ShortBufferError(
            f"Need {len(raw)} bytes to encode {len(samples)} samples, got {len(view)}"
        )
    view[: len(raw)] = raw
    return len(raw)


def encode(samples: Samples, order=ByteOrder.BIG) -> bytes:
    """Return *samples* encoded as bytes."""
    order = ByteOrder.parse(order)
    return samples.data.astype(order.dtype(samples.kind), copy=False).tobytes()


# ---------------------------------------------------------------------------
# Streaming codec
# ---------------------------------------------------------------------------


def _chunks(total: int, chunk_size: int):
    """Yield ``(start, stop)`` sample ranges: whole chunks, then the rest."""
    start = 0
    while start + chunk_size <= total:
        yield start, start + chunk_size
        start += chunk_size
    if start < total:
        yield start, total


def _check_chunking(samples: Samples, chunk_size: int | None) -> int:
    if chunk_size is None:
        chunk_size = len(samples)
    if len(samples) == 0 or chunk_size < 1:
        raise ShortBufferError(
            f"Cannot transfer {len(samples)} samples in chunks of {chunk_size}"
        )
    return chunk_size


def decode_from(
    samples: Samples,
    stream,
    order=ByteOrder.BIG,
    chunk_size: int | None = None,
) -> int:
    """Fill *samples* by reading bytes from *stream*.

    Parameters
    ----------
    samples : Samples
        Destination; its length is the number of samples to read.
    stream : binary file-like
        Anything with ``read(n) -> bytes``.
    order : ByteOrder or str
        Byte order of the stream.
    chunk_size : int or None
        Samples per read call. Defaults to ``len(samples)``. A final, smaller
        read covers ``len(samples) % chunk_size`` samples.

    Returns
    -------
    int
        Number of samples read.

    Raises
    ------
    ShortBufferError
        *samples* is empty or *chunk_size* < 1.
    TransferError
        The stream failed or returned fewer bytes than requested.
    """
    order = ByteOrder.parse(order)
    chunk_size = _check_chunking(samples, chunk_size)
    width = _bytes_per_sample(samples.kind)

    n = 0
    for start, stop in _chunks(len(samples), chunk_size):
        want = (stop - start) * width
        try:
            raw = stream.read(want)
        except OSError as e:
            raise TransferError(f"read failed: {e}", transferred=n) from e
        if raw is None or len(raw) != want:
            got = 0 if raw is None else len(raw)
            raise TransferError(
                f"short read: wanted {want} bytes, got {got}", transferred=n
            )
        log.debug(
            "decode %s %d:%d from %d bytes", samples.kind.value, start, stop, want
        )
        decode_into(samples[start:stop], raw, order)
        n = stop
    return n


def encode_to(
    samples: Samples,
    stream,
    order=ByteOrder.BIG,
    chunk_size: int | None = None,
) -> int:
    """Write *samples* to *stream*, *chunk_size* samples per write call.

    Mirrors :func:`decode_from`; returns the number of samples written.
    """
    order = ByteOrder.parse(order)
    chunk_size = _check_chunking(samples, chunk_size)

    n = 0
    for start, stop in _chunks(len(samples), chunk_size):
        raw = encode(samples[start:stop], order)
        try:
            written = stream.write(raw)
        except OSError as e:
            raise TransferError(f"write failed: {e}", transferred=n) from e
        if written is not None and written != len(raw):
            raise TransferError(
                f"short write: wanted {len(raw)} bytes, wrote {written}",
                transferred=n,
            )
        log.debug("encode %s %d:%d to %d bytes", samples.kind.value, start, stop, len(raw))
        n = stop
    return n
