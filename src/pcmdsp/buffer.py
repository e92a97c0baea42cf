"""Samples and Buffer -- typed sample containers backed by numpy arrays.

``Samples`` holds one channel of samples in a single :class:`SampleKind`;
``Buffer`` holds one ``Samples`` per channel plus sample-rate metadata.
"""

from __future__ import annotations

import math

import numpy as np

from pcmdsp.errors import UnsupportedKindError
from pcmdsp.kinds import SampleKind

DEFAULT_SAMPLE_RATE = 48000.0


class Samples:
    """A mono, growable sequence of samples of one kind.

    Parameters
    ----------
    data : array-like or Samples, optional
        Sample values. Copied.
    kind : SampleKind, str or dtype-like, optional
        Representation. Inferred from *data* when *None*; ``float64`` for
        empty input.

    Slicing returns a ``Samples`` view sharing storage with the parent, so
    filling a slice in place fills the parent.
    """

    __slots__ = ("_data", "_kind")

    def __init__(self, data=None, kind=None):
        if isinstance(data, Samples):
            if kind is None:
                kind = data.kind
            data = data._data
        if kind is None:
            if data is None or (not isinstance(data, np.ndarray) and len(data) == 0):
                kind = SampleKind.FLOAT64
            else:
                kind = SampleKind.from_dtype(np.asarray(data).dtype)
        kind = SampleKind.parse(kind)

        if data is None:
            arr = np.zeros(0, dtype=kind.dtype)
        else:
            arr = np.array(data, dtype=kind.dtype)
        if arr.ndim != 1:
            raise ValueError(f"Samples requires 1D data, got {arr.ndim}D")

        self._data: np.ndarray = arr
        self._kind: SampleKind = kind

    @classmethod
    def _wrap(cls, arr: np.ndarray, kind: SampleKind) -> Samples:
        """Wrap *arr* without copying."""
        obj = cls.__new__(cls)
        obj._data = arr
        obj._kind = kind
        return obj

    @classmethod
    def zeros(cls, n: int, kind=SampleKind.FLOAT64) -> Samples:
        """*n* samples of silence."""
        kind = SampleKind.parse(kind)
        return cls._wrap(np.zeros(n, dtype=kind.dtype), kind)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def data(self) -> np.ndarray:
        """The backing 1D array."""
        return self._data

    @property
    def kind(self) -> SampleKind:
        return self._kind

    @property
    def dtype(self) -> np.dtype:
        return self._data.dtype

    @property
    def bits_per_sample(self) -> int:
        return self._kind.bits

    # ------------------------------------------------------------------
    # Sequence protocol
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return self._data.shape[0]

    def __iter__(self):
        return iter(self._data.tolist())

    def __getitem__(self, key):
        if isinstance(key, slice):
            return Samples._wrap(self._data[key], self._kind)
        return self._data[key].item()

    def __setitem__(self, key, value):
        if isinstance(value, Samples):
            value = value._data
        self._data[key] = value

    def __eq__(self, other):
        if not isinstance(other, Samples):
            return NotImplemented
        return self._kind is other._kind and np.array_equal(self._data, other._data)

    __hash__ = None

    def __array__(self, dtype=None, copy=None):
        if dtype is None:
            return self._data
        return self._data.astype(dtype)

    def __repr__(self) -> str:
        return f"Samples(kind={self._kind.value}, len={len(self)})"

    # ------------------------------------------------------------------
    # Growth
    # ------------------------------------------------------------------

    def push(self, *values) -> None:
        """Append *values* to the end."""
        extra = np.array(values, dtype=self._kind.dtype)
        self._data = np.concatenate([self._data, extra])

    def pop(self):
        """Remove and return the last sample."""
        if len(self) == 0:
            raise IndexError("pop from empty Samples")
        value = self._data[-1].item()
        self._data = self._data[:-1].copy()
        return value

    def shift(self, n: int) -> Samples:
        """Remove and return the first *n* samples."""
        if n < 0 or n > len(self):
            raise IndexError(f"Cannot shift {n} samples from {len(self)}")
        head = Samples._wrap(self._data[:n].copy(), self._kind)
        self._data = self._data[n:].copy()
        return head

    def unshift(self, *values) -> None:
        """Insert *values* at the start, keeping their order."""
        extra = np.array(values, dtype=self._kind.dtype)
        self._data = np.concatenate([extra, self._data])

    def copy(self) -> Samples:
        """Deep copy with independent numpy storage."""
        return Samples._wrap(self._data.copy(), self._kind)


class Buffer:
    """A multi-channel buffer: one :class:`Samples` per channel.

    Parameters
    ----------
    channels : iterable of Samples or array-like
        Channel data. Every channel must share one kind.
    kind : SampleKind, str or dtype-like, optional
        Representation applied to channels given as plain arrays.
    sample_rate : float
        Sample rate in Hz.

    Channels may differ in length; operations use the shortest one
    (:attr:`samples`).
    """

    __slots__ = ("_channels", "_kind", "_sample_rate")

    def __init__(self, channels=(), kind=None, sample_rate: float = DEFAULT_SAMPLE_RATE):
        chans = [
            c if isinstance(c, Samples) else Samples(c, kind=kind)
            for c in channels
        ]
        if chans:
            first = chans[0].kind
            for c in chans[1:]:
                if c.kind is not first:
                    raise ValueError(
                        f"Channel kind mismatch: {first.value} vs {c.kind.value}"
                    )
            buf_kind = first
        else:
            buf_kind = SampleKind.parse(kind) if kind is not None else SampleKind.FLOAT64

        self._channels: list[Samples] = chans
        self._kind: SampleKind = buf_kind
        self._sample_rate: float = float(sample_rate)

    @classmethod
    def zeros(
        cls,
        channels: int,
        samples: int,
        kind=SampleKind.FLOAT64,
        sample_rate: float = DEFAULT_SAMPLE_RATE,
    ) -> Buffer:
        kind = SampleKind.parse(kind)
        return cls(
            [Samples.zeros(samples, kind) for _ in range(channels)],
            kind=kind,
            sample_rate=sample_rate,
        )

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def kind(self) -> SampleKind:
        return self._kind

    @property
    def sample_rate(self) -> float:
        return self._sample_rate

    @property
    def channels(self) -> int:
        return len(self._channels)

    @property
    def samples(self) -> int:
        """Samples per channel: the length of the shortest channel."""
        if not self._channels:
            return 0
        return min(len(c) for c in self._channels)

    @property
    def bits_per_sample(self) -> int:
        return self._kind.bits

    @property
    def duration(self) -> float:
        """Duration in seconds."""
        return self.samples / self._sample_rate

    def channel(self, i: int) -> Samples:
        if i < 0 or i >= self.channels:
            raise IndexError(
                f"Channel {i} out of range for {self.channels}-channel buffer"
            )
        return self._channels[i]

    def __getitem__(self, i: int) -> Samples:
        return self.channel(i)

    def __iter__(self):
        return iter(self._channels)

    def __len__(self) -> int:
        """Number of channels."""
        return len(self._channels)

    def __eq__(self, other):
        if not isinstance(other, Buffer):
            return NotImplemented
        return self._kind is other._kind and self._channels == other._channels

    __hash__ = None

    def __repr__(self) -> str:
        return (
            f"Buffer(channels={self.channels}, samples={self.samples}, "
            f"kind={self._kind.value}, sr={self._sample_rate})"
        )

    # ------------------------------------------------------------------
    # Conversion
    # ------------------------------------------------------------------

    def to_float(self) -> Buffer:
        """Convert every channel to normalized float64."""
        from pcmdsp.convert import to_float

        return Buffer(
            [Samples._wrap(to_float(c), SampleKind.FLOAT64) for c in self._channels],
            kind=SampleKind.FLOAT64,
            sample_rate=self._sample_rate,
        )

    def to_mono(self) -> Samples:
        """Average the channels into a single channel of the same kind."""
        if not self._channels:
            return Samples.zeros(0, self._kind)
        if self.channels == 1:
            return self._channels[0].copy()
        n = self.samples
        stacked = np.stack([c.data[:n].astype(np.float64) for c in self._channels])
        mixed = stacked.mean(axis=0)
        if not self._kind.is_float:
            mixed = np.trunc(mixed)
        return Samples._wrap(mixed.astype(self._kind.dtype), self._kind)


# ---------------------------------------------------------------------------
# Interleaving
# ---------------------------------------------------------------------------


def interleave(buffer: Buffer) -> Samples:
    """Flatten a buffer frame by frame: ``[L0, R0, L1, R1, ...]``."""
    if buffer.channels == 0:
        return Samples.zeros(0, buffer.kind)
    n = buffer.samples
    planar = np.stack([c.data[:n] for c in buffer])
    return Samples._wrap(np.ascontiguousarray(planar.T).reshape(-1), buffer.kind)


def deinterleave(
    samples: Samples, channels: int, sample_rate: float = DEFAULT_SAMPLE_RATE
) -> Buffer:
    """Split interleaved samples into *channels* channels.

    Trailing samples that do not fill a whole frame are dropped.
    """
    if channels < 1:
        raise ValueError(f"channels must be >= 1, got {channels}")
    per_channel = len(samples) // channels
    frames = samples.data[: per_channel * channels].reshape(per_channel, channels)
    return Buffer(
        [Samples._wrap(frames[:, c].copy(), samples.kind) for c in range(channels)],
        kind=samples.kind,
        sample_rate=sample_rate,
    )


# ---------------------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------------------


def sample_min(samples: Samples):
    """Smallest sample, or 0 for an empty sequence."""
    if len(samples) == 0:
        return samples.dtype.type(0).item()
    return samples.data.min().item()


def sample_max(samples: Samples):
    """Largest sample, or 0 for an empty sequence."""
    if len(samples) == 0:
        return samples.dtype.type(0).item()
    return samples.data.max().item()


def mean(samples: Samples) -> float:
    """Arithmetic mean using compensated summation."""
    if len(samples) == 0:
        return 0.0
    return math.fsum(samples.data.tolist()) / len(samples)


def rms(samples: Samples) -> float:
    """Root mean square."""
    if len(samples) == 0:
        return 0.0
    x = samples.data.astype(np.float64)
    return float(np.sqrt(np.dot(x, x) / len(x)))


def clip(samples: Samples, lo, hi) -> None:
    """Clamp samples to ``[lo, hi]`` in place."""
    np.clip(samples.data, lo, hi, out=samples.data)


def normalize(samples: Samples) -> None:
    """Scale float samples in place so the peak magnitude is 1.

    Silent (all-zero) and empty sequences are left unchanged.
    """
    if not samples.kind.is_float:
        raise UnsupportedKindError(
            f"normalize requires a float kind, got {samples.kind.value}"
        )
    if len(samples) == 0:
        return
    peak = max(abs(sample_max(samples)), abs(sample_min(samples)))
    if peak == 0:
        return
    np.divide(samples.data, samples.dtype.type(peak), out=samples.data)
