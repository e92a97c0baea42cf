"""Fixed delay line over a sample source."""

from __future__ import annotations

import datetime
import logging
import math

from pcmdsp.buffer import Samples
from pcmdsp.errors import TransferError
from pcmdsp.io import SampleSource

log = logging.getLogger(__name__)


def _seconds(delay) -> float:
    if isinstance(delay, datetime.timedelta):
        return delay.total_seconds()
    return float(delay)


def new_delay(source: SampleSource, channels: int, sample_rate: float, delay):
    """Delay everything read from *source* by *delay*.

    Parameters
    ----------
    source : SampleSource
        Upstream reader of interleaved samples.
    channels : int
        Channels interleaved in the stream.
    sample_rate : float
        Frames per second.
    delay : float or datetime.timedelta
        Delay in seconds.

    Returns
    -------
    SampleSource
        *source* itself for a zero delay, otherwise a :class:`Delay`.
    """
    if channels < 1:
        raise ValueError(f"channels must be >= 1, got {channels}")
    seconds = _seconds(delay)
    if seconds < 0:
        raise ValueError(f"delay can't be negative, got {seconds}")
    if seconds == 0:
        return source

    frames = math.floor(sample_rate * seconds + 0.5)
    return Delay(source, channels * frames, seconds)


class Delay:
    """A source whose output lags its upstream by a fixed number of samples.

    The line starts out holding *latency* samples of silence and always holds
    the most recent upstream samples not yet emitted.
    """

    __slots__ = ("_source", "_line", "_seconds")

    def __init__(self, source: SampleSource, latency: int, seconds: float = 0.0):
        if latency < 0:
            raise ValueError(f"latency can't be negative, got {latency}")
        self._source = source
        self._line = Samples.zeros(latency, source.kind)
        self._seconds = seconds
        log.debug("delay line of %d %s samples", latency, source.kind.value)

    @property
    def kind(self):
        return self._source.kind

    @property
    def latency(self) -> int:
        """Delay in samples (all channels)."""
        return len(self._line)

    @property
    def duration(self) -> float:
        """Delay in seconds."""
        return self._seconds

    def __str__(self) -> str:
        return f"delay {self._seconds:g}s"

    def __repr__(self) -> str:
        return f"Delay(latency={self.latency}, kind={self.kind.value})"

    def read_samples(self, buffer: Samples) -> int:
        """Fill *buffer*; returns ``len(buffer)``.

        Any ``OSError`` from upstream is re-raised as :class:`TransferError`
        whose ``transferred`` counts the samples already placed in *buffer*.
        """
        line = self._line
        if len(line) == 0:
            return self._source.read_samples(buffer)
        if len(buffer) == 0:
            return 0

        # Consume from the delay line first.
        n = min(len(buffer), len(line))
        buffer.data[:n] = line.data[:n]
        if len(buffer) > n:
            try:
                self._source.read_samples(buffer[n:])
            except OSError as e:
                done = n + getattr(e, "transferred", 0)
                raise TransferError(str(e), transferred=done) from e

        # Advance the line and top it up from upstream.
        line.data[: len(line) - n] = line.data[n:]
        try:
            self._source.read_samples(line[len(line) - n :])
        except OSError as e:
            raise TransferError(str(e), transferred=len(buffer)) from e

        return len(buffer)
