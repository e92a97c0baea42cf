"""Spectrum analysis on top of the FFT engine."""

from __future__ import annotations

import math
from typing import NamedTuple

import numpy as np

from pcmdsp import fourier
from pcmdsp._typing import WindowFunction
from pcmdsp.buffer import Samples, mean
from pcmdsp.convert import to_complex, to_float
from pcmdsp.errors import UnsupportedKindError

# Bins below this magnitude are not considered part of the spectrum by
# :func:`strongest`.
DEFAULT_MAGNITUDE_THRESHOLD = 10


class FrequencyPower(NamedTuple):
    """One FFT bin: its frequency in Hz and its magnitude."""

    frequency: int
    magnitude: float


def sqnr(bits: int) -> float:
    """Signal-to-quantization-noise ratio of a *bits*-bit quantizer, in dB."""
    return 20.0 * math.log10(2.0**bits)


def remove_dc(samples: Samples) -> None:
    """Subtract the mean from float *samples* in place."""
    if not samples.kind.is_float:
        raise UnsupportedKindError(
            f"remove_dc requires a float kind, got {samples.kind.value}"
        )
    if len(samples) == 0:
        return
    np.subtract(samples.data, samples.dtype.type(mean(samples)), out=samples.data)


def _scratch(buf: np.ndarray | None, n: int, dtype) -> np.ndarray:
    """Return *buf* if it already holds *n* elements, else a new array."""
    if buf is None or len(buf) != n:
        return np.empty(n, dtype=dtype)
    return buf


class SpectrumAnalyzer:
    """Turns chunks of samples into magnitude/frequency pairs.

    Parameters
    ----------
    sample_rate : int
        Sample rate of the analysed chunks in Hz.
    window : callable or None
        ``window(n)`` returns *n* weighting coefficients (``np.hanning``
        and friends). None analyses the chunk unweighted.

    The analyzer reuses two scratch arrays between calls, so a single
    instance must not be shared between threads without external locking.
    """

    __slots__ = ("sample_rate", "window", "_floats", "_complex")

    def __init__(self, sample_rate: int, window: WindowFunction | None = None):
        if sample_rate <= 0:
            raise ValueError(f"sample_rate must be > 0, got {sample_rate}")
        self.sample_rate = int(sample_rate)
        self.window = window
        self._floats: np.ndarray | None = None
        self._complex: np.ndarray | None = None

    def analyze(self, samples) -> list[FrequencyPower]:
        """Analyse one chunk.

        The chunk length must be a power of two. Bin 0 (DC) is skipped, so
        the result holds ``n/2 - 1`` entries for bins ``1 .. n/2 - 1``.
        """
        n = len(samples)

        self._floats = _scratch(self._floats, n, np.float64)
        to_float(samples, out=self._floats)

        if self.window is not None:
            coefficients = np.asarray(self.window(n), dtype=np.float64)
            if coefficients.shape != (n,):
                raise ValueError(
                    f"Window returned {coefficients.size} coefficients for {n} samples"
                )
            self._floats *= coefficients

        self._complex = _scratch(self._complex, n, np.complex128)
        to_complex(self._floats, out=self._complex)

        spectrum = fourier.fft(self._complex)

        bins = np.arange(1, n // 2)
        re = spectrum.real[1 : n // 2]
        im = spectrum.imag[1 : n // 2]
        magnitudes = np.sqrt(re * re + im * im)
        frequencies = bins * self.sample_rate // n
        return [
            FrequencyPower(int(f), float(m))
            for f, m in zip(frequencies, magnitudes)
        ]


def strongest(
    powers: list[FrequencyPower],
    threshold: float = DEFAULT_MAGNITUDE_THRESHOLD,
    limit: int | None = None,
) -> list[FrequencyPower]:
    """Bins with a magnitude of at least *threshold*, strongest first."""
    kept = [p for p in powers if p.magnitude >= threshold]
    kept.sort(key=lambda p: p.magnitude, reverse=True)
    if limit is not None:
        kept = kept[:limit]
    return kept
