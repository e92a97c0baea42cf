"""Windowed-sinc FIR filter design and time-domain convolution."""

from __future__ import annotations

import logging

import numpy as np

from pcmdsp._typing import WindowFunction

log = logging.getLogger(__name__)

DEFAULT_TAPS = 62


def _hz_to_normalized(freq_hz: float, sample_rate: float) -> float:
    """Convert Hz to normalized frequency [0, 0.5).

    Raises ValueError if freq_hz is negative or >= Nyquist.
    """
    if freq_hz < 0:
        raise ValueError(f"Frequency must be non-negative, got {freq_hz}")
    nyquist = sample_rate / 2.0
    if freq_hz >= nyquist:
        raise ValueError(f"Frequency {freq_hz} Hz >= Nyquist ({nyquist} Hz)")
    return freq_hz / sample_rate


class Sinc:
    """Windowed-sinc coefficient designer.

    Parameters
    ----------
    cutoff : float
        Cutoff frequency in Hz.
    sample_rate : float
        Sample rate in Hz.
    taps : int
        Filter order; the kernel has ``taps + 1`` coefficients. Must be even.
        More taps give a steeper transition and more delay.
    window : callable
        ``window(taps + 1)`` returns the weighting applied to the sinc.

    The configuration is fixed at construction. Coefficients are computed on
    first request and cached; the cached arrays are read-only.
    """

    __slots__ = (
        "_cutoff",
        "_sample_rate",
        "_taps",
        "_window",
        "_transition",
        "_lowpass",
        "_highpass",
    )

    def __init__(
        self,
        cutoff: float,
        sample_rate: float,
        taps: int = DEFAULT_TAPS,
        window: WindowFunction = np.hamming,
    ):
        if sample_rate <= 0:
            raise ValueError(f"sample_rate must be > 0, got {sample_rate}")
        if taps < 2 or taps % 2:
            raise ValueError(f"taps must be an even number >= 2, got {taps}")
        self._transition = _hz_to_normalized(cutoff, sample_rate)
        self._cutoff = float(cutoff)
        self._sample_rate = float(sample_rate)
        self._taps = int(taps)
        self._window = window
        self._lowpass: np.ndarray | None = None
        self._highpass: np.ndarray | None = None

    @property
    def cutoff(self) -> float:
        return self._cutoff

    @property
    def sample_rate(self) -> float:
        return self._sample_rate

    @property
    def taps(self) -> int:
        return self._taps

    @property
    def window(self) -> WindowFunction:
        return self._window

    @property
    def transition_frequency(self) -> float:
        """Cutoff as a fraction of the sample rate."""
        return self._transition

    def _window_data(self) -> np.ndarray:
        size = self._taps + 1
        data = np.asarray(self._window(size), dtype=np.float64)
        if data.shape != (size,):
            raise ValueError(f"Window returned {data.size} coefficients, need {size}")
        return data

    def lowpass_coefficients(self) -> np.ndarray:
        """Low-pass kernel of ``taps + 1`` coefficients."""
        if self._lowpass is not None:
            return self._lowpass

        taps = self._taps
        center = taps // 2
        ft = self._transition
        win = self._window_data()

        # The kernel is symmetric: compute the first half and mirror it.
        c = np.arange(center, dtype=np.float64) - taps / 2
        half = np.sin(c * 2.0 * np.pi * ft) / (np.pi * c) * win[:center]

        coefficients = np.empty(taps + 1, dtype=np.float64)
        coefficients[:center] = half
        coefficients[center + 1 :] = half[::-1]
        coefficients[center] = 2.0 * ft * win[center]
        coefficients.flags.writeable = False

        log.debug(
            "designed %d-tap low-pass at %.1f Hz / %.1f Hz",
            taps,
            self._cutoff,
            self._sample_rate,
        )
        self._lowpass = coefficients
        return coefficients

    def highpass_coefficients(self) -> np.ndarray:
        """High-pass kernel: the low-pass kernel spectrally inverted."""
        if self._highpass is not None:
            return self._highpass

        center = self._taps // 2
        coefficients = -self.lowpass_coefficients()
        coefficients[center] = (1.0 - 2.0 * self._transition) * self._window_data()[center]
        coefficients.flags.writeable = False

        self._highpass = coefficients
        return coefficients


class FIR:
    """Applies a :class:`Sinc` design to signals by direct convolution."""

    __slots__ = ("sinc",)

    def __init__(self, sinc: Sinc):
        self.sinc = sinc

    def lowpass(self, src) -> np.ndarray | None:
        return self.convolve(src, self.sinc.lowpass_coefficients())

    def highpass(self, src) -> np.ndarray | None:
        return self.convolve(src, self.sinc.highpass_coefficients())

    @staticmethod
    def convolve(src, kernel) -> np.ndarray | None:
        """Convolve *src* with *kernel* in the time domain.

        Output has ``len(src)`` samples. The first ``len(kernel)`` outputs
        only see the history that exists, as if the signal were preceded by
        silence; output ``i`` includes ``src[i]`` itself, so the result equals
        ``np.convolve(src, kernel)[:len(src)]``. Returns None unless the kernel
        is shorter than the signal.
        """
        src = np.asarray(src, dtype=np.float64)
        kernel = np.asarray(kernel, dtype=np.float64)
        n = len(src)
        k = len(kernel)
        if not n > k:
            return None

        dst = np.empty(n, dtype=np.float64)
        reversed_kernel = kernel[::-1]

        # Partial overlap at the start.
        for i in range(k):
            dst[i] = np.dot(src[: i + 1], reversed_kernel[k - 1 - i :])

        # Full overlap: one window of k samples per output.
        windows = np.lib.stride_tricks.sliding_window_view(src, k)
        dst[k:] = windows[1:] @ reversed_kernel
        return dst


def lowpass(src, cutoff: float, sample_rate: float) -> np.ndarray | None:
    """Low-pass *src* with a 62-tap Hamming-windowed sinc."""
    sinc = Sinc(cutoff, sample_rate, taps=DEFAULT_TAPS, window=np.hamming)
    return FIR(sinc).lowpass(src)


def highpass(src, cutoff: float, sample_rate: float) -> np.ndarray | None:
    """High-pass *src* with a 62-tap Blackman-windowed sinc."""
    sinc = Sinc(cutoff, sample_rate, taps=DEFAULT_TAPS, window=np.blackman)
    return FIR(sinc).highpass(src)
