"""Iterative radix-2 FFT, inverse FFT and FFT-based convolution.

All arithmetic is complex128. Transform lengths must be a power of two.
"""

from __future__ import annotations

import numpy as np


def _check_length(n: int) -> None:
    if n < 1 or n & (n - 1):
        raise ValueError(f"FFT length must be a power of two, got {n}")


def radix2_factors(n: int) -> np.ndarray:
    """Twiddle factors ``exp(-2j*pi*k/n)`` for ``k < n/2``."""
    _check_length(n)
    return np.exp(-2j * np.pi * np.arange(n // 2) / n)


def reorder(x) -> np.ndarray:
    """Return *x* permuted into bit-reversed index order."""
    x = np.asarray(x)
    n = len(x)
    _check_length(n)
    bits = n.bit_length() - 1
    idx = np.arange(n)
    rev = np.zeros(n, dtype=np.int64)
    for _ in range(bits):
        rev = (rev << 1) | (idx & 1)
        idx >>= 1
    return x[rev]


def fft(x) -> np.ndarray:
    """Forward FFT (decimation in time, unscaled).

    Parameters
    ----------
    x : array-like
        Complex or real input whose length is a power of two. Not modified.

    Returns
    -------
    np.ndarray
        complex128 spectrum of the same length.
    """
    src = np.asarray(x, dtype=np.complex128)
    n = len(src)
    _check_length(n)
    factors = radix2_factors(n)
    src = reorder(src)

    stage = 2
    while stage <= n:
        blocks = n // stage
        half = stage // 2
        rows = src.reshape(blocks, stage)
        even = rows[:, :half]
        if stage == 2:
            odd = rows[:, half:]
        else:
            odd = rows[:, half:] * factors[: blocks * half : blocks]
        src = np.concatenate([even + odd, even - odd], axis=1).reshape(n)
        stage <<= 1

    return src


def ifft(x) -> np.ndarray:
    """Inverse FFT.

    The input is mirrored (index 0 fixed, the rest reversed), transformed
    forward, and divided by the length.
    """
    value = np.asarray(x, dtype=np.complex128)
    n = len(value)
    _check_length(n)
    mirrored = np.empty(n, dtype=np.complex128)
    mirrored[0] = value[0]
    mirrored[1:] = value[:0:-1]
    return fft(mirrored) / n


def convolve(x, y) -> np.ndarray | None:
    """Circular convolution of *x* and *y* via the frequency domain.

    Returns None when the lengths differ.
    """
    x = np.asarray(x, dtype=np.complex128)
    y = np.asarray(y, dtype=np.complex128)
    if len(x) != len(y):
        return None
    return ifft(fft(x) * fft(y))
