"""Format conversion between integer PCM, normalized float and complex.

Every function is elementwise and stateless. Sources may be
:class:`~pcmdsp.buffer.Samples` or numpy arrays of a supported dtype; an
optional *out* array receives the result and must hold exactly as many
elements as the source.
"""

from __future__ import annotations

import numpy as np

from pcmdsp.buffer import Buffer, Samples
from pcmdsp.kinds import SampleKind

_INT16_SCALE = 32768.0


def _source(src) -> tuple[np.ndarray, SampleKind]:
    """Return the 1D array behind *src* and its kind."""
    if isinstance(src, Samples):
        return src.data, src.kind
    arr = np.asarray(src)
    return arr, SampleKind.from_dtype(arr.dtype)


def _output(out: np.ndarray | None, n: int, dtype) -> np.ndarray:
    if out is None:
        return np.empty(n, dtype=dtype)
    if len(out) != n:
        raise ValueError(f"Output holds {len(out)} samples, source has {n}")
    return out


def _normalized(arr: np.ndarray, kind: SampleKind) -> np.ndarray:
    x = arr.astype(np.float64)
    if kind.is_float:
        return x
    if kind.is_unsigned:
        x -= float(kind.bias)
    x /= kind.scale
    return x


def to_float(src, out: np.ndarray | None = None) -> np.ndarray:
    """Convert samples to float64 in [-1, 1].

    Signed integers are divided by ``2**(bits-1)``; unsigned integers have
    the half-range bias removed first. Float samples pass through.
    """
    arr, kind = _source(src)
    out = _output(out, len(arr), np.float64)
    out[:] = _normalized(arr, kind)
    return out


def to_complex(src, out: np.ndarray | None = None) -> np.ndarray:
    """Convert samples to complex128 with :func:`to_float` scaling and a zero
    imaginary part."""
    arr, kind = _source(src)
    out = _output(out, len(arr), np.complex128)
    out.real = _normalized(arr, kind)
    out.imag = 0.0
    return out


def to_int16(src, out: np.ndarray | None = None) -> np.ndarray:
    """Convert samples to 16-bit signed PCM.

    Integer kinds keep their top 16 bits (arithmetic shift); 8-bit kinds are
    widened by shifting left. Unsigned kinds are re-centered by flipping the
    sign bit. Float kinds are scaled by 32768, rounded half away from zero
    and saturated to the int16 range; NaN maps to 0 and infinities saturate.
    """
    arr, kind = _source(src)
    out = _output(out, len(arr), np.int16)

    if kind.is_float:
        x = np.nan_to_num(arr.astype(np.float64) * _INT16_SCALE, nan=0.0)
        x = np.copysign(np.floor(np.abs(x) + 0.5), x)
        out[:] = np.clip(x, -32768.0, 32767.0)
        return out

    if kind.is_unsigned:
        flipped = arr ^ kind.dtype.type(kind.bias)
        arr = flipped.view(kind.signed.dtype)

    if kind.bits > 16:
        out[:] = arr >> (kind.bits - 16)
    elif kind.bits == 16:
        out[:] = arr
    else:
        out[:] = arr.astype(np.int16) << 8
    return out


def buffer_to_float(buffer: Buffer) -> Buffer:
    """Convert every channel of *buffer* to normalized float64."""
    return buffer.to_float()
