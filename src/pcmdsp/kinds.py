"""Sample representations and byte orders.

``SampleKind`` is the closed set of numeric representations a sample can
take. Every conversion and codec routine dispatches on it; anything outside
the set is rejected with :class:`~pcmdsp.errors.UnsupportedKindError`.
"""

from __future__ import annotations

import enum

import numpy as np

from pcmdsp.errors import UnsupportedKindError


class SampleKind(enum.Enum):
    """Numeric representation of a single sample."""

    INT8 = "int8"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    UINT8 = "uint8"
    UINT16 = "uint16"
    UINT32 = "uint32"
    UINT64 = "uint64"
    FLOAT32 = "float32"
    FLOAT64 = "float64"

    @property
    def dtype(self) -> np.dtype:
        """Native-endian numpy dtype."""
        return np.dtype(self.value)

    @property
    def bits(self) -> int:
        """Bits required to store one sample."""
        return self.dtype.itemsize * 8

    @property
    def is_float(self) -> bool:
        return self.dtype.kind == "f"

    @property
    def is_signed(self) -> bool:
        return self.dtype.kind == "i"

    @property
    def is_unsigned(self) -> bool:
        return self.dtype.kind == "u"

    @property
    def scale(self) -> float:
        """Divisor mapping integer samples onto [-1, 1); 1.0 for floats."""
        if self.is_float:
            return 1.0
        return float(1 << (self.bits - 1))

    @property
    def bias(self) -> int:
        """Half-range offset of unsigned kinds; 0 otherwise."""
        if self.is_unsigned:
            return 1 << (self.bits - 1)
        return 0

    @property
    def signed(self) -> SampleKind:
        """Signed integer kind of the same width."""
        if self.is_float:
            raise UnsupportedKindError(f"{self.value} has no signed integer form")
        return SampleKind(f"int{self.bits}")

    @classmethod
    def from_dtype(cls, dtype) -> SampleKind:
        """Map a numpy dtype onto a kind, ignoring byte order."""
        try:
            dt = np.dtype(dtype)
        except TypeError as e:
            raise UnsupportedKindError(f"Unsupported sample type: {dtype!r}") from e
        if dt.kind not in ("i", "u", "f"):
            raise UnsupportedKindError(f"Unsupported sample type: {dt}")
        name = dt.newbyteorder("=").name
        try:
            return cls(name)
        except ValueError:
            raise UnsupportedKindError(f"Unsupported sample type: {dt}") from None

    @classmethod
    def parse(cls, value) -> SampleKind:
        """Resolve a kind, kind name (``'int16'``) or dtype-like to a kind."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.lower()
            for kind in cls:
                if kind.value == key:
                    return kind
        return cls.from_dtype(value)


class ByteOrder(enum.Enum):
    """Byte order of encoded samples. Ignored for 8-bit kinds."""

    BIG = ">"
    LITTLE = "<"

    @classmethod
    def parse(cls, value) -> ByteOrder:
        if isinstance(value, cls):
            return value
        key = str(value).lower()
        if key in ("big", ">"):
            return cls.BIG
        if key in ("little", "<"):
            return cls.LITTLE
        raise ValueError(f"Unknown byte order: {value!r}")

    def dtype(self, kind: SampleKind) -> np.dtype:
        """The dtype of *kind* as stored in this byte order."""
        return kind.dtype.newbyteorder(self.value)
