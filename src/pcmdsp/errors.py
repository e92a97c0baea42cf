"""Exception types raised by pcmdsp."""

from __future__ import annotations


class UnsupportedKindError(ValueError):
    """A sample representation outside the supported set, or not valid for
    the requested operation."""


class ShortBufferError(ValueError):
    """A destination or source buffer is too small, or a chunk size is < 1."""


class TransferError(OSError):
    """A stream transfer failed or came up short.

    ``transferred`` is the number of samples completed before the failure.
    The stream's own exception, if any, is available as ``__cause__``.
    """

    def __init__(self, message: str, transferred: int = 0):
        super().__init__(message)
        self.transferred = transferred
