"""
pcmdsp - PCM sample model and signal processing.

Submodules:
    pcmdsp.kinds    - Sample representations and byte orders
    pcmdsp.buffer   - Samples / Buffer containers, interleaving, statistics
    pcmdsp.convert  - Integer PCM <-> float <-> complex conversion
    pcmdsp.codec    - Byte encoding and chunked stream transfer
    pcmdsp.io       - Sample readers/writers and WAV files
    pcmdsp.fourier  - Radix-2 FFT, inverse FFT, convolution
    pcmdsp.spectrum - Spectrum analyzer
    pcmdsp.fir      - Windowed-sinc FIR design and convolution
    pcmdsp.delay    - Fixed delay line
"""

from pcmdsp.kinds import ByteOrder, SampleKind
from pcmdsp.errors import ShortBufferError, TransferError, UnsupportedKindError
from pcmdsp.buffer import Buffer, Samples, deinterleave, interleave
from pcmdsp.io import SampleReader, SampleWriter, read_wav, write_wav
from pcmdsp.spectrum import FrequencyPower, SpectrumAnalyzer
from pcmdsp.fir import FIR, Sinc
from pcmdsp.delay import Delay, new_delay
from pcmdsp import codec, convert, fourier

__all__ = [
    "ByteOrder",
    "SampleKind",
    "ShortBufferError",
    "TransferError",
    "UnsupportedKindError",
    "Buffer",
    "Samples",
    "deinterleave",
    "interleave",
    "SampleReader",
    "SampleWriter",
    "read_wav",
    "write_wav",
    "FrequencyPower",
    "SpectrumAnalyzer",
    "FIR",
    "Sinc",
    "Delay",
    "new_delay",
    "codec",
    "convert",
    "fourier",
]
__version__ = "0.1.0"
