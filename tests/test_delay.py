"""Tests for pcmdsp.delay."""

import datetime
import io

import pytest

from pcmdsp.buffer import Samples
from pcmdsp.delay import Delay, new_delay
from pcmdsp.errors import TransferError
from pcmdsp.io import SampleReader
from pcmdsp.kinds import SampleKind

RAMP = bytes(i & 0xFF for i in range(1024))


def _ramp_reader():
    return SampleReader(io.BytesIO(RAMP), "uint8")


class _UnpluggedSource:
    """Source that fails every read like a removed device."""

    kind = SampleKind.UINT8

    def read_samples(self, samples):
        raise OSError("device gone")


def _read_all(source, total=1024, block=128):
    out = []
    buffer = Samples.zeros(block, "uint8")
    for _ in range(total // block):
        assert source.read_samples(buffer) == block
        out.extend(buffer)
    return out


class TestNewDelay:
    def test_zero_delay_returns_source(self):
        reader = _ramp_reader()
        assert new_delay(reader, 1, 8000, 0) is reader

    def test_latency_rounds_to_frames(self):
        d = new_delay(_ramp_reader(), 1, 8000, 0.01)
        assert isinstance(d, Delay)
        assert d.latency == 80

    def test_latency_scales_with_channels(self):
        d = new_delay(_ramp_reader(), 2, 8000, 0.01)
        assert d.latency == 160

    def test_latency_rounds_half_up(self):
        # a quarter second at 2 Hz is half a frame
        d = new_delay(_ramp_reader(), 1, 2, 0.25)
        assert d.latency == 1

    def test_timedelta(self):
        d = new_delay(_ramp_reader(), 1, 8000, datetime.timedelta(milliseconds=20))
        assert d.latency == 160
        assert d.duration == pytest.approx(0.02)

    def test_negative_delay(self):
        with pytest.raises(ValueError, match="negative"):
            new_delay(_ramp_reader(), 1, 8000, -0.001)

    def test_no_channels(self):
        with pytest.raises(ValueError, match="channels"):
            new_delay(_ramp_reader(), 0, 8000, 0.01)

    def test_str(self):
        d = new_delay(_ramp_reader(), 1, 8000, 0.01)
        assert str(d) == "delay 0.01s"
        assert d.kind is SampleKind.UINT8


class TestDelayOutput:
    @pytest.mark.parametrize(
        "ms, latency",
        [
            (10, 80),  # shorter than one block
            (16, 128),  # exactly one block
            (20, 160),  # longer than one block
        ],
    )
    def test_output_lags_input(self, ms, latency):
        d = new_delay(_ramp_reader(), 1, 8000, datetime.timedelta(milliseconds=ms))
        assert d.latency == latency
        want = [0] * latency + list(RAMP[: 1024 - latency])
        assert _read_all(d) == want

    def test_odd_block_sizes(self):
        d = new_delay(_ramp_reader(), 1, 8000, 0.01)
        out = []
        for size in (3, 100, 77, 200, 12):
            buffer = Samples.zeros(size, "uint8")
            d.read_samples(buffer)
            out.extend(buffer)
        assert out == [0] * 80 + list(RAMP[: len(out) - 80])

    def test_empty_buffer(self):
        d = new_delay(_ramp_reader(), 1, 8000, 0.01)
        assert d.read_samples(Samples(kind="uint8")) == 0

    def test_zero_latency_line_passes_through(self):
        d = Delay(_ramp_reader(), 0)
        buffer = Samples.zeros(4, "uint8")
        d.read_samples(buffer)
        assert list(buffer) == [0, 1, 2, 3]

    def test_negative_latency(self):
        with pytest.raises(ValueError):
            Delay(_ramp_reader(), -1)


class TestDelayErrors:
    def test_exhausted_upstream(self):
        reader = SampleReader(io.BytesIO(RAMP[:20]), "uint8")
        d = new_delay(reader, 1, 8000, 0.01)
        buffer = Samples.zeros(128, "uint8")
        with pytest.raises(TransferError) as excinfo:
            d.read_samples(buffer)
        # the 80 buffered samples were delivered before the short read
        assert excinfo.value.transferred == 80
        assert isinstance(excinfo.value.__cause__, TransferError)

    def test_refill_failure_reports_full_buffer(self):
        reader = SampleReader(io.BytesIO(RAMP[:30]), "uint8")
        d = new_delay(reader, 1, 8000, 0.01)
        buffer = Samples.zeros(64, "uint8")
        with pytest.raises(TransferError) as excinfo:
            d.read_samples(buffer)
        assert excinfo.value.transferred == 64

    def test_plain_os_error_gets_count(self):
        d = new_delay(_UnpluggedSource(), 1, 8000, 0.01)
        with pytest.raises(TransferError) as excinfo:
            d.read_samples(Samples.zeros(128, "uint8"))
        assert excinfo.value.transferred == 80
        assert type(excinfo.value.__cause__) is OSError
        assert "device gone" in str(excinfo.value)

    def test_plain_os_error_on_refill(self):
        d = new_delay(_UnpluggedSource(), 1, 8000, 0.01)
        with pytest.raises(TransferError) as excinfo:
            d.read_samples(Samples.zeros(32, "uint8"))
        assert excinfo.value.transferred == 32
