"""Tests for the pcmdsp CLI."""

from __future__ import annotations

import json
from pathlib import Path

import numpy as np
import pytest

from pcmdsp.__main__ import build_parser, main
from pcmdsp.buffer import Buffer
from pcmdsp.io import read_wav, write_wav

RATE = 8000


def _tone(freq: float, frames: int = 4096, amplitude: float = 0.5) -> np.ndarray:
    return amplitude * np.sin(2 * np.pi * freq * np.arange(frames) / RATE)


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


class TestBuildParser:
    def test_info_command(self):
        args = build_parser().parse_args(["info", "in.wav", "--json"])
        assert args.command == "info"
        assert args.file == "in.wav"
        assert args.json is True

    def test_spectrum_defaults(self):
        args = build_parser().parse_args(["spectrum", "in.wav"])
        assert args.size == 1024
        assert args.offset == 0
        assert args.channel == 0
        assert args.window == "hann"
        assert args.threshold is None
        assert args.top is None

    def test_filter_requires_mode(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["filter", "in.wav", "-o", "out.wav"])

    def test_filter_modes_exclusive(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(
                ["filter", "in.wav", "-o", "out.wav", "--lowpass", "1", "--highpass", "2"]
            )

    def test_filter_defaults(self):
        args = build_parser().parse_args(["filter", "in.wav", "-o", "o.wav", "--lowpass", "500"])
        assert args.lowpass == 500.0
        assert args.highpass is None
        assert args.taps == 62

    def test_delay_command(self):
        args = build_parser().parse_args(["delay", "in.wav", "-o", "o.wav", "--ms", "12.5"])
        assert args.ms == 12.5
        assert args.block == 1024

    def test_from_raw_command(self):
        args = build_parser().parse_args(
            ["from-raw", "in.raw", "-o", "o.wav", "-r", "8000", "-C", "2"]
        )
        assert args.rate == 8000.0
        assert args.channels == 2
        assert args.kind == "int16"
        assert args.order == "little"

    def test_to_raw_rejects_unknown_kind(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["to-raw", "in.wav", "-o", "o.raw", "-k", "int24"])

    def test_verbose_quiet_mutually_exclusive(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["-v", "-q", "info", "in.wav"])


# ---------------------------------------------------------------------------
# End-to-end CLI tests (using tmp files)
# ---------------------------------------------------------------------------


class TestCLIEndToEnd:
    @pytest.fixture
    def wav_file(self, tmp_path):
        """A stereo 16-bit file: 1 kHz left, 200 Hz right."""
        buf = Buffer([_tone(1000.0), _tone(200.0)], sample_rate=RATE)
        path = tmp_path / "test.wav"
        write_wav(path, buf)
        return str(path)

    def test_info(self, wav_file, capsys):
        main(["info", wav_file])
        captured = capsys.readouterr()
        assert "sample_rate" in captured.out
        assert "8000" in captured.out

    def test_info_json(self, wav_file, capsys):
        main(["info", wav_file, "--json"])
        data = json.loads(capsys.readouterr().out)
        assert data["sample_rate"] == RATE
        assert data["channels"] == 2
        assert data["frames"] == 4096
        assert data["kind"] == "int16"
        assert float(data["peak_db"]) == pytest.approx(-6.0, abs=0.1)

    def test_info_not_a_wav_file(self, tmp_path, capsys):
        path = tmp_path / "bad.wav"
        path.write_bytes(b"this is not a riff file")
        with pytest.raises(SystemExit) as exc:
            main(["info", str(path)])
        assert exc.value.code == 1
        assert capsys.readouterr().err.startswith("Error:")

    def test_info_missing_file(self, tmp_path):
        with pytest.raises(SystemExit) as exc:
            main(["info", str(tmp_path / "missing.wav")])
        assert exc.value.code == 1

    def test_spectrum_peak(self, wav_file, capsys):
        main(["spectrum", wav_file, "--top", "1", "--json"])
        data = json.loads(capsys.readouterr().out)
        assert len(data) == 1
        assert data[0]["frequency"] == 1000

    def test_spectrum_channel(self, wav_file, capsys):
        main(["spectrum", wav_file, "-c", "1", "-n", "2048", "--top", "1", "--json"])
        data = json.loads(capsys.readouterr().out)
        assert abs(data[0]["frequency"] - 200) <= RATE // 2048

    def test_spectrum_full_listing(self, wav_file, capsys):
        main(["spectrum", wav_file, "-n", "64", "-w", "none"])
        lines = capsys.readouterr().out.strip().splitlines()
        assert len(lines) == 31

    def test_spectrum_bad_size(self, wav_file):
        with pytest.raises(SystemExit):
            main(["spectrum", wav_file, "-n", "1000"])

    def test_spectrum_bad_channel(self, wav_file):
        with pytest.raises(SystemExit):
            main(["spectrum", wav_file, "-c", "5"])

    def test_filter_lowpass(self, wav_file, tmp_path):
        out = str(tmp_path / "low.wav")
        main(["filter", wav_file, "-o", out, "--lowpass", "500"])
        result = read_wav(out).to_float()
        assert result.channels == 2
        assert result.samples == 4096
        left = result[0].data[256:]
        right = result[1].data[256:]
        # 1 kHz is removed, 200 Hz survives
        assert np.sqrt(np.mean(left**2)) < 0.01
        assert np.sqrt(np.mean(right**2)) == pytest.approx(0.5 / np.sqrt(2), rel=0.05)

    def test_filter_highpass(self, wav_file, tmp_path):
        out = str(tmp_path / "high.wav")
        main(["filter", wav_file, "-o", out, "--highpass", "2000"])
        result = read_wav(out).to_float()
        assert np.sqrt(np.mean(result[0].data[256:] ** 2)) < 0.05

    def test_filter_bad_cutoff(self, wav_file, tmp_path):
        with pytest.raises(SystemExit):
            main(["filter", wav_file, "-o", str(tmp_path / "x.wav"), "--lowpass", "4000"])

    def test_delay(self, wav_file, tmp_path):
        out = str(tmp_path / "delayed.wav")
        main(["delay", wav_file, "-o", out, "--ms", "10", "--block", "100"])
        original = read_wav(wav_file)
        delayed = read_wav(out)
        assert delayed.samples == original.samples + 80
        for c in range(2):
            assert list(delayed[c])[:80] == [0] * 80
            assert list(delayed[c])[80:] == list(original[c])

    def test_delay_zero(self, wav_file, tmp_path):
        out = str(tmp_path / "same.wav")
        main(["delay", wav_file, "-o", out, "--ms", "0"])
        assert read_wav(out) == read_wav(wav_file)

    def test_delay_negative(self, wav_file, tmp_path):
        with pytest.raises(SystemExit):
            main(["delay", wav_file, "-o", str(tmp_path / "x.wav"), "--ms", "-5"])

    def test_raw_roundtrip(self, wav_file, tmp_path):
        raw = str(tmp_path / "test.raw")
        back = str(tmp_path / "back.wav")
        main(["to-raw", wav_file, "-o", raw, "--order", "big"])
        assert Path(raw).stat().st_size == 4096 * 2 * 2
        main(["from-raw", raw, "-o", back, "-r", str(RATE), "-C", "2", "--order", "big"])
        assert read_wav(back) == read_wav(wav_file)

    def test_to_raw_float(self, wav_file, tmp_path):
        raw = tmp_path / "test.f32"
        main(["to-raw", wav_file, "-o", str(raw), "-k", "float32"])
        data = np.frombuffer(raw.read_bytes(), dtype="<f4")
        assert len(data) == 4096 * 2
        assert np.max(np.abs(data)) <= 1.0

    def test_to_raw_unsupported_conversion(self, wav_file, tmp_path):
        with pytest.raises(SystemExit):
            main(["to-raw", wav_file, "-o", str(tmp_path / "x.raw"), "-k", "uint32"])

    def test_no_command_shows_help(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main([])
        assert exc.value.code == 0

    # --- Verbose / quiet tests ---

    def test_verbose_output(self, wav_file, tmp_path, capsys):
        out = str(tmp_path / "out.wav")
        main(["-v", "filter", wav_file, "-o", out, "--lowpass", "1000"])
        captured = capsys.readouterr()
        assert "Reading" in captured.out
        assert "Writing" in captured.out

    def test_quiet_suppresses_output(self, wav_file, tmp_path, capsys):
        out = str(tmp_path / "out.wav")
        main(["-q", "filter", wav_file, "-o", out, "--lowpass", "1000"])
        assert "Wrote" not in capsys.readouterr().out
