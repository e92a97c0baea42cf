"""pcmdsp CLI -- inspect, analyze, filter, delay and convert PCM audio."""

from __future__ import annotations

import argparse
import io
import json
import logging
import sys
from pathlib import Path

import numpy as np

from pcmdsp import __version__
from pcmdsp.buffer import Buffer, Samples, deinterleave, interleave, rms
from pcmdsp.kinds import ByteOrder, SampleKind


# ---------------------------------------------------------------------------
# Verbosity levels
# ---------------------------------------------------------------------------

QUIET = 0
NORMAL = 1
VERBOSE = 2


def _verbosity(args: argparse.Namespace) -> int:
    """Return verbosity level from parsed args."""
    if getattr(args, "quiet", False):
        return QUIET
    if getattr(args, "verbose", False):
        return VERBOSE
    return NORMAL


def _log(args: argparse.Namespace, msg: str, level: int = NORMAL) -> None:
    """Print *msg* if verbosity >= *level*."""
    if _verbosity(args) >= level:
        print(msg)


def _log_verbose(args: argparse.Namespace, msg: str) -> None:
    """Print only when --verbose."""
    _log(args, msg, level=VERBOSE)


def _fail(msg: str) -> None:
    print(f"Error: {msg}", file=sys.stderr)
    sys.exit(1)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _read_input(path: str, args: argparse.Namespace | None = None) -> Buffer:
    """Read a WAV file, exit on error."""
    from pcmdsp.io import read_wav

    if args:
        _log_verbose(args, f"  Reading {path}")
    try:
        buf = read_wav(path)
    except (OSError, EOFError, ValueError) as e:
        _fail(f"reading {path}: {e}")
    if args:
        _log_verbose(
            args,
            f"  Loaded: {buf.channels}ch, {buf.samples} frames, "
            f"{buf.kind.value}, {buf.sample_rate:.0f} Hz",
        )
    return buf


def _write_output(path: str, buf: Buffer, args: argparse.Namespace | None = None) -> None:
    """Write a WAV file, exit on error."""
    from pcmdsp.io import write_wav

    if args:
        _log_verbose(args, f"  Writing {path} ({buf.kind.value})")
    try:
        write_wav(path, buf)
    except (OSError, ValueError) as e:
        _fail(f"writing {path}: {e}")


_WINDOWS = {
    "hann": np.hanning,
    "hamming": np.hamming,
    "blackman": np.blackman,
    "none": None,
}


# ---------------------------------------------------------------------------
# Subcommand: info
# ---------------------------------------------------------------------------


def cmd_info(args: argparse.Namespace) -> None:
    """Print WAV file metadata."""
    buf = _read_input(args.file, args)
    floats = buf.to_float()
    peak = max((float(np.max(np.abs(c.data))) for c in floats if len(c)), default=0.0)
    peak_db = 20.0 * np.log10(peak) if peak > 0 else float("-inf")
    level = max((rms(c) for c in floats), default=0.0)

    info = {
        "path": str(args.file),
        "duration": f"{buf.duration:.3f}s",
        "sample_rate": int(buf.sample_rate),
        "channels": buf.channels,
        "frames": buf.samples,
        "kind": buf.kind.value,
        "bits_per_sample": buf.bits_per_sample,
        "peak_db": f"{peak_db:.1f}" if not np.isinf(peak_db) else "-inf",
        "rms": f"{level:.4f}",
    }

    if args.json:
        print(json.dumps(info, indent=2))
    else:
        for k, v in info.items():
            print(f"  {k}: {v}")


# ---------------------------------------------------------------------------
# Subcommand: spectrum
# ---------------------------------------------------------------------------


def cmd_spectrum(args: argparse.Namespace) -> None:
    """Analyse one frame of a WAV file."""
    from pcmdsp.spectrum import SpectrumAnalyzer, strongest

    buf = _read_input(args.file, args)
    if args.channel >= buf.channels:
        _fail(f"channel {args.channel} out of range for {buf.channels}-channel file")

    frame = buf.channel(args.channel)[args.offset : args.offset + args.size]
    if len(frame) < args.size:
        _fail(f"need {args.size} samples from offset {args.offset}, file has {len(frame)}")

    analyzer = SpectrumAnalyzer(int(buf.sample_rate), window=_WINDOWS[args.window])
    try:
        powers = analyzer.analyze(frame)
    except ValueError as e:
        _fail(str(e))
    _log_verbose(args, f"  {len(powers)} bins of {buf.sample_rate / args.size:.2f} Hz")

    if args.threshold is not None or args.top is not None:
        threshold = args.threshold if args.threshold is not None else 0.0
        powers = strongest(powers, threshold=threshold, limit=args.top)

    if args.json:
        print(json.dumps([p._asdict() for p in powers], indent=2))
    else:
        for p in powers:
            print(f"  {p.frequency:>8d} Hz  {p.magnitude:.6f}")


# ---------------------------------------------------------------------------
# Subcommand: filter
# ---------------------------------------------------------------------------


def cmd_filter(args: argparse.Namespace) -> None:
    """Low-pass or high-pass every channel with a windowed-sinc FIR."""
    from pcmdsp.fir import FIR, Sinc

    buf = _read_input(args.file, args)
    if args.lowpass is not None:
        mode, cutoff, window = "lowpass", args.lowpass, np.hamming
    else:
        mode, cutoff, window = "highpass", args.highpass, np.blackman

    try:
        fir = FIR(Sinc(cutoff, buf.sample_rate, taps=args.taps, window=window))
    except ValueError as e:
        _fail(str(e))
    _log_verbose(args, f"  {mode} {cutoff} Hz, {args.taps} taps")

    channels = []
    for c in buf.to_float():
        out = getattr(fir, mode)(c.data)
        if out is None:
            _fail(f"signal of {len(c)} samples is too short for {args.taps} taps")
        channels.append(Samples(out, kind=SampleKind.FLOAT64))

    _write_output(args.output, Buffer(channels, sample_rate=buf.sample_rate), args)
    _log(args, f"Wrote {args.output}")


# ---------------------------------------------------------------------------
# Subcommand: delay
# ---------------------------------------------------------------------------


def cmd_delay(args: argparse.Namespace) -> None:
    """Delay a WAV file through the delay line, keeping the tail."""
    from pcmdsp.codec import encode
    from pcmdsp.delay import new_delay
    from pcmdsp.io import SampleReader

    buf = _read_input(args.file, args)
    if args.ms < 0:
        _fail(f"delay can't be negative, got {args.ms} ms")

    stream = io.BytesIO()
    reader = SampleReader(stream, buf.kind)
    line = new_delay(reader, buf.channels, buf.sample_rate, args.ms / 1000.0)
    latency = getattr(line, "latency", 0)
    _log_verbose(args, f"  {line} ({latency} samples)")

    # Pad the upstream with silence so the delayed tail is flushed out.
    padded = interleave(buf)
    padded.push(*([0] * latency))
    stream.write(encode(padded))
    stream.seek(0)

    block = max(1, args.block) * buf.channels
    out = Samples.zeros(len(padded), buf.kind)
    for start in range(0, len(out), block):
        line.read_samples(out[start : start + block])

    result = deinterleave(out, buf.channels, sample_rate=buf.sample_rate)
    _write_output(args.output, result, args)
    _log(args, f"Wrote {args.output}")


# ---------------------------------------------------------------------------
# Subcommands: to-raw / from-raw
# ---------------------------------------------------------------------------


def _convert_kind(flat: Samples, kind: SampleKind) -> Samples:
    from pcmdsp.convert import to_float, to_int16

    if flat.kind is kind:
        return flat
    if kind is SampleKind.INT16:
        return Samples(to_int16(flat), kind=kind)
    if kind.is_float:
        return Samples(to_float(flat), kind=kind)
    raise ValueError(f"Cannot convert {flat.kind.value} to {kind.value}")


def cmd_to_raw(args: argparse.Namespace) -> None:
    """Write the interleaved samples of a WAV file as raw PCM."""
    from pcmdsp.codec import encode

    buf = _read_input(args.file, args)
    flat = interleave(buf)
    if args.kind is not None:
        try:
            flat = _convert_kind(flat, SampleKind.parse(args.kind))
        except ValueError as e:
            _fail(str(e))

    raw = encode(flat, ByteOrder.parse(args.order))
    Path(args.output).write_bytes(raw)
    _log(
        args,
        f"Wrote {args.output} ({len(flat)} {flat.kind.value} samples, {args.order}-endian)",
    )


def cmd_from_raw(args: argparse.Namespace) -> None:
    """Wrap raw interleaved PCM in a WAV file."""
    from pcmdsp.codec import decode

    try:
        raw = Path(args.file).read_bytes()
    except OSError as e:
        _fail(f"reading {args.file}: {e}")
    flat = decode(raw, SampleKind.parse(args.kind), ByteOrder.parse(args.order))
    try:
        buf = deinterleave(flat, args.channels, sample_rate=args.rate)
    except ValueError as e:
        _fail(str(e))
    _log_verbose(args, f"  Decoded {len(flat)} {flat.kind.value} samples")
    _write_output(args.output, buf, args)
    _log(args, f"Wrote {args.output}")


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

_KIND_NAMES = [k.value for k in SampleKind]


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser."""
    parser = argparse.ArgumentParser(
        prog="pcmdsp",
        description="pcmdsp - PCM audio toolkit",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"pcmdsp {__version__}",
    )

    # Global verbosity flags (mutually exclusive)
    verb_group = parser.add_mutually_exclusive_group()
    verb_group.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Verbose output (also enables debug logging)",
    )
    verb_group.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Suppress all non-essential output",
    )

    sub = parser.add_subparsers(dest="command")

    # --- info ---
    p_info = sub.add_parser("info", help="Show WAV file metadata")
    p_info.add_argument("file", help="Input WAV file")
    p_info.add_argument("--json", action="store_true", help="Output as JSON")

    # --- spectrum ---
    p_spec = sub.add_parser("spectrum", help="Magnitude spectrum of one frame")
    p_spec.add_argument("file", help="Input WAV file")
    p_spec.add_argument(
        "-n", "--size", type=int, default=1024, help="Frame size, a power of two"
    )
    p_spec.add_argument("--offset", type=int, default=0, help="First frame sample")
    p_spec.add_argument("-c", "--channel", type=int, default=0, help="Channel index")
    p_spec.add_argument(
        "-w",
        "--window",
        choices=sorted(_WINDOWS),
        default="hann",
        help="Window function (default: hann)",
    )
    p_spec.add_argument(
        "-t", "--threshold", type=float, help="Only show bins at or above this magnitude"
    )
    p_spec.add_argument("--top", type=int, help="Only show the N strongest bins")
    p_spec.add_argument("--json", action="store_true", help="Output as JSON")

    # --- filter ---
    p_filt = sub.add_parser("filter", help="Windowed-sinc FIR filter")
    p_filt.add_argument("file", help="Input WAV file")
    p_filt.add_argument("-o", "--output", required=True, help="Output WAV file")
    mode = p_filt.add_mutually_exclusive_group(required=True)
    mode.add_argument("--lowpass", type=float, metavar="HZ", help="Low-pass cutoff")
    mode.add_argument("--highpass", type=float, metavar="HZ", help="High-pass cutoff")
    p_filt.add_argument("--taps", type=int, default=62, help="Filter taps (even)")

    # --- delay ---
    p_delay = sub.add_parser("delay", help="Delay audio by a fixed time")
    p_delay.add_argument("file", help="Input WAV file")
    p_delay.add_argument("-o", "--output", required=True, help="Output WAV file")
    p_delay.add_argument("--ms", type=float, required=True, help="Delay in milliseconds")
    p_delay.add_argument(
        "--block", type=int, default=1024, help="Frames per read (default: 1024)"
    )

    # --- to-raw ---
    p_raw = sub.add_parser("to-raw", help="Convert WAV to raw interleaved PCM")
    p_raw.add_argument("file", help="Input WAV file")
    p_raw.add_argument("-o", "--output", required=True, help="Output raw file")
    p_raw.add_argument(
        "-k", "--kind", choices=_KIND_NAMES, help="Output sample kind (default: native)"
    )
    p_raw.add_argument(
        "--order", choices=["big", "little"], default="little", help="Byte order"
    )

    # --- from-raw ---
    p_wav = sub.add_parser("from-raw", help="Convert raw interleaved PCM to WAV")
    p_wav.add_argument("file", help="Input raw file")
    p_wav.add_argument("-o", "--output", required=True, help="Output WAV file")
    p_wav.add_argument("-r", "--rate", type=float, required=True, help="Sample rate")
    p_wav.add_argument("-C", "--channels", type=int, required=True, help="Channels")
    p_wav.add_argument(
        "-k", "--kind", choices=_KIND_NAMES, default="int16", help="Input sample kind"
    )
    p_wav.add_argument(
        "--order", choices=["big", "little"], default="little", help="Byte order"
    )

    return parser


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    dispatch = {
        "info": cmd_info,
        "spectrum": cmd_spectrum,
        "filter": cmd_filter,
        "delay": cmd_delay,
        "to-raw": cmd_to_raw,
        "from-raw": cmd_from_raw,
    }

    handler = dispatch.get(args.command)
    if handler is None:
        parser.print_help()
        sys.exit(1)

    handler(args)


if __name__ == "__main__":
    main()
