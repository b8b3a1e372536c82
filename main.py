"""
Apply a biquad filter to a WAV file.

    python main.py in.wav out.wav --kind bandpass --cutoff 2000 --bandwidth 400
"""

import argparse
import logging
import sys
from typing import List, Optional

from config import FILTER_KINDS, FilterDesign
from data import DataSet, load_wav_mono_normalized, save_wav
from filter import Filter

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("input", help="Input .wav file")
    parser.add_argument("output", help="Output .wav file (float32)")
    parser.add_argument("--kind", choices=FILTER_KINDS, default="lowpass")
    parser.add_argument(
        "--cutoff", type=float, default=1000.0, help="Cutoff / centre frequency (Hz)"
    )
    parser.add_argument(
        "--bandwidth", type=float, default=None, help="Bandwidth (Hz), band-pass only"
    )
    parser.add_argument(
        "--normalize",
        action="store_true",
        help="Peak-normalize the input before filtering",
    )
    return parser.parse_args(argv)


def design_from_args(args: argparse.Namespace, sample_rate: float) -> FilterDesign:
    return FilterDesign(
        kind=args.kind,
        cutoff_hz=args.cutoff,
        sample_rate_hz=float(sample_rate),
        bandwidth_hz=args.bandwidth,
    )


def run(args: argparse.Namespace, f: Filter, audio, sample_rate: int) -> DataSet:
    logger.info("Using %s", f)

    samples = DataSet(audio)
    if args.normalize:
        samples = samples.peak_normalized()

    out = DataSet(f.filter(samples.to_numpy()))
    lo, hi = out.bounds()
    logger.info(
        "Filtered %d samples: bounds=(%.4f, %.4f) mean=%.4g stdev=%.4g",
        len(out),
        lo,
        hi,
        out.mean(),
        out.stdev(),
    )
    save_wav(args.output, out.to_numpy(), sample_rate)
    return out


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(level=logging.INFO)
    args = parse_args(argv)
    audio, sample_rate = load_wav_mono_normalized(args.input)
    try:
        f = design_from_args(args, sample_rate).build()
    except ValueError as e:
        logger.error(f"Invalid filter design: {e}")
        return 2
    run(args, f, audio, sample_rate)
    return 0


if __name__ == "__main__":
    sys.exit(main())
