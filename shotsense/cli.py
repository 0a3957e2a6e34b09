"""Command-line interface for offline shot analysis.

Usage:
- ``shotsense detect session.json [--consensus] [--calibration cal.json] [--expect N]``
- ``shotsense calibrate --walking w.json --running r.json --dribbling d.json
  --shooting s.json [--out cal.json]``
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Optional, Sequence

from shotsense.calibration.calibrator import calibrate
from shotsense.calibration.profile import ActivityLabel
from shotsense.calibration.store import FileStore, dump_calibration, load_calibration, read_calibration
from shotsense.config import DetectorConfig
from shotsense.detect.detector import ShotDetector
from shotsense.io.session_file import SessionFileError, load_session_samples

logger = logging.getLogger("shotsense")


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="shotsense", description=__doc__.splitlines()[0])
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    sub = parser.add_subparsers(dest="command", required=True)

    detect = sub.add_parser("detect", help="Re-run batch shot detection on a recorded session.")
    detect.add_argument("session", type=Path, help="Session JSON with an 'imu' sample array.")
    detect.add_argument("--consensus", action="store_true", help="Require consensus voting.")
    detect.add_argument("--calibration", type=Path, help="Calibration set JSON file.")
    detect.add_argument("--store", type=Path, help="Calibration store directory to read from.")
    detect.add_argument("--prune-bursts", action="store_true", help="Thin dense shot clusters.")
    detect.add_argument("--json", action="store_true", help="Print shot records as JSON.")
    detect.add_argument("--expect", type=int, help="Exit non-zero unless exactly N shots are found.")

    cal = sub.add_parser("calibrate", help="Build a calibration set from labeled recordings.")
    for label in ActivityLabel:
        cal.add_argument(f"--{label.value}", type=Path, help=f"{label.value.title()} recording.")
    cal.add_argument("--out", type=Path, help="Write the calibration set JSON here.")
    cal.add_argument("--store", type=Path, help="Also persist into this store directory.")
    return parser


def _run_detect(args: argparse.Namespace) -> int:
    samples = load_session_samples(args.session)
    calibration = None
    if args.calibration is not None:
        if args.calibration.is_file():
            calibration = load_calibration(args.calibration.read_bytes())
        else:
            logger.warning("Calibration file %s not found; detecting without it", args.calibration)
    elif args.store is not None:
        calibration = read_calibration(FileStore(args.store))

    config = replace(DetectorConfig(), use_consensus=args.consensus, prune_bursts=args.prune_bursts)
    shots = ShotDetector(config, calibration=calibration).detect_all(samples)

    if args.json:
        print(json.dumps([s.to_dict() for s in shots], indent=2))
    else:
        for n, shot in enumerate(shots, start=1):
            print(
                f"{n:3d}  idx={shot.index} t={shot.timestamp:.0f} "
                f"peak={shot.peak_mag:.1f} dip={shot.dip_mag:.1f} range={shot.range:.1f}"
            )
        print(f"{len(shots)} shots in {len(samples)} samples")

    if args.expect is not None and len(shots) != args.expect:
        logger.error("Expected %d shots, detected %d", args.expect, len(shots))
        return 1
    return 0


def _run_calibrate(args: argparse.Namespace) -> int:
    recordings = {}
    for label in ActivityLabel:
        path: Optional[Path] = getattr(args, label.value)
        recordings[label] = load_session_samples(path) if path is not None else []

    store = FileStore(args.store) if args.store is not None else None
    calibration = calibrate(
        recordings[ActivityLabel.WALKING],
        recordings[ActivityLabel.RUNNING],
        recordings[ActivityLabel.DRIBBLING],
        recordings[ActivityLabel.SHOOTING],
        store=store,
    )
    for label in ActivityLabel:
        print(f"{label.value:10s} {calibration.pattern_counts.get(label, 0)} patterns")
    print("Calibration active" if calibration.is_active else "No shooting patterns found")

    if args.out is not None:
        args.out.parent.mkdir(parents=True, exist_ok=True)
        args.out.write_text(dump_calibration(calibration), encoding="utf-8")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    _configure_logging(args.verbose)
    try:
        if args.command == "detect":
            return _run_detect(args)
        return _run_calibrate(args)
    except SessionFileError as exc:
        logger.error("%s", exc)
        return 2


if __name__ == "__main__":  # pragma: no cover - manual invocation helper
    sys.exit(main())
