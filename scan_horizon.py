"""
Horizon Scanner

Records the horizon profile (azimuth / elevation pairs) from a phone sweep and
saves it as horizon_<millis>.txt.

Usage:
    python scan_horizon.py --log sensorLog.txt --folder ./scans
    python scan_horizon.py --demo --mode camera --folder ./scans --header
    python scan_horizon.py --demo --folder ./scans --save-config
"""

import argparse
import logging
import sys

from tqdm import tqdm

from horizon.errors import ScannerError
from horizon.orientation import format_reading
from horizon.scanner import HorizonScanner
from horizon.settings import load_settings, save_settings
from horizon.sources import LogReplaySource, SyntheticSweepSource


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Record a horizon profile from phone orientation data",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scan_horizon.py --log sensorLog_20260201T191641.txt --folder scans
  python scan_horizon.py --demo --mode camera --folder scans
        """
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--log", type=str, help="Sensor log with ROT/ORI records to replay")
    source.add_argument("--demo", action="store_true", help="Sweep a synthetic horizon")

    parser.add_argument("--mode", choices=["phone", "camera"], default=None,
                        help="Point with the top of the phone or with the rear camera")
    parser.add_argument("--folder", type=str, default=None, help="Folder to save the scan in")
    parser.add_argument("--policy", choices=["first", "consecutive"], default=None,
                        help="Keep the first sample per degree, or every change of degree")
    parser.add_argument("--no-auto-stop", action="store_true",
                        help="Keep recording after a full rotation")
    parser.add_argument("--header", action="store_true", help="Write a column header line")
    parser.add_argument("--config", type=str, default=None, help="Settings file (JSON)")
    parser.add_argument("--save-config", action="store_true",
                        help="Remember mode and folder for next time")
    parser.add_argument("--live", action="store_true", help="Print every reading")
    parser.add_argument("--seed", type=int, default=None, help="Noise seed for --demo")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='[%(levelname)s] %(name)s: %(message)s',
        stream=sys.stdout
    )

    try:
        settings = load_settings(args.config)
    except (OSError, ValueError) as e:
        print(f"Error reading settings: {e}")
        return 1

    settings = settings.with_overrides(
        pointing_mode=args.mode,
        destination=args.folder,
        policy=args.policy,
        auto_stop_on_wrap=False if args.no_auto_stop else None,
        include_header=True if args.header else None,
    )
    if args.save_config:
        save_settings(settings, args.config)

    print(f"Pointing mode: {settings.pointing_mode.value}")
    print(f"Folder: {settings.destination or 'No folder selected'}")

    on_reading = (lambda r: tqdm.write(format_reading(r))) if args.live else None
    scanner = HorizonScanner(settings, on_reading=on_reading)

    try:
        if args.demo:
            source = SyntheticSweepSource(settings.pointing_mode, noise_deg=0.3, seed=args.seed)
        else:
            print(f"Loading data from {args.log}...")
            source = LogReplaySource(args.log)
        print(f"{len(source)} orientation samples.")

        with tqdm(source, total=len(source), desc="Scanning", unit="evt") as events:
            result = scanner.scan(source, events)
    except ScannerError as e:
        print(f"Error: {e}")
        return 1

    print(scanner.status)
    if result is None or not result.ok:
        return 1
    print(f"Saved {result.lines} samples to {result.location}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
