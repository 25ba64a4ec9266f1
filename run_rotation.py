#!/usr/bin/env python3
import argparse
import logging
import sys

from wallpaper_scheduler import Config, run_from_config
from wallpaper_scheduler.constants import PRESETS
from wallpaper_scheduler.logger import add_file_handler, set_level, setup_logger
from wallpaper_scheduler.presets import PresetError, fetch_preset
from wallpaper_scheduler.rotator import build_rotator
from wallpaper_scheduler.schedule import ConfigError
from wallpaper_scheduler.solar import SolarError
from wallpaper_scheduler.utils import check_linux_dependencies
from wallpaper_scheduler.wallpaper_set import DiscoveryError

logger = setup_logger('wallpaper_scheduler.cli')

EPILOG = """examples:
  Rotate the wallpapers of a folder evenly over the day:
    run_rotation.py --dir ~/Pictures/lake

  Show DAY wallpapers between sunrise and sunset in Paris, NIGHT ones otherwise:
    run_rotation.py --solar ~/Pictures/lake 48.85 2.35

  Download the lake preset and rotate it:
    run_rotation.py --preset

  Set the wallpaper for the current time once (for cron) and exit:
    run_rotation.py --once
"""


def build_parser():
    parser = argparse.ArgumentParser(
        prog='run_rotation.py',
        description="Wallpaper Scheduler - rotate desktop wallpapers over the day or with the sun",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter)
    source = parser.add_mutually_exclusive_group()
    source.add_argument('--dir', metavar='DIR',
                        help='Rotate the numbered wallpapers of DIR in equal slices of the day')
    source.add_argument('--solar', nargs=3, metavar=('DIR', 'LAT', 'LON'),
                        help='Rotate DAY wallpapers between sunrise and sunset and NIGHT wallpapers otherwise')
    source.add_argument('--preset', nargs='?', const='lake', choices=sorted(PRESETS),
                        help='Download a preset wallpaper folder and rotate it (default: lake)')
    parser.add_argument('--scaling', choices=['fill', 'fit', 'stretch', 'auto'],
                        help='Wallpaper scaling mode (saved to the config)')
    parser.add_argument('--once', action='store_true',
                        help='Set the wallpaper for the current time and exit')
    parser.add_argument('--show', action='store_true',
                        help="Print today's timetable without changing the wallpaper")
    parser.add_argument('--config-dir', metavar='DIR',
                        help='Use DIR instead of the default configuration directory')
    parser.add_argument('--log-file', metavar='FILE', help='Also write logs to FILE')
    parser.add_argument('-v', '--verbose', action='store_true', help='Log debug messages')
    return parser


def parse_coordinates(parser, lat, lon):
    try:
        return float(lat), float(lon)
    except ValueError:
        parser.error(f"LAT and LON must be numbers in degrees, got {lat!r} and {lon!r}")


def print_timetable(config):
    """Print today's wallpaper start times."""
    rotator = build_rotator(config)
    print(f"Wallpapers in {rotator.wallpapers.directory} ({rotator.mode.value} mode):")
    for start, image, phase in rotator.timetable():
        phase_str = f"{phase.value:<5} " if phase else ""
        print(f"  {start:%H:%M}  {phase_str}{image.name}")


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        set_level(logging.DEBUG)

    config = Config(args.config_dir)
    log_file = args.log_file or config.get('log_file')
    if log_file:
        add_file_handler(log_file)

    try:
        if args.scaling:
            config.set('scaling_mode', args.scaling)

        if args.preset:
            preset_dir = fetch_preset(config.config_dir / 'presets', args.preset)
            config.configure_interval(preset_dir)
            print(f"Preset '{args.preset}' set successfully")
        elif args.solar:
            directory, lat, lon = args.solar
            latitude, longitude = parse_coordinates(parser, lat, lon)
            config.configure_solar(directory, latitude, longitude)
            print(f"Configured solar rotation for {directory}")
        elif args.dir:
            config.configure_interval(args.dir)
            print(f"Configured rotation for {args.dir}")

        if args.show:
            print_timetable(config)
            return 0

        if sys.platform.startswith('linux'):
            check_linux_dependencies()
        run_from_config(config, once=args.once)
    except (DiscoveryError, ConfigError, SolarError, PresetError) as e:
        logger.error(f"{type(e).__name__}: {str(e)}")
        print(f"Error: {str(e)}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        logger.info("Rotation stopped")
    return 0


if __name__ == '__main__':
    sys.exit(main())
