import argparse
import sys
import traceback

from sandbox.config import FPS, NOISE_TYPES, SCREEN_HEIGHT, SCREEN_WIDTH, load_config_file
from sandbox.game import run_game
from sandbox.logger_setup import setup_logging


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Interactive collision sandbox with optional noise audio")
    parser.add_argument("--config", help="JSON file of configuration overrides")
    parser.add_argument("--width", type=int, default=SCREEN_WIDTH)
    parser.add_argument("--height", type=int, default=SCREEN_HEIGHT)
    parser.add_argument("--fps", type=int, default=FPS)
    parser.add_argument("--seed", type=int, help="Seed for reproducible runs")
    parser.add_argument("--audio", action="store_true", help="Start with audio enabled")
    parser.add_argument("--noise", choices=NOISE_TYPES, help="Noise algorithm")
    parser.add_argument("--record", action="store_true", help="Record the canvas to recordings/")
    parser.add_argument("--log-level", default="INFO")
    parser.add_argument("--log-file", help="Also write logs to this file")
    return parser.parse_args(argv)


def build_overrides(args):
    """Merge the config file with the command-line switches (switches win)."""
    overrides = load_config_file(args.config) if args.config else {}
    if args.audio:
        overrides["audio_enabled"] = True
    if args.noise:
        overrides["noise_type"] = args.noise
    return overrides


# Entry point for the application
if __name__ == '__main__':
    args = parse_args()
    setup_logging(args.log_level.upper(), args.log_file)
    try:
        run_game(
            width=args.width,
            height=args.height,
            fps=args.fps,
            config_overrides=build_overrides(args),
            seed=args.seed,
            record=args.record,
        )
    except Exception as e:
        # Print any unhandled exceptions
        print(f"Error in main: {e}")
        traceback.print_exc()
        sys.exit(1)
    # Exit cleanly
    sys.exit(0)
