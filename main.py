"""
Entry point for the NeuroGlympse care-model revenue predictor.

Usage:
    python main.py          # launches the web app at localhost:5000
    python main.py --cli    # runs the terminal interface
"""

import argparse
import logging


def main() -> None:
    parser = argparse.ArgumentParser(
        description="NeuroGlympse Care Model: Revenue Predictor",
    )
    parser.add_argument(
        "--cli",
        action="store_true",
        help="Run in terminal mode instead of launching the web app",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log debug output (notification traffic)",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if args.cli:
        from cli import run_cli
        run_cli()
    else:
        from app import run_web
        run_web()


if __name__ == "__main__":
    main()
