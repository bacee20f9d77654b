# endo_model/cli.py
# Command-line driver: run the treatment comparison and print the CEA table
import argparse
import sys
from pathlib import Path
from typing import List, Optional

import numpy as np
import pandas as pd
from pydantic import ValidationError

from endo_model.config.loaders import load_settings
from endo_model.errors import EndoModelError
from endo_model.simulation import run_comparison
from logging_config import get_logger, setup_logging

logger = get_logger(__name__)

LOG_DIR = Path("output_dev/model_logs")


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Compare endometriosis treatment strategies by cost per QALY."
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to a YAML settings file. Defaults are used when omitted.",
    )
    parser.add_argument(
        "--treatments",
        nargs="+",
        default=None,
        help="Treatments to compare (overrides the settings file).",
    )
    parser.add_argument("--reference", default=None, help="Reference treatment name.")
    parser.add_argument("--wtp", type=float, default=None, help="Willingness to pay per QALY.")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--log-dir",
        type=Path,
        default=LOG_DIR,
        help=f"Directory to store log files (default: {LOG_DIR})",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_arguments(argv)
    setup_logging(log_dir=args.log_dir, debug=args.debug)
    logger.info(f"Command line arguments: {sys.argv}")
    logger.info(f"Pandas version: {pd.__version__}, NumPy version: {np.__version__}")

    try:
        settings = load_settings(args.config)
        overrides = {}
        if args.treatments:
            overrides["treatments"] = args.treatments
        if args.reference:
            overrides["reference_treatment"] = args.reference
        if args.wtp is not None:
            overrides["willingness_to_pay"] = args.wtp
        if overrides:
            settings = settings.model_validate({**settings.model_dump(), **overrides})

        _, table = run_comparison(settings)
    except (EndoModelError, ValidationError) as e:
        logger.error(f"Model run failed: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1

    with pd.option_context("display.max_columns", None, "display.width", 120):
        print(table.to_string(index=False))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
