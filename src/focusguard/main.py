from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from .config import LOG_FORMAT, load_config


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="focusguard", description="Webcam-based focus session tracker")
    parser.add_argument("--camera", type=int, default=None, help="camera index (default from config)")
    parser.add_argument("--no-chart", action="store_true", help="skip the summary chart after a session")
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING, ...")
    args = parser.parse_args(argv)

    cfg = load_config()
    if args.camera is not None:
        cfg.camera_index = args.camera
    if args.no_chart:
        cfg.show_summary_chart = False
    if args.log_level:
        cfg.log_level = args.log_level

    logging.basicConfig(level=getattr(logging, cfg.log_level.upper(), logging.INFO), format=LOG_FORMAT)
    logging.getLogger(__name__).debug("Loaded config: %s", cfg)

    # imported late so --help works without a display
    from .ui import main as run_ui

    return run_ui(cfg)


if __name__ == "__main__":
    sys.exit(main())
