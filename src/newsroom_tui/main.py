#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from __future__ import annotations

import argparse
import logging
import sys

from .app import NewsroomApp
from .config import load_settings, setup_logging
from .context import AppContext

logger = logging.getLogger("newsroom")


# --- Entrypoint ---
def main() -> None:
    parser = argparse.ArgumentParser(description="World News API terminal client")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--theme",
        type=str,
        help="Textual theme for this run (e.g. textual-dark, nord, dracula)",
    )
    args = parser.parse_args()

    debug_path = setup_logging(args.debug)
    if debug_path:
        print(f"Debug logging enabled: {debug_path}", file=sys.stderr)

    settings = load_settings()
    theme_name = args.theme or settings.get("preferences", {}).get("theme")
    logger.info("Using theme: %s", theme_name)

    try:
        app = NewsroomApp(AppContext.create(settings), theme=theme_name)
        app.run()
    except Exception as e:
        logger.exception("Application crashed: %s", e)
        print(f"Application crashed: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
