# src/tasktrack/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, starts the task service on a
background event loop, then runs the console REPL in the main thread.
"""

from __future__ import annotations

import logging

from ..cli.bootstrap import create_initial_state
from ..cli.runner import ServiceRunner
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


def main() -> None:
    settings = get_settings()

    # choose console log level from settings.log_level
    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)

    log_dir = settings.log_dir if settings.log_to_file else None
    setup_logging(log_dir=log_dir, console_level=console_level)

    logger.info("Starting %s...", settings.app_name)

    # IMPORTANT: reuse same settings object
    state = create_initial_state(settings=settings)

    runner = ServiceRunner(state.service)
    runner.start()
    try:
        run_console_loop(state, runner)
    finally:
        runner.stop()
        logger.info("Bye.")


if __name__ == "__main__":
    main()
