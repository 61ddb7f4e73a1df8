#!/usr/bin/env python3
"""
Main entry point for the daily letter bot.

Orchestrates the daily run: load state → generate letter → email → save state.
Meant to be triggered once per day by an external scheduler (e.g. cron).
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Literal, Optional

from .config import Config, ConfigError, load_config
from .generator import generate_email_body
from .mailer import DeliveryError, send_email
from .state_store import PersistenceError, advance_state, load_state, save_state


RunOutcome = Literal["completed", "aborted"]


logger = logging.getLogger(__name__)


def _setup_logging(log_dir: Path) -> Optional[Path]:
    """
    Configure logging to both console and file.

    Creates a timestamped log file in the given directory. If the file
    cannot be created, logging continues on the console only.

    Returns:
        Path to the log file, or None if only console logging is active.
    """
    log_format = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.INFO)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(logging.Formatter(log_format, date_format))
    root_logger.addHandler(console_handler)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = log_dir / f"run_{timestamp}.log"

    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
    except OSError as e:
        logger.warning(f"Could not open log file {log_file}: {e}. Logging to console only")
        return None

    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(logging.Formatter(log_format, date_format))
    root_logger.addHandler(file_handler)

    return log_file


def run_daily(config: Optional[Config] = None) -> RunOutcome:
    """
    Execute the daily letter pipeline.

    Steps:
    1. Load run state (defaults if the store is missing or corrupt)
    2. Generate a new letter body
    3. Send it by email
    4. Append it to the history and save the state

    Stops after step 2 if no usable body was generated: nothing is sent
    and the store is left untouched. Delivery and persistence failures are
    logged but do not change the outcome.

    Args:
        config: Application configuration. Loaded from the environment if omitted.

    Returns:
        "completed" once a letter was generated, "aborted" otherwise.
    """
    if config is None:
        try:
            config = load_config()
            logger.info("Configuration loaded successfully")
        except ConfigError as e:
            logger.error(f"Configuration error: {e}")
            return "aborted"

    logger.info("Starting daily letter run...")

    state = load_state(config.state_file)

    result = generate_email_body(state, config.generation_config(), config.openai_api_key)
    if not result.has_content:
        logger.error("No new email content was generated. Exiting.")
        return "aborted"

    try:
        send_email(config.mail_config(), config.gmail_app_password, result.body)
        logger.info("Email sent successfully!")
    except DeliveryError as e:
        logger.error(f"Error sending email: {e}")

    new_state = advance_state(state, result.body)

    try:
        save_state(config.state_file, new_state)
    except PersistenceError as e:
        logger.error(f"Failed to update state: {e}")

    logger.info(f"Run complete: {new_state.run_count} letters generated so far")
    return "completed"


def main() -> None:
    """CLI entry point. Always exits with status 0; problems are reported in the log."""
    config: Optional[Config] = None
    config_error: Optional[Exception] = None
    try:
        config = load_config()
    except Exception as e:
        # Logging is not configured yet; report once handlers exist
        config_error = e

    log_file = _setup_logging(config.log_dir if config else Path("logs"))
    if log_file is not None:
        logger.info(f"Log file: {log_file.absolute()}")

    if isinstance(config_error, ConfigError):
        logger.error(f"Configuration error: {config_error}")
        return
    if config_error is not None:
        logger.error(f"Unexpected error loading configuration: {config_error}", exc_info=config_error)
        return

    try:
        run_daily(config)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")


if __name__ == "__main__":
    main()
