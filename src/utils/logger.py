"""Loguru sinks for the launchpad scan scripts.

Two sinks are installed:

  * stderr at the console level, so stdout stays free for the scan report
    (one line per launch, or JSON when the script is piped).
  * ``{log_dir}/launchpad_YYYY-MM-DD.log`` at DEBUG, rotated at 20 MB,
    kept for 7 days and gzipped. Decode failures and rejected identity
    candidates are only logged at DEBUG, so this file is where a skipped
    account gets explained.

With ``json_logs`` both sinks emit loguru's serialized records instead.
Library modules never call this; they only log tagged messages such as
"[LAUNCH]", "[IDENTITY]", "[CURVE]" or "[RPC]".
"""

import os
import sys

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - "
    "<level>{message}</level>"
)


def setup_logger(*, json_logs: bool = False, level: str = "INFO", log_dir: str = "logs") -> str:
    """Replace loguru's default handler with the scan sinks.

    LOG_LEVEL env wins over ``level`` for the console sink. Returns the
    file sink path pattern.
    """
    console_level = os.getenv("LOG_LEVEL", level).upper()
    logger.remove()

    if json_logs:
        logger.add(sys.stderr, serialize=True, level=console_level)
    else:
        logger.add(sys.stderr, format=CONSOLE_FORMAT, level=console_level, colorize=True)

    log_path = os.path.join(log_dir, "launchpad_{time:YYYY-MM-DD}.log")
    logger.add(
        log_path,
        rotation="20 MB",
        retention="7 days",
        compression="gz",
        level="DEBUG",
        serialize=json_logs,
    )
    return log_path
