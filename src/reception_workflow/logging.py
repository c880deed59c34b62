"""Logging configuration for the workflow engine."""

import logging
import sys

from loguru import logger


class InterceptHandler(logging.Handler):
    """Intercept standard logging messages toward loguru."""

    def emit(self, record):
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find caller from where the logged message originated
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(log_level: str, json: bool = False) -> None:
    """Configure loguru as the single logging sink of the host process.

    Structured fields passed as keyword arguments to loguru calls end up in
    ``record["extra"]``; with ``json=True`` they are emitted as part of the
    serialized record.

    Args:
        log_level: Log level to use (usually ``WorkflowSettings.log_level``).
        json: Serialize records as JSON lines instead of colored text.
    """
    log_level = log_level.upper()

    logger.remove()
    if json:
        logger.add(sys.stderr, level=log_level, serialize=True)
    else:
        logger.add(sys.stderr, level=log_level, colorize=True)

    logger.info("Log level set to: {log_level}", log_level=log_level)

    # Redirect all standard logging to loguru
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

    for name in logging.Logger.manager.loggerDict:
        logging_logger = logging.getLogger(name)
        logging_logger.handlers = [InterceptHandler()]
        logging_logger.propagate = False

    for noisy_logger in ("asyncio", "concurrent.futures", "reception_workflow"):
        logging.getLogger(noisy_logger).setLevel(log_level)
