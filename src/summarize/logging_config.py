# src/summarize/logging_config.py
import logging
import sys

LOG_FORMAT = "%(levelname)s: %(message)s"


class ColorFormatter(logging.Formatter):
    COLORS = {
        logging.DEBUG: "\033[36m",  # Cyan
        logging.INFO: "\033[32m",  # Green
        logging.WARNING: "\033[33m",  # Yellow
        logging.ERROR: "\033[31m",  # Red
        logging.CRITICAL: "\033[41m",  # Red background
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelno, "")
        message = super().format(record)
        if color:
            message = f"{color}{message}{self.RESET}"
        return message


def setup_logging(debug: bool = False) -> logging.Logger:
    """
    Sends the package's log records to stderr, colored when stderr is a terminal.
    Stdout is left alone: it may be carrying the aggregated document.
    """
    handler = logging.StreamHandler(sys.stderr)
    formatter_cls = ColorFormatter if sys.stderr.isatty() else logging.Formatter
    handler.setFormatter(formatter_cls(LOG_FORMAT))

    logger = logging.getLogger("summarize")
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if debug else logging.WARNING)
    logger.propagate = False
    return logger
