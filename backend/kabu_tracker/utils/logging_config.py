"""
Logging Configuration
"""

import logging
from pathlib import Path
from logging.handlers import RotatingFileHandler

MAX_LOG_BYTES = 10 * 1024 * 1024  # 10MB

# Dedicated log files: (logger name, file name, level, backup count)
CHANNEL_LOGS = [
    ("kabu_tracker.services", "sources.log", logging.INFO, 5),  # quote API, scraping, keyed APIs
    ("kabu_tracker.services.analysis_client", "analysis.log", logging.DEBUG, 10),  # AI prompts/responses
]

QUIET_LOGGERS = {
    "urllib3": logging.WARNING,
    "aiohttp": logging.WARNING,
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "yfinance": logging.WARNING,
    "pypdf": logging.ERROR,
}


def _rotating_handler(path: Path, level: int, formatter: logging.Formatter, backup_count: int = 5):
    handler = RotatingFileHandler(path, maxBytes=MAX_LOG_BYTES, backupCount=backup_count, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(log_level: str = "INFO", log_dir: str = "logs"):
    """
    Setup logging configuration

    Calling it again replaces the handlers installed by the previous call.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_dir: Directory for rotating log files
    """
    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)

    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    detailed_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    simple_formatter = logging.Formatter(
        '%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    for handler in list(root_logger.handlers):
        if getattr(handler, "_kabu_tracker", False):
            root_logger.removeHandler(handler)
            handler.close()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(simple_formatter)

    handlers = [
        (root_logger, console_handler),
        (root_logger, _rotating_handler(log_path / "app.log", numeric_level, detailed_formatter)),
        (root_logger, _rotating_handler(log_path / "errors.log", logging.ERROR, detailed_formatter)),
    ]
    for logger_name, file_name, level, backup_count in CHANNEL_LOGS:
        channel_logger = logging.getLogger(logger_name)
        for handler in list(channel_logger.handlers):
            if getattr(handler, "_kabu_tracker", False):
                channel_logger.removeHandler(handler)
                handler.close()
        handlers.append(
            (channel_logger, _rotating_handler(log_path / file_name, level, detailed_formatter, backup_count))
        )

    for target, handler in handlers:
        handler._kabu_tracker = True
        target.addHandler(handler)

    # Reduce verbosity of some third-party loggers
    for name, level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(level)

    logging.info(f"Logging configured with level: {log_level}")
