import logging
import os

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"


def setup_logging(level="INFO", log_file=None):
    """
    Configure the dedicated "sandbox" application logger.

    Logs go to the console and, optionally, to a file. The root logger is left
    alone so third-party libraries keep their own verbosity.

    Args:
        level: Logging level name or number
        log_file: Optional path of a log file; its directory is created

    Returns:
        The configured logger
    """
    logger = logging.getLogger("sandbox")
    logger.setLevel(level)
    logger.propagate = False

    formatter = logging.Formatter(LOG_FORMAT)

    # Clear existing handlers to avoid duplication if this function is called again
    if logger.hasHandlers():
        logger.handlers.clear()

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.info(f"Logging initialized at {logging.getLevelName(logger.level)}"
                + (f", log file: {log_file}" if log_file else ""))
    return logger
