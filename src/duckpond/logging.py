import logging
import sys

# chatty at DEBUG; their details rarely matter for the scene
QUIET_LOGGERS = ("trimesh", "PIL", "urllib3")


def setup_logging(log_level: str = "INFO", log_file: str | None = None):
    """
    Configures the root logger for the scene.

    Args:
        log_level: The minimum log level to output (e.g., "INFO", "DEBUG").
        log_file: If provided, logs are appended to this file. Otherwise, logs
            are written to stdout.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Drop handlers from a previous call so reconfiguring doesn't duplicate lines
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    if log_file:
        handler = logging.FileHandler(log_file, mode="a")
    else:
        handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )
    root_logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def get_logger(name: str) -> logging.Logger:
    """Returns the logger for `name` (typically the module's __name__)."""
    return logging.getLogger(name)
