import logging
import sys


def setup_logging(level: int = logging.INFO):
    """
    Configure the application's root logger.

    Sets the log level (INFO by default), uses the format "timestamp - logger name - level - message" for records, and attaches a StreamHandler that writes logs to stdout.
    Third-party loggers that are chatty at INFO are raised to WARNING.
    """
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )
    for name in ("diffusers", "transformers", "urllib3", "PIL"):
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
