"""
Logging configuration for the relay.

Everything goes to stdout through the root logger; chatty SDK loggers are
held at WARNING so request logs stay readable.
"""
import logging
import sys

NOISY_LOGGERS = ("botocore", "boto3", "urllib3", "uvicorn.access")


def setup_logging(log_level: str = "INFO") -> None:
    level = getattr(logging, log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-7s | %(name)-24s | %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stdout,
    )
    logging.getLogger("relay").setLevel(level)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
