"""Process-wide logging setup shared by the API, import workers and scripts."""

import logging

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s — %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(level: str = "info") -> None:
    """Configure the root logger once; later calls only adjust the level."""
    logging.basicConfig(
        level=level.upper(),
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
    )
    logging.getLogger().setLevel(level.upper())
