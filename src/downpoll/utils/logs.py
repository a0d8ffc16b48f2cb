import logging

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level="INFO") -> None:
    """Configure root logging for the process"""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logging.basicConfig(level=level, format=LOG_FORMAT, force=True)
    logging.getLogger("urllib3.connectionpool").setLevel(logging.ERROR)
