# logger.py
import logging
import sys

DEFAULT_LOG_FILE = "/var/log/lakefs_quickstart.log"
FALLBACK_LOG_FILE = "/tmp/lakefs_quickstart.log"

_FORMAT = logging.Formatter(
    "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S",
)


def _console_logger() -> logging.Logger:
    logger = logging.getLogger("lakefs_quickstart")
    logger.setLevel(logging.DEBUG)
    if not logger.handlers:
        sh = logging.StreamHandler(sys.stderr)
        sh.setLevel(logging.WARNING)
        sh.setFormatter(_FORMAT)
        logger.addHandler(sh)
    return logger


def configure_file_logging(path: str = DEFAULT_LOG_FILE,
                           fallback: str = FALLBACK_LOG_FILE) -> str:
    """
    Send DEBUG and above to `path`, replacing any earlier file handler.

    Falls back to `fallback` when `path` cannot be opened. Returns the file
    actually in use.
    """
    for handler in [h for h in log.handlers if isinstance(h, logging.FileHandler)]:
        log.removeHandler(handler)
        handler.close()

    try:
        fh = logging.FileHandler(path)
    except OSError:
        fh = logging.FileHandler(fallback)
        path = fallback
    fh.setLevel(logging.DEBUG)
    fh.setFormatter(_FORMAT)
    log.addHandler(fh)
    return path


log = _console_logger()
