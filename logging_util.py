import contextlib
import logging
import time

LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s: %(message)s"


@contextlib.contextmanager
def timed_log(log, text):
    start = time.perf_counter()
    yield
    end = time.perf_counter()
    log(text.format(time=end - start))


def configure_logging(verbosity=0):
    """Route polysweep loggers to stderr; each -v lowers the level one step."""
    level = {0: logging.WARNING, 1: logging.INFO}.get(verbosity, logging.DEBUG)
    logging.basicConfig(level=level, format=LOG_FORMAT)
    return logging.getLogger("polysweep")
