"""Timing helpers for pipeline stages and calibration runs."""
import logging
import time
from contextlib import contextmanager
from functools import wraps

def _now():
    return time.perf_counter()

@contextmanager
def section_timer(name: str, logger: logging.Logger):
    """Log the wall time spent inside a `with` block."""
    t0 = _now()
    try:
        yield
    finally:
        logger.info("TIMER %s took %.3f s", name, _now() - t0)

def timeit(logger: logging.Logger, name: str | None = None):
    """Decorator logging the wall time of each call."""
    def deco(fn):
        label = name or fn.__qualname__
        @wraps(fn)
        def wrapper(*args, **kwargs):
            t0 = _now()
            try:
                return fn(*args, **kwargs)
            finally:
                logger.debug("TIMER %s took %.3f s", label, _now() - t0)
        return wrapper
    return deco
