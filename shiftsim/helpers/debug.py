import functools
import logging


def log_call(fn):
    logger = logging.getLogger(fn.__module__)

    @functools.wraps(fn)
    def __wrapped(*args, **kwargs):
        logger.debug(f"Calling {fn.__qualname__} {args[1:]} {kwargs}")
        return fn(*args, **kwargs)
    return __wrapped
