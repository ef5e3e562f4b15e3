import functools
import time
from typing import Callable, TypeVar
from typing_extensions import ParamSpec
from dorkroom.kernel.system.logging import get_logger

logger = get_logger("perf")

P = ParamSpec("P")
R = TypeVar("R")


def time_function(func: Callable[P, R]) -> Callable[P, R]:
    """
    Logs the wall-clock duration of each call at debug level.
    """

    @functools.wraps(func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        start = time.perf_counter()
        result = func(*args, **kwargs)
        duration_ms = (time.perf_counter() - start) * 1000
        logger.debug(f"PERF: {func.__name__} took {duration_ms:.3f}ms")
        return result

    return wrapper
