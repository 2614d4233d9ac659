import functools
from typing import Callable, TypeVar

T = TypeVar("T")


def singleton(func: Callable[[], T]) -> Callable[[], T]:
    """Cache the first result of a zero-argument factory.

    The cached instance lives on ``func._instance``; ``wrapper.reset()``
    drops it so the next call rebuilds (used by tests).
    """

    @functools.wraps(func)
    def wrapper() -> T:
        if not hasattr(func, "_instance"):
            func._instance = func()  # type: ignore[attr-defined]
        return func._instance  # type: ignore[attr-defined]

    def reset() -> None:
        if hasattr(func, "_instance"):
            del func._instance  # type: ignore[attr-defined]

    wrapper.reset = reset  # type: ignore[attr-defined]
    return wrapper
