from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from typing import Any, Callable

_pool = ThreadPoolExecutor(max_workers=4, thread_name_prefix="blocking-call")


class CallTimedOut(Exception):
    pass


def run_with_timeout(fn: Callable[..., Any], timeout: float, *args, **kwargs) -> Any:
    """
    Run a blocking call on a worker thread and stop waiting after `timeout`
    seconds. The worker itself cannot be killed; its result is discarded.
    """
    future = _pool.submit(fn, *args, **kwargs)
    try:
        return future.result(timeout=timeout)
    except FutureTimeout:
        future.cancel()
        raise CallTimedOut(f"{getattr(fn, '__name__', 'call')} exceeded {timeout}s")
