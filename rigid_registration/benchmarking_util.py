import contextlib
import logging
import time
from typing import Generator


@contextlib.contextmanager
def debug_timing(span_name: str) -> Generator[None, None, None]:
    """Log a message to debug level with the time to run the code in this context."""
    start_time = time.perf_counter()
    try:
        yield
    finally:
        total_time = time.perf_counter() - start_time
        logging.debug(f"{span_name}: {total_time:0.3f}s")
