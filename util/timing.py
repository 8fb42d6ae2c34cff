# util/timing.py
import time
from contextlib import contextmanager
from typing import Iterator, Any
import logging


@contextmanager
def timed(logger: logging.Logger, name: str, **kv: Any) -> Iterator[None]:
    """
    Usage:
      with timed(logger, "embed.encode", n=3):
          ...
    Emits one INFO on exit: "<name>.done ms=<int> ok=<bool> key=val ..."
    A failing block is still reported (ok=False) and the error propagates.
    """
    t0 = time.perf_counter()
    ok = False
    try:
        yield
        ok = True
    finally:
        dt_ms = int((time.perf_counter() - t0) * 1000)
        suffix = "".join(f" {k}={v}" for k, v in kv.items())
        logger.info("%s.done ms=%d ok=%s%s", name, dt_ms, ok, suffix)
