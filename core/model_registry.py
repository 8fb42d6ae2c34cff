# core/model_registry.py
import threading
from typing import Any, Callable, Dict, List, Mapping
from util.timing import timed
import logging

logger = logging.getLogger(__name__)

Loader = Callable[[], Any]


class ModelRegistry:
    """
    Process-wide holder of shared model handles.

    Each handle is loaded on first use behind a per-name lock: the first caller
    loads, concurrent callers wait and then reuse the same instance. The lock is
    held only around the load, never around inference.
    """

    def __init__(self, loaders: Mapping[str, Loader]) -> None:
        self._loaders: Dict[str, Loader] = {str(k): v for k, v in loaders.items()}
        self._handles: Dict[str, Any] = {}
        self._locks: Dict[str, threading.Lock] = {k: threading.Lock() for k in self._loaders}

    def get(self, name: str) -> Any:
        name = str(name)
        handle = self._handles.get(name)
        if handle is not None:
            return handle
        if name not in self._loaders:
            raise KeyError(f"no loader registered for model '{name}'")
        with self._locks[name]:
            handle = self._handles.get(name)
            if handle is None:
                with timed(logger, "model.load", model=name):
                    handle = self._loaders[name]()
                self._handles[name] = handle
        return handle

    def is_loaded(self, name: str) -> bool:
        return str(name) in self._handles

    def loaded(self) -> List[str]:
        return sorted(self._handles)

    def warm(self) -> None:
        """Load every registered model now (startup); load errors propagate."""
        for name in self._loaders:
            self.get(name)

    def reset(self, name: str | None = None) -> None:
        names = list(self._loaders) if name is None else [str(name)]
        for n in names:
            lock = self._locks.get(n)
            if lock is None:
                continue
            with lock:
                if self._handles.pop(n, None) is not None:
                    logger.info("model.reset model=%s", n)
