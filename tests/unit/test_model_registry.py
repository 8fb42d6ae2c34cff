import threading
from unittest.mock import Mock

import pytest

from core.model_registry import ModelRegistry
from util.enums import ModelName


class TestModelRegistry:

    def test_loads_lazily_once(self):
        loader = Mock(return_value=object())
        registry = ModelRegistry({"embedding": loader})

        assert not registry.is_loaded("embedding")
        first = registry.get("embedding")
        second = registry.get("embedding")

        assert first is second
        loader.assert_called_once()
        assert registry.loaded() == ["embedding"]

    def test_concurrent_first_callers_share_one_load(self, loaders):
        loader = loaders[ModelName.GENERATION]
        loader.delay = 0.2
        registry = ModelRegistry({"generation": loader})
        results = []
        barrier = threading.Barrier(8)

        def worker():
            barrier.wait()
            results.append(registry.get("generation"))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert loader.calls == 1
        assert len(results) == 8
        assert all(r is results[0] for r in results)

    def test_unknown_model_raises(self):
        with pytest.raises(KeyError):
            ModelRegistry({}).get("missing")

    def test_load_failure_propagates_and_is_retried(self):
        loader = Mock(side_effect=[OSError("no weights"), "model"])
        registry = ModelRegistry({"generation": loader})

        with pytest.raises(OSError):
            registry.get("generation")
        assert not registry.is_loaded("generation")
        assert registry.get("generation") == "model"

    def test_warm_loads_everything(self):
        a, b = Mock(return_value="a"), Mock(return_value="b")
        registry = ModelRegistry({"embedding": a, "generation": b})

        registry.warm()

        assert registry.loaded() == ["embedding", "generation"]

    def test_reset_forces_reload(self):
        loader = Mock(side_effect=[object(), object()])
        registry = ModelRegistry({"embedding": loader})
        first = registry.get("embedding")

        registry.reset("embedding")

        assert registry.get("embedding") is not first
        assert loader.call_count == 2

    def test_reset_all(self):
        registry = ModelRegistry({"a": Mock(return_value=1), "b": Mock(return_value=2)})
        registry.warm()

        registry.reset()

        assert registry.loaded() == []
