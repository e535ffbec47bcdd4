import logging
import threading

import pytest

from scene_glue.glue.context_store import (
    ContextStore,
    WORLD_KEY,
    fresh_context,
    is_live,
    with_entry,
)


class TestContextStore:
    """Test ContextStore"""

    @pytest.fixture
    def store(self):
        return ContextStore()

    def test_starts_with_fresh_context(self, store):
        """A new store holds a live, otherwise empty context"""
        assert dict(store.snapshot()) == {WORLD_KEY: True}

    def test_apply_replaces_context(self, store):
        """apply stores the transform's result and returns a view of it"""
        view = store.apply(lambda context: {**context, "response": 200})

        assert view["response"] == 200
        assert store.snapshot()["response"] == 200
        assert store.snapshot()[WORLD_KEY] is True

    def test_apply_passes_current_context(self, store):
        """Each transform sees the previous transform's result"""
        store.apply(lambda context: {**context, "count": 1})
        store.apply(lambda context: {**context, "count": context["count"] + 1})

        assert store.snapshot()["count"] == 2

    def test_dropped_context_is_logged_and_stored(self, store, caplog):
        """A result without the liveness marker is logged but still stored"""
        with caplog.at_level(logging.ERROR, logger="scene_glue.glue.context_store"):
            store.apply(lambda context: {"count": 5})

        assert "appears to have been dropped" in caplog.text
        assert dict(store.snapshot()) == {"count": 5}

    def test_non_mapping_result_is_logged(self, store, caplog):
        """Returning None from a body counts as dropping the context"""
        with caplog.at_level(logging.ERROR, logger="scene_glue.glue.context_store"):
            store.apply(lambda context: None)

        assert "appears to have been dropped" in caplog.text
        assert dict(store.snapshot()) == {}

    def test_unchecked_apply_does_not_log(self, store, caplog):
        """check=False skips the liveness diagnostic"""
        with caplog.at_level(logging.ERROR, logger="scene_glue.glue.context_store"):
            store.apply(lambda context: {}, check=False)

        assert caplog.text == ""

    def test_reset_restores_fresh_context(self, store):
        """reset discards accumulated state"""
        store.apply(lambda context: {**context, "token": "abc"})
        store.reset()

        assert dict(store.snapshot()) == fresh_context()

    def test_snapshot_is_read_only(self, store):
        """The store exposes no raw write access"""
        snapshot = store.snapshot()

        with pytest.raises(TypeError):
            snapshot["count"] = 1

    def test_body_may_read_store_from_its_own_thread(self, store):
        """Reentrant reads see the context the body was handed"""
        seen = []

        def body(context):
            seen.append(dict(store.snapshot()))
            return {**context, "count": 1}

        store.apply(body)

        assert seen == [{WORLD_KEY: True}]
        assert store.snapshot()["count"] == 1

    def test_other_threads_wait_for_the_body(self, store):
        """A read from another thread is held until apply returns"""
        seen = []
        reader = threading.Thread(target=lambda: seen.append(store.snapshot().get("count")))

        def body(context):
            reader.start()
            return {**context, "count": 1}

        store.apply(body)
        reader.join(timeout=5)

        assert seen == [1]

    def test_concurrent_apply_loses_no_updates(self, store):
        """Swaps are atomic even when callers overlap"""
        store.apply(lambda context: {**context, "count": 0})

        def bump():
            for _ in range(200):
                store.apply(lambda context: {**context, "count": context["count"] + 1})

        threads = [threading.Thread(target=bump) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert store.snapshot()["count"] == 800


class TestContextHelpers:
    """Test context helper functions"""

    def test_is_live(self):
        assert is_live(fresh_context())
        assert not is_live({})
        assert not is_live({WORLD_KEY: "yes"})
        assert not is_live(None)

    def test_with_entry_copies(self):
        """with_entry never mutates its input"""
        original = fresh_context()
        updated = with_entry(original, "key", "value")

        assert updated == {WORLD_KEY: True, "key": "value"}
        assert original == {WORLD_KEY: True}

    def test_with_entry_on_non_mapping(self):
        assert with_entry(None, "key", 1) == {"key": 1}
