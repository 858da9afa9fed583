"""Tests for the versioned cache store."""

import pytest

from eventboard.models import Event
from eventboard.sync import CacheStatus, CacheStore, NetworkError, Result, ServerError

KEY = "events"


@pytest.fixture
def store():
    """Create an empty cache store."""
    return CacheStore()


@pytest.fixture
def events():
    """Two sample events."""
    return [
        Event(id=1, title="Fall Fest"),
        Event(id=2, title="Winter Market"),
    ]


class TestCacheStoreRead:
    """Tests for read."""

    def test_read_unknown_key_is_idle(self, store):
        """Test unknown keys start idle and empty."""
        entry = store.read(KEY)

        assert entry.key == KEY
        assert entry.status == CacheStatus.IDLE
        assert entry.value == ()
        assert entry.error is None
        assert entry.version == 0
        assert store.keys() == [KEY]

    def test_read_returns_snapshot(self, store, events):
        """Test earlier snapshots are not changed by later transitions."""
        before = store.read(KEY)
        token = store.begin_load(KEY)
        store.complete_load(KEY, token, Result.success(events))

        assert before.status == CacheStatus.IDLE
        assert before.value == ()


class TestCacheStoreLoad:
    """Tests for begin_load / complete_load."""

    def test_begin_load_returns_version(self, store):
        """Test begin_load hands out the pre-transition version."""
        token = store.begin_load(KEY)

        assert token == 0
        assert store.read(KEY).status == CacheStatus.LOADING
        assert store.read(KEY).version == 0

    def test_begin_load_while_loading_is_noop(self, store):
        """Test a second begin_load is ignored."""
        store.begin_load(KEY)

        assert store.begin_load(KEY) is None
        assert store.read(KEY).status == CacheStatus.LOADING

    def test_complete_load_success(self, store, events):
        """Test successful result makes the entry ready."""
        token = store.begin_load(KEY)

        applied = store.complete_load(KEY, token, Result.success(events))

        entry = store.read(KEY)
        assert applied is True
        assert entry.status == CacheStatus.READY
        assert entry.value == tuple(events)
        assert entry.version == 1

    def test_complete_load_error(self, store):
        """Test failed result keeps the cause."""
        token = store.begin_load(KEY)
        error = ServerError(detail="db down", status=500)

        store.complete_load(KEY, token, Result.failure(error))

        entry = store.read(KEY)
        assert entry.status == CacheStatus.ERROR
        assert entry.error == error
        assert entry.version == 1

    def test_error_keeps_previous_value(self, store, events):
        """Test a failed refetch does not drop the last good collection."""
        token = store.begin_load(KEY)
        store.complete_load(KEY, token, Result.success(events))

        token = store.begin_load(KEY)
        store.complete_load(KEY, token, Result.failure(NetworkError("down")))

        entry = store.read(KEY)
        assert entry.status == CacheStatus.ERROR
        assert entry.value == tuple(events)

    def test_success_replaces_value(self, store, events):
        """Test a later fetch fully replaces the collection."""
        token = store.begin_load(KEY)
        store.complete_load(KEY, token, Result.success(events))

        token = store.begin_load(KEY)
        store.complete_load(KEY, token, Result.success([Event(id=9, title="Solo")]))

        assert [e.id for e in store.read(KEY).value] == [9]

    def test_refetch_from_error(self, store):
        """Test an ERROR entry can be loaded again."""
        token = store.begin_load(KEY)
        store.complete_load(KEY, token, Result.failure(NetworkError()))

        assert store.begin_load(KEY) == 1
        assert store.read(KEY).status == CacheStatus.LOADING
        assert store.read(KEY).error is None


class TestCacheStoreStaleness:
    """Tests for discarding superseded results."""

    def test_stale_after_invalidate(self, store, events):
        """Test completion after an invalidation is a no-op."""
        token = store.begin_load(KEY)
        store.invalidate(KEY)
        before = store.read(KEY)

        applied = store.complete_load(KEY, token, Result.success(events))

        assert applied is False
        assert store.read(KEY) == before

    def test_stale_after_newer_fetch(self, store, events):
        """Test an old fetch cannot overwrite a newer one that finished first."""
        old_token = store.begin_load(KEY)
        store.invalidate(KEY)
        new_token = store.begin_load(KEY)
        store.complete_load(KEY, new_token, Result.success(events))
        before = store.read(KEY)

        applied = store.complete_load(
            KEY, old_token, Result.success([Event(id=99, title="Old")])
        )

        assert applied is False
        assert store.read(KEY) == before
        assert store.read(KEY).value == tuple(events)

    def test_stale_error_does_not_apply(self, store, events):
        """Test an old failure cannot overwrite a newer success."""
        old_token = store.begin_load(KEY)
        store.invalidate(KEY)
        new_token = store.begin_load(KEY)
        store.complete_load(KEY, new_token, Result.success(events))

        store.complete_load(KEY, old_token, Result.failure(NetworkError()))

        assert store.read(KEY).status == CacheStatus.READY

    def test_double_complete_is_noop(self, store, events):
        """Test the same token cannot be applied twice."""
        token = store.begin_load(KEY)
        store.complete_load(KEY, token, Result.success(events))

        assert store.complete_load(KEY, token, Result.success([])) is False
        assert store.read(KEY).value == tuple(events)


class TestCacheStoreInvalidate:
    """Tests for invalidate."""

    def test_invalidate_ready(self, store, events):
        """Test invalidate resets to idle and keeps displayed data."""
        token = store.begin_load(KEY)
        store.complete_load(KEY, token, Result.success(events))

        store.invalidate(KEY)

        entry = store.read(KEY)
        assert entry.status == CacheStatus.IDLE
        assert entry.version == 2
        assert entry.value == tuple(events)

    def test_invalidate_error_clears_cause(self, store):
        """Test invalidate drops the error."""
        token = store.begin_load(KEY)
        store.complete_load(KEY, token, Result.failure(NetworkError()))

        store.invalidate(KEY)

        assert store.read(KEY).error is None
        assert store.read(KEY).status == CacheStatus.IDLE

    def test_invalidate_idle_bumps_version(self, store):
        """Test invalidate bumps the version even when already idle."""
        store.invalidate(KEY)
        store.invalidate(KEY)

        assert store.read(KEY).version == 2


class TestCacheStoreSubscribe:
    """Tests for subscribe and notifications."""

    def test_notified_once_per_transition(self, store, events):
        """Test each transition notifies exactly once."""
        seen = []
        store.subscribe(KEY, seen.append)

        token = store.begin_load(KEY)
        store.complete_load(KEY, token, Result.success(events))
        store.invalidate(KEY)

        assert [e.status for e in seen] == [
            CacheStatus.LOADING,
            CacheStatus.READY,
            CacheStatus.IDLE,
        ]

    def test_no_notification_for_noops(self, store, events):
        """Test ignored begin_load and stale completions are silent."""
        token = store.begin_load(KEY)
        seen = []
        store.subscribe(KEY, seen.append)

        store.begin_load(KEY)
        store.invalidate(KEY)
        store.complete_load(KEY, token, Result.success(events))

        assert [e.status for e in seen] == [CacheStatus.IDLE]

    def test_unsubscribe(self, store):
        """Test unsubscribed listeners are not called."""
        seen = []
        unsubscribe = store.subscribe(KEY, seen.append)

        unsubscribe()
        unsubscribe()
        store.begin_load(KEY)

        assert seen == []

    def test_listeners_are_per_key(self, store):
        """Test transitions of other keys are not delivered."""
        seen = []
        store.subscribe(KEY, seen.append)

        store.begin_load("other")

        assert seen == []

    def test_failing_listener_does_not_block_others(self, store):
        """Test a raising listener is isolated."""
        seen = []

        def broken(entry):
            raise RuntimeError("boom")

        store.subscribe(KEY, broken)
        store.subscribe(KEY, seen.append)

        store.begin_load(KEY)

        assert len(seen) == 1
        assert store.read(KEY).status == CacheStatus.LOADING

    def test_clear(self, store):
        """Test clear drops entries and listeners."""
        seen = []
        store.subscribe(KEY, seen.append)
        store.begin_load(KEY)

        store.clear()
        store.begin_load(KEY)

        assert store.keys() == [KEY]
        assert len(seen) == 1
