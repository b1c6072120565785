"""Tests for the epoch-tagged collection store."""

import pytest

from sitewatch.client.types import NetworkFailure
from sitewatch.domain import Category, CheckResult, CollectionKind, Summary, Website
from sitewatch.sync import (
    CollectionStore,
    CommitStatus,
    FetchOutcome,
    MissingResult,
    SyncError,
)


def fill(store, epoch, *, categories=None, websites=None, checks=None, summary=None):
    """Buffer a complete successful result set for an epoch."""
    values = {
        CollectionKind.CATEGORIES: categories or [],
        CollectionKind.WEBSITES: websites or [],
        CollectionKind.CHECKS: checks or [],
        CollectionKind.SUMMARY: summary or Summary(),
    }
    for kind, value in values.items():
        store.apply_partial(epoch, FetchOutcome.success(kind, value))


class TestEpochs:
    """Test epoch allocation and buffering."""

    def test_initial_state(self):
        store = CollectionStore()

        assert store.visible_epoch == 0
        assert store.current_snapshot().websites == ()
        assert store.in_flight_epochs == []
        assert not store.is_loading()

    def test_epochs_increase(self):
        store = CollectionStore()

        assert [store.allocate_epoch() for _ in range(3)] == [1, 2, 3]
        assert store.in_flight_epochs == [1, 2, 3]

    def test_allocation_marks_loading(self):
        store = CollectionStore()
        epoch = store.allocate_epoch()

        assert store.is_loading()
        assert store.collection_state(CollectionKind.WEBSITES).loading

        store.apply_partial(epoch, FetchOutcome.success(CollectionKind.WEBSITES, []))

        assert not store.collection_state(CollectionKind.WEBSITES).loading
        assert store.collection_state(CollectionKind.CHECKS).loading

    def test_loading_until_every_epoch_reports(self):
        store = CollectionStore()
        first = store.allocate_epoch()
        store.allocate_epoch()

        store.apply_partial(first, FetchOutcome.success(CollectionKind.SUMMARY, Summary()))

        assert store.collection_state(CollectionKind.SUMMARY).loading

    def test_collection_state_is_a_copy(self):
        store = CollectionStore()
        state = store.collection_state(CollectionKind.CATEGORIES)
        state.loading = True

        assert not store.collection_state(CollectionKind.CATEGORIES).loading

    def test_results_for_closed_epoch_ignored(self):
        store = CollectionStore()

        store.apply_partial(7, FetchOutcome.success(CollectionKind.WEBSITES, []))

        assert store.in_flight_epochs == []


class TestCommit:
    """Test all-or-nothing promotion of buffered results."""

    @pytest.mark.asyncio
    async def test_commit_complete_epoch(self):
        store = CollectionStore()
        epoch = store.allocate_epoch()
        website = Website(id="w1", name="One", url="https://one.example")
        fill(
            store,
            epoch,
            categories=[Category(id="c1", name="News")],
            websites=[website],
            checks=[CheckResult(id="k1", website_id="w1", is_up=True)],
            summary=Summary(total_sites=1),
        )

        result = await store.commit(epoch)

        snapshot = store.current_snapshot()
        assert result.status is CommitStatus.COMMITTED
        assert result.committed
        assert snapshot.epoch == epoch
        assert snapshot.websites == (website,)
        assert snapshot.summary.total_sites == 1
        assert snapshot.refreshed_at is not None
        assert store.in_flight_epochs == []
        assert not store.is_loading()

    @pytest.mark.asyncio
    async def test_failed_epoch_keeps_snapshot(self):
        """Test a failing sub-fetch leaves the visible snapshot untouched."""
        store = CollectionStore()
        first = store.allocate_epoch()
        fill(store, first, websites=[Website(id="w1", name="One", url="https://one.example")])
        await store.commit(first)
        before = store.current_snapshot()

        second = store.allocate_epoch()
        fill(store, second)
        error = NetworkFailure("GET /api/checks/latest could not reach the service")
        store.apply_partial(second, FetchOutcome.failure(CollectionKind.CHECKS, error))

        result = await store.commit(second)

        assert result.status is CommitStatus.FAILED
        assert result.failures == {CollectionKind.CHECKS: error}
        assert store.current_snapshot() is before
        state = store.collection_state(CollectionKind.CHECKS)
        assert "NetworkFailure" in state.error
        assert state.last_success_epoch == first

    @pytest.mark.asyncio
    async def test_success_clears_previous_errors(self):
        store = CollectionStore()
        first = store.allocate_epoch()
        store.apply_partial(
            first,
            FetchOutcome.failure(CollectionKind.SUMMARY, NetworkFailure("down")),
        )
        await store.commit(first)
        assert store.collection_state(CollectionKind.SUMMARY).error is not None

        second = store.allocate_epoch()
        fill(store, second)
        await store.commit(second)

        assert store.collection_state(CollectionKind.SUMMARY).error is None
        assert store.collection_state(CollectionKind.SUMMARY).last_success_epoch == second

    @pytest.mark.asyncio
    async def test_missing_results_fail_the_epoch(self):
        store = CollectionStore()
        epoch = store.allocate_epoch()
        store.apply_partial(epoch, FetchOutcome.success(CollectionKind.WEBSITES, []))

        result = await store.commit(epoch)

        assert result.status is CommitStatus.FAILED
        assert set(result.failures) == {
            CollectionKind.CATEGORIES,
            CollectionKind.CHECKS,
            CollectionKind.SUMMARY,
        }
        assert all(isinstance(e, MissingResult) for e in result.failures.values())
        assert not store.is_loading()

    @pytest.mark.asyncio
    async def test_older_epoch_is_stale(self):
        """Test an epoch finishing after a newer commit is dropped."""
        store = CollectionStore()
        older = store.allocate_epoch()
        newer = store.allocate_epoch()

        fill(store, newer, websites=[Website(id="w2", name="New", url="https://new.example")])
        await store.commit(newer)
        fill(store, older, websites=[Website(id="w1", name="Old", url="https://old.example")])

        result = await store.commit(older)

        assert result.status is CommitStatus.STALE
        assert result.visible_epoch == newer
        assert store.current_snapshot().epoch == newer
        assert store.current_snapshot().websites[0].name == "New"

    @pytest.mark.asyncio
    async def test_older_epoch_is_stale_after_newer_failure(self):
        """Test a newer failed epoch still blocks an older one from landing."""
        store = CollectionStore()
        older = store.allocate_epoch()
        newer = store.allocate_epoch()

        fill(store, newer)
        store.apply_partial(
            newer, FetchOutcome.failure(CollectionKind.SUMMARY, NetworkFailure("down"))
        )
        failed = await store.commit(newer)
        fill(store, older, websites=[Website(id="w1", name="Old", url="https://old.example")])

        result = await store.commit(older)

        assert failed.status is CommitStatus.FAILED
        assert store.settled_epoch == newer
        assert result.status is CommitStatus.STALE
        assert result.visible_epoch == 0
        assert store.current_snapshot().epoch == 0
        assert store.current_snapshot().websites == ()

    @pytest.mark.asyncio
    async def test_commit_unknown_epoch(self):
        store = CollectionStore()

        with pytest.raises(SyncError):
            await store.commit(42)

    @pytest.mark.asyncio
    async def test_commit_twice(self):
        store = CollectionStore()
        epoch = store.allocate_epoch()
        fill(store, epoch)
        await store.commit(epoch)

        with pytest.raises(SyncError):
            await store.commit(epoch)

    def test_discard_settles_loading(self):
        store = CollectionStore()
        epoch = store.allocate_epoch()
        store.apply_partial(epoch, FetchOutcome.success(CollectionKind.WEBSITES, []))

        store.discard(epoch)

        assert store.in_flight_epochs == []
        assert not store.is_loading()
        # Late results are ignored once discarded
        store.apply_partial(epoch, FetchOutcome.success(CollectionKind.CHECKS, []))
        assert not store.is_loading()

    @pytest.mark.asyncio
    async def test_discard_after_commit_is_noop(self):
        store = CollectionStore()
        epoch = store.allocate_epoch()
        fill(store, epoch)
        await store.commit(epoch)

        store.discard(epoch)

        assert store.visible_epoch == epoch
        assert not store.is_loading()
