"""
Unit tests for src/competence_file/autosave.py

Tests cover:
1. Debouncing - a burst of edits produces one save with the final state
2. Payload - export view (ordered, visible only) plus status marker
3. Failure policy - errors are swallowed, counted and recorded
4. Teardown - close() drops the pending save and aborts the in-flight one
5. Supersession - a newer snapshot cancels an older in-flight save
"""

import asyncio

import pytest

from src.common.error_handling import PersistenceError
from src.competence_file.autosave import AutosaveCoordinator
from src.competence_file.document import DocumentModel

DEBOUNCE = 0.05


@pytest.fixture
def document():
    doc = DocumentModel("cf_123")
    doc.load([
        {"id": "a", "title": "Summary", "html": "<p>one</p>", "order": 1},
        {"id": "b", "title": "Hidden", "html": "<p>two</p>", "order": 0, "visible": False},
        {"id": "c", "title": "Extra", "html": "<p>three</p>", "order": 0},
    ])
    return doc


def attach(store, document, **kwargs):
    autosave = AutosaveCoordinator(store, debounce_seconds=DEBOUNCE, **kwargs)
    autosave.attach(document)
    return autosave


class TestDebouncedSave:
    """Tests for coalescing edits into one save."""

    @pytest.mark.asyncio
    async def test_burst_produces_single_save_with_final_content(self, store, document):
        """Three quick edits should result in one save of the last state."""
        # Arrange
        autosave = attach(store, document)

        # Act
        document.update_section_content("a", "<p>v1</p>")
        document.update_section_content("a", "<p>v2</p>")
        document.update_section_content("a", "<p>v3</p>")
        await asyncio.sleep(DEBOUNCE * 3)
        await autosave.wait_idle()

        # Assert
        assert len(store.saves) == 1
        saved = {s["id"]: s["content"] for s in store.saves[0]["sections"]}
        assert saved["a"] == "<p>v3</p>"
        await autosave.close()

    @pytest.mark.asyncio
    async def test_no_save_before_quiet_window(self, store, document):
        autosave = attach(store, document)

        document.update_section_content("a", "<p>v1</p>")

        assert autosave.has_pending_save is True
        assert store.started == 0
        await autosave.close()

    @pytest.mark.asyncio
    async def test_payload_is_export_view(self, store, document):
        """Should send visible sections in order with the DRAFT status."""
        autosave = attach(store, document)

        document.update_section_content("a", "<p>edited</p>")
        await autosave.flush()

        save = store.saves[0]
        assert save["document_id"] == "cf_123"
        assert save["status"] == "DRAFT"
        assert [s["id"] for s in save["sections"]] == ["c", "a"]
        await autosave.close()

    @pytest.mark.asyncio
    async def test_custom_status(self, store, document):
        autosave = attach(store, document, status="FINAL")

        document.set_section_visible("b", True)
        await autosave.flush()

        assert store.saves[0]["status"] == "FINAL"
        await autosave.close()

    @pytest.mark.asyncio
    async def test_default_window_from_config(self, store):
        """Should default to the configured 800 ms window."""
        autosave = AutosaveCoordinator(store)

        assert autosave._debouncer.delay == pytest.approx(0.8)

    @pytest.mark.asyncio
    async def test_unchanged_content_schedules_nothing(self, store, document):
        autosave = attach(store, document)

        document.update_section_content("a", "<p>one</p>")

        assert autosave.has_pending_save is False
        await autosave.close()


class TestFailurePolicy:
    """Tests for swallowed save failures."""

    @pytest.mark.asyncio
    async def test_failure_is_swallowed_and_recorded(self, make_store, document):
        # Arrange
        store = make_store(fail_with=PersistenceError("down", status_code=503))
        autosave = attach(store, document)

        # Act
        document.update_section_content("a", "<p>v1</p>")
        await autosave.flush()

        # Assert
        assert autosave.failed_saves == 1
        assert isinstance(autosave.last_error, PersistenceError)
        assert autosave.is_saving is False
        assert autosave.completed_saves == 0
        await autosave.close()

    @pytest.mark.asyncio
    async def test_next_change_retries_naturally(self, make_store, document):
        """A later edit should schedule a fresh save after a failure."""
        store = make_store(fail_with=RuntimeError("boom"))
        autosave = attach(store, document)

        document.update_section_content("a", "<p>v1</p>")
        await autosave.flush()
        store.fail_with = None
        document.update_section_content("a", "<p>v2</p>")
        await autosave.flush()

        assert store.started == 2
        assert autosave.completed_saves == 1
        assert autosave.last_error is None
        assert autosave.last_saved_at is not None
        await autosave.close()


class TestIsSaving:
    """Tests for the in-flight indicator."""

    @pytest.mark.asyncio
    async def test_true_only_while_request_in_flight(self, make_store, document):
        store = make_store(delay=DEBOUNCE * 4)
        autosave = attach(store, document)

        document.update_section_content("a", "<p>v1</p>")
        assert autosave.is_saving is False

        await asyncio.sleep(DEBOUNCE * 2)
        assert autosave.is_saving is True

        await autosave.wait_idle()
        assert autosave.is_saving is False
        assert len(store.saves) == 1
        await autosave.close()


class TestSupersession:
    """Tests for newer snapshots replacing in-flight saves."""

    @pytest.mark.asyncio
    async def test_newer_snapshot_cancels_older_request(self, make_store, document):
        # Arrange
        store = make_store(delay=DEBOUNCE * 4)
        autosave = attach(store, document)

        # Act
        document.update_section_content("a", "<p>v1</p>")
        await asyncio.sleep(DEBOUNCE * 2)
        assert autosave.is_saving is True
        document.update_section_content("a", "<p>v2</p>")
        await asyncio.sleep(DEBOUNCE * 2)
        await autosave.wait_idle()

        # Assert
        assert store.started == 2
        assert store.cancelled == 1
        assert len(store.saves) == 1
        saved = {s["id"]: s["content"] for s in store.saves[0]["sections"]}
        assert saved["a"] == "<p>v2</p>"
        await autosave.close()


class TestTeardown:
    """Tests for close()."""

    @pytest.mark.asyncio
    async def test_close_drops_pending_save(self, store, document):
        autosave = attach(store, document)

        document.update_section_content("a", "<p>v1</p>")
        await autosave.close()
        await asyncio.sleep(DEBOUNCE * 3)

        assert store.started == 0
        assert autosave.has_pending_save is False

    @pytest.mark.asyncio
    async def test_close_aborts_in_flight_save(self, make_store, document):
        store = make_store(delay=1.0)
        autosave = attach(store, document)

        document.update_section_content("a", "<p>v1</p>")
        await asyncio.sleep(DEBOUNCE * 2)
        assert autosave.is_saving is True

        await autosave.close()

        assert store.cancelled == 1
        assert store.saves == []
        assert autosave.is_saving is False

    @pytest.mark.asyncio
    async def test_changes_after_close_are_ignored(self, store, document):
        autosave = attach(store, document)

        await autosave.close()
        document.update_section_content("a", "<p>late</p>")
        await asyncio.sleep(DEBOUNCE * 3)

        assert store.started == 0
        assert autosave.closed is True

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self, store, document):
        autosave = attach(store, document)

        await autosave.close()
        await autosave.close()

        assert autosave.closed is True


class TestAttach:
    """Tests for attach()."""

    @pytest.mark.asyncio
    async def test_reattach_replaces_subscription(self, store, document):
        """Only the latest attached document should be observed."""
        autosave = attach(store, document)
        other = DocumentModel("cf_other")
        other.load([{"id": "x", "html": "<p>x</p>"}])

        autosave.attach(other)
        document.update_section_content("a", "<p>ignored</p>")
        assert autosave.has_pending_save is False

        other.update_section_content("x", "<p>y</p>")
        await autosave.flush()

        assert [save["document_id"] for save in store.saves] == ["cf_other"]
        await autosave.close()


class TestOutsideEventLoop:
    """Tests for changes made while no event loop is running."""

    def test_change_is_marked_pending(self, store, document):
        """A synchronous change should defer the save instead of raising."""
        # Arrange
        autosave = attach(store, document)

        # Act
        document.update_section_content("a", "<p>v1</p>")

        # Assert
        assert autosave.has_pending_save is True
        assert store.started == 0
        asyncio.run(autosave.close())

    def test_flush_writes_deferred_change(self, store, document):
        autosave = attach(store, document)
        document.update_section_content("a", "<p>v1</p>")

        asyncio.run(autosave.flush())

        assert len(store.saves) == 1
        saved = {s["id"]: s["content"] for s in store.saves[0]["sections"]}
        assert saved["a"] == "<p>v1</p>"
        assert autosave.has_pending_save is False
        asyncio.run(autosave.close())

    def test_next_change_on_loop_folds_deferred_change(self, store, document):
        """The next debounced save should carry both changes in one request."""
        autosave = attach(store, document)
        document.update_section_content("a", "<p>v1</p>")

        async def edit_on_loop():
            document.update_section_content("c", "<p>edited</p>")
            await asyncio.sleep(DEBOUNCE * 3)
            await autosave.wait_idle()
            await autosave.close()

        asyncio.run(edit_on_loop())

        assert len(store.saves) == 1
        saved = {s["id"]: s["content"] for s in store.saves[0]["sections"]}
        assert saved["a"] == "<p>v1</p>"
        assert saved["c"] == "<p>edited</p>"

    def test_close_drops_deferred_change(self, store, document):
        autosave = attach(store, document)
        document.update_section_content("a", "<p>v1</p>")

        asyncio.run(autosave.close())

        assert autosave.has_pending_save is False
        assert store.started == 0
