"""
Debounced autosave for an editing session.

Every document change restarts an 800 ms quiet window (AUTOSAVE_DEBOUNCE_MS);
when it elapses, the current export view is sent to the persistence store
with a status marker. Intermediate states inside one window are superseded,
not queued. A change seen while no event loop is running is held as pending
until `flush()` or the next change made on the loop.

Failure policy: a failed save is logged, counted and recorded in
`last_error`, and otherwise only visible as `is_saving` going back to False.
There is no retry; the next document change schedules a fresh save.

Teardown (`close()`) cancels the pending timer and the in-flight request so
nothing is written after the session is gone.
"""

import asyncio
from datetime import datetime, timezone
from typing import Callable, List, Optional

from src.common.config import Config
from src.common.logger import get_logger
from src.competence_file.debounce import Debouncer
from src.competence_file.document import DocumentModel
from src.competence_file.types import ExportedSection, PersistenceStore


class AutosaveCoordinator:
    """
    Observes a DocumentModel and persists debounced snapshots.

    Usage:
        autosave = AutosaveCoordinator(store)
        autosave.attach(document)
        ...                      # edits schedule saves
        autosave.is_saving       # for the "Saving..." indicator
        await autosave.close()   # session teardown
    """

    def __init__(
        self,
        store: PersistenceStore,
        debounce_seconds: Optional[float] = None,
        status: Optional[str] = None,
    ):
        """
        Initialize the coordinator.

        Args:
            store: Persistence collaborator with `async save(document_id, sections, status)`
            debounce_seconds: Quiet window (default: Config.AUTOSAVE_DEBOUNCE_MS)
            status: Status marker sent with every save (default: Config.AUTOSAVE_STATUS)
        """
        if debounce_seconds is None:
            debounce_seconds = Config.autosave_debounce_seconds()
        self.store = store
        self.status = status or Config.AUTOSAVE_STATUS
        self._debouncer = Debouncer(debounce_seconds, self._start_save)
        self._document: Optional[DocumentModel] = None
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._inflight: Optional[asyncio.Task] = None
        self._closed = False
        # Change seen while no event loop was running; saved on flush() or
        # folded into the next debounced save
        self._deferred = False

        self.completed_saves = 0
        self.failed_saves = 0
        self.last_error: Optional[Exception] = None
        self.last_saved_at: Optional[datetime] = None
        self.logger = get_logger(__name__, component="autosave")

    # ===== State for the UI =====

    @property
    def is_saving(self) -> bool:
        """True while a save request is in flight."""
        return self._inflight is not None and not self._inflight.done()

    @property
    def has_pending_save(self) -> bool:
        """True while a change is waiting for the quiet window to elapse."""
        return self._deferred or self._debouncer.pending

    @property
    def closed(self) -> bool:
        return self._closed

    # ===== Wiring =====

    def attach(self, document: DocumentModel) -> None:
        """Subscribe to a document's changes (replaces any previous subscription)."""
        if self._unsubscribe is not None:
            self._unsubscribe()
        self._document = document
        self.logger.document_id = document.document_id
        self._unsubscribe = document.subscribe(self.on_document_change)

    def on_document_change(self, document: DocumentModel) -> None:
        """
        Schedule a save of this document after the quiet window.

        Outside a running event loop (e.g. a synchronous initial load) the
        save is only marked pending.
        """
        if self._closed:
            return
        self._document = document
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            self._deferred = True
            self.logger.debug("No running event loop; save deferred")
            return
        self._deferred = False
        self._debouncer.trigger()

    # ===== Saving =====

    def _start_save(self) -> None:
        self._deferred = False
        if self._closed or self._document is None:
            return

        sections = self._document.export_visible_ordered()
        if self.is_saving:
            # A newer snapshot supersedes the request still on the wire
            self.logger.debug("Superseding in-flight save with newer snapshot")
            self._inflight.cancel()

        loop = asyncio.get_running_loop()
        self._inflight = loop.create_task(
            self._save(self._document.document_id, sections)
        )

    async def _save(self, document_id: str, sections: List[ExportedSection]) -> None:
        self.logger.debug(f"Saving {len(sections)} sections (status={self.status})")
        try:
            await self.store.save(document_id, sections, self.status)
        except asyncio.CancelledError:
            self.logger.debug("Save cancelled")
            raise
        except Exception as e:
            self.failed_saves += 1
            self.last_error = e
            self.logger.warning(f"Autosave failed: {e}")
        else:
            self.completed_saves += 1
            self.last_error = None
            self.last_saved_at = datetime.now(timezone.utc)
            self.logger.debug(f"Autosave #{self.completed_saves} completed")

    async def flush(self) -> None:
        """Save a pending change now and wait for the in-flight save to finish."""
        if not self._debouncer.fire_now() and self._deferred:
            self._start_save()
        await self.wait_idle()

    async def wait_idle(self) -> None:
        """Wait until no save is in flight."""
        while self._inflight is not None and not self._inflight.done():
            task = self._inflight
            await asyncio.gather(task, return_exceptions=True)

    async def close(self) -> None:
        """
        Tear down: stop observing, drop the pending save, abort the in-flight one.

        Safe to call more than once.
        """
        if self._closed:
            return
        self._closed = True

        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

        deferred, self._deferred = self._deferred, False
        if self._debouncer.cancel() or deferred:
            self.logger.info("Dropped pending autosave on teardown")

        task = self._inflight
        if task is not None and not task.done():
            self.logger.info("Aborting in-flight autosave on teardown")
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
        self._inflight = None
