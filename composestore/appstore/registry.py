"""App Store Registry - the ordered list of registered app store sources.

Key Design Principles:
- Registry is NEVER EMPTY: the last source cannot be unregistered
- Registry is UNIQUE: URLs are compared case-insensitively; registering a
  known URL again is a successful no-op
- Registry is SERIALIZED: every mutation happens under one lock, readers get
  a copy of a consistent list
- Registration is ASYNCHRONOUS: validation runs on a worker pool, the caller
  only learns that it was initiated

Completion of a registration is observable through ``list()``, the returned
task handle and the log.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from composestore.appstore.backend import AppStoreBackend
from composestore.appstore.exceptions import (
    AppStoreNotFoundError,
    LastAppStoreError,
    RegistrationCancelledError,
)
from composestore.appstore.models import AppStoreMetadata
from composestore.appstore.source_store import SourceListStore
from composestore.appstore.tasks import CancelToken, RegistrationTask, TaskStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegistrationResult:
    """Outcome of ``AppStoreRegistry.register``"""
    already_registered: bool
    task: Optional[RegistrationTask] = None


class AppStoreRegistry:
    """Registry of app store sources.

    The registry owns its list; callers only ever receive copies whose
    ``id`` is the source's current position.
    """

    def __init__(
        self,
        backend: AppStoreBackend,
        store: Optional[SourceListStore] = None,
        default_urls: Iterable[str] = (),
        registration_timeout: Optional[float] = None,
        max_workers: int = 2,
    ):
        """Initialize the registry.

        Sources come from ``store`` when it holds any, otherwise from
        ``default_urls`` (seeded without validation).

        Args:
            backend: App store backend used for validation and cleanup
            store: Persistence of the source list (None keeps it in memory)
            default_urls: Sources used when nothing has been persisted
            registration_timeout: Default deadline in seconds for registrations
            max_workers: Registration worker threads

        Raises:
            ValueError: If no source is available at all
        """
        self._backend = backend
        self._store = store
        self._registration_timeout = registration_timeout
        self._lock = threading.RLock()
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="appstore-register")
        self._pending: Dict[str, RegistrationTask] = {}

        sources = store.load() if store is not None else []
        if not sources:
            sources = self._dedupe(
                AppStoreMetadata(url=url, store_path=str(backend.store_path_for(url)))
                for url in default_urls
                if url
            )
            if sources and store is not None:
                store.save(sources)

        if not sources:
            raise ValueError("at least one app store is required")

        self._sources: List[AppStoreMetadata] = list(sources)
        logger.info(f"AppStoreRegistry initialized with {len(self._sources)} app store(s)")

    @staticmethod
    def _dedupe(sources: Iterable[AppStoreMetadata]) -> List[AppStoreMetadata]:
        seen = set()
        result = []
        for source in sources:
            key = source.url.lower()
            if key not in seen:
                seen.add(key)
                result.append(source)
        return result

    def _find(self, url: str) -> Optional[AppStoreMetadata]:
        key = url.lower()
        return next((s for s in self._sources if s.url.lower() == key), None)

    def _save(self) -> None:
        if self._store is not None:
            self._store.save(self._sources)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list(self) -> List[AppStoreMetadata]:
        """Registered sources in order, each carrying its index as ``id``."""
        with self._lock:
            sources = list(self._sources)
        return [source.model_copy(update={"id": i}) for i, source in enumerate(sources)]

    def get(self, index: int) -> AppStoreMetadata:
        """Source at ``index``.

        Raises:
            AppStoreNotFoundError: If the index is out of range
        """
        with self._lock:
            if index < 0 or index >= len(self._sources):
                raise AppStoreNotFoundError(f"app store id {index} is not found")
            return self._sources[index].model_copy(update={"id": index})

    def is_registered(self, url: str) -> bool:
        with self._lock:
            return self._find(url) is not None

    def pending(self) -> List[RegistrationTask]:
        """Registrations still running"""
        with self._lock:
            return [task for task in self._pending.values() if not task.done]

    def __len__(self) -> int:
        with self._lock:
            return len(self._sources)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def register(
        self,
        url: str,
        timeout: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> RegistrationResult:
        """Register an app store.

        A URL already registered (any casing) is a no-op success. Otherwise
        the URL gets a quick synchronous check and validation continues in
        the background.

        Args:
            url: App store URL
            timeout: Deadline in seconds for the background validation
            cancel_event: Event the caller may set to cancel the validation

        Returns:
            RegistrationResult; ``task`` is set when a registration was started

        Raises:
            ValueError: If the URL is empty
            NotAnAppStoreError: If the URL can never be an app store
        """
        if not url:
            raise ValueError("appstore url is required")

        with self._lock:
            if self._find(url) is not None:
                logger.info(f"App store already registered: {url}")
                return RegistrationResult(already_registered=True)

            key = url.lower()
            running = self._pending.get(key)
            if running is not None and not running.done:
                logger.info(f"App store registration already in progress: {url}")
                return RegistrationResult(already_registered=False, task=running)

            self._backend.check_url(url)

            if timeout is None:
                timeout = self._registration_timeout
            task = RegistrationTask(url, CancelToken(timeout=timeout, event=cancel_event))
            self._pending[key] = task
            task.attach(self._executor.submit(self._run_registration, task))

        logger.info(f"App store registration started: {url}")
        return RegistrationResult(already_registered=False, task=task)

    def _run_registration(self, task: RegistrationTask) -> None:
        url = task.url
        try:
            metadata = self._backend.validate_and_persist(url, task.token)
            task.token.raise_if_cancelled()

            with self._lock:
                if self._find(url) is None:
                    self._sources.append(metadata.model_copy(update={"id": None}))
                    self._save()
                    logger.info(f"App store registered: {url}")
                else:
                    logger.info(f"App store registered concurrently, keeping existing entry: {url}")
            task.status = TaskStatus.COMPLETED

        except RegistrationCancelledError as e:
            task.error = e
            task.status = TaskStatus.CANCELLED
            logger.warning(f"App store registration cancelled: {url} ({e})")
        except Exception as e:
            task.error = e
            task.status = TaskStatus.FAILED
            logger.error(f"Failed to register app store {url}: {e}", exc_info=True)
        finally:
            with self._lock:
                if self._pending.get(url.lower()) is task:
                    del self._pending[url.lower()]

    def unregister(self, index: int) -> AppStoreMetadata:
        """Unregister the source at ``index``.

        Returns:
            The removed source

        Raises:
            AppStoreNotFoundError: If the index is out of range
            LastAppStoreError: If it is the only registered source
        """
        with self._lock:
            if index < 0 or index >= len(self._sources):
                raise AppStoreNotFoundError(f"app store id {index} is not found")

            if len(self._sources) == 1:
                raise LastAppStoreError(
                    "cannot unregister the last app store - need at least one app store"
                )

            removed = self._sources.pop(index)
            self._save()

        logger.info(f"App store unregistered: {removed.url}")
        try:
            self._backend.remove(removed)
        except OSError as e:
            logger.warning(f"Failed to clean up app store content {removed.url}: {e}")
        return removed.model_copy(update={"id": index})

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def sync_all(self) -> List[RegistrationTask]:
        """Materialize registered sources whose content is not present yet"""
        tasks = []
        with self._lock:
            for source in self._sources:
                key = source.url.lower()
                if key in self._pending or self._backend.is_materialized(source):
                    continue
                task = RegistrationTask(source.url, CancelToken(timeout=self._registration_timeout))
                self._pending[key] = task
                task.attach(self._executor.submit(self._run_sync, task))
                tasks.append(task)
        return tasks

    def _run_sync(self, task: RegistrationTask) -> None:
        try:
            self._backend.validate_and_persist(task.url, task.token)
            task.status = TaskStatus.COMPLETED
            logger.info(f"App store synchronized: {task.url}")
        except RegistrationCancelledError as e:
            task.error = e
            task.status = TaskStatus.CANCELLED
            logger.warning(f"App store synchronization cancelled: {task.url} ({e})")
        except Exception as e:
            task.error = e
            task.status = TaskStatus.FAILED
            logger.error(f"Failed to synchronize app store {task.url}: {e}", exc_info=True)
        finally:
            with self._lock:
                if self._pending.get(task.url.lower()) is task:
                    del self._pending[task.url.lower()]

    def shutdown(self, cancel_pending: bool = True) -> None:
        """Stop the worker pool, cancelling running registrations by default"""
        if cancel_pending:
            with self._lock:
                for task in self._pending.values():
                    task.cancel()
        self._executor.shutdown(wait=True)
        logger.info("AppStoreRegistry shut down")


__all__ = [
    "AppStoreRegistry",
    "RegistrationResult",
]
