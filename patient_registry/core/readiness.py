import asyncio
import enum
import logging
from typing import Callable, Dict, List, Optional, Any

from patient_registry.core.exceptions import InitializationError
from patient_registry.infrastructure.database import Database

logger = logging.getLogger(__name__)

INITIALIZATION_FAILED_MESSAGE = "Database initialization failed. Please reload the application to retry"


class DatabaseStatus(str, enum.Enum):
    """Readiness of the embedded database"""
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


Listener = Callable[["DatabaseState"], None]


class DatabaseState:
    """Tri-state readiness flag for one ``Database``.

    Starts in ``loading``. ``initialize()`` settles it once into ``ready`` or
    ``failed``; later calls return the settled status. Only ``reload()`` puts a
    failed state back into ``loading``.
    """

    def __init__(self, database: Database):
        self.database = database
        self.status = DatabaseStatus.LOADING
        self.error: Optional[str] = None
        self._listeners: List[Listener] = []
        self._lock = asyncio.Lock()

    @property
    def is_ready(self) -> bool:
        return self.status is DatabaseStatus.READY

    @property
    def is_loading(self) -> bool:
        return self.status is DatabaseStatus.LOADING

    async def initialize(self) -> DatabaseStatus:
        """Open the database once and record the outcome"""
        async with self._lock:
            if self.status is DatabaseStatus.LOADING:
                try:
                    await self.database.acquire()
                except InitializationError as e:
                    logger.error(f"Database initialization failed: {e.message} {e.details}")
                    self._transition(DatabaseStatus.FAILED, INITIALIZATION_FAILED_MESSAGE)
                else:
                    self._transition(DatabaseStatus.READY, None)
        return self.status

    async def reload(self) -> DatabaseStatus:
        """Retry initialization on explicit request; a ready database is left as is"""
        async with self._lock:
            if self.status is DatabaseStatus.READY:
                return self.status
            self._transition(DatabaseStatus.LOADING, None)
        return await self.initialize()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` on every status change; returns an unsubscribe function"""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def snapshot(self) -> Dict[str, Any]:
        return {
            "is_data_loading": self.status is DatabaseStatus.LOADING,
            "is_configured": self.status is DatabaseStatus.READY,
            "error": self.error,
        }

    def _transition(self, status: DatabaseStatus, error: Optional[str]) -> None:
        self.status = status
        self.error = error
        logger.info(f"Database status: {status.value}")
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception(f"Database status listener {listener!r} failed")
