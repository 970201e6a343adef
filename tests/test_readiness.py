import asyncio
import pytest

from patient_registry.core.exceptions import InitializationError
from patient_registry.core.readiness import (
    DatabaseState,
    DatabaseStatus,
    INITIALIZATION_FAILED_MESSAGE,
)
from patient_registry.infrastructure.database import Database


class FlakyDatabase(Database):
    """Fails the first ``failures`` acquisitions."""

    def __init__(self, url: str, failures: int = 1):
        super().__init__(url)
        self.failures = failures
        self.attempts = 0

    async def acquire(self):
        self.attempts += 1
        if self.attempts <= self.failures:
            raise InitializationError(details={"reason": "engine unavailable"})
        return await super().acquire()


@pytest.mark.readiness
@pytest.mark.unit
class TestDatabaseState:
    """Loading, ready and failed transitions."""

    async def test_starts_loading(self, database: Database) -> None:
        state = DatabaseState(database)

        assert state.status is DatabaseStatus.LOADING
        assert state.is_loading
        assert not state.is_ready
        assert state.snapshot() == {"is_data_loading": True, "is_configured": False, "error": None}

    async def test_initialize_becomes_ready(self, database: Database) -> None:
        state = DatabaseState(database)
        seen = []
        state.subscribe(lambda s: seen.append(s.status))

        status = await state.initialize()

        assert status is DatabaseStatus.READY
        assert state.is_ready
        assert database.is_initialized
        assert seen == [DatabaseStatus.READY]
        assert state.snapshot() == {"is_data_loading": False, "is_configured": True, "error": None}

    async def test_initialize_failure_is_reported(self, database_url: str) -> None:
        state = DatabaseState(FlakyDatabase(database_url))

        status = await state.initialize()

        assert status is DatabaseStatus.FAILED
        assert state.error == INITIALIZATION_FAILED_MESSAGE
        assert state.snapshot() == {
            "is_data_loading": False,
            "is_configured": False,
            "error": INITIALIZATION_FAILED_MESSAGE,
        }

    async def test_failed_state_is_not_retried_automatically(self, database_url: str) -> None:
        database = FlakyDatabase(database_url)
        state = DatabaseState(database)

        await state.initialize()
        status = await state.initialize()

        assert status is DatabaseStatus.FAILED
        assert database.attempts == 1

    async def test_reload_retries_initialization(self, database_url: str) -> None:
        database = FlakyDatabase(database_url)
        state = DatabaseState(database)
        seen = []
        state.subscribe(lambda s: seen.append(s.status))

        await state.initialize()
        status = await state.reload()

        assert status is DatabaseStatus.READY
        assert state.error is None
        assert seen == [DatabaseStatus.FAILED, DatabaseStatus.LOADING, DatabaseStatus.READY]
        await database.dispose()

    async def test_reload_leaves_ready_state_alone(self, database_url: str) -> None:
        database = FlakyDatabase(database_url, failures=0)
        state = DatabaseState(database)
        seen = []

        await state.initialize()
        state.subscribe(lambda s: seen.append(s.status))
        status = await state.reload()

        assert status is DatabaseStatus.READY
        assert seen == []
        assert database.attempts == 1
        await database.dispose()

    async def test_concurrent_initialize_acquires_once(self, database_url: str) -> None:
        database = FlakyDatabase(database_url, failures=0)
        state = DatabaseState(database)

        statuses = await asyncio.gather(*(state.initialize() for _ in range(3)))

        assert statuses == [DatabaseStatus.READY] * 3
        assert database.attempts == 1
        await database.dispose()

    async def test_unsubscribe_stops_notifications(self, database: Database) -> None:
        state = DatabaseState(database)
        seen = []
        unsubscribe = state.subscribe(lambda s: seen.append(s.status))

        unsubscribe()
        await state.initialize()

        assert seen == []

    async def test_failing_listener_does_not_block_initialization(self, database: Database) -> None:
        state = DatabaseState(database)
        seen = []

        def broken_listener(s):
            raise RuntimeError("listener crashed")

        state.subscribe(broken_listener)
        state.subscribe(lambda s: seen.append(s.status))

        status = await state.initialize()

        assert status is DatabaseStatus.READY
        assert state.is_ready
        assert seen == [DatabaseStatus.READY]
