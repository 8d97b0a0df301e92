from __future__ import annotations

import pytest

from wagon.common.config import Settings, get_settings
from wagon.domain.repository import Repository
from wagon.transport.s3_wagon import S3Wagon
from tests.transport.mock_storage import RecordingClientFactory


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()  # type: ignore[attr-defined]
    yield
    get_settings.cache_clear()  # type: ignore[attr-defined]


@pytest.fixture()
def settings() -> Settings:
    return Settings(ENABLE_METRICS=False, WAGON_LIST_PAGE_SIZE=2)


@pytest.fixture()
def client_factory() -> RecordingClientFactory:
    return RecordingClientFactory()


@pytest.fixture()
def repository() -> Repository:
    return Repository.from_url("s3://artifacts/repo")


@pytest.fixture()
def wagon(settings, client_factory) -> S3Wagon:
    return S3Wagon(settings=settings, client_factory=client_factory)


@pytest.fixture()
def connected_wagon(wagon, repository) -> S3Wagon:
    wagon.connect(repository)
    return wagon


@pytest.fixture()
def recorder():
    return EventRecorder()


class EventRecorder:
    """Listener that keeps every event it receives."""

    def __init__(self) -> None:
        self.events: list = []

    def __call__(self, event) -> None:
        self.events.append(event)

    def types(self, *, skip_progress: bool = True) -> list[str]:
        return [
            event.type.value
            for event in self.events
            if not (skip_progress and event.type.value == "progress")
        ]
