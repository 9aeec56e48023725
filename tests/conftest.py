from contextlib import asynccontextmanager
from pathlib import Path
from typing import Iterator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from unittest.mock import patch

from datasetloom.export import DatasetExporter
from datasetloom.services import ChatService
from tests.mocks import InMemoryChatStore, MockServiceContainer, make_test_settings


def _create_test_client(container: MockServiceContainer) -> Iterator[TestClient]:
    from datasetloom.server.api import dependencies
    from datasetloom.server.main import create_app

    dependencies.set_service_container(container)

    @asynccontextmanager
    async def mock_lifespan(app: FastAPI):
        yield

    with patch("datasetloom.server.main.container", container):
        with patch("datasetloom.server.main.lifespan", mock_lifespan):
            app = create_app()
            yield TestClient(app)

    dependencies.set_service_container(None)


@pytest.fixture
def export_dir(tmp_path: Path) -> Path:
    path = tmp_path / "exports"
    path.mkdir()
    return path


@pytest.fixture
def store() -> InMemoryChatStore:
    return InMemoryChatStore()


@pytest.fixture
def chat_service(store: InMemoryChatStore) -> ChatService:
    return ChatService(store)


@pytest.fixture
def exporter(store: InMemoryChatStore, export_dir: Path) -> DatasetExporter:
    return DatasetExporter(store, export_dir=export_dir)


@pytest.fixture
def mock_container(store: InMemoryChatStore, export_dir: Path) -> MockServiceContainer:
    return MockServiceContainer(make_test_settings(export_dir), store=store)


@pytest.fixture
def client(mock_container: MockServiceContainer) -> Iterator[TestClient]:
    yield from _create_test_client(mock_container)


@pytest.fixture
def client_unique_exports(
    store: InMemoryChatStore, export_dir: Path
) -> Iterator[TestClient]:
    settings = make_test_settings(export_dir, export_unique_filenames=True)
    yield from _create_test_client(MockServiceContainer(settings, store=store))
