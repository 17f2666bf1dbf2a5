"""Shared fixtures: temporary config, archive builders and mocked HTTP clients."""

from __future__ import annotations

import io
import zipfile
from pathlib import Path
from typing import Any, Callable, Iterable

import httpx
import pytest

from org_registry.config import ConfigLocator, ConfigRepository, GlobalConfig, IngestionConfig
from org_registry.infra import OrganizationRepository, SQLiteManager
from org_registry.orchestrator import Orchestrator

SOURCE_URL = "https://registry.test/pub78.zip"


def registry_line(index: int, *, name: str | None = None, status: str = "PC") -> str:
    return f"{index:09d}|{name or f'Org {index:05d}'}|Springfield|IL|United States|{status}"


def registry_lines(count: int, start: int = 0) -> list[str]:
    return [registry_line(index) for index in range(start, start + count)]


def build_archive(files: dict[str, str]) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as bundle:
        for name, text in files.items():
            bundle.writestr(name, text)
    return buffer.getvalue()


def dataset_archive(lines: Iterable[str], filename: str = "data-download-pub78.txt") -> bytes:
    return build_archive({filename: "\n".join(lines) + "\n"})


def payload_client(payload: bytes, status_code: int = 200) -> httpx.Client:
    """Client whose every GET returns ``payload`` with ``status_code``."""

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "GET"
        return httpx.Response(
            status_code,
            headers={"Content-Type": "application/zip"},
            content=payload,
        )

    return httpx.Client(transport=httpx.MockTransport(handler))


@pytest.fixture
def ingestion_config(tmp_path: Path) -> IngestionConfig:
    return IngestionConfig(source_url=SOURCE_URL, scratch_dir=tmp_path / "scratch")


@pytest.fixture
def storage() -> Iterable[SQLiteManager]:
    manager = SQLiteManager()
    yield manager
    manager.close_all()


@pytest.fixture
def repository(tmp_path: Path, storage: SQLiteManager) -> OrganizationRepository:
    return OrganizationRepository(storage, tmp_path / "store" / "registry.db")


@pytest.fixture
def temp_config_repository(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Iterable[ConfigRepository]:
    monkeypatch.setenv("ORG_REGISTRY_HOME", str(tmp_path / "home"))
    locator = ConfigLocator()
    yield ConfigRepository(locator)


@pytest.fixture
def make_orchestrator(
    tmp_path: Path,
    temp_config_repository: ConfigRepository,
    storage: SQLiteManager,
) -> Callable[..., Orchestrator]:
    """Build an orchestrator whose downloads are served by ``payload``."""

    def _builder(payload: bytes = b"", *, status_code: int = 200, **ingestion: Any) -> Orchestrator:
        settings: dict[str, Any] = {"source_url": SOURCE_URL, "scratch_dir": tmp_path / "scratch"}
        settings.update(ingestion)
        temp_config_repository.save_global_config(
            GlobalConfig(ingestion=IngestionConfig(**settings), enable_progress_bar=False)
        )
        client = payload_client(payload, status_code)
        return Orchestrator(temp_config_repository, storage, client=client)

    return _builder


@pytest.fixture(name="registry_lines")
def registry_lines_fixture() -> Callable[..., list[str]]:
    return registry_lines


@pytest.fixture(name="registry_line")
def registry_line_fixture() -> Callable[..., str]:
    return registry_line


@pytest.fixture(name="build_archive")
def build_archive_fixture() -> Callable[[dict[str, str]], bytes]:
    return build_archive


@pytest.fixture(name="dataset_archive")
def dataset_archive_fixture() -> Callable[..., bytes]:
    return dataset_archive


@pytest.fixture(name="payload_client")
def payload_client_fixture() -> Callable[..., httpx.Client]:
    return payload_client
