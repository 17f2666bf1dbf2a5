from __future__ import annotations

import httpx
import pytest

from org_registry.engine.fetcher import ArchiveFetcher
from org_registry.errors import NetworkError


class _BrokenStream(httpx.SyncByteStream):
    def __iter__(self):
        yield b"PK\x03\x04partial"
        raise httpx.ReadError("connection reset")


def test_fetcher_streams_body_to_destination(tmp_path, ingestion_config) -> None:
    payload = b"x" * 200_000
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        return httpx.Response(200, content=payload)

    client = httpx.Client(transport=httpx.MockTransport(handler))
    destination = tmp_path / "scratch" / "archive.zip"
    with ArchiveFetcher(ingestion_config, client) as fetcher:
        result = fetcher.fetch(ingestion_config.source_url, destination)

    assert result == destination
    assert destination.read_bytes() == payload
    assert seen == [ingestion_config.source_url]


def test_fetcher_overwrites_previous_file(tmp_path, ingestion_config, payload_client) -> None:
    destination = tmp_path / "archive.zip"
    destination.write_bytes(b"stale content that is longer than the new body")
    with ArchiveFetcher(ingestion_config, payload_client(b"fresh")) as fetcher:
        fetcher.fetch(ingestion_config.source_url, destination)
    assert destination.read_bytes() == b"fresh"


@pytest.mark.parametrize("status_code", [404, 500, 503])
def test_fetcher_rejects_non_success_status(tmp_path, ingestion_config, payload_client, status_code) -> None:
    fetcher = ArchiveFetcher(ingestion_config, payload_client(b"nope", status_code))
    with pytest.raises(NetworkError, match=str(status_code)):
        fetcher.fetch(ingestion_config.source_url, tmp_path / "archive.zip")


def test_fetcher_wraps_transport_errors(tmp_path, ingestion_config) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    client = httpx.Client(transport=httpx.MockTransport(handler))
    with pytest.raises(NetworkError) as excinfo:
        ArchiveFetcher(ingestion_config, client).fetch(
            ingestion_config.source_url, tmp_path / "archive.zip"
        )
    assert isinstance(excinfo.value.__cause__, httpx.ConnectError)


def test_fetcher_interrupted_stream(tmp_path, ingestion_config) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, stream=_BrokenStream())

    client = httpx.Client(transport=httpx.MockTransport(handler))
    with pytest.raises(NetworkError, match="interrupted"):
        ArchiveFetcher(ingestion_config, client).fetch(
            ingestion_config.source_url, tmp_path / "archive.zip"
        )


def test_fetcher_detects_short_body(tmp_path, ingestion_config) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, headers={"Content-Length": "100"}, content=b"short")

    client = httpx.Client(transport=httpx.MockTransport(handler))
    with pytest.raises(NetworkError, match="truncated"):
        ArchiveFetcher(ingestion_config, client).fetch(
            ingestion_config.source_url, tmp_path / "archive.zip"
        )


def test_fetcher_leaves_injected_client_open(tmp_path, ingestion_config, payload_client) -> None:
    client = payload_client(b"body")
    with ArchiveFetcher(ingestion_config, client) as fetcher:
        fetcher.fetch(ingestion_config.source_url, tmp_path / "a.zip")
    assert not client.is_closed
    client.close()


def test_fetcher_closes_owned_client(ingestion_config) -> None:
    fetcher = ArchiveFetcher(ingestion_config)
    fetcher.close()
    assert fetcher._client.is_closed
