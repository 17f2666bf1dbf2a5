"""Stream the upstream registry archive to scratch storage."""

from __future__ import annotations

from pathlib import Path

import httpx
import structlog

from ..config import IngestionConfig
from ..errors import NetworkError


class ArchiveFetcher:
    """Download an archive over HTTP without buffering the body in memory.

    The fetcher either borrows an injected ``httpx.Client`` (the caller keeps
    ownership) or builds its own, which is closed by :meth:`close`.
    """

    def __init__(
        self,
        config: IngestionConfig,
        client: httpx.Client | None = None,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self.config = config
        self.logger = logger or structlog.get_logger("org_registry.fetcher")
        self._owns_client = client is None
        self._client = client or httpx.Client(
            follow_redirects=True,
            timeout=config.timeout,
            headers={"User-Agent": config.user_agent},
        )

    def __enter__(self) -> "ArchiveFetcher":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def fetch(self, url: str, destination: Path) -> Path:
        """Write the body of ``url`` to ``destination``, replacing any earlier file."""

        destination.parent.mkdir(parents=True, exist_ok=True)
        written = 0
        try:
            with self._client.stream("GET", url) as response:
                if not response.is_success:
                    raise NetworkError(
                        f"Download failed with HTTP {response.status_code}: {url}"
                    )
                expected = response.headers.get("Content-Length")
                # Content-Length counts encoded bytes; only comparable for identity bodies
                if response.headers.get("Content-Encoding", "identity") != "identity":
                    expected = None
                with destination.open("wb") as stream:
                    for chunk in response.iter_bytes(self.config.chunk_size):
                        stream.write(chunk)
                        written += len(chunk)
        except httpx.HTTPError as exc:
            raise NetworkError(f"Download interrupted: {url}: {exc}") from exc
        except OSError as exc:
            raise NetworkError(f"Could not write archive to {destination}: {exc}") from exc

        if expected is not None and expected.isdigit() and int(expected) != written:
            raise NetworkError(
                f"Download truncated: expected {expected} bytes, received {written}: {url}"
            )
        self.logger.info("archive_downloaded", url=url, path=str(destination), bytes=written)
        return destination


__all__ = ["ArchiveFetcher"]
