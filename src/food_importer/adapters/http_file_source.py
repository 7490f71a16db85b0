"""Remote spreadsheet download client."""

from dataclasses import dataclass
from typing import Protocol

import httpx


class FileTooLargeError(ValueError):
    """Raised when a downloaded file exceeds the configured size limit."""


class FileSource(Protocol):
    """Interface for fetching spreadsheet bytes from a URL."""

    async def fetch(self, url: str) -> bytes:
        """Download a file and return its bytes."""


@dataclass
class HttpxFileSource(FileSource):
    """File source using httpx with a size cap."""

    http_client: httpx.AsyncClient
    max_bytes: int = 10 * 1024 * 1024
    timeout_seconds: float = 30.0

    @classmethod
    def create(
        cls, max_bytes: int, timeout_seconds: float = 30.0
    ) -> "HttpxFileSource":
        """Create a file source with a managed httpx session."""
        return cls(
            http_client=httpx.AsyncClient(follow_redirects=True),
            max_bytes=max_bytes,
            timeout_seconds=timeout_seconds,
        )

    async def fetch(self, url: str) -> bytes:
        """Stream a file, aborting once it grows past ``max_bytes``."""
        chunks: list[bytes] = []
        received = 0
        async with self.http_client.stream(
            "GET", url, timeout=self.timeout_seconds
        ) as response:
            response.raise_for_status()
            async for chunk in response.aiter_bytes():
                received += len(chunk)
                if received > self.max_bytes:
                    raise FileTooLargeError(
                        f"File at {url} exceeds {self.max_bytes} bytes"
                    )
                chunks.append(chunk)
        return b"".join(chunks)

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
